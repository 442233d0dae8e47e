"""
Activity colour library.

Gives an activity a colour when none can be read from the sheet: first
from the canonical colours of the standard calendar templates, then by
keyword containment against the activity name.
"""

import functools
import logging
from typing import Optional

from .colors import SOURCE_KEYWORD, SOURCE_TEMPLATE, ResolvedColor, canonical_hex
from .config import DEFAULTS, load_data

logger = logging.getLogger(__name__)

_TABLE_FILE = "activity_colors.yaml"


@functools.lru_cache(maxsize=None)
def _keywords() -> tuple[tuple[str, str], ...]:
    """Keyword table sorted longest first, so the most specific match wins."""
    table = load_data(_TABLE_FILE).get("keywords", {})
    pairs = [(str(k).lower(), canonical_hex(v)) for k, v in table.items()]
    return tuple(sorted(pairs, key=lambda kv: len(kv[0]), reverse=True))


def normalize_name(name) -> str:
    return " ".join(str(name or "").lower().split())


def keyword_color(name) -> Optional[str]:
    """Return the colour of the longest keyword contained in *name*."""
    text = normalize_name(name)
    if not text:
        return None
    for keyword, hex_value in _keywords():
        if keyword in text:
            return hex_value
    return None


def template_color(commodity, name) -> Optional[str]:
    """Canonical colour of a standard template activity, or None."""
    templates = load_data(_TABLE_FILE).get("templates", {})
    colors = templates.get(normalize_name(commodity), {})
    wanted = normalize_name(name)
    for activity, hex_value in colors.items():
        if normalize_name(activity) == wanted:
            return canonical_hex(hex_value)
    return None


def lookup(name, default=None, fallback_text=None) -> ResolvedColor:
    """Colour for an activity with no style colour.

    Tries the activity *name*, then *fallback_text* (typically the cell
    text), against the keyword table.  Always returns a colour; the
    default colour is tagged ``template-default``.
    """
    for text in (name, fallback_text):
        hex_value = keyword_color(text)
        if hex_value is not None:
            return ResolvedColor(hex_value, SOURCE_KEYWORD)
    logger.debug("No colour keyword for %r, using default", name)
    return ResolvedColor(canonical_hex(default or DEFAULTS["default_color"]), SOURCE_TEMPLATE)


def template_lookup(commodity, name, default=None) -> ResolvedColor:
    """Colour for a synthesized activity of *commodity*."""
    hex_value = template_color(commodity, name) or keyword_color(name)
    if hex_value is None:
        hex_value = canonical_hex(default or DEFAULTS["default_color"])
    return ResolvedColor(hex_value, SOURCE_TEMPLATE)
