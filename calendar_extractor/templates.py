"""
Timing template library.

Per-commodity default week ranges for the standard activity names, read
from ``data/templates.yaml``.  Activity names from a sheet are matched to
a template activity through a chain of increasingly loose rules:

1. exact canonical name or alias,
2. a template name / alias contained in the activity name (longest first),
   or the activity name contained in a template name,
3. fuzzy spelling groups (site selection, land preparation, planting,
   harvesting, post-harvest handling),

and, when no template activity matches, a generic cross-commodity
pattern.  Names are compared after folding spelling variants
("First" -> "1st", "fertiliser" -> "fertilizer", ...).
"""

import functools
import logging
import re
from dataclasses import dataclass
from typing import Optional

from . import activity_colors
from .activities import ActivePeriod, Activity
from .classifier import normalize_commodity
from .config import DEFAULTS, load_data
from .timeline import Timeline

logger = logging.getLogger(__name__)

_TABLE_FILE = "templates.yaml"

_RANGE_REGEX = re.compile(r'^\s*(\d+)\s*-\s*(\d+)\s*$')


@dataclass(frozen=True)
class TemplateActivity:
    name: str
    weeks: tuple
    aliases: tuple = ()

    @property
    def keys(self) -> tuple:
        """Canonical name and aliases."""
        return (canonical_name(self.name),) + tuple(canonical_name(a) for a in self.aliases)


# ---------------------------------------------------------------------------
# Name handling
# ---------------------------------------------------------------------------

@functools.lru_cache(maxsize=None)
def _variation_regex():
    variations = load_data(_TABLE_FILE).get("variations", {})
    if not variations:
        return None, {}
    words = sorted(variations, key=len, reverse=True)
    pattern = re.compile(r'\b(' + "|".join(re.escape(w) for w in words) + r')\b')
    return pattern, {k.lower(): str(v).lower() for k, v in variations.items()}


def canonical_name(name) -> str:
    """Lower-case, single-spaced, with spelling variants folded."""
    text = " ".join(str(name or "").lower().replace("_", " ").split())
    pattern, variations = _variation_regex()
    if pattern is None:
        return text
    return pattern.sub(lambda m: variations[m.group(1)], text)


def _contains(haystack: str, needle: str) -> bool:
    if not needle:
        return False
    return re.search(r'(?<!\w)' + re.escape(needle) + r'(?!\w)', haystack) is not None


def parse_weeks(items) -> tuple:
    """``[0, 1, "4-6"]`` -> ``(0, 1, 4, 5, 6)``."""
    weeks = set()
    for item in items or []:
        if isinstance(item, int):
            weeks.add(item)
            continue
        match = _RANGE_REGEX.match(str(item))
        if match:
            start, end = int(match.group(1)), int(match.group(2))
            weeks.update(range(start, end + 1))
        else:
            weeks.add(int(item))
    return tuple(sorted(weeks))


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------

def _resolve_commodity(commodity) -> str:
    return normalize_commodity(commodity) or DEFAULTS["default_commodity"]


@functools.lru_cache(maxsize=None)
def template_for(commodity) -> tuple:
    """The ordered :class:`TemplateActivity` list of *commodity*."""
    table = load_data(_TABLE_FILE).get("commodities", {})
    entries = table.get(_resolve_commodity(commodity), [])
    return tuple(
        TemplateActivity(
            name=entry["name"],
            weeks=parse_weeks(entry.get("weeks")),
            aliases=tuple(entry.get("aliases", [])),
        )
        for entry in entries
    )


def generic_pattern(name) -> Optional[tuple]:
    key = canonical_name(name)
    for rule in load_data(_TABLE_FILE).get("generic", []):
        if any(_contains(key, canonical_name(m)) for m in rule.get("match", [])):
            return parse_weeks(rule.get("weeks"))
    return None


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------

def match_template_activity(commodity, name, fuzzy=True) -> Optional[TemplateActivity]:
    """Find the template activity of *commodity* that *name* refers to."""
    key = canonical_name(name)
    if not key:
        return None
    activities = template_for(commodity)

    for activity in activities:
        if key in activity.keys:
            return activity

    candidates = sorted(
        ((k, activity) for activity in activities for k in activity.keys),
        key=lambda kv: len(kv[0]), reverse=True)
    for k, activity in candidates:
        if _contains(key, k):
            return activity
    if len(key) >= 4:
        for activity in activities:
            if _contains(canonical_name(activity.name), key):
                return activity

    if fuzzy:
        groups = load_data(_TABLE_FILE).get("fuzzy_groups", {})
        for group, variants in groups.items():
            spellings = [canonical_name(group)] + [canonical_name(v) for v in variants]
            if any(_contains(key, s) for s in spellings):
                match = match_template_activity(commodity, group, fuzzy=False)
                if match is not None:
                    logger.debug("'%s' matched template '%s' via group '%s'",
                                 name, match.name, group)
                    return match
                break
    return None


def pattern_for(commodity, name) -> Optional[tuple]:
    """Template column indices for activity *name*, or None."""
    activity = match_template_activity(commodity, name)
    if activity is not None:
        return activity.weeks
    return generic_pattern(name)


# ---------------------------------------------------------------------------
# Synthesis
# ---------------------------------------------------------------------------

def template_periods(commodity, name, weeks, timeline: Timeline, config=None) -> list:
    """Active periods for *weeks*, clipped to the timeline."""
    config = config or DEFAULTS
    color = activity_colors.template_lookup(commodity, name, config["default_color"])
    confidence = config["confidence_weights"]["pattern_fallback"]
    return [ActivePeriod(i, color, confidence) for i in weeks if 0 <= i < len(timeline)]


def synthesize(commodity, timeline: Timeline, config=None) -> list:
    """The complete default activity list of *commodity* on *timeline*.

    Deterministic: the same inputs always give equal output.
    """
    commodity = _resolve_commodity(commodity)
    activities = []
    for template in template_for(commodity):
        periods = template_periods(commodity, template.name, template.weeks, timeline, config)
        activity = Activity(template.name, None, periods, inferred=True)
        activity.refresh_primary_color(
            activity_colors.template_lookup(commodity, template.name))
        activities.append(activity)
    return activities
