"""
Agricultural-type classifier.

Decides which commodity a calendar describes.  First success wins:
declared metadata, the filename, keyword scoring of the sheet's top
rows, then the default commodity.  Always returns a supported name.
"""

import functools
import logging
import os
import re

from .config import DEFAULTS, load_data
from .grid import Grid

logger = logging.getLogger(__name__)

_TABLE_FILE = "commodities.yaml"

SEASONAL = "seasonal"
CYCLE = "cycle"

# Metadata keys that may carry the declared commodity
METADATA_KEYS = ("commodity", "crop")


def commodity_table() -> list:
    return load_data(_TABLE_FILE)


def supported_commodities() -> list[str]:
    return [entry["name"] for entry in commodity_table()]


def calendar_type_for(commodity) -> str:
    """``"cycle"`` for livestock production cycles, else ``"seasonal"``."""
    for entry in commodity_table():
        if entry["name"] == commodity:
            return entry.get("calendar_type", SEASONAL)
    return SEASONAL


def normalize_commodity(name):
    """Map a name or alias to a supported commodity, or None."""
    text = " ".join(str(name or "").lower().replace("_", " ").split())
    if not text:
        return None
    for entry in commodity_table():
        if text == entry["name"] or text in entry.get("aliases", []):
            return entry["name"]
    return None


# ---------------------------------------------------------------------------
# Classification steps
# ---------------------------------------------------------------------------

def from_metadata(metadata):
    if not metadata:
        return None
    for key in METADATA_KEYS:
        commodity = normalize_commodity(metadata.get(key))
        if commodity:
            return commodity
    return None


@functools.lru_cache(maxsize=None)
def _filename_keys() -> tuple:
    """Every (name or alias, commodity) pair, longest key first."""
    pairs = []
    for entry in commodity_table():
        for key in [entry["name"]] + list(entry.get("aliases", [])):
            pairs.append((str(key).lower(), entry["name"]))
    return tuple(sorted(pairs, key=lambda kv: len(kv[0]), reverse=True))


def from_filename(filename):
    if not filename:
        return None
    base = os.path.basename(str(filename)).lower()
    base = " ".join(re.sub(r"[_\-.]+", " ", base).split())
    for key, commodity in _filename_keys():
        if key in base:
            return commodity
    return None


def sheet_text(grid: Grid, rows: int = 15) -> str:
    """Lower-cased text of the first *rows* rows, one space between cells."""
    parts = []
    for row in range(min(rows, grid.max_row + 1)):
        parts.extend(t for t in grid.row_texts(row) if t)
    return " ".join(" ".join(parts).lower().split())


def content_scores(text: str) -> dict:
    """Keyword occurrence count per commodity, in table order."""
    scores = {}
    for entry in commodity_table():
        score = 0
        for keyword in entry.get("keywords", []):
            score += len(re.findall(re.escape(keyword.lower()), text))
        scores[entry["name"]] = score
    return scores


def from_content(grid: Grid, rows: int = 15):
    if grid is None or grid.is_empty:
        return None
    scores = content_scores(sheet_text(grid, rows))
    best = None
    for name, score in scores.items():
        # Strictly greater: ties stay with the first declared commodity
        if score > 0 and (best is None or score > scores[best]):
            best = name
    if best:
        logger.debug("Content scores: %s", scores)
    return best


def classify(metadata=None, grid: Grid = None, filename=None, config=None) -> str:
    """Return the commodity of a calendar; never None."""
    config = config or DEFAULTS
    filename = filename or (metadata or {}).get("filename")

    commodity = from_metadata(metadata)
    if commodity:
        logger.info("Commodity '%s' from metadata", commodity)
        return commodity

    commodity = from_filename(filename)
    if commodity:
        logger.info("Commodity '%s' from filename '%s'", commodity, filename)
        return commodity

    commodity = from_content(grid, config["classifier_scan_rows"])
    if commodity:
        logger.info("Commodity '%s' from sheet content", commodity)
        return commodity

    default = normalize_commodity(config["default_commodity"]) or supported_commodities()[0]
    logger.info("Commodity not determined, defaulting to '%s'", default)
    return default
