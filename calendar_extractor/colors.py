"""
Colour resolver: turn a cell's fill descriptor into a canonical colour.

Resolution is an ordered chain of strategies, one per encoding
(direct RGB, palette index, theme index).  The first strategy that
yields a colour other than white wins.  White and transparent fills are
"no colour"; black is a real indicator colour in agricultural calendars
(sowing, second fertilizer) and is always kept.
"""

import re
from dataclasses import dataclass
from typing import Optional

from .grid import Cell, ColorSpec

WHITE = "#FFFFFF"
BLACK = "#000000"

# Where a period's colour came from
SOURCE_STYLE = "style"
SOURCE_KEYWORD = "content-keyword"
SOURCE_TEMPLATE = "template-default"

_HEX6 = re.compile(r'^[0-9A-F]{6}$')


@dataclass(frozen=True)
class ResolvedColor:
    hex: str
    source: str = SOURCE_STYLE

    def __str__(self):
        return self.hex


# ---------------------------------------------------------------------------
# Lookup tables
# ---------------------------------------------------------------------------

# Legacy palette.  Indices 64-79 and the tail of the range are mapped to
# the calendar colours seen in practice; most of them are black because
# black fills are the ones most often lost to "automatic" indices.
INDEXED_COLORS = {
    # Standard palette
    0: "#000000", 1: "#FFFFFF", 2: "#FF0000", 3: "#00FF00", 4: "#0000FF",
    5: "#FFFF00", 6: "#FF00FF", 7: "#00FFFF", 8: "#000000", 9: "#FFFFFF",
    10: "#800000", 11: "#008000", 12: "#000080", 13: "#808000", 14: "#800080",
    15: "#008080",
    # Extended palette
    16: "#C0C0C0", 17: "#808080", 18: "#9999FF", 19: "#993366", 20: "#FFFFCC",
    21: "#CCFFFF", 22: "#660066", 23: "#FF8080", 24: "#0066CC", 25: "#CCCCFF",
    26: "#000080", 27: "#FF00FF", 28: "#FFFF00", 29: "#00FFFF", 30: "#800080",
    31: "#800000",
    32: "#008080", 33: "#0000FF", 34: "#00CCFF", 35: "#CCFFFF", 36: "#CCFFCC",
    37: "#FFFF99", 38: "#99CCFF", 39: "#FF99CC", 40: "#CC99FF", 41: "#FFCC99",
    42: "#3366FF", 43: "#33CCCC", 44: "#99CC00", 45: "#FFCC00", 46: "#FF9900",
    47: "#FF6600",
    48: "#666699", 49: "#969696", 50: "#003366", 51: "#339966", 52: "#003300",
    53: "#333300", 54: "#993300", 55: "#993366", 56: "#333399", 57: "#333333",
    58: "#3F3F3F", 59: "#808080", 60: "#FF0000", 61: "#FF6600", 62: "#FFCC00",
    63: "#FFFF00",
    # Calendar colours
    64: "#00B0F0", 65: "#BF9000", 66: "#000000", 67: "#FFFF00", 68: "#FF0000",
    69: "#000000", 70: "#FF0000", 71: "#008000", 72: "#800080", 73: "#000000",
    74: "#00B0F0", 75: "#BF9000", 76: "#000000", 77: "#000000", 78: "#000000",
    79: "#000000",
    80: "#FFFFFF", 81: "#000000", 82: "#FF0000", 83: "#00FF00", 84: "#0000FF",
    85: "#FFFF00", 86: "#FF00FF", 87: "#00FFFF",
}
INDEXED_COLORS.update({i: BLACK for i in range(88, 128)})

THEME_COLORS = {
    0: "#FFFFFF", 1: "#000000", 2: "#E7E6E6", 3: "#44546A", 4: "#5B9BD5",
    5: "#70AD47", 6: "#FFC000", 7: "#F79646", 8: "#C5504B", 9: "#9F4F96",
    10: "#FFFF00", 11: "#FF0000", 12: "#00FF00", 13: "#0000FF", 14: "#800080",
    15: "#FFA500", 16: "#00B0F0", 17: "#BF9000", 18: "#000000", 19: "#00B0F0",
    20: "#BF9000",
}

# Near-duplicate RGB values written for the same intended colour
EQUIVALENT_COLORS = {
    # site selection light blue
    "#00AFF0": "#00B0F0", "#00B1F0": "#00B0F0", "#01B0F0": "#00B0F0",
    # land preparation dark gold
    "#BE9000": "#BF9000", "#C09000": "#BF9000", "#BF8F00": "#BF9000",
    # seed selection dark purple
    "#5705C7": "#5805C7", "#5906C7": "#5805C7", "#5804C7": "#5805C7",
    # nursery light grey
    "#BFBEBF": "#BFBFBF", "#C0C0C0": "#BFBFBF", "#BEBEBE": "#BFBFBF",
    "#C0C0BF": "#BFBFBF", "#BFBFC0": "#BFBFBF",
    # roguing magenta
    "#CC01FF": "#CC00FF", "#CB00FF": "#CC00FF", "#CD00FF": "#CC00FF",
    "#CC00FE": "#CC00FF", "#CB00FE": "#CC00FF",
    # post harvest brownish purple
    "#993265": "#993366", "#993467": "#993366", "#983366": "#993366",
    "#993365": "#993366", "#943366": "#993366",
}


# ---------------------------------------------------------------------------
# Normalisation
# ---------------------------------------------------------------------------

def normalize_hex(value) -> Optional[str]:
    """Return ``#RRGGBB`` for an RGB or aRGB string, or None.

    An 8-digit value is treated as alpha-prefixed and the first two
    digits are dropped.
    """
    if not isinstance(value, str):
        return None
    text = value.strip().lstrip("#").upper()
    if len(text) == 8:
        text = text[2:]
    if not _HEX6.match(text):
        return None
    return f"#{text}"


def canonical_hex(value) -> Optional[str]:
    """Normalise *value* and fold known encoding drift onto one colour."""
    hex_value = normalize_hex(value)
    if hex_value is None:
        return None
    return EQUIVALENT_COLORS.get(hex_value, hex_value)


def is_no_color(hex_value) -> bool:
    """White and transparent never count as an indicator colour."""
    if hex_value is None:
        return True
    text = str(hex_value).strip().upper()
    return text in ("", WHITE, "TRANSPARENT")


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

def _from_direct(spec: ColorSpec) -> Optional[str]:
    if spec.kind != "direct" or not spec.rgb:
        return None
    if spec.rgb.strip().lower() == "transparent":
        return None
    return canonical_hex(spec.rgb)


def _from_indexed(spec: ColorSpec) -> Optional[str]:
    if spec.kind != "indexed" or spec.index is None:
        return None
    return INDEXED_COLORS.get(spec.index)


def _from_theme(spec: ColorSpec) -> Optional[str]:
    if spec.kind != "theme" or spec.index is None:
        return None
    return THEME_COLORS.get(spec.index)


# Tried in order; each returns None when the encoding does not apply
RESOLVER_STRATEGIES = (
    ("direct", _from_direct),
    ("indexed", _from_indexed),
    ("theme", _from_theme),
)


def raw_hex(spec: Optional[ColorSpec]) -> Optional[str]:
    """First value any strategy yields for *spec*, white included."""
    if spec is None or spec.is_none:
        return None
    for _name, strategy in RESOLVER_STRATEGIES:
        hex_value = strategy(spec)
        if hex_value is not None:
            return hex_value
    return None


def resolve_spec(spec: Optional[ColorSpec]) -> Optional[ResolvedColor]:
    """Resolve a colour descriptor, or None for no colour / white."""
    if spec is None or spec.is_none:
        return None
    for _name, strategy in RESOLVER_STRATEGIES:
        hex_value = strategy(spec)
        if hex_value is not None and not is_no_color(hex_value):
            return ResolvedColor(EQUIVALENT_COLORS.get(hex_value, hex_value), SOURCE_STYLE)
    return None


def resolve(cell: Optional[Cell]) -> Optional[ResolvedColor]:
    """Resolve the background colour of *cell*.

    Pure: the same cell always resolves to the same colour.
    """
    if cell is None or cell.style is None:
        return None
    return resolve_spec(cell.style.fill)
