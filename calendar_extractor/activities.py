"""
Activity row detection and active-period extraction.

Rows below the timeline header whose label column holds a stage name are
activities.  Each (activity, timeline column) cell gets an activation
confidence from weighted signals; any positive score marks the column as
an active period of that activity.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Optional

from . import activity_colors
from .colors import SOURCE_STYLE, ResolvedColor, is_no_color, raw_hex, resolve
from .config import DEFAULTS
from .grid import Cell, Grid, is_meaningful
from .timeline import Timeline

logger = logging.getLogger(__name__)

# Header and aggregate rows never hold an activity
STOP_TOKENS = ("calendar date", "stage of activity", "week", "month", "activity", "s/n")
END_REGEX = re.compile(r'\b(total|summary)\b', re.IGNORECASE)
NUMERIC_REGEX = re.compile(r'^[\d\s.,)(-]+$')


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ActivityRow:
    row_index: int
    label: str


@dataclass(frozen=True)
class ActivePeriod:
    column_index: int
    color: ResolvedColor
    confidence: int = 0
    value: object = None

    def to_dict(self):
        return {
            "columnIndex": self.column_index,
            "color": self.color.hex,
            "colorSource": self.color.source,
            "confidence": self.confidence,
        }


@dataclass
class Activity:
    """A named stage and the timeline columns in which it is active.

    ``inferred`` marks activities (or periods) that came from a timing
    template rather than from the sheet.
    """
    name: str
    row_index: Optional[int] = None
    active_periods: list = field(default_factory=list)
    primary_color: Optional[ResolvedColor] = None
    inferred: bool = False

    @property
    def column_indices(self) -> list[int]:
        return [p.column_index for p in self.active_periods]

    def add_period(self, period: ActivePeriod):
        """Insert *period* keeping column order; a column appears once."""
        if period.column_index in self.column_indices:
            return
        self.active_periods.append(period)
        self.active_periods.sort(key=lambda p: p.column_index)

    def refresh_primary_color(self, default: Optional[ResolvedColor] = None):
        """First style-coloured period, else first period, else *default*."""
        styled = [p.color for p in self.active_periods if p.color.source == SOURCE_STYLE]
        if styled:
            self.primary_color = styled[0]
        elif self.active_periods:
            self.primary_color = self.active_periods[0].color
        elif default is not None:
            self.primary_color = default
        return self.primary_color

    def to_dict(self):
        return {
            "name": self.name,
            "rowIndex": self.row_index,
            "color": self.primary_color.hex if self.primary_color else None,
            "inferred": self.inferred,
            "activePeriods": [p.to_dict() for p in self.active_periods],
        }


# ---------------------------------------------------------------------------
# Row detection
# ---------------------------------------------------------------------------

def row_label(grid: Grid, row: int, label_end_col: int) -> str:
    """Text of the first non-numeric cell left of the timeline."""
    for col in range(max(label_end_col, 1)):
        text = grid.text(row, col)
        if text and not NUMERIC_REGEX.match(text):
            return " ".join(text.split())
    return ""


def is_noise_label(label: str) -> bool:
    lower = label.lower()
    if len(label) < 3 or NUMERIC_REGEX.match(label):
        return True
    return any(token in lower for token in STOP_TOKENS)


def detect_activity_rows(grid: Grid, timeline: Timeline, config=None,
                         skip_rows=()) -> list[ActivityRow]:
    """Scan below the timeline header for activity rows.

    Stops at a "total" / "summary" row or after ``activity_scan_rows``
    consecutive rows without an activity.
    """
    config = config or DEFAULTS
    window = config["activity_scan_rows"]
    rows = []
    misses = 0
    for row in range(timeline.header_end_row + 1, grid.max_row + 1):
        if misses >= window:
            logger.debug("No activity in %d rows, stopping at row %d", window, row)
            break
        if row in skip_rows:
            misses += 1
            continue
        label = row_label(grid, row, timeline.start_col)
        if label and END_REGEX.search(label):
            logger.debug("Row %d '%s' ends the activity list", row, label)
            break
        if not label or is_noise_label(label):
            misses += 1
            continue
        rows.append(ActivityRow(row, label))
        misses = 0
    logger.info("Found %d activity rows", len(rows))
    return rows


# ---------------------------------------------------------------------------
# Activation
# ---------------------------------------------------------------------------

def content_weight(value, weights) -> int:
    """Weight of a cell's content: full for words, minimal for markers."""
    if not is_meaningful(value):
        return 0
    text = str(value).strip()
    if len(text) > 1 and any(ch.isalpha() for ch in text):
        return weights["content"]
    return weights["minimal_content"]


def activation_confidence(cell: Optional[Cell], weights, pattern_hit=False):
    """Return ``(confidence, resolved colour or None)`` for one cell."""
    score = 0
    color = None
    if cell is not None:
        color = resolve(cell)
        if color is not None:
            score += weights["color"]
        style = cell.style
        if style is not None:
            if style.filled:
                hex_value = raw_hex(style.fill)
                if hex_value is None or not is_no_color(hex_value):
                    score += weights["filled"]
            if style.has_content:
                score += weights["content_flag"]
            if style.emphasised:
                score += weights["font"]
            if style.has_border:
                score += weights["border"]
        score += content_weight(cell.value, weights)
    if pattern_hit:
        score += weights["pattern_fallback"]
    return score, color


def grid_has_color(grid: Grid) -> bool:
    return any(resolve(cell) is not None for cell in grid.iter_cells())


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------

def extract_activities(grid: Grid, rows: list, timeline: Timeline, config=None,
                       pattern_lookup: Optional[Callable] = None,
                       fallback_mode: Optional[bool] = None) -> list[Activity]:
    """Build an :class:`Activity` per row with its active periods.

    ``pattern_lookup(name)`` returns the template column indices for an
    activity name (or None); it drives the pattern-fallback signal, which
    only applies in global fallback mode (no coloured cell in the grid)
    and only to rows no other signal activated.
    """
    config = config or DEFAULTS
    weights = config["confidence_weights"]
    if fallback_mode is None:
        fallback_mode = not grid_has_color(grid)
    if fallback_mode:
        logger.info("No coloured cells in the sheet, pattern fallback enabled")

    activities = []
    for activity_row in rows:
        activity = Activity(activity_row.label, activity_row.row_index)
        for column in timeline.columns:
            cell = grid.cell(activity_row.row_index, column.grid_col)
            score, color = activation_confidence(cell, weights)
            if score <= 0:
                continue
            if color is None:
                text = cell.text if cell is not None else None
                color = activity_colors.lookup(activity.name, config["default_color"], text)
            activity.add_period(ActivePeriod(
                column.index, color, score, cell.value if cell is not None else None))

        if fallback_mode and not activity.active_periods and pattern_lookup is not None:
            pattern = set(pattern_lookup(activity.name) or ())
            for column in timeline.columns:
                if column.index not in pattern:
                    continue
                score, _color = activation_confidence(None, weights, pattern_hit=True)
                if score > 0:
                    color = activity_colors.lookup(activity.name, config["default_color"])
                    activity.add_period(ActivePeriod(column.index, color, score))
            if activity.active_periods:
                logger.debug("'%s' activated from its timing pattern", activity.name)

        activity.refresh_primary_color()
        logger.debug("Activity '%s' (row %d): %d periods", activity.name,
                     activity_row.row_index, len(activity.active_periods))
        activities.append(activity)
    return activities
