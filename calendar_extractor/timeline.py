"""
Timeline detector.

Finds the month / week / date-range header rows of a calendar sheet and
maps each week column to a :class:`TimelineColumn`.  When no usable
header is found, or the detected structure is implausible, the standard
9-month, 37-week skeleton is used instead, anchored at the column where
the timeline starts in the sheet.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Optional

from .config import DEFAULTS
from .grid import Grid

logger = logging.getLogger(__name__)

MONTH_REGEX = re.compile(
    r"^(JAN(UARY)?|FEB(RUARY)?|MAR(CH)?|APR(IL)?|MAY|JUNE?|JULY?|AUG(UST)?"
    r"|SEPT?(EMBER)?|OCT(OBER)?|NOV(EMBER)?|DEC(EMBER)?)\.?$")
WEEK_REGEX = re.compile(r'^(?:WK|W|WEEK)\s*\.?\s*(\d+)$', re.IGNORECASE)
DATE_RANGE_REGEX = re.compile(r'^\d{1,2}\s*[-/]\s*\d{1,2}$')

# First-column labels of the header row
HEADER_LABELS = ("stage", "s/n", "activity")

# Standard layout: (month, weeks)
SYNTHETIC_MONTHS = (
    ("JAN", 5), ("FEB", 4), ("MAR", 4), ("APR", 4), ("MAY", 4),
    ("JUN", 4), ("JUL", 4), ("AUG", 4), ("SEPT", 4),
)

SYNTHETIC_DATE_RANGES = (
    '29-4', '5-11', '12-18', '19-25', '26-1',
    '2-8', '9-15', '16-22', '23-1',
    '2-8', '9-15', '16-22', '23-29',
    '30-5', '6-12', '13-19', '20-26',
    '27-3', '4-10', '11-17', '18-24',
    '25-1', '2-8', '9-15', '16-22',
    '23-29', '30-5', '6-12', '13-19',
    '20-26', '27-2', '3-9', '10-16',
    '17-23', '24-30', '1-7', '8-13',
)


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TimelineColumn:
    index: int
    week_label: str
    month_label: str
    date_range: Optional[str] = None
    grid_col: Optional[int] = None

    def to_dict(self):
        return {
            "index": self.index,
            "weekLabel": self.week_label,
            "monthLabel": self.month_label,
            "dateRange": self.date_range,
        }


@dataclass(frozen=True)
class Month:
    name: str
    start_index: int
    end_index: int

    @property
    def span(self) -> int:
        return self.end_index - self.start_index + 1

    def to_dict(self):
        return {"name": self.name, "startIndex": self.start_index, "endIndex": self.end_index}


@dataclass
class Timeline:
    """Ordered week columns grouped into months.

    ``header_end_row`` is the last grid row belonging to the header
    (-1 when no header was found); activity rows start below it.
    """
    columns: list = field(default_factory=list)
    months: list = field(default_factory=list)
    synthesized: bool = False
    header_end_row: int = -1
    start_col: int = 2

    @property
    def weeks(self) -> list[str]:
        return [c.week_label for c in self.columns]

    def __len__(self):
        return len(self.columns)

    def column_for_grid_col(self, grid_col) -> Optional[TimelineColumn]:
        for column in self.columns:
            if column.grid_col == grid_col:
                return column
        return None

    def to_dict(self):
        return {
            "columns": [c.to_dict() for c in self.columns],
            "months": [m.to_dict() for m in self.months],
        }


# ---------------------------------------------------------------------------
# Token helpers
# ---------------------------------------------------------------------------

def month_token(text) -> Optional[str]:
    """Upper-cased month label if *text* is a month name, else None."""
    label = str(text or "").strip().upper()
    if label and MONTH_REGEX.match(label):
        return label
    return None


def week_number(text) -> Optional[int]:
    match = WEEK_REGEX.match(str(text or "").strip())
    return int(match.group(1)) if match else None


def is_date_range(text) -> bool:
    return bool(DATE_RANGE_REGEX.match(str(text or "").strip()))


def _count(texts, predicate) -> int:
    return sum(1 for t in texts if t and predicate(t))


def looks_like_header(texts, config=None) -> bool:
    """True when a row reads as the timeline header row."""
    config = config or DEFAULTS
    months = _count(texts, month_token)
    weeks = _count(texts, lambda t: week_number(t) is not None)
    first = texts[0].lower() if texts else ""
    labelled = any(label in first for label in HEADER_LABELS)
    month_hit = months >= config["month_tokens_required"]
    week_hit = weeks >= config["week_tokens_required"]
    return (month_hit or week_hit) and (labelled or month_hit)


def timeline_start_column(texts, default=2) -> int:
    """First column after the label column holding a month or week token."""
    for col, text in enumerate(texts):
        if col == 0 or not text:
            continue
        if month_token(text) or week_number(text) is not None:
            return col
    return default


# ---------------------------------------------------------------------------
# Synthetic skeleton
# ---------------------------------------------------------------------------

def synthetic_timeline(start_col: int = 2, header_end_row: int = -1) -> Timeline:
    """The standard 37-week, 9-month layout, week *i* at grid column ``start_col + i``."""
    columns = []
    months = []
    index = 0
    for name, weeks in SYNTHETIC_MONTHS:
        months.append(Month(name, index, index + weeks - 1))
        for _ in range(weeks):
            columns.append(TimelineColumn(
                index=index,
                week_label=f"WK{index + 1}",
                month_label=name,
                date_range=SYNTHETIC_DATE_RANGES[index],
                grid_col=start_col + index,
            ))
            index += 1
    return Timeline(columns, months, synthesized=True,
                    header_end_row=header_end_row, start_col=start_col)


# ---------------------------------------------------------------------------
# Detection
# ---------------------------------------------------------------------------

def _find_date_row(grid: Grid, week_row: int) -> Optional[int]:
    for row in range(week_row + 1, min(week_row + 4, grid.max_row + 1)):
        texts = grid.row_texts(row)
        if _count(texts, is_date_range) >= 3:
            return row
        if any("calendar date" in t.lower() for t in texts if t):
            return row
    return None


def _build_columns(grid: Grid, month_row: int, week_row: int, date_row):
    """Pair each week cell with the month whose header column precedes it."""
    month_cells = [(c, month_token(t)) for c, t in enumerate(grid.row_texts(month_row))
                   if c > 0 and month_token(t)]
    columns = []
    months = []
    for col, text in enumerate(grid.row_texts(week_row)):
        if col == 0 or week_number(text) is None:
            continue
        preceding = [name for c, name in month_cells if c <= col]
        if preceding:
            month_name = preceding[-1]
        elif month_cells:
            month_name = month_cells[0][1]
        else:
            return [], []
        index = len(columns)
        date_range = grid.text(date_row, col) if date_row is not None else ""
        columns.append(TimelineColumn(
            index=index,
            week_label=text.upper().replace(" ", ""),
            month_label=month_name,
            date_range=date_range or None,
            grid_col=col,
        ))
        if months and months[-1].name == month_name:
            months[-1] = Month(month_name, months[-1].start_index, index)
        else:
            months.append(Month(month_name, index, index))

    # A month header with no week under it leaves an empty month
    distinct_headers = []
    for _c, name in month_cells:
        if not distinct_headers or distinct_headers[-1] != name:
            distinct_headers.append(name)
    if len(distinct_headers) != len(months):
        logger.debug("Month headers %s do not all cover a week", distinct_headers)
        return columns, []
    return columns, months


def _valid(columns, months, config) -> bool:
    if len(columns) < config["min_timeline_columns"] or not months:
        return False
    if sum(m.span for m in months) != len(columns):
        return False
    return all(m.span >= 1 for m in months)


def detect_timeline(grid: Grid, config=None) -> Timeline:
    """Detect the timeline of *grid*, falling back to the synthetic skeleton."""
    config = config or DEFAULTS
    default_start = config["default_timeline_start_column"]
    if grid.is_empty:
        return synthetic_timeline(default_start)

    header_row = None
    last_row = min(config["header_scan_rows"], grid.max_row + 1)
    for row in range(last_row):
        if looks_like_header(grid.row_texts(row), config):
            header_row = row
            break

    if header_row is None:
        logger.info("No timeline header found, using the standard 37-week timeline")
        return synthetic_timeline(default_start)

    header_texts = grid.row_texts(header_row)
    start_col = timeline_start_column(header_texts, default_start)
    header_end = header_row

    month_row = header_row if _count(header_texts, month_token) >= config["month_tokens_required"] else None
    week_row = None
    first_week_scan = header_row + 1 if month_row is not None else header_row
    for row in range(first_week_scan, min(header_row + 4, grid.max_row + 1)):
        texts = grid.row_texts(row)
        if _count(texts, lambda t: week_number(t) is not None) >= config["week_row_tokens_required"]:
            week_row = row
            break
    # Short week rows still belong to the header
    for row in range(header_row + 1, min(header_row + 4, grid.max_row + 1)):
        texts = grid.row_texts(row)
        if any(week_number(t) is not None or is_date_range(t) for t in texts[1:] if t):
            header_end = max(header_end, row)

    if month_row is None or week_row is None:
        logger.info("Incomplete timeline header at row %d, using the standard timeline", header_row)
        return synthetic_timeline(start_col, header_end)

    date_row = _find_date_row(grid, week_row)
    header_end = max(header_end, week_row, date_row if date_row is not None else -1)
    columns, months = _build_columns(grid, month_row, week_row, date_row)
    if not _valid(columns, months, config):
        logger.info("Detected timeline has %d columns in %d months; using the standard timeline",
                    len(columns), len(months))
        return synthetic_timeline(start_col, header_end)

    logger.info("Timeline detected: %d weeks in %d months", len(columns), len(months))
    return Timeline(columns, months, synthesized=False,
                    header_end_row=header_end, start_col=columns[0].grid_col)
