"""
Calendar parse pipeline.

    detect timeline -> classify commodity -> detect activity rows
    -> extract active periods -> synthesize / patch -> ParseResult

Only unreadable input fails (``success=False``); every structural
ambiguity is recovered through the fallback chain.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from typing import Optional

from . import templates
from .activities import detect_activity_rows, extract_activities
from .classifier import classify
from .config import DEFAULTS
from .exceptions import CalendarExtractorError, EmptyGridError
from .grid import Grid, load_grid
from .synthesizer import Calendar, merge_or_replace
from .timeline import detect_timeline

logger = logging.getLogger(__name__)

TITLE_REGEX = re.compile(r'CALENDAR|PRODUCTION|SCHEDULE|SEASON', re.IGNORECASE)
TITLE_SCAN_ROWS = 8


@dataclass
class ParseResult:
    success: bool
    calendar: Optional[Calendar] = None
    title: Optional[str] = None
    error: Optional[str] = None
    metadata: dict = field(default_factory=dict)

    @property
    def summary(self) -> dict:
        return self.calendar.summary() if self.calendar else {}

    def to_dict(self) -> dict:
        if not self.success or self.calendar is None:
            return {"success": False, "error": self.error}
        result = {"success": True, "title": self.title}
        result.update(self.calendar.to_dict())
        result["summary"] = self.summary
        return result


def detect_title(grid: Grid) -> Optional[str]:
    """First long cell text in the top rows that reads like a calendar title."""
    for row in range(min(TITLE_SCAN_ROWS, grid.max_row + 1)):
        for text in grid.row_texts(row):
            if len(text) > 10 and TITLE_REGEX.search(text) and "calendar date" not in text.lower():
                return text
    return None


def _title_rows(grid: Grid, title) -> set:
    if not title:
        return set()
    return {row for row in range(min(TITLE_SCAN_ROWS, grid.max_row + 1))
            if title in grid.row_texts(row)}


def parse_grid(grid: Grid, metadata=None, config=None) -> ParseResult:
    """Parse a decoded sheet into a :class:`ParseResult`."""
    config = config or DEFAULTS
    metadata = dict(metadata or {})
    try:
        if grid is None or grid.is_empty:
            raise EmptyGridError("The sheet is empty: no cells and no bounding range")

        timeline = detect_timeline(grid, config)
        commodity = classify(metadata, grid, metadata.get("filename"), config)

        title = detect_title(grid)
        rows = detect_activity_rows(grid, timeline, config, skip_rows=_title_rows(grid, title))
        extracted = extract_activities(
            grid, rows, timeline, config,
            pattern_lookup=lambda name: templates.pattern_for(commodity, name))

        synthesized = templates.synthesize(commodity, timeline, config)
        calendar = merge_or_replace(extracted, synthesized, timeline, commodity, config)
    except CalendarExtractorError as exc:
        logger.error("Parse failed: %s", exc)
        return ParseResult(success=False, error=str(exc), metadata=metadata)

    if not title:
        filename = metadata.get("filename")
        title = os.path.splitext(os.path.basename(filename))[0] if filename else None

    logger.info("Parsed %s calendar: %d activities over %d weeks%s",
                calendar.commodity, len(calendar.activities), len(timeline),
                " (synthesized)" if calendar.synthesized else "")
    return ParseResult(success=True, calendar=calendar, title=title, metadata=metadata)


def parse_workbook(path: str, metadata=None, config=None) -> ParseResult:
    """Load the first sheet of the workbook at *path* and parse it."""
    metadata = dict(metadata or {})
    metadata.setdefault("filename", os.path.basename(path))
    try:
        grid = load_grid(path)
    except CalendarExtractorError as exc:
        logger.error("Cannot load %s: %s", path, exc)
        return ParseResult(success=False, error=str(exc), metadata=metadata)
    return parse_grid(grid, metadata, config)
