class CalendarExtractorError(Exception):
    """Base exception for the calendar_extractor package."""


class WorkbookReadError(CalendarExtractorError):
    """The workbook bytes could not be decoded."""


class EmptyGridError(CalendarExtractorError):
    """The workbook has no sheet or the sheet has no bounding range."""
