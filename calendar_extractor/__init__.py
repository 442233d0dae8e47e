"""Agricultural Calendar Extractor.

Reads a human-authored calendar workbook (production stages laid out
across a weekly timeline, each stage marked by cell colour or text) and
returns a normalised calendar:

  * **Timeline** – week columns grouped into months, detected from the
    header rows or, failing that, the standard 37-week layout.
  * **Activities** – the stage rows, each with the timeline columns in
    which it is active and the colour it is drawn with.
  * **Commodity** – the crop or livestock cycle, used to pick default
    timings when the sheet is incomplete.

:func:`parse_workbook` works from an ``.xlsx`` path; :func:`parse_grid`
from an already decoded :class:`Grid`.
"""

from .engine import ParseResult, parse_grid, parse_workbook
from .exceptions import CalendarExtractorError, EmptyGridError, WorkbookReadError
from .grid import Grid, load_grid

__all__ = [
    "parse_workbook",
    "parse_grid",
    "ParseResult",
    "Grid",
    "load_grid",
    "CalendarExtractorError",
    "EmptyGridError",
    "WorkbookReadError",
]
