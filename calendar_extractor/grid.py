"""
Grid model: the decoded first sheet of a calendar workbook.

A :class:`Grid` is a sparse, read-only mapping of ``(row, col)`` to
:class:`Cell`, 0-based, plus a declared bounding range.  Cell styles are
reduced to the handful of properties the engine looks at; the background
colour is kept as a :class:`ColorSpec` tagged union so the colour
resolver never has to probe shape-varying style objects.

Workbooks are converted with openpyxl (``grid_from_worksheet`` /
``load_grid``); callers that decode spreadsheets some other way can build
a grid directly with :meth:`Grid.from_rows`.
"""

import re
import zipfile
from dataclasses import dataclass, field
from typing import Any, Optional

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from .exceptions import EmptyGridError, WorkbookReadError

# RGB / aRGB hex strings as stored by openpyxl
_HEX_REGEX = re.compile(r'^#?(?:[0-9A-Fa-f]{6}|[0-9A-Fa-f]{8})$')

# Cell values that carry no information
TRIVIAL_VALUES = ("", "0", "false", "null")

# Font colours that are just the default text colour
_PLAIN_FONT_RGB = {"FF000000", "00000000", "000000"}


# ---------------------------------------------------------------------------
# Colour descriptor
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ColorSpec:
    """How a cell's colour is encoded.

    ``kind`` is one of ``"direct"`` (``rgb`` holds an RGB/aRGB string),
    ``"indexed"`` (``index`` into the legacy palette), ``"theme"``
    (``index`` into the theme colours, with ``tint``) or ``"none"``.
    """
    kind: str = "none"
    rgb: Optional[str] = None
    index: Optional[int] = None
    tint: float = 0.0

    @classmethod
    def direct(cls, rgb: str) -> "ColorSpec":
        return cls(kind="direct", rgb=rgb)

    @classmethod
    def indexed(cls, index: int) -> "ColorSpec":
        return cls(kind="indexed", index=int(index))

    @classmethod
    def theme(cls, index: int, tint: float = 0.0) -> "ColorSpec":
        return cls(kind="theme", index=int(index), tint=float(tint or 0.0))

    @classmethod
    def none(cls) -> "ColorSpec":
        return cls()

    @property
    def is_none(self) -> bool:
        return self.kind == "none"


@dataclass(frozen=True)
class CellStyle:
    """The style properties that matter for activity detection."""
    fill: ColorSpec = field(default_factory=ColorSpec.none)
    pattern: Optional[str] = None
    bold: bool = False
    font_color: ColorSpec = field(default_factory=ColorSpec.none)
    has_border: bool = False
    has_content: bool = False

    @property
    def filled(self) -> bool:
        """True for any pattern fill other than ``none``."""
        return self.pattern not in (None, "", "none")

    @property
    def emphasised(self) -> bool:
        return self.bold or not self.font_color.is_none


@dataclass(frozen=True)
class Cell:
    row: int
    col: int
    value: Any = None
    style: Optional[CellStyle] = None

    @property
    def text(self) -> str:
        if self.value is None:
            return ""
        return str(self.value).strip()


def is_meaningful(value) -> bool:
    """False for None and for values such as "", "0", "false", "null"."""
    if value is None:
        return False
    return str(value).strip().lower() not in TRIVIAL_VALUES


# ---------------------------------------------------------------------------
# Grid
# ---------------------------------------------------------------------------

class Grid:
    """Sparse 2-D collection of cells with a declared bounding range."""

    def __init__(self, cells: dict, bounds: Optional[tuple] = None,
                 name: str | None = None):
        self._cells = dict(cells)
        self.name = name
        if bounds is None and self._cells:
            rows = [r for r, _ in self._cells]
            cols = [c for _, c in self._cells]
            bounds = (min(rows), min(cols), max(rows), max(cols))
        # (min_row, min_col, max_row, max_col), or None for an empty sheet
        self.bounds = bounds

    @classmethod
    def from_rows(cls, rows: list, styles: dict | None = None,
                  name: str | None = None) -> "Grid":
        """Build a grid from row lists and an optional ``{(r, c): CellStyle}`` map.

        Blank strings and ``None`` values without a style are not stored.
        """
        styles = styles or {}
        cells = {}
        for r, row in enumerate(rows):
            for c, value in enumerate(row or []):
                style = styles.get((r, c))
                if (value is None or value == "") and style is None:
                    continue
                cells[(r, c)] = Cell(r, c, value, style)
        for (r, c), style in styles.items():
            if (r, c) not in cells:
                cells[(r, c)] = Cell(r, c, None, style)
        return cls(cells, name=name)

    @property
    def is_empty(self) -> bool:
        return self.bounds is None

    @property
    def max_row(self) -> int:
        return self.bounds[2] if self.bounds else -1

    @property
    def max_col(self) -> int:
        return self.bounds[3] if self.bounds else -1

    def cell(self, row: int, col: int) -> Optional[Cell]:
        return self._cells.get((row, col))

    def value(self, row: int, col: int) -> Any:
        c = self._cells.get((row, col))
        return c.value if c is not None else None

    def text(self, row: int, col: int) -> str:
        c = self._cells.get((row, col))
        return c.text if c is not None else ""

    def row_texts(self, row: int) -> list[str]:
        """Stripped text of every column in *row* (``""`` for missing cells)."""
        return [self.text(row, c) for c in range(self.max_col + 1)]

    def iter_cells(self):
        for key in sorted(self._cells):
            yield self._cells[key]

    def __len__(self):
        return len(self._cells)

    def __repr__(self):
        return f"Grid(name={self.name!r}, cells={len(self._cells)}, bounds={self.bounds})"


# ---------------------------------------------------------------------------
# openpyxl adapter
# ---------------------------------------------------------------------------

def _color_spec(color, skip_default=False) -> ColorSpec:
    """Map an openpyxl ``Color`` to a :class:`ColorSpec`."""
    if color is None:
        return ColorSpec.none()
    ctype = getattr(color, "type", None)
    if ctype == "rgb":
        rgb = color.rgb
        if not isinstance(rgb, str) or not _HEX_REGEX.match(rgb):
            return ColorSpec.none()
        if skip_default and rgb == "00000000":
            return ColorSpec.none()
        return ColorSpec.direct(rgb)
    if ctype == "indexed" and color.indexed is not None:
        return ColorSpec.indexed(color.indexed)
    if ctype == "theme" and color.theme is not None:
        return ColorSpec.theme(color.theme, color.tint)
    return ColorSpec.none()


def _fill_spec(fill) -> tuple[ColorSpec, Optional[str]]:
    """Return (colour, pattern type) for an openpyxl fill."""
    pattern = getattr(fill, "fill_type", None)
    if pattern in (None, "none"):
        return ColorSpec.none(), None
    # For pattern fills the visible colour is the foreground; openpyxl
    # writes a 6-digit black as '00000000', so it is kept here.
    spec = _color_spec(fill.fgColor)
    if spec.is_none:
        spec = _color_spec(fill.bgColor, skip_default=True)
    return spec, pattern


def _font_spec(font) -> tuple[bool, ColorSpec]:
    if font is None:
        return False, ColorSpec.none()
    bold = bool(font.bold)
    color = font.color
    if color is None or getattr(color, "type", None) != "rgb":
        # Theme-1 / automatic is the default text colour
        return bold, ColorSpec.none()
    if color.rgb in _PLAIN_FONT_RGB:
        return bold, ColorSpec.none()
    return bold, _color_spec(color)


def _has_border(border) -> bool:
    if border is None:
        return False
    for side in (border.left, border.right, border.top, border.bottom):
        if side is not None and side.style:
            return True
    return False


def _cell_style(cell) -> Optional[CellStyle]:
    if not cell.has_style:
        return None
    fill, pattern = _fill_spec(cell.fill)
    bold, font_color = _font_spec(cell.font)
    return CellStyle(
        fill=fill,
        pattern=pattern,
        bold=bold,
        font_color=font_color,
        has_border=_has_border(cell.border),
        has_content=is_meaningful(cell.value),
    )


def grid_from_worksheet(ws) -> Grid:
    """Convert an openpyxl worksheet into a 0-based :class:`Grid`."""
    cells = {}
    for row in ws.iter_rows():
        for cell in row:
            style = _cell_style(cell)
            if cell.value is None and style is None:
                continue
            r, c = cell.row - 1, cell.column - 1
            cells[(r, c)] = Cell(r, c, cell.value, style)

    bounds = None
    if cells:
        # Declared range as reported by the sheet dimensions
        bounds = (
            (ws.min_row or 1) - 1,
            (ws.min_column or 1) - 1,
            (ws.max_row or 1) - 1,
            (ws.max_column or 1) - 1,
        )
    return Grid(cells, bounds=bounds, name=ws.title)


def load_grid(path: str) -> Grid:
    """Open *path* and return its first sheet as a :class:`Grid`.

    Raises:
        WorkbookReadError: the file is missing, corrupt, or not a workbook.
        EmptyGridError: the workbook has no worksheet.
    """
    try:
        wb = load_workbook(path, data_only=True)
    except (OSError, InvalidFileException, zipfile.BadZipFile, KeyError, ValueError) as exc:
        raise WorkbookReadError(f"Cannot read workbook '{path}': {exc}") from exc

    try:
        if not wb.sheetnames:
            raise EmptyGridError(f"Workbook '{path}' contains no sheets")
        return grid_from_worksheet(wb[wb.sheetnames[0]])
    finally:
        wb.close()
