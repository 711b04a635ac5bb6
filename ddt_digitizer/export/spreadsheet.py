"""Thin worksheet access layer over openpyxl.

The template writer and the fidelity checks only need cell reads and
writes plus the structural properties of a sheet (merged ranges, column
widths, row heights). Keeping them behind ``SheetAccess`` means the rest
of the code never touches openpyxl objects directly.
"""

from copy import copy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from openpyxl import load_workbook
from openpyxl.cell.cell import MergedCell
from openpyxl.utils import column_index_from_string, get_column_letter
from openpyxl.workbook.workbook import Workbook
from openpyxl.worksheet.worksheet import Worksheet


class TemplateWriteError(RuntimeError):
    """Raised when the template cannot be patched as requested."""


def column_index(column: str | int) -> int:
    """Accept ``"G"`` or ``7`` and return the 1-based column index."""
    if isinstance(column, int):
        return column
    return column_index_from_string(column.upper())


@dataclass(frozen=True)
class SheetStructure:
    """Structural snapshot of a worksheet.

    ``cells`` maps coordinates to ``(value, font, fill, border,
    alignment, number_format)`` for every stored cell.
    """

    title: str
    merges: frozenset[str]
    column_widths: dict[str, tuple[Any, ...]]
    row_heights: dict[int, tuple[Any, ...]]
    cells: dict[str, tuple[Any, ...]] = field(default_factory=dict)

    def layout_equals(self, other: "SheetStructure") -> bool:
        """Compare merges, widths and heights, ignoring cell contents."""
        return (
            self.merges == other.merges
            and self.column_widths == other.column_widths
            and self.row_heights == other.row_heights
        )


class SheetAccess:
    """Cell and layout access for one worksheet of an open workbook."""

    def __init__(self, worksheet: Worksheet) -> None:
        self.worksheet = worksheet

    @classmethod
    def from_workbook(cls, workbook: Workbook, sheet_name: str | None = None) -> "SheetAccess":
        """Select ``sheet_name``, or the first worksheet when ``None``.

        Raises:
            KeyError: If the named sheet does not exist.
        """
        if sheet_name is None:
            return cls(workbook.worksheets[0])
        if sheet_name not in workbook.sheetnames:
            raise KeyError(f"Sheet '{sheet_name}' not found in template")
        return cls(workbook[sheet_name])

    def get_cell(self, row: int, column: str | int) -> Any:
        return self.worksheet.cell(row=row, column=column_index(column)).value

    def set_cell(self, row: int, column: str | int, value: Any) -> None:
        """Assign a value, keeping whatever style the cell already has.

        Raises:
            TemplateWriteError: If the cell is covered by a merged range
                without being its top-left anchor.
        """
        cell = self.worksheet.cell(row=row, column=column_index(column))
        if isinstance(cell, MergedCell):
            raise TemplateWriteError(
                f"Cell {get_column_letter(column_index(column))}{row} is inside a "
                "merged range and cannot hold a value"
            )
        cell.value = value

    def merges(self) -> frozenset[str]:
        return frozenset(str(r) for r in self.worksheet.merged_cells.ranges)

    def column_widths(self) -> dict[str, tuple[Any, ...]]:
        return {
            key: (dim.min, dim.max, dim.width, dim.hidden)
            for key, dim in self.worksheet.column_dimensions.items()
        }

    def row_heights(self) -> dict[int, tuple[Any, ...]]:
        return {
            idx: (dim.ht, dim.hidden) for idx, dim in self.worksheet.row_dimensions.items()
        }

    def structure(self, include_cells: bool = False) -> SheetStructure:
        """Snapshot layout, and optionally every stored cell with its style.

        Reading cells through ``iter_rows`` materializes empty cells, so
        only request them on a workbook that will not be saved.
        """
        cells: dict[str, tuple[Any, ...]] = {}
        if include_cells:
            for row in self.worksheet.iter_rows():
                for cell in row:
                    cells[cell.coordinate] = (
                        cell.value,
                        copy(cell.font),
                        copy(cell.fill),
                        copy(cell.border),
                        copy(cell.alignment),
                        cell.number_format,
                    )
        return SheetStructure(
            title=self.worksheet.title,
            merges=self.merges(),
            column_widths=self.column_widths(),
            row_heights=self.row_heights(),
            cells=cells,
        )


def read_structure(path: Path, sheet_name: str | None = None) -> SheetStructure:
    """Load a workbook and snapshot one sheet's layout and cells.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
    """
    if not path.exists():
        raise FileNotFoundError(f"Workbook not found: {path}")
    workbook = load_workbook(path)
    try:
        return SheetAccess.from_workbook(workbook, sheet_name).structure(include_cells=True)
    finally:
        workbook.close()
