"""Copy-then-patch export of session records into the DDT template.

The template workbook is never rebuilt: it is copied byte for byte to the
destination, the copy is opened, only the data-block cells are assigned,
and the copy is saved in place. Merged ranges, column widths, row heights
and cell styles therefore come straight from the template file.
"""

import shutil
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path

from openpyxl import load_workbook

from ddt_digitizer.extraction.fields import DESCRIPTION, DOCUMENT_NUMBER, QUANTITY
from ddt_digitizer.utils.config import ExportConfig
from ddt_digitizer.utils.logger import get_logger

from .spreadsheet import SheetAccess, TemplateWriteError

logger = get_logger(__name__)

__all__ = ["TemplateLayout", "TemplateWriteError", "write_template"]


@dataclass(frozen=True)
class TemplateLayout:
    """Where records land in the template.

    Row ``start_row`` receives the first record; every following record
    goes one row further down.
    """

    start_row: int = 12
    quantity_column: str = "A"
    description_column: str = "B"
    document_number_column: str = "G"
    sheet_name: str | None = None

    @classmethod
    def from_config(cls, config: ExportConfig) -> "TemplateLayout":
        return cls(
            start_row=config.start_row,
            quantity_column=config.quantity_column,
            description_column=config.description_column,
            document_number_column=config.document_number_column,
            sheet_name=config.sheet_name,
        )

    def field_columns(self) -> list[tuple[str, str]]:
        return [
            (QUANTITY, self.quantity_column),
            (DESCRIPTION, self.description_column),
            (DOCUMENT_NUMBER, self.document_number_column),
        ]


def write_template(
    template_path: Path,
    destination: Path,
    records: Iterable[Mapping[str, str]],
    layout: TemplateLayout | None = None,
) -> Path:
    """Write records into a fresh copy of the template.

    A record with missing fields only writes the fields it has; the other
    cells of its row keep the template content. If anything fails after
    the copy, ``destination`` is left as an unpatched copy and must be
    discarded by the caller.

    Args:
        template_path: The read-only template workbook.
        destination: Output path; overwritten if it exists.
        records: Formatted fields, one mapping per output row, in order.
        layout: Data-block position. Defaults to ``TemplateLayout()``.

    Returns:
        ``destination``.

    Raises:
        FileNotFoundError: If the template does not exist (nothing is
            written in that case).
        TemplateWriteError: If a target cell is inside a merged range or
            the patched sheet no longer matches the template layout.
        KeyError: If the configured sheet is missing.
    """
    layout = layout or TemplateLayout()
    if not template_path.is_file():
        raise FileNotFoundError(f"Template workbook not found: {template_path}")

    destination.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(template_path, destination)
    logger.info("Copied template %s -> %s", template_path, destination)

    workbook = load_workbook(destination)
    try:
        sheet = SheetAccess.from_workbook(workbook, layout.sheet_name)
        before = sheet.structure()

        row = layout.start_row
        written = 0
        for record in records:
            for name, column in layout.field_columns():
                value = record.get(name)
                if value:
                    sheet.set_cell(row, column, value)
            logger.debug(
                "Row %d: quantity=%r description=%r document_number=%r",
                row,
                record.get(QUANTITY),
                record.get(DESCRIPTION),
                record.get(DOCUMENT_NUMBER),
            )
            row += 1
            written += 1

        if not sheet.structure().layout_equals(before):
            raise TemplateWriteError("Patching changed the template layout")

        workbook.save(destination)
    finally:
        workbook.close()

    logger.info(
        "Wrote %d records into rows %d-%d of %s",
        written,
        layout.start_row,
        layout.start_row + written - 1,
        destination,
    )
    return destination
