"""Tests for copy-then-patch template writing."""

from pathlib import Path

import pytest
from openpyxl import load_workbook

from ddt_digitizer.export.spreadsheet import (
    SheetAccess,
    SheetStructure,
    TemplateWriteError,
    column_index,
    read_structure,
)
from ddt_digitizer.export.template_writer import TemplateLayout, write_template
from ddt_digitizer.utils.config import ExportConfig

RECORDS = [
    {"quantity": "N' 105,00", "description": "CERNIERE A MONTARE CURSORE DDT", "document_number": "549/s"},
    {"quantity": "N' 87,50", "description": "NS .CERNIERE DA SCORCIARE DDT", "document_number": "550/s"},
    {"quantity": "N' 12", "description": "CERNIERE A MONTARE TIRETTO DDT", "document_number": "551/s"},
]


def _cells_outside(structure: SheetStructure, rows: range) -> dict[str, tuple]:
    """Value, font, fill and number format of cells outside ``rows``."""
    selected = {}
    for coord, (value, font, fill, _border, _alignment, number_format) in structure.cells.items():
        row = int("".join(c for c in coord if c.isdigit()))
        if row not in rows:
            selected[coord] = (value, font, fill, number_format)
    return selected


class TestColumnIndex:
    """Tests for column_index."""

    def test_letters(self) -> None:
        assert column_index("A") == 1
        assert column_index("g") == 7

    def test_int_passthrough(self) -> None:
        assert column_index(3) == 3


class TestTemplateLayout:
    """Tests for TemplateLayout."""

    def test_defaults(self) -> None:
        layout = TemplateLayout()
        assert layout.start_row == 12
        assert layout.field_columns() == [
            ("quantity", "A"),
            ("description", "B"),
            ("document_number", "G"),
        ]

    def test_from_config(self) -> None:
        layout = TemplateLayout.from_config(
            ExportConfig(start_row=5, document_number_column="h", sheet_name="DDT")
        )
        assert layout.start_row == 5
        assert layout.document_number_column == "H"
        assert layout.sheet_name == "DDT"


class TestWriteTemplate:
    """Tests for write_template."""

    def test_records_land_in_data_rows(self, template_path: Path, tmp_path: Path) -> None:
        out = write_template(template_path, tmp_path / "out.xlsx", RECORDS)

        wb = load_workbook(out)
        ws = wb.active
        for offset, record in enumerate(RECORDS):
            row = 12 + offset
            assert ws[f"A{row}"].value == record["quantity"]
            assert ws[f"B{row}"].value == record["description"]
            assert ws[f"G{row}"].value == record["document_number"]
        wb.close()

    def test_layout_preserved(self, template_path: Path, tmp_path: Path) -> None:
        out = write_template(template_path, tmp_path / "out.xlsx", RECORDS)

        before = read_structure(template_path)
        after = read_structure(out)
        assert after.merges == before.merges
        assert after.column_widths == before.column_widths
        assert after.row_heights == before.row_heights
        assert after.title == before.title

    def test_load_save_round_trip(self, template_path: Path, tmp_path: Path) -> None:
        """openpyxl alone keeps merges, dimensions and every cell on re-save."""
        resaved = tmp_path / "resaved.xlsx"
        wb = load_workbook(template_path)
        wb.save(resaved)
        wb.close()

        before = read_structure(template_path)
        after = read_structure(resaved)
        assert after.merges == before.merges
        assert after.column_widths == before.column_widths
        assert after.row_heights == before.row_heights
        assert after.cells == before.cells

    def test_cells_outside_data_block_unchanged(
        self, template_path: Path, tmp_path: Path
    ) -> None:
        out = write_template(template_path, tmp_path / "out.xlsx", RECORDS)

        data_rows = range(12, 12 + len(RECORDS))
        before = _cells_outside(read_structure(template_path), data_rows)
        after = _cells_outside(read_structure(out), data_rows)
        assert after == before

    def test_data_cell_styles_kept(self, template_path: Path, tmp_path: Path) -> None:
        out = write_template(template_path, tmp_path / "out.xlsx", RECORDS[:1])

        wb = load_workbook(out)
        cell = wb.active["G12"]
        assert cell.border.left.style == "thin"
        assert wb.active["A12"].number_format == "@"
        wb.close()

    def test_template_not_modified(self, template_path: Path, tmp_path: Path) -> None:
        original = template_path.read_bytes()
        write_template(template_path, tmp_path / "out.xlsx", RECORDS)
        assert template_path.read_bytes() == original

    def test_partial_record(self, template_path: Path, tmp_path: Path) -> None:
        out = write_template(template_path, tmp_path / "out.xlsx", [{"quantity": "N' 5"}])

        wb = load_workbook(out)
        ws = wb.active
        assert ws["A12"].value == "N' 5"
        assert ws["B12"].value is None
        assert ws["G12"].value is None
        wb.close()

    def test_empty_record_keeps_row(self, template_path: Path, tmp_path: Path) -> None:
        records = [{"quantity": "N' 1"}, {}, {"quantity": "N' 3"}]
        out = write_template(template_path, tmp_path / "out.xlsx", records)

        wb = load_workbook(out)
        ws = wb.active
        assert ws["A13"].value is None
        assert ws["A14"].value == "N' 3"
        wb.close()

    def test_header_untouched(self, template_path: Path, tmp_path: Path) -> None:
        out = write_template(template_path, tmp_path / "out.xlsx", RECORDS)

        wb = load_workbook(out)
        ws = wb.active
        assert ws["A1"].value == "RIEPILOGO DOCUMENTI DI TRASPORTO"
        assert ws["A1"].font.bold is True
        assert ws["G11"].value == "DDT n."
        assert ws["A20"].value == "Firma"
        wb.close()

    def test_creates_destination_directory(self, template_path: Path, tmp_path: Path) -> None:
        out = write_template(template_path, tmp_path / "nested" / "dir" / "out.xlsx", RECORDS)
        assert out.is_file()

    def test_missing_template(self, tmp_path: Path) -> None:
        destination = tmp_path / "out.xlsx"
        with pytest.raises(FileNotFoundError):
            write_template(tmp_path / "missing.xlsx", destination, RECORDS)
        assert not destination.exists()

    def test_merged_target_cell_rejected(self, template_path: Path, tmp_path: Path) -> None:
        layout = TemplateLayout(description_column="C")
        with pytest.raises(TemplateWriteError):
            write_template(template_path, tmp_path / "out.xlsx", RECORDS, layout)

    def test_unknown_sheet(self, template_path: Path, tmp_path: Path) -> None:
        layout = TemplateLayout(sheet_name="Missing")
        with pytest.raises(KeyError):
            write_template(template_path, tmp_path / "out.xlsx", RECORDS, layout)

    def test_named_sheet(self, template_path: Path, tmp_path: Path) -> None:
        layout = TemplateLayout(sheet_name="DDT", start_row=13)
        out = write_template(template_path, tmp_path / "out.xlsx", RECORDS[:1], layout)

        wb = load_workbook(out)
        assert wb["DDT"]["G13"].value == "549/s"
        wb.close()


class TestSheetAccess:
    """Tests for SheetAccess and read_structure."""

    def test_get_and_set(self, template_path: Path) -> None:
        wb = load_workbook(template_path)
        sheet = SheetAccess.from_workbook(wb)
        sheet.set_cell(12, "G", "1/a")
        assert sheet.get_cell(12, "G") == "1/a"
        assert sheet.get_cell(11, 2) == "Descrizione"
        wb.close()

    def test_structure_snapshot(self, template_path: Path) -> None:
        structure = read_structure(template_path)
        assert "A1:G1" in structure.merges
        assert structure.column_widths["B"][2] == 48
        assert structure.row_heights[1][0] == 30
        assert structure.cells["A2"][0] == "Fornitore: Cerniere Srl"

    def test_read_structure_missing(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            read_structure(tmp_path / "nope.xlsx")
