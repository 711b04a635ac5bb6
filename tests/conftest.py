"""Shared test fixtures for the DDT digitizer test suite."""

from pathlib import Path

import numpy as np
import pytest
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side

from ddt_digitizer.sessions.store import SessionStore
from ddt_digitizer.utils.config import AppConfig

# Text shaped like a real OCR pass over a DDT table row.
SAMPLE_DDT_TEXT = (
    "DOCUMENTO DI TRASPORTO\n"
    "| Numero | Data |\n"
    "| 549/s | 10/03/2025 |\n"
    "CATENA CONTINUA METALLO DA FARE FISSA VARIE MISURE\n"
    "VARIE MISURE PZ 246 MT \" 105,00 '\n"
)

TEMPLATE_MERGES = {"A1:G1", "A2:C2", "B11:F11", "B12:F12", "B13:F13", "B14:F14"}
DATA_START_ROW = 12


def build_template(path: Path) -> Path:
    """Write a small DDT-like template with merges, sizes and styles."""
    wb = Workbook()
    ws = wb.active
    ws.title = "DDT"

    thin = Side(style="thin")
    box = Border(left=thin, right=thin, top=thin, bottom=thin)

    ws["A1"] = "RIEPILOGO DOCUMENTI DI TRASPORTO"
    ws["A1"].font = Font(bold=True, size=14)
    ws["A1"].alignment = Alignment(horizontal="center")
    ws["A2"] = "Fornitore: Cerniere Srl"
    ws["A11"] = "Quantita"
    ws["B11"] = "Descrizione"
    ws["G11"] = "DDT n."
    for column in ("A", "B", "G"):
        ws[f"{column}11"].font = Font(bold=True)
        ws[f"{column}11"].fill = PatternFill("solid", fgColor="DDDDDD")

    for row in range(DATA_START_ROW, DATA_START_ROW + 3):
        for column in ("A", "B", "G"):
            ws[f"{column}{row}"].border = box
        ws[f"A{row}"].number_format = "@"

    ws["A20"] = "Firma"

    for merge in TEMPLATE_MERGES:
        ws.merge_cells(merge)

    ws.column_dimensions["A"].width = 14
    ws.column_dimensions["B"].width = 48
    ws.column_dimensions["G"].width = 16
    ws.row_dimensions[1].height = 30
    ws.row_dimensions[11].height = 22

    wb.save(path)
    wb.close()
    return path


@pytest.fixture
def template_path(tmp_path: Path) -> Path:
    """A template workbook in a temporary directory."""
    return build_template(tmp_path / "template.xlsx")


@pytest.fixture
def store() -> SessionStore:
    """An empty session store."""
    return SessionStore()


@pytest.fixture
def app_config(tmp_path: Path, template_path: Path) -> AppConfig:
    """Configuration pointing at the temporary template and export dir."""
    return AppConfig(
        export={
            "template_path": str(template_path),
            "export_dir": str(tmp_path / "exports"),
        }
    )


@pytest.fixture
def sample_text() -> str:
    """OCR text of a DDT carrying all three fields."""
    return SAMPLE_DDT_TEXT


@pytest.fixture
def sample_color_image() -> np.ndarray:
    """Create a simple synthetic RGB test image."""
    image = np.zeros((200, 300, 3), dtype=np.uint8)
    image[50:150, 50:250] = (255, 255, 255)
    return image


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def config_dir(project_root: Path) -> Path:
    """Return the configs directory path."""
    return project_root / "configs"
