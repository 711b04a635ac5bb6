"""Spreadsheet to PDF conversion through headless LibreOffice."""

import os
import shutil
import subprocess
from pathlib import Path
from typing import Protocol

from ddt_digitizer.utils.config import PdfConfig
from ddt_digitizer.utils.logger import get_logger

logger = get_logger(__name__)


class PdfConversionError(RuntimeError):
    """Raised when a spreadsheet could not be rendered to PDF."""


class PdfConverter(Protocol):
    """Anything that renders a spreadsheet file to a PDF file."""

    def convert(self, spreadsheet_path: Path, pdf_path: Path) -> Path: ...


class LibreOfficeConverter:
    """Renders spreadsheets with ``soffice --headless --convert-to pdf``.

    Args:
        config: Executable name and timeout.
    """

    def __init__(self, config: PdfConfig | None = None) -> None:
        self.config = config or PdfConfig()

    def is_available(self) -> bool:
        return shutil.which(self.config.soffice_cmd) is not None

    def convert(self, spreadsheet_path: Path, pdf_path: Path) -> Path:
        """Convert ``spreadsheet_path`` and move the result to ``pdf_path``.

        LibreOffice always names its output after the input file, so the
        PDF is produced next to ``pdf_path`` and renamed afterwards.

        Raises:
            FileNotFoundError: If the spreadsheet does not exist.
            PdfConversionError: If LibreOffice is missing, fails, times out
                or produces no file.
        """
        if not spreadsheet_path.is_file():
            raise FileNotFoundError(f"Spreadsheet not found: {spreadsheet_path}")

        out_dir = pdf_path.parent
        out_dir.mkdir(parents=True, exist_ok=True)
        command = [
            self.config.soffice_cmd,
            "--headless",
            "--convert-to",
            "pdf",
            "--outdir",
            str(out_dir),
            str(spreadsheet_path),
        ]
        env = {**os.environ, "LC_ALL": "en_US.UTF-8", "LANG": "en_US.UTF-8"}

        logger.info("Converting %s to PDF", spreadsheet_path.name)
        try:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=self.config.timeout_s,
                env=env,
                check=False,
            )
        except FileNotFoundError as exc:
            raise PdfConversionError(
                f"LibreOffice executable not found: {self.config.soffice_cmd}"
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise PdfConversionError(
                f"PDF conversion timed out after {self.config.timeout_s:.0f}s"
            ) from exc

        if result.stderr:
            logger.warning("LibreOffice stderr: %s", result.stderr.strip())
        if result.returncode != 0:
            raise PdfConversionError(
                f"LibreOffice exited with code {result.returncode}: {result.stderr.strip()}"
            )

        produced = out_dir / f"{spreadsheet_path.stem}.pdf"
        if not produced.is_file():
            raise PdfConversionError(f"LibreOffice did not produce {produced.name}")
        if produced != pdf_path:
            produced.replace(pdf_path)

        logger.info("PDF written to %s", pdf_path)
        return pdf_path
