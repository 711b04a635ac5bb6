"""Export and print sequencing for sessions and ad-hoc record lists.

Each call writes a fresh, uniquely named workbook from the template and,
for printing, hands it to the PDF converter. A failed step removes the
files it produced so a half-written export is never handed out.
"""

import uuid
from collections.abc import Mapping, Sequence
from datetime import datetime
from pathlib import Path

from ddt_digitizer.sessions.store import SessionStore
from ddt_digitizer.utils.config import AppConfig
from ddt_digitizer.utils.logger import get_logger

from .pdf_converter import LibreOfficeConverter, PdfConverter
from .template_writer import TemplateLayout, write_template

logger = get_logger(__name__)


class EmptyExportError(ValueError):
    """Raised when there is nothing to write into the template."""


def _timestamp() -> str:
    return datetime.now().strftime("%Y-%m-%dT%H-%M-%S")


def _safe_token(value: str) -> str:
    return "".join(c if c.isalnum() or c in "-_" else "_" for c in value)[:64]


def _discard(*paths: Path) -> None:
    for path in paths:
        path.unlink(missing_ok=True)


class ExportService:
    """Composes the template writer and the PDF converter.

    Args:
        store: Session store records are read from.
        template_path: Default template workbook.
        export_dir: Directory receiving generated files.
        layout: Data-block position inside the template.
        pdf_converter: Collaborator used by the print operations.
    """

    def __init__(
        self,
        store: SessionStore,
        template_path: Path,
        export_dir: Path,
        layout: TemplateLayout | None = None,
        pdf_converter: PdfConverter | None = None,
    ) -> None:
        self.store = store
        self.template_path = template_path
        self.export_dir = export_dir
        self.layout = layout or TemplateLayout()
        self.pdf_converter = pdf_converter or LibreOfficeConverter()

    @classmethod
    def from_config(cls, store: SessionStore, config: AppConfig) -> "ExportService":
        return cls(
            store=store,
            template_path=Path(config.export.template_path),
            export_dir=Path(config.export.export_dir),
            layout=TemplateLayout.from_config(config.export),
            pdf_converter=LibreOfficeConverter(config.pdf),
        )

    def _session_records(self, session_id: str) -> list[Mapping[str, str]]:
        session = self.store.get_session(session_id)
        if not session.documents:
            raise EmptyExportError(f"Session {session_id} has no documents")
        return [doc.fields for doc in session.documents]

    def _destination(self, prefix: str, session_id: str | None, suffix: str) -> Path:
        parts = [prefix]
        if session_id:
            parts.append(_safe_token(session_id))
        parts.extend([_timestamp(), uuid.uuid4().hex[:8]])
        return self.export_dir / ("_".join(parts) + suffix)

    def _write(
        self,
        records: Sequence[Mapping[str, str]],
        destination: Path,
        template_path: Path | None,
    ) -> Path:
        template = template_path or self.template_path
        try:
            write_template(template, destination, records, self.layout)
        except Exception:
            logger.error("Export to %s failed, discarding partial file", destination.name)
            _discard(destination)
            raise
        logger.info("Exported %d records to %s", len(records), destination.name)
        return destination

    def export_session(self, session_id: str, template_path: Path | None = None) -> Path:
        """Write every document of a session, in append order.

        Raises:
            SessionNotFoundError: If the session does not exist.
            EmptyExportError: If the session has no documents.
            FileNotFoundError: If the template is missing.
        """
        records = self._session_records(session_id)
        destination = self._destination("DDT_Export", session_id, ".xlsx")
        return self._write(records, destination, template_path)

    def export_selected(
        self,
        records: Sequence[Mapping[str, str]],
        template_path: Path | None = None,
    ) -> Path:
        """Write a caller-supplied list of records, independent of sessions.

        Raises:
            EmptyExportError: If ``records`` is empty.
            FileNotFoundError: If the template is missing.
        """
        if not records:
            raise EmptyExportError("No records selected for export")
        destination = self._destination("DDT_Selected", None, ".xlsx")
        return self._write(records, destination, template_path)

    def _to_pdf(self, workbook_path: Path) -> Path:
        pdf_path = workbook_path.with_suffix(".pdf")
        try:
            self.pdf_converter.convert(workbook_path, pdf_path)
        except Exception:
            logger.error("PDF conversion of %s failed", workbook_path.name)
            _discard(pdf_path)
            raise
        finally:
            _discard(workbook_path)
        return pdf_path

    def print_session(self, session_id: str) -> Path:
        """Export a session and render it to PDF; the workbook is removed."""
        records = self._session_records(session_id)
        workbook = self._write(
            records, self._destination("Print_Session", session_id, ".xlsx"), None
        )
        return self._to_pdf(workbook)

    def print_selected(self, records: Sequence[Mapping[str, str]]) -> Path:
        """Export selected records and render them to PDF."""
        if not records:
            raise EmptyExportError("No records selected for printing")
        workbook = self._write(records, self._destination("Print_Selected", None, ".xlsx"), None)
        return self._to_pdf(workbook)
