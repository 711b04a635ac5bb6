"""FastAPI application for the DDT digitizer.

Upload a photo or scan, get the three DDT fields back, accumulate them in
a session, and download the session as the filled-in template (xlsx) or
as a printable PDF.
"""

import shutil
from collections.abc import Callable
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any

from fastapi import Depends, FastAPI, File, Form, HTTPException, Query, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from starlette.background import BackgroundTask

from ddt_digitizer import __version__
from ddt_digitizer.export.orchestrator import EmptyExportError, ExportService
from ddt_digitizer.export.pdf_converter import LibreOfficeConverter, PdfConversionError
from ddt_digitizer.extraction.field_extractor import extract_fields
from ddt_digitizer.extraction.fields import ExtractedFields, clean_fields
from ddt_digitizer.extraction.formatter import format_fields
from ddt_digitizer.ocr.document_processor import DocumentRecognizer, OCRError
from ddt_digitizer.sessions.store import Session, SessionNotFoundError, SessionStore
from ddt_digitizer.utils.config import AppConfig, load_config
from ddt_digitizer.utils.logger import get_logger

from .schemas import (
    AddDocumentRequest,
    DocumentResponse,
    ExtractionResponse,
    HealthResponse,
    MessageResponse,
    SelectedRecordsRequest,
    SessionResponse,
    SessionsResponse,
    SessionSummaryResponse,
    SourceKind,
)

logger = get_logger(__name__)

_XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

_ALLOWED_CONTENT_TYPES = {
    "image/png",
    "image/jpeg",
    "image/tiff",
    "image/bmp",
    "image/webp",
    "application/pdf",
    "application/octet-stream",
}

app = FastAPI(
    title="DDT Digitizer API",
    description="Extract transport document fields and fill the DDT template",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.session_store = SessionStore()


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Application configuration, loaded once per process."""
    return load_config()


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def get_recognizer(config: Annotated[AppConfig, Depends(get_config)]) -> DocumentRecognizer:
    return DocumentRecognizer(config)


def get_export_service(
    store: Annotated[SessionStore, Depends(get_session_store)],
    config: Annotated[AppConfig, Depends(get_config)],
) -> ExportService:
    return ExportService.from_config(store, config)


ConfigDep = Annotated[AppConfig, Depends(get_config)]
StoreDep = Annotated[SessionStore, Depends(get_session_store)]
ExportDep = Annotated[ExportService, Depends(get_export_service)]


def _process_text(
    text: str,
    config: AppConfig,
    store: SessionStore,
    session_id: str | None,
    filename: str,
    confidence: float | None = None,
) -> tuple[ExtractedFields, int | None]:
    """Extract, format, and append to the session when one is given."""
    fields = format_fields(extract_fields(text, config.extraction))
    document_count = None
    if session_id:
        _, document_count = store.append_document(session_id, fields, filename, confidence)
    return fields, document_count


def _session_response(session: Session) -> SessionResponse:
    return SessionResponse(
        session_id=session.session_id,
        document_count=session.document_count,
        created_at=session.created_at,
        last_updated=session.last_updated,
        documents=[
            DocumentResponse(
                index=i,
                extracted_fields=doc.as_fields(),
                source_filename=doc.source_filename,
                added_at=doc.added_at,
                confidence=doc.confidence,
            )
            for i, doc in enumerate(session.documents, 1)
        ],
    )


async def _run_export(func: Callable[..., Path], *args: Any) -> Path:
    """Run an export step off the event loop and map failures to HTTP errors."""
    try:
        return await run_in_threadpool(func, *args)
    except SessionNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except EmptyExportError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except PdfConversionError as exc:
        logger.error("PDF conversion failed: %s", exc)
        raise HTTPException(status_code=502, detail=f"PDF conversion failed: {exc}") from exc
    except Exception as exc:
        logger.error("Export failed: %s", exc)
        raise HTTPException(status_code=500, detail=f"Export failed: {exc}") from exc


def _file_response(path: Path, media_type: str, inline: bool = False) -> FileResponse:
    return FileResponse(
        path,
        media_type=media_type,
        filename=path.name,
        content_disposition_type="inline" if inline else "attachment",
        background=BackgroundTask(path.unlink, missing_ok=True),
    )


def _selected_records(request: SelectedRecordsRequest) -> list[ExtractedFields]:
    records = [clean_fields(r.model_dump()) for r in request.records]
    if not records:
        raise HTTPException(status_code=400, detail="No records selected")
    return records


@app.get("/health", response_model=HealthResponse)
async def health_check(config: ConfigDep) -> HealthResponse:
    """Return system health status."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        tesseract_available=shutil.which(config.ocr.tesseract_cmd or "tesseract") is not None,
        libreoffice_available=LibreOfficeConverter(config.pdf).is_available(),
        template_available=Path(config.export.template_path).is_file(),
    )


@app.post("/ocr-and-process", response_model=ExtractionResponse)
async def ocr_and_process(
    file: Annotated[UploadFile, File(...)],
    recognizer: Annotated[DocumentRecognizer, Depends(get_recognizer)],
    config: ConfigDep,
    store: StoreDep,
    session_id: Annotated[str | None, Query()] = None,
    source: Annotated[SourceKind, Form()] = SourceKind.UPLOAD,
    enhanced: Annotated[bool, Form()] = False,
) -> ExtractionResponse:
    """Recognize an uploaded document and extract its fields.

    When ``session_id`` is given the formatted fields are appended to that
    session, creating it on first use.
    """
    if file.content_type and file.content_type not in _ALLOWED_CONTENT_TYPES:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type: {file.content_type}",
        )

    filename = file.filename or "document"
    content = await file.read()
    if not content:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")

    try:
        recognition = await run_in_threadpool(
            recognizer.recognize, content, filename, source.value, enhanced
        )
    except OCRError as exc:
        logger.error("Recognition of %s failed: %s", filename, exc)
        if source == SourceKind.CAMERA:
            detail = (
                "Photo could not be recognized: keep the document flat, "
                "well lit and in focus, then retake it"
            )
        else:
            detail = f"OCR failed: {exc}"
        raise HTTPException(status_code=502, detail=detail) from exc

    fields, document_count = await run_in_threadpool(
        _process_text,
        recognition.text,
        config,
        store,
        session_id,
        filename,
        recognition.confidence,
    )
    return ExtractionResponse(
        success=True,
        message=f"Extracted {len(fields)} of 3 fields",
        extracted_fields=dict(fields),
        confidence=recognition.confidence,
        session_id=session_id,
        filename=filename,
        document_count=document_count,
    )


@app.post("/sessions/{session_id}/documents", response_model=ExtractionResponse)
async def add_document_text(
    session_id: str,
    payload: AddDocumentRequest,
    config: ConfigDep,
    store: StoreDep,
) -> ExtractionResponse:
    """Extract fields from already-recognized text and add them to a session."""
    fields, document_count = await run_in_threadpool(
        _process_text, payload.text, config, store, session_id, payload.filename
    )
    return ExtractionResponse(
        success=True,
        message=f"Document added, session now has {document_count} documents",
        extracted_fields=dict(fields),
        session_id=session_id,
        filename=payload.filename,
        document_count=document_count,
    )


@app.get("/sessions", response_model=SessionsResponse)
async def list_sessions(store: StoreDep) -> SessionsResponse:
    """List sessions, most recently updated first."""
    return SessionsResponse(
        sessions=[
            SessionSummaryResponse(
                session_id=s.session_id,
                document_count=s.document_count,
                created_at=s.created_at,
                last_updated=s.last_updated,
            )
            for s in store.list_sessions()
        ]
    )


@app.get("/sessions/{session_id}", response_model=SessionResponse)
async def get_session(session_id: str, store: StoreDep) -> SessionResponse:
    """Return a session with its documents in export order."""
    try:
        return _session_response(store.get_session(session_id))
    except SessionNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@app.delete("/sessions/{session_id}", response_model=MessageResponse)
async def delete_session(session_id: str, store: StoreDep) -> MessageResponse:
    """Delete a session and its documents."""
    try:
        store.delete_session(session_id)
    except SessionNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return MessageResponse(success=True, message=f"Session {session_id} deleted")


@app.get("/export/{session_id}")
async def export_session(session_id: str, service: ExportDep) -> FileResponse:
    """Download the session written into the template."""
    path = await _run_export(service.export_session, session_id)
    return _file_response(path, _XLSX_MEDIA_TYPE)


@app.post("/export-selected")
async def export_selected(payload: SelectedRecordsRequest, service: ExportDep) -> FileResponse:
    """Download a caller-chosen list of records written into the template."""
    records = _selected_records(payload)
    path = await _run_export(service.export_selected, records)
    return _file_response(path, _XLSX_MEDIA_TYPE)


@app.get("/print/{session_id}")
async def print_session(session_id: str, service: ExportDep) -> FileResponse:
    """Render the exported session as an inline PDF for printing."""
    path = await _run_export(service.print_session, session_id)
    return _file_response(path, "application/pdf", inline=True)


@app.post("/print-selected")
async def print_selected(payload: SelectedRecordsRequest, service: ExportDep) -> FileResponse:
    """Render selected records as an inline PDF for printing."""
    records = _selected_records(payload)
    path = await _run_export(service.print_selected, records)
    return _file_response(path, "application/pdf", inline=True)
