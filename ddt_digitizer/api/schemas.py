"""Pydantic request/response schemas for the FastAPI endpoints."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field


class SourceKind(StrEnum):
    """Where an uploaded document image comes from."""

    UPLOAD = "upload"
    CAMERA = "camera"


class FieldsModel(BaseModel):
    """Extracted or formatted DDT fields; absent fields are ``None``."""

    document_number: str | None = None
    quantity: str | None = None
    description: str | None = None


class ExtractionResponse(BaseModel):
    """Result of recognizing and extracting one document."""

    success: bool
    message: str
    extracted_fields: dict[str, str]
    confidence: float | None = None
    session_id: str | None = None
    filename: str
    document_count: int | None = None


class AddDocumentRequest(BaseModel):
    """Already-recognized text to extract from and add to a session."""

    text: str = Field(min_length=1, max_length=100_000)
    filename: str = "text"


class DocumentResponse(BaseModel):
    """One document stored in a session."""

    index: int
    extracted_fields: dict[str, str]
    source_filename: str
    added_at: datetime
    confidence: float | None = None


class SessionSummaryResponse(BaseModel):
    """Listing entry for a session."""

    session_id: str
    document_count: int
    created_at: datetime
    last_updated: datetime


class SessionResponse(SessionSummaryResponse):
    """A session with its documents in export order."""

    documents: list[DocumentResponse]


class SessionsResponse(BaseModel):
    """All sessions, most recently updated first."""

    sessions: list[SessionSummaryResponse]


class SelectedRecordsRequest(BaseModel):
    """Records chosen by the client for export or printing."""

    records: list[FieldsModel]
    session_id: str | None = None


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    success: bool
    message: str


class HealthResponse(BaseModel):
    """Response schema for the health check endpoint."""

    status: str
    version: str
    tesseract_available: bool
    libreoffice_available: bool
    template_available: bool
