"""In-memory accumulation of processed documents per user session.

A session groups the documents that end up in one exported sheet. Records
are appended in arrival order, which is also the row order of the export.
The store lives as long as the process; nothing is persisted.
"""

import itertools
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from types import MappingProxyType

from ddt_digitizer.extraction.fields import ExtractedFields
from ddt_digitizer.utils.logger import get_logger

logger = get_logger(__name__)


class SessionNotFoundError(KeyError):
    """Raised when an explicit lookup names a session that does not exist."""

    def __init__(self, session_id: str) -> None:
        super().__init__(session_id)
        self.session_id = session_id

    def __str__(self) -> str:
        return f"Session not found: {self.session_id}"


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class DocumentRecord:
    """One successfully processed document. Never modified after creation."""

    fields: Mapping[str, str]
    source_filename: str
    added_at: datetime = field(default_factory=_now)
    confidence: float | None = None

    def as_fields(self) -> ExtractedFields:
        """Return a plain, mutable copy of the formatted fields."""
        return dict(self.fields)  # type: ignore[return-value]


@dataclass
class Session:
    """Ordered documents accumulated under one session id."""

    session_id: str
    documents: list[DocumentRecord] = field(default_factory=list)
    created_at: datetime = field(default_factory=_now)
    last_updated: datetime = field(default_factory=_now)

    @property
    def document_count(self) -> int:
        return len(self.documents)


@dataclass(frozen=True)
class SessionSummary:
    """Listing entry for a session."""

    session_id: str
    document_count: int
    created_at: datetime
    last_updated: datetime


class SessionStore:
    """Thread-safe keyed store of sessions.

    Appends to one session are atomic; the store never reorders or
    deduplicates records. Callers that need strict arrival order for a
    session must issue their appends sequentially.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}
        # Update sequence, breaks ties between equal timestamps in listings.
        self._touched: dict[str, int] = {}
        self._counter = itertools.count()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._sessions

    def _ensure_locked(self, session_id: str) -> Session:
        session = self._sessions.get(session_id)
        if session is None:
            session = Session(session_id=session_id)
            self._sessions[session_id] = session
            self._touched[session_id] = next(self._counter)
            logger.info("Created session %s", session_id)
        return session

    @staticmethod
    def _snapshot(session: Session) -> Session:
        return replace(session, documents=list(session.documents))

    def ensure_session(self, session_id: str) -> Session:
        """Return the session for ``session_id``, creating it if unknown.

        An existing session keeps its documents.
        """
        with self._lock:
            return self._snapshot(self._ensure_locked(session_id))

    def append_document(
        self,
        session_id: str,
        fields: ExtractedFields,
        source_filename: str,
        confidence: float | None = None,
    ) -> tuple[DocumentRecord, int]:
        """Append a processed document to a session, creating it if needed.

        Args:
            session_id: Target session.
            fields: Formatted fields of the document.
            source_filename: Name of the uploaded file, for traceability.
            confidence: OCR confidence, kept for display only.

        Returns:
            The stored record and the session's document count right after
            the append, taken under the same lock.
        """
        record = DocumentRecord(
            fields=MappingProxyType(dict(fields)),
            source_filename=source_filename,
            confidence=confidence,
        )
        with self._lock:
            session = self._ensure_locked(session_id)
            session.documents.append(record)
            session.last_updated = record.added_at
            self._touched[session_id] = next(self._counter)
            count = len(session.documents)

        logger.info(
            "Session %s: added %s (%d documents)", session_id, source_filename, count
        )
        return record, count

    def get_session(self, session_id: str) -> Session:
        """Return a snapshot of a session.

        Raises:
            SessionNotFoundError: If the session does not exist.
        """
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionNotFoundError(session_id)
            return self._snapshot(session)

    def list_sessions(self) -> list[SessionSummary]:
        """Summaries of all sessions, most recently updated first."""
        with self._lock:
            ranked = [
                (
                    (s.last_updated, self._touched[s.session_id]),
                    SessionSummary(
                        session_id=s.session_id,
                        document_count=len(s.documents),
                        created_at=s.created_at,
                        last_updated=s.last_updated,
                    ),
                )
                for s in self._sessions.values()
            ]
        ranked.sort(key=lambda item: item[0], reverse=True)
        return [summary for _, summary in ranked]

    def delete_session(self, session_id: str) -> None:
        """Remove a session and its documents.

        Raises:
            SessionNotFoundError: If the session does not exist.
        """
        with self._lock:
            if session_id not in self._sessions:
                raise SessionNotFoundError(session_id)
            del self._sessions[session_id]
            del self._touched[session_id]
        logger.info("Deleted session %s", session_id)
