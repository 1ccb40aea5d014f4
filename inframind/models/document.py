"""Pydantic models for knowledge-base documents and ingestion items.

A :class:`Document` is the durable record of one ingested source (a file,
a repository page, a wiki page, a ticket, a chat transcript).  Chunks in the
vector index reference documents by ``id`` but never own them.

Ingestion items are what callers hand to the job tracker: raw uploaded
files, or payloads produced by a source connector.  The
:class:`~inframind.services.ingestion.document_processor.DocumentProcessor`
turns either kind into a :class:`ProcessedDocument`.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class SourceType(str, Enum):  # noqa: UP042
    """Known document origins.  Free-form strings are accepted elsewhere."""

    UPLOAD = "upload"
    GITHUB = "github"
    CONFLUENCE = "confluence"
    JIRA = "jira"
    SLACK = "slack"


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------

class DocumentCreate(BaseModel):
    """Fields needed to create a document in the persistent store."""

    model_config = ConfigDict(frozen=True)

    title: str
    content: str
    source_type: str
    source_url: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class Document(DocumentCreate):
    """A stored document.  Immutable except for ``updated_at``."""

    id: int
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class ProcessedDocument(BaseModel):
    """Normalised title/content extracted from one ingestion item."""

    model_config = ConfigDict(frozen=True)

    title: str
    content: str
    source_url: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Ingestion items
# ---------------------------------------------------------------------------

class UploadedFile(BaseModel):
    """A raw file submitted for ingestion; the extension selects the parser."""

    model_config = ConfigDict(frozen=True)

    filename: str
    content: bytes
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.filename


class ConnectorPayload(BaseModel):
    """One document handed over by a source connector (GitHub, Confluence, ...).

    ``payload`` carries the connector-native shape, e.g. a Confluence page
    dict or ``{"repository", "path", "content"}`` for a repository file.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    source_type: str
    payload: dict[str, Any]
    source_url: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


IngestionItem = Union[UploadedFile, ConnectorPayload]
