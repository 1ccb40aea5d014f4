"""Abstract base class for the persistent document and conversation store.

The RAG core resolves chunk -> document joins through this interface when
formatting context and sources, and creates documents during ingestion.
It does not own document lifecycle beyond that.  Conversation history is
kept here too so answers to a running conversation can be recorded.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from inframind.models.document import Document, DocumentCreate
from inframind.models.rag import Chunk


# Concrete implementations:
#   SQLiteDocumentStore — aiosqlite-backed local database
# Located in: inframind/providers/document_store/
class IDocumentStore(ABC):
    """Contract for document and conversation persistence."""

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables / indexes if they do not already exist."""

    # -- Documents ---------------------------------------------------------

    @abstractmethod
    async def create_document(self, doc: DocumentCreate) -> Document:
        """Persist *doc* and return it with its assigned id and timestamps.

        Raises
        ------
        inframind.utils.errors.StoreError
            If the write fails.
        """

    @abstractmethod
    async def get_document(self, document_id: int) -> Document | None:
        """Return the document with *document_id*, or ``None``."""

    @abstractmethod
    async def list_documents(self, source_type: str | None = None) -> list[Document]:
        """Return documents, newest first, optionally filtered by source type."""

    @abstractmethod
    async def count_documents(self) -> int:
        """Return the number of stored documents."""

    # -- Conversations -----------------------------------------------------

    @abstractmethod
    async def create_conversation(self, title: str) -> int:
        """Create a conversation and return its id."""

    @abstractmethod
    async def add_message(
        self,
        conversation_id: int,
        role: str,
        content: str,
        sources: list[dict[str, Any]] | None = None,
    ) -> int:
        """Append a message to a conversation and return the message id.

        Raises
        ------
        inframind.utils.errors.StoreError
            If the conversation does not exist or the write fails.
        """

    @abstractmethod
    async def get_messages(self, conversation_id: int) -> list[dict[str, Any]]:
        """Return the messages of a conversation in the order they were added."""

    # -- Chunks ------------------------------------------------------------

    @abstractmethod
    async def save_chunks(self, chunks: list[Chunk]) -> None:
        """Persist embedded chunks so the vector index can be rebuilt on startup.

        Raises
        ------
        inframind.utils.errors.StoreError
            If the write fails.
        """

    @abstractmethod
    async def list_chunks(self) -> list[Chunk]:
        """Return every stored chunk ordered by ``(document_id, chunk_index)``."""
