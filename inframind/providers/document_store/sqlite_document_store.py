"""SQLite-backed document and conversation store.

Persists ingested documents and chat conversations to a local SQLite
database at ``data/inframind.db``.  Uses ``aiosqlite`` for async I/O.
Metadata, cited sources and chunk embeddings are stored as JSON text.
Chunks are kept so the in-memory vector index can be rebuilt on startup
without re-embedding every document.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import aiosqlite
import structlog

from inframind.interfaces.document_store import IDocumentStore
from inframind.models.document import Document, DocumentCreate
from inframind.models.rag import Chunk
from inframind.utils.errors import StoreError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/inframind.db")

_CREATE_TABLES_SQL = [
    """\
CREATE TABLE IF NOT EXISTS documents (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    title        TEXT    NOT NULL,
    content      TEXT    NOT NULL,
    source_type  TEXT    NOT NULL,
    source_url   TEXT,
    metadata     TEXT    NOT NULL DEFAULT '{}',
    created_at   TEXT    NOT NULL,
    updated_at   TEXT    NOT NULL
);
""",
    """\
CREATE TABLE IF NOT EXISTS conversations (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    title       TEXT    NOT NULL,
    created_at  TEXT    NOT NULL
);
""",
    """\
CREATE TABLE IF NOT EXISTS messages (
    id               INTEGER PRIMARY KEY AUTOINCREMENT,
    conversation_id  INTEGER NOT NULL REFERENCES conversations(id) ON DELETE CASCADE,
    role             TEXT    NOT NULL,
    content          TEXT    NOT NULL,
    sources          TEXT,
    created_at       TEXT    NOT NULL
);
""",
    """\
CREATE TABLE IF NOT EXISTS chunks (
    document_id  INTEGER NOT NULL REFERENCES documents(id) ON DELETE CASCADE,
    chunk_index  INTEGER NOT NULL,
    content      TEXT    NOT NULL,
    embedding    TEXT    NOT NULL,
    metadata     TEXT    NOT NULL DEFAULT '{}',
    PRIMARY KEY (document_id, chunk_index)
);
""",
]

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_documents_source_type ON documents(source_type);",
    "CREATE INDEX IF NOT EXISTS idx_messages_conversation ON messages(conversation_id);",
]

_INSERT_DOCUMENT_SQL = """\
INSERT INTO documents (title, content, source_type, source_url, metadata, created_at, updated_at)
VALUES (?, ?, ?, ?, ?, ?, ?);
"""

_SELECT_DOCUMENT_COLUMNS = (
    "SELECT id, title, content, source_type, source_url, metadata, created_at, updated_at "
    "FROM documents"
)


def _now_iso() -> str:
    return datetime.now(tz=timezone.utc).isoformat()


class SQLiteDocumentStore(IDocumentStore):
    """SQLite-backed document and conversation persistence."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    @property
    def db_path(self) -> Path:
        return self._db_path

    async def initialize(self) -> None:
        """Create the tables and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            for table_sql in _CREATE_TABLES_SQL:
                await db.execute(table_sql)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("document_db_initialized", path=str(self._db_path))

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    async def create_document(self, doc: DocumentCreate) -> Document:
        now = _now_iso()
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                cursor = await db.execute(
                    _INSERT_DOCUMENT_SQL,
                    (
                        doc.title,
                        doc.content,
                        doc.source_type,
                        doc.source_url,
                        json.dumps(doc.metadata, default=str),
                        now,
                        now,
                    ),
                )
                await db.commit()
                document_id = cursor.lastrowid
        except aiosqlite.Error as exc:
            raise StoreError(
                message=f"Failed to create document '{doc.title}': {exc}",
                provider_name="sqlite",
            ) from exc

        logger.debug("document_created", document_id=document_id, source_type=doc.source_type)
        created = datetime.fromisoformat(now)
        return Document(
            id=document_id,
            created_at=created,
            updated_at=created,
            **doc.model_dump(),
        )

    async def get_document(self, document_id: int) -> Document | None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                f"{_SELECT_DOCUMENT_COLUMNS} WHERE id = ?",
                (document_id,),
            )
            row = await cursor.fetchone()
        return _row_to_document(row) if row is not None else None

    async def list_documents(self, source_type: str | None = None) -> list[Document]:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            if source_type:
                cursor = await db.execute(
                    f"{_SELECT_DOCUMENT_COLUMNS} WHERE source_type = ? ORDER BY id DESC",
                    (source_type,),
                )
            else:
                cursor = await db.execute(f"{_SELECT_DOCUMENT_COLUMNS} ORDER BY id DESC")
            rows = await cursor.fetchall()
        return [_row_to_document(r) for r in rows]

    async def count_documents(self) -> int:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute("SELECT COUNT(*) FROM documents")
            row = await cursor.fetchone()
        return int(row[0]) if row else 0

    # ------------------------------------------------------------------
    # Conversations
    # ------------------------------------------------------------------

    async def create_conversation(self, title: str) -> int:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(
                "INSERT INTO conversations (title, created_at) VALUES (?, ?)",
                (title, _now_iso()),
            )
            await db.commit()
            conversation_id = cursor.lastrowid
        logger.info("conversation_created", conversation_id=conversation_id)
        return int(conversation_id)

    async def add_message(
        self,
        conversation_id: int,
        role: str,
        content: str,
        sources: list[dict[str, Any]] | None = None,
    ) -> int:
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                await db.execute("PRAGMA foreign_keys = ON")
                cursor = await db.execute(
                    "INSERT INTO messages (conversation_id, role, content, sources, created_at) "
                    "VALUES (?, ?, ?, ?, ?)",
                    (
                        conversation_id,
                        role,
                        content,
                        json.dumps(sources) if sources is not None else None,
                        _now_iso(),
                    ),
                )
                await db.commit()
                message_id = cursor.lastrowid
        except aiosqlite.IntegrityError as exc:
            raise StoreError(
                message=f"Conversation {conversation_id} does not exist",
                provider_name="sqlite",
            ) from exc
        return int(message_id)

    async def get_messages(self, conversation_id: int) -> list[dict[str, Any]]:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT id, conversation_id, role, content, sources, created_at "
                "FROM messages WHERE conversation_id = ? ORDER BY id",
                (conversation_id,),
            )
            rows = await cursor.fetchall()

        messages: list[dict[str, Any]] = []
        for row in rows:
            message = dict(row)
            message["sources"] = json.loads(message["sources"]) if message["sources"] else None
            messages.append(message)
        return messages

    # ------------------------------------------------------------------
    # Chunks
    # ------------------------------------------------------------------

    async def save_chunks(self, chunks: list[Chunk]) -> None:
        if not chunks:
            return
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                await db.executemany(
                    "INSERT OR REPLACE INTO chunks "
                    "(document_id, chunk_index, content, embedding, metadata) "
                    "VALUES (?, ?, ?, ?, ?)",
                    [
                        (
                            c.document_id,
                            c.chunk_index,
                            c.content,
                            json.dumps(c.embedding),
                            json.dumps(c.metadata, default=str),
                        )
                        for c in chunks
                    ],
                )
                await db.commit()
        except aiosqlite.Error as exc:
            raise StoreError(
                message=f"Failed to save chunks of document {chunks[0].document_id}: {exc}",
                provider_name="sqlite",
            ) from exc
        logger.debug("chunks_saved", document_id=chunks[0].document_id, chunks=len(chunks))

    async def list_chunks(self) -> list[Chunk]:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT document_id, chunk_index, content, embedding, metadata "
                "FROM chunks ORDER BY document_id, chunk_index"
            )
            rows = await cursor.fetchall()
        return [
            Chunk(
                document_id=row["document_id"],
                chunk_index=row["chunk_index"],
                content=row["content"],
                embedding=json.loads(row["embedding"]),
                metadata=json.loads(row["metadata"] or "{}"),
            )
            for row in rows
        ]


def _row_to_document(row: aiosqlite.Row) -> Document:
    return Document(
        id=row["id"],
        title=row["title"],
        content=row["content"],
        source_type=row["source_type"],
        source_url=row["source_url"],
        metadata=json.loads(row["metadata"] or "{}"),
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )
