"""Unit tests for SQLiteDocumentStore using a temporary database file."""

from __future__ import annotations

from pathlib import Path

import pytest
import pytest_asyncio

from inframind.models.document import DocumentCreate
from inframind.models.rag import Chunk
from inframind.providers.document_store.sqlite_document_store import SQLiteDocumentStore
from inframind.utils.errors import StoreError


@pytest_asyncio.fixture
async def store(tmp_path: Path) -> SQLiteDocumentStore:
    sqlite_store = SQLiteDocumentStore(db_path=tmp_path / "nested" / "inframind.db")
    await sqlite_store.initialize()
    return sqlite_store


def _doc(title: str = "Failover Runbook", source_type: str = "upload", **extra) -> DocumentCreate:
    return DocumentCreate(
        title=title,
        content="Promote the healthiest replica.",
        source_type=source_type,
        **extra,
    )


class TestDocuments:
    @pytest.mark.asyncio
    async def test_initialize_creates_parent_directory(self, tmp_path: Path) -> None:
        db_path = tmp_path / "a" / "b" / "docs.db"
        await SQLiteDocumentStore(db_path=db_path).initialize()
        assert db_path.exists()

    @pytest.mark.asyncio
    async def test_create_and_get_round_trip(self, store: SQLiteDocumentStore) -> None:
        created = await store.create_document(
            _doc(
                source_url="https://wiki.example.com/x",
                metadata={"spaceKey": "OPS", "participants": ["al", "bo"]},
            )
        )
        fetched = await store.get_document(created.id)

        assert fetched is not None
        assert fetched.id == created.id
        assert fetched.title == "Failover Runbook"
        assert fetched.source_url == "https://wiki.example.com/x"
        assert fetched.metadata == {"spaceKey": "OPS", "participants": ["al", "bo"]}
        assert fetched.created_at == created.created_at
        assert fetched.created_at.tzinfo is not None

    @pytest.mark.asyncio
    async def test_ids_are_assigned_sequentially(self, store: SQLiteDocumentStore) -> None:
        first = await store.create_document(_doc("one"))
        second = await store.create_document(_doc("two"))
        assert second.id == first.id + 1

    @pytest.mark.asyncio
    async def test_missing_document_is_none(self, store: SQLiteDocumentStore) -> None:
        assert await store.get_document(404) is None

    @pytest.mark.asyncio
    async def test_list_newest_first_with_source_filter(self, store: SQLiteDocumentStore) -> None:
        await store.create_document(_doc("a", "jira"))
        await store.create_document(_doc("b", "slack"))
        await store.create_document(_doc("c", "jira"))

        assert [d.title for d in await store.list_documents()] == ["c", "b", "a"]
        assert [d.title for d in await store.list_documents("jira")] == ["c", "a"]
        assert await store.count_documents() == 3


class TestConversations:
    @pytest.mark.asyncio
    async def test_messages_in_insertion_order_with_sources(self, store: SQLiteDocumentStore) -> None:
        conversation_id = await store.create_conversation("DB outage")
        await store.add_message(conversation_id, "user", "How do I fail over?")
        await store.add_message(
            conversation_id,
            "assistant",
            "Promote the replica.",
            sources=[{"title": "Failover Runbook", "relevance": 0.82}],
        )

        user, assistant = await store.get_messages(conversation_id)

        assert user["role"] == "user"
        assert user["sources"] is None
        assert assistant["content"] == "Promote the replica."
        assert assistant["sources"] == [{"title": "Failover Runbook", "relevance": 0.82}]

    @pytest.mark.asyncio
    async def test_message_for_unknown_conversation_rejected(self, store: SQLiteDocumentStore) -> None:
        with pytest.raises(StoreError, match="Conversation 999 does not exist"):
            await store.add_message(999, "user", "hello")

    @pytest.mark.asyncio
    async def test_conversations_are_isolated(self, store: SQLiteDocumentStore) -> None:
        first = await store.create_conversation("one")
        second = await store.create_conversation("two")
        await store.add_message(first, "user", "in first")

        assert await store.get_messages(second) == []
        assert len(await store.get_messages(first)) == 1


class TestChunks:
    @pytest.mark.asyncio
    async def test_chunks_listed_by_document_then_index(self, store: SQLiteDocumentStore) -> None:
        first = await store.create_document(_doc("one"))
        second = await store.create_document(_doc("two"))
        await store.save_chunks(
            [
                Chunk(document_id=second.id, chunk_index=0, content="Second doc.", embedding=[0.0, 1.0]),
            ]
        )
        await store.save_chunks(
            [
                Chunk(
                    document_id=first.id,
                    chunk_index=1,
                    content="Then fail over.",
                    embedding=[0.6, 0.8],
                    metadata={"position": 1, "total_chunks": 2},
                ),
                Chunk(document_id=first.id, chunk_index=0, content="Page the DBA.", embedding=[1.0, 0.0]),
            ]
        )

        chunks = await store.list_chunks()

        assert [(c.document_id, c.chunk_index) for c in chunks] == [
            (first.id, 0),
            (first.id, 1),
            (second.id, 0),
        ]
        assert chunks[1].embedding == [0.6, 0.8]
        assert chunks[1].metadata == {"position": 1, "total_chunks": 2}

    @pytest.mark.asyncio
    async def test_chunks_survive_a_new_store_instance(self, tmp_path: Path) -> None:
        db_path = tmp_path / "kb.db"
        writer = SQLiteDocumentStore(db_path=db_path)
        await writer.initialize()
        doc = await writer.create_document(_doc())
        await writer.save_chunks(
            [Chunk(document_id=doc.id, chunk_index=0, content="Promote it.", embedding=[0.5, 0.5])]
        )

        reader = SQLiteDocumentStore(db_path=db_path)
        await reader.initialize()

        (chunk,) = await reader.list_chunks()
        assert chunk.content == "Promote it."
        assert chunk.embedding == [0.5, 0.5]

    @pytest.mark.asyncio
    async def test_empty_store_has_no_chunks(self, store: SQLiteDocumentStore) -> None:
        await store.save_chunks([])
        assert await store.list_chunks() == []
