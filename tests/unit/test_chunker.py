"""Unit tests for the TextChunker: sentence packing with word overlap."""

from __future__ import annotations

import pytest

from inframind.services.ingestion.chunker import TextChunker, chunk_text, split_sentences
from inframind.utils.errors import ChunkError

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _sentence_body(i: int) -> str:
    """A 98-character sentence body of 14 distinct words."""
    words = [f"t{i:02d}w{j:02d}" for j in range(13)] + [f"t{i:02d}tail"]
    return " ".join(words)


def _document(sentences: int) -> str:
    return " ".join(_sentence_body(i) + "." for i in range(sentences)) + " "


def _overlap_prefix(previous_chunk: str, words: int) -> str:
    return " ".join(previous_chunk[:-1].split(" ")[-words:]) + ". "


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestInputValidation:
    def test_none_raises_chunk_error(self) -> None:
        with pytest.raises(ChunkError):
            TextChunker().chunk(None)

    def test_non_string_raises_chunk_error(self) -> None:
        with pytest.raises(ChunkError):
            TextChunker().chunk(b"bytes are not text")  # type: ignore[arg-type]

    def test_empty_string_yields_no_chunks(self) -> None:
        assert TextChunker().chunk("") == []

    def test_punctuation_only_yields_no_chunks(self) -> None:
        assert TextChunker().chunk(" ... !! ?  ") == []

    def test_invalid_configuration_rejected(self) -> None:
        with pytest.raises(ValueError):
            TextChunker(max_size=0)
        with pytest.raises(ValueError):
            TextChunker(overlap=-1)


class TestSentenceSplitting:
    def test_splits_on_terminal_punctuation_runs(self) -> None:
        assert split_sentences("Disk full! Is it? Yes... Rotate logs.") == [
            "Disk full",
            "Is it",
            "Yes",
            "Rotate logs",
        ]

    def test_short_text_is_one_chunk_with_terminal_period(self) -> None:
        chunks = TextChunker().chunk("Alpha beta. Gamma delta!")
        assert chunks == ["Alpha beta. Gamma delta."]


class TestPacking:
    def test_2400_char_document_yields_three_overlapping_chunks(self) -> None:
        text = _document(24)
        assert len(text) == 2400

        chunks = TextChunker(max_size=1000, overlap=200).chunk(text)

        assert len(chunks) == 3
        for previous, current in zip(chunks, chunks[1:]):
            assert current.startswith(_overlap_prefix(previous, 20))

    def test_chunks_respect_max_size(self) -> None:
        chunks = TextChunker(max_size=1000, overlap=200).chunk(_document(24))
        assert all(len(c) <= 1000 for c in chunks)
        assert [len(c) for c in chunks[:2]] == [999, 943]

    def test_sentence_sequence_reconstructs_without_overlap(self) -> None:
        text = _document(40)
        chunker = TextChunker(max_size=600, overlap=100)
        chunks = chunker.chunk(text)

        sentences = split_sentences(chunks[0])
        for previous, current in zip(chunks, chunks[1:]):
            prefix = _overlap_prefix(previous, 10)
            assert current.startswith(prefix)
            sentences.extend(split_sentences(current[len(prefix) :]))

        assert sentences == split_sentences(text)

    def test_overlong_sentence_emitted_whole(self) -> None:
        long_sentence = " ".join(["replication"] * 150)
        chunks = TextChunker(max_size=100, overlap=20).chunk(f"Intro. {long_sentence}. Outro.")

        assert any(long_sentence in c for c in chunks)
        assert max(len(c) for c in chunks) > 100

    def test_zero_overlap_starts_next_chunk_at_sentence(self) -> None:
        chunks = TextChunker(max_size=250, overlap=0).chunk(_document(6))

        assert len(chunks) > 1
        for i, c in enumerate(chunks[1:], start=1):
            assert c.startswith("t0"), f"chunk {i} should begin with a fresh sentence"
            assert c.split(" ")[0].endswith("w00")

    def test_chunking_is_deterministic(self) -> None:
        text = _document(12)
        assert chunk_text(text, 500, 100) == chunk_text(text, 500, 100)
