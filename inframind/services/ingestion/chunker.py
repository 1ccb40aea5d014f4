"""Sentence-packing text chunker with word overlap.

Splits document text into passages of at most ``max_size`` characters for
embedding.  Sentences (split on runs of ``.``, ``!`` and ``?``) are packed
greedily; when the next sentence does not fit, the current passage is
closed with a period and the next one is seeded with the trailing
``overlap // 10`` words of the passage just closed, so a concept that spans
the boundary is retrievable from either side.

A single sentence longer than ``max_size`` is emitted whole rather than cut
mid-sentence.  Callers that need a hard ceiling must pre-split such text.
"""

from __future__ import annotations

import re

import structlog

from inframind.utils.errors import ChunkError

logger = structlog.get_logger(logger_name=__name__)

_SENTENCE_BOUNDARY = re.compile(r"[.!?]+")

# One overlap word per ten characters of overlap budget.
_CHARS_PER_OVERLAP_WORD = 10


class TextChunker:
    """Splits text into bounded, overlapping passages.

    Parameters
    ----------
    max_size:
        Maximum passage length in characters (default 1000).  Exceeded only
        by a single over-long sentence or by an overlap seed plus sentence.
    overlap:
        Overlap budget in characters (default 200); ``overlap // 10``
        trailing words of a closed passage start the next one.
    """

    def __init__(self, max_size: int = 1000, overlap: int = 200) -> None:
        if max_size <= 0:
            raise ValueError(f"max_size must be positive, got {max_size}")
        if overlap < 0:
            raise ValueError(f"overlap must be non-negative, got {overlap}")
        self._max_size = max_size
        self._overlap = overlap

    @property
    def max_size(self) -> int:
        return self._max_size

    @property
    def overlap(self) -> int:
        return self._overlap

    def chunk(self, text: str | None) -> list[str]:
        """Split *text* into passages.

        Parameters
        ----------
        text:
            The document body.  An empty string yields no passages.

        Returns
        -------
        list[str]
            Passages in document order, each ending with a period.

        Raises
        ------
        ChunkError
            If *text* is ``None`` or not a string.
        """
        if text is None:
            raise ChunkError(message="Cannot chunk missing text (got None)")
        if not isinstance(text, str):
            raise ChunkError(message=f"Cannot chunk {type(text).__name__}; expected str")

        sentences = split_sentences(text)
        chunks: list[str] = []
        current = ""

        for sentence in sentences:
            if len(current) + len(sentence) + 1 <= self._max_size:
                current = f"{current}. {sentence}" if current else sentence
                continue

            if current:
                chunks.append(current + ".")
            if chunks:
                current = self._seed_from(current, sentence)
            else:
                current = sentence

        if current:
            chunks.append(current + ".")

        logger.debug(
            "chunking_complete",
            input_chars=len(text),
            sentences=len(sentences),
            chunks=len(chunks),
            max_size=self._max_size,
        )
        return chunks

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _seed_from(self, closed: str, sentence: str) -> str:
        """Start a passage with the tail words of *closed*, then *sentence*."""
        word_count = self._overlap // _CHARS_PER_OVERLAP_WORD
        if word_count <= 0:
            return sentence
        tail = closed.split(" ")[-word_count:]
        return " ".join(tail) + ". " + sentence


def split_sentences(text: str) -> list[str]:
    """Split on ``.``/``!``/``?`` runs, trimming and dropping empty sentences."""
    return [s.strip() for s in _SENTENCE_BOUNDARY.split(text) if s.strip()]


def chunk_text(text: str | None, max_size: int = 1000, overlap: int = 200) -> list[str]:
    """Functional form of :meth:`TextChunker.chunk`."""
    return TextChunker(max_size=max_size, overlap=overlap).chunk(text)
