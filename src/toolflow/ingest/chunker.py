"""Fixed-size, overlapping word-window chunking."""

from __future__ import annotations

import re

from toolflow.config import ChunkingConfig

_WHITESPACE = re.compile(r"\s+")


class WordWindowChunker:
    """Splits text into overlapping windows of whole words.

    Whitespace runs are collapsed first, so chunk text is always single-space
    separated. A window of `chunk_size` words advances by
    `chunk_size - overlap` words and every non-empty window is emitted,
    including a final shorter one. This guarantees:

    1. every input word appears in at least one chunk,
    2. consecutive chunks share exactly `overlap` words when enough remain.

    Empty or whitespace-only text produces no chunks.
    """

    def __init__(self, config: ChunkingConfig | None = None) -> None:
        self.config = config or ChunkingConfig()

    def chunk(self, text: str) -> list[str]:
        return chunk_words(text, self.config.chunk_size, self.config.overlap)


def chunk_words(text: str, chunk_size: int, overlap: int) -> list[str]:
    if chunk_size < 1:
        raise ValueError("chunk_size must be at least 1")
    if not 0 <= overlap < chunk_size:
        raise ValueError("overlap must satisfy 0 <= overlap < chunk_size")

    words = split_words(text)
    stride = chunk_size - overlap
    return [" ".join(words[start : start + chunk_size]) for start in range(0, len(words), stride)]


def split_words(text: str) -> list[str]:
    normalized = _WHITESPACE.sub(" ", text).strip()
    return normalized.split(" ") if normalized else []
