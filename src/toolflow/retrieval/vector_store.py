"""Vector store contract and the JSON-file backed implementation."""

from __future__ import annotations

import json
import os
import tempfile
import threading
from collections.abc import Sequence
from math import sqrt
from pathlib import Path
from typing import Protocol

from toolflow.obs.logger import get_logger
from toolflow.protocol.errors import EmbeddingDimensionError, StorageFault
from toolflow.protocol.schema import SchemaViolation, validate
from toolflow.types import Document, ScoredDocument

logger = get_logger(__name__)


class VectorStore(Protocol):
    """Minimal vector store contract for ingest and retrieval."""

    def add(self, document: Document) -> Document:
        """Append one document."""

    def add_many(self, documents: Sequence[Document]) -> list[Document]:
        """Append documents in one write."""

    def query(self, embedding: list[float], provider: str, k: int) -> list[ScoredDocument]:
        """Top-k documents of `provider` by cosine similarity."""


class JsonVectorStore:
    """Exact-scan vector store persisted as one JSON array of documents.

    The file is read lazily on first access and cached for the lifetime of the
    object. Writes are serialized by a lock: each one reloads the cache,
    appends, writes a sibling temp file and swaps it in with `os.replace`, so a
    reader in this process sees either the old or the new collection. Writers
    in other processes are not coordinated.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = threading.RLock()
        self._cache: tuple[Document, ...] | None = None
        self._dimensions: dict[str, int] = {}

    def add(self, document: Document) -> Document:
        self.add_many([document])
        return document

    def add_many(self, documents: Sequence[Document]) -> list[Document]:
        if not documents:
            return []
        with self._lock:
            current = self._load()
            dimensions = dict(self._dimensions)
            for document in documents:
                expected = dimensions.setdefault(document.provider, len(document.embedding))
                if expected != len(document.embedding):
                    raise EmbeddingDimensionError(
                        document.provider, expected, len(document.embedding)
                    )
            updated = current + tuple(documents)
            self._write(updated)
            self._cache = updated
            self._dimensions = dimensions
        return list(documents)

    def query(self, embedding: list[float], provider: str, k: int) -> list[ScoredDocument]:
        if k <= 0:
            return []
        snapshot = self._load()
        expected = self._dimensions.get(provider)
        if expected is not None and expected != len(embedding):
            raise EmbeddingDimensionError(provider, expected, len(embedding))

        candidates = [doc for doc in snapshot if doc.provider == provider]
        # sorted() is stable with reverse=True, so ties keep store order.
        ranked = sorted(
            ((doc, _cosine_similarity(embedding, doc.embedding)) for doc in candidates),
            key=lambda item: item[1],
            reverse=True,
        )
        return [
            ScoredDocument(document=doc, score=score, rank=i + 1)
            for i, (doc, score) in enumerate(ranked[:k])
        ]

    def dimension(self, provider: str) -> int | None:
        self._load()
        return self._dimensions.get(provider)

    def all(self) -> list[Document]:
        return list(self._load())

    def __len__(self) -> int:
        return len(self._load())

    def _load(self) -> tuple[Document, ...]:
        if self._cache is not None:
            return self._cache
        with self._lock:
            if self._cache is None:
                documents = self._read()
                dimensions: dict[str, int] = {}
                for doc in documents:
                    dimensions.setdefault(doc.provider, len(doc.embedding))
                self._cache = documents
                self._dimensions = dimensions
                logger.debug("Loaded %d documents from %s", len(documents), self.path)
            return self._cache

    def _read(self) -> tuple[Document, ...]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return ()
        except OSError as exc:
            raise StorageFault(f"Could not read vector store at {self.path}") from exc

        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise StorageFault(f"Vector store at {self.path} is not valid JSON") from exc
        if not isinstance(payload, list):
            raise StorageFault(f"Vector store at {self.path} must hold a JSON array")

        documents: list[Document] = []
        for index, record in enumerate(payload):
            checked = validate(Document, record)
            if isinstance(checked, SchemaViolation):
                logger.warning(
                    "Skipping malformed record %d in %s: %s", index, self.path, checked.summary()
                )
                continue
            documents.append(checked)
        return tuple(documents)

    def _write(self, documents: tuple[Document, ...]) -> None:
        records = [doc.model_dump(mode="json") for doc in documents]
        tmp_name: str | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                tmp_name = handle.name
                json.dump(records, handle, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.path)
        except OSError as exc:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StorageFault(f"Could not write vector store at {self.path}") from exc
        logger.debug("Saved %d documents to %s", len(documents), self.path)


def _cosine_similarity(a: list[float], b: list[float]) -> float:
    if not a or not b or len(a) != len(b):
        return 0.0
    numerator = sum(x * y for x, y in zip(a, b, strict=True))
    norm_a = sqrt(sum(x * x for x in a))
    norm_b = sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return numerator / (norm_a * norm_b)
