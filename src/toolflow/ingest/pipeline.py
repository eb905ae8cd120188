"""End-to-end ingest pipeline: parse -> chunk -> embed -> store."""

from __future__ import annotations

import uuid
from pathlib import Path

from toolflow.config import ChunkingConfig
from toolflow.ingest.chunker import WordWindowChunker
from toolflow.ingest.parser import ParserRegistry
from toolflow.obs.logger import get_logger
from toolflow.protocol.errors import ValidationFault
from toolflow.providers.base import ProviderRegistry
from toolflow.retrieval.vector_store import VectorStore
from toolflow.types import Document, IngestSummary

logger = get_logger(__name__)


class IngestPipeline:
    """Coordinates chunker, provider embeddings and vector store writes.

    Ingest is all-or-nothing with respect to the store: every chunk is embedded
    first and the whole batch is written with a single `add_many`. A provider
    failure part-way through therefore leaves the store untouched.
    """

    def __init__(
        self,
        providers: ProviderRegistry,
        vector_store: VectorStore,
        *,
        parser_registry: ParserRegistry | None = None,
    ) -> None:
        self._providers = providers
        self._vector_store = vector_store
        self._parser_registry = parser_registry or ParserRegistry()

    def ingest_text(
        self,
        text: str,
        *,
        provider: str,
        chunk_size: int = 500,
        overlap: int = 50,
        doc_id: str | None = None,
    ) -> IngestSummary:
        """Chunk, embed and store `text` under one shared document id."""

        try:
            config = ChunkingConfig(chunk_size=chunk_size, overlap=overlap)
        except ValueError as exc:
            raise ValidationFault(
                f"Invalid chunking parameters: chunkSize={chunk_size}, overlap={overlap} "
                "(need 0 <= overlap < chunkSize)"
            ) from exc
        chunks = WordWindowChunker(config).chunk(text)
        if not chunks:
            raise ValidationFault("Document contained no extractable text")

        logger.info(
            "Split into %d chunks (chunkSize=%d words, overlap=%d words)",
            len(chunks),
            chunk_size,
            overlap,
        )
        return self._store_chunks(chunks, provider=provider, doc_id=doc_id or str(uuid.uuid4()))

    def ingest_path(
        self,
        path: str | Path,
        *,
        provider: str,
        chunk_size: int = 500,
        overlap: int = 50,
    ) -> IngestSummary:
        """Ingest a single local source file."""

        parsed = self._parser_registry.parse_path(path)
        logger.info("Extracted %d characters of %s from %s", len(parsed.text), parsed.format, parsed.source)
        return self.ingest_text(
            parsed.text, provider=provider, chunk_size=chunk_size, overlap=overlap
        )

    def add_document(self, text: str, *, provider: str) -> Document:
        """Embed and store `text` as a single unchunked document."""

        result = self._providers.get(provider).embed(text)
        document = Document(
            id=str(uuid.uuid4()), text=text, embedding=result.vector, provider=provider
        )
        return self._vector_store.add(document)

    def _store_chunks(self, chunks: list[str], *, provider: str, doc_id: str) -> IngestSummary:
        embedder = self._providers.get(provider)
        documents: list[Document] = []
        total_tokens = 0
        for idx, chunk in enumerate(chunks):
            result = embedder.embed(chunk)
            documents.append(
                Document(id=doc_id, text=chunk, embedding=result.vector, provider=provider)
            )
            total_tokens += result.tokens
            if idx % 10 == 0 or idx == len(chunks) - 1:
                logger.info("...embedded chunk %d/%d", idx + 1, len(chunks))

        self._vector_store.add_many(documents)
        summary = IngestSummary(id=doc_id, tokens=total_tokens, chunks=len(documents))
        logger.info("Stored document %s: %d chunks, %d tokens", doc_id, summary.chunks, summary.tokens)
        return summary
