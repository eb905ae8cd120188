"""Shared domain models."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field

from toolflow.config import ProviderName


class Document(BaseModel):
    """One stored chunk: text, its embedding and the provider that made it.

    `id` groups the chunks of one source document; it is not unique per chunk.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    text: str
    embedding: list[float] = Field(min_length=1)
    provider: ProviderName


@dataclass(slots=True, frozen=True)
class ScoredDocument:
    """A query result with cosine similarity score and 1-based rank."""

    document: Document
    score: float
    rank: int = 0


@dataclass(slots=True, frozen=True)
class IngestSummary:
    id: str
    tokens: int
    chunks: int
    status: str = "added"


@dataclass(slots=True, frozen=True)
class ParsedText:
    """Text extracted from a local source file before chunking."""

    source: str
    text: str
    format: str
