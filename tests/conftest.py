from __future__ import annotations

from hashlib import blake2b
from math import sqrt

import pytest

from toolflow.ingest.pipeline import IngestPipeline
from toolflow.obs.tracing import estimate_tokens
from toolflow.protocol.dispatcher import InvocationDispatcher
from toolflow.protocol.errors import ProviderFault
from toolflow.protocol.registry import ToolRegistry
from toolflow.providers.base import EmbeddingResult, ProviderRegistry
from toolflow.retrieval.search import RagSearcher
from toolflow.retrieval.vector_store import JsonVectorStore
from toolflow.tools import register_builtin_tools


def hash_vector(text: str, dimension: int) -> list[float]:
    """Deterministic bag-of-words vector, unit length unless text is empty."""
    vector = [0.0 for _ in range(dimension)]
    for token in text.lower().split():
        digest = blake2b(token.encode("utf-8"), digest_size=8).digest()
        idx = int.from_bytes(digest[:4], "little") % dimension
        vector[idx] += -1.0 if digest[4] % 2 else 1.0
    norm = sqrt(sum(value * value for value in vector))
    if norm == 0:
        vector[0] = 1.0
        return vector
    return [value / norm for value in vector]


class StubProvider:
    """Offline provider recording every embed/chat call."""

    def __init__(
        self,
        name: str = "openai",
        *,
        dimension: int = 16,
        vectors: dict[str, list[float]] | None = None,
        answer: str = "  Stub answer.  ",
        fail_after: int | None = None,
    ) -> None:
        self.name = name
        self.dimension = dimension
        self.vectors = vectors or {}
        self.answer = answer
        self.fail_after = fail_after
        self.embedded: list[str] = []
        self.prompts: list[str] = []

    def embed(self, text: str) -> EmbeddingResult:
        if self.fail_after is not None and len(self.embedded) >= self.fail_after:
            raise ProviderFault(self.name, "stub embedding failure")
        self.embedded.append(text)
        vector = self.vectors.get(text) or hash_vector(text, self.dimension)
        return EmbeddingResult(vector=list(vector), tokens=estimate_tokens(text))

    def chat(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.answer


@pytest.fixture()
def openai_stub() -> StubProvider:
    return StubProvider("openai")


@pytest.fixture()
def ollama_stub() -> StubProvider:
    return StubProvider("ollama", dimension=8)


@pytest.fixture()
def providers(openai_stub: StubProvider, ollama_stub: StubProvider) -> ProviderRegistry:
    return ProviderRegistry([openai_stub, ollama_stub])


@pytest.fixture()
def store(tmp_path) -> JsonVectorStore:
    return JsonVectorStore(tmp_path / "vectorStore.json")


@pytest.fixture()
def pipeline(providers: ProviderRegistry, store: JsonVectorStore) -> IngestPipeline:
    return IngestPipeline(providers, store)


@pytest.fixture()
def searcher(providers: ProviderRegistry, store: JsonVectorStore) -> RagSearcher:
    return RagSearcher(providers, store)


@pytest.fixture()
def dispatcher(pipeline: IngestPipeline, searcher: RagSearcher) -> InvocationDispatcher:
    registry = ToolRegistry()
    register_builtin_tools(registry, pipeline, searcher)
    return InvocationDispatcher(registry)


@pytest.fixture()
def make_provider():
    """Factory for extra stub providers with custom vectors or failures."""
    return StubProvider
