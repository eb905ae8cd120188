"""Retrieval-augmented answering over the vector store."""

from __future__ import annotations

from dataclasses import dataclass, field

from toolflow.config import RetrievalConfig
from toolflow.obs.logger import get_logger
from toolflow.providers.base import ProviderRegistry
from toolflow.retrieval.vector_store import VectorStore
from toolflow.types import ScoredDocument

logger = get_logger(__name__)

NO_RESULTS_ANSWER = "No relevant information found in the indexed documents."

_PROMPT_TEMPLATE = """Answer the user question using ONLY the context below.
If the context does not contain the answer, say that you cannot find it in the indexed documents.

Context:
{context}

Question: {question}"""


@dataclass(slots=True)
class SearchAnswer:
    answer: str
    hits: list[ScoredDocument] = field(default_factory=list)


class RagSearcher:
    """Embeds a question, retrieves top-K chunks and asks the chat model.

    When nothing is retrieved the chat model is not called at all and the
    fixed `NO_RESULTS_ANSWER` is returned.
    """

    def __init__(
        self,
        providers: ProviderRegistry,
        vector_store: VectorStore,
        config: RetrievalConfig | None = None,
    ) -> None:
        self._providers = providers
        self._vector_store = vector_store
        self.config = config or RetrievalConfig()

    def search(self, query: str, *, provider: str, top_k: int | None = None) -> SearchAnswer:
        backend = self._providers.get(provider)
        k = min(self.config.default_top_k if top_k is None else top_k, self.config.max_top_k)

        query_embedding = backend.embed(query).vector
        hits = self._vector_store.query(query_embedding, provider, k)
        if not hits:
            logger.info("No documents matched query for provider %s", provider)
            return SearchAnswer(answer=NO_RESULTS_ANSWER)

        prompt = build_prompt(query, hits, max_chars=self.config.max_context_chars)
        answer = backend.chat(prompt).strip()
        logger.info("Answered from %d retrieved chunks (provider=%s)", len(hits), provider)
        return SearchAnswer(answer=answer, hits=hits)


def build_prompt(question: str, hits: list[ScoredDocument], *, max_chars: int) -> str:
    context = "\n".join(f"• {_truncate(hit.document.text, max_chars)}" for hit in hits)
    return _PROMPT_TEMPLATE.format(context=context, question=question)


def _truncate(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[: max_length - 3] + "..."
