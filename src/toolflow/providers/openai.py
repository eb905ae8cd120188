"""OpenAI provider backed by the LangChain OpenAI integration."""

from __future__ import annotations

from typing import Any

from toolflow.config import Settings
from toolflow.obs.logger import get_logger
from toolflow.obs.tracing import estimate_tokens
from toolflow.protocol.errors import ProviderFault
from toolflow.providers.base import EmbeddingResult, check_vector

logger = get_logger(__name__)


class OpenAIProvider:
    """Embeds with `OpenAIEmbeddings` and chats with `ChatOpenAI`.

    Clients are created on first use so the service starts without an API key;
    calls made without one fail with `ProviderFault`.
    """

    name = "openai"

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._embeddings: Any | None = None
        self._chat: Any | None = None

    def embed(self, text: str) -> EmbeddingResult:
        client = self._embedding_client()
        try:
            vector = client.embed_query(text)
        except Exception as exc:
            logger.warning("OpenAI embedding request failed: %s", exc)
            raise ProviderFault(self.name, "OpenAI embedding request failed") from exc
        # The embeddings wrapper does not surface usage, so estimate it.
        return EmbeddingResult(vector=check_vector(self.name, vector), tokens=estimate_tokens(text))

    def chat(self, prompt: str) -> str:
        client = self._chat_client()
        try:
            response = client.invoke(prompt)
        except Exception as exc:
            logger.warning("OpenAI chat request failed: %s", exc)
            raise ProviderFault(self.name, "OpenAI chat request failed") from exc
        content = getattr(response, "content", response)
        if isinstance(content, list):
            content = " ".join(
                str(part.get("text", "")) if isinstance(part, dict) else str(part)
                for part in content
            )
        return str(content)

    def _api_key(self) -> str:
        key = self._settings.openai_api_key
        if key is None or not key.get_secret_value():
            raise ProviderFault(self.name, "OPENAI_API_KEY is not configured")
        return key.get_secret_value()

    def _embedding_client(self) -> Any:
        if self._embeddings is None:
            from langchain_openai import OpenAIEmbeddings

            self._embeddings = OpenAIEmbeddings(
                model=self._settings.openai_embed_model,
                api_key=self._api_key(),
                timeout=self._settings.provider_timeout_seconds,
            )
        return self._embeddings

    def _chat_client(self) -> Any:
        if self._chat is None:
            from langchain_openai import ChatOpenAI

            self._chat = ChatOpenAI(
                model=self._settings.openai_chat_model,
                api_key=self._api_key(),
                temperature=0,
                timeout=self._settings.provider_timeout_seconds,
            )
        return self._chat
