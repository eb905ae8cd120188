"""Ollama provider talking to the local daemon over its HTTP API."""

from __future__ import annotations

from typing import Any

import httpx

from toolflow.config import Settings
from toolflow.obs.logger import get_logger
from toolflow.obs.tracing import estimate_tokens
from toolflow.protocol.errors import ProviderFault
from toolflow.providers.base import EmbeddingResult, check_vector

logger = get_logger(__name__)


class OllamaProvider:
    """Uses `/api/embeddings` and `/api/generate` on the configured daemon."""

    name = "ollama"

    def __init__(self, settings: Settings, *, client: httpx.Client | None = None) -> None:
        self._settings = settings
        self._base = settings.ollama_base_url.rstrip("/")
        self._client = client

    def embed(self, text: str) -> EmbeddingResult:
        data = self._post(
            "/api/embeddings",
            {"model": self._settings.ollama_embed_model, "prompt": text},
        )
        vector = check_vector(self.name, data.get("embedding"))
        return EmbeddingResult(vector=vector, tokens=estimate_tokens(text))

    def chat(self, prompt: str) -> str:
        data = self._post(
            "/api/generate",
            {"model": self._settings.ollama_chat_model, "prompt": prompt, "stream": False},
        )
        response = data.get("response")
        if not isinstance(response, str):
            raise ProviderFault(self.name, "Ollama response is missing generated text")
        return response

    def _post(self, endpoint: str, body: dict[str, Any]) -> dict[str, Any]:
        url = f"{self._base}{endpoint}"
        logger.debug("POST %s", url)
        try:
            if self._client is not None:
                resp = self._client.post(url, json=body)
            else:
                with httpx.Client(timeout=self._settings.provider_timeout_seconds) as client:
                    resp = client.post(url, json=body)
        except (httpx.ConnectError, httpx.TimeoutException, httpx.NetworkError) as exc:
            raise ProviderFault(
                self.name, f"Ollama daemon not reachable at {self._base}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ProviderFault(self.name, f"Ollama request failed: {exc}") from exc

        if resp.status_code >= 400:
            logger.warning("Ollama %s returned HTTP %d: %s", endpoint, resp.status_code, resp.text[:200])
            raise ProviderFault(self.name, f"Ollama returned HTTP {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as exc:
            raise ProviderFault(self.name, "Ollama returned a non-JSON response") from exc
        if not isinstance(data, dict):
            raise ProviderFault(self.name, "Ollama returned an unexpected response shape")
        return data
