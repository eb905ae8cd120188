"""Provider contract and name-based lookup for embed/chat backends."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from toolflow.protocol.errors import ProviderFault


@dataclass(slots=True, frozen=True)
class EmbeddingResult:
    vector: list[float]
    tokens: int


class Provider(Protocol):
    """An embedding space plus the chat model served alongside it.

    Vectors from different providers live in different spaces and are never
    compared with each other.
    """

    name: str

    def embed(self, text: str) -> EmbeddingResult:
        """Embed one text; failures raise `ProviderFault`."""

    def chat(self, prompt: str) -> str:
        """Complete one prompt; failures raise `ProviderFault`."""


class ProviderRegistry:
    """Maps provider names (`openai`, `ollama`) to provider adapters."""

    def __init__(self, providers: list[Provider] | None = None) -> None:
        self._providers: dict[str, Provider] = {}
        for provider in providers or []:
            self.register(provider)

    def register(self, provider: Provider) -> None:
        self._providers[provider.name] = provider

    def get(self, name: str) -> Provider:
        provider = self._providers.get(name)
        if provider is None:
            raise ProviderFault(name, f"Provider not configured: {name}")
        return provider

    def names(self) -> list[str]:
        return list(self._providers)


def check_vector(provider: str, vector: object) -> list[float]:
    """Coerce a provider response into a non-empty float vector."""
    if not isinstance(vector, list) or not vector:
        raise ProviderFault(provider, f"{provider} returned an empty or missing embedding")
    try:
        return [float(value) for value in vector]
    except (TypeError, ValueError) as exc:
        raise ProviderFault(provider, f"{provider} returned a non-numeric embedding") from exc
