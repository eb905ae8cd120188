"""Configuration models for the ToolFlow service."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ProviderName = Literal["openai", "ollama"]


class ChunkingConfig(BaseModel):
    """Configures fixed-size word-window chunking."""

    chunk_size: int = Field(default=500, ge=1)
    overlap: int = Field(default=50, ge=0)

    @model_validator(mode="after")
    def _overlap_below_chunk_size(self) -> "ChunkingConfig":
        if self.overlap >= self.chunk_size:
            raise ValueError("overlap must be less than chunk_size")
        return self


class RetrievalConfig(BaseModel):
    """Configures top-K search and prompt context assembly."""

    default_top_k: int = Field(default=3, ge=1)
    max_top_k: int = Field(default=10, ge=1)
    max_context_chars: int = Field(default=1000, ge=20)


class Settings(BaseSettings):
    """Process-wide settings loaded from environment variables or `.env`.

    Provider credentials are optional at startup: a provider only fails when it
    is actually called without them, and that failure is reported through the
    normal error envelope.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    vector_store_path: str = "vectorStore.json"
    default_provider: ProviderName = "openai"

    openai_api_key: SecretStr | None = None
    openai_chat_model: str = "gpt-4o-mini"
    openai_embed_model: str = "text-embedding-3-small"

    ollama_base_url: str = "http://localhost:11434"
    ollama_chat_model: str = "llama3"
    ollama_embed_model: str = "llama3"

    provider_timeout_seconds: float = Field(default=60.0, gt=0.0)
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = Field(default=3000, ge=1, le=65535)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
