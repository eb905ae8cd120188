"""ToolFlow: schema-validated tool invocation with a local RAG store."""

from .config import ChunkingConfig, RetrievalConfig, Settings

__all__ = ["ChunkingConfig", "RetrievalConfig", "Settings"]
