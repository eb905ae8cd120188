"""Built-in RAG tools exposed through the invocation protocol."""

from __future__ import annotations

from typing import Literal

from pydantic import Field, model_validator

from toolflow.config import ProviderName
from toolflow.ingest.pipeline import IngestPipeline
from toolflow.protocol.models import ToolDescriptor
from toolflow.protocol.registry import ToolRegistry
from toolflow.protocol.schema import WireModel
from toolflow.retrieval.search import RagSearcher
from toolflow.types import IngestSummary


class AddDocInput(WireModel):
    text: str = Field(min_length=10)
    provider: ProviderName = "openai"


class AddDocOutput(WireModel):
    id: str
    status: Literal["added"]


class _ChunkedIngestInput(WireModel):
    provider: ProviderName = "openai"
    chunk_size: int = Field(default=500, ge=50, le=1000, description="Max words per chunk")
    overlap: int = Field(default=50, ge=0, le=500, description="Words shared by consecutive chunks")

    @model_validator(mode="after")
    def _overlap_below_chunk_size(self) -> "_ChunkedIngestInput":
        if self.overlap >= self.chunk_size:
            raise ValueError("overlap must be less than chunkSize")
        return self


class IngestTextInput(_ChunkedIngestInput):
    text: str = Field(min_length=1)


class IngestPathInput(_ChunkedIngestInput):
    file_path: str = Field(min_length=1)


class IngestOutput(WireModel):
    id: str
    tokens: int = Field(ge=0)
    chunks: int = Field(ge=0)
    status: Literal["added", "failed"]


class SearchInput(WireModel):
    query: str = Field(min_length=1)
    provider: ProviderName = "openai"
    top_k: int = Field(default=3, ge=1, le=10)


class SearchDoc(WireModel):
    id: str
    text: str
    score: float


class SearchOutput(WireModel):
    answer: str
    docs: list[SearchDoc]


ADD_DOC = ToolDescriptor(
    tool_id="rag.addDoc",
    name="RAG Add Doc",
    description="Adds a document to the local vector store for RAG.",
    version="1.0.0",
    input_schema=AddDocInput,
    output_schema=AddDocOutput,
    tags=frozenset({"rag", "vector"}),
)

INGEST_TEXT = ToolDescriptor(
    tool_id="rag.ingest",
    name="RAG Ingest Text",
    description="Splits raw text into overlapping word chunks, embeds and stores them.",
    version="1.0.0",
    input_schema=IngestTextInput,
    output_schema=IngestOutput,
    tags=frozenset({"rag", "vector", "chunking"}),
)

INGEST_PATH = ToolDescriptor(
    tool_id="doc.ingestPath.v1",
    name="Document Ingest (Path)",
    description="Reads a local text, Markdown or JSON file and ingests it as overlapping word chunks.",
    version="1.3.1",
    input_schema=IngestPathInput,
    output_schema=IngestOutput,
    tags=frozenset({"rag", "filesystem", "chunking"}),
)

SEARCH = ToolDescriptor(
    tool_id="rag.search",
    name="RAG Search",
    description="Retrieves top-K similar chunks, then answers from them with the LLM.",
    version="1.1.0",
    input_schema=SearchInput,
    output_schema=SearchOutput,
    tags=frozenset({"rag", "search"}),
)


def register_builtin_tools(
    registry: ToolRegistry,
    pipeline: IngestPipeline,
    searcher: RagSearcher,
) -> None:
    """Register the RAG tool set.

    Tools:
    - `rag.addDoc`: embed and store one text without chunking.
    - `rag.ingest`: chunk, embed and store raw text.
    - `doc.ingestPath.v1`: same as `rag.ingest` for a local file.
    - `rag.search`: top-K retrieval plus a context-only LLM answer.
    """

    def _add_doc(input_data: AddDocInput) -> AddDocOutput:
        document = pipeline.add_document(input_data.text, provider=input_data.provider)
        return AddDocOutput(id=document.id, status="added")

    def _ingest_text(input_data: IngestTextInput) -> IngestOutput:
        summary = pipeline.ingest_text(
            input_data.text,
            provider=input_data.provider,
            chunk_size=input_data.chunk_size,
            overlap=input_data.overlap,
        )
        return _ingest_output(summary)

    def _ingest_path(input_data: IngestPathInput) -> IngestOutput:
        summary = pipeline.ingest_path(
            input_data.file_path,
            provider=input_data.provider,
            chunk_size=input_data.chunk_size,
            overlap=input_data.overlap,
        )
        return _ingest_output(summary)

    def _search(input_data: SearchInput) -> SearchOutput:
        result = searcher.search(
            input_data.query, provider=input_data.provider, top_k=input_data.top_k
        )
        return SearchOutput(
            answer=result.answer,
            docs=[
                SearchDoc(id=hit.document.id, text=hit.document.text, score=hit.score)
                for hit in result.hits
            ],
        )

    registry.register(ADD_DOC, _add_doc)
    registry.register(INGEST_TEXT, _ingest_text)
    registry.register(INGEST_PATH, _ingest_path)
    registry.register(SEARCH, _search)


def _ingest_output(summary: IngestSummary) -> IngestOutput:
    return IngestOutput(
        id=summary.id, tokens=summary.tokens, chunks=summary.chunks, status=summary.status
    )
