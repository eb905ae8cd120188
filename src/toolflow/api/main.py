"""FastAPI entrypoint for the ToolFlow Protocol endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import Body, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from toolflow.config import RetrievalConfig, Settings, get_settings
from toolflow.ingest.pipeline import IngestPipeline
from toolflow.obs.logger import configure_logging, get_logger
from toolflow.protocol.dispatcher import InvocationDispatcher
from toolflow.protocol.errors import HTTP_STATUS_BY_CODE, ErrorCode
from toolflow.protocol.models import (
    CallToolError,
    ErrorBody,
    ErrorMetadata,
    utc_timestamp,
)
from toolflow.protocol.registry import ToolRegistry
from toolflow.protocol.schema import dump
from toolflow.providers.base import ProviderRegistry
from toolflow.providers.ollama import OllamaProvider
from toolflow.providers.openai import OpenAIProvider
from toolflow.retrieval.search import RagSearcher
from toolflow.retrieval.vector_store import JsonVectorStore
from toolflow.tools import register_builtin_tools

logger = get_logger(__name__)


def build_dispatcher(
    settings: Settings,
    *,
    providers: ProviderRegistry | None = None,
) -> InvocationDispatcher:
    """Wire store, providers and built-in tools into a dispatcher."""

    providers = providers or ProviderRegistry([OpenAIProvider(settings), OllamaProvider(settings)])
    vector_store = JsonVectorStore(settings.vector_store_path)
    registry = ToolRegistry()
    register_builtin_tools(
        registry,
        IngestPipeline(providers, vector_store),
        RagSearcher(providers, vector_store, RetrievalConfig()),
    )
    return InvocationDispatcher(registry)


def create_app(dispatcher: InvocationDispatcher) -> FastAPI:
    app = FastAPI(title="ToolFlow", version="0.1.0")

    @app.exception_handler(RequestValidationError)
    async def _malformed_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        error = CallToolError(
            request_id="unknown",
            tool_id="unknown",
            metadata=ErrorMetadata(timestamp=utc_timestamp()),
            error=ErrorBody(
                code=ErrorCode.VALIDATION_ERROR.value,
                message="Request body is not a valid JSON object",
            ),
        )
        return JSONResponse(status_code=400, content=dump(error))

    @app.get("/health")
    def health() -> dict[str, Any]:
        return {"status": "ok", "tools": len(dispatcher.registry)}

    @app.get("/tfp/tools")
    def list_tools() -> list[dict[str, Any]]:
        return [descriptor.advertise() for descriptor in dispatcher.list_tools()]

    @app.post("/tfp/invoke")
    def invoke(payload: Any = Body(default=None)) -> JSONResponse:
        result = dispatcher.invoke(payload)
        if isinstance(result, CallToolError):
            status_code = HTTP_STATUS_BY_CODE.get(ErrorCode(result.error.code), 500)
        else:
            status_code = 200
        return JSONResponse(status_code=status_code, content=dump(result))

    return app


_settings = get_settings()
configure_logging(_settings.log_level)
app = create_app(build_dispatcher(_settings))


def serve() -> None:
    import uvicorn

    logger.info("[TFP] Server listening on http://%s:%d", _settings.host, _settings.port)
    uvicorn.run(app, host=_settings.host, port=_settings.port)


if __name__ == "__main__":
    serve()
