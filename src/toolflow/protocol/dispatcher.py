"""Invocation dispatcher: request envelope in, exactly one result envelope out."""

from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Callable
from time import perf_counter
from typing import Any

from langchain_core.tools import StructuredTool
from pydantic import BaseModel

from toolflow.obs.logger import get_logger
from toolflow.obs.tracing import InvocationTrace, Timer
from toolflow.protocol.errors import (
    ErrorCode,
    OutputContractViolation,
    ToolFlowError,
    ValidationFault,
)
from toolflow.protocol.models import (
    CallToolError,
    CallToolRequest,
    CallToolResult,
    CallToolSuccess,
    ErrorBody,
    ErrorMetadata,
    SuccessMetadata,
    ToolDescriptor,
    utc_timestamp,
)
from toolflow.protocol.registry import RegisteredTool, ToolRegistry
from toolflow.protocol.schema import SchemaViolation, dump, validate

logger = get_logger(__name__)

_LOG_LEVEL_BY_CODE = {
    ErrorCode.VALIDATION_ERROR: logging.WARNING,
    ErrorCode.TOOL_NOT_FOUND: logging.WARNING,
    ErrorCode.PROVIDER_FAULT: logging.ERROR,
    ErrorCode.STORAGE_FAULT: logging.ERROR,
    ErrorCode.OUTPUT_CONTRACT_VIOLATION: logging.ERROR,
    ErrorCode.HANDLER_FAULT: logging.ERROR,
}


class InvocationDispatcher:
    """Resolves, validates and runs tools behind the uniform envelope contract.

    Every call moves through the same sequence: parse the envelope, resolve the
    tool, validate input, run the handler, validate output. Each failure stops
    the sequence and is converted to a `CallToolError`; nothing raised by a
    handler escapes `invoke`.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        *,
        observer: Callable[[InvocationTrace], None] | None = None,
    ) -> None:
        self.registry = registry
        self._observer = observer

    def set_observer(self, observer: Callable[[InvocationTrace], None] | None) -> None:
        """Set an optional callback invoked after each dispatched call."""
        self._observer = observer

    def list_tools(self) -> list[ToolDescriptor]:
        return self.registry.list()

    def invoke(self, payload: Any) -> CallToolResult:
        started = perf_counter()

        request = validate(CallToolRequest, payload)
        if isinstance(request, SchemaViolation):
            fault = ValidationFault(
                f"Malformed request envelope: {request.summary()}",
                details=request.as_details(),
            )
            return self._fail(
                _raw_field(payload, "requestId") or str(uuid.uuid4()),
                _raw_field(payload, "toolId") or "unknown",
                fault,
                started,
            )

        request_id = request.request_id or str(uuid.uuid4())
        try:
            entry = self.registry.resolve(request.tool_id)
        except ToolFlowError as exc:
            return self._fail(request_id, request.tool_id, exc, started)

        tool_input = validate(entry.descriptor.input_schema, request.input, path_prefix="input")
        if isinstance(tool_input, SchemaViolation):
            fault = ValidationFault(
                f"Invalid input for {request.tool_id}: {tool_input.summary()}",
                details=tool_input.as_details(),
            )
            return self._fail(request_id, request.tool_id, fault, started)

        try:
            with Timer() as timer:
                raw_output = entry.handler(tool_input)
                output = self._check_output(entry, raw_output)
        except ToolFlowError as exc:
            return self._fail(request_id, request.tool_id, exc, started)
        except Exception:
            logger.exception("Tool %s raised (requestId=%s)", request.tool_id, request_id)
            fault = ToolFlowError(f"Tool {request.tool_id} failed while handling the request")
            return self._fail(request_id, request.tool_id, fault, started)

        result = CallToolSuccess(
            request_id=request_id,
            tool_id=request.tool_id,
            output=output,
            metadata=SuccessMetadata(duration_ms=timer.elapsed_ms, timestamp=utc_timestamp()),
        )
        logger.info(
            "Invoked %s (requestId=%s) in %.1f ms", request.tool_id, request_id, timer.elapsed_ms
        )
        self._notify(request_id, request.tool_id, "success", None, started)
        return result

    def as_langchain_tools(self) -> list[StructuredTool]:
        """Export registered tools for LangChain agents, routed through `invoke`."""
        tools: list[StructuredTool] = []
        for entry in self.registry:
            descriptor = entry.descriptor
            tools.append(
                StructuredTool.from_function(
                    name=descriptor.tool_id.replace(".", "_"),
                    description=descriptor.description,
                    args_schema=descriptor.input_schema,
                    func=self._build_function(descriptor.tool_id),
                )
            )
        return tools

    def _build_function(self, tool_id: str) -> Callable[..., str]:
        def _callable(**kwargs: Any) -> str:
            result = self.invoke({"toolId": tool_id, "input": kwargs})
            if isinstance(result, CallToolSuccess):
                return json.dumps(result.output, ensure_ascii=False)
            return f"ERROR {result.error.code}: {result.error.message}"

        return _callable

    @staticmethod
    def _check_output(entry: RegisteredTool, raw_output: Any) -> Any:
        if isinstance(raw_output, BaseModel):
            raw_output = raw_output.model_dump(by_alias=True)
        checked = validate(entry.descriptor.output_schema, raw_output, path_prefix="output")
        if isinstance(checked, SchemaViolation):
            raise OutputContractViolation(
                f"Tool {entry.descriptor.tool_id} returned output violating its declared "
                f"schema: {checked.summary()}",
                details=checked.as_details(),
            )
        return dump(checked)

    def _fail(
        self, request_id: str, tool_id: str, fault: ToolFlowError, started: float
    ) -> CallToolError:
        logger.log(
            _LOG_LEVEL_BY_CODE.get(fault.code, logging.ERROR),
            "Tool %s failed with %s (requestId=%s): %s",
            tool_id,
            fault.code.value,
            request_id,
            fault.message,
        )
        self._notify(request_id, tool_id, "error", fault.code.value, started)
        return CallToolError(
            request_id=request_id,
            tool_id=tool_id,
            metadata=ErrorMetadata(timestamp=utc_timestamp()),
            error=ErrorBody(code=fault.code.value, message=fault.message, details=fault.details),
        )

    def _notify(
        self, request_id: str, tool_id: str, status: str, code: str | None, started: float
    ) -> None:
        if self._observer is None:
            return
        self._observer(
            InvocationTrace(
                request_id=request_id,
                tool_id=tool_id,
                status=status,
                latency_ms=(perf_counter() - started) * 1000.0,
                code=code,
            )
        )


def _raw_field(payload: Any, key: str) -> str | None:
    if isinstance(payload, dict):
        value = payload.get(key)
        if isinstance(value, str) and value:
            return value
    return None
