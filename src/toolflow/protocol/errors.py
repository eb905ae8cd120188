"""Error taxonomy shared by the dispatcher, tools, providers and store."""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Stable error codes carried in error envelopes."""

    VALIDATION_ERROR = "ValidationError"
    TOOL_NOT_FOUND = "ToolNotFound"
    PROVIDER_FAULT = "ProviderFault"
    STORAGE_FAULT = "StorageFault"
    OUTPUT_CONTRACT_VIOLATION = "OutputContractViolation"
    HANDLER_FAULT = "HandlerFault"


HTTP_STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.TOOL_NOT_FOUND: 404,
    ErrorCode.PROVIDER_FAULT: 502,
    ErrorCode.STORAGE_FAULT: 500,
    ErrorCode.OUTPUT_CONTRACT_VIOLATION: 500,
    ErrorCode.HANDLER_FAULT: 500,
}


class ToolFlowError(Exception):
    """Base class for faults that map onto an error envelope.

    `message` and `details` are shown to callers, so they must never contain
    tracebacks or secrets.
    """

    code: ErrorCode = ErrorCode.HANDLER_FAULT

    def __init__(self, message: str, *, details: Any | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationFault(ToolFlowError):
    code = ErrorCode.VALIDATION_ERROR


class ToolNotFound(ToolFlowError):
    code = ErrorCode.TOOL_NOT_FOUND

    def __init__(self, tool_id: str) -> None:
        super().__init__(f"Unknown tool: {tool_id}", details={"toolId": tool_id})
        self.tool_id = tool_id


class ProviderFault(ToolFlowError):
    """An embedding or chat provider failed or answered with unusable data."""

    code = ErrorCode.PROVIDER_FAULT

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(message, details={"provider": provider})
        self.provider = provider


class EmbeddingDimensionError(ProviderFault):
    def __init__(self, provider: str, expected: int, actual: int) -> None:
        super().__init__(
            provider,
            f"Embedding dimension mismatch for provider '{provider}': "
            f"expected {expected}, got {actual}",
        )
        self.expected = expected
        self.actual = actual


class StorageFault(ToolFlowError):
    code = ErrorCode.STORAGE_FAULT


class OutputContractViolation(ToolFlowError):
    code = ErrorCode.OUTPUT_CONTRACT_VIOLATION


class DuplicateToolError(ValueError):
    """Raised at startup when two tools claim the same tool id."""
