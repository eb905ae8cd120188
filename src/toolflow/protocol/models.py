"""Protocol models: tool descriptors, call requests and result envelopes."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from toolflow.protocol.schema import WireModel

_SEMVER = re.compile(r"^\d+\.\d+\.\d+(?:-[0-9A-Za-z.-]+)?(?:\+[0-9A-Za-z.-]+)?$")


class ToolDescriptor(BaseModel):
    """Identity and input/output contract of one tool."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    tool_id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    description: str
    version: str
    input_schema: type[BaseModel]
    output_schema: type[BaseModel]
    tags: frozenset[str] = frozenset()

    @field_validator("version")
    @classmethod
    def _semver(cls, value: str) -> str:
        if not _SEMVER.match(value):
            raise ValueError(f"version must be a semantic version, got {value!r}")
        return value

    def advertise(self) -> dict[str, Any]:
        """Wire form used when listing capabilities."""
        return {
            "toolId": self.tool_id,
            "name": self.name,
            "description": self.description,
            "version": self.version,
            "inputSchema": self.input_schema.model_json_schema(by_alias=True),
            "outputSchema": self.output_schema.model_json_schema(by_alias=True),
            "tags": sorted(self.tags),
        }


class CallToolRequest(WireModel):
    request_id: str | None = Field(default=None, min_length=1)
    tool_id: str = Field(min_length=1)
    input: Any = Field(default_factory=dict)


class SuccessMetadata(WireModel):
    duration_ms: float = Field(ge=0.0)
    timestamp: str
    status: Literal["success"] = "success"


class ErrorMetadata(WireModel):
    timestamp: str
    status: Literal["error"] = "error"


class ErrorBody(WireModel):
    code: str
    message: str
    details: Any | None = None


class CallToolSuccess(WireModel):
    request_id: str
    tool_id: str
    output: Any
    metadata: SuccessMetadata


class CallToolError(WireModel):
    request_id: str
    tool_id: str
    metadata: ErrorMetadata
    error: ErrorBody


CallToolResult = Union[CallToolSuccess, CallToolError]


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()
