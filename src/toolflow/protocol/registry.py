"""Tool registry: stable tool ids mapped to descriptors and handlers."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

from toolflow.obs.logger import get_logger
from toolflow.protocol.errors import DuplicateToolError, ToolNotFound
from toolflow.protocol.models import ToolDescriptor

logger = get_logger(__name__)

ToolHandler = Callable[[BaseModel], Any]


@dataclass(slots=True, frozen=True)
class RegisteredTool:
    descriptor: ToolDescriptor
    handler: ToolHandler


class ToolRegistry:
    """Write-once mapping of tool ids, populated at startup.

    Registering the same tool id twice raises `DuplicateToolError`; a silent
    overwrite would hide wiring mistakes.
    """

    def __init__(self) -> None:
        self._tools: dict[str, RegisteredTool] = {}

    def register(self, descriptor: ToolDescriptor, handler: ToolHandler) -> None:
        if descriptor.tool_id in self._tools:
            raise DuplicateToolError(f"Tool already registered: {descriptor.tool_id}")
        self._tools[descriptor.tool_id] = RegisteredTool(descriptor=descriptor, handler=handler)
        logger.info("Registered tool %s v%s", descriptor.tool_id, descriptor.version)

    def resolve(self, tool_id: str) -> RegisteredTool:
        entry = self._tools.get(tool_id)
        if entry is None:
            raise ToolNotFound(tool_id)
        return entry

    def list(self) -> list[ToolDescriptor]:
        return [entry.descriptor for entry in self._tools.values()]

    def __contains__(self, tool_id: object) -> bool:
        return tool_id in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[RegisteredTool]:
        return iter(self._tools.values())
