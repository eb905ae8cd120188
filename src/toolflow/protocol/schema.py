"""Boundary validation of untyped payloads against pydantic shapes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

ModelT = TypeVar("ModelT", bound=BaseModel)


class WireModel(BaseModel):
    """Base for shapes exchanged over the wire.

    Fields are declared in snake_case and exposed in camelCase; both spellings
    are accepted on input.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


@dataclass(slots=True, frozen=True)
class FieldIssue:
    path: str
    expected: str
    actual: str
    message: str


@dataclass(slots=True)
class SchemaViolation:
    """Field-level description of why a payload does not match a shape."""

    shape: str
    issues: list[FieldIssue] = field(default_factory=list)

    def summary(self) -> str:
        if not self.issues:
            return f"Payload does not match {self.shape}"
        first = self.issues[0]
        more = f" (+{len(self.issues) - 1} more)" if len(self.issues) > 1 else ""
        where = first.path or "<root>"
        return f"{where}: {first.message}{more}"

    def as_details(self) -> list[dict[str, str]]:
        return [
            {
                "path": issue.path,
                "expected": issue.expected,
                "actual": issue.actual,
                "message": issue.message,
            }
            for issue in self.issues
        ]


def validate(
    shape: type[ModelT], value: Any, *, path_prefix: str = ""
) -> ModelT | SchemaViolation:
    """Validate `value` against `shape`.

    Returns the normalized model (defaults applied) on success, or a
    `SchemaViolation` describing every offending field. Malformed data never
    raises.
    """

    try:
        return shape.model_validate(value)
    except ValidationError as exc:
        return SchemaViolation(
            shape=shape.__name__,
            issues=[_to_issue(error, path_prefix) for error in exc.errors()],
        )


def dump(model: BaseModel) -> dict[str, Any]:
    """Serialize a model to its JSON-compatible wire form."""
    return model.model_dump(mode="json", by_alias=True)


def _to_issue(error: Any, path_prefix: str) -> FieldIssue:
    loc = [str(part) for part in error.get("loc", ())]
    if path_prefix:
        loc.insert(0, path_prefix)
    error_type = str(error.get("type", "value_error"))
    actual = "missing" if error_type == "missing" else type(error.get("input")).__name__
    return FieldIssue(
        path=".".join(loc),
        expected=_expected_from(error),
        actual=actual,
        message=str(error.get("msg", "invalid value")),
    )


def _expected_from(error: Any) -> str:
    ctx = error.get("ctx") or {}
    if "expected" in ctx:
        return str(ctx["expected"])
    for key in ("ge", "gt", "le", "lt", "min_length", "max_length", "pattern"):
        if key in ctx:
            return f"{key}={ctx[key]}"
    error_type = str(error.get("type", ""))
    if error_type == "missing":
        return "required field"
    return error_type.removesuffix("_type").removesuffix("_parsing") or "valid value"
