"""Plain-text extraction from local files ahead of ingest."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from toolflow.protocol.errors import ValidationFault
from toolflow.types import ParsedText


class Parser(ABC):
    """Base parser interface used by the ingest pipeline."""

    extensions: tuple[str, ...] = ()

    @abstractmethod
    def parse(self, path: Path) -> ParsedText:
        """Read a file and return its text."""


class PlainTextParser(Parser):
    """Reads UTF-8 text as-is; one instance per family of extensions."""

    def __init__(self, extensions: tuple[str, ...], format_name: str) -> None:
        self.extensions = extensions
        self.format_name = format_name

    def parse(self, path: Path) -> ParsedText:
        return ParsedText(
            source=str(path), text=path.read_text(encoding="utf-8"), format=self.format_name
        )


class JsonParser(Parser):
    """Parser for JSON documents with deterministic normalization."""

    extensions = (".json",)

    def parse(self, path: Path) -> ParsedText:
        try:
            payload: Any = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ValidationFault(f"{path.name} is not valid JSON") from exc
        if isinstance(payload, (dict, list)):
            text = json.dumps(payload, ensure_ascii=False, sort_keys=True, indent=2)
        else:
            text = str(payload)
        return ParsedText(source=str(path), text=text, format="json")


def default_parsers() -> list[Parser]:
    return [
        PlainTextParser((".txt", ".log"), "text"),
        PlainTextParser((".md", ".markdown"), "markdown"),
        JsonParser(),
    ]


class ParserRegistry:
    """Maps file extension to parser implementation."""

    def __init__(self, parsers: list[Parser] | None = None) -> None:
        self._parsers: dict[str, Parser] = {}
        for parser in parsers or default_parsers():
            self.register(parser)

    def register(self, parser: Parser) -> None:
        for extension in parser.extensions:
            self._parsers[extension.lower()] = parser

    @property
    def extensions(self) -> list[str]:
        return sorted(self._parsers)

    def parse_path(self, path: str | Path) -> ParsedText:
        file_path = Path(path).expanduser().resolve()
        parser = self._parsers.get(file_path.suffix.lower())
        if parser is None:
            raise ValidationFault(
                f"Unsupported file type '{file_path.suffix or file_path.name}'",
                details={"supported": self.extensions},
            )
        if not file_path.is_file():
            raise ValidationFault(f"File not found: {path}")
        try:
            return parser.parse(file_path)
        except UnicodeDecodeError as exc:
            raise ValidationFault(f"{file_path.name} is not UTF-8 text") from exc
        except OSError as exc:
            raise ValidationFault(f"Could not read {file_path.name}") from exc
