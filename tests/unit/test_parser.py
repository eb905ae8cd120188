import json

import pytest

from toolflow.ingest.parser import ParserRegistry
from toolflow.protocol.errors import ValidationFault


@pytest.mark.parametrize(
    ("filename", "expected_format"),
    [
        ("notes.txt", "text"),
        ("server.log", "text"),
        ("README.md", "markdown"),
        ("guide.markdown", "markdown"),
    ],
)
def test_plain_text_families_keep_content_and_format(tmp_path, filename: str, expected_format: str) -> None:
    source = tmp_path / filename
    source.write_text("Line one.\nLine two.", encoding="utf-8")

    parsed = ParserRegistry().parse_path(source)

    assert parsed.text == "Line one.\nLine two."
    assert parsed.format == expected_format


def test_extension_lookup_ignores_case(tmp_path) -> None:
    source = tmp_path / "UPPER.TXT"
    source.write_text("shouting", encoding="utf-8")

    assert ParserRegistry().parse_path(source).text == "shouting"


def test_json_is_normalized_with_sorted_keys(tmp_path) -> None:
    source = tmp_path / "record.json"
    source.write_text(json.dumps({"b": 1, "a": 2}), encoding="utf-8")

    parsed = ParserRegistry().parse_path(source)

    assert parsed.format == "json"
    assert parsed.text.index('"a"') < parsed.text.index('"b"')


def test_invalid_json_is_a_validation_fault(tmp_path) -> None:
    source = tmp_path / "broken.json"
    source.write_text("{not json", encoding="utf-8")

    with pytest.raises(ValidationFault, match="not valid JSON"):
        ParserRegistry().parse_path(source)


def test_non_utf8_text_is_a_validation_fault(tmp_path) -> None:
    source = tmp_path / "latin.txt"
    source.write_bytes("café".encode("latin-1"))

    with pytest.raises(ValidationFault, match="not UTF-8"):
        ParserRegistry().parse_path(source)


def test_supported_extensions_are_listed_on_rejection(tmp_path) -> None:
    source = tmp_path / "slides.pptx"
    source.write_bytes(b"PK")

    with pytest.raises(ValidationFault) as excinfo:
        ParserRegistry().parse_path(source)

    assert excinfo.value.details == {
        "supported": [".json", ".log", ".markdown", ".md", ".txt"]
    }
