"""Tests for prompt template and JSON schema loading."""

import json
from pathlib import Path

import pytest

from dealwire.extraction.exceptions import ExtractionError
from dealwire.extraction.prompt_loader import load_json_schema, load_prompt_template


class TestLoadPromptTemplate:
    def test_loads_default_template(self) -> None:
        template = load_prompt_template()
        assert "{document_text}" in template
        assert "{json_schema}" in template

    def test_default_template_formats_cleanly(self) -> None:
        rendered = load_prompt_template().format(document_text="BODY", json_schema="SCHEMA")
        assert "BODY" in rendered
        assert "SCHEMA" in rendered

    def test_loads_custom_template(self, tmp_path: Path) -> None:
        custom = tmp_path / "custom.txt"
        custom.write_text("Hello {document_text}")
        result = load_prompt_template(custom)
        assert result == "Hello {document_text}"

    def test_missing_file_raises_error(self) -> None:
        with pytest.raises(ExtractionError, match="Failed to load prompt"):
            load_prompt_template(Path("/nonexistent/file.txt"))


class TestLoadJsonSchema:
    def test_loads_default_schema(self) -> None:
        schema = json.loads(load_json_schema())
        assert "confidence_score" in schema["required"]
        assert "entities" in schema["properties"]

    def test_loads_custom_schema(self, tmp_path: Path) -> None:
        custom = tmp_path / "schema.json"
        custom.write_text('{"type": "object"}')
        result = load_json_schema(custom)
        assert result == '{"type": "object"}'

    def test_missing_file_raises_error(self) -> None:
        with pytest.raises(ExtractionError, match="Failed to load JSON schema"):
            load_json_schema(Path("/nonexistent/schema.json"))

    def test_invalid_json_raises_error(self, tmp_path: Path) -> None:
        broken = tmp_path / "schema.json"
        broken.write_text("{not json")
        with pytest.raises(ExtractionError, match="invalid JSON"):
            load_json_schema(broken)

    def test_non_object_schema_raises_error(self, tmp_path: Path) -> None:
        listed = tmp_path / "schema.json"
        listed.write_text("[]")
        with pytest.raises(ExtractionError, match="must be an object"):
            load_json_schema(listed)
