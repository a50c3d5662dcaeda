"""Tests for ExampleClientAdapter (offline reference adapter)."""

import json

from dealwire.extraction.example_client_adapter import ExampleClientAdapter
from dealwire.extraction.validator import validate_and_build


class TestExampleClientAdapter:
    def test_returns_schema_valid_json(self) -> None:
        adapter = ExampleClientAdapter()
        result = adapter.create_chat_completion(
            model="any",
            temperature=0.0,
            system_prompt="sys",
            user_prompt="user",
            json_schema={"type": "object"},
        )
        extraction = validate_and_build(json.loads(result))
        assert extraction.deal_detected is False
        assert extraction.confidence_score == 0
        assert extraction.warnings == []

    def test_ignores_input_parameters(self) -> None:
        adapter = ExampleClientAdapter()
        r1 = adapter.create_chat_completion(
            model="a",
            temperature=0.0,
            system_prompt="s1",
            user_prompt="u1",
            json_schema={"k": "v"},
        )
        r2 = adapter.create_chat_completion(
            model="b",
            temperature=1.0,
            system_prompt="s2",
            user_prompt="u2",
            json_schema={},
        )
        assert r1 == r2
