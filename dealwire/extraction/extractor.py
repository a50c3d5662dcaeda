import json
import re
from pathlib import Path
from typing import Any

from dealwire.extraction.base import BaseExtractor
from dealwire.extraction.client_base import BaseExtractionClient
from dealwire.extraction.exceptions import SchemaError
from dealwire.extraction.models import DealExtraction
from dealwire.extraction.prompt_loader import load_json_schema, load_prompt_template
from dealwire.extraction.validator import validate_and_build
from dealwire.logging.logger import Log

DEFAULT_SYSTEM_PROMPT = (
    "You extract private markets deal facts from news. Answer with JSON only."
)
MAX_TEMPERATURE = 0.2

_FENCED_JSON = re.compile(r"^```[a-zA-Z]*\s*\n(?P<body>.*?)\n?```$", re.DOTALL)


def decode_response(raw: str) -> dict[str, Any]:
    """Parse a provider answer into a JSON object, tolerating a markdown fence.

    Raises:
        SchemaError: if the answer is not a JSON object.
    """
    text = raw.strip()
    fenced = _FENCED_JSON.match(text)
    if fenced is not None:
        text = fenced.group("body").strip()
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        raise SchemaError(f"Invalid JSON response: {exc}") from exc
    if not isinstance(parsed, dict):
        raise SchemaError(f"JSON response must be an object, got {type(parsed).__name__}")
    return parsed


class Extractor(BaseExtractor):
    """Deal extraction through a chat model constrained by the bundled schema.

    Temperature is clamped to [0, MAX_TEMPERATURE] so answers stay repeatable.
    """

    def __init__(
        self,
        *,
        client: BaseExtractionClient,
        model: str,
        temperature: float = 0.0,
        prompt_template_path: Path | None = None,
        json_schema_path: Path | None = None,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
    ) -> None:
        self._client = client
        self._model = model
        self._temperature = min(max(temperature, 0.0), MAX_TEMPERATURE)
        self._system_prompt = system_prompt
        self._template = load_prompt_template(prompt_template_path)
        self._schema_text = load_json_schema(json_schema_path)
        self._schema = json.loads(self._schema_text)

    def extract(self, text: str) -> DealExtraction:
        """Run one model call; a SchemaError raised here carries the raw answer."""
        prompt = self._template.format(document_text=text, json_schema=self._schema_text)
        Log.debug("Extraction prompt built", model=self._model, prompt_chars=len(prompt))

        raw = self._client.create_chat_completion(
            model=self._model,
            temperature=self._temperature,
            system_prompt=self._system_prompt,
            user_prompt=prompt,
            json_schema=self._schema,
        )
        Log.debug(f"AI raw response:\n{raw}")

        try:
            result = validate_and_build(decode_response(raw))
        except SchemaError as exc:
            exc.raw_output = raw
            raise

        for warning in result.warnings:
            Log.warning(f"Extraction accepted with warning: {warning}")
        Log.info(
            "Extraction complete",
            deal_detected=result.deal_detected,
            confidence=result.confidence_score,
        )
        return result
