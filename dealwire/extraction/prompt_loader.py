import json
from pathlib import Path

from dealwire.extraction.exceptions import ExtractionError

PROMPTS_DIR = Path(__file__).parent / "prompts"
PROMPT_FILE = "extraction_prompt.txt"
SCHEMA_FILE = "extraction_schema.json"


def _read(path: Path, what: str) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ExtractionError(f"Failed to load {what}: {exc}") from exc


def load_prompt_template(path: Path | None = None) -> str:
    """Return the user-prompt template (bundled one unless ``path`` is given).

    The template is formatted with ``document_text`` and ``json_schema``.

    Raises:
        ExtractionError: if the file cannot be read.
    """
    return _read(path or PROMPTS_DIR / PROMPT_FILE, "prompt template")


def load_json_schema(path: Path | None = None) -> str:
    """Return the result JSON schema as text, after checking it parses to an object.

    Raises:
        ExtractionError: if the file cannot be read or is not a JSON object.
    """
    text = _read(path or PROMPTS_DIR / SCHEMA_FILE, "JSON schema")
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ExtractionError(f"Failed to load JSON schema: invalid JSON ({exc})") from exc
    if not isinstance(parsed, dict):
        raise ExtractionError("Failed to load JSON schema: top level must be an object")
    return text
