import json
from pathlib import Path
from typing import Any

_DEFAULT_PROMPT_DIR = Path(__file__).parent / "prompts"


class PromptLoadError(Exception):
    """Raised when a bundled prompt or schema cannot be read."""


def load_prompt_template(name: str, prompt_dir: Path | None = None) -> str:
    """Load a prompt text file by name (without the ``_prompt.txt`` suffix).

    Raises:
        PromptLoadError: if the file cannot be read.
    """
    path = (prompt_dir or _DEFAULT_PROMPT_DIR) / f"{name}_prompt.txt"
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise PromptLoadError(f"Failed to load prompt template: {exc}") from exc


def load_json_schema(name: str, prompt_dir: Path | None = None) -> dict[str, Any]:
    """Load and decode a response schema by name (without ``_schema.json``).

    Raises:
        PromptLoadError: if the file cannot be read or is not a JSON object.
    """
    path = (prompt_dir or _DEFAULT_PROMPT_DIR) / f"{name}_schema.json"
    try:
        schema = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise PromptLoadError(f"Failed to load JSON schema: {exc}") from exc
    if not isinstance(schema, dict):
        raise PromptLoadError(f"JSON schema {path.name} must be an object")
    return schema
