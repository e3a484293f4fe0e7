import json
import logging
from typing import Any

logger = logging.getLogger(__name__)


def extract_json(text: str) -> str:
    """
    Extract a JSON document from LLM output.

    Models often wrap the JSON in prose, ```json fences or <think> blocks.
    We try, in order:
    - fenced ```json ... ``` blocks
    - a raw JSON object/array covering the full string
    - the first {...} span we can find
    """
    json_text = ""

    if "```" in text:
        parts = text.split("```")
        for part in parts[1:]:
            cleaned = part.strip()
            if cleaned.lower().startswith("json"):
                cleaned = cleaned[4:].strip()
            if cleaned.startswith(("{", "[")):
                json_text = cleaned
                break

    if not json_text:
        stripped = text.strip()
        if (stripped.startswith("{") and stripped.endswith("}")) or (
            stripped.startswith("[") and stripped.endswith("]")
        ):
            json_text = stripped

    if not json_text:
        stripped = text.strip()
        start = stripped.find("{")
        end = stripped.rfind("}")
        if start != -1 and end > start:
            json_text = stripped[start : end + 1]

    if not json_text:
        json_text = text.strip()

    # Remove markdown bold markers inside values
    return json_text.replace("**", "")


def _escape_control_characters(payload: str) -> str:
    """Escape literal newlines/tabs that appear inside JSON string values."""
    cleaned = []
    in_string = False
    escape_next = False

    for char in payload:
        if escape_next:
            cleaned.append(char)
            escape_next = False
            continue
        if char == "\\":
            cleaned.append(char)
            escape_next = True
            continue
        if char == '"':
            in_string = not in_string
            cleaned.append(char)
            continue
        if in_string and char == "\n":
            cleaned.append("\\n")
        elif in_string and char == "\r":
            cleaned.append("\\r")
        elif in_string and char == "\t":
            cleaned.append("\\t")
        else:
            cleaned.append(char)

    return "".join(cleaned)


def parse_llm_json(raw_output: str) -> Any:
    """Parse the JSON payload of an LLM response, raising ValueError when there is none."""
    if not raw_output or not raw_output.strip():
        raise ValueError("LLM returned an empty response")

    payload = extract_json(raw_output)
    try:
        return json.loads(payload)
    except json.JSONDecodeError as e:
        if "control character" not in str(e):
            logger.error(f"JSON parsing failed: {e}", extra={"json_preview": payload[:500]})
            raise ValueError(f"LLM returned malformed JSON: {e}") from e

    logger.warning("JSON has control characters, attempting to escape them")
    try:
        return json.loads(_escape_control_characters(payload))
    except json.JSONDecodeError as e:
        logger.error(f"JSON parsing failed after escaping: {e}", extra={"json_preview": payload[:500]})
        raise ValueError(f"LLM returned malformed JSON: {e}") from e
