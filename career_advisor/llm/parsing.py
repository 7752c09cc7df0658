"""
JSON extraction from model output.
"""
import json
import logging
import re
from typing import Any, Dict

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^\s*```(?:json|JSON)?\s*(.*?)\s*```\s*$", re.DOTALL)


class ResponseParseError(ValueError):
    """Model output was not the expected JSON object."""

    def __init__(self, message: str, raw_text: str):
        super().__init__(message)
        self.raw_text = raw_text


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ```json ... ``` wrapper if present."""
    text = (text or "").strip()
    match = _FENCE_RE.match(text)
    if match:
        return match.group(1).strip()
    return text


def parse_json_object(text: str) -> Dict[str, Any]:
    """
    Parse a JSON object from model output.

    Raises:
        ResponseParseError: Output is not a JSON object; raw text is kept on the error
    """
    cleaned = strip_code_fences(text)
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        # Models sometimes wrap the object in prose
        match = re.search(r"\{.*\}", cleaned, re.DOTALL)
        if not match:
            raise ResponseParseError("No JSON object in model output", text)
        try:
            parsed = json.loads(match.group())
        except json.JSONDecodeError as e:
            raise ResponseParseError(f"Invalid JSON in model output: {e}", text) from e

    if not isinstance(parsed, dict):
        raise ResponseParseError("Model output is not a JSON object", text)
    return parsed
