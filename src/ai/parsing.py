"""
Decode free-text model replies into typed values.

Models often wrap JSON in Markdown fences or add a sentence around it, so
the reply is unwrapped first. Anything that still does not validate comes
back as Malformed; nothing here raises.
"""

import json
import re
from typing import Any, TypeVar

from pydantic import TypeAdapter, ValidationError

from src.ai.types import Malformed, ParseResult, Parsed

T = TypeVar("T")

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*(.*?)```", re.DOTALL)


def strip_code_fences(text: str) -> str:
    """Return the contents of the first fenced block, or the text itself."""
    match = _FENCE_RE.search(text)
    if match:
        return match.group(1).strip()
    return text.strip()


def _extract_json_fragment(text: str) -> str:
    """Cut from the first opening bracket to its last closing partner."""
    starts = [i for i in (text.find("{"), text.find("[")) if i != -1]
    if not starts:
        return text
    start = min(starts)
    closer = "}" if text[start] == "{" else "]"
    end = text.rfind(closer)
    if end <= start:
        return text
    return text[start:end + 1]


def parse_json_reply(raw_text: str, shape: Any) -> ParseResult[T]:
    """
    Decode ``raw_text`` as JSON and validate it against ``shape``.

    Args:
        raw_text: Model reply, possibly fenced or with surrounding prose
        shape: Any type pydantic can validate (model class, List[str], ...)

    Returns:
        Parsed(value) on success, Malformed(raw_text, reason) otherwise
    """
    if not raw_text or not raw_text.strip():
        return Malformed(raw_text=raw_text or "", reason="empty reply")

    candidate = strip_code_fences(raw_text)
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError:
        try:
            data = json.loads(_extract_json_fragment(candidate))
        except json.JSONDecodeError as exc:
            return Malformed(raw_text=raw_text, reason=f"reply is not JSON: {exc.msg}")

    try:
        value = TypeAdapter(shape).validate_python(data)
    except ValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(loc) for loc in first["loc"]) or "<root>"
        return Malformed(raw_text=raw_text, reason=f"unexpected shape at {location}: {first['msg']}")

    return Parsed(value)
