"""Tolerant JSON extraction from LLM responses."""

from __future__ import annotations

import json
import logging
from typing import Any

logger = logging.getLogger(__name__)


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ```json ... ``` (or bare ```) fence."""
    s = text.strip()
    if s.startswith("```"):
        s = s.split("\n", 1)[-1] if "\n" in s else s[3:]
        if s.endswith("```"):
            s = s[:-3]
        s = s.strip()
    return s


def extract_json_object(text: str | None) -> dict[str, Any] | None:
    """Extract the JSON object embedded in *text*.

    Strategy:
    1. Strip Markdown code fences.
    2. Attempt ``json.loads`` on the whole text (fast path).
    3. Parse only the substring between the first ``{`` and the last ``}``
       (models sometimes wrap the object in prose).
    4. Return ``None`` if nothing parses or the result is not an object.
    """
    if not text or not text.strip():
        return None

    s = strip_code_fences(text)

    try:
        parsed = json.loads(s)
    except ValueError:
        start = s.find("{")
        end = s.rfind("}")
        if start == -1 or end == -1 or end <= start:
            return None
        try:
            parsed = json.loads(s[start : end + 1])
        except ValueError:
            logger.debug("Reply contained braces but no parseable JSON object")
            return None

    if not isinstance(parsed, dict):
        return None
    return parsed


def as_str(value: Any, default: str = "") -> str:
    """Coerce a scalar reply value to a stripped string."""
    if value is None or isinstance(value, (dict, list)):
        return default
    text = str(value).strip()
    return text or default


def as_str_list(value: Any) -> list[str]:
    """Coerce a reply value to a list of non-empty strings.

    A bare string becomes a one-element list; non-string items are
    stringified; anything else (objects, numbers, null) becomes empty.
    """
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    out: list[str] = []
    for item in value:
        if isinstance(item, (dict, list)) or item is None:
            continue
        text = str(item).strip()
        if text:
            out.append(text)
    return out


def as_float(value: Any, default: float = 0.0) -> float:
    """Coerce numbers and numeric strings (``"30%"``) to float."""
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip().rstrip("%"))
        except ValueError:
            return default
    return default
