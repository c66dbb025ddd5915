# -*- coding: utf-8 -*-
"""Lenient extraction of a JSON object from model output."""

from __future__ import annotations

import json
import re
from typing import Any, Dict, List

_FENCE_START = re.compile(r"^```(?:json)?\s*", flags=re.IGNORECASE)
_FENCE_END = re.compile(r"\s*```$")


def _strip_fences(text: str) -> str:
    cleaned = text.strip()
    cleaned = _FENCE_START.sub("", cleaned)
    return _FENCE_END.sub("", cleaned)


def remove_trailing_commas(text: str) -> str:
    """Drop commas that directly precede a closing brace/bracket, outside strings."""
    out: List[str] = []
    in_str = False
    escaped = False
    i = 0
    while i < len(text):
        ch = text[i]
        if in_str:
            out.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_str = False
            i += 1
            continue
        if ch == '"':
            in_str = True
        elif ch == ",":
            j = i + 1
            while j < len(text) and text[j] in " \t\r\n":
                j += 1
            if j < len(text) and text[j] in "}]":
                i += 1
                continue
        out.append(ch)
        i += 1
    return "".join(out)


def iter_object_candidates(text: str) -> List[str]:
    """Balanced top-level {...} spans, string literals respected."""
    cleaned = _strip_fences(text)
    candidates: List[str] = []
    in_str = False
    escaped = False
    depth = 0
    start = -1
    for i, ch in enumerate(cleaned):
        if in_str:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_str = False
            continue
        if ch == '"':
            in_str = True
        elif ch == "{":
            if depth == 0:
                start = i
            depth += 1
        elif ch == "}" and depth > 0:
            depth -= 1
            if depth == 0 and start >= 0:
                candidates.append(cleaned[start : i + 1])
                start = -1
    return candidates


def _sanitize(text: str) -> str:
    cleaned = text.replace("“", '"').replace("”", '"')
    cleaned = cleaned.replace("‘", "'").replace("’", "'")
    cleaned = remove_trailing_commas(cleaned)
    cleaned = re.sub(r"\bNaN\b", "null", cleaned)
    return cleaned


def parse_json_object(text: str) -> Dict[str, Any]:
    """Return the first JSON object found in ``text``.

    Raises ValueError when nothing parses.
    """
    last_error: Exception | None = None
    for candidate in iter_object_candidates(text or ""):
        for attempt in (candidate, _sanitize(candidate)):
            try:
                parsed = json.loads(attempt)
            except ValueError as exc:
                last_error = exc
                continue
            if isinstance(parsed, dict):
                return parsed
    if last_error is None:
        raise ValueError("No JSON object found in model reply")
    raise ValueError(f"Model reply is not valid JSON: {last_error}") from last_error


def try_load_object(text: str) -> Dict[str, Any] | None:
    """Strict JSON load of a stored plan; None when it is not a JSON object."""
    try:
        parsed = json.loads(text)
    except (TypeError, ValueError):
        return None
    return parsed if isinstance(parsed, dict) else None
