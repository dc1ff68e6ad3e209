# extraction/json_payload.py
"""
Tolerant JSON parsing for model replies.

Replies are asked to be a bare JSON object but sometimes arrive wrapped in a
```json fence or with a sentence of prose around them. extract_json_object
tries, in order:
  1. the whole text as JSON;
  2. the body of the first fenced code block;
  3. the first "{...}" that decodes, scanning left to right.
It returns None when none of those yields a JSON object (arrays and scalars
do not count).
"""
import json
import re
from typing import Any, Dict, Optional

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*\n?(.*?)```", re.DOTALL)
_decoder = json.JSONDecoder()


def _loads_object(text: str) -> Optional[Dict[str, Any]]:
    try:
        data = json.loads(text)
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def _scan_for_object(text: str) -> Optional[Dict[str, Any]]:
    pos = text.find("{")
    while pos != -1:
        try:
            data, _end = _decoder.raw_decode(text, pos)
        except ValueError:
            data = None
        if isinstance(data, dict):
            return data
        pos = text.find("{", pos + 1)
    return None


def extract_json_object(text: str | None) -> Optional[Dict[str, Any]]:
    if not text:
        return None
    stripped = text.strip()

    data = _loads_object(stripped)
    if data is not None:
        return data

    m = _FENCE_RE.search(stripped)
    if m:
        data = _loads_object(m.group(1).strip())
        if data is not None:
            return data

    return _scan_for_object(stripped)
