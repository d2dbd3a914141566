from __future__ import annotations

import json
from typing import Any, Dict


class ModelOutputParseError(ValueError):
    pass


def extract_json(text: str) -> str:
    if not text:
        return ""
    stripped = text.strip()
    if stripped.startswith("```"):
        stripped = stripped.strip("`")
    start = stripped.find("{")
    end = stripped.rfind("}")
    if start == -1 or end == -1 or end <= start:
        return ""
    return stripped[start : end + 1]


def parse_json_object(text: str) -> Dict[str, Any]:
    json_text = extract_json(text)
    if not json_text:
        raise ModelOutputParseError("no_json_object")
    try:
        return json.loads(json_text)
    except json.JSONDecodeError as exc:
        raise ModelOutputParseError(f"invalid_json:{exc}") from exc
