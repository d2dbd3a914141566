from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Type

from pydantic import BaseModel

from libs.core.models import ResumeDocument
from libs.core.resume_schema import OBJECT, OBJECT_LIST, STRING, STRING_LIST, fields_of


def normalize_resume(raw: Any) -> ResumeDocument:
    """Repair a loosely-typed provider object into a ResumeDocument.

    Never fails. Missing required strings become "", missing required lists
    become [], missing required objects are built from empty input. Optional
    fields that are absent or of the wrong type are dropped. Applying it to its
    own output returns an equal document.
    """
    if isinstance(raw, ResumeDocument):
        raw = raw.to_payload()
    if not isinstance(raw, Mapping):
        raw = {}
    return ResumeDocument.model_validate(_normalize_object(ResumeDocument, raw))


def _normalize_object(model: Type[BaseModel], raw: Mapping[str, Any]) -> Dict[str, Any]:
    normalized: Dict[str, Any] = {}
    for spec in fields_of(model):
        value = raw.get(spec.name)
        if spec.kind == STRING:
            repaired: Any = _as_text(value)
            default: Any = ""
        elif spec.kind == STRING_LIST:
            repaired = _string_items(value)
            default = []
        elif spec.kind == OBJECT:
            repaired = _normalize_object(spec.model, value) if isinstance(value, Mapping) else None
            default = _normalize_object(spec.model, {})
        else:
            repaired = (
                [_normalize_object(spec.model, item) for item in value if isinstance(item, Mapping)]
                if isinstance(value, list)
                else None
            )
            default = []
        if repaired is not None:
            normalized[spec.name] = repaired
        elif spec.required:
            normalized[spec.name] = default
    return normalized


def _as_text(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def _string_items(value: Any) -> Optional[List[str]]:
    if not isinstance(value, list):
        return None
    items = [_as_text(item) for item in value]
    return [item for item in items if item is not None]
