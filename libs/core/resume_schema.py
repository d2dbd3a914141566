from __future__ import annotations

import copy
import json
import types
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict, List, Optional, Tuple, Type, Union, get_args, get_origin

from jsonschema import Draft202012Validator
from pydantic import BaseModel

from .models import ResumeDocument

SCHEMA_NAME = "resume_document"

STRING = "string"
STRING_LIST = "string_list"
OBJECT = "object"
OBJECT_LIST = "object_list"


@dataclass(frozen=True)
class FieldSpec:
    name: str
    kind: str
    required: bool
    model: Optional[Type[BaseModel]] = None


def _unwrap_optional(annotation: Any) -> Tuple[Any, bool]:
    if get_origin(annotation) in (Union, types.UnionType):
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            return args[0], True
    return annotation, False


def _is_model(annotation: Any) -> bool:
    return isinstance(annotation, type) and issubclass(annotation, BaseModel)


def _classify(name: str, annotation: Any) -> Tuple[str, Optional[Type[BaseModel]]]:
    if annotation is str:
        return STRING, None
    if _is_model(annotation):
        return OBJECT, annotation
    if get_origin(annotation) in (list, List):
        (item,) = get_args(annotation)
        if item is str:
            return STRING_LIST, None
        if _is_model(item):
            return OBJECT_LIST, item
    raise TypeError(f"unsupported resume field type: {name}={annotation!r}")


@lru_cache(maxsize=None)
def fields_of(model: Type[BaseModel]) -> Tuple[FieldSpec, ...]:
    specs: list[FieldSpec] = []
    for name, field in model.model_fields.items():
        annotation, optional = _unwrap_optional(field.annotation)
        kind, nested = _classify(name, annotation)
        specs.append(
            FieldSpec(
                name=name,
                kind=kind,
                required=field.is_required() and not optional,
                model=nested,
            )
        )
    return tuple(specs)


def schema_template(model: Type[BaseModel] = ResumeDocument) -> Dict[str, Any]:
    """Structural template in the loose ``"string?"`` notation shown to the model."""
    template: Dict[str, Any] = {}
    for spec in fields_of(model):
        marker = "string" if spec.required else "string?"
        if spec.kind == STRING:
            template[spec.name] = marker
        elif spec.kind == STRING_LIST:
            template[spec.name] = [marker]
        elif spec.kind == OBJECT:
            template[spec.name] = schema_template(spec.model)
        else:
            template[spec.name] = [schema_template(spec.model)]
    return template


def render_schema_template() -> str:
    return json.dumps(schema_template(), indent=2)


def _with_null(schema: Dict[str, Any]) -> Dict[str, Any]:
    if "type" in schema:
        return {**schema, "type": [schema["type"], "null"]}
    return {"anyOf": [schema, {"type": "null"}]}


def _strict_object_schema(model: Type[BaseModel]) -> Dict[str, Any]:
    properties: Dict[str, Any] = {}
    for spec in fields_of(model):
        if spec.kind == STRING:
            prop: Dict[str, Any] = {"type": "string"}
        elif spec.kind == STRING_LIST:
            prop = {"type": "array", "items": {"type": "string"}}
        elif spec.kind == OBJECT:
            prop = _strict_object_schema(spec.model)
        else:
            prop = {"type": "array", "items": _strict_object_schema(spec.model)}
        properties[spec.name] = prop if spec.required else _with_null(prop)
    return {
        "type": "object",
        "properties": properties,
        "required": list(properties),
        "additionalProperties": False,
    }


@lru_cache(maxsize=1)
def _provider_json_schema() -> Dict[str, Any]:
    return _strict_object_schema(ResumeDocument)


def provider_json_schema() -> Dict[str, Any]:
    """Strict-mode JSON Schema for schema-constrained provider calls.

    Structured-output providers require every property to be listed as required,
    so optional fields are expressed as nullable instead of omittable.
    """
    return copy.deepcopy(_provider_json_schema())


def _acceptance_object_schema(model: Type[BaseModel]) -> Dict[str, Any]:
    properties: Dict[str, Any] = {}
    required: list[str] = []
    for spec in fields_of(model):
        if spec.kind == STRING:
            prop: Dict[str, Any] = {"type": "string"}
        elif spec.kind == STRING_LIST:
            prop = {"type": "array", "items": {"type": "string"}}
        elif spec.kind == OBJECT:
            prop = _acceptance_object_schema(spec.model)
        else:
            prop = {"type": "array", "items": _acceptance_object_schema(spec.model)}
        if spec.required:
            required.append(spec.name)
            properties[spec.name] = prop
        else:
            properties[spec.name] = _with_null(prop)
    return {"type": "object", "properties": properties, "required": required}


def acceptance_json_schema() -> Dict[str, Any]:
    return _acceptance_object_schema(ResumeDocument)


@lru_cache(maxsize=1)
def _acceptance_validator() -> Draft202012Validator:
    return Draft202012Validator(acceptance_json_schema())


def resume_shape_errors(payload: Any, limit: int = 5) -> list[str]:
    errors = sorted(_acceptance_validator().iter_errors(payload), key=lambda err: [str(part) for part in err.path])
    return [
        f"{'/'.join(map(str, err.path)) or '<root>'}: {err.message}" for err in errors[:limit]
    ]
