# glucolens/declarations.py
# One definition, two uses: the pydantic models in schemas.py are turned into the
# response schema Gemini is asked to follow, and the same models validate what comes back.

from __future__ import annotations

import json
import logging
from functools import lru_cache
from typing import Any, Dict, Type, TypeVar

from pydantic import BaseModel, ValidationError

from glucolens.errors import InvalidUpstreamResponse

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

# JSON Schema type -> Gemini Schema type tag
_TYPE_TAGS: Dict[str, str] = {
    "object": "OBJECT",
    "string": "STRING",
    "number": "NUMBER",
    "integer": "INTEGER",
    "boolean": "BOOLEAN",
    "array": "ARRAY",
}

# JSON Schema keywords carried over as-is
_PASSTHROUGH = ("description", "enum", "minimum", "maximum")


def _resolve(node: Dict[str, Any], defs: Dict[str, Any]) -> Dict[str, Any]:
    """Inline a `$ref` (or single-item `allOf`) while keeping sibling keys such as description."""
    ref = node.get("$ref")
    if ref is None and len(node.get("allOf", [])) == 1:
        ref = node["allOf"][0].get("$ref")
    if ref is None:
        return node
    target = defs[ref.rsplit("/", 1)[-1]]
    merged = dict(target)
    merged.update({k: v for k, v in node.items() if k not in ("$ref", "allOf")})
    return merged


def _convert(node: Dict[str, Any], defs: Dict[str, Any]) -> Dict[str, Any]:
    node = _resolve(node, defs)
    json_type = node.get("type")
    if json_type is None and node.get("enum") and all(isinstance(v, str) for v in node["enum"]):
        json_type = "string"
    if json_type not in _TYPE_TAGS:
        raise TypeError(f"Unsupported schema node for Gemini: {node!r}")

    out: Dict[str, Any] = {"type": _TYPE_TAGS[json_type]}
    for key in _PASSTHROUGH:
        if key in node:
            out[key] = node[key]

    if json_type == "object":
        props = node.get("properties", {})
        out["properties"] = {name: _convert(sub, defs) for name, sub in props.items()}
        out["propertyOrdering"] = list(props)
        if node.get("required"):
            out["required"] = list(node["required"])
    elif json_type == "array" and "items" in node:
        out["items"] = _convert(node["items"], defs)
    return out


@lru_cache(maxsize=None)
def declare_schema(model: Type[BaseModel]) -> Dict[str, Any]:
    """
    Build the Gemini `response_schema` for a pydantic model.
    Wire names (aliases) are used, `$defs` are inlined and type tags are upper-case:
        {"type": "OBJECT", "properties": {...}, "required": [...], ...}
    Callers must not mutate the returned dict; it is cached per model.
    """
    raw = model.model_json_schema(by_alias=True)
    return _convert(raw, raw.get("$defs", {}))


def _summarize(err: ValidationError) -> str:
    parts = []
    for e in err.errors()[:5]:
        loc = ".".join(str(p) for p in e.get("loc", ())) or "<root>"
        parts.append(f"{loc}: {e.get('msg')}")
    return "; ".join(parts)


def parse_structured(text: str, model: Type[M]) -> M:
    """
    Parse the service's JSON text and validate it against `model`.
    Raises InvalidUpstreamResponse on bad JSON, missing fields, out-of-range
    numbers or an impact level outside the enum. Nothing is defaulted.
    """
    if not text or not text.strip():
        raise InvalidUpstreamResponse(detail=f"Empty response for {model.__name__}")

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise InvalidUpstreamResponse(detail=f"{model.__name__}: response is not valid JSON ({e})")

    if not isinstance(data, dict):
        raise InvalidUpstreamResponse(detail=f"{model.__name__}: expected a JSON object, got {type(data).__name__}")

    try:
        return model.model_validate(data)
    except ValidationError as e:
        summary = _summarize(e)
        logger.warning("Upstream %s failed validation: %s", model.__name__, summary)
        raise InvalidUpstreamResponse(detail=f"{model.__name__}: {summary}")
