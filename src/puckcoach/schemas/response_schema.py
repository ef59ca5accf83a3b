"""Conversion of pydantic contracts into Gemini ``responseSchema`` objects.

Gemini accepts an OpenAPI 3.0 subset: no ``$ref``/``$defs``, no ``anyOf`` for
optional values (``nullable`` instead) and no ``additionalProperties``. The
helpers here flatten the JSON schema pydantic produces into that subset so the
same model both constrains the request and decodes the response.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

_ALLOWED_KEYS = {
    "type",
    "format",
    "description",
    "nullable",
    "enum",
    "properties",
    "required",
    "items",
    "minimum",
    "maximum",
    "minItems",
    "maxItems",
}


def to_response_schema(
    model: type[BaseModel],
    *,
    exclude: set[str] | frozenset[str] = frozenset(),
) -> dict[str, Any]:
    """Return a Gemini-compatible response schema for ``model``."""
    raw = model.model_json_schema()
    definitions = raw.get("$defs", {})
    schema = _convert(raw, definitions)
    if exclude:
        schema["properties"] = {
            name: prop
            for name, prop in schema.get("properties", {}).items()
            if name not in exclude
        }
        schema["propertyOrdering"] = list(schema["properties"])
        if "required" in schema:
            schema["required"] = [
                name for name in schema["required"] if name not in exclude
            ]
    return schema


def _convert(node: dict[str, Any], definitions: dict[str, Any]) -> dict[str, Any]:
    if "$ref" in node:
        target = node["$ref"].rsplit("/", 1)[-1]
        return _convert(definitions[target], definitions)

    variants = node.get("anyOf")
    if variants:
        concrete = [item for item in variants if item.get("type") != "null"]
        converted = _convert(concrete[0], definitions) if concrete else {}
        if len(concrete) < len(variants):
            converted["nullable"] = True
        if "description" in node:
            converted["description"] = node["description"]
        return converted

    result: dict[str, Any] = {
        key: value for key, value in node.items() if key in _ALLOWED_KEYS
    }
    if "properties" in node:
        result["properties"] = {
            name: _convert(prop, definitions)
            for name, prop in node["properties"].items()
        }
        result["propertyOrdering"] = list(node["properties"])
    if "items" in node:
        result["items"] = _convert(node["items"], definitions)
    return result
