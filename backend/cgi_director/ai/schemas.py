"""JSON schemas for the structured-output requests and response validation.

The validation schemas are lenient about extra keys and optional flags so
that bare-array replies from non-strict providers still pass; the request
variants produced by ``request_schema`` are the strict form sent upstream.
"""

from __future__ import annotations

from typing import Any, Dict

# At least one non-whitespace character.
NON_BLANK = r"\S"

OPTION_ITEM_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "id": {"type": "integer"},
        "label": {"type": "string", "pattern": NON_BLANK},
        "description": {"type": "string"},
        "recommended": {"type": "boolean"},
    },
    "required": ["id", "label", "description"],
}

CLIP_FIELDS = (
    "clipNumber",
    "globalSeed",
    "visualDescription",
    "visualTextEnglish",
    "voScript",
    "durationSeconds",
    "transition",
)


def option_list_schema() -> Dict[str, Any]:
    return {"type": "array", "items": OPTION_ITEM_SCHEMA}


def clip_item_schema(min_duration: int, max_duration: int) -> Dict[str, Any]:
    return {
        "type": "object",
        "properties": {
            "clipNumber": {"type": "integer", "minimum": 1},
            "globalSeed": {"type": "string", "pattern": NON_BLANK},
            "visualDescription": {"type": "string", "pattern": NON_BLANK},
            "visualTextEnglish": {"type": "string"},
            "voScript": {"type": "string", "pattern": NON_BLANK},
            "durationSeconds": {
                "type": "integer",
                "minimum": min_duration,
                "maximum": max_duration,
            },
            "transition": {"type": "string"},
        },
        "required": list(CLIP_FIELDS),
    }


def clip_list_schema(min_duration: int, max_duration: int) -> Dict[str, Any]:
    return {"type": "array", "items": clip_item_schema(min_duration, max_duration)}


_VALIDATION_ONLY_KEYWORDS = frozenset({"minLength", "minimum", "maximum", "pattern"})


def request_schema(schema: Any) -> Any:
    """Convert a validation schema into the strict structured-output form.

    Strict mode wants every property required, no extra keys, and none of the
    bound keywords; bounds are still enforced locally on the response.
    """
    if isinstance(schema, list):
        return [request_schema(item) for item in schema]
    if not isinstance(schema, dict):
        return schema

    converted = {
        key: request_schema(value)
        for key, value in schema.items()
        if key not in _VALIDATION_ONLY_KEYWORDS
    }
    if converted.get("type") == "object" and "properties" in converted:
        converted["required"] = list(converted["properties"])
        converted["additionalProperties"] = False
    return converted


def wrapped(key: str, list_schema: Dict[str, Any]) -> Dict[str, Any]:
    """Strict mode needs an object at the top level, so lists travel under ``key``."""
    return {
        "type": "object",
        "properties": {key: list_schema},
        "required": [key],
    }


def response_format(name: str, schema: Dict[str, Any]) -> Dict[str, Any]:
    """Wrap ``schema`` as an OpenAI ``response_format`` payload."""
    return {
        "type": "json_schema",
        "json_schema": {"name": name, "strict": True, "schema": request_schema(schema)},
    }
