"""
Structural check of a submitted payload before it is parsed or authenticated.
"""
from __future__ import annotations
import json
from typing import Any, Dict

from jsonschema import Draft7Validator
from jsonschema.exceptions import best_match

from ..core.exceptions import InvalidPayload

PERFORMANCE_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "ArcticAnalytics performance data",
    "description": "Analytics data from the Project Borealis performance test",
    "type": "object",
    "properties": {
        "sessionId": {
            "description": "The unique session identifier for a performance test run.",
            "type": "string",
        },
        "userId": {
            "description": "The random base identifier for a performance test user.",
            "type": "string",
        },
        "events": {
            "description": "The logged analytics events.",
            "type": "array",
            "items": {"$ref": "#/definitions/event"},
        },
    },
    "required": ["sessionId", "userId", "events"],
    "definitions": {
        "event": {
            "description": "An event that was logged by analytics.",
            "type": "object",
            "required": ["eventName"],
            "properties": {
                "eventName": {"description": "The key name of this event.", "type": "string"},
                "attributes": {"$ref": "#/definitions/attributes"},
            },
        },
        "attributes": {
            "description": "The attributes of an event.",
            "type": "array",
            "items": {"$ref": "#/definitions/attribute"},
        },
        "attribute": {
            "description": "An attribute of an event",
            "type": "object",
            "required": ["name", "value"],
            "properties": {
                "name": {"description": "The key name of this attribute.", "type": "string"},
                "value": {"description": "The value of the attribute.", "type": "string"},
            },
        },
    },
}

Draft7Validator.check_schema(PERFORMANCE_SCHEMA)
_validator = Draft7Validator(PERFORMANCE_SCHEMA)

def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")

def validate_payload(raw: bytes) -> None:
    """Raise InvalidPayload unless raw is JSON matching PERFORMANCE_SCHEMA."""
    try:
        doc = json.loads(raw, parse_constant=_reject_constant)
    except (UnicodeDecodeError, ValueError) as e:
        raise InvalidPayload(f"malformed JSON: {e}") from e

    error = best_match(_validator.iter_errors(doc))
    if error is not None:
        path = "/".join(str(p) for p in error.absolute_path)
        raise InvalidPayload(f"schema mismatch at '{path}': {error.message}")
