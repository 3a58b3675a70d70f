"""JSON schema definitions for validating the YAML configuration file."""

from __future__ import annotations

from .lattice import Kind

COLLECTION_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "name": {"type": "string", "minLength": 1},
        "struct": {"type": "string", "minLength": 1},
    },
    "required": ["name"],
    "additionalProperties": False,
}

CONFIG_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "url": {"type": "string"},
        "db": {"type": "string"},
        "limit": {"type": ["integer", "null"], "minimum": 0},
        "comments": {"type": "boolean"},
        "ignored_fields": {
            "type": "array",
            "items": {"type": "string"},
        },
        "collections": {
            "type": "array",
            "items": COLLECTION_SCHEMA,
        },
        "scalar_types": {
            "type": "object",
            "additionalProperties": {
                "type": "string",
                "enum": [kind.value for kind in Kind],
            },
        },
    },
    "additionalProperties": False,
}
