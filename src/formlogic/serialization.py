"""
Text serialization of form schemas.

The wire payload dict is the intermediate representation; JSON and YAML
are just encodings of it, so a schema survives either round trip with the
same fields, rules and spans.
"""
from __future__ import annotations

import json
from typing import Any, Dict

import yaml

from formlogic.errors import SchemaLoadError
from formlogic.loader import normalize_payload
from formlogic.model import FormSchema
from formlogic.payload import build_payload


def schema_to_dict(s: FormSchema) -> Dict[str, Any]:
    return build_payload(s)


def schema_from_dict(d: Any) -> FormSchema:
    return normalize_payload(d)


def payload_to_json(payload: Dict[str, Any]) -> str:
    return json.dumps(payload, sort_keys=True)


def payload_from_json(s: str) -> Any:
    try:
        return json.loads(s)
    except json.JSONDecodeError as e:
        raise SchemaLoadError(f"Invalid form JSON: {e}") from e


def payload_to_yaml(payload: Dict[str, Any]) -> str:
    return yaml.safe_dump(payload, sort_keys=True)


def payload_from_yaml(s: str) -> Any:
    try:
        return yaml.safe_load(s)
    except yaml.YAMLError as e:
        raise SchemaLoadError(f"Invalid form YAML: {e}") from e


def schema_to_json(s: FormSchema) -> str:
    return payload_to_json(schema_to_dict(s))


def schema_from_json(s: str) -> FormSchema:
    return schema_from_dict(payload_from_json(s))


def schema_to_yaml(s: FormSchema) -> str:
    return payload_to_yaml(schema_to_dict(s))


def schema_from_yaml(s: str) -> FormSchema:
    return schema_from_dict(payload_from_yaml(s))
