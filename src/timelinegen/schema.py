"""
Strict validation of export files against a JSON Schema generated from the models.

This only reports problems. Importing never depends on it: the sanitizer repairs
whatever it is given.
"""
from typing import Any, Dict, List

from jsonschema import Draft202012Validator
from pydantic import ValidationError

from .logs import get_logger
from .models import ExportEnvelope

log = get_logger("schema")

SCHEMA_DIALECT = "https://json-schema.org/draft/2020-12/schema"

def export_schema() -> Dict[str, Any]:
    """JSON Schema of the export envelope, using the camelCase wire names."""
    schema = ExportEnvelope.model_json_schema(by_alias=True)
    schema["$schema"] = SCHEMA_DIALECT
    return schema

def _location(path) -> str:
    return "/".join(str(part) for part in path) or "(root)"

def validate_payload(data: Any) -> List[str]:
    """
    Check an export payload without repairing it.

    Structural problems come from the JSON Schema. When the structure is sound, the
    cross-field rules (unique ids, items inside the week count) are checked as well.

    Returns:
        Human readable problems; an empty list means the payload is valid.
    """
    validator = Draft202012Validator(export_schema())
    errors = sorted(validator.iter_errors(data), key=lambda e: [str(part) for part in e.absolute_path])
    problems = [f"{_location(e.absolute_path)}: {e.message}" for e in errors]
    if problems:
        log.info(f"Payload failed schema validation with {len(problems)} problem(s)")
        return problems

    try:
        ExportEnvelope.model_validate(data)
    except ValidationError as e:
        problems = [f"{_location(err['loc'])}: {err['msg']}" for err in e.errors()]
        log.info(f"Payload failed model validation with {len(problems)} problem(s)")
    return problems
