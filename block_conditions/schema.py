from typing import Any

from jsonschema import Draft202012Validator

from block_conditions.catalog import get_kind, missing_params
from block_conditions.models import Action, Logic, RuleDocument


DOCUMENT_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "Block display conditions",
    "type": "object",
    "required": ["action", "conditions"],
    "properties": {
        "action": {"enum": [action.value for action in Action]},
        "logic": {"enum": [logic.value for logic in Logic]},
        "conditions": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["id", "type"],
                "properties": {
                    "id": {"type": "string", "minLength": 1},
                    "type": {"type": "string", "minLength": 1},
                    "label": {"type": "string"},
                    "negate": {"type": "boolean"},
                    "params": {"type": "object"},
                },
            },
        },
    },
}


def _format_error(error) -> str:
    location = "/".join(str(part) for part in error.absolute_path)
    if not location:
        return error.message
    return f"{location}: {error.message}"


def validate_payload(payload: Any) -> list[str]:
    """Schema errors for a stored document, plus duplicate id errors."""
    validator = Draft202012Validator(DOCUMENT_SCHEMA)
    errors = sorted(
        validator.iter_errors(payload), key=lambda item: list(item.absolute_path)
    )
    messages = [_format_error(error) for error in errors]

    conditions = payload.get("conditions") if isinstance(payload, dict) else None
    if isinstance(conditions, list):
        seen: set[str] = set()
        for index, item in enumerate(conditions):
            node_id = item.get("id") if isinstance(item, dict) else None
            if not isinstance(node_id, str):
                continue
            if node_id in seen:
                messages.append(f"conditions/{index}/id: duplicate id {node_id!r}")
            seen.add(node_id)
    return messages


def lint_document(document: RuleDocument) -> list[str]:
    warnings: list[str] = []
    for node in document.conditions:
        if get_kind(node.type) is None:
            warnings.append(
                f"{node.id}: unknown condition kind {node.type!r} always matches"
            )
            continue
        missing = missing_params(node.type, node.params)
        if missing:
            warnings.append(
                f"{node.id}: missing {', '.join(missing)}; condition never matches"
            )
    return warnings
