"""Convert rule documents to and from their stored payload."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Mapping

import yaml

from block_conditions.constants import RESERVED_NODE_KEYS
from block_conditions.errors import InvalidDocumentFormatError, MissingDocumentFileError
from block_conditions.models import Action, ConditionNode, Logic, RuleDocument
from block_conditions.utils import new_condition_id, read_structured, write_structured


def _parse_action(value: Any) -> Action:
    if isinstance(value, str) and value.strip().lower() == Action.HIDE.value:
        return Action.HIDE
    return Action.SHOW


def _parse_logic(value: Any) -> Logic:
    if isinstance(value, str) and value.strip().lower() == Logic.OR.value:
        return Logic.OR
    return Logic.AND


def _parse_params(raw: Mapping[str, Any]) -> dict[str, Any]:
    params = raw.get("params")
    if isinstance(params, Mapping):
        return {str(key): value for key, value in params.items()}
    # Older documents stored params next to the condition fields.
    return {
        str(key): value
        for key, value in raw.items()
        if key not in RESERVED_NODE_KEYS
    }


def _parse_node(
    raw: Any, seen: set[str], id_factory: Callable[[], str]
) -> ConditionNode | None:
    if not isinstance(raw, Mapping):
        return None
    type_value = raw.get("type")
    if not isinstance(type_value, str) or not type_value.strip():
        return None

    node_id = raw.get("id", raw.get("guid"))
    if not isinstance(node_id, str) or not node_id or node_id in seen:
        node_id = id_factory()
    seen.add(node_id)

    label = raw.get("label")
    return ConditionNode(
        id=node_id,
        type=type_value.strip(),
        label=label if isinstance(label, str) else "",
        negate=raw.get("negate") is True,
        params=_parse_params(raw),
    )


def document_from_payload(
    payload: Any, id_factory: Callable[[], str] = new_condition_id
) -> RuleDocument:
    """Build a document from stored data; malformed parts are dropped."""
    if not isinstance(payload, Mapping):
        return RuleDocument()

    raw_conditions = payload.get("conditions")
    if not isinstance(raw_conditions, list):
        raw_conditions = []

    seen: set[str] = set()
    conditions: list[ConditionNode] = []
    for raw in raw_conditions:
        node = _parse_node(raw, seen, id_factory)
        if node is not None:
            conditions.append(node)

    return RuleDocument(
        action=_parse_action(payload.get("action")),
        conditions=tuple(conditions),
        logic=_parse_logic(payload.get("logic")),
    )


def node_to_payload(node: ConditionNode) -> dict[str, Any]:
    return {
        "id": node.id,
        "type": node.type,
        "label": node.label,
        "negate": node.negate,
        "params": dict(node.params),
    }


def document_to_payload(document: RuleDocument) -> dict[str, Any]:
    payload: dict[str, Any] = {"action": document.action.value}
    if document.logic != Logic.AND:
        payload["logic"] = document.logic.value
    payload["conditions"] = [node_to_payload(node) for node in document.conditions]
    return payload


def read_payload(path: Path) -> Any:
    if not path.exists():
        raise MissingDocumentFileError(path)
    try:
        return read_structured(path)
    except (json.JSONDecodeError, yaml.YAMLError, UnicodeDecodeError) as exc:
        raise InvalidDocumentFormatError(path, str(exc)) from exc


def load_document(path: Path) -> RuleDocument:
    return document_from_payload(read_payload(path))


def save_document(path: Path, document: RuleDocument) -> None:
    write_structured(path, document_to_payload(document))
