"""Editor-side state machine for authoring rule documents.

``RuleEditor`` never mutates: each operation returns a new editor holding a
new document, so observers such as a live preview always see a consistent
snapshot. Which nodes are open for editing, and which still need
configuration, is session state and is never written into the document.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Mapping, Optional

from block_conditions.catalog import get_kind
from block_conditions.catalog import needs_config as kind_needs_config
from block_conditions.errors import (
    ConditionNotFoundError,
    InvalidPatchError,
    UnknownConditionKindError,
)
from block_conditions.models import (
    Action,
    ConditionNode,
    ConditionType,
    Logic,
    NodeState,
    RuleDocument,
)
from block_conditions.utils import new_condition_id

logger = logging.getLogger(__name__)

_NODE_FIELDS = ("type", "label", "negate", "params")


def _require_kind(type_value: Any) -> ConditionType:
    kind = get_kind(type_value)
    if kind is None:
        raise UnknownConditionKindError(str(type_value))
    return kind.type


def _merge_params(
    base: Mapping[str, Any], patch: Mapping[str, Any]
) -> dict[str, Any]:
    merged = dict(base)
    for key, value in patch.items():
        if value is None:
            merged.pop(key, None)
        else:
            merged[key] = value
    return merged


@dataclass(frozen=True)
class RuleEditor:
    document: RuleDocument = field(default_factory=RuleDocument)
    editing: frozenset[str] = frozenset()
    pending_config: frozenset[str] = frozenset()
    id_factory: Callable[[], str] = field(default=new_condition_id, compare=False)
    on_change: Optional[Callable[[RuleDocument], None]] = field(
        default=None, compare=False
    )

    @classmethod
    def open(
        cls,
        document: RuleDocument,
        id_factory: Callable[[], str] = new_condition_id,
        on_change: Optional[Callable[[RuleDocument], None]] = None,
    ) -> "RuleEditor":
        return cls(document=document, id_factory=id_factory, on_change=on_change)

    def node(self, condition_id: str) -> ConditionNode:
        node = self.document.find(condition_id)
        if node is None:
            raise ConditionNotFoundError(condition_id)
        return node

    def state_of(self, condition_id: str) -> NodeState:
        self.node(condition_id)
        if condition_id in self.editing:
            return NodeState.EDITING
        return NodeState.COLLAPSED

    def needs_config(self, condition_id: str) -> bool:
        self.node(condition_id)
        return condition_id in self.pending_config

    def _emit(self, **changes: Any) -> "RuleEditor":
        updated = replace(self, **changes)
        if self.on_change is not None:
            self.on_change(updated.document)
        return updated

    def _with_conditions(self, conditions: list[ConditionNode]) -> RuleDocument:
        return replace(self.document, conditions=tuple(conditions))

    def add_condition(
        self, kind: ConditionType | str, label: str = ""
    ) -> "RuleEditor":
        condition_type = _require_kind(kind)
        node_id = self.id_factory()
        while self.document.find(node_id) is not None:
            node_id = self.id_factory()

        node = ConditionNode(id=node_id, type=condition_type.value, label=label)
        document = self._with_conditions([*self.document.conditions, node])
        logger.debug("Added %s condition %s", condition_type.value, node_id)

        if kind_needs_config(condition_type):
            return self._emit(
                document=document,
                editing=self.editing | {node_id},
                pending_config=self.pending_config | {node_id},
            )
        return self._emit(document=document)

    @property
    def last_added(self) -> Optional[ConditionNode]:
        if not self.document.conditions:
            return None
        return self.document.conditions[-1]

    def update_condition(
        self, condition_id: str, patch: Mapping[str, Any]
    ) -> "RuleEditor":
        """Merge ``patch`` into a condition.

        Keys outside ``type``, ``label``, ``negate`` and ``params`` are taken
        as parameters. Changing ``type`` drops every existing parameter.
        """
        node = self.node(condition_id)
        if "id" in patch or "guid" in patch:
            raise InvalidPatchError("the condition id cannot change")

        params_patch: dict[str, Any] = {}
        raw_params = patch.get("params")
        if raw_params is not None:
            if not isinstance(raw_params, Mapping):
                raise InvalidPatchError("params must be a mapping")
            params_patch.update(raw_params)
        for key, value in patch.items():
            if key not in _NODE_FIELDS:
                params_patch[key] = value

        type_value = node.type
        params: Mapping[str, Any] = node.params
        type_changed = False
        if "type" in patch:
            new_type = _require_kind(patch["type"]).value
            if new_type != node.type:
                type_value = new_type
                params = {}
                type_changed = True

        label = node.label
        if "label" in patch:
            label = patch["label"] or ""
            if not isinstance(label, str):
                raise InvalidPatchError("label must be text")

        negate = patch.get("negate", node.negate)
        if not isinstance(negate, bool):
            raise InvalidPatchError("negate must be true or false")

        updated = ConditionNode(
            id=node.id,
            type=type_value,
            label=label,
            negate=negate,
            params=_merge_params(params, params_patch),
        )
        document = self._with_conditions(
            [
                updated if item.id == condition_id else item
                for item in self.document.conditions
            ]
        )

        if type_changed and kind_needs_config(type_value):
            return self._emit(
                document=document,
                editing=self.editing | {condition_id},
                pending_config=self.pending_config | {condition_id},
            )
        if type_changed:
            return self._emit(
                document=document,
                pending_config=self.pending_config - {condition_id},
            )
        return self._emit(document=document)

    def delete_condition(self, condition_id: str) -> "RuleEditor":
        """Remove a condition. Asking the user to confirm is up to the caller."""
        self.node(condition_id)
        document = self._with_conditions(
            [item for item in self.document.conditions if item.id != condition_id]
        )
        return self._emit(
            document=document,
            editing=self.editing - {condition_id},
            pending_config=self.pending_config - {condition_id},
        )

    def begin_edit(self, condition_id: str) -> "RuleEditor":
        self.node(condition_id)
        return self._emit(editing=self.editing | {condition_id})

    def commit_edit(self, condition_id: str) -> "RuleEditor":
        """Collapse a condition; incomplete params are accepted as they are."""
        self.node(condition_id)
        return self._emit(
            editing=self.editing - {condition_id},
            pending_config=self.pending_config - {condition_id},
        )

    def set_action(self, action: Action | str) -> "RuleEditor":
        try:
            value = Action(action)
        except ValueError:
            raise InvalidPatchError(f"unknown action {action!r}") from None
        return self._emit(document=replace(self.document, action=value))

    def set_logic(self, logic: Logic | str) -> "RuleEditor":
        try:
            value = Logic(logic)
        except ValueError:
            raise InvalidPatchError(f"unknown logic {logic!r}") from None
        return self._emit(document=replace(self.document, logic=value))
