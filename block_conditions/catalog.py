"""Condition-kind catalog shared by the evaluator and the authoring forms."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Mapping

from block_conditions.errors import InvalidParamValueError
from block_conditions.models import ConditionType, DateCompare, PostStatus


class ParamKind(str, Enum):
    INTEGER = "integer"
    TEXT = "text"
    LIST = "list"
    CHOICE = "choice"
    DATE = "date"


class ConditionGroup(str, Enum):
    USER = "User Conditions"
    POST = "Post Conditions"
    DATE = "Date Conditions"
    ADVANCED = "Advanced"


def split_list(value: Any) -> list[str]:
    """Normalize a list param; comma separated text is accepted too."""
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple, set, frozenset)):
        items = [item for item in value if isinstance(item, (str, int))]
    else:
        return []
    return [str(item).strip() for item in items if str(item).strip()]


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set, frozenset)):
        return not split_list(value)
    return False


@dataclass(frozen=True)
class ParamField:
    name: str
    label: str
    kind: ParamKind
    help: str = ""
    choices: tuple[str, ...] = ()

    def coerce(self, raw: str) -> Any:
        """Turn form text into the value stored on the condition."""
        text = raw.strip()
        if self.kind == ParamKind.INTEGER:
            try:
                return int(text)
            except ValueError:
                raise InvalidParamValueError(
                    self.name, raw, "expected an integer"
                ) from None
        if self.kind == ParamKind.LIST:
            return split_list(text)
        if self.kind == ParamKind.CHOICE:
            value = text
            if self.name == "compare":
                compare = DateCompare.lookup(text)
                value = compare.value if compare is not None else text
            if value not in self.choices:
                raise InvalidParamValueError(
                    self.name, raw, f"expected one of {', '.join(self.choices)}"
                )
            return value
        if self.kind == ParamKind.DATE:
            try:
                datetime.fromisoformat(text)
            except ValueError:
                raise InvalidParamValueError(
                    self.name, raw, "expected an ISO date such as 2024-05-01"
                ) from None
        return text


@dataclass(frozen=True)
class ConditionKind:
    type: ConditionType
    label: str
    group: ConditionGroup
    description: str
    params: tuple[ParamField, ...] = field(default_factory=tuple)

    @property
    def needs_config(self) -> bool:
        return bool(self.params)

    @property
    def required_params(self) -> tuple[str, ...]:
        return tuple(item.name for item in self.params)

    def param_field(self, name: str) -> ParamField | None:
        for item in self.params:
            if item.name == name:
                return item
        return None


_STATUS_CHOICES = tuple(status.value for status in PostStatus)
_COMPARE_CHOICES = tuple(compare.value for compare in DateCompare)


CATALOG: dict[ConditionType, ConditionKind] = {
    ConditionType.USER_IS_LOGGED_IN: ConditionKind(
        type=ConditionType.USER_IS_LOGGED_IN,
        label="User Is Logged In",
        group=ConditionGroup.USER,
        description="Returns true if a user is logged in.",
    ),
    ConditionType.USER_IS_NOT_LOGGED_IN: ConditionKind(
        type=ConditionType.USER_IS_NOT_LOGGED_IN,
        label="User Is Not Logged In",
        group=ConditionGroup.USER,
        description="Returns true if a user is not logged in.",
    ),
    ConditionType.USER_HAS_ROLE: ConditionKind(
        type=ConditionType.USER_HAS_ROLE,
        label="User Has Role",
        group=ConditionGroup.USER,
        description="Returns true if the user is assigned to any of the selected roles.",
        params=(
            ParamField(
                name="roles",
                label="User Roles",
                kind=ParamKind.LIST,
                help="Role names separated by commas (e.g. administrator, editor)",
            ),
        ),
    ),
    ConditionType.POST_ID: ConditionKind(
        type=ConditionType.POST_ID,
        label="Check Post ID",
        group=ConditionGroup.POST,
        description="Returns true if the post has the specified ID.",
        params=(
            ParamField(
                name="postId",
                label="Post ID",
                kind=ParamKind.INTEGER,
                help="The post ID number",
            ),
        ),
    ),
    ConditionType.POST_SLUG: ConditionKind(
        type=ConditionType.POST_SLUG,
        label="Check Post Slug",
        group=ConditionGroup.POST,
        description="Returns true if the post has the specified slug.",
        params=(
            ParamField(
                name="slug",
                label="Post Slug",
                kind=ParamKind.TEXT,
                help="The post slug (URL name)",
            ),
        ),
    ),
    ConditionType.POST_HAS_TERM: ConditionKind(
        type=ConditionType.POST_HAS_TERM,
        label="Post Has a Term",
        group=ConditionGroup.POST,
        description="Returns true if the post has the selected term(s) assigned.",
        params=(
            ParamField(
                name="taxonomy",
                label="Taxonomy",
                kind=ParamKind.TEXT,
                help="Taxonomy name (e.g. category, post_tag)",
            ),
            ParamField(
                name="terms",
                label="Terms",
                kind=ParamKind.LIST,
                help="Term slugs separated by commas",
            ),
        ),
    ),
    ConditionType.POST_STATUS: ConditionKind(
        type=ConditionType.POST_STATUS,
        label="Check Post Status",
        group=ConditionGroup.POST,
        description="Returns true if post status matches the selected option.",
        params=(
            ParamField(
                name="status",
                label="Post Status",
                kind=ParamKind.CHOICE,
                choices=_STATUS_CHOICES,
            ),
        ),
    ),
    ConditionType.CURRENT_DATE: ConditionKind(
        type=ConditionType.CURRENT_DATE,
        label="Check The Date",
        group=ConditionGroup.DATE,
        description="Returns true if the current date matches the specified conditions.",
        params=(
            ParamField(
                name="compare",
                label="Compare",
                kind=ParamKind.CHOICE,
                choices=_COMPARE_CHOICES,
            ),
            ParamField(
                name="date",
                label="Date",
                kind=ParamKind.DATE,
                help="Date in YYYY-MM-DD format, optionally with a time",
            ),
        ),
    ),
    ConditionType.USER_FUNCTION: ConditionKind(
        type=ConditionType.USER_FUNCTION,
        label="Check a User-Defined Function",
        group=ConditionGroup.ADVANCED,
        description="Returns the result of a user-defined function.",
        params=(
            ParamField(
                name="function",
                label="Function Name",
                kind=ParamKind.TEXT,
                help="Name of a registered function to call",
            ),
        ),
    ),
    ConditionType.QUERY_STRING: ConditionKind(
        type=ConditionType.QUERY_STRING,
        label="Check a Query String Value",
        group=ConditionGroup.ADVANCED,
        description="Returns true if the specified query string parameter is matched.",
        params=(
            ParamField(
                name="parameter",
                label="Parameter Name",
                kind=ParamKind.TEXT,
                help="The query parameter name",
            ),
            ParamField(
                name="value",
                label="Parameter Value",
                kind=ParamKind.TEXT,
                help="The value to check for",
            ),
        ),
    ),
}


def get_kind(type_value: Any) -> ConditionKind | None:
    condition_type = ConditionType.lookup(type_value)
    if condition_type is None:
        return None
    return CATALOG[condition_type]


def default_label(type_value: Any) -> str:
    kind = get_kind(type_value)
    if kind is None:
        return str(type_value)
    return kind.label


def display_label(label: str, type_value: Any) -> str:
    return label.strip() if label and label.strip() else default_label(type_value)


def grouped_kinds() -> dict[ConditionGroup, list[ConditionKind]]:
    groups: dict[ConditionGroup, list[ConditionKind]] = {}
    for kind in CATALOG.values():
        groups.setdefault(kind.group, []).append(kind)
    return groups


def needs_config(type_value: Any) -> bool:
    kind = get_kind(type_value)
    return kind is not None and kind.needs_config


def missing_params(type_value: Any, params: Mapping[str, Any]) -> list[str]:
    kind = get_kind(type_value)
    if kind is None:
        return []
    return [name for name in kind.required_params if is_blank(params.get(name))]
