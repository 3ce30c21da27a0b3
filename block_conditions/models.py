from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Mapping, Optional


class Action(str, Enum):
    SHOW = "show"
    HIDE = "hide"


class Logic(str, Enum):
    AND = "and"
    OR = "or"


class ConditionType(str, Enum):
    USER_IS_LOGGED_IN = "user_is_logged_in"
    USER_IS_NOT_LOGGED_IN = "user_is_not_logged_in"
    USER_HAS_ROLE = "user_has_role"
    POST_ID = "post_id"
    POST_SLUG = "post_slug"
    POST_HAS_TERM = "post_has_term"
    POST_STATUS = "post_status"
    CURRENT_DATE = "current_date"
    USER_FUNCTION = "user_function"
    QUERY_STRING = "query_string"

    @classmethod
    def lookup(cls, value: Any) -> Optional["ConditionType"]:
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


class PostStatus(str, Enum):
    PUBLISH = "publish"
    DRAFT = "draft"
    PRIVATE = "private"
    PENDING = "pending"


class DateCompare(str, Enum):
    BEFORE = "before"
    AFTER = "after"
    SAME_DAY = "same-day"

    @classmethod
    def lookup(cls, value: Any) -> Optional["DateCompare"]:
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        normalized = value.strip().lower().replace(" ", "-").replace("_", "-")
        try:
            return cls(normalized)
        except ValueError:
            return None


class NodeState(str, Enum):
    COLLAPSED = "collapsed"
    EDITING = "editing"


@dataclass(frozen=True)
class ConditionNode:
    id: str
    type: str
    label: str = ""
    negate: bool = False
    params: Mapping[str, Any] = field(default_factory=dict)

    @property
    def kind(self) -> Optional[ConditionType]:
        return ConditionType.lookup(self.type)

    def param(self, name: str, default: Any = None) -> Any:
        return self.params.get(name, default)


@dataclass(frozen=True)
class RuleDocument:
    action: Action = Action.SHOW
    conditions: tuple[ConditionNode, ...] = ()
    logic: Logic = Logic.AND

    def find(self, condition_id: str) -> Optional[ConditionNode]:
        for node in self.conditions:
            if node.id == condition_id:
                return node
        return None

    def ids(self) -> list[str]:
        return [node.id for node in self.conditions]


@dataclass(frozen=True)
class ContentFacts:
    id: Optional[int] = None
    slug: Optional[str] = None
    status: Optional[str] = None
    terms_by_taxonomy: Mapping[str, frozenset[str]] = field(default_factory=dict)


FunctionResolver = Callable[[str], Optional[Callable[[], Any]]]


@dataclass(frozen=True)
class EvaluationContext:
    """Runtime facts a rule document is evaluated against.

    Built by the host for every render request. ``resolver`` maps a
    user-defined function name to a zero-argument callable, or ``None`` when
    the name cannot be resolved.
    """

    is_logged_in: bool = False
    roles: frozenset[str] = frozenset()
    content: ContentFacts = field(default_factory=ContentFacts)
    now: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    query_params: Mapping[str, str] = field(default_factory=dict)
    resolver: Optional[FunctionResolver] = None

    def call_user_function(self, name: str) -> bool:
        if self.resolver is None or not name:
            return False
        function = self.resolver(name)
        if function is None:
            return False
        return bool(function())


@dataclass(frozen=True)
class NodeResult:
    node_id: str
    type: str
    label: str
    known: bool
    raw: bool
    result: bool


@dataclass(frozen=True)
class Evaluation:
    action: Action
    logic: Logic
    matched: bool
    should_render: bool
    results: tuple[NodeResult, ...] = ()

    def as_dict(self) -> dict[str, Any]:
        return {
            "action": self.action.value,
            "logic": self.logic.value,
            "matched": self.matched,
            "should_render": self.should_render,
            "results": [
                {
                    "id": item.node_id,
                    "type": item.type,
                    "label": item.label,
                    "known": item.known,
                    "raw": item.raw,
                    "result": item.result,
                }
                for item in self.results
            ],
        }
