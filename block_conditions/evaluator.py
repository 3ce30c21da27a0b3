"""Evaluate rule documents against an evaluation context.

Every function here is pure and total: malformed or partially filled
conditions degrade to a documented default instead of raising, so a broken
rule can never break rendering of a page.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time
from typing import Any, Callable, Iterable, Mapping

from block_conditions.catalog import display_label, missing_params, split_list
from block_conditions.models import (
    Action,
    ConditionNode,
    ConditionType,
    DateCompare,
    Evaluation,
    EvaluationContext,
    Logic,
    NodeResult,
    RuleDocument,
)

logger = logging.getLogger(__name__)

NodeEvaluator = Callable[[ConditionNode, EvaluationContext], bool]


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _as_text(value: Any) -> str | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    return None


def _parse_moment(value: Any) -> tuple[datetime, bool] | None:
    """Return ``(moment, date_only)`` for a date param, or ``None``."""
    if isinstance(value, datetime):
        return value, False
    if isinstance(value, date):
        return datetime.combine(value, time.min), True
    if not isinstance(value, str):
        return None
    text = value.strip()
    try:
        moment = datetime.fromisoformat(text)
    except ValueError:
        return None
    return moment, len(text) <= len("YYYY-MM-DD")


def _align(now: datetime, moment: datetime) -> tuple[datetime, datetime]:
    if moment.tzinfo is None and now.tzinfo is not None:
        return now, moment.replace(tzinfo=now.tzinfo)
    if moment.tzinfo is not None and now.tzinfo is None:
        return now.replace(tzinfo=moment.tzinfo), moment
    if moment.tzinfo is not None and now.tzinfo is not None:
        return now, moment.astimezone(now.tzinfo)
    return now, moment


def _user_is_logged_in(node: ConditionNode, ctx: EvaluationContext) -> bool:
    return bool(ctx.is_logged_in)


def _user_is_not_logged_in(node: ConditionNode, ctx: EvaluationContext) -> bool:
    return not ctx.is_logged_in


def _user_has_role(node: ConditionNode, ctx: EvaluationContext) -> bool:
    return bool(set(ctx.roles) & set(split_list(node.param("roles"))))


def _post_id(node: ConditionNode, ctx: EvaluationContext) -> bool:
    expected = _as_int(node.param("postId"))
    if expected is None or ctx.content.id is None:
        return False
    return ctx.content.id == expected


def _post_slug(node: ConditionNode, ctx: EvaluationContext) -> bool:
    expected = _as_text(node.param("slug"))
    if expected is None or ctx.content.slug is None:
        return False
    return ctx.content.slug == expected


def _post_has_term(node: ConditionNode, ctx: EvaluationContext) -> bool:
    taxonomy = _as_text(node.param("taxonomy"))
    if taxonomy is None:
        return False
    assigned = ctx.content.terms_by_taxonomy.get(taxonomy, frozenset())
    return bool(set(assigned) & set(split_list(node.param("terms"))))


def _post_status(node: ConditionNode, ctx: EvaluationContext) -> bool:
    expected = _as_text(node.param("status"))
    if expected is None or ctx.content.status is None:
        return False
    return ctx.content.status == expected


def _current_date(node: ConditionNode, ctx: EvaluationContext) -> bool:
    compare = DateCompare.lookup(node.param("compare"))
    parsed = _parse_moment(node.param("date"))
    if compare is None or parsed is None:
        return False
    moment, date_only = parsed
    try:
        now, moment = _align(ctx.now, moment)
    except OverflowError:
        return False

    if compare == DateCompare.SAME_DAY:
        return now.date() == moment.date()
    if date_only:
        if compare == DateCompare.BEFORE:
            return now.date() < moment.date()
        return now.date() > moment.date()
    if compare == DateCompare.BEFORE:
        return now < moment
    return now > moment


def _user_function(node: ConditionNode, ctx: EvaluationContext) -> bool:
    name = _as_text(node.param("function"))
    if name is None:
        return False
    try:
        return ctx.call_user_function(name.strip())
    except Exception as exc:
        logger.warning("User function %r failed: %s", name, exc)
        return False


def _query_string(node: ConditionNode, ctx: EvaluationContext) -> bool:
    parameter = _as_text(node.param("parameter"))
    expected = _as_text(node.param("value"))
    if parameter is None or expected is None:
        return False
    actual = ctx.query_params.get(parameter)
    if actual is None:
        return False
    return actual == expected


NODE_EVALUATORS: dict[ConditionType, NodeEvaluator] = {
    ConditionType.USER_IS_LOGGED_IN: _user_is_logged_in,
    ConditionType.USER_IS_NOT_LOGGED_IN: _user_is_not_logged_in,
    ConditionType.USER_HAS_ROLE: _user_has_role,
    ConditionType.POST_ID: _post_id,
    ConditionType.POST_SLUG: _post_slug,
    ConditionType.POST_HAS_TERM: _post_has_term,
    ConditionType.POST_STATUS: _post_status,
    ConditionType.CURRENT_DATE: _current_date,
    ConditionType.USER_FUNCTION: _user_function,
    ConditionType.QUERY_STRING: _query_string,
}


def evaluate_node(node: ConditionNode, ctx: EvaluationContext) -> bool:
    """Raw result of one condition, before negation."""
    kind = node.kind
    if kind is None:
        logger.debug(
            "Unknown condition kind %r on %s; treated as matched", node.type, node.id
        )
        return True

    params = node.params if isinstance(node.params, Mapping) else {}
    if missing_params(kind, params):
        return False

    try:
        return NODE_EVALUATORS[kind](node, ctx)
    except (TypeError, ValueError, AttributeError, OverflowError) as exc:
        logger.warning(
            "Condition %s (%s) could not be evaluated: %s", node.id, node.type, exc
        )
        return False


def node_result(node: ConditionNode, ctx: EvaluationContext) -> bool:
    """Result of one condition with ``negate`` applied."""
    raw = evaluate_node(node, ctx)
    return raw != bool(node.negate)


def combine(results: Iterable[bool], logic: Logic = Logic.AND) -> bool:
    if logic == Logic.OR:
        return any(results)
    return all(results)


def decide(action: Action, matched: bool) -> bool:
    if action == Action.HIDE:
        return not matched
    return matched


def conditions_matched(document: RuleDocument, ctx: EvaluationContext) -> bool:
    if not document.conditions:
        return True
    return combine(
        (node_result(node, ctx) for node in document.conditions), document.logic
    )


def evaluate(document: RuleDocument, ctx: EvaluationContext) -> bool:
    """Return True when the block governed by ``document`` should render."""
    return decide(document.action, conditions_matched(document, ctx))


def explain(document: RuleDocument, ctx: EvaluationContext) -> Evaluation:
    """Evaluate every condition, without short-circuit, for reporting."""
    results: list[NodeResult] = []
    for node in document.conditions:
        raw = evaluate_node(node, ctx)
        results.append(
            NodeResult(
                node_id=node.id,
                type=node.type,
                label=display_label(node.label, node.type),
                known=node.kind is not None,
                raw=raw,
                result=raw != bool(node.negate),
            )
        )

    matched = True
    if results:
        matched = combine((item.result for item in results), document.logic)
    return Evaluation(
        action=document.action,
        logic=document.logic,
        matched=matched,
        should_render=decide(document.action, matched),
        results=tuple(results),
    )
