"""Build evaluation contexts outside a host platform (CLI, tests, previews)."""

from __future__ import annotations

import importlib
import logging
from datetime import date, datetime, time, timezone, tzinfo
from typing import Any, Callable, Mapping, Optional

from block_conditions.errors import InvalidContextError
from block_conditions.models import ContentFacts, EvaluationContext, FunctionResolver

logger = logging.getLogger(__name__)


class ImportFunctionResolver:
    """Resolve registered user function names to ``module:attribute`` targets.

    Names that are not registered, or whose target cannot be imported, resolve
    to ``None`` so the condition using them is false.
    """

    def __init__(self, targets: Mapping[str, str]) -> None:
        self.targets = dict(targets)

    def __call__(self, name: str) -> Optional[Callable[[], Any]]:
        path = self.targets.get(name)
        if path is None:
            return None
        module_name, sep, attribute = path.partition(":")
        if not sep or not module_name or not attribute:
            logger.warning("User function %r has a malformed target %r", name, path)
            return None
        try:
            target: Any = importlib.import_module(module_name)
            for part in attribute.split("."):
                target = getattr(target, part)
        except (ImportError, AttributeError) as exc:
            logger.warning("User function %r cannot be resolved: %s", name, exc)
            return None
        if not callable(target):
            return None
        return target


def _section(payload: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = payload.get(key)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise InvalidContextError(f"{key} must be a mapping")
    return value


def _strings(value: Any, key: str) -> frozenset[str]:
    if value is None:
        return frozenset()
    if isinstance(value, str):
        return frozenset(item.strip() for item in value.split(",") if item.strip())
    if not isinstance(value, (list, tuple, set, frozenset)):
        raise InvalidContextError(f"{key} must be a list")
    return frozenset(str(item) for item in value)


def _content(section: Mapping[str, Any]) -> ContentFacts:
    content_id = section.get("id")
    if content_id is not None:
        if isinstance(content_id, bool):
            raise InvalidContextError("content.id must be an integer")
        try:
            content_id = int(content_id)
        except (TypeError, ValueError):
            raise InvalidContextError("content.id must be an integer") from None

    terms = section.get("terms") or {}
    if not isinstance(terms, Mapping):
        raise InvalidContextError("content.terms must map taxonomies to term slugs")

    slug = section.get("slug")
    status = section.get("status")
    return ContentFacts(
        id=content_id,
        slug=None if slug is None else str(slug),
        status=None if status is None else str(status),
        terms_by_taxonomy={
            str(taxonomy): _strings(items, f"content.terms.{taxonomy}")
            for taxonomy, items in terms.items()
        },
    )


def parse_now(value: Any, tz: Optional[tzinfo] = None) -> datetime:
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, date):
        moment = datetime.combine(value, time.min)
    elif isinstance(value, str):
        try:
            moment = datetime.fromisoformat(value.strip())
        except ValueError:
            raise InvalidContextError(f"now is not an ISO timestamp: {value}") from None
    else:
        raise InvalidContextError("now must be an ISO timestamp")
    if moment.tzinfo is None and tz is not None:
        moment = moment.replace(tzinfo=tz)
    return moment


def context_from_payload(
    payload: Any,
    *,
    now: Optional[datetime] = None,
    resolver: Optional[FunctionResolver] = None,
    tz: Optional[tzinfo] = None,
) -> EvaluationContext:
    if payload is None:
        payload = {}
    if not isinstance(payload, Mapping):
        raise InvalidContextError("expected a mapping at the top level")

    user = _section(payload, "user")
    query = _section(payload, "query")

    logged_in = user.get("logged_in", False)
    if not isinstance(logged_in, bool):
        raise InvalidContextError("user.logged_in must be true or false")

    if now is None:
        if payload.get("now") is not None:
            now = parse_now(payload["now"], tz)
        else:
            now = datetime.now(tz or timezone.utc)

    return EvaluationContext(
        is_logged_in=logged_in,
        roles=_strings(user.get("roles"), "user.roles"),
        content=_content(_section(payload, "content")),
        now=now,
        query_params={str(key): str(value) for key, value in query.items()},
        resolver=resolver,
    )
