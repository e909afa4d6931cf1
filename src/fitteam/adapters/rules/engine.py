"""Declarative access rules evaluated at the document store boundary.

A ``RuleSet`` holds path patterns with ``allow`` conditions per operation.
Patterns use ``{name}`` to capture one segment and a leading ``{path=**}``
to match any prefix (needed for collection-group queries). Any matching
rule that returns True grants the operation; no match denies.

List operations are evaluated once per query rather than per document:
the condition sees the query's equality filters through
``RuleContext.field``. A query the rules cannot prove safe fails as a
whole, even if it would have returned nothing.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

import structlog

from fitteam.core.access.types import AccountRole, Identity
from fitteam.core.documents import get_field, segments

if TYPE_CHECKING:
    from fitteam.core.interfaces import DocumentStore

logger = structlog.get_logger()

RECURSIVE = "{path=**}"


class Operation(str, Enum):
    """Store operations a rule can allow."""

    GET = "get"
    LIST = "list"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


READ = frozenset({Operation.GET, Operation.LIST})
WRITE = frozenset({Operation.CREATE, Operation.UPDATE, Operation.DELETE})

_ALIASES: dict[str, frozenset[Operation]] = {
    "read": READ,
    "write": WRITE,
    **{op.value: frozenset({op}) for op in Operation},
}

Condition = Callable[["RuleContext"], Awaitable[bool]]


class RuleContext:
    """Everything a condition may inspect.

    ``get`` sees the store as it is; ``get_after`` sees it as it
    will be once the batch under evaluation commits.
    """

    def __init__(
        self,
        *,
        auth: Identity | None,
        operation: Operation,
        path: str,
        params: Mapping[str, str | None],
        resource: Mapping[str, Any] | None,
        request_data: Mapping[str, Any] | None,
        query_filters: Mapping[str, Any] | None,
        now: datetime,
        store: DocumentStore,
        pending: Mapping[str, Mapping[str, Any] | None] | None = None,
    ) -> None:
        self.auth = auth
        self.operation = operation
        self.path = path
        self.params = params
        self.resource = resource
        self.request_data = request_data
        self.query_filters = query_filters or {}
        self.now = now
        self._store = store
        self._pending = pending or {}
        self._account_role: AccountRole | None = None
        self._account_loaded = False

    @property
    def is_signed_in(self) -> bool:
        """Whether an identity is attached."""
        return self.auth is not None

    @property
    def uid(self) -> str | None:
        """Caller uid, if signed in."""
        return self.auth.uid if self.auth else None

    @property
    def email(self) -> str | None:
        """Caller email, lower-cased."""
        return self.auth.email.lower() if self.auth and self.auth.email else None

    def field(self, name: str) -> Any:
        """Value of ``name`` on the existing resource or, for lists, the query filter."""
        if self.resource is not None:
            return get_field(self.resource, name)[1]
        return self.query_filters.get(name)

    def incoming(self, name: str) -> Any:
        """Value of ``name`` on the document as it would be written."""
        if self.request_data is None:
            return None
        return get_field(self.request_data, name)[1]

    def changed_keys(self) -> set[str]:
        """Top-level keys whose value differs between resource and request."""
        before = dict(self.resource or {})
        after = dict(self.request_data or {})
        return {key for key in before.keys() | after.keys() if before.get(key) != after.get(key)}

    async def get(self, path: str) -> Mapping[str, Any] | None:
        """Read another document, bypassing the rules."""
        doc = await self._store.get(path)
        return doc.data if doc else None

    async def get_after(self, path: str) -> Mapping[str, Any] | None:
        """Read another document as it will be after the pending batch."""
        key = "/".join(segments(path))
        if key in self._pending:
            return self._pending[key]
        return await self.get(key)

    async def account_role(self) -> AccountRole | None:
        """Caller's role from their users/{uid} profile."""
        if not self._account_loaded:
            self._account_loaded = True
            if self.uid is not None:
                profile = await self.get(f"users/{self.uid}")
                if profile and profile.get("role") in {r.value for r in AccountRole}:
                    self._account_role = AccountRole(profile["role"])
        return self._account_role


@dataclass
class Rule:
    """One allow entry."""

    pattern: tuple[str, ...]
    operations: frozenset[Operation]
    condition: Condition
    name: str = ""

    @property
    def recursive(self) -> bool:
        """Whether the pattern starts with a recursive wildcard."""
        return bool(self.pattern) and self.pattern[0] == RECURSIVE

    def match(self, parts: list[str | None]) -> dict[str, str | None] | None:
        """Bind the pattern to path segments. ``None`` segments bind only variables."""
        pattern = list(self.pattern)
        if self.recursive:
            tail = pattern[1:]
            if len(parts) < len(tail):
                return None
            parts = parts[len(parts) - len(tail) :]
            pattern = tail
        if len(pattern) != len(parts):
            return None
        params: dict[str, str | None] = {}
        for expected, actual in zip(pattern, parts, strict=True):
            if expected.startswith("{") and expected.endswith("}"):
                params[expected[1:-1]] = actual
            elif expected != actual:
                return None
        return params


@dataclass
class RuleSet:
    """Ordered collection of rules."""

    rules: list[Rule] = field(default_factory=list)

    def allow(self, pattern: str, *operations: str) -> Callable[[Condition], Condition]:
        """Register ``condition`` for ``operations`` on ``pattern``.

        Usage:
            @rules.allow("users/{uid}", "read", "write")
            async def own_profile(ctx: RuleContext) -> bool:
                return ctx.uid == ctx.params["uid"]
        """
        ops: frozenset[Operation] = frozenset().union(*(_ALIASES[o] for o in operations))
        parts = tuple(pattern.strip("/").split("/"))

        def decorator(condition: Condition) -> Condition:
            self.rules.append(Rule(parts, ops, condition, condition.__name__))
            return condition

        return decorator

    def candidates(
        self, operation: Operation, parts: list[str | None], *, group: bool = False
    ) -> Iterable[tuple[Rule, dict[str, str | None]]]:
        """Rules applying to ``operation`` on the given segments."""
        for rule in self.rules:
            if operation not in rule.operations:
                continue
            if group and not rule.recursive:
                continue
            params = rule.match(parts)
            if params is not None:
                yield rule, params

    async def evaluate(
        self,
        operation: Operation,
        parts: list[str | None],
        build: Callable[[Mapping[str, str | None]], RuleContext],
        *,
        group: bool = False,
    ) -> bool:
        """True if any matching rule allows the operation."""
        for rule, params in self.candidates(operation, parts, group=group):
            context = build(params)
            try:
                if await rule.condition(context):
                    return True
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                # A condition that cannot be evaluated denies
                logger.debug("rule_condition_error", rule=rule.name, error=str(e))
        return False
