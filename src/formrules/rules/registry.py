# Copyright (c) 2025 - 2026, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Rule registry: maps rule names to predicates plus default arguments.

Predicate signature: (value, args, ctx: EvaluationContext) -> bool | Awaitable[bool]

A process-wide default registry is populated with the built-in library on
first use and may be extended by the host application. Registration is
monotonic (add, or replace with override=True). Parsed specs resolve names
lazily on every evaluation, so a late registration becomes visible to the
next run but never to one already in flight; this relaxed consistency is
intentional.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from formrules.errors import ConfigurationError, UnknownRuleError

if TYPE_CHECKING:
    from .context import EvaluationContext

logger = logging.getLogger(__name__)

__all__ = (
    "EmptyPolicy",
    "Predicate",
    "RuleEntry",
    "RuleRegistry",
    "get_default_registry",
    "lookup",
    "register",
    "reset_default_registry",
    "rule",
)

Predicate = Callable[[Any, Sequence[Any], "EvaluationContext"], bool | Awaitable[bool]]
"""Rule predicate: (value, args, ctx) -> bool, or an awaitable resolving to bool."""

_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])([A-Z])")


class EmptyPolicy(str, Enum):
    """How a rule behaves when the field value is empty.

    SKIP: an ordinary rule. Without a RUN rule in the spec, an empty value
        passes before any rule is invoked.
    RUN: a required-class rule (required, accepted). Its presence makes
        every rule of the spec run on empty values too, in parse order.
    BYPASS: marks the field optional (optional); combining it with a RUN
        rule is a ConfigurationError.
    """

    SKIP = "skip"
    RUN = "run"
    BYPASS = "bypass"


@dataclass(frozen=True, slots=True)
class RuleEntry:
    """Registered rule: predicate plus defaults and empty-value policy."""

    name: str
    predicate: Predicate
    defaults: tuple[Any, ...] = ()
    empty_policy: EmptyPolicy = EmptyPolicy.SKIP

    def resolve_args(self, args: Sequence[Any]) -> tuple[Any, ...]:
        """Fill trailing positions the caller omitted from defaults."""
        args = tuple(args)
        if len(args) >= len(self.defaults):
            return args
        return args + self.defaults[len(args) :]

    def __call__(self, value: Any, args: Sequence[Any], ctx: EvaluationContext) -> Any:
        return self.predicate(value, args, ctx)


def to_snake_case(name: str) -> str:
    """endsWith -> ends_with."""
    return _CAMEL_BOUNDARY.sub(r"_\1", name).lower()


class RuleRegistry:
    """Map rule names to RuleEntry records.

    Example:
        registry = RuleRegistry()
        registry.register("even", lambda value, args, ctx: int(value) % 2 == 0)
        entry = registry.lookup("even")
        entry(4, (), ctx)  # True
    """

    def __init__(self):
        """Initialize empty registry."""
        self._entries: dict[str, RuleEntry] = {}

    def register(
        self,
        name: str,
        predicate: Predicate,
        *,
        defaults: Sequence[Any] = (),
        empty_policy: EmptyPolicy | str = EmptyPolicy.SKIP,
        override: bool = False,
    ) -> RuleEntry:
        """Register predicate under name.

        Args:
            name: Rule name used in specs (identifier characters only).
            predicate: (value, args, ctx) -> bool | Awaitable[bool].
            defaults: Default positional args, applied where fewer are given.
            empty_policy: Behavior for empty values (see EmptyPolicy).
            override: Allow replacing an existing rule. Default False.

        Returns:
            The stored RuleEntry.

        Raises:
            ConfigurationError: Invalid name, non-callable predicate, or
                name exists and override=False.
        """
        if not isinstance(name, str) or not _NAME_PATTERN.match(name):
            raise ConfigurationError(
                f"Invalid rule name: {name!r}",
                details={"name": repr(name)},
            )
        if not callable(predicate):
            raise ConfigurationError(
                f"Predicate for rule '{name}' is not callable",
                details={"name": name, "predicate": type(predicate).__name__},
            )
        if name in self._entries and not override:
            raise ConfigurationError(
                f"Rule '{name}' already registered. Use override=True to replace.",
                details={"name": name},
            )

        entry = RuleEntry(
            name=name,
            predicate=predicate,
            defaults=tuple(defaults),
            empty_policy=EmptyPolicy(empty_policy),
        )
        if name in self._entries:
            logger.debug("Overriding rule '%s'", name)
        else:
            logger.debug("Registered rule '%s'", name)
        self._entries[name] = entry
        return entry

    def lookup(self, name: str) -> RuleEntry:
        """Resolve name (camelCase falls back to snake_case).

        Raises:
            UnknownRuleError: If no rule is registered under name.
        """
        entry = self._entries.get(name)
        if entry is None:
            entry = self._entries.get(to_snake_case(name))
        if entry is None:
            raise UnknownRuleError(
                f"Rule '{name}' not registered",
                details={"name": name, "available": self.list_names()},
            )
        return entry

    def get(self, name: str, default: RuleEntry | None = None) -> RuleEntry | None:
        """Like lookup(), but returns default instead of raising."""
        try:
            return self.lookup(name)
        except UnknownRuleError:
            return default

    def has(self, name: str) -> bool:
        return self.get(name) is not None

    def unregister(self, name: str) -> bool:
        """Remove registration. Returns True if existed."""
        if name in self._entries:
            del self._entries[name]
            logger.debug("Unregistered rule '%s'", name)
            return True
        return False

    def list_names(self) -> list[str]:
        return list(self._entries.keys())

    def copy(self) -> RuleRegistry:
        """Independent registry with the same entries."""
        clone = RuleRegistry()
        clone._entries = dict(self._entries)
        return clone

    def __contains__(self, name: str) -> bool:
        return self.has(name)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"RuleRegistry(rules={self.list_names()})"


_default_registry: RuleRegistry | None = None


def get_default_registry() -> RuleRegistry:
    """Process-wide registry, populated with built-in rules on first use."""
    global _default_registry
    if _default_registry is None:
        from .builtins import register_builtins

        registry = RuleRegistry()
        register_builtins(registry)
        _default_registry = registry
    return _default_registry


def reset_default_registry() -> RuleRegistry:
    """Drop custom rules: rebuild the default registry with built-ins only."""
    global _default_registry
    _default_registry = None
    return get_default_registry()


def register(
    name: str,
    predicate: Predicate,
    *,
    defaults: Sequence[Any] = (),
    empty_policy: EmptyPolicy | str = EmptyPolicy.SKIP,
    override: bool = False,
) -> RuleEntry:
    """Register a rule in the default registry."""
    return get_default_registry().register(
        name,
        predicate,
        defaults=defaults,
        empty_policy=empty_policy,
        override=override,
    )


def lookup(name: str) -> RuleEntry:
    """Resolve a rule from the default registry."""
    return get_default_registry().lookup(name)


def rule(
    name: str | None = None,
    *,
    defaults: Sequence[Any] = (),
    empty_policy: EmptyPolicy | str = EmptyPolicy.SKIP,
    override: bool = False,
    registry: RuleRegistry | None = None,
) -> Callable[[Predicate], Predicate]:
    """Decorator registering a predicate (default registry unless given).

    Example:
        @rule("username_free")
        async def username_free(value, args, ctx):
            return not await users.exists(value)
    """

    def decorator(func: Predicate) -> Predicate:
        target = registry if registry is not None else get_default_registry()
        target.register(
            name or func.__name__,
            func,
            defaults=defaults,
            empty_policy=empty_policy,
            override=override,
        )
        return func

    return decorator
