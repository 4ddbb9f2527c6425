# Copyright (c) 2025 - 2026, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Rule evaluator: sequential, short-circuiting, sync/async agnostic.

Every predicate result is treated uniformly: awaitables are awaited,
plain booleans are already resolved. At most one predicate is in flight
per call, and evaluation order is exactly parse order.

Algorithm (evaluate):
    1. Empty spec -> pass.
    2. Resolve every rule name against the registry (UnknownRuleError).
    3. A BYPASS rule (optional) next to a RUN rule (required-class) is a
       ConfigurationError.
    4. Empty value and no RUN rule -> pass without invoking anything.
       With a RUN rule present every rule runs, in parse order.
    5. Invoke rules in order; the first False is the ValidationResult.
    6. A predicate that raises aborts with RuleExecutionError.
"""

from __future__ import annotations

import functools
import inspect
import logging
from dataclasses import dataclass
from typing import Any

import anyio

from formrules.errors import ConfigurationError, RuleExecutionError
from formrules.utils import is_empty

from .context import EvaluationContext
from .registry import EmptyPolicy, RuleEntry, RuleRegistry, get_default_registry
from .spec import ParsedRule, RuleSpec, parse

logger = logging.getLogger(__name__)

__all__ = (
    "ALL_PASSED",
    "RuleOutcome",
    "ValidationReport",
    "ValidationResult",
    "evaluate",
    "evaluate_all",
    "validate",
    "validate_sync",
)

BAIL_RULE = "bail"


@dataclass(frozen=True, slots=True)
class RuleOutcome:
    """Result of one predicate invocation.

    Attributes:
        rule_name: Registered name of the rule.
        args: Arguments the predicate received (defaults filled in).
        passed: Predicate answer.
    """

    rule_name: str
    args: tuple[Any, ...]
    passed: bool


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """First failing outcome, or no failure (see ALL_PASSED)."""

    failure: RuleOutcome | None = None

    @property
    def passed(self) -> bool:
        return self.failure is None

    @property
    def rule_name(self) -> str | None:
        return self.failure.rule_name if self.failure else None

    @property
    def args(self) -> tuple[Any, ...]:
        return self.failure.args if self.failure else ()

    def __bool__(self) -> bool:
        return self.passed

    def __repr__(self) -> str:
        if self.failure is None:
            return "ValidationResult(passed)"
        return f"ValidationResult(failed={self.failure.rule_name!r}, args={self.failure.args!r})"


ALL_PASSED = ValidationResult()
"""Sentinel result: every evaluated rule passed."""


@dataclass(frozen=True, slots=True)
class ValidationReport:
    """Every outcome of one collect-mode evaluation, in evaluation order."""

    outcomes: tuple[RuleOutcome, ...] = ()

    @property
    def passed(self) -> bool:
        return all(o.passed for o in self.outcomes)

    @property
    def failures(self) -> list[RuleOutcome]:
        return [o for o in self.outcomes if not o.passed]

    def to_result(self) -> ValidationResult:
        """Collapse to the first failure (or ALL_PASSED)."""
        for outcome in self.outcomes:
            if not outcome.passed:
                return ValidationResult(failure=outcome)
        return ALL_PASSED

    def __len__(self) -> int:
        return len(self.outcomes)


def _resolve(rule_spec: RuleSpec, registry: RuleRegistry) -> list[tuple[ParsedRule, RuleEntry]]:
    return [(r, registry.lookup(r.name)) for r in rule_spec]


def _plan(
    rule_spec: RuleSpec, value: Any, registry: RuleRegistry
) -> list[tuple[ParsedRule, RuleEntry, bool]]:
    """Resolved rules to invoke, each with its stop-on-failure flag."""
    resolved = _resolve(rule_spec, registry)

    plan = []
    bailing = False
    for parsed, entry in resolved:
        plan.append((parsed, entry, bailing or parsed.bail))
        if entry.name == BAIL_RULE:
            bailing = True

    policies = {entry.empty_policy for _, entry in resolved}
    if EmptyPolicy.BYPASS in policies and EmptyPolicy.RUN in policies:
        raise ConfigurationError(
            "An optional rule cannot be combined with a required-class rule",
            details={"rules": rule_spec.names},
        )

    if is_empty(value) and EmptyPolicy.RUN not in policies:
        return []
    return plan


async def _invoke(
    parsed: ParsedRule,
    entry: RuleEntry,
    args: tuple[Any, ...],
    value: Any,
    ctx: EvaluationContext,
) -> bool:
    try:
        result = entry.predicate(value, args, ctx)
        if inspect.isawaitable(result):
            result = await result
    except Exception as e:
        logger.exception(
            "Rule '%s' raised while validating field %r", entry.name, ctx.field_name
        )
        raise RuleExecutionError(
            f"Rule '{entry.name}' failed to execute: {e}",
            details={
                "rule": entry.name,
                "written_as": parsed.name,
                "args": [repr(a) for a in args],
                "field": ctx.field_name,
            },
            cause=e,
        ) from e
    return bool(result)


async def _run(
    rule_spec: RuleSpec,
    value: Any,
    context: EvaluationContext | None,
    registry: RuleRegistry | None,
    *,
    collect: bool,
) -> ValidationReport:
    rule_spec = parse(rule_spec)
    if not rule_spec:
        return ValidationReport()

    registry = registry if registry is not None else get_default_registry()
    ctx = (context or EvaluationContext()).with_value(value)

    outcomes: list[RuleOutcome] = []
    for parsed, entry, stops in _plan(rule_spec, value, registry):
        args = entry.resolve_args(parsed.args)
        passed = await _invoke(parsed, entry, args, value, ctx)
        outcome = RuleOutcome(rule_name=entry.name, args=args, passed=passed)
        outcomes.append(outcome)
        logger.debug(
            "field=%r rule=%s args=%r passed=%s", ctx.field_name, entry.name, args, passed
        )
        if not passed and (stops or not collect):
            break

    report = ValidationReport(outcomes=tuple(outcomes))
    if ctx.config.verbose:
        from formrules.utils.display import render_report

        render_report(report, label=ctx.display_name)
    return report


async def evaluate(
    rule_spec: RuleSpec,
    value: Any,
    context: EvaluationContext | None = None,
    *,
    registry: RuleRegistry | None = None,
) -> ValidationResult:
    """Evaluate rules in order, stopping at the first failure.

    Args:
        rule_spec: Parsed rules (see parse()).
        value: Field value under validation.
        context: Sibling values, field name, label and config.
        registry: Rule lookup (default: process-wide registry).

    Returns:
        First failing RuleOutcome wrapped in ValidationResult, or ALL_PASSED.

    Raises:
        UnknownRuleError: A rule name is not registered.
        ConfigurationError: `optional` combined with a required-class rule.
        RuleExecutionError: A predicate raised instead of answering.
    """
    report = await _run(rule_spec, value, context, registry, collect=False)
    return report.to_result()


async def evaluate_all(
    rule_spec: RuleSpec,
    value: Any,
    context: EvaluationContext | None = None,
    *,
    registry: RuleRegistry | None = None,
) -> ValidationReport:
    """Collect every outcome instead of stopping at the first failure.

    Stops early after a failing '^rule', or any failure following a
    `bail` rule. Same empty-value policy and error propagation as evaluate().
    """
    return await _run(rule_spec, value, context, registry, collect=True)


async def validate(
    spec: Any,
    value: Any,
    context: EvaluationContext | None = None,
    *,
    registry: RuleRegistry | None = None,
) -> ValidationResult:
    """Parse (DSL string or structured list) then evaluate."""
    return await evaluate(parse(spec), value, context, registry=registry)


def validate_sync(
    spec: Any,
    value: Any,
    context: EvaluationContext | None = None,
    *,
    registry: RuleRegistry | None = None,
) -> ValidationResult:
    """Blocking validate() for synchronous hosts.

    Must not be called from inside a running event loop.
    """
    return anyio.run(functools.partial(validate, spec, value, context, registry=registry))

