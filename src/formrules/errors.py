# Copyright (c) 2025 - 2026, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Error taxonomy for rule parsing, lookup and execution.

Validation failures are data (RuleOutcome), never exceptions. Everything
raised from here signals a broken setup or a crashing rule:

- ParseError: malformed rule specification, raised at parse time
- UnknownRuleError: rule name missing from the registry at evaluation time
- RuleExecutionError: a predicate raised instead of answering
- ConfigurationError: invalid registration or field setup
"""

from __future__ import annotations

from typing import Any

__all__ = (
    "ConfigurationError",
    "FormrulesError",
    "ParseError",
    "RuleExecutionError",
    "UnknownRuleError",
)


class FormrulesError(Exception):
    """Base error carrying a message, structured details and an optional cause.

    Attributes:
        message: Human-readable description.
        details: Structured context (rule name, args, field, ...).
        cause: Underlying exception, if any.
    """

    default_message: str = "formrules error"

    def __init__(
        self,
        message: str | None = None,
        *,
        details: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ):
        self.message = message or self.default_message
        self.details = dict(details or {})
        self.cause = cause
        super().__init__(self.message)
        if cause is not None:
            self.__cause__ = cause

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain dict (error type, message, details, cause)."""
        data: dict[str, Any] = {
            "error": type(self).__name__,
            "message": self.message,
            "details": self.details,
        }
        if self.cause is not None:
            data["cause"] = f"{type(self.cause).__name__}: {self.cause}"
        return data

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, details={self.details!r})"


class ParseError(FormrulesError, ValueError):
    """Malformed rule specification (empty rule name, unbalanced brackets, ...)."""

    default_message = "Malformed rule specification"


class UnknownRuleError(FormrulesError, LookupError):
    """Rule name has no registered predicate. A configuration error, never a pass."""

    default_message = "Unknown rule"


class RuleExecutionError(FormrulesError):
    """Predicate raised or rejected while evaluating. Distinct from passed=False."""

    default_message = "Rule execution failed"


class ConfigurationError(FormrulesError):
    """Invalid registry or form configuration."""

    default_message = "Invalid configuration"
