# Copyright (c) 2025 - 2026, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""formrules - Declarative field validation engine.

Rule specifications come as a pipe-delimited DSL ("required|min:3,length")
or a structured list ([["matches", re.compile(...)], "required"]). They
are parsed once, resolved against a rule registry and evaluated in order,
sync or async, stopping at the first failing rule.

Top-level re-exports are loaded lazily on first access.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

# Lazy import mapping
_LAZY_IMPORTS: dict[str, tuple[str, str]] = {
    # config
    "ValidatorConfig": ("formrules.config", "ValidatorConfig"),
    # errors
    "ConfigurationError": ("formrules.errors", "ConfigurationError"),
    "FormrulesError": ("formrules.errors", "FormrulesError"),
    "ParseError": ("formrules.errors", "ParseError"),
    "RuleExecutionError": ("formrules.errors", "RuleExecutionError"),
    "UnknownRuleError": ("formrules.errors", "UnknownRuleError"),
    # form
    "FieldRules": ("formrules.form", "FieldRules"),
    "FormValidator": ("formrules.form", "FormValidator"),
    # messages
    "DefaultMessages": ("formrules.messages", "DefaultMessages"),
    "MessageResolver": ("formrules.messages", "MessageResolver"),
    # rules
    "ALL_PASSED": ("formrules.rules", "ALL_PASSED"),
    "EmptyPolicy": ("formrules.rules", "EmptyPolicy"),
    "EvaluationContext": ("formrules.rules", "EvaluationContext"),
    "ParsedRule": ("formrules.rules", "ParsedRule"),
    "RuleEntry": ("formrules.rules", "RuleEntry"),
    "RuleOutcome": ("formrules.rules", "RuleOutcome"),
    "RuleRegistry": ("formrules.rules", "RuleRegistry"),
    "RuleSpec": ("formrules.rules", "RuleSpec"),
    "ValidationReport": ("formrules.rules", "ValidationReport"),
    "ValidationResult": ("formrules.rules", "ValidationResult"),
    "evaluate": ("formrules.rules", "evaluate"),
    "evaluate_all": ("formrules.rules", "evaluate_all"),
    "get_default_registry": ("formrules.rules", "get_default_registry"),
    "lookup": ("formrules.rules", "lookup"),
    "parse": ("formrules.rules", "parse"),
    "register": ("formrules.rules", "register"),
    "reset_default_registry": ("formrules.rules", "reset_default_registry"),
    "rule": ("formrules.rules", "rule"),
    "to_dsl": ("formrules.rules", "to_dsl"),
    "validate": ("formrules.rules", "validate"),
    "validate_sync": ("formrules.rules", "validate_sync"),
    # utils
    "is_empty": ("formrules.utils", "is_empty"),
}

_LOADED: dict[str, object] = {}


def __getattr__(name: str) -> object:
    """Lazy import attributes on first access."""
    if name in _LOADED:
        return _LOADED[name]

    if name in _LAZY_IMPORTS:
        from importlib import import_module

        module_name, attr_name = _LAZY_IMPORTS[name]
        module = import_module(module_name)
        value = getattr(module, attr_name)
        _LOADED[name] = value
        return value

    raise AttributeError(f"module 'formrules' has no attribute {name!r}")


def __dir__() -> list[str]:
    """Return all available attributes for autocomplete."""
    return list(__all__)


# TYPE_CHECKING block for static analysis
if TYPE_CHECKING:
    from formrules.config import ValidatorConfig
    from formrules.errors import (
        ConfigurationError,
        FormrulesError,
        ParseError,
        RuleExecutionError,
        UnknownRuleError,
    )
    from formrules.form import FieldRules, FormValidator
    from formrules.messages import DefaultMessages, MessageResolver
    from formrules.rules import (
        ALL_PASSED,
        EmptyPolicy,
        EvaluationContext,
        ParsedRule,
        RuleEntry,
        RuleOutcome,
        RuleRegistry,
        RuleSpec,
        ValidationReport,
        ValidationResult,
        evaluate,
        evaluate_all,
        get_default_registry,
        lookup,
        parse,
        register,
        reset_default_registry,
        rule,
        to_dsl,
        validate,
        validate_sync,
    )
    from formrules.utils import is_empty

__all__ = tuple(sorted(_LAZY_IMPORTS))
