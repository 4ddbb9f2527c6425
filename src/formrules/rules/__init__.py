# Copyright (c) 2025 - 2026, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Rules module: DSL parsing, rule registry and the evaluation pipeline.

Core exports:
- parse, to_dsl, ParsedRule, RuleSpec: Rule specification parsing
- RuleRegistry, RuleEntry, EmptyPolicy: Name-to-predicate mapping
- EvaluationContext: Read-only sibling view for one evaluation
- evaluate, evaluate_all, validate, validate_sync: Evaluation pipeline
- RuleOutcome, ValidationResult, ValidationReport, ALL_PASSED: Outcomes
"""

from formrules.errors import ParseError, RuleExecutionError, UnknownRuleError

from .context import EvaluationContext
from .evaluator import (
    ALL_PASSED,
    RuleOutcome,
    ValidationReport,
    ValidationResult,
    evaluate,
    evaluate_all,
    validate,
    validate_sync,
)
from .registry import (
    EmptyPolicy,
    Predicate,
    RuleEntry,
    RuleRegistry,
    get_default_registry,
    lookup,
    register,
    reset_default_registry,
    rule,
)
from .spec import ParsedRule, RuleSpec, RuleSpecSource, parse, parse_rule, to_dsl

__all__ = (
    # Parsing
    "ParsedRule",
    "RuleSpec",
    "RuleSpecSource",
    "parse",
    "parse_rule",
    "to_dsl",
    # Registry
    "EmptyPolicy",
    "Predicate",
    "RuleEntry",
    "RuleRegistry",
    "get_default_registry",
    "lookup",
    "register",
    "reset_default_registry",
    "rule",
    # Evaluation
    "ALL_PASSED",
    "EvaluationContext",
    "RuleOutcome",
    "ValidationReport",
    "ValidationResult",
    "evaluate",
    "evaluate_all",
    "validate",
    "validate_sync",
    # Errors
    "ParseError",
    "RuleExecutionError",
    "UnknownRuleError",
)
