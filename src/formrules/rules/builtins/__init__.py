# Copyright (c) 2025 - 2026, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Built-in rule library.

Each rule is a pure predicate (value, args, ctx) -> bool; `confirm` and
sibling-referencing `after`/`before` read (never write) the context.

Defaults and empty-value policy:
    required       (True, None)   required-class: the spec runs on empty values
    accepted                      required-class
    optional                      marks the field optional; no required-class rules
    max            (10, None)
    min            (1, None)
    alpha(numeric) ("default",)
    all others take no defaults; an empty value without a required-class
    rule passes before any of them runs
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..registry import EmptyPolicy
from .choice import in_, matches, not_
from .dates import after, before, date_
from .files import mime
from .number import between, max_, min_, number
from .presence import accepted, bail, confirm, optional, required
from .string import alpha, alphanumeric, email, ends_with, starts_with, url

if TYPE_CHECKING:
    from ..registry import RuleRegistry

__all__ = ("BUILTIN_RULES", "register_builtins")

# name -> (predicate, defaults, empty policy)
BUILTIN_RULES = {
    "accepted": (accepted, (), EmptyPolicy.RUN),
    "after": (after, (), EmptyPolicy.SKIP),
    "alpha": (alpha, ("default",), EmptyPolicy.SKIP),
    "alphanumeric": (alphanumeric, ("default",), EmptyPolicy.SKIP),
    "bail": (bail, (), EmptyPolicy.SKIP),
    "before": (before, (), EmptyPolicy.SKIP),
    "between": (between, (), EmptyPolicy.SKIP),
    "confirm": (confirm, (), EmptyPolicy.SKIP),
    "date": (date_, (), EmptyPolicy.SKIP),
    "email": (email, (), EmptyPolicy.SKIP),
    "ends_with": (ends_with, (), EmptyPolicy.SKIP),
    "in": (in_, (), EmptyPolicy.SKIP),
    "matches": (matches, (), EmptyPolicy.SKIP),
    "max": (max_, (10, None), EmptyPolicy.SKIP),
    "mime": (mime, (), EmptyPolicy.SKIP),
    "min": (min_, (1, None), EmptyPolicy.SKIP),
    "not": (not_, (), EmptyPolicy.SKIP),
    "number": (number, (), EmptyPolicy.SKIP),
    "optional": (optional, (), EmptyPolicy.BYPASS),
    "required": (required, (True, None), EmptyPolicy.RUN),
    "starts_with": (starts_with, (), EmptyPolicy.SKIP),
    "url": (url, (), EmptyPolicy.SKIP),
}


def register_builtins(registry: RuleRegistry, *, override: bool = False) -> RuleRegistry:
    """Register every built-in rule into registry."""
    for name, (predicate, defaults, policy) in BUILTIN_RULES.items():
        registry.register(
            name,
            predicate,
            defaults=defaults,
            empty_policy=policy,
            override=override,
        )
    return registry
