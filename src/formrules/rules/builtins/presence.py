# Copyright (c) 2025 - 2026, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Presence rules: required, accepted, confirm, and the optional/bail markers."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from formrules.utils import is_empty, is_truthy_flag

if TYPE_CHECKING:
    from ..context import EvaluationContext

__all__ = ("accepted", "bail", "confirm", "optional", "required")

ACCEPTED_VALUES = frozenset({"yes", "on", "1", "true"})
CONFIRM_SUFFIX = "_confirm"
TRIM_MODE = "trim"

_MISSING = object()


def required(value: Any, args: Sequence[Any], ctx: EvaluationContext) -> bool:
    """required[:is_required[,trim]] - fails only for empty values.

    `required:false` always passes. With `trim` (or config.trim_required)
    whitespace-only strings count as empty.
    """
    is_required, mode = args[0], args[1]
    if not is_truthy_flag(is_required):
        return True
    if isinstance(value, str) and (mode == TRIM_MODE or ctx.config.trim_required):
        value = value.strip()
    return not is_empty(value)


def accepted(value: Any, args: Sequence[Any], ctx: EvaluationContext) -> bool:
    """Passes for "yes", "on", "1", "true", True and 1."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value == 1
    if isinstance(value, str):
        return value in ACCEPTED_VALUES
    return False


def confirm(value: Any, args: Sequence[Any], ctx: EvaluationContext) -> bool:
    """Value equals the sibling `<field>_confirm` (or the field named by args[0]).

    On a field already named `<field>_confirm`, the sibling is `<field>`.
    """
    target = args[0] if args else None
    if not target:
        name = ctx.field_name
        if not name:
            raise ValueError("confirm needs a field name or an explicit sibling field")
        if name.endswith(CONFIRM_SUFFIX) and len(name) > len(CONFIRM_SUFFIX):
            target = name[: -len(CONFIRM_SUFFIX)]
        else:
            target = f"{name}{CONFIRM_SUFFIX}"

    other = ctx.sibling(target, _MISSING)
    if other is _MISSING:
        return False
    return other == value


def optional(value: Any, args: Sequence[Any], ctx: EvaluationContext) -> bool:
    """Marker: an empty value skips every rule of the field."""
    return True


def bail(value: Any, args: Sequence[Any], ctx: EvaluationContext) -> bool:
    """Marker: collect mode stops at the first failure after this rule."""
    return True
