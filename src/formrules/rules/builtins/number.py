# Copyright (c) 2025 - 2026, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Numeric rules: number, between, min, max.

Measurement basis:
    - collections (list, tuple, set, dict, ...) always compare by length
    - numeric values and numeric strings compare by value, unless mode=length
    - other strings compare by length, unless mode=value (then they fail)

Bounds: between is exclusive on both ends; min and max are inclusive.
"""

from __future__ import annotations

from collections.abc import Sequence, Sized
from typing import TYPE_CHECKING, Any

from formrules.utils import to_number

if TYPE_CHECKING:
    from ..context import EvaluationContext

__all__ = ("between", "max_", "measure", "min_", "number")

LENGTH = "length"
VALUE = "value"
_MODES = (None, "", LENGTH, VALUE)


def _bound(rule: str, arg: Any) -> int | float:
    bound = to_number(arg)
    if bound is None:
        raise ValueError(f"{rule} expects a numeric bound, got {arg!r}")
    return bound


def measure(value: Any, mode: Any = None) -> int | float | None:
    """Quantity compared by between/min/max, None when not measurable.

    Raises:
        ValueError: If mode is not 'length', 'value' or empty
    """
    if mode not in _MODES:
        raise ValueError(f"Unknown comparison mode {mode!r}, expected 'length' or 'value'")

    if isinstance(value, str):
        if mode == LENGTH:
            return len(value)
        numeric = to_number(value)
        if mode == VALUE or numeric is not None:
            return numeric
        return len(value)

    if isinstance(value, bool):
        return None

    numeric = to_number(value)
    if numeric is not None:
        return len(str(value)) if mode == LENGTH else numeric

    if isinstance(value, Sized):
        return len(value)
    return None


def number(value: Any, args: Sequence[Any], ctx: EvaluationContext) -> bool:
    """Numbers and numeric strings; booleans and NaN are not numbers."""
    return to_number(value) is not None


def between(value: Any, args: Sequence[Any], ctx: EvaluationContext) -> bool:
    """between:low,high[,length|value] - strictly between the bounds."""
    if len(args) < 2:
        raise ValueError("between expects two bounds")
    low = _bound("between", args[0])
    high = _bound("between", args[1])
    size = measure(value, args[2] if len(args) > 2 else None)
    return size is not None and low < size < high


def max_(value: Any, args: Sequence[Any], ctx: EvaluationContext) -> bool:
    """max[:limit=10[,length|value]] - at most limit (inclusive)."""
    limit = _bound("max", args[0])
    size = measure(value, args[1])
    return size is not None and size <= limit


def min_(value: Any, args: Sequence[Any], ctx: EvaluationContext) -> bool:
    """min[:limit=1[,length|value]] - at least limit (inclusive)."""
    limit = _bound("min", args[0])
    size = measure(value, args[1])
    return size is not None and size >= limit
