# Copyright (c) 2025 - 2026, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Value introspection shared by the evaluator and built-in rules."""

from __future__ import annotations

import math
from collections.abc import Sized
from decimal import Decimal, InvalidOperation
from typing import Any

__all__ = ("as_text", "is_empty", "is_truthy_flag", "to_number")

_FALSE_FLAGS = frozenset({"false", "no", "off", "0"})


def is_empty(value: Any) -> bool:
    """Emptiness predicate: None, "" and empty collections are empty.

    0 and False are NOT empty; numeric and boolean zero values still reach
    rules such as number/min/max.
    """
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (bool, int, float, Decimal)):
        return False
    if isinstance(value, Sized):
        return len(value) == 0
    return False


def to_number(value: Any) -> int | float | None:
    """Coerce numbers and numeric strings, None when not numeric.

    Booleans are not numbers. NaN is not a number.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return None if math.isnan(value) else value
    if isinstance(value, Decimal):
        return None if value.is_nan() else float(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = Decimal(text)
        except InvalidOperation:
            return None
        return None if number.is_nan() else float(number)
    return None


def as_text(value: Any) -> str | None:
    """Text form of strings and plain numbers, None for anything else."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    return None


def is_truthy_flag(value: Any) -> bool:
    """Interpret a rule flag argument ("false", "no", False, 0 are off)."""
    if isinstance(value, str):
        return value.strip().lower() not in _FALSE_FLAGS
    return bool(value)
