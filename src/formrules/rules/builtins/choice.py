# Copyright (c) 2025 - 2026, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Choice rules: in, not, matches."""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from formrules.utils import as_text

if TYPE_CHECKING:
    from ..context import EvaluationContext

__all__ = ("in_", "matches", "not_", "pattern_from_arg")


def _same(item: Any, value: Any) -> bool:
    if isinstance(item, Mapping) and isinstance(value, Mapping):
        return dict(item) == dict(value)
    return item == value


def in_(value: Any, args: Sequence[Any], ctx: EvaluationContext) -> bool:
    """in:a,b,c - value equals one of the arguments."""
    return any(_same(item, value) for item in args)


def not_(value: Any, args: Sequence[Any], ctx: EvaluationContext) -> bool:
    """not:a,b,c - value equals none of the arguments."""
    return not in_(value, args, ctx)


def pattern_from_arg(arg: Any) -> re.Pattern[str] | None:
    """Compiled pattern for re.Pattern args and '/.../' strings, else None.

    Raises:
        re.error: If a '/.../' string is not a valid expression
    """
    if isinstance(arg, re.Pattern):
        return arg
    if isinstance(arg, str) and len(arg) > 2 and arg.startswith("/") and arg.endswith("/"):
        return re.compile(arg[1:-1])
    return None


def matches(value: Any, args: Sequence[Any], ctx: EvaluationContext) -> bool:
    """matches:literal,/pattern/ - equals any literal or matches any pattern."""
    text = as_text(value)
    for arg in args:
        pattern = pattern_from_arg(arg)
        if pattern is None:
            if arg == value:
                return True
        elif text is not None and pattern.search(text):
            return True
    return False
