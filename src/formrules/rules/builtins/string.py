# Copyright (c) 2025 - 2026, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""String rules: alpha, alphanumeric, email, url, starts_with, ends_with."""

from __future__ import annotations

import re
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from pydantic import AnyUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from formrules.utils import as_text

if TYPE_CHECKING:
    from ..context import EvaluationContext

__all__ = ("alpha", "alphanumeric", "email", "ends_with", "starts_with", "url")

# default: latin letters plus accented Latin-1 letters; latin: ASCII only
ALPHA_CHARSETS: dict[str, re.Pattern[str]] = {
    "default": re.compile(r"^[a-zA-ZÀ-ÖØ-öø-ÿ]+$"),
    "latin": re.compile(r"^[a-zA-Z]+$"),
}
ALPHANUMERIC_CHARSETS: dict[str, re.Pattern[str]] = {
    "default": re.compile(r"^[a-zA-Z0-9À-ÖØ-öø-ÿ]+$"),
    "latin": re.compile(r"^[a-zA-Z0-9]+$"),
}

EMAIL_PATTERN = re.compile(
    r'^(([^<>()\[\].,;:\s@"]+(\.[^<>()\[\].,;:\s@"]+)*)|(".+"))'
    r'@(([^<>()\[\].,;:\s@"]+\.)+[^<>()\[\].,;:\s@"]{2,})$',
    re.IGNORECASE,
)

_URL_ADAPTER = TypeAdapter(AnyUrl)


def _charset(table: dict[str, re.Pattern[str]], name: Any) -> re.Pattern[str]:
    pattern = table.get(str(name))
    if pattern is None:
        raise ValueError(f"Unknown charset {name!r}, expected one of {sorted(table)}")
    return pattern


def alpha(value: Any, args: Sequence[Any], ctx: EvaluationContext) -> bool:
    """alpha[:default|latin] - letters only."""
    pattern = _charset(ALPHA_CHARSETS, args[0])
    text = as_text(value)
    return text is not None and pattern.fullmatch(text) is not None


def alphanumeric(value: Any, args: Sequence[Any], ctx: EvaluationContext) -> bool:
    """alphanumeric[:default|latin] - letters and digits only."""
    pattern = _charset(ALPHANUMERIC_CHARSETS, args[0])
    text = as_text(value)
    return text is not None and pattern.fullmatch(text) is not None


def email(value: Any, args: Sequence[Any], ctx: EvaluationContext) -> bool:
    return isinstance(value, str) and EMAIL_PATTERN.match(value) is not None


def url(value: Any, args: Sequence[Any], ctx: EvaluationContext) -> bool:
    """Absolute URL with a scheme and a host."""
    if not isinstance(value, str) or any(c.isspace() for c in value):
        return False
    try:
        parsed = _URL_ADAPTER.validate_python(value)
    except PydanticValidationError:
        return False
    return bool(parsed.host)


def starts_with(value: Any, args: Sequence[Any], ctx: EvaluationContext) -> bool:
    """starts_with:a,b - string begins with any argument (no args: passes)."""
    if not isinstance(value, str):
        return False
    return not args or any(value.startswith(str(a)) for a in args)


def ends_with(value: Any, args: Sequence[Any], ctx: EvaluationContext) -> bool:
    """ends_with:a,b - string ends with any argument (no args: passes)."""
    if not isinstance(value, str):
        return False
    return not args or any(value.endswith(str(a)) for a in args)
