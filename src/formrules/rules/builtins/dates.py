# Copyright (c) 2025 - 2026, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Date rules: date, after, before.

Parsing accepts date/datetime objects, ISO 8601 strings (via pydantic)
and a few common written forms. Aware datetimes are normalized to naive
UTC; naive values are taken as UTC.

`date:<format>` only checks token positions (YYYY, YY, MM, M, DD, D);
it does not check calendar validity ("02/31/2020" passes MM/DD/YYYY).
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from datetime import UTC, date, datetime
from functools import lru_cache
from typing import TYPE_CHECKING, Any

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from formrules.utils import to_number

if TYPE_CHECKING:
    from ..context import EvaluationContext

__all__ = ("after", "before", "date_", "parse_date", "regex_for_format")

FORMAT_TOKENS: dict[str, str] = {
    "YYYY": r"\d{4}",
    "YY": r"\d{2}",
    "MM": r"(0[1-9]|1[0-2])",
    "M": r"([1-9]|1[0-2])",
    "DD": r"(0[1-9]|[12][0-9]|3[01])",
    "D": r"([1-9]|[12][0-9]|3[01])",
}
_TOKEN_PATTERN = re.compile("|".join(sorted(FORMAT_TOKENS, key=len, reverse=True)))

WRITTEN_FORMATS = ("%m/%d/%Y", "%B %d, %Y", "%b %d, %Y", "%d %B %Y", "%d %b %Y")

_DATETIME_ADAPTER = TypeAdapter(datetime)
_DATE_ADAPTER = TypeAdapter(date)


def _naive_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(UTC).replace(tzinfo=None)


def parse_date(value: Any) -> datetime | None:
    """Best-effort conversion to a naive UTC datetime, None when unparseable."""
    if isinstance(value, datetime):
        return _naive_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str):
        return None

    text = value.strip()
    # bare numbers would otherwise be read as unix timestamps
    if not text or to_number(text) is not None:
        return None

    for adapter in (_DATETIME_ADAPTER, _DATE_ADAPTER):
        try:
            parsed = adapter.validate_python(text)
        except PydanticValidationError:
            continue
        return parse_date(parsed)

    for fmt in WRITTEN_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


@lru_cache(maxsize=64)
def regex_for_format(fmt: str) -> re.Pattern[str]:
    """Compile a token format (e.g. MM/DD/YYYY) into a full-match pattern."""
    parts = []
    position = 0
    for match in _TOKEN_PATTERN.finditer(fmt):
        parts.append(re.escape(fmt[position : match.start()]))
        parts.append(FORMAT_TOKENS[match.group()])
        position = match.end()
    parts.append(re.escape(fmt[position:]))
    return re.compile("".join(parts))


def date_(value: Any, args: Sequence[Any], ctx: EvaluationContext) -> bool:
    """date[:format] - parseable date, or token-shaped when a format is given."""
    fmt = args[0] if args else None
    if not fmt:
        return parse_date(value) is not None
    return isinstance(value, str) and regex_for_format(str(fmt)).fullmatch(value) is not None


def _reference(rule: str, args: Sequence[Any], ctx: EvaluationContext) -> datetime | None:
    """Comparison moment: args[0] (a date or a sibling field name), else now.

    None when the named sibling holds no parseable date.
    """
    arg = args[0] if args else None
    if arg is None or arg == "":
        return datetime.now(UTC).replace(tzinfo=None)
    if isinstance(arg, str) and ctx.has(arg):
        return parse_date(ctx.sibling(arg))
    moment = parse_date(arg)
    if moment is None:
        raise ValueError(f"{rule} expects a date argument, got {arg!r}")
    return moment


def after(value: Any, args: Sequence[Any], ctx: EvaluationContext) -> bool:
    """after[:date|field] - strictly later than the reference (default now)."""
    reference = _reference("after", args, ctx)
    moment = parse_date(value)
    return reference is not None and moment is not None and moment > reference


def before(value: Any, args: Sequence[Any], ctx: EvaluationContext) -> bool:
    """before[:date|field] - strictly earlier than the reference (default now)."""
    reference = _reference("before", args, ctx)
    moment = parse_date(value)
    return reference is not None and moment is not None and moment < reference
