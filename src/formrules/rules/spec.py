# Copyright (c) 2025 - 2026, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Rule specification parsing.

Two surface syntaxes funnel into one canonical RuleSpec:

String DSL (terse, human-authored):
    "required|min:3,length|^email"
    - rules separated by '|', arguments by ','
    - '^' prefix marks a bail rule (stop collecting after it fails)
    - '/.../' arguments are kept verbatim (commas inside them are allowed)
    - every argument stays a string; rules coerce their own arguments

Structured list (precise, programmatic):
    ["required", ["matches", re.compile(r"^\\d+$")], ["between", 1, 10]]
    - elements are rule strings or [name, *args] sequences
    - args pass through as native values (numbers, bools, patterns, dates)

Parsing is pure and rule-agnostic: names are resolved against the
registry at evaluation time, not here.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from functools import lru_cache
from typing import Any

from formrules.errors import ParseError

__all__ = (
    "ParsedRule",
    "RuleSpec",
    "RuleSpecSource",
    "parse",
    "parse_rule",
    "to_dsl",
)

RULE_SEPARATOR = "|"
ARG_SEPARATOR = ","
NAME_SEPARATOR = ":"
BAIL_PREFIX = "^"

_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_RESERVED_CHARS = (RULE_SEPARATOR, ARG_SEPARATOR, "[", "]")
_BRACKETS = {"[": 1, "]": -1}


@dataclass(frozen=True, slots=True)
class ParsedRule:
    """One rule invocation: name plus ordered arguments.

    Attributes:
        name: Rule name as written (resolved lazily against the registry).
        args: Positional arguments, strings in the DSL form, native otherwise.
        is_regex: True when any argument is a compiled pattern or a '/.../' literal.
        bail: Stop collecting further outcomes if this rule fails.
    """

    name: str
    args: tuple[Any, ...] = ()
    is_regex: bool = False
    bail: bool = False

    def __str__(self) -> str:
        return _rule_to_dsl(self)


@dataclass(frozen=True, slots=True)
class RuleSpec:
    """Ordered sequence of ParsedRule; order is the evaluation order.

    Attributes:
        rules: Parsed rules, left to right.
        source: Original string form, when parsed from one.
    """

    rules: tuple[ParsedRule, ...] = ()
    source: str | None = field(default=None, compare=False)

    @property
    def names(self) -> list[str]:
        return [r.name for r in self.rules]

    def __iter__(self) -> Iterator[ParsedRule]:
        return iter(self.rules)

    def __len__(self) -> int:
        return len(self.rules)

    def __bool__(self) -> bool:
        return bool(self.rules)

    def __getitem__(self, index: int) -> ParsedRule:
        return self.rules[index]

    def __repr__(self) -> str:
        return f"RuleSpec({[str(r) for r in self.rules]})"


RuleSpecSource = str | Sequence[Any] | RuleSpec | None
"""Anything parse() accepts."""


def parse(spec: Any) -> RuleSpec:
    """Parse a DSL string or structured list into a RuleSpec.

    Args:
        spec: DSL string, structured list, existing RuleSpec, or None

    Returns:
        RuleSpec (empty for None / "" / [])

    Raises:
        ParseError: Empty rule name, invalid name, unbalanced brackets,
            or an unsupported element in the structured form
    """
    if spec is None:
        return RuleSpec()
    if isinstance(spec, RuleSpec):
        return spec
    if isinstance(spec, ParsedRule):
        return RuleSpec(rules=(spec,))
    if isinstance(spec, str):
        return _parse_string(spec)
    if isinstance(spec, Sequence):
        return RuleSpec(rules=tuple(_parse_element(el, i) for i, el in enumerate(spec)))
    raise ParseError(
        f"Unsupported rule specification type: {type(spec).__name__}",
        details={"type": type(spec).__name__},
    )


@lru_cache(maxsize=256)
def _parse_string(spec: str) -> RuleSpec:
    """Parse (and memoize) the string DSL form."""
    raw = spec.strip()
    if not raw:
        return RuleSpec(source=spec)

    rules = []
    for index, segment in enumerate(raw.split(RULE_SEPARATOR)):
        rules.append(parse_rule(segment, _spec=spec, _index=index))
    return RuleSpec(rules=tuple(rules), source=spec)


def parse_rule(segment: str, *, _spec: str | None = None, _index: int = 0) -> ParsedRule:
    """Parse a single 'name' or 'name:arg1,arg2' segment.

    Raises:
        ParseError: If the name is empty/invalid or brackets are unbalanced
    """
    details = {"spec": _spec if _spec is not None else segment, "index": _index}
    text = segment.strip()

    bail = text.startswith(BAIL_PREFIX)
    if bail:
        text = text[len(BAIL_PREFIX) :].strip()

    if NAME_SEPARATOR in text:
        name, arg_text = text.split(NAME_SEPARATOR, 1)
        name = name.strip()
        args = _split_args(arg_text, details)
    else:
        name, args = text, ()

    _check_name(name, details)
    return ParsedRule(name=name, args=args, is_regex=_has_regex(args), bail=bail)


def _split_args(arg_text: str, details: dict[str, Any]) -> tuple[str, ...]:
    """Split comma-separated args.

    A '/.../' literal or a bracketed group containing commas stays one
    argument.
    """
    if not arg_text.strip():
        return ()

    pieces = arg_text.split(ARG_SEPARATOR)
    args: list[str] = []
    i = 0
    while i < len(pieces):
        end = _group_end(pieces, i, details)
        args.append(ARG_SEPARATOR.join(pieces[i:end]).strip())
        i = end
    return tuple(args)


def _group_end(pieces: list[str], start: int, details: dict[str, Any]) -> int:
    """Index just past the pieces forming the argument that begins at start."""
    if pieces[start].strip().startswith("/"):
        for end in range(start, len(pieces)):
            if _closes_regex(ARG_SEPARATOR.join(pieces[start : end + 1]).strip()):
                return end + 1

    depth = 0
    for end in range(start, len(pieces)):
        for char in pieces[end]:
            depth += _BRACKETS.get(char, 0)
            if depth < 0:
                raise ParseError("Unbalanced brackets in rule arguments", details=details)
        if depth == 0:
            return end + 1
    raise ParseError("Unbalanced brackets in rule arguments", details=details)


def _closes_regex(text: str) -> bool:
    return len(text) > 1 and text.endswith("/")


def _is_regex_literal(arg: str) -> bool:
    return len(arg) > 2 and arg.startswith("/") and arg.endswith("/")


def _has_regex(args: Sequence[Any]) -> bool:
    return any(
        isinstance(a, re.Pattern) or (isinstance(a, str) and _is_regex_literal(a)) for a in args
    )


def _check_name(name: Any, details: dict[str, Any]) -> None:
    if not isinstance(name, str) or not name:
        raise ParseError("Empty rule name", details=details)
    if not _NAME_PATTERN.match(name):
        raise ParseError(f"Invalid rule name: {name!r}", details={**details, "name": name})


def _parse_element(element: Any, index: int) -> ParsedRule:
    """Parse one structured-list element: rule string or [name, *args]."""
    details = {"index": index}
    if isinstance(element, ParsedRule):
        return element
    if isinstance(element, str):
        if RULE_SEPARATOR in element:
            raise ParseError(
                "Structured rule element may hold a single rule only",
                details={**details, "element": element},
            )
        return parse_rule(element, _index=index)
    if isinstance(element, Sequence) and not isinstance(element, (bytes, bytearray)):
        if len(element) == 0:
            raise ParseError("Empty rule name", details=details)
        name, *args = element
        if not isinstance(name, str):
            raise ParseError(
                f"Rule name must be a string, got {type(name).__name__}",
                details=details,
            )
        name = name.strip()
        bail = name.startswith(BAIL_PREFIX)
        if bail:
            name = name[len(BAIL_PREFIX) :].strip()
        _check_name(name, {**details, "element": repr(element)})
        return ParsedRule(
            name=name,
            args=tuple(args),
            is_regex=_has_regex(args),
            bail=bail,
        )
    raise ParseError(
        f"Unsupported rule element type: {type(element).__name__}",
        details=details,
    )


def to_dsl(spec: Any) -> str:
    """Serialize a RuleSpec (or anything parse() accepts) to the string DSL.

    Args are written in text form: booleans as true/false, dates in ISO
    format. Re-parsing yields the same names, order and textual args.

    Raises:
        ParseError: If an argument has no DSL representation (compiled
            patterns, None, collections, or text containing '|', ',' or brackets)
    """
    return RULE_SEPARATOR.join(_rule_to_dsl(r, strict=True) for r in parse(spec))


def _rule_to_dsl(rule: ParsedRule, strict: bool = False) -> str:
    prefix = BAIL_PREFIX if rule.bail else ""
    if not rule.args:
        return f"{prefix}{rule.name}"
    args = ARG_SEPARATOR.join(_arg_to_dsl(rule.name, a, strict) for a in rule.args)
    return f"{prefix}{rule.name}{NAME_SEPARATOR}{args}"


def _arg_to_dsl(name: str, arg: Any, strict: bool) -> str:
    if isinstance(arg, bool):
        return "true" if arg else "false"
    if isinstance(arg, (int, float)):
        return repr(arg)
    if isinstance(arg, (datetime, date)):
        return arg.isoformat()
    if isinstance(arg, str):
        if _is_regex_literal(arg) and RULE_SEPARATOR not in arg:
            return arg
        if (
            arg
            and arg == arg.strip()
            and not arg.startswith("/")
            and not any(c in arg for c in _RESERVED_CHARS)
        ):
            return arg
    if not strict:
        return repr(arg)
    raise ParseError(
        f"Argument {arg!r} of rule '{name}' cannot be written in the string form",
        details={"rule": name, "arg": repr(arg)},
    )
