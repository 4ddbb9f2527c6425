# Copyright (c) 2025 - 2026, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Message resolution boundary.

The engine only identifies failures; turning (rule, args, label) into a
user-facing string belongs to the host. MessageResolver is that seam, and
DefaultMessages is a plain English implementation good enough for logs,
CLIs and tests.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, Protocol, runtime_checkable

from formrules.rules.evaluator import RuleOutcome

__all__ = ("DefaultMessages", "MessageResolver", "MessageTemplate")

MessageTemplate = str | Callable[[RuleOutcome, str], str]
"""Format string ({label}, {Label}, {args}, {arg0}, ...) or (outcome, label) -> str."""


@runtime_checkable
class MessageResolver(Protocol):
    """Maps a failing outcome and the field's display name to a message."""

    def resolve(self, outcome: RuleOutcome, label: str) -> str: ...


def _size_message(comparison: str) -> Callable[[RuleOutcome, str], str]:
    def message(outcome: RuleOutcome, label: str) -> str:
        limit = outcome.args[0] if outcome.args else ""
        mode = outcome.args[1] if len(outcome.args) > 1 else None
        if mode == "length":
            return f"{_capitalize(label)} must be {comparison} {limit} characters long."
        return f"{_capitalize(label)} must be {comparison} {limit}."

    return message


def _date_message(direction: str, default: str) -> Callable[[RuleOutcome, str], str]:
    def message(outcome: RuleOutcome, label: str) -> str:
        if outcome.args and outcome.args[0]:
            return f"{_capitalize(label)} must be {direction} {outcome.args[0]}."
        return f"{_capitalize(label)} must be {default}."

    return message


def _format_date(outcome: RuleOutcome, label: str) -> str:
    if outcome.args and outcome.args[0]:
        return f"{_capitalize(label)} is not a valid date, please use the format {outcome.args[0]}."
    return f"{_capitalize(label)} is not a valid date."


DEFAULT_TEMPLATES: dict[str, MessageTemplate] = {
    "accepted": "Please accept the {label}.",
    "after": _date_message("after", "in the future"),
    "alpha": "{Label} can only contain alphabetical characters.",
    "alphanumeric": "{Label} can only contain letters and numbers.",
    "before": _date_message("before", "in the past"),
    "between": "{Label} must be between {arg0} and {arg1}.",
    "confirm": "{Label} does not match.",
    "date": _format_date,
    "email": "Please enter a valid email address.",
    "ends_with": "{Label} doesn't end with a valid value.",
    "in": "{Label} is not an allowed value.",
    "matches": "{Label} is not an allowed value.",
    "max": _size_message("at most"),
    "mime": "{Label} must be of the type: {args}.",
    "min": _size_message("at least"),
    "not": "{Label} is not an allowed value.",
    "number": "{Label} must be a number.",
    "required": "{Label} is required.",
    "starts_with": "{Label} doesn't start with a valid value.",
    "url": "Please include a valid url.",
}
FALLBACK_TEMPLATE = "{Label} is invalid."


def _capitalize(text: str) -> str:
    return text[:1].upper() + text[1:]


class DefaultMessages:
    """English messages per built-in rule, with per-rule overrides.

    Example:
        messages = DefaultMessages({"username_free": "{Label} is taken."})
        messages.resolve(result.failure, "username")
    """

    def __init__(
        self,
        overrides: Mapping[str, MessageTemplate] | None = None,
        *,
        fallback: MessageTemplate = FALLBACK_TEMPLATE,
    ):
        self._templates: dict[str, MessageTemplate] = {**DEFAULT_TEMPLATES, **(overrides or {})}
        self._fallback = fallback

    def template_for(self, rule_name: str) -> MessageTemplate:
        return self._templates.get(rule_name, self._fallback)

    def resolve(self, outcome: RuleOutcome, label: str) -> str:
        template = self.template_for(outcome.rule_name)
        if callable(template):
            return template(outcome, label)
        fields: dict[str, Any] = {
            "label": label,
            "Label": _capitalize(label),
            "args": ", ".join(str(a) for a in outcome.args if a is not None),
            "rule": outcome.rule_name,
        }
        for index, arg in enumerate(outcome.args):
            fields[f"arg{index}"] = arg
        return template.format(**fields)
