# Copyright (c) 2025 - 2026, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""FormValidator - field-level rule binding for a whole form.

A FormValidator owns one parsed RuleSpec per field (parsed once, at
construction) and validates against a flat mapping of field values:

- validate_field(): one field, sequential rule pipeline
- validate(): every field, concurrently (fields share no mutable state)
- begin()/is_current(): sequence tokens so a slow async check for an
  older input never overwrites the result for a newer one
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Iterable, Mapping
from typing import Any

import anyio
from pydantic import BaseModel, ConfigDict, Field

from formrules.config import DEFAULT_CONFIG, ValidatorConfig
from formrules.errors import ConfigurationError
from formrules.messages import DefaultMessages, MessageResolver
from formrules.rules import (
    EvaluationContext,
    RuleRegistry,
    RuleSpec,
    ValidationResult,
    evaluate,
    get_default_registry,
    parse,
)

logger = logging.getLogger(__name__)

__all__ = ("FieldRules", "FormValidator")


class FieldRules(BaseModel):
    """Rules bound to one form field.

    Attributes:
        name: Field name (key in the form's value mapping)
        rules: DSL string or structured list
        label: Display name for messages (defaults to name)
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    name: str = Field(..., min_length=1)
    rules: Any = Field(default="", description="DSL string or structured rule list")
    label: str | None = None

    @property
    def display_name(self) -> str:
        return self.label or self.name


def _coerce_fields(
    fields: Iterable[FieldRules | Mapping[str, Any]] | Mapping[str, Any],
) -> list[FieldRules]:
    if isinstance(fields, Mapping):
        return [FieldRules(name=name, rules=rules) for name, rules in fields.items()]
    result = []
    for item in fields:
        if isinstance(item, FieldRules):
            result.append(item)
        elif isinstance(item, Mapping):
            result.append(FieldRules.model_validate(dict(item)))
        else:
            raise ConfigurationError(
                f"Unsupported field definition: {type(item).__name__}",
                details={"type": type(item).__name__},
            )
    return result


class FormValidator:
    """Validate a form's fields against their rule specifications.

    Example:
        form = FormValidator({
            "email": "required|email",
            "password": "required|min:8,length",
            "password_confirm": "required|confirm",
        })
        results = await form.validate(values)
        errors = form.errors(results)  # {"password_confirm": "..."}

    Raises:
        ParseError: At construction, for any malformed field specification.
        ConfigurationError: Duplicate or unsupported field definitions.
    """

    def __init__(
        self,
        fields: Iterable[FieldRules | Mapping[str, Any]] | Mapping[str, Any],
        *,
        registry: RuleRegistry | None = None,
        config: ValidatorConfig | None = None,
        messages: MessageResolver | None = None,
    ):
        self.registry = registry if registry is not None else get_default_registry()
        self.config = config or DEFAULT_CONFIG
        self.messages: MessageResolver = messages or DefaultMessages()

        self._fields: dict[str, FieldRules] = {}
        self._specs: dict[str, RuleSpec] = {}
        for definition in _coerce_fields(fields):
            if definition.name in self._fields:
                raise ConfigurationError(
                    f"Field '{definition.name}' defined twice",
                    details={"field": definition.name},
                )
            self._fields[definition.name] = definition
            self._specs[definition.name] = parse(definition.rules)

        self._tokens: dict[str, int] = {}

    @property
    def field_names(self) -> list[str]:
        return list(self._fields.keys())

    def field(self, name: str) -> FieldRules:
        """Field definition by name. Raises KeyError if not found."""
        if name not in self._fields:
            raise KeyError(f"Field '{name}' not defined. Available: {self.field_names}")
        return self._fields[name]

    def spec(self, name: str) -> RuleSpec:
        self.field(name)
        return self._specs[name]

    def context_for(self, name: str, values: Mapping[str, Any]) -> EvaluationContext:
        definition = self.field(name)
        return EvaluationContext.for_field(
            name, values, label=definition.display_name, config=self.config
        )

    def begin(self, name: str) -> int:
        """Start a new validation round for a field; returns its token."""
        self.field(name)
        token = self._tokens.get(name, 0) + 1
        self._tokens[name] = token
        return token

    def is_current(self, name: str, token: int) -> bool:
        """True if no newer round was started for the field since token."""
        return self._tokens.get(name, 0) == token

    async def validate_field(
        self,
        name: str,
        values: Mapping[str, Any],
        *,
        token: int | None = None,
    ) -> ValidationResult | None:
        """Validate one field against the form values.

        Args:
            name: Field to validate
            values: All field values (siblings are visible to the rules)
            token: Sequence token from begin(); stale results are discarded

        Returns:
            ValidationResult, or None when token was superseded meanwhile
        """
        ctx = self.context_for(name, values)
        result = await evaluate(self._specs[name], ctx.value, ctx, registry=self.registry)
        if token is not None and not self.is_current(name, token):
            logger.debug(
                "Discarding stale result for field '%s' (token %d, current %d)",
                name,
                token,
                self._tokens.get(name, 0),
            )
            return None
        return result

    async def validate(self, values: Mapping[str, Any]) -> dict[str, ValidationResult]:
        """Validate every field concurrently. Results keep field order."""
        results: dict[str, ValidationResult] = {}
        limiter = (
            anyio.CapacityLimiter(self.config.max_concurrency)
            if self.config.max_concurrency
            else None
        )

        async def _one(name: str) -> None:
            if limiter is None:
                results[name] = await self.validate_field(name, values)
                return
            async with limiter:
                results[name] = await self.validate_field(name, values)

        try:
            async with anyio.create_task_group() as tg:
                for name in self._fields:
                    tg.start_soon(_one, name)
        except ExceptionGroup as eg:
            # surface a lone rule/config error as itself, not as a group
            if len(eg.exceptions) == 1:
                raise eg.exceptions[0]
            raise

        return {name: results[name] for name in self._fields}

    def validate_sync(self, values: Mapping[str, Any]) -> dict[str, ValidationResult]:
        """Blocking validate(). Must not be called inside a running event loop."""
        return anyio.run(functools.partial(self.validate, values))

    def errors(self, results: Mapping[str, ValidationResult | None]) -> dict[str, str]:
        """Messages for failing fields, resolved through the MessageResolver."""
        errors = {}
        for name, result in results.items():
            if result is None or result.passed:
                continue
            errors[name] = self.messages.resolve(result.failure, self.field(name).display_name)
        return errors

    def __contains__(self, name: str) -> bool:
        return name in self._fields

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"FormValidator(fields={self.field_names})"
