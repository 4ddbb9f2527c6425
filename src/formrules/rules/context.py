# Copyright (c) 2025 - 2026, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""EvaluationContext - read-only cross-field view for one evaluation pass."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any

from formrules.config import DEFAULT_CONFIG, ValidatorConfig

__all__ = ("EvaluationContext",)


@dataclass(frozen=True, slots=True)
class EvaluationContext:
    """Immutable view handed to every predicate.

    The form owns field values in a flat mapping; the context borrows a
    read-only proxy of it, never a reference to mutable field objects.

    Attributes:
        field_name: Name of the field under validation.
        value: Current field value.
        values: Sibling field values by name (read-only proxy).
        label: Display name for message formatting.
        config: Engine-wide switches.
    """

    field_name: str | None = None
    value: Any = None
    values: Mapping[str, Any] = field(default_factory=dict)
    label: str | None = None
    config: ValidatorConfig = DEFAULT_CONFIG

    def __post_init__(self) -> None:
        if not isinstance(self.values, MappingProxyType):
            object.__setattr__(self, "values", MappingProxyType(self.values))

    @property
    def display_name(self) -> str:
        """Label, else the field name, else a generic placeholder."""
        return self.label or self.field_name or "This field"

    def has(self, name: str) -> bool:
        return name in self.values

    def sibling(self, name: str, default: Any = None) -> Any:
        """Look up another field's value by name."""
        return self.values.get(name, default)

    def with_value(self, value: Any) -> EvaluationContext:
        """Copy bound to a new current value (sibling view shared)."""
        if value is self.value:
            return self
        return replace(self, value=value)

    @classmethod
    def for_field(
        cls,
        field_name: str,
        values: Mapping[str, Any],
        *,
        label: str | None = None,
        config: ValidatorConfig | None = None,
    ) -> EvaluationContext:
        """Build a context for `field_name`, taking its value from `values`."""
        return cls(
            field_name=field_name,
            value=values.get(field_name),
            values=values,
            label=label,
            config=config or DEFAULT_CONFIG,
        )

    def __repr__(self) -> str:
        return (
            f"EvaluationContext(field={self.field_name!r}, "
            f"siblings={list(self.values.keys())})"
        )
