# Copyright (c) 2025 - 2026, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Validator configuration.

Provides ValidatorConfig, shared by FormValidator and carried on every
EvaluationContext so rules can read engine-wide switches.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

__all__ = ("DEFAULT_CONFIG", "ValidatorConfig")


class ValidatorConfig(BaseModel):
    """Engine-wide validation switches.

    Attributes:
        trim_required: `required` strips strings before the emptiness check.
        max_concurrency: Cap on fields validated at once; None is unbounded.
        verbose: Render each evaluation trace to the console.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    trim_required: bool = Field(
        default=False,
        description="Treat whitespace-only strings as empty for `required`.",
    )
    max_concurrency: int | None = Field(
        default=None,
        ge=1,
        description="Max fields evaluated concurrently by FormValidator.validate().",
    )
    verbose: bool = Field(
        default=False,
        description="Print evaluation traces with rich.",
    )


DEFAULT_CONFIG = ValidatorConfig()
