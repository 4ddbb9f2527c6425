# Copyright (c) 2025 - 2026, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import pytest

from formrules.rules import EvaluationContext, get_default_registry, reset_default_registry


@pytest.fixture(autouse=True)
def _fresh_default_registry():
    """Custom rules registered by one test never leak into another."""
    reset_default_registry()
    yield
    reset_default_registry()


@pytest.fixture
def check():
    """Call a registered rule directly: check(name, value, *args, ctx=None)."""

    def _check(name, value, *args, ctx=None):
        entry = get_default_registry().lookup(name)
        return entry(value, entry.resolve_args(args), ctx or EvaluationContext(value=value))

    return _check
