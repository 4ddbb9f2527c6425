# Copyright (c) 2025 - 2026, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import pytest
from pydantic import ValidationError

from formrules.config import DEFAULT_CONFIG, ValidatorConfig


class TestValidatorConfig:
    def test_defaults(self):
        assert DEFAULT_CONFIG.trim_required is False
        assert DEFAULT_CONFIG.max_concurrency is None
        assert DEFAULT_CONFIG.verbose is False

    def test_frozen(self):
        with pytest.raises(ValidationError):
            DEFAULT_CONFIG.verbose = True

    def test_rejects_unknown_keys(self):
        with pytest.raises(ValidationError):
            ValidatorConfig(strict=True)

    def test_concurrency_bound(self):
        with pytest.raises(ValidationError):
            ValidatorConfig(max_concurrency=0)
        assert ValidatorConfig(max_concurrency=4).max_concurrency == 4
