# Copyright (c) 2025 - 2026, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from ._values import as_text, is_empty, is_truthy_flag, to_number

__all__ = ("as_text", "is_empty", "is_truthy_flag", "to_number")
