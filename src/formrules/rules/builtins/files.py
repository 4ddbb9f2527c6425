# Copyright (c) 2025 - 2026, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""File rules: mime.

A file is a mapping with `name` (and optional `type`), any object with a
`name` attribute, or a path. A value may be one file or a collection.
"""

from __future__ import annotations

import mimetypes
import os
from collections.abc import Iterable, Mapping, Sequence
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..context import EvaluationContext

__all__ = ("file_mime_type", "mime")


def _files(value: Any) -> list[Any]:
    if isinstance(value, (str, bytes, os.PathLike, Mapping)):
        return [value]
    if isinstance(value, Iterable):
        return list(value)
    return [value]


def file_mime_type(file: Any) -> str | None:
    """Declared type if present, else guessed from the file name."""
    if isinstance(file, Mapping):
        declared = file.get("type") or file.get("mime")
        name = file.get("name") or file.get("filename")
    else:
        declared = getattr(file, "type", None) or getattr(file, "content_type", None)
        name = file if isinstance(file, (str, os.PathLike)) else getattr(file, "name", None)
    if declared:
        return str(declared).lower()
    if not name:
        return None
    guessed, _ = mimetypes.guess_type(os.fspath(name))
    return guessed


def _allowed(mime_type: str, patterns: Sequence[str]) -> bool:
    for pattern in patterns:
        if pattern.endswith("/*") and mime_type.startswith(pattern[:-1]):
            return True
        if mime_type == pattern:
            return True
    return False


def mime(value: Any, args: Sequence[Any], ctx: EvaluationContext) -> bool:
    """mime:image/png,image/* - every file's type is in the allowed set."""
    patterns = [str(a).strip().lower() for a in args]
    if not patterns:
        return False
    for file in _files(value):
        mime_type = file_mime_type(file)
        if mime_type is None or not _allowed(mime_type, patterns):
            return False
    return True
