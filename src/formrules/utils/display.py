# Copyright (c) 2025 - 2026, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Display utilities for verbose evaluation tracing.

Rich-based console output of evaluation reports, plus a plain-text
formatter for logs and non-TTY environments.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

from rich.box import ROUNDED
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.theme import Theme

if TYPE_CHECKING:
    from formrules.rules.evaluator import ValidationReport

__all__ = ("format_report", "in_console", "render_report")

DARK_THEME = Theme(
    {
        "info": "bright_cyan",
        "error": "bold bright_red",
        "success": "bold bright_green",
        "panel.border": "bright_blue",
        "panel.title": "bold bright_cyan",
    }
)

_console: Console | None = None


def _get_console() -> Console:
    global _console
    if _console is None:
        _console = Console(theme=DARK_THEME)
    return _console


def in_console() -> bool:
    """Check if running in a terminal with TTY."""
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _status(passed: bool) -> str:
    return "pass" if passed else "FAIL"


def format_report(report: ValidationReport, label: str | None = None) -> str:
    """Plain-text trace: one line per evaluated rule."""
    header = f"{label or 'field'}: {'passed' if report.passed else 'failed'}"
    if not report.outcomes:
        return f"{header} (no rules evaluated)"
    lines = [header]
    for outcome in report.outcomes:
        args = ", ".join(repr(a) for a in outcome.args)
        lines.append(f"  [{_status(outcome.passed)}] {outcome.rule_name}({args})")
    return "\n".join(lines)


def render_report(
    report: ValidationReport,
    label: str | None = None,
    console: Console | None = None,
) -> None:
    """Print a report as a rich table (plain text when not on a TTY)."""
    console = console or _get_console()
    if console is _console and not in_console():
        console.print(format_report(report, label), markup=False, highlight=False)
        return

    table = Table(
        title=escape(label or "field"),
        box=ROUNDED,
        border_style="panel.border",
        title_style="panel.title",
    )
    table.add_column("#", justify="right", style="info")
    table.add_column("rule")
    table.add_column("args")
    table.add_column("result")
    for index, outcome in enumerate(report.outcomes, start=1):
        table.add_row(
            str(index),
            escape(outcome.rule_name),
            escape(", ".join(repr(a) for a in outcome.args)),
            f"[success]{_status(True)}[/success]"
            if outcome.passed
            else f"[error]{_status(False)}[/error]",
        )
    with console.use_theme(DARK_THEME):
        console.print(table)
