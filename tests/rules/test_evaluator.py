# Copyright (c) 2025 - 2026, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Tests for formrules.rules.evaluator - the sequential evaluation pipeline."""

from __future__ import annotations

import dataclasses

import anyio
import pytest

from formrules.config import ValidatorConfig
from formrules.errors import ConfigurationError, RuleExecutionError, UnknownRuleError
from formrules.rules import (
    ALL_PASSED,
    EvaluationContext,
    RuleRegistry,
    evaluate,
    evaluate_all,
    parse,
    register,
    validate,
    validate_sync,
)

# =============================================================================
# Test Helpers
# =============================================================================


class CallLog:
    """Records which rules ran, in order."""

    def __init__(self):
        self.calls: list[str] = []

    def sync_rule(self, name: str, answer: bool):
        def predicate(value, args, ctx):
            self.calls.append(name)
            return answer

        return predicate

    def async_rule(self, name: str, answer: bool):
        async def predicate(value, args, ctx):
            await anyio.sleep(0)
            self.calls.append(name)
            return answer

        return predicate


# =============================================================================
# Tests: emptiness policy
# =============================================================================


class TestEmptyValues:
    """Optional fields never fail formatting rules when left blank."""

    @pytest.mark.anyio
    @pytest.mark.parametrize("value", ["", None, [], {}])
    async def test_empty_without_required_passes(self, value):
        result = await evaluate(parse("between:10,18|email"), value)
        assert result is ALL_PASSED

    @pytest.mark.anyio
    async def test_empty_spec_passes(self):
        assert (await evaluate(parse(""), "anything")).passed

    @pytest.mark.anyio
    async def test_empty_with_required_keeps_parse_order(self):
        """With a required-class rule present, the first failure in order wins."""
        result = await evaluate(parse("between:10,18|required"), "")
        assert result.rule_name == "between"
        result = await evaluate(parse("required|email"), "")
        assert result.rule_name == "required"

    @pytest.mark.anyio
    async def test_empty_skips_predicates(self):
        log = CallLog()
        register("traced", log.sync_rule("traced", False))
        assert (await evaluate(parse("traced"), "")).passed
        assert log.calls == []

    @pytest.mark.anyio
    async def test_empty_with_required_invokes_custom_rules(self):
        log = CallLog()
        register("traced", log.sync_rule("traced", False))
        result = await evaluate(parse("traced|required"), "")
        assert result.rule_name == "traced"
        assert log.calls == ["traced"]

    @pytest.mark.anyio
    async def test_accepted_runs_on_empty(self):
        result = await evaluate(parse("accepted"), None)
        assert result.rule_name == "accepted"

    @pytest.mark.anyio
    async def test_zero_and_false_are_not_empty(self):
        """0 still reaches numeric rules; False still reaches accepted."""
        assert (await evaluate(parse("number|min:1"), 0)).rule_name == "min"
        assert (await evaluate(parse("accepted"), False)).rule_name == "accepted"

    @pytest.mark.anyio
    async def test_required_false_passes_empty(self):
        assert (await evaluate(parse("required:false"), "")).passed

    @pytest.mark.anyio
    async def test_optional_field(self):
        assert (await evaluate(parse("optional|email"), "")).passed
        assert (await evaluate(parse("optional|email"), "nope")).rule_name == "email"

    @pytest.mark.anyio
    @pytest.mark.parametrize("value", ["", "x"])
    async def test_optional_with_required_is_misconfigured(self, value):
        with pytest.raises(ConfigurationError, match="optional"):
            await evaluate(parse("optional|required"), value)


# =============================================================================
# Tests: ordering and short-circuit
# =============================================================================


class TestOrdering:
    """Evaluation order equals parse order; first failure wins."""

    @pytest.mark.anyio
    async def test_first_failure_reported(self):
        result = await evaluate(parse("not:a,b|required"), "a")
        assert result.rule_name == "not"
        assert result.args == ("a", "b")

    @pytest.mark.anyio
    async def test_between_bounds(self):
        spec = parse("between:10,18")
        assert (await evaluate(spec, "15")).passed
        assert (await evaluate(spec, "9")).rule_name == "between"
        assert (await evaluate(spec, "10")).rule_name == "between"

    @pytest.mark.anyio
    async def test_max_length_inclusive(self):
        spec = parse("max:5,length")
        assert (await evaluate(spec, "abcdef")).rule_name == "max"
        assert (await evaluate(spec, "abcde")).passed

    @pytest.mark.anyio
    async def test_outcome_args_include_defaults(self):
        result = await evaluate(parse("max"), "x" * 11)
        assert result.rule_name == "max"
        assert result.args == (10, None)

    @pytest.mark.anyio
    async def test_sync_failure_short_circuits_async_rule(self):
        log = CallLog()
        register("slow_false", log.async_rule("slow_false", False))
        result = await evaluate(parse("min:5,length|slow_false"), "abc")
        assert result.rule_name == "min"
        assert log.calls == []

    @pytest.mark.anyio
    async def test_mixed_sync_async_order(self):
        log = CallLog()
        register("a", log.async_rule("a", True))
        register("b", log.sync_rule("b", True))
        register("c", log.async_rule("c", False))
        register("d", log.sync_rule("d", False))
        result = await evaluate(parse("a|b|c|d"), "value")
        assert result.rule_name == "c"
        assert log.calls == ["a", "b", "c"]

    @pytest.mark.anyio
    async def test_idempotent(self):
        spec = parse("required|between:10,18")
        first = await evaluate(spec, "30")
        second = await evaluate(spec, "30")
        assert first == second

    @pytest.mark.anyio
    async def test_confirm_uses_context(self):
        values = {"password": "secret", "password_confirm": "secret"}
        ctx = EvaluationContext.for_field("password", values)
        assert (await evaluate(parse("confirm"), "secret", ctx)).passed
        assert (await evaluate(parse("confirm"), "secret1", ctx)).rule_name == "confirm"

    @pytest.mark.anyio
    async def test_string_spec_accepted(self):
        assert (await evaluate("required|email", "a@b.co")).passed


# =============================================================================
# Tests: errors
# =============================================================================


class TestErrors:
    """Configuration and execution errors are raised, never reported as failures."""

    @pytest.mark.anyio
    async def test_unknown_rule(self):
        with pytest.raises(UnknownRuleError):
            await evaluate(parse("required|nonexistent"), "x")

    @pytest.mark.anyio
    async def test_unknown_rule_even_when_empty(self):
        """An unknown rule is never silently treated as passing."""
        with pytest.raises(UnknownRuleError):
            await evaluate(parse("nonexistent"), "")

    @pytest.mark.anyio
    async def test_sync_predicate_crash(self):
        with pytest.raises(RuleExecutionError) as exc_info:
            await evaluate(parse("between:low,high"), "5")
        assert isinstance(exc_info.value.__cause__, ValueError)
        assert exc_info.value.details["rule"] == "between"

    @pytest.mark.anyio
    async def test_async_rejection(self):
        async def broken(value, args, ctx):
            raise ConnectionError("backend down")

        register("remote", broken)
        with pytest.raises(RuleExecutionError, match="backend down") as exc_info:
            await evaluate(parse("remote"), "x", EvaluationContext(field_name="username"))
        assert isinstance(exc_info.value.cause, ConnectionError)
        assert exc_info.value.details["field"] == "username"

    @pytest.mark.anyio
    async def test_malformed_regex(self):
        with pytest.raises(RuleExecutionError):
            await evaluate(parse("matches:/(/"), "x")


# =============================================================================
# Tests: registry resolution
# =============================================================================


class TestRegistryResolution:
    """Names are resolved lazily at every evaluation."""

    @pytest.mark.anyio
    async def test_late_registration_visible_to_next_run(self):
        spec = parse("late")
        with pytest.raises(UnknownRuleError):
            await evaluate(spec, "x")
        register("late", lambda value, args, ctx: value == "ok")
        assert (await evaluate(spec, "ok")).passed

    @pytest.mark.anyio
    async def test_explicit_registry(self):
        registry = RuleRegistry()
        registry.register("yes", lambda value, args, ctx: True)
        assert (await evaluate(parse("yes"), "x", registry=registry)).passed
        with pytest.raises(UnknownRuleError):
            await evaluate(parse("required"), "x", registry=registry)

    @pytest.mark.anyio
    async def test_camel_case_names(self):
        assert (await evaluate(parse("endsWith:.com"), "example.com")).passed


# =============================================================================
# Tests: evaluate_all
# =============================================================================


class TestEvaluateAll:
    """Collect mode returns every outcome unless bailing."""

    @pytest.mark.anyio
    async def test_collects_all_failures(self):
        report = await evaluate_all(parse("min:5,length|email"), "abc")
        assert [o.rule_name for o in report.failures] == ["min", "email"]
        assert not report.passed
        assert report.to_result().rule_name == "min"

    @pytest.mark.anyio
    async def test_bail_modifier(self):
        report = await evaluate_all(parse("^min:5,length|email"), "abc")
        assert [o.rule_name for o in report.outcomes] == ["min"]

    @pytest.mark.anyio
    async def test_bail_rule(self):
        report = await evaluate_all(parse("email|bail|min:5,length|max:1"), "abc")
        assert [(o.rule_name, o.passed) for o in report.outcomes] == [
            ("email", False),
            ("bail", True),
            ("min", False),
        ]

    @pytest.mark.anyio
    async def test_passing_report(self):
        report = await evaluate_all(parse("required|email"), "a@b.co")
        assert report.passed
        assert len(report) == 2
        assert report.to_result() is ALL_PASSED


# =============================================================================
# Tests: context and concurrency
# =============================================================================


class TestContext:
    """EvaluationContext is read-only."""

    def test_values_read_only(self):
        ctx = EvaluationContext(values={"a": 1})
        with pytest.raises(TypeError):
            ctx.values["a"] = 2

    def test_frozen(self):
        ctx = EvaluationContext()
        with pytest.raises(dataclasses.FrozenInstanceError):
            ctx.field_name = "other"

    def test_borrowed_view(self):
        """The context reflects the form's mapping without copying it."""
        values = {"a": 1}
        ctx = EvaluationContext(values=values)
        values["b"] = 2
        assert ctx.sibling("b") == 2

    def test_display_name(self):
        assert EvaluationContext().display_name == "This field"
        assert EvaluationContext(field_name="email").display_name == "email"
        assert EvaluationContext(field_name="email", label="E-mail").display_name == "E-mail"

    @pytest.mark.anyio
    async def test_predicate_sees_value_on_context(self):
        seen = []

        def spy(value, args, ctx):
            seen.append(ctx.value)
            return True

        register("spy", spy)
        await evaluate(parse("spy"), "current", EvaluationContext(value="stale"))
        assert seen == ["current"]


class TestConcurrency:
    """Independent evaluations may run concurrently."""

    @pytest.mark.anyio
    async def test_parallel_evaluations(self):
        async def slow_even(value, args, ctx):
            await anyio.sleep(0.01)
            return int(value) % 2 == 0

        register("slow_even", slow_even)
        spec = parse("required|slow_even")
        results = {}

        async def run(value):
            results[value] = await evaluate(spec, value)

        async with anyio.create_task_group() as tg:
            for value in ("1", "2", "3", "4"):
                tg.start_soon(run, value)

        assert {k: v.passed for k, v in results.items()} == {
            "1": False,
            "2": True,
            "3": False,
            "4": True,
        }


class TestConvenience:
    """Tests for validate / validate_sync."""

    @pytest.mark.anyio
    async def test_validate_parses(self):
        assert (await validate([["between", 1, 10]], 5)).passed

    def test_validate_sync(self):
        assert validate_sync("required|email", "a@b.co").passed
        assert validate_sync("required|email", "nope").rule_name == "email"


class TestVerbose:
    """config.verbose prints an evaluation trace."""

    @pytest.mark.anyio
    async def test_verbose_trace(self, capsys):
        ctx = EvaluationContext(field_name="name", config=ValidatorConfig(verbose=True))
        await evaluate(parse("min:5,length"), "abc", ctx)
        out = capsys.readouterr().out
        assert "min" in out
        assert "FAIL" in out
