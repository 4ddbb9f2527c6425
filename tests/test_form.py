# Copyright (c) 2025 - 2026, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Tests for formrules.form - FormValidator and FieldRules."""

from __future__ import annotations

import anyio
import pytest

from formrules.config import ValidatorConfig
from formrules.errors import ConfigurationError, ParseError, RuleExecutionError, UnknownRuleError
from formrules.form import FieldRules, FormValidator
from formrules.messages import DefaultMessages
from formrules.rules import RuleRegistry, register

SIGNUP = {
    "email": "required|email",
    "password": "required|min:8,length",
    "password_confirm": "required|confirm",
}


# =============================================================================
# Construction
# =============================================================================


class TestConstruction:
    """Fields are parsed once, when the validator is built."""

    def test_from_mapping(self):
        form = FormValidator(SIGNUP)
        assert form.field_names == ["email", "password", "password_confirm"]
        assert len(form) == 3
        assert "email" in form
        assert "phone" not in form

    def test_from_field_rules_and_dicts(self):
        form = FormValidator(
            [
                FieldRules(name="email", rules="required|email", label="E-mail"),
                {"name": "age", "rules": [["between", 17, 130]]},
            ]
        )
        assert form.field("email").display_name == "E-mail"
        assert form.field("age").display_name == "age"
        assert form.spec("age").names == ["between"]

    def test_malformed_spec_raises_at_construction(self):
        with pytest.raises(ParseError):
            FormValidator({"name": "required|"})

    def test_duplicate_field(self):
        with pytest.raises(ConfigurationError, match="defined twice"):
            FormValidator([{"name": "a", "rules": "required"}, {"name": "a", "rules": "email"}])

    def test_unsupported_definition(self):
        with pytest.raises(ConfigurationError):
            FormValidator(["email"])

    def test_empty_field_name(self):
        with pytest.raises(ValueError):
            FieldRules(name="")

    def test_unknown_field(self):
        form = FormValidator(SIGNUP)
        with pytest.raises(KeyError):
            form.field("phone")

    def test_repr(self):
        assert "email" in repr(FormValidator(SIGNUP))


# =============================================================================
# Validation
# =============================================================================


class TestValidate:
    """Whole-form validation."""

    @pytest.mark.anyio
    async def test_valid_form(self):
        form = FormValidator(SIGNUP)
        results = await form.validate(
            {"email": "a@b.co", "password": "secret123", "password_confirm": "secret123"}
        )
        assert all(r.passed for r in results.values())
        assert form.errors(results) == {}

    @pytest.mark.anyio
    async def test_invalid_form(self):
        form = FormValidator(SIGNUP)
        results = await form.validate(
            {"email": "nope", "password": "short", "password_confirm": "other"}
        )
        assert list(results) == ["email", "password", "password_confirm"]
        assert results["email"].rule_name == "email"
        assert results["password"].rule_name == "min"
        assert results["password_confirm"].rule_name == "confirm"

    @pytest.mark.anyio
    async def test_missing_fields_are_empty(self):
        form = FormValidator({"nickname": "alpha", "email": "required|email"})
        results = await form.validate({})
        assert results["nickname"].passed
        assert results["email"].rule_name == "required"

    @pytest.mark.anyio
    async def test_errors_use_labels(self):
        form = FormValidator([FieldRules(name="email", rules="required", label="e-mail address")])
        results = await form.validate({"email": ""})
        assert form.errors(results) == {"email": "E-mail address is required."}

    @pytest.mark.anyio
    async def test_custom_messages(self):
        form = FormValidator(
            {"email": "required"},
            messages=DefaultMessages({"required": "Fill in {label}."}),
        )
        results = await form.validate({})
        assert form.errors(results) == {"email": "Fill in email."}

    @pytest.mark.anyio
    async def test_custom_registry(self):
        registry = RuleRegistry()
        registry.register("even", lambda value, args, ctx: int(value) % 2 == 0)
        form = FormValidator({"n": "even"}, registry=registry)
        assert (await form.validate({"n": "4"}))["n"].passed
        assert not (await form.validate({"n": "3"}))["n"].passed

    @pytest.mark.anyio
    async def test_unknown_rule_surfaces_unwrapped(self):
        form = FormValidator({"a": "required", "b": "nonexistent"})
        with pytest.raises(UnknownRuleError):
            await form.validate({"a": "x", "b": "y"})

    @pytest.mark.anyio
    async def test_rule_crash_surfaces_unwrapped(self):
        form = FormValidator({"a": "between:x,y"})
        with pytest.raises(RuleExecutionError):
            await form.validate({"a": "5"})

    @pytest.mark.anyio
    async def test_max_concurrency(self):
        active = 0
        peak = 0

        async def tracked(value, args, ctx):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await anyio.sleep(0.01)
            active -= 1
            return True

        register("tracked", tracked)
        form = FormValidator(
            {f"f{i}": "tracked" for i in range(6)},
            config=ValidatorConfig(max_concurrency=2),
        )
        results = await form.validate({f"f{i}": "x" for i in range(6)})
        assert all(r.passed for r in results.values())
        assert peak <= 2

    def test_validate_sync(self):
        form = FormValidator(SIGNUP)
        results = form.validate_sync({"email": "bad"})
        assert results["email"].rule_name == "email"
        assert results["password"].rule_name == "required"

    @pytest.mark.anyio
    async def test_trim_required_config(self):
        form = FormValidator({"name": "required"}, config=ValidatorConfig(trim_required=True))
        assert (await form.validate_field("name", {"name": "   "})).rule_name == "required"


# =============================================================================
# Stale-result protection
# =============================================================================


class TestSequenceTokens:
    """Only the latest round's result is kept for a field."""

    def test_begin_increments(self):
        form = FormValidator({"username": "required"})
        first = form.begin("username")
        second = form.begin("username")
        assert second > first
        assert form.is_current("username", second)
        assert not form.is_current("username", first)

    def test_begin_unknown_field(self):
        with pytest.raises(KeyError):
            FormValidator({"a": "required"}).begin("b")

    @pytest.mark.anyio
    async def test_stale_result_discarded(self):
        release = anyio.Event()

        async def username_free(value, args, ctx):
            if value == "slow":
                await release.wait()
            return value != "taken"

        register("username_free", username_free)
        form = FormValidator({"username": "required|username_free"})
        seen = {}

        async def check(value):
            token = form.begin("username")
            seen[value] = await form.validate_field(
                "username", {"username": value}, token=token
            )

        async with anyio.create_task_group() as tg:
            tg.start_soon(check, "slow")
            await anyio.sleep(0.01)
            tg.start_soon(check, "taken")
            await anyio.sleep(0.01)
            release.set()

        assert seen["slow"] is None
        assert seen["taken"].rule_name == "username_free"

    @pytest.mark.anyio
    async def test_without_token_always_returns(self):
        form = FormValidator({"a": "required"})
        form.begin("a")
        assert (await form.validate_field("a", {"a": "x"})).passed

    def test_errors_skip_discarded(self):
        form = FormValidator({"a": "required"})
        assert form.errors({"a": None}) == {}
