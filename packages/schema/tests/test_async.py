"""
Tests for asynchronous validation and cancellation.
"""

import asyncio

import pytest

from dataknobs_schema import (
    IssueCode,
    Number,
    Object,
    SchemaValidationError,
    String,
    Union,
    ValidationCancelledError,
    ValidationConfig,
    preprocess,
    validate_async,
)

TAKEN = {"admin", "root"}


async def is_available(username):
    await asyncio.sleep(0)
    return username not in TAKEN


class TestAsyncRefinements:
    """Test awaitable refinements and transforms."""

    @pytest.mark.asyncio
    async def test_async_refine(self):
        """Test async predicates are awaited by validate_async."""
        schema = String().refine(is_available, "Username is taken")
        assert (await schema.validate_async("taro")).valid
        result = await schema.validate_async("admin")
        assert [(i.code, i.message) for i in result.issues] == [
            (IssueCode.CUSTOM, "Username is taken")
        ]

    def test_sync_validation_reports_async_step(self):
        """Test sync validation reports an async_refinement issue."""
        schema = Object({"username": String().refine(is_available)})
        result = schema.validate({"username": "taro"})
        assert len(result.issues) == 1
        issue = result.issues[0]
        assert issue.code == IssueCode.ASYNC_REFINEMENT
        assert issue.path == ("username",)
        assert issue["step"] == "refine"
        assert "validate_async" in issue.message

    def test_catch_keeps_async_step_issue(self):
        """Test a fallback never hides an async step reached synchronously."""
        schema = Object({"name": String().refine(is_available).catch("fallback")})
        result = schema.validate({"name": "taro"})
        assert [(i.code, i.path) for i in result.issues] == [
            (IssueCode.ASYNC_REFINEMENT, ("name",))
        ]
        assert String().catch("fallback").validate(5).value == "fallback"

    @pytest.mark.asyncio
    async def test_catch_with_async_refine(self):
        """Test the fallback still applies when the predicate is awaited."""
        schema = String().refine(is_available).catch("fallback")
        assert (await schema.validate_async("taro")).value == "taro"
        assert (await schema.validate_async("admin")).value == "fallback"

    def test_union_reports_async_step(self):
        """Test a union stops at a member needing async validation."""
        schema = Union([String().refine(is_available), Number()])
        result = schema.validate("taro")
        assert [i.code for i in result.issues] == [IssueCode.ASYNC_REFINEMENT]
        assert schema.validate(5).value == 5

        later = Union([Number(), String().refine(is_available), String()])
        assert [i.code for i in later.validate("taro").issues] == [IssueCode.ASYNC_REFINEMENT]
        assert later.validate(5).value == 5

    @pytest.mark.asyncio
    async def test_union_with_async_member(self):
        """Test union members with async steps are awaited by validate_async."""
        schema = Union([String().refine(is_available), Number()])
        assert (await schema.validate_async("taro")).value == "taro"
        result = await schema.validate_async("admin")
        assert [i.code for i in result.issues] == [IssueCode.INVALID_UNION]

    @pytest.mark.asyncio
    async def test_async_transform_and_super_refine(self):
        """Test async transforms and super refinements."""

        async def lookup(value):
            await asyncio.sleep(0)
            return {"id": value}

        async def check(value, ctx):
            await asyncio.sleep(0)
            if value["id"] < 0:
                ctx.add_issue("Unknown id")

        schema = Number().transform(lookup).super_refine(check)
        assert (await schema.validate_async(3)).value == {"id": 3}
        assert (await schema.validate_async(-1)).issues[0].message == "Unknown id"
        assert schema.validate(3).issues[0]["step"] == "transform"

    @pytest.mark.asyncio
    async def test_async_preprocess(self):
        """Test async preprocess functions are awaited."""

        async def load(value):
            return str(value)

        schema = preprocess(load, String().min(2))
        assert (await schema.validate_async(42)).value == "42"

    @pytest.mark.asyncio
    async def test_steps_run_in_declaration_order(self):
        """Test mixed sync and async steps keep their order."""
        order = []

        async def first(value):
            order.append("first")
            return True

        def second(value):
            order.append("second")
            return value

        async def third(value):
            order.append("third")
            return True

        schema = String().refine(first).transform(second).refine(third)
        assert (await schema.validate_async("x")).valid
        assert order == ["first", "second", "third"]

    @pytest.mark.asyncio
    async def test_parse_async_raises(self):
        """Test parse_async raises on failure and returns the value on success."""
        schema = String().refine(is_available)
        assert await schema.parse_async("taro") == "taro"
        with pytest.raises(SchemaValidationError) as exc_info:
            await schema.parse_async("root")
        assert exc_info.value.issues[0].code == IssueCode.CUSTOM

    @pytest.mark.asyncio
    async def test_module_level_validate_async(self):
        """Test the module-level helper with a configuration."""
        config = ValidationConfig(coerce=True)
        result = await validate_async(Object({"age": Number()}), {"age": "25"}, config=config)
        assert result.value == {"age": 25}

    @pytest.mark.asyncio
    async def test_concurrent_validations(self):
        """Test concurrent validations with different configurations stay independent."""
        schema = Object({"age": Number().min(18)})
        french = ValidationConfig(messages={"too_small": "Au moins {minimum}"})
        results = await asyncio.gather(
            schema.validate_async({"age": 1}),
            schema.validate_async({"age": 1}, config=french),
            schema.validate_async({"age": "30"}, coerce=True),
        )
        assert results[0].issues[0].message == "Number must be greater than or equal to 18"
        assert results[1].issues[0].message == "Au moins 18"
        assert results[2].value == {"age": 30}


class TestCancellation:
    """Test cooperative cancellation of async validation."""

    @pytest.mark.asyncio
    async def test_cancelled_before_start(self):
        """Test a pre-set signal stops validation before any step runs."""
        calls = []

        async def predicate(value):
            calls.append(value)
            return True

        cancel = asyncio.Event()
        cancel.set()
        with pytest.raises(ValidationCancelledError):
            await String().refine(predicate).validate_async("x", cancel=cancel)
        assert calls == []

    @pytest.mark.asyncio
    async def test_cancelled_between_steps(self):
        """Test setting the signal mid-way skips the remaining steps."""
        cancel = asyncio.Event()
        calls = []

        async def first(value):
            calls.append("first")
            cancel.set()
            return True

        async def second(value):
            calls.append("second")
            return True

        schema = String().refine(first).refine(second)
        with pytest.raises(ValidationCancelledError):
            await schema.validate_async("x", cancel=cancel)
        assert calls == ["first"]

    @pytest.mark.asyncio
    async def test_unset_signal(self):
        """Test an unset signal does not affect validation."""
        result = await String().refine(is_available).validate_async("taro", cancel=asyncio.Event())
        assert result.valid
