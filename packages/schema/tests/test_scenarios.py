"""
End-to-end validation scenarios and cross-cutting properties.
"""

from concurrent.futures import ThreadPoolExecutor

from dataknobs_schema import (
    DiscriminatedUnion,
    IssueCode,
    Lazy,
    Literal,
    Number,
    Object,
    String,
    ValidationConfig,
    validate,
)


class TestScenarios:
    """Test typical form and API validation flows."""

    def test_form_number_coercion(self):
        """Test a numeric form field is coerced and range checked."""
        schema = Object({"age": Number().min(0).max(150)})
        result = validate(schema, {"age": "25"}, coerce=True)
        assert result.valid
        assert result.value == {"age": 25}
        assert type(result.value["age"]) is int

    def test_password_confirmation(self):
        """Test a cross-field refinement reports at the confirmation field."""
        schema = Object({"password": String().min(8), "confirm": String()}).refine(
            lambda data: data["password"] == data["confirm"],
            "Passwords do not match",
            path=["confirm"],
        )
        result = schema.validate({"password": "longenough", "confirm": "different"})
        assert len(result.issues) == 1
        issue = result.issues[0]
        assert issue.path == ("confirm",)
        assert issue.code == IssueCode.CUSTOM
        assert result.flatten()["field_errors"] == {"confirm": ["Passwords do not match"]}

    def test_password_confirmation_skipped_when_fields_fail(self):
        """Test the cross-field check waits for the fields to be valid."""
        schema = Object({"password": String().min(8), "confirm": String()}).refine(
            lambda data: data["password"] == data["confirm"], path=["confirm"]
        )
        result = schema.validate({"password": "short", "confirm": "x"})
        assert [(i.code, i.path) for i in result.issues] == [(IssueCode.TOO_SMALL, ("password",))]

    def test_notification_with_unknown_channel(self):
        """Test a tag that selects no member yields one discriminator issue."""
        email = Object({"type": Literal("email"), "address": String().email()})
        schema = DiscriminatedUnion("type", [email])
        result = schema.validate({"type": "sms", "phoneNumber": "090-1234-5678"})
        assert [(i.code, i.path) for i in result.issues] == [
            (IssueCode.INVALID_UNION_DISCRIMINATOR, ("type",))
        ]

    def test_super_refine_three_issues(self):
        """Test three failed predicates on one string are three custom issues."""

        def rules(value, ctx):
            if len(value) < 12:
                ctx.add_issue("Too short")
            if not any(c.isdigit() for c in value):
                ctx.add_issue("Needs a digit")
            if not any(not c.isalnum() for c in value):
                ctx.add_issue("Needs a symbol")

        schema = Object({"secret": String().super_refine(rules)})
        result = schema.validate({"secret": "abc"})
        assert len(result.issues) == 3
        assert all(i.code == IssueCode.CUSTOM for i in result.issues)
        assert all(i.path == ("secret",) for i in result.issues)

    def test_string_number_without_coercion(self):
        """Test a numeric string fails a plain number schema with one issue."""
        result = Number().validate("25")
        assert len(result.issues) == 1
        assert result.issues[0].code == IssueCode.INVALID_TYPE


class TestProperties:
    """Test properties that hold for any schema and input."""

    def test_check_order_does_not_change_issue_set(self):
        """Test independent checks report the same issues in any order."""
        forward = String().min(5).email().includes("@")
        backward = String().includes("@").email().min(5)
        for value in ["ab", "abcdef", "a@b.co", "x@example.com"]:
            assert {i.code for i in forward.validate(value).issues} == {
                i.code for i in backward.validate(value).issues
            }
            assert len(forward.validate(value).issues) == len(backward.validate(value).issues)

    def test_revalidating_output_is_stable(self):
        """Test validating a successful output again returns the same output."""
        schema = Object({
            "name": String().trim().to_lower(),
            "age": Number().int(),
            "tags": String().array().default(list),
        })
        first = schema.validate({"name": "  Taro ", "age": 30, "extra": True})
        second = schema.validate(first.value)
        assert second.valid
        assert second.value == first.value == {"name": "taro", "age": 30, "tags": []}

    def test_validation_does_not_mutate_input(self):
        """Test the input value is left unchanged."""
        data = {"name": "  Taro ", "tags": ["a"], "extra": 1}
        schema = Object({"name": String().trim(), "tags": String().array()})
        schema.validate(data)
        assert data == {"name": "  Taro ", "tags": ["a"], "extra": 1}

    def test_concurrent_threads(self):
        """Test one schema validated from many threads with different configurations."""
        node = Object({
            "value": Number().min(0),
            "children": Lazy(lambda: node.array()).optional(),
        })
        loud = ValidationConfig(messages={"too_small": "NEGATIVE"})

        def run(index):
            config = loud if index % 2 else ValidationConfig()
            data = {"value": -index, "children": [{"value": index}]}
            return index, node.validate(data, config=config)

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(run, range(1, 41)))

        for index, result in results:
            expected = "NEGATIVE" if index % 2 else "Number must be greater than or equal to 0"
            assert result.errors == [expected]
            assert result.issues[0].path == ("value",)
