"""
Tests for object, array, tuple, record, map and set schemas, and object
derivation.
"""

from types import MappingProxyType

import pytest

from dataknobs_schema import (
    Array,
    Boolean,
    Enum,
    IssueCode,
    Map,
    Number,
    Object,
    Optional,
    Record,
    SchemaDefinitionError,
    Set,
    String,
    Tuple,
)


def issue_summary(result):
    return [(issue.code, issue.path) for issue in result.issues]


@pytest.fixture
def user_schema():
    return Object({
        "id": Number(),
        "name": String(),
        "email": String().email(),
        "age": Number().int().min(0),
    })


class TestObject:
    """Test Object validation and unknown key policies."""

    def test_valid_object(self, user_schema):
        """Test a valid mapping produces a new dict."""
        data = {"id": 1, "name": "taro", "email": "taro@example.com", "age": 30}
        result = user_schema.validate(data)
        assert result.valid
        assert result.value == data
        assert result.value is not data

    def test_aggregates_every_field(self, user_schema):
        """Test issues from every invalid field are collected."""
        result = user_schema.validate({"id": "1", "name": 5, "email": "bad", "age": -1})
        assert issue_summary(result) == [
            (IssueCode.INVALID_TYPE, ("id",)),
            (IssueCode.INVALID_TYPE, ("name",)),
            (IssueCode.INVALID_STRING_FORMAT, ("email",)),
            (IssueCode.TOO_SMALL, ("age",)),
        ]

    def test_missing_fields_are_required(self, user_schema):
        """Test absent fields report Required at their path."""
        result = user_schema.validate({})
        assert [issue.path for issue in result.issues] == [("id",), ("name",), ("email",), ("age",)]
        assert all(issue.message == "Required" for issue in result.issues)

    def test_non_mapping(self, user_schema):
        """Test a non-mapping is one invalid_type issue at the root."""
        result = user_schema.validate([])
        assert issue_summary(result) == [(IssueCode.INVALID_TYPE, ())]
        assert result.issues[0]["received"] == "array"

    def test_unknown_keys_stripped_by_default(self):
        """Test keys outside the shape are dropped."""
        schema = Object({"name": String()})
        assert schema.validate({"name": "a", "extra": 1}).value == {"name": "a"}

    def test_strict(self):
        """Test strict() reports unrecognized keys at the object path."""
        schema = Object({"name": String()}).strict()
        result = schema.validate({"name": "a", "extra": 1, "other": 2})
        assert issue_summary(result) == [(IssueCode.UNRECOGNIZED_KEYS, ())]
        assert result.issues[0]["keys"] == ["extra", "other"]
        assert result.issues[0].message == "Unrecognized key(s) in object: 'extra', 'other'"

    def test_passthrough(self):
        """Test passthrough() keeps unknown keys verbatim."""
        schema = Object({"name": String()}).passthrough()
        assert schema.validate({"name": "a", "extra": [1]}).value == {"name": "a", "extra": [1]}

    def test_catchall(self):
        """Test catchall() validates unknown keys."""
        schema = Object({"name": String()}).catchall(Number())
        assert schema.validate({"name": "a", "score": 1}).value == {"name": "a", "score": 1}
        result = schema.validate({"name": "a", "score": "x"})
        assert issue_summary(result) == [(IssueCode.INVALID_TYPE, ("score",))]

    def test_strip_restores_default(self):
        """Test strip() undoes strict()."""
        schema = Object({"name": String()}).strict().strip()
        assert schema.validate({"name": "a", "extra": 1}).valid

    def test_optional_fields_omitted(self):
        """Test absent optional fields do not appear in the output."""
        schema = Object({"name": String(), "nickname": String().optional()})
        assert schema.validate({"name": "a"}).value == {"name": "a"}

    def test_accepts_any_mapping(self):
        """Test read-only mappings are accepted."""
        schema = Object({"name": String()})
        assert schema.validate(MappingProxyType({"name": "a"})).value == {"name": "a"}

    def test_field_order_does_not_change_issues(self):
        """Test the issue set is independent of field declaration order."""
        fields = {"a": String(), "b": Number(), "c": Boolean()}
        forward = Object(fields)
        backward = Object(dict(reversed(list(fields.items()))))
        data = {"a": 1, "b": "x", "c": None}
        assert set(issue_summary(forward.validate(data))) == set(
            issue_summary(backward.validate(data))
        )

    def test_invalid_field_schema(self):
        """Test non-schema field values fail at construction."""
        with pytest.raises(SchemaDefinitionError):
            Object({"name": str})
        with pytest.raises(SchemaDefinitionError):
            Object({}, unknown_keys="ignore")


class TestObjectDerivation:
    """Test pick, omit, extend, merge, partial, required and keyof."""

    def test_pick(self, user_schema):
        """Test pick() keeps only the named fields."""
        public = user_schema.pick({"id": True, "name": True})
        assert list(public.shape) == ["id", "name"]
        assert public.validate({"id": 1, "name": "a", "email": "x"}).value == {"id": 1, "name": "a"}
        assert list(user_schema.pick(["name"]).shape) == ["name"]

    def test_omit(self, user_schema):
        """Test omit() drops the named fields."""
        without_id = user_schema.omit({"id": True})
        assert "id" not in without_id.shape
        assert "id" in user_schema.shape

    def test_unknown_keys_rejected(self, user_schema):
        """Test derivation with unknown keys fails at construction."""
        for derive in (user_schema.pick, user_schema.omit, user_schema.partial, user_schema.required):
            with pytest.raises(SchemaDefinitionError):
                derive(["nope"])

    def test_extend_and_merge(self, user_schema):
        """Test extend() adds fields and merge() combines objects."""
        with_role = user_schema.extend({"role": Enum(["admin", "user"])})
        assert list(with_role.shape)[-1] == "role"

        overridden = user_schema.extend({"age": String()})
        assert isinstance(overridden.shape["age"], String)

        merged = Object({"a": String()}).merge(Object({"b": Number()}).strict())
        assert list(merged.shape) == ["a", "b"]
        assert not merged.validate({"a": "x", "b": 1, "c": 2}).valid

    def test_partial(self, user_schema):
        """Test partial() makes every field optional."""
        partial = user_schema.partial()
        assert partial.validate({}).value == {}
        assert partial.validate({"name": "taro"}).value == {"name": "taro"}
        assert not user_schema.validate({}).valid

    def test_partial_keys(self, user_schema):
        """Test partial(keys) only relaxes the named fields."""
        schema = user_schema.partial({"age": True, "email": True})
        result = schema.validate({})
        assert [issue.path for issue in result.issues] == [("id",), ("name",)]

    def test_partial_keeps_defaults(self):
        """Test defaulted fields still apply their default after partial()."""
        base = Object({
            "name": String().min(1),
            "role": Enum(["admin", "editor", "viewer"]).default("viewer"),
        })
        assert base.partial().validate({"name": "jiro"}).value == {"name": "jiro", "role": "viewer"}

    def test_required(self, user_schema):
        """Test required() undoes partial()."""
        restored = user_schema.partial().required()
        assert not restored.validate({}).valid
        assert not isinstance(restored.shape["name"], Optional)

    def test_deep_partial(self):
        """Test deep_partial() relaxes nested objects and array elements."""
        schema = Object({
            "profile": Object({"bio": String(), "links": Array(Object({"url": String()}))}),
        })
        relaxed = schema.deep_partial()
        assert relaxed.validate({}).valid
        assert relaxed.validate({"profile": {"links": [{}]}}).valid
        assert not schema.validate({"profile": {}}).valid

    def test_keyof(self, user_schema):
        """Test keyof() builds an enum of field names."""
        keys = user_schema.keyof()
        assert keys.options == ["id", "name", "email", "age"]
        assert not keys.validate("password").valid


class TestArray:
    """Test Array validation."""

    def test_elements_and_paths(self):
        """Test element issues carry their index."""
        result = Array(Number()).validate([1, "x", 3, None])
        assert issue_summary(result) == [
            (IssueCode.INVALID_TYPE, (1,)),
            (IssueCode.INVALID_TYPE, (3,)),
        ]

    def test_length_checks(self):
        """Test min, max, length and nonempty."""
        too_short = Array(Number()).min(2).validate([1])
        assert too_short.issues[0].message == "Array must contain at least 2 element(s)"
        assert Array(Number()).max(2).validate([1, 2]).valid
        assert not Array(Number()).length(2).validate([1, 2, 3]).valid
        assert Array(Number()).nonempty().validate([]).issues[0].code == IssueCode.TOO_SMALL

    def test_length_checked_independently_of_elements(self):
        """Test element and length issues are both reported."""
        result = Array(Number()).min(3).validate(["x"])
        assert issue_summary(result) == [
            (IssueCode.INVALID_TYPE, (0,)),
            (IssueCode.TOO_SMALL, ()),
        ]

    def test_output_is_list(self):
        """Test tuple input produces a list and array() builds arrays."""
        assert Array(Number()).validate((1, 2)).value == [1, 2]
        assert Number().array().validate([3]).value == [3]

    def test_non_sequence(self):
        """Test a string is not an array."""
        assert Array(String()).validate("abc").issues[0]["expected"] == "array"


class TestTuple:
    """Test Tuple validation."""

    def test_positional(self):
        """Test positional schemas and output container type."""
        schema = Tuple([String(), Number()])
        assert schema.validate(["a", 1]).value == ["a", 1]
        assert schema.validate(("a", 1)).value == ("a", 1)
        assert issue_summary(schema.validate(["a", "b"])) == [(IssueCode.INVALID_TYPE, (1,))]

    def test_arity_is_one_issue(self):
        """Test too few or too many items is a single issue."""
        schema = Tuple([String(), Number(), Boolean()])
        too_few = schema.validate(["a"])
        assert issue_summary(too_few) == [(IssueCode.TOO_SMALL, ())]
        assert too_few.issues[0]["exact"] is True
        assert issue_summary(schema.validate(["a", 1, True, False])) == [(IssueCode.TOO_BIG, ())]

    def test_present_items_still_validated(self):
        """Test a short tuple still reports its present invalid items."""
        result = Tuple([String(), Number()]).validate([1])
        assert issue_summary(result) == [
            (IssueCode.TOO_SMALL, ()),
            (IssueCode.INVALID_TYPE, (0,)),
        ]

    def test_rest(self):
        """Test rest() validates trailing elements."""
        schema = Tuple([String()]).rest(Number())
        assert schema.validate(["a", 1, 2, 3]).valid
        assert issue_summary(schema.validate(["a", 1, "x"])) == [(IssueCode.INVALID_TYPE, (2,))]
        assert schema.validate([]).issues[0]["exact"] is False


class TestRecordMapSet:
    """Test Record, Map and Set validation."""

    def test_record(self):
        """Test record values are validated with the key as path."""
        schema = Record(Number())
        assert schema.validate({"a": 1, "b": 2}).value == {"a": 1, "b": 2}
        assert issue_summary(schema.validate({"a": 1, "b": "x"})) == [
            (IssueCode.INVALID_TYPE, ("b",))
        ]

    def test_record_keys(self):
        """Test record keys are validated too."""
        schema = Record(String().min(2), Number())
        assert issue_summary(schema.validate({"a": 1})) == [(IssueCode.TOO_SMALL, ("a",))]
        assert not schema.validate([("ab", 1)]).valid

    def test_map(self):
        """Test maps accept any mapping and produce a dict."""
        schema = Map(String(), Number())
        assert schema.validate(MappingProxyType({"a": 1})).value == {"a": 1}
        assert issue_summary(schema.validate({1: 1})) == [(IssueCode.INVALID_TYPE, (1,))]

    def test_set(self):
        """Test sets and their size checks."""
        assert Set(Number()).validate({1, 2}).value == {1, 2}
        assert Set(Number()).validate(frozenset({1})).value == {1}
        assert Set(Number()).validate([1, 2]).issues[0]["expected"] == "set"
        too_small = Set(Number()).min(3).validate({1})
        assert too_small.issues[0].message == "Set must contain at least 3 element(s)"
        assert Set(Number()).size(2).validate({1, 2}).valid
        assert not Set(Number()).nonempty().validate(set()).valid
