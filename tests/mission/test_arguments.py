"""Tests for argument value coercion."""

import math

import pytest

from missionflow.mission.arguments import (
    coerce_value,
    resolve_control_value,
    to_stored,
    unwrap_option_value,
    values_equal,
)


class TestCoerceValue:
    """Tests for coerce_value()."""

    @pytest.mark.parametrize(
        "arg_type,raw,expected",
        [
            ("str", None, None),
            ("int", "", None),
            ("bool", "TRUE", True),
            ("boolean", "yes", False),
            ("bool", True, True),
            ("float", "2.5", 2.5),
            ("number", "abc", None),
            ("float", "inf", None),
            ("int", "7.9", 7),
            ("integer", "-7.9", -7),
            ("str", 12, "12"),
            ("unknown", "text", "text"),
        ],
    )
    def test_coerce(self, arg_type, raw, expected):
        assert coerce_value(arg_type, raw) == expected

    def test_type_is_case_insensitive(self):
        assert coerce_value("Float", "1.5") == 1.5


class TestResolveControlValue:
    """Tests for values coming from argument editor controls."""

    def test_unwraps_option_objects(self):
        assert unwrap_option_value({"value": "fast", "label": "Fast"}) == "fast"
        assert resolve_control_value({"value": "3"}, "int") == 3

    def test_numeric_keeps_typed_numbers(self):
        """An int control value keeps its fractional part."""
        assert resolve_control_value(2.75, "int") == 2.75

    def test_numeric_rejects_non_finite(self):
        assert resolve_control_value(math.inf, "float") is None

    def test_bool(self):
        assert resolve_control_value("true", "bool") is True
        assert resolve_control_value("false", "bool") is False

    def test_empty_is_none(self):
        assert resolve_control_value("", "str") is None


class TestStoredForm:
    """Tests for the persisted string form."""

    @pytest.mark.parametrize(
        "value,expected",
        [(None, ""), (True, "true"), (False, "false"), (1.5, "1.5"), ("x", "x")],
    )
    def test_to_stored(self, value, expected):
        assert to_stored(value) == expected

    def test_values_equal_nan(self):
        assert values_equal(float("nan"), float("nan"))

    def test_values_equal_bool_is_not_int(self):
        assert not values_equal(True, 1)
        assert values_equal(1, 1.0)
        assert not values_equal("1", 1)
