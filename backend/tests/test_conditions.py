"""Tests for rule condition evaluation."""

import math

import pytest
from app.services.conditions import (
    MISSING, evaluate_conditions, evaluate_field_condition, resolve_path,
    strict_equals, to_number, to_text,
)


class TestResolvePath:
    def test_top_level(self):
        assert resolve_path({"email": "a@b.com"}, "email") == "a@b.com"

    def test_nested(self):
        data = {"address": {"city": "Oslo", "geo": {"lat": 59.9}}}
        assert resolve_path(data, "address.city") == "Oslo"
        assert resolve_path(data, "address.geo.lat") == 59.9

    def test_missing_intermediate_is_missing(self):
        assert resolve_path({"address": {}}, "address.city.name") is MISSING
        assert resolve_path({}, "address.city") is MISSING

    def test_null_is_not_missing(self):
        assert resolve_path({"phone": None}, "phone") is None

    def test_list_index(self):
        data = {"items": [{"sku": "A1"}, {"sku": "B2"}]}
        assert resolve_path(data, "items.1.sku") == "B2"
        assert resolve_path(data, "items.5.sku") is MISSING

    def test_descend_into_scalar(self):
        assert resolve_path({"email": "x"}, "email.domain") is MISSING

    def test_only_ascii_digits_index_lists(self):
        assert resolve_path({"items": [1]}, "items.²") is MISSING
        assert resolve_path({"items": [1]}, "items.٠") is MISSING
        assert evaluate_conditions(
            {"field_conditions": {"items.²": {"operator": "is_empty"}}}, {"items": [1]}, {},
        )


class TestCoercion:
    def test_text(self):
        assert to_text(MISSING) == "undefined"
        assert to_text(None) == "null"
        assert to_text(True) == "true"
        assert to_text(5.0) == "5"
        assert to_text(2.5) == "2.5"
        assert to_text([1, "a", None]) == "1,a,"
        assert to_text({"a": 1}) == "[object Object]"

    def test_number_text_layout(self):
        assert to_text(1e-7) == "1e-7"
        assert to_text(0.000001) == "0.000001"
        assert to_text(0.00001) == "0.00001"
        assert to_text(1.5e300) == "1.5e+300"
        assert to_text(1e21) == "1e+21"
        assert to_text(1e20) == "100000000000000000000"
        assert to_text(-0.25) == "-0.25"
        assert to_text(-0.0) == "0"
        assert to_text(float("nan")) == "NaN"
        assert to_text(10 ** 22) == "1e+22"

    def test_small_float_text_operators(self):
        assert evaluate_field_condition(1e-7, {"operator": "starts_with", "value": "1e-7"})
        assert evaluate_field_condition(0.00001, {"operator": "contains", "value": "0.0000"})

    def test_number(self):
        assert to_number("42") == 42
        assert to_number(" 3.5 ") == 3.5
        assert to_number("") == 0
        assert to_number(None) == 0
        assert to_number(True) == 1
        assert math.isnan(to_number("abc"))
        assert math.isnan(to_number(MISSING))
        assert math.isnan(to_number({"a": 1}))
        assert math.isnan(to_number("nan"))

    def test_strict_equals_no_cross_kind(self):
        assert strict_equals(1, 1.0)
        assert not strict_equals(True, 1)
        assert not strict_equals("1", 1)
        assert not strict_equals(None, MISSING)
        assert not strict_equals({"a": 1}, {"a": 1})


class TestFieldOperators:
    @pytest.mark.parametrize("operator,field,value,expected", [
        ("equals", "vip", "vip", True),
        ("equals", "5", 5, False),
        ("not_equals", "vip", "basic", True),
        ("contains", "hello@acme.com", "acme", True),
        ("contains", 12345, 234, True),
        ("not_contains", "hello@acme.com", "gmail", True),
        ("starts_with", "+47 999", "+47", True),
        ("ends_with", "a@acme.com", ".org", False),
        ("greater_than", "150", 100, True),
        ("greater_than", 50, 100, False),
        ("less_than", 3, "10", True),
        ("is_empty", "", None, True),
        ("is_empty", 0, None, True),
        ("is_empty", "x", None, False),
        ("is_not_empty", "x@y.com", None, True),
        ("is_not_empty", None, None, False),
    ])
    def test_operator(self, operator, field, value, expected):
        assert evaluate_field_condition(field, {"operator": operator, "value": value}) is expected

    def test_non_numeric_ordering_fails_closed(self):
        assert evaluate_field_condition("lots", {"operator": "greater_than", "value": 10}) is False
        assert evaluate_field_condition("lots", {"operator": "less_than", "value": 10}) is False

    def test_unknown_operator_fails_closed(self):
        assert evaluate_field_condition("x", {"operator": "matches_regex", "value": "x"}) is False

    def test_malformed_condition(self):
        assert evaluate_field_condition("x", "equals") is False

    def test_is_empty_on_absent_field(self):
        assert evaluate_field_condition(MISSING, {"operator": "is_empty"}) is True

    def test_empty_list_is_not_empty(self):
        assert evaluate_field_condition([], {"operator": "is_empty"}) is False


class TestEvaluateConditions:
    def test_no_conditions_match(self):
        assert evaluate_conditions({}, {"a": 1}, {}) is True
        assert evaluate_conditions(None, {"a": 1}, {}) is True

    def test_basic_match(self):
        conditions = {"field_conditions": {"email": {"operator": "is_not_empty"}}}
        assert evaluate_conditions(conditions, {"email": "x@y.com"}, {}) is True

    def test_no_match_amount(self):
        conditions = {"field_conditions": {"amount": {"operator": "greater_than", "value": 100}}}
        assert evaluate_conditions(conditions, {"amount": 50}, {}) is False

    def test_all_field_conditions_required(self):
        conditions = {"field_conditions": {
            "email": {"operator": "contains", "value": "@acme.com"},
            "plan": {"operator": "equals", "value": "pro"},
        }}
        assert evaluate_conditions(conditions, {"email": "a@acme.com", "plan": "pro"}, {}) is True
        assert evaluate_conditions(conditions, {"email": "a@acme.com", "plan": "free"}, {}) is False

    def test_absent_field_is_empty(self):
        conditions = {"field_conditions": {"coupon": {"operator": "is_empty"}}}
        assert evaluate_conditions(conditions, {"email": "a@b.com"}, {}) is True

    def test_user_conditions(self):
        conditions = {"user_conditions": {"country": "NO", "returning": True}}
        assert evaluate_conditions(conditions, {}, {"country": "NO", "returning": True}) is True
        assert evaluate_conditions(conditions, {}, {"country": "NO", "returning": 1}) is False
        assert evaluate_conditions(conditions, {}, {"country": "NO"}) is False

    def test_user_conditions_without_user_info(self):
        conditions = {"user_conditions": {"country": "NO"}}
        assert evaluate_conditions(conditions, {}, None) is False

    def test_both_dimensions(self):
        conditions = {
            "field_conditions": {"address.city": {"operator": "equals", "value": "Oslo"}},
            "user_conditions": {"device": "mobile"},
        }
        form = {"address": {"city": "Oslo"}}
        assert evaluate_conditions(conditions, form, {"device": "mobile"}) is True
        assert evaluate_conditions(conditions, form, {"device": "desktop"}) is False

    def test_repeatable(self):
        conditions = {"field_conditions": {"n": {"operator": "less_than", "value": 3}}}
        form = {"n": "2"}
        first = evaluate_conditions(conditions, form, {})
        assert evaluate_conditions(conditions, form, {}) is first is True
        assert form == {"n": "2"}
