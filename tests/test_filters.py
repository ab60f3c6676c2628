"""
Tests for memberhub/integrations/filters.py

Rendering to the backend's filter syntax, and in-memory evaluation.
"""

from __future__ import annotations

from datetime import date, datetime

import pytest

from memberhub.integrations.filters import (
    Condition,
    Group,
    all_of,
    any_of,
    eq,
    gt,
    gte,
    like,
    lt,
    lte,
    ne,
    render_value,
    to_filter_string,
)


# ---------------------------------------------------------------------------
# render_value
# ---------------------------------------------------------------------------


class TestRenderValue:

    def test_string_is_quoted(self):
        assert render_value("acme") == '"acme"'

    def test_quotes_and_backslashes_escaped(self):
        assert render_value('a"b\\c') == '"a\\"b\\\\c"'

    def test_injection_attempt_stays_inside_literal(self):
        rendered = eq("subdomain", 'x" || status != "').render()
        assert rendered == 'subdomain = "x\\" || status != \\""'

    def test_booleans(self):
        assert render_value(True) == "true"
        assert render_value(False) == "false"

    def test_numbers(self):
        assert render_value(12) == "12"
        assert render_value(9.5) == "9.5"

    def test_none(self):
        assert render_value(None) == "null"

    def test_date(self):
        assert render_value(date(2024, 3, 1)) == '"2024-03-01"'

    def test_datetime(self):
        value = datetime(2024, 3, 1, 9, 30, 5, 123000)
        assert render_value(value) == '"2024-03-01 09:30:05.123Z"'


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


class TestRender:

    def test_condition(self):
        assert eq("status", "active").render() == 'status = "active"'

    def test_all_operators(self):
        assert ne("a", 1).render() == "a != 1"
        assert like("a", "x").render() == 'a ~ "x"'
        assert lt("a", 1).render() == "a < 1"
        assert lte("a", 1).render() == "a <= 1"
        assert gt("a", 1).render() == "a > 1"
        assert gte("a", 1).render() == "a >= 1"

    def test_unknown_operator_rejected(self):
        with pytest.raises(ValueError):
            Condition("a", "==", 1)

    def test_unknown_group_operator_rejected(self):
        with pytest.raises(ValueError):
            Group("AND", [eq("a", 1)])

    def test_and_chain_is_flat(self):
        flt = eq("a", 1) & eq("b", 2) & eq("c", 3)
        assert flt.render() == "a = 1 && b = 2 && c = 3"

    def test_or_inside_and_is_parenthesized(self):
        flt = eq("tenant_id", "t1") & (like("name", "jo") | like("email", "jo"))
        assert flt.render() == 'tenant_id = "t1" && (name ~ "jo" || email ~ "jo")'

    def test_str_is_render(self):
        flt = eq("a", "b")
        assert str(flt) == flt.render()

    def test_to_filter_string(self):
        assert to_filter_string(None) is None
        assert to_filter_string("") is None
        assert to_filter_string('raw = "x"') == 'raw = "x"'
        assert to_filter_string(eq("a", 1)) == "a = 1"


class TestCombinators:

    def test_all_of_skips_none(self):
        flt = all_of(None, eq("a", 1), None)
        assert flt.render() == "a = 1"

    def test_all_of_empty_is_none(self):
        assert all_of() is None
        assert all_of(None, None) is None

    def test_any_of_joins_with_or(self):
        assert any_of(eq("a", 1), eq("b", 2)).render() == "a = 1 || b = 2"

    def test_any_of_single_returns_itself(self):
        cond = eq("a", 1)
        assert any_of(None, cond) is cond


# ---------------------------------------------------------------------------
# matches
# ---------------------------------------------------------------------------


class TestMatches:

    def test_equality(self):
        assert eq("status", "active").matches({"status": "active"})
        assert not eq("status", "active").matches({"status": "pending"})

    def test_missing_field_equals_empty(self):
        assert eq("logo", "").matches({})
        assert not ne("logo", "").matches({})

    def test_boolean_field(self):
        assert eq("active", True).matches({"active": True})
        assert not eq("active", True).matches({"active": False})

    def test_like_is_case_insensitive_substring(self):
        assert like("name", "SMI").matches({"name": "Jane Smith"})
        assert not like("name", "doe").matches({"name": "Jane Smith"})
        assert not like("name", "x").matches({})

    def test_date_comparison_against_datetime_strings(self):
        flt = lte("end_date", "2024-03-01 23:59:59.999Z")
        assert flt.matches({"end_date": "2024-03-01"})
        assert flt.matches({"end_date": "2024-03-01 12:00:00.000Z"})
        assert not flt.matches({"end_date": "2024-03-02"})

    def test_date_value_compared_as_string(self):
        assert gte("start_date", date(2024, 1, 1)).matches({"start_date": "2024-06-01"})

    def test_numeric_comparison(self):
        assert gt("price", 10).matches({"price": 25.0})
        assert not lt("price", 10).matches({"price": 25})

    def test_comparison_with_missing_field_is_false(self):
        assert not lt("price", 10).matches({})

    def test_groups(self):
        record = {"tenant_id": "t1", "name": "Ann", "email": "ann@x.org"}
        flt = eq("tenant_id", "t1") & (like("name", "zed") | like("email", "ann"))
        assert flt.matches(record)
        assert not (eq("tenant_id", "t2") & like("name", "ann")).matches(record)
