"""
Filter expressions for the remote store.

Builds the backend's string filter syntax from small composable objects
instead of f-strings, so values are always quoted and escaped:

    flt = eq("subdomain", "acme") & eq("status", "active")
    flt.render()   # 'subdomain = "acme" && status = "active"'

The same objects can be evaluated against an in-memory record with
`matches()`, which is what the FakeStore uses in tests.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Iterable, Mapping, Optional, Union

OPERATORS = ("=", "!=", "~", "<", "<=", ">", ">=")


def render_value(value: Any) -> str:
    """Render a Python value as a filter literal."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, datetime):
        value = value.strftime("%Y-%m-%d %H:%M:%S.%f")[:-3] + "Z"
    elif isinstance(value, date):
        value = value.isoformat()
    text = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{text}"'


class Filter:
    """Base class for filter expressions."""

    def render(self) -> str:
        raise NotImplementedError

    def matches(self, record: Mapping[str, Any]) -> bool:
        raise NotImplementedError

    def __and__(self, other: "Filter") -> "Filter":
        return Group("&&", [self, other])

    def __or__(self, other: "Filter") -> "Filter":
        return Group("||", [self, other])

    def __str__(self) -> str:
        return self.render()


class Condition(Filter):
    """A single `field <op> value` comparison."""

    def __init__(self, field: str, op: str, value: Any):
        if op not in OPERATORS:
            raise ValueError(f"Unsupported filter operator '{op}'")
        self.field = field
        self.op = op
        self.value = value

    def render(self) -> str:
        return f"{self.field} {self.op} {render_value(self.value)}"

    def matches(self, record: Mapping[str, Any]) -> bool:
        actual = record.get(self.field)
        expected = self.value
        if isinstance(expected, (date, datetime)):
            expected = render_value(expected).strip('"')

        if self.op == "=":
            return _equal(actual, expected)
        if self.op == "!=":
            return not _equal(actual, expected)
        if self.op == "~":
            if actual is None:
                return False
            return str(expected).lower() in str(actual).lower()

        if actual is None or expected is None:
            return False
        if isinstance(actual, (int, float)) != isinstance(expected, (int, float)):
            actual, expected = str(actual), str(expected)
        if self.op == "<":
            return actual < expected
        if self.op == "<=":
            return actual <= expected
        if self.op == ">":
            return actual > expected
        return actual >= expected

    def __repr__(self) -> str:
        return f"Condition({self.render()!r})"


class Group(Filter):
    """Conditions joined with `&&` or `||`."""

    def __init__(self, op: str, parts: Iterable[Filter]):
        if op not in ("&&", "||"):
            raise ValueError(f"Unsupported group operator '{op}'")
        self.op = op
        self.parts = list(parts)

    def render(self) -> str:
        rendered = []
        for part in self.parts:
            text = part.render()
            if isinstance(part, Group) and part.op != self.op and len(part.parts) > 1:
                text = f"({text})"
            rendered.append(text)
        return f" {self.op} ".join(rendered)

    def matches(self, record: Mapping[str, Any]) -> bool:
        if self.op == "&&":
            return all(part.matches(record) for part in self.parts)
        return any(part.matches(record) for part in self.parts)

    def __repr__(self) -> str:
        return f"Group({self.render()!r})"


def _equal(actual: Any, expected: Any) -> bool:
    if actual is None:
        return expected is None or expected == ""
    if isinstance(actual, bool) or isinstance(expected, bool):
        return actual is expected or actual == expected
    if isinstance(actual, (int, float)) and isinstance(expected, (int, float)):
        return actual == expected
    return str(actual) == str(expected)


# ── Builders ─────────────────────────────────────────────────


def eq(field: str, value: Any) -> Condition:
    return Condition(field, "=", value)


def ne(field: str, value: Any) -> Condition:
    return Condition(field, "!=", value)


def like(field: str, value: Any) -> Condition:
    """Case-insensitive substring match (`~`)."""
    return Condition(field, "~", value)


def lt(field: str, value: Any) -> Condition:
    return Condition(field, "<", value)


def lte(field: str, value: Any) -> Condition:
    return Condition(field, "<=", value)


def gt(field: str, value: Any) -> Condition:
    return Condition(field, ">", value)


def gte(field: str, value: Any) -> Condition:
    return Condition(field, ">=", value)


def all_of(*filters: Optional[Filter]) -> Optional[Filter]:
    """AND the given filters together, skipping None. Returns None if empty."""
    parts = [f for f in filters if f is not None]
    if not parts:
        return None
    if len(parts) == 1:
        return parts[0]
    return Group("&&", parts)


def any_of(*filters: Optional[Filter]) -> Optional[Filter]:
    """OR the given filters together, skipping None. Returns None if empty."""
    parts = [f for f in filters if f is not None]
    if not parts:
        return None
    if len(parts) == 1:
        return parts[0]
    return Group("||", parts)


FilterLike = Union[Filter, str, None]


def to_filter_string(flt: FilterLike) -> Optional[str]:
    """Render a Filter (or pass through a raw string) for the wire."""
    if flt is None:
        return None
    if isinstance(flt, Filter):
        return flt.render()
    return flt or None
