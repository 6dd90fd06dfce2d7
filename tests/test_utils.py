"""Unit tests for relayql.utils."""
from __future__ import annotations

import pytest

from relayql.errors import FormatError
from relayql.utils import (
    apply_computed_fields,
    deep_merge,
    flatten,
    group_by,
    is_null_or_empty,
    pivot,
    unflatten,
)

SALES = [
    {"month": "jan", "region": "eu", "amount": 10},
    {"month": "jan", "region": "us", "amount": 5},
    {"month": "feb", "region": "eu", "amount": 7},
]


@pytest.mark.parametrize("value", [None, "", [], (), {}])
def test_is_null_or_empty_true(value):
    assert is_null_or_empty(value)


@pytest.mark.parametrize("value", [0, False, "x", [None], {"a": 1}])
def test_is_null_or_empty_false(value):
    assert not is_null_or_empty(value)


def test_group_by_keeps_first_seen_order():
    groups = group_by(SALES, lambda r: r["month"])
    assert list(groups) == ["jan", "feb"]
    assert len(groups["jan"]) == 2


def test_pivot_sums_by_default():
    rows = pivot(SALES, "month", ["jan", "feb", "mar"], "amount")
    assert rows == [
        {"month": "jan", "amount": 15},
        {"month": "feb", "amount": 7},
        {"month": "mar", "amount": 0},
    ]


@pytest.mark.parametrize(
    "func, expected",
    [("count", 2), ("avg", 7.5), ("min", 5), ("max", 10)],
)
def test_pivot_aggregates(func, expected):
    [row] = pivot(SALES, "month", ["jan"], "amount", func=func)
    assert row["amount"] == expected


def test_pivot_value_transform():
    [row] = pivot(SALES, "month", ["jan"], "amount", value_transform=lambda v: f"${v}")
    assert row == {"month": "jan", "amount": "$15"}


def test_pivot_empty_records():
    assert pivot([], "month", ["jan"], "amount") == []


def test_pivot_unknown_aggregate():
    with pytest.raises(FormatError):
        pivot(SALES, "month", ["jan"], "amount", func="median")


def test_deep_merge():
    base = {"a": {"x": 1, "y": [1]}, "b": 1}
    override = {"a": {"y": [2], "z": 3}, "b": 2, "c": 3}
    assert deep_merge(base, override) == {"a": {"x": 1, "y": [1, 2], "z": 3}, "b": 2, "c": 3}
    assert base == {"a": {"x": 1, "y": [1]}, "b": 1}


def test_flatten_and_unflatten():
    nested = {"user": {"name": "a", "address": {"city": "b"}}, "id": 1}
    flat = flatten(nested)
    assert flat == {"user.name": "a", "user.address.city": "b", "id": 1}
    assert unflatten(flat) == nested


def test_flatten_custom_separator():
    assert flatten({"a": {"b": 1}}, separator="__") == {"a__b": 1}


def test_apply_computed_fields():
    records = [{"price": 10, "qty": 3}]
    result = apply_computed_fields(
        records,
        {"total": lambda r: r["price"] * r["qty"], "has_total": lambda r: "total" in r},
    )
    assert result == [{"price": 10, "qty": 3, "total": 30, "has_total": False}]
    assert records == [{"price": 10, "qty": 3}]
