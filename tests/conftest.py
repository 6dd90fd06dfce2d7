"""Shared pytest fixtures for relayQL unit tests."""
from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests

from relayql.client.database import DatabaseClient
from relayql.query.builder import QueryBuilder
from relayql.schema import (
    AggregateOptions,
    OrderByClause,
    QueryParams,
    SortDirection,
    TransformConfig,
    WhereOperator,
    WindowFrame,
    WindowOver,
)
from tests.fixtures import BASE_URL, make_response


@pytest.fixture
def session() -> MagicMock:
    """A mock ``requests.Session`` answering every request with no records."""
    mock = MagicMock(spec=requests.Session)
    mock.headers = {}
    mock.request.return_value = make_response({"records": []})
    return mock


@pytest.fixture
def client(session: MagicMock) -> DatabaseClient:
    return DatabaseClient(BASE_URL, session=session)


@pytest.fixture
def maximal_params() -> QueryParams:
    """An aggregate with every slot populated."""
    return (
        QueryBuilder("orders")
        .where("status", "paid")
        .where("total", ">", 100)
        .where("deleted_at", WhereOperator.IS_NULL)
        .where_between("created_at", ["2024-01-01", "2024-12-31"])
        .where_null("refunded_at")
        .where_not_null("customer_id")
        .where_in("region", ["eu", "us"])
        .where_not_in("channel", ["test"])
        .where_exists_join("customers", "customer_id", "id", lambda q: q.where("vip", True))
        .or_where(lambda q: q.where("priority", "high").where("total", ">=", 1000))
        .select(["id", "status", "total"])
        .group_by(["status"])
        .sum("total", alias="revenue")
        .having("revenue", ">", 1000)
        .raw_expression("total * ?", [1.2])
        .order_by("created_at", SortDirection.DESC, "last")
        .limit(50)
        .offset(100)
        .row_number("rn", partition_by=["customer_id"], order_by=["created_at"])
        .window_advanced(
            "sum",
            "running_total",
            field="total",
            over=WindowOver(
                partition_by=["customer_id"],
                order_by=[OrderByClause(field="created_at")],
                frame=WindowFrame(type="ROWS", start="UNBOUNDED PRECEDING", end="CURRENT ROW"),
            ),
        )
        .with_("recent", lambda q: q.where("created_at", ">", "2024-06-01"), columns=["id"])
        .with_recursive(
            "chain",
            QueryBuilder("orders").where_null("parent_id"),
            QueryBuilder("chain").where("depth", "<", 5),
            union_all=True,
            columns=["id", "parent_id"],
        )
        .transform(
            TransformConfig(
                group_by=["status"],
                flatten=True,
                select=["status", "revenue"],
            )
        )
        .explain(analyze=True, verbose=False, format="json")
        .to_params()
    )


@pytest.fixture
def pivot_aggregate() -> AggregateOptions:
    return AggregateOptions(type="sum", field="amount", alias="total")
