"""relayQL – Client-side relational query builder.

Describe Queries. Don't Concatenate Them.

Public API
----------
``query``
    Start an unbound :class:`QueryBuilder` for a table.

``DatabaseClient``
    HTTP transport; ``DatabaseClient(url).table("users")`` returns a bound
    builder whose ``execute()`` runs the query remotely.

``to_dict`` / ``from_dict`` / ``to_json`` / ``from_json``
    Round-trip a :class:`QueryParams` aggregate through its structural form.

Re-exported types
-----------------
``QueryParams``, every clause model and wire enumeration, ``ApiResponse``,
``ClientConfig`` and all error classes.

Example
-------
::

    import relayql
    from relayql import SortDirection

    params = (
        relayql.query("users")
        .where("status", "active")
        .where("age", ">", 18)
        .or_where(lambda q: q.where("role", "admin").where("department", "IT"))
        .order_by("last_name", direction=SortDirection.DESC)
        .limit(10)
        .to_params()
    )
    payload = relayql.to_json(params)
"""

from __future__ import annotations

from relayql.client.config import ClientConfig
from relayql.client.database import DatabaseClient
from relayql.errors import FormatError, RelayQLError, TransportError, ValidationError
from relayql.query.builder import QueryBuilder, query
from relayql.schema import (
    CTE,
    AggregateOptions,
    AggregateType,
    ApiResponse,
    ExplainOptions,
    FrameType,
    GroupOperator,
    HavingClause,
    JoinCondition,
    NullsPosition,
    OrderByClause,
    PivotConfig,
    QueryParams,
    RawExpression,
    RecursiveCTE,
    SortDirection,
    SubQueryConfig,
    TransformConfig,
    WhereBetweenClause,
    WhereClause,
    WhereGroup,
    WhereOperator,
    WindowFrame,
    WindowFunction,
    WindowFunctionAdvanced,
    WindowFunctionType,
    WindowOver,
)
from relayql.serialize import (
    decode_query_params,
    diff_params,
    encode_query_params,
    from_dict,
    from_json,
    to_dict,
    to_json,
)

__version__ = "0.1.0"

__all__ = [
    # Entry points
    "query",
    "QueryBuilder",
    "DatabaseClient",
    "ClientConfig",
    # Aggregate and responses
    "QueryParams",
    "ApiResponse",
    # Clauses
    "WhereClause",
    "WhereBetweenClause",
    "WhereGroup",
    "JoinCondition",
    "SubQueryConfig",
    "OrderByClause",
    "HavingClause",
    "AggregateOptions",
    "RawExpression",
    "WindowFrame",
    "WindowOver",
    "WindowFunction",
    "WindowFunctionAdvanced",
    "CTE",
    "RecursiveCTE",
    "PivotConfig",
    "TransformConfig",
    "ExplainOptions",
    # Enumerations
    "WhereOperator",
    "GroupOperator",
    "SortDirection",
    "NullsPosition",
    "AggregateType",
    "WindowFunctionType",
    "FrameType",
    # Serialization
    "to_dict",
    "from_dict",
    "to_json",
    "from_json",
    "encode_query_params",
    "decode_query_params",
    "diff_params",
    # Errors
    "RelayQLError",
    "FormatError",
    "ValidationError",
    "TransportError",
]
