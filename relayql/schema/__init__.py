"""relayQL schema models: clauses, the QueryParams aggregate, responses."""
from relayql.schema.clauses import (
    CTE,
    AggregateOptions,
    ExplainOptions,
    HavingClause,
    JoinCondition,
    OrderByClause,
    PivotConfig,
    RawExpression,
    RecursiveCTE,
    SubQueryConfig,
    TransformConfig,
    WhereBetweenClause,
    WhereClause,
    WhereGroup,
    WindowFrame,
    WindowFunction,
    WindowFunctionAdvanced,
    WindowOver,
)
from relayql.schema.expressions import (
    AggregateType,
    FrameType,
    GroupOperator,
    NullsPosition,
    SortDirection,
    WhereOperator,
    WindowFunctionType,
)
from relayql.schema.query_params import QueryParams
from relayql.schema.response import ApiResponse

__all__ = [
    "AggregateOptions",
    "AggregateType",
    "ApiResponse",
    "CTE",
    "ExplainOptions",
    "FrameType",
    "GroupOperator",
    "HavingClause",
    "JoinCondition",
    "NullsPosition",
    "OrderByClause",
    "PivotConfig",
    "QueryParams",
    "RawExpression",
    "RecursiveCTE",
    "SortDirection",
    "SubQueryConfig",
    "TransformConfig",
    "WhereBetweenClause",
    "WhereClause",
    "WhereGroup",
    "WhereOperator",
    "WindowFrame",
    "WindowFunction",
    "WindowFunctionAdvanced",
    "WindowFunctionType",
    "WindowOver",
]
