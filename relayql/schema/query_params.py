"""The QueryParams aggregate: the complete description of one query.

All slots are optional; an absent slot is omitted from the wire form and
stays absent after a round trip.  No cross-slot consistency is checked
here (e.g. ``having`` without ``group_by``); that is the remote
executor's concern.

The implicit ``filter`` mapping and the explicit ``where_raw`` predicate
list overlap in meaning but are separate wire slots: ``where("a", 1)`` and
``where("a", "=", 1)`` evaluate the same yet serialize differently.
"""
from __future__ import annotations

from pydantic import JsonValue

from relayql.schema.base import WireModel
from relayql.schema.clauses import (
    CTE,
    AggregateOptions,
    ExplainOptions,
    HavingClause,
    OrderByClause,
    RawExpression,
    RecursiveCTE,
    SubQueryConfig,
    TransformConfig,
    WhereBetweenClause,
    WhereClause,
    WhereGroup,
    WindowFunction,
    WindowFunctionAdvanced,
)


class QueryParams(WireModel):
    """Top-level query parameter aggregate.

    Attributes:
        filter: Implicit ``field = value`` filters.
        where_raw: Explicit operator predicates.
        where_between: Range predicates.
        where_null: Fields that must be NULL.
        where_not_null: Fields that must not be NULL.
        where_in: Set-membership filters keyed by field.
        where_not_in: Negated set-membership filters keyed by field.
        where_exists: Correlated EXISTS subqueries.
        where_groups: Nested AND/OR groups.
        order_by: Sort instructions.
        group_by: Grouping fields.
        having: Post-aggregation predicates.
        aggregates: Aggregate functions.
        raw_expressions: Opaque expressions.
        limit: Maximum number of rows.
        offset: Rows to skip.
        window_functions: Window functions.
        ctes: Common table expressions.
        transforms: Post-fetch result reshaping.
        explain: EXPLAIN options.
        recursive_ctes: Recursive CTEs.
        advanced_windows: Window functions with full OVER clauses.
        select: Fields to return.
    """

    filter: dict[str, JsonValue] | None = None
    where_raw: list[WhereClause] | None = None
    where_between: list[WhereBetweenClause] | None = None
    where_null: list[str] | None = None
    where_not_null: list[str] | None = None
    where_in: dict[str, list[JsonValue]] | None = None
    where_not_in: dict[str, list[JsonValue]] | None = None
    where_exists: list[SubQueryConfig] | None = None
    where_groups: list[WhereGroup] | None = None
    order_by: list[OrderByClause] | None = None
    group_by: list[str] | None = None
    having: list[HavingClause] | None = None
    aggregates: list[AggregateOptions] | None = None
    raw_expressions: list[RawExpression] | None = None
    limit: int | None = None
    offset: int | None = None
    window_functions: list[WindowFunction] | None = None
    ctes: list[CTE] | None = None
    transforms: TransformConfig | None = None
    explain: ExplainOptions | None = None
    recursive_ctes: list[RecursiveCTE] | None = None
    advanced_windows: list[WindowFunctionAdvanced] | None = None
    select: list[str] | None = None

    # ------------------------------------------------------------------
    # Domain methods
    # ------------------------------------------------------------------

    def populated_slots(self) -> list[str]:
        """Return the wire keys of every populated slot, in wire order."""
        return list(self.to_dict())

    def referenced_tables(self) -> set[str]:
        """Collect table and CTE names referenced by nested queries.

        Walks EXISTS subqueries, CTE bodies and both terms of recursive
        CTEs.  The aggregate itself carries no table name, so the outer
        table is not included.

        Returns:
            Set of table / CTE names in no particular order.
        """
        tables: set[str] = set()
        _collect_tables(self, tables)
        return tables


# ---------------------------------------------------------------------------
# Internal helpers for referenced_tables
# ---------------------------------------------------------------------------


def _collect_tables(params: QueryParams, tables: set[str]) -> None:
    """Walk every query-bearing slot and accumulate table names."""
    for sub in params.where_exists or []:
        tables.add(sub.table_name)
        _collect_tables(sub.params, tables)
    for cte in params.ctes or []:
        tables.add(cte.name)
        if cte.table_name:
            tables.add(cte.table_name)
        _collect_tables(cte.query, tables)
    for rcte in params.recursive_ctes or []:
        tables.add(rcte.name)
        tables.update(t for t in (rcte.initial_table, rcte.recursive_table) if t)
        _collect_tables(rcte.initial_query, tables)
        _collect_tables(rcte.recursive_query, tables)


# Resolve forward references created by the recursive QueryParams type.
WhereGroup.model_rebuild()
SubQueryConfig.model_rebuild()
CTE.model_rebuild()
RecursiveCTE.model_rebuild()
QueryParams.model_rebuild()
