"""
relayQL Fluent Query Builder

Provides a fluent API for assembling a :class:`~relayql.schema.QueryParams`
aggregate.

Every mutating call appends to (or replaces a slot of) an internal
accumulator and returns the same builder.  :meth:`QueryBuilder.to_params`
snapshots the accumulator into an immutable aggregate; it may be called any
number of times and further mutation stays legal afterwards.

Nested groups, EXISTS subqueries and CTE bodies are configured through
callbacks that receive a fresh, independent builder from
:meth:`QueryBuilder.scope`.  The child's finalized aggregate is embedded by
value and the child is not retained.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, fields
from typing import TYPE_CHECKING, Any

from pydantic import JsonValue, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from relayql.errors import TransportError, ValidationError
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
    WindowFunction,
    WindowFunctionAdvanced,
    WindowOver,
)
from relayql.schema.expressions import (
    NULL_OPERATORS,
    AggregateType,
    GroupOperator,
    NullsPosition,
    SortDirection,
    WhereOperator,
    WindowFunctionType,
)
from relayql.schema.query_params import QueryParams
from relayql.schema.response import ApiResponse
from relayql.utils import apply_computed_fields

if TYPE_CHECKING:
    from relayql.client.database import DatabaseClient

logger = logging.getLogger(__name__)

_MISSING = object()

#: Slots of a scoped builder that a where group collects.
_GROUP_SLOTS = frozenset({"filter", "where_raw", "where_groups"})

OrderSpec = str | OrderByClause


@dataclass
class _BuilderState:
    """Internal accumulator.  Mirrors the QueryParams slots."""

    filter: dict[str, Any] | None = None
    where_raw: list[WhereClause] | None = None
    where_between: list[WhereBetweenClause] | None = None
    where_null: list[str] | None = None
    where_not_null: list[str] | None = None
    where_in: dict[str, list[Any]] | None = None
    where_not_in: dict[str, list[Any]] | None = None
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

    def append(self, slot: str, item: Any) -> None:
        items = getattr(self, slot)
        if items is None:
            items = []
            setattr(self, slot, items)
        items.append(item)

    def merge(self, slot: str, entries: Mapping[str, Any]) -> None:
        current = getattr(self, slot)
        setattr(self, slot, {**(current or {}), **entries})

    def populated(self) -> list[str]:
        return [f.name for f in fields(self) if getattr(self, f.name) is not None]

    def snapshot(self) -> dict[str, Any]:
        data = {}
        for f in fields(self):
            value = getattr(self, f.name)
            data[f.name] = value.copy() if isinstance(value, (list, dict)) else value
        return data


_JSON_VALUE = TypeAdapter(JsonValue)


def _json_value(field: str, value: Any) -> Any:
    """Return ``value`` if it is encodable on the wire.

    Raises:
        ValidationError: If ``value`` is not a JSON-compatible value.
    """
    try:
        return _JSON_VALUE.validate_python(value)
    except PydanticValidationError as exc:
        raise ValidationError(
            f"Value for '{field}' is not JSON-compatible: {value!r}",
            code="invalid_value",
            details={"field": field, "type": type(value).__name__},
        ) from exc


def _order_clause(spec: OrderSpec) -> OrderByClause:
    return spec if isinstance(spec, OrderByClause) else OrderByClause(field=spec)


def _order_clauses(specs: Sequence[OrderSpec] | None) -> list[OrderByClause] | None:
    if specs is None:
        return None
    return [_order_clause(s) for s in specs]


class QueryBuilder:
    """
    Fluent builder for relayQL queries.

    Usage:
        params = (
            QueryBuilder("users")
            .where("status", "active")
            .where("age", ">", 18)
            .or_where(lambda q: q.where("role", "admin").where("dept", "IT"))
            .order_by("last_name", direction=SortDirection.DESC)
            .limit(10)
            .to_params()
        )

    A builder obtained from :meth:`DatabaseClient.table` is bound to that
    client and can :meth:`execute`; an unbound builder only builds.

    Args:
        table_name: The table being queried.
        client: Optional transport used by :meth:`execute` and the CRUD calls.
    """

    def __init__(self, table_name: str, client: DatabaseClient | None = None) -> None:
        self._table_name = table_name
        self._client = client
        self._state = _BuilderState()

    @property
    def table_name(self) -> str:
        """The table being queried."""
        return self._table_name

    # ========== Scoped builders ==========

    def scope(self, table_name: str | None = None) -> QueryBuilder:
        """Return a fresh, independent builder sharing this builder's client.

        Args:
            table_name: Table for the new builder; defaults to this one's.
        """
        return QueryBuilder(table_name or self._table_name, self._client)

    def table(self, table_name: str) -> QueryBuilder:
        """Return a fresh builder for another table (used inside callbacks)."""
        return self.scope(table_name)

    # ========== Filters ==========

    def where(
        self,
        field_or_conditions: str | Mapping[str, Any],
        operator_or_value: Any = _MISSING,
        value: Any = _MISSING,
    ) -> QueryBuilder:
        """Add a filter.

        - ``where(field, value)`` and ``where({field: value, ...})`` merge
          into the equality filter mapping; the last write per field wins.
        - ``where(field, operator, value)`` appends an explicit predicate.
          ``operator`` is a :class:`WhereOperator` or its wire token.
        - ``where(field, WhereOperator.IS_NULL)`` appends a predicate with
          no value.

        Raises:
            FormatError: If ``operator`` is not a known token.
            ValidationError: If a value is not JSON-compatible.
        """
        if isinstance(field_or_conditions, Mapping):
            self._state.merge(
                "filter", {k: _json_value(k, v) for k, v in field_or_conditions.items()}
            )
        elif value is not _MISSING:
            self._state.append(
                "where_raw",
                WhereClause(
                    field=field_or_conditions,
                    operator=WhereOperator.from_token(operator_or_value),
                    value=_json_value(field_or_conditions, value),
                ),
            )
        elif isinstance(operator_or_value, WhereOperator):
            if operator_or_value not in NULL_OPERATORS:
                raise ValidationError(
                    f"Operator '{operator_or_value.value}' on '{field_or_conditions}' requires a value",
                    code="missing_value",
                    details={"field": field_or_conditions},
                )
            self._state.append(
                "where_raw",
                WhereClause(field=field_or_conditions, operator=operator_or_value),
            )
        else:
            if operator_or_value is _MISSING:
                raise TypeError("where() requires a value for a single field")
            self._state.merge(
                "filter", {field_or_conditions: _json_value(field_or_conditions, operator_or_value)}
            )
        return self

    def where_between(self, field: str, bounds: Sequence[Any]) -> QueryBuilder:
        """Add an inclusive range filter.

        Raises:
            ValidationError: If ``bounds`` does not hold exactly two values.
        """
        bounds = list(bounds)
        if len(bounds) != 2:
            raise ValidationError(
                f"whereBetween on '{field}' needs exactly two bounds, got {len(bounds)}",
                code="invalid_range",
                details={"field": field, "bounds": bounds},
            )
        self._state.append(
            "where_between",
            WhereBetweenClause(field=field, value=[_json_value(field, b) for b in bounds]),
        )
        return self

    def where_in(self, field: str, values: Sequence[Any]) -> QueryBuilder:
        """Filter on set membership.  A later call for the same field replaces it."""
        self._state.merge("where_in", {field: [_json_value(field, v) for v in values]})
        return self

    def where_not_in(self, field: str, values: Sequence[Any]) -> QueryBuilder:
        """Filter on set non-membership."""
        self._state.merge("where_not_in", {field: [_json_value(field, v) for v in values]})
        return self

    def where_null(self, field: str) -> QueryBuilder:
        self._state.append("where_null", field)
        return self

    def where_not_null(self, field: str) -> QueryBuilder:
        self._state.append("where_not_null", field)
        return self

    def where_exists(
        self, subquery: Callable[[QueryBuilder], QueryBuilder | None]
    ) -> QueryBuilder:
        """Add a correlated EXISTS subquery.

        ``subquery`` receives a fresh scoped builder.  It may configure that
        builder in place, or return another builder (e.g. ``q.table("orders")``)
        to select from a different table.

        Example:
            users.where_exists(
                lambda q: q.table("orders").where("total", ">", 1000)
            )
        """
        scoped = self.scope()
        result = subquery(scoped)
        sub = result if isinstance(result, QueryBuilder) else scoped
        self._state.append(
            "where_exists",
            SubQueryConfig(table_name=sub.table_name, params=sub.to_params()),
        )
        logger.debug("Embedded EXISTS subquery on %s", sub.table_name)
        return self

    def where_exists_join(
        self,
        table_name: str,
        left_field: str,
        right_field: str,
        conditions: Callable[[QueryBuilder], Any] | None = None,
    ) -> QueryBuilder:
        """Add an EXISTS subquery on ``table_name`` joined by equality.

        Example:
            users.where_exists_join(
                "orders", "id", "user_id", lambda q: q.where("total", ">", 1000)
            )
        """
        scoped = self.scope(table_name)
        if conditions is not None:
            conditions(scoped)
        self._state.append(
            "where_exists",
            SubQueryConfig(
                table_name=table_name,
                params=scoped.to_params(),
                join_condition=JoinCondition(
                    left_field=left_field,
                    operator=WhereOperator.EQUALS,
                    right_field=right_field,
                ),
            ),
        )
        logger.debug("Embedded EXISTS join on %s", table_name)
        return self

    def or_where(self, callback: Callable[[QueryBuilder], Any]) -> QueryBuilder:
        """Add an OR group built by ``callback``.

        Example:
            users.where("status", "active").or_where(
                lambda q: q.where("role", "admin").where("department", "IT")
            )
        """
        return self._where_group(GroupOperator.OR, callback)

    def and_where(self, callback: Callable[[QueryBuilder], Any]) -> QueryBuilder:
        """Add an AND group built by ``callback``."""
        return self._where_group(GroupOperator.AND, callback)

    def _where_group(
        self, operator: GroupOperator, callback: Callable[[QueryBuilder], Any]
    ) -> QueryBuilder:
        scoped = self.scope()
        callback(scoped)
        state = scoped._state

        clauses: list[WhereClause | WhereGroup] = []
        for key, value in (state.filter or {}).items():
            clauses.append(WhereClause(field=key, operator=WhereOperator.EQUALS, value=value))
        clauses.extend(state.where_raw or [])
        clauses.extend(state.where_groups or [])

        ignored = [slot for slot in state.populated() if slot not in _GROUP_SLOTS]
        if ignored:
            logger.warning(
                "Ignoring clauses inside %s group that cannot be grouped: %s",
                operator.value,
                ", ".join(ignored),
            )

        self._state.append("where_groups", WhereGroup(type=operator, clauses=clauses))
        return self

    # ========== Projection, grouping, aggregation ==========

    def select(self, fields: Sequence[str]) -> QueryBuilder:
        """Select specific fields.  Replaces any previous selection."""
        self._state.select = list(fields)
        return self

    def group_by(self, fields: Sequence[str]) -> QueryBuilder:
        """Group by ``fields``.  Replaces any previous grouping."""
        self._state.group_by = list(fields)
        return self

    def having(
        self, field: str, operator: WhereOperator | str, value: Any
    ) -> QueryBuilder:
        """Add a post-aggregation predicate."""
        self._state.append(
            "having",
            HavingClause(
                field=field,
                operator=WhereOperator.from_token(operator),
                value=_json_value(field, value),
            ),
        )
        return self

    def aggregate(
        self,
        type: AggregateType | str,
        field: str,
        alias: str | None = None,
    ) -> QueryBuilder:
        """Add an aggregate function."""
        self._state.append(
            "aggregates",
            AggregateOptions(type=AggregateType.from_token(type), field=field, alias=alias),
        )
        return self

    def count(self, field: str, alias: str | None = None) -> QueryBuilder:
        return self.aggregate(AggregateType.COUNT, field, alias=alias)

    def sum(self, field: str, alias: str | None = None) -> QueryBuilder:
        return self.aggregate(AggregateType.SUM, field, alias=alias)

    def avg(self, field: str, alias: str | None = None) -> QueryBuilder:
        return self.aggregate(AggregateType.AVG, field, alias=alias)

    def min(self, field: str, alias: str | None = None) -> QueryBuilder:
        return self.aggregate(AggregateType.MIN, field, alias=alias)

    def max(self, field: str, alias: str | None = None) -> QueryBuilder:
        return self.aggregate(AggregateType.MAX, field, alias=alias)

    def raw_expression(self, sql: str, bindings: Sequence[Any] | None = None) -> QueryBuilder:
        """Add an opaque expression.  The SQL text is not validated."""
        self._state.append(
            "raw_expressions",
            RawExpression(
                sql=sql,
                bindings=(
                    [_json_value("bindings", b) for b in bindings] if bindings is not None else None
                ),
            ),
        )
        return self

    # ========== Ordering and pagination ==========

    def order_by(
        self,
        field: str,
        direction: SortDirection | str | None = None,
        nulls: NullsPosition | str | None = None,
    ) -> QueryBuilder:
        """Append a sort instruction."""
        self._state.append(
            "order_by",
            OrderByClause(
                field=field,
                direction=SortDirection.from_token(direction) if direction is not None else None,
                nulls=NullsPosition.from_token(nulls) if nulls is not None else None,
            ),
        )
        return self

    def limit(self, limit: int) -> QueryBuilder:
        self._state.limit = limit
        return self

    def offset(self, offset: int) -> QueryBuilder:
        self._state.offset = offset
        return self

    # ========== Window functions ==========

    def _check_window_alias(self, alias: str) -> None:
        taken = [w.alias for w in self._state.window_functions or []]
        taken += [w.alias for w in self._state.advanced_windows or []]
        if alias in taken:
            raise ValidationError(
                f"Window alias '{alias}' is already used in this query",
                code="duplicate_window_alias",
                details={"alias": alias},
            )

    def window(
        self,
        type: WindowFunctionType | str,
        alias: str,
        field: str | None = None,
        partition_by: Sequence[str] | None = None,
        order_by: Sequence[OrderSpec] | None = None,
        frame_clause: str | None = None,
    ) -> QueryBuilder:
        """Add a window function.

        Raises:
            ValidationError: If ``alias`` is already used by another window.
        """
        self._check_window_alias(alias)
        self._state.append(
            "window_functions",
            WindowFunction(
                type=WindowFunctionType.from_token(type),
                alias=alias,
                field=field,
                partition_by=list(partition_by) if partition_by is not None else None,
                order_by=_order_clauses(order_by),
                frame_clause=frame_clause,
            ),
        )
        return self

    def window_advanced(
        self,
        type: WindowFunctionType | str,
        alias: str,
        field: str | None = None,
        over: WindowOver | None = None,
        filter: Sequence[WhereClause] | None = None,
    ) -> QueryBuilder:
        """Add a window function with a full OVER clause and a row filter.

        Example:
            q.window_advanced(
                WindowFunctionType.SUM,
                "running_total",
                field="amount",
                over=WindowOver(
                    order_by=[OrderByClause(field="created_at")],
                    frame=WindowFrame(type="ROWS", start="UNBOUNDED PRECEDING",
                                      end="CURRENT ROW"),
                ),
            )
        """
        self._check_window_alias(alias)
        self._state.append(
            "advanced_windows",
            WindowFunctionAdvanced(
                type=WindowFunctionType.from_token(type),
                alias=alias,
                field=field,
                over=over,
                filter=list(filter) if filter is not None else None,
            ),
        )
        return self

    def row_number(
        self,
        alias: str,
        partition_by: Sequence[str] | None = None,
        order_by: Sequence[OrderSpec] | None = None,
    ) -> QueryBuilder:
        return self.window(
            WindowFunctionType.ROW_NUMBER, alias, partition_by=partition_by, order_by=order_by
        )

    def rank(
        self,
        alias: str,
        partition_by: Sequence[str] | None = None,
        order_by: Sequence[OrderSpec] | None = None,
    ) -> QueryBuilder:
        return self.window(
            WindowFunctionType.RANK, alias, partition_by=partition_by, order_by=order_by
        )

    def lag(
        self,
        field: str,
        alias: str,
        partition_by: Sequence[str] | None = None,
        order_by: Sequence[OrderSpec] | None = None,
    ) -> QueryBuilder:
        return self.window(
            WindowFunctionType.LAG,
            alias,
            field=field,
            partition_by=partition_by,
            order_by=order_by,
        )

    def lead(
        self,
        field: str,
        alias: str,
        partition_by: Sequence[str] | None = None,
        order_by: Sequence[OrderSpec] | None = None,
    ) -> QueryBuilder:
        return self.window(
            WindowFunctionType.LEAD,
            alias,
            field=field,
            partition_by=partition_by,
            order_by=order_by,
        )

    # ========== Common table expressions ==========

    def with_(
        self,
        name: str,
        query: QueryBuilder | QueryParams | Callable[[QueryBuilder], Any],
        columns: Sequence[str] | None = None,
    ) -> QueryBuilder:
        """Add a CTE.

        ``query`` is an already-built builder, a finalized aggregate, or a
        callback that configures a fresh scoped builder (and may return a
        builder for another table).  Duplicate names are not rejected.
        """
        table_name: str | None = None
        if isinstance(query, QueryParams):
            body = query
        elif isinstance(query, QueryBuilder):
            body, table_name = query.to_params(), query.table_name
        else:
            scoped = self.scope()
            result = query(scoped)
            sub = result if isinstance(result, QueryBuilder) else scoped
            body, table_name = sub.to_params(), sub.table_name

        self._state.append(
            "ctes",
            CTE(
                name=name,
                query=body,
                columns=list(columns) if columns is not None else None,
                table_name=table_name,
            ),
        )
        return self

    def with_recursive(
        self,
        name: str,
        initial_query: QuerySource,
        recursive_query: QuerySource,
        union_all: bool | None = None,
        columns: Sequence[str] | None = None,
    ) -> QueryBuilder:
        """Add a recursive CTE.

        The recursive term is not checked for a reference to ``name``; use
        :meth:`RecursiveCTE.references_self` for an optional check.

        Example:
            q.with_recursive(
                "hierarchy",
                QueryBuilder("employees").where_null("manager_id"),
                QueryBuilder("hierarchy").where_exists_join("employees", "id", "manager_id"),
                union_all=True,
                columns=["id", "manager_id"],
            )
        """
        initial, initial_table = _resolve_source(initial_query)
        recursive, recursive_table = _resolve_source(recursive_query)
        self._state.append(
            "recursive_ctes",
            RecursiveCTE(
                name=name,
                initial_query=initial,
                recursive_query=recursive,
                union_all=union_all,
                columns=list(columns) if columns is not None else None,
                initial_table=initial_table,
                recursive_table=recursive_table,
            ),
        )
        return self

    # ========== Transforms and explain ==========

    def transform(self, config: TransformConfig) -> QueryBuilder:
        """Set the result transform.  Replaces any previous transform."""
        self._state.transforms = config
        return self

    def pivot(self, column: str, values: Sequence[str], aggregate: AggregateOptions) -> QueryBuilder:
        """Pivot the result set.  Replaces any previous transform."""
        return self.transform(
            TransformConfig(
                pivot=PivotConfig(column=column, values=list(values), aggregate=aggregate)
            )
        )

    def compute(self, computations: Mapping[str, Callable[[dict[str, Any]], Any]]) -> QueryBuilder:
        """Derive new fields from each fetched record.

        Computations run locally on the records returned by :meth:`execute`.
        Replaces any previous transform.
        """
        return self.transform(TransformConfig(compute=dict(computations)))

    def explain(
        self,
        analyze: bool | None = None,
        verbose: bool | None = None,
        format: str | None = None,
    ) -> QueryBuilder:
        """Request an EXPLAIN of the query instead of its rows."""
        self._state.explain = ExplainOptions(analyze=analyze, verbose=verbose, format=format)
        return self

    # ========== Finalization ==========

    def to_params(self) -> QueryParams:
        """Snapshot the accumulator into an immutable aggregate.

        Does not contact the service and does not end accumulation.
        """
        return QueryParams(**self._state.snapshot())

    # ========== Transport ==========

    def _require_client(self) -> DatabaseClient:
        if self._client is None:
            raise TransportError(
                f"Query on '{self._table_name}' is not bound to a client",
                code="no_transport",
            )
        return self._client

    def execute(self) -> ApiResponse:
        """Run the query through the bound client.

        Computed fields set via :meth:`compute` are applied to the returned
        records.

        Raises:
            TransportError: If no client is bound or the request fails.
        """
        params = self.to_params()
        response = self._require_client().get_records(self._table_name, params)
        compute = params.transforms.compute if params.transforms else None
        if compute and response.records is not None:
            response = response.with_records(apply_computed_fields(response.records, compute))
        return response

    def create(self, data: Mapping[str, Any]) -> ApiResponse:
        """Create a record in this table.

        Raises:
            ValidationError: If ``data`` is empty.
        """
        return self._require_client().create_record(self._table_name, data)

    def update(self, id: Any, data: Mapping[str, Any]) -> ApiResponse:
        """Update the record ``id`` in this table.

        Raises:
            ValidationError: If ``data`` is empty.
        """
        return self._require_client().update_record(self._table_name, id, data)

    def delete(self, id: Any) -> ApiResponse:
        """Delete the record ``id`` from this table."""
        return self._require_client().delete_record(self._table_name, id)


QuerySource = QueryBuilder | QueryParams


def _resolve_source(source: QuerySource) -> tuple[QueryParams, str | None]:
    if isinstance(source, QueryBuilder):
        return source.to_params(), source.table_name
    return source, None


def query(table_name: str) -> QueryBuilder:
    """Create a new unbound query builder for ``table_name``."""
    return QueryBuilder(table_name)
