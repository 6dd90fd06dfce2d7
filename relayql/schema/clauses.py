"""Pydantic models for the individual clauses of a QueryParams aggregate.

Each clause is an immutable value object with a sparse camelCase wire
form (see :class:`~relayql.schema.base.WireModel`).  Clauses that embed a
whole sub-query (``SubQueryConfig``, ``CTE``, ``RecursiveCTE``) hold a
finalized :class:`~relayql.schema.query_params.QueryParams` by value.

Field values use pydantic's ``JsonValue`` (the closed variant of string,
number, boolean, null, list and mapping), so every value the model accepts
can be encoded on the wire.
"""
from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Annotated, Any, ClassVar, Literal, Union

from pydantic import Discriminator, Field, JsonValue, Tag, computed_field, model_validator

from relayql.schema.base import WireModel
from relayql.schema.expressions import (
    NULL_OPERATORS,
    AggregateToken,
    DirectionToken,
    FrameToken,
    GroupToken,
    NullsToken,
    OperatorToken,
    WhereOperator,
    WindowToken,
)

if TYPE_CHECKING:
    from relayql.schema.query_params import QueryParams

# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------


def _check_value_present(data: Any) -> Any:
    """Reject a wire predicate without ``value`` unless it is a null check."""
    if isinstance(data, dict) and "value" not in data and "operator" in data:
        operator = WhereOperator.from_token(data["operator"])
        if operator not in NULL_OPERATORS:
            raise ValueError(f"Operator {operator.value!r} requires a value")
    return data


class WhereClause(WireModel):
    """An explicit operator predicate: ``field <operator> value``.

    Attributes:
        field: Column name.
        operator: One of the twelve comparison operators.
        value: Operand; ``None`` for null checks.  Always present on the
            wire, even when null.
        boolean: Optional connective used when the predicate sits in a group.
    """

    wire_nullable: ClassVar[frozenset[str]] = frozenset({"value"})

    field: str
    operator: OperatorToken
    value: JsonValue = None
    boolean: GroupToken | None = None

    @model_validator(mode="before")
    @classmethod
    def _require_value(cls, data: Any) -> Any:
        return _check_value_present(data)


class WhereBetweenClause(WireModel):
    """An inclusive range test: ``field BETWEEN low AND high``."""

    field: str
    operator: Literal["between"] = "between"
    value: list[JsonValue] = Field(min_length=2, max_length=2)
    boolean: GroupToken | None = None


class JoinCondition(WireModel):
    """Correlation between the outer query and an EXISTS subquery."""

    left_field: str
    operator: OperatorToken
    right_field: str


class SubQueryConfig(WireModel):
    """A correlated ``EXISTS`` test against another table.

    Attributes:
        table_name: Table the subquery selects from.
        params: The subquery's own, fully independent aggregate.
        join_condition: Optional correlation with the outer query.
    """

    table_name: str
    params: QueryParams
    join_condition: JoinCondition | None = None


def _group_clause_discriminator(v: Any) -> str | None:
    """Return the tag for a where-group member (nested group or predicate)."""
    if isinstance(v, dict):
        return "group" if "type" in v else "clause"
    if isinstance(v, WhereGroup):
        return "group"
    if isinstance(v, WhereClause):
        return "clause"
    return None


GroupMember = Annotated[
    Union[
        Annotated[WhereClause, Tag("clause")],
        Annotated["WhereGroup", Tag("group")],
    ],
    Discriminator(_group_clause_discriminator),
]


class WhereGroup(WireModel):
    """A nested AND/OR combination of predicates and groups.

    Attributes:
        type: The connective joining ``clauses``.
        clauses: Ordered predicates and nested groups.
    """

    type: GroupToken
    clauses: list[GroupMember] = Field(default_factory=list)

    def depth(self) -> int:
        """Return the nesting depth of this group (a flat group is 1)."""
        nested = [c.depth() for c in self.clauses if isinstance(c, WhereGroup)]
        return 1 + max(nested, default=0)


# ---------------------------------------------------------------------------
# Ordering, grouping, aggregation
# ---------------------------------------------------------------------------


class OrderByClause(WireModel):
    """A sort instruction.  An absent direction means ascending."""

    field: str
    direction: DirectionToken | None = None
    nulls: NullsToken | None = None


class HavingClause(WireModel):
    """A post-aggregation predicate."""

    wire_nullable: ClassVar[frozenset[str]] = frozenset({"value"})

    field: str
    operator: OperatorToken
    value: JsonValue = None

    @model_validator(mode="before")
    @classmethod
    def _require_value(cls, data: Any) -> Any:
        return _check_value_present(data)


class AggregateOptions(WireModel):
    """An aggregate function applied to a field."""

    type: AggregateToken
    field: str
    alias: str | None = None


class RawExpression(WireModel):
    """Opaque expression text with optional positional bindings."""

    sql: str
    bindings: list[JsonValue] | None = None


# ---------------------------------------------------------------------------
# Window functions
# ---------------------------------------------------------------------------


class WindowFrame(WireModel):
    """ROWS or RANGE frame bounds.

    Bounds are either frame text (``"UNBOUNDED PRECEDING"``,
    ``"CURRENT ROW"``) or an integer offset.
    """

    type: FrameToken
    start: str | int
    end: str | int | None = None


class WindowOver(WireModel):
    """The ``OVER (...)`` clause of an advanced window function."""

    partition_by: list[str] | None = None
    order_by: list[OrderByClause] | None = None
    frame: WindowFrame | None = None


class WindowFunction(WireModel):
    """A window function with a required output alias."""

    type: WindowToken
    field: str | None = None
    alias: str
    partition_by: list[str] | None = None
    order_by: list[OrderByClause] | None = None
    frame_clause: str | None = None


class WindowFunctionAdvanced(WindowFunction):
    """A window function carrying a full OVER clause and a row filter."""

    over: WindowOver | None = None
    filter: list[WhereClause] | None = None


# ---------------------------------------------------------------------------
# Common table expressions
# ---------------------------------------------------------------------------


class CTE(WireModel):
    """A named, reusable subquery (``WITH name AS (...)``).

    Attributes:
        name: CTE name.  Duplicates within one query are passed through.
        query: The finalized CTE body.
        columns: Optional explicit column list.
        table_name: Source table of the body, when built from a builder.
    """

    name: str
    query: QueryParams
    columns: list[str] | None = None
    table_name: str | None = None


class RecursiveCTE(WireModel):
    """A self-referential CTE: ``initial UNION [ALL] recursive``.

    The recursive term is expected to reference :attr:`name` but this is
    not enforced; see :meth:`references_self`.

    Like a plain CTE, the wire form also carries ``query``, a copy of the
    initial term.  On decode ``initialQuery`` is authoritative and
    ``query`` is discarded.
    """

    name: str
    is_recursive: Literal[True] = True
    initial_query: QueryParams
    recursive_query: QueryParams
    union_all: bool | None = None
    columns: list[str] | None = None
    initial_table: str | None = None
    recursive_table: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _discard_query_copy(cls, data: Any) -> Any:
        if isinstance(data, dict) and "query" in data:
            return {k: v for k, v in data.items() if k != "query"}
        return data

    @computed_field(alias="query")
    @property
    def query(self) -> QueryParams:
        """The initial term, under the key a plain CTE uses for its body."""
        return self.initial_query

    def references_self(self) -> bool:
        """Return ``True`` if the recursive term mentions this CTE's name.

        Checks the recursive term's source table, subquery table names and
        CTE names inside it, plus any raw expression text.
        """
        if self.recursive_table == self.name:
            return True
        if self.name in self.recursive_query.referenced_tables():
            return True
        for raw in self.recursive_query.raw_expressions or []:
            if self.name in raw.sql:
                return True
        return False


# ---------------------------------------------------------------------------
# Result transforms and explain
# ---------------------------------------------------------------------------


class PivotConfig(WireModel):
    """Pivot ``column`` into one output column per entry of ``values``."""

    column: str
    values: list[str]
    aggregate: AggregateOptions


class TransformConfig(WireModel):
    """Post-fetch reshaping of the result set.

    Attributes:
        group_by: Fields to group result rows by.
        pivot: Pivot specification.
        flatten: Flatten nested result objects.
        select: Fields to keep.
        compute: Named functions deriving new fields from a row.  These are
            local only: they are never serialized and are applied by the
            client to fetched records.
    """

    group_by: list[str] | None = None
    pivot: PivotConfig | None = None
    flatten: bool | None = None
    select: list[str] | None = None
    compute: dict[str, Callable[[dict[str, Any]], Any]] | None = Field(
        default=None, exclude=True
    )


class ExplainOptions(WireModel):
    """Options for an EXPLAIN request."""

    analyze: bool | None = None
    verbose: bool | None = None
    format: str | None = None
