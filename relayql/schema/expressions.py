"""Closed wire enumerations for QueryParams clauses.

Every enumerant serializes to a fixed token.  The token sets are
exhaustive: decoding any other token raises
:class:`~relayql.errors.FormatError` naming the offending value.

The ``*Token`` annotated aliases are used as field types in the clause
models so that both enum members and raw wire tokens are accepted on
construction and validated through :meth:`WireEnum.from_token`.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any

from pydantic import BeforeValidator

from relayql.errors import FormatError

# ---------------------------------------------------------------------------
# Base enum
# ---------------------------------------------------------------------------


class WireEnum(str, Enum):
    """A string enum whose values are the wire tokens."""

    @classmethod
    def from_token(cls, value: Any) -> Any:
        """Return the member for ``value``.

        Members are returned unchanged.

        Raises:
            FormatError: If ``value`` is not one of the fixed tokens.
        """
        if isinstance(value, cls):
            return value
        for member in cls:
            if member.value == value:
                return member
        raise FormatError(f"Invalid {cls.__name__}: {value!r}", value=value)


# ---------------------------------------------------------------------------
# Predicate operators
# ---------------------------------------------------------------------------


class WhereOperator(WireEnum):
    """Comparison operators for predicates, having clauses and joins."""

    EQUALS = "="
    NOT_EQUALS = "!="
    GREATER_THAN = ">"
    GREATER_THAN_OR_EQUAL = ">="
    LESS_THAN = "<"
    LESS_THAN_OR_EQUAL = "<="
    LIKE = "like"
    IN = "in"
    NOT_IN = "not in"
    BETWEEN = "between"
    IS_NULL = "is null"
    IS_NOT_NULL = "is not null"


class GroupOperator(WireEnum):
    """Logical connectives for where groups."""

    AND = "AND"
    OR = "OR"


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------


class SortDirection(WireEnum):
    ASC = "asc"
    DESC = "desc"


class NullsPosition(WireEnum):
    FIRST = "first"
    LAST = "last"


# ---------------------------------------------------------------------------
# Functions
# ---------------------------------------------------------------------------


class AggregateType(WireEnum):
    """Aggregate functions."""

    COUNT = "count"
    SUM = "sum"
    AVG = "avg"
    MIN = "min"
    MAX = "max"


class WindowFunctionType(WireEnum):
    """Window functions: ranking, navigation and aggregate-over-window."""

    ROW_NUMBER = "row_number"
    RANK = "rank"
    DENSE_RANK = "dense_rank"
    LAG = "lag"
    LEAD = "lead"
    FIRST_VALUE = "first_value"
    LAST_VALUE = "last_value"
    SUM = "sum"
    AVG = "avg"
    COUNT = "count"
    MIN = "min"
    MAX = "max"
    NTH_VALUE = "nth_value"
    NTILE = "ntile"


class FrameType(WireEnum):
    """Window frame mode."""

    ROWS = "ROWS"
    RANGE = "RANGE"


# ---------------------------------------------------------------------------
# Operator groups
# ---------------------------------------------------------------------------

#: Operators that take no value operand.
NULL_OPERATORS: frozenset[WhereOperator] = frozenset(
    {WhereOperator.IS_NULL, WhereOperator.IS_NOT_NULL}
)

# ---------------------------------------------------------------------------
# Field types
# ---------------------------------------------------------------------------

OperatorToken = Annotated[WhereOperator, BeforeValidator(WhereOperator.from_token)]
GroupToken = Annotated[GroupOperator, BeforeValidator(GroupOperator.from_token)]
DirectionToken = Annotated[SortDirection, BeforeValidator(SortDirection.from_token)]
NullsToken = Annotated[NullsPosition, BeforeValidator(NullsPosition.from_token)]
AggregateToken = Annotated[AggregateType, BeforeValidator(AggregateType.from_token)]
WindowToken = Annotated[WindowFunctionType, BeforeValidator(WindowFunctionType.from_token)]
FrameToken = Annotated[FrameType, BeforeValidator(FrameType.from_token)]
