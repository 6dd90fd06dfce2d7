"""Post-fetch helpers for reshaping result records.

These operate on plain record mappings as returned in
:attr:`~relayql.schema.ApiResponse.records`.  None of them mutate their
inputs.
"""
from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable, Mapping, Sequence
from typing import Any, TypeVar

from relayql.schema.expressions import AggregateType

T = TypeVar("T")
K = TypeVar("K", bound=Hashable)

Record = dict[str, Any]


def is_null_or_empty(value: Any) -> bool:
    """Return ``True`` for ``None`` and for empty strings, lists and mappings."""
    if value is None:
        return True
    if isinstance(value, (str, list, tuple, Mapping)):
        return len(value) == 0
    return False


def group_by(items: Iterable[T], key: Callable[[T], K]) -> dict[K, list[T]]:
    """Group ``items`` by ``key(item)``, keeping first-seen key order."""
    groups: dict[K, list[T]] = {}
    for item in items:
        groups.setdefault(key(item), []).append(item)
    return groups


def _aggregate(values: list[Any], func: AggregateType) -> Any:
    present = [v for v in values if v is not None]
    if func is AggregateType.COUNT:
        return len(present)
    if not present:
        return 0 if func is AggregateType.SUM else None
    if func is AggregateType.SUM:
        return sum(present)
    if func is AggregateType.AVG:
        return sum(present) / len(present)
    if func is AggregateType.MIN:
        return min(present)
    return max(present)


def pivot(
    records: Sequence[Mapping[str, Any]],
    column: str,
    values: Sequence[str],
    aggregate_field: str,
    func: AggregateType | str = AggregateType.SUM,
    value_transform: Callable[[Any], Any] | None = None,
) -> list[Record]:
    """Pivot ``records`` on ``column``.

    Produces one row per entry of ``values``, in order.  Each row holds the
    pivot value under ``column`` and the aggregate of ``aggregate_field``
    across matching records under ``aggregate_field``.  Records are matched
    on the string form of their ``column`` value.

    Args:
        records: Source rows.
        column: Field whose values become output rows.
        values: The pivot values to emit.
        aggregate_field: Field to aggregate.
        func: Aggregate to apply; ``SUM`` of no records is ``0``.
        value_transform: Optional function applied to each aggregate.

    Returns:
        One record per pivot value; empty if ``records`` is empty.

    Raises:
        FormatError: If ``func`` is not a known aggregate token.
    """
    if not records:
        return []
    func = AggregateType.from_token(func)
    groups = group_by(records, lambda r: str(r.get(column)))
    rows = []
    for value in values:
        aggregated = _aggregate([r.get(aggregate_field) for r in groups.get(value, [])], func)
        if value_transform is not None:
            aggregated = value_transform(aggregated)
        rows.append({column: value, aggregate_field: aggregated})
    return rows


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Merge ``override`` into a copy of ``base``.

    Nested mappings are merged recursively and lists are concatenated;
    any other value in ``override`` wins.
    """
    result = dict(base)
    for key, value in override.items():
        current = result.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            result[key] = deep_merge(current, value)
        elif isinstance(current, list) and isinstance(value, list):
            result[key] = [*current, *value]
        else:
            result[key] = value
    return result


def flatten(
    data: Mapping[str, Any], separator: str = ".", prefix: str | None = None
) -> dict[str, Any]:
    """Flatten nested mappings into a single level with joined keys.

    Example:
        >>> flatten({"a": {"b": 1}, "c": 2})
        {'a.b': 1, 'c': 2}
    """
    result: dict[str, Any] = {}
    for key, value in data.items():
        full_key = f"{prefix}{separator}{key}" if prefix is not None else key
        if isinstance(value, Mapping):
            result.update(flatten(value, separator=separator, prefix=full_key))
        else:
            result[full_key] = value
    return result


def unflatten(data: Mapping[str, Any], separator: str = ".") -> dict[str, Any]:
    """Inverse of :func:`flatten`."""
    result: dict[str, Any] = {}
    for key, value in data.items():
        *parents, leaf = key.split(separator)
        current = result
        for part in parents:
            current = current.setdefault(part, {})
        current[leaf] = value
    return result


def apply_computed_fields(
    records: Iterable[Mapping[str, Any]],
    compute: Mapping[str, Callable[[dict[str, Any]], Any]],
) -> list[Record]:
    """Return copies of ``records`` with each computed field added.

    Computations see the record as fetched, not fields added by earlier
    computations.
    """
    rows = []
    for record in records:
        source = dict(record)
        rows.append({**source, **{name: fn(source) for name, fn in compute.items()}})
    return rows
