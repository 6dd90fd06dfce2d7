"""relayQL builder layer: fluent construction of QueryParams."""
from relayql.query.builder import QueryBuilder, query

__all__ = [
    "QueryBuilder",
    "query",
]
