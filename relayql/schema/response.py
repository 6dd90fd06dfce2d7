"""Inbound response envelope returned by the remote query service."""
from __future__ import annotations

from typing import Any

from pydantic import ConfigDict, JsonValue

from relayql.schema.base import WireModel
from relayql.schema.query_params import QueryParams


class ApiResponse(WireModel):
    """Response to a read or write request.

    Unknown keys sent by the service are ignored.

    Attributes:
        records: Result rows, each a field-name to value mapping.
        params: Echoed aggregate (parameter-only introspection).
        message: Human-readable message.
        error: Error text reported by the service.
        id: Identifier of a newly created row.
    """

    model_config = ConfigDict(extra="ignore")

    records: list[dict[str, JsonValue]] | None = None
    params: QueryParams | None = None
    message: str | None = None
    error: str | None = None
    id: int | None = None

    def with_records(self, records: list[dict[str, Any]]) -> ApiResponse:
        """Return a copy with ``records`` replaced."""
        return self.model_copy(update={"records": records})
