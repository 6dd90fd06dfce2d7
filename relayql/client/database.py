"""HTTP transport for relayQL queries and record mutations.

:class:`DatabaseClient` is the collaborator a bound
:class:`~relayql.query.builder.QueryBuilder` hands its finalized aggregate
to.  It performs one blocking request per call and never retries.

Request mapping:

=================  ==========================================
Operation          Request
=================  ==========================================
get_records        ``GET {base}/{table}?<encoded params>``
create_record      ``POST {base}/{table}`` ``{"data": {...}}``
update_record      ``PUT {base}/{table}/{id}`` ``{"data": {...}}``
delete_record      ``DELETE {base}/{table}/{id}``
=================  ==========================================
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import requests

from relayql.client.config import ClientConfig
from relayql.errors import FormatError, TransportError, ValidationError
from relayql.query.builder import QueryBuilder
from relayql.schema.query_params import QueryParams
from relayql.schema.response import ApiResponse
from relayql.serialize import encode_query_params

logger = logging.getLogger(__name__)


class DatabaseClient:
    """Client for a remote relayQL query service.

    Usage::

        db = DatabaseClient("https://api.example.com/db")
        response = (
            db.table("users")
            .where("status", "active")
            .order_by("last_name")
            .limit(10)
            .execute()
        )
        for row in response.records or []:
            ...

    Args:
        config: A :class:`ClientConfig` or the service base URL.
        session: Optional pre-configured ``requests.Session``.  One is
            created when omitted.
    """

    def __init__(
        self,
        config: ClientConfig | str,
        session: requests.Session | None = None,
    ) -> None:
        self.config = config if isinstance(config, ClientConfig) else ClientConfig(base_url=config)
        self.session = session if session is not None else requests.Session()
        if self.config.headers:
            self.session.headers.update(self.config.headers)

    def table(self, table_name: str) -> QueryBuilder:
        """Return a query builder bound to this client."""
        return QueryBuilder(table_name, client=self)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def get_records(
        self,
        table_name: str,
        params: QueryParams | None = None,
        *,
        execute: bool = True,
    ) -> ApiResponse:
        """Fetch records matching ``params``.

        Args:
            table_name: Table to query.
            params: The query aggregate; an empty one when omitted.
            execute: When ``False`` no request is made and the response
                only echoes ``params``.

        Raises:
            TransportError: If the request fails.
        """
        params = params if params is not None else QueryParams()
        query = encode_query_params(params)
        if not execute:
            return ApiResponse(params=params)
        return self._request("GET", table_name, params=query)

    def create_record(self, table_name: str, data: Mapping[str, Any]) -> ApiResponse:
        """Insert a record.

        Raises:
            ValidationError: If ``data`` is empty.
            TransportError: If the request fails.
        """
        self._validate_data(data)
        return self._request("POST", table_name, json={"data": dict(data)})

    def update_record(self, table_name: str, id: Any, data: Mapping[str, Any]) -> ApiResponse:
        """Update the record ``id``.

        Raises:
            ValidationError: If ``data`` is empty.
            TransportError: If the request fails.
        """
        self._validate_data(data)
        return self._request("PUT", table_name, id, json={"data": dict(data)})

    def delete_record(self, table_name: str, id: Any) -> ApiResponse:
        """Delete the record ``id``."""
        return self._request("DELETE", table_name, id)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _validate_data(data: Mapping[str, Any] | None) -> None:
        if not data:
            raise ValidationError("Invalid data: must be a non-empty object")

    def _request(self, method: str, *path: Any, **kwargs: Any) -> ApiResponse:
        url = self.config.url_for(*path)
        logger.debug("%s %s", method, url)
        try:
            response = self.session.request(
                method,
                url,
                timeout=self.config.timeout,
                verify=self.config.verify,
                **kwargs,
            )
            response.raise_for_status()
        except requests.HTTPError as exc:
            raise _error_from_response(exc) from exc
        except requests.RequestException as exc:
            raise TransportError(str(exc) or "Unknown error", code="network_error") from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise TransportError(
                "Response body is not valid JSON",
                code="invalid_response",
                status_code=response.status_code,
            ) from exc
        if not isinstance(body, dict):
            raise TransportError(
                "Response body is not an object",
                code="invalid_response",
                status_code=response.status_code,
            )
        try:
            return ApiResponse.from_dict(body)
        except FormatError as exc:
            raise TransportError(
                f"Response body is malformed: {exc}",
                code="invalid_response",
                status_code=response.status_code,
            ) from exc


def _error_from_response(exc: requests.HTTPError) -> TransportError:
    """Map an HTTP error status to a TransportError.

    Uses ``error`` and ``code`` from a JSON object body when present.
    """
    response = exc.response
    status_code = response.status_code if response is not None else None
    body: Any = None
    if response is not None:
        try:
            body = response.json()
        except ValueError:
            body = None
    if isinstance(body, dict):
        logger.debug("Service error %s: %s", status_code, body)
        return TransportError(
            str(body.get("error") or exc),
            code=str(body.get("code") or "unknown_error"),
            status_code=status_code,
        )
    return TransportError(
        str(exc) or "Unknown error",
        code="network_error",
        status_code=status_code,
    )
