"""Unit tests for DatabaseClient and ClientConfig using a mock session."""
from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests

from relayql.client.config import ClientConfig
from relayql.client.database import DatabaseClient
from relayql.errors import TransportError, ValidationError
from relayql.schema import ApiResponse, QueryParams
from relayql.serialize import encode_query_params
from tests.fixtures import BASE_URL, make_response

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


def test_config_strips_trailing_slash():
    assert ClientConfig(base_url="https://x.io/api/").base_url == "https://x.io/api"


def test_config_defaults():
    config = ClientConfig(base_url="https://x.io")
    assert config.timeout == 30.0
    assert config.headers == {}
    assert config.verify is True


def test_config_rejects_empty_url():
    with pytest.raises(Exception):
        ClientConfig(base_url="/")


def test_client_accepts_url_string(session):
    client = DatabaseClient("https://x.io/", session=session)
    assert client.config.base_url == "https://x.io"


def test_client_applies_config_headers(session):
    DatabaseClient(ClientConfig(base_url=BASE_URL, headers={"X-Key": "k"}), session=session)
    assert session.headers["X-Key"] == "k"


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


def test_get_records_sends_encoded_params(client, session):
    session.request.return_value = make_response({"records": [{"id": 1, "name": "a"}]})
    params = QueryParams(filter={"status": "active"}, limit=10)

    response = client.get_records("users", params)

    assert response.records == [{"id": 1, "name": "a"}]
    session.request.assert_called_once_with(
        "GET",
        f"{BASE_URL}/users",
        timeout=30.0,
        verify=True,
        params=encode_query_params(params),
    )


def test_get_records_without_execute_skips_request(client, session):
    params = QueryParams(limit=1)
    response = client.get_records("users", params, execute=False)
    assert response == ApiResponse(params=params)
    session.request.assert_not_called()


def test_builder_execute_through_client(client, session):
    session.request.return_value = make_response({"records": [{"id": 1}]})
    response = client.table("users").where("status", "active").limit(5).execute()
    assert response.records == [{"id": 1}]
    _, kwargs = session.request.call_args
    assert kwargs["params"] == {"filter": "%7B%22status%22%3A%22active%22%7D", "limit": "5"}


def test_execute_applies_computed_fields(client, session):
    session.request.return_value = make_response(
        {"records": [{"first": "Ada", "last": "Lovelace"}]}
    )
    response = (
        client.table("users")
        .compute({"full_name": lambda r: f"{r['first']} {r['last']}"})
        .execute()
    )
    assert response.records == [{"first": "Ada", "last": "Lovelace", "full_name": "Ada Lovelace"}]


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


def test_create_record(client, session):
    session.request.return_value = make_response({"id": 42, "message": "created"})
    response = client.table("users").create({"email": "a@b.c"})
    assert response.id == 42
    session.request.assert_called_once_with(
        "POST",
        f"{BASE_URL}/users",
        timeout=30.0,
        verify=True,
        json={"data": {"email": "a@b.c"}},
    )


def test_update_record(client, session):
    client.update_record("users", 7, {"status": "inactive"})
    args, kwargs = session.request.call_args
    assert args == ("PUT", f"{BASE_URL}/users/7")
    assert kwargs["json"] == {"data": {"status": "inactive"}}


def test_delete_record(client, session):
    client.table("users").delete(7)
    args, _ = session.request.call_args
    assert args == ("DELETE", f"{BASE_URL}/users/7")


@pytest.mark.parametrize("action", ["create", "update"])
def test_empty_payload_rejected_before_transport(client, session, action):
    builder = client.table("users")
    with pytest.raises(ValidationError, match="non-empty object") as exc_info:
        if action == "create":
            builder.create({})
        else:
            builder.update(1, {})
    assert exc_info.value.code == "validation_error"
    session.request.assert_not_called()


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------


def test_http_error_uses_body_fields(client, session):
    session.request.return_value = make_response(
        {"error": "Table not found", "code": "not_found"}, status_code=404
    )
    with pytest.raises(TransportError) as exc_info:
        client.get_records("ghosts")
    err = exc_info.value
    assert (err.message, err.code, err.status_code) == ("Table not found", "not_found", 404)
    assert str(err) == "Table not found (Code: not_found, Status: 404)"


def test_http_error_without_code_defaults(client, session):
    session.request.return_value = make_response({"error": "boom"}, status_code=500)
    with pytest.raises(TransportError) as exc_info:
        client.get_records("users")
    assert exc_info.value.code == "unknown_error"


def test_http_error_without_json_body(client, session):
    response = make_response(status_code=502)
    response.json.side_effect = ValueError("no json")
    session.request.return_value = response
    with pytest.raises(TransportError) as exc_info:
        client.get_records("users")
    assert exc_info.value.code == "network_error"
    assert exc_info.value.status_code == 502


def test_connection_failure_is_network_error(client, session):
    session.request.side_effect = requests.ConnectionError("refused")
    with pytest.raises(TransportError) as exc_info:
        client.get_records("users")
    assert exc_info.value.code == "network_error"
    assert exc_info.value.status_code is None


def test_non_object_body_is_invalid_response(client, session):
    session.request.return_value = make_response([1, 2, 3])
    with pytest.raises(TransportError) as exc_info:
        client.get_records("users")
    assert exc_info.value.code == "invalid_response"


def test_default_session_created():
    client = DatabaseClient(BASE_URL)
    assert isinstance(client.session, requests.Session)


def test_session_is_injectable():
    session = MagicMock(spec=requests.Session)
    session.headers = {}
    assert DatabaseClient(BASE_URL, session=session).session is session
