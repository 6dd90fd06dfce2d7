"""Test fixtures: a sample wire payload and fake HTTP responses."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import requests

_FIXTURES_DIR = Path(__file__).parent

BASE_URL = "https://api.example.com/db"


def load_sample_payload() -> dict[str, Any]:
    """Load the structural form of a realistic query from sample_query.json."""
    return json.loads((_FIXTURES_DIR / "sample_query.json").read_text())


def make_response(body: Any = None, status_code: int = 200) -> MagicMock:
    """Build a fake ``requests.Response``.

    Args:
        body: Value returned by ``response.json()``.
        status_code: HTTP status; ``raise_for_status`` raises for 4xx/5xx.

    Returns:
        A mock spec'd on ``requests.Response``.
    """
    response = MagicMock(spec=requests.Response)
    response.status_code = status_code
    response.json.return_value = body
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(
            f"{status_code} Error", response=response
        )
    return response
