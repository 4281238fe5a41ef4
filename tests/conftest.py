"""Shared fixtures for the SendPulse client tests.

No test touches the network: ``requests.request`` is patched and fed
canned responses in the order the client is expected to consume them.
"""

from __future__ import annotations

from typing import Any, Callable, Optional
from unittest.mock import MagicMock, patch

import pytest

from sendpulse_api_client import MemoryTokenStore, SendPulseApi, fingerprint

CLIENT_ID = "user-id"
CLIENT_SECRET = "secret"


def _make_response(status_code: int = 200, body: Optional[Any] = None) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    if body is None:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        response.json.return_value = body
    return response


@pytest.fixture()
def make_response() -> Callable[..., MagicMock]:
    """Factory for fake :class:`requests.Response` objects.

    A ``body`` of ``None`` behaves like an empty or non-JSON body.
    """
    return _make_response


@pytest.fixture()
def token_response() -> Callable[[str], MagicMock]:
    """Factory for a successful token endpoint response."""

    def _token(token: str = "T1") -> MagicMock:
        return _make_response(
            200, {"access_token": token, "token_type": "Bearer", "expires_in": 3600}
        )

    return _token


@pytest.fixture()
def mock_request():
    """Patch ``requests.request`` for the duration of a test."""
    with patch("sendpulse_api_client.client.requests.request") as mocked:
        yield mocked


@pytest.fixture()
def cells() -> dict:
    return {}


@pytest.fixture()
def store(cells: dict) -> MemoryTokenStore:
    return MemoryTokenStore(fingerprint(CLIENT_ID, CLIENT_SECRET), cells=cells)


@pytest.fixture()
def api(mock_request: MagicMock, store: MemoryTokenStore) -> SendPulseApi:
    """An authenticated client built from a cached token ``T0``."""
    store.set("T0")
    return SendPulseApi(client_id=CLIENT_ID, client_secret=CLIENT_SECRET, token_store=store)
