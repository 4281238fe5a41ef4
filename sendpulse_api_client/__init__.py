"""
Python client for the SendPulse REST API.

This package provides a `SendPulseApi` class that handles OAuth2
client-credentials authentication against SendPulse and exposes one
method per API endpoint (address books, campaigns, senders,
blacklist, SMTP, web push and templates).

The access token is kept in a pluggable token store (memory, file or
web session) keyed by a fingerprint of the credentials, so several
clients and processes can share one token.  When SendPulse rejects
the token with HTTP 401 the client obtains a new one and repeats the
request once.

Examples
--------

```python
from sendpulse_api_client import FileTokenStore, SendPulseApi, fingerprint, is_error

client = SendPulseApi(
    client_id="YOUR_CLIENT_ID",
    client_secret="YOUR_CLIENT_SECRET",
    token_store=FileTokenStore(
        fingerprint("YOUR_CLIENT_ID", "YOUR_CLIENT_SECRET"),
        directory="/var/cache/sendpulse",
    ),
)

books = client.list_address_books(limit=10)
if is_error(books):
    print("request failed with", books.get("http_code"))
```

Alternatively build the client from ``SENDPULSE_*`` environment
variables with :func:`create_client`.
"""

from .api import SendPulseApi
from .client import (
    ApiResponse,
    ClientState,
    SendPulseClient,
    form_params,
    is_error,
    raise_for_result,
)
from .config import Settings, create_client
from .exceptions import (
    ApiError,
    AuthenticationError,
    ConfigurationError,
    SendPulseError,
    TransportError,
    ValidationError,
)
from .token_store import (
    FileTokenStore,
    MemoryTokenStore,
    SessionTokenStore,
    TokenStore,
    create_token_store,
    fingerprint,
)

__all__ = [
    "SendPulseApi",
    "SendPulseClient",
    "ClientState",
    "ApiResponse",
    "form_params",
    "is_error",
    "raise_for_result",
    "Settings",
    "create_client",
    "SendPulseError",
    "ConfigurationError",
    "AuthenticationError",
    "TransportError",
    "ValidationError",
    "ApiError",
    "TokenStore",
    "MemoryTokenStore",
    "FileTokenStore",
    "SessionTokenStore",
    "create_token_store",
    "fingerprint",
]
