"""
Client implementation for the SendPulse REST API.

This module defines the :class:`SendPulseClient` class which
authenticates against the SendPulse authorization endpoint using
the OAuth2 client credentials grant and performs HTTP requests
against SendPulse API endpoints.  The access token is kept in a
:class:`~sendpulse_api_client.token_store.TokenStore` so that it can
be reused across client instances and processes.  SendPulse does not
tell the client when a token will be rejected, so instead of tracking
expiry the client refreshes the token once when a request comes back
with HTTP 401 and repeats that request.

Usage
-----

.. code-block:: python

    from sendpulse_api_client import SendPulseClient, is_error

    client = SendPulseClient(client_id="abc123", client_secret="shhsecret")

    books = client.get("addressbooks", params={"limit": 10})
    if not is_error(books):
        for book in books:
            print(book["name"])

Every request returns a plain result: the decoded JSON payload on
success, or a dictionary with ``is_error`` set to ``True`` (and
``http_code`` when the server answered) on failure.  Only failures to
reach the server at all are raised, as :class:`TransportError`.
"""

from __future__ import annotations

import enum
import logging
import threading
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Union

import requests

from .exceptions import (
    ApiError,
    AuthenticationError,
    ConfigurationError,
    TransportError,
    ValidationError,
)
from .token_store import MemoryTokenStore, TokenStore, fingerprint

logger = logging.getLogger(__name__)

Params = Union[Mapping[str, Any], str, None]

_METHODS = frozenset({"GET", "POST", "PUT", "PATCH", "DELETE"})


class ClientState(enum.Enum):
    """Where the client is in its token lifecycle."""

    UNINITIALIZED = "uninitialized"
    AUTHENTICATED = "authenticated"
    REFRESHING = "refreshing"


@dataclass(frozen=True)
class RequestSpec:
    """A single request as issued by :meth:`SendPulseClient.call`."""

    path: str
    method: str
    params: Union[Mapping[str, Any], str]
    use_auth: bool


@dataclass(frozen=True)
class ApiResponse:
    """Status code and decoded JSON body of a SendPulse response.

    ``data`` is ``None`` when the body was empty or not valid JSON.
    """

    status_code: int
    data: Any


def form_params(params: Mapping[str, Any], prefix: Optional[str] = None) -> Dict[str, Any]:
    """Flatten *params* into form fields using PHP-style bracket keys.

    Nested mappings and sequences become ``key[sub]`` and ``key[0]``
    fields, booleans become ``1`` or ``0`` and ``None`` values are
    dropped, which is how the SendPulse API parses form input.
    """
    flat: Dict[str, Any] = {}
    items = params.items() if isinstance(params, Mapping) else enumerate(params)
    for key, value in items:
        name = str(key) if prefix is None else f"{prefix}[{key}]"
        if value is None:
            continue
        if isinstance(value, bool):
            flat[name] = int(value)
        elif isinstance(value, (Mapping, list, tuple)):
            flat.update(form_params(value, name))
        else:
            flat[name] = value
    return flat


def is_error(result: Any) -> bool:
    """Return ``True`` if *result* is an error marker."""
    return isinstance(result, dict) and result.get("is_error") is True


def raise_for_result(result: Any) -> Any:
    """Raise if *result* is an error marker, otherwise return it unchanged.

    Error markers without an ``http_code`` never reached the server
    and raise :class:`ValidationError`; the others raise
    :class:`ApiError` carrying the status code.
    """
    if not is_error(result):
        return result
    http_code = result.get("http_code")
    message = result.get("message") or result.get("error_description") or ""
    if http_code is None:
        raise ValidationError(message or "Invalid arguments")
    raise ApiError(f"HTTP {http_code}: {message}" if message else f"HTTP {http_code}", http_code)


class SendPulseClient:
    """An authenticated client for the SendPulse REST API.

    Parameters
    ----------
    client_id : str
        Your SendPulse API user id.
    client_secret : str
        Your SendPulse API secret.
    token_store : TokenStore, optional
        Where the access token is cached.  Defaults to an in-memory
        store keyed by the credential fingerprint, which means a new
        token is requested for every client instance.
    base_url : str, optional
        Override the API base URL.
    token_path : str, optional
        Path of the OAuth token endpoint relative to ``base_url``.
    timeout : float, optional
        Connect and read timeout in seconds for every request.
    verify_ssl : bool, optional
        Whether to verify the server's TLS certificate.  Only disable
        this against test servers.

    Raises
    ------
    ConfigurationError
        If the client id or secret is empty, or the timeout is not
        a positive number.
    AuthenticationError
        If no token was cached and a new one could not be obtained.
    TransportError
        If the token endpoint could not be reached.
    """

    DEFAULT_BASE_URL = "https://api.sendpulse.com"
    DEFAULT_TOKEN_PATH = "oauth/access_token"
    DEFAULT_TIMEOUT = 30.0

    def __init__(
        self,
        *,
        client_id: str,
        client_secret: str,
        token_store: Optional[TokenStore] = None,
        base_url: Optional[str] = None,
        token_path: Optional[str] = None,
        timeout: Optional[float] = None,
        verify_ssl: bool = True,
    ) -> None:
        if not client_id:
            raise ConfigurationError("client_id must be provided")
        if not client_secret:
            raise ConfigurationError("client_secret must be provided")

        self._client_id = client_id
        self._client_secret = client_secret
        self.fingerprint = fingerprint(client_id, client_secret)
        self.token_store = token_store or MemoryTokenStore(self.fingerprint)
        self.base_url = base_url or self.DEFAULT_BASE_URL
        self.token_path = token_path or self.DEFAULT_TOKEN_PATH
        self.timeout = self.DEFAULT_TIMEOUT if timeout is None else timeout
        if (
            isinstance(self.timeout, bool)
            or not isinstance(self.timeout, (int, float))
            or not self.timeout > 0
        ):
            raise ConfigurationError("timeout must be a positive number, got %r" % (timeout,))
        self.verify_ssl = verify_ssl

        self._token: Optional[str] = None
        self._state = ClientState.UNINITIALIZED
        self._refresh_lock = threading.Lock()

        cached = self.token_store.get()
        if cached:
            logger.debug("Using cached access token")
            self._token = cached
            self._state = ClientState.AUTHENTICATED
        elif not self.get_token():
            raise AuthenticationError(
                "Could not obtain an access token, check your client id and secret"
            )

    @property
    def client_id(self) -> str:
        return self._client_id

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def state(self) -> ClientState:
        return self._state

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------
    def get_token(self) -> bool:
        """Request a new access token and store it.

        This method posts to the OAuth token endpoint with the
        client id and secret using the client credentials grant.  On
        HTTP 200 the ``access_token`` from the body replaces the held
        token and is written to the token store.  Any other outcome
        leaves the held token and the store untouched.

        Returns
        -------
        bool
            ``True`` if a new token was obtained.
        """
        payload = {
            "grant_type": "client_credentials",
            "client_id": self._client_id,
            "client_secret": self._client_secret,
        }
        response = self.call(self.token_path, "POST", payload, use_auth=False)

        if response.status_code != 200:
            logger.warning(
                "Token request failed with status %s", response.status_code
            )
            return False

        data = response.data if isinstance(response.data, dict) else {}
        access_token = data.get("access_token")
        if not access_token:
            logger.warning("Token response did not contain an access_token")
            return False

        self._token = access_token
        self.token_store.set(access_token)
        if self._state is not ClientState.REFRESHING:
            self._state = ClientState.AUTHENTICATED
        logger.info("Obtained a new SendPulse access token")
        return True

    def logout(self) -> None:
        """Forget the held token and clear it from the token store."""
        with self._refresh_lock:
            self._token = None
            self.token_store.clear()
            self._state = ClientState.UNINITIALIZED

    def _refresh(self, rejected: Optional[str]) -> None:
        """Obtain a new token after *rejected* came back with HTTP 401."""
        with self._refresh_lock:
            if self._token is not None and self._token != rejected:
                # Another thread refreshed while this request was in flight
                logger.debug("Token already refreshed, skipping")
                return
            logger.warning("Access token rejected, requesting a new one")
            self._state = ClientState.REFRESHING
            try:
                self.get_token()
            finally:
                self._state = (
                    ClientState.AUTHENTICATED if self._token else ClientState.UNINITIALIZED
                )

    # ------------------------------------------------------------------
    # HTTP request helpers
    # ------------------------------------------------------------------
    def _prepare_url(self, path: str) -> str:
        """Build the full request URL from a relative or absolute path.

        If the path is an absolute URL (starts with "http"), it is
        returned as-is.  Otherwise, it is joined to the client's
        ``base_url`` with exactly one slash between them.
        """
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    def call(
        self,
        path: str,
        method: str = "GET",
        params: Params = None,
        use_auth: bool = True,
    ) -> ApiResponse:
        """Send a request to the SendPulse API.

        When the server rejects the bearer token with HTTP 401, the
        token is refreshed once and the request is repeated once; the
        response to the repeated request is returned whatever its
        status.

        Parameters
        ----------
        path : str
            The API endpoint path relative to the base URL.  If an
            absolute URL is supplied, it will be used as-is.
        method : str, optional
            One of ``"GET"``, ``"POST"``, ``"PUT"``, ``"PATCH"`` or
            ``"DELETE"``.  Defaults to ``"GET"``.
        params : mapping or str, optional
            Request parameters.  GET sends them as the query string,
            every other method as a form-encoded body.  A ``str`` is
            taken as an already encoded body and sent unchanged.
        use_auth : bool, optional
            Attach the held bearer token.  Only the token endpoint
            itself passes ``False``.

        Returns
        -------
        ApiResponse
            The status code and decoded body.  HTTP error statuses are
            returned, not raised.

        Raises
        ------
        TransportError
            If the request could not be delivered or timed out.
        ValueError
            If *method* is not a supported HTTP verb.
        """
        method = method.upper()
        if method not in _METHODS:
            raise ValueError("unsupported HTTP method %r" % method)
        if params is None:
            params = {}
        elif not isinstance(params, str):
            params = MappingProxyType(dict(params))
        request = RequestSpec(path=path, method=method, params=params, use_auth=use_auth)

        token = self._token if use_auth else None
        response = self._send(request, token)
        if response.status_code == 401 and use_auth:
            self._refresh(token)
            response = self._send(request, self._token)
        return response

    def _send(self, request: RequestSpec, token: Optional[str]) -> ApiResponse:
        """Perform one HTTP exchange for *request* and decode the result."""
        url = self._prepare_url(request.path)
        headers: Dict[str, str] = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        kwargs: Dict[str, Any] = {}
        if isinstance(request.params, str):
            if request.method == "GET":
                url = f"{url}?{request.params}" if request.params else url
            else:
                headers["Content-Type"] = "application/x-www-form-urlencoded"
                kwargs["data"] = request.params
        elif request.method == "GET":
            kwargs["params"] = form_params(request.params)
        else:
            kwargs["data"] = form_params(request.params)

        logger.debug("%s %s", request.method, url)
        try:
            response = requests.request(
                method=request.method,
                url=url,
                headers=headers,
                timeout=self.timeout,
                verify=self.verify_ssl,
                **kwargs,
            )
        except requests.RequestException as exc:
            raise TransportError(f"Failed to connect to {url}: {exc}") from exc

        try:
            data = response.json()
        except ValueError:
            data = None
        return ApiResponse(status_code=response.status_code, data=data)

    # ------------------------------------------------------------------
    # Result shaping
    # ------------------------------------------------------------------
    @staticmethod
    def handle_result(response: ApiResponse) -> Any:
        """Turn a :class:`ApiResponse` into the result handed to callers.

        A 200 response yields its payload, with an empty payload
        replaced by ``{}``.  Any other status yields a new dictionary
        holding the payload plus ``is_error=True`` and the
        ``http_code``; a payload that is not a dictionary is placed
        under ``"data"``.  *response* is never modified.
        """
        data = response.data
        if not data:
            data = {}
        if response.status_code == 200:
            return data
        result = dict(data) if isinstance(data, dict) else {"data": data}
        result["is_error"] = True
        result["http_code"] = response.status_code
        return result

    @staticmethod
    def handle_error(message: Optional[str] = None) -> Dict[str, Any]:
        """Build an error marker for arguments rejected before sending."""
        result: Dict[str, Any] = {"is_error": True}
        if message is not None:
            result["message"] = message
        return result

    # ------------------------------------------------------------------
    # Public convenience methods
    # ------------------------------------------------------------------
    def get(self, path: str, *, params: Params = None) -> Any:
        """Perform a GET request and shape the result.

        See :meth:`call` and :meth:`handle_result`.
        """
        return self.handle_result(self.call(path, "GET", params))

    def post(self, path: str, *, params: Params = None) -> Any:
        """Perform a POST request and shape the result.

        See :meth:`call` and :meth:`handle_result`.
        """
        return self.handle_result(self.call(path, "POST", params))

    def put(self, path: str, *, params: Params = None) -> Any:
        """Perform a PUT request and shape the result."""
        return self.handle_result(self.call(path, "PUT", params))

    def patch(self, path: str, *, params: Params = None) -> Any:
        """Perform a PATCH request and shape the result."""
        return self.handle_result(self.call(path, "PATCH", params))

    def delete(self, path: str, *, params: Params = None) -> Any:
        """Perform a DELETE request and shape the result."""
        return self.handle_result(self.call(path, "DELETE", params))
