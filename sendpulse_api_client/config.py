"""
Environment-based configuration for the SendPulse API client.

:func:`create_client` is the single place where settings, token
storage and the client are put together.  Applications that manage
their own configuration can skip it and build
:class:`~sendpulse_api_client.api.SendPulseApi` directly.

Recognised environment variables
--------------------------------

``SENDPULSE_API_USER_ID``
    API user id (required).
``SENDPULSE_API_SECRET``
    API secret (required).
``SENDPULSE_TOKEN_STORAGE``
    ``file`` (default), ``session`` or ``memory``.
``SENDPULSE_TOKEN_PATH``
    Directory used by the ``file`` storage.  Defaults to
    ``~/.sendpulse/tokens``.
``SENDPULSE_API_URL``
    Override the API base URL.
``SENDPULSE_TIMEOUT``
    Request timeout in seconds.  Defaults to 30.
``SENDPULSE_VERIFY_SSL``
    Set to ``0``, ``false`` or ``no`` to skip TLS verification.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Mapping, MutableMapping, Optional

from .api import SendPulseApi
from .client import SendPulseClient
from .exceptions import ConfigurationError
from .token_store import create_token_store, fingerprint

DEFAULT_TOKEN_PATH = "~/.sendpulse/tokens"

_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass
class Settings:
    """Settings needed to build a client."""

    api_user_id: str = ""
    api_secret: str = ""
    token_storage: str = "file"
    token_path: str = DEFAULT_TOKEN_PATH
    api_url: str = SendPulseClient.DEFAULT_BASE_URL
    timeout: float = SendPulseClient.DEFAULT_TIMEOUT
    verify_ssl: bool = True

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Read settings from ``SENDPULSE_*`` environment variables."""
        env = os.environ if environ is None else environ

        raw_timeout = env.get("SENDPULSE_TIMEOUT")
        timeout = SendPulseClient.DEFAULT_TIMEOUT
        if raw_timeout:
            try:
                timeout = float(raw_timeout)
            except ValueError as exc:
                raise ConfigurationError(
                    "SENDPULSE_TIMEOUT must be a number, got %r" % raw_timeout
                ) from exc
            if not timeout > 0:
                raise ConfigurationError(
                    "SENDPULSE_TIMEOUT must be positive, got %r" % raw_timeout
                )

        verify = env.get("SENDPULSE_VERIFY_SSL", "")
        return cls(
            api_user_id=env.get("SENDPULSE_API_USER_ID", ""),
            api_secret=env.get("SENDPULSE_API_SECRET", ""),
            token_storage=env.get("SENDPULSE_TOKEN_STORAGE") or "file",
            token_path=env.get("SENDPULSE_TOKEN_PATH") or DEFAULT_TOKEN_PATH,
            api_url=env.get("SENDPULSE_API_URL") or SendPulseClient.DEFAULT_BASE_URL,
            timeout=timeout,
            verify_ssl=verify.strip().lower() not in _FALSE_VALUES,
        )


def create_client(
    settings: Optional[Settings] = None,
    session: Optional[MutableMapping[str, Any]] = None,
) -> SendPulseApi:
    """Build a :class:`SendPulseApi` from *settings*.

    Parameters
    ----------
    settings : Settings, optional
        Defaults to :meth:`Settings.from_env`.
    session : mapping, optional
        The session object used when ``token_storage`` is ``session``.

    Raises
    ------
    ConfigurationError
        If credentials are missing or the storage driver is invalid.
    AuthenticationError
        If no token was cached and a new one could not be obtained.
    """
    settings = settings or Settings.from_env()
    if not settings.api_user_id or not settings.api_secret:
        raise ConfigurationError("SendPulse api_user_id and api_secret must be configured")

    store = create_token_store(
        settings.token_storage,
        fingerprint(settings.api_user_id, settings.api_secret),
        directory=settings.token_path,
        session=session,
    )
    return SendPulseApi(
        client_id=settings.api_user_id,
        client_secret=settings.api_secret,
        token_store=store,
        base_url=settings.api_url,
        timeout=settings.timeout,
        verify_ssl=settings.verify_ssl,
    )
