"""
Token storage backends for the SendPulse API client.

A token store is a single cell holding the current bearer token for
one set of credentials.  The cell is addressed by a ``key``, normally
the :func:`fingerprint` of the client id and secret, so several
clients (or several processes, for the file backend) built with the
same credentials share one token instead of each requesting their own.

Usage
-----

.. code-block:: python

    from sendpulse_api_client import FileTokenStore, fingerprint

    store = FileTokenStore(
        fingerprint("my-id", "my-secret"), directory="/var/cache/sendpulse"
    )
    store.set("abc")
    store.get()  # -> "abc"
"""

from __future__ import annotations

import abc
import hashlib
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, MutableMapping, Optional, Union

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def fingerprint(client_id: str, client_secret: str) -> str:
    """Return a stable cache key for a credential pair.

    The key is the hex SHA-256 digest of ``"<id>::<secret>"``.  It is
    only used to address token storage and is not itself a secret
    worth protecting, but it never reveals the secret either.
    """
    raw = f"{client_id}::{client_secret}".encode("utf-8")
    return hashlib.sha256(raw).hexdigest()


class TokenStore(abc.ABC):
    """Interface for a single-token storage cell.

    Parameters
    ----------
    key : str
        Identifier of the cell inside the backing medium.  Stores
        created with the same key over the same medium observe the
        same token.
    """

    def __init__(self, key: str) -> None:
        if not key:
            raise ConfigurationError("token store key must not be empty")
        self.key = key

    @abc.abstractmethod
    def get(self) -> Optional[str]:
        """Return the stored token, or ``None`` when nothing is stored."""

    @abc.abstractmethod
    def set(self, token: str) -> None:
        """Replace the stored token."""

    @abc.abstractmethod
    def clear(self) -> None:
        """Remove the stored token.  Clearing an empty store is a no-op."""


class MemoryTokenStore(TokenStore):
    """Keep the token in a dictionary.

    Pass the same ``cells`` mapping to several stores to let them share
    tokens within one process; by default each store gets its own.
    """

    def __init__(self, key: str, cells: Optional[Dict[str, str]] = None) -> None:
        super().__init__(key)
        self._cells = cells if cells is not None else {}

    def get(self) -> Optional[str]:
        return self._cells.get(self.key) or None

    def set(self, token: str) -> None:
        self._cells[self.key] = token

    def clear(self) -> None:
        self._cells.pop(self.key, None)


class FileTokenStore(TokenStore):
    """Persist the token to ``<directory>/<key>``.

    Writes are atomic: the token is written to a temporary file in the
    same directory, fsynced, then renamed into place, so a concurrent
    reader sees either the old token or the new one.  The file is
    created with ``0o600`` permissions.
    """

    def __init__(self, key: str, directory: Union[str, Path]) -> None:
        super().__init__(key)
        if not directory:
            raise ConfigurationError("file token store requires a directory")
        self.directory = Path(directory).expanduser()

    @property
    def path(self) -> Path:
        return self.directory / self.key

    def get(self) -> Optional[str]:
        try:
            token = self.path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        return token or None

    def set(self, token: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=str(self.directory), prefix=".tmp-")
        try:
            os.chmod(tmp_name, 0o600)
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(token)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, self.path)
        except BaseException:
            # Clean up the temp file on any failure, then re-raise
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            raise
        logger.debug("Stored token in %s", self.path)

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass


class SessionTokenStore(TokenStore):
    """Keep the token inside a web session or any other mutable mapping.

    The token lives under ``sendpulse_token_<key>`` so that several
    credential sets can share one session.
    """

    prefix = "sendpulse_token_"

    def __init__(self, key: str, session: MutableMapping[str, Any]) -> None:
        super().__init__(key)
        if session is None:
            raise ConfigurationError("session token store requires a session")
        self.session = session

    @property
    def session_key(self) -> str:
        return self.prefix + self.key

    def get(self) -> Optional[str]:
        return self.session.get(self.session_key) or None

    def set(self, token: str) -> None:
        self.session[self.session_key] = token

    def clear(self) -> None:
        self.session.pop(self.session_key, None)


_DRIVERS = ("memory", "file", "session")


def create_token_store(driver: str, key: str, **options: Any) -> TokenStore:
    """Build a token store by driver name.

    Parameters
    ----------
    driver : str
        One of ``"memory"``, ``"file"`` or ``"session"``.
    key : str
        Cell identifier, usually :func:`fingerprint` of the credentials.
    **options
        ``directory`` for the file driver, ``session`` for the session
        driver and optionally ``cells`` for the memory driver.

    Raises
    ------
    ConfigurationError
        If the driver is unknown or its required option is missing.
    """
    name = (driver or "").strip().lower()
    if name == "memory":
        return MemoryTokenStore(key, cells=options.get("cells"))
    if name == "file":
        return FileTokenStore(key, directory=options.get("directory"))
    if name == "session":
        return SessionTokenStore(key, session=options.get("session"))
    raise ConfigurationError(
        "token storage driver must be one of %s, got %r" % (", ".join(_DRIVERS), driver)
    )
