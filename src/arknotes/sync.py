"""Remote document store client, session persistence and auto-sync.

The remote store keeps one ``{"data": document, "settings": settings}``
snapshot per user. Upload is last-writer-wins; there is no merging.

Explicit user actions surface failures (exception plus status message).
Silent background syncs only log them.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import ValidationError

from .config import get_sync_interval
from .document import SESSION_FILE, backup_payload
from .schemas import Backup
from .utils import is_blank

if TYPE_CHECKING:
    from .document import LocalStore
    from .workspace import AppState

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


class RemoteStoreError(Exception):
    """Raised when the remote store is unreachable or rejects a request."""


class NotLoggedInError(RemoteStoreError):
    """Raised when a sync action needs a session and there is none."""


@dataclass(frozen=True)
class Session:
    """An authenticated session with the remote store."""

    token: str
    username: str


class SessionStore:
    """Persists the current session next to the local document."""

    def __init__(self, local: LocalStore) -> None:
        self._local = local

    def load(self) -> Session | None:
        """Return the saved session, if any."""
        payload = self._local.read_json(SESSION_FILE)
        if not isinstance(payload, dict):
            return None
        token = payload.get("session_token")
        username = payload.get("username")
        if is_blank(token) or is_blank(username):
            return None
        return Session(token=token, username=username)

    def save(self, session: Session) -> None:
        self._local.write_json(
            SESSION_FILE,
            {"session_token": session.token, "username": session.username},
        )

    def clear(self) -> None:
        self._local.delete(SESSION_FILE)


class RemoteStore:
    """HTTP client for the remote document store."""

    def __init__(
        self,
        base_url: str,
        *,
        client: httpx.Client | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Create a client.

        Args:
            base_url: Server root, e.g. ``http://127.0.0.1:8000``.
            client: Preconfigured client (its own base URL is used as-is). The
                caller keeps ownership and closes it.
            timeout: Request timeout in seconds for the default client.

        """
        self._owns_client = client is None
        self._client = client or httpx.Client(base_url=base_url, timeout=timeout)

    def __enter__(self) -> RemoteStore:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the HTTP client if this store created it."""
        if self._owns_client:
            self._client.close()

    def _request(
        self,
        method: str,
        path: str,
        *,
        token: str | None = None,
        payload: Any = None,  # noqa: ANN401
    ) -> dict[str, Any]:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        try:
            response = self._client.request(method, path, headers=headers, json=payload)
        except httpx.HTTPError as exc:
            msg = f"Connection error: {exc}"
            raise RemoteStoreError(msg) from exc
        try:
            result = response.json()
        except ValueError as exc:
            msg = f"Invalid response from {path} (HTTP {response.status_code})"
            raise RemoteStoreError(msg) from exc
        if not isinstance(result, dict) or not result.get("success"):
            error = result.get("error") if isinstance(result, dict) else None
            raise RemoteStoreError(error or f"Request to {path} failed")
        return result

    def register(self, username: str, password: str) -> None:
        """Create an account."""
        self._request(
            "POST",
            "/api/register",
            payload={"username": username, "password": password},
        )

    def login(self, username: str, password: str) -> Session:
        """Authenticate and return the new session."""
        result = self._request(
            "POST",
            "/api/login",
            payload={"username": username, "password": password},
        )
        try:
            return Session(token=result["session_token"], username=result["username"])
        except KeyError as exc:
            msg = "Login response is missing the session token"
            raise RemoteStoreError(msg) from exc

    def logout(self, token: str) -> None:
        """Invalidate a session token."""
        self._request("POST", "/api/logout", token=token)

    def upload(self, token: str, snapshot: dict[str, Any]) -> None:
        """Replace the stored snapshot with ``snapshot``."""
        self._request("POST", "/api/sync/upload", token=token, payload={"data": snapshot})

    def download(self, token: str) -> Backup:
        """Fetch the stored snapshot."""
        result = self._request("GET", "/api/sync/download", token=token)
        raw = result.get("data")
        if not isinstance(raw, dict):
            msg = "No cloud data stored"
            raise RemoteStoreError(msg)
        try:
            return Backup.model_validate(raw)
        except ValidationError as exc:
            msg = "Cloud data is malformed"
            raise RemoteStoreError(msg) from exc


class SyncService:
    """Moves the app state to and from the remote store."""

    def __init__(
        self,
        state: AppState,
        remote: RemoteStore,
        sessions: SessionStore,
    ) -> None:
        self._state = state
        self._remote = remote
        self._sessions = sessions
        self._session = sessions.load()

    @property
    def state(self) -> AppState:
        return self._state

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def logged_in(self) -> bool:
        return self._session is not None

    def _require_session(self) -> Session:
        if self._session is None:
            msg = "Not logged in"
            raise NotLoggedInError(msg)
        return self._session

    def register(self, username: str, password: str) -> None:
        """Create an account; the user still has to log in afterwards."""
        self._remote.register(username, password)
        self._state.notify("Account created! Please login.")

    def login(self, username: str, password: str) -> Session:
        """Log in, remember the session and pull the cloud copy."""
        session = self._remote.login(username, password)
        self._session = session
        self._sessions.save(session)
        logger.info("Logged in as %s", session.username)
        try:
            self.download()
        except RemoteStoreError as exc:
            logger.warning("No cloud copy loaded after login: %s", exc)
        return session

    def logout(self) -> None:
        """Forget the session. Local state is cleared even if the server is down."""
        session = self._session
        try:
            if session is not None:
                self._remote.logout(session.token)
        except RemoteStoreError as exc:
            logger.warning("Logout request failed: %s", exc)
        finally:
            self._session = None
            self._sessions.clear()

    def upload(self, *, silent: bool = False) -> bool:
        """Push the current document and settings.

        Returns:
            True on success. A silent upload returns False on failure or when
            logged out instead of raising.

        Raises:
            NotLoggedInError: On an explicit upload without a session.
            RemoteStoreError: On an explicit upload that fails.

        """
        if silent and self._session is None:
            return False
        session = self._require_session()
        snapshot = backup_payload(self._state.document, self._state.settings)
        try:
            self._remote.upload(session.token, snapshot)
        except RemoteStoreError as exc:
            if silent:
                logger.warning("Background sync failed: %s", exc)
                return False
            self._state.notify("Sync failed")
            raise
        if not silent:
            self._state.notify("Synced to cloud")
        return True

    def download(self) -> bool:
        """Pull the cloud copy into the app state.

        Returns:
            True if the document was applied now, False if it was deferred
            until the running gesture ends.

        Raises:
            NotLoggedInError: Without a session.
            RemoteStoreError: If the download fails.

        """
        session = self._require_session()
        try:
            backup = self._remote.download(session.token)
        except RemoteStoreError:
            self._state.notify("Failed to load cloud data")
            raise
        applied = True
        if backup.data is not None:
            applied = self._state.replace_document(backup.data)
        if backup.settings is not None:
            self._state.settings = backup.settings
        self._state.notify("Data loaded from cloud")
        return applied

    def resume(self) -> bool:
        """Pull the cloud copy on startup if a session was saved."""
        if self._session is None:
            return False
        try:
            self.download()
        except RemoteStoreError as exc:
            logger.warning("Startup download failed: %s", exc)
            return False
        return True


class AutoSync:
    """Cooperative timer that uploads silently while logged in.

    The host calls :meth:`run_pending` from its own loop. The period defaults to
    ``ARKNOTES_SYNC_INTERVAL``.
    """

    def __init__(
        self,
        service: SyncService,
        interval: float | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._service = service
        self._interval = get_sync_interval() if interval is None else interval
        self._clock = clock
        self._last: float | None = None

    def run_pending(self, now: float | None = None) -> bool:
        """Upload if an interval has elapsed; return whether an upload succeeded."""
        if not self._service.logged_in:
            self._last = None
            return False
        current = self._clock() if now is None else now
        if self._last is None:
            self._last = current
            return False
        if current - self._last < self._interval:
            return False
        self._last = current
        return self._service.upload(silent=True)
