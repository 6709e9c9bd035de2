"""Reference remote document store.

A small FastAPI app implementing the register/login/logout/upload/download
contract the sync client speaks. Users, sessions and snapshots live in memory,
so a restart forgets everything; it is meant for tests and local setups.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass, field
from typing import Any

from fastapi import FastAPI, Header, Request
from fastapi.responses import JSONResponse
from passlib.context import CryptContext
from pydantic import BaseModel

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class Credentials(BaseModel):
    """Register/login request body."""

    username: str
    password: str


class UploadRequest(BaseModel):
    """Upload request body: ``{"data": {"data": ..., "settings": ...}}``."""

    data: dict[str, Any]


class UnauthorizedError(Exception):
    """Raised for requests without a valid bearer token."""


@dataclass
class ServerState:
    """In-memory storage of the reference server."""

    users: dict[str, str] = field(default_factory=dict)
    sessions: dict[str, str] = field(default_factory=dict)
    snapshots: dict[str, dict[str, Any]] = field(default_factory=dict)


def hash_password(password: str) -> str:
    """Return the encoded bcrypt hash of ``password``."""
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str | None) -> bool:
    """Check ``password`` against a stored hash; unknown users never match."""
    if hashed is None:
        pwd_context.dummy_verify()
        return False
    return pwd_context.verify(password, hashed)


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def create_app() -> FastAPI:
    """Build a fresh server with empty storage."""
    app = FastAPI(title="arknotes sync")
    state = ServerState()
    app.state.store = state

    @app.exception_handler(UnauthorizedError)
    async def unauthorized_handler(
        request: Request,  # noqa: ARG001
        exc: UnauthorizedError,
    ) -> JSONResponse:
        return JSONResponse(
            status_code=401,
            content={"success": False, "error": str(exc) or "Unauthorized"},
        )

    def current_user(authorization: str | None) -> str:
        token = _bearer_token(authorization)
        username = state.sessions.get(token) if token else None
        if username is None:
            msg = "Invalid or expired session"
            raise UnauthorizedError(msg)
        return username

    @app.post("/api/register")
    async def register(payload: Credentials) -> dict[str, Any]:
        """Create an account."""
        username = payload.username.strip()
        if not username or not payload.password:
            return {"success": False, "error": "Username and password required"}
        if username in state.users:
            return {"success": False, "error": "Username already exists"}
        state.users[username] = hash_password(payload.password)
        logger.info("Registered user %s", username)
        return {"success": True}

    @app.post("/api/login")
    async def login(payload: Credentials) -> dict[str, Any]:
        """Exchange credentials for a session token."""
        username = payload.username.strip()
        if not verify_password(payload.password, state.users.get(username)):
            return {"success": False, "error": "Invalid username or password"}
        token = secrets.token_urlsafe(32)
        state.sessions[token] = username
        return {"success": True, "session_token": token, "username": username}

    @app.post("/api/logout")
    async def logout(
        authorization: str | None = Header(default=None),
    ) -> dict[str, Any]:
        """Invalidate the caller's session."""
        token = _bearer_token(authorization)
        if token is not None:
            state.sessions.pop(token, None)
        return {"success": True}

    @app.post("/api/sync/upload")
    async def upload(
        payload: UploadRequest,
        authorization: str | None = Header(default=None),
    ) -> dict[str, Any]:
        """Store the caller's snapshot (last writer wins)."""
        username = current_user(authorization)
        state.snapshots[username] = payload.data
        return {"success": True}

    @app.get("/api/sync/download")
    async def download(
        authorization: str | None = Header(default=None),
    ) -> dict[str, Any]:
        """Return the caller's snapshot."""
        username = current_user(authorization)
        snapshot = state.snapshots.get(username)
        if snapshot is None:
            return {"success": False, "error": "No data found"}
        return {"success": True, "data": snapshot}

    return app


app = create_app()
