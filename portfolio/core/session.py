"""
Server-side sessions keyed by a signed cookie.

The cookie carries only a random session id signed with SESSION_SECRET; the
session contents live in a SessionStore (in-process memory or Redis). The
middleware exposes the contents as `request.session`, which is also what
authlib uses to keep the OAuth `state` between redirect and callback.
"""

from __future__ import annotations

import json
import secrets
import time
from typing import Any, Optional, Protocol

import redis.asyncio as redis
import structlog
from itsdangerous import BadSignature, SignatureExpired, TimestampSigner
from starlette.datastructures import MutableHeaders
from starlette.requests import HTTPConnection, Request
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from portfolio.schemas.identity import Identity

log = structlog.get_logger()

IDENTITY_KEY = "identity"
ROTATE_SCOPE_KEY = "portfolio.session.rotate"


# ---------------------------------------------------------------------------
# Stores
# ---------------------------------------------------------------------------


class SessionStore(Protocol):
    async def load(self, session_id: str) -> Optional[dict[str, Any]]: ...

    async def save(self, session_id: str, data: dict[str, Any], ttl_seconds: int) -> None: ...

    async def delete(self, session_id: str) -> None: ...

    async def close(self) -> None: ...


class MemorySessionStore:
    """Process-local session records with expiry. Lost on restart."""

    def __init__(self):
        self._records: dict[str, tuple[float, str]] = {}

    async def load(self, session_id: str) -> Optional[dict[str, Any]]:
        record = self._records.get(session_id)
        if record is None:
            return None
        expires_at, raw = record
        if expires_at <= time.monotonic():
            self._records.pop(session_id, None)
            return None
        return json.loads(raw)

    async def save(self, session_id: str, data: dict[str, Any], ttl_seconds: int) -> None:
        now = time.monotonic()
        self._purge_expired(now)
        self._records[session_id] = (now + ttl_seconds, json.dumps(data))

    async def delete(self, session_id: str) -> None:
        self._records.pop(session_id, None)

    def _purge_expired(self, now: float) -> None:
        # Abandoned sessions (e.g. an unfinished OAuth redirect) are never loaded again.
        expired = [key for key, (expires_at, _) in self._records.items() if expires_at <= now]
        for key in expired:
            del self._records[key]

    async def close(self) -> None:
        self._records.clear()

    def __len__(self) -> int:
        return len(self._records)


class RedisSessionStore:
    """Session records in Redis under `session:<id>` with a TTL."""

    key_prefix = "session:"

    def __init__(self, client: redis.Redis):
        self._redis = client

    @classmethod
    def from_url(cls, url: str) -> "RedisSessionStore":
        return cls(redis.from_url(url, decode_responses=True))

    def _key(self, session_id: str) -> str:
        return f"{self.key_prefix}{session_id}"

    async def load(self, session_id: str) -> Optional[dict[str, Any]]:
        raw = await self._redis.get(self._key(session_id))
        if raw is None:
            return None
        return json.loads(raw)

    async def save(self, session_id: str, data: dict[str, Any], ttl_seconds: int) -> None:
        await self._redis.setex(self._key(session_id), ttl_seconds, json.dumps(data))

    async def delete(self, session_id: str) -> None:
        await self._redis.delete(self._key(session_id))

    async def close(self) -> None:
        await self._redis.aclose()


# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------


class ServerSessionMiddleware:
    """Restore `scope["session"]` from the store and persist it on response."""

    def __init__(
        self,
        app: ASGIApp,
        store: SessionStore,
        secret_key: str,
        session_cookie: str = "portfolio_session",
        max_age: int = 14 * 24 * 60 * 60,
        path: str = "/",
        same_site: str = "lax",
        https_only: bool = False,
    ):
        self.app = app
        self.store = store
        self.signer = TimestampSigner(secret_key)
        self.session_cookie = session_cookie
        self.max_age = max_age
        self.cookie_flags = f"path={path}; httponly; samesite={same_site}"
        if https_only:
            self.cookie_flags += "; secure"

    def _unsign(self, cookie: str) -> Optional[str]:
        try:
            return self.signer.unsign(cookie.encode(), max_age=self.max_age).decode()
        except (BadSignature, SignatureExpired):
            return None

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        connection = HTTPConnection(scope)
        cookie = connection.cookies.get(self.session_cookie)
        session_id: Optional[str] = None
        data: dict[str, Any] = {}

        if cookie:
            session_id = self._unsign(cookie)
            if session_id is not None:
                stored = await self.store.load(session_id)
                if stored is None:
                    session_id = None
                else:
                    data = stored

        scope["session"] = data

        async def send_wrapper(message: Message) -> None:
            nonlocal session_id
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                session = scope["session"]
                if scope.get(ROTATE_SCOPE_KEY) and session_id is not None:
                    await self.store.delete(session_id)
                    session_id = None
                if session:
                    if session_id is None:
                        session_id = secrets.token_urlsafe(32)
                    await self.store.save(session_id, session, self.max_age)
                    signed = self.signer.sign(session_id).decode()
                    headers.append(
                        "Set-Cookie",
                        f"{self.session_cookie}={signed}; Max-Age={self.max_age}; {self.cookie_flags}",
                    )
                elif cookie:
                    if session_id is not None:
                        await self.store.delete(session_id)
                    headers.append(
                        "Set-Cookie",
                        f"{self.session_cookie}=null; expires=Thu, 01 Jan 1970 00:00:00 GMT; {self.cookie_flags}",
                    )
            await send(message)

        await self.app(scope, receive, send_wrapper)


# ---------------------------------------------------------------------------
# Identity helpers
# ---------------------------------------------------------------------------


def load_identity(request: Request) -> Optional[Identity]:
    """Identity stored in the current session, if any."""
    raw = request.session.get(IDENTITY_KEY)
    if not raw:
        return None
    try:
        return Identity.model_validate(raw)
    except ValueError:
        log.warning("session.identity_unreadable")
        return None


def store_identity(request: Request, identity: Identity) -> None:
    """Replace the session with `identity` and issue a fresh session id."""
    request.session.clear()
    request.session[IDENTITY_KEY] = identity.model_dump()
    request.scope[ROTATE_SCOPE_KEY] = True


def clear_identity(request: Request) -> None:
    """Empty the session; its server-side record is deleted on response."""
    request.session.clear()
