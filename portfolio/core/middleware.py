"""
HTTP middleware: method override for HTML forms, security headers, request logging.
"""

from __future__ import annotations

import uuid
from urllib.parse import parse_qs

import structlog
from starlette.exceptions import HTTPException
from starlette.formparsers import MultiPartException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

log = structlog.get_logger()

METHOD_OVERRIDE_PARAM = "_method"
OVERRIDABLE_METHODS = {"PUT", "PATCH", "DELETE"}
FORM_CONTENT_TYPES = (b"application/x-www-form-urlencoded", b"multipart/form-data")

# ---------------------------------------------------------------------------
# Method Override
# ---------------------------------------------------------------------------


class MethodOverrideMiddleware:
    """
    Let HTML forms reach PUT/PATCH/DELETE routes.

    A POST carrying `_method` in its query string or as a field of a
    urlencoded or multipart form body is dispatched with that verb instead.
    The body is buffered and replayed unchanged to the application.
    """

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope["method"] != "POST":
            await self.app(scope, receive, send)
            return

        override = _first_value(scope.get("query_string", b""))
        if override is None and _is_form(scope):
            body, receive = await _buffer_body(receive)
            override = await _form_value(scope, body)

        if override is not None and override.upper() in OVERRIDABLE_METHODS:
            scope = dict(scope, method=override.upper())

        await self.app(scope, receive, send)


def _first_value(raw: bytes) -> str | None:
    values = parse_qs(raw.decode("latin-1")).get(METHOD_OVERRIDE_PARAM)
    return values[0] if values else None


def _is_form(scope: Scope) -> bool:
    for name, value in scope.get("headers", []):
        if name == b"content-type":
            return value.split(b";")[0].strip().lower() in FORM_CONTENT_TYPES
    return False


async def _form_value(scope: Scope, body: bytes) -> str | None:
    """`_method` field of an already buffered form body, parsed by Starlette."""

    async def once() -> Message:
        return {"type": "http.request", "body": body, "more_body": False}

    try:
        form = await Request(dict(scope), once).form()
    except (HTTPException, MultiPartException, ValueError):
        # Malformed body: leave the method alone and let the route reject it.
        return None
    try:
        value = form.get(METHOD_OVERRIDE_PARAM)
    finally:
        await form.close()
    return value if isinstance(value, str) else None


async def _buffer_body(receive: Receive) -> tuple[bytes, Receive]:
    chunks: list[bytes] = []
    more_body = True
    while more_body:
        message = await receive()
        if message["type"] == "http.disconnect":
            break
        chunks.append(message.get("body", b""))
        more_body = message.get("more_body", False)
    body = b"".join(chunks)
    replayed = False

    async def replay() -> Message:
        nonlocal replayed
        if not replayed:
            replayed = True
            return {"type": "http.request", "body": body, "more_body": False}
        return await receive()

    return body, replay


# ---------------------------------------------------------------------------
# Security Headers
# ---------------------------------------------------------------------------

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
    "Content-Security-Policy": (
        "default-src 'self'; "
        "img-src 'self' data: https://lh3.googleusercontent.com; "
        "form-action 'self' https://accounts.google.com; "
        "frame-ancestors 'none';"
    ),
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Attach security headers to every response."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        for header, value in SECURITY_HEADERS.items():
            response.headers[header] = value
        return response


# ---------------------------------------------------------------------------
# Request logging
# ---------------------------------------------------------------------------


class RequestLogMiddleware(BaseHTTPMiddleware):
    """Bind a request id into the log context and log each response."""

    async def dispatch(self, request: Request, call_next) -> Response:
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=uuid.uuid4().hex[:10],
            method=request.method,
            path=request.url.path,
        )
        try:
            response = await call_next(request)
        except Exception:
            log.exception("http.request_failed")
            raise
        log.info("http.request", status=response.status_code)
        return response
