"""
Domain exceptions and their HTTP mapping.
"""

from __future__ import annotations

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse, RedirectResponse

log = structlog.get_logger()


class StoreError(Exception):
    """A data store query or connection failed."""


class OAuthFailure(Exception):
    """The identity provider exchange did not yield an identity."""


class NotAuthenticated(Exception):
    """The current session carries no identity."""


class ValidationError(Exception):
    """A request body could not be decoded into its typed form."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__("; ".join(errors))


async def _not_authenticated(request: Request, exc: NotAuthenticated):
    return RedirectResponse("/", status_code=302)


async def _store_error(request: Request, exc: StoreError):
    log.error("store.request_failed", path=request.url.path, error=str(exc))
    return PlainTextResponse("Server error", status_code=500)


async def _validation_error(request: Request, exc: ValidationError):
    log.info("request.invalid_form", path=request.url.path, errors=exc.errors)
    return PlainTextResponse(f"Invalid project form: {exc}", status_code=422)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(NotAuthenticated, _not_authenticated)
    app.add_exception_handler(StoreError, _store_error)
    app.add_exception_handler(ValidationError, _validation_error)
