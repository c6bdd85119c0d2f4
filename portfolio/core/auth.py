"""
Authentication dependencies.

- `require_identity`: gate for protected routes. Anonymous requests are sent
  back to the home page (see NotAuthenticated handler in core.errors).
- `current_identity`: same lookup without the gate, for pages that only
  adapt their navigation.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Request

from portfolio.core.errors import NotAuthenticated
from portfolio.core.session import load_identity
from portfolio.schemas.identity import Identity


def is_authenticated(request: Request) -> bool:
    return load_identity(request) is not None


async def current_identity(request: Request) -> Optional[Identity]:
    return load_identity(request)


async def require_identity(request: Request) -> Identity:
    """Any signed-in identity can access this endpoint."""
    identity = load_identity(request)
    if identity is None:
        raise NotAuthenticated()
    return identity
