"""
Request-scoped access to the process-wide resources built in `create_app`.
"""

from __future__ import annotations

from pathlib import Path

from fastapi import Request
from fastapi.templating import Jinja2Templates

from portfolio.core.oauth import IdentityProvider
from portfolio.services.projects import ProjectRepository

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATE_DIR))


def get_projects(request: Request) -> ProjectRepository:
    return request.app.state.projects


def get_identity_provider(request: Request) -> IdentityProvider:
    return request.app.state.identity_provider
