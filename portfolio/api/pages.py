"""
Public home page and the signed-in dashboard.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, PlainTextResponse

from portfolio.api.deps import get_projects, templates
from portfolio.core.auth import current_identity, require_identity
from portfolio.core.errors import StoreError
from portfolio.schemas.identity import Identity
from portfolio.services.projects import ProjectRepository

router = APIRouter()


@router.get("/", response_class=HTMLResponse, name="home")
async def home(
    request: Request,
    identity: Optional[Identity] = Depends(current_identity),
    projects: ProjectRepository = Depends(get_projects),
):
    """Portfolio landing page listing every project."""
    try:
        rows = await projects.list_all()
    except StoreError:
        return PlainTextResponse("Server error", status_code=500)
    return templates.TemplateResponse(
        request, "index.html", {"projects": rows, "identity": identity}
    )


@router.get("/dashboard", response_class=HTMLResponse, name="dashboard")
async def dashboard(request: Request, identity: Identity = Depends(require_identity)):
    return templates.TemplateResponse(request, "dashboard.html", {"identity": identity})
