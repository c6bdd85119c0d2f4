"""
Project endpoints: listing, create/edit forms, create, update, delete.

All routes require a signed-in identity. Update and delete of an unknown id
are silent no-ops; the edit form answers 404 for an unknown id.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse

from portfolio.api.deps import get_projects, templates
from portfolio.core.auth import require_identity
from portfolio.core.errors import StoreError
from portfolio.schemas.identity import Identity
from portfolio.schemas.projects import decode_project_form
from portfolio.services.projects import ProjectRepository

router = APIRouter(dependencies=[Depends(require_identity)])


def _back_to_list() -> RedirectResponse:
    return RedirectResponse("/projects", status_code=302)


@router.get("", response_class=HTMLResponse, name="list_projects")
async def list_projects(
    request: Request,
    identity: Identity = Depends(require_identity),
    projects: ProjectRepository = Depends(get_projects),
):
    try:
        rows = await projects.list_all()
    except StoreError:
        return PlainTextResponse("DB error", status_code=500)
    return templates.TemplateResponse(
        request, "projects.html", {"projects": rows, "identity": identity}
    )


@router.get("/new", response_class=HTMLResponse, name="new_project")
async def new_project(request: Request, identity: Identity = Depends(require_identity)):
    return templates.TemplateResponse(request, "new-project.html", {"identity": identity})


@router.post("", name="create_project")
async def create_project(
    request: Request,
    projects: ProjectRepository = Depends(get_projects),
):
    form = await decode_project_form(request)
    await projects.create(form)
    return _back_to_list()


@router.get("/{project_id}/edit", response_class=HTMLResponse, name="edit_project")
async def edit_project(
    request: Request,
    project_id: int,
    identity: Identity = Depends(require_identity),
    projects: ProjectRepository = Depends(get_projects),
):
    project = await projects.get(project_id)
    if project is None:
        return PlainTextResponse("Project not found", status_code=404)
    return templates.TemplateResponse(
        request, "edit-project.html", {"project": project, "identity": identity}
    )


@router.put("/{project_id}", name="update_project")
async def update_project(
    request: Request,
    project_id: int,
    projects: ProjectRepository = Depends(get_projects),
):
    form = await decode_project_form(request)
    await projects.update(project_id, form)
    return _back_to_list()


@router.delete("/{project_id}", name="delete_project")
async def delete_project(
    project_id: int,
    projects: ProjectRepository = Depends(get_projects),
):
    await projects.delete(project_id)
    return _back_to_list()
