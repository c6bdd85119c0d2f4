"""
Project repository: parameterized CRUD statements over the `projects` table.

Every operation runs in its own session checked out from the shared pool and
commits a single statement. Driver and connectivity failures surface as
StoreError.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from sqlalchemy import delete, update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from portfolio.core.database import Database
from portfolio.core.errors import StoreError
from portfolio.models.project import Project
from portfolio.schemas.projects import ProjectForm

log = structlog.get_logger()


class ProjectRepository:
    def __init__(self, database: Database):
        self.database = database

    @asynccontextmanager
    async def _session(self, operation: str):
        try:
            async with self.database.session() as session:
                yield session
        except (SQLAlchemyError, OSError) as exc:
            log.exception("store.query_failed", operation=operation)
            raise StoreError(f"{operation} failed: {exc.__class__.__name__}") from exc

    async def list_all(self) -> list[Project]:
        async with self._session("list_projects") as session:
            result = await session.execute(select(Project))
            return list(result.scalars().all())

    async def get(self, project_id: int) -> Optional[Project]:
        async with self._session("get_project") as session:
            result = await session.execute(select(Project).where(Project.id == project_id))
            return result.scalar_one_or_none()

    async def create(self, form: ProjectForm) -> Project:
        async with self._session("create_project") as session:
            project = Project(title=form.title, description=form.description)
            session.add(project)
            await session.flush()  # assigns project.id
        log.info("projects.created", project_id=project.id)
        return project

    async def update(self, project_id: int, form: ProjectForm) -> bool:
        """Overwrite title/description. Returns False when no row matched."""
        async with self._session("update_project") as session:
            result = await session.execute(
                update(Project)
                .where(Project.id == project_id)
                .values(title=form.title, description=form.description)
            )
        matched = result.rowcount > 0
        log.info("projects.updated", project_id=project_id, matched=matched)
        return matched

    async def delete(self, project_id: int) -> bool:
        """Delete by id. Returns False when no row matched."""
        async with self._session("delete_project") as session:
            result = await session.execute(delete(Project).where(Project.id == project_id))
        matched = result.rowcount > 0
        log.info("projects.deleted", project_id=project_id, matched=matched)
        return matched
