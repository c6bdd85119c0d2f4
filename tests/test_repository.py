"""
ProjectRepository against a file-backed SQLite database.
"""

from __future__ import annotations

import pytest

from portfolio.core.database import Database
from portfolio.core.errors import StoreError
from portfolio.schemas.projects import ProjectForm
from portfolio.services.projects import ProjectRepository


@pytest.fixture
async def database(tmp_path):
    db = Database(f"sqlite+aiosqlite:///{tmp_path}/projects.db")
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
def repo(database) -> ProjectRepository:
    return ProjectRepository(database)


@pytest.mark.asyncio
async def test_create_assigns_increasing_ids(repo: ProjectRepository):
    first = await repo.create(ProjectForm(title="Foo", description="Bar"))
    second = await repo.create(ProjectForm(title="Baz"))
    assert first.id is not None
    assert second.id > first.id
    assert second.description is None


@pytest.mark.asyncio
async def test_list_and_get(repo: ProjectRepository):
    created = await repo.create(ProjectForm(title="Foo", description="Bar"))
    rows = await repo.list_all()
    assert [(p.id, p.title, p.description) for p in rows] == [(created.id, "Foo", "Bar")]

    fetched = await repo.get(created.id)
    assert fetched is not None
    assert fetched.title == "Foo"
    assert await repo.get(created.id + 100) is None


@pytest.mark.asyncio
async def test_update(repo: ProjectRepository):
    created = await repo.create(ProjectForm(title="Old", description="old"))
    assert await repo.update(created.id, ProjectForm(title="New", description=None)) is True
    fetched = await repo.get(created.id)
    assert fetched.title == "New"
    assert fetched.description is None


@pytest.mark.asyncio
async def test_update_unknown_id(repo: ProjectRepository):
    await repo.create(ProjectForm(title="Keep"))
    assert await repo.update(999, ProjectForm(title="Ghost")) is False
    rows = await repo.list_all()
    assert [p.title for p in rows] == ["Keep"]


@pytest.mark.asyncio
async def test_delete_is_idempotent(repo: ProjectRepository):
    created = await repo.create(ProjectForm(title="Gone"))
    assert await repo.delete(created.id) is True
    assert await repo.delete(created.id) is False
    assert await repo.list_all() == []


@pytest.mark.asyncio
async def test_values_are_bound_not_interpolated(repo: ProjectRepository):
    title = "Robert'); DROP TABLE projects;--"
    created = await repo.create(ProjectForm(title=title, description="' OR 1=1 --"))
    fetched = await repo.get(created.id)
    assert fetched.title == title
    assert len(await repo.list_all()) == 1


@pytest.mark.asyncio
async def test_ping(database: Database):
    await database.ping()


@pytest.mark.asyncio
async def test_missing_table_raises_store_error(tmp_path):
    db = Database(f"sqlite+aiosqlite:///{tmp_path}/empty.db")
    repo = ProjectRepository(db)
    try:
        with pytest.raises(StoreError):
            await repo.list_all()
    finally:
        await db.dispose()
