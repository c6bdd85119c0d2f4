"""
Shared fixtures: an app wired to in-memory fakes for the project store and
the identity provider, plus a helper to sign in through the OAuth callback.
"""

from __future__ import annotations

from typing import Optional
from urllib.parse import urlencode

import pytest
from fastapi.testclient import TestClient
from starlette.requests import Request
from starlette.responses import RedirectResponse

from portfolio.core.config import Settings
from portfolio.core.errors import OAuthFailure, StoreError
from portfolio.core.session import MemorySessionStore
from portfolio.main import create_app
from portfolio.models.project import Project
from portfolio.schemas.identity import Identity
from portfolio.schemas.projects import ProjectForm

TEST_SECRET = "test-session-secret"

ALICE = Identity(
    provider="google",
    provider_user_id="1234567890",
    display_name="Alice Example",
    email="alice@example.com",
)


class FakeProjectRepository:
    """Dict-backed stand-in for ProjectRepository."""

    def __init__(self):
        self.rows: dict[int, Project] = {}
        self._next_id = 1

    async def list_all(self) -> list[Project]:
        return [self.rows[key] for key in sorted(self.rows)]

    async def get(self, project_id: int) -> Optional[Project]:
        return self.rows.get(project_id)

    async def create(self, form: ProjectForm) -> Project:
        project = Project(id=self._next_id, title=form.title, description=form.description)
        self.rows[project.id] = project
        self._next_id += 1
        return project

    async def update(self, project_id: int, form: ProjectForm) -> bool:
        if project_id not in self.rows:
            return False
        self.rows[project_id] = Project(
            id=project_id, title=form.title, description=form.description
        )
        return True

    async def delete(self, project_id: int) -> bool:
        return self.rows.pop(project_id, None) is not None


class FailingProjectRepository:
    """Every operation fails as if the database were unreachable."""

    async def _fail(self, *args, **kwargs):
        raise StoreError("connection refused")

    list_all = get = create = update = delete = _fail


class FakeIdentityProvider:
    """Consent redirect to a fake URL; the callback succeeds when `code` is present."""

    name = "google"

    def __init__(self, identity: Identity = ALICE):
        self.identity = identity
        self.redirect_uris: list[str] = []

    async def authorize_redirect(self, request: Request, redirect_uri: str):
        self.redirect_uris.append(redirect_uri)
        query = urlencode({"redirect_uri": redirect_uri, "scope": "profile email"})
        return RedirectResponse(
            f"https://accounts.google.com/o/oauth2/v2/auth?{query}", status_code=302
        )

    async def authorize(self, request: Request) -> Identity:
        if "code" not in request.query_params:
            raise OAuthFailure(request.query_params.get("error", "missing code"))
        return self.identity


class FakeDatabase:
    def __init__(self, healthy: bool = True):
        self.healthy = healthy
        self.disposed = False

    async def ping(self) -> None:
        if not self.healthy:
            raise ConnectionRefusedError("database down")

    async def create_all(self) -> None:
        pass

    async def dispose(self) -> None:
        self.disposed = True


def make_settings(**overrides) -> Settings:
    values = {
        "session_secret": TEST_SECRET,
        "google_client_id": "client-id",
        "google_client_secret": "client-secret",
        "redis_url": None,
    }
    values.update(overrides)
    return Settings(**values)


def sign_in(client: TestClient):
    """Run the OAuth callback with a code; returns the callback response."""
    return client.get("/auth/google/callback", params={"code": "auth-code", "state": "s"})


@pytest.fixture
def projects() -> FakeProjectRepository:
    return FakeProjectRepository()


@pytest.fixture
def session_store() -> MemorySessionStore:
    return MemorySessionStore()


@pytest.fixture
def identity_provider() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def app(projects, session_store, identity_provider):
    return create_app(
        make_settings(),
        database=FakeDatabase(),
        projects=projects,
        session_store=session_store,
        identity_provider=identity_provider,
    )


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app, follow_redirects=False)


@pytest.fixture
def signed_in(client) -> TestClient:
    response = sign_in(client)
    assert response.status_code == 302
    return client
