"""
Shared fixtures: an app bound to a throwaway SQLite database, an HTTP client,
user factories and a few canned marketplace states.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field

import pytest
from httpx import ASGITransport, AsyncClient

from app.core.auth import create_token, hash_password
from app.core.config import Settings
from app.core.database import Database
from app.main import create_app
from app.models.user import User
from marketplace_shared.schemas.common import Role

ZIP_BYTES = b"PK\x03\x04" + b"\x00" * 64


@dataclass
class Actor:
    user: User
    password: str
    headers: dict = field(default_factory=dict)

    @property
    def id(self) -> str:
        return str(self.user.id)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        environment="test",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'marketplace.db'}",
        secret_key="test-access-secret",
        refresh_secret_key="test-refresh-secret",
        bcrypt_rounds=4,
        upload_dir=str(tmp_path / "uploads"),
        max_upload_bytes=256 * 1024,
    )


@pytest.fixture
async def db(settings):
    database = Database.from_settings(settings)
    await database.create_all()
    yield database
    await database.dispose()


@pytest.fixture
def app(settings, db):
    return create_app(settings, db=db)


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def make_user(db, settings):
    """Insert a user with the given role and return it with bearer headers."""

    async def _make(
        role: Role = Role.PROBLEM_SOLVER,
        *,
        email: str | None = None,
        name: str | None = None,
        password: str = "password123",
    ) -> Actor:
        async with db.session() as session:
            user = User(
                email=email or f"{role.value.lower()}-{uuid.uuid4().hex[:8]}@example.com",
                name=name or role.value.title(),
                password_hash=hash_password(password, rounds=settings.bcrypt_rounds),
                role=role.value,
            )
            session.add(user)
        token = create_token(user.id, user.email, user.role, "access", settings)
        return Actor(user=user, password=password, headers={"Authorization": f"Bearer {token}"})

    return _make


@pytest.fixture
async def buyer(make_user) -> Actor:
    return await make_user(Role.BUYER, name="Bea Buyer")


@pytest.fixture
async def solver(make_user) -> Actor:
    return await make_user(Role.PROBLEM_SOLVER, name="Sol Solver")


@pytest.fixture
async def admin(make_user) -> Actor:
    return await make_user(Role.ADMIN, name="Ada Admin")


# ---------------------------------------------------------------------------
# Canned marketplace states (built through the API)
# ---------------------------------------------------------------------------


@pytest.fixture
def create_project(client):
    async def _create(owner: Actor, title: str = "Landing page") -> dict:
        resp = await client.post(
            "/api/projects",
            json={"title": title, "description": "Build it"},
            headers=owner.headers,
        )
        assert resp.status_code == 201, resp.text
        return resp.json()["data"]

    return _create


@pytest.fixture
async def open_project(create_project, buyer) -> dict:
    return await create_project(buyer)


@pytest.fixture
async def assigned_project(client, open_project, buyer, solver) -> dict:
    """A project in ASSIGNED state with ``solver`` as its solver."""
    pid = open_project["id"]
    resp = await client.post(f"/api/projects/{pid}/requests", json={}, headers=solver.headers)
    assert resp.status_code == 201, resp.text
    resp = await client.put(
        f"/api/projects/{pid}/assign", json={"solver_id": solver.id}, headers=buyer.headers
    )
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]


@pytest.fixture
def add_task(client, solver):
    async def _add(project_id: str, title: str = "Task") -> dict:
        resp = await client.post(
            f"/api/projects/{project_id}/tasks", json={"title": title}, headers=solver.headers
        )
        assert resp.status_code == 201, resp.text
        return resp.json()["data"]

    return _add


@pytest.fixture
def submit_zip(client, solver):
    async def _submit(
        project_id: str,
        task_id: str,
        *,
        filename: str = "deliverable.zip",
        content: bytes = ZIP_BYTES,
        content_type: str = "application/zip",
        headers: dict | None = None,
    ):
        return await client.post(
            f"/api/projects/{project_id}/tasks/{task_id}/submissions",
            files={"file": (filename, content, content_type)},
            headers=headers or solver.headers,
        )

    return _submit


@pytest.fixture
def get_project(client, admin):
    async def _get(project_id: str) -> dict:
        resp = await client.get(f"/api/projects/{project_id}", headers=admin.headers)
        assert resp.status_code == 200, resp.text
        return resp.json()["data"]

    return _get
