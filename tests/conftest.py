"""
Shared pytest fixtures for the ProjectPro test suite.

Provides:
    - client: FastAPI TestClient for the full application
    - db: a plain SQLAlchemy session for arranging and asserting rows
    - signup: creates an organization and returns an Account
    - owner / other_org: ready-made accounts in two separate tenants
    - invite_member: adds a member with a given role to an organization

The environment is configured before projectpro is imported: settings
are read once and the engine is created at import time.
"""
import os
import tempfile

_DB_DIR = tempfile.mkdtemp(prefix="projectpro-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["ENVIRONMENT"] = "testing"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SECRET_KEY"] = "test-secret-key"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

import projectpro.models  # noqa: E402,F401
from projectpro.database import Base, SessionLocal, engine  # noqa: E402
from projectpro.main import app  # noqa: E402

API = "/api/v1"
PASSWORD = "Sup3rSecret!"


class Account:
    """A signed-in user bound to one organization."""

    def __init__(self, token: dict, slug: str, email: str):
        self.token = token["access_token"]
        self.tenant_id = token["tenant_id"]
        self.user_id = token["user_id"]
        self.role = token["role"]
        self.slug = slug
        self.email = email

    @property
    def headers(self) -> dict:
        return {"Authorization": f"Bearer {self.token}", "X-Tenant-Slug": self.slug}


# ── DB fixtures ──────────────────────────────────────────────────────────


@pytest.fixture(autouse=True)
def _reset_database():
    """Per-test: start from an empty schema."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def client():
    return TestClient(app)


# ── Account fixtures ─────────────────────────────────────────────────────


def _tenant_slug(client, token: dict) -> str:
    response = client.get(
        f"{API}/tenants/current",
        headers={"Authorization": f"Bearer {token['access_token']}", "X-Tenant-ID": token["tenant_id"]},
    )
    assert response.status_code == 200, response.text
    return response.json()["slug"]


@pytest.fixture
def signup(client):
    def _signup(organization_name="Acme Builders", email="owner@acme.com", password=PASSWORD,
                full_name="Olivia Owner"):
        response = client.post(f"{API}/auth/signup", json={
            "email": email,
            "password": password,
            "full_name": full_name,
            "organization_name": organization_name,
        })
        assert response.status_code == 201, response.text
        token = response.json()
        return Account(token, _tenant_slug(client, token), email)
    return _signup


@pytest.fixture
def owner(signup):
    return signup()


@pytest.fixture
def other_org(signup):
    return signup("Beacon Construction", "owner@beacon.com", full_name="Ben Beacon")


@pytest.fixture
def invite_member(client):
    """Invite `email` into `account`'s organization with `role` and accept."""
    def _invite(account: Account, email: str, role: str = "member", password: str = PASSWORD):
        response = client.post(
            f"{API}/invitations", headers=account.headers, json={"emails": [email], "role": role}
        )
        assert response.status_code == 201, response.text
        result = response.json()["results"][0]
        assert result["success"], result
        token = result["url"].rsplit("/", 1)[1]

        accepted = client.post(f"{API}/invitations/accept", json={
            "token": token, "password": password, "full_name": email.split("@")[0].title(),
        })
        assert accepted.status_code == 200, accepted.text
        return Account(accepted.json(), account.slug, email)
    return _invite


@pytest.fixture
def create_project(client):
    def _create(account: Account, name="Riverside Office Tower", **fields):
        response = client.post(f"{API}/projects", headers=account.headers, json={"name": name, **fields})
        assert response.status_code == 201, response.text
        return response.json()
    return _create


@pytest.fixture
def create_task(client):
    def _create(account: Account, project_id: str, title="Pour foundation", **fields):
        response = client.post(
            f"{API}/tasks", headers=account.headers, json={"project_id": project_id, "title": title, **fields}
        )
        assert response.status_code == 201, response.text
        return response.json()
    return _create
