"""
Shared fixtures for the carbon market test suite.

Store-level tests run once per backend through the parametrized ``store``
fixture; route tests drive a fresh in-memory app through TestClient.
"""
from decimal import Decimal
from typing import Dict

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from carbon_market.dependencies import hash_password
from carbon_market.main import create_app
from carbon_market.schemas import OrganizationStatus, UserRole, UserStatus
from carbon_market.storage import MemoryStore, SQLStore


@pytest_asyncio.fixture(params=["memory", "sqlite"])
async def store(request):
    """An empty, connected store for each backend."""
    if request.param == "memory":
        backend = MemoryStore()
    else:
        backend = SQLStore("sqlite+aiosqlite://")
    await backend.connect()
    yield backend
    await backend.close()


@pytest.fixture
def make_org(store):
    """Create an organization with explicit balances."""

    async def _make_org(
        name="Test Org",
        virtual_balance=Decimal("1000"),
        total_credits=Decimal("0"),
        status=OrganizationStatus.approved,
    ):
        async with store.transaction() as session:
            org = await session.create_organization(
                name=name,
                address="1 Test Street",
                virtual_balance=virtual_balance,
                total_credits=total_credits,
            )
            if status != OrganizationStatus.pending:
                org = await session.update_organization(org.id, status=status)
        return org

    return _make_org


@pytest.fixture
def make_user(store):
    """Create a user directly in the store, bypassing registration rules."""
    counter = {"n": 0}

    async def _make_user(
        role=UserRole.employee,
        organization_id=None,
        status=UserStatus.approved,
        commute_distance=None,
        username=None,
    ):
        counter["n"] += 1
        async with store.transaction() as session:
            return await session.create_user(
                username=username or f"{role.value}_{counter['n']}",
                password_hash=hash_password("secret123"),
                name=f"Test {role.value}",
                role=role,
                status=status,
                organization_id=organization_id,
                commute_distance=commute_distance,
            )

    return _make_user


@pytest_asyncio.fixture
async def system_admin(make_user):
    return await make_user(role=UserRole.system_admin, username="root")


# ─── HTTP ───
@pytest.fixture
def client():
    """TestClient over a fresh in-memory app; the lifespan bootstraps admin/admin123."""
    app = create_app(store=MemoryStore())
    with TestClient(app) as test_client:
        yield test_client


def auth_headers(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def login(client):
    def _login(username: str, password: str) -> Dict[str, str]:
        resp = client.post("/api/auth/login", json={"username": username, "password": password})
        assert resp.status_code == 200, resp.text
        return auth_headers(resp.json()["access_token"])

    return _login


@pytest.fixture
def admin_headers(login):
    return login("admin", "admin123")
