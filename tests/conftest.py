from typing import Dict

import pytest
from httpx import ASGITransport, AsyncClient

from budget_tracker.core.config import Settings
from budget_tracker.main import create_app, init_database

PASSWORD = "Str0ng!Pass"
API = "/api/v1"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        DATABASE_URL="sqlite+aiosqlite:///:memory:",
        SECRET_KEY="test-secret-key-with-enough-length-for-hs256",
        LOG_LEVEL="WARNING",
        _env_file=None,
    )


@pytest.fixture
async def app(settings):
    app = create_app(settings)
    await init_database(app)
    yield app
    await app.state.engine.dispose()


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def session(app):
    async with app.state.session_factory() as s:
        yield s


async def register_and_login(client: AsyncClient, email: str, username: str, password: str = PASSWORD) -> Dict[str, str]:
    response = await client.post(
        f"{API}/auth/register",
        json={"email": email, "username": username, "password": password},
    )
    assert response.status_code == 201, response.text

    response = await client.post(
        f"{API}/auth/jwt/login",
        data={"username": email, "password": password},
    )
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
async def alice(client) -> Dict[str, str]:
    return await register_and_login(client, "alice@example.com", "alice")


@pytest.fixture
async def bob(client) -> Dict[str, str]:
    return await register_and_login(client, "bob@example.com", "bob")


async def default_category_id(client: AsyncClient, headers: Dict[str, str], name: str = "Food") -> str:
    response = await client.get(f"{API}/categories", headers=headers)
    assert response.status_code == 200
    return next(c["id"] for c in response.json() if c["name"] == name and c["is_default"])


async def create_category(client: AsyncClient, headers: Dict[str, str], name: str) -> str:
    response = await client.post(f"{API}/categories", json={"name": name}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["id"]


async def create_transaction(client: AsyncClient, headers: Dict[str, str], **fields):
    payload = {"description": "Groceries", "type": "expense"}
    payload.update(fields)
    return await client.post(f"{API}/transactions", json=payload, headers=headers)
