import pytest
from fastapi.testclient import TestClient

from inventory_api.core.config import Settings
from inventory_api.db.database import build_engine, build_session_maker, create_db_and_tables
from inventory_api.main import create_app
from inventory_api.services import build_services

SECRET = "test-secret-key-long-enough-for-hmac-sha256"


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def settings(tmp_path):
    s = Settings()
    s.database_url = f"sqlite+aiosqlite:///{tmp_path / 'inventory.db'}"
    s.database_echo = False
    s.database_isolation_level = "SERIALIZABLE"
    s.jwt_secret_key = SECRET
    s.store_timeout_seconds = 10.0
    s.store_max_attempts = 3
    s.log_level = "WARNING"
    s.log_json = False
    return s


@pytest.fixture
async def engine(settings):
    engine = build_engine(settings)
    await create_db_and_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return build_session_maker(engine)


@pytest.fixture
def services(settings, session_maker):
    return build_services(settings, session_maker)


@pytest.fixture
def client(settings):
    app = create_app(settings)
    with TestClient(app) as c:
        yield c


def register(client, username="alice", password="pw", first_name="Alice", last_name="Smith"):
    return client.post(
        "/user/create",
        json={
            "firstName": first_name,
            "lastName": last_name,
            "username": username,
            "password": password,
        },
    )


def login(client, username="alice", password="pw"):
    return client.post("/user/authenticate", json={"username": username, "password": password})


@pytest.fixture
def alice_headers(client):
    assert register(client).status_code == 200
    token = login(client).json()["accessToken"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def bob_headers(client):
    assert register(client, username="bob", password="hunter2", first_name="Bob").status_code == 200
    token = login(client, username="bob", password="hunter2").json()["accessToken"]
    return {"Authorization": f"Bearer {token}"}
