import anyio
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import NullPool

from app.main import app
from app.modules.chat.dependencies import get_gateway
from app.modules.chat.services.gateway import ProviderGateway
from app.services.store.db import build_engine, build_sessionmaker, get_db
from app.services.store.init_db import init_database, promote_admin
from core.config import Settings, get_settings


class RecordingCompletion:
    """Stands in for the provider call; remembers what it was asked."""

    def __init__(self, reply="Hello from the model"):
        self.reply = reply
        self.error = None
        self.calls = []

    async def __call__(self, provider, settings, messages):
        self.calls.append((provider, messages))
        if self.error is not None:
            raise self.error
        return self.reply


def make_settings(**overrides) -> Settings:
    values = dict(
        SECRET_KEY="test-secret",
        NVIDIA_GLM_API_KEY=None,
        NVIDIA_KIMI_API_KEY=None,
        GROQ_API_KEY=None,
        SERVE_FRONTEND=False,
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def engine(tmp_path):
    eng = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.sqlite'}", poolclass=NullPool)
    assert anyio.run(init_database, eng)
    yield eng
    anyio.run(eng.dispose)


@pytest.fixture
def completion():
    return RecordingCompletion()


@pytest.fixture
def client(engine, settings, completion):
    session_factory = build_sessionmaker(engine)

    async def _get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_gateway] = lambda: ProviderGateway(settings, complete=completion)
    yield TestClient(app)
    app.dependency_overrides.clear()


def register(client, email="alice@example.com", name="Alice", password="secret123"):
    res = client.post("/api/auth/register", json={"name": name, "email": email, "password": password})
    assert res.status_code == 201, res.text
    return res.json()


def auth_header(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_headers(client):
    return auth_header(register(client)["token"])


@pytest.fixture
def other_headers(client):
    return auth_header(register(client, email="bob@example.com", name="Bob")["token"])


@pytest.fixture
def admin_headers(client, engine):
    body = register(client, email="admin@example.com", name="Admin")
    assert anyio.run(promote_admin, "admin@example.com", engine)
    return auth_header(body["token"])
