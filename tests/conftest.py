import os
import sys

PROJECT_ROOT = os.path.dirname(os.path.dirname(__file__))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import pytest
from fastapi.testclient import TestClient

from choreboard.config import Settings
from choreboard.db import create_db_engine, init_db
from choreboard.main import create_app
from choreboard.store import DatabaseStore, MemoryStore

ADMIN_EMAIL = "admin@example.com"


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def db_store():
    engine = create_db_engine("sqlite://")
    init_db(engine)
    return DatabaseStore(engine)


@pytest.fixture(params=["memory", "database"])
def any_store(request):
    return request.getfixturevalue("store" if request.param == "memory" else "db_store")


@pytest.fixture
def settings():
    return Settings(admin_emails=[ADMIN_EMAIL], residents=["Anna", "Bo", "Carla", "David"])


@pytest.fixture
def client(settings, store):
    app = create_app(settings, store)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_client(client):
    resp = client.post("/api/auth/basic/login", json={"email": ADMIN_EMAIL, "firstName": "Ada"})
    assert resp.status_code == 200
    return client
