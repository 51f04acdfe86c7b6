import os
import tempfile

# Settings are read at import time; point them at throwaway resources first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["AUTH_BACKEND"] = "local"
os.environ["STORAGE_BACKEND"] = "local"
os.environ["LOCAL_MEDIA_PATH"] = tempfile.mkdtemp(prefix="kinbook-media-")
os.environ["ENFORCE_ACYCLIC_LINEAGE"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from kinbook.config import settings
from kinbook.constants import PEOPLE, FAMILIES
from kinbook.core.entity_store import EntityStore
from kinbook.database import Base, get_db
from kinbook.main import create_app


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def media_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "LOCAL_MEDIA_PATH", str(tmp_path))
    return tmp_path


@pytest.fixture
def client(session_factory, media_dir):
    app = create_app(create_tables=False)

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_client(client):
    response = client.post(
        "/auth/sign-up",
        json={
            "email": "ann@example.com",
            "password": "correct-horse",
            "display_name": "Ann Lee",
        },
    )
    assert response.status_code == 200
    client.headers.update({"Authorization": f"Bearer {response.json()['access_token']}"})
    return client


@pytest.fixture
def make_person(db):
    store = EntityStore(db)

    def _make(first_name, last_name="", **fields):
        return store.create(PEOPLE, {
            "first_name": first_name,
            "last_name": last_name,
            "created_by": "test-user",
            **fields,
        })

    return _make


@pytest.fixture
def make_family(db):
    store = EntityStore(db)

    def _make(name, **fields):
        return store.create(FAMILIES, {"name": name, "created_by": "test-user", **fields})

    return _make
