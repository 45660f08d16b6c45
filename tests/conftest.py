"""
Shared fixtures: in-memory SQLite database, recording attachment store and
a TestClient with both wired in through dependency overrides.
"""

import os
import tempfile

# Must be set before the app modules read settings
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("RUN_MIGRATIONS", "false")
os.environ.setdefault("STORAGE_BACKEND", "local")
os.environ.setdefault("LOCAL_STORAGE_DIR", tempfile.mkdtemp(prefix="workshop-uploads-"))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from core.database import Base, get_db
from core.storage import get_attachment_store
from main import app
from tests.factories import InMemoryAttachmentStore, job_card_form, make_png


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def store():
    return InMemoryAttachmentStore()


@pytest.fixture
def client(session_factory, store):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_attachment_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def png_bytes():
    return make_png()


@pytest.fixture
def create_job_card(client):
    """POST a job card and return the response JSON."""
    def _create(files=None, **overrides):
        response = client.post("/api/v1/jobcards/", data=job_card_form(**overrides), files=files)
        assert response.status_code == 201, response.text
        return response.json()
    return _create


@pytest.fixture
def create_worker(client, png_bytes):
    def _create(worker_name="Suresh", phone_number="9847011111"):
        response = client.post(
            "/api/v1/worker/",
            data={"worker_name": worker_name, "phone_number": phone_number},
            files={"image": ("suresh.png", png_bytes, "image/png")},
        )
        assert response.status_code == 201, response.text
        return response.json()
    return _create
