import uuid
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import select

import app.models  # noqa: F401
from app.config import Settings
from app.database import Base
from app.main import create_app
from app.models.access_log import AccessLogEntry
from app.models.stored_file import StoredFile

ORIGIN = "203.0.113.5"


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'sealbox.db'}",
        blob_dir=str(tmp_path / "blobs"),
        body_max_size=1024,
        recent_uploads_maximum=5,
        max_download_attempts=3,
        # keep scrypt cheap in tests
        verifier_cost=4,
    )


@pytest.fixture
def make_application(clock):
    created = []

    def factory(settings: Settings):
        application = create_app(settings, clock=clock)
        Base.metadata.create_all(application.state.engine)
        created.append(application)
        return application

    yield factory
    for application in created:
        application.state.engine.dispose()


@pytest.fixture
def application(make_application, settings):
    return make_application(settings)


@pytest.fixture
def client(application):
    with TestClient(application) as c:
        yield c


@pytest.fixture
def db_session(application):
    session = application.state.session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def components(application):
    state = application.state
    return {
        "settings": state.settings,
        "cipher": state.cipher,
        "verifier": state.verifier,
        "blob_store": state.blob_store,
        "clock": state.clock,
    }


@pytest.fixture
def make_file(db_session, clock):
    """Insert a bare file record; returns its id."""

    def factory(uploader_ip: str = ORIGIN, uploaded_at=None, download_until=None):
        uploaded_at = uploaded_at or clock()
        rec = StoredFile(
            id=uuid.uuid4(),
            key_digest="scrypt$4$8$1$c2FsdA==$ZGlnZXN0",
            uploader_ip=uploader_ip,
            uploaded_at=uploaded_at,
            download_until=download_until or uploaded_at + timedelta(days=7),
            encrypted_metadata=b"irrelevant",
        )
        db_session.add(rec)
        db_session.commit()
        return rec.id

    return factory


@pytest.fixture
def ledger_entries(db_session):
    """Access log rows for a file, in attempt order."""

    def fetch(file_id):
        stmt = (
            select(AccessLogEntry)
            .where(AccessLogEntry.file_id == file_id)
            .order_by(AccessLogEntry.attempt)
        )
        return list(db_session.execute(stmt).scalars())

    return fetch
