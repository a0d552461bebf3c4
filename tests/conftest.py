from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from pushrelay.config import Settings
from pushrelay.database import Base, get_db
from pushrelay.main import create_app
from pushrelay.models import Device
from pushrelay.services.firebase_service import PushDeliveryError, build_message, get_push_sender


class RecordingSender:
    """Stands in for Firebase and keeps every message it was asked to send"""

    def __init__(self, fail=False):
        self.fail = fail
        self.messages = []

    def __call__(self, fcm_token, title, body, sender_code=None):
        self.messages.append(build_message(fcm_token, title, body, sender_code))
        if self.fail:
            raise PushDeliveryError("Requested entity was not found.")
        return f"projects/test/messages/{len(self.messages)}"


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def sender():
    return RecordingSender()


def _client(session_factory, sender, settings):
    app = create_app(settings)

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_push_sender] = lambda: sender
    return TestClient(app)


@pytest.fixture()
def client(session_factory, sender):
    return _client(session_factory, sender, Settings(DEV_MODE=False))


@pytest.fixture()
def dev_client(session_factory, sender):
    return _client(session_factory, sender, Settings(DEV_MODE=True))


@pytest.fixture()
def add_device(db):
    """Inserts a device row directly, optionally backdated"""

    def _add(code, fcm_token="tok", age=timedelta(0)):
        device = Device(
            code=code,
            fcm_token=fcm_token,
            created_at=datetime.now(timezone.utc) - age,
        )
        db.add(device)
        db.commit()
        return device

    return _add


@pytest.fixture()
def make_client(session_factory):
    """Builds a client with a custom sender, session factory or settings"""

    def _make(sender=None, dev_mode=False, factory=None, **settings):
        return _client(
            factory or session_factory,
            sender or RecordingSender(),
            Settings(DEV_MODE=dev_mode, **settings),
        )

    return _make


@pytest.fixture()
def failing_sender():
    return RecordingSender(fail=True)
