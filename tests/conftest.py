"""Pytest fixtures and fakes.

Collaborators that would reach the network (Resend, report sub-requests) are
replaced through ``app.dependency_overrides``; the configuration store is a
file-based SQLite database shared by the test thread and the resolver.
"""
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Ensure project root on sys.path so 'app' package resolves without installation
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app.main import app  # type: ignore
from app.database import Base  # type: ignore
from app.api import deps  # type: ignore
from app.models.db import SystemConfig
from app.services.errors import EmailTransportError
from app.services.delivery import ResilientSender
from app.services.config_resolver import ConfigResolver

SQLALCHEMY_TEST_URL = "sqlite+pysqlite:///./test_reports.db"
engine = create_engine(
    SQLALCHEMY_TEST_URL,
    connect_args={"check_same_thread": False},
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# The resolver dependency reads app.database.SessionLocal at call time; point
# it at the test database.
import app.database as _app_database  # noqa: E402
_app_database.SessionLocal = TestingSessionLocal  # type: ignore

@pytest.fixture(scope="session", autouse=True)
def create_test_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
    try:
        os.remove("test_reports.db")
    except OSError:
        pass

@pytest.fixture()
def db_session():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()

@pytest.fixture(autouse=True)
def _isolate_test_state(db_session, monkeypatch):
    """Per-test isolation: empty override table, no delivery env vars, no overrides."""
    import app.config as config
    db_session.query(SystemConfig).delete()
    db_session.commit()
    for key in ("RESEND_API_KEY", "ADMIN_EMAIL", "RESEND_FROM_EMAIL"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr(config, "CRON_SECRET", None)
    monkeypatch.setattr(config, "ADMIN_API_KEY", None)
    yield
    app.dependency_overrides.clear()
    app.dependency_overrides[deps.get_db] = _override_get_db
    db_session.query(SystemConfig).delete()
    db_session.commit()

def _override_get_db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()

app.dependency_overrides[deps.get_db] = _override_get_db

@pytest.fixture()
def client():
    return TestClient(app)

# ---------- Fakes ----------

class FakeTransport:
    """Email transport that fails the first ``failures`` calls."""

    def __init__(self, failures: int = 0, error: str = "simulated outage"):
        self.failures = failures
        self.error = error
        self.calls: list[tuple[str, dict]] = []

    async def send(self, api_key, payload):
        self.calls.append((api_key, payload))
        if len(self.calls) <= self.failures:
            raise EmailTransportError(f"{self.error} #{len(self.calls)}")
        return {"id": f"email_{len(self.calls)}"}

class FakeJobClient:
    """Report job client returning canned statuses (or raising) per job name."""

    def __init__(self, statuses: dict | None = None):
        self.statuses = statuses or {}
        self.calls: list[tuple[str, dict]] = []

    async def trigger(self, job_name, headers):
        self.calls.append((job_name, dict(headers)))
        result = self.statuses.get(job_name, 200)
        if isinstance(result, Exception):
            raise result
        return result

class RecordingSleep:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds):
        self.delays.append(seconds)

@pytest.fixture()
def fake_transport_factory():
    return FakeTransport

@pytest.fixture()
def fake_job_client_factory():
    return FakeJobClient

@pytest.fixture()
def recording_sleep():
    return RecordingSleep()

@pytest.fixture()
def set_override(db_session):
    """Upsert a system_config override row."""
    def _set(key: str, value: str):
        row = db_session.query(SystemConfig).filter_by(config_key=key).first()
        if row is None:
            db_session.add(SystemConfig(config_key=key, config_value=value))
        else:
            row.config_value = value
        db_session.commit()
    return _set

@pytest.fixture()
def pin_now():
    """Pin the endpoints' clock to a given UTC instant."""
    def _pin(instant: datetime):
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        app.dependency_overrides[deps.get_current_time] = lambda: instant
    return _pin

@pytest.fixture()
def install_transport(recording_sleep):
    """Route endpoint email delivery through a fake transport without real sleeps."""
    def _install(transport):
        app.dependency_overrides[deps.get_resilient_sender] = lambda: ResilientSender(transport, sleep=recording_sleep)
        app.dependency_overrides[deps.get_config_resolver] = lambda: ConfigResolver(TestingSessionLocal)
        return transport
    return _install

@pytest.fixture()
def session_factory():
    return TestingSessionLocal
