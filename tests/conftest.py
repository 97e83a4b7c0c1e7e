"""Shared test fixtures for all test modules."""

import contextlib

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401  registers the mappers on Base
from app.core import database as db_module
from app.core.config import settings
from app.core.database import Base, get_db

# In-memory SQLite with StaticPool so every connection sees the same database.
_test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
_TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_test_engine)

TEST_KEY_SECRET = "test_key_secret"
TEST_WEBHOOK_SECRET = "test_webhook_secret"


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test and clear all rows after.

    Patches the module-level engine and SessionLocal so application code,
    including worker tasks, uses the in-memory database.
    """
    original_engine = db_module.engine
    original_session = db_module.SessionLocal
    db_module.engine = _test_engine
    db_module.SessionLocal = _TestSessionLocal

    Base.metadata.create_all(bind=_test_engine)

    yield
    with _test_engine.connect() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            with contextlib.suppress(OperationalError):
                conn.execute(table.delete())
        conn.commit()

    db_module.engine = original_engine
    db_module.SessionLocal = original_session


@pytest.fixture(autouse=True)
def razorpay_secrets(monkeypatch):
    """Known Razorpay secrets so signatures in tests are reproducible."""
    monkeypatch.setattr(settings, "razorpay_key_id", "rzp_test_key")
    monkeypatch.setattr(settings, "razorpay_key_secret", TEST_KEY_SECRET)
    monkeypatch.setattr(settings, "razorpay_webhook_secret", TEST_WEBHOOK_SECRET)


@pytest.fixture
def db_session():
    """Create a database session for testing."""
    gen = get_db()
    db = next(gen)
    try:
        yield db
    finally:
        for _ in gen:
            pass


def snapshot_subscription(subscription) -> dict:
    """Column values of a subscription, minus the bookkeeping ``updated_at``."""
    columns = subscription.__table__.columns.keys()
    return {key: getattr(subscription, key) for key in columns if key != "updated_at"}
