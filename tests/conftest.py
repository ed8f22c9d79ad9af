"""Shared fixtures: in-memory SQLite, a frozen clock, and a wired-up TestClient."""

import os

# Settings are read at import time, so the environment must be ready first.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ACCESS_TOKEN_SECRET"] = "Access-Secret_for-Automation-Only-123456!"
os.environ["REFRESH_TOKEN_SECRET"] = "Refresh-Secret_for-Automation-Only-654321!"
os.environ["APP_ENV"] = "test"

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401 — registers tables on Base.metadata
from app.database import Base, get_db
from app.dependencies import get_token_codec
from app.main import app as api
from app.services.auth_service import AuthService
from app.services.authenticator import Authenticator
from app.utils.tokens import TokenCodec, TokenConfig

EPOCH = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = EPOCH):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta) -> None:
        self.now += timedelta(**delta)


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def token_config():
    return TokenConfig(
        access_secret="access-secret-for-tests",
        refresh_secret="refresh-secret-for-tests",
    )


@pytest.fixture
def codec(token_config, clock):
    return TokenCodec(token_config, clock=clock)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def authenticator(codec):
    return Authenticator(codec)


@pytest.fixture
def auth_service(codec, authenticator):
    return AuthService(codec, authenticator)


@pytest.fixture
def client(session_factory, codec):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    api.dependency_overrides[get_db] = override_get_db
    api.dependency_overrides[get_token_codec] = lambda: codec
    with TestClient(api) as test_client:
        yield test_client
    api.dependency_overrides.clear()
