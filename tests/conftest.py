"""Shared pytest fixtures: in-memory database, controllable clock, app + client."""

import os

# Must be set before config.settings is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["COOKIE_SECURE"] = "false"  # TestClient talks plain http
os.environ["PASSWORD_HASH_ROUNDS"] = "4"
os.environ["SESSION_BACKEND"] = "memory"

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import main
from config.database import Base, get_db
from config.settings import SESSION_COOKIE_NAME
from modules.auth.sessions import MemorySessionStore
from modules.catalog.models import Product, ProductImage

STRONG_PASSWORD = "Abcdef1!"


class FakeClock:
    """Callable clock the tests move by hand."""

    def __init__(self, start: datetime = None):
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


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
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return MemorySessionStore(timedelta(hours=24), clock=clock)


@pytest.fixture
def app(session_factory, store):
    app = main.create_app(session_store=store, create_tables=False, start_scheduler=False)

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def products(db):
    """Three products; the first has two images stored out of display order."""
    shirt = Product(name="Linen Shirt", price=Decimal("59.00"))
    shirt.images = [
        ProductImage(url="/img/shirt-back.jpg", display_order=2),
        ProductImage(url="/img/shirt-front.jpg", display_order=1),
    ]
    tote = Product(name="Canvas Tote", price=Decimal("24.50"), description="Heavy canvas")
    tote.images = [ProductImage(url="/img/tote.jpg", display_order=1)]
    beanie = Product(name="Wool Beanie", price=Decimal("18.00"))

    db.add_all([shirt, tote, beanie])
    db.commit()
    return [str(shirt.id), str(tote.id), str(beanie.id)]


def register(client, email="user@test.com", password=STRONG_PASSWORD):
    return client.post("/auth/register", json={"email": email, "password": password})


@pytest.fixture
def logged_in(client):
    """Client with a freshly registered account's session cookie."""
    resp = register(client)
    assert resp.status_code == 201
    assert client.cookies.get(SESSION_COOKIE_NAME)
    return client
