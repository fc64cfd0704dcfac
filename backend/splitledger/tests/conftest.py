"""
Shared fixtures: in-memory database, API client and authenticated users.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"

from collections import namedtuple
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import splitledger.models  # noqa: F401
from splitledger.core.security import create_access_token
from splitledger.db.base import Base
from splitledger.db.session import get_db
from splitledger.main import app
from splitledger.models import User

AuthUser = namedtuple("AuthUser", ["id", "name", "email", "headers"])


def money(value) -> Decimal:
    """Compare API amounts regardless of whether they come back as str or number."""
    return Decimal(str(value))


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

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
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(session_factory):
    """Insert a user directly and return it with a bearer header."""
    def _make_user(name: str) -> AuthUser:
        with session_factory() as session:
            user = User(
                name=name,
                email=f"{name.lower()}@example.com",
                hashed_password="unused-in-tests"
            )
            session.add(user)
            session.commit()
            session.refresh(user)
            token = create_access_token({"sub": user.email, "user_id": user.id})
            return AuthUser(
                id=user.id,
                name=user.name,
                email=user.email,
                headers={"Authorization": f"Bearer {token}"}
            )
    return _make_user


@pytest.fixture
def alice(make_user):
    return make_user("Alice")


@pytest.fixture
def bob(make_user):
    return make_user("Bob")


@pytest.fixture
def carol(make_user):
    return make_user("Carol")


@pytest.fixture
def create_bill(client):
    """Create a bill through the API and return its `data` payload."""
    def _create_bill(creator: AuthUser, participants, items, name="Dinner", **extra):
        payload = {"name": name, "participants": participants, "items": items}
        payload.update(extra)
        response = client.post("/api/bills", json=payload, headers=creator.headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]
    return _create_bill


@pytest.fixture
def shared_dinner(alice, bob, create_bill):
    """Alice's bill: one 100.00 item split evenly between Alice and Bob."""
    return create_bill(
        alice,
        participants=[
            {"id": 1, "name": "Alice", "user_id": alice.id},
            {"id": 2, "name": "Bob", "user_id": bob.id},
        ],
        items=[{"name": "Pizza", "base_price": "100.00", "split_with": [1, 2]}],
    )


def split_of(bill: dict, user_id: int) -> dict:
    """First split of `user_id` in a bill payload."""
    for item in bill["items"]:
        for split in item["splits"]:
            if split["user_id"] == user_id:
                return split
    raise AssertionError(f"no split for user {user_id}")
