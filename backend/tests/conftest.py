"""Pytest fixtures — file-backed SQLite database, fresh for every test."""
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from datetime import datetime, timedelta, timezone  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import create_engine, event  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.auth import hash_password  # noqa: E402
from app.database import Base, get_db  # noqa: E402
from app.main import app  # noqa: E402

# Import all models so they register with Base.metadata
from app.models.user import User, UserRole                  # noqa: E402
from app.models.venue import Venue                          # noqa: E402,F401
from app.models.booking_request import BookingRequest       # noqa: E402,F401

SQLITE_URL = "sqlite:///./test.db"

DEFAULT_PASSWORD = "password123"
TEMP_PASSWORD = "temporary1"
STORE_PASSWORD = "permanent1"


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh SQLite engine for each test."""
    engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})

    # Enable WAL mode for better concurrency
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture(scope="function")
def db(session_factory):
    """Yield a database session, closed after the test."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(session_factory):
    """FastAPI TestClient with the database dependency overridden to use SQLite."""

    def _override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def auth(user_id: str) -> dict:
    """Caller identity header for ``user_id``."""
    return {"X-User-Id": user_id}


def future(hours: int = 48) -> str:
    return (datetime.now(timezone.utc) + timedelta(hours=hours)).isoformat()


def parse_dt(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def seed_admin(db, email: str = "admin@example.com") -> str:
    """Insert an admin directly (there is no public route that creates the first one)."""
    admin = User(
        email=email,
        first_name="Ada",
        last_name="Admin",
        role=UserRole.admin,
        password_hash=hash_password(DEFAULT_PASSWORD),
        password_changed=True,
    )
    db.add(admin)
    db.commit()
    return admin.user_id


def register_user(client: TestClient, email: str = "user@example.com", first_name: str = "Una",
                  last_name: str = "User", phone_number: str = "555-0100") -> dict:
    """Helper — POST /api/users and return response JSON."""
    resp = client.post("/api/users/", json={
        "email": email,
        "first_name": first_name,
        "last_name": last_name,
        "phone_number": phone_number,
        "password": DEFAULT_PASSWORD,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()


def provision_store(client: TestClient, admin_id: str, email: str = "store@example.com",
                    activate: bool = True) -> dict:
    """Helper — admin creates a store account; optionally replace the temporary password."""
    resp = client.post("/api/users/provision", headers=auth(admin_id), json={
        "email": email,
        "first_name": "Sam",
        "last_name": "Store",
        "password": TEMP_PASSWORD,
        "role": "store",
    })
    assert resp.status_code == 201, resp.text
    store = resp.json()
    if activate:
        resp = client.post("/api/users/me/password", headers=auth(store["user_id"]), json={
            "current_password": TEMP_PASSWORD,
            "new_password": STORE_PASSWORD,
        })
        assert resp.status_code == 200, resp.text
        store = resp.json()
    return store


def create_venue(client: TestClient, admin_id: str, owner_id: str, name: str = "Blue Hall",
                 capacity: int = 50, venue_type: str = "hall", status: str = "active") -> dict:
    """Helper — POST /api/venues and return response JSON."""
    resp = client.post("/api/venues/", headers=auth(admin_id), json={
        "owner_id": owner_id,
        "name": name,
        "location": "12 Harbour Road",
        "capacity": capacity,
        "venue_type": venue_type,
        "status": status,
        "price": "120.00",
        "amenities": ["wifi", "parking"],
    })
    assert resp.status_code == 201, resp.text
    return resp.json()


def submit_request(client: TestClient, venue_id: str, caller_id: str = None, party_size: int = 4,
                   price_offer: str = "50.00", arrival_time: str = None, notes: str = None,
                   contact: dict = None):
    """Helper — POST /api/requests and return the raw response."""
    payload = {
        "venue_id": venue_id,
        "party_size": party_size,
        "price_offer": price_offer,
        "arrival_time": arrival_time or future(),
        "notes": notes,
    }
    if contact is not None:
        payload["contact"] = contact
    headers = auth(caller_id) if caller_id else {}
    return client.post("/api/requests/", json=payload, headers=headers)


def setup_marketplace(client: TestClient, db):
    """Admin, an activated store owning one venue, and a customer."""
    admin_id = seed_admin(db)
    store = provision_store(client, admin_id)
    venue = create_venue(client, admin_id, store["user_id"])
    customer = register_user(client)
    return admin_id, store, venue, customer
