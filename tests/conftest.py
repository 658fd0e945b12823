from datetime import datetime
import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from db.db_operation import mongo_conn, create_indexes
from core.dependencies import CurrentUser, get_current_user
from fake_mongo import FakeDatabase, COLLECTIONS
from main import app


@pytest.fixture
def raw_db(monkeypatch):
    """Fake collections patched onto mongo_conn, without any indexes."""
    fake = FakeDatabase()
    for attr in COLLECTIONS:
        monkeypatch.setattr(mongo_conn, attr, getattr(fake, attr))
    return fake


@pytest.fixture
async def db(raw_db):
    """Fake collections carrying the production index definitions."""
    await create_indexes()
    return raw_db


def make_user(fake, role="customer", email=None, **extra):
    now = datetime.utcnow()
    doc = {
        "email": email or f"{role}-{ObjectId()}@yumrun.com",
        "name": f"{role.title()} User",
        "phone": "9812345678",
        "password": "not-a-real-hash",
        "role": role,
        "token_version": 0,
        "is_active": True,
        "created_at": now,
        "updated_at": now,
    }
    doc.update(extra)
    doc["_id"] = fake.users_collection.seed(doc)
    return doc


def make_restaurant(fake, owner, **fields):
    now = datetime.utcnow()
    doc = {
        "owner_id": owner["_id"],
        "name": "Momo House",
        "description": "Steamed and fried momos",
        "address": "Thamel, Kathmandu",
        "phone": None,
        "email": None,
        "cuisine": ["Nepali"],
        "opening_hours": {"mon": {"open": "10:00", "close": "22:00"}},
        "is_open": True,
        "delivery_radius": 5.0,
        "minimum_order": 10.0,
        "delivery_fee": 2.0,
        "logo": "uploads/logo.png",
        "cover_image": "uploads/cover.png",
        "pan_number": "123456789",
        "price_range": "$$",
        "status": "approved",
        "deleted": False,
        "created_at": now,
        "updated_at": now,
    }
    doc.update(fields)
    doc["_id"] = fake.restaurants.seed(doc)
    return doc


def as_current_user(user) -> CurrentUser:
    return CurrentUser(
        id=str(user["_id"]),
        email=user["email"],
        name=user.get("name"),
        role=user["role"],
        token_version=user.get("token_version", 0),
    )


@pytest.fixture
def owner(raw_db):
    return make_user(raw_db, role="restaurant")


@pytest.fixture
def admin(raw_db):
    return make_user(raw_db, role="admin")


@pytest.fixture
def restaurant(raw_db, owner):
    return make_restaurant(raw_db, owner)


@pytest.fixture
def client():
    # no context manager: the lifespan would try to reach a real MongoDB
    test_client = TestClient(app, raise_server_exceptions=False)
    yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def login_as():
    def _login(user):
        app.dependency_overrides[get_current_user] = lambda: as_current_user(user)
    return _login
