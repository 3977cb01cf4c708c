import os

# settings are read at import time
os.environ.setdefault("SQLALCHEMY_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ENV", "test")

from contextlib import contextmanager

import pytest
from botocore.exceptions import ClientError, ReadTimeoutError
from fastapi.testclient import TestClient
from sqlmodel import Session

from app.database import build_engine, create_db_and_tables, get_session
from app.main import app
from app.models.order import Order
from app.models.unit import Unit
from app.services.entitlement_store import items_from_snapshots, snapshot_line
from app.services.r2_client import get_blob_store
from app.utils.token import Identity, token_for


class FakeBlobStore:
    """In-memory stand-in for the R2 bucket."""

    def __init__(self):
        self.objects = {}
        self.timeouts = set()
        self.deleted = []

    def put(self, key, body=b"%PDF-1.4"):
        self.objects[key] = body

    def exists(self, key):
        return key in self.objects

    def copy(self, source_key, dest_key):
        if source_key in self.timeouts:
            raise ReadTimeoutError(endpoint_url="https://r2.example")
        if source_key not in self.objects:
            raise ClientError({"Error": {"Code": "NoSuchKey", "Message": "missing"}}, "CopyObject")
        self.objects[dest_key] = self.objects[source_key]
        return dest_key

    def delete(self, key):
        self.deleted.append(key)
        return self.objects.pop(key, None) is not None

    def presigned_url(self, key, expires):
        return f"https://signed.example/{key}?X-Amz-Expires={expires}"


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'storefront.db'}")
    create_db_and_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def db(engine):
    """Short-lived sessions, so no write lock is held across HTTP calls."""

    @contextmanager
    def _db():
        with Session(engine) as s:
            yield s

    return _db


@pytest.fixture
def blob():
    return FakeBlobStore()


@pytest.fixture
def client(engine, blob):
    def override_session():
        with Session(engine) as s:
            yield s

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_blob_store] = lambda: blob

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture
def buyer():
    return Identity(uid="u1", email="nimali@example.com", display_name="Nimali Perera")


@pytest.fixture
def other_user():
    return Identity(uid="u2", email="kasun@example.com", display_name="Kasun Silva")


@pytest.fixture
def admin():
    return Identity(uid="admin-1", email="admin@example.com", display_name="Shop Admin", role="admin")


def auth_headers(identity: Identity):
    token = token_for(identity.uid, identity.email, identity.display_name, identity.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers():
    return auth_headers


def make_unit(unit_id="BD-M01", **prices):
    defaults = {
        "price_sinhala_note": 300.0,
        "price_sinhala_assignment": 250.0,
        "price_english_note": 350.0,
        "price_english_assignment": None,
    }
    defaults.update(prices)
    return Unit(
        id=unit_id,
        code=unit_id,
        title=f"Bridal Dressing {unit_id[-2:]}",
        sinhala_title="මනාලියන් ඇඳීම",
        category="bridal",
        **defaults,
    )


@pytest.fixture
def units(db):
    with db() as s:
        s.add(make_unit("BD-M01"))
        s.add(make_unit("BD-M02", price_english_assignment=400.0))
        s.commit()
    return ["BD-M01", "BD-M02"]


@pytest.fixture
def make_order(db, units):
    """Insert an order directly, bypassing checkout."""

    def _make(user_id="u1", lines=(("BD-M01", "sinhalaNote"),), status="pending",
              completed_at=None, order_id=None):
        with db() as s:
            snapshots = [snapshot_line(s.get(Unit, u), t) for u, t in lines]
            order = Order(
                order_code=f"ORD-{len(snapshots)}",
                user_id=user_id,
                user_display_name="Buyer",
                user_email=f"{user_id}@example.com",
                total=sum(x["price"] for x in snapshots),
                status=status,
                completed_at=completed_at,
            )
            if order_id:
                order.id = order_id
            order.items = items_from_snapshots(snapshots)
            s.add(order)
            s.commit()
            return order.id

    return _make


