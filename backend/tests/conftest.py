import os
import tempfile

# Must be set before config.py is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["STORAGE_DIR"] = tempfile.mkdtemp(prefix="stockmaster-")

import pytest
from fastapi.testclient import TestClient

from database import Base, engine, SessionLocal
from main import app
from models.users import User, Role
from utils.hashing import get_password_hash
from utils.tokenJWT import create_user_token

PASSWORD = "secret123"


@pytest.fixture(autouse=True)
def _reset_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def _make_user(email, name, role):
    session = SessionLocal()
    try:
        user = User(email=email, name=name, role=role, password_hash=get_password_hash(PASSWORD))
        session.add(user)
        session.commit()
        session.refresh(user)
        session.expunge(user)
        return user
    finally:
        session.close()


def _headers(user):
    return {"Authorization": f"Bearer {create_user_token(user)}"}


@pytest.fixture
def admin():
    return _make_user("admin@stockmaster.com", "Admin", Role.ADMIN.value)


@pytest.fixture
def manager():
    return _make_user("manager@stockmaster.com", "Manager", Role.INVENTORY_MANAGER.value)


@pytest.fixture
def staff():
    return _make_user("staff@stockmaster.com", "Staff", Role.STAFF.value)


@pytest.fixture
def admin_headers(admin):
    return _headers(admin)


@pytest.fixture
def manager_headers(manager):
    return _headers(manager)


@pytest.fixture
def staff_headers(staff):
    return _headers(staff)


@pytest.fixture
def make_product(client, admin_headers):
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        payload = {"name": f"Product {counter['n']}", "sku": f"SKU-{counter['n']}",
                   "unit": "pcs", "min_stock": 0, "price": 10.0}
        payload.update(overrides)
        res = client.post("/api/products", json=payload, headers=admin_headers)
        assert res.status_code == 201, res.text
        return res.json()

    return _make


@pytest.fixture
def make_location(client, admin_headers):
    counter = {"n": 0}

    def _make(name=None, address=None):
        counter["n"] += 1
        res = client.post("/api/locations", json={"name": name or f"Warehouse {counter['n']}",
                                                  "address": address}, headers=admin_headers)
        assert res.status_code == 201, res.text
        return res.json()

    return _make


@pytest.fixture
def vendor(client, admin_headers):
    res = client.post("/api/vendors", json={"name": "Acme Supply", "email": "sales@acme.com"},
                      headers=admin_headers)
    assert res.status_code == 201, res.text
    return res.json()


@pytest.fixture
def stock_in(client, admin_headers, vendor):
    """Receive and validate goods so tests start from a known stock level."""
    def _stock_in(product_id, location_id, quantity):
        res = client.post("/api/receipts", json={
            "vendor_id": vendor["id"], "location_id": location_id,
            "items": [{"product_id": product_id, "quantity_received": quantity}],
        }, headers=admin_headers)
        assert res.status_code == 201, res.text
        receipt = res.json()
        res = client.post(f"/api/receipts/{receipt['id']}/validate", json={"action": "validate"},
                          headers=admin_headers)
        assert res.status_code == 200, res.text
        return res.json()

    return _stock_in


@pytest.fixture
def stock_level(client, admin_headers):
    def _level(product_id, location_id):
        detail = client.get(f"/api/products/{product_id}", headers=admin_headers).json()
        for row in detail["stocks"]:
            if row["location"]["id"] == location_id:
                return row["quantity"]
        return 0

    return _level
