import pytest

from models.users import Role
from utils.permissions import Permission, has_permission

FORBIDDEN = "Forbidden: Insufficient permissions"


@pytest.mark.parametrize("role,permission,allowed", [
    (Role.ADMIN.value, Permission.MANAGE_SETTINGS, True),
    (Role.INVENTORY_MANAGER.value, Permission.VALIDATE_RECEIPTS, True),
    (Role.INVENTORY_MANAGER.value, Permission.CREATE_LOCATIONS, False),
    (Role.INVENTORY_MANAGER.value, Permission.MANAGE_USERS, False),
    (Role.STAFF.value, Permission.CREATE_RECEIPTS, True),
    (Role.STAFF.value, Permission.VALIDATE_DELIVERIES, False),
    (Role.STAFF.value, Permission.ADJUST_STOCK, False),
    ("staff", Permission.VIEW_PRODUCTS, True),
    (None, Permission.VIEW_PRODUCTS, False),
])
def test_permission_matrix(role, permission, allowed):
    assert has_permission(role, permission) is allowed


def test_staff_cannot_create_products(client, staff_headers):
    res = client.post("/api/products", json={"name": "X", "sku": "X-1"}, headers=staff_headers)
    assert res.status_code == 403
    assert res.json()["detail"] == FORBIDDEN


def test_manager_cannot_create_locations(client, manager_headers):
    res = client.post("/api/locations", json={"name": "Dock"}, headers=manager_headers)
    assert res.status_code == 403


def test_manager_cannot_manage_users(client, manager_headers):
    assert client.get("/api/users", headers=manager_headers).status_code == 403
    # but may see the staff activity list
    assert client.get("/api/users/staff", headers=manager_headers).status_code == 200


def test_staff_cannot_validate_receipt(client, staff_headers, make_product, make_location, vendor):
    product = make_product()
    location = make_location()
    res = client.post("/api/receipts", json={
        "vendor_id": vendor["id"], "location_id": location["id"],
        "items": [{"product_id": product["id"], "quantity_received": 3}],
    }, headers=staff_headers)
    assert res.status_code == 201

    res = client.post(f"/api/receipts/{res.json()['id']}/validate", json={"action": "validate"},
                      headers=staff_headers)
    assert res.status_code == 403


def test_staff_cannot_read_audit_or_settings(client, staff_headers):
    assert client.get("/api/audit", headers=staff_headers).status_code == 403
    assert client.get("/api/settings", headers=staff_headers).status_code == 403
