import pytest

from models.alert import AlertSeverity, LowStockAlert
from models.settings import SystemSetting
from utils.alerts import compute_severity


@pytest.mark.parametrize("quantity,min_stock,expected", [
    (11, 10, None),
    (10, 10, AlertSeverity.LOW),
    (6, 10, AlertSeverity.LOW),
    (5, 10, AlertSeverity.WARNING),
    (3, 10, AlertSeverity.WARNING),
    (2, 10, AlertSeverity.CRITICAL),
    (0, 10, AlertSeverity.CRITICAL),
    (0, 0, AlertSeverity.CRITICAL),
    (1, 0, None),
])
def test_compute_severity(quantity, min_stock, expected):
    assert compute_severity(quantity, min_stock) == expected


def _adjust(client, headers, product, location, change):
    res = client.post("/api/adjustments", json={
        "location_id": location["id"], "product_id": product["id"],
        "quantity_change": change, "reason": "Count",
    }, headers=headers)
    assert res.status_code == 201, res.text


def test_alert_raised_updated_and_cleared(client, db, admin_headers, make_product, make_location):
    product, location = make_product(min_stock=10), make_location()

    _adjust(client, admin_headers, product, location, 3)
    alert = db.query(LowStockAlert).one()
    assert (alert.severity, alert.current_qty, alert.min_qty) == ("WARNING", 3, 10)

    _adjust(client, admin_headers, product, location, -2)
    db.expire_all()
    assert db.query(LowStockAlert).one().severity == "CRITICAL"

    _adjust(client, admin_headers, product, location, 20)
    db.expire_all()
    assert db.query(LowStockAlert).count() == 0


def test_alerts_disabled_by_setting(client, db, admin_headers, make_product, make_location):
    db.add(SystemSetting(key="enable_low_stock_alerts", value="false", category="notifications"))
    db.commit()
    product, location = make_product(min_stock=10), make_location()

    _adjust(client, admin_headers, product, location, 1)
    assert db.query(LowStockAlert).count() == 0

    # a manual rescan still works
    res = client.post("/api/alerts/check", headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["alerts"] == 1


def test_alert_listing_and_read_state(client, admin_headers, staff_headers, make_product, make_location):
    low = make_product(min_stock=10)
    critical = make_product(min_stock=10)
    location = make_location()
    _adjust(client, admin_headers, low, location, 8)
    _adjust(client, admin_headers, critical, location, 1)

    page = client.get("/api/alerts", headers=staff_headers).json()
    assert page["total"] == 2
    assert [a["severity"] for a in page["items"]] == ["CRITICAL", "LOW"]

    first = page["items"][0]
    res = client.patch(f"/api/alerts/{first['id']}/read", headers=staff_headers)
    assert res.json()["is_read"] is True

    # read alerts sink below unread ones
    page = client.get("/api/alerts", headers=staff_headers).json()
    assert [a["severity"] for a in page["items"]] == ["LOW", "CRITICAL"]

    stats = client.get("/api/alerts/stats", headers=staff_headers).json()
    assert stats == {"total": 2, "unread": 1, "critical": 1, "warning": 0, "low": 1}

    res = client.patch("/api/alerts/read-all", headers=staff_headers)
    assert res.json()["updated"] == 1

    unread = client.get("/api/alerts", params={"is_read": False}, headers=staff_headers).json()
    assert unread["total"] == 0


def test_alert_delete(client, admin_headers, make_product, make_location):
    product, location = make_product(min_stock=5), make_location()
    _adjust(client, admin_headers, product, location, 1)
    alert_id = client.get("/api/alerts", headers=admin_headers).json()["items"][0]["id"]

    assert client.delete(f"/api/alerts/{alert_id}", headers=admin_headers).status_code == 200
    assert client.delete(f"/api/alerts/{alert_id}", headers=admin_headers).status_code == 404


def test_min_stock_change_regrades_alerts(client, db, admin_headers, make_product, make_location):
    product, location = make_product(min_stock=0), make_location()
    _adjust(client, admin_headers, product, location, 4)
    assert db.query(LowStockAlert).count() == 0

    client.put(f"/api/products/{product['id']}", json={"min_stock": 5}, headers=admin_headers)
    db.expire_all()
    assert db.query(LowStockAlert).one().severity == "LOW"


def test_alert_follows_new_minimum(client, db, admin_headers, make_product, make_location):
    product, location = make_product(min_stock=10), make_location()
    _adjust(client, admin_headers, product, location, 5)
    assert db.query(LowStockAlert).one().severity == "WARNING"

    res = client.put(f"/api/products/{product['id']}", json={"min_stock": 12}, headers=admin_headers)
    assert res.status_code == 200, res.text

    db.expire_all()
    alert = db.query(LowStockAlert).one()
    assert (alert.severity, alert.current_qty, alert.min_qty) == ("WARNING", 5, 12)
