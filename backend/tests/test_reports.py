import pytest


@pytest.fixture
def activity(client, admin_headers, make_product, make_location, stock_in):
    """One validated receipt, delivery and transfer."""
    product = make_product(name="Widget", price=2.5, min_stock=3)
    src, dst = make_location(), make_location()
    stock_in(product["id"], src["id"], 10)

    delivery = client.post("/api/deliveries", json={
        "location_id": src["id"], "items": [{"product_id": product["id"], "quantity_delivered": 4}],
    }, headers=admin_headers).json()
    client.post(f"/api/deliveries/{delivery['id']}/validate", json={"action": "validate"}, headers=admin_headers)

    transfer = client.post("/api/transfers", json={
        "from_location_id": src["id"], "to_location_id": dst["id"], "product_id": product["id"], "quantity": 2,
    }, headers=admin_headers).json()
    client.post(f"/api/transfers/{transfer['id']}/apply", json={"action": "apply"}, headers=admin_headers)
    return {"product": product, "src": src, "dst": dst}


def test_dashboard(client, manager_headers, activity):
    res = client.get("/api/dashboard", headers=manager_headers)
    assert res.status_code == 200
    body = res.json()
    summary = body["summary"]
    assert summary["total_products"] == 1
    assert summary["total_locations"] == 2
    assert summary["total_stock_quantity"] == 6
    assert summary["pending_receipts"] == 0
    assert body["move_stats"]["DELIVERY"] == {"count": 1, "total_quantity": 4}
    assert body["top_moving_products"][0]["move_count"] == 4
    assert len(body["stock_by_location"]) == 2

    scoped = client.get("/api/dashboard", params={"location_id": activity["dst"]["id"]},
                        headers=manager_headers).json()
    assert scoped["summary"]["total_stock_quantity"] == 2
    assert scoped["low_stock_products"][0]["name"] == "Widget"
    assert scoped["stock_by_location"] == []


def test_dashboard_hides_other_users_moves_from_staff(client, staff_headers, activity):
    assert client.get("/api/move-history", headers=staff_headers).json()["total"] == 0

    body = client.get("/api/dashboard", headers=staff_headers).json()
    assert body["recent_moves"] == []
    assert body["move_stats"] == {}
    assert body["top_moving_products"] == []
    assert body["summary"]["total_stock_quantity"] == 6


def test_stock_report(client, staff_headers, activity):
    body = client.get("/api/reports/stock", headers=staff_headers).json()
    assert body["summary"]["total_products"] == 2
    assert body["summary"]["total_value"] == 15.0
    assert body["summary"]["low_stock_count"] == 1


def test_sales_and_purchases(client, staff_headers, activity):
    sales = client.get("/api/reports/sales", headers=staff_headers).json()
    assert sales["summary"]["total_orders"] == 1
    assert sales["summary"]["total_items"] == 4
    assert sales["summary"]["total_amount"] == 10.0

    purchases = client.get("/api/reports/purchases", headers=staff_headers).json()
    assert purchases["summary"]["total_items"] == 10
    assert purchases["top_vendors"][0]["name"] == "Acme Supply"


def test_movement_report(client, staff_headers, activity):
    body = client.get("/api/reports/movements", headers=staff_headers).json()
    assert body["summary"]["total_movements"] == 4
    assert body["summary"]["total_in"] == 12
    assert body["summary"]["total_out"] == 6
    assert body["by_type"]["TRANSFER_IN"] == 1


def test_profit_loss_and_activity(client, staff_headers, activity):
    pl = client.get("/api/reports/profit-loss", headers=staff_headers).json()
    assert pl["revenue"] == 10.0
    assert pl["costs"] == 25.0

    report = client.get("/api/reports/activity", headers=staff_headers).json()
    assert report["summary"]["receipts"] == 1
    assert report["summary"]["deliveries"] == 1


def test_reports_reject_bad_dates(client, staff_headers):
    res = client.get("/api/reports/sales", params={"date_from": "31/12/2024"}, headers=staff_headers)
    assert res.status_code == 400
