from datetime import datetime, timedelta, timezone

from models.log import AuditLog


def test_initialize_defaults_keeps_existing_values(client, admin_headers):
    res = client.put("/api/settings/items_per_page", json={"value": "50", "category": "general"},
                     headers=admin_headers)
    assert res.status_code == 200

    res = client.post("/api/settings/initialize", headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["created"] == 7

    assert client.get("/api/settings/items_per_page", headers=admin_headers).json()["value"] == "50"
    inventory = client.get("/api/settings", params={"category": "inventory"}, headers=admin_headers).json()
    assert {s["key"] for s in inventory} == {"low_stock_threshold", "critical_stock_threshold"}


def test_setting_upsert_bulk_and_delete(client, admin_headers):
    res = client.put("/api/settings/theme", json={"value": "dark"}, headers=admin_headers)
    assert res.json()["category"] == "general"

    res = client.post("/api/settings/bulk", json={"settings": [
        {"key": "theme", "value": "light"},
        {"key": "language", "value": "en", "category": "ui"},
    ]}, headers=admin_headers)
    assert res.status_code == 200
    assert {s["key"]: s["value"] for s in res.json()} == {"theme": "light", "language": "en"}

    assert client.delete("/api/settings/theme", headers=admin_headers).status_code == 200
    assert client.get("/api/settings/theme", headers=admin_headers).status_code == 404
    assert client.delete("/api/settings/theme", headers=admin_headers).status_code == 404


def test_manager_cannot_change_settings(client, manager_headers):
    res = client.put("/api/settings/theme", json={"value": "dark"}, headers=manager_headers)
    assert res.status_code == 403


def test_company_info(client, admin_headers, staff_headers):
    default = client.get("/api/company", headers=staff_headers)
    assert default.status_code == 200
    assert default.json()["id"] == 0

    res = client.put("/api/company", json={"company_name": "Stock Co", "currency": "eur"}, headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["currency"] == "EUR"

    assert client.get("/api/company", headers=staff_headers).json()["company_name"] == "Stock Co"
    assert client.put("/api/company", json={"company_name": "X"}, headers=staff_headers).status_code == 403


def test_audit_trail_and_stats(client, admin, admin_headers, manager_headers, make_product):
    product = make_product()

    page = client.get("/api/audit", params={"entity": "product"}, headers=manager_headers).json()
    assert page["total"] == 1
    assert page["items"][0]["action"] == "CREATE"
    assert page["items"][0]["user_id"] == admin.id

    by_record = client.get(f"/api/audit/entity/product/{product['id']}", headers=admin_headers).json()
    assert by_record["total"] == 1
    log_id = by_record["items"][0]["id"]
    assert client.get(f"/api/audit/{log_id}", headers=admin_headers).json()["entity"] == "product"

    by_user = client.get(f"/api/audit/user/{admin.id}", headers=admin_headers).json()
    assert by_user["total"] >= 1

    stats = client.get("/api/audit/stats", headers=admin_headers).json()
    assert stats["total_logs"] >= 1
    assert {"action": "CREATE", "count": 1} in stats["action_stats"]
    assert stats["user_activity"][0]["user_id"] == admin.id


def test_audit_cleanup(client, db, admin_headers, manager_headers):
    db.add(AuditLog(action="LOGIN", entity="auth", status="SUCCESS",
                    ts=datetime.now(timezone.utc) - timedelta(days=120)))
    db.add(AuditLog(action="LOGIN", entity="auth", status="SUCCESS"))
    db.commit()

    assert client.delete("/api/audit/cleanup", headers=manager_headers).status_code == 403

    res = client.delete("/api/audit/cleanup", params={"days": 90}, headers=admin_headers)
    assert res.status_code == 200
    assert res.json() == {"message": "Deleted 1 audit logs older than 90 days", "count": 1}


def test_audit_date_filters(client, admin_headers, make_product):
    make_product()
    today = datetime.now(timezone.utc).date().isoformat()

    res = client.get("/api/audit", params={"date_from": today, "date_to": today}, headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["total"] >= 1

    res = client.get("/api/audit", params={"date_to": "2000-01-01"}, headers=admin_headers)
    assert res.json()["total"] == 0

    res = client.get("/api/audit", params={"date_from": "01/01/2000"}, headers=admin_headers)
    assert res.status_code == 400
