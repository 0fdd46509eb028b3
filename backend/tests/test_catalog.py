def test_product_sku_normalized_and_unique(client, admin_headers, make_product):
    product = make_product(sku="  ab-100 ")
    assert product["sku"] == "AB-100"

    res = client.post("/api/products", json={"name": "Copy", "sku": "ab-100"}, headers=admin_headers)
    assert res.status_code == 409


def test_product_update_sku_conflict(client, admin_headers, make_product):
    first = make_product(sku="A-1")
    second = make_product(sku="B-1")
    res = client.put(f"/api/products/{second['id']}", json={"sku": first["sku"]}, headers=admin_headers)
    assert res.status_code == 409

    res = client.put(f"/api/products/{second['id']}", json={"name": "Renamed", "price": 12.5},
                     headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["name"] == "Renamed"
    assert res.json()["price"] == 12.5


def test_product_negative_values_rejected(client, admin_headers):
    res = client.post("/api/products", json={"name": "Bad", "sku": "BAD", "min_stock": -1},
                      headers=admin_headers)
    assert res.status_code == 422


def test_product_blank_sku_or_name_rejected(client, admin_headers, make_product):
    res = client.post("/api/products", json={"name": "X", "sku": "   "}, headers=admin_headers)
    assert res.status_code == 422
    res = client.post("/api/products", json={"name": "  ", "sku": "X-1"}, headers=admin_headers)
    assert res.status_code == 422
    assert client.get("/api/products", headers=admin_headers).json()["total"] == 0

    product = make_product()
    res = client.put(f"/api/products/{product['id']}", json={"sku": " "}, headers=admin_headers)
    assert res.status_code == 422
    assert client.get(f"/api/products/{product['id']}", headers=admin_headers).json()["sku"] == product["sku"]


def test_product_list_search_and_totals(client, staff_headers, make_product, make_location, stock_in):
    bolt = make_product(name="Steel bolt", sku="BOLT-1", min_stock=5)
    make_product(name="Copper wire", sku="WIRE-1")
    a, b = make_location(), make_location()
    stock_in(bolt["id"], a["id"], 3)
    stock_in(bolt["id"], b["id"], 4)

    res = client.get("/api/products", params={"q": "bolt"}, headers=staff_headers)
    assert res.status_code == 200
    page = res.json()
    assert page["total"] == 1
    row = page["items"][0]
    assert row["total_stock"] == 7
    assert row["is_low_stock"] is False

    low = client.get("/api/products", params={"low_stock": True}, headers=staff_headers).json()
    assert [p["sku"] for p in low["items"]] == ["WIRE-1"]


def test_unique_units(client, staff_headers, make_product):
    make_product(unit="kg")
    make_product(unit="pcs")
    make_product(unit="kg")
    res = client.get("/api/products/unique/units", headers=staff_headers)
    assert res.json() == ["kg", "pcs"]


def test_product_delete_blocked_by_stock(client, admin_headers, make_product, make_location, stock_in):
    product = make_product()
    unused = make_product()
    location = make_location()
    stock_in(product["id"], location["id"], 2)

    assert client.delete(f"/api/products/{product['id']}", headers=admin_headers).status_code == 409
    assert client.delete(f"/api/products/{unused['id']}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/products/{unused['id']}", headers=admin_headers).status_code == 404


def test_location_crud(client, admin_headers, staff_headers, make_location):
    location = make_location(name="Main Warehouse", address="1 Dock Road")

    res = client.post("/api/locations", json={"name": "main warehouse"}, headers=admin_headers)
    assert res.status_code == 409

    res = client.put(f"/api/locations/{location['id']}", json={"address": "2 Dock Road"}, headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["address"] == "2 Dock Road"

    listing = client.get("/api/locations", params={"q": "main"}, headers=staff_headers).json()
    assert listing["total"] == 1
    assert listing["items"][0]["stocks_count"] == 0

    assert client.delete(f"/api/locations/{location['id']}", headers=admin_headers).status_code == 200


def test_location_detail_and_stocks(client, admin_headers, make_product, make_location, stock_in):
    product = make_product(sku="LOC-1")
    location = make_location()
    stock_in(product["id"], location["id"], 6)

    detail = client.get(f"/api/locations/{location['id']}", headers=admin_headers).json()
    assert [(s["sku"], s["quantity"]) for s in detail["stocks"]] == [("LOC-1", 6)]

    stocks = client.get(f"/api/locations/{location['id']}/stocks", headers=admin_headers).json()
    assert stocks[0]["product_id"] == product["id"]

    assert client.delete(f"/api/locations/{location['id']}", headers=admin_headers).status_code == 409


def test_vendor_crud(client, admin_headers, manager_headers, vendor, make_product, make_location):
    res = client.post("/api/vendors", json={"name": "Other", "email": "sales@acme.com"}, headers=manager_headers)
    assert res.status_code == 409

    res = client.post("/api/vendors", json={"name": "Spare Vendor"}, headers=manager_headers)
    assert res.status_code == 201
    spare = res.json()

    product, location = make_product(), make_location()
    client.post("/api/receipts", json={
        "vendor_id": vendor["id"], "location_id": location["id"],
        "items": [{"product_id": product["id"], "quantity_received": 1}],
    }, headers=admin_headers)

    detail = client.get(f"/api/vendors/{vendor['id']}", headers=manager_headers).json()
    assert len(detail["receipts"]) == 1
    assert detail["receipts"][0]["status"] == "WAITING"

    listing = client.get("/api/vendors", headers=manager_headers).json()
    counts = {v["name"]: v["receipts_count"] for v in listing["items"]}
    assert counts == {"Acme Supply": 1, "Spare Vendor": 0}

    assert client.delete(f"/api/vendors/{vendor['id']}", headers=manager_headers).status_code == 409
    assert client.delete(f"/api/vendors/{spare['id']}", headers=manager_headers).status_code == 200


def test_users_admin_management(client, admin, admin_headers, staff):
    res = client.post("/api/users", json={
        "name": "Second Manager", "email": "second@stockmaster.com",
        "password": "secret123", "role": "INVENTORY_MANAGER",
    }, headers=admin_headers)
    assert res.status_code == 201
    created = res.json()

    res = client.post("/api/users", json={
        "name": "Dup", "email": staff.email, "password": "secret123",
    }, headers=admin_headers)
    assert res.status_code == 409

    res = client.put(f"/api/users/{created['id']}", json={"role": "STAFF"}, headers=admin_headers)
    assert res.json()["role"] == "STAFF"

    listing = client.get("/api/users", params={"role": "STAFF"}, headers=admin_headers).json()
    assert {u["email"] for u in listing["items"]} == {staff.email, "second@stockmaster.com"}

    assert client.delete(f"/api/users/{admin.id}", headers=admin_headers).status_code == 400
    assert client.delete(f"/api/users/{created['id']}", headers=admin_headers).status_code == 200


def test_user_with_documents_cannot_be_deleted(client, admin_headers, staff, staff_headers,
                                               make_product, make_location, vendor):
    product, location = make_product(), make_location()
    res = client.post("/api/receipts", json={
        "vendor_id": vendor["id"], "location_id": location["id"],
        "items": [{"product_id": product["id"], "quantity_received": 1}],
    }, headers=staff_headers)
    assert res.status_code == 201

    res = client.delete(f"/api/users/{staff.id}", headers=admin_headers)
    assert res.status_code == 409

    activity = client.get("/api/users/staff", headers=admin_headers).json()
    assert activity[0]["receipts"] == 1
