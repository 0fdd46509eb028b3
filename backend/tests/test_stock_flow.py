from models.stock import MoveHistory, Stock


def _receipt(client, headers, vendor, location, *lines):
    return client.post("/api/receipts", json={
        "vendor_id": vendor["id"], "location_id": location["id"],
        "items": [{"product_id": p["id"], "quantity_received": q} for p, q in lines],
    }, headers=headers)


def _delivery(client, headers, location, *lines):
    return client.post("/api/deliveries", json={
        "location_id": location["id"], "customer_name": "Jane Buyer",
        "items": [{"product_id": p["id"], "quantity_delivered": q} for p, q in lines],
    }, headers=headers)


# ---- receipts ----

def test_receipt_validation_increases_stock(client, db, admin_headers, vendor, make_product,
                                            make_location, stock_level):
    product, location = make_product(), make_location()
    res = _receipt(client, admin_headers, vendor, location, (product, 5), (product, 3))
    assert res.status_code == 201
    receipt = res.json()
    assert receipt["receipt_number"] == f"RCP-{receipt['id']:06d}"
    assert receipt["status"] == "WAITING"
    # repeated product lines are merged
    assert len(receipt["items"]) == 1
    assert receipt["total_items"] == 8
    assert stock_level(product["id"], location["id"]) == 0

    res = client.post(f"/api/receipts/{receipt['id']}/validate", json={"action": "validate"},
                      headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["status"] == "DONE"
    assert stock_level(product["id"], location["id"]) == 8

    move = db.query(MoveHistory).one()
    assert move.move_type == "RECEIPT"
    assert (move.quantity_before, move.quantity_changed, move.quantity_after) == (0, 8, 8)
    assert move.reference_id == receipt["id"]


def test_receipt_validated_only_once(client, db, admin_headers, vendor, make_product, make_location,
                                     stock_level):
    product, location = make_product(), make_location()
    receipt = _receipt(client, admin_headers, vendor, location, (product, 4)).json()
    url = f"/api/receipts/{receipt['id']}/validate"

    assert client.post(url, json={"action": "validate"}, headers=admin_headers).status_code == 200
    res = client.post(url, json={"action": "validate"}, headers=admin_headers)
    assert res.status_code == 409
    assert stock_level(product["id"], location["id"]) == 4
    assert db.query(MoveHistory).count() == 1


def test_receipt_validate_bad_action_and_unknown(client, admin_headers, vendor, make_product, make_location):
    product, location = make_product(), make_location()
    receipt = _receipt(client, admin_headers, vendor, location, (product, 1)).json()

    res = client.post(f"/api/receipts/{receipt['id']}/validate", json={"action": "approve"},
                      headers=admin_headers)
    assert res.status_code == 400
    res = client.post("/api/receipts/9999/validate", json={"action": "validate"}, headers=admin_headers)
    assert res.status_code == 404


def test_receipt_requires_items_and_known_rows(client, admin_headers, vendor, make_product, make_location):
    location = make_location()
    res = client.post("/api/receipts", json={"vendor_id": vendor["id"], "location_id": location["id"],
                                             "items": []}, headers=admin_headers)
    assert res.status_code == 422

    res = client.post("/api/receipts", json={
        "vendor_id": vendor["id"], "location_id": location["id"],
        "items": [{"product_id": 424242, "quantity_received": 1}],
    }, headers=admin_headers)
    assert res.status_code == 404

    res = client.post("/api/receipts", json={
        "vendor_id": vendor["id"], "location_id": location["id"],
        "items": [{"product_id": make_product()["id"], "quantity_received": 0}],
    }, headers=admin_headers)
    assert res.status_code == 422


def test_receipt_list_status_filter(client, admin_headers, vendor, make_product, make_location):
    product, location = make_product(), make_location()
    first = _receipt(client, admin_headers, vendor, location, (product, 1)).json()
    _receipt(client, admin_headers, vendor, location, (product, 2))
    client.post(f"/api/receipts/{first['id']}/validate", json={"action": "validate"}, headers=admin_headers)

    done = client.get("/api/receipts", params={"status": "validated"}, headers=admin_headers).json()
    pending = client.get("/api/receipts", params={"status": "pending"}, headers=admin_headers).json()
    assert [r["id"] for r in done["items"]] == [first["id"]]
    assert pending["total"] == 1


# ---- deliveries ----

def test_delivery_checks_stock_at_creation(client, admin_headers, make_product, make_location, stock_in):
    product, location = make_product(name="Hammer"), make_location()
    stock_in(product["id"], location["id"], 2)

    res = _delivery(client, admin_headers, location, (product, 5))
    assert res.status_code == 409
    assert res.json()["detail"] == "Insufficient stock for Hammer. Available: 2, Required: 5"


def test_delivery_validation_decreases_stock(client, db, admin_headers, make_product, make_location,
                                             stock_in, stock_level):
    product, location = make_product(), make_location()
    stock_in(product["id"], location["id"], 10)

    delivery = _delivery(client, admin_headers, location, (product, 4)).json()
    assert delivery["delivery_number"].startswith("DEL-")

    res = client.post(f"/api/deliveries/{delivery['id']}/validate", json={"action": "validate"},
                      headers=admin_headers)
    assert res.status_code == 200
    assert stock_level(product["id"], location["id"]) == 6

    move = db.query(MoveHistory).filter(MoveHistory.move_type == "DELIVERY").one()
    assert (move.quantity_before, move.quantity_changed, move.quantity_after) == (10, -4, 6)


def test_delivery_validation_is_all_or_nothing(client, db, admin_headers, make_product, make_location,
                                               stock_in, stock_level):
    a, b, location = make_product(), make_product(), make_location()
    stock_in(a["id"], location["id"], 5)
    stock_in(b["id"], location["id"], 5)
    delivery = _delivery(client, admin_headers, location, (a, 3), (b, 4)).json()

    # stock of b drops after the delivery was drafted
    other = _delivery(client, admin_headers, location, (b, 3)).json()
    client.post(f"/api/deliveries/{other['id']}/validate", json={"action": "validate"}, headers=admin_headers)

    res = client.post(f"/api/deliveries/{delivery['id']}/validate", json={"action": "validate"},
                      headers=admin_headers)
    assert res.status_code == 409
    assert stock_level(a["id"], location["id"]) == 5
    assert stock_level(b["id"], location["id"]) == 2
    assert client.get(f"/api/deliveries/{delivery['id']}", headers=admin_headers).json()["status"] == "WAITING"


def test_staff_drafts_but_cannot_validate_delivery(client, staff_headers, make_product, make_location, stock_in):
    product, location = make_product(), make_location()
    stock_in(product["id"], location["id"], 3)
    res = _delivery(client, staff_headers, location, (product, 1))
    assert res.status_code == 201
    res = client.post(f"/api/deliveries/{res.json()['id']}/validate", json={"action": "validate"},
                      headers=staff_headers)
    assert res.status_code == 403


def test_delivery_pdf(client, admin_headers, make_product, make_location, stock_in):
    product, location = make_product(), make_location()
    stock_in(product["id"], location["id"], 3)
    delivery = _delivery(client, admin_headers, location, (product, 2)).json()

    res = client.get(f"/api/deliveries/{delivery['id']}/pdf", headers=admin_headers)
    assert res.status_code == 200
    assert res.headers["content-type"] == "application/pdf"
    assert res.content.startswith(b"%PDF")


# ---- transfers ----

def test_transfer_apply_moves_stock(client, db, manager_headers, make_product, make_location,
                                    stock_in, stock_level):
    product, src, dst = make_product(), make_location(), make_location()
    stock_in(product["id"], src["id"], 9)

    res = client.post("/api/transfers", json={
        "from_location_id": src["id"], "to_location_id": dst["id"],
        "product_id": product["id"], "quantity": 4,
    }, headers=manager_headers)
    assert res.status_code == 201
    transfer = res.json()
    assert transfer["status"] == "WAITING"

    url = f"/api/transfers/{transfer['id']}/apply"
    assert client.post(url, json={"action": "apply"}, headers=manager_headers).status_code == 200
    assert client.post(url, json={"action": "apply"}, headers=manager_headers).status_code == 409

    assert stock_level(product["id"], src["id"]) == 5
    assert stock_level(product["id"], dst["id"]) == 4
    moves = {m.move_type: m for m in db.query(MoveHistory).filter(MoveHistory.reference_id == transfer["id"],
                                                                   MoveHistory.move_type.like("TRANSFER%"))}
    assert moves["TRANSFER_OUT"].quantity_changed == -4
    assert moves["TRANSFER_IN"].quantity_after == 4


def test_transfer_validation_errors(client, manager_headers, make_product, make_location, stock_in):
    product, src, dst = make_product(), make_location(), make_location()
    stock_in(product["id"], src["id"], 1)

    same = client.post("/api/transfers", json={
        "from_location_id": src["id"], "to_location_id": src["id"], "product_id": product["id"], "quantity": 1,
    }, headers=manager_headers)
    assert same.status_code == 400

    short = client.post("/api/transfers", json={
        "from_location_id": src["id"], "to_location_id": dst["id"], "product_id": product["id"], "quantity": 2,
    }, headers=manager_headers)
    assert short.status_code == 409


# ---- adjustments ----

def test_adjustment_applies_immediately(client, db, manager_headers, make_product, make_location, stock_level):
    product, location = make_product(), make_location()
    res = client.post("/api/adjustments", json={
        "location_id": location["id"], "product_id": product["id"],
        "quantity_change": 7, "reason": "Cycle count",
    }, headers=manager_headers)
    assert res.status_code == 201
    assert res.json()["adjustment_number"].startswith("ADJ-")
    assert stock_level(product["id"], location["id"]) == 7

    res = client.post("/api/adjustments", json={
        "location_id": location["id"], "product_id": product["id"],
        "quantity_change": -2, "reason": "Damaged",
    }, headers=manager_headers)
    assert res.status_code == 201
    assert stock_level(product["id"], location["id"]) == 5

    types = [m.move_type for m in db.query(MoveHistory).order_by(MoveHistory.id)]
    assert types == ["ADJUSTMENT_INCREASE", "ADJUSTMENT_DECREASE"]


def test_adjustment_cannot_go_negative(client, db, manager_headers, make_product, make_location,
                                       stock_in, stock_level):
    product, location = make_product(), make_location()
    stock_in(product["id"], location["id"], 3)

    res = client.post("/api/adjustments", json={
        "location_id": location["id"], "product_id": product["id"],
        "quantity_change": -4, "reason": "Lost",
    }, headers=manager_headers)
    assert res.status_code == 409
    assert res.json()["detail"] == "Adjustment would result in negative stock"
    assert stock_level(product["id"], location["id"]) == 3
    assert client.get("/api/adjustments", headers=manager_headers).json()["total"] == 0


def test_adjustment_requires_reason_and_change(client, manager_headers, make_product, make_location):
    product, location = make_product(), make_location()
    base = {"location_id": location["id"], "product_id": product["id"]}

    res = client.post("/api/adjustments", json={**base, "quantity_change": 1, "reason": "  "},
                      headers=manager_headers)
    assert res.status_code == 400
    res = client.post("/api/adjustments", json={**base, "quantity_change": 0, "reason": "Count"},
                      headers=manager_headers)
    assert res.status_code == 400


def test_stock_rows_stay_unique_and_non_negative(db, client, admin_headers, make_product, make_location,
                                                 stock_in):
    product, location = make_product(), make_location()
    stock_in(product["id"], location["id"], 2)
    stock_in(product["id"], location["id"], 3)

    rows = db.query(Stock).filter(Stock.product_id == product["id"]).all()
    assert len(rows) == 1
    assert rows[0].quantity == 5
    for move in db.query(MoveHistory):
        assert move.quantity_after == move.quantity_before + move.quantity_changed
        assert move.quantity_after >= 0
