def _adjust(client, headers, product, location, change):
    res = client.post("/api/adjustments", json={
        "location_id": location["id"], "product_id": product["id"],
        "quantity_change": change, "reason": "Count",
    }, headers=headers)
    assert res.status_code == 201, res.text


def test_move_history_filters(client, manager_headers, make_product, make_location):
    a, b = make_product(), make_product()
    location = make_location()
    _adjust(client, manager_headers, a, location, 5)
    _adjust(client, manager_headers, b, location, 2)
    _adjust(client, manager_headers, a, location, -1)

    page = client.get("/api/move-history", headers=manager_headers).json()
    assert page["total"] == 3
    # newest first
    assert page["items"][0]["move_type"] == "ADJUSTMENT_DECREASE"

    only_a = client.get("/api/move-history", params={"product_id": a["id"]}, headers=manager_headers).json()
    assert only_a["total"] == 2

    increases = client.get("/api/move-history", params={"move_type": "ADJUSTMENT_INCREASE"},
                           headers=manager_headers).json()
    assert {m["product"]["id"] for m in increases["items"]} == {a["id"], b["id"]}


def test_move_history_bad_date(client, manager_headers):
    res = client.get("/api/move-history", params={"date_from": "yesterday"}, headers=manager_headers)
    assert res.status_code == 400


def test_staff_sees_only_own_moves(client, manager_headers, staff, staff_headers, make_product, make_location):
    product, location = make_product(), make_location()
    _adjust(client, manager_headers, product, location, 5)

    assert client.get("/api/move-history", headers=staff_headers).json()["total"] == 0
    assert client.get("/api/move-history", headers=manager_headers).json()["total"] == 1
