import pytest
from fastapi import APIRouter
from sqlalchemy.exc import IntegrityError

import routes.receipts as receipt_routes
from main import app
from models.receipt import ReceiptOrder
from models.stock import MoveHistory, Stock
from utils.inventory import claim_document, utcnow


@pytest.fixture
def draft_receipt(client, admin_headers, vendor, make_product, make_location):
    product, location = make_product(), make_location()
    res = client.post("/api/receipts", json={
        "vendor_id": vendor["id"], "location_id": location["id"],
        "items": [{"product_id": product["id"], "quantity_received": 7}],
    }, headers=admin_headers)
    assert res.status_code == 201, res.text
    return {"receipt": res.json(), "product": product, "location": location}


def test_document_can_be_claimed_only_once(db, admin, draft_receipt):
    receipt_id = draft_receipt["receipt"]["id"]
    stamps = {"validated_at": utcnow(), "validated_by": admin.id}

    assert claim_document(db, ReceiptOrder, receipt_id, "is_validated", stamps) is True
    assert claim_document(db, ReceiptOrder, receipt_id, "is_validated", stamps) is False
    db.commit()

    receipt = db.query(ReceiptOrder).filter(ReceiptOrder.id == receipt_id).one()
    assert receipt.is_validated is True
    assert receipt.validated_by == admin.id
    assert db.query(MoveHistory).count() == 0


def test_validate_losing_the_claim_changes_nothing(client, db, admin_headers, draft_receipt,
                                                    stock_level, monkeypatch):
    # Another transaction flipped the flag between the read and the claim
    monkeypatch.setattr(receipt_routes, "claim_document", lambda *args, **kwargs: False)
    receipt_id = draft_receipt["receipt"]["id"]

    res = client.post(f"/api/receipts/{receipt_id}/validate", json={"action": "validate"},
                      headers=admin_headers)
    assert res.status_code == 409
    assert res.json()["detail"] == "Receipt is already validated"
    assert stock_level(draft_receipt["product"]["id"], draft_receipt["location"]["id"]) == 0
    assert db.query(MoveHistory).count() == 0


def test_stock_row_is_unique_per_product_and_location(db, make_product, make_location):
    product, location = make_product(), make_location()
    db.add(Stock(product_id=product["id"], location_id=location["id"], quantity=1))
    db.commit()

    db.add(Stock(product_id=product["id"], location_id=location["id"], quantity=2))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_stock_quantity_cannot_go_negative(db, make_product, make_location):
    product, location = make_product(), make_location()
    db.add(Stock(product_id=product["id"], location_id=location["id"], quantity=-1))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


@pytest.fixture
def conflicting_route():
    router = APIRouter()

    @router.post("/api/_conflict")
    def _conflict():
        raise IntegrityError("INSERT INTO stocks ...", {}, Exception("UNIQUE constraint failed"))

    before = list(app.router.routes)
    app.include_router(router)
    yield
    app.router.routes[:] = before


def test_integrity_error_maps_to_409(client, conflicting_route):
    res = client.post("/api/_conflict")
    assert res.status_code == 409
    assert res.json() == {"detail": "Conflicting update, please retry"}
