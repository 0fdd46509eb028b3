# utils/inventory.py
"""
Stock mutations shared by receipts, deliveries, transfers and adjustments.

Every helper here works inside the caller's transaction and never commits:
the route commits once after the document, the stock rows, the move history
and the alerts are all written, so any failure leaves the database untouched.

Concurrency:
    - Stock rows are read with SELECT ... FOR UPDATE (no-op on SQLite)
    - Quantities change through single UPDATE statements, never
      read-modify-write in Python
    - Decrements are conditional on quantity >= n
    - Documents are claimed with a conditional UPDATE on their flag column
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from models.product import Product
from models.location import Location
from models.stock import Stock, MoveHistory, MoveType
from utils.alerts import alerts_enabled, refresh_alert

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Human-readable document number derived from the primary key, e.g. RCP-000042
def document_number(prefix: str, doc_id: int) -> str:
    return f"{prefix}-{doc_id:06d}"


def get_product_or_404(db: Session, product_id: int) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


def get_location_or_404(db: Session, location_id: int) -> Location:
    location = db.query(Location).filter(Location.id == location_id).first()
    if not location:
        raise HTTPException(status_code=404, detail="Location not found")
    return location


def available_quantity(db: Session, product_id: int, location_id: int) -> int:
    qty = (
        db.query(Stock.quantity)
        .filter(Stock.product_id == product_id, Stock.location_id == location_id)
        .scalar()
    )
    return qty or 0


def insufficient_stock(product: Product, available: int, required: int) -> HTTPException:
    return HTTPException(
        status_code=409,
        detail=f"Insufficient stock for {product.name}. Available: {available}, Required: {required}",
    )


def ensure_available(db: Session, product: Product, location_id: int, required: int) -> None:
    available = available_quantity(db, product.id, location_id)
    if available < required:
        raise insufficient_stock(product, available, required)


def claim_document(db: Session, model, doc_id: int, flag: str, stamps: dict) -> bool:
    """Flip a document's boolean flag from False to True.

    Returns False when another transaction already did it; only one caller
    can ever see True for a given document.
    """
    column = getattr(model, flag)
    values = {column: True}
    values.update({getattr(model, k): v for k, v in stamps.items()})
    claimed = (
        db.query(model)
        .filter(model.id == doc_id, column.is_(False))
        .update(values, synchronize_session="fetch")
    )
    return claimed == 1


def _lock_stock(db: Session, product_id: int, location_id: int) -> Optional[Stock]:
    return (
        db.query(Stock)
        .filter(Stock.product_id == product_id, Stock.location_id == location_id)
        .with_for_update()
        .first()
    )


def _current_quantity(db: Session, stock_id: int) -> int:
    return db.query(Stock.quantity).filter(Stock.id == stock_id).scalar()


def _record_move(db: Session, *, move_type: MoveType, product: Product, location_id: int,
                 user_id: int, before: int, after: int, reference_id: Optional[int],
                 notes: Optional[str]) -> MoveHistory:
    move = MoveHistory(
        move_type=move_type.value,
        product_id=product.id,
        location_id=location_id,
        user_id=user_id,
        quantity_before=before,
        quantity_after=after,
        quantity_changed=after - before,
        reference_id=reference_id,
        notes=notes,
    )
    db.add(move)
    if alerts_enabled(db):
        refresh_alert(db, product, location_id, after)
    logger.info(
        "stock.%s product=%s location=%s %s -> %s ref=%s",
        move_type.value.lower(), product.id, location_id, before, after, reference_id,
    )
    return move


def increase_stock(db: Session, *, product: Product, location_id: int, quantity: int,
                   user_id: int, move_type: MoveType, reference_id: Optional[int] = None,
                   notes: Optional[str] = None) -> MoveHistory:
    """Add quantity at a location, creating the stock row on first arrival."""
    if quantity <= 0:
        raise HTTPException(status_code=400, detail="Quantity must be positive")

    stock = _lock_stock(db, product.id, location_id)
    if stock is None:
        stock = Stock(product_id=product.id, location_id=location_id, quantity=0)
        db.add(stock)
        # A concurrent first arrival fails here on the unique constraint
        db.flush()

    db.query(Stock).filter(Stock.id == stock.id).update(
        {Stock.quantity: Stock.quantity + quantity}, synchronize_session="fetch"
    )
    after = _current_quantity(db, stock.id)
    return _record_move(
        db, move_type=move_type, product=product, location_id=location_id, user_id=user_id,
        before=after - quantity, after=after, reference_id=reference_id, notes=notes,
    )


def decrease_stock(db: Session, *, product: Product, location_id: int, quantity: int,
                   user_id: int, move_type: MoveType, reference_id: Optional[int] = None,
                   notes: Optional[str] = None) -> MoveHistory:
    """Remove quantity from a location; 409 when not enough is on hand."""
    if quantity <= 0:
        raise HTTPException(status_code=400, detail="Quantity must be positive")

    stock = _lock_stock(db, product.id, location_id)
    if stock is None:
        raise insufficient_stock(product, 0, quantity)

    updated = (
        db.query(Stock)
        .filter(Stock.id == stock.id, Stock.quantity >= quantity)
        .update({Stock.quantity: Stock.quantity - quantity}, synchronize_session="fetch")
    )
    if updated != 1:
        raise insufficient_stock(product, _current_quantity(db, stock.id), quantity)

    after = _current_quantity(db, stock.id)
    return _record_move(
        db, move_type=move_type, product=product, location_id=location_id, user_id=user_id,
        before=after + quantity, after=after, reference_id=reference_id, notes=notes,
    )


def apply_delta(db: Session, *, product: Product, location_id: int, delta: int,
                user_id: int, reference_id: Optional[int] = None,
                notes: Optional[str] = None) -> MoveHistory:
    """Signed adjustment; negative results are rejected with 409."""
    if delta == 0:
        raise HTTPException(status_code=400, detail="Quantity change must be non-zero")
    if delta > 0:
        return increase_stock(
            db, product=product, location_id=location_id, quantity=delta, user_id=user_id,
            move_type=MoveType.ADJUSTMENT_INCREASE, reference_id=reference_id, notes=notes,
        )
    try:
        return decrease_stock(
            db, product=product, location_id=location_id, quantity=-delta, user_id=user_id,
            move_type=MoveType.ADJUSTMENT_DECREASE, reference_id=reference_id, notes=notes,
        )
    except HTTPException as exc:
        if exc.status_code == 409:
            raise HTTPException(status_code=409, detail="Adjustment would result in negative stock")
        raise
