# backend/routes/dashboard.py

from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload

from database import get_db
from models.users import User, Role
from models.product import Product
from models.location import Location
from models.stock import Stock, MoveHistory
from models.receipt import ReceiptOrder
from models.delivery import DeliveryOrder
from models.transfer import InternalTransfer
from utils.permissions import Permission
from utils.tokenJWT import permission_required

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])

LOW_STOCK_LIMIT = 10
RECENT_MOVES_LIMIT = 10
TOP_PRODUCTS_LIMIT = 5


@router.get("")
def get_dashboard(
    location_id: Optional[int] = Query(None),
    days: int = Query(30, ge=1, le=365),
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.VIEW_DASHBOARD)),
):
    since = datetime.now(timezone.utc) - timedelta(days=days)

    def by_location(query, column):
        return query.filter(column == location_id) if location_id is not None else query

    # Staff see only the moves they produced, as in /move-history
    staff_only = (current_user.role or "").upper() == Role.STAFF.value

    def own_moves(query):
        return query.filter(MoveHistory.user_id == current_user.id) if staff_only else query

    # === Totals ===
    total_products = db.query(func.count(Product.id)).scalar()
    total_locations = db.query(func.count(Location.id)).scalar()
    stock_qty, stock_rows = by_location(
        db.query(func.coalesce(func.sum(Stock.quantity), 0), func.count(Stock.id)), Stock.location_id
    ).one()

    # === Low stock: products whose summed quantity is at or below a positive minimum ===
    totals = (
        by_location(db.query(Stock.product_id.label("product_id"),
                             func.sum(Stock.quantity).label("qty")), Stock.location_id)
        .group_by(Stock.product_id)
        .subquery()
    )
    qty_col = func.coalesce(totals.c.qty, 0)
    low_query = (
        db.query(Product, qty_col)
        .outerjoin(totals, totals.c.product_id == Product.id)
        .filter(Product.min_stock > 0, qty_col <= Product.min_stock)
    )
    low_count = low_query.count()
    low_rows = low_query.order_by(qty_col.asc(), Product.name.asc()).limit(LOW_STOCK_LIMIT).all()

    # === Pending documents ===
    pending_receipts = by_location(
        db.query(func.count(ReceiptOrder.id)).filter(ReceiptOrder.is_validated.is_(False)),
        ReceiptOrder.location_id,
    ).scalar()
    pending_deliveries = by_location(
        db.query(func.count(DeliveryOrder.id)).filter(DeliveryOrder.is_validated.is_(False)),
        DeliveryOrder.location_id,
    ).scalar()
    transfers_q = db.query(func.count(InternalTransfer.id)).filter(InternalTransfer.is_applied.is_(False))
    if location_id is not None:
        transfers_q = transfers_q.filter(or_(
            InternalTransfer.from_location_id == location_id,
            InternalTransfer.to_location_id == location_id,
        ))
    pending_transfers = transfers_q.scalar()

    # === Move history for the period ===
    moves_q = own_moves(by_location(db.query(MoveHistory), MoveHistory.location_id))
    moves_q = moves_q.filter(MoveHistory.created_at >= since)
    recent = (
        moves_q.options(
            joinedload(MoveHistory.product),
            joinedload(MoveHistory.location),
            joinedload(MoveHistory.user),
        )
        .order_by(MoveHistory.created_at.desc(), MoveHistory.id.desc())
        .limit(RECENT_MOVES_LIMIT)
        .all()
    )

    stats_rows = (
        own_moves(by_location(
            db.query(MoveHistory.move_type, func.count(MoveHistory.id),
                     func.sum(func.abs(MoveHistory.quantity_changed))),
            MoveHistory.location_id,
        ))
        .filter(MoveHistory.created_at >= since)
        .group_by(MoveHistory.move_type)
        .all()
    )
    move_stats = {t: {"count": n, "total_quantity": int(q or 0)} for t, n, q in stats_rows}

    top_rows = (
        own_moves(by_location(
            db.query(Product.id, Product.name, Product.sku, func.count(MoveHistory.id).label("moves"),
                     func.sum(func.abs(MoveHistory.quantity_changed)).label("qty"))
            .select_from(Product)
            .join(MoveHistory, MoveHistory.product_id == Product.id)
            .filter(MoveHistory.created_at >= since),
            MoveHistory.location_id,
        ))
        .group_by(Product.id, Product.name, Product.sku)
        .order_by(func.count(MoveHistory.id).desc(), Product.id.asc())
        .limit(TOP_PRODUCTS_LIMIT)
        .all()
    )

    # === Stock per location, only without a location filter ===
    stock_by_location = []
    if location_id is None:
        rows = (
            db.query(Location.id, Location.name,
                     func.coalesce(func.sum(Stock.quantity), 0), func.count(Stock.id))
            .select_from(Location)
            .outerjoin(Stock, Stock.location_id == Location.id)
            .group_by(Location.id, Location.name)
            .order_by(Location.name.asc())
            .all()
        )
        stock_by_location = [
            {"location": {"id": i, "name": n}, "total_stock": int(q), "unique_products": c}
            for i, n, q, c in rows
        ]

    return {
        "summary": {
            "total_products": total_products,
            "total_locations": total_locations,
            "total_stock_quantity": int(stock_qty or 0),
            "unique_stock_items": stock_rows,
            "low_stock_products_count": low_count,
            "pending_receipts": pending_receipts,
            "pending_deliveries": pending_deliveries,
            "pending_transfers": pending_transfers,
        },
        "low_stock_products": [
            {"id": p.id, "name": p.name, "sku": p.sku, "min_stock": p.min_stock, "total_stock": int(q)}
            for p, q in low_rows
        ],
        "recent_moves": [
            {
                "id": m.id,
                "move_type": m.move_type,
                "quantity_changed": m.quantity_changed,
                "created_at": m.created_at,
                "product": {"id": m.product.id, "name": m.product.name, "sku": m.product.sku},
                "location": {"id": m.location.id, "name": m.location.name},
                "user": {"id": m.user.id, "name": m.user.name},
            }
            for m in recent
        ],
        "move_stats": move_stats,
        "top_moving_products": [
            {"product": {"id": i, "name": n, "sku": s}, "move_count": c, "total_quantity_moved": int(q or 0)}
            for i, n, s, c, q in top_rows
        ],
        "stock_by_location": stock_by_location,
        "period_days": days,
    }
