# routes/reports.py
from datetime import datetime
from typing import Optional, List

from fastapi import APIRouter, Depends, Query
from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from database import get_db
from models.users import User
from models.product import Product
from models.location import Location
from models.vendor import Vendor
from models.stock import Stock, MoveHistory, MoveType
from models.receipt import ReceiptOrder, ReceiptItem
from models.delivery import DeliveryOrder, DeliveryItem
from models.transfer import InternalTransfer
from models.adjustment import StockAdjustment
from schemas.reports import (
    StockReport, StockReportRow, SalesReport, PurchaseReport, Aggregate, TradeSummary,
    MovementReport, ProductFlow, ProfitLossReport, ActivityReport, UserActivity,
)
from utils.dates import parse_date
from utils.permissions import Permission
from utils.tokenJWT import permission_required

router = APIRouter(prefix="/reports", tags=["Reports"])

TOP_LIMIT = 10


def _between(query, column, fdt: Optional[datetime], tdt: Optional[datetime]):
    if fdt:
        query = query.filter(column >= fdt)
    if tdt:
        query = query.filter(column <= tdt)
    return query


def _summary(orders: int, items: int, amount: float) -> TradeSummary:
    return TradeSummary(
        total_orders=orders,
        total_items=items,
        total_amount=round(amount, 2),
        average_order_value=round(amount / orders, 2) if orders else 0.0,
    )


def _aggregates(rows) -> List[Aggregate]:
    return [Aggregate(id=i, name=n, quantity=int(q or 0), amount=round(float(a or 0), 2)) for i, n, q, a in rows]


# -----------------------------
# 1) Stock levels and value
# -----------------------------
@router.get("/stock", response_model=StockReport)
def report_stock(
    location_id: Optional[int] = Query(None),
    product_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.VIEW_REPORTS)),
):
    q = (
        db.query(Stock, Product, Location)
        .select_from(Stock)
        .join(Product, Product.id == Stock.product_id)
        .join(Location, Location.id == Stock.location_id)
    )
    if location_id is not None:
        q = q.filter(Stock.location_id == location_id)
    if product_id is not None:
        q = q.filter(Stock.product_id == product_id)

    rows = [
        StockReportRow(
            product_id=p.id, product_name=p.name, sku=p.sku, unit=p.unit,
            min_stock=p.min_stock, price=p.price,
            location_id=loc.id, location_name=loc.name,
            quantity=s.quantity, value=round(s.quantity * p.price, 2),
        )
        for s, p, loc in q.order_by(Product.name.asc(), Location.name.asc()).all()
    ]

    count = len(rows)
    return StockReport(
        stocks=rows,
        summary={
            "total_products": count,
            "low_stock_count": sum(1 for r in rows if r.quantity <= r.min_stock),
            "out_of_stock_count": sum(1 for r in rows if r.quantity == 0),
            "total_value": round(sum(r.value for r in rows), 2),
            "average_stock_level": round(sum(r.quantity for r in rows) / count, 2) if count else 0.0,
        },
    )


# -----------------------------
# 2) Sales (validated deliveries at catalog price)
# -----------------------------
@router.get("/sales", response_model=SalesReport)
def report_sales(
    date_from: Optional[str] = Query(None, description="ISO datetime from"),
    date_to: Optional[str] = Query(None, description="ISO datetime to"),
    location_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.VIEW_REPORTS)),
):
    fdt, tdt = parse_date(date_from), parse_date(date_to, end_of_day=True)

    base = db.query(DeliveryOrder).filter(DeliveryOrder.is_validated.is_(True))
    base = _between(base, DeliveryOrder.validated_at, fdt, tdt)
    if location_id is not None:
        base = base.filter(DeliveryOrder.location_id == location_id)
    ids = select(base.with_entities(DeliveryOrder.id).subquery().c.id)
    revenue = DeliveryItem.quantity_delivered * Product.price

    def lines(*columns):
        return (
            db.query(*columns)
            .select_from(DeliveryItem)
            .join(Product, Product.id == DeliveryItem.product_id)
            .filter(DeliveryItem.delivery_id.in_(ids))
        )

    orders = base.count()
    items, amount = lines(
        func.coalesce(func.sum(DeliveryItem.quantity_delivered), 0), func.coalesce(func.sum(revenue), 0.0)
    ).one()

    top_products = (
        lines(Product.id, Product.name, func.sum(DeliveryItem.quantity_delivered), func.sum(revenue))
        .group_by(Product.id, Product.name)
        .order_by(func.sum(revenue).desc())
        .limit(TOP_LIMIT)
        .all()
    )
    top_locations = (
        lines(Location.id, Location.name, func.sum(DeliveryItem.quantity_delivered), func.sum(revenue))
        .join(DeliveryOrder, DeliveryOrder.id == DeliveryItem.delivery_id)
        .join(Location, Location.id == DeliveryOrder.location_id)
        .group_by(Location.id, Location.name)
        .order_by(func.sum(revenue).desc())
        .all()
    )

    return SalesReport(
        summary=_summary(orders, int(items), float(amount)),
        top_products=_aggregates(top_products),
        top_locations=_aggregates(top_locations),
    )


# -----------------------------
# 3) Purchases (validated receipts at catalog price)
# -----------------------------
@router.get("/purchases", response_model=PurchaseReport)
def report_purchases(
    date_from: Optional[str] = Query(None, description="ISO datetime from"),
    date_to: Optional[str] = Query(None, description="ISO datetime to"),
    vendor_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.VIEW_REPORTS)),
):
    fdt, tdt = parse_date(date_from), parse_date(date_to, end_of_day=True)

    base = db.query(ReceiptOrder).filter(ReceiptOrder.is_validated.is_(True))
    base = _between(base, ReceiptOrder.validated_at, fdt, tdt)
    if vendor_id is not None:
        base = base.filter(ReceiptOrder.vendor_id == vendor_id)
    ids = select(base.with_entities(ReceiptOrder.id).subquery().c.id)
    cost = ReceiptItem.quantity_received * Product.price

    def lines(*columns):
        return (
            db.query(*columns)
            .select_from(ReceiptItem)
            .join(Product, Product.id == ReceiptItem.product_id)
            .filter(ReceiptItem.receipt_id.in_(ids))
        )

    orders = base.count()
    items, amount = lines(
        func.coalesce(func.sum(ReceiptItem.quantity_received), 0), func.coalesce(func.sum(cost), 0.0)
    ).one()

    top_vendors = (
        lines(Vendor.id, Vendor.name, func.sum(ReceiptItem.quantity_received), func.sum(cost))
        .join(ReceiptOrder, ReceiptOrder.id == ReceiptItem.receipt_id)
        .join(Vendor, Vendor.id == ReceiptOrder.vendor_id)
        .group_by(Vendor.id, Vendor.name)
        .order_by(func.sum(cost).desc())
        .all()
    )
    top_products = (
        lines(Product.id, Product.name, func.sum(ReceiptItem.quantity_received), func.sum(cost))
        .group_by(Product.id, Product.name)
        .order_by(func.sum(ReceiptItem.quantity_received).desc())
        .limit(TOP_LIMIT)
        .all()
    )

    return PurchaseReport(
        summary=_summary(orders, int(items), float(amount)),
        top_vendors=_aggregates(top_vendors),
        top_products=_aggregates(top_products),
    )


# -----------------------------
# 4) Inventory movements
# -----------------------------
@router.get("/movements", response_model=MovementReport)
def report_movements(
    date_from: Optional[str] = Query(None, description="ISO datetime from"),
    date_to: Optional[str] = Query(None, description="ISO datetime to"),
    product_id: Optional[int] = Query(None),
    location_id: Optional[int] = Query(None),
    move_type: Optional[MoveType] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.VIEW_REPORTS)),
):
    fdt, tdt = parse_date(date_from), parse_date(date_to, end_of_day=True)

    def moves(*columns):
        q = _between(db.query(*columns).select_from(MoveHistory), MoveHistory.created_at, fdt, tdt)
        if product_id is not None:
            q = q.filter(MoveHistory.product_id == product_id)
        if location_id is not None:
            q = q.filter(MoveHistory.location_id == location_id)
        if move_type is not None:
            q = q.filter(MoveHistory.move_type == move_type.value)
        return q

    positive = func.coalesce(func.sum(
        case((MoveHistory.quantity_changed > 0, MoveHistory.quantity_changed), else_=0)
    ), 0)
    negative = func.coalesce(func.sum(
        case((MoveHistory.quantity_changed < 0, -MoveHistory.quantity_changed), else_=0)
    ), 0)

    total, total_in, total_out = moves(func.count(MoveHistory.id), positive, negative).one()
    by_type = dict(
        moves(MoveHistory.move_type, func.count(MoveHistory.id)).group_by(MoveHistory.move_type).all()
    )
    by_product = (
        moves(Product.id, Product.name, positive, negative)
        .join(Product, Product.id == MoveHistory.product_id)
        .group_by(Product.id, Product.name)
        .order_by(Product.name.asc())
        .all()
    )

    return MovementReport(
        summary={
            "total_movements": total,
            "total_in": int(total_in),
            "total_out": int(total_out),
            "net_change": int(total_in) - int(total_out),
        },
        by_type=by_type,
        by_product=[ProductFlow(product_id=i, name=n, quantity_in=int(a), quantity_out=int(b))
                    for i, n, a, b in by_product],
    )


# -----------------------------
# 5) Profit & loss
# -----------------------------
@router.get("/profit-loss", response_model=ProfitLossReport)
def report_profit_loss(
    date_from: Optional[str] = Query(None, description="ISO datetime from"),
    date_to: Optional[str] = Query(None, description="ISO datetime to"),
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.VIEW_REPORTS)),
):
    fdt, tdt = parse_date(date_from), parse_date(date_to, end_of_day=True)

    deliveries = _between(
        db.query(DeliveryOrder.id).filter(DeliveryOrder.is_validated.is_(True)), DeliveryOrder.validated_at, fdt, tdt
    )
    receipts = _between(
        db.query(ReceiptOrder.id).filter(ReceiptOrder.is_validated.is_(True)), ReceiptOrder.validated_at, fdt, tdt
    )

    revenue = (
        db.query(func.coalesce(func.sum(DeliveryItem.quantity_delivered * Product.price), 0.0))
        .select_from(DeliveryItem)
        .join(Product, Product.id == DeliveryItem.product_id)
        .filter(DeliveryItem.delivery_id.in_(select(deliveries.subquery().c.id)))
        .scalar()
    )
    costs = (
        db.query(func.coalesce(func.sum(ReceiptItem.quantity_received * Product.price), 0.0))
        .select_from(ReceiptItem)
        .join(Product, Product.id == ReceiptItem.product_id)
        .filter(ReceiptItem.receipt_id.in_(select(receipts.subquery().c.id)))
        .scalar()
    )
    inventory_value, stock_rows = (
        db.query(func.coalesce(func.sum(Stock.quantity * Product.price), 0.0), func.count(Stock.id))
        .select_from(Stock)
        .join(Product, Product.id == Stock.product_id)
        .one()
    )

    revenue, costs = float(revenue), float(costs)
    gross = revenue - costs
    return ProfitLossReport(
        revenue=round(revenue, 2),
        sales_orders=deliveries.count(),
        costs=round(costs, 2),
        purchase_orders=receipts.count(),
        gross_profit=round(gross, 2),
        margin=round(gross / revenue * 100, 2) if revenue > 0 else 0.0,
        inventory_value=round(float(inventory_value), 2),
        stock_rows=stock_rows,
    )


# -----------------------------
# 6) Activity per user
# -----------------------------
@router.get("/activity", response_model=ActivityReport)
def report_activity(
    date_from: Optional[str] = Query(None, description="ISO datetime from"),
    date_to: Optional[str] = Query(None, description="ISO datetime to"),
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.VIEW_REPORTS)),
):
    fdt, tdt = parse_date(date_from), parse_date(date_to, end_of_day=True)

    def per_user(model):
        q = _between(db.query(model.user_id, func.count(model.id)), model.created_at, fdt, tdt)
        return dict(q.group_by(model.user_id).all())

    receipts = per_user(ReceiptOrder)
    deliveries = per_user(DeliveryOrder)
    transfers = per_user(InternalTransfer)
    adjustments = per_user(StockAdjustment)

    users = []
    for u in db.query(User).order_by(User.id.asc()).all():
        counts = [receipts.get(u.id, 0), deliveries.get(u.id, 0), transfers.get(u.id, 0), adjustments.get(u.id, 0)]
        users.append(UserActivity(
            user_id=u.id, name=u.name, email=u.email, role=u.role,
            receipts=counts[0], deliveries=counts[1], transfers=counts[2], adjustments=counts[3],
            total=sum(counts),
        ))
    users.sort(key=lambda a: a.total, reverse=True)

    totals = [sum(d.values()) for d in (receipts, deliveries, transfers, adjustments)]
    return ActivityReport(
        summary={
            "receipts": totals[0],
            "deliveries": totals[1],
            "transfers": totals[2],
            "adjustments": totals[3],
            "total": sum(totals),
        },
        users=users,
        date_from=date_from,
        date_to=date_to,
    )
