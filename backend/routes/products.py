# backend/routes/products.py
from typing import Optional, List, Literal

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import or_, func
from sqlalchemy.orm import Session, joinedload
from sqlalchemy.sql.expression import ColumnElement

from database import get_db
from models.users import User
from models.product import Product
from models.stock import Stock, MoveHistory
from models.alert import LowStockAlert
from models.receipt import ReceiptItem
from models.delivery import DeliveryItem
from models.transfer import InternalTransfer
from models.adjustment import StockAdjustment
import schemas.product as product_schemas
from utils.alerts import alerts_enabled, refresh_alert
from utils.audit import write_log
from utils.permissions import Permission
from utils.tokenJWT import permission_required

router = APIRouter(prefix="/products", tags=["Products"])


# ---- HELPERS ----
def _get_unique_values(db: Session, column: ColumnElement) -> List[str]:
    values = db.query(column).distinct().filter(column.isnot(None), column != "").order_by(column).all()
    return [v[0] for v in values]


def _stock_totals(db: Session):
    """Subquery: product_id -> summed quantity over all locations."""
    return (
        db.query(Stock.product_id.label("product_id"), func.sum(Stock.quantity).label("total_stock"))
        .group_by(Stock.product_id)
        .subquery()
    )


def _to_out(product: Product, total_stock: int) -> dict:
    total_stock = int(total_stock or 0)
    return {
        "id": product.id,
        "name": product.name,
        "sku": product.sku,
        "description": product.description,
        "unit": product.unit,
        "min_stock": product.min_stock,
        "price": product.price,
        "created_at": product.created_at,
        "updated_at": product.updated_at,
        "total_stock": total_stock,
        "is_low_stock": total_stock <= (product.min_stock or 0),
    }


def _sku_taken(db: Session, sku: str, exclude_id: Optional[int] = None) -> bool:
    q = db.query(Product.id).filter(Product.sku == sku)
    if exclude_id is not None:
        q = q.filter(Product.id != exclude_id)
    return q.first() is not None


def _detail(db: Session, product_id: int) -> dict:
    product = (
        db.query(Product)
        .options(joinedload(Product.stocks).joinedload(Stock.location))
        .filter(Product.id == product_id)
        .first()
    )
    if not product:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")

    stocks = sorted(product.stocks, key=lambda s: s.location.name)
    data = _to_out(product, sum(s.quantity for s in stocks))
    data["stocks"] = [{"location": s.location, "quantity": s.quantity} for s in stocks]
    return data


# =========================
# LIST
# =========================
@router.get("", response_model=product_schemas.ProductListPage)
def list_products(
    q: Optional[str] = Query(None, description="Search by name, SKU or description"),
    low_stock: Optional[bool] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=500),
    sort_by: Literal["id", "name", "sku", "price", "created_at", "total_stock"] = "name",
    order: Literal["asc", "desc"] = "asc",
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.VIEW_PRODUCTS)),
):
    totals = _stock_totals(db)
    total_col = func.coalesce(totals.c.total_stock, 0)

    query = db.query(Product, total_col.label("total_stock")).outerjoin(
        totals, totals.c.product_id == Product.id
    )

    if q:
        like = f"%{q}%"
        query = query.filter(or_(
            Product.name.ilike(like),
            Product.sku.ilike(like),
            Product.description.ilike(like),
        ))

    if low_stock is True:
        query = query.filter(total_col <= Product.min_stock)
    elif low_stock is False:
        query = query.filter(total_col > Product.min_stock)

    sort_map = {
        "id": Product.id,
        "name": Product.name,
        "sku": Product.sku,
        "price": Product.price,
        "created_at": Product.created_at,
        "total_stock": total_col,
    }
    col = sort_map[sort_by]
    query = query.order_by(col.asc() if order == "asc" else col.desc(), Product.id.asc())

    total = query.count()
    rows = query.offset((page - 1) * page_size).limit(page_size).all()

    return {
        "items": [_to_out(p, t) for p, t in rows],
        "total": total,
        "page": page,
        "page_size": page_size,
    }


# Distinct units already used in the catalog
@router.get("/unique/units", response_model=List[str])
def get_unique_units(
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.VIEW_PRODUCTS)),
):
    return _get_unique_values(db, Product.unit)


# =========================
# CRUD
# =========================
@router.post("", response_model=product_schemas.ProductDetail, status_code=status.HTTP_201_CREATED)
def create_product(
    payload: product_schemas.ProductCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.CREATE_PRODUCTS)),
):
    if _sku_taken(db, payload.sku):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Product with this SKU already exists")

    product = Product(**payload.model_dump())
    db.add(product)
    db.commit()
    db.refresh(product)

    write_log(db, user=current_user, action="CREATE", entity="product", entity_id=product.id,
              request=request, meta={"sku": product.sku, "name": product.name})
    return _detail(db, product.id)


@router.get("/{product_id}", response_model=product_schemas.ProductDetail)
def get_product(
    product_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.VIEW_PRODUCTS)),
):
    return _detail(db, product_id)


@router.put("/{product_id}", response_model=product_schemas.ProductDetail)
def update_product(
    product_id: int,
    payload: product_schemas.ProductUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.UPDATE_PRODUCTS)),
):
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")

    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    if "sku" in changes and changes["sku"] != product.sku and _sku_taken(db, changes["sku"], product.id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Product with this SKU already exists")

    for field, value in changes.items():
        setattr(product, field, value)

    # A new reorder level re-grades every location holding the product
    if "min_stock" in changes and alerts_enabled(db):
        for stock in db.query(Stock).filter(Stock.product_id == product.id).all():
            refresh_alert(db, product, stock.location_id, stock.quantity)
    db.commit()

    write_log(db, user=current_user, action="UPDATE", entity="product", entity_id=product.id,
              request=request, meta={"changes": sorted(changes)})
    return _detail(db, product.id)


@router.delete("/{product_id}")
def delete_product(
    product_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.DELETE_PRODUCTS)),
):
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")

    # Check stock on hand
    on_hand = db.query(Stock.id).filter(Stock.product_id == product.id, Stock.quantity > 0).first()
    if on_hand:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Cannot delete product with stock on hand")

    # Check documents and ledger rows
    referenced = (
        db.query(ReceiptItem.id).filter(ReceiptItem.product_id == product.id).first()
        or db.query(DeliveryItem.id).filter(DeliveryItem.product_id == product.id).first()
        or db.query(InternalTransfer.id).filter(InternalTransfer.product_id == product.id).first()
        or db.query(StockAdjustment.id).filter(StockAdjustment.product_id == product.id).first()
        or db.query(MoveHistory.id).filter(MoveHistory.product_id == product.id).first()
    )
    if referenced:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT,
                            detail="Cannot delete product referenced by documents or move history")

    # Empty stock rows and their alerts go with the product
    db.query(LowStockAlert).filter(LowStockAlert.product_id == product.id).delete(synchronize_session=False)
    db.query(Stock).filter(Stock.product_id == product.id).delete(synchronize_session=False)
    sku = product.sku
    db.delete(product)
    db.commit()

    write_log(db, user=current_user, action="DELETE", entity="product", entity_id=product_id,
              request=request, meta={"sku": sku})
    return {"message": "Product deleted successfully"}
