# backend/routes/locations.py
from typing import Optional, List

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import or_, func
from sqlalchemy.orm import Session

from database import get_db
from models.users import User
from models.location import Location
from models.product import Product
from models.stock import Stock, MoveHistory
from models.alert import LowStockAlert
from models.receipt import ReceiptOrder
from models.delivery import DeliveryOrder
from models.transfer import InternalTransfer
from models.adjustment import StockAdjustment
import schemas.location as location_schemas
from utils.audit import write_log
from utils.permissions import Permission
from utils.tokenJWT import permission_required

router = APIRouter(prefix="/locations", tags=["Locations"])


def _get_location_or_404(db: Session, location_id: int) -> Location:
    location = db.query(Location).filter(Location.id == location_id).first()
    if not location:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Location not found")
    return location


def _name_taken(db: Session, name: str, exclude_id: Optional[int] = None) -> bool:
    q = db.query(Location.id).filter(func.lower(Location.name) == name.lower())
    if exclude_id is not None:
        q = q.filter(Location.id != exclude_id)
    return q.first() is not None


def _counts(db: Session, column, ids: List[int]) -> dict:
    if not ids:
        return {}
    rows = db.query(column, func.count()).filter(column.in_(ids)).group_by(column).all()
    return {k: n for k, n in rows}


# Products held at a location, zero rows optional
def _location_stocks(db: Session, location_id: int, include_empty: bool) -> List[dict]:
    query = (
        db.query(Stock, Product)
        .join(Product, Product.id == Stock.product_id)
        .filter(Stock.location_id == location_id)
    )
    if not include_empty:
        query = query.filter(Stock.quantity > 0)
    rows = query.order_by(Product.name.asc()).all()
    return [
        {
            "product_id": p.id,
            "product_name": p.name,
            "sku": p.sku,
            "unit": p.unit,
            "min_stock": p.min_stock,
            "quantity": s.quantity,
        }
        for s, p in rows
    ]


@router.get("", response_model=location_schemas.LocationListPage)
def list_locations(
    q: Optional[str] = Query(None, description="Search by name or address"),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.VIEW_LOCATIONS)),
):
    query = db.query(Location)
    if q:
        like = f"%{q}%"
        query = query.filter(or_(Location.name.ilike(like), Location.address.ilike(like)))

    total = query.count()
    locations = query.order_by(Location.name.asc()).offset((page - 1) * page_size).limit(page_size).all()

    ids = [loc.id for loc in locations]
    stocks = _counts(db, Stock.location_id, ids)
    receipts = _counts(db, ReceiptOrder.location_id, ids)
    deliveries = _counts(db, DeliveryOrder.location_id, ids)

    items = [
        {
            "id": loc.id,
            "name": loc.name,
            "address": loc.address,
            "created_at": loc.created_at,
            "stocks_count": stocks.get(loc.id, 0),
            "receipts_count": receipts.get(loc.id, 0),
            "deliveries_count": deliveries.get(loc.id, 0),
        }
        for loc in locations
    ]
    return {"items": items, "total": total, "page": page, "page_size": page_size}


@router.post("", response_model=location_schemas.LocationOut, status_code=status.HTTP_201_CREATED)
def create_location(
    payload: location_schemas.LocationCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.CREATE_LOCATIONS)),
):
    name = payload.name.strip()
    if _name_taken(db, name):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Location with this name already exists")

    location = Location(name=name, address=payload.address)
    db.add(location)
    db.commit()
    db.refresh(location)

    write_log(db, user=current_user, action="CREATE", entity="location", entity_id=location.id,
              request=request, meta={"name": location.name})
    return location


@router.get("/{location_id}", response_model=location_schemas.LocationDetail)
def get_location(
    location_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.VIEW_LOCATIONS)),
):
    location = _get_location_or_404(db, location_id)
    return {
        "id": location.id,
        "name": location.name,
        "address": location.address,
        "created_at": location.created_at,
        "stocks": _location_stocks(db, location.id, include_empty=False),
    }


# Every stock row at the location, empty ones included
@router.get("/{location_id}/stocks", response_model=List[location_schemas.LocationStock])
def get_location_stocks(
    location_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.VIEW_LOCATIONS)),
):
    _get_location_or_404(db, location_id)
    return _location_stocks(db, location_id, include_empty=True)


@router.put("/{location_id}", response_model=location_schemas.LocationOut)
def update_location(
    location_id: int,
    payload: location_schemas.LocationUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.UPDATE_LOCATIONS)),
):
    location = _get_location_or_404(db, location_id)
    changes = payload.model_dump(exclude_unset=True)

    if changes.get("name"):
        name = changes["name"].strip()
        if _name_taken(db, name, exclude_id=location.id):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Location with this name already exists")
        location.name = name
    if "address" in changes:
        location.address = changes["address"]

    db.commit()
    db.refresh(location)

    write_log(db, user=current_user, action="UPDATE", entity="location", entity_id=location.id,
              request=request, meta={"changes": sorted(changes)})
    return location


@router.delete("/{location_id}")
def delete_location(
    location_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.DELETE_LOCATIONS)),
):
    location = _get_location_or_404(db, location_id)

    on_hand = db.query(Stock.id).filter(Stock.location_id == location.id, Stock.quantity > 0).first()
    if on_hand:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Cannot delete location with stock on hand")

    referenced = (
        db.query(ReceiptOrder.id).filter(ReceiptOrder.location_id == location.id).first()
        or db.query(DeliveryOrder.id).filter(DeliveryOrder.location_id == location.id).first()
        or db.query(InternalTransfer.id).filter(or_(
            InternalTransfer.from_location_id == location.id,
            InternalTransfer.to_location_id == location.id,
        )).first()
        or db.query(StockAdjustment.id).filter(StockAdjustment.location_id == location.id).first()
        or db.query(MoveHistory.id).filter(MoveHistory.location_id == location.id).first()
    )
    if referenced:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT,
                            detail="Cannot delete location referenced by documents or move history")

    db.query(LowStockAlert).filter(LowStockAlert.location_id == location.id).delete(synchronize_session=False)
    db.query(Stock).filter(Stock.location_id == location.id).delete(synchronize_session=False)
    name = location.name
    db.delete(location)
    db.commit()

    write_log(db, user=current_user, action="DELETE", entity="location", entity_id=location_id,
              request=request, meta={"name": name})
    return {"message": "Location deleted successfully"}
