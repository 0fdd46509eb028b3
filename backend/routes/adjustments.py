# backend/routes/adjustments.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session, joinedload

from database import get_db
from models.users import User
from models.adjustment import StockAdjustment
import schemas.adjustment as adjustment_schemas
from utils.audit import write_log
from utils.inventory import apply_delta, document_number, get_location_or_404, get_product_or_404
from utils.permissions import Permission
from utils.tokenJWT import permission_required

router = APIRouter(prefix="/adjustments", tags=["Adjustments"])
logger = logging.getLogger(__name__)


def _load(db: Session, adjustment_id: int) -> StockAdjustment:
    adjustment = (
        db.query(StockAdjustment)
        .options(
            joinedload(StockAdjustment.location),
            joinedload(StockAdjustment.product),
            joinedload(StockAdjustment.user),
        )
        .filter(StockAdjustment.id == adjustment_id)
        .first()
    )
    if not adjustment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Adjustment not found")
    return adjustment


@router.get("", response_model=adjustment_schemas.AdjustmentListPage)
def list_adjustments(
    location_id: Optional[int] = Query(None),
    product_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.VIEW_MOVE_HISTORY)),
):
    query = db.query(StockAdjustment)
    if location_id is not None:
        query = query.filter(StockAdjustment.location_id == location_id)
    if product_id is not None:
        query = query.filter(StockAdjustment.product_id == product_id)

    total = query.count()
    items = (
        query.options(
            joinedload(StockAdjustment.location),
            joinedload(StockAdjustment.product),
            joinedload(StockAdjustment.user),
        )
        .order_by(StockAdjustment.created_at.desc(), StockAdjustment.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return {"items": items, "total": total, "page": page, "page_size": page_size}


# Adjustments take effect immediately; there is no draft state
@router.post("", response_model=adjustment_schemas.AdjustmentOut, status_code=status.HTTP_201_CREATED)
def create_adjustment(
    payload: adjustment_schemas.AdjustmentCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.ADJUST_STOCK)),
):
    reason = (payload.reason or "").strip()
    if not reason:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Reason is required")
    if payload.quantity_change == 0:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Quantity change must be non-zero")

    location = get_location_or_404(db, payload.location_id)
    product = get_product_or_404(db, payload.product_id)

    try:
        adjustment = StockAdjustment(
            location_id=location.id,
            product_id=product.id,
            user_id=current_user.id,
            quantity_change=payload.quantity_change,
            reason=reason,
            notes=payload.notes,
        )
        db.add(adjustment)
        db.flush()
        adjustment.adjustment_number = document_number("ADJ", adjustment.id)

        apply_delta(
            db, product=product, location_id=location.id, delta=payload.quantity_change,
            user_id=current_user.id, reference_id=adjustment.id,
            notes=f"Adjustment {adjustment.adjustment_number}: {reason}",
        )
        db.commit()
    except HTTPException as exc:
        db.rollback()
        logger.warning("Adjustment of product %s at location %s rejected: %s",
                       payload.product_id, payload.location_id, exc.detail)
        raise

    write_log(db, user=current_user, action="CREATE", entity="adjustment", entity_id=adjustment.id,
              request=request, meta={"number": adjustment.adjustment_number,
                                     "quantity_change": payload.quantity_change, "reason": reason})
    return _load(db, adjustment.id)


@router.get("/{adjustment_id}", response_model=adjustment_schemas.AdjustmentOut)
def get_adjustment(
    adjustment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.VIEW_MOVE_HISTORY)),
):
    return _load(db, adjustment_id)
