# backend/routes/receipts.py
import logging
from collections import OrderedDict
from typing import Optional, Literal

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session, joinedload

from database import get_db
from models.users import User
from models.vendor import Vendor
from models.receipt import ReceiptOrder, ReceiptItem
from models.stock import MoveType
from schemas.common import DocumentAction
import schemas.receipt as receipt_schemas
from utils.audit import write_log
from utils.inventory import (
    claim_document, document_number, get_location_or_404, get_product_or_404,
    increase_stock, utcnow,
)
from utils.permissions import Permission
from utils.tokenJWT import permission_required

router = APIRouter(prefix="/receipts", tags=["Receipts"])
logger = logging.getLogger(__name__)


def _load(db: Session, receipt_id: int) -> ReceiptOrder:
    receipt = (
        db.query(ReceiptOrder)
        .options(
            joinedload(ReceiptOrder.vendor),
            joinedload(ReceiptOrder.location),
            joinedload(ReceiptOrder.user),
            joinedload(ReceiptOrder.items).joinedload(ReceiptItem.product),
        )
        .filter(ReceiptOrder.id == receipt_id)
        .first()
    )
    if not receipt:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Receipt not found")
    return receipt


@router.get("", response_model=receipt_schemas.ReceiptListPage)
def list_receipts(
    status_filter: Optional[Literal["validated", "pending"]] = Query(None, alias="status"),
    vendor_id: Optional[int] = Query(None),
    location_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.VIEW_RECEIPTS)),
):
    query = db.query(ReceiptOrder)

    if status_filter:
        query = query.filter(ReceiptOrder.is_validated.is_(status_filter == "validated"))
    if vendor_id is not None:
        query = query.filter(ReceiptOrder.vendor_id == vendor_id)
    if location_id is not None:
        query = query.filter(ReceiptOrder.location_id == location_id)

    total = query.count()
    receipts = (
        query.options(
            joinedload(ReceiptOrder.vendor),
            joinedload(ReceiptOrder.location),
            joinedload(ReceiptOrder.user),
            joinedload(ReceiptOrder.items).joinedload(ReceiptItem.product),
        )
        .order_by(ReceiptOrder.created_at.desc(), ReceiptOrder.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return {"items": receipts, "total": total, "page": page, "page_size": page_size}


# Create a draft receipt; stock is untouched until validation
@router.post("", response_model=receipt_schemas.ReceiptOut, status_code=status.HTTP_201_CREATED)
def create_receipt(
    payload: receipt_schemas.ReceiptCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.CREATE_RECEIPTS)),
):
    vendor = db.query(Vendor).filter(Vendor.id == payload.vendor_id).first()
    if not vendor:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vendor not found")
    get_location_or_404(db, payload.location_id)

    # Repeated products collapse into one line
    lines = OrderedDict()
    for item in payload.items:
        get_product_or_404(db, item.product_id)
        lines[item.product_id] = lines.get(item.product_id, 0) + item.quantity_received

    receipt = ReceiptOrder(
        vendor_id=vendor.id,
        location_id=payload.location_id,
        user_id=current_user.id,
        notes=payload.notes,
        total_items=sum(lines.values()),
        is_validated=False,
    )
    db.add(receipt)
    db.flush()
    receipt.receipt_number = document_number("RCP", receipt.id)
    for product_id, qty in lines.items():
        db.add(ReceiptItem(receipt_id=receipt.id, product_id=product_id, quantity_received=qty))
    db.commit()

    write_log(db, user=current_user, action="CREATE", entity="receipt", entity_id=receipt.id,
              request=request, meta={"number": receipt.receipt_number, "items": len(lines)})
    return _load(db, receipt.id)


@router.get("/{receipt_id}", response_model=receipt_schemas.ReceiptOut)
def get_receipt(
    receipt_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.VIEW_RECEIPTS)),
):
    return _load(db, receipt_id)


# Validate a receipt: stock goes up at the receipt location, one RECEIPT move per line
@router.post("/{receipt_id}/validate", response_model=receipt_schemas.ReceiptOut)
def validate_receipt(
    receipt_id: int,
    payload: DocumentAction,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.VALIDATE_RECEIPTS)),
):
    if payload.action != "validate":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail='Invalid action. Only "validate" is supported')

    receipt = _load(db, receipt_id)
    if receipt.is_validated:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Receipt is already validated")

    try:
        # Only one concurrent caller wins the claim
        if not claim_document(db, ReceiptOrder, receipt.id, "is_validated",
                              {"validated_at": utcnow(), "validated_by": current_user.id}):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Receipt is already validated")

        for item in receipt.items:
            increase_stock(
                db,
                product=item.product,
                location_id=receipt.location_id,
                quantity=item.quantity_received,
                user_id=current_user.id,
                move_type=MoveType.RECEIPT,
                reference_id=receipt.id,
                notes=f"Receipt {receipt.receipt_number}",
            )
        db.commit()
    except HTTPException:
        db.rollback()
        raise

    logger.info("Receipt %s validated by user %s", receipt.receipt_number, current_user.id)
    write_log(db, user=current_user, action="VALIDATE", entity="receipt", entity_id=receipt.id,
              request=request, meta={"number": receipt.receipt_number, "total_items": receipt.total_items})
    return _load(db, receipt.id)
