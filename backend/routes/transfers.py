# backend/routes/transfers.py
import logging
from typing import Optional, Literal

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from database import get_db
from models.users import User
from models.transfer import InternalTransfer
from models.stock import MoveType
from schemas.common import DocumentAction
import schemas.transfer as transfer_schemas
from utils.audit import write_log
from utils.inventory import (
    claim_document, decrease_stock, document_number, ensure_available,
    get_location_or_404, get_product_or_404, increase_stock, utcnow,
)
from utils.permissions import Permission
from utils.tokenJWT import permission_required

router = APIRouter(prefix="/transfers", tags=["Transfers"])
logger = logging.getLogger(__name__)


def _load(db: Session, transfer_id: int) -> InternalTransfer:
    transfer = (
        db.query(InternalTransfer)
        .options(
            joinedload(InternalTransfer.from_location),
            joinedload(InternalTransfer.to_location),
            joinedload(InternalTransfer.product),
            joinedload(InternalTransfer.user),
        )
        .filter(InternalTransfer.id == transfer_id)
        .first()
    )
    if not transfer:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Transfer not found")
    return transfer


@router.get("", response_model=transfer_schemas.TransferListPage)
def list_transfers(
    status_filter: Optional[Literal["applied", "pending"]] = Query(None, alias="status"),
    location_id: Optional[int] = Query(None, description="Source or destination"),
    product_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.VIEW_MOVE_HISTORY)),
):
    query = db.query(InternalTransfer)

    if status_filter:
        query = query.filter(InternalTransfer.is_applied.is_(status_filter == "applied"))
    if location_id is not None:
        query = query.filter(or_(
            InternalTransfer.from_location_id == location_id,
            InternalTransfer.to_location_id == location_id,
        ))
    if product_id is not None:
        query = query.filter(InternalTransfer.product_id == product_id)

    total = query.count()
    transfers = (
        query.options(
            joinedload(InternalTransfer.from_location),
            joinedload(InternalTransfer.to_location),
            joinedload(InternalTransfer.product),
            joinedload(InternalTransfer.user),
        )
        .order_by(InternalTransfer.created_at.desc(), InternalTransfer.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return {"items": transfers, "total": total, "page": page, "page_size": page_size}


@router.post("", response_model=transfer_schemas.TransferOut, status_code=status.HTTP_201_CREATED)
def create_transfer(
    payload: transfer_schemas.TransferCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.TRANSFER_STOCK)),
):
    if payload.from_location_id == payload.to_location_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail="Source and destination locations must be different")

    source = get_location_or_404(db, payload.from_location_id)
    get_location_or_404(db, payload.to_location_id)
    product = get_product_or_404(db, payload.product_id)
    ensure_available(db, product, source.id, payload.quantity)

    transfer = InternalTransfer(
        from_location_id=payload.from_location_id,
        to_location_id=payload.to_location_id,
        product_id=product.id,
        user_id=current_user.id,
        quantity=payload.quantity,
        notes=payload.notes,
        is_applied=False,
    )
    db.add(transfer)
    db.flush()
    transfer.transfer_number = document_number("TRN", transfer.id)
    db.commit()

    write_log(db, user=current_user, action="CREATE", entity="transfer", entity_id=transfer.id,
              request=request, meta={"number": transfer.transfer_number, "quantity": transfer.quantity})
    return _load(db, transfer.id)


@router.get("/{transfer_id}", response_model=transfer_schemas.TransferOut)
def get_transfer(
    transfer_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.VIEW_MOVE_HISTORY)),
):
    return _load(db, transfer_id)


# Apply a transfer: TRANSFER_OUT at the source and TRANSFER_IN at the destination
@router.post("/{transfer_id}/apply", response_model=transfer_schemas.TransferOut)
def apply_transfer(
    transfer_id: int,
    payload: DocumentAction,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.TRANSFER_STOCK)),
):
    if payload.action != "apply":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail='Invalid action. Only "apply" is supported')

    transfer = _load(db, transfer_id)
    if transfer.is_applied:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Transfer is already applied")

    try:
        if not claim_document(db, InternalTransfer, transfer.id, "is_applied",
                              {"applied_at": utcnow(), "applied_by": current_user.id}):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Transfer is already applied")

        note = f"Transfer {transfer.transfer_number}"
        decrease_stock(
            db, product=transfer.product, location_id=transfer.from_location_id,
            quantity=transfer.quantity, user_id=current_user.id, move_type=MoveType.TRANSFER_OUT,
            reference_id=transfer.id, notes=f"{note} to {transfer.to_location.name}",
        )
        increase_stock(
            db, product=transfer.product, location_id=transfer.to_location_id,
            quantity=transfer.quantity, user_id=current_user.id, move_type=MoveType.TRANSFER_IN,
            reference_id=transfer.id, notes=f"{note} from {transfer.from_location.name}",
        )
        db.commit()
    except HTTPException as exc:
        db.rollback()
        logger.warning("Transfer %s not applied: %s", transfer_id, exc.detail)
        raise

    write_log(db, user=current_user, action="APPLY", entity="transfer", entity_id=transfer.id,
              request=request, meta={"number": transfer.transfer_number, "quantity": transfer.quantity})
    return _load(db, transfer.id)
