# backend/routes/deliveries.py
import logging
from collections import OrderedDict
from typing import Optional, Literal

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session, joinedload

from database import get_db
from models.users import User
from models.company import CompanyInfo
from models.delivery import DeliveryOrder, DeliveryItem
from models.stock import MoveType
from schemas.common import DocumentAction
import schemas.delivery as delivery_schemas
from utils.audit import write_log
from utils.inventory import (
    claim_document, decrease_stock, document_number, ensure_available,
    get_location_or_404, get_product_or_404, utcnow,
)
from utils.pdf import delivery_pdf_path, generate_delivery_pdf
from utils.permissions import Permission
from utils.tokenJWT import permission_required

router = APIRouter(prefix="/deliveries", tags=["Deliveries"])
logger = logging.getLogger(__name__)


def _load(db: Session, delivery_id: int) -> DeliveryOrder:
    delivery = (
        db.query(DeliveryOrder)
        .options(
            joinedload(DeliveryOrder.location),
            joinedload(DeliveryOrder.user),
            joinedload(DeliveryOrder.items).joinedload(DeliveryItem.product),
        )
        .filter(DeliveryOrder.id == delivery_id)
        .first()
    )
    if not delivery:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Delivery not found")
    return delivery


@router.get("", response_model=delivery_schemas.DeliveryListPage)
def list_deliveries(
    status_filter: Optional[Literal["validated", "pending"]] = Query(None, alias="status"),
    location_id: Optional[int] = Query(None),
    customer: Optional[str] = Query(None, description="Search by customer name"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.VIEW_DELIVERIES)),
):
    query = db.query(DeliveryOrder)

    if status_filter:
        query = query.filter(DeliveryOrder.is_validated.is_(status_filter == "validated"))
    if location_id is not None:
        query = query.filter(DeliveryOrder.location_id == location_id)
    if customer:
        query = query.filter(DeliveryOrder.customer_name.ilike(f"%{customer}%"))

    total = query.count()
    deliveries = (
        query.options(
            joinedload(DeliveryOrder.location),
            joinedload(DeliveryOrder.user),
            joinedload(DeliveryOrder.items).joinedload(DeliveryItem.product),
        )
        .order_by(DeliveryOrder.created_at.desc(), DeliveryOrder.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return {"items": deliveries, "total": total, "page": page, "page_size": page_size}


# Create a draft delivery; availability is checked now and again at validation
@router.post("", response_model=delivery_schemas.DeliveryOut, status_code=status.HTTP_201_CREATED)
def create_delivery(
    payload: delivery_schemas.DeliveryCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.CREATE_DELIVERIES)),
):
    location = get_location_or_404(db, payload.location_id)

    lines = OrderedDict()
    for item in payload.items:
        lines[item.product_id] = lines.get(item.product_id, 0) + item.quantity_delivered
    for product_id, qty in lines.items():
        ensure_available(db, get_product_or_404(db, product_id), location.id, qty)

    delivery = DeliveryOrder(
        location_id=location.id,
        user_id=current_user.id,
        customer_name=payload.customer_name,
        shipping_address=payload.shipping_address,
        notes=payload.notes,
        total_items=sum(lines.values()),
        is_validated=False,
    )
    db.add(delivery)
    db.flush()
    delivery.delivery_number = document_number("DEL", delivery.id)
    for product_id, qty in lines.items():
        db.add(DeliveryItem(delivery_id=delivery.id, product_id=product_id, quantity_delivered=qty))
    db.commit()

    write_log(db, user=current_user, action="CREATE", entity="delivery", entity_id=delivery.id,
              request=request, meta={"number": delivery.delivery_number, "items": len(lines)})
    return _load(db, delivery.id)


@router.get("/{delivery_id}", response_model=delivery_schemas.DeliveryOut)
def get_delivery(
    delivery_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.VIEW_DELIVERIES)),
):
    return _load(db, delivery_id)


# Validate a delivery: every line is deducted or none is
@router.post("/{delivery_id}/validate", response_model=delivery_schemas.DeliveryOut)
def validate_delivery(
    delivery_id: int,
    payload: DocumentAction,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.VALIDATE_DELIVERIES)),
):
    if payload.action != "validate":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail='Invalid action. Only "validate" is supported')

    delivery = _load(db, delivery_id)
    if delivery.is_validated:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Delivery is already validated")

    try:
        if not claim_document(db, DeliveryOrder, delivery.id, "is_validated",
                              {"validated_at": utcnow(), "validated_by": current_user.id}):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Delivery is already validated")

        for item in delivery.items:
            decrease_stock(
                db,
                product=item.product,
                location_id=delivery.location_id,
                quantity=item.quantity_delivered,
                user_id=current_user.id,
                move_type=MoveType.DELIVERY,
                reference_id=delivery.id,
                notes=f"Delivery {delivery.delivery_number}",
            )
        db.commit()
    except HTTPException as exc:
        db.rollback()
        logger.warning("Delivery %s not validated: %s", delivery_id, exc.detail)
        raise

    logger.info("Delivery %s validated by user %s", delivery.delivery_number, current_user.id)
    write_log(db, user=current_user, action="VALIDATE", entity="delivery", entity_id=delivery.id,
              request=request, meta={"number": delivery.delivery_number, "total_items": delivery.total_items})
    return _load(db, delivery.id)


# Delivery note as PDF, regenerated on every request
@router.get("/{delivery_id}/pdf")
def download_delivery_pdf(
    delivery_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.VIEW_DELIVERIES)),
):
    delivery = _load(db, delivery_id)
    company = db.query(CompanyInfo).first()
    path = generate_delivery_pdf(delivery, delivery_pdf_path(delivery), company)
    return FileResponse(str(path), media_type="application/pdf", filename=path.name)
