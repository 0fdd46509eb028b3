# backend/routes/vendors.py
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import or_, func
from sqlalchemy.orm import Session

from database import get_db
from models.users import User
from models.vendor import Vendor
from models.receipt import ReceiptOrder
import schemas.vendor as vendor_schemas
from utils.audit import write_log
from utils.permissions import Permission
from utils.tokenJWT import permission_required

router = APIRouter(prefix="/vendors", tags=["Vendors"])


def _get_vendor_or_404(db: Session, vendor_id: int) -> Vendor:
    vendor = db.query(Vendor).filter(Vendor.id == vendor_id).first()
    if not vendor:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vendor not found")
    return vendor


# Vendor emails are optional but unique once set
def _email_taken(db: Session, email: Optional[str], exclude_id: Optional[int] = None) -> bool:
    if not email:
        return False
    q = db.query(Vendor.id).filter(func.lower(Vendor.email) == email.lower())
    if exclude_id is not None:
        q = q.filter(Vendor.id != exclude_id)
    return q.first() is not None


@router.get("", response_model=vendor_schemas.VendorListPage)
def list_vendors(
    q: Optional[str] = Query(None, description="Search by name or email"),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.VIEW_VENDORS)),
):
    counts = (
        db.query(ReceiptOrder.vendor_id.label("vendor_id"), func.count(ReceiptOrder.id).label("n"))
        .group_by(ReceiptOrder.vendor_id)
        .subquery()
    )
    query = db.query(Vendor, func.coalesce(counts.c.n, 0)).outerjoin(counts, counts.c.vendor_id == Vendor.id)
    if q:
        like = f"%{q}%"
        query = query.filter(or_(Vendor.name.ilike(like), Vendor.email.ilike(like)))

    total = query.count()
    rows = query.order_by(Vendor.name.asc(), Vendor.id.asc()).offset((page - 1) * page_size).limit(page_size).all()

    items = [
        {
            "id": v.id,
            "name": v.name,
            "email": v.email,
            "phone": v.phone,
            "address": v.address,
            "created_at": v.created_at,
            "receipts_count": n,
        }
        for v, n in rows
    ]
    return {"items": items, "total": total, "page": page, "page_size": page_size}


@router.post("", response_model=vendor_schemas.VendorOut, status_code=status.HTTP_201_CREATED)
def create_vendor(
    payload: vendor_schemas.VendorCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.CREATE_VENDORS)),
):
    email = payload.email.lower() if payload.email else None
    if _email_taken(db, email):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Vendor with this email already exists")

    vendor = Vendor(name=payload.name.strip(), email=email, phone=payload.phone, address=payload.address)
    db.add(vendor)
    db.commit()
    db.refresh(vendor)

    write_log(db, user=current_user, action="CREATE", entity="vendor", entity_id=vendor.id,
              request=request, meta={"name": vendor.name})
    return vendor


@router.get("/{vendor_id}", response_model=vendor_schemas.VendorDetail)
def get_vendor(
    vendor_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.VIEW_VENDORS)),
):
    vendor = _get_vendor_or_404(db, vendor_id)
    latest = (
        db.query(ReceiptOrder)
        .filter(ReceiptOrder.vendor_id == vendor.id)
        .order_by(ReceiptOrder.created_at.desc(), ReceiptOrder.id.desc())
        .limit(10)
        .all()
    )
    return {
        "id": vendor.id,
        "name": vendor.name,
        "email": vendor.email,
        "phone": vendor.phone,
        "address": vendor.address,
        "created_at": vendor.created_at,
        "receipts": latest,
    }


@router.put("/{vendor_id}", response_model=vendor_schemas.VendorOut)
def update_vendor(
    vendor_id: int,
    payload: vendor_schemas.VendorUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.UPDATE_VENDORS)),
):
    vendor = _get_vendor_or_404(db, vendor_id)
    changes = payload.model_dump(exclude_unset=True)

    if changes.get("email"):
        email = changes["email"].lower()
        if _email_taken(db, email, exclude_id=vendor.id):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Vendor with this email already exists")
        changes["email"] = email
    if "name" in changes and not changes["name"]:
        changes.pop("name")

    for field, value in changes.items():
        setattr(vendor, field, value)
    db.commit()
    db.refresh(vendor)

    write_log(db, user=current_user, action="UPDATE", entity="vendor", entity_id=vendor.id,
              request=request, meta={"changes": sorted(changes)})
    return vendor


@router.delete("/{vendor_id}")
def delete_vendor(
    vendor_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.DELETE_VENDORS)),
):
    vendor = _get_vendor_or_404(db, vendor_id)

    if db.query(ReceiptOrder.id).filter(ReceiptOrder.vendor_id == vendor.id).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Cannot delete vendor with existing receipts")

    name = vendor.name
    db.delete(vendor)
    db.commit()

    write_log(db, user=current_user, action="DELETE", entity="vendor", entity_id=vendor_id,
              request=request, meta={"name": name})
    return {"message": "Vendor deleted successfully"}
