# backend/routes/company.py
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from database import get_db
from models.company import CompanyInfo
from models.users import User
from schemas.company import CompanyOut, CompanyUpdate
from utils.audit import write_log
from utils.permissions import Permission
from utils.tokenJWT import get_current_user, permission_required

router = APIRouter(prefix="/company", tags=["Company"])

# Single-row table; shown on delivery notes


@router.get("", response_model=CompanyOut)
def get_company(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    c = db.query(CompanyInfo).first()
    if not c:
        # Nothing saved yet
        return CompanyOut(id=0, company_name="StockMaster", currency="USD")
    return c


@router.put("", response_model=CompanyOut)
def update_company(
    payload: CompanyUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.MANAGE_SETTINGS)),
):
    c = db.query(CompanyInfo).first()
    if not c:
        c = CompanyInfo()
        db.add(c)

    changes = payload.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(c, field, value)
    if c.currency:
        c.currency = c.currency.upper()

    db.commit()
    db.refresh(c)

    write_log(db, user=current_user, action="UPDATE", entity="company", entity_id=c.id,
              request=request, meta={"fields": sorted(changes)})
    return c
