# backend/routes/settings.py
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from database import get_db
from models.settings import SystemSetting
from models.users import User
import schemas.settings as settings_schemas
from utils.audit import write_log
from utils.permissions import Permission
from utils.tokenJWT import permission_required

router = APIRouter(prefix="/settings", tags=["Settings"])
logger = logging.getLogger(__name__)

DEFAULT_SETTINGS = [
    {"key": "low_stock_threshold", "value": "10", "category": "inventory",
     "description": "Default low stock threshold"},
    {"key": "critical_stock_threshold", "value": "5", "category": "inventory",
     "description": "Critical stock threshold"},
    {"key": "enable_email_notifications", "value": "false", "category": "notifications",
     "description": "Enable email notifications"},
    {"key": "enable_low_stock_alerts", "value": "true", "category": "notifications",
     "description": "Raise low stock alerts after every stock change"},
    {"key": "auto_generate_alerts", "value": "true", "category": "system",
     "description": "Automatically generate low stock alerts"},
    {"key": "date_format", "value": "MM/DD/YYYY", "category": "general",
     "description": "Date display format"},
    {"key": "timezone", "value": "America/New_York", "category": "general",
     "description": "System timezone"},
    {"key": "items_per_page", "value": "20", "category": "general",
     "description": "Default items per page"},
]


def _upsert(db: Session, key: str, item: settings_schemas.SettingUpsert) -> SystemSetting:
    row = db.query(SystemSetting).filter(SystemSetting.key == key).first()
    if row is None:
        row = SystemSetting(key=key, category=item.category or "general")
        db.add(row)
    elif item.category:
        row.category = item.category
    row.value = item.value
    if item.description is not None:
        row.description = item.description
    return row


@router.get("", response_model=List[settings_schemas.SettingOut])
def list_settings(
    category: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.MANAGE_SETTINGS)),
):
    query = db.query(SystemSetting)
    if category:
        query = query.filter(SystemSetting.category == category)
    return query.order_by(SystemSetting.category.asc(), SystemSetting.key.asc()).all()


# Fixed paths come before /{key}
@router.post("/bulk", response_model=List[settings_schemas.SettingOut])
def bulk_update(
    payload: settings_schemas.SettingBulkUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.MANAGE_SETTINGS)),
):
    rows = []
    for item in payload.settings:
        rows.append(_upsert(db, item.key, item))
        # Later entries for the same key must see the pending row
        db.flush()
    db.commit()
    for row in rows:
        db.refresh(row)

    write_log(db, user=current_user, action="BULK_UPDATE", entity="setting", request=request,
              meta={"keys": [item.key for item in payload.settings]})
    return rows


@router.post("/initialize")
def initialize_defaults(
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.MANAGE_SETTINGS)),
):
    existing = {key for (key,) in db.query(SystemSetting.key).all()}
    created = 0
    for default in DEFAULT_SETTINGS:
        # Values an administrator already set are left alone
        if default["key"] in existing:
            continue
        db.add(SystemSetting(**default))
        created += 1
    db.commit()

    logger.info("Default settings initialized by user %s (%s new)", current_user.id, created)
    write_log(db, user=current_user, action="INITIALIZE", entity="setting", request=request,
              meta={"created": created})
    return {"message": "Default settings initialized", "count": len(DEFAULT_SETTINGS), "created": created}


@router.get("/{key}", response_model=settings_schemas.SettingOut)
def get_setting(
    key: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.MANAGE_SETTINGS)),
):
    row = db.query(SystemSetting).filter(SystemSetting.key == key).first()
    if not row:
        raise HTTPException(status_code=404, detail="Setting not found")
    return row


@router.put("/{key}", response_model=settings_schemas.SettingOut)
def put_setting(
    key: str,
    payload: settings_schemas.SettingUpsert,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.MANAGE_SETTINGS)),
):
    row = _upsert(db, key, payload)
    db.commit()
    db.refresh(row)

    write_log(db, user=current_user, action="UPDATE", entity="setting", entity_id=key,
              request=request, meta={"value": row.value})
    return row


@router.delete("/{key}")
def delete_setting(
    key: str,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.MANAGE_SETTINGS)),
):
    row = db.query(SystemSetting).filter(SystemSetting.key == key).first()
    if not row:
        raise HTTPException(status_code=404, detail="Setting not found")
    db.delete(row)
    db.commit()

    write_log(db, user=current_user, action="DELETE", entity="setting", entity_id=key, request=request)
    return {"message": "Setting deleted successfully"}
