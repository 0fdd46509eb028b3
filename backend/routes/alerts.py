# backend/routes/alerts.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import case, func
from sqlalchemy.orm import Session, joinedload

from database import get_db
from models.users import User
from models.alert import LowStockAlert, AlertSeverity
import schemas.alert as alert_schemas
from utils.alerts import regenerate_alerts
from utils.audit import write_log
from utils.inventory import utcnow
from utils.permissions import Permission
from utils.tokenJWT import permission_required

router = APIRouter(prefix="/alerts", tags=["Alerts"])
logger = logging.getLogger(__name__)

# CRITICAL first
SEVERITY_RANK = case(
    (LowStockAlert.severity == AlertSeverity.CRITICAL.value, 0),
    (LowStockAlert.severity == AlertSeverity.WARNING.value, 1),
    else_=2,
)


def _get_alert_or_404(db: Session, alert_id: int) -> LowStockAlert:
    alert = db.query(LowStockAlert).filter(LowStockAlert.id == alert_id).first()
    if not alert:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Alert not found")
    return alert


@router.get("", response_model=alert_schemas.AlertPage)
def list_alerts(
    severity: Optional[AlertSeverity] = Query(None),
    is_read: Optional[bool] = Query(None),
    location_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.VIEW_REPORTS)),
):
    query = db.query(LowStockAlert)
    if severity is not None:
        query = query.filter(LowStockAlert.severity == severity.value)
    if is_read is not None:
        query = query.filter(LowStockAlert.is_read.is_(is_read))
    if location_id is not None:
        query = query.filter(LowStockAlert.location_id == location_id)

    total = query.count()
    alerts = (
        query.options(joinedload(LowStockAlert.product), joinedload(LowStockAlert.location))
        .order_by(
            LowStockAlert.is_read.asc(),
            SEVERITY_RANK,
            LowStockAlert.updated_at.desc(),
            LowStockAlert.id.desc(),
        )
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return {"items": alerts, "total": total, "page": page, "page_size": page_size}


@router.get("/stats", response_model=alert_schemas.AlertStats)
def alert_stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.VIEW_REPORTS)),
):
    by_severity = dict(
        db.query(LowStockAlert.severity, func.count(LowStockAlert.id))
        .group_by(LowStockAlert.severity)
        .all()
    )
    unread = db.query(LowStockAlert).filter(LowStockAlert.is_read.is_(False)).count()
    return {
        "total": sum(by_severity.values()),
        "unread": unread,
        "critical": by_severity.get(AlertSeverity.CRITICAL.value, 0),
        "warning": by_severity.get(AlertSeverity.WARNING.value, 0),
        "low": by_severity.get(AlertSeverity.LOW.value, 0),
    }


# Full rescan of every stock row, regardless of the auto-refresh setting
@router.post("/check")
def check_alerts(
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.VIEW_REPORTS)),
):
    generated = regenerate_alerts(db)
    logger.info("Alert rescan by user %s: %s open alerts", current_user.id, generated)
    write_log(db, user=current_user, action="CHECK", entity="alert", request=request,
              meta={"alerts": generated})
    return {"message": "Low stock check completed", "alerts": generated}


@router.patch("/read-all")
def mark_all_read(
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.VIEW_REPORTS)),
):
    updated = (
        db.query(LowStockAlert)
        .filter(LowStockAlert.is_read.is_(False))
        .update({LowStockAlert.is_read: True, LowStockAlert.read_at: utcnow()}, synchronize_session=False)
    )
    db.commit()
    return {"message": "All alerts marked as read", "updated": updated}


@router.patch("/{alert_id}/read", response_model=alert_schemas.AlertOut)
def mark_read(
    alert_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.VIEW_REPORTS)),
):
    alert = _get_alert_or_404(db, alert_id)
    if not alert.is_read:
        alert.is_read = True
        alert.read_at = utcnow()
        db.commit()
        db.refresh(alert)
    return alert


# Dismiss an alert; the next stock move at that location raises it again
@router.delete("/{alert_id}")
def delete_alert(
    alert_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.VIEW_REPORTS)),
):
    alert = _get_alert_or_404(db, alert_id)
    db.delete(alert)
    db.commit()
    write_log(db, user=current_user, action="DELETE", entity="alert", entity_id=alert_id, request=request)
    return {"message": "Alert deleted successfully"}
