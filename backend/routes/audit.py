# backend/routes/audit.py
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from database import get_db
from models.log import AuditLog
from models.users import User
import schemas.audit as audit_schemas
from utils.audit import write_log
from utils.dates import parse_date
from utils.permissions import Permission
from utils.tokenJWT import permission_required

router = APIRouter(prefix="/audit", tags=["Audit"])
logger = logging.getLogger(__name__)

TOP_LIMIT = 10


def _filtered(db: Session, action=None, entity=None, user_id=None, status=None,
              date_from=None, date_to=None):
    query = db.query(AuditLog)
    if action:
        query = query.filter(AuditLog.action.ilike(f"%{action}%"))
    if entity:
        query = query.filter(AuditLog.entity.ilike(f"%{entity}%"))
    if user_id is not None:
        query = query.filter(AuditLog.user_id == user_id)
    if status:
        query = query.filter(AuditLog.status == status.upper())

    dt_from = parse_date(date_from)
    dt_to = parse_date(date_to, end_of_day=True)
    if dt_from:
        query = query.filter(AuditLog.ts >= dt_from)
    if dt_to:
        query = query.filter(AuditLog.ts <= dt_to)
    return query


def _page(query, page: int, page_size: int):
    total = query.count()
    logs = (
        query.order_by(AuditLog.ts.desc(), AuditLog.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return {"items": logs, "total": total, "page": page, "page_size": page_size}


@router.get("", response_model=audit_schemas.AuditLogPage)
def get_logs(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    action: Optional[str] = Query(None, description="Substring of the action"),
    entity: Optional[str] = Query(None, description="Substring of the entity"),
    user_id: Optional[int] = Query(None),
    status: Optional[str] = Query(None, description="SUCCESS or FAIL"),
    date_from: Optional[str] = Query(None, description="YYYY-MM-DD or ISO datetime"),
    date_to: Optional[str] = Query(None, description="YYYY-MM-DD or ISO datetime"),
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.VIEW_AUDIT)),
):
    query = _filtered(db, action, entity, user_id, status, date_from, date_to)
    return _page(query, page, page_size)


@router.get("/stats", response_model=audit_schemas.AuditStats)
def get_stats(
    date_from: Optional[str] = Query(None),
    date_to: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.VIEW_AUDIT)),
):
    base = _filtered(db, date_from=date_from, date_to=date_to)
    ids = base.with_entities(AuditLog.id).subquery()

    def grouped(*columns):
        return (
            db.query(*columns, func.count(AuditLog.id).label("count"))
            .filter(AuditLog.id.in_(select(ids.c.id)))
            .group_by(*columns)
        )

    actions = grouped(AuditLog.action).order_by(AuditLog.action.asc()).all()
    entities = (
        grouped(AuditLog.entity)
        .order_by(func.count(AuditLog.id).desc(), AuditLog.entity.asc())
        .limit(TOP_LIMIT)
        .all()
    )
    users = (
        grouped(AuditLog.user_id, AuditLog.user_name)
        .filter(AuditLog.user_id.isnot(None))
        .order_by(func.count(AuditLog.id).desc(), AuditLog.user_id.asc())
        .limit(TOP_LIMIT)
        .all()
    )

    return {
        "total_logs": base.count(),
        "action_stats": [{"action": a, "count": c} for a, c in actions],
        "entity_stats": [{"entity": e, "count": c} for e, c in entities],
        "user_activity": [{"user_id": u, "user_name": n, "count": c} for u, n, c in users],
    }


@router.delete("/cleanup")
def cleanup_logs(
    request: Request,
    days: int = Query(90, ge=1, description="Delete entries older than this many days"),
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.MANAGE_USERS)),
):
    cutoff = datetime.now(timezone.utc) - timedelta(days=days)
    count = (
        db.query(AuditLog)
        .filter(AuditLog.ts < cutoff)
        .delete(synchronize_session=False)
    )
    db.commit()
    logger.info("Audit cleanup by user %s removed %s entries older than %s days",
                current_user.id, count, days)

    write_log(db, user=current_user, action="CLEANUP", entity="audit", request=request,
              meta={"days": days, "deleted": count})
    return {"message": f"Deleted {count} audit logs older than {days} days", "count": count}


@router.get("/user/{user_id}", response_model=audit_schemas.AuditLogPage)
def get_user_logs(
    user_id: int,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.VIEW_AUDIT)),
):
    return _page(db.query(AuditLog).filter(AuditLog.user_id == user_id), page, page_size)


@router.get("/entity/{entity}", response_model=audit_schemas.AuditLogPage)
def get_entity_logs(
    entity: str,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.VIEW_AUDIT)),
):
    return _page(db.query(AuditLog).filter(AuditLog.entity == entity), page, page_size)


@router.get("/entity/{entity}/{entity_id}", response_model=audit_schemas.AuditLogPage)
def get_entity_record_logs(
    entity: str,
    entity_id: str,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.VIEW_AUDIT)),
):
    query = db.query(AuditLog).filter(AuditLog.entity == entity, AuditLog.entity_id == entity_id)
    return _page(query, page, page_size)


@router.get("/{log_id}", response_model=audit_schemas.AuditLogOut)
def get_log(
    log_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.VIEW_AUDIT)),
):
    entry = db.query(AuditLog).filter(AuditLog.id == log_id).first()
    if not entry:
        raise HTTPException(status_code=404, detail="Audit log not found")
    return entry
