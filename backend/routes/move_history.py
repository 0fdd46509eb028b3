# backend/routes/move_history.py
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session, joinedload

from database import get_db
from models.users import User, Role
from models.stock import MoveHistory, MoveType
import schemas.stock as stock_schemas
from utils.dates import parse_date
from utils.permissions import Permission
from utils.tokenJWT import permission_required

router = APIRouter(prefix="/move-history", tags=["Move History"])


@router.get("", response_model=stock_schemas.MovePage)
def list_moves(
    move_type: Optional[MoveType] = Query(None),
    product_id: Optional[int] = Query(None),
    location_id: Optional[int] = Query(None),
    date_from: Optional[str] = Query(None, description="ISO date or datetime"),
    date_to: Optional[str] = Query(None, description="ISO date or datetime"),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.VIEW_MOVE_HISTORY)),
):
    query = db.query(MoveHistory)

    # Staff see only the moves they produced
    if (current_user.role or "").upper() == Role.STAFF.value:
        query = query.filter(MoveHistory.user_id == current_user.id)

    if move_type is not None:
        query = query.filter(MoveHistory.move_type == move_type.value)
    if product_id is not None:
        query = query.filter(MoveHistory.product_id == product_id)
    if location_id is not None:
        query = query.filter(MoveHistory.location_id == location_id)

    dt_from = parse_date(date_from)
    dt_to = parse_date(date_to, end_of_day=True)
    if dt_from:
        query = query.filter(MoveHistory.created_at >= dt_from)
    if dt_to:
        query = query.filter(MoveHistory.created_at <= dt_to)

    total = query.count()
    moves = (
        query.options(
            joinedload(MoveHistory.product),
            joinedload(MoveHistory.location),
            joinedload(MoveHistory.user),
        )
        .order_by(MoveHistory.created_at.desc(), MoveHistory.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return {"items": moves, "total": total, "page": page, "page_size": page_size}
