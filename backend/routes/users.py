# backend/routes/users.py
from typing import List, Optional, Literal

from fastapi import APIRouter, Depends, HTTPException, status, Query, Request
from sqlalchemy import func
from sqlalchemy.orm import Session

from database import get_db
from models.users import User, Role
from models.receipt import ReceiptOrder
from models.delivery import DeliveryOrder
from models.transfer import InternalTransfer
from models.adjustment import StockAdjustment
from models.stock import MoveHistory
from schemas.user import UserCreate, UserUpdate, UserResponse, UserListPage, StaffActivity
from utils.audit import write_log
from utils.hashing import get_password_hash
from utils.permissions import Permission
from utils.tokenJWT import permission_required

router = APIRouter(prefix="/users", tags=["Users"])


def _get_user_or_404(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


def _email_taken(db: Session, email: str, exclude_id: Optional[int] = None) -> bool:
    q = db.query(User).filter(func.lower(User.email) == email.lower())
    if exclude_id is not None:
        q = q.filter(User.id != exclude_id)
    return q.first() is not None


# Count documents per user for the given model, keyed by user id
def _counts_by_user(db: Session, column):
    rows = db.query(column, func.count()).group_by(column).all()
    return {user_id: n for user_id, n in rows}


# Staff members with their activity counters
@router.get("/staff", response_model=List[StaffActivity])
def list_staff(
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.VIEW_USERS)),
):
    staff = db.query(User).filter(User.role == Role.STAFF.value).order_by(User.name.asc()).all()

    receipts = _counts_by_user(db, ReceiptOrder.user_id)
    deliveries = _counts_by_user(db, DeliveryOrder.user_id)
    transfers = _counts_by_user(db, InternalTransfer.user_id)
    adjustments = _counts_by_user(db, StockAdjustment.user_id)

    return [
        StaffActivity(
            id=u.id, email=u.email, name=u.name, role=u.role, created_at=u.created_at,
            receipts=receipts.get(u.id, 0),
            deliveries=deliveries.get(u.id, 0),
            transfers=transfers.get(u.id, 0),
            adjustments=adjustments.get(u.id, 0),
        )
        for u in staff
    ]


# Retrieve a list of users with filtering, sorting, and pagination
@router.get("", response_model=UserListPage)
def list_users(
    q: Optional[str] = Query(None, description="Search by name or email"),
    role: Optional[str] = Query(None, description="Filter by role"),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    sort_by: Literal["id", "email", "name", "role", "created_at"] = "id",
    order: Literal["asc", "desc"] = "asc",
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.MANAGE_USERS)),
):
    query = db.query(User)

    if q:
        like = f"%{q}%"
        query = query.filter(User.email.ilike(like) | User.name.ilike(like))

    if role:
        query = query.filter(User.role == role.upper())

    sort_map = {
        "id": User.id,
        "email": User.email,
        "name": User.name,
        "role": User.role,
        "created_at": User.created_at,
    }
    col = sort_map.get(sort_by, User.id)
    query = query.order_by(col.asc() if order == "asc" else col.desc())

    total = query.count()
    users = query.offset((page - 1) * page_size).limit(page_size).all()

    return {"items": users, "total": total, "page": page, "page_size": page_size}


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.MANAGE_USERS)),
):
    email = payload.email.strip().lower()
    if _email_taken(db, email):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User with this email already exists")

    user = User(
        email=email,
        name=payload.name.strip(),
        password_hash=get_password_hash(payload.password),
        role=payload.role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    write_log(db, user=current_user, action="CREATE", entity="user", entity_id=user.id,
              request=request, meta={"email": user.email, "role": user.role})
    return user


@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.MANAGE_USERS)),
):
    return _get_user_or_404(db, user_id)


@router.put("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    payload: UserUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.MANAGE_USERS)),
):
    user = _get_user_or_404(db, user_id)
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)

    if "email" in changes:
        email = changes["email"].strip().lower()
        if _email_taken(db, email, exclude_id=user.id):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User with this email already exists")
        user.email = email
    if "name" in changes:
        user.name = changes["name"].strip()
    if "role" in changes:
        user.role = changes["role"]
    if "password" in changes:
        user.password_hash = get_password_hash(changes["password"])

    db.commit()
    db.refresh(user)

    # Never write the password into the log
    changes.pop("password", None)
    write_log(db, user=current_user, action="UPDATE", entity="user", entity_id=user.id,
              request=request, meta={"changes": sorted(changes)})
    return user


# Delete a user account
@router.delete("/{user_id}")
def delete_user(
    user_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.MANAGE_USERS)),
):
    user = _get_user_or_404(db, user_id)

    # Prevent self-deletion
    if user.id == current_user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot delete your own account")

    # Documents and ledger rows keep a reference to their author
    owned = (
        db.query(ReceiptOrder.id).filter(ReceiptOrder.user_id == user.id).first()
        or db.query(DeliveryOrder.id).filter(DeliveryOrder.user_id == user.id).first()
        or db.query(InternalTransfer.id).filter(InternalTransfer.user_id == user.id).first()
        or db.query(StockAdjustment.id).filter(StockAdjustment.user_id == user.id).first()
        or db.query(MoveHistory.id).filter(MoveHistory.user_id == user.id).first()
        or db.query(ReceiptOrder.id).filter(ReceiptOrder.validated_by == user.id).first()
        or db.query(DeliveryOrder.id).filter(DeliveryOrder.validated_by == user.id).first()
        or db.query(InternalTransfer.id).filter(InternalTransfer.applied_by == user.id).first()
    )
    if owned:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT,
                            detail="Cannot delete a user who has created documents")

    email = user.email
    db.delete(user)
    db.commit()

    write_log(db, user=current_user, action="DELETE", entity="user", entity_id=user_id,
              request=request, meta={"email": email})
    return {"message": f"User {email} has been deleted"}
