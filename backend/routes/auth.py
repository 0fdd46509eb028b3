# backend/routes/auth.py
import logging

from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy import func
from sqlalchemy.orm import Session

from database import get_db
from models.users import User, Role
from schemas import user as schemas
from utils.audit import write_log
from utils.hashing import get_password_hash, verify_password
from utils.tokenJWT import create_user_token, get_current_user

router = APIRouter(prefix="/auth", tags=["Auth"])
logger = logging.getLogger(__name__)


# Register a new staff account
@router.post("/signup", response_model=schemas.AuthResponse, status_code=status.HTTP_201_CREATED)
def signup(payload: schemas.SignupRequest, request: Request, db: Session = Depends(get_db)):
    normalized_email = payload.email.strip().lower()

    # Check for existing user
    db_user = db.query(User).filter(func.lower(User.email) == normalized_email).first()
    if db_user:
        write_log(db, user=None, action="SIGNUP", entity="auth", status="FAIL", request=request,
                  meta={"email": normalized_email, "reason": "Email exists"})
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User already exists")

    # Self-registration never grants more than STAFF
    new_user = User(
        email=normalized_email,
        password_hash=get_password_hash(payload.password),
        name=payload.name.strip(),
        role=Role.STAFF.value,
    )
    db.add(new_user)
    db.commit()
    db.refresh(new_user)

    write_log(db, user=new_user, action="SIGNUP", entity="auth", entity_id=new_user.id,
              request=request, meta={"email": new_user.email})
    logger.info("New account %s registered", new_user.email)

    token = create_user_token(new_user)
    return {"message": "User created successfully", "user": new_user, "token": token,
            "access_token": token, "token_type": "bearer"}


# Authenticate user and issue JWT token
@router.post("/login", response_model=schemas.AuthResponse)
def login(payload: schemas.UserLogin, request: Request, db: Session = Depends(get_db)):
    normalized_email = payload.email.strip().lower()
    db_user = db.query(User).filter(func.lower(User.email) == normalized_email).first()

    # Validate credentials and log failure on error
    if not db_user or not verify_password(payload.password, db_user.password_hash):
        write_log(db, user=db_user, action="LOGIN", entity="auth", status="FAIL", request=request,
                  meta={"email": normalized_email})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    token = create_user_token(db_user)

    write_log(db, user=db_user, action="LOGIN", entity="auth", entity_id=db_user.id, request=request,
              meta={"email": db_user.email})

    return {"message": "Login successful", "user": db_user, "token": token,
            "access_token": token, "token_type": "bearer"}


# Tokens are stateless; logout only leaves a trace in the audit log
@router.post("/logout")
def logout(request: Request, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    write_log(db, user=current_user, action="LOGOUT", entity="auth", entity_id=current_user.id, request=request)
    return {"message": "Logout successful"}


# Retrieve current authenticated user details
@router.get("/me", response_model=schemas.UserResponse)
def me(current_user: User = Depends(get_current_user)):
    return current_user
