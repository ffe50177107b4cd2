"""User API routes — registration, profile, password, admin management."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.auth import (
    get_caller,
    get_caller_for_password_change,
    hash_password,
    require_role,
    verify_password,
)
from app.database import get_db
from app.errors import ConflictError, NotAuthorized, NotFound, ValidationError
from app.models.user import User, UserRole
from app.models.venue import Venue
from app.repositories.request_repository import RequestRepository
from app.schemas.user import PasswordChange, UserCreateByAdmin, UserOut, UserRegister, UserUpdate

logger = logging.getLogger(__name__)
router = APIRouter()

# Profile columns that may change but never be cleared
NON_NULLABLE_PROFILE_FIELDS = {
    "first_name",
    "last_name",
    "notifications_enabled",
    "email_notifications",
    "push_notifications",
}


def _ensure_email_free(db: Session, email: str) -> None:
    if db.query(User).filter(User.email == email).first():
        raise ConflictError("Email is already registered", details={"email": email})


@router.post("/", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def register(payload: UserRegister, db: Session = Depends(get_db)):
    """Self-service sign-up. Always creates a plain ``user`` account."""
    _ensure_email_free(db, payload.email)
    user = User(
        email=payload.email,
        first_name=payload.first_name,
        last_name=payload.last_name,
        phone_number=payload.phone_number,
        role=UserRole.user,
        password_hash=hash_password(payload.password),
        password_changed=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Registered user %s (%s)", user.user_id, user.email)
    return user


@router.post("/provision", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def provision_user(
    payload: UserCreateByAdmin,
    db: Session = Depends(get_db),
    admin: User = Depends(require_role(UserRole.admin)),
):
    """Admin creates a store or admin account. Store accounts must change the temporary password."""
    _ensure_email_free(db, payload.email)
    user = User(
        email=payload.email,
        first_name=payload.first_name,
        last_name=payload.last_name,
        phone_number=payload.phone_number,
        role=payload.role,
        password_hash=hash_password(payload.password),
        password_changed=payload.role != UserRole.store,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Admin %s provisioned %s account %s", admin.user_id, user.role.value, user.user_id)
    return user


@router.get("/me", response_model=UserOut)
def get_me(caller: User = Depends(get_caller)):
    return caller


@router.patch("/me", response_model=UserOut)
def update_me(payload: UserUpdate, caller: User = Depends(get_caller), db: Session = Depends(get_db)):
    """Update profile fields and notification preferences. Contact snapshots on existing requests are left alone."""
    values = payload.model_dump(exclude_unset=True)
    cleared = sorted(k for k in NON_NULLABLE_PROFILE_FIELDS if k in values and values[k] is None)
    if cleared:
        raise ValidationError(
            "Fields cannot be cleared: " + ", ".join(cleared),
            details={"fields": {name: "cannot be null" for name in cleared}},
        )
    for field, value in values.items():
        setattr(caller, field, value)
    db.commit()
    db.refresh(caller)
    logger.info("Updated profile of user %s", caller.user_id)
    return caller


@router.post("/me/password", response_model=UserOut)
def change_password(
    payload: PasswordChange,
    caller: User = Depends(get_caller_for_password_change),
    db: Session = Depends(get_db),
):
    if not verify_password(payload.current_password, caller.password_hash):
        raise ValidationError("Current password is incorrect", details={"fields": {"current_password": "invalid"}})
    if payload.new_password == payload.current_password:
        raise ValidationError("New password must differ from the current one")
    caller.password_hash = hash_password(payload.new_password)
    caller.password_changed = True
    db.commit()
    db.refresh(caller)
    logger.info("User %s changed password", caller.user_id)
    return caller


@router.get("/", response_model=list[UserOut])
def list_users(
    role: Optional[UserRole] = None,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_role(UserRole.admin)),
):
    """List accounts, optionally by role."""
    query = db.query(User)
    if role:
        query = query.filter(User.role == role)
    return query.order_by(User.created_at).all()


@router.get("/{user_id}", response_model=UserOut)
def get_user(user_id: str, caller: User = Depends(get_caller), db: Session = Depends(get_db)):
    if caller.role != UserRole.admin and caller.user_id != user_id:
        raise NotAuthorized("Not allowed to view this account")
    user = db.query(User).filter(User.user_id == user_id).first()
    if not user:
        raise NotFound("User not found", details={"user_id": user_id})
    return user


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: str,
    db: Session = Depends(get_db),
    admin: User = Depends(require_role(UserRole.admin)),
):
    """Delete an account that owns no venues and has no open requests."""
    user = db.query(User).filter(User.user_id == user_id).first()
    if not user:
        raise NotFound("User not found", details={"user_id": user_id})
    if user.user_id == admin.user_id:
        raise ConflictError("Admins cannot delete their own account")
    if db.query(Venue).filter(Venue.owner_id == user_id).count():
        raise ConflictError("Store still owns venues", details={"user_id": user_id})
    if RequestRepository(db).count_open_for_requester(user_id):
        raise ConflictError("User still has open booking requests", details={"user_id": user_id})
    db.delete(user)
    db.commit()
    logger.info("Admin %s deleted user %s", admin.user_id, user_id)
