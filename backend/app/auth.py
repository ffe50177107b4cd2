"""Caller identity, role gates and ownership checks.

Session handling lives in front of this service; by the time a request
arrives the caller is identified by the ``X-User-Id`` header. Missing header
means a guest. Gates mirror the dashboard routing rules: admin-only and
store-only areas, and store accounts locked out until they replace their
temporary password.
"""
import logging
from typing import Optional

import bcrypt
from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.errors import NotAuthorized
from app.models.booking_request import BookingRequest
from app.models.user import User, UserRole
from app.models.venue import Venue
from app.services.lifecycle import ActorRole

logger = logging.getLogger(__name__)

CALLER_HEADER = "X-User-Id"


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    encoded = password.encode("utf-8")
    # Nothing longer than 72 bytes is ever hashed
    if not password_hash or len(encoded) > 72:
        return False
    return bcrypt.checkpw(encoded, password_hash.encode("utf-8"))


def needs_password_change(user: User) -> bool:
    return user.role == UserRole.store and not user.password_changed


def _resolve_caller(user_id: Optional[str], db: Session) -> Optional[User]:
    if not user_id:
        return None
    user = db.query(User).filter(User.user_id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unknown caller")
    return user


def get_optional_caller(
    x_user_id: Optional[str] = Header(None, alias=CALLER_HEADER),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Caller if one is identified, else ``None`` (guest)."""
    user = _resolve_caller(x_user_id, db)
    if user is not None and needs_password_change(user):
        raise NotAuthorized("Password change required", details={"redirect": "change-password"})
    return user


def get_caller(caller: Optional[User] = Depends(get_optional_caller)) -> User:
    if caller is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Sign-in required")
    return caller


def get_caller_for_password_change(
    x_user_id: Optional[str] = Header(None, alias=CALLER_HEADER),
    db: Session = Depends(get_db),
) -> User:
    """Like ``get_caller`` but lets a locked store account through."""
    user = _resolve_caller(x_user_id, db)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Sign-in required")
    return user


def require_role(*roles: UserRole):
    """Dependency factory: the caller must hold one of ``roles``."""

    def _dependency(caller: User = Depends(get_caller)) -> User:
        if caller.role not in roles:
            logger.info("Caller %s (%s) denied; needs one of %s", caller.user_id, caller.role.value,
                        [r.value for r in roles])
            raise NotAuthorized("This area is restricted to " + " or ".join(r.value for r in roles) + " accounts")
        return caller

    return _dependency


class AccessPolicy:
    """Boolean ownership checks used by the booking service."""

    def is_venue_owner(self, caller: Optional[User], venue: Optional[Venue]) -> bool:
        return caller is not None and venue is not None and venue.owner_id == caller.user_id

    def is_requester(self, caller: Optional[User], request: BookingRequest) -> bool:
        return caller is not None and request.requester_id is not None and request.requester_id == caller.user_id

    def actor_roles(self, caller: Optional[User], venue: Optional[Venue], request: BookingRequest) -> set[ActorRole]:
        roles = set()
        if self.is_venue_owner(caller, venue):
            roles.add(ActorRole.owner)
        if self.is_requester(caller, request):
            roles.add(ActorRole.requester)
        return roles
