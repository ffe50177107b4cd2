"""Venue API routes."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.auth import get_caller, get_optional_caller, require_role
from app.database import get_db
from app.errors import NotFound
from app.models.user import User, UserRole
from app.models.venue import VenueStatus
from app.repositories.request_repository import RequestRepository
from app.repositories.venue_repository import VenueRepository
from app.schemas.venue import VenueCreate, VenueOut, VenueUpdate
from app.services import venue_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=VenueOut, status_code=status.HTTP_201_CREATED)
def create_venue(
    payload: VenueCreate,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_role(UserRole.admin)),
):
    """Admin creates a venue on behalf of a store account."""
    owner = db.query(User).filter(User.user_id == payload.owner_id).first()
    if not owner:
        raise NotFound("Owner not found", details={"owner_id": payload.owner_id})
    values = payload.model_dump(exclude={"owner_id"})
    return venue_service.create_venue(VenueRepository(db), owner, values)


@router.get("/", response_model=list[VenueOut])
def list_venues(
    venue_type: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    _caller: Optional[User] = Depends(get_optional_caller),
):
    """Public catalogue — active venues only."""
    return VenueRepository(db).list(status=VenueStatus.active, venue_type=venue_type, search=search)


@router.get("/mine", response_model=list[VenueOut])
def list_my_venues(db: Session = Depends(get_db), caller: User = Depends(require_role(UserRole.store))):
    """The caller's venues, hidden ones included."""
    return VenueRepository(db).list(owner_id=caller.user_id)


@router.get("/all", response_model=list[VenueOut])
def list_all_venues(
    status_filter: Optional[VenueStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    _admin: User = Depends(require_role(UserRole.admin)),
):
    return VenueRepository(db).list(status=status_filter)


@router.get("/{venue_id}", response_model=VenueOut)
def get_venue(
    venue_id: str,
    db: Session = Depends(get_db),
    caller: Optional[User] = Depends(get_optional_caller),
):
    """Hidden venues are only visible to their owner and admins."""
    venue = VenueRepository(db).get(venue_id)
    if venue.status == VenueStatus.hidden:
        privileged = caller is not None and (caller.role == UserRole.admin or caller.user_id == venue.owner_id)
        if not privileged:
            raise NotFound("Venue not found", details={"venue_id": venue_id})
    return venue


@router.patch("/{venue_id}", response_model=VenueOut)
def update_venue(
    venue_id: str,
    payload: VenueUpdate,
    db: Session = Depends(get_db),
    caller: User = Depends(get_caller),
):
    """Owner (or admin) edits descriptive fields and visibility."""
    values = payload.model_dump(exclude_unset=True)
    return venue_service.update_venue(VenueRepository(db), caller, venue_id, values)


@router.delete("/{venue_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_venue(
    venue_id: str,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_role(UserRole.admin)),
):
    """Refused while the venue has pending or approved requests."""
    venue_service.delete_venue(VenueRepository(db), RequestRepository(db), venue_id)
