"""Booking request API routes — delegates every decision to BookingService."""
import logging
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.auth import AccessPolicy, get_caller, get_optional_caller, require_role
from app.database import get_db
from app.models.booking_request import RequestStatus
from app.models.user import User, UserRole
from app.repositories.request_repository import RequestRepository
from app.repositories.venue_repository import VenueRepository
from app.schemas.booking_request import (
    BookingRequestCreate,
    BookingRequestEdit,
    BookingRequestOut,
    TransitionRequest,
)
from app.services.booking_service import BookingService

logger = logging.getLogger(__name__)
router = APIRouter()


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    return BookingService(RequestRepository(db), VenueRepository(db), AccessPolicy())


@router.post("/", response_model=BookingRequestOut, status_code=status.HTTP_201_CREATED)
def submit_request(
    payload: BookingRequestCreate,
    service: BookingService = Depends(get_booking_service),
    caller: Optional[User] = Depends(get_optional_caller),
):
    """Submit a booking request. Guests must include contact details."""
    return service.submit_request(
        caller=caller,
        venue_id=payload.venue_id,
        party_size=payload.party_size,
        arrival_time=payload.arrival_time,
        price_offer=payload.price_offer,
        notes=payload.notes,
        contact=payload.contact,
    )


@router.get("/mine", response_model=list[BookingRequestOut])
def list_my_requests(
    status_filter: Optional[list[RequestStatus]] = Query(None, alias="status"),
    created_after: Optional[datetime] = Query(None),
    service: BookingService = Depends(get_booking_service),
    caller: User = Depends(get_caller),
):
    """The caller's own requests, newest first."""
    return service.list_for_requester(caller, statuses=status_filter, created_after=created_after)


@router.get("/incoming", response_model=list[BookingRequestOut])
def list_incoming_requests(
    status_filter: Optional[list[RequestStatus]] = Query(None, alias="status"),
    search: Optional[str] = Query(None),
    venue_id: Optional[str] = Query(None),
    service: BookingService = Depends(get_booking_service),
    caller: User = Depends(require_role(UserRole.store)),
):
    """Requests for the caller's venues. Defaults to pending only."""
    statuses = status_filter or [RequestStatus.pending]
    return service.list_for_owner(caller, statuses=statuses, search=search, venue_id=venue_id)


@router.get("/{request_id}", response_model=BookingRequestOut)
def get_request(
    request_id: str,
    service: BookingService = Depends(get_booking_service),
    caller: User = Depends(get_caller),
):
    return service.get_request(caller, request_id)


@router.patch("/{request_id}", response_model=BookingRequestOut)
def edit_request(
    request_id: str,
    payload: BookingRequestEdit,
    service: BookingService = Depends(get_booking_service),
    caller: User = Depends(get_caller),
):
    """Requester edits party size, arrival time, offer or notes while pending."""
    changes = payload.model_dump(exclude_unset=True, exclude={"version"})
    return service.edit_request(caller, request_id, changes, expected_version=payload.version)


@router.post("/{request_id}/approve", response_model=BookingRequestOut)
def approve_request(
    request_id: str,
    payload: Optional[TransitionRequest] = None,
    service: BookingService = Depends(get_booking_service),
    caller: User = Depends(get_caller),
):
    return service.approve_request(caller, request_id, _version(payload))


@router.post("/{request_id}/reject", response_model=BookingRequestOut)
def reject_request(
    request_id: str,
    payload: Optional[TransitionRequest] = None,
    service: BookingService = Depends(get_booking_service),
    caller: User = Depends(get_caller),
):
    return service.reject_request(caller, request_id, _version(payload))


@router.post("/{request_id}/complete", response_model=BookingRequestOut)
def complete_request(
    request_id: str,
    payload: Optional[TransitionRequest] = None,
    service: BookingService = Depends(get_booking_service),
    caller: User = Depends(get_caller),
):
    """Owner marks an approved booking as fulfilled."""
    return service.complete_request(caller, request_id, _version(payload))


@router.post("/{request_id}/cancel", response_model=BookingRequestOut)
def cancel_request(
    request_id: str,
    payload: Optional[TransitionRequest] = None,
    service: BookingService = Depends(get_booking_service),
    caller: User = Depends(get_caller),
):
    """Requester withdraws from an approved booking."""
    return service.cancel_request(caller, request_id, _version(payload))


@router.delete("/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_request(
    request_id: str,
    version: Optional[int] = Query(None),
    service: BookingService = Depends(get_booking_service),
    caller: User = Depends(get_caller),
):
    """Requester or venue owner removes a request that is still pending."""
    service.delete_request(caller, request_id, expected_version=version)


def _version(payload: Optional[TransitionRequest]) -> Optional[int]:
    return payload.version if payload else None
