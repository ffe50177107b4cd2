"""Booking service — runs a caller's action against one booking request.

Each operation follows the same path:
- load the request and resolve its venue
- authorize the caller as venue owner and/or requester
- ask the lifecycle engine what the action leads to
- persist with a compare-and-set on the status and version that were read

Collaborators are injected; the service holds no state of its own.
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional, Sequence

from app.auth import AccessPolicy
from app.database import utcnow
from app.errors import ConflictError, NotAuthorized, ValidationError
from app.models.booking_request import BookingRequest, RequestStatus
from app.models.user import User, UserRole
from app.models.venue import Venue, VenueStatus
from app.repositories.request_repository import RequestFilter, RequestRepository
from app.repositories.venue_repository import VenueRepository
from app.schemas.booking_request import ContactInfo
from app.services import lifecycle
from app.services.lifecycle import RequestAction

logger = logging.getLogger(__name__)


class BookingService:
    def __init__(self, requests: RequestRepository, venues: VenueRepository, policy: Optional[AccessPolicy] = None):
        self.requests = requests
        self.venues = venues
        self.policy = policy or AccessPolicy()

    # ── Submission ──────────────────────────────────────────────────

    def submit_request(
        self,
        caller: Optional[User],
        venue_id: str,
        party_size: int,
        arrival_time: Optional[datetime],
        price_offer: Decimal,
        notes: Optional[str] = None,
        contact: Optional[ContactInfo] = None,
        now: Optional[datetime] = None,
    ) -> BookingRequest:
        """Create a pending request. Guests (``caller=None``) must supply ``contact``."""
        now = now or utcnow()
        venue = self.venues.get(venue_id, lock=True)
        if venue.status != VenueStatus.active:
            raise ValidationError("Venue is not accepting requests", details={"venue_id": venue_id})

        lifecycle.validate_submission(party_size, price_offer, arrival_time, now)
        contact = self._resolve_contact(caller, contact)

        record = BookingRequest(
            venue_id=venue.venue_id,
            requester_id=caller.user_id if caller else None,
            first_name=contact.first_name,
            last_name=contact.last_name,
            email=str(contact.email),
            phone_number=contact.phone_number,
            party_size=party_size,
            arrival_time=arrival_time,
            price_offer=Decimal(str(price_offer)),
            notes=notes,
            status=RequestStatus.pending,
            version=1,
            created_at=now,
            updated_at=now,
        )
        self.requests.add(record)
        logger.info(
            "Request %s submitted for venue %s by %s",
            record.request_id, venue.venue_id, caller.user_id if caller else "guest",
        )
        return record

    @staticmethod
    def _resolve_contact(caller: Optional[User], contact: Optional[ContactInfo]) -> ContactInfo:
        if contact is not None:
            return contact
        if caller is None:
            raise ValidationError(
                "Contact details are required for guest requests",
                details={"fields": {"contact": "required"}},
            )
        return ContactInfo(
            first_name=caller.first_name,
            last_name=caller.last_name,
            email=caller.email,
            phone_number=caller.phone_number,
        )

    # ── Transitions ─────────────────────────────────────────────────

    def approve_request(self, caller: Optional[User], request_id: str, expected_version: Optional[int] = None):
        return self._run(caller, request_id, RequestAction.approve, expected_version)

    def reject_request(self, caller: Optional[User], request_id: str, expected_version: Optional[int] = None):
        return self._run(caller, request_id, RequestAction.reject, expected_version)

    def complete_request(self, caller: Optional[User], request_id: str, expected_version: Optional[int] = None):
        return self._run(caller, request_id, RequestAction.complete, expected_version)

    def cancel_request(self, caller: Optional[User], request_id: str, expected_version: Optional[int] = None):
        return self._run(caller, request_id, RequestAction.cancel, expected_version)

    def edit_request(
        self,
        caller: Optional[User],
        request_id: str,
        changes: dict[str, Any],
        expected_version: Optional[int] = None,
    ) -> BookingRequest:
        return self._run(caller, request_id, RequestAction.edit, expected_version, changes=changes)

    def delete_request(self, caller: Optional[User], request_id: str, expected_version: Optional[int] = None) -> None:
        self._run(caller, request_id, RequestAction.delete, expected_version)

    def _run(
        self,
        caller: Optional[User],
        request_id: str,
        action: RequestAction,
        expected_version: Optional[int],
        changes: Optional[dict[str, Any]] = None,
        now: Optional[datetime] = None,
    ) -> Optional[BookingRequest]:
        record = self.requests.load(request_id)
        venue = self.venues.find(record.venue_id)
        self._authorize(caller, venue, record, action)

        if expected_version is not None and expected_version != record.version:
            raise ConflictError(
                f"Version mismatch: expected {record.version}, got {expected_version}. Re-fetch and retry.",
                details={"request_id": request_id, "current_version": record.version},
            )

        expected_status = record.status
        if action is RequestAction.delete:
            lifecycle.plan_transition(expected_status, action)
            self.requests.delete(record, expected_status)
            logger.info("Request %s deleted by %s", request_id, caller.user_id)
            return None

        values = lifecycle.apply_transition(record, action, now or utcnow(), changes)
        saved = self.requests.save(record, expected_status, values)
        logger.info(
            "Request %s: %s by %s (%s -> %s)",
            request_id, action.value, caller.user_id, expected_status.value, saved.status.value,
        )
        return saved

    def _authorize(self, caller: Optional[User], venue: Optional[Venue], record: BookingRequest, action: RequestAction):
        allowed = lifecycle.required_roles(action)
        if not allowed & self.policy.actor_roles(caller, venue, record):
            logger.info(
                "Denied %s on request %s for caller %s",
                action.value, record.request_id, caller.user_id if caller else "guest",
            )
            raise NotAuthorized(
                f"Only the {' or '.join(sorted(r.value for r in allowed))} may {action.value} this request",
                details={"request_id": record.request_id},
            )

    # ── Reads ───────────────────────────────────────────────────────

    def get_request(self, caller: User, request_id: str) -> BookingRequest:
        """Visible to the requester, the venue owner and admins."""
        record = self.requests.load(request_id)
        if caller.role == UserRole.admin:
            return record
        venue = self.venues.find(record.venue_id)
        if not self.policy.actor_roles(caller, venue, record):
            raise NotAuthorized("Not allowed to view this request", details={"request_id": request_id})
        return record

    def list_for_requester(
        self,
        caller: User,
        statuses: Optional[Sequence[RequestStatus]] = None,
        created_after: Optional[datetime] = None,
    ) -> list[BookingRequest]:
        return self.requests.list(
            RequestFilter(requester_id=caller.user_id, statuses=statuses, created_after=created_after)
        )

    def list_for_owner(
        self,
        caller: User,
        statuses: Optional[Sequence[RequestStatus]] = None,
        search: Optional[str] = None,
        venue_id: Optional[str] = None,
    ) -> list[BookingRequest]:
        """Incoming requests across the caller's venues (or one of them)."""
        venue_ids = self.venues.owned_ids(caller.user_id)
        if venue_id is not None:
            if venue_id not in venue_ids:
                raise NotAuthorized("Not the owner of this venue", details={"venue_id": venue_id})
            venue_ids = [venue_id]
        return self.requests.list(RequestFilter(venue_ids=venue_ids, statuses=statuses, search=search))
