"""Venue management: admin provisioning, owner edits, guarded deletion."""
import logging
from typing import Any

from app.errors import ConflictError, NotAuthorized, ValidationError
from app.models.user import User, UserRole
from app.models.venue import Venue
from app.repositories.request_repository import RequestRepository
from app.repositories.venue_repository import VenueRepository

logger = logging.getLogger(__name__)

# owner_id is fixed at creation
OWNER_EDITABLE = {"name", "location", "capacity", "status", "venue_type", "price", "amenities", "description"}
REQUIRED_FIELDS = {"name", "location", "capacity", "status", "amenities"}


def create_venue(venues: VenueRepository, owner: User, values: dict[str, Any]) -> Venue:
    if owner.role != UserRole.store:
        raise ValidationError("Venue owner must be a store account", details={"owner_id": owner.user_id})
    venue = venues.add(Venue(owner_id=owner.user_id, **values))
    logger.info("Created venue '%s' (%s) for store %s", venue.name, venue.venue_id, owner.user_id)
    return venue


def update_venue(venues: VenueRepository, caller: User, venue_id: str, values: dict[str, Any]) -> Venue:
    venue = venues.get(venue_id)
    if caller.role != UserRole.admin and venue.owner_id != caller.user_id:
        raise NotAuthorized("Only the venue owner may edit this venue", details={"venue_id": venue_id})
    unknown = set(values) - OWNER_EDITABLE
    if unknown:
        raise ValidationError("Fields cannot be edited: " + ", ".join(sorted(unknown)))
    cleared = sorted(k for k in REQUIRED_FIELDS if k in values and values[k] is None)
    if cleared:
        raise ValidationError("Fields cannot be cleared: " + ", ".join(cleared))
    venue = venues.update(venue, values)
    logger.info("Updated venue %s (%s)", venue_id, ", ".join(sorted(values)) or "no fields")
    return venue


def delete_venue(venues: VenueRepository, requests: RequestRepository, venue_id: str) -> None:
    """Delete a venue with no open requests; terminal requests stay on record."""
    venue = venues.get(venue_id, lock=True)
    open_count = requests.count_open_for_venue(venue_id)
    if open_count:
        raise ConflictError(
            "Venue still has open booking requests",
            details={"venue_id": venue_id, "open_requests": open_count},
        )
    venues.delete(venue)
    logger.info("Deleted venue %s", venue_id)
