"""Persistence for venues."""
from __future__ import annotations

from typing import Optional

from sqlalchemy import delete, func, or_, select
from sqlalchemy.orm import Session

from app.errors import ConflictError, NotFound
from app.models.booking_request import BookingRequest, RequestStatus
from app.models.venue import Venue, VenueStatus


class VenueRepository:
    def __init__(self, db: Session):
        self.db = db

    def find(self, venue_id: str, lock: bool = False) -> Optional[Venue]:
        query = self.db.query(Venue).filter(Venue.venue_id == venue_id)
        if lock:
            # Row lock on Postgres; SQLite serialises writers instead
            query = query.with_for_update()
        return query.first()

    def get(self, venue_id: str, lock: bool = False) -> Venue:
        venue = self.find(venue_id, lock=lock)
        if not venue:
            raise NotFound("Venue not found", details={"venue_id": venue_id})
        return venue

    def list(
        self,
        owner_id: Optional[str] = None,
        status: Optional[VenueStatus] = None,
        venue_type: Optional[str] = None,
        search: Optional[str] = None,
    ) -> list[Venue]:
        query = self.db.query(Venue)
        if owner_id:
            query = query.filter(Venue.owner_id == owner_id)
        if status:
            query = query.filter(Venue.status == status)
        if venue_type:
            query = query.filter(Venue.venue_type == venue_type)
        if search:
            term = f"%{search.strip().lower()}%"
            query = query.filter(or_(func.lower(Venue.name).like(term), func.lower(Venue.location).like(term)))
        return query.order_by(Venue.name).all()

    def owned_ids(self, owner_id: str) -> list[str]:
        return [row.venue_id for row in self.db.query(Venue.venue_id).filter(Venue.owner_id == owner_id).all()]

    def add(self, venue: Venue) -> Venue:
        self.db.add(venue)
        self.db.commit()
        self.db.refresh(venue)
        return venue

    def update(self, venue: Venue, values: dict) -> Venue:
        for field, value in values.items():
            setattr(venue, field, value)
        self.db.commit()
        self.db.refresh(venue)
        return venue

    def delete(self, venue: Venue) -> None:
        """Delete ``venue`` only while no pending or approved request points at it.

        The open-request check and the delete are one statement, so a request
        submitted after the caller's own check still blocks the delete.
        """
        open_requests = (
            select(BookingRequest.request_id)
            .where(
                BookingRequest.venue_id == venue.venue_id,
                BookingRequest.status.in_([RequestStatus.pending, RequestStatus.approved]),
            )
            .exists()
        )
        stmt = (
            delete(Venue)
            .where(Venue.venue_id == venue.venue_id, ~open_requests)
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        if result.rowcount != 1:
            self.db.rollback()
            raise ConflictError(
                "Venue still has open booking requests",
                details={"venue_id": venue.venue_id},
            )
        self.db.commit()
        self.db.expunge(venue)
