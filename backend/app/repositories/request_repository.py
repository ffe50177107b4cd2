"""Persistence for booking requests.

Writes are compare-and-set: an UPDATE or DELETE only lands when the row
still has the status and version the caller read. A lost race surfaces as
``ConflictError`` and is never retried here.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, Sequence

from sqlalchemy import delete, func, or_, update
from sqlalchemy.orm import Session

from app.errors import ConflictError, NotFound
from app.models.booking_request import BookingRequest, RequestStatus
from app.models.venue import Venue

logger = logging.getLogger(__name__)


@dataclass
class RequestFilter:
    venue_ids: Optional[Sequence[str]] = None
    requester_id: Optional[str] = None
    statuses: Optional[Sequence[RequestStatus]] = None
    search: Optional[str] = None  # matches full name, email or phone
    created_after: Optional[datetime] = None


class RequestRepository:
    def __init__(self, db: Session):
        self.db = db

    def load(self, request_id: str) -> BookingRequest:
        record = self.db.query(BookingRequest).filter(BookingRequest.request_id == request_id).first()
        if not record:
            raise NotFound("Booking request not found", details={"request_id": request_id})
        return record

    def add(self, record: BookingRequest) -> BookingRequest:
        """Insert ``record``; refused if its venue disappeared before the commit."""
        self.db.add(record)
        venue_id = record.venue_id
        self.db.flush()
        venue_exists = self.db.query(Venue.venue_id).filter(Venue.venue_id == venue_id).first()
        if venue_exists is None:
            self.db.rollback()
            raise NotFound("Venue not found", details={"venue_id": venue_id})
        self.db.commit()
        self.db.refresh(record)
        return record

    def save(self, record: BookingRequest, expected_status: RequestStatus, values: dict[str, Any]) -> BookingRequest:
        """Write ``values`` if the row is still at ``expected_status`` and the version ``record`` carries."""
        stmt = (
            update(BookingRequest)
            .where(
                BookingRequest.request_id == record.request_id,
                BookingRequest.status == expected_status,
                BookingRequest.version == record.version,
            )
            .values(**values, version=BookingRequest.version + 1)
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        if result.rowcount != 1:
            self.db.rollback()
            logger.warning(
                "Compare-and-set failed for request %s (expected %s, version %s)",
                record.request_id, expected_status.value, record.version,
            )
            raise ConflictError(
                "Booking request was modified concurrently. Re-fetch and retry.",
                details={"request_id": record.request_id},
            )
        self.db.commit()
        self.db.refresh(record)
        return record

    def delete(self, record: BookingRequest, expected_status: RequestStatus) -> None:
        stmt = (
            delete(BookingRequest)
            .where(
                BookingRequest.request_id == record.request_id,
                BookingRequest.status == expected_status,
                BookingRequest.version == record.version,
            )
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        if result.rowcount != 1:
            self.db.rollback()
            raise ConflictError(
                "Booking request was modified concurrently. Re-fetch and retry.",
                details={"request_id": record.request_id},
            )
        self.db.commit()
        self.db.expunge(record)

    def list(self, request_filter: Optional[RequestFilter] = None) -> list[BookingRequest]:
        """List requests matching ``request_filter``, newest first."""
        f = request_filter or RequestFilter()
        query = self.db.query(BookingRequest)
        if f.venue_ids is not None:
            if not f.venue_ids:
                return []
            query = query.filter(BookingRequest.venue_id.in_(list(f.venue_ids)))
        if f.requester_id:
            query = query.filter(BookingRequest.requester_id == f.requester_id)
        if f.statuses:
            query = query.filter(BookingRequest.status.in_(list(f.statuses)))
        if f.search:
            term = f"%{f.search.strip().lower()}%"
            full_name = func.lower(BookingRequest.first_name + " " + BookingRequest.last_name)
            query = query.filter(
                or_(
                    full_name.like(term),
                    func.lower(BookingRequest.email).like(term),
                    BookingRequest.phone_number.like(term),
                )
            )
        if f.created_after:
            query = query.filter(BookingRequest.created_at > f.created_after)
        return query.order_by(BookingRequest.created_at.desc()).all()

    def count_open_for_venue(self, venue_id: str) -> int:
        return (
            self.db.query(BookingRequest)
            .filter(
                BookingRequest.venue_id == venue_id,
                BookingRequest.status.in_([RequestStatus.pending, RequestStatus.approved]),
            )
            .count()
        )

    def count_open_for_requester(self, requester_id: str) -> int:
        return (
            self.db.query(BookingRequest)
            .filter(
                BookingRequest.requester_id == requester_id,
                BookingRequest.status.in_([RequestStatus.pending, RequestStatus.approved]),
            )
            .count()
        )
