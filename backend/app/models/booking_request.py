"""BookingRequest ORM model: a requester's reservation offer for a venue."""
import enum
import uuid

from sqlalchemy import Column, Integer, Numeric, String, Text, Enum as SAEnum

from app.database import Base, UTCDateTime, utcnow


class RequestStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"
    completed = "completed"
    canceled = "canceled"


class BookingRequest(Base):
    __tablename__ = "booking_requests"

    request_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    # Plain references: historical requests outlive deleted venues and users.
    venue_id = Column(String(36), nullable=False, index=True)
    requester_id = Column(String(36), nullable=True, index=True)

    # Contact snapshot taken at submission time
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False)
    phone_number = Column(String(40), nullable=True)

    party_size = Column(Integer, nullable=False)
    arrival_time = Column(UTCDateTime, nullable=False)
    price_offer = Column(Numeric(10, 2), nullable=False)
    notes = Column(Text, nullable=True)
    status = Column(SAEnum(RequestStatus), nullable=False, default=RequestStatus.pending, index=True)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow)
