"""Venue ORM model: a bookable place owned by a store account."""
import enum
import uuid

from sqlalchemy import Column, ForeignKey, Integer, JSON, Numeric, String, Text, Enum as SAEnum

from app.database import Base, UTCDateTime, utcnow


class VenueStatus(str, enum.Enum):
    active = "active"
    hidden = "hidden"


class Venue(Base):
    __tablename__ = "venues"

    venue_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    owner_id = Column(String(36), ForeignKey("users.user_id"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    location = Column(String(500), nullable=False)
    capacity = Column(Integer, nullable=False)
    status = Column(SAEnum(VenueStatus), nullable=False, default=VenueStatus.active)
    venue_type = Column(String(50), nullable=True)
    price = Column(Numeric(10, 2), nullable=True)
    amenities = Column(JSON, nullable=False, default=list)
    description = Column(Text, nullable=True)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow)
