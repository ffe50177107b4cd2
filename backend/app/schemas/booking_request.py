"""Pydantic schemas for BookingRequests.

Value rules (party size, offer, arrival time) are enforced by the lifecycle
engine, not here, so every caller gets the same errors.
"""
from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, EmailStr, Field

from app.models.booking_request import RequestStatus


class ContactInfo(BaseModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    phone_number: Optional[str] = Field(None, max_length=40)


class BookingRequestCreate(BaseModel):
    venue_id: str
    party_size: int
    arrival_time: Optional[datetime] = None
    price_offer: Decimal
    notes: Optional[str] = None
    contact: Optional[ContactInfo] = None  # required for guests


class BookingRequestEdit(BaseModel):
    party_size: Optional[int] = None
    arrival_time: Optional[datetime] = None
    price_offer: Optional[Decimal] = None
    notes: Optional[str] = None
    version: Optional[int] = None  # optimistic locking, optional


class TransitionRequest(BaseModel):
    version: Optional[int] = None


class BookingRequestOut(BaseModel):
    request_id: str
    venue_id: str
    requester_id: Optional[str] = None
    first_name: str
    last_name: str
    email: str
    phone_number: Optional[str] = None
    party_size: int
    arrival_time: datetime
    price_offer: Decimal
    notes: Optional[str] = None
    status: RequestStatus
    version: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
