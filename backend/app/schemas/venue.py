"""Pydantic schemas for Venues."""
from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field

from app.models.venue import VenueStatus


class VenueCreate(BaseModel):
    owner_id: str
    name: str = Field(min_length=1, max_length=200)
    location: str = Field(min_length=1, max_length=500)
    capacity: int = Field(ge=1)
    status: VenueStatus = VenueStatus.active
    venue_type: Optional[str] = Field(None, max_length=50)
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    amenities: list[str] = []
    description: Optional[str] = None


class VenueUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    location: Optional[str] = Field(None, min_length=1, max_length=500)
    capacity: Optional[int] = Field(None, ge=1)
    status: Optional[VenueStatus] = None
    venue_type: Optional[str] = Field(None, max_length=50)
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    amenities: Optional[list[str]] = None
    description: Optional[str] = None


class VenueOut(BaseModel):
    venue_id: str
    owner_id: str
    name: str
    location: str
    capacity: int
    status: VenueStatus
    venue_type: Optional[str] = None
    price: Optional[Decimal] = None
    amenities: list[str] = []
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
