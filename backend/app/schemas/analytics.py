"""Pydantic schemas for dashboard analytics."""
from __future__ import annotations
from decimal import Decimal
from pydantic import BaseModel

from app.services.analytics_service import TimeWindow


class RequestStatsOut(BaseModel):
    total_requests: int
    completed_requests: int
    total_revenue: Decimal
    average_offer: Decimal
    conversion_rate: float

    model_config = {"from_attributes": True}


class PeriodBucketOut(BaseModel):
    period: str
    revenue: Decimal
    requests: int

    model_config = {"from_attributes": True}


class VenueAnalyticsOut(BaseModel):
    venue_id: str
    window: TimeWindow
    stats: RequestStatsOut
    average_occupancy: float
    revenue_series: list[PeriodBucketOut]

    model_config = {"from_attributes": True}


class PlatformAnalyticsOut(BaseModel):
    window: TimeWindow
    stats: RequestStatsOut
    revenue_last_month: Decimal
    total_venues: int
    active_venues: int
    total_users: int
    total_stores: int
    revenue_by_month: dict[str, Decimal]
    requests_by_venue_type: dict[str, int]

    model_config = {"from_attributes": True}
