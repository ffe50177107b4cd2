"""Derived statistics over booking requests.

Nothing here is stored: every figure is recomputed from the request set it
is handed, so all dashboards share one set of formulas and one rule for
empty scopes (zeros, never a division error).
"""
import enum
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from app.database import utcnow
from app.models.booking_request import BookingRequest, RequestStatus
from app.models.user import User, UserRole
from app.models.venue import Venue, VenueStatus

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")


class TimeWindow(str, enum.Enum):
    week = "week"
    month = "month"
    year = "year"
    all = "all"


WINDOW_DAYS = {TimeWindow.week: 7, TimeWindow.month: 30, TimeWindow.year: 365}

# strftime pattern used to bucket the revenue series for each window
_BUCKET_FORMAT = {
    TimeWindow.week: "%a",
    TimeWindow.month: "%d",
    TimeWindow.year: "%b",
    TimeWindow.all: "%b",
}


@dataclass(frozen=True)
class RequestStats:
    total_requests: int
    completed_requests: int
    total_revenue: Decimal
    average_offer: Decimal
    conversion_rate: float


@dataclass(frozen=True)
class PeriodBucket:
    period: str
    revenue: Decimal
    requests: int


@dataclass(frozen=True)
class VenueAnalytics:
    venue_id: str
    window: TimeWindow
    stats: RequestStats
    average_occupancy: float
    revenue_series: list[PeriodBucket] = field(default_factory=list)


@dataclass(frozen=True)
class PlatformAnalytics:
    window: TimeWindow
    stats: RequestStats
    revenue_last_month: Decimal
    total_venues: int
    active_venues: int
    total_users: int
    total_stores: int
    revenue_by_month: dict[str, Decimal]
    requests_by_venue_type: dict[str, int]


def window_start(window: TimeWindow, now: Optional[datetime] = None) -> Optional[datetime]:
    """Lower bound (exclusive) on ``created_at`` for ``window``; ``None`` for all time."""
    days = WINDOW_DAYS.get(TimeWindow(window))
    if days is None:
        return None
    return (now or utcnow()) - timedelta(days=days)


def filter_by_window(
    requests: Iterable[BookingRequest],
    window: TimeWindow = TimeWindow.all,
    now: Optional[datetime] = None,
) -> list[BookingRequest]:
    start = window_start(window, now)
    if start is None:
        return list(requests)
    return [r for r in requests if r.created_at > start]


def _completed(requests: Iterable[BookingRequest]) -> list[BookingRequest]:
    return [r for r in requests if r.status == RequestStatus.completed]


def _sum_offers(requests: Iterable[BookingRequest]) -> Decimal:
    return sum((Decimal(r.price_offer) for r in requests), ZERO)


def compute_request_stats(
    requests: Iterable[BookingRequest],
    window: TimeWindow = TimeWindow.all,
    now: Optional[datetime] = None,
) -> RequestStats:
    """Counts, revenue, average offer and conversion rate for the requests in scope.

    - total_revenue sums ``price_offer`` over completed requests only
    - average_offer averages ``price_offer`` over every request in scope
    - conversion_rate is completed / total as a percentage
    An empty scope yields zeros for all of them.
    """
    scoped = filter_by_window(requests, window, now)
    total = len(scoped)
    completed = _completed(scoped)

    if total:
        average_offer = (_sum_offers(scoped) / total).quantize(CENTS)
        conversion_rate = round(len(completed) / total * 100, 2)
    else:
        average_offer = ZERO
        conversion_rate = 0.0

    return RequestStats(
        total_requests=total,
        completed_requests=len(completed),
        total_revenue=_sum_offers(completed).quantize(CENTS),
        average_offer=average_offer,
        conversion_rate=conversion_rate,
    )


def revenue_series(
    requests: Sequence[BookingRequest],
    window: TimeWindow = TimeWindow.all,
) -> list[PeriodBucket]:
    """Bucket requests by period in chronological order of first appearance."""
    fmt = _BUCKET_FORMAT[TimeWindow(window)]
    order: list[str] = []
    revenue: dict[str, Decimal] = {}
    counts: Counter = Counter()
    for request in sorted(requests, key=lambda r: r.created_at):
        key = request.created_at.strftime(fmt)
        if key not in revenue:
            order.append(key)
            revenue[key] = ZERO
        counts[key] += 1
        if request.status == RequestStatus.completed:
            revenue[key] += Decimal(request.price_offer)
    return [PeriodBucket(period=key, revenue=revenue[key].quantize(CENTS), requests=counts[key]) for key in order]


def compute_venue_analytics(
    venue: Venue,
    requests: Iterable[BookingRequest],
    window: TimeWindow = TimeWindow.month,
    now: Optional[datetime] = None,
) -> VenueAnalytics:
    """Store dashboard figures for one venue."""
    scoped = filter_by_window(requests, window, now)
    completed = _completed(scoped)

    occupancy = 0.0
    if venue.capacity:
        party_total = sum(r.party_size for r in completed)
        occupancy = round(party_total / max(len(completed), 1) / venue.capacity * 100, 2)

    return VenueAnalytics(
        venue_id=venue.venue_id,
        window=TimeWindow(window),
        stats=compute_request_stats(scoped),
        average_occupancy=occupancy,
        revenue_series=revenue_series(scoped, window),
    )


def compute_platform_analytics(
    requests: Sequence[BookingRequest],
    venues: Sequence[Venue],
    users: Sequence[User],
    window: TimeWindow = TimeWindow.year,
    now: Optional[datetime] = None,
) -> PlatformAnalytics:
    """Admin dashboard figures across every venue.

    Requests whose venue was deleted still count toward totals and revenue;
    only the per-venue-type breakdown leaves them out.
    """
    now = now or utcnow()

    last_month = filter_by_window(requests, TimeWindow.month, now)
    revenue_last_month = _sum_offers(_completed(last_month)).quantize(CENTS)

    by_month: dict[str, Decimal] = {}
    for request in sorted(requests, key=lambda r: r.created_at):
        key = request.created_at.strftime("%Y-%m")
        by_month.setdefault(key, ZERO)
        if request.status == RequestStatus.completed:
            by_month[key] += Decimal(request.price_offer)

    venue_types = {v.venue_id: (v.venue_type or "other") for v in venues}
    by_type = Counter(venue_types[r.venue_id] for r in requests if r.venue_id in venue_types)

    return PlatformAnalytics(
        window=TimeWindow(window),
        stats=compute_request_stats(requests, window, now),
        revenue_last_month=revenue_last_month,
        total_venues=len(venues),
        active_venues=sum(1 for v in venues if v.status == VenueStatus.active),
        total_users=sum(1 for u in users if u.role == UserRole.user),
        total_stores=sum(1 for u in users if u.role == UserRole.store),
        revenue_by_month={k: v.quantize(CENTS) for k, v in by_month.items()},
        requests_by_venue_type=dict(by_type),
    )
