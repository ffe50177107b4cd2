"""Dashboard analytics routes: figures are recomputed on every call."""
import logging
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.auth import require_role
from app.database import get_db
from app.errors import NotAuthorized
from app.models.user import User, UserRole
from app.repositories.request_repository import RequestFilter, RequestRepository
from app.repositories.venue_repository import VenueRepository
from app.schemas.analytics import PlatformAnalyticsOut, RequestStatsOut, VenueAnalyticsOut
from app.services import analytics_service
from app.services.analytics_service import TimeWindow

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/store", response_model=RequestStatsOut)
def store_summary(
    window: TimeWindow = Query(TimeWindow.month),
    db: Session = Depends(get_db),
    caller: User = Depends(require_role(UserRole.store)),
):
    """Totals across every venue the caller owns."""
    venue_ids = VenueRepository(db).owned_ids(caller.user_id)
    requests = RequestRepository(db).list(RequestFilter(venue_ids=venue_ids))
    return analytics_service.compute_request_stats(requests, window)


@router.get("/store/{venue_id}", response_model=VenueAnalyticsOut)
def venue_analytics(
    venue_id: str,
    window: TimeWindow = Query(TimeWindow.month),
    db: Session = Depends(get_db),
    caller: User = Depends(require_role(UserRole.store)),
):
    venue = VenueRepository(db).get(venue_id)
    if venue.owner_id != caller.user_id:
        raise NotAuthorized("Not the owner of this venue", details={"venue_id": venue_id})
    requests = RequestRepository(db).list(RequestFilter(venue_ids=[venue_id]))
    logger.info("Venue analytics for %s over %s (%d requests)", venue_id, window.value, len(requests))
    return analytics_service.compute_venue_analytics(venue, requests, window)


@router.get("/admin", response_model=PlatformAnalyticsOut)
def platform_analytics(
    window: TimeWindow = Query(TimeWindow.year),
    db: Session = Depends(get_db),
    _admin: User = Depends(require_role(UserRole.admin)),
):
    requests = RequestRepository(db).list()
    venues = VenueRepository(db).list()
    users = db.query(User).all()
    return analytics_service.compute_platform_analytics(requests, venues, users, window)
