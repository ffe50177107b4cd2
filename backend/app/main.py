"""FastAPI application entry point."""
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.database import Base, engine
from app.errors import BookingError

# Import routers
from app.routers import analytics, requests, users, venues

# Import all models so Base.metadata knows about them
from app.models.user import User                        # noqa: F401
from app.models.venue import Venue                      # noqa: F401
from app.models.booking_request import BookingRequest   # noqa: F401

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Venue Marketplace",
    description="Venues, booking requests and admin/store/user dashboards",
    version="0.1.0",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    """Domain errors become ``{"detail", "error", "context"}`` with the kind's status code."""
    logger.info("%s on %s %s: %s", exc.kind, request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": exc.kind, "context": exc.details},
    )


# Register routers
app.include_router(users.router, prefix="/api/users", tags=["Users"])
app.include_router(venues.router, prefix="/api/venues", tags=["Venues"])
app.include_router(requests.router, prefix="/api/requests", tags=["Requests"])
app.include_router(analytics.router, prefix="/api/analytics", tags=["Analytics"])


@app.on_event("startup")
def on_startup():
    """Create database tables on startup (for SQLite dev mode)."""
    if settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)


@app.get("/api/health")
def health_check():
    return {"status": "ok"}
