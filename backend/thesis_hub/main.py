"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from thesis_hub.config import settings
from thesis_hub.database import Base, SessionLocal, engine
from thesis_hub.errors import AccessRequestError
from thesis_hub.services.scheduler import ExpirationScheduler

# Import routers
from thesis_hub.routers import users, theses, access_requests, notifications

# Import all models so Base.metadata knows about them
from thesis_hub.models.user import User                      # noqa: F401
from thesis_hub.models.thesis import Thesis                  # noqa: F401
from thesis_hub.models.access_request import AccessRequest   # noqa: F401
from thesis_hub.models.notification import Notification      # noqa: F401

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create database tables on startup (for SQLite dev mode)
    if settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)

    scheduler = ExpirationScheduler(SessionLocal, settings)
    app.state.expiration_scheduler = scheduler
    scheduler.start()
    try:
        yield
    finally:
        await scheduler.stop()


app = FastAPI(
    title="Thesis Hub",
    description="Thesis repository access requests: submission, admin review and timed expiry",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AccessRequestError)
async def access_request_error_handler(request: Request, exc: AccessRequestError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "code": exc.code},
    )


# Register routers
app.include_router(users.router, prefix="/api/users", tags=["Users"])
app.include_router(theses.router, prefix="/api/theses", tags=["Theses"])
app.include_router(access_requests.router, prefix="/api/access-requests", tags=["AccessRequests"])
app.include_router(notifications.router, prefix="/api/notifications", tags=["Notifications"])


@app.get("/api/health")
def health_check():
    return {"status": "ok"}
