import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.core.errors import BookingError
from app.core.settings import settings, validate_settings
from app.db.session import SessionLocal, engine
from app.models import Base
from app.routers.admin import router as admin_router
from app.routers.bookings import router as bookings_router
from app.routers.notifications import router as notifications_router
from app.routers.providers import router as providers_router
from app.services.slot_expiry import sweep_all

app = FastAPI(title="Telehealth Booking API", version="0.1.0")
logger = logging.getLogger("telehealth.startup")


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "error": exc.code},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    request_id = request.headers.get("x-request-id")
    logger.exception("Unhandled server error", extra={"request_id": request_id})
    payload = {"detail": "Internal server error"}
    if request_id:
        payload["request_id"] = request_id
    return JSONResponse(status_code=500, content=payload)


@app.on_event("startup")
def startup():
    validate_settings(settings)
    Base.metadata.create_all(bind=engine)

    if not settings.sweep_on_startup:
        return
    db: Session = SessionLocal()
    try:
        removed = sweep_all(db)
        if removed:
            logger.info("Startup sweep removed %s expired slots.", removed)
        else:
            logger.info("Startup sweep found no expired slots.")
    finally:
        db.close()


@app.get("/health")
def health():
    return {"status": "ok"}


app.include_router(providers_router)
app.include_router(bookings_router)
app.include_router(notifications_router)
app.include_router(admin_router)
