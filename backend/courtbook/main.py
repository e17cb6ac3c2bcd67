import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .config import settings
from .errors import BookingError
from .redis_client import redis_client
from .routers import (
    availability_rules,
    blocked_ranges,
    internal,
    reservations,
    slots,
)
from .services.expiry_reaper import expiry_reaper_loop

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    task = None
    if settings.reaper_enabled:
        task = asyncio.create_task(expiry_reaper_loop())
    yield
    if task is not None:
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass


app = FastAPI(title="Court Booking API", lifespan=lifespan)


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    logger.info(f"{exc.error_code} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


app.include_router(availability_rules.router)
app.include_router(blocked_ranges.router)
app.include_router(reservations.router)
app.include_router(slots.router)
app.include_router(internal.router)


@app.get("/health")
def health():
    try:
        redis_ok = redis_client.ping()
    except Exception as e:
        logger.warning(f"Redis ping failed: {e}")
        redis_ok = False
    return {"status": "ok", "redis": redis_ok}
