# backend/courtbook/routers/internal.py
"""
Internal API endpoints for trusted consumers.

These endpoints are NOT exposed through the Gateway proxy.
They are called directly by schedulers/cron on the same host.

Access: localhost only
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..deps import get_clock
from ..schemas.slots import SweepResult
from ..services.clock import Clock
from ..services.reservations import complete_elapsed, reap_expired

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/internal", tags=["internal"])

ALLOWED_HOSTS = ("127.0.0.1", "localhost", "::1")


def require_localhost(request: Request) -> None:
    client_host = request.client.host if request.client else None
    if client_host is not None and client_host not in ALLOWED_HOSTS:
        logger.warning(f"Internal endpoint called from non-localhost: {client_host}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Internal endpoints are only accessible from localhost",
        )


@router.post(
    "/reservations/sweep",
    response_model=SweepResult,
    dependencies=[Depends(require_localhost)],
)
def sweep_reservations(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Expire lapsed pending holds and complete elapsed reservations now."""
    now = clock.now()
    expired = reap_expired(db, now)
    completed = complete_elapsed(db, now)
    logger.info(f"Manual sweep: expired={expired} completed={completed}")
    return SweepResult(expired=expired, completed=completed)
