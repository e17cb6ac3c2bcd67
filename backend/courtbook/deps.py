# backend/courtbook/deps.py
"""
Request dependencies shared by routers.

Identity is established by the gateway in front of the backend and
forwarded as the X-User-Id header; the backend trusts it.
"""

from fastapi import Header, HTTPException, status

from .services.clock import get_clock  # noqa: F401  (re-exported for routers)


def get_current_user_id(x_user_id: int | None = Header(None)) -> int:
    if x_user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header",
        )
    return x_user_id
