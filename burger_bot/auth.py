"""
Authentication for the Burger Bot admin surface.

All /admin/* endpoints require HTTP Basic credentials configured through
ADMIN_USERNAME and ADMIN_PASSWORD. Credentials are compared in constant
time. When ADMIN_PASSWORD is empty the admin surface answers 503 instead of
being left open.

Usage:
------
    from burger_bot.auth import verify_admin_credentials

    @router.get("/admin/conversations/prioritized")
    def list_prioritized(admin: str = Depends(verify_admin_credentials)):
        ...
"""

import logging
import secrets

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from . import config

logger = logging.getLogger(__name__)

# Shared realm so browsers reuse the credentials across admin paths
security = HTTPBasic(realm="Burger Bot Admin")


def verify_admin_credentials(
    credentials: HTTPBasicCredentials = Depends(security),
) -> str:
    """
    FastAPI dependency guarding the admin endpoints.

    Returns:
        The authenticated username.

    Raises:
        HTTPException (503): ADMIN_PASSWORD is not configured.
        HTTPException (401): Wrong username or password.
    """
    if not config.ADMIN_PASSWORD:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Admin authentication not configured. Set ADMIN_PASSWORD environment variable.",
        )

    username_correct = secrets.compare_digest(
        credentials.username.encode("utf-8"),
        config.ADMIN_USERNAME.encode("utf-8"),
    )
    password_correct = secrets.compare_digest(
        credentials.password.encode("utf-8"),
        config.ADMIN_PASSWORD.encode("utf-8"),
    )

    if not (username_correct and password_correct):
        logger.warning("Rejected admin login for user %r", credentials.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid admin credentials",
            headers={"WWW-Authenticate": 'Basic realm="Burger Bot Admin"'},
        )

    return credentials.username
