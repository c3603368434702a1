"""
Resolving the calling user.

Sessions are issued elsewhere. Either an upstream middleware puts the user on
request.state.user, or an auth proxy forwards the user id in a header.

The header is only read when TRUST_USER_HEADER is set. Set it only when the
app is reachable solely through that proxy and the proxy overwrites the
header; otherwise any caller could claim any user id.
"""

import logging
from typing import Optional

from fastapi import Request
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class AuthorizationError(Exception):
    """The caller has no resolved identity."""


class SessionUser(BaseModel):
    id: str
    email: Optional[str] = None
    name: Optional[str] = None


def get_session_user(request: Request) -> Optional[SessionUser]:
    user = getattr(request.state, "user", None)
    if isinstance(user, SessionUser):
        return user if user.id else None
    if isinstance(user, dict) and user.get("id"):
        return SessionUser(**user)

    settings = getattr(request.app.state, "settings", None)
    if settings is None or not settings.trust_user_header:
        return None
    user_id = (request.headers.get(settings.session_user_header) or "").strip()
    if not user_id:
        return None
    return SessionUser(id=user_id)


def require_user(user: Optional[SessionUser]) -> SessionUser:
    if user is None or not user.id:
        logger.warning("Rejected request without a session user")
        raise AuthorizationError("User ID is required")
    return user
