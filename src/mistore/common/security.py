"""Signed session cookies and authentication dependencies."""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Request
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

COOKIE_NAME = "mistore_session"


@dataclass
class Principal:
    """Signed-in user resolved from the session cookie."""
    user_id: int
    username: str
    role: str = "user"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def _get_serializer() -> URLSafeTimedSerializer:
    from mistore.common.config import get_settings
    return URLSafeTimedSerializer(get_settings().secret_key, salt="admin-session")


def create_session_cookie(principal: Principal) -> str:
    """Sign a session payload and return the cookie value."""
    s = _get_serializer()
    return s.dumps({
        "uid": principal.user_id,
        "username": principal.username,
        "role": principal.role,
    })


def verify_session_cookie(cookie: str) -> dict | None:
    """Verify and decode a session cookie. Returns payload or None."""
    from mistore.common.config import get_settings

    s = _get_serializer()
    try:
        return s.loads(cookie, max_age=get_settings().session_max_age)
    except (BadSignature, SignatureExpired):
        return None


async def current_principal(request: Request) -> Optional[Principal]:
    """FastAPI dependency resolving the optional signed-in principal."""
    cookie = request.cookies.get(COOKIE_NAME)
    if not cookie:
        return None
    payload = verify_session_cookie(cookie)
    if payload is None:
        return None
    try:
        return Principal(
            user_id=int(payload["uid"]),
            username=str(payload["username"]),
            role=str(payload.get("role", "user")),
        )
    except (KeyError, TypeError, ValueError):
        return None


async def require_login(
    principal: Optional[Principal] = Depends(current_principal),
) -> Principal:
    if principal is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return principal


async def require_admin(
    principal: Principal = Depends(require_login),
) -> Principal:
    """FastAPI dependency that only lets administrators through."""
    if not principal.is_admin:
        raise HTTPException(status_code=403, detail="Administrator role required")
    return principal
