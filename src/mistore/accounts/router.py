"""Admin login API router."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from mistore.accounts.schemas import LoginRequest, PrincipalResponse
from mistore.common.schemas import MessageResponse
from mistore.common.security import (
    COOKIE_NAME,
    Principal,
    create_session_cookie,
    require_login,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin")


def _get_service():
    from mistore.deps import get_account_service
    return get_account_service()


def _get_db():
    from mistore.deps import get_db
    return get_db()


@router.post("/login", response_model=PrincipalResponse)
async def login(body: LoginRequest):
    from mistore.common.config import get_settings

    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        user = await svc.authenticate(session, body.username, body.password)
        if user is None:
            logger.warning("Failed login for %s", body.username)
            raise HTTPException(status_code=401, detail="Invalid username or password")
        principal = Principal(user_id=user.id, username=user.username, role=user.role)

    payload = PrincipalResponse(
        user_id=principal.user_id,
        username=principal.username,
        role=principal.role,
    )
    response = JSONResponse(payload.model_dump())
    response.set_cookie(
        COOKIE_NAME,
        create_session_cookie(principal),
        max_age=get_settings().session_max_age,
        httponly=True,
        samesite="lax",
    )
    return response


@router.post("/logout", response_model=MessageResponse)
async def logout():
    response = JSONResponse(MessageResponse(message="Logged out").model_dump())
    response.delete_cookie(COOKIE_NAME)
    return response


@router.get("/me", response_model=PrincipalResponse)
async def me(principal: Principal = Depends(require_login)):
    return PrincipalResponse(
        user_id=principal.user_id,
        username=principal.username,
        role=principal.role,
    )
