"""Admin login, logout and session introspection."""

from __future__ import annotations

import hmac
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from slowapi import Limiter
from slowapi.util import get_remote_address

from admin_gate.csrf import require_csrf
from admin_gate.session import SESSION_COOKIE
from admin_gate.tokens import SessionPayload

logger = logging.getLogger(__name__)

router = APIRouter()
limiter = Limiter(key_func=get_remote_address)


class LoginRequest(BaseModel):
    password: str = Field(min_length=1, max_length=1024)


class SessionOut(BaseModel):
    role: str
    expires_at: int | None = Field(default=None, examples=[1767225600000])


async def require_admin_session(request: Request) -> SessionPayload:
    """Dependency for admin JSON endpoints; same checks as the edge gate."""
    result = request.app.state.authenticator.authenticate(request.cookies.get(SESSION_COOKIE))
    if not result.ok:
        logger.info(
            "Admin API request rejected",
            extra={"path": request.url.path, "reason": result.reason.value if result.reason else None},
        )
        raise HTTPException(status_code=401, detail="Unauthorized")
    return result.payload


@router.post("/auth", dependencies=[Depends(require_csrf)])
@limiter.limit("5/minute")
async def login(request: Request, body: LoginRequest):
    """Exchange the admin password for a signed session cookie."""
    config = request.app.state.config
    authenticator = request.app.state.authenticator

    if not config.admin_password or not authenticator.codec.verifier.configured:
        logger.error("Admin login attempted but ADMIN_PASSWORD or SESSION_SECRET is not set")
        raise HTTPException(status_code=503, detail="Admin login is not configured")

    if not hmac.compare_digest(body.password.encode("utf-8"), config.admin_password.encode("utf-8")):
        logger.warning(
            "Failed admin login",
            extra={"client": request.client.host if request.client else None},
        )
        raise HTTPException(status_code=401, detail="Invalid password")

    token = authenticator.issue(config.session_ttl_seconds)
    response = JSONResponse({"success": True})
    response.set_cookie(
        SESSION_COOKIE,
        token,
        max_age=config.session_ttl_seconds,
        path="/",
        secure=config.production,
        httponly=True,
        samesite="strict",
    )
    logger.info("Admin logged in")
    return response


@router.delete("/auth", dependencies=[Depends(require_csrf)])
async def logout(request: Request):
    """Drop the admin session cookie."""
    response = JSONResponse({"success": True})
    response.delete_cookie(
        SESSION_COOKIE,
        path="/",
        secure=request.app.state.config.production,
        httponly=True,
        samesite="strict",
    )
    return response


@router.get("/session", response_model=SessionOut)
async def current_session(payload: SessionPayload = Depends(require_admin_session)):
    """Claims of the verified admin session."""
    return SessionOut(role=payload.role, expires_at=payload.expires_at)
