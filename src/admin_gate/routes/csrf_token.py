"""CSRF bootstrap endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from admin_gate.csrf import issue_csrf_token, set_csrf_cookie

router = APIRouter()


class CsrfTokenOut(BaseModel):
    token: str


@router.get("/api/csrf", response_model=CsrfTokenOut)
async def csrf_bootstrap(request: Request):
    """Issue a fresh CSRF token in the body and in an HttpOnly cookie."""
    token = issue_csrf_token()
    response = JSONResponse({"token": token}, headers={"Cache-Control": "no-store"})
    set_csrf_cookie(response, token, secure=request.app.state.config.production)
    return response
