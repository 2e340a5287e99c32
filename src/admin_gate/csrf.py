"""CSRF protection via double-submit cookie pattern.

``GET /api/csrf`` issues a fresh token, returns it in the JSON body and
mirrors it into an HttpOnly ``csrf_token`` cookie. Mutating handlers depend on
``require_csrf``, which accepts the request only when the ``x-csrf-token``
header equals the cookie and, in production, the request comes from an
allowed origin.
"""

from __future__ import annotations

import hmac
import logging
import secrets
from typing import Iterable
from urllib.parse import urlsplit

from fastapi import HTTPException, Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

CSRF_COOKIE = "csrf_token"
CSRF_HEADER = "x-csrf-token"
CSRF_MAX_AGE = 60 * 60 * 24
SAFE_METHODS = {"GET", "HEAD", "OPTIONS"}


def issue_csrf_token() -> str:
    """Return 32 bytes from the OS CSPRNG as 64 hex characters.

    Errors from the random source propagate; there is no fallback token.
    """
    return secrets.token_hex(32)  # allow-secret


def set_csrf_cookie(response: Response, token: str, *, secure: bool) -> None:
    response.set_cookie(
        CSRF_COOKIE,
        token,
        max_age=CSRF_MAX_AGE,
        path="/",
        secure=secure,
        httponly=True,
        samesite="strict",
    )


def tokens_match(cookie_token: str | None, header_token: str | None) -> bool:
    if not cookie_token or not header_token:
        return False
    return hmac.compare_digest(cookie_token.encode("utf-8"), header_token.encode("utf-8"))


def _origin_of(url: str) -> str | None:
    try:
        parts = urlsplit(url)
    except ValueError:
        return None
    if not parts.scheme or not parts.netloc:
        return None
    return f"{parts.scheme}://{parts.netloc}"


def is_valid_origin(request: Request, allowed_origins: Iterable[str], *, production: bool) -> bool:
    """Check Origin, falling back to Referer, against *allowed_origins*.

    Outside production every origin is accepted so local development works.
    """
    if not production:
        return True

    allowed = set(allowed_origins)
    origin = request.headers.get("origin")
    if origin and origin in allowed:
        return True

    referer = request.headers.get("referer")
    if referer:
        return _origin_of(referer) in allowed
    return False


async def require_csrf(request: Request) -> None:
    """FastAPI dependency guarding state-changing endpoints."""
    if request.method in SAFE_METHODS:
        return

    config = request.app.state.config
    log_extra = {"path": request.url.path, "method": request.method}

    if not is_valid_origin(request, config.allowed_origins, production=config.production):
        logger.warning("Rejected request from disallowed origin", extra={**log_extra, "reason": "origin"})
        raise HTTPException(status_code=403, detail="Invalid origin")

    cookie_token = request.cookies.get(CSRF_COOKIE)  # allow-secret
    header_token = request.headers.get(CSRF_HEADER)
    if not tokens_match(cookie_token, header_token):
        logger.warning("Rejected request with CSRF token mismatch", extra={**log_extra, "reason": "csrf"})
        raise HTTPException(status_code=403, detail="CSRF token mismatch")
