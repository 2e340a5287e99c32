"""Edge gate for the admin area.

Every request strictly below the protected prefix (``/admin/...``) has its
``admin_session`` cookie verified before the route runs. The bare prefix is
the login page and passes through. A missing cookie redirects to the login
page; a cookie that fails any check redirects *and* is deleted so the browser
stops replaying it. Nothing in here raises to the caller.
"""

from __future__ import annotations

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response
from starlette.types import ASGIApp

from admin_gate.errors import RejectReason
from admin_gate.session import SESSION_COOKIE, SessionAuthenticator, VerificationResult

logger = logging.getLogger(__name__)

ADMIN_PREFIX = "/admin"


class AdminGateMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app: ASGIApp,
        authenticator: SessionAuthenticator,
        prefix: str = ADMIN_PREFIX,
        login_path: str | None = None,
        secure_cookies: bool = False,
    ):
        super().__init__(app)
        self.authenticator = authenticator
        self.prefix = prefix.rstrip("/")
        self.login_path = login_path or self.prefix
        self.secure_cookies = secure_cookies

    def is_protected(self, path: str) -> bool:
        return path.startswith(self.prefix + "/") and path.rstrip("/") != self.prefix

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        if not self.is_protected(path):
            return await call_next(request)

        has_cookie = SESSION_COOKIE in request.cookies
        try:
            result = self.authenticator.authenticate(request.cookies.get(SESSION_COOKIE))
        except Exception:
            logger.exception("Admin gate failed closed on %s", path)
            result = VerificationResult(ok=False, reason=RejectReason.INTERNAL)

        if result.ok:
            request.state.admin_session = result.payload
            return await call_next(request)

        logger.info(
            "Admin session rejected",
            extra={
                "path": path,
                "reason": result.reason.value if result.reason else None,
                "client": request.client.host if request.client else None,
            },
        )
        return self._reject(has_cookie)

    def _reject(self, clear_cookie: bool) -> Response:
        response = RedirectResponse(self.login_path, status_code=307)
        if clear_cookie:
            response.delete_cookie(
                SESSION_COOKIE,
                path="/",
                secure=self.secure_cookies,
                httponly=True,
                samesite="strict",
            )
        return response
