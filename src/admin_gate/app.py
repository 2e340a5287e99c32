"""FastAPI application serving the site's admin gate and CSRF bootstrap."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.templating import Jinja2Templates
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException

from admin_gate.config import AppConfig, Settings
from admin_gate.gate import ADMIN_PREFIX, AdminGateMiddleware
from admin_gate.logging_config import configure_logging
from admin_gate.policy import SessionPolicy
from admin_gate.routes import admin, auth, csrf_token
from admin_gate.session import SessionAuthenticator
from admin_gate.tokens import SignatureVerifier, TokenCodec

logger = logging.getLogger(__name__)

VERSION = "1.0.0"
TEMPLATE_DIR = Path(__file__).parent / "templates"


@asynccontextmanager
async def lifespan(app: FastAPI):
    config: AppConfig = app.state.config
    configure_logging(debug=Settings.DEBUG, redact=(config.secret, config.admin_password))
    logger.info("Admin gate starting", extra={"version": VERSION})
    for warning in config.warnings():
        logger.warning(warning)
    yield
    logger.info("Admin gate stopped")


def build_authenticator(config: AppConfig, policy: SessionPolicy | None = None) -> SessionAuthenticator:
    codec = TokenCodec(SignatureVerifier(config.secret))
    return SessionAuthenticator(codec, policy)


def create_app(
    *,
    secret: str | None = None,
    admin_password: str | None = None,
    production: bool | None = None,
    allowed_origins: list[str] | None = None,
    policy: SessionPolicy | None = None,
) -> FastAPI:
    config = AppConfig.from_settings(
        secret=secret,
        admin_password=admin_password,
        production=production,
        allowed_origins=allowed_origins,
    )
    authenticator = build_authenticator(config, policy)

    app = FastAPI(
        title="Admin Gate",
        description="Signed admin sessions and CSRF bootstrap for the marketing site",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.authenticator = authenticator

    app.add_middleware(
        AdminGateMiddleware,
        authenticator=authenticator,
        prefix=ADMIN_PREFIX,
        secure_cookies=config.production,
    )

    # CORS: origins configurable via ALLOWED_ORIGINS env var (comma-separated)
    if config.allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(config.allowed_origins),
            allow_credentials=True,
            allow_methods=["GET", "POST", "DELETE"],
            allow_headers=["content-type", "x-csrf-token"],
        )

    # Rate limiting
    app.state.limiter = auth.limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    templates = Jinja2Templates(directory=str(TEMPLATE_DIR))
    app.state.templates = templates

    # Global exception handlers: HTML for browsers, JSON for API clients
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        accept = request.headers.get("accept", "")
        if "text/html" in accept and not request.url.path.startswith("/api"):
            return templates.TemplateResponse(
                request,
                "error.html",
                {
                    "status_code": exc.status_code,
                    "detail": exc.detail,
                },
                status_code=exc.status_code,
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        accept = request.headers.get("accept", "")
        if "text/html" in accept and not request.url.path.startswith("/api"):
            return templates.TemplateResponse(
                request,
                "error.html",
                {
                    "status_code": 500,
                    "detail": "Internal Server Error",
                },
                status_code=500,
            )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal Server Error"},
        )

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    app.include_router(csrf_token.router, tags=["csrf"])
    app.include_router(auth.router, prefix="/api/admin", tags=["admin-auth"])
    app.include_router(admin.router, prefix=ADMIN_PREFIX, tags=["admin"])

    return app


app = create_app()


def run():
    """Entry point for the admin-gate CLI."""
    uvicorn.run(
        "admin_gate.app:app",
        host=Settings.HOST,
        port=Settings.PORT,
        reload=Settings.DEBUG,
    )


if __name__ == "__main__":
    run()
