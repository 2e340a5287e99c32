"""Shared fixtures: synthetic secrets, token helpers, and limiter reset."""

from __future__ import annotations

import base64
import hashlib
import hmac
import json

import pytest

SECRET = "test-session-secret"
OTHER_SECRET = "some-other-secret"
PASSWORD = "correct horse battery staple"
FAR_FUTURE_MS = 4_102_444_800_000  # 2100-01-01


def forge_token(claims: dict | bytes, secret: str = SECRET) -> str:
    """Build a token by hand, independent of ``TokenCodec``."""
    data = claims if isinstance(claims, bytes) else json.dumps(claims).encode("utf-8")
    signature = hmac.new(secret.encode("utf-8"), data, hashlib.sha256).hexdigest()
    return base64.b64encode(data + b"." + signature.encode("ascii")).decode("ascii")


@pytest.fixture(autouse=True)
def _reset_rate_limits():
    from admin_gate.routes.auth import limiter

    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture()
def app():
    """Fresh app with a known secret and password, lifespan not run."""
    from admin_gate.app import create_app

    return create_app(
        secret=SECRET,
        admin_password=PASSWORD,
        production=False,
        allowed_origins=[],
    )
