"""Edge gate behaviour on the protected admin prefix.

Uses httpx + ASGITransport against a fresh app with a known secret; cookies
are sent as raw headers so each request carries exactly what the test says.
"""

from __future__ import annotations

from unittest.mock import patch

import pytest
from httpx import ASGITransport, AsyncClient

from admin_gate.gate import AdminGateMiddleware

from conftest import FAR_FUTURE_MS, OTHER_SECRET, forge_token


def _session_cookies(resp) -> list[str]:
    return [h for h in resp.headers.get_list("set-cookie") if h.startswith("admin_session=")]


def _assert_cleared(resp) -> None:
    cookies = _session_cookies(resp)
    assert len(cookies) == 1
    assert "max-age=0" in cookies[0].lower()


async def _get(app, path: str, cookie: str | None = None):
    headers = {"cookie": cookie} if cookie is not None else {}
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        return await client.get(path, headers=headers)


# ---------------------------------------------------------------------------
# Tests: redirects
# ---------------------------------------------------------------------------


class TestGateRejects:
    @pytest.mark.asyncio
    async def test_no_cookie_redirects_without_set_cookie(self, app):
        resp = await _get(app, "/admin/dashboard")
        assert resp.status_code == 307
        assert resp.headers["location"] == "/admin"
        assert _session_cookies(resp) == []

    @pytest.mark.asyncio
    async def test_other_secret_redirects_and_clears(self, app):
        token = forge_token({"role": "admin", "expiresAt": FAR_FUTURE_MS}, secret=OTHER_SECRET)
        resp = await _get(app, "/admin/dashboard", f"admin_session={token}")
        assert resp.status_code == 307
        assert resp.headers["location"] == "/admin"
        _assert_cleared(resp)

    @pytest.mark.asyncio
    async def test_expired_redirects_and_clears(self, app):
        token = forge_token({"role": "admin", "expiresAt": 1})
        resp = await _get(app, "/admin/dashboard", f"admin_session={token}")
        assert resp.status_code == 307
        _assert_cleared(resp)

    @pytest.mark.asyncio
    async def test_non_admin_role_redirects_and_clears(self, app):
        token = forge_token({"role": "editor", "expiresAt": FAR_FUTURE_MS})
        resp = await _get(app, "/admin/dashboard", f"admin_session={token}")
        assert resp.status_code == 307
        _assert_cleared(resp)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("value", ["garbage", "", "bm8tc2VwYXJhdG9y"])
    async def test_malformed_cookie_redirects_and_clears(self, app, value):
        resp = await _get(app, "/admin/dashboard", f"admin_session={value}")
        assert resp.status_code == 307
        _assert_cleared(resp)

    @pytest.mark.asyncio
    async def test_unsigned_legacy_token_rejected(self, app):
        # base64("admin:<timestamp>"), what an unsigned login used to hand out
        resp = await _get(app, "/admin/dashboard", "admin_session=YWRtaW46MTcwMDAwMDAwMDAwMA==")
        assert resp.status_code == 307
        _assert_cleared(resp)

    @pytest.mark.asyncio
    async def test_gate_runs_before_routing(self, app):
        resp = await _get(app, "/admin/posts/edit/some-slug")
        assert resp.status_code == 307
        assert resp.headers["location"] == "/admin"

    @pytest.mark.asyncio
    async def test_unexpected_error_redirects(self, app):
        token = forge_token({"role": "admin", "expiresAt": FAR_FUTURE_MS})
        authenticator = app.state.authenticator
        with patch.object(authenticator.policy, "check", side_effect=ZeroDivisionError):
            resp = await _get(app, "/admin/dashboard", f"admin_session={token}")
        assert resp.status_code == 307
        _assert_cleared(resp)

    @pytest.mark.asyncio
    async def test_unconfigured_secret_rejects_everything(self):
        from admin_gate.app import create_app

        app = create_app(secret="", admin_password="pw", production=False, allowed_origins=[])
        token = forge_token({"role": "admin", "expiresAt": FAR_FUTURE_MS})
        resp = await _get(app, "/admin/dashboard", f"admin_session={token}")
        assert resp.status_code == 307
        _assert_cleared(resp)


# ---------------------------------------------------------------------------
# Tests: pass-through
# ---------------------------------------------------------------------------


class TestGateAllows:
    @pytest.mark.asyncio
    async def test_valid_token_reaches_dashboard(self, app):
        token = forge_token({"role": "admin", "expiresAt": FAR_FUTURE_MS})
        resp = await _get(app, "/admin/dashboard", f"admin_session={token}")
        assert resp.status_code == 200
        assert "text/html" in resp.headers.get("content-type", "")
        assert "Dashboard" in resp.text
        assert _session_cookies(resp) == []

    @pytest.mark.asyncio
    async def test_valid_token_without_expiry(self, app):
        token = forge_token({"role": "admin"})
        resp = await _get(app, "/admin/dashboard", f"admin_session={token}")
        assert resp.status_code == 200

    @pytest.mark.asyncio
    async def test_same_token_twice(self, app):
        token = forge_token({"role": "admin", "expiresAt": FAR_FUTURE_MS})
        first = await _get(app, "/admin/dashboard", f"admin_session={token}")
        second = await _get(app, "/admin/dashboard", f"admin_session={token}")
        assert first.status_code == second.status_code == 200

    @pytest.mark.asyncio
    async def test_login_page_is_not_gated(self, app):
        resp = await _get(app, "/admin")
        assert resp.status_code == 200
        assert "Contraseña" in resp.text

    @pytest.mark.asyncio
    async def test_login_page_ignores_bad_cookie(self, app):
        resp = await _get(app, "/admin", "admin_session=garbage")
        assert resp.status_code == 200
        assert _session_cookies(resp) == []

    @pytest.mark.asyncio
    async def test_public_paths_not_gated(self, app):
        resp = await _get(app, "/health")
        assert resp.status_code == 200
        resp = await _get(app, "/administrator")
        assert resp.status_code == 404


# ---------------------------------------------------------------------------
# Tests: prefix matching
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("path,protected", [
    ("/admin", False),
    ("/admin/", False),
    ("/admin/dashboard", True),
    ("/admin/posts/new", True),
    ("/administrator", False),
    ("/api/admin/auth", False),
    ("/", False),
])
def test_is_protected(path, protected):
    gate = AdminGateMiddleware(app=None, authenticator=None)
    assert gate.is_protected(path) is protected


def test_custom_prefix_and_login_path():
    gate = AdminGateMiddleware(app=None, authenticator=None, prefix="/staff/", login_path="/login")
    assert gate.prefix == "/staff"
    assert gate.login_path == "/login"
    assert gate.is_protected("/staff/reports")
