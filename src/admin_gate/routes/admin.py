"""Admin pages. Everything below ``/admin/`` is behind the edge gate."""

from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("")
async def admin_login(request: Request):
    templates = request.app.state.templates
    return templates.TemplateResponse(request, "admin/login.html")


@router.get("/dashboard")
async def admin_dashboard(request: Request):
    templates = request.app.state.templates
    return templates.TemplateResponse(request, "admin/dashboard.html", {
        "session": request.state.admin_session,
    })
