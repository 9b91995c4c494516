"""
Authentication router — login / register pages and the per-request session gate.

Endpoints:
    GET  /auth            → redirect to the login page
    GET  /auth/login      → login form
    GET  /auth/register   → registration form

Signed-in visitors are sent back to ``/`` from every ``/auth`` page.

``get_current_user`` resolves the session cookie on each request;
``require_user`` is the one guard every protected handler depends on.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.ext.asyncio import AsyncSession

from travel_manager.config import TEMPLATES_DIR, Settings, settings as default_settings
from travel_manager.database import get_db
from travel_manager.schemas.user import CurrentUser
from travel_manager.services.auth import resolve_session
from travel_manager.services.errors import LoginRequired

router = APIRouter(prefix="/auth", tags=["auth"])
templates = Jinja2Templates(directory=TEMPLATES_DIR)
templates.env.globals["appname"] = default_settings.APP_NAME

LOGIN_URL = "/auth/login"


# ═══════════════════════════════════════════════════════════════
#  Dependencies
# ═══════════════════════════════════════════════════════════════

def get_settings(request: Request) -> Settings:
    """Settings the running app was built with."""
    return request.app.state.settings


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> Optional[CurrentUser]:
    """
    Resolve the session cookie to a user and attach it to ``request.state``.
    Returns None when no valid session is present (allows public pages).
    """
    token = request.cookies.get(get_settings(request).SESSION_COOKIE)
    user = await resolve_session(db, token)
    request.state.user = user
    return user


async def require_user(
    current_user: Optional[CurrentUser] = Depends(get_current_user),
) -> CurrentUser:
    """Guard for protected handlers: anonymous requests go to the login page."""
    if current_user is None:
        raise LoginRequired()
    return current_user


def set_session_cookie(response: RedirectResponse, token: str, cfg: Settings) -> RedirectResponse:
    """Attach the session cookie to a response."""
    response.set_cookie(
        key=cfg.SESSION_COOKIE,
        value=token,
        httponly=True,
        secure=cfg.COOKIE_SECURE,
        samesite="lax",
    )
    return response


def clear_session_cookie(response: RedirectResponse, cfg: Settings) -> RedirectResponse:
    """Expire the session cookie immediately."""
    response.delete_cookie(
        key=cfg.SESSION_COOKIE,
        httponly=True,
        secure=cfg.COOKIE_SECURE,
        samesite="lax",
    )
    return response


# ═══════════════════════════════════════════════════════════════
#  Page routes
# ═══════════════════════════════════════════════════════════════

@router.get("")
async def auth_index(current_user: Optional[CurrentUser] = Depends(get_current_user)):
    target = "/" if current_user else LOGIN_URL
    return RedirectResponse(url=target, status_code=status.HTTP_303_SEE_OTHER)


@router.get("/login", response_class=HTMLResponse)
async def login_page(
    request: Request,
    current_user: Optional[CurrentUser] = Depends(get_current_user),
):
    """Render the login form."""
    if current_user:
        return RedirectResponse(url="/", status_code=status.HTTP_303_SEE_OTHER)
    return templates.TemplateResponse(request, "auth/login.html", {"error": None})


@router.get("/register", response_class=HTMLResponse)
async def register_page(
    request: Request,
    current_user: Optional[CurrentUser] = Depends(get_current_user),
):
    """Render the registration form."""
    if current_user:
        return RedirectResponse(url="/", status_code=status.HTTP_303_SEE_OTHER)
    return templates.TemplateResponse(request, "auth/register.html", {"error": None})
