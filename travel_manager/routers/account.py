"""
Account API — credential submission and account management.

Endpoints:
    POST /api/auth/login     → open a session, set cookie (401 + message on failure)
    POST /api/auth/register  → create user + session (401 + message if email taken)
    POST /api/auth/logout    → invalidate the cookie's session
    POST /api/auth/rename    → change display name
    POST /api/auth/delete    → delete the account and everything it owns
    POST /api/auth/avatar    → upload a profile picture
"""

import logging
import shutil
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from travel_manager.config import Settings
from travel_manager.database import get_db
from travel_manager.routers.auth import (
    clear_session_cookie,
    get_settings,
    require_user,
    set_session_cookie,
    templates,
)
from travel_manager.schemas.user import CurrentUser, UserCreate
from travel_manager.services import auth as auth_service
from travel_manager.utils.messages import message

router = APIRouter(prefix="/api/auth", tags=["account"])
logger = logging.getLogger(__name__)


@router.post("/login", response_class=HTMLResponse)
async def login(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    db: AsyncSession = Depends(get_db),
    cfg: Settings = Depends(get_settings),
):
    token = await auth_service.login(db, email.strip(), password, rounds=cfg.BCRYPT_ROUNDS)
    if not token:
        return templates.TemplateResponse(
            request,
            "auth/login.html",
            {"error": message("bad_credentials", cfg.LOCALE)},
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    response = RedirectResponse(url="/", status_code=status.HTTP_303_SEE_OTHER)
    return set_session_cookie(response, token, cfg)


@router.post("/register", response_class=HTMLResponse)
async def register(
    request: Request,
    email: str = Form(""),
    name: str = Form(""),
    password: str = Form(""),
    db: AsyncSession = Depends(get_db),
    cfg: Settings = Depends(get_settings),
):
    try:
        data = UserCreate(email=email.strip(), name=name.strip(), password=password)
    except ValidationError:
        return templates.TemplateResponse(
            request,
            "auth/register.html",
            {"error": message("invalid_email", cfg.LOCALE)},
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    token = await auth_service.register(
        db, data.email, data.name, data.password, rounds=cfg.BCRYPT_ROUNDS
    )
    if not token:
        return templates.TemplateResponse(
            request,
            "auth/register.html",
            {"error": message("email_taken", cfg.LOCALE)},
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    response = RedirectResponse(url="/", status_code=status.HTTP_303_SEE_OTHER)
    return set_session_cookie(response, token, cfg)


@router.post("/logout")
async def logout(
    request: Request,
    current_user: CurrentUser = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    cfg: Settings = Depends(get_settings),
):
    await auth_service.invalidate_session(db, request.cookies.get(cfg.SESSION_COOKIE))
    logger.info(f"User {current_user.id} logged out")

    response = RedirectResponse(url="/auth", status_code=status.HTTP_303_SEE_OTHER)
    return clear_session_cookie(response, cfg)


@router.post("/rename")
async def rename(
    name: str = Form(...),
    current_user: CurrentUser = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    new_name = name.strip()
    if new_name:
        await auth_service.rename_account(db, current_user.id, new_name)
    return RedirectResponse(url="/profile", status_code=status.HTTP_303_SEE_OTHER)


@router.post("/delete")
async def delete(
    current_user: CurrentUser = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    cfg: Settings = Depends(get_settings),
):
    await auth_service.delete_account(db, current_user.id)

    avatar = Path(cfg.STATIC_DIR) / "profiles" / f"{current_user.id}.png"
    avatar.unlink(missing_ok=True)

    response = RedirectResponse(url="/auth", status_code=status.HTTP_303_SEE_OTHER)
    return clear_session_cookie(response, cfg)


@router.post("/avatar")
async def avatar(
    avatar: Optional[UploadFile] = File(None),
    current_user: CurrentUser = Depends(require_user),
    cfg: Settings = Depends(get_settings),
):
    if avatar is not None and avatar.filename:
        target = Path(cfg.STATIC_DIR) / "profiles" / f"{current_user.id}.png"
        target.parent.mkdir(parents=True, exist_ok=True)
        with target.open("wb") as out:
            shutil.copyfileobj(avatar.file, out)

    return RedirectResponse(url="/profile", status_code=status.HTTP_303_SEE_OTHER)
