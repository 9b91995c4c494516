"""
Profile router — the signed-in user's own travels.

Endpoints:
    GET  /profile   → private, public and pending travels (redirect to login if anonymous)
"""

from pathlib import Path

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession

from travel_manager.config import Settings
from travel_manager.database import get_db
from travel_manager.routers.auth import get_settings, require_user, templates
from travel_manager.schemas.user import CurrentUser
from travel_manager.services import travels as repo

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("", response_class=HTMLResponse)
async def own_profile(
    request: Request,
    current_user: CurrentUser = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    cfg: Settings = Depends(get_settings),
):
    lists = await repo.get_owner_travels(db, current_user.id)
    town_ids = {t.town for group in lists.values() for t in group}
    has_avatar = (Path(cfg.STATIC_DIR) / "profiles" / f"{current_user.id}.png").is_file()

    return templates.TemplateResponse(
        request,
        "profile/index.html",
        {
            "current_user": current_user,
            "towns": await repo.towns_by_id(db, town_ids),
            "has_avatar": has_avatar,
            **lists,
        },
    )
