"""
Admin router — moderation queue and approve/reject actions.

Endpoints:
    GET       /admins               → pending public submissions + town list
    GET       /admins/view?id=      → one pending submission with its activities
    POST      /api/admins/approve?id=  → move a submission to the public travels
    POST      /api/admins/delete?id=   → reject a submission

Any signed-in user may moderate; there is no separate admin role.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from travel_manager.database import get_db
from travel_manager.routers.auth import require_user, templates
from travel_manager.schemas.user import CurrentUser
from travel_manager.services import moderation
from travel_manager.services import travels as repo

router = APIRouter(prefix="/admins", tags=["admins"])
api_router = APIRouter(prefix="/api/admins", tags=["admins-api"])


@router.get("", response_class=HTMLResponse)
async def moderation_queue(
    request: Request,
    current_user: CurrentUser = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    queue = await repo.get_moderation_queue(db)
    return templates.TemplateResponse(
        request,
        "admins/index.html",
        {
            "current_user": current_user,
            "moderated_travels": queue,
            "towns": await repo.towns_by_id(db, (t.town for t in queue)),
            "all_towns": await repo.get_towns(db),
        },
    )


@router.get("/view", response_class=HTMLResponse)
async def view_submission(
    request: Request,
    id: int,
    current_user: CurrentUser = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    travel = await repo.get_moderated_travel(db, id)
    if travel is None:
        raise HTTPException(status_code=404, detail="Submission not found")

    return templates.TemplateResponse(
        request,
        "admins/view.html",
        {
            "current_user": current_user,
            "travel": travel,
            "town": await repo.get_town(db, travel.town),
            "activities": await repo.get_activities(db, travel.activities or []),
        },
    )


@api_router.post("/approve")
async def approve(
    id: int,
    current_user: CurrentUser = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    await moderation.approve(db, id)
    return RedirectResponse(url="/admins", status_code=status.HTTP_303_SEE_OTHER)


@api_router.post("/delete")
async def reject(
    id: int,
    current_user: CurrentUser = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    await moderation.reject(db, id)
    return RedirectResponse(url="/admins", status_code=status.HTTP_303_SEE_OTHER)
