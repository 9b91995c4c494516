"""
Travels router — recommendations, travel pages, comments, submission.

Endpoints:
    GET  /travels                       → public recommendations (optional ?town=)
    GET  /travels/view?id=              → one travel (public, or private to its owner)
    GET  /travels/new                   → new travel form
    GET  /travels/comments?id=&type=    → comments on a travel or an activity

    GET  /api/travels/get_activities?town=   → JSON list of a town's activities
    POST /api/travels/create                 → submit a travel (private or for moderation)
    POST /api/travels/add_town               → add a town
    POST /api/travels/add_activity           → add an activity (+ optional image)
    POST /api/travels/add_comment?id=&type=  → comment on a travel or an activity
"""

import shutil
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile, status
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from travel_manager.config import Settings
from travel_manager.database import get_db
from travel_manager.routers.auth import get_current_user, get_settings, require_user, templates
from travel_manager.schemas.travel import ActivityOut, TravelSubmission
from travel_manager.schemas.user import CurrentUser
from travel_manager.services import moderation
from travel_manager.services import travels as repo

router = APIRouter(prefix="/travels", tags=["travels"])
api_router = APIRouter(prefix="/api/travels", tags=["travels-api"])

COMMENT_TARGETS = {"travel", "activity"}
PUBLIC_FLAGS = {"on", "true", "1", "yes"}


async def _comment_target(db: AsyncSession, target_type: str, target_id: int, viewer_id: int):
    """The travel (visibility rule applied) or activity a comment belongs to."""
    if target_type not in COMMENT_TARGETS:
        raise HTTPException(status_code=400, detail=f"Unknown comment type: {target_type}")
    if target_type == "travel":
        target = await repo.find_visible_travel(db, target_id, viewer_id)
    else:
        target = await repo.get_activity(db, target_id)
    if target is None:
        raise HTTPException(status_code=404, detail=f"{target_type.capitalize()} not found")
    return target


# ═══════════════════════════════════════════════════════════════
#  Pages
# ═══════════════════════════════════════════════════════════════

@router.get("", response_class=HTMLResponse)
async def recommendations(
    request: Request,
    town: Optional[int] = None,
    current_user: Optional[CurrentUser] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    cfg: Settings = Depends(get_settings),
):
    travels = await repo.get_recommendations(db, town, limit=cfg.RECOMMENDATIONS_LIMIT)
    return templates.TemplateResponse(
        request,
        "travels/index.html",
        {
            "current_user": current_user,
            "recommendations": travels,
            "towns": await repo.towns_by_id(db, (t.town for t in travels)),
            "all_towns": await repo.get_towns(db),
            "selected_town": town,
        },
    )


@router.get("/view", response_class=HTMLResponse)
async def view_travel(
    request: Request,
    id: int,
    current_user: Optional[CurrentUser] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    travel = await repo.find_visible_travel(db, id, current_user.id if current_user else None)
    if travel is None:
        raise HTTPException(status_code=404, detail="Travel not found")

    return templates.TemplateResponse(
        request,
        "travels/view.html",
        {
            "current_user": current_user,
            "travel": travel,
            "town": await repo.get_town(db, travel.town),
            "activities": await repo.get_activities(db, travel.activities or []),
        },
    )


@router.get("/new", response_class=HTMLResponse)
async def new_travel_form(
    request: Request,
    current_user: CurrentUser = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    return templates.TemplateResponse(
        request,
        "travels/new.html",
        {"current_user": current_user, "towns": await repo.get_towns(db)},
    )


@router.get("/comments", response_class=HTMLResponse)
async def comments_page(
    request: Request,
    id: int,
    target_type: str = Query("travel", alias="type"),
    current_user: CurrentUser = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    target = await _comment_target(db, target_type, id, current_user.id)
    if target_type == "travel":
        comments = await repo.get_travel_comments(db, id)
    else:
        comments = await repo.get_activity_comments(db, id)

    return templates.TemplateResponse(
        request,
        "travels/comments.html",
        {
            "current_user": current_user,
            "target": target,
            "town": await repo.get_town(db, target.town),
            "type": target_type,
            "comments": comments,
        },
    )


# ═══════════════════════════════════════════════════════════════
#  API
# ═══════════════════════════════════════════════════════════════

@api_router.get("/get_activities")
async def activities_for_town(
    town: int,
    current_user: CurrentUser = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Activities of one town, for the itinerary builder."""
    activities = await repo.get_activities_by_town(db, town)
    return [ActivityOut.model_validate(a).model_dump() for a in activities]


@api_router.post("/create")
async def create_travel(
    request: Request,
    current_user: CurrentUser = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    form = await request.form()
    try:
        submission = TravelSubmission(
            name=(form.get("name") or "").strip(),
            description=(form.get("description") or "").strip() or None,
            town=int(form.get("town") or 0),
            activities=repo.normalize_activity_ids(form.getlist("activity")),
            is_public=(form.get("is_public") or "").lower() in PUBLIC_FLAGS,
        )
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid travel form")

    if not submission.name:
        raise HTTPException(status_code=400, detail="Travel name is required")

    await moderation.submit(db, submission, current_user.id)
    return RedirectResponse(url="/profile", status_code=status.HTTP_303_SEE_OTHER)


@api_router.post("/add_town")
async def add_town(
    name: str = Form(...),
    coordinates: str = Form(...),
    current_user: CurrentUser = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    await repo.add_town(db, name.strip(), coordinates)
    return RedirectResponse(url="/admins", status_code=status.HTTP_303_SEE_OTHER)


@api_router.post("/add_activity")
async def add_activity(
    name: str = Form(...),
    town: int = Form(...),
    description: Optional[str] = Form(None),
    coordinates: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    current_user: CurrentUser = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    cfg: Settings = Depends(get_settings),
):
    activity = await repo.add_activity(db, name.strip(), description, town, coordinates)

    if image is not None and image.filename:
        target = Path(cfg.STATIC_DIR) / "activities" / f"{activity.id}.png"
        target.parent.mkdir(parents=True, exist_ok=True)
        with target.open("wb") as out:
            shutil.copyfileobj(image.file, out)

    return RedirectResponse(url="/admins", status_code=status.HTTP_303_SEE_OTHER)


@api_router.post("/add_comment")
async def add_comment(
    id: int,
    target_type: str = Query("travel", alias="type"),
    text: str = Form(""),
    pros: Optional[str] = Form(None),
    cons: Optional[str] = Form(None),
    title: Optional[str] = Form(None),
    stars: Optional[int] = Form(None),
    current_user: CurrentUser = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    await _comment_target(db, target_type, id, current_user.id)
    if stars is not None and not 1 <= stars <= 5:
        raise HTTPException(status_code=400, detail="Rating must be between 1 and 5")

    if target_type == "travel":
        await repo.add_travel_comment(db, id, current_user.id, text, pros, cons, title)
    else:
        await repo.add_activity_comment(db, id, current_user.id, text, pros, cons, title, stars)

    return RedirectResponse(
        url=f"/travels/comments?id={id}&type={target_type}",
        status_code=status.HTTP_303_SEE_OTHER,
    )
