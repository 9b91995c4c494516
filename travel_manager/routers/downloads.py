"""
Downloads router — itinerary export files.

Endpoints:
    GET  /api/download/kml?id=   → travel as KML
    GET  /api/download/kmz?id=   → travel as KMZ (KML + activity images)
    GET  /api/download/gpx?id=   → one activity as a GPX waypoint

Travel exports follow the same visibility rule as ``/travels/view``.
"""

import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from travel_manager.config import Settings
from travel_manager.database import get_db
from travel_manager.models.travel import Travel
from travel_manager.routers.auth import get_current_user, get_settings
from travel_manager.schemas.user import CurrentUser
from travel_manager.services import export
from travel_manager.services import travels as repo

router = APIRouter(prefix="/api/download", tags=["downloads"])
logger = logging.getLogger(__name__)


async def _visible_travel(
    db: AsyncSession, travel_id: int, current_user: Optional[CurrentUser]
) -> Travel:
    travel = await repo.find_visible_travel(db, travel_id, current_user.id if current_user else None)
    if travel is None:
        raise HTTPException(status_code=404, detail="Travel not found")
    return travel


def _attachment(content, media_type: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": export.attachment_disposition(filename)},
    )


@router.get("/kml")
async def download_kml(
    id: int,
    current_user: Optional[CurrentUser] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    travel = await _visible_travel(db, id, current_user)
    stops = await repo.load_itinerary(db, travel)

    logger.info(f"KML export of travel {travel.id} ({len(stops)} stops)")
    return _attachment(export.build_kml(stops), export.KML_MEDIA_TYPE, f"{travel.name}.kml")


@router.get("/kmz")
async def download_kmz(
    id: int,
    current_user: Optional[CurrentUser] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    cfg: Settings = Depends(get_settings),
):
    travel = await _visible_travel(db, id, current_user)
    stops = await repo.load_itinerary(db, travel)
    image_dir = Path(cfg.STATIC_DIR) / "activities"

    logger.info(f"KMZ export of travel {travel.id} ({len(stops)} stops)")
    return _attachment(export.build_kmz(stops, image_dir), export.KMZ_MEDIA_TYPE, f"{travel.name}.kmz")


@router.get("/gpx")
async def download_gpx(
    id: int,
    db: AsyncSession = Depends(get_db),
    cfg: Settings = Depends(get_settings),
):
    activity = await repo.get_activity(db, id)
    if activity is None:
        raise HTTPException(status_code=404, detail="Activity not found")

    stop = repo.activity_stop(activity, await repo.get_town(db, activity.town))
    gpx = export.build_gpx(stop, creator=f"{cfg.APP_NAME} GPX Generator")
    return _attachment(gpx, export.GPX_MEDIA_TYPE, f"{activity.name}.gpx")
