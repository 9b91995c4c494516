"""
Travel repository — towns, activities, travels, the moderation queue and
comments.

Every write that stores an activity id list goes through
``ensure_activities_exist`` so a travel never references a missing activity.
"""

from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from travel_manager.models.activity import Activity
from travel_manager.models.comment import ActivityComment, TravelComment
from travel_manager.models.town import Town
from travel_manager.models.travel import ModeratedTravel, Travel
from travel_manager.models.user import User
from travel_manager.services.errors import UnknownActivityError, UnknownTownError
from travel_manager.services.export import ItineraryStop
from travel_manager.utils.geo import parse_coordinates


# ═══════════════════════════════════════════════════════════════
#  Input normalisation
# ═══════════════════════════════════════════════════════════════

def normalize_activity_ids(raw: Any) -> List[int]:
    """
    Coerce the submitted ``activity`` field into a list of ints.

    A form posts one value for a single activity and a list for several;
    both shapes (and a missing field) end up as a list here.
    """
    if raw is None:
        return []
    if isinstance(raw, (str, int)):
        raw = [raw]

    ids: List[int] = []
    for value in raw:
        if isinstance(value, str):
            value = value.strip()
            if not value:
                continue
        ids.append(int(value))
    return ids


async def ensure_activities_exist(db: AsyncSession, activity_ids: Iterable[int]) -> None:
    """Raise ``UnknownActivityError`` unless every id is in ``activities``."""
    wanted = set(activity_ids)
    if not wanted:
        return
    result = await db.execute(select(Activity.id).where(Activity.id.in_(wanted)))
    found = set(result.scalars().all())
    if found != wanted:
        raise UnknownActivityError(wanted - found)


# ═══════════════════════════════════════════════════════════════
#  Towns
# ═══════════════════════════════════════════════════════════════

async def get_towns(db: AsyncSession) -> Sequence[Town]:
    result = await db.execute(select(Town).order_by(Town.name))
    return result.scalars().all()


async def get_town(db: AsyncSession, town_id: int) -> Optional[Town]:
    return await db.get(Town, town_id)


async def towns_by_id(db: AsyncSession, town_ids: Iterable[int]) -> Dict[int, Town]:
    """Resolve a batch of town ids in one query (used by list pages)."""
    ids = set(town_ids)
    if not ids:
        return {}
    result = await db.execute(select(Town).where(Town.id.in_(ids)))
    return {t.id: t for t in result.scalars().all()}


async def add_town(db: AsyncSession, name: str, coordinates: str) -> Town:
    parse_coordinates(coordinates)
    town = Town(name=name, coordinates=coordinates.strip())
    db.add(town)
    await db.commit()
    return town


# ═══════════════════════════════════════════════════════════════
#  Activities
# ═══════════════════════════════════════════════════════════════

async def get_activity(db: AsyncSession, activity_id: int) -> Optional[Activity]:
    return await db.get(Activity, activity_id)


async def get_activities(db: AsyncSession, activity_ids: Sequence[int]) -> List[Activity]:
    """Fetch activities keeping the travel's order; missing ids are skipped."""
    if not activity_ids:
        return []
    result = await db.execute(select(Activity).where(Activity.id.in_(set(activity_ids))))
    by_id = {a.id: a for a in result.scalars().all()}
    return [by_id[i] for i in activity_ids if i in by_id]


async def get_activities_by_town(db: AsyncSession, town_id: int) -> Sequence[Activity]:
    result = await db.execute(
        select(Activity).where(Activity.town == town_id).order_by(Activity.id)
    )
    return result.scalars().all()


async def add_activity(
    db: AsyncSession,
    name: str,
    description: Optional[str],
    town_id: int,
    coordinates: Optional[str] = None,
) -> Activity:
    if await get_town(db, town_id) is None:
        raise UnknownTownError(town_id)
    if coordinates:
        parse_coordinates(coordinates)

    activity = Activity(
        name=name,
        description=description,
        town=town_id,
        coordinates=coordinates.strip() if coordinates else None,
    )
    db.add(activity)
    await db.commit()
    return activity


# ═══════════════════════════════════════════════════════════════
#  Travels
# ═══════════════════════════════════════════════════════════════

async def get_recommendations(
    db: AsyncSession, town_id: Optional[int] = None, limit: int = 10
) -> Sequence[Travel]:
    query = select(Travel).where(Travel.public.is_(True))
    if town_id is not None:
        query = query.where(Travel.town == town_id)
    result = await db.execute(query.order_by(Travel.id.desc()).limit(limit))
    return result.scalars().all()


async def get_public_travel(db: AsyncSession, travel_id: int) -> Optional[Travel]:
    result = await db.execute(
        select(Travel).where(Travel.id == travel_id, Travel.public.is_(True))
    )
    return result.scalar_one_or_none()


async def get_owned_travel(db: AsyncSession, travel_id: int, owner_id: int) -> Optional[Travel]:
    result = await db.execute(
        select(Travel).where(Travel.id == travel_id, Travel.owner_id == owner_id)
    )
    return result.scalar_one_or_none()


async def find_visible_travel(
    db: AsyncSession, travel_id: int, viewer_id: Optional[int] = None
) -> Optional[Travel]:
    """
    Public travels are visible to everyone, private ones only to their owner.
    The public lookup runs first; the owner lookup only when a viewer is known.
    """
    travel = await get_public_travel(db, travel_id)
    if travel is None and viewer_id is not None:
        travel = await get_owned_travel(db, travel_id, viewer_id)
    return travel


async def get_owner_travels(db: AsyncSession, owner_id: int) -> Dict[str, Sequence[Any]]:
    """Private, public and pending travels of one user (profile page)."""
    private = await db.execute(
        select(Travel).where(Travel.owner_id == owner_id, Travel.public.is_(False))
    )
    public = await db.execute(
        select(Travel).where(Travel.owner_id == owner_id, Travel.public.is_(True))
    )
    pending = await db.execute(
        select(ModeratedTravel).where(ModeratedTravel.owner_id == owner_id)
    )
    return {
        "private_travels": private.scalars().all(),
        "public_travels": public.scalars().all(),
        "moderated_travels": pending.scalars().all(),
    }


async def get_moderation_queue(db: AsyncSession) -> Sequence[ModeratedTravel]:
    result = await db.execute(select(ModeratedTravel).order_by(ModeratedTravel.id))
    return result.scalars().all()


async def get_moderated_travel(db: AsyncSession, moderated_id: int) -> Optional[ModeratedTravel]:
    return await db.get(ModeratedTravel, moderated_id)


async def count_public_travels(db: AsyncSession) -> int:
    result = await db.execute(select(func.count(Travel.id)).where(Travel.public.is_(True)))
    return result.scalar() or 0


async def load_itinerary(db: AsyncSession, travel: Any) -> List[ItineraryStop]:
    """Resolve a travel's activities into stops with ``(lat, lon)``."""
    activities = await get_activities(db, travel.activities or [])
    towns = await towns_by_id(db, (a.town for a in activities))
    return [activity_stop(a, towns.get(a.town)) for a in activities]


def activity_stop(activity: Activity, town: Optional[Town]) -> ItineraryStop:
    """One stop; the activity's own coordinates win over its town's."""
    coordinates = activity.coordinates or (town.coordinates if town else "")
    lat, lon = parse_coordinates(coordinates)
    return ItineraryStop(
        id=activity.id,
        name=activity.name,
        description=activity.description or "",
        lat=lat,
        lon=lon,
    )


# ═══════════════════════════════════════════════════════════════
#  Comments
# ═══════════════════════════════════════════════════════════════

async def get_travel_comments(db: AsyncSession, travel_id: int) -> List[Tuple[TravelComment, str]]:
    """Comments on a travel paired with their author's name."""
    result = await db.execute(
        select(TravelComment, User.name)
        .join(User, User.id == TravelComment.owner_id)
        .where(TravelComment.travel_id == travel_id)
        .order_by(TravelComment.id)
    )
    return [(row[0], row[1]) for row in result.all()]


async def get_activity_comments(db: AsyncSession, activity_id: int) -> List[Tuple[ActivityComment, str]]:
    """Comments on an activity paired with their author's name."""
    result = await db.execute(
        select(ActivityComment, User.name)
        .join(User, User.id == ActivityComment.owner_id)
        .where(ActivityComment.activity_id == activity_id)
        .order_by(ActivityComment.id)
    )
    return [(row[0], row[1]) for row in result.all()]


async def add_travel_comment(
    db: AsyncSession,
    travel_id: int,
    owner_id: int,
    text: Optional[str],
    pros: Optional[str] = None,
    cons: Optional[str] = None,
    title: Optional[str] = None,
) -> TravelComment:
    comment = TravelComment(
        travel_id=travel_id, owner_id=owner_id, title=title, text=text, pros=pros, cons=cons
    )
    db.add(comment)
    await db.commit()
    return comment


async def add_activity_comment(
    db: AsyncSession,
    activity_id: int,
    owner_id: int,
    text: Optional[str],
    pros: Optional[str] = None,
    cons: Optional[str] = None,
    title: Optional[str] = None,
    stars: Optional[int] = None,
) -> ActivityComment:
    if stars is not None and not 1 <= stars <= 5:
        raise ValueError("stars must be between 1 and 5")
    comment = ActivityComment(
        activity_id=activity_id,
        owner_id=owner_id,
        title=title,
        text=text,
        pros=pros,
        cons=cons,
        stars=stars,
    )
    db.add(comment)
    await db.commit()
    return comment
