"""
Moderation workflow — where a submitted travel lives.

    submit(public=False) ──► travels (public = False)          Private
    submit(public=True)  ──► moderated_travels                 PendingModeration
    approve(id)          ──► moved to travels (public = True)  Public
    reject(id)           ──► deleted from moderated_travels

A submission is always in exactly one of the two tables. ``approve`` deletes
the queued row first and inserts the live one only if that delete claimed it,
both in a single transaction.
"""

import logging
from typing import Optional, Union

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from travel_manager.models.travel import ModeratedTravel, Travel
from travel_manager.schemas.travel import TravelSubmission
from travel_manager.services.errors import UnknownTownError
from travel_manager.services.travels import ensure_activities_exist, get_town

logger = logging.getLogger(__name__)


async def submit(
    db: AsyncSession, submission: TravelSubmission, owner_id: int
) -> Union[Travel, ModeratedTravel]:
    """Queue a public travel for moderation, or store a private one directly."""
    if await get_town(db, submission.town) is None:
        raise UnknownTownError(submission.town)
    await ensure_activities_exist(db, submission.activities)

    fields = dict(
        name=submission.name,
        description=submission.description,
        town=submission.town,
        owner_id=owner_id,
        activities=list(submission.activities),
    )
    if submission.is_public:
        record = ModeratedTravel(public=True, **fields)
    else:
        record = Travel(public=False, **fields)

    db.add(record)
    await db.commit()

    logger.info(
        f"User {owner_id} submitted {'public' if submission.is_public else 'private'} "
        f"travel {record.id}"
    )
    return record


async def approve(db: AsyncSession, moderated_id: int) -> Optional[Travel]:
    """
    Move a queued travel to the live table as public.
    Returns the new travel, or None when nothing is pending under that id
    (already decided, never existed, or claimed by a concurrent approve).
    """
    result = await db.execute(
        select(ModeratedTravel)
        .where(ModeratedTravel.id == moderated_id)
        .with_for_update()
    )
    queued = result.scalar_one_or_none()
    if queued is None:
        logger.info(f"Approve of travel {moderated_id} ignored: not pending")
        return None

    travel = Travel(
        name=queued.name,
        description=queued.description,
        town=queued.town,
        owner_id=queued.owner_id,
        activities=list(queued.activities or []),
        public=True,
    )

    try:
        # Only the transaction that removes the queued row may publish it.
        claimed = await db.execute(
            delete(ModeratedTravel)
            .where(ModeratedTravel.id == moderated_id)
            .execution_options(synchronize_session=False)
        )
        if claimed.rowcount != 1:
            await db.rollback()
            logger.info(f"Approve of travel {moderated_id} ignored: already decided")
            return None

        await ensure_activities_exist(db, travel.activities)
        db.add(travel)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(f"Approved moderated travel {moderated_id} as travel {travel.id}")
    return travel


async def reject(db: AsyncSession, moderated_id: int) -> None:
    """Drop a queued travel; rejecting twice is harmless."""
    await db.execute(delete(ModeratedTravel).where(ModeratedTravel.id == moderated_id))
    await db.commit()
    logger.info(f"Rejected moderated travel {moderated_id}")
