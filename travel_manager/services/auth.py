"""
Credential store and session manager.

Passwords are bcrypt-hashed through passlib; sessions are opaque random
tokens persisted in the ``sessions`` table and carried in a cookie.
"""

import logging
import secrets
from functools import lru_cache
from typing import Optional, Tuple

from passlib.context import CryptContext
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from travel_manager.config import settings
from travel_manager.models.comment import ActivityComment, TravelComment
from travel_manager.models.session import UserSession
from travel_manager.models.travel import ModeratedTravel, Travel
from travel_manager.models.user import User
from travel_manager.schemas.user import CurrentUser

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32


# ═══════════════════════════════════════════════════════════════
#  Password hashing
# ═══════════════════════════════════════════════════════════════

@lru_cache(maxsize=None)
def _pwd_context(rounds: int) -> CryptContext:
    # Hashes made at any other cost are flagged for an upgrade on next login.
    return CryptContext(
        schemes=["bcrypt"],
        deprecated="auto",
        bcrypt__default_rounds=rounds,
        bcrypt__min_rounds=rounds,
        bcrypt__max_rounds=rounds,
    )


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    return _pwd_context(rounds or settings.BCRYPT_ROUNDS).hash(password)


def verify_password(
    password: str, password_hash: str, rounds: Optional[int] = None
) -> Tuple[bool, Optional[str]]:
    """Check ``password``; the second item is a replacement hash when the cost changed."""
    try:
        return _pwd_context(rounds or settings.BCRYPT_ROUNDS).verify_and_update(
            password, password_hash
        )
    except ValueError:
        # Malformed hash in the database
        return False, None


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def generate_token() -> str:
    return secrets.token_urlsafe(TOKEN_BYTES)


# ═══════════════════════════════════════════════════════════════
#  Sessions
# ═══════════════════════════════════════════════════════════════

async def issue_session(db: AsyncSession, user_id: int) -> str:
    """Create a session row for ``user_id`` and return its token."""
    token = generate_token()
    db.add(UserSession(user_id=user_id, token=token))
    await db.commit()
    return token


async def resolve_session(db: AsyncSession, token: Optional[str]) -> Optional[CurrentUser]:
    """
    Look up the user behind ``token``.
    Returns None for a missing or unknown token (anonymous browsing).
    """
    if not token:
        return None

    result = await db.execute(
        select(User)
        .join(UserSession, UserSession.user_id == User.id)
        .where(UserSession.token == token)
    )
    user = result.scalar_one_or_none()
    if user is None:
        return None
    return CurrentUser.model_validate(user)


async def invalidate_session(db: AsyncSession, token: Optional[str]) -> None:
    """Delete the session for ``token``; unknown tokens are ignored."""
    if not token:
        return
    await db.execute(delete(UserSession).where(UserSession.token == token))
    await db.commit()


# ═══════════════════════════════════════════════════════════════
#  Login / registration
# ═══════════════════════════════════════════════════════════════

async def login(
    db: AsyncSession,
    email: str,
    password: str,
    rounds: Optional[int] = None,
) -> Optional[str]:
    """
    Verify the credentials and open a new session.
    Unknown email and wrong password both return None; the unknown-email path
    still runs a hash verification at the configured cost so both take the
    same time.
    """
    email = normalize_email(email)
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()

    if user is None:
        _pwd_context(rounds or settings.BCRYPT_ROUNDS).dummy_verify()
        logger.info("Failed login attempt")
        return None

    valid, new_hash = verify_password(password, user.password_hash, rounds)
    if not valid:
        logger.info("Failed login attempt")
        return None

    if new_hash:
        user.password_hash = new_hash
        logger.info(f"Rehashed password of user {user.id}")

    return await issue_session(db, user.id)


async def register(
    db: AsyncSession,
    email: str,
    name: str,
    password: str,
    rounds: Optional[int] = None,
) -> Optional[str]:
    """Create a user and its first session; None if the email is taken."""
    email = normalize_email(email)
    result = await db.execute(select(User.id).where(User.email == email))
    if result.scalar_one_or_none() is not None:
        return None

    user = User(email=email, name=name, password_hash=hash_password(password, rounds))
    db.add(user)
    try:
        await db.flush()  # to get user.id
    except IntegrityError:
        # Lost a race with a concurrent registration of the same email
        await db.rollback()
        logger.info("Registration rejected: email already taken")
        return None

    logger.info(f"Registered user {user.id}")
    return await issue_session(db, user.id)


# ═══════════════════════════════════════════════════════════════
#  Account management
# ═══════════════════════════════════════════════════════════════

async def rename_account(db: AsyncSession, user_id: int, new_name: str) -> None:
    user = await db.get(User, user_id)
    if user is None:
        return
    user.name = new_name
    await db.commit()


async def delete_account(db: AsyncSession, user_id: int) -> None:
    """Remove the user together with everything they own, in one commit."""
    owned_travels = select(Travel.id).where(Travel.owner_id == user_id)

    try:
        await db.execute(delete(TravelComment).where(TravelComment.travel_id.in_(owned_travels)))
        await db.execute(delete(TravelComment).where(TravelComment.owner_id == user_id))
        await db.execute(delete(ActivityComment).where(ActivityComment.owner_id == user_id))
        await db.execute(delete(Travel).where(Travel.owner_id == user_id))
        await db.execute(delete(ModeratedTravel).where(ModeratedTravel.owner_id == user_id))
        await db.execute(delete(UserSession).where(UserSession.user_id == user_id))
        await db.execute(delete(User).where(User.id == user_id))
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(f"Deleted account {user_id}")
