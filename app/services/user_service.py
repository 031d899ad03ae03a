import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.schemas.user import TokenPayload

logger = logging.getLogger(__name__)


async def get_user_by_id(db: AsyncSession, user_id: UUID) -> User | None:
    """Get user by ID."""
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_auth_subject(db: AsyncSession, subject: str) -> User | None:
    result = await db.execute(select(User).where(User.auth_subject == subject))
    return result.scalar_one_or_none()


async def get_users_by_ids(db: AsyncSession, user_ids: list[UUID]) -> dict[UUID, User]:
    if not user_ids:
        return {}
    result = await db.execute(select(User).where(User.id.in_(user_ids)))
    return {user.id: user for user in result.scalars().all()}


async def get_or_create_user(db: AsyncSession, claims: TokenPayload) -> User:
    """
    Find the local user for a verified identity, creating it on first sight.
    Existing users get their last_active_at refreshed.
    """
    user = await get_user_by_auth_subject(db, claims.sub)
    now = datetime.now(timezone.utc)

    if user is None:
        user = User(
            auth_subject=claims.sub,
            name=claims.name or claims.nickname or "Unknown User",
            email=claims.email.lower() if claims.email else None,
            avatar=claims.picture,
            last_active_at=now,
        )
        db.add(user)
        await db.commit()
        await db.refresh(user)
        logger.info("Created user %s for subject %s", user.id, claims.sub)
        return user

    user.last_active_at = now
    await db.commit()
    await db.refresh(user)
    return user


async def add_received_rating(db: AsyncSession, user_id: UUID, score: int) -> None:
    """Fold a new rating into the user's running average without a read-modify-write."""
    await db.execute(
        update(User)
        .where(User.id == user_id)
        .values(
            average_rating=(User.average_rating * User.total_ratings + score)
            / (User.total_ratings + 1),
            total_ratings=User.total_ratings + 1,
        )
    )
