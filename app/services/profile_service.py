from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.profile import Profile, ProfileSubject
from app.models.user import User
from app.schemas.profile import ProfileCreate


def normalize_subjects(subjects: list[str]) -> list[str]:
    """Lower-cased, de-duplicated subjects in input order."""
    return list(dict.fromkeys(s.strip().lower() for s in subjects if s.strip()))


async def get_profile_by_user_id(db: AsyncSession, user_id: UUID) -> Profile | None:
    """Get profile by user ID."""
    result = await db.execute(select(Profile).where(Profile.user_id == user_id))
    return result.scalar_one_or_none()


async def get_profiles_by_user_ids(
    db: AsyncSession, user_ids: list[UUID]
) -> dict[UUID, Profile]:
    if not user_ids:
        return {}
    result = await db.execute(select(Profile).where(Profile.user_id.in_(user_ids)))
    return {profile.user_id: profile for profile in result.scalars().all()}


async def _replace_subjects(db: AsyncSession, profile: Profile) -> None:
    await db.execute(delete(ProfileSubject).where(ProfileSubject.profile_id == profile.id))
    for name in normalize_subjects(profile.subjects):
        db.add(ProfileSubject(profile_id=profile.id, user_id=profile.user_id, name=name))


async def upsert_profile(db: AsyncSession, user_id: UUID, data: ProfileCreate) -> Profile:
    """Create the user's profile or replace its fields."""
    profile_data = data.model_dump(mode="json")
    profile = await get_profile_by_user_id(db, user_id)

    if profile is None:
        profile = Profile(user_id=user_id, **profile_data)
        db.add(profile)
        await db.flush()
    else:
        for field, value in profile_data.items():
            setattr(profile, field, value)

    await _replace_subjects(db, profile)
    await db.commit()
    await db.refresh(profile)
    return profile


async def find_candidates(
    db: AsyncSession,
    subjects: list[str],
    exclude_user_id: UUID,
    limit: int,
) -> list[Profile]:
    """
    Profiles of active users sharing at least one subject (case-insensitive).
    The caller's own profile is never returned.
    """
    names = normalize_subjects(subjects)
    if not names or limit <= 0:
        return []

    sharing_profiles = select(ProfileSubject.profile_id).where(ProfileSubject.name.in_(names))

    query = (
        select(Profile)
        .join(User, User.id == Profile.user_id)
        .where(
            Profile.id.in_(sharing_profiles),
            Profile.user_id != exclude_user_id,
            User.is_active == True,  # noqa: E712
        )
        .order_by(User.last_active_at.desc(), Profile.created_at.desc())
        .limit(limit)
    )

    result = await db.execute(query)
    return list(result.scalars().all())
