from uuid import UUID

from sqlalchemy import case, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.match import Match, MatchInteraction
from app.models.profile import ProfileSubject
from app.schemas.match import MatchStatus
from app.services.profile_service import normalize_subjects


def _for_user(user_id: UUID):
    return or_(Match.user_id == user_id, Match.matched_user_id == user_id)


async def list_matches(
    db: AsyncSession,
    user_id: UUID,
    status: str | None = MatchStatus.active.value,
    min_compatibility: int | None = None,
    subjects: list[str] | None = None,
    page: int = 1,
    per_page: int = 20,
) -> tuple[list[Match], int]:
    """
    Get a page of the user's matches.

    Only active matches are listed unless another status is asked for.
    Passing status=None lists every status.

    Subject filters match when either participant studies one of the given
    subjects (case-insensitive). Best matches come first, then the most
    recently active.
    """
    query = select(Match).where(_for_user(user_id))

    if status:
        query = query.where(Match.status == status)
    if min_compatibility is not None:
        query = query.where(Match.compatibility >= min_compatibility)

    names = normalize_subjects(subjects or [])
    if names:
        query = query.where(
            select(ProfileSubject.id)
            .where(
                ProfileSubject.name.in_(names),
                or_(
                    ProfileSubject.user_id == Match.user_id,
                    ProfileSubject.user_id == Match.matched_user_id,
                ),
            )
            .exists()
        )

    # Get total count
    count_query = select(func.count()).select_from(query.subquery())
    total_result = await db.execute(count_query)
    total = total_result.scalar() or 0

    # Apply pagination and ordering
    offset = (page - 1) * per_page
    query = (
        query.order_by(
            Match.compatibility.desc(),
            Match.last_interaction_at.desc(),
            Match.id,
        )
        .offset(offset)
        .limit(per_page)
    )

    result = await db.execute(query)
    matches = list(result.scalars().all())

    return matches, total


async def get_match_stats(db: AsyncSession, user_id: UUID) -> dict[str, int]:
    """Counts over all of the user's matches, compatibility over active ones."""
    counts = await db.execute(
        select(
            func.count(Match.id),
            func.count(case((Match.status == MatchStatus.active.value, 1))),
            func.count(case((Match.status == MatchStatus.pending.value, 1))),
            func.count(case((Match.mutual_like == True, 1))),  # noqa: E712
        ).where(_for_user(user_id))
    )
    total, active, pending, mutual = counts.one()

    compatibility = await db.execute(
        select(
            func.avg(Match.compatibility),
            func.max(Match.compatibility),
            func.min(Match.compatibility),
        ).where(_for_user(user_id), Match.status == MatchStatus.active.value)
    )
    average, highest, lowest = compatibility.one()

    return {
        "total_matches": total,
        "active_matches": active,
        "pending_matches": pending,
        "mutual_matches": mutual,
        "average_compatibility": round(float(average)) if average is not None else 0,
        "max_compatibility": highest or 0,
        "min_compatibility": lowest or 0,
        "match_rate": round(active / total * 100) if total else 0,
    }


async def list_interactions(
    db: AsyncSession,
    match_id: UUID,
    limit: int | None = None,
) -> list[MatchInteraction]:
    """History of a match in the order it was recorded. With a limit, the latest entries."""
    query = select(MatchInteraction).where(MatchInteraction.match_id == match_id)

    if limit is None:
        result = await db.execute(query.order_by(MatchInteraction.id))
        return list(result.scalars().all())

    result = await db.execute(query.order_by(MatchInteraction.id.desc()).limit(limit))
    return list(reversed(result.scalars().all()))
