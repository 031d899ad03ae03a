import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

from app.services import match_query_service, match_service


@pytest_asyncio.fixture
async def network(create_user, create_profile, create_match):
    """Alice matched with Bob (90, Math), Carol (70, History) and Dave (55, Math, declined)."""
    alice = await create_user("Alice")
    bob = await create_user("Bob")
    carol = await create_user("Carol")
    dave = await create_user("Dave")
    await create_profile(alice, subjects=["Art"])
    await create_profile(bob, subjects=["Math"])
    await create_profile(carol, subjects=["History"])
    await create_profile(dave, subjects=["Math", "Physics"])

    with_bob = await create_match(alice, bob, 90)
    with_carol = await create_match(carol, alice, 70)
    with_dave = await create_match(alice, dave, 55)
    # Unrelated pair
    await create_match(bob, carol, 99)

    return alice, {"bob": with_bob, "carol": with_carol, "dave": with_dave}


@pytest.mark.asyncio
async def test_list_matches_sorted_by_compatibility(db_session: AsyncSession, network):
    alice, matches = network

    result, total = await match_query_service.list_matches(db_session, alice.id, status=None)

    assert total == 3
    assert [m.compatibility for m in result] == [90, 70, 55]


@pytest.mark.asyncio
async def test_list_matches_status_filter(db_session: AsyncSession, network):
    alice, matches = network
    await match_service.decline(db_session, matches["dave"].id, alice.id)

    pending, total = await match_query_service.list_matches(db_session, alice.id, status="pending")
    declined, _ = await match_query_service.list_matches(db_session, alice.id, status="declined")

    assert total == 2
    assert {m.id for m in pending} == {matches["bob"].id, matches["carol"].id}
    assert [m.id for m in declined] == [matches["dave"].id]


@pytest.mark.asyncio
async def test_list_matches_defaults_to_active(db_session: AsyncSession, network):
    alice, matches = network
    bob_id = matches["bob"].other_user_id(alice.id)

    assert await match_query_service.list_matches(db_session, alice.id) == ([], 0)

    await match_service.toggle_like(db_session, matches["bob"].id, alice.id)
    await match_service.toggle_like(db_session, matches["bob"].id, bob_id)

    result, total = await match_query_service.list_matches(db_session, alice.id)
    assert total == 1
    assert [m.id for m in result] == [matches["bob"].id]


@pytest.mark.asyncio
async def test_list_matches_min_compatibility(db_session: AsyncSession, network):
    alice, _ = network

    result, total = await match_query_service.list_matches(
        db_session, alice.id, status=None, min_compatibility=70
    )

    assert total == 2
    assert [m.compatibility for m in result] == [90, 70]


@pytest.mark.asyncio
async def test_list_matches_subject_filter(db_session: AsyncSession, network):
    alice, matches = network

    result, total = await match_query_service.list_matches(
        db_session, alice.id, status=None, subjects=["MATH"]
    )

    assert total == 2
    assert [m.id for m in result] == [matches["bob"].id, matches["dave"].id]


@pytest.mark.asyncio
async def test_list_matches_subject_filter_uses_own_profile(db_session: AsyncSession, network):
    alice, _ = network

    _, total = await match_query_service.list_matches(
        db_session, alice.id, status=None, subjects=["art"]
    )

    assert total == 3


@pytest.mark.asyncio
async def test_list_matches_pagination(db_session: AsyncSession, network):
    alice, _ = network

    page_one, total = await match_query_service.list_matches(
        db_session, alice.id, status=None, per_page=2
    )
    page_two, _ = await match_query_service.list_matches(
        db_session, alice.id, status=None, page=2, per_page=2
    )

    assert total == 3
    assert [m.compatibility for m in page_one] == [90, 70]
    assert [m.compatibility for m in page_two] == [55]


@pytest.mark.asyncio
async def test_match_stats(db_session: AsyncSession, network):
    alice, matches = network
    bob_id = matches["bob"].other_user_id(alice.id)
    carol_id = matches["carol"].other_user_id(alice.id)
    for other_id, match in ((bob_id, matches["bob"]), (carol_id, matches["carol"])):
        await match_service.toggle_like(db_session, match.id, alice.id)
        await match_service.toggle_like(db_session, match.id, other_id)

    stats = await match_query_service.get_match_stats(db_session, alice.id)

    assert stats == {
        "total_matches": 3,
        "active_matches": 2,
        "pending_matches": 1,
        "mutual_matches": 2,
        "average_compatibility": 80,
        "max_compatibility": 90,
        "min_compatibility": 70,
        "match_rate": 67,
    }


@pytest.mark.asyncio
async def test_match_stats_empty(db_session: AsyncSession, create_user):
    loner = await create_user()

    stats = await match_query_service.get_match_stats(db_session, loner.id)

    assert stats["total_matches"] == 0
    assert stats["average_compatibility"] == 0
    assert stats["match_rate"] == 0


@pytest.mark.asyncio
async def test_list_interactions_limit_keeps_latest(db_session: AsyncSession, network):
    alice, matches = network
    match_id = matches["bob"].id
    for _ in range(12):
        await match_service.record_interaction(db_session, match_id, "message")
    await match_service.record_interaction(db_session, match_id, "session_request")

    everything = await match_query_service.list_interactions(db_session, match_id)
    latest = await match_query_service.list_interactions(db_session, match_id, limit=10)

    assert len(everything) == 13
    assert len(latest) == 10
    assert [i.id for i in latest] == [i.id for i in everything[-10:]]
    assert latest[-1].type == "session_request"
