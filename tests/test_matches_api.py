import uuid

import pytest
import pytest_asyncio
from httpx import AsyncClient

from app.core.rate_limit import matches_limiter


@pytest_asyncio.fixture
async def pair(create_user, create_profile, create_match):
    """Alice and Bob with study profiles and a pending match."""
    alice = await create_user("Alice")
    bob = await create_user("Bob")
    await create_profile(alice, subjects=["Math"])
    await create_profile(bob, subjects=["Math", "Biology"])
    match = await create_match(alice, bob, 80)
    return alice, bob, match


# ============== Listing Tests ==============


@pytest.mark.asyncio
async def test_get_matches_empty(
    client: AsyncClient, create_user, create_profile, headers_for
):
    user = await create_user()
    await create_profile(user)

    response = await client.get("/api/v1/matches/", headers=headers_for(user))

    assert response.status_code == 200
    data = response.json()
    assert data["matches"] == []
    assert data["total"] == 0
    assert data["pages"] == 0


@pytest.mark.asyncio
async def test_get_matches_includes_other_user(client: AsyncClient, pair, headers_for):
    alice, bob, match = pair

    response = await client.get(
        "/api/v1/matches/", params={"status": "pending"}, headers=headers_for(alice)
    )

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    assert data["pages"] == 1
    item = data["matches"][0]
    assert item["id"] == str(match.id)
    assert item["compatibility"] == 80
    assert item["other_user"]["user"]["id"] == str(bob.id)
    assert item["other_user"]["profile"]["subjects"] == ["Math", "Biology"]


@pytest.mark.asyncio
async def test_get_matches_defaults_to_active(client: AsyncClient, pair, headers_for):
    alice, bob, match = pair

    pending_only = await client.get("/api/v1/matches/", headers=headers_for(alice))
    assert pending_only.status_code == 200
    assert pending_only.json()["total"] == 0

    await client.post(f"/api/v1/matches/{match.id}/like", headers=headers_for(alice))
    await client.post(f"/api/v1/matches/{match.id}/like", headers=headers_for(bob))

    response = await client.get("/api/v1/matches/", headers=headers_for(alice))
    assert response.json()["total"] == 1
    assert response.json()["matches"][0]["status"] == "active"


@pytest.mark.asyncio
async def test_get_matches_requires_profile(client: AsyncClient, create_user, headers_for):
    user = await create_user()

    listing = await client.get("/api/v1/matches/", headers=headers_for(user))
    stats = await client.get("/api/v1/matches/stats/summary", headers=headers_for(user))

    assert listing.status_code == 403
    assert listing.json()["code"] == "PROFILE_INCOMPLETE"
    assert stats.status_code == 403


@pytest.mark.asyncio
async def test_get_matches_filters(client: AsyncClient, pair, headers_for):
    alice, _, _ = pair

    by_subject = await client.get(
        "/api/v1/matches/",
        params={"status": "pending", "subjects": "biology,art"},
        headers=headers_for(alice),
    )
    by_score = await client.get(
        "/api/v1/matches/", params={"min_compatibility": 90}, headers=headers_for(alice)
    )
    by_status = await client.get(
        "/api/v1/matches/", params={"status": "active"}, headers=headers_for(alice)
    )

    assert by_subject.json()["total"] == 1
    assert by_score.json()["total"] == 0
    assert by_status.json()["total"] == 0


@pytest.mark.asyncio
async def test_get_matches_bad_status(client: AsyncClient, pair, headers_for):
    alice, _, _ = pair

    response = await client.get(
        "/api/v1/matches/", params={"status": "archived"}, headers=headers_for(alice)
    )

    assert response.status_code == 422


# ============== Discovery Tests ==============


@pytest.mark.asyncio
async def test_find_matches_requires_profile(client: AsyncClient, create_user, headers_for):
    user = await create_user()

    response = await client.post("/api/v1/matches/find", headers=headers_for(user))

    assert response.status_code == 403
    assert response.json()["code"] == "PROFILE_INCOMPLETE"


@pytest.mark.asyncio
async def test_find_matches(client: AsyncClient, create_user, create_profile, headers_for):
    me = await create_user()
    await create_profile(me, subjects=["Math"])
    partner = await create_user()
    await create_profile(partner, subjects=["math"], learning_style=2)
    unrelated = await create_user()
    await create_profile(unrelated, subjects=["Art"])

    response = await client.post(
        "/api/v1/matches/find", json={"limit": 5}, headers=headers_for(me)
    )

    assert response.status_code == 200
    data = response.json()
    assert data["count"] == 1
    assert data["message"] == "Found 1 new matches"
    assert data["matches"][0]["other_user"]["user"]["id"] == str(partner.id)
    assert data["matches"][0]["compatibility"] == 85

    again = await client.post("/api/v1/matches/find", headers=headers_for(me))
    assert again.json()["count"] == 0


@pytest.mark.asyncio
async def test_find_matches_limit_validation(client: AsyncClient, create_user, headers_for):
    user = await create_user()

    response = await client.post(
        "/api/v1/matches/find", json={"limit": 51}, headers=headers_for(user)
    )

    assert response.status_code == 422


# ============== Detail Tests ==============


@pytest.mark.asyncio
async def test_get_match_records_view(client: AsyncClient, pair, headers_for):
    alice, bob, match = pair

    response = await client.get(f"/api/v1/matches/{match.id}", headers=headers_for(alice))

    assert response.status_code == 200
    data = response.json()
    assert data["liked"] is False
    assert data["my_rating"] is None
    assert data["their_rating"] is None
    assert data["other_user"]["user"]["id"] == str(bob.id)
    assert [i["type"] for i in data["recent_interactions"]] == ["view"]


@pytest.mark.asyncio
async def test_get_match_shows_last_ten_interactions(client: AsyncClient, pair, headers_for):
    alice, _, match = pair
    for _ in range(12):
        await client.post(
            f"/api/v1/matches/{match.id}/interactions",
            json={"type": "message"},
            headers=headers_for(alice),
        )

    response = await client.get(f"/api/v1/matches/{match.id}", headers=headers_for(alice))

    interactions = response.json()["recent_interactions"]
    assert len(interactions) == 10
    assert interactions[-1]["type"] == "view"


@pytest.mark.asyncio
async def test_get_match_not_participant(client: AsyncClient, pair, create_user, headers_for):
    _, _, match = pair
    outsider = await create_user()

    response = await client.get(f"/api/v1/matches/{match.id}", headers=headers_for(outsider))

    assert response.status_code == 403
    assert response.json()["code"] == "AUTHZ_NOT_PARTICIPANT"


@pytest.mark.asyncio
async def test_get_match_not_found(client: AsyncClient, create_user, headers_for):
    user = await create_user()

    response = await client.get(f"/api/v1/matches/{uuid.uuid4()}", headers=headers_for(user))

    assert response.status_code == 404


# ============== Like Tests ==============


@pytest.mark.asyncio
async def test_like_flow(client: AsyncClient, pair, headers_for):
    alice, bob, match = pair

    first = await client.post(f"/api/v1/matches/{match.id}/like", headers=headers_for(alice))
    assert first.status_code == 200
    assert first.json()["liked"] is True
    assert first.json()["mutual_like"] is False
    assert first.json()["match_type"] == "one-way"
    assert first.json()["message"] == "Like updated"

    second = await client.post(f"/api/v1/matches/{match.id}/like", headers=headers_for(bob))
    data = second.json()
    assert data["mutual_like"] is True
    assert data["status"] == "active"
    assert data["match_type"] == "mutual"
    assert data["message"] == "It's a mutual match!"


# ============== Rating Tests ==============


@pytest.mark.asyncio
async def test_rate_match(client: AsyncClient, pair, headers_for):
    alice, bob, match = pair

    response = await client.post(
        f"/api/v1/matches/{match.id}/rate",
        json={"score": 5, "comment": "Very helpful"},
        headers=headers_for(alice),
    )

    assert response.status_code == 200
    data = response.json()
    assert data["rating"]["score"] == 5
    assert data["rating"]["comment"] == "Very helpful"
    assert data["average_rating"] == 5

    detail = await client.get(f"/api/v1/matches/{match.id}", headers=headers_for(bob))
    assert detail.json()["their_rating"]["score"] == 5
    assert detail.json()["my_rating"] is None


@pytest.mark.asyncio
async def test_rate_match_twice(client: AsyncClient, pair, headers_for):
    alice, _, match = pair
    await client.post(
        f"/api/v1/matches/{match.id}/rate", json={"score": 5}, headers=headers_for(alice)
    )

    response = await client.post(
        f"/api/v1/matches/{match.id}/rate", json={"score": 1}, headers=headers_for(alice)
    )

    assert response.status_code == 409
    assert response.json()["code"] == "MATCH_DUPLICATE_RATING"


@pytest.mark.asyncio
async def test_rate_match_out_of_range(client: AsyncClient, pair, headers_for):
    alice, _, match = pair

    response = await client.post(
        f"/api/v1/matches/{match.id}/rate", json={"score": 6}, headers=headers_for(alice)
    )

    assert response.status_code == 422


# ============== Status Tests ==============


@pytest.mark.asyncio
async def test_decline_match(client: AsyncClient, pair, headers_for):
    alice, _, match = pair

    response = await client.post(
        f"/api/v1/matches/{match.id}/decline",
        json={"reason": "Different goals"},
        headers=headers_for(alice),
    )

    assert response.status_code == 200
    assert response.json()["status"] == "declined"


@pytest.mark.asyncio
async def test_decline_match_without_body(client: AsyncClient, pair, headers_for):
    alice, _, match = pair

    response = await client.post(
        f"/api/v1/matches/{match.id}/decline", headers=headers_for(alice)
    )

    assert response.status_code == 200
    assert response.json()["message"] == "Match declined"


@pytest.mark.asyncio
async def test_block_and_unblock(client: AsyncClient, pair, headers_for):
    alice, _, match = pair

    blocked = await client.post(f"/api/v1/matches/{match.id}/block", headers=headers_for(alice))
    unblocked = await client.post(
        f"/api/v1/matches/{match.id}/unblock", headers=headers_for(alice)
    )
    again = await client.post(f"/api/v1/matches/{match.id}/unblock", headers=headers_for(alice))

    assert blocked.json()["status"] == "blocked"
    assert unblocked.json()["status"] == "pending"
    assert again.status_code == 422


@pytest.mark.asyncio
async def test_delete_match(client: AsyncClient, pair, headers_for):
    alice, bob, match = pair

    response = await client.delete(f"/api/v1/matches/{match.id}", headers=headers_for(alice))

    assert response.status_code == 200
    assert response.json()["status"] == "declined"

    listing = await client.get(
        "/api/v1/matches/", params={"status": "declined"}, headers=headers_for(bob)
    )
    assert listing.json()["total"] == 1


# ============== Interaction Tests ==============


@pytest.mark.asyncio
async def test_add_interaction(client: AsyncClient, pair, headers_for):
    alice, _, match = pair

    response = await client.post(
        f"/api/v1/matches/{match.id}/interactions",
        json={"type": "session_completed", "details": {"minutes": 60}},
        headers=headers_for(alice),
    )

    assert response.status_code == 201
    assert response.json()["type"] == "session_completed"
    assert response.json()["details"] == {"minutes": 60}

    detail = await client.get(f"/api/v1/matches/{match.id}", headers=headers_for(alice))
    assert detail.json()["session_count"] == 1


@pytest.mark.asyncio
async def test_add_interaction_unknown_type(client: AsyncClient, pair, headers_for):
    alice, _, match = pair

    response = await client.post(
        f"/api/v1/matches/{match.id}/interactions",
        json={"type": "poke"},
        headers=headers_for(alice),
    )

    assert response.status_code == 422


# ============== Stats Tests ==============


@pytest.mark.asyncio
async def test_match_stats(client: AsyncClient, pair, headers_for):
    alice, bob, match = pair
    await client.post(f"/api/v1/matches/{match.id}/like", headers=headers_for(alice))
    await client.post(f"/api/v1/matches/{match.id}/like", headers=headers_for(bob))

    response = await client.get("/api/v1/matches/stats/summary", headers=headers_for(alice))

    assert response.status_code == 200
    assert response.json() == {
        "total_matches": 1,
        "active_matches": 1,
        "pending_matches": 0,
        "mutual_matches": 1,
        "average_compatibility": 80,
        "max_compatibility": 80,
        "min_compatibility": 80,
        "match_rate": 100,
    }


# ============== Rate Limit Tests ==============


@pytest.mark.asyncio
async def test_matches_rate_limit(
    client: AsyncClient, create_user, create_profile, headers_for, monkeypatch
):
    monkeypatch.setattr(matches_limiter, "max_requests", 3)
    user = await create_user()
    other = await create_user()
    await create_profile(user)
    await create_profile(other)

    for _ in range(3):
        response = await client.get("/api/v1/matches/", headers=headers_for(user))
        assert response.status_code == 200

    limited = await client.get("/api/v1/matches/", headers=headers_for(user))
    assert limited.status_code == 429

    # Limits are per user
    response = await client.get("/api/v1/matches/", headers=headers_for(other))
    assert response.status_code == 200
