"""Integration tests for XP / challenge progress endpoints."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from httpx import AsyncClient
from sqlalchemy import select, update

from petnet.db.models import User
from petnet.xp.reset import ensure_utc

LONG_AGO = datetime(2020, 1, 1, tzinfo=timezone.utc)


class TestCatalogEndpoint:
    @pytest.mark.asyncio
    async def test_list_challenges_is_public(self, client: AsyncClient):
        response = await client.get("/api/v1/xp/challenges")
        assert response.status_code == 200
        challenges = response.json()["challenges"]
        assert len(challenges) == 9
        like = next(c for c in challenges if c["id"] == "daily_like_3_posts")
        assert like == {
            "id": "daily_like_3_posts",
            "name": "Like 3 Posts",
            "description": "Like 3 posts today",
            "cadence": "daily",
            "goal": 3,
            "xp_reward": 15,
            "requires_recipient": False,
        }


class TestTrackEndpoint:
    @pytest.mark.asyncio
    async def test_requires_authentication(self, client: AsyncClient):
        response = await client.post("/api/v1/xp/track", json={"challenge_id": "daily_login"})
        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Unauthorized", "kind": "unauthenticated"}

    @pytest.mark.asyncio
    async def test_invalid_token(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/xp/track",
            json={"challenge_id": "daily_login"},
            headers={"Authorization": "Bearer not-a-jwt"},
        )
        assert response.status_code == 401
        assert response.json()["kind"] == "unauthenticated"

    @pytest.mark.asyncio
    async def test_expired_token(self, client: AsyncClient, token_factory):
        from datetime import timedelta

        token = token_factory("user-1", expires_in=timedelta(minutes=-5))
        response = await client.post(
            "/api/v1/xp/track",
            json={"challenge_id": "daily_login"},
            headers={"Authorization": f"Bearer {token}"},
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_track_until_complete(self, authed_client: AsyncClient):
        r1 = await authed_client.post("/api/v1/xp/track", json={"challenge_id": "daily_like_3_posts"})
        assert r1.status_code == 200
        assert r1.json()["progress"] == 1
        assert r1.json()["completed"] is False
        assert r1.json()["xp_gained"] == 0

        r2 = await authed_client.post(
            "/api/v1/xp/track", json={"challenge_id": "daily_like_3_posts", "increment": 5},
        )
        data = r2.json()
        assert data["success"] is True
        assert data["progress"] == 3
        assert data["goal"] == 3
        assert data["completed"] is True
        assert data["xp_gained"] == 15
        assert data["total_xp"] == 15
        assert data["level"] == 1
        assert data["message"] == "Challenge completed! +15 XP"

    @pytest.mark.asyncio
    async def test_default_increment_is_one(self, authed_client: AsyncClient):
        response = await authed_client.post("/api/v1/xp/track", json={"challenge_id": "weekly_comment_10_posts"})
        assert response.json()["progress"] == 1

    @pytest.mark.asyncio
    async def test_unknown_challenge_is_404(self, authed_client: AsyncClient):
        response = await authed_client.post("/api/v1/xp/track", json={"challenge_id": "daily_moonwalk"})
        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Challenge not found", "kind": "not_found"}

    @pytest.mark.asyncio
    async def test_negative_increment_rejected(self, authed_client: AsyncClient):
        response = await authed_client.post(
            "/api/v1/xp/track", json={"challenge_id": "daily_login", "increment": -1},
        )
        assert response.status_code == 400
        assert response.json()["kind"] == "invalid_input"

    @pytest.mark.asyncio
    async def test_missing_challenge_id(self, authed_client: AsyncClient):
        response = await authed_client.post("/api/v1/xp/track", json={})
        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["kind"] == "invalid_input"
        assert "challenge_id" in body["error"]

    @pytest.mark.asyncio
    async def test_recipient_required_and_deduplicated(self, authed_client: AsyncClient):
        missing = await authed_client.post("/api/v1/xp/track", json={"challenge_id": "daily_expand_petnet"})
        assert missing.status_code == 400
        assert missing.json()["kind"] == "invalid_input"

        first = await authed_client.post(
            "/api/v1/xp/track",
            json={"challenge_id": "daily_expand_petnet", "recipient": "friend@example.com"},
        )
        assert first.status_code == 200
        assert first.json()["progress"] == 1

        dup = await authed_client.post(
            "/api/v1/xp/track",
            json={"challenge_id": "daily_expand_petnet", "recipient": "Friend@Example.com"},
        )
        assert dup.status_code == 409
        assert dup.json()["kind"] == "duplicate_action"


class TestOverviewEndpoints:
    @pytest.mark.asyncio
    async def test_my_overview(self, authed_client: AsyncClient):
        await authed_client.post("/api/v1/xp/track", json={"challenge_id": "daily_login"})

        response = await authed_client.get("/api/v1/xp/users/me")
        assert response.status_code == 200
        data = response.json()
        assert data["total_xp"] == 10
        assert data["level"] == 1
        assert data["xp_into_level"] == 10
        assert data["percentage"] == 10.0
        login = next(c for c in data["challenges"] if c["id"] == "daily_login")
        assert login["progress"] == 1
        assert login["completed"] is True
        assert login["resets_at"] is not None

    @pytest.mark.asyncio
    async def test_other_users_overview(self, client: AsyncClient, auth_headers):
        alice = auth_headers("alice")
        bob = auth_headers("bob")
        await client.post("/api/v1/xp/track", json={"challenge_id": "daily_post_photo"}, headers=alice)
        alice_id = (await client.get("/api/v1/users/me", headers=alice)).json()["id"]

        response = await client.get(f"/api/v1/xp/users/{alice_id}", headers=bob)
        assert response.status_code == 200
        assert response.json()["total_xp"] == 25

    @pytest.mark.asyncio
    async def test_unknown_user_overview(self, authed_client: AsyncClient):
        response = await authed_client.get("/api/v1/xp/users/987654")
        assert response.status_code == 404
        assert response.json()["error"] == "User not found"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/api/v1/xp/users/me", "/api/v1/xp/users/{viewer_id}"])
    async def test_overview_records_last_seen(self, client: AsyncClient, auth_headers, db_session, make_user, path):
        viewer = await make_user("viewer")
        viewer_id = viewer.id
        await db_session.execute(update(User).where(User.id == viewer_id).values(last_seen=LONG_AGO))
        await db_session.commit()

        response = await client.get(path.format(viewer_id=viewer_id), headers=auth_headers("viewer"))
        assert response.status_code == 200

        last_seen = await db_session.execute(select(User.last_seen).where(User.id == viewer_id))
        assert ensure_utc(last_seen.scalar_one()) > LONG_AGO

    @pytest.mark.asyncio
    async def test_history(self, authed_client: AsyncClient):
        await authed_client.post("/api/v1/xp/track", json={"challenge_id": "daily_login"})
        await authed_client.post("/api/v1/xp/track", json={"challenge_id": "daily_post_photo"})

        response = await authed_client.get("/api/v1/xp/history")
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert {e["source_id"] for e in data["entries"]} == {"daily_login", "daily_post_photo"}
        assert sum(e["amount"] for e in data["entries"]) == 35

    @pytest.mark.asyncio
    async def test_history_pagination(self, authed_client: AsyncClient):
        await authed_client.post("/api/v1/xp/track", json={"challenge_id": "daily_login"})
        await authed_client.post("/api/v1/xp/track", json={"challenge_id": "daily_post_photo"})

        response = await authed_client.get("/api/v1/xp/history?page=2&per_page=1")
        data = response.json()
        assert data["total"] == 2
        assert len(data["entries"]) == 1
        assert data["page"] == 2
