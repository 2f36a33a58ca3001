"""Integration tests for weekly challenge endpoints (admin and participant)."""

from __future__ import annotations

import pytest
from httpx import AsyncClient

CHALLENGE = {
    "title": "Sleepiest Pet",
    "description": "Show us your pet's best nap",
    "hashtag": "#SleepyPets",
    "start_date": "2026-10-19T13:00:00Z",
    "end_date": "2099-10-26T13:00:00Z",
}


async def _active_challenge(client: AsyncClient, admin_headers: dict[str, str]) -> int:
    created = await client.post("/api/v1/admin/weekly-challenges", json=CHALLENGE, headers=admin_headers)
    assert created.status_code == 201
    challenge_id = created.json()["id"]
    activated = await client.post(f"/api/v1/admin/weekly-challenges/{challenge_id}/activate", headers=admin_headers)
    assert activated.status_code == 200
    return challenge_id


class TestAdminEndpoints:
    @pytest.mark.asyncio
    async def test_non_admin_forbidden(self, authed_client: AsyncClient):
        response = await authed_client.post("/api/v1/admin/weekly-challenges", json=CHALLENGE)
        assert response.status_code == 403
        assert response.json() == {"success": False, "error": "Admin access required", "kind": "forbidden"}

    @pytest.mark.asyncio
    async def test_anonymous_unauthorized(self, client: AsyncClient):
        response = await client.get("/api/v1/admin/weekly-challenges")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_create_and_activate(self, client: AsyncClient, admin_headers):
        created = await client.post("/api/v1/admin/weekly-challenges", json=CHALLENGE, headers=admin_headers)
        data = created.json()
        assert data["hashtag"] == "sleepypets"
        assert data["is_active"] is False
        assert data["has_ended"] is False

        activated = await client.post(f"/api/v1/admin/weekly-challenges/{data['id']}/activate", headers=admin_headers)
        assert activated.json()["is_active"] is True

        listed = await client.get("/api/v1/admin/weekly-challenges", headers=admin_headers)
        assert [c["id"] for c in listed.json()["challenges"]] == [data["id"]]

    @pytest.mark.asyncio
    async def test_second_activation_closes_first(self, client: AsyncClient, admin_headers):
        first = await _active_challenge(client, admin_headers)
        second = await _active_challenge(client, admin_headers)

        listed = await client.get("/api/v1/admin/weekly-challenges", headers=admin_headers)
        active = {c["id"]: c["is_active"] for c in listed.json()["challenges"]}
        assert active == {first: False, second: True}

    @pytest.mark.asyncio
    async def test_inverted_dates(self, client: AsyncClient, admin_headers):
        body = {**CHALLENGE, "start_date": CHALLENGE["end_date"], "end_date": CHALLENGE["start_date"]}
        response = await client.post("/api/v1/admin/weekly-challenges", json=body, headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["kind"] == "invalid_input"

    @pytest.mark.asyncio
    async def test_activate_unknown(self, client: AsyncClient, admin_headers):
        response = await client.post("/api/v1/admin/weekly-challenges/999/activate", headers=admin_headers)
        assert response.status_code == 404


class TestParticipantEndpoints:
    @pytest.mark.asyncio
    async def test_no_current_challenge(self, client: AsyncClient):
        response = await client.get("/api/v1/weekly-challenges/current")
        assert response.status_code == 200
        assert response.json() == {"challenge": None, "submission_count": 0, "options": [], "user_vote": None}

        listed = await client.get("/api/v1/weekly-challenges/current/submissions")
        assert listed.json() == {"challenge": None, "submissions": []}

    @pytest.mark.asyncio
    async def test_submit_and_rank(self, client: AsyncClient, auth_headers, admin_headers):
        challenge_id = await _active_challenge(client, admin_headers)
        alice = auth_headers("alice", username="alice")
        bob = auth_headers("bob", username="bob")

        alice_post = (await client.post("/api/v1/posts", json={"content": "Nap #1"}, headers=alice)).json()["id"]
        bob_post = (await client.post("/api/v1/posts", json={"content": "Nap #2"}, headers=bob)).json()["id"]

        submitted = await client.post(
            "/api/v1/weekly-challenges/current/submissions", json={"post_id": alice_post}, headers=alice,
        )
        assert submitted.status_code == 201
        assert submitted.json()["challenge_id"] == challenge_id
        bob_entry = (await client.post(
            "/api/v1/weekly-challenges/current/submissions", json={"post_id": bob_post}, headers=bob,
        )).json()["id"]

        await client.post(
            "/api/v1/votes", json={"target_type": "challenge_post", "target_id": bob_entry, "value": 1}, headers=alice,
        )

        current = await client.get("/api/v1/weekly-challenges/current")
        assert current.json()["submission_count"] == 2
        assert current.json()["challenge"]["id"] == challenge_id

        listed = await client.get("/api/v1/weekly-challenges/current/submissions", headers=alice)
        entries = listed.json()["submissions"]
        assert [(e["post_id"], e["net_votes"], e["rank"]) for e in entries] == [
            (bob_post, 1, 1),
            (alice_post, 0, 2),
        ]
        assert entries[0]["user_vote"] == 1
        assert entries[0]["author"]["username"] == "bob"

        post = await client.get(f"/api/v1/posts/{alice_post}")
        assert post.json()["challenge_hashtag"] == "sleepypets"

    @pytest.mark.asyncio
    async def test_submit_rules(self, client: AsyncClient, auth_headers, admin_headers):
        await _active_challenge(client, admin_headers)
        alice = auth_headers("alice")
        bob = auth_headers("bob")
        post_id = (await client.post("/api/v1/posts", json={"content": "Nap"}, headers=alice)).json()["id"]

        foreign = await client.post(
            "/api/v1/weekly-challenges/current/submissions", json={"post_id": post_id}, headers=bob,
        )
        assert foreign.status_code == 403

        missing = await client.post(
            "/api/v1/weekly-challenges/current/submissions", json={"post_id": 999}, headers=alice,
        )
        assert missing.status_code == 404

        await client.post("/api/v1/weekly-challenges/current/submissions", json={"post_id": post_id}, headers=alice)
        dup = await client.post(
            "/api/v1/weekly-challenges/current/submissions", json={"post_id": post_id}, headers=alice,
        )
        assert dup.status_code == 409
        assert dup.json()["kind"] == "duplicate_action"

    @pytest.mark.asyncio
    async def test_challengers_on_leaderboard(self, client: AsyncClient, auth_headers, admin_headers):
        await _active_challenge(client, admin_headers)
        alice = auth_headers("alice", username="alice")
        post_id = (await client.post("/api/v1/posts", json={"content": "Nap"}, headers=alice)).json()["id"]
        entry = (await client.post(
            "/api/v1/weekly-challenges/current/submissions", json={"post_id": post_id}, headers=alice,
        )).json()["id"]
        await client.post(
            "/api/v1/votes",
            json={"target_type": "challenge_post", "target_id": entry, "value": 1},
            headers=auth_headers("fan"),
        )

        board = (await client.get("/api/v1/leaderboard")).json()
        assert board["challenge"]["hashtag"] == "sleepypets"
        assert [(c["username"], c["net_votes"], c["rank"]) for c in board["challengers"]] == [("alice", 1, 1)]


POLL = {
    **CHALLENGE,
    "options": [
        {"title": "Couch nap", "description": "Sprawled on the sofa"},
        {"title": "Sunbeam nap"},
    ],
}


async def _active_poll(client: AsyncClient, admin_headers: dict[str, str]) -> tuple[int, list[int]]:
    created = await client.post("/api/v1/admin/weekly-challenges", json=POLL, headers=admin_headers)
    assert created.status_code == 201
    data = created.json()
    await client.post(f"/api/v1/admin/weekly-challenges/{data['id']}/activate", headers=admin_headers)
    return data["id"], [o["id"] for o in data["options"]]


class TestSingleChallengeAdmin:
    @pytest.mark.asyncio
    async def test_get_with_options(self, client: AsyncClient, admin_headers):
        challenge_id, _ = await _active_poll(client, admin_headers)

        response = await client.get(f"/api/v1/admin/weekly-challenges/{challenge_id}", headers=admin_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["is_active"] is True
        assert data["submission_count"] == 0
        assert [(o["title"], o["order_index"], o["percentage"]) for o in data["options"]] == [
            ("Couch nap", 1, 0),
            ("Sunbeam nap", 2, 0),
        ]

    @pytest.mark.asyncio
    async def test_partial_update(self, client: AsyncClient, admin_headers):
        challenge_id, _ = await _active_poll(client, admin_headers)

        response = await client.put(
            f"/api/v1/admin/weekly-challenges/{challenge_id}",
            json={"title": "Napping Champions", "hashtag": "#NapTime"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        data = response.json()
        assert (data["title"], data["hashtag"]) == ("Napping Champions", "naptime")
        assert data["description"] == CHALLENGE["description"]
        assert data["is_active"] is True

    @pytest.mark.asyncio
    async def test_update_can_deactivate(self, client: AsyncClient, admin_headers):
        challenge_id, _ = await _active_poll(client, admin_headers)
        await client.put(
            f"/api/v1/admin/weekly-challenges/{challenge_id}", json={"is_active": False}, headers=admin_headers,
        )

        current = await client.get("/api/v1/weekly-challenges/current")
        assert current.json()["challenge"] is None

    @pytest.mark.asyncio
    async def test_delete(self, client: AsyncClient, admin_headers):
        challenge_id, _ = await _active_poll(client, admin_headers)

        response = await client.delete(f"/api/v1/admin/weekly-challenges/{challenge_id}", headers=admin_headers)
        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Challenge deleted successfully"}

        again = await client.get(f"/api/v1/admin/weekly-challenges/{challenge_id}", headers=admin_headers)
        assert again.status_code == 404
        assert again.json()["error"] == "Challenge not found"

    @pytest.mark.asyncio
    async def test_unknown_challenge(self, client: AsyncClient, admin_headers):
        for method in ("GET", "PUT", "DELETE"):
            response = await client.request(
                method, "/api/v1/admin/weekly-challenges/999",
                json={"title": "x"} if method == "PUT" else None,
                headers=admin_headers,
            )
            assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_non_admin_forbidden(self, client: AsyncClient, admin_headers, auth_headers):
        challenge_id, _ = await _active_poll(client, admin_headers)
        user = auth_headers("user-1")
        path = f"/api/v1/admin/weekly-challenges/{challenge_id}"

        assert (await client.get(path, headers=user)).status_code == 403
        assert (await client.put(path, json={"title": "Mine now"}, headers=user)).status_code == 403
        assert (await client.delete(path, headers=user)).status_code == 403


class TestPollEndpoints:
    @pytest.mark.asyncio
    async def test_vote_and_change(self, client: AsyncClient, admin_headers, auth_headers):
        challenge_id, (couch, sunbeam) = await _active_poll(client, admin_headers)
        alice = auth_headers("alice")
        bob = auth_headers("bob")

        await client.post(
            "/api/v1/weekly-challenges/vote", json={"challenge_id": challenge_id, "option_id": couch}, headers=bob,
        )
        first = await client.post(
            "/api/v1/weekly-challenges/vote", json={"challenge_id": challenge_id, "option_id": couch}, headers=alice,
        )
        assert first.status_code == 200
        assert first.json()["action"] == "cast"
        assert [(o["vote_count"], o["percentage"]) for o in first.json()["options"]] == [(2, 100), (0, 0)]

        changed = await client.post(
            "/api/v1/weekly-challenges/vote", json={"challenge_id": challenge_id, "option_id": sunbeam}, headers=alice,
        )
        data = changed.json()
        assert data["action"] == "changed"
        assert data["user_vote"] == sunbeam
        assert data["challenge"]["id"] == challenge_id
        assert [(o["vote_count"], o["percentage"]) for o in data["options"]] == [(1, 50), (1, 50)]

        current = (await client.get("/api/v1/weekly-challenges/current", headers=alice)).json()
        assert current["user_vote"] == sunbeam
        assert [o["vote_count"] for o in current["options"]] == [1, 1]

        anonymous = (await client.get("/api/v1/weekly-challenges/current")).json()
        assert anonymous["user_vote"] is None

    @pytest.mark.asyncio
    async def test_ended_challenge_rejects_votes(self, client: AsyncClient, admin_headers, auth_headers):
        ended = {**POLL, "start_date": "2020-01-06T13:00:00Z", "end_date": "2020-01-13T13:00:00Z"}
        created = (await client.post("/api/v1/admin/weekly-challenges", json=ended, headers=admin_headers)).json()
        await client.post(f"/api/v1/admin/weekly-challenges/{created['id']}/activate", headers=admin_headers)

        response = await client.post(
            "/api/v1/weekly-challenges/vote",
            json={"challenge_id": created["id"], "option_id": created["options"][0]["id"]},
            headers=auth_headers("late"),
        )
        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Voting period has ended", "kind": "invalid_input"}

    @pytest.mark.asyncio
    async def test_inactive_or_unknown(self, client: AsyncClient, admin_headers, auth_headers):
        created = (await client.post("/api/v1/admin/weekly-challenges", json=POLL, headers=admin_headers)).json()
        voter = auth_headers("voter")

        inactive = await client.post(
            "/api/v1/weekly-challenges/vote",
            json={"challenge_id": created["id"], "option_id": created["options"][0]["id"]},
            headers=voter,
        )
        assert inactive.status_code == 404
        assert inactive.json()["error"] == "Challenge not found or not active"

        await client.post(f"/api/v1/admin/weekly-challenges/{created['id']}/activate", headers=admin_headers)
        unknown_option = await client.post(
            "/api/v1/weekly-challenges/vote", json={"challenge_id": created["id"], "option_id": 999}, headers=voter,
        )
        assert unknown_option.status_code == 404
        assert unknown_option.json()["error"] == "Challenge option not found"

    @pytest.mark.asyncio
    async def test_requires_authentication(self, client: AsyncClient):
        response = await client.post("/api/v1/weekly-challenges/vote", json={"challenge_id": 1, "option_id": 1})
        assert response.status_code == 401


class TestClosedChallengeVotes:
    @pytest.mark.asyncio
    async def test_vote_retracted_after_challenge_closes(self, client: AsyncClient, admin_headers, auth_headers):
        await _active_challenge(client, admin_headers)
        owner = auth_headers("owner")
        fan = auth_headers("fan")
        post_id = (await client.post("/api/v1/posts", json={"content": "Nap"}, headers=owner)).json()["id"]
        entry = (await client.post(
            "/api/v1/weekly-challenges/current/submissions", json={"post_id": post_id}, headers=owner,
        )).json()["id"]
        await client.post(
            "/api/v1/votes", json={"target_type": "challenge_post", "target_id": entry, "value": 1}, headers=fan,
        )

        await _active_challenge(client, admin_headers)

        closed = await client.post(
            "/api/v1/votes", json={"target_type": "challenge_post", "target_id": entry, "value": -1}, headers=fan,
        )
        assert closed.status_code == 422

        retracted = await client.delete(f"/api/v1/votes/challenge_post/{entry}", headers=fan)
        assert retracted.status_code == 200
        assert retracted.json()["action"] == "retracted"
        assert retracted.json()["score"] == 0
