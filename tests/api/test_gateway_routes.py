from __future__ import annotations

import httpx
import pytest

from integral_rush.api.deps import get_answer_judge, get_problem_catalog
from integral_rush.api.routes import duels as duels_routes
from integral_rush.api.routes import matchmaking as matchmaking_routes
from integral_rush.api.routes import tournaments as tournaments_routes
from integral_rush.main import create_app
from tests.game.duel_fixtures import force_room_values
from tests.game.fixtures import CORRECT_ANSWER, FakeAnswerJudge, FakeProblemCatalog

HOST_ID = 501
GUEST_ID = 502
STRANGER_ID = 503


def _as(user_id: int) -> dict[str, str]:
    return {"X-User-Id": str(user_id)}


@pytest.fixture
async def api_client(session_factory, monkeypatch):
    for module in (duels_routes, matchmaking_routes, tournaments_routes):
        monkeypatch.setattr(module, "SessionLocal", session_factory)
    app = create_app()
    app.dependency_overrides[get_problem_catalog] = lambda: FakeProblemCatalog()
    app.dependency_overrides[get_answer_judge] = lambda: FakeAnswerJudge()
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


async def _create_full_duel(client: httpx.AsyncClient) -> str:
    created = await client.post(
        "/duels",
        json={"time_control": 120, "difficulty": "Basic", "questions_to_win": 3},
        headers=_as(HOST_ID),
    )
    assert created.status_code == 201
    code = created.json()["code"]
    joined = await client.post(f"/duels/{code}/join", headers=_as(GUEST_ID))
    assert joined.status_code == 200
    return code


@pytest.mark.asyncio
@pytest.mark.parametrize("headers", [{}, {"X-User-Id": "abc"}, {"X-User-Id": "0"}])
async def test_requests_without_valid_user_are_rejected(api_client, headers) -> None:
    response = await api_client.post("/duels", json={}, headers=headers)

    assert response.status_code == 401
    assert response.json() == {"detail": {"code": "E_UNAUTHENTICATED"}}


@pytest.mark.asyncio
async def test_create_duel_and_read_waiting_room(api_client) -> None:
    created = await api_client.post("/duels", json={"difficulty": "Advanced"}, headers=_as(HOST_ID))
    code = created.json()["code"]
    fetched = await api_client.get(f"/duels/{code}", headers=_as(STRANGER_ID))

    assert created.status_code == 201
    assert created.json()["status"] == "WAITING"
    assert created.json()["time_control"] == 180
    assert fetched.status_code == 200
    assert fetched.json()["host_id"] == HOST_ID


@pytest.mark.asyncio
async def test_game_errors_map_to_status_codes(api_client) -> None:
    missing = await api_client.get("/duels/999999", headers=_as(HOST_ID))
    invalid = await api_client.post("/duels", json={"difficulty": "Hard"}, headers=_as(HOST_ID))
    code = await _create_full_duel(api_client)
    full = await api_client.post(f"/duels/{code}/join", headers=_as(STRANGER_ID))
    stranger = await api_client.get(f"/duels/{code}", headers=_as(STRANGER_ID))

    assert (missing.status_code, missing.json()["detail"]["code"]) == (404, "E_ROOM_NOT_FOUND")
    assert (invalid.status_code, invalid.json()["detail"]["code"]) == (422, "E_INVALID_CONFIG")
    assert (full.status_code, full.json()["detail"]["code"]) == (409, "E_ROOM_FULL")
    assert (stranger.status_code, stranger.json()["detail"]["code"]) == (403, "E_NOT_A_SEAT")


@pytest.mark.asyncio
async def test_solution_is_hidden_until_the_question_closes(api_client) -> None:
    code = await _create_full_duel(api_client)

    issued = await api_client.post(f"/duels/{code}/question", headers=_as(GUEST_ID))
    problem = issued.json()["room"]["current_problem"]
    answered = await api_client.post(
        f"/duels/{code}/answer",
        json={"answer": CORRECT_ANSWER},
        headers=_as(GUEST_ID),
    )
    again = await api_client.post(
        f"/duels/{code}/answer",
        json={"answer": CORRECT_ANSWER},
        headers=_as(GUEST_ID),
    )

    assert issued.status_code == 200
    assert issued.json()["issued_now"] is True
    assert problem["statement"]
    assert problem["solution"] is None
    assert problem["alternatives"] is None
    assert answered.status_code == 200
    body = answered.json()
    assert body["applied"] is True
    assert body["is_correct"] is True
    assert body["room"]["opponent_score"] == 1
    assert body["room"]["current_problem"]["solution"] == "x^2/2"
    assert (again.status_code, again.json()["detail"]["code"]) == (409, "E_ALREADY_ANSWERED")


@pytest.mark.asyncio
async def test_timer_route_and_seats_cannot_cancel_a_started_duel(api_client) -> None:
    code = await _create_full_duel(api_client)

    ticked = await api_client.post(f"/duels/{code}/timer", headers=_as(HOST_ID))
    cancelled = await api_client.post(f"/duels/{code}/abandon", headers=_as(HOST_ID))
    state = await api_client.get(f"/duels/{code}", headers=_as(GUEST_ID))

    assert ticked.json()["room"]["host_time_remaining"] == 119
    assert ticked.json()["expired_now"] is False
    assert (cancelled.status_code, cancelled.json()["detail"]["code"]) == (
        409,
        "E_CANNOT_CANCEL_STARTED",
    )
    assert state.json()["status"] == "IN_PROGRESS"


@pytest.mark.asyncio
async def test_host_cancels_a_waiting_duel(api_client) -> None:
    created = await api_client.post("/duels", json={}, headers=_as(HOST_ID))
    code = created.json()["code"]

    cancelled = await api_client.post(f"/duels/{code}/abandon", headers=_as(HOST_ID))
    repeated = await api_client.post(f"/duels/{code}/abandon", headers=_as(HOST_ID))
    joined = await api_client.post(f"/duels/{code}/join", headers=_as(GUEST_ID))

    assert cancelled.json()["applied"] is True
    assert cancelled.json()["room"]["status"] == "ABANDONED"
    assert repeated.json()["applied"] is False
    assert (joined.status_code, joined.json()["detail"]["code"]) == (409, "E_ALREADY_STARTED")


@pytest.mark.asyncio
async def test_inconsistent_room_is_quarantined_by_the_route(api_client, session_factory) -> None:
    code = await _create_full_duel(api_client)
    await force_room_values(session_factory, code=code, values={"opponent_score": 3})

    rejected = await api_client.post(f"/duels/{code}/timer", headers=_as(HOST_ID))
    after = await api_client.get(f"/duels/{code}", headers=_as(HOST_ID))

    assert (rejected.status_code, rejected.json()["detail"]["code"]) == (409, "E_INVARIANT_VIOLATION")
    assert after.json()["status"] == "ABANDONED"
    assert after.json()["winner_id"] is None


@pytest.mark.asyncio
async def test_matchmaking_routes_pair_two_players(api_client) -> None:
    first = await api_client.post(
        "/matchmaking",
        json={"time_control": 180, "difficulty": "Basic"},
        headers=_as(HOST_ID),
    )
    second = await api_client.post(
        "/matchmaking",
        json={"time_control": 180, "difficulty": "Basic"},
        headers=_as(GUEST_ID),
    )
    polled = await api_client.get("/matchmaking", headers=_as(HOST_ID))
    left = await api_client.delete("/matchmaking", headers=_as(STRANGER_ID))
    rejected = await api_client.post(
        "/matchmaking",
        json={"time_control": 30, "difficulty": "Basic"},
        headers=_as(STRANGER_ID),
    )

    assert first.json()["state"] == "QUEUED"
    assert second.json()["state"] == "MATCHED"
    assert polled.json()["state"] == "MATCHED"
    assert polled.json()["room"]["code"] == second.json()["room"]["code"]
    assert left.json() == {"removed": False}
    assert (rejected.status_code, rejected.json()["detail"]["code"]) == (422, "E_INVALID_QUEUE_CONFIG")


@pytest.mark.asyncio
async def test_tournament_routes_lobby_to_leaderboard(api_client) -> None:
    created = await api_client.post(
        "/tournaments",
        json={"format": "knockout", "difficulty": "Basic", "questions_per_match": 3},
        headers=_as(HOST_ID),
    )
    code = created.json()["code"]
    for user_id in (HOST_ID, GUEST_ID):
        joined = await api_client.post(f"/tournaments/{code}/join", headers=_as(user_id))
        assert joined.status_code == 200
    forbidden = await api_client.post(f"/tournaments/{code}/start", headers=_as(GUEST_ID))
    started = await api_client.post(f"/tournaments/{code}/start", headers=_as(HOST_ID))
    lobby = await api_client.get(f"/tournaments/{code}", headers=_as(GUEST_ID))
    leaderboard = await api_client.get(f"/tournaments/{code}/leaderboard", headers=_as(STRANGER_ID))
    missing = await api_client.get("/tournaments/999999", headers=_as(HOST_ID))

    assert created.status_code == 201
    assert created.json()["format"] == "KNOCKOUT"
    assert (forbidden.status_code, forbidden.json()["detail"]["code"]) == (403, "E_NOT_TOURNAMENT_HOST")
    assert started.json()["matches_total"] == 1
    assert started.json()["tournament"]["status"] == "IN_PROGRESS"
    body = lobby.json()
    assert body["viewer_joined"] is True
    assert body["can_start"] is False
    assert body["viewer_current_room_code"] == body["current_round_matches"][0]["duel_room_code"]
    assert [item["rank"] for item in leaderboard.json()["items"]] == [1, 2]
    assert missing.status_code == 404
