"""Tests for the HTTP API."""

from fastapi import FastAPI
from fastapi.testclient import TestClient

from photo_tournament.api.app import create_app
from photo_tournament.containers import AppContainer
from photo_tournament.domain.errors import StoreError
from photo_tournament.domain.tournament import TournamentState

COOKIE = "photo_user_id"


class FailingTournamentRepository:
    def get_tournament(self) -> TournamentState | None:
        raise StoreError("Failed to load tournament")

    def save_tournament(self, state: TournamentState) -> None:
        raise StoreError("Failed to save tournament")


def _vote(app: FastAPI, matchup_index: int, choices: list[int]) -> None:
    for choice in choices:
        response = TestClient(app).post(
            "/tournament/votes", json={"matchupIndex": matchup_index, "choice": choice}
        )
        assert response.status_code == 200


def test_health(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_first_request_issues_session_cookie(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    first = client.get("/tournament")
    second = client.get("/tournament")

    assert first.status_code == 200
    assert first.json() == {"tournament": None, "hasVoted": False, "winner": None}
    set_cookie = first.headers["set-cookie"]
    assert set_cookie.startswith(f"{COOKIE}=")
    assert "HttpOnly" in set_cookie
    assert "Max-Age=2592000" in set_cookie
    assert "set-cookie" not in second.headers


def test_tournament_flow_through_api(container: AppContainer) -> None:
    app = create_app(container)
    starter = TestClient(app)

    response = starter.post("/tournament/start")
    assert response.status_code == 200
    tournament = response.json()["tournament"]
    assert tournament["startedBy"] == starter.cookies.get(COOKIE)
    assert len(tournament["bracket"]) == 2

    _vote(app, 0, [1, 1, 0])
    _vote(app, 1, [0, 0, 0])
    state = starter.get("/tournament").json()["tournament"]
    assert state["roundComplete"]
    assert state["bracket"][0]["winner"]["id"] == 2

    state = starter.post("/tournament/advance").json()["tournament"]
    assert state["currentRound"] == 2
    assert state["currentMatchup"] == 2

    starter.post("/tournament/votes", json={"matchupIndex": 2, "choice": 1})
    assert starter.get("/tournament").json()["hasVoted"]
    _vote(app, 2, [1, 0])
    starter.post("/tournament/advance")

    body = starter.get("/tournament").json()
    assert body["tournament"]["tournamentComplete"]
    assert body["winner"]["id"] == 3

    starter.post("/tournament/end")
    stats = starter.get("/history/stats").json()
    assert stats["totalTournaments"] == 1
    assert stats["totalVotes"] == 9
    assert stats["latest"]["archivedAt"].startswith("2024-05-01T12:00:00")
    assert len(starter.get("/history").json()["history"]) == 1


def test_vote_history_lists_callers_votes(container: AppContainer) -> None:
    client = TestClient(create_app(container))
    client.post("/tournament/start")

    client.post("/tournament/votes", json={"matchupIndex": 1, "choice": 1})
    votes = client.get("/votes/history").json()["votes"]

    assert len(votes) == 1
    assert votes[0]["votedFor"] == 4
    assert votes[0]["round"] == 1
    assert votes[0]["match"] == 2


def test_invalid_vote_index_is_rejected(container: AppContainer) -> None:
    client = TestClient(create_app(container))
    client.post("/tournament/start")

    response = client.post(
        "/tournament/votes", json={"matchupIndex": 9, "choice": 0}
    )
    malformed = client.post(
        "/tournament/votes", json={"matchupIndex": 0, "choice": 3}
    )

    assert response.status_code == 400
    assert "9" in response.json()["detail"]
    assert malformed.status_code == 422


def test_start_requires_two_photos(container: AppContainer) -> None:
    container.photo_source.photos = container.photo_source.photos[:1]
    client = TestClient(create_app(container))

    response = client.post("/tournament/start")

    assert response.status_code == 400


def test_store_failure_returns_503(container: AppContainer) -> None:
    container.bracket_service.repository = FailingTournamentRepository()
    client = TestClient(create_app(container))

    response = client.get("/tournament")

    assert response.status_code == 503
    assert response.json() == {"detail": "Failed to load tournament"}


def test_active_users_counts_recent_visitors(container: AppContainer) -> None:
    app = create_app(container)
    TestClient(app).get("/health")
    TestClient(app).get("/tournament")
    client = TestClient(app)

    body = client.get("/users/active").json()

    assert body["count"] == 2
    assert client.cookies.get(COOKIE) in {user["id"] for user in body["users"]}


def test_casual_votes_feed_rankings_and_tiers(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    response = client.post("/votes/casual", json={"photoId": 3})
    unknown = client.post("/votes/casual", json={"photoId": 99})

    assert response.status_code == 200
    assert response.json()["vote"]["type"] == "casual"
    assert unknown.status_code == 400
    assert client.get("/rankings").json() == {"rankings": [{"id": 3, "wins": 1}]}

    tiers = client.get("/tiers").json()["tiers"]
    assert list(tiers) == ["S", "A", "B", "C", "D"]
    assert [photo["id"] for photo in tiers["D"]] == [3, 4, 2, 1]
    assert tiers["D"][0]["score"] == 1.6
    assert tiers["D"][0]["tier"] == "D"


def test_schedule_reports_next_start(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    idle = client.get("/tournament/schedule").json()
    client.post("/tournament/start")
    running = client.get("/tournament/schedule").json()

    assert idle == {
        "isActive": False,
        "timeRemainingSeconds": 900,
        "nextStartAt": "2024-05-01T12:15:00+00:00",
        "endsAt": None,
    }
    assert running["isActive"]
    assert running["timeRemainingSeconds"] == 1800
    assert running["endsAt"] == "2024-05-01T12:30:00+00:00"
    assert running["nextStartAt"] == "2024-05-01T12:45:00+00:00"


def test_photo_pair_for_casual_voting(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    pair = client.get("/photos/pair").json()["pair"]

    assert len(pair) == 2
    assert pair[0]["id"] != pair[1]["id"]
