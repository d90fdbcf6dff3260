from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from app.db.session import get_db
from app.main import create_app


@pytest.fixture
def app(db):
    app = create_app()
    app.dependency_overrides[get_db] = lambda: db
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


@pytest.fixture
def squad(seed):
    team = seed.team()
    ana = seed.player(team, "Ana", nickname="Aninha")
    bia = seed.player(team, "Bia")
    season = seed.season(team, players=[ana, bia])
    past = datetime.now(timezone.utc) - timedelta(days=7)
    match = seed.match(team, season, past, our=2, their=1, opponent="Rivals", present=[ana, bia])
    seed.goal(match, ana)
    seed.goal(match, ana)
    seed.goal(match, bia)
    return team, season, ana, bia


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["ok"] is True


def test_dashboard_endpoint(client, squad):
    team, season, ana, bia = squad

    response = client.get(f"/teams/{team.id}/dashboard")

    assert response.status_code == 200
    body = response.json()
    assert body["summary"]["total_games"] == 1
    assert body["summary"]["wins"] == 1
    assert body["summary"]["win_rate"] == 100
    assert [s["id"] for s in body["top_scorers"]] == [ana.id, bia.id]
    assert body["top_scorers"][0]["doubles"] == 1
    assert body["last_matches"][0]["scorers"] == ["Aninha", "Aninha", "Bia"]
    assert body["next_match"] is None


def test_dashboard_is_served_from_cache(client, app, squad):
    team, season, _, _ = squad

    first = client.get(f"/teams/{team.id}/dashboard", params={"season_id": season.id})
    assert f"dashboard:{team.id}:{season.id}" in app.state.cache

    second = client.get(f"/teams/{team.id}/dashboard", params={"season_id": season.id})

    assert second.json() == first.json()
    assert app.state.cache.stats().hits >= 1


def test_dashboard_without_season_is_empty(client, seed):
    team = seed.team()

    response = client.get(f"/teams/{team.id}/dashboard")

    assert response.status_code == 200
    assert response.json()["summary"]["total_games"] == 0
    assert response.json()["top_scorers"] == []


def test_player_stats_are_response_cached(client, app, squad):
    team, season, ana, _ = squad

    response = client.get(f"/teams/{team.id}/players/{ana.id}/stats")

    assert response.status_code == 200
    assert response.json()["goals"] == 2
    assert response.json()["presences"] == 1
    key = f"cache:{team.id}:/teams/{team.id}/players/{ana.id}/stats"
    assert key in app.state.cache

    app.state.invalidation.invalidate(team.id)
    assert key not in app.state.cache


def test_unknown_player_returns_error_code(client, squad):
    team, _, _, _ = squad

    response = client.get(f"/teams/{team.id}/players/9999/stats")

    assert response.status_code == 404
    assert response.json() == {"detail": "player_not_found"}


def test_next_match_endpoint(client, seed, squad):
    team, season, _, _ = squad
    upcoming = seed.match(team, season, datetime.now(timezone.utc) + timedelta(days=3), opponent="Next FC")

    response = client.get(f"/teams/{team.id}/dashboard/next-match")

    assert response.status_code == 200
    assert response.json()["id"] == upcoming.id
    assert response.json()["opponent"] == "Next FC"


def test_write_endpoint_invalidates_cached_dashboard(client, app, squad):
    team, season, ana, bia = squad
    url = f"/teams/{team.id}/dashboard"

    before = client.get(url).json()
    assert before["summary"]["total_games"] == 1
    assert f"dashboard:{team.id}:{season.id}" in app.state.cache

    played_at = (datetime.now(timezone.utc) - timedelta(days=2)).isoformat()
    created = client.post(
        f"/teams/{team.id}/matches",
        json={"date": played_at, "opponent": "Second FC", "our_score": 0, "their_score": 3},
    )
    assert created.status_code == 200
    assert f"dashboard:{team.id}:{season.id}" not in app.state.cache

    presences = client.put(
        f"/teams/{team.id}/matches/{created.json()['id']}/presences",
        json={"presences": [{"player_id": ana.id, "present": True}]},
    )
    assert presences.status_code == 200

    after = client.get(url).json()
    assert after["summary"]["total_games"] == 2
    assert after["summary"]["losses"] == 1
    assert after["summary"]["win_rate"] == 50


def test_write_endpoint_maps_service_errors(client, seed):
    team = seed.team()

    response = client.post(f"/teams/{team.id}/matches", json={"date": "2026-06-01T12:00:00Z"})

    assert response.status_code == 400
    assert response.json() == {"detail": "no_active_season"}


def test_create_player_endpoint_reports_enrollment(client, squad):
    team, season, _, _ = squad

    response = client.post(f"/teams/{team.id}/players", json={"name": "Cris"})

    assert response.status_code == 200
    body = response.json()
    assert body["player"]["name"] == "Cris"
    assert body["enrollment"] == {"season_id": season.id, "enrolled": True, "error": None}
