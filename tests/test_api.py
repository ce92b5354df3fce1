"""HTTP and WebSocket surface, driven through FastAPI's TestClient."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import NullPool

from sportsfest_backend.core.database import build_session_maker
from sportsfest_backend.main import create_app


@pytest.fixture
def client(tmp_path):
    engine, session_maker = build_session_maker(
        f"sqlite+aiosqlite:///{tmp_path / 'api_test.db'}",
        poolclass=NullPool,
    )
    app = create_app(db_engine=engine, session_maker=session_maker)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers(client):
    client.post("/auth/register", json={"username": "scorer", "password": "s3cret-pass"})
    response = client.post("/auth/login", json={"username": "scorer", "password": "s3cret-pass"})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def live_match(client, auth_headers):
    response = client.post(
        "/matches",
        json={"sport": "FOOTBALL", "team_a": "Architecture", "team_b": "Biotech"},
        headers=auth_headers,
    )
    assert response.status_code == 201
    match_id = response.json()["id"]
    response = client.put(f"/matches/{match_id}/status", json={"status": "LIVE"}, headers=auth_headers)
    assert response.status_code == 200
    return match_id


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_first_admin_is_super_admin_and_registration_closes(client):
    first = client.post("/auth/register", json={"username": "chief", "password": "pw-one"})
    assert first.json()["role"] == "SUPER_ADMIN"

    second = client.post("/auth/register", json={"username": "intruder", "password": "pw-two"})
    assert second.status_code == 403

    bad_login = client.post("/auth/login", json={"username": "chief", "password": "wrong"})
    assert bad_login.status_code == 401


def test_mutations_need_a_token(client):
    response = client.post("/matches", json={"sport": "CHESS", "team_a": "Law", "team_b": "Arts"})
    assert response.status_code == 401


def test_team_cannot_play_itself(client, auth_headers):
    response = client.post(
        "/matches",
        json={"sport": "CHESS", "team_a": "Law", "team_b": "Law"},
        headers=auth_headers,
    )
    assert response.status_code == 422


def test_scoring_flow(client, auth_headers, live_match):
    response = client.post(
        f"/matches/{live_match}/actions",
        json={"action": "recordScore", "team": "A", "player_name": "Forward", "time": 17},
        headers=auth_headers,
    )
    assert response.status_code == 200
    assert response.json()["state"]["score_a"] == 1

    match = client.get(f"/matches/{live_match}").json()
    assert match["state"]["scorers"][0]["time"] == 17
    assert match["status"] == "LIVE"

    listed = client.get("/matches", params={"status": "LIVE"}).json()
    assert [m["id"] for m in listed] == [live_match]


def test_errors_use_kind_and_message(client, auth_headers, live_match):
    missing = client.post("/matches/9999/actions", json={"action": "advancePeriod"}, headers=auth_headers)
    assert missing.status_code == 404
    assert missing.json()["kind"] == "MATCH_NOT_FOUND"

    unsupported = client.post(
        f"/matches/{live_match}/actions", json={"action": "endSet", "winning_team": "A"}, headers=auth_headers
    )
    assert unsupported.status_code == 400
    assert unsupported.json()["kind"] == "UNSUPPORTED_ACTION"

    client.post(f"/matches/{live_match}/actions", json={"action": "advancePeriod"}, headers=auth_headers)
    conflict = client.post(f"/matches/{live_match}/actions", json={"action": "advancePeriod"}, headers=auth_headers)
    assert conflict.status_code == 409
    assert conflict.json() == {
        "kind": "ALL_PERIODS_COMPLETE",
        "message": conflict.json()["message"],
    }


def test_fouls_and_suspensions(client, auth_headers, live_match):
    foul = {"team": "B", "foul_type": "YELLOW_CARD", "player_name": "Keeper"}
    for _ in range(2):
        response = client.post(f"/matches/{live_match}/fouls", json=foul, headers=auth_headers)
        assert response.status_code == 201

    fouls = client.get(f"/matches/{live_match}/fouls").json()
    assert len(fouls) == 2
    suspended = client.get(f"/matches/{live_match}/suspensions").json()
    assert suspended == [{"player_name": "Keeper", "team": "B", "yellow": 2, "red": 0}]

    response = client.delete(f"/matches/{live_match}/fouls/{fouls[0]['id']}", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["suspended_players"] == []

    response = client.delete(f"/matches/{live_match}/fouls/12345", headers=auth_headers)
    assert response.status_code == 404
    assert response.json()["kind"] == "FOUL_NOT_FOUND"


def test_live_feed_receives_updates(client, auth_headers, live_match):
    with client.websocket_connect("/ws/live?topics=match:update") as websocket:
        client.post(
            f"/matches/{live_match}/actions",
            json={"action": "timerAction", "kind": "start"},
            headers=auth_headers,
        )
        event = websocket.receive_json()

    assert event["event"] == "match:update"
    assert event["data"]["id"] == live_match
    assert event["data"]["state"]["timer"]["is_running"] is True


def test_delete_match(client, auth_headers, live_match):
    response = client.delete(f"/matches/{live_match}", headers=auth_headers)
    assert response.status_code == 200
    assert client.get(f"/matches/{live_match}").status_code == 404
