"""Tests for the match update coordinator: lifecycle, validation, persistence, broadcast."""

import asyncio

import pytest

from sportsfest_backend.core.errors import (
    MatchError,
    INVALID_STATUS_TRANSITION,
    MATCH_NOT_FOUND,
    MATCH_NOT_LIVE,
    UNSUPPORTED_ACTION,
)
from sportsfest_backend.core.sport_config import MatchStatus, Sport
from sportsfest_backend.models.match_model import MatchCreate, StatusUpdate
from sportsfest_backend.services.broadcast import MATCH_CREATED, MATCH_DELETED, MATCH_UPDATE
from sportsfest_backend.services.match_store import MatchStore


def test_unknown_match_is_not_found(coordinator):
    with pytest.raises(MatchError) as exc:
        asyncio.run(coordinator.handle_update(404, {"action": "startSet"}))
    assert exc.value.kind == MATCH_NOT_FOUND
    assert exc.value.status_code == 404


def test_create_match_builds_sport_state_and_broadcasts(coordinator, channel):
    subscription = channel.subscribe([MATCH_CREATED])
    match = asyncio.run(coordinator.create_match(
        MatchCreate(sport=Sport.CRICKET, team_a="Civil", team_b="Electrical", total_overs=10)
    ))

    assert match.status == MatchStatus.SCHEDULED
    assert match.state["total_overs"] == 10
    assert match.version == 0

    event = subscription.get_nowait()
    assert event["event"] == MATCH_CREATED
    assert event["data"]["id"] == match.id


def test_scoring_needs_a_live_match(coordinator, make_match):
    match_id = make_match(Sport.BADMINTON, live=False)

    with pytest.raises(MatchError) as exc:
        asyncio.run(coordinator.handle_update(match_id, {"action": "startSet"}))
    assert exc.value.kind == MATCH_NOT_LIVE

    # The toss happens before the match goes live
    match = asyncio.run(coordinator.handle_update(
        match_id, {"action": "setToss", "winner": "A", "decision": "SERVE"}
    ))
    assert match.toss == {"winner": "A", "decision": "SERVE"}


def test_action_from_another_sport_is_unsupported(coordinator, make_match):
    match_id = make_match(Sport.BADMINTON)

    for payload in ({"action": "recordBall", "runs": 4}, {"action": "moonwalk"}):
        with pytest.raises(MatchError) as exc:
            asyncio.run(coordinator.handle_update(match_id, payload))
        assert exc.value.kind == UNSUPPORTED_ACTION


def test_rejected_action_writes_and_broadcasts_nothing(coordinator, channel, make_match):
    match_id = make_match(Sport.BADMINTON)
    before = asyncio.run(coordinator.get_match(match_id))
    subscription = channel.subscribe()

    with pytest.raises(MatchError):
        asyncio.run(coordinator.handle_update(match_id, {"action": "updateSetPoints", "team": "A"}))

    after = asyncio.run(coordinator.get_match(match_id))
    assert after.version == before.version
    assert after.state == before.state
    assert subscription.pending() == 0


def test_accepted_action_is_broadcast_with_full_document(coordinator, channel, make_match):
    match_id = make_match(Sport.BADMINTON)
    subscription = channel.subscribe([MATCH_UPDATE])

    match = asyncio.run(coordinator.handle_update(match_id, {"action": "startSet"}))

    event = subscription.get_nowait()
    assert event["event"] == MATCH_UPDATE
    assert event["data"]["id"] == match_id
    assert event["data"]["version"] == match.version
    assert event["data"]["state"]["current_set"]["set_number"] == 1
    assert event["data"]["fouls"] == []


def test_terminal_action_completes_match(coordinator, make_match):
    match_id = make_match(Sport.CHESS, team_a="Physics", team_b="Chemistry")

    match = asyncio.run(coordinator.handle_update(match_id, {"action": "recordResult", "result": "B"}))
    assert match.status == MatchStatus.COMPLETED
    assert match.winner == "Chemistry"

    # Completed matches are frozen
    with pytest.raises(MatchError) as exc:
        asyncio.run(coordinator.handle_update(match_id, {"action": "recordResult", "result": "A"}))
    assert exc.value.kind == MATCH_NOT_LIVE


def test_first_set_of_three_leaves_match_live(coordinator, make_match):
    match_id = make_match(Sport.BADMINTON)

    asyncio.run(coordinator.handle_update(match_id, {"action": "startSet"}))
    for _ in range(21):
        asyncio.run(coordinator.handle_update(match_id, {"action": "updateSetPoints", "team": "A"}))
    match = asyncio.run(coordinator.handle_update(
        match_id, {"action": "endSet", "winning_team": "A", "final_points_a": 21, "final_points_b": 0}
    ))

    assert match.status == MatchStatus.LIVE
    assert match.winner is None
    assert match.state["score_a"] == 1
    assert match.state["score_b"] == 0
    assert match.state["current_set"] is None


def test_concurrent_updates_are_serialized(coordinator, make_match):
    match_id = make_match(Sport.VOLLEYBALL)

    async def scenario():
        await coordinator.handle_update(match_id, {"action": "startSet"})
        start = await coordinator.get_match(match_id)
        await asyncio.gather(*[
            coordinator.handle_update(match_id, {"action": "updateSetPoints", "team": side})
            for side in ["A", "B"] * 10
        ])
        return start, await coordinator.get_match(match_id)

    start, final = asyncio.run(scenario())

    assert final.state["current_set"]["points_a"] == 10
    assert final.state["current_set"]["points_b"] == 10
    assert final.version == start.version + 20
    assert len(coordinator.locks) == 0


def test_get_match_is_idempotent(coordinator, make_match):
    match_id = make_match(Sport.FOOTBALL)
    first = asyncio.run(coordinator.get_match(match_id))
    second = asyncio.run(coordinator.get_match(match_id))
    assert first.model_dump() == second.model_dump()


def test_state_survives_reload(coordinator, session_maker, clock, make_match):
    match_id = make_match(Sport.FOOTBALL)

    async def scenario():
        await coordinator.handle_update(match_id, {"action": "timerAction", "kind": "start"})
        clock.now += 600
        await coordinator.handle_update(match_id, {"action": "recordScore", "team": "B", "player_name": "Winger"})
        return await coordinator.get_match(match_id)

    saved = asyncio.run(scenario())
    reloaded = asyncio.run(MatchStore(session_maker).get_match(match_id))

    assert reloaded.state == saved.state
    assert reloaded.state["score_b"] == 1
    assert reloaded.state["scorers"][0]["time"] == 11


def test_status_transitions(coordinator, make_match):
    match_id = make_match(Sport.BASKETBALL, live=False)

    with pytest.raises(MatchError) as exc:
        asyncio.run(coordinator.set_status(match_id, StatusUpdate(status=MatchStatus.COMPLETED)))
    assert exc.value.kind == INVALID_STATUS_TRANSITION

    live = asyncio.run(coordinator.set_status(match_id, StatusUpdate(status=MatchStatus.LIVE)))
    assert live.status == MatchStatus.LIVE

    with pytest.raises(MatchError) as exc:
        asyncio.run(coordinator.set_status(match_id, StatusUpdate(status=MatchStatus.SCHEDULED)))
    assert exc.value.kind == INVALID_STATUS_TRANSITION

    asyncio.run(coordinator.handle_update(match_id, {"action": "recordScore", "team": "B", "points": 3}))
    done = asyncio.run(coordinator.set_status(match_id, StatusUpdate(status=MatchStatus.COMPLETED)))
    assert done.status == MatchStatus.COMPLETED
    assert done.winner == "Mechanical"


def test_abandoned_match_completes_without_winner(coordinator, make_match):
    match_id = make_match(Sport.KHOKHO, live=False)
    match = asyncio.run(coordinator.set_status(
        match_id, StatusUpdate(status=MatchStatus.COMPLETED, abandoned=True)
    ))
    assert match.status == MatchStatus.COMPLETED
    assert match.winner is None


def test_delete_match_broadcasts_and_removes(coordinator, channel, make_match):
    match_id = make_match(Sport.TABLE_TENNIS)
    subscription = channel.subscribe([MATCH_DELETED])

    asyncio.run(coordinator.delete_match(match_id))

    assert subscription.get_nowait() == {"event": MATCH_DELETED, "data": {"match_id": match_id}}
    with pytest.raises(MatchError) as exc:
        asyncio.run(coordinator.get_match(match_id))
    assert exc.value.kind == MATCH_NOT_FOUND


def test_list_matches_filters(coordinator, make_match):
    make_match(Sport.CRICKET, live=False)
    make_match(Sport.BADMINTON)
    make_match(Sport.BADMINTON, live=False)

    live = asyncio.run(coordinator.list_matches(status=MatchStatus.LIVE))
    badminton = asyncio.run(coordinator.list_matches(sport=Sport.BADMINTON))

    assert [m.sport for m in live] == [Sport.BADMINTON]
    assert len(badminton) == 2
