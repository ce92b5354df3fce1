# sportsfest_backend/services/match_coordinator.py
# Owns every write to a match document once it is scheduled:
# load -> rule engine -> persist -> broadcast, one writer per match at a time.

import asyncio
import time
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional, Union

from sportsfest_backend.core.errors import (
    MatchError,
    MATCH_NOT_FOUND,
    MATCH_NOT_LIVE,
    INVALID_STATUS_TRANSITION,
)
from sportsfest_backend.core.logger import get_logger
from sportsfest_backend.core.sport_config import MatchStatus, Sport
from sportsfest_backend.engines import engine_for
from sportsfest_backend.models.action_schemas import parse_action
from sportsfest_backend.models.foul_model import FoulRead
from sportsfest_backend.models.match_model import Match, MatchCreate, MatchRead, StatusUpdate
from sportsfest_backend.services.broadcast import (
    BroadcastChannel,
    MATCH_CREATED,
    MATCH_DELETED,
    MATCH_UPDATE,
)
from sportsfest_backend.services.foul_ledger import suspended_players
from sportsfest_backend.services.match_store import MatchStore

log = get_logger("services.coordinator")


class MatchLocks:
    """
    One asyncio.Lock per match id. Entries are created on first use and
    removed again as soon as no task holds or waits on them.
    """

    def __init__(self):
        self._locks: Dict[int, asyncio.Lock] = {}
        self._users: Dict[int, int] = {}

    @asynccontextmanager
    async def hold(self, match_id: int):
        lock = self._locks.setdefault(match_id, asyncio.Lock())
        self._users[match_id] = self._users.get(match_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[match_id] -= 1
            if self._users[match_id] == 0:
                del self._users[match_id]
                del self._locks[match_id]

    def __len__(self):
        return len(self._locks)


def side_to_team(match: Match, side: Optional[str]) -> Optional[str]:
    if side == "A":
        return match.team_a
    if side == "B":
        return match.team_b
    return None


def leading_side(state: Dict[str, Any]) -> Optional[str]:
    """Side ahead on the scoreboard (shootout result first), None when level."""
    shootout = state.get("penalty_shootout")
    if shootout and shootout.get("winner"):
        return shootout["winner"]

    score_a, score_b = state.get("score_a"), state.get("score_b")
    if isinstance(score_a, dict):
        score_a, score_b = score_a["runs"], score_b["runs"]
    if score_a > score_b:
        return "A"
    if score_b > score_a:
        return "B"
    return None


class MatchCoordinator:
    """
    Applies admin actions to matches.

    Updates to the same match are serialized by a per-match lock held from
    the initial read until the broadcast is queued; different matches never
    wait on each other.
    """

    def __init__(self, store: MatchStore, channel: BroadcastChannel, clock=time.time):
        self.store = store
        self.channel = channel
        self.locks = MatchLocks()
        self._clock = clock

    def now(self) -> float:
        return self._clock()

    # ==========================================
    # READS
    # ==========================================

    async def load(self, match_id: int) -> Match:
        match = await self.store.get_match(match_id)
        if match is None:
            raise MatchError(MATCH_NOT_FOUND, f"Match {match_id} not found")
        return match

    async def document_for(self, match: Match) -> MatchRead:
        """Full match document: match fields, fouls and derived suspensions."""
        fouls = await self.store.list_fouls(match.id)
        return MatchRead(
            **match.model_dump(),
            toss=(match.state or {}).get("toss"),
            fouls=[FoulRead.model_validate(foul) for foul in fouls],
            suspended_players=suspended_players(fouls),
        )

    async def get_match(self, match_id: int) -> MatchRead:
        return await self.document_for(await self.load(match_id))

    async def list_matches(self, status=None, sport=None) -> List[MatchRead]:
        matches = await self.store.list_matches(status=status, sport=sport)
        return [await self.document_for(match) for match in matches]

    def publish(self, topic: str, payload: Any) -> None:
        self.channel.publish(topic, payload)

    # ==========================================
    # LIFECYCLE
    # ==========================================

    async def create_match(self, data: MatchCreate) -> MatchRead:
        sport = Sport(data.sport)
        engine = engine_for(sport)
        state = engine.initial_state(
            sport,
            total_overs=data.total_overs,
            max_sets=data.max_sets,
            max_periods=data.max_periods,
        )

        match = Match(
            sport=sport,
            team_a=data.team_a,
            team_b=data.team_b,
            scheduled_at=data.scheduled_at,
            venue=data.venue,
            category=data.category,
            state=state,
        )
        match = await self.store.create_match(match)
        document = await self.document_for(match)

        log.info(f"📅 Match {match.id} scheduled: {sport.value} {match.team_a} vs {match.team_b}")
        self.publish(MATCH_CREATED, document.model_dump(mode="json"))
        return document

    async def delete_match(self, match_id: int) -> None:
        async with self.locks.hold(match_id):
            deleted = await self.store.delete_match(match_id)
            if not deleted:
                raise MatchError(MATCH_NOT_FOUND, f"Match {match_id} not found")
            log.info(f"🗑️ Match {match_id} deleted")
            self.publish(MATCH_DELETED, {"match_id": match_id})

    async def set_status(self, match_id: int, update: StatusUpdate) -> MatchRead:
        """
        Move a match along SCHEDULED -> LIVE -> COMPLETED.
        SCHEDULED -> COMPLETED is only allowed for an abandoned match.
        """
        async with self.locks.hold(match_id):
            match = await self.load(match_id)
            current = MatchStatus(match.status)
            target = MatchStatus(update.status)

            if (current, target) == (MatchStatus.SCHEDULED, MatchStatus.LIVE):
                match.status = MatchStatus.LIVE
            elif (current, target) == (MatchStatus.LIVE, MatchStatus.COMPLETED):
                side = update.winner or leading_side(match.state)
                match.status = MatchStatus.COMPLETED
                match.winner = side_to_team(match, side)
            elif (current, target) == (MatchStatus.SCHEDULED, MatchStatus.COMPLETED) and update.abandoned:
                match.status = MatchStatus.COMPLETED
                match.winner = None
            else:
                raise MatchError(
                    INVALID_STATUS_TRANSITION,
                    f"Cannot move match {match_id} from {current.value} to {target.value}",
                )

            saved = await self.store.save_match(match)
            document = await self.document_for(saved)
            log.info(f"🔄 Match {match_id}: {current.value} -> {target.value}")
            self.publish(MATCH_UPDATE, document.model_dump(mode="json"))
            return document

    # ==========================================
    # LIVE UPDATES
    # ==========================================

    async def handle_update(self, match_id: int, action: Union[Dict[str, Any], Any]) -> MatchRead:
        """
        Apply one admin action to a match and broadcast the result.

        Raises MatchError (MATCH_NOT_FOUND, MATCH_NOT_LIVE, UNSUPPORTED_ACTION or
        a rule-specific kind) without writing anything when the action is refused.
        """
        if isinstance(action, dict):
            action = parse_action(action)

        async with self.locks.hold(match_id):
            try:
                match = await self.load(match_id)
                status = MatchStatus(match.status)

                if status == MatchStatus.COMPLETED:
                    raise MatchError(MATCH_NOT_LIVE, f"Match {match_id} is completed; scoring is frozen")
                if action.scoring and status != MatchStatus.LIVE:
                    raise MatchError(MATCH_NOT_LIVE, f"Match {match_id} is {status.value}, not LIVE")

                sport = Sport(match.sport)
                result = engine_for(sport).apply(sport, match.state, action, self.now())
            except MatchError as exc:
                log.warning(f"⛔ Match {match_id} rejected '{action.action}': {exc.kind} ({exc.message})")
                raise

            match.state = result.state
            if result.completed:
                match.status = MatchStatus.COMPLETED
                match.winner = side_to_team(match, result.winner)

            saved = await self.store.save_match(match)
            document = await self.document_for(saved)

            log.info(f"✅ Match {match_id} applied '{action.action}' (v{saved.version})")
            if result.completed:
                log.info(f"🏆 Match {match_id} completed. Winner: {saved.winner or 'none (draw)'}")

            self.publish(MATCH_UPDATE, document.model_dump(mode="json"))
            return document
