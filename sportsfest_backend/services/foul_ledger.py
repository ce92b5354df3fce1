# sportsfest_backend/services/foul_ledger.py
# Disciplinary sub-ledger: fouls and cards recorded against a match.
# Writes share the match coordinator's per-match lock, so a foul and a score
# update on the same match never interleave.

from collections import OrderedDict
from typing import Dict, Iterable, List

from sportsfest_backend.core.errors import (
    MatchError,
    FOUL_NOT_FOUND,
    INVALID_FOUL,
    MATCH_NOT_LIVE,
)
from sportsfest_backend.core.foul_config import (
    PITCH_ZONES,
    RED_CARD,
    REDS_FOR_SUSPENSION,
    YELLOW_CARD,
    YELLOWS_FOR_SUSPENSION,
    foul_types_for,
    is_card,
)
from sportsfest_backend.core.logger import get_logger
from sportsfest_backend.core.sport_config import MatchStatus, Sport
from sportsfest_backend.engines.timed import apply_card
from sportsfest_backend.models.foul_model import Foul, FoulCreate
from sportsfest_backend.models.match_model import MatchRead, SuspendedPlayer
from sportsfest_backend.services.broadcast import MATCH_UPDATE

log = get_logger("services.fouls")


def suspended_players(fouls: Iterable[Foul]) -> List[SuspendedPlayer]:
    """
    Players sitting out the rest of the match: two yellow cards or one red.
    Derived from the foul rows on every read; nothing is stored.
    """
    tally: Dict[tuple, Dict[str, int]] = OrderedDict()
    for foul in fouls:
        if not is_card(foul.foul_type):
            continue
        key = (foul.team, foul.player_name.strip())
        counts = tally.setdefault(key, {"yellow": 0, "red": 0})
        if foul.foul_type == YELLOW_CARD:
            counts["yellow"] += 1
        elif foul.foul_type == RED_CARD:
            counts["red"] += 1

    return [
        SuspendedPlayer(player_name=name, team=team, yellow=counts["yellow"], red=counts["red"])
        for (team, name), counts in tally.items()
        if counts["yellow"] >= YELLOWS_FOR_SUSPENSION or counts["red"] >= REDS_FOR_SUSPENSION
    ]


def validate_foul(sport: Sport, data: FoulCreate) -> None:
    if not data.player_name or not data.player_name.strip():
        raise MatchError(INVALID_FOUL, "player_name is required")

    allowed = foul_types_for(sport)
    if data.foul_type not in allowed:
        raise MatchError(
            INVALID_FOUL,
            f"'{data.foul_type}' is not a {sport.value} foul type; expected one of {sorted(allowed)}",
        )

    consequences = allowed[data.foul_type]
    if data.consequence is not None and data.consequence not in consequences:
        raise MatchError(
            INVALID_FOUL,
            f"'{data.consequence}' is not a consequence of {data.foul_type}",
        )

    if data.pitch_location is not None and data.pitch_location not in PITCH_ZONES:
        raise MatchError(INVALID_FOUL, f"Unknown pitch location '{data.pitch_location}'")


def _move_card_counter(state, team: str, foul_type: str, delta: int):
    # Only timed-period sports keep per-team card counters in the match state
    if not is_card(foul_type) or f"cards_{team.lower()}" not in state:
        return state
    return apply_card(state, team, foul_type, delta)


class FoulLedger:
    """Adds and removes fouls through the coordinator's lock and broadcast path."""

    def __init__(self, coordinator):
        self.coordinator = coordinator
        self.store = coordinator.store

    async def list_fouls(self, match_id: int) -> List[Foul]:
        await self.coordinator.load(match_id)
        return await self.store.list_fouls(match_id)

    async def suspensions(self, match_id: int) -> List[SuspendedPlayer]:
        return suspended_players(await self.list_fouls(match_id))

    async def add_foul(self, match_id: int, data: FoulCreate) -> MatchRead:
        async with self.coordinator.locks.hold(match_id):
            match = await self.coordinator.load(match_id)
            sport = Sport(match.sport)

            if MatchStatus(match.status) != MatchStatus.LIVE:
                raise MatchError(MATCH_NOT_LIVE, f"Fouls can only be recorded while match {match_id} is LIVE")
            validate_foul(sport, data)

            foul = Foul(
                match_id=match_id,
                team=data.team,
                foul_type=data.foul_type,
                player_name=data.player_name.strip(),
                jersey_number=data.jersey_number,
                game_time=data.game_time,
                consequence=data.consequence,
                pitch_location=data.pitch_location,
                reason=data.reason,
            )
            match.state = _move_card_counter(match.state, data.team, data.foul_type, +1)

            saved = await self.store.save_match(match, add_fouls=[foul])
            document = await self.coordinator.document_for(saved)

            log.info(f"🟨 Match {match_id}: {data.foul_type} for {foul.player_name} (team {data.team})")
            for player in document.suspended_players:
                if player.player_name == foul.player_name and player.team == foul.team:
                    log.info(f"🚫 {player.player_name} (team {player.team}) is suspended")

            self.coordinator.publish(MATCH_UPDATE, document.model_dump(mode="json"))
            return document

    async def remove_foul(self, match_id: int, foul_id: int) -> MatchRead:
        """Administrative correction; allowed on LIVE and COMPLETED matches."""
        async with self.coordinator.locks.hold(match_id):
            match = await self.coordinator.load(match_id)
            if MatchStatus(match.status) == MatchStatus.SCHEDULED:
                raise MatchError(MATCH_NOT_LIVE, f"Match {match_id} has not started")

            foul = await self.store.get_foul(match_id, foul_id)
            if foul is None:
                raise MatchError(FOUL_NOT_FOUND, f"Foul {foul_id} not found on match {match_id}")

            match.state = _move_card_counter(match.state, foul.team, foul.foul_type, -1)
            saved = await self.store.save_match(match, remove_fouls=[foul])
            document = await self.coordinator.document_for(saved)

            log.info(f"↩️ Match {match_id}: removed foul {foul_id} ({foul.foul_type}, {foul.player_name})")
            self.coordinator.publish(MATCH_UPDATE, document.model_dump(mode="json"))
            return document
