# sportsfest_backend/engines/__init__.py
# Rule engine lookup table, keyed by sport.

from sportsfest_backend.core.errors import RuleViolation, UNSUPPORTED_ACTION
from sportsfest_backend.core.sport_config import Sport
from sportsfest_backend.engines import chess, cricket, set_based, timed
from sportsfest_backend.engines.base import EngineResult

ENGINES = {
    Sport.CRICKET: cricket,
    Sport.BADMINTON: set_based,
    Sport.TABLE_TENNIS: set_based,
    Sport.VOLLEYBALL: set_based,
    Sport.FOOTBALL: timed,
    Sport.BASKETBALL: timed,
    Sport.KHOKHO: timed,
    Sport.KABADDI: timed,
    Sport.CHESS: chess,
}


def engine_for(sport):
    try:
        return ENGINES[Sport(sport)]
    except (KeyError, ValueError):
        raise RuleViolation(UNSUPPORTED_ACTION, f"No rule engine for sport {sport!r}")
