# sportsfest_backend/core/sport_config.py
# Sport catalogue: scheduling defaults, win thresholds and toss options.

from enum import Enum
from typing import Dict, List, Optional, Set


class Sport(str, Enum):
    CRICKET = "CRICKET"
    FOOTBALL = "FOOTBALL"
    BASKETBALL = "BASKETBALL"
    BADMINTON = "BADMINTON"
    TABLE_TENNIS = "TABLE_TENNIS"
    VOLLEYBALL = "VOLLEYBALL"
    KHOKHO = "KHOKHO"
    KABADDI = "KABADDI"
    CHESS = "CHESS"


class MatchStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    LIVE = "LIVE"
    COMPLETED = "COMPLETED"


class MatchCategory(str, Enum):
    REGULAR = "REGULAR"
    SEMIFINAL = "SEMIFINAL"
    FINAL = "FINAL"


# ============================
# 🏏 Cricket
# ============================
DEFAULT_TOTAL_OVERS = 20
BALLS_PER_OVER = 6
MAX_WICKETS = 10
SQUAD_MIN_PLAYERS = 11
SQUAD_MAX_PLAYERS = 15
UNDO_DEPTH = 12  # Deliveries that can be taken back with undoBall

CRICKET_ROLES = ("BATSMAN", "BOWLER", "ALL_ROUNDER", "WICKET_KEEPER")

# ============================
# 🏸 Set-based sports
# ============================
DEFAULT_MAX_SETS = 3
ALLOWED_MAX_SETS = (3, 5)

# points: points needed to take a set (win by 2 always applies)
# cap: absolute score that wins a set outright (badminton 30-29), None = no cap
# deciding_points: points in the final set when it differs (volleyball plays to 15)
SET_RULES: Dict[Sport, Dict[str, Optional[int]]] = {
    Sport.BADMINTON: {"points": 21, "cap": 30, "deciding_points": None},
    Sport.TABLE_TENNIS: {"points": 11, "cap": None, "deciding_points": None},
    Sport.VOLLEYBALL: {"points": 25, "cap": None, "deciding_points": 15},
}

# ============================
# ⏱️ Timed-period sports
# ============================
DEFAULT_MAX_PERIODS: Dict[Sport, int] = {
    Sport.FOOTBALL: 2,
    Sport.BASKETBALL: 4,
    Sport.KHOKHO: 2,
    Sport.KABADDI: 2,
}

PERIOD_LABEL: Dict[Sport, str] = {
    Sport.FOOTBALL: "Half",
    Sport.BASKETBALL: "Quarter",
    Sport.KHOKHO: "Innings",
    Sport.KABADDI: "Half",
}

# Point values a single scoring event may carry (negatives are admin corrections)
SCORE_POINTS: Dict[Sport, Set[int]] = {
    Sport.FOOTBALL: {1},
    Sport.BASKETBALL: {1, 2, 3},
    Sport.KABADDI: {1, 2, 3, 4, 5, 6, 7},
    Sport.KHOKHO: {1, 2, 3},
}

SCORE_TYPE_LABEL: Dict[Sport, str] = {
    Sport.FOOTBALL: "GOAL",
    Sport.BASKETBALL: "BASKET",
    Sport.KABADDI: "RAID",
    Sport.KHOKHO: "TAG",
}

# Sports that settle knockout draws with a penalty shootout
SHOOTOUT_SPORTS = {Sport.FOOTBALL}
SHOOTOUT_REGULATION_ROUNDS = 5

# ============================
# 🪙 Toss decisions
# ============================
TOSS_DECISIONS: Dict[Sport, List[str]] = {
    Sport.CRICKET: ["BAT", "BOWL"],
    Sport.FOOTBALL: ["KICK_OFF", "CHOOSE_SIDE"],
    Sport.BASKETBALL: ["FIRST_POSSESSION", "CHOOSE_SIDE"],
    Sport.VOLLEYBALL: ["SERVE", "CHOOSE_SIDE"],
    Sport.BADMINTON: ["SERVE", "CHOOSE_SIDE"],
    Sport.TABLE_TENNIS: ["SERVE", "CHOOSE_SIDE"],
}
DEFAULT_TOSS_DECISIONS = ["FIRST", "CHOOSE_SIDE"]


def toss_decisions_for(sport: Sport) -> List[str]:
    return TOSS_DECISIONS.get(sport, DEFAULT_TOSS_DECISIONS)


def sets_to_win(max_sets: int) -> int:
    """Best-of-N: a side needs ceil(N / 2) sets."""
    return (max_sets + 1) // 2
