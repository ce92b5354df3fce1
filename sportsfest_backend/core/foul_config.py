# sportsfest_backend/core/foul_config.py
# Foul types recorded per sport, with the consequences an official may attach.

from typing import Dict, List, Tuple

from sportsfest_backend.core.sport_config import Sport

YELLOW_CARD = "YELLOW_CARD"
RED_CARD = "RED_CARD"
CARD_TYPES = (YELLOW_CARD, RED_CARD)

# 🟨🟥 Suspension thresholds (per match, derived on read)
YELLOWS_FOR_SUSPENSION = 2
REDS_FOR_SUSPENSION = 1

_CARDS: Dict[str, List[str]] = {
    YELLOW_CARD: ["Warning", "Team Foul"],
    RED_CARD: ["Dismissal", "Suspension"],
}

# foul_type -> allowed consequences (empty list = free of consequence)
FOUL_TYPES: Dict[Sport, Dict[str, List[str]]] = {
    Sport.FOOTBALL: {
        **_CARDS,
        "FOUL": [],
        "PENALTY": ["Penalty Kick Awarded"],
        "FREE_KICK": ["Direct Free Kick", "Indirect Free Kick"],
        "OFFSIDE": ["Free Kick to Opposition"],
        "HANDBALL": ["Free Kick", "Penalty"],
    },
    Sport.BASKETBALL: {
        "PERSONAL_FOUL": ["Free Throws", "Team Foul"],
        "TECHNICAL_FOUL": ["Free Throw + Possession"],
        "FLAGRANT_FOUL": ["Ejection", "2 Free Throws + Possession"],
        "OFFENSIVE_FOUL": [],
    },
    Sport.KABADDI: {
        **_CARDS,
        "BONUS": [],
        "SUPER_TACKLE": [],
        "ALL_OUT": [],
    },
    Sport.KHOKHO: {
        **_CARDS,
        "FOUL": [],
    },
    Sport.CRICKET: {
        "NO_BALL": [],
        "WIDE": [],
        "OVERTHROW": [],
    },
}

# Set-based sports and chess only track misconduct cards
DEFAULT_FOUL_TYPES: Dict[str, List[str]] = dict(_CARDS)

# Tactical zones offered by the pitch picker
PITCH_ZONES: Tuple[str, ...] = (
    "Defensive Left",
    "Defensive Center",
    "Defensive Right",
    "Midfield Left",
    "Midfield Center",
    "Midfield Right",
    "Attacking Left",
    "Attacking Center",
    "Attacking Right",
    "Penalty Box",
)


def foul_types_for(sport: Sport) -> Dict[str, List[str]]:
    return FOUL_TYPES.get(sport, DEFAULT_FOUL_TYPES)


def is_card(foul_type: str) -> bool:
    return foul_type in CARD_TYPES
