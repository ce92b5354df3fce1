# sportsfest_backend/engines/cricket.py
# Ball-by-ball cricket scoring: two limited-overs innings, strike rotation,
# extras, dismissals, bowler figures and the chase.

from typing import Any, Dict, Optional

from sportsfest_backend.core.errors import (
    RuleViolation,
    INVALID_ACTION,
    NO_BATSMAN,
    OVER_IN_PROGRESS,
    INNINGS_COMPLETE,
    PLAYER_NOT_IN_SQUAD,
)
from sportsfest_backend.core.sport_config import (
    DEFAULT_TOTAL_OVERS,
    BALLS_PER_OVER,
    MAX_WICKETS,
    SQUAD_MIN_PLAYERS,
    SQUAD_MAX_PLAYERS,
    UNDO_DEPTH,
    CRICKET_ROLES,
)
from sportsfest_backend.engines.base import (
    EngineResult,
    dispatch,
    other_side,
    record_toss,
    score_key,
    working_copy,
)
from sportsfest_backend.models.action_schemas import (
    ChangeBowlerAction,
    EndInningsAction,
    ExtraType,
    RecordBallAction,
    SelectBatsmanAction,
    SetSquadAction,
    SetTossAction,
    SwitchStrikeAction,
    UndoBallAction,
    WicketType,
)

# Dismissals that do not credit the bowler
NON_BOWLER_WICKETS = {WicketType.RUN_OUT, WicketType.RETIRED}

# Dismissals possible off an illegal delivery
WIDE_WICKETS = {WicketType.RUN_OUT, WicketType.STUMPED}
NO_BALL_WICKETS = {WicketType.RUN_OUT}


# ============================
# 📋 State builders
# ============================

def _empty_score() -> Dict[str, Any]:
    return {
        "runs": 0,
        "wickets": 0,
        "overs": 0,
        "balls": 0,
        "extras": {"wides": 0, "no_balls": 0, "byes": 0, "leg_byes": 0, "penalty": 0},
    }


def _new_batsman(player_id: str, player_name: str, entry: Optional[dict] = None) -> Dict[str, Any]:
    # A retired batsman walking back in keeps the stats of the earlier stint
    entry = entry or {}
    return {
        "player_id": player_id,
        "player_name": player_name,
        "runs": entry.get("runs", 0),
        "balls_faced": entry.get("balls_faced", 0),
        "fours": entry.get("fours", 0),
        "sixes": entry.get("sixes", 0),
    }


def _new_bowler(player_id: str, player_name: str) -> Dict[str, Any]:
    return {
        "player_id": player_id,
        "player_name": player_name,
        "overs": 0,
        "balls": 0,
        "runs_conceded": 0,
        "wickets": 0,
        "maidens": 0,
    }


def initial_state(sport, total_overs: Optional[int] = None, **_options) -> Dict[str, Any]:
    overs = DEFAULT_TOTAL_OVERS if total_overs is None else total_overs
    if overs < 1:
        raise RuleViolation(INVALID_ACTION, "total_overs must be at least 1")

    return {
        "toss": None,
        "total_overs": overs,
        "current_innings": 1,
        "batting_team": "A",
        "score_a": _empty_score(),
        "score_b": _empty_score(),
        "target": None,
        "current_over": [],
        "over_history": [],
        "current_batsmen": {"striker": None, "non_striker": None},
        "current_bowler": None,
        "bowling_figures": {},
        "over_runs": 0,
        "last_over_bowler": None,
        "undo_stack": [],
        "squad_a": [],
        "squad_b": [],
        "fall_of_wickets": [],
        "innings": [],
        "innings_complete": False,
    }


def has_started(state: Dict[str, Any]) -> bool:
    for side in ("A", "B"):
        score = state[score_key(side)]
        if score["runs"] or score["overs"] or score["balls"] or score["wickets"]:
            return True
    return bool(state["current_over"] or state["over_history"])


# ============================
# 🔎 Squad helpers
# ============================

def _squad(state, side: str) -> list:
    return state[f"squad_{side.lower()}"]


def _squad_entry(state, side: str, player_id: str) -> Optional[dict]:
    for entry in _squad(state, side):
        if entry["player_id"] == player_id:
            return entry
    return None


def _mirror_batsman(state, side: str, batsman: dict) -> None:
    entry = _squad_entry(state, side, batsman["player_id"])
    if entry is not None:
        for field in ("runs", "balls_faced", "fours", "sixes"):
            entry[field] = batsman[field]


def _figures(state, side: str) -> Dict[str, dict]:
    """Bowling figures of the current innings for one side, keyed by player id."""
    innings = state["bowling_figures"].setdefault(str(state["current_innings"]), {})
    return innings.setdefault(side, {})


def _mirror_bowler(state, side: str, bowler: dict) -> None:
    _figures(state, side)[bowler["player_id"]] = dict(bowler)
    entry = _squad_entry(state, side, bowler["player_id"])
    if entry is not None:
        entry["overs_bowled"] = bowler["overs"]
        entry["balls_bowled"] = bowler["balls"]
        entry["runs_conceded"] = bowler["runs_conceded"]
        entry["wickets_taken"] = bowler["wickets"]
        entry["maidens"] = bowler["maidens"]


def _dismissed_ids(state) -> set:
    innings = state["current_innings"]
    return {fow["player_id"] for fow in state["fall_of_wickets"] if fow["innings"] == innings}


# ============================
# 🏁 Result helpers
# ============================

def _chase_result(state) -> EngineResult:
    """Decide the match once the second innings can no longer change."""
    batting = state["batting_team"]
    runs = state[score_key(batting)]["runs"]
    target = state["target"]

    if runs >= target:
        return EngineResult(state, completed=True, winner=batting)
    if runs == target - 1:
        return EngineResult(state, completed=True, winner=None)  # Tie
    return EngineResult(state, completed=True, winner=other_side(batting))


def _check_innings_end(state) -> EngineResult:
    batting = state["batting_team"]
    score = state[score_key(batting)]

    if state["current_innings"] == 2 and score["runs"] >= state["target"]:
        state["innings_complete"] = True
        return _chase_result(state)

    if score["wickets"] >= MAX_WICKETS or score["overs"] >= state["total_overs"]:
        state["innings_complete"] = True
        if state["current_innings"] == 2:
            return _chase_result(state)

    return EngineResult(state)


# ============================
# 🏏 Actions
# ============================

def _record_ball(state, action: RecordBallAction) -> EngineResult:
    if state["innings_complete"]:
        raise RuleViolation(INNINGS_COMPLETE, "Innings is complete; end the innings before bowling again")

    batsmen = state["current_batsmen"]
    if batsmen["striker"] is None or batsmen["non_striker"] is None:
        raise RuleViolation(NO_BATSMAN, "Select both batsmen before recording a ball")

    extra = action.extra_type
    wicket = action.wicket_type
    runs = action.runs

    if extra == ExtraType.PENALTY and wicket is not None:
        raise RuleViolation(INVALID_ACTION, "Penalty runs cannot carry a wicket")
    if extra == ExtraType.WIDE and wicket is not None and wicket not in WIDE_WICKETS:
        raise RuleViolation(INVALID_ACTION, f"{wicket.value} is not possible off a wide")
    if extra == ExtraType.NO_BALL and wicket is not None and wicket not in NO_BALL_WICKETS:
        raise RuleViolation(INVALID_ACTION, f"{wicket.value} is not possible off a no-ball")

    _push_undo(state)

    batting = state["batting_team"]
    bowling = other_side(batting)
    score = state[score_key(batting)]
    extras = score["extras"]
    striker = batsmen["striker"]
    bowler = state["current_bowler"]

    # Penalty runs are awarded, not bowled
    if extra == ExtraType.PENALTY:
        score["runs"] += runs
        extras["penalty"] += runs
        state["current_over"].append(f"{runs}P")
        return _check_innings_end(state)

    legal = extra not in (ExtraType.WIDE, ExtraType.NO_BALL)
    conceded = 0

    if extra == ExtraType.WIDE:
        total = 1 + runs
        extras["wides"] += total
        conceded = total
        label = "Wd" if runs == 0 else f"Wd+{runs}"
    elif extra == ExtraType.NO_BALL:
        total = 1 + runs
        extras["no_balls"] += 1
        striker["runs"] += runs
        conceded = total
        label = "Nb" if runs == 0 else f"Nb+{runs}"
    elif extra == ExtraType.BYE:
        total = runs
        extras["byes"] += runs
        label = f"{runs}B"
    elif extra == ExtraType.LEG_BYE:
        total = runs
        extras["leg_byes"] += runs
        label = f"{runs}Lb"
    else:
        total = runs
        striker["runs"] += runs
        conceded = runs
        label = str(runs)

    if extra in (None, ExtraType.NO_BALL):
        if runs == 4:
            striker["fours"] += 1
        elif runs == 6:
            striker["sixes"] += 1

    score["runs"] += total
    if legal:
        striker["balls_faced"] += 1

    if bowler is not None:
        bowler["runs_conceded"] += conceded
    state["over_runs"] += conceded

    if wicket is not None:
        label = "W"
        _dismiss(state, action, batting, bowler, legal)

    # Batsmen cross on odd runs; an emptied crease slot crosses with them
    if runs % 2 == 1:
        batsmen["striker"], batsmen["non_striker"] = batsmen["non_striker"], batsmen["striker"]

    for batsman in (batsmen["striker"], batsmen["non_striker"]):
        if batsman is not None:
            _mirror_batsman(state, batting, batsman)

    state["current_over"].append(label)

    if legal:
        score["balls"] += 1
        if bowler is not None:
            bowler["balls"] += 1
        if score["balls"] == BALLS_PER_OVER:
            _close_over(state, score, bowler)

    if bowler is not None:
        _mirror_bowler(state, bowling, bowler)

    return _check_innings_end(state)


def _dismiss(state, action: RecordBallAction, batting: str, bowler: Optional[dict], legal: bool) -> None:
    batsmen = state["current_batsmen"]
    position = action.dismissed_batsman
    outgoing = batsmen[position]
    wicket = action.wicket_type
    score = state[score_key(batting)]

    dismissal = {
        "type": wicket.value,
        "out_by": action.out_by,
        "bowler": bowler["player_name"] if bowler and wicket not in NON_BOWLER_WICKETS else None,
    }

    entry = _squad_entry(state, batting, outgoing["player_id"])
    batsmen[position] = None

    if wicket == WicketType.RETIRED:
        # Retired hurt: leaves the crease, may return, no wicket falls
        if entry is not None:
            entry["dismissal"] = dismissal
        _mirror_batsman(state, batting, outgoing)
        return

    score["wickets"] += 1
    if entry is not None:
        entry["is_out"] = True
        entry["dismissal"] = dismissal
    _mirror_batsman(state, batting, outgoing)

    state["fall_of_wickets"].append({
        "innings": state["current_innings"],
        "wicket": score["wickets"],
        "runs": score["runs"],
        "over": f"{score['overs']}.{score['balls'] + (1 if legal else 0)}",
        "player_id": outgoing["player_id"],
        "player_name": outgoing["player_name"],
        "dismissal": dismissal,
    })

    if bowler is not None and wicket not in NON_BOWLER_WICKETS:
        bowler["wickets"] += 1


def _close_over(state, score: dict, bowler: Optional[dict]) -> None:
    """Sixth legal ball: the over is complete and the batsmen change ends."""
    score["overs"] += 1
    score["balls"] = 0
    if bowler is not None:
        bowler["overs"] += 1
        bowler["balls"] = 0
        # Byes, leg-byes and penalty runs do not spoil a maiden
        if state["over_runs"] == 0:
            bowler["maidens"] += 1
        state["last_over_bowler"] = bowler["player_id"]
    state["over_runs"] = 0

    batsmen = state["current_batsmen"]
    batsmen["striker"], batsmen["non_striker"] = batsmen["non_striker"], batsmen["striker"]

    state["over_history"].append({
        "innings": state["current_innings"],
        "over": score["overs"],
        "bowler": bowler["player_name"] if bowler else None,
        "balls": state["current_over"],
    })
    state["current_over"] = []


def _select_batsman(state, action: SelectBatsmanAction) -> EngineResult:
    if state["innings_complete"]:
        raise RuleViolation(INNINGS_COMPLETE, "Innings is complete")

    batting = state["batting_team"]
    batsmen = state["current_batsmen"]
    squad = _squad(state, batting)
    player_name = action.player_name
    entry = None

    if squad:
        entry = _squad_entry(state, batting, action.player_id)
        if entry is None:
            raise RuleViolation(PLAYER_NOT_IN_SQUAD, f"{action.player_name} is not in team {batting}'s squad")
        if entry.get("is_out"):
            raise RuleViolation(INVALID_ACTION, f"{entry['player_name']} is already out")
        player_name = entry["player_name"]

    if action.player_id in _dismissed_ids(state):
        raise RuleViolation(INVALID_ACTION, f"{player_name} is already out")

    for position, batsman in batsmen.items():
        if batsman is not None and batsman["player_id"] == action.player_id:
            raise RuleViolation(INVALID_ACTION, f"{player_name} is already batting ({position})")

    batsmen[action.position] = _new_batsman(action.player_id, player_name, entry)
    return EngineResult(state)


def _switch_strike(state, action: SwitchStrikeAction) -> EngineResult:
    batsmen = state["current_batsmen"]
    batsmen["striker"], batsmen["non_striker"] = batsmen["non_striker"], batsmen["striker"]
    return EngineResult(state)


def _change_bowler(state, action: ChangeBowlerAction) -> EngineResult:
    batting = state["batting_team"]
    bowling = other_side(batting)

    if state[score_key(batting)]["balls"] != 0:
        raise RuleViolation(OVER_IN_PROGRESS, "Bowler can only be changed between overs")

    player_name = action.player_name or action.player_id
    if _squad(state, bowling):
        entry = _squad_entry(state, bowling, action.player_id)
        if entry is None:
            raise RuleViolation(PLAYER_NOT_IN_SQUAD, f"{player_name} is not in team {bowling}'s squad")
        player_name = entry["player_name"]

    if action.player_id == state["last_over_bowler"]:
        raise RuleViolation(INVALID_ACTION, f"{player_name} bowled the previous over")

    previous = state["current_bowler"]
    if previous is not None:
        _mirror_bowler(state, bowling, previous)

    figures = _figures(state, bowling).get(action.player_id)
    state["current_bowler"] = dict(figures) if figures else _new_bowler(action.player_id, player_name)
    return EngineResult(state)


def _end_innings(state, action: EndInningsAction) -> EngineResult:
    batting = state["batting_team"]
    score = state[score_key(batting)]

    summary = {
        "innings": state["current_innings"],
        "batting_team": batting,
        "runs": score["runs"],
        "wickets": score["wickets"],
        "overs": score["overs"],
        "balls": score["balls"],
    }
    if not any(locked["innings"] == summary["innings"] for locked in state["innings"]):
        state["innings"].append(summary)

    if state["current_innings"] == 2:
        # Second innings already running: closing it settles the match
        state["innings_complete"] = True
        return _chase_result(state)

    if state["current_over"]:
        state["over_history"].append({
            "innings": 1,
            "over": score["overs"] + 1,
            "bowler": state["current_bowler"]["player_name"] if state["current_bowler"] else None,
            "balls": state["current_over"],
        })

    if state["current_bowler"] is not None:
        _mirror_bowler(state, other_side(batting), state["current_bowler"])

    state["target"] = score["runs"] + 1
    state["batting_team"] = other_side(batting)
    state["current_innings"] = 2
    state["current_over"] = []
    state["current_batsmen"] = {"striker": None, "non_striker": None}
    state["current_bowler"] = None
    state["over_runs"] = 0
    state["last_over_bowler"] = None
    state["undo_stack"] = []
    state["innings_complete"] = False
    return EngineResult(state)


def _set_toss(state, action: SetTossAction, sport) -> EngineResult:
    record_toss(state, action, sport, has_started(state))
    # Toss winner chooses: BAT -> they bat first, BOWL -> the other side bats
    if action.decision == "BAT":
        state["batting_team"] = action.winner
    else:
        state["batting_team"] = other_side(action.winner)
    return EngineResult(state)


def _set_squad(state, action: SetSquadAction) -> EngineResult:
    players = action.players
    if not SQUAD_MIN_PLAYERS <= len(players) <= SQUAD_MAX_PLAYERS:
        raise RuleViolation(
            INVALID_ACTION,
            f"A squad needs {SQUAD_MIN_PLAYERS}-{SQUAD_MAX_PLAYERS} players (got {len(players)})",
        )

    names = [p.player_name.strip() for p in players]
    if len(set(n.lower() for n in names)) != len(names):
        raise RuleViolation(INVALID_ACTION, "Player names in a squad must be unique")

    for player in players:
        if player.role not in CRICKET_ROLES:
            raise RuleViolation(INVALID_ACTION, f"Unknown role '{player.role}'")

    existing = _squad(state, action.team)
    if any(e["balls_faced"] or e["balls_bowled"] or e["overs_bowled"] or e["is_out"] for e in existing):
        raise RuleViolation(INVALID_ACTION, f"Team {action.team}'s squad is locked once its players have stats")

    squad = []
    for index, player in enumerate(players):
        squad.append({
            "player_id": player.player_id or f"{action.team}-{index + 1}",
            "player_name": player.player_name.strip(),
            "role": player.role,
            "batting_order": player.batting_order or index + 1,
            "jersey_number": player.jersey_number,
            "runs": 0,
            "balls_faced": 0,
            "fours": 0,
            "sixes": 0,
            "is_out": False,
            "dismissal": None,
            "overs_bowled": 0,
            "balls_bowled": 0,
            "runs_conceded": 0,
            "wickets_taken": 0,
            "maidens": 0,
        })

    if len(set(entry["player_id"] for entry in squad)) != len(squad):
        raise RuleViolation(INVALID_ACTION, "Player ids in a squad must be unique")

    squad.sort(key=lambda entry: entry["batting_order"])
    state[f"squad_{action.team.lower()}"] = squad
    # Snapshots taken before the new squad would bring the old one back
    state["undo_stack"] = []
    return EngineResult(state)


def _push_undo(state) -> None:
    """Keep a copy of the state as it was before this delivery."""
    snapshot = working_copy({key: value for key, value in state.items() if key != "undo_stack"})
    stack = state["undo_stack"]
    stack.append(snapshot)
    del stack[:-UNDO_DEPTH]


def _undo_ball(state, action: UndoBallAction) -> EngineResult:
    """
    Take back the last recorded delivery of the innings.

    Everything the ball touched is restored: team score and extras, the
    batsmen and strike, bowler figures, squad stats, the over and any
    wicket that fell. Anything recorded after it (a new batsman walking in,
    a bowling change) is taken back with it.
    """
    stack = state["undo_stack"]
    if not stack:
        raise RuleViolation(INVALID_ACTION, "No delivery left to undo in this innings")

    restored = stack.pop()
    restored["undo_stack"] = stack
    return EngineResult(restored)


_HANDLERS = {
    RecordBallAction: _record_ball,
    UndoBallAction: _undo_ball,
    SelectBatsmanAction: _select_batsman,
    SwitchStrikeAction: _switch_strike,
    ChangeBowlerAction: _change_bowler,
    EndInningsAction: _end_innings,
    SetSquadAction: _set_squad,
}


def apply(sport, state: Dict[str, Any], action, now: float) -> EngineResult:
    """Apply one cricket action to a copy of the match state."""
    next_state = working_copy(state)
    if isinstance(action, SetTossAction):
        return _set_toss(next_state, action, sport)
    handler = dispatch(_HANDLERS, action, sport, "cricket")
    return handler(next_state, action)
