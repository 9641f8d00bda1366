"""
Public scoring operations.

Every function takes a Match and returns a new Match (or a derived value);
inputs are never modified in place. Mutating operations record the prior
state on the match's undo stack.
"""

import logging
import threading
import time
import uuid
from typing import Optional

from scorebook.engine.ball_engine import resolve_ball
from scorebook.engine.controller import compute_result, start_second_innings
from scorebook.engine.errors import InvalidSelectionError, InvalidTransitionError
from scorebook.engine.history import push_snapshot, undo
from scorebook.models import (
    ExtraType,
    Innings,
    Match,
    Player,
    Team,
    TeamSetup,
)

__all__ = [
    "assign_bowler",
    "build_scorecard",
    "compute_result",
    "create_match",
    "from_snapshot",
    "rename_player",
    "resolve_ball",
    "select_new_batter",
    "start_second_innings",
    "to_snapshot",
    "undo",
]

logger = logging.getLogger(__name__)

MIN_PLAYERS = 2

_clock_lock = threading.Lock()
_last_timestamp = 0


def _next_timestamp() -> int:
    """Milliseconds since epoch, strictly increasing within the process."""
    global _last_timestamp
    with _clock_lock:
        now = time.time_ns() // 1_000_000
        _last_timestamp = max(now, _last_timestamp + 1)
        return _last_timestamp


def _new_id() -> str:
    return str(uuid.uuid4())


def _build_team(setup: TeamSetup) -> Team:
    names = [n.strip() for n in setup.players]
    if len(names) < MIN_PLAYERS or any(not n for n in names):
        raise ValueError(
            f"Team '{setup.name}' needs at least {MIN_PLAYERS} named players, got {setup.players!r}"
        )
    return Team(
        id=_new_id(),
        name=setup.name.strip(),
        players=[Player(id=_new_id(), name=n) for n in names],
    )


def _require_ongoing(match: Match, action: str) -> None:
    if match.is_completed:
        raise InvalidTransitionError(f"Cannot {action}: match {match.id} is completed")


# ------------------------------------------------------------------ #
#  Setup
# ------------------------------------------------------------------ #


def create_match(
    team_a: TeamSetup,
    team_b: TeamSetup,
    overs_per_innings: int,
    *,
    match_id: Optional[str] = None,
    owner_id: Optional[str] = None,
    venue: Optional[str] = None,
    series: Optional[str] = None,
    umpires: Optional[list[str]] = None,
) -> Match:
    """
    Build a fresh match with zeroed innings. Team A bats first, opening with
    its first two players; no bowler is selected yet.
    """
    if overs_per_innings < 1:
        raise ValueError(f"overs_per_innings must be at least 1, got {overs_per_innings}")

    a = _build_team(team_a)
    b = _build_team(team_b)
    match = Match(
        id=match_id or _new_id(),
        owner_id=owner_id,
        team_a=a,
        team_b=b,
        total_overs=overs_per_innings,
        venue=venue or None,
        series=series or None,
        umpires=[u.strip() for u in (umpires or []) if u.strip()],
        innings1=Innings(batting_team_id=a.id),
        innings2=Innings(batting_team_id=b.id),
        current_striker_id=a.players[0].id,
        current_non_striker_id=a.players[1].id,
        current_bowler_id=None,
        timestamp=_next_timestamp(),
    )
    logger.info(f"Created match {match.id}: {a.name} vs {b.name}, {overs_per_innings} overs")
    return match


# ------------------------------------------------------------------ #
#  Selections
# ------------------------------------------------------------------ #


def assign_bowler(match: Match, bowler_id: str) -> Match:
    """Set the current bowler; must belong to the fielding side."""
    _require_ongoing(match, "assign a bowler")
    if match.bowling_team.find_player(bowler_id) is None:
        raise InvalidSelectionError(f"Player {bowler_id} is not in the bowling team")

    new = match.model_copy(deep=True)
    new.current_bowler_id = bowler_id
    push_snapshot(new, match)
    return new


def select_new_batter(match: Match, player_id: str) -> Match:
    """
    Send in a new batter after a dismissal. The incoming player takes the
    place of whichever current batter is out, keeping that end.
    """
    _require_ongoing(match, "select a batter")
    team = match.batting_team
    incoming = team.find_player(player_id)
    if incoming is None:
        raise InvalidSelectionError(f"Player {player_id} is not in the batting team")
    if incoming.is_out:
        raise InvalidSelectionError(f"{incoming.name} is already out")
    if player_id in (match.current_striker_id, match.current_non_striker_id):
        raise InvalidSelectionError(f"{incoming.name} is already batting")

    new = match.model_copy(deep=True)
    striker = team.find_player(match.current_striker_id)
    non_striker = team.find_player(match.current_non_striker_id)
    if striker is None or striker.is_out:
        new.current_striker_id = player_id
    elif non_striker is None or non_striker.is_out:
        new.current_non_striker_id = player_id
    else:
        raise InvalidSelectionError("Neither current batter is out")

    push_snapshot(new, match)
    return new


def rename_player(match: Match, player_id: str, name: str) -> Match:
    name = name.strip()
    if not name:
        raise ValueError("Player name cannot be empty")

    new = match.model_copy(deep=True)
    player = new.team_a.find_player(player_id) or new.team_b.find_player(player_id)
    if player is None:
        raise InvalidSelectionError(f"Player {player_id} is not in this match")
    player.name = name
    push_snapshot(new, match)
    return new


# ------------------------------------------------------------------ #
#  Snapshots & derived views
# ------------------------------------------------------------------ #


def to_snapshot(match: Match) -> dict:
    """The persisted/transmitted shape. Undo history never leaves the scorer."""
    return match.model_dump(mode="json", exclude={"history"})


def from_snapshot(data: dict) -> Match:
    data = {k: v for k, v in data.items() if k != "history"}
    return Match.model_validate(data)


def _innings_card(match: Match, innings: Innings) -> dict:
    batting = match.team_by_id(innings.batting_team_id)
    bowling = match.team_b if batting.id == match.team_a.id else match.team_a

    extras = {e.value: 0 for e in ExtraType}
    for over in innings.overs:
        for ball in over.balls:
            if ball.extra_type is None:
                continue
            if ball.extra_type == ExtraType.WIDE:
                extras[ball.extra_type.value] += ball.total_runs
            elif ball.extra_type == ExtraType.NO_BALL:
                # Runs off the bat on a no-ball belong to the batter
                extras[ball.extra_type.value] += 1
            else:
                extras[ball.extra_type.value] += ball.runs

    batters = [
        {
            "player_id": p.id,
            "name": p.name,
            "runs": p.runs,
            "balls": p.balls,
            "fours": p.fours,
            "sixes": p.sixes,
            "strike_rate": p.strike_rate,
            "is_out": p.is_out,
            "how_out": p.how_out.value if p.how_out else None,
        }
        for p in batting.players
        if p.balls > 0 or p.is_out or p.id in (match.current_striker_id, match.current_non_striker_id)
    ]
    bowlers = [
        {
            "player_id": p.id,
            "name": p.name,
            "overs": p.overs_display,
            "maidens": p.maidens,
            "runs": p.runs_conceded,
            "wickets": p.wickets,
            "economy": p.economy,
        }
        for p in bowling.players
        if p.balls_bowled > 0 or p.runs_conceded > 0
    ]
    return {
        "batting_team": batting.name,
        "bowling_team": bowling.name,
        "total_runs": innings.total_runs,
        "total_wickets": innings.total_wickets,
        "overs": innings.overs_display,
        "run_rate": innings.run_rate,
        "is_complete": innings.is_complete,
        "extras": extras,
        "batters": batters,
        "bowlers": bowlers,
    }


def build_scorecard(match: Match) -> dict:
    """Per-innings batting, bowling and extras, plus the chase equation."""
    card = {
        "match_id": match.id,
        "status": match.status.value,
        "current_innings": match.current_innings,
        "total_overs": match.total_overs,
        "innings": [_innings_card(match, match.innings1)],
        "result": compute_result(match).summary_line,
    }
    if match.current_innings == 2:
        card["innings"].append(_innings_card(match, match.innings2))
        card["target"] = match.target
        card["runs_needed"] = match.runs_needed
        card["balls_remaining"] = match.balls_remaining
        card["required_run_rate"] = match.required_run_rate
    return card
