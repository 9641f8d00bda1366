"""
Innings and match lifecycle.

    Innings1InProgress -> Innings2InProgress -> Completed

Completed is terminal. The first innings ending only marks the innings as
complete; the switch to the second innings is an explicit call.
"""

import logging
from typing import Optional

from scorebook.engine.errors import InvalidTransitionError
from scorebook.engine.history import push_snapshot
from scorebook.models import (
    InningsEnd,
    Match,
    MatchResult,
    MatchStatus,
    PlayerOfMatch,
    Team,
)

logger = logging.getLogger(__name__)

# Player-of-the-match weighting: one wicket is worth twenty runs
WICKET_WEIGHT = 20


def innings_end_reason(match: Match) -> Optional[InningsEnd]:
    """Return why the current innings is over, or None if play continues."""
    innings = match.current_innings_record
    if match.current_innings == 2 and innings.total_runs >= match.target:
        return InningsEnd.TARGET_REACHED
    if innings.total_wickets >= match.batting_team.all_out_threshold:
        return InningsEnd.ALL_OUT
    if innings.total_balls >= match.total_overs * 6:
        return InningsEnd.OVERS_EXHAUSTED
    return None


def apply_end_conditions(match: Match) -> Optional[InningsEnd]:
    """Close the innings (and the match, in the second innings) when due."""
    reason = innings_end_reason(match)
    if reason is None:
        return None

    innings = match.current_innings_record
    innings.is_complete = True
    if match.current_innings == 2 or reason == InningsEnd.TARGET_REACHED:
        match.status = MatchStatus.COMPLETED
        logger.info(
            f"Match {match.id} completed ({reason.value}): "
            f"{match.innings1.score_display} vs {match.innings2.score_display}"
        )
    else:
        logger.info(f"Match {match.id}: first innings closed ({reason.value}) at {innings.score_display}")
    return reason


def start_second_innings(match: Match) -> Match:
    """
    Switch to the second innings. Closes the first innings if it is still
    open, opens with the first two players of the chasing side and clears
    the bowler so one has to be picked.
    """
    if match.is_completed or match.current_innings != 1:
        raise InvalidTransitionError(
            f"Match {match.id} cannot start a second innings "
            f"(innings={match.current_innings}, status={match.status.value})"
        )

    new = match.model_copy(deep=True)
    new.innings1.is_complete = True
    new.current_innings = 2

    chasing = new.batting_team
    new.current_striker_id = chasing.players[0].id
    new.current_non_striker_id = chasing.players[1].id
    new.current_bowler_id = None

    push_snapshot(new, match)
    logger.info(f"Match {match.id}: second innings started, target {new.target}")
    return new


# ------------------------------------------------------------------ #
#  Result
# ------------------------------------------------------------------ #


def _player_of_match(team: Team) -> Optional[PlayerOfMatch]:
    best = None
    best_score = -1
    for p in team.players:
        score = p.runs + p.wickets * WICKET_WEIGHT
        # Strictly greater keeps the earliest roster entry on ties
        if score > best_score:
            best, best_score = p, score
    if best is None:
        return None
    return PlayerOfMatch(
        player_id=best.id,
        name=best.name,
        runs=best.runs,
        wickets=best.wickets,
        score=best_score,
    )


def compute_result(match: Match) -> MatchResult:
    """Winner, margin and player of the match. Undecided until completed."""
    if not match.is_completed:
        return MatchResult(is_complete=False)

    first = match.team_by_id(match.innings1.batting_team_id)
    second = match.team_by_id(match.innings2.batting_team_id)
    r1 = match.innings1.total_runs
    r2 = match.innings2.total_runs

    if r1 == r2:
        return MatchResult(is_complete=True, is_tie=True)

    if r1 > r2:
        return MatchResult(
            is_complete=True,
            winner_team_id=first.id,
            winner_name=first.name,
            margin_runs=r1 - r2,
            player_of_match=_player_of_match(first),
        )

    return MatchResult(
        is_complete=True,
        winner_team_id=second.id,
        winner_name=second.name,
        margin_wickets=second.all_out_threshold - match.innings2.total_wickets,
        player_of_match=_player_of_match(second),
    )
