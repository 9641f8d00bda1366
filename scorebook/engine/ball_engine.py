import logging
from typing import Optional

from scorebook.engine.controller import apply_end_conditions
from scorebook.engine.history import push_snapshot
from scorebook.engine.overs import close_over, place_ball
from scorebook.engine.stats import apply_ball_to_players
from scorebook.models import (
    BallOutcome,
    BallRecord,
    BallSignals,
    ExtraType,
    Match,
    Rejection,
    WicketType,
    is_legal_delivery,
)

logger = logging.getLogger(__name__)

MAX_RUNS_OFF_BAT = 6


def _swap_strike(match: Match) -> None:
    match.current_striker_id, match.current_non_striker_id = (
        match.current_non_striker_id,
        match.current_striker_id,
    )


def _reject(match: Match, reason: Rejection) -> BallOutcome:
    logger.warning(f"Ball rejected for match {match.id}: {reason.value}")
    ended = reason in (Rejection.MATCH_OVER, Rejection.INNINGS_COMPLETE)
    return BallOutcome(match=match, signals=BallSignals(rejection=reason, innings_ended=ended))


def resolve_ball(
    match: Match,
    runs: int,
    extra_type: Optional[ExtraType] = None,
    wicket_type: Optional[WicketType] = None,
) -> BallOutcome:
    """
    Apply one delivery and return the next match state with advisory signals.

    `match` is never modified. A completed match, a closed first innings
    awaiting the second, or a missing bowler all return `match` itself with
    `signals.rejection` set and nothing recorded in the history.

    Degenerate combinations (a wicket on a wide, six byes, ...) are accepted
    and scored by the fixed rules in `scorebook.engine.stats`.
    """
    if not 0 <= runs <= MAX_RUNS_OFF_BAT:
        raise ValueError(f"runs off the bat must be between 0 and {MAX_RUNS_OFF_BAT}, got {runs}")
    extra_type = ExtraType(extra_type) if extra_type is not None else None
    wicket_type = WicketType(wicket_type) if wicket_type is not None else None

    if match.is_completed:
        return _reject(match, Rejection.MATCH_OVER)
    if match.current_innings_record.is_complete:
        return _reject(match, Rejection.INNINGS_COMPLETE)
    if match.current_bowler_id is None:
        return _reject(match, Rejection.NO_BOWLER)

    new = match.model_copy(deep=True)
    innings = new.current_innings_record

    # --- Team totals ---
    legal = is_legal_delivery(extra_type)
    penalty = 0 if legal else 1
    innings.total_runs += runs + penalty
    if legal:
        innings.total_balls += 1
    if wicket_type is not None:
        innings.total_wickets += 1

    # --- Over placement ---
    ball = BallRecord(
        runs=runs,
        is_extra=extra_type is not None,
        extra_type=extra_type,
        is_wicket=wicket_type is not None,
        wicket_type=wicket_type,
        batter_id=new.current_striker_id or "",
        bowler_id=new.current_bowler_id,
    )
    over = place_ball(innings, ball, new.current_bowler_id)

    # --- Player figures ---
    striker = new.batting_team.find_player(new.current_striker_id)
    bowler = new.bowling_team.find_player(new.current_bowler_id)
    apply_ball_to_players(striker, bowler, runs, extra_type, wicket_type)

    # --- Strike rotation on odd off-bat runs, whatever the extra ---
    if runs % 2 == 1:
        _swap_strike(new)

    # --- End of over ---
    over_complete = over.is_complete
    if over_complete:
        if close_over(over, new.bowling_team):
            logger.info(f"Match {new.id}: maiden over by {over.bowler_id}")
        _swap_strike(new)
        new.current_bowler_id = None

    reason = apply_end_conditions(new)
    push_snapshot(new, match)

    signals = BallSignals(
        wicket_needs_followup=wicket_type is not None and reason is None,
        over_needs_new_bowler=over_complete and reason is None,
        innings_ended=reason is not None,
        innings_end_reason=reason,
    )
    return BallOutcome(match=new, signals=signals)
