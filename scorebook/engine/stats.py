"""
Per-delivery updates to one striker and one bowler.

Only the two Player records passed in are touched. No cricket-legality
checks are made: whatever combination arrives is applied by the fixed rules
below.
"""

from typing import Optional

from scorebook.models import ExtraType, Player, WicketType, is_legal_delivery


def _penalty(extra_type: Optional[ExtraType]) -> int:
    return 0 if is_legal_delivery(extra_type) else 1


def update_batter(
    striker: Player,
    runs: int,
    extra_type: Optional[ExtraType] = None,
    wicket_type: Optional[WicketType] = None,
) -> None:
    """Credit the striker for one delivery."""
    # Off-bat runs count for the batter only on a fair ball or a no-ball
    if extra_type is None or extra_type == ExtraType.NO_BALL:
        striker.runs += runs
        if runs == 4:
            striker.fours += 1
        if runs == 6:
            striker.sixes += 1

    if extra_type != ExtraType.WIDE:
        striker.balls += 1
        if is_legal_delivery(extra_type) and runs == 0:
            striker.dots_faced += 1

    if wicket_type is not None:
        striker.is_out = True
        striker.how_out = wicket_type


def update_bowler(
    bowler: Player,
    runs: int,
    extra_type: Optional[ExtraType] = None,
    wicket_type: Optional[WicketType] = None,
) -> None:
    """Charge the bowler for one delivery."""
    penalty = _penalty(extra_type)

    if extra_type not in (ExtraType.BYE, ExtraType.LEG_BYE):
        bowler.runs_conceded += runs + penalty

    if extra_type == ExtraType.WIDE:
        bowler.wides_conceded += penalty
    elif extra_type == ExtraType.NO_BALL:
        bowler.no_balls_conceded += penalty

    if wicket_type is not None and wicket_type != WicketType.RUN_OUT:
        bowler.wickets += 1

    if is_legal_delivery(extra_type):
        # balls_bowled rolls into whole overs through Player.overs_bowled
        bowler.balls_bowled += 1
        if runs == 0:
            bowler.dots_bowled += 1


def apply_ball_to_players(
    striker: Optional[Player],
    bowler: Optional[Player],
    runs: int,
    extra_type: Optional[ExtraType] = None,
    wicket_type: Optional[WicketType] = None,
) -> None:
    """Apply one ball to the striker and bowler. Missing players are skipped."""
    if striker is not None:
        update_batter(striker, runs, extra_type, wicket_type)
    if bowler is not None:
        update_bowler(bowler, runs, extra_type, wicket_type)
