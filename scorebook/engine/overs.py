from typing import Optional

from scorebook.models import BallRecord, Innings, OverRecord, Team


def place_ball(innings: Innings, ball: BallRecord, bowler_id: Optional[str]) -> OverRecord:
    """
    Append a delivery to the innings' current over, opening a new over when
    the last one already holds six legal balls (or when there is none yet).

    Returns the over the ball landed in.
    """
    current = innings.overs[-1] if innings.overs else None
    if current is None or current.is_complete:
        current = OverRecord(bowler_id=bowler_id or "")
        innings.overs.append(current)
    current.balls.append(ball)
    return current


def close_over(over: OverRecord, bowling_team: Team) -> bool:
    """
    Book a completed over against its bowler. Returns True for a maiden.
    """
    if not over.is_complete or over.runs_conceded_by_bowler != 0:
        return False
    bowler = bowling_team.find_player(over.bowler_id)
    if bowler is None:
        return False
    bowler.maidens += 1
    return True
