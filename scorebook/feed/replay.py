"""
Replay a scripted sequence of scoring actions through the engine.

A script is JSON:

    {
      "team_a": {"name": "Lions", "players": ["L1", "L2", "L3"]},
      "team_b": {"name": "Tigers", "players": ["T1", "T2", "T3"]},
      "overs": 2,
      "actions": [
        {"action": "bowler", "player": "T1"},
        {"action": "ball", "runs": 4},
        {"action": "ball", "runs": 0, "extra": "wide"},
        {"action": "ball", "runs": 0, "wicket": "bowled"},
        {"action": "batter", "player": "L3"},
        {"action": "undo"},
        {"action": "second_innings"}
      ]
    }

Players are referenced by name because ids are generated at match creation.
"""

import json
import logging
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field

from scorebook.engine import scoring
from scorebook.engine.errors import InvalidSelectionError
from scorebook.models import BallSignals, ExtraType, Match, TeamSetup, WicketType

logger = logging.getLogger(__name__)

FEED_DIR = Path(__file__).resolve().parent.parent.parent / "data" / "sample"


class ScriptAction(BaseModel):
    action: Literal["bowler", "ball", "batter", "second_innings", "undo"]
    player: Optional[str] = None
    runs: int = 0
    extra: Optional[ExtraType] = None
    wicket: Optional[WicketType] = None


class ScoringScript(BaseModel):
    team_a: TeamSetup
    team_b: TeamSetup
    overs: int
    venue: Optional[str] = None
    actions: list[ScriptAction] = Field(default_factory=list)


class ReplayResult(BaseModel):
    match: Match
    signals: list[BallSignals] = Field(default_factory=list)


def load_script(path: str | Path) -> ScoringScript:
    path = Path(path)
    if not path.is_absolute() and not path.exists():
        path = FEED_DIR / path
    with open(path, encoding="utf-8") as f:
        return ScoringScript.model_validate(json.load(f))


def _player_id(match: Match, name: Optional[str], batting: bool) -> str:
    team = match.batting_team if batting else match.bowling_team
    for p in team.players:
        if p.name == name:
            return p.id
    raise InvalidSelectionError(f"No player named {name!r} in {team.name}")


def apply_action(match: Match, action: ScriptAction) -> tuple[Match, Optional[BallSignals]]:
    """Run one scripted action. Ball actions also return their signals."""
    if action.action == "ball":
        outcome = scoring.resolve_ball(match, action.runs, action.extra, action.wicket)
        return outcome.match, outcome.signals
    if action.action == "bowler":
        return scoring.assign_bowler(match, _player_id(match, action.player, batting=False)), None
    if action.action == "batter":
        return scoring.select_new_batter(match, _player_id(match, action.player, batting=True)), None
    if action.action == "second_innings":
        return scoring.start_second_innings(match), None
    return scoring.undo(match), None


def replay(script: ScoringScript, owner_id: Optional[str] = None) -> ReplayResult:
    """Create the scripted match and play every action in order."""
    match = scoring.create_match(
        script.team_a,
        script.team_b,
        script.overs,
        owner_id=owner_id,
        venue=script.venue,
    )
    signals: list[BallSignals] = []
    for i, action in enumerate(script.actions):
        match, ball_signals = apply_action(match, action)
        if ball_signals is not None:
            signals.append(ball_signals)
            if ball_signals.rejection is not None:
                logger.warning(f"Action {i} rejected: {ball_signals.rejection.value}")
    return ReplayResult(match=match, signals=signals)
