from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ExtraType(str, Enum):
    """Runs awarded not off the bat."""

    WIDE = "wide"
    NO_BALL = "no_ball"
    BYE = "bye"
    LEG_BYE = "leg_bye"
    PENALTY = "penalty"


class WicketType(str, Enum):
    BOWLED = "bowled"
    CAUGHT = "caught"
    LBW = "lbw"
    RUN_OUT = "run_out"
    STUMPED = "stumped"
    HIT_WICKET = "hit_wicket"
    RETIRED = "retired"


class MatchStatus(str, Enum):
    ONGOING = "ongoing"
    COMPLETED = "completed"


class InningsEnd(str, Enum):
    """Why an innings closed."""

    ALL_OUT = "all_out"
    OVERS_EXHAUSTED = "overs_exhausted"
    TARGET_REACHED = "target_reached"


class Rejection(str, Enum):
    """Reasons a ball event is refused without touching the match."""

    MATCH_OVER = "match_over"
    INNINGS_COMPLETE = "innings_complete"
    NO_BOWLER = "no_bowler"


# Extras that do not count toward the six-ball over
ILLEGAL_EXTRAS = (ExtraType.WIDE, ExtraType.NO_BALL)


def is_legal_delivery(extra_type: Optional[ExtraType]) -> bool:
    return extra_type not in ILLEGAL_EXTRAS


# =========================================================================== #
#  Players & teams
# =========================================================================== #


class Player(BaseModel):
    """A roster entry with its batting and bowling figures for one match."""

    id: str
    name: str

    # Batting
    runs: int = 0
    balls: int = Field(0, description="Balls faced (wides excluded)")
    fours: int = 0
    sixes: int = 0
    dots_faced: int = 0
    is_out: bool = False
    how_out: Optional[WicketType] = None

    # Bowling
    balls_bowled: int = Field(0, description="Legal deliveries bowled")
    runs_conceded: int = 0
    wickets: int = 0
    maidens: int = 0
    dots_bowled: int = 0
    wides_conceded: int = 0
    no_balls_conceded: int = 0

    @property
    def overs_bowled(self) -> float:
        """Completed overs and balls as X.Y, e.g. 3.4 for 22 balls."""
        return self.balls_bowled // 6 + (self.balls_bowled % 6) / 10

    @property
    def overs_display(self) -> str:
        return f"{self.balls_bowled // 6}.{self.balls_bowled % 6}"

    @property
    def strike_rate(self) -> float:
        if self.balls == 0:
            return 0.0
        return round((self.runs / self.balls) * 100, 2)

    @property
    def economy(self) -> float:
        overs = self.balls_bowled / 6
        if overs == 0:
            return 0.0
        return round(self.runs_conceded / overs, 2)

    @property
    def figures_str(self) -> str:
        return f"{self.wickets}/{self.runs_conceded} ({self.overs_display})"


class TeamSetup(BaseModel):
    """Team as entered on the setup screen: a name and an ordered roster."""

    name: str
    players: list[str] = Field(..., description="Player names in batting order")


class Team(BaseModel):
    id: str
    name: str
    players: list[Player] = Field(default_factory=list)

    @property
    def all_out_threshold(self) -> int:
        """Two batters are needed at the crease, so the last one is never out."""
        return len(self.players) - 1

    def find_player(self, player_id: Optional[str]) -> Optional[Player]:
        if player_id is None:
            return None
        return next((p for p in self.players if p.id == player_id), None)


# =========================================================================== #
#  Deliveries, overs, innings
# =========================================================================== #


class BallRecord(BaseModel):
    """One recorded delivery. Never edited after it is appended to an over."""

    model_config = ConfigDict(frozen=True)

    runs: int = Field(0, description="Runs off the bat (0-6)")
    is_extra: bool = False
    extra_type: Optional[ExtraType] = None
    is_wicket: bool = False
    wicket_type: Optional[WicketType] = None
    batter_id: str = ""
    bowler_id: str = ""

    @property
    def is_legal(self) -> bool:
        return is_legal_delivery(self.extra_type)

    @property
    def total_runs(self) -> int:
        penalty = 0 if self.is_legal else 1
        return self.runs + penalty

    @property
    def bowler_runs(self) -> int:
        """Runs charged to the bowler; byes and leg-byes are not."""
        if self.extra_type in (ExtraType.BYE, ExtraType.LEG_BYE):
            return 0
        return self.total_runs


class OverRecord(BaseModel):
    bowler_id: str = ""
    balls: list[BallRecord] = Field(default_factory=list)

    @property
    def legal_balls(self) -> int:
        return sum(1 for b in self.balls if b.is_legal)

    @property
    def is_complete(self) -> bool:
        return self.legal_balls >= 6

    @property
    def total_runs(self) -> int:
        return sum(b.total_runs for b in self.balls)

    @property
    def runs_conceded_by_bowler(self) -> int:
        return sum(b.bowler_runs for b in self.balls)


class Innings(BaseModel):
    batting_team_id: str
    total_runs: int = 0
    total_wickets: int = 0
    total_balls: int = Field(0, description="Legal deliveries bowled")
    overs: list[OverRecord] = Field(default_factory=list)
    is_complete: bool = False

    @property
    def completed_overs(self) -> int:
        return self.total_balls // 6

    @property
    def legal_balls_in_current_over(self) -> int:
        if not self.overs:
            return 0
        last = self.overs[-1]
        return 0 if last.is_complete else last.legal_balls

    @property
    def overs_display(self) -> str:
        return f"{self.total_balls // 6}.{self.total_balls % 6}"

    @property
    def run_rate(self) -> float:
        """Runs per six legal balls."""
        overs = self.total_balls / 6
        if overs == 0:
            return 0.0
        return round(self.total_runs / overs, 2)

    @property
    def score_display(self) -> str:
        return f"{self.total_runs}/{self.total_wickets} ({self.overs_display})"


# =========================================================================== #
#  Match aggregate
# =========================================================================== #


class Match(BaseModel):
    """The full state of one match; the unit passed through every engine call."""

    id: str
    owner_id: Optional[str] = None
    team_a: Team
    team_b: Team
    total_overs: int
    current_innings: Literal[1, 2] = 1
    status: MatchStatus = MatchStatus.ONGOING
    venue: Optional[str] = None
    series: Optional[str] = None
    umpires: list[str] = Field(default_factory=list)
    innings1: Innings
    innings2: Innings
    current_striker_id: Optional[str] = None
    current_non_striker_id: Optional[str] = None
    current_bowler_id: Optional[str] = None
    timestamp: int = Field(..., description="Creation time, ms since epoch")
    history: list[str] = Field(default_factory=list)  # newest last

    @property
    def current_innings_record(self) -> Innings:
        return self.innings1 if self.current_innings == 1 else self.innings2

    def team_by_id(self, team_id: str) -> Team:
        return self.team_a if self.team_a.id == team_id else self.team_b

    @property
    def batting_team(self) -> Team:
        return self.team_by_id(self.current_innings_record.batting_team_id)

    @property
    def bowling_team(self) -> Team:
        batting_id = self.current_innings_record.batting_team_id
        return self.team_b if self.team_a.id == batting_id else self.team_a

    @property
    def is_completed(self) -> bool:
        return self.status == MatchStatus.COMPLETED

    # ------------------------------------------------------------------ #
    #  Chase figures (meaningful in the second innings)
    # ------------------------------------------------------------------ #

    @property
    def target(self) -> int:
        return self.innings1.total_runs + 1

    @property
    def runs_needed(self) -> int:
        return max(self.target - self.innings2.total_runs, 0)

    @property
    def balls_remaining(self) -> int:
        return max(self.total_overs * 6 - self.current_innings_record.total_balls, 0)

    @property
    def required_run_rate(self) -> float:
        overs_remaining = self.balls_remaining / 6
        if self.current_innings != 2 or overs_remaining <= 0:
            return 0.0
        return round(self.runs_needed / overs_remaining, 2)


# =========================================================================== #
#  Engine outputs
# =========================================================================== #


class BallSignals(BaseModel):
    """Advisory flags for the presentation layer. Never persisted."""

    wicket_needs_followup: bool = False
    over_needs_new_bowler: bool = False
    innings_ended: bool = False
    innings_end_reason: Optional[InningsEnd] = None
    rejection: Optional[Rejection] = None

    @property
    def accepted(self) -> bool:
        return self.rejection is None


class BallOutcome(BaseModel):
    match: Match
    signals: BallSignals


class PlayerOfMatch(BaseModel):
    player_id: str
    name: str
    runs: int
    wickets: int
    score: int


def _plural(n: int, word: str) -> str:
    return f"{n} {word}" if n == 1 else f"{n} {word}s"


class MatchResult(BaseModel):
    is_complete: bool = False
    is_tie: bool = False
    winner_team_id: Optional[str] = None
    winner_name: Optional[str] = None
    margin_runs: Optional[int] = None
    margin_wickets: Optional[int] = None
    player_of_match: Optional[PlayerOfMatch] = None

    @property
    def margin(self) -> str:
        if self.margin_runs is not None:
            return _plural(self.margin_runs, "run")
        if self.margin_wickets is not None:
            return _plural(self.margin_wickets, "wicket")
        return ""

    @property
    def summary_line(self) -> str:
        if not self.is_complete:
            return "Match in progress"
        if self.is_tie:
            return "Match tied"
        return f"{self.winner_name} won by {self.margin}"
