import json
import logging

from openai import AsyncOpenAI
from pydantic import BaseModel

from scorebook.config import settings
from scorebook.engine.controller import compute_result
from scorebook.models import Innings, Match

logger = logging.getLogger(__name__)

# Lazy-initialized client
_client: AsyncOpenAI | None = None

_SUMMARY_TOKENS = 400

SYSTEM_PROMPT = (
    "You are an expert cricket commentator and sports journalist. "
    "Write about local club cricket with energy but without exaggeration. "
    'Reply with a JSON object with the keys "headline", "summary" and "key_takeaway".'
)


class InningsLine(BaseModel):
    runs: int
    wickets: int
    balls: int


class MatchSummaryInput(BaseModel):
    """Score data handed to the summary writer. Nothing else leaves the engine."""

    team_a_name: str
    team_b_name: str
    innings1: InningsLine
    innings2: InningsLine
    status: str
    result: str


class MatchSummary(BaseModel):
    headline: str
    summary: str
    key_takeaway: str


def _get_client() -> AsyncOpenAI:
    global _client
    if _client is None:
        _client = AsyncOpenAI(api_key=settings.openai_api_key)
    return _client


def _line(innings: Innings) -> InningsLine:
    return InningsLine(
        runs=innings.total_runs,
        wickets=innings.total_wickets,
        balls=innings.total_balls,
    )


def build_summary_input(match: Match) -> MatchSummaryInput:
    first = match.team_by_id(match.innings1.batting_team_id)
    second = match.team_by_id(match.innings2.batting_team_id)
    return MatchSummaryInput(
        team_a_name=first.name,
        team_b_name=second.name,
        innings1=_line(match.innings1),
        innings2=_line(match.innings2),
        status=match.status.value,
        result=compute_result(match).summary_line,
    )


def format_summary_prompt(data: MatchSummaryInput) -> str:
    return (
        "Generate a professional match report based on these details:\n"
        f"Team A: {data.team_a_name}\n"
        f"Team B: {data.team_b_name}\n"
        f"Innings 1 Score: {data.innings1.runs}/{data.innings1.wickets} ({data.innings1.balls} balls)\n"
        f"Innings 2 Score: {data.innings2.runs}/{data.innings2.wickets} ({data.innings2.balls} balls)\n"
        f"Match Status: {data.status}\n"
        f"Result: {data.result}\n\n"
        "Make the summary engaging, focusing on the competitive spirit of local cricket."
    )


async def generate_match_summary(match: Match) -> MatchSummary:
    """
    Ask the LLM for a headline, short report and key takeaway.
    Works on partial matches too; falls back to a plain template on failure.
    """
    data = build_summary_input(match)
    try:
        client = _get_client()
        response = await client.chat.completions.create(
            model=settings.summary_model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": format_summary_prompt(data)},
            ],
            temperature=0.8,
            max_completion_tokens=_SUMMARY_TOKENS,
            response_format={"type": "json_object"},
        )
        content = response.choices[0].message.content or ""
        return MatchSummary.model_validate(json.loads(content))

    except Exception as e:
        logger.error(f"Match summary generation failed: {e}")
        return _fallback_summary(data)


def _fallback_summary(data: MatchSummaryInput) -> MatchSummary:
    """Basic summary when the API fails."""
    i1, i2 = data.innings1, data.innings2
    scores = (
        f"{data.team_a_name} {i1.runs}/{i1.wickets}, "
        f"{data.team_b_name} {i2.runs}/{i2.wickets}."
    )
    if data.status == "completed":
        headline = data.result
    else:
        headline = f"{data.team_a_name} vs {data.team_b_name}: live"
    return MatchSummary(
        headline=headline,
        summary=f"{scores} {data.result}.",
        key_takeaway=data.result,
    )
