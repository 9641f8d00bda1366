import asyncio
import json
import logging
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sse_starlette.sse import EventSourceResponse

from scorebook.config import settings
from scorebook.engine import scoring
from scorebook.engine.errors import InvalidSelectionError, InvalidTransitionError
from scorebook.models import ExtraType, Match, TeamSetup, WicketType
from scorebook.storage import database as db
from scorebook.summary.generator import generate_match_summary

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

# Scorer sessions: the working match with its undo history, by match id.
# Only the history-stripped snapshot is written to storage.
sessions: dict[str, Match] = {}
_locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """App startup/shutdown lifecycle."""
    logger.info("Scorebook starting up")
    await db.init_db()
    yield
    await db.close_db()
    logger.info("Shutting down")


app = FastAPI(
    title="Scorebook",
    description="Live ball-by-ball cricket scoring",
    lifespan=lifespan,
)


# ------------------------------------------------------------------ #
#  Request bodies
# ------------------------------------------------------------------ #

class CreateMatchRequest(BaseModel):
    team_a: TeamSetup
    team_b: TeamSetup
    overs: Optional[int] = Field(None, description="Overs per innings; defaults to settings.default_overs")
    owner_id: Optional[str] = None
    venue: Optional[str] = None
    series: Optional[str] = None
    umpires: list[str] = Field(default_factory=list)


class BallRequest(BaseModel):
    runs: int = Field(0, ge=0, le=6, description="Runs off the bat")
    extra_type: Optional[ExtraType] = None
    wicket_type: Optional[WicketType] = None


class PlayerSelection(BaseModel):
    player_id: str


class RenameRequest(BaseModel):
    name: str


# ------------------------------------------------------------------ #
#  Error mapping
# ------------------------------------------------------------------ #

@app.exception_handler(InvalidTransitionError)
async def _transition_error(request: Request, exc: InvalidTransitionError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(ValueError)
async def _value_error(request: Request, exc: ValueError):
    # InvalidSelectionError is a ValueError too
    return JSONResponse(status_code=422, content={"detail": str(exc)})


# ------------------------------------------------------------------ #
#  Session helpers
# ------------------------------------------------------------------ #

async def _load(match_id: str) -> Match:
    """Working copy for the scorer, falling back to the stored snapshot."""
    match = sessions.get(match_id)
    if match is None:
        match = await db.get_match(match_id)
        if match is None:
            raise HTTPException(status_code=404, detail=f"Match {match_id} not found")
        sessions[match_id] = match
    return match


@asynccontextmanager
async def _match_lock(match_id: str):
    """Serialize requests for one match. The lock is dropped once the match is gone."""
    lock = _locks[match_id]
    try:
        async with lock:
            yield
    finally:
        if match_id not in sessions and _locks.get(match_id) is lock:
            del _locks[match_id]


async def _commit(match: Match) -> dict:
    sessions[match.id] = match
    await db.save_match(match)
    return _view(match)


def _view(match: Match) -> dict:
    return {**scoring.to_snapshot(match), "undo_available": len(match.history)}


# ------------------------------------------------------------------ #
#  Matches
# ------------------------------------------------------------------ #

@app.post("/api/matches", status_code=201)
async def create_match(body: CreateMatchRequest):
    match = scoring.create_match(
        body.team_a,
        body.team_b,
        body.overs or settings.default_overs,
        owner_id=body.owner_id,
        venue=body.venue,
        series=body.series,
        umpires=body.umpires,
    )
    return await _commit(match)


@app.get("/api/matches")
async def list_matches(status: Optional[str] = None, owner_id: Optional[str] = None):
    return await db.list_matches(status=status, owner_id=owner_id)


@app.get("/api/matches/{match_id}")
async def get_match(match_id: str):
    async with _match_lock(match_id):
        return _view(await _load(match_id))


@app.delete("/api/matches/{match_id}")
async def delete_match(match_id: str):
    async with _match_lock(match_id):
        removed = await db.delete_match(match_id)
        in_session = sessions.pop(match_id, None) is not None
        if not (removed or in_session):
            raise HTTPException(status_code=404, detail=f"Match {match_id} not found")
    return {"deleted": match_id}


# ------------------------------------------------------------------ #
#  Scoring actions
# ------------------------------------------------------------------ #

@app.post("/api/matches/{match_id}/balls")
async def record_ball(match_id: str, body: BallRequest):
    """Score one delivery. A rejected ball returns the unchanged match."""
    async with _match_lock(match_id):
        match = await _load(match_id)
        outcome = scoring.resolve_ball(match, body.runs, body.extra_type, body.wicket_type)
        if outcome.signals.accepted:
            view = await _commit(outcome.match)
        else:
            view = _view(match)
    return {"match": view, "signals": outcome.signals.model_dump(mode="json")}


@app.post("/api/matches/{match_id}/bowler")
async def assign_bowler(match_id: str, body: PlayerSelection):
    async with _match_lock(match_id):
        match = await _load(match_id)
        return await _commit(scoring.assign_bowler(match, body.player_id))


@app.post("/api/matches/{match_id}/batter")
async def select_new_batter(match_id: str, body: PlayerSelection):
    async with _match_lock(match_id):
        match = await _load(match_id)
        return await _commit(scoring.select_new_batter(match, body.player_id))


@app.post("/api/matches/{match_id}/second-innings")
async def start_second_innings(match_id: str):
    async with _match_lock(match_id):
        match = await _load(match_id)
        return await _commit(scoring.start_second_innings(match))


@app.post("/api/matches/{match_id}/undo")
async def undo(match_id: str):
    async with _match_lock(match_id):
        match = await _load(match_id)
        return await _commit(scoring.undo(match))


@app.patch("/api/matches/{match_id}/players/{player_id}")
async def rename_player(match_id: str, player_id: str, body: RenameRequest):
    async with _match_lock(match_id):
        match = await _load(match_id)
        return await _commit(scoring.rename_player(match, player_id, body.name))


# ------------------------------------------------------------------ #
#  Derived views
# ------------------------------------------------------------------ #

@app.get("/api/matches/{match_id}/result")
async def get_result(match_id: str):
    async with _match_lock(match_id):
        result = scoring.compute_result(await _load(match_id))
    return {**result.model_dump(mode="json"), "margin": result.margin, "summary": result.summary_line}


@app.get("/api/matches/{match_id}/scorecard")
async def get_scorecard(match_id: str):
    async with _match_lock(match_id):
        return scoring.build_scorecard(await _load(match_id))


@app.post("/api/matches/{match_id}/summary")
async def create_summary(match_id: str):
    async with _match_lock(match_id):
        match = await _load(match_id)
    summary = await generate_match_summary(match)
    return summary.model_dump()


# ------------------------------------------------------------------ #
#  Spectators
# ------------------------------------------------------------------ #

@app.get("/api/matches/{match_id}/live")
async def live(match_id: str, request: Request):
    """SSE stream of the stored snapshot, pushed whenever it changes."""
    if await db.get_snapshot(match_id) is None:
        raise HTTPException(status_code=404, detail=f"Match {match_id} not found")

    async def event_generator():
        last_sent: str | None = None
        while True:
            if await request.is_disconnected():
                break
            snapshot = await db.get_snapshot(match_id)
            if snapshot is None:
                yield {"event": "deleted", "data": "{}"}
                break
            payload = json.dumps(snapshot)
            if payload != last_sent:
                last_sent = payload
                yield {"event": "score_update", "data": payload}
            else:
                yield {"event": "ping", "data": "{}"}
            await asyncio.sleep(settings.live_refresh_seconds)

    return EventSourceResponse(event_generator())
