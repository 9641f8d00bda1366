"""
Unit tests for the database layer.

The conftest provides _init_test_db (autouse) that creates a fresh SQLite
DB for each test.
"""

import pytest

from scorebook.engine.scoring import assign_bowler, create_match, resolve_ball
from scorebook.models import MatchStatus, TeamSetup
from scorebook.storage import database as db


def _new_match(owner_id=None):
    return create_match(
        TeamSetup(name="India", players=["Rohit", "Virat", "Surya"]),
        TeamSetup(name="South Africa", players=["Quinton", "Aiden", "Heinrich"]),
        20,
        owner_id=owner_id,
        venue="Kensington Oval",
    )


@pytest.mark.asyncio
async def test_save_and_get_match():
    match = _new_match(owner_id="owner-1")
    match = assign_bowler(match, match.team_b.players[0].id)
    match = resolve_ball(match, 4).match
    assert match.history

    await db.save_match(match)
    retrieved = await db.get_match(match.id)

    assert retrieved is not None
    assert retrieved.id == match.id
    assert retrieved.owner_id == "owner-1"
    assert retrieved.venue == "Kensington Oval"
    assert retrieved.innings1.total_runs == 4
    assert retrieved.innings1.overs[0].balls[0].runs == 4
    # Undo history is local to the scorer and never stored
    assert retrieved.history == []

    snapshot = await db.get_snapshot(match.id)
    assert "history" not in snapshot


@pytest.mark.asyncio
async def test_save_is_an_upsert():
    match = _new_match()
    await db.save_match(match)
    match = assign_bowler(match, match.team_b.players[1].id)
    await db.save_match(match)

    stored = await db.list_matches()
    assert len(stored) == 1
    assert stored[0]["current_bowler_id"] == match.team_b.players[1].id


@pytest.mark.asyncio
async def test_get_missing_match():
    assert await db.get_match("nope") is None
    assert await db.get_snapshot("nope") is None


@pytest.mark.asyncio
async def test_list_matches_filters_and_order():
    first = _new_match(owner_id="alice")
    second = _new_match(owner_id="bob")
    done = _new_match(owner_id="alice")
    done.status = MatchStatus.COMPLETED
    for m in (first, second, done):
        await db.save_match(m)

    all_matches = await db.list_matches()
    assert [m["id"] for m in all_matches] == [done.id, second.id, first.id]

    alice = await db.list_matches(owner_id="alice")
    assert {m["id"] for m in alice} == {first.id, done.id}

    completed = await db.list_matches(status="completed")
    assert [m["id"] for m in completed] == [done.id]

    ongoing_alice = await db.list_matches(status="ongoing", owner_id="alice")
    assert [m["id"] for m in ongoing_alice] == [first.id]


@pytest.mark.asyncio
async def test_delete_match():
    match = _new_match()
    await db.save_match(match)

    assert await db.delete_match(match.id) is True
    assert await db.get_match(match.id) is None
    assert await db.delete_match(match.id) is False


@pytest.mark.asyncio
async def test_reset_db_clears_matches():
    await db.save_match(_new_match())
    await db.save_match(_new_match())

    await db.reset_db()
    assert await db.list_matches() == []

    match = _new_match()
    await db.save_match(match)
    assert [m["id"] for m in await db.list_matches()] == [match.id]


@pytest.mark.asyncio
async def test_requires_init():
    await db.close_db()
    with pytest.raises(RuntimeError):
        await db.get_snapshot("anything")
