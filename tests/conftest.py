"""
Shared fixtures for the test suite.

Key design decisions:
  - Uses a **temporary SQLite file** per test so tests are fast and isolated.
  - Overrides the database module's `DB_DIR` / `DB_PATH` before each test.
  - Clears the API's in-memory scorer sessions between tests.
  - Provides an `httpx.AsyncClient` wired to the FastAPI app via ASGITransport.
  - Supplies a small, ready-to-score match for engine tests.
"""

from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

import scorebook.main as main_mod
import scorebook.storage.database as db_mod
from scorebook.engine.scoring import assign_bowler, create_match
from scorebook.main import app
from scorebook.models import Match, TeamSetup


# --------------------------------------------------------------------------- #
#  Database: fresh file for every test function
# --------------------------------------------------------------------------- #

@pytest_asyncio.fixture(autouse=True)
async def _init_test_db(tmp_path: Path):
    """
    Before each test:
      1. Point the DB module to a temp file.
      2. Run init_db() to create all tables.
      3. Drop any scorer sessions left by an earlier test.
    After the test:
      4. Close the connection.
    """
    db_mod.DB_DIR = tmp_path
    db_mod.DB_PATH = tmp_path / "test.db"
    main_mod.sessions.clear()
    main_mod._locks.clear()

    await db_mod.init_db()
    yield
    await db_mod.close_db()


# --------------------------------------------------------------------------- #
#  HTTP client: talks to FastAPI app without a real server
# --------------------------------------------------------------------------- #

@pytest_asyncio.fixture
async def client() -> AsyncClient:
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


# --------------------------------------------------------------------------- #
#  Small matches for engine tests
# --------------------------------------------------------------------------- #

LIONS = TeamSetup(name="Lions", players=["L1", "L2", "L3", "L4"])
TIGERS = TeamSetup(name="Tigers", players=["T1", "T2", "T3", "T4"])

CREATE_BODY = {
    "team_a": {"name": "Lions", "players": ["L1", "L2", "L3"]},
    "team_b": {"name": "Tigers", "players": ["T1", "T2", "T3"]},
    "overs": 2,
    "venue": "Club Ground",
}


def make_match(overs: int = 2, team_a: TeamSetup = LIONS, team_b: TeamSetup = TIGERS) -> Match:
    return create_match(team_a, team_b, overs)


@pytest.fixture
def match() -> Match:
    """Fresh 2-over match, four players a side, no bowler yet."""
    return make_match()


@pytest.fixture
def ready_match(match: Match) -> Match:
    """Same match with T1 bowling the first over."""
    return assign_bowler(match, match.team_b.players[0].id)
