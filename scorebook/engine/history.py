"""
Bounded undo stack stored on the match itself.

Each entry is the JSON snapshot of a prior state with its own history
stripped, so the stack never nests. Undo restores the newest snapshot
wholesale together with the entries that were below it.
"""

import logging

from scorebook.config import settings
from scorebook.models import Match

logger = logging.getLogger(__name__)


def serialize_state(match: Match) -> str:
    """JSON snapshot of a match without its history."""
    return match.model_dump_json(exclude={"history"})


def push_snapshot(match: Match, previous: Match, capacity: int | None = None) -> None:
    """Record `previous` as the state to return to from `match`."""
    capacity = settings.history_capacity if capacity is None else capacity
    stack = list(previous.history)
    stack.append(serialize_state(previous))
    match.history = stack[-capacity:] if capacity > 0 else []


def undo(match: Match) -> Match:
    """Revert exactly one recorded action. An empty stack returns `match` as is."""
    if not match.history:
        logger.info(f"Nothing to undo for match {match.id}")
        return match

    *remaining, newest = match.history
    restored = Match.model_validate_json(newest)
    restored.history = remaining
    logger.info(f"Undo on match {match.id}: {len(remaining)} snapshot(s) left")
    return restored
