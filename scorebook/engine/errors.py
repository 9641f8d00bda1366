class ScoringError(Exception):
    """Base class for caller errors raised by the scoring operations."""


class InvalidSelectionError(ScoringError, ValueError):
    """A player id that cannot fill the requested role."""


class InvalidTransitionError(ScoringError):
    """An operation that the match lifecycle does not allow right now."""
