"""Domain-specific exceptions for scoring and results operations."""


class ScoringError(Exception):
    """Base exception for scoring failures."""

    pass


class LeagueNotFound(ScoringError):
    """Raised when a league id does not exist."""

    pass


class WeekNotFound(ScoringError):
    """Raised when a week id does not exist for a league."""

    pass


class GameNotFound(ScoringError):
    """Raised when an event key does not exist in a week."""

    pass


class WeekFinalizedError(ScoringError):
    """Raised when an operation would reopen a finalized week."""

    pass
