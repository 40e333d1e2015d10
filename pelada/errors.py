"""Error types shared by the session, voting and data layers."""

from postgrest.exceptions import APIError

# Postgres SQLSTATE for unique_violation
UNIQUE_VIOLATION = "23505"


class PeladaError(Exception):
    """Base class for every error raised by the pelada package."""


class AlreadyVoted(PeladaError):
    """The voter already has a vote stored for this match id."""

    def __init__(self, voter_id, match_id):
        super().__init__(f"{voter_id} already voted for match {match_id}")
        self.voter_id = voter_id
        self.match_id = match_id


class SessionWriteFailed(PeladaError):
    """An admin transition could not be persisted. Safe to retry."""

    def __init__(self, action, session=None, cause=None):
        super().__init__(f"Could not persist session transition '{action}'")
        self.action = action
        # Session as re-read from the store after the failure, if reachable
        self.session = session
        self.cause = cause


class SideEffectPartialFailure(PeladaError):
    """A follow-up update failed after the main write was already durable."""

    def __init__(self, player_id, operation, cause=None):
        super().__init__(f"Could not apply '{operation}' to player {player_id}")
        self.player_id = player_id
        self.operation = operation
        self.cause = cause


class StoreUnavailable(PeladaError):
    """The remote store could not be reached or rejected a read."""

    def __init__(self, what, cause=None):
        super().__init__(f"Store unavailable while {what}")
        self.what = what
        self.cause = cause


class InvalidTransition(PeladaError):
    """The requested lifecycle action is not allowed from the current status."""

    def __init__(self, action, status):
        super().__init__(f"Action '{action}' is not allowed while status is '{status}'")
        self.action = action
        self.status = status


class NotAuthorized(PeladaError, PermissionError):
    """The acting player may not perform this operation."""


class NotEnoughPlayers(PeladaError):
    """Not enough confirmed players to draw teams."""

    def __init__(self, available, required):
        super().__init__(f"Need at least {required} players, only {available} confirmed")
        self.available = available
        self.required = required


def is_unique_violation(exc) -> bool:
    """True when ``exc`` is a PostgREST error for a duplicate key."""
    return isinstance(exc, APIError) and str(getattr(exc, "code", "")) == UNIQUE_VIOLATION
