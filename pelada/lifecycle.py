"""
================================================================================
SESSION LIFECYCLE
================================================================================

Purpose: Admin-driven transitions of the match session and the side effects
each one authorizes.

    idle ──open_call──▶ open_call ──start_match──▶ in_progress
      ▲                                               │ end_match
      │ reset_cycle                                   ▼
    finalized ◀──────close_voting──── voting_open ◀──┘ (or straight to finalized)

    any status ──force_voting──▶ voting_open

How it works:
1. The session is re-read from the store (the UI copy may be stale)
2. The transition is validated against the table below
3. One ``update`` is sent; if it fails nothing local changes, the row is
   re-read for the UI and ``SessionWriteFailed`` is raised
4. Only after the write is confirmed are side effects applied
   (``start_match`` → every present player +1 match played)
================================================================================
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List

from pelada.badges import assign_stat_badges
from pelada.errors import (
    InvalidTransition,
    NotAuthorized,
    SessionWriteFailed,
    SideEffectPartialFailure,
    StoreUnavailable,
)
from pelada.players import Player, increment_matches_played
from pelada.session import (
    SESSIONS_TABLE,
    MatchSession,
    SessionStatus,
    VotingOverride,
    fetch_session,
)

logger = logging.getLogger(__name__)

OPEN_CALL = "open_call"
START_MATCH = "start_match"
END_MATCH = "end_match"
CLOSE_VOTING = "close_voting"
RESET_CYCLE = "reset_cycle"
FORCE_VOTING = "force_voting"

# (from, to) -> action name
TRANSITIONS = {
    (SessionStatus.IDLE, SessionStatus.OPEN_CALL): OPEN_CALL,
    (SessionStatus.OPEN_CALL, SessionStatus.IN_PROGRESS): START_MATCH,
    (SessionStatus.IN_PROGRESS, SessionStatus.VOTING_OPEN): END_MATCH,
    (SessionStatus.IN_PROGRESS, SessionStatus.FINALIZED): END_MATCH,
    (SessionStatus.VOTING_OPEN, SessionStatus.FINALIZED): CLOSE_VOTING,
    (SessionStatus.FINALIZED, SessionStatus.IDLE): RESET_CYCLE,
}


@dataclass
class TransitionResult:
    session: MatchSession
    action: str
    warnings: List[SideEffectPartialFailure] = field(default_factory=list)
    # player id -> badge ids unlocked by the side effects
    unlocked: Dict[str, List[str]] = field(default_factory=dict)


def resolve_action(current: SessionStatus, target: SessionStatus) -> str:
    """Name of the action taking ``current`` to ``target``.

    Raises:
        InvalidTransition: If no such transition exists.
    """
    if target is SessionStatus.VOTING_OPEN and (current, target) not in TRANSITIONS:
        return FORCE_VOTING
    try:
        return TRANSITIONS[(current, target)]
    except KeyError:
        raise InvalidTransition(target.value, current.value) from None


def available_targets(current: SessionStatus) -> List[SessionStatus]:
    """Statuses an admin can move to from ``current`` (for the admin buttons)."""
    targets = [to for (frm, to) in TRANSITIONS if frm is current]
    if current is not SessionStatus.VOTING_OPEN and SessionStatus.VOTING_OPEN not in targets:
        targets.append(SessionStatus.VOTING_OPEN)
    return targets


def build_patch(action: str, target: SessionStatus) -> dict:
    patch = {"status": target.value}
    if action == RESET_CYCLE:
        patch["players_present"] = []
        patch["manual_voting_status"] = VotingOverride.AUTO.value
    return patch


def _require_admin(actor):
    if actor is None or not getattr(actor, "is_admin", False):
        raise NotAuthorized("Only admins can change the match session")


def _write_session(conn, session_id, patch, action) -> MatchSession:
    """Send one update; on any failure re-read the row and raise."""
    try:
        result = conn.table(SESSIONS_TABLE).update(patch).eq("id", session_id).execute()
        if not result.data:
            raise LookupError(f"session {session_id} not updated")
        return MatchSession.from_row(result.data[0])
    except Exception as e:
        logger.error(f"Error writing session transition '{action}': {e}")
        try:
            reconciled = fetch_session(conn, session_id)
        except StoreUnavailable:
            reconciled = None
        raise SessionWriteFailed(action, reconciled, e) from e


def transition(conn, actor, target, session_id: int = 1) -> TransitionResult:
    """Move the session to ``target`` on behalf of an admin.

    Args:
        conn: Supabase client.
        actor (Player): Acting player; must be an admin.
        target (SessionStatus | str): Desired status.
        session_id (int): Session row id.

    Returns:
        TransitionResult: Persisted session plus non-blocking warnings.

    Raises:
        NotAuthorized: If ``actor`` is not an admin.
        InvalidTransition: If ``target`` is not reachable.
        SessionWriteFailed: If the update could not be persisted.
        StoreUnavailable: If the session cannot be read first.
    """
    _require_admin(actor)
    target = SessionStatus(target)
    current = fetch_session(conn, session_id)
    action = resolve_action(current.status, target)

    persisted = _write_session(conn, session_id, build_patch(action, target), action)
    logger.info(f"Session {session_id}: {current.status.value} -> {target.value} ({action}) by {actor.nickname}")

    warnings, unlocked = [], {}
    if action == START_MATCH:
        warnings, unlocked = _count_match_played(conn, persisted.players_present)
    return TransitionResult(session=persisted, action=action, warnings=warnings, unlocked=unlocked)


def _count_match_played(conn, player_ids):
    updated_rows, failures = increment_matches_played(conn, player_ids)
    unlocked = {}
    for row in updated_rows:
        player = Player.from_row(row)
        new_badges = assign_stat_badges(conn, player)
        if new_badges:
            unlocked[player.id] = [b for b in new_badges if b not in player.badges]
    if failures:
        logger.warning(f"{len(failures)} match counters could not be updated")
    return failures, unlocked


def set_voting_override(conn, actor, override, session_id: int = 1) -> MatchSession:
    """Force voting open/closed, or hand it back to the automatic window.

    The lifecycle status is left untouched.
    """
    _require_admin(actor)
    override = VotingOverride(override)
    return _write_session(conn, session_id, {"manual_voting_status": override.value}, f"override:{override.value}")


def set_match_weekday(conn, actor, weekday: int, session_id: int = 1) -> MatchSession:
    """Change the weekday of the recurring match (Sunday=0 ... Saturday=6)."""
    _require_admin(actor)
    if not isinstance(weekday, int) or not 0 <= weekday <= 6:
        raise ValueError(f"weekday must be between 0 and 6, got {weekday!r}")
    return _write_session(conn, session_id, {"match_day": weekday}, "match_weekday")
