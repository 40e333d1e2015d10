"""
================================================================================
MATCH SESSION
================================================================================

Purpose: The singleton ``sessions`` row as an explicit aggregate, the rule
that decides whether post-match voting is open, and player self-service
attendance (confirm / withdraw).

Architecture: Streamlit UI → pelada.session → Supabase ``sessions`` table.
Every function that touches the store takes the Supabase client as ``conn``
(``st.connection(...)`` in the app, an in-memory fake in tests).
================================================================================
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import List, Tuple

from pelada.clock import sunday_weekday
from pelada.config import MONDAY
from pelada.errors import NotAuthorized, StoreUnavailable

logger = logging.getLogger(__name__)

SESSIONS_TABLE = "sessions"


class SessionStatus(str, Enum):
    IDLE = "idle"
    OPEN_CALL = "open_call"
    IN_PROGRESS = "in_progress"
    VOTING_OPEN = "voting_open"
    FINALIZED = "finalized"


class VotingOverride(str, Enum):
    AUTO = "auto"
    FORCE_OPEN = "open"
    FORCE_CLOSED = "closed"


# Status values written by older versions of the app
_LEGACY_STATUS = {
    "vago": SessionStatus.IDLE,
    "resenha": SessionStatus.IDLE,
    "partida": SessionStatus.OPEN_CALL,
    "em_jogo": SessionStatus.IN_PROGRESS,
    "votacao_aberta": SessionStatus.VOTING_OPEN,
    "finalizado": SessionStatus.FINALIZED,
}

VOTING_STATUSES = (SessionStatus.VOTING_OPEN, SessionStatus.FINALIZED)

# Last minute of the automatic window (inclusive)
WINDOW_LAST_HOUR = 23


def parse_status(value) -> SessionStatus:
    if isinstance(value, SessionStatus):
        return value
    if value in _LEGACY_STATUS:
        return _LEGACY_STATUS[value]
    try:
        return SessionStatus(value)
    except ValueError:
        logger.warning(f"Unknown session status {value!r}, treating as idle")
        return SessionStatus.IDLE


def parse_override(value) -> VotingOverride:
    if isinstance(value, VotingOverride):
        return value
    try:
        return VotingOverride(value or "auto")
    except ValueError:
        logger.warning(f"Unknown manual voting status {value!r}, treating as auto")
        return VotingOverride.AUTO


@dataclass(frozen=True)
class MatchSession:
    id: int = 1
    status: SessionStatus = SessionStatus.IDLE
    match_weekday: int = MONDAY
    manual_voting_override: VotingOverride = VotingOverride.AUTO
    players_present: Tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_row(cls, row: dict) -> "MatchSession":
        """Build a session from a ``sessions`` row (snake_case columns)."""
        present = []
        for player_id in row.get("players_present") or []:
            # Keep first occurrence; older rows may carry duplicates
            if player_id not in present:
                present.append(player_id)
        match_day = row.get("match_day")
        return cls(
            id=row.get("id", 1),
            status=parse_status(row.get("status")),
            match_weekday=MONDAY if match_day is None else int(match_day),
            manual_voting_override=parse_override(row.get("manual_voting_status")),
            players_present=tuple(present),
        )

    def to_row(self) -> dict:
        return {
            "status": self.status.value,
            "match_day": self.match_weekday,
            "manual_voting_status": self.manual_voting_override.value,
            "players_present": list(self.players_present),
        }

    def is_present(self, player_id) -> bool:
        return player_id in self.players_present


# =============================================================================
# VOTING WINDOW
# =============================================================================


def is_voting_open(session: MatchSession, now: datetime, opens_hour: int = 21) -> bool:
    """Decide whether post-match voting is open right now.

    First matching rule wins:

    1. Override ``open`` → open.
    2. Override ``closed`` → closed.
    3. ``auto``: status must be ``voting_open`` or ``finalized`` AND ``now``
       must be on the match weekday between ``opens_hour``:00 and 23:59.
       There is no carry-over into the following days.

    Args:
        session (MatchSession): Current session.
        now (datetime): Local wall-clock time.
        opens_hour (int): Hour the automatic window opens. Defaults to 21.

    Returns:
        bool: True when a vote may be cast.
    """
    override = session.manual_voting_override
    if override is VotingOverride.FORCE_OPEN:
        return True
    if override is VotingOverride.FORCE_CLOSED:
        return False

    if session.status not in VOTING_STATUSES:
        return False
    if sunday_weekday(now) != session.match_weekday:
        return False
    return opens_hour <= now.hour <= WINDOW_LAST_HOUR


# =============================================================================
# ROSTER
# =============================================================================


def split_roster(players_present, starters_count: int) -> Tuple[List[str], List[str]]:
    """Split confirmed ids into (starters, waitlist) keeping confirmation order."""
    present = list(players_present)
    return present[:starters_count], present[starters_count:]


def is_list_closed(session: MatchSession, starters_count: int) -> bool:
    return len(session.players_present) >= starters_count


def with_attendance(session: MatchSession, player_id, present: bool) -> MatchSession:
    """Return a copy of ``session`` with ``player_id`` added or removed."""
    if present:
        if session.is_present(player_id):
            return session
        return replace(session, players_present=session.players_present + (player_id,))
    ids = tuple(p for p in session.players_present if p != player_id)
    return replace(session, players_present=ids)


# =============================================================================
# STORE ACCESS
# =============================================================================


def fetch_session(conn, session_id: int = 1) -> MatchSession:
    """Load the session row.

    Raises:
        StoreUnavailable: If the row cannot be read.
    """
    try:
        result = conn.table(SESSIONS_TABLE).select("*").eq("id", session_id).execute()
    except Exception as e:
        logger.error(f"Error fetching session {session_id}: {e}")
        raise StoreUnavailable("loading the match session", e) from e
    if not result.data:
        logger.error(f"Session row {session_id} not found")
        raise StoreUnavailable("loading the match session")
    return MatchSession.from_row(result.data[0])


def toggle_attendance(conn, actor, player_id, session_id: int = 1) -> MatchSession:
    """Confirm or withdraw ``player_id`` for the current cycle.

    Players may only toggle themselves. The list is re-read right before
    writing and the write is last-write-wins.

    Args:
        conn: Supabase client.
        actor: Logged-in player (anything with an ``id``).
        player_id: Player whose presence is toggled.
        session_id (int): Session row id.

    Returns:
        MatchSession: The session as persisted.

    Raises:
        NotAuthorized: If ``actor`` tries to toggle someone else.
        StoreUnavailable: If the read or the write fails.
    """
    if actor is None or actor.id != player_id:
        raise NotAuthorized("Players can only confirm or withdraw themselves")

    current = fetch_session(conn, session_id)
    updated = with_attendance(current, player_id, not current.is_present(player_id))
    try:
        result = (
            conn.table(SESSIONS_TABLE)
            .update({"players_present": list(updated.players_present)})
            .eq("id", session_id)
            .execute()
        )
    except Exception as e:
        logger.error(f"Error updating attendance for {player_id}: {e}")
        raise StoreUnavailable("saving attendance", e) from e
    if not result.data:
        raise StoreUnavailable("saving attendance")
    return MatchSession.from_row(result.data[0])
