"""Player roster access for the pelada app.

This module wraps the ``players`` table: loading the roster, nickname +
password login, registration with a sponsor ("padrinho"), and the small
read-modify-write helpers used by voting, feats and the match lifecycle to
bump counters and the moral score.

Notes:
- Login is a plain nickname/password lookup; it is not meant to be secure.
- The moral score is always clamped to ``[0, 100]`` before it is written.
"""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from pelada.errors import (
    SideEffectPartialFailure,
    StoreUnavailable,
    is_unique_violation,
)

logger = logging.getLogger(__name__)

PLAYERS_TABLE = "players"

MORAL_MIN = 0
MORAL_MAX = 100
STARTING_MORAL = 100
DEFAULT_PHOTO = "https://images.unsplash.com/photo-1552318975-2758c75116bd?auto=format&fit=crop&q=80&w=1000"


class Position(str, Enum):
    GOLEIRO = "Goleiro"
    LINHA = "Linha"


class PlayerStatus(str, Enum):
    HOT = "🔥 Em alta"
    NORMAL = "😐 Normal"
    LOW = "🤡 Em baixa"
    GHOST = "🧊 Sumido"


def clamp_moral(score) -> int:
    """Clamp a moral score into ``[0, 100]``."""
    return max(MORAL_MIN, min(MORAL_MAX, int(score)))


def _parse_id_list(value) -> List[str]:
    """Badges come back either as a JSON string or as a list."""
    if not value:
        return []
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError:
            logger.warning(f"Failed to parse badge list: {value}")
            return []
    return list(value)


@dataclass
class Player:
    id: str
    nickname: str
    name: str = ""
    photo: str = DEFAULT_PHOTO
    position: str = Position.LINHA.value
    matches_played: int = 0
    goals: int = 0
    assists: int = 0
    wins: int = 0
    losses: int = 0
    best_votes: int = 0
    worst_votes: int = 0
    moral_score: int = STARTING_MORAL
    status: str = PlayerStatus.NORMAL.value
    badges: List[str] = field(default_factory=list)
    high_badges: List[str] = field(default_factory=list)
    thought: Optional[str] = None
    debt: float = 0
    is_paid: bool = True
    invited_by: Optional[str] = None
    is_admin: bool = False

    @classmethod
    def from_row(cls, row: Dict, admin_nicknames=()) -> "Player":
        nickname = row.get("nickname") or ""
        admins = {n.lower() for n in admin_nicknames}
        return cls(
            id=row["id"],
            nickname=nickname,
            name=row.get("name") or "",
            photo=row.get("photo") or DEFAULT_PHOTO,
            position=row.get("position") or Position.LINHA.value,
            matches_played=row.get("matches_played") or 0,
            goals=row.get("goals") or 0,
            assists=row.get("assists") or 0,
            wins=row.get("wins") or 0,
            losses=row.get("losses") or 0,
            best_votes=row.get("best_votes") or 0,
            worst_votes=row.get("worst_votes") or 0,
            moral_score=clamp_moral(row.get("moral_score") if row.get("moral_score") is not None else STARTING_MORAL),
            status=row.get("status") or PlayerStatus.NORMAL.value,
            badges=_parse_id_list(row.get("badges")),
            high_badges=_parse_id_list(row.get("high_badges")),
            thought=row.get("thought"),
            debt=row.get("debt") or 0,
            is_paid=bool(row.get("is_paid", True)),
            invited_by=row.get("invited_by"),
            is_admin=bool(row.get("is_admin")) or nickname.lower() in admins,
        )


# === Roster ===

def fetch_players(conn, hidden_nicknames=(), admin_nicknames=()) -> List[Player]:
    """Load every player except hidden system accounts.

    Raises:
        StoreUnavailable: If the roster cannot be read.
    """
    try:
        result = conn.table(PLAYERS_TABLE).select("*").execute()
    except Exception as e:
        logger.error(f"Error fetching players: {e}")
        raise StoreUnavailable("loading players", e) from e
    hidden = set(hidden_nicknames)
    return [
        Player.from_row(row, admin_nicknames)
        for row in result.data or []
        if row.get("nickname") not in hidden
    ]


def _fetch_row(conn, player_id) -> Optional[Dict]:
    result = conn.table(PLAYERS_TABLE).select("*").eq("id", player_id).execute()
    return result.data[0] if result.data else None


def players_by_id(players) -> Dict[str, Player]:
    return {p.id: p for p in players}


def season_highlights(players) -> Tuple[Optional[Player], Optional[Player]]:
    """Most voted best and worst players; None while nobody has a vote."""
    best = max(players, key=lambda p: p.best_votes, default=None)
    worst = max(players, key=lambda p: p.worst_votes, default=None)
    if best is not None and best.best_votes <= 0:
        best = None
    if worst is not None and worst.worst_votes <= 0:
        worst = None
    return best, worst


# === Login & Registration ===

def authenticate(conn, nickname: str, password: str, admin_nicknames=()) -> Optional[Player]:
    """Return the player matching nickname (case-insensitive) and password.

    Returns:
        Optional[Player]: The player, or None when the nickname is unknown
            or the password does not match.

    Raises:
        StoreUnavailable: If the lookup fails.
    """
    nickname = (nickname or "").strip()
    password = (password or "").strip()
    if not nickname or not password:
        return None
    try:
        result = conn.table(PLAYERS_TABLE).select("*").ilike("nickname", nickname).execute()
    except Exception as e:
        logger.error(f"Error looking up nickname {nickname}: {e}")
        raise StoreUnavailable("checking the login", e) from e
    if not result.data:
        return None
    row = result.data[0]
    if row.get("password") != password:
        logger.info(f"Wrong password for {nickname}")
        return None
    return Player.from_row(row, admin_nicknames)


def register_player(conn, *, nickname, name, password, position=Position.LINHA.value,
                    invited_by=None, photo=None, reserved_nicknames=(),
                    founder_nicknames=(), admin_nicknames=()) -> Player:
    """Create a new player row.

    Founders register without a sponsor and receive the founder badge;
    everyone else needs an existing player as ``invited_by``.

    Raises:
        ValueError: For reserved or taken nicknames, missing fields or an
            unknown sponsor.
        StoreUnavailable: If the store cannot be reached.
    """
    nickname = (nickname or "").strip()
    if not nickname:
        raise ValueError("Nickname is required")
    if nickname.lower() in {n.lower() for n in reserved_nicknames}:
        raise ValueError(f"Nickname '{nickname}' is reserved")

    is_founder = nickname.lower() in {n.lower() for n in founder_nicknames}
    sponsor = (invited_by or "").strip()
    if not is_founder:
        if not name or not sponsor or not password:
            raise ValueError("Name, sponsor and password are required")
        try:
            found = conn.table(PLAYERS_TABLE).select("nickname").eq("nickname", sponsor).execute()
        except Exception as e:
            logger.error(f"Error validating sponsor {sponsor}: {e}")
            raise StoreUnavailable("validating the sponsor", e) from e
        if not found.data:
            raise ValueError(f"Sponsor '{sponsor}' is not part of the pelada")

    from pelada.badges import FOUNDER_BADGE, NEWCOMER_BADGE

    row = {
        "name": name or nickname,
        "nickname": nickname,
        "password": password,
        "photo": photo or DEFAULT_PHOTO,
        "position": position,
        "invited_by": sponsor or None,
        "matches_played": 0,
        "goals": 0,
        "assists": 0,
        "best_votes": 0,
        "worst_votes": 0,
        "moral_score": STARTING_MORAL,
        "status": PlayerStatus.NORMAL.value,
        "badges": [NEWCOMER_BADGE, FOUNDER_BADGE] if is_founder else [NEWCOMER_BADGE],
    }
    try:
        result = conn.table(PLAYERS_TABLE).insert(row).execute()
    except Exception as e:
        if is_unique_violation(e):
            raise ValueError(f"Nickname '{nickname}' is already taken") from e
        logger.error(f"Error registering {nickname}: {e}")
        raise StoreUnavailable("registering the player", e) from e
    return Player.from_row(result.data[0], admin_nicknames)


# === Counters ===

def adjust_moral(conn, player_id, delta: int, counter: Optional[str] = None) -> int:
    """Add ``delta`` to a player's moral score, clamped, and bump ``counter``.

    Args:
        conn: Supabase client.
        player_id: Target player.
        delta (int): Moral change (may be negative).
        counter (str, optional): Integer column to increment by one,
            e.g. ``"best_votes"``.

    Returns:
        int: The moral score written.

    Raises:
        SideEffectPartialFailure: If the player is missing or the update fails.
    """
    try:
        row = _fetch_row(conn, player_id)
        if row is None:
            raise LookupError(f"player {player_id} not found")
        current = row.get("moral_score")
        new_score = clamp_moral((STARTING_MORAL if current is None else current) + delta)
        patch = {"moral_score": new_score}
        if counter:
            patch[counter] = (row.get(counter) or 0) + 1
        conn.table(PLAYERS_TABLE).update(patch).eq("id", player_id).execute()
    except Exception as e:
        logger.error(f"Error adjusting moral of {player_id} by {delta}: {e}")
        raise SideEffectPartialFailure(player_id, f"moral {delta:+d}", e) from e
    return new_score


def increment_matches_played(conn, player_ids) -> Tuple[List[Dict], List[SideEffectPartialFailure]]:
    """Add one played match to each id in ``player_ids``.

    Each player is updated independently; a failure for one player is
    collected and does not stop the others.

    Returns:
        tuple: (updated rows, failures)
    """
    updated, failures = [], []
    for player_id in dict.fromkeys(player_ids):
        try:
            row = _fetch_row(conn, player_id)
            if row is None:
                raise LookupError(f"player {player_id} not found")
            result = (
                conn.table(PLAYERS_TABLE)
                .update({"matches_played": (row.get("matches_played") or 0) + 1})
                .eq("id", player_id)
                .execute()
            )
            updated.extend(result.data or [])
        except Exception as e:
            logger.error(f"Error incrementing matches played for {player_id}: {e}")
            failures.append(SideEffectPartialFailure(player_id, "matches_played +1", e))
    return updated, failures


def update_profile(conn, player_id, **fields) -> bool:
    """Update free-text profile fields (thought, photo, highlighted badges)."""
    allowed = {k: v for k, v in fields.items() if k in ("thought", "photo", "high_badges", "name")}
    if not allowed:
        return False
    try:
        conn.table(PLAYERS_TABLE).update(allowed).eq("id", player_id).execute()
        return True
    except Exception as e:
        logger.error(f"Error updating profile for {player_id}: {e}")
        return False
