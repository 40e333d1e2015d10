"""
================================================================================
SOCIAL FEED
================================================================================

Purpose: The "Mural de Feitos": chat messages, feats (humiliations) reported
by players and confirmed by admins, special events recorded by admins, and
per-player notifications.

Moral effects:
- Confirmed feat: performer +10, victim -10
- Special event: puskas +15, vexame -15, anything else 0
================================================================================
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional

from pelada.errors import NotAuthorized, SideEffectPartialFailure, StoreUnavailable
from pelada.players import PLAYERS_TABLE, adjust_moral, clamp_moral

logger = logging.getLogger(__name__)

MESSAGES_TABLE = "resenha_messages"
FEATS_TABLE = "humiliations"
NOTIFICATIONS_TABLE = "notifications"

FEAT_DELTA = 10
SPECIAL_EVENT_DELTAS = {"puskas": 15, "vexame": -15, "quebra_bola": 0, "resenha": 0}

PENDING = "pending"
CONFIRMED = "confirmed"
REJECTED = "rejected"


@dataclass
class FeedItem:
    kind: str
    created_at: str
    author_id: Optional[str]
    text: str
    target_id: Optional[str] = None


# =============================================================================
# MESSAGES
# =============================================================================

def fetch_messages(conn) -> List[Dict]:
    try:
        result = (
            conn.table(MESSAGES_TABLE)
            .select("*, players(nickname, photo)")
            .order("created_at")
            .execute()
        )
    except Exception as e:
        logger.error(f"Error fetching feed messages: {e}")
        raise StoreUnavailable("loading the feed", e) from e
    return result.data or []


def post_message(conn, author, text: str) -> bool:
    text = (text or "").strip()
    if not text:
        return False
    try:
        conn.table(MESSAGES_TABLE).insert({"player_id": author.id, "text": text}).execute()
        return True
    except Exception as e:
        logger.error(f"Error posting message for {author.id}: {e}")
        return False


# =============================================================================
# FEATS
# =============================================================================

def report_feat(conn, performer, victim_id, feat_type: str, description: str) -> bool:
    """Report a feat for admin review; it has no effect until confirmed."""
    if not victim_id or not description:
        return False
    try:
        conn.table(FEATS_TABLE).insert({
            "performer_id": performer.id,
            "victim_id": victim_id,
            "type": feat_type,
            "description": description,
            "status": PENDING,
        }).execute()
        return True
    except Exception as e:
        logger.error(f"Error reporting feat by {performer.id}: {e}")
        return False


def fetch_feats(conn, status: str) -> List[Dict]:
    try:
        result = (
            conn.table(FEATS_TABLE)
            .select("*")
            .eq("status", status)
            .order("created_at", desc=(status == PENDING))
            .execute()
        )
    except Exception as e:
        logger.error(f"Error fetching {status} feats: {e}")
        raise StoreUnavailable("loading feats", e) from e
    return result.data or []


def review_feat(conn, actor, feat: Dict, approve: bool) -> List[SideEffectPartialFailure]:
    """Confirm or reject a pending feat.

    Returns:
        list: Moral update failures (the review itself is already saved).

    Raises:
        NotAuthorized: If ``actor`` is not an admin.
        StoreUnavailable: If the status change cannot be saved.
    """
    if actor is None or not actor.is_admin:
        raise NotAuthorized("Only admins can review feats")
    status = CONFIRMED if approve else REJECTED
    try:
        conn.table(FEATS_TABLE).update({"status": status}).eq("id", feat["id"]).execute()
    except Exception as e:
        logger.error(f"Error reviewing feat {feat.get('id')}: {e}")
        raise StoreUnavailable("reviewing the feat", e) from e
    if not approve:
        return []

    warnings = []
    for player_id, delta in ((feat.get("performer_id"), FEAT_DELTA), (feat.get("victim_id"), -FEAT_DELTA)):
        try:
            adjust_moral(conn, player_id, delta)
        except SideEffectPartialFailure as warning:
            warnings.append(warning)
    return warnings


# =============================================================================
# SPECIAL EVENTS
# =============================================================================

def record_special_event(conn, actor, player, event_type: str, description: str, now: datetime) -> bool:
    """Append a special event to a player's record and apply its moral effect."""
    if actor is None or not actor.is_admin:
        raise NotAuthorized("Only admins can record special events")
    try:
        result = conn.table(PLAYERS_TABLE).select("special_events, moral_score").eq("id", player.id).execute()
        row = result.data[0] if result.data else {}
        events = list(row.get("special_events") or [])
        events.append({
            "id": secrets.token_hex(5),
            "player_id": player.id,
            "type": event_type,
            "description": description,
            "date": now.isoformat(),
        })
        current = row.get("moral_score")
        if current is None:
            current = player.moral_score
        conn.table(PLAYERS_TABLE).update({
            "special_events": events,
            "moral_score": clamp_moral(current + SPECIAL_EVENT_DELTAS.get(event_type, 0)),
        }).eq("id", player.id).execute()
        return True
    except Exception as e:
        logger.error(f"Error recording special event for {player.id}: {e}")
        return False


# =============================================================================
# NOTIFICATIONS
# =============================================================================
# Cosmetic: failures are logged and never surfaced

def fetch_notifications(conn, player_id, limit: int = 20) -> List[Dict]:
    try:
        result = (
            conn.table(NOTIFICATIONS_TABLE)
            .select("*")
            .eq("player_id", player_id)
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return result.data or []
    except Exception as e:
        logger.warning(f"Could not load notifications for {player_id}: {e}")
        return []


def unread_count(notifications) -> int:
    return sum(1 for n in notifications if not n.get("is_read"))


def mark_notifications_read(conn, player_id) -> None:
    try:
        conn.table(NOTIFICATIONS_TABLE).update({"is_read": True}).eq("player_id", player_id).execute()
    except Exception as e:
        logger.warning(f"Could not mark notifications read for {player_id}: {e}")


# =============================================================================
# TIMELINE
# =============================================================================

def build_timeline(messages, confirmed_feats) -> List[FeedItem]:
    """Merge chat messages and confirmed feats in chronological order."""
    items = [
        FeedItem(kind="chat", created_at=m.get("created_at") or "", author_id=m.get("player_id"), text=m.get("text", ""))
        for m in messages
    ]
    items += [
        FeedItem(
            kind="feat",
            created_at=f.get("created_at") or "",
            author_id=f.get("performer_id"),
            text=f"{(f.get('type') or '').upper()}: {f.get('description', '')}",
            target_id=f.get("victim_id"),
        )
        for f in confirmed_feats
    ]
    return sorted(items, key=lambda item: item.created_at)
