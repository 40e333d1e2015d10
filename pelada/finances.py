"""Shared fund ("caixinha") of the pelada.

Covers the single ``finances`` row (balance and savings goals), per-player
dues on the ``players`` table, and the monthly barbecue confirmation that is
offered on the last match weekday of each month.
"""

import logging
import secrets
from dataclasses import dataclass, field
from typing import Dict, List

from pelada.errors import StoreUnavailable, is_unique_violation
from pelada.players import PLAYERS_TABLE

logger = logging.getLogger(__name__)

FINANCES_TABLE = "finances"
CONFIRMATIONS_TABLE = "resenha_confirmations"


@dataclass
class FinancialGoal:
    id: str
    title: str
    target: float
    current: float = 0

    @property
    def progress(self) -> float:
        """Completion between 0 and 1."""
        if not self.target:
            return 0.0
        return max(0.0, min(1.0, self.current / self.target))


@dataclass
class GlobalFinances:
    id: int = 1
    total_balance: float = 0
    goals: List[FinancialGoal] = field(default_factory=list)

    @classmethod
    def from_row(cls, row: Dict) -> "GlobalFinances":
        goals = [
            FinancialGoal(
                id=str(g.get("id")),
                title=g.get("title", ""),
                target=float(g.get("target") or 0),
                current=float(g.get("current") or 0),
            )
            for g in row.get("goals") or []
        ]
        return cls(id=row.get("id", 1), total_balance=float(row.get("total_balance") or 0), goals=goals)


def fetch_finances(conn, finances_id: int = 1) -> GlobalFinances:
    try:
        result = conn.table(FINANCES_TABLE).select("*").eq("id", finances_id).execute()
    except Exception as e:
        logger.error(f"Error fetching finances: {e}")
        raise StoreUnavailable("loading the fund", e) from e
    if not result.data:
        return GlobalFinances(id=finances_id)
    return GlobalFinances.from_row(result.data[0])


def update_balance(conn, balance: float, finances_id: int = 1) -> bool:
    try:
        conn.table(FINANCES_TABLE).update({"total_balance": float(balance)}).eq("id", finances_id).execute()
        return True
    except Exception as e:
        logger.error(f"Error updating balance: {e}")
        return False


def add_goal(conn, finances: GlobalFinances, title: str, target: float) -> bool:
    """Append a savings goal to the fund."""
    if not title or not target:
        return False
    goals = [
        {"id": g.id, "title": g.title, "target": g.target, "current": g.current}
        for g in finances.goals
    ]
    goals.append({"id": secrets.token_hex(5), "title": title, "target": float(target), "current": 0})
    try:
        conn.table(FINANCES_TABLE).update({"goals": goals}).eq("id", finances.id).execute()
        return True
    except Exception as e:
        logger.error(f"Error adding goal {title}: {e}")
        return False


# === Dues ===

def defaulters(players) -> list:
    """Players who have not paid and still owe something."""
    return [p for p in players if not p.is_paid and (p.debt or 0) > 0]


def pending_total(players) -> float:
    return sum(p.debt for p in defaulters(players))


def toggle_paid(conn, player, monthly_fee: float = 25.0) -> bool:
    """Flip a player's paid flag: paying clears the debt, unpaying sets the monthly fee."""
    paid = not player.is_paid
    try:
        conn.table(PLAYERS_TABLE).update(
            {"is_paid": paid, "debt": 0 if paid else monthly_fee}
        ).eq("id", player.id).execute()
        return True
    except Exception as e:
        logger.error(f"Error toggling payment for {player.id}: {e}")
        return False


def month_key(now) -> str:
    """``YYYY-MM`` of the local date, used to key monthly confirmations."""
    return f"{now.year:04d}-{now.month:02d}"


def has_confirmed_barbecue(conn, player_id, month: str) -> bool:
    try:
        result = (
            conn.table(CONFIRMATIONS_TABLE)
            .select("id")
            .eq("player_id", player_id)
            .eq("month_year", month)
            .execute()
        )
    except Exception as e:
        logger.error(f"Error checking barbecue confirmation for {player_id}: {e}")
        return False
    return bool(result.data)


def confirm_barbecue(conn, player, month: str, fee: float = 15.0) -> bool:
    """Confirm the monthly barbecue and add its fee to the player's debt.

    A second confirmation in the same month is rejected by the store and
    does not charge again.

    Returns:
        bool: True when newly confirmed.
    """
    try:
        conn.table(CONFIRMATIONS_TABLE).insert({"player_id": player.id, "month_year": month}).execute()
    except Exception as e:
        if is_unique_violation(e):
            return False
        logger.error(f"Error confirming barbecue for {player.id}: {e}")
        raise StoreUnavailable("confirming the barbecue", e) from e
    try:
        conn.table(PLAYERS_TABLE).update(
            {"debt": (player.debt or 0) + fee, "is_paid": False}
        ).eq("id", player.id).execute()
    except Exception as e:
        logger.error(f"Barbecue confirmed but debt not updated for {player.id}: {e}")
    return True
