"""
================================================================================
SESSION CLOCK
================================================================================

Purpose: Pure date/time helpers behind the weekly match cycle: which week's
match a vote belongs to, whether the monthly barbecue prompt is due, and the
countdown targets shown on the voting screen.

All weekdays use the Sunday=0 convention (Sunday=0, Monday=1, ..., Saturday=6),
which is what the ``sessions.match_day`` column stores.

IMPORTANT: every function receives ``now`` from the caller. Dates are taken
from ``now``'s own (local) calendar fields and never converted to UTC, so a
vote cast at 23:30 local time still lands on the local date.
================================================================================
"""

from datetime import date, datetime, time, timedelta

from pelada.config import MONDAY

# =============================================================================
# WEEKDAYS
# =============================================================================


def sunday_weekday(moment) -> int:
    """Weekday of ``moment`` with Sunday=0 ... Saturday=6."""
    return int(moment.strftime("%w"))


def _check_weekday(weekday):
    if not isinstance(weekday, int) or not 0 <= weekday <= 6:
        raise ValueError(f"weekday must be an int between 0 (Sunday) and 6, got {weekday!r}")


# =============================================================================
# MATCH IDENTITY
# =============================================================================


def last_match_date(now: datetime, match_weekday: int) -> date:
    """Local calendar date of the most recent ``match_weekday`` on or before ``now``."""
    _check_weekday(match_weekday)
    delta = (sunday_weekday(now) - match_weekday + 7) % 7
    return now.date() - timedelta(days=delta)


def compute_match_id(now: datetime, match_weekday: int) -> str:
    """Canonical identifier (``YYYY-MM-DD``) of this week's match.

    Two votes cast on different days that both fall back to the same
    match day get the same id and collide on the votes unique key.

    Example:
        >>> compute_match_id(datetime(2026, 10, 21, 9, 0), 1)  # a Wednesday
        '2026-10-19'
    """
    return last_match_date(now, match_weekday).isoformat()


def is_monthly_recurring_due_today(now: datetime, weekday: int = MONDAY) -> bool:
    """True when today is the last ``weekday`` of the current month.

    Used to surface the monthly barbecue dues prompt only.
    """
    _check_weekday(weekday)
    if sunday_weekday(now) != weekday:
        return False
    return (now.date() + timedelta(days=7)).month != now.month


# =============================================================================
# COUNTDOWN TARGETS
# =============================================================================


def next_kickoff(now: datetime, match_weekday: int, kickoff: time) -> datetime:
    """Kickoff of the upcoming match (today's until it has passed)."""
    _check_weekday(match_weekday)
    days_ahead = (match_weekday - sunday_weekday(now) + 7) % 7
    day = now.date() + timedelta(days=days_ahead)
    start = datetime.combine(day, kickoff, tzinfo=now.tzinfo)
    if start < now:
        start += timedelta(days=7)
    return start


def voting_opens_at(now: datetime, match_weekday: int, opens_hour: int) -> datetime:
    """Start of the automatic voting window on the most recent match day."""
    day = last_match_date(now, match_weekday)
    return datetime.combine(day, time(opens_hour, 0), tzinfo=now.tzinfo)


def voting_closes_at(now: datetime, match_weekday: int) -> datetime:
    """Last instant (23:59:59.999999) of the most recent match day."""
    day = last_match_date(now, match_weekday)
    return datetime.combine(day, time.max, tzinfo=now.tzinfo)


def format_countdown(delta: timedelta) -> str:
    """Format a remaining duration as ``"1d 2h 3m 4s"``; negatives show zero.

    Example:
        >>> format_countdown(timedelta(days=1, seconds=3725))
        '1d 1h 2m 5s'
    """
    total = max(0, int(delta.total_seconds()))
    days, rest = divmod(total, 86400)
    hours, rest = divmod(rest, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{days}d {hours}h {minutes}m {seconds}s"
