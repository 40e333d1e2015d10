from datetime import datetime

import pytest

from pelada.errors import NotAuthorized, StoreUnavailable
from pelada.session import (
    MatchSession,
    SessionStatus,
    VotingOverride,
    fetch_session,
    is_list_closed,
    is_voting_open,
    split_roster,
    toggle_attendance,
    with_attendance,
)

MONDAY_2130 = datetime(2026, 10, 19, 21, 30)
MONDAY_2059 = datetime(2026, 10, 19, 20, 59)
TUESDAY_2200 = datetime(2026, 10, 20, 22, 0)


def make_session(status=SessionStatus.VOTING_OPEN, override=VotingOverride.AUTO, weekday=1):
    return MatchSession(status=status, match_weekday=weekday, manual_voting_override=override)


# === Voting window ===

@pytest.mark.parametrize("status, now, expected", [
    (SessionStatus.VOTING_OPEN, MONDAY_2130, True),
    (SessionStatus.FINALIZED, MONDAY_2130, True),
    (SessionStatus.VOTING_OPEN, MONDAY_2059, False),
    (SessionStatus.VOTING_OPEN, datetime(2026, 10, 19, 21, 0), True),
    (SessionStatus.VOTING_OPEN, datetime(2026, 10, 19, 23, 59, 59), True),
    (SessionStatus.VOTING_OPEN, TUESDAY_2200, False),
    (SessionStatus.IN_PROGRESS, MONDAY_2130, False),
    (SessionStatus.OPEN_CALL, MONDAY_2130, False),
    (SessionStatus.IDLE, MONDAY_2130, False),
])
def test_automatic_window(status, now, expected):
    assert is_voting_open(make_session(status), now) is expected


def test_forced_open_ignores_status_and_clock():
    session = make_session(SessionStatus.IDLE, VotingOverride.FORCE_OPEN)
    assert is_voting_open(session, datetime(2026, 10, 21, 10, 0))


def test_forced_closed_wins_inside_the_window():
    session = make_session(SessionStatus.VOTING_OPEN, VotingOverride.FORCE_CLOSED)
    assert not is_voting_open(session, MONDAY_2130)


def test_window_follows_match_weekday():
    wednesday = datetime(2026, 10, 21, 21, 30)
    assert is_voting_open(make_session(weekday=3), wednesday)
    assert not is_voting_open(make_session(weekday=3), MONDAY_2130)


def test_custom_opening_hour():
    assert is_voting_open(make_session(), MONDAY_2059, opens_hour=20)


# === Row mapping ===

def test_from_row_maps_columns():
    session = MatchSession.from_row({
        "id": 1,
        "status": "voting_open",
        "match_day": 3,
        "manual_voting_status": "closed",
        "players_present": ["p1", "p2"],
    })
    assert session.status is SessionStatus.VOTING_OPEN
    assert session.match_weekday == 3
    assert session.manual_voting_override is VotingOverride.FORCE_CLOSED
    assert session.players_present == ("p1", "p2")


@pytest.mark.parametrize("raw, expected", [
    ("votacao_aberta", SessionStatus.VOTING_OPEN),
    ("em_jogo", SessionStatus.IN_PROGRESS),
    ("partida", SessionStatus.OPEN_CALL),
    ("finalizado", SessionStatus.FINALIZED),
    ("vago", SessionStatus.IDLE),
    ("something-else", SessionStatus.IDLE),
    (None, SessionStatus.IDLE),
])
def test_from_row_parses_legacy_and_unknown_status(raw, expected):
    assert MatchSession.from_row({"id": 1, "status": raw}).status is expected


def test_from_row_defaults_and_dedupes():
    session = MatchSession.from_row({"id": 1, "status": "idle", "players_present": ["p1", "p2", "p1"]})
    assert session.match_weekday == 1
    assert session.manual_voting_override is VotingOverride.AUTO
    assert session.players_present == ("p1", "p2")


def test_to_row_round_trips_columns():
    row = make_session().to_row()
    assert row == {
        "status": "voting_open",
        "match_day": 1,
        "manual_voting_status": "auto",
        "players_present": [],
    }


# === Roster ===

def test_split_roster_keeps_confirmation_order():
    ids = [f"p{i}" for i in range(1, 18)]
    starters, waiting = split_roster(ids, 15)
    assert starters == ids[:15]
    assert waiting == ["p16", "p17"]


def test_is_list_closed():
    session = MatchSession(players_present=tuple(f"p{i}" for i in range(15)))
    assert is_list_closed(session, 15)
    assert not is_list_closed(session, 16)


def test_with_attendance_is_idempotent():
    session = MatchSession(players_present=("p1",))
    assert with_attendance(session, "p1", True) is session
    assert with_attendance(session, "p2", True).players_present == ("p1", "p2")
    assert with_attendance(session, "p1", False).players_present == ()


# === Store access ===

def test_fetch_session(client):
    session = fetch_session(client)
    assert session.status is SessionStatus.IDLE
    assert session.id == 1


def test_fetch_session_missing_row(client):
    with pytest.raises(StoreUnavailable):
        fetch_session(client, session_id=99)


def test_fetch_session_read_failure(client):
    client.fail("sessions", "select")
    with pytest.raises(StoreUnavailable):
        fetch_session(client)


def test_toggle_attendance_confirms_then_withdraws(client, player, set_session):
    set_session(status="open_call", players_present=["p3"])

    session = toggle_attendance(client, player, player.id)
    assert session.players_present == ("p3", "p2")
    assert client.row("sessions", 1)["players_present"] == ["p3", "p2"]

    session = toggle_attendance(client, player, player.id)
    assert session.players_present == ("p3",)


def test_toggle_attendance_only_for_self(client, player):
    with pytest.raises(NotAuthorized):
        toggle_attendance(client, player, "p3")
    assert client.row("sessions", 1)["players_present"] == []


def test_toggle_attendance_write_failure_keeps_list(client, player, set_session):
    set_session(players_present=["p3"])
    client.fail("sessions", "update")
    with pytest.raises(StoreUnavailable):
        toggle_attendance(client, player, player.id)
    assert client.row("sessions", 1)["players_present"] == ["p3"]
