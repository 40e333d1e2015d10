import pytest

from pelada.errors import InvalidTransition, NotAuthorized, SessionWriteFailed, StoreUnavailable
from pelada.lifecycle import (
    CLOSE_VOTING,
    END_MATCH,
    FORCE_VOTING,
    OPEN_CALL,
    RESET_CYCLE,
    START_MATCH,
    available_targets,
    resolve_action,
    set_match_weekday,
    set_voting_override,
    transition,
)
from pelada.session import SessionStatus, VotingOverride


def test_full_weekly_cycle(client, admin):
    steps = [
        (SessionStatus.OPEN_CALL, OPEN_CALL),
        (SessionStatus.IN_PROGRESS, START_MATCH),
        (SessionStatus.VOTING_OPEN, END_MATCH),
        (SessionStatus.FINALIZED, CLOSE_VOTING),
        (SessionStatus.IDLE, RESET_CYCLE),
    ]
    for target, action in steps:
        result = transition(client, admin, target)
        assert result.action == action
        assert result.session.status is target
        assert client.row("sessions", 1)["status"] == target.value


def test_end_match_can_skip_voting(client, admin, set_session):
    set_session(status="in_progress")
    result = transition(client, admin, SessionStatus.FINALIZED)
    assert result.action == END_MATCH


def test_targets_accept_plain_strings(client, admin):
    assert transition(client, admin, "open_call").session.status is SessionStatus.OPEN_CALL


def test_non_admin_cannot_transition(client, player):
    with pytest.raises(NotAuthorized):
        transition(client, player, SessionStatus.OPEN_CALL)
    assert client.row("sessions", 1)["status"] == "idle"


def test_invalid_transition_leaves_status(client, admin):
    with pytest.raises(InvalidTransition):
        transition(client, admin, SessionStatus.IN_PROGRESS)
    assert client.row("sessions", 1)["status"] == "idle"


@pytest.mark.parametrize("status", ["idle", "open_call", "in_progress", "finalized", "voting_open"])
def test_voting_can_be_forced_from_any_status(client, admin, set_session, status):
    set_session(status=status)
    result = transition(client, admin, SessionStatus.VOTING_OPEN)
    assert result.session.status is SessionStatus.VOTING_OPEN
    expected = END_MATCH if status == "in_progress" else FORCE_VOTING
    assert result.action == expected


def test_resolve_action_table():
    assert resolve_action(SessionStatus.IDLE, SessionStatus.OPEN_CALL) == OPEN_CALL
    assert resolve_action(SessionStatus.VOTING_OPEN, SessionStatus.FINALIZED) == CLOSE_VOTING
    with pytest.raises(InvalidTransition):
        resolve_action(SessionStatus.FINALIZED, SessionStatus.OPEN_CALL)


def test_available_targets():
    assert available_targets(SessionStatus.IDLE) == [SessionStatus.OPEN_CALL, SessionStatus.VOTING_OPEN]
    assert available_targets(SessionStatus.IN_PROGRESS) == [SessionStatus.VOTING_OPEN, SessionStatus.FINALIZED]
    assert available_targets(SessionStatus.VOTING_OPEN) == [SessionStatus.FINALIZED]


def test_start_match_counts_present_players_once(client, admin, set_session):
    set_session(status="open_call", players_present=["p2", "p3"])

    result = transition(client, admin, SessionStatus.IN_PROGRESS)

    assert result.warnings == []
    assert client.row("players", "p2")["matches_played"] == 1
    assert client.row("players", "p3")["matches_played"] == 1
    assert client.row("players", "p4")["matches_played"] == 0
    # first match unlocks the debut badge
    assert "pres1" in client.row("players", "p2")["badges"]
    assert result.unlocked == {"p2": ["pres1"], "p3": ["pres1"]}


def test_other_transitions_do_not_touch_players(client, admin, set_session):
    set_session(status="in_progress", players_present=["p2"])
    assert transition(client, admin, SessionStatus.VOTING_OPEN).unlocked == {}
    transition(client, admin, SessionStatus.FINALIZED)
    assert client.row("players", "p2")["matches_played"] == 0


def test_failed_write_has_no_side_effects(client, admin, set_session):
    set_session(status="open_call", players_present=["p2", "p3"])
    client.fail("sessions", "update")

    with pytest.raises(SessionWriteFailed) as excinfo:
        transition(client, admin, SessionStatus.IN_PROGRESS)

    assert excinfo.value.action == START_MATCH
    assert excinfo.value.session.status is SessionStatus.OPEN_CALL
    assert client.row("sessions", 1)["status"] == "open_call"
    assert client.row("players", "p2")["matches_played"] == 0
    assert client.row("players", "p3")["matches_played"] == 0


def test_unreadable_session_blocks_transition(client, admin):
    client.fail("sessions", "select", id=1)
    with pytest.raises(StoreUnavailable):
        transition(client, admin, SessionStatus.OPEN_CALL)


def test_failed_write_reconcile_unreachable(client, admin):
    client.fail("sessions", "update")
    original_check = client.check_failure
    reads = []

    def fail_second_read(table, op, eq_filters):
        if table == "sessions" and op == "select":
            reads.append(1)
            if len(reads) > 1:
                raise ConnectionError("gone")
        original_check(table, op, eq_filters)

    client.check_failure = fail_second_read
    with pytest.raises(SessionWriteFailed) as excinfo:
        transition(client, admin, SessionStatus.OPEN_CALL)
    assert excinfo.value.session is None


def test_counter_failure_is_reported_not_raised(client, admin, set_session):
    set_session(status="open_call", players_present=["p2", "p3"])
    client.fail("players", "update", id="p3")

    result = transition(client, admin, SessionStatus.IN_PROGRESS)

    assert result.session.status is SessionStatus.IN_PROGRESS
    assert [w.player_id for w in result.warnings] == ["p3"]
    assert client.row("players", "p2")["matches_played"] == 1
    assert client.row("players", "p3")["matches_played"] == 0


def test_reset_clears_roster_and_override(client, admin, set_session):
    set_session(status="finalized", players_present=["p2", "p3"], manual_voting_status="open")
    result = transition(client, admin, SessionStatus.IDLE)
    assert result.session.players_present == ()
    assert result.session.manual_voting_override is VotingOverride.AUTO
    assert client.row("sessions", 1)["players_present"] == []


def test_set_voting_override_keeps_status(client, admin, set_session):
    set_session(status="in_progress")
    session = set_voting_override(client, admin, VotingOverride.FORCE_OPEN)
    assert session.manual_voting_override is VotingOverride.FORCE_OPEN
    assert session.status is SessionStatus.IN_PROGRESS
    assert client.row("sessions", 1)["manual_voting_status"] == "open"


def test_set_voting_override_requires_admin(client, player):
    with pytest.raises(NotAuthorized):
        set_voting_override(client, player, "closed")


def test_set_voting_override_write_failure(client, admin):
    client.fail("sessions", "update")
    with pytest.raises(SessionWriteFailed):
        set_voting_override(client, admin, "closed")
    assert client.row("sessions", 1)["manual_voting_status"] == "auto"


def test_set_match_weekday(client, admin):
    session = set_match_weekday(client, admin, 3)
    assert session.match_weekday == 3
    assert client.row("sessions", 1)["match_day"] == 3


@pytest.mark.parametrize("weekday", [-1, 7])
def test_set_match_weekday_rejects_out_of_range(client, admin, weekday):
    with pytest.raises(ValueError):
        set_match_weekday(client, admin, weekday)
    assert client.row("sessions", 1)["match_day"] == 1
