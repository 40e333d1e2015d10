"""Pytest configuration and fixtures.

``FakeClient`` stands in for the Supabase client: it implements the fluent
table API the pelada modules use (select/insert/update/delete, eq/ilike/in_,
order/limit, execute), enforces the unique keys the app relies on by raising
postgrest ``APIError`` with code 23505, and can be told to fail specific
operations.
"""
import copy
import itertools
import re
from types import SimpleNamespace

import pytest
from postgrest.exceptions import APIError

from pelada.players import Player

UNIQUE_KEYS = {
    "players": [("nickname",)],
    "votes": [("voter_id", "match_id")],
    "resenha_confirmations": [("player_id", "month_year")],
}


class FakeQuery:
    def __init__(self, client, table):
        self.client = client
        self.table = table
        self.op = "select"
        self.payload = None
        self.filters = []
        self.eq_filters = {}
        self.order_by = None
        self.limit_to = None

    # --- operations ---

    def select(self, columns="*"):
        self.op = "select"
        return self

    def insert(self, payload):
        self.op = "insert"
        self.payload = payload
        return self

    def update(self, patch):
        self.op = "update"
        self.payload = patch
        return self

    def delete(self):
        self.op = "delete"
        return self

    # --- filters ---

    def eq(self, column, value):
        self.eq_filters[column] = value
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def ilike(self, column, pattern):
        regex = "^" + re.escape(pattern).replace("%", ".*").replace("_", ".") + "$"
        self.filters.append(lambda row: re.match(regex, str(row.get(column, "")), re.IGNORECASE) is not None)
        return self

    def in_(self, column, values):
        values = list(values)
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def order(self, column, desc=False):
        self.order_by = (column, desc)
        return self

    def limit(self, count):
        self.limit_to = count
        return self

    # --- execution ---

    def _matches(self, row):
        return all(f(row) for f in self.filters)

    def execute(self):
        self.client.calls.append((self.table, self.op, dict(self.eq_filters)))
        self.client.check_failure(self.table, self.op, self.eq_filters)
        rows = self.client.tables.setdefault(self.table, [])

        if self.op == "select":
            found = [copy.deepcopy(r) for r in rows if self._matches(r)]
            if self.order_by:
                column, desc = self.order_by
                found.sort(key=lambda r: (r.get(column) is None, r.get(column) or ""), reverse=desc)
            if self.limit_to is not None:
                found = found[: self.limit_to]
            return SimpleNamespace(data=found)

        if self.op == "insert":
            new_rows = self.payload if isinstance(self.payload, list) else [self.payload]
            inserted = []
            for new in new_rows:
                row = copy.deepcopy(new)
                row.setdefault("id", self.client.next_id(self.table))
                self.client.check_unique(self.table, row)
                rows.append(row)
                inserted.append(copy.deepcopy(row))
            return SimpleNamespace(data=inserted)

        if self.op == "update":
            updated = []
            for row in rows:
                if self._matches(row):
                    row.update(copy.deepcopy(self.payload))
                    updated.append(copy.deepcopy(row))
            return SimpleNamespace(data=updated)

        if self.op == "delete":
            removed = [r for r in rows if self._matches(r)]
            self.client.tables[self.table] = [r for r in rows if not self._matches(r)]
            return SimpleNamespace(data=removed)

        raise AssertionError(f"unsupported op {self.op}")


class FakeClient:
    """In-memory Supabase client."""

    def __init__(self, tables=None):
        self.tables = {name: [dict(r) for r in rows] for name, rows in (tables or {}).items()}
        self.calls = []
        self._failures = []
        self._ids = itertools.count(1000)

    def table(self, name):
        return FakeQuery(self, name)

    def rows(self, name):
        return self.tables.get(name, [])

    def row(self, name, row_id):
        return next(r for r in self.rows(name) if r.get("id") == row_id)

    def next_id(self, table):
        return f"{table}-{next(self._ids)}"

    def fail(self, table, op, error=None, **match):
        """Make ``op`` on ``table`` raise, optionally only for matching ``eq`` filters."""
        self._failures.append((table, op, match, error or ConnectionError("store unreachable")))

    def check_failure(self, table, op, eq_filters):
        for f_table, f_op, match, error in self._failures:
            if f_table == table and f_op == op and all(eq_filters.get(k) == v for k, v in match.items()):
                raise error

    def check_unique(self, table, row):
        for key in UNIQUE_KEYS.get(table, ()):
            value = tuple(row.get(k) for k in key)
            if any(tuple(r.get(k) for k in key) == value for r in self.rows(table)):
                raise APIError({
                    "message": f'duplicate key value violates unique constraint "{table}_{"_".join(key)}_key"',
                    "code": "23505",
                    "hint": None,
                    "details": None,
                })


def player_row(player_id, nickname, **fields):
    row = {
        "id": player_id,
        "nickname": nickname,
        "name": nickname.title(),
        "password": "1234",
        "position": "Linha",
        "matches_played": 0,
        "goals": 0,
        "assists": 0,
        "best_votes": 0,
        "worst_votes": 0,
        "moral_score": 50,
        "badges": ["b1"],
        "debt": 0,
        "is_paid": True,
    }
    row.update(fields)
    return row


NICKNAMES = ["tonoli", "zeca", "bira", "dudu", "marcao", "pelezinho",
             "tiao", "juninho", "careca", "baixinho", "neguinho", "alemao"]


@pytest.fixture
def player_rows():
    return [player_row(f"p{i}", nick) for i, nick in enumerate(NICKNAMES, start=1)]


@pytest.fixture
def session_row():
    return {
        "id": 1,
        "status": "idle",
        "match_day": 1,
        "manual_voting_status": "auto",
        "players_present": [],
    }


@pytest.fixture
def client(player_rows, session_row):
    return FakeClient({
        "players": player_rows,
        "sessions": [session_row],
        "votes": [],
        "finances": [{"id": 1, "total_balance": 300.0, "goals": []}],
        "resenha_confirmations": [],
        "resenha_messages": [],
        "humiliations": [],
        "notifications": [],
    })


@pytest.fixture
def admin(client):
    return Player.from_row(client.row("players", "p1"), admin_nicknames=("tonoli",))


@pytest.fixture
def player(client):
    return Player.from_row(client.row("players", "p2"))


@pytest.fixture
def set_session(client):
    """Overwrite columns of the session row directly in the store."""
    def _set(**fields):
        client.row("sessions", 1).update(fields)
    return _set
