from pelada.badges import (
    ALL_BADGES,
    BADGES_BY_ID,
    FOUNDER_BADGE,
    NEWCOMER_BADGE,
    STATS_BADGE_MAP,
    assign_stat_badges,
    badges_earned,
    get_badge,
)
from pelada.players import Player


def test_catalog_ids_are_unique_and_complete():
    assert len(BADGES_BY_ID) == len(ALL_BADGES)
    assert NEWCOMER_BADGE in BADGES_BY_ID
    assert FOUNDER_BADGE in BADGES_BY_ID
    for rules in STATS_BADGE_MAP.values():
        for _, badge_id in rules:
            assert badge_id in BADGES_BY_ID


def test_get_badge():
    assert get_badge("h1").name == "Bola de Ouro"
    assert get_badge("nope") is None


def test_badges_earned_by_thresholds():
    player = Player(id="x", nickname="x", goals=10, assists=0, matches_played=5, badges=["b1", "g1a"])
    assert badges_earned(player) == ["g10", "pres1", "pres2"]


def test_nothing_earned_for_fresh_player():
    assert badges_earned(Player(id="x", nickname="x")) == []


def test_assign_stat_badges_persists(client):
    client.row("players", "p2")["goals"] = 1
    player = Player.from_row(client.row("players", "p2"))

    assert assign_stat_badges(client, player) == ["b1", "g1a"]
    assert client.row("players", "p2")["badges"] == ["b1", "g1a"]


def test_assign_stat_badges_no_change_or_failure(client):
    player = Player.from_row(client.row("players", "p2"))
    assert assign_stat_badges(client, player) is None

    client.row("players", "p2")["goals"] = 1
    client.fail("players", "update")
    player = Player.from_row(client.row("players", "p2"))
    assert assign_stat_badges(client, player) is None
    assert client.row("players", "p2")["badges"] == ["b1"]
