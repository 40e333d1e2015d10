from datetime import datetime

import pytest

from pelada.errors import NotAuthorized, StoreUnavailable
from pelada.feed import (
    CONFIRMED,
    PENDING,
    REJECTED,
    build_timeline,
    fetch_feats,
    fetch_messages,
    fetch_notifications,
    mark_notifications_read,
    post_message,
    record_special_event,
    report_feat,
    review_feat,
    unread_count,
)


def test_post_and_fetch_messages(client, player):
    assert post_message(client, player, "  bora jogar  ")
    assert not post_message(client, player, "   ")
    [message] = fetch_messages(client)
    assert message["text"] == "bora jogar"
    assert message["player_id"] == "p2"


def test_fetch_messages_failure(client):
    client.fail("resenha_messages", "select")
    with pytest.raises(StoreUnavailable):
        fetch_messages(client)


def test_report_feat_is_pending(client, player):
    assert report_feat(client, player, "p3", "caneta", "Caneta no meio da roda")
    assert not report_feat(client, player, "p3", "caneta", "")
    [feat] = fetch_feats(client, PENDING)
    assert feat["performer_id"] == "p2"
    assert fetch_feats(client, CONFIRMED) == []


def test_confirming_feat_moves_moral(client, admin, player):
    report_feat(client, player, "p3", "caneta", "Caneta")
    [feat] = fetch_feats(client, PENDING)

    assert review_feat(client, admin, feat, approve=True) == []

    assert client.row("humiliations", feat["id"])["status"] == CONFIRMED
    assert client.row("players", "p2")["moral_score"] == 60
    assert client.row("players", "p3")["moral_score"] == 40


def test_rejecting_feat_keeps_moral(client, admin, player):
    report_feat(client, player, "p3", "caneta", "Caneta")
    [feat] = fetch_feats(client, PENDING)

    review_feat(client, admin, feat, approve=False)

    assert client.row("humiliations", feat["id"])["status"] == REJECTED
    assert client.row("players", "p2")["moral_score"] == 50


def test_only_admins_review(client, player):
    report_feat(client, player, "p3", "caneta", "Caneta")
    [feat] = fetch_feats(client, PENDING)
    with pytest.raises(NotAuthorized):
        review_feat(client, player, feat, approve=True)


def test_review_reports_moral_failures(client, admin, player):
    report_feat(client, player, "p3", "caneta", "Caneta")
    [feat] = fetch_feats(client, PENDING)
    client.fail("players", "update", id="p3")

    warnings = review_feat(client, admin, feat, approve=True)

    assert [w.player_id for w in warnings] == ["p3"]
    assert client.row("players", "p2")["moral_score"] == 60


def test_special_event_applies_delta(client, admin, player):
    now = datetime(2026, 10, 19, 22)
    assert record_special_event(client, admin, player, "puskas", "Golaço de bicicleta", now)
    row = client.row("players", "p2")
    assert row["moral_score"] == 65
    assert row["special_events"][0]["type"] == "puskas"
    assert row["special_events"][0]["date"] == now.isoformat()

    record_special_event(client, admin, player, "vexame", "Furou a bola", now)
    assert client.row("players", "p2")["moral_score"] == 50
    assert len(client.row("players", "p2")["special_events"]) == 2


def test_special_event_requires_admin(client, player):
    with pytest.raises(NotAuthorized):
        record_special_event(client, player, player, "puskas", "x", datetime(2026, 10, 19))


def test_notifications(client, player):
    client.tables["notifications"] = [
        {"id": 1, "player_id": "p2", "message": "Você ganhou uma medalha", "is_read": False, "created_at": "2026-10-19T22:00"},
        {"id": 2, "player_id": "p2", "message": "Bem-vindo", "is_read": True, "created_at": "2026-10-01T10:00"},
        {"id": 3, "player_id": "p3", "message": "Outro", "is_read": False, "created_at": "2026-10-19T22:00"},
    ]
    notifications = fetch_notifications(client, player.id)
    assert [n["id"] for n in notifications] == [1, 2]
    assert unread_count(notifications) == 1

    mark_notifications_read(client, player.id)
    assert unread_count(fetch_notifications(client, player.id)) == 0
    assert client.row("notifications", 3)["is_read"] is False


def test_notifications_failures_are_silent(client, player):
    client.fail("notifications", "select")
    client.fail("notifications", "update")
    assert fetch_notifications(client, player.id) == []
    mark_notifications_read(client, player.id)


def test_timeline_merges_in_order():
    messages = [
        {"player_id": "p2", "text": "bora", "created_at": "2026-10-19T18:00"},
        {"player_id": "p3", "text": "fui", "created_at": "2026-10-19T23:00"},
    ]
    feats = [{"performer_id": "p4", "victim_id": "p5", "type": "caneta",
              "description": "no meio", "created_at": "2026-10-19T21:00"}]

    timeline = build_timeline(messages, feats)

    assert [item.kind for item in timeline] == ["chat", "feat", "chat"]
    assert timeline[1].text == "CANETA: no meio"
    assert timeline[1].target_id == "p5"
