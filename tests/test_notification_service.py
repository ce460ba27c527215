from unittest.mock import Mock

import pytest

from app.modules.notifications.schemas import MatchedProvider
from app.modules.notifications.push_tokens import PushTokenService
from app.modules.notifications.service import NotificationService, format_budget, message_preview
from tests.conftest import BUYER_ID, CATEGORY_LOCAL, PUNE

pytestmark = pytest.mark.unit


@pytest.fixture
def push_client():
    return Mock()


@pytest.fixture
def matcher():
    return Mock()


@pytest.fixture
def service(fake_supabase, push_client, matcher):
    return NotificationService(fake_supabase, push_client=push_client, matcher=matcher, max_workers=4)


def providers():
    return [
        MatchedProvider(user_id="prov-near", full_name="Asha", distance=13.5,
                        push_tokens=["ExponentPushToken[a]", "ExponentPushToken[b]"]),
        MatchedProvider(user_id="prov-far", full_name="Ravi", push_tokens=[]),
        MatchedProvider(user_id="prov-online", full_name="Provider", push_tokens=["ExpoPushToken[c]"]),
    ]


@pytest.mark.parametrize("amount, expected", [
    (500.0, "500"),
    (500, "500"),
    (499.5, "499.5"),
    (0, "0"),
])
def test_format_budget(amount, expected):
    assert format_budget(amount) == expected


def test_no_providers_notifies_nobody(service, fake_supabase, push_client):
    result = service.notify_providers_of_new_request([], "Fix sink", "req-1", "Plumbing", 500, 1500)

    assert result.notified_count == 0
    push_client.send_push_notifications.assert_not_called()
    assert fake_supabase.rows("notifications") == []


def test_push_and_in_app_notification_content(service, fake_supabase, push_client):
    result = service.notify_providers_of_new_request(
        providers(), "Fix kitchen sink", "req-1", "Plumbing", 500.0, 1500.0
    )

    assert result.notified_count == 3
    tokens, title, body, data, channel = push_client.send_push_notifications.call_args[0]
    assert tokens == ["ExponentPushToken[a]", "ExponentPushToken[b]", "ExpoPushToken[c]"]
    assert title == "New Service Request!"
    assert body == '"Fix kitchen sink" in Plumbing - Budget: ₹500-₹1500'
    assert data == {"type": "new_opportunity", "requestId": "req-1", "screen": "requests/detail"}
    assert channel == "new_opportunity"

    rows = fake_supabase.rows("notifications")
    assert sorted(r["user_id"] for r in rows) == ["prov-far", "prov-near", "prov-online"]
    assert all(r["type"] == "new_opportunity" and r["read"] is False for r in rows)
    assert all(r["body"] == body for r in rows)


def test_in_app_notifications_saved_when_push_fails(service, fake_supabase, push_client):
    push_client.send_push_notifications.side_effect = RuntimeError("gateway down")

    result = service.notify_providers_of_new_request(providers(), "Fix sink", "req-1", "Plumbing", 0, 0)

    assert result.notified_count == 3
    assert len(fake_supabase.rows("notifications")) == 3


def test_failed_insert_does_not_block_other_providers(service, fake_supabase):
    fake_supabase.fail_when(
        "notifications", "insert",
        lambda payload: payload["user_id"] == "prov-far",
        RuntimeError("insert failed"),
    )

    result = service.notify_providers_of_new_request(providers(), "Fix sink", "req-1", "Plumbing", 0, 0)

    assert result.notified_count == 3
    assert sorted(r["user_id"] for r in fake_supabase.rows("notifications")) == ["prov-near", "prov-online"]


def test_save_notification_record_never_raises(service, fake_supabase):
    fake_supabase.fail("notifications", "insert", RuntimeError("insert failed"))
    assert service.save_notification_record("prov-near", "new_opportunity", "t", "b") is False


def test_notify_matching_providers_uses_category_name(service, matcher, push_client):
    matcher.find_matching_providers.return_value = providers()[:1]

    result = service.notify_matching_providers(
        "req-1", CATEGORY_LOCAL, "Fix sink", PUNE, BUYER_ID, 500, 1500
    )

    assert result.notified_count == 1
    matcher.find_matching_providers.assert_called_once_with("req-1", CATEGORY_LOCAL, PUNE, BUYER_ID)
    body = push_client.send_push_notifications.call_args[0][2]
    assert " in Plumbing - " in body


def test_notify_matching_providers_defaults_category_name(service, matcher, push_client):
    matcher.find_matching_providers.return_value = providers()[:1]

    service.notify_matching_providers("req-1", "cat-unknown", "Fix sink", None, BUYER_ID, 0, 0)

    body = push_client.send_push_notifications.call_args[0][2]
    assert " in Service - " in body


def test_notify_matching_providers_with_no_match(service, matcher, fake_supabase):
    matcher.find_matching_providers.return_value = []

    result = service.notify_matching_providers("req-1", CATEGORY_LOCAL, "Fix sink", PUNE, BUYER_ID, 0, 0)

    assert result.notified_count == 0
    assert fake_supabase.rows("notifications") == []


def test_notify_matching_providers_swallows_failures(service, matcher):
    matcher.find_matching_providers.side_effect = RuntimeError("boom")

    result = service.notify_matching_providers("req-1", CATEGORY_LOCAL, "Fix sink", PUNE, BUYER_ID, 0, 0)

    assert result.notified_count == 0


def test_list_and_mark_notifications(service, fake_supabase):
    fake_supabase.tables["notifications"] = [
        {"id": "n1", "user_id": "prov-near", "type": "new_opportunity", "title": "t", "body": "b",
         "data": {}, "read": False, "created_at": "2026-01-02T00:00:00+00:00"},
        {"id": "n2", "user_id": "prov-near", "type": "new_opportunity", "title": "t", "body": "b",
         "data": {}, "read": True, "created_at": "2026-01-01T00:00:00+00:00"},
        {"id": "n3", "user_id": "prov-far", "type": "new_opportunity", "title": "t", "body": "b",
         "data": {}, "read": False, "created_at": "2026-01-03T00:00:00+00:00"},
    ]

    listing = service.list_notifications("prov-near")
    assert [n.id for n in listing.notifications] == ["n1", "n2"]
    assert listing.unread_count == 1

    assert service.mark_as_read("n1", "prov-near").read is True
    assert service.mark_all_as_read("prov-far") == 1


def test_mark_someone_elses_notification_is_404(service, fake_supabase):
    from fastapi import HTTPException

    fake_supabase.tables["notifications"] = [
        {"id": "n3", "user_id": "prov-far", "type": "x", "title": "t", "body": "b",
         "data": {}, "read": False, "created_at": "2026-01-03T00:00:00+00:00"},
    ]
    with pytest.raises(HTTPException) as exc:
        service.mark_as_read("n3", "prov-near")
    assert exc.value.status_code == 404


def test_mark_all_as_read_only_touches_unread_rows_of_user(service, fake_supabase):
    fake_supabase.tables["notifications"] = [
        {"id": "n1", "user_id": "prov-near", "read": False},
        {"id": "n2", "user_id": "prov-near", "read": False},
        {"id": "n3", "user_id": "prov-near", "read": True},
        {"id": "n4", "user_id": "prov-far", "read": False},
    ]

    assert service.mark_all_as_read("prov-near") == 2
    assert service.mark_all_as_read("prov-near") == 0
    assert [n["read"] for n in fake_supabase.rows("notifications")] == [True, True, True, False]


@pytest.mark.parametrize("text, attachments, expected", [
    ("  On my way  ", 0, "On my way"),
    ("", 2, "Sent 2 attachment(s)"),
    (None, 1, "Sent 1 attachment(s)"),
    ("x" * 100, 0, "x" * 100),
    ("x" * 101, 0, "x" * 100 + "..."),
])
def test_message_preview(text, attachments, expected):
    assert message_preview(text, attachments) == expected


def test_new_message_push_and_row(service, fake_supabase, push_client):
    assert service.notify_new_message("conv-1", "prov-near", None, "y" * 150) is True

    tokens, title, body, data = push_client.send_push_notifications.call_args[0]
    assert tokens == ["ExponentPushToken[near-ios]", "ExpoPushToken[near-android]"]
    assert title == "New message from Someone"
    assert body == "y" * 100 + "..."
    assert data["screen"] == "messages/chat"
    (row,) = fake_supabase.rows("notifications")
    assert row["title"] == "New Message"
    assert row["body"] == body
    assert row["data"] == {"type": "new_message", "conversationId": "conv-1"}


def test_new_message_without_devices_still_saves_row(service, fake_supabase, push_client):
    assert service.notify_new_message("conv-1", "prov-online", "Asha", "", attachment_count=3) is True

    push_client.send_push_notifications.assert_not_called()
    assert fake_supabase.rows("notifications")[0]["body"] == "Sent 3 attachment(s)"


def test_new_message_row_saved_when_push_fails(service, fake_supabase, push_client):
    push_client.send_push_notifications.side_effect = RuntimeError("gateway down")

    assert service.notify_new_message("conv-1", "prov-near", "Asha", "hello") is True
    assert len(fake_supabase.rows("notifications")) == 1


def test_proposal_submitted_row(service, fake_supabase):
    assert service.notify_proposal_submitted(BUYER_ID, "req-1", "Fix sink") is True

    (row,) = fake_supabase.rows("notifications")
    assert row["title"] == "New Proposal Received"
    assert row["body"] == 'A provider has submitted a proposal for "Fix sink"'


def test_proposal_accepted_rows(service, fake_supabase):
    saved = service.notify_proposal_accepted("prov-near", "req-1", "Fix sink", ["prov-far", "prov-near"])

    assert saved == 2
    rows = {r["user_id"]: r for r in fake_supabase.rows("notifications")}
    assert rows["prov-near"]["type"] == "proposal_accepted"
    assert rows["prov-near"]["body"].startswith('Your proposal for "Fix sink" has been accepted!')
    assert rows["prov-far"]["type"] == "proposal_rejected"
    assert rows["prov-far"]["title"] == "Proposal Update"


def test_proposal_rejected_row(service, fake_supabase):
    assert service.notify_proposal_rejected("prov-far", "req-1", "Fix sink") is True
    assert fake_supabase.rows("notifications")[0]["title"] == "Proposal Rejected"


def test_pending_competitors_exclude_accepted_and_settled(service, fake_supabase):
    fake_supabase.tables["proposals"] = [
        {"id": "p1", "request_id": "req-1", "provider_id": "prov-near", "status": "pending"},
        {"id": "p2", "request_id": "req-1", "provider_id": "prov-far", "status": "pending"},
        {"id": "p3", "request_id": "req-1", "provider_id": "prov-online", "status": "rejected"},
        {"id": "p4", "request_id": "req-2", "provider_id": "prov-other", "status": "pending"},
    ]
    assert service.get_pending_competitors("req-1", "p1") == ["prov-far"]


def test_remove_push_token(fake_supabase):
    tokens = PushTokenService(fake_supabase)

    assert tokens.remove_push_token("prov-near", "ios") is True
    assert tokens.remove_push_token("prov-near", "ios") is False
    remaining = [(t["user_id"], t["platform"]) for t in fake_supabase.rows("push_tokens")]
    assert remaining == [("prov-near", "android"), ("prov-far", "ios")]
