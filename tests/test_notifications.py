import httpx

from workshop_tracker.notifications import (
    check_configuration,
    function_url,
    notification_history,
    send_email_notification,
    send_test_notification,
)


def test_send_email_notification_payload(fake, cfg):
    ok = send_email_notification(
        fake, cfg, type="income", record_id=7, user_id="user-1",
        amount=50, name="Clay Night", date="2024-03-05",
    )
    assert ok
    assert fake.functions.invocations == [(
        "send-notification-email",
        {"body": {"type": "income", "recordId": 7, "userId": "user-1",
                  "amount": 50, "name": "Clay Night", "date": "2024-03-05"}},
    )]


def test_send_email_notification_never_raises(fake, cfg):
    fake.functions.fail = True
    assert not send_email_notification(
        fake, cfg, type="expense", record_id=1, user_id="u", amount=1, name="x", date=None,
    )


def test_test_notification_is_admin_only(fake, cfg, user, admin):
    denied = send_test_notification(fake, cfg, user)
    assert not denied["success"]
    assert fake.functions.invocations == []

    assert send_test_notification(fake, cfg, admin)["success"]
    assert fake.functions.invocations[0][1]["body"]["name"] == "Test Email Notification"


def test_test_notification_reports_failure(fake, cfg, admin):
    fake.functions.fail = True
    assert send_test_notification(fake, cfg, admin) == {
        "success": False, "error": "Failed to send test email notification",
    }


def test_history_newest_first_and_limited(fake, user, admin):
    fake.tables["email_notifications"] = [
        {"id": i, "notification_type": "income", "user_id": "user-1", "sent_at": f"2024-03-0{i}T10:00:00+00:00"}
        for i in range(1, 6)
    ]
    history = notification_history(fake, admin, limit=3)
    assert [h["id"] for h in history] == [5, 4, 3]
    assert history[0]["profiles"]["full_name"] == "Maya Lee"
    assert notification_history(fake, user) == []


def test_history_failure_is_empty(fake, admin):
    fake.failing.add("email_notifications")
    assert notification_history(fake, admin) == []


def test_function_url(cfg):
    assert function_url(cfg) == "https://fake.supabase.co/functions/v1/send-notification-email"


def test_check_configuration_uses_options_request(cfg):
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(204)

    assert check_configuration(cfg, transport=httpx.MockTransport(handler))
    assert seen[0].method == "OPTIONS"
    assert seen[0].headers["Authorization"] == "Bearer anon-key"


def test_check_configuration_handles_errors(cfg):
    assert not check_configuration(cfg, transport=httpx.MockTransport(lambda r: httpx.Response(404)))

    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    assert not check_configuration(cfg, transport=httpx.MockTransport(refuse))
