import pytest
import requests

from storefront.services import notification_service
from storefront.services.notification_service import (
    NotificationService,
    build_message,
    send_purchase_notification_task,
)

LINES = [
    {"product_name": "Mysore Pak", "quantity": 2},
    {"product_name": "Kaju Katli", "quantity": 1},
]


class FakeResponse:

    def __init__(self, status_code=200):
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


def test_message_lists_every_line():
    assert build_message(LINES) == "Your order for Mysore Pak x 2, Kaju Katli x 1 has been placed."


def test_without_webhook_the_message_is_logged(monkeypatch, caplog):
    monkeypatch.setattr(notification_service, "NOTIFICATION_WEBHOOK_URL", "")
    with caplog.at_level("INFO"):
        result = send_purchase_notification_task(7, 41, LINES)
    assert result == {"purchase_id": 41, "status": "logged"}
    assert "user:7" in caplog.text


def test_webhook_receives_destination_and_message(monkeypatch):
    calls = []

    def fake_post(url, json, timeout):
        calls.append((url, json))
        return FakeResponse()

    monkeypatch.setattr(notification_service, "NOTIFICATION_WEBHOOK_URL", "http://hooks.local/notify")
    monkeypatch.setattr(notification_service.requests, "post", fake_post)

    result = send_purchase_notification_task(7, 41, LINES)

    assert result["status"] == "sent"
    assert calls == [
        (
            "http://hooks.local/notify",
            {
                "destination": "user:7",
                "message": build_message(LINES),
                "purchase_id": 41,
            },
        )
    ]


def test_webhook_failure_is_retried_then_reported(monkeypatch):
    attempts = []

    def failing_post(url, json, timeout):
        attempts.append(url)
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(notification_service, "NOTIFICATION_WEBHOOK_URL", "http://hooks.local/notify")
    monkeypatch.setattr(notification_service.requests, "post", failing_post)

    result = send_purchase_notification_task(7, 41, LINES)

    assert result["status"] == "failed"
    assert len(attempts) == 3


def test_enqueue_failure_is_swallowed(monkeypatch):
    def broken_delay(*args, **kwargs):
        raise ConnectionError("broker unavailable")

    monkeypatch.setattr(send_purchase_notification_task, "delay", broken_delay)
    assert NotificationService().send_purchase_notification(7, 41, LINES) is False


def test_enqueue_passes_purchase_summary(monkeypatch):
    queued = []
    monkeypatch.setattr(send_purchase_notification_task, "delay", lambda *args: queued.append(args))

    assert NotificationService().send_purchase_notification(7, 41, LINES) is True
    assert queued == [(7, 41, LINES)]


@pytest.mark.parametrize("status_code", [500, 503])
def test_server_errors_count_as_failures(monkeypatch, status_code):
    monkeypatch.setattr(notification_service, "NOTIFICATION_WEBHOOK_URL", "http://hooks.local/notify")
    monkeypatch.setattr(
        notification_service.requests,
        "post",
        lambda url, json, timeout: FakeResponse(status_code),
    )
    assert send_purchase_notification_task(7, 41, LINES)["status"] == "failed"
