import pytest
import requests
from django.core import mail

from notifications.models import Notification
from notifications.email_utils import build_client_email
from notifications.telegram import format_branch_message, send_branch_message
from notifications.utils import notify_booking_cancelled, notify_invoice_paid

pytestmark = pytest.mark.django_db


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload if payload is not None else {"ok": True}
        self.text = str(self._payload)

    def json(self):
        return self._payload


@pytest.fixture
def telegram_calls(monkeypatch, settings):
    settings.TELEGRAM_BOT_TOKEN = "test-token"
    calls = []

    def fake_post(url, json=None, timeout=None):
        calls.append({"url": url, "json": json})
        return FakeResponse()

    monkeypatch.setattr(requests, "post", fake_post)
    return calls


def test_booking_cancelled_sends_email_and_telegram(db_booking, telegram_calls):
    notif = notify_booking_cancelled(db_booking)

    assert notif.status == "sent"
    assert notif.sent_at is not None
    assert len(mail.outbox) == 1
    assert mail.outbox[0].to == ["client@example.com"]
    assert len(telegram_calls) == 1
    assert telegram_calls[0]["json"]["chat_id"] == db_booking.branch.telegram_chat_id
    assert "test-token" in telegram_calls[0]["url"]


def test_failed_delivery_marks_notification_failed(db_booking, monkeypatch, settings):
    settings.TELEGRAM_BOT_TOKEN = "test-token"

    def broken_post(url, json=None, timeout=None):
        raise requests.ConnectionError("no network")

    monkeypatch.setattr(requests, "post", broken_post)
    db_booking.client.email = None
    db_booking.client.save()

    notif = notify_booking_cancelled(db_booking)

    assert notif.status == "failed"
    assert Notification.objects.filter(pk=notif.pk, status="failed").exists()


def test_nothing_to_send_stays_pending(db_booking):
    db_booking.branch.telegram_chat_id = None
    db_booking.branch.save()
    db_booking.client.email = ""
    db_booking.client.save()

    notif = notify_booking_cancelled(db_booking)

    assert notif.status == "pending"
    assert notif.sent_at is None


def test_telegram_without_token_is_skipped(db_branch, monkeypatch):
    def must_not_post(*args, **kwargs):
        raise AssertionError("requests.post should not be called")

    monkeypatch.setattr(requests, "post", must_not_post)
    assert send_branch_message(db_branch, "Тест", "hello") is False


def test_telegram_non_ok_response(db_branch, monkeypatch, settings):
    settings.TELEGRAM_BOT_TOKEN = "test-token"
    monkeypatch.setattr(requests, "post", lambda url, json=None, timeout=None: FakeResponse(400, {"ok": False}))
    assert send_branch_message(db_branch, "Тест", "hello") is False


def test_invoice_paid_message(db_booking, telegram_calls):
    from billing.models import Invoice

    invoice = Invoice.objects.create(
        branch=db_booking.branch,
        client=db_booking.client,
        booking=db_booking,
        invoice_number=f"INV-{db_booking.pk}-1",
        total_amount="95.00",
        due_date=db_booking.start_time.date(),
    )

    notif = notify_invoice_paid(invoice)

    assert notif.event_type == "invoice_paid"
    assert notif.invoice_id == invoice.pk
    assert invoice.invoice_number in notif.message
    assert len(mail.outbox) == 1


def test_branch_without_chat_is_skipped(db_other_branch, telegram_calls):
    assert send_branch_message(db_other_branch, "Тест", "hello") is False
    assert telegram_calls == []


def test_telegram_text_is_escaped(db_branch):
    text = format_branch_message(db_branch, "Счёт <INV-1>", "сумма > 0 & оплачено")

    assert text.startswith("<b>Счёт &lt;INV-1&gt;</b>")
    assert "Центр" in text
    assert "сумма &gt; 0 &amp; оплачено" in text


def test_client_email_carries_branch(db_client, db_branch):
    db_branch.address = "ул. Абая, 1"
    db_branch.save()

    subject, body = build_client_email(db_client, db_branch, "Оплата получена", "Спасибо!")

    assert subject == "[Центр] Оплата получена"
    assert body.startswith("Здравствуйте, Test Client!")
    assert "ул. Абая, 1" in body


def test_booking_cancelled_email_subject(db_booking, telegram_calls):
    notify_booking_cancelled(db_booking)

    assert mail.outbox[0].subject == "[Центр] Бронирование отменено"
    assert "Центр" in telegram_calls[0]["json"]["text"]
