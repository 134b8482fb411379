# notifications/utils.py
from django.utils import timezone

from .models import Notification
from .email_utils import send_client_email
from .telegram import send_branch_message


# события, по которым вообще пытаемся что-то отправлять наружу
EVENTS_SUPPORTED = {
    "booking_cancelled",
    "invoice_issued",
    "invoice_paid",
}

# письмо клиенту уходит не по всем событиям
EMAIL_EVENTS = {
    "booking_cancelled",
    "invoice_paid",
}


def format_dt(dt):
    """
    Красивое форматирование дат для писем/Telegram.
    29.11.2025 14:00
    """
    if not dt:
        return ""
    dt_local = timezone.localtime(dt)
    return dt_local.strftime("%d.%m.%Y %H:%M")


def should_send_email(event_type: str, client) -> bool:
    if not client or not getattr(client, "email", None):
        return False
    return event_type in EVENTS_SUPPORTED and event_type in EMAIL_EVENTS


def should_send_telegram(event_type: str, branch) -> bool:
    if not branch or not getattr(branch, "telegram_chat_id", None):
        return False
    return event_type in EVENTS_SUPPORTED


def create_notification(
    *,
    branch,
    event_type,
    title,
    message,
    client=None,
    channel="internal",
    booking=None,
    invoice=None,
    status="pending",
):
    """
    Универсальный помощник для создания записей Notification.

    Делает три вещи:
      1) создаёт запись в БД (internal log);
      2) если надо - шлёт email клиенту;
      3) если надо - шлёт Telegram в чат филиала.

    Статус Notification:
      - хотя бы один канал ушёл → 'sent';
      - пытались, но всё упало → 'failed';
      - отправлять было некуда → остаётся 'pending'.
    """
    notif = Notification.objects.create(
        branch=branch,
        client=client,
        event_type=event_type,
        title=title,
        message=message,
        channel=channel,
        booking=booking,
        invoice=invoice,
        status=status,
    )

    any_attempt = False
    any_success = False

    # --- E-MAIL ---
    if should_send_email(event_type, client):
        any_attempt = True
        if send_client_email(client, branch, title, message):
            any_success = True

    # --- TELEGRAM ---
    if should_send_telegram(event_type, branch):
        any_attempt = True
        if send_branch_message(branch, title, message):
            any_success = True

    if any_attempt:
        notif.sent_at = timezone.now()
        notif.status = "sent" if any_success else "failed"
        notif.save(update_fields=["status", "sent_at"])

    return notif


def notify_booking_cancelled(booking):
    return create_notification(
        branch=booking.branch,
        client=booking.client,
        event_type="booking_cancelled",
        title="Бронирование отменено",
        message=(
            f"Бронирование комнаты '{booking.room.name}' "
            f"с {format_dt(booking.start_time)} по {format_dt(booking.end_time)} отменено."
        ),
        channel="system",
        booking=booking,
    )


def notify_invoice_issued(invoice):
    return create_notification(
        branch=invoice.branch,
        client=invoice.client,
        event_type="invoice_issued",
        title=f"Счёт {invoice.invoice_number}",
        message=(
            f"По брони #{invoice.booking_id} выставлен счёт {invoice.invoice_number} "
            f"на сумму {invoice.total_amount}."
        ),
        booking=invoice.booking,
        invoice=invoice,
    )


def notify_invoice_paid(invoice):
    return create_notification(
        branch=invoice.branch,
        client=invoice.client,
        event_type="invoice_paid",
        title="Оплата получена",
        message=(
            f"Счёт {invoice.invoice_number} на сумму {invoice.total_amount} оплачен. "
            f"Спасибо, что были у нас!"
        ),
        booking=invoice.booking,
        invoice=invoice,
    )
