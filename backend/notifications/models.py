from django.db import models
from django.utils import timezone

from branches.models import Branch, Client


class Notification(models.Model):
    """
    Лог уведомлений: внутренние, email клиенту, телеграм в чат филиала.
    Фактическая отправка выполняется через utils (telegram/email).
    """

    EVENT_TYPE_CHOICES = [
        ("booking_cancelled", "Отменено бронирование"),
        ("invoice_issued", "Выставлен счёт по сессии"),
        ("invoice_paid", "Счёт оплачен"),
    ]

    CHANNEL_CHOICES = [
        ("email", "Email"),
        ("telegram", "Telegram"),
        ("internal", "Внутреннее уведомление"),
        ("system", "Системное уведомление"),
    ]

    STATUS_CHOICES = [
        ("pending", "Ожидает отправки"),
        ("sent", "Отправлено"),
        ("failed", "Ошибка при отправке"),
    ]

    branch = models.ForeignKey(
        Branch,
        on_delete=models.CASCADE,
        related_name="notifications",
    )
    client = models.ForeignKey(
        Client,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="notifications",
    )

    event_type = models.CharField(max_length=50, choices=EVENT_TYPE_CHOICES)
    channel = models.CharField(max_length=20, choices=CHANNEL_CHOICES, default="internal")

    booking = models.ForeignKey(
        "bookings.Booking",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="notifications",
    )
    invoice = models.ForeignKey(
        "billing.Invoice",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="notifications",
    )

    title = models.CharField(max_length=255)
    message = models.TextField()

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="pending")

    created_at = models.DateTimeField(default=timezone.now)
    sent_at = models.DateTimeField(null=True, blank=True)

    def __str__(self):
        return f"Notification #{self.id} ({self.event_type}, {self.channel})"
