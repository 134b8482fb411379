from decimal import Decimal

from django.db import models
from django.utils import timezone

from branches.models import Branch, Client
from rooms.models import Room


class Booking(models.Model):
    """
    Бронь комнаты = сессия. Пока бронь открыта, к ней добавляются товары
    (InvoiceItem с booking=эта бронь и пустым invoice).
    """

    STATUS_CONFIRMED = "confirmed"
    STATUS_CANCELLED = "cancelled"
    STATUS_COMPLETED = "completed"

    STATUS_CHOICES = [
        (STATUS_CONFIRMED, "Confirmed"),
        (STATUS_CANCELLED, "Cancelled"),
        (STATUS_COMPLETED, "Completed"),
    ]

    TERMINAL_STATUSES = (STATUS_CANCELLED, STATUS_COMPLETED)

    branch = models.ForeignKey(Branch, on_delete=models.PROTECT, related_name="bookings")
    room = models.ForeignKey(Room, on_delete=models.PROTECT, related_name="bookings")
    client = models.ForeignKey(Client, on_delete=models.PROTECT, related_name="bookings")
    start_time = models.DateTimeField()
    end_time = models.DateTimeField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_CONFIRMED)

    # пока сессия открыта = сумма позиций; после оплаты = время + позиции
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    check_in_time = models.DateTimeField(blank=True, null=True)
    check_out_time = models.DateTimeField(blank=True, null=True)
    notes = models.TextField(blank=True, null=True)

    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        verbose_name = "бронирование"
        verbose_name_plural = "бронирования"
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_time__gt=models.F("start_time")),
                name="booking_end_after_start",
            ),
        ]

    def __str__(self):
        return f"Booking #{self.id} ({self.status}) room={self.room_id} client={self.client_id}"

    @property
    def is_terminal(self) -> bool:
        return self.status in self.TERMINAL_STATUSES
