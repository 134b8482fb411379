from decimal import Decimal

from django.db import models
from django.utils import timezone

from branches.models import Branch, Client


class Invoice(models.Model):
    STATUS_PENDING = "pending"
    STATUS_PAID = "paid"
    STATUS_VOID = "void"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_PAID, "Paid"),
        (STATUS_VOID, "Void"),
    ]

    PAYMENT_STATUS_CHOICES = [
        ("pending", "Pending"),
        ("paid", "Paid"),
    ]

    PAYMENT_METHOD_CHOICES = [
        ("cash", "Cash"),
        ("card", "Card"),
        ("transfer", "Transfer"),
        ("wallet", "Wallet"),
    ]

    branch = models.ForeignKey(Branch, on_delete=models.PROTECT, related_name="invoices")
    client = models.ForeignKey(Client, on_delete=models.PROTECT, related_name="invoices")
    # пусто = продажа без брони (абонемент и т.п.)
    booking = models.ForeignKey(
        "bookings.Booking",
        on_delete=models.PROTECT,
        related_name="invoices",
        blank=True,
        null=True,
    )
    invoice_number = models.CharField(max_length=50)

    amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    tax_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    payment_status = models.CharField(max_length=20, choices=PAYMENT_STATUS_CHOICES, default="pending")
    payment_method = models.CharField(max_length=20, choices=PAYMENT_METHOD_CHOICES, blank=True, null=True)

    due_date = models.DateField()
    paid_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        verbose_name = "счёт"
        verbose_name_plural = "счета"

    def __str__(self):
        return f"{self.invoice_number} ({self.status}, {self.total_amount})"


class InvoiceItem(models.Model):
    """
    Позиция сессии или строка счёта.

    - booking задан, invoice пуст  → позиция открытой сессии (товар);
    - invoice задан               → снимок строки счёта, после создания не меняется.
    """

    TYPE_TIME_ENTRY = "time_entry"
    TYPE_PRODUCT = "product"

    ITEM_TYPE_CHOICES = [
        (TYPE_TIME_ENTRY, "Time entry"),
        (TYPE_PRODUCT, "Product"),
    ]

    booking = models.ForeignKey(
        "bookings.Booking",
        on_delete=models.CASCADE,
        related_name="items",
        blank=True,
        null=True,
    )
    invoice = models.ForeignKey(
        Invoice,
        on_delete=models.CASCADE,
        related_name="items",
        blank=True,
        null=True,
    )
    item_type = models.CharField(max_length=20, choices=ITEM_TYPE_CHOICES, default=TYPE_PRODUCT)
    # id товара для product, id клиента для time_entry
    related_id = models.BigIntegerField(blank=True, null=True)
    name = models.CharField(max_length=255)
    quantity = models.PositiveIntegerField(default=1)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    total_price = models.DecimalField(max_digits=12, decimal_places=2)
    individual_name = models.CharField(
        max_length=255, blank=True, null=True, help_text="Кто из компании заказал"
    )
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        verbose_name = "позиция счёта"
        verbose_name_plural = "позиции счёта"

    def __str__(self):
        return f"{self.name} x {self.quantity} = {self.total_price}"
