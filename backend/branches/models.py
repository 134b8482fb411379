from django.db import models
from django.utils import timezone


class Branch(models.Model):
    name = models.CharField(max_length=255)
    address = models.CharField(max_length=255, blank=True, null=True)
    phone = models.CharField(max_length=20, blank=True, null=True)
    # чат администраторов филиала для уведомлений
    telegram_chat_id = models.BigIntegerField(blank=True, null=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        verbose_name = "филиал"
        verbose_name_plural = "филиалы"

    def __str__(self):
        return self.name


class Client(models.Model):
    MEMBERSHIP_CHOICES = [
        ("none", "Без абонемента"),
        ("daily", "Дневной"),
        ("monthly", "Месячный"),
        ("vip", "VIP"),
    ]

    branch = models.ForeignKey(Branch, on_delete=models.CASCADE, related_name="clients")
    name = models.CharField(max_length=255)
    phone = models.CharField(max_length=20, blank=True, null=True)
    email = models.EmailField(blank=True, null=True)
    membership_type = models.CharField(max_length=20, choices=MEMBERSHIP_CHOICES, default="none")
    membership_expires_at = models.DateField(blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        verbose_name = "клиент"
        verbose_name_plural = "клиенты"

    def __str__(self):
        return f"{self.name} ({self.branch_id})"
