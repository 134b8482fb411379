from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models

from branches.models import Branch


class Room(models.Model):
    FEATURE_CHOICES = [
        ("private", "Private"),
        ("shared", "Shared"),
        ("projector", "Projector"),
        ("whiteboard", "Whiteboard"),
        ("console", "Console"),
    ]

    branch = models.ForeignKey(Branch, on_delete=models.CASCADE, related_name="rooms")
    name = models.CharField(max_length=255)
    zone = models.CharField(max_length=255, blank=True, null=True)
    capacity = models.IntegerField(default=1)
    hourly_rate = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    # теги из FEATURE_CHOICES, например ["private", "projector"]
    features = models.JSONField(default=list, blank=True)
    description = models.TextField(blank=True, null=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        verbose_name = "комната"
        verbose_name_plural = "комнаты"

    def __str__(self):
        return f"{self.name} ({self.hourly_rate}/ч)"
