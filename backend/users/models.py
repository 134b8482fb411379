from django.db import models
from django.contrib.auth.models import User

from branches.models import Branch


class UserProfile(models.Model):
    ROLE_CHOICES = [
        ("admin", "Admin"),
        ("manager", "Manager"),
        ("employee", "Employee"),
    ]

    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name="profile")
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default="employee")
    branch = models.ForeignKey(
        Branch,
        on_delete=models.SET_NULL,
        related_name="staff",
        blank=True,
        null=True,
    )
    phone = models.CharField(max_length=20, blank=True, null=True)

    def __str__(self):
        return f"{self.user.username} ({self.role})"
