# backend/core/request_utils.py
from django.utils import timezone
from django.utils.dateparse import parse_datetime
from rest_framework.exceptions import ValidationError

from .errors import InvalidQuantity


def parse_quantity(value, label="quantity"):
    """Количество из тела запроса → int; всё нецелое → InvalidQuantity."""
    if value is None or isinstance(value, bool):
        raise InvalidQuantity(f"Поле {label} обязательно и должно быть целым числом.")
    if isinstance(value, float) and not value.is_integer():
        raise InvalidQuantity(f"Поле {label} должно быть целым числом.")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidQuantity(f"Поле {label} должно быть целым числом (получено: {value!r}).")


def parse_optional_quantity(value, label="quantity"):
    if value is None:
        return None
    return parse_quantity(value, label)


def parse_now(value):
    """
    Момент расчёта. По умолчанию - текущее время сервера;
    можно передать "at" в ISO 8601 (например, при вводе задним числом).
    """
    if not value:
        return timezone.now()

    dt = parse_datetime(value)
    if dt is None:
        raise ValidationError(
            {"detail": "Неверный формат даты. Используйте ISO 8601, например 2025-11-24T10:00:00."}
        )
    if timezone.is_naive(dt):
        dt = timezone.make_aware(dt, timezone.get_current_timezone())
    return dt
