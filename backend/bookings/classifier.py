# backend/bookings/classifier.py
"""
Вкладки списка броней: активные / будущие / завершённые.

Состояние не хранится в БД, а каждый раз вычисляется по
(status, start_time, end_time, now).
"""
from .models import Booking

ACTIVE = "active"
FUTURE = "future"
COMPLETED = "completed"

STATES = (ACTIVE, FUTURE, COMPLETED)


def classify(booking, now) -> str:
    """
    Порядок правил важен:
      1) cancelled / completed → completed, независимо от времени;
      2) start <= now < end → active;
      3) start > now → future;
      4) окно прошло, а бронь всё ещё confirmed → completed
         (сессия закончилась без расчёта, но счёт по ней выставить можно).
    """
    if booking.status in Booking.TERMINAL_STATUSES:
        return COMPLETED

    if booking.status == Booking.STATUS_CONFIRMED:
        if booking.start_time <= now < booking.end_time:
            return ACTIVE
        if booking.start_time > now:
            return FUTURE

    return COMPLETED


def group_by_state(bookings, now) -> dict:
    groups = {state: [] for state in STATES}
    for booking in bookings:
        groups[classify(booking, now)].append(booking)
    return groups
