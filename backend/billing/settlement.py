# backend/billing/settlement.py
"""
Закрытие сессий: оплата счёта, отмена брони, отметка о приходе.

Статусы брони:
    confirmed → completed  (только через confirm_payment)
    confirmed → cancelled  (cancel_booking)
completed и cancelled - конечные, из них переходов нет.
"""
import logging

from core.errors import AlreadySettled
from core.scope import check_scope
from .models import Invoice

logger = logging.getLogger(__name__)


def confirm_payment(store, invoice_id, now, scope=None, payment_method="cash"):
    """
    Помечает счёт оплаченным и закрывает связанную бронь.

    Возвращает (invoice, booking | None). Повторный вызов по уже
    оплаченному счёту ничего не меняет и возвращает текущее состояние:
    ни второго списания денег, ни повторного списания товара.
    """
    with store.atomic():
        # блокировки в том же порядке, что у settle / cancel / позиций: бронь, потом счёт
        invoice = store.invoices.get(invoice_id)
        check_scope(scope, invoice)

        booking = None
        if invoice.booking_id is not None:
            booking = store.bookings.get(invoice.booking_id, for_update=True)
        invoice = store.invoices.get(invoice_id, for_update=True)

        if invoice.status == Invoice.STATUS_PAID:
            logger.info("Invoice %s already paid, nothing to do", invoice.invoice_number)
            return invoice, booking

        if invoice.status == Invoice.STATUS_VOID:
            raise AlreadySettled(
                f"Счёт {invoice.invoice_number} аннулирован, оплата невозможна.",
                invoice_id=invoice.pk,
            )

        if booking is not None and booking.is_terminal:
            raise AlreadySettled(
                f"Бронь #{booking.pk} уже в статусе '{booking.status}'.",
                booking_id=booking.pk,
            )

        invoice.status = Invoice.STATUS_PAID
        invoice.payment_status = "paid"
        invoice.payment_method = payment_method
        invoice.paid_at = now
        store.invoices.upsert(invoice)

        if booking is not None:
            booking.status = booking.STATUS_COMPLETED
            booking.check_out_time = now
            booking.total_amount = invoice.total_amount
            store.bookings.upsert(booking)

    logger.info(
        "Invoice %s paid (%s, %s); booking=%s",
        invoice.invoice_number, invoice.total_amount, payment_method,
        booking.pk if booking is not None else None,
    )
    return invoice, booking


def cancel_booking(store, booking_id, scope=None):
    """Отмена - это смена статуса, бронь и её позиции не удаляются."""
    with store.atomic():
        booking = store.bookings.get(booking_id, for_update=True)
        check_scope(scope, booking)

        if booking.is_terminal:
            raise AlreadySettled(
                f"Бронь #{booking.pk} уже в статусе '{booking.status}', отменить нельзя.",
                booking_id=booking.pk,
            )

        booking.status = booking.STATUS_CANCELLED
        store.bookings.upsert(booking)

        # неоплаченные счета отменённой брони больше не к оплате
        for invoice in store.invoices.list(booking_id=booking.pk, status=Invoice.STATUS_PENDING):
            invoice.status = Invoice.STATUS_VOID
            store.invoices.upsert(invoice)

    logger.info("Booking %s cancelled", booking.pk)
    return booking


def check_in(store, booking_id, now, scope=None):
    """Отметка прихода клиента. Повторная отметка не сдвигает первое время."""
    with store.atomic():
        booking = store.bookings.get(booking_id, for_update=True)
        check_scope(scope, booking)

        if booking.is_terminal:
            raise AlreadySettled(
                f"Бронь #{booking.pk} уже в статусе '{booking.status}'.",
                booking_id=booking.pk,
            )

        if booking.check_in_time is None:
            booking.check_in_time = now
            store.bookings.upsert(booking)

    return booking
