# backend/billing/calculator.py
"""
Расчёт счёта по сессии: время × ставка комнаты + позиции сессии.

build_invoice() ничего не сохраняет и бронь не меняет. Сохранение
делает BillingService.settle(), а перевод брони в completed - только
оплата (billing/settlement.py).
"""
import logging
from decimal import Decimal

from django.utils import timezone

from core.errors import AlreadySettled
from core.money import ZERO, to_money
from core.scope import check_scope
from .models import Invoice, InvoiceItem

logger = logging.getLogger(__name__)

SECONDS_PER_HOUR = Decimal(3600)


def elapsed_seconds(start_time, now) -> int:
    """Целые секунды от начала до now; до начала брони - 0."""
    seconds = int((now - start_time).total_seconds())
    return max(seconds, 0)


def time_cost(start_time, now, hourly_rate) -> Decimal:
    """
    Стоимость времени по факту: считается от start_time до момента
    расчёта, а не до запланированного end_time.
    """
    hours = Decimal(elapsed_seconds(start_time, now)) / SECONDS_PER_HOUR
    return to_money(hours * Decimal(hourly_rate))


def build_time_entry(booking, room, now) -> InvoiceItem:
    cost = time_cost(booking.start_time, now, room.hourly_rate)
    return InvoiceItem(
        booking_id=booking.pk,
        item_type=InvoiceItem.TYPE_TIME_ENTRY,
        related_id=booking.client_id,
        name=f"Бронь {room.name}",
        quantity=1,
        unit_price=cost,
        total_price=cost,
        created_at=now,
    )


def build_invoice(booking, room, session_items, now):
    """
    Возвращает (invoice, lines) без сохранения.

    lines = [строка времени, *копии позиций сессии] - строка времени всегда первая.
    Налог не считается: tax_amount = 0, amount = total_amount.
    """
    lines = [build_time_entry(booking, room, now)]
    for item in session_items:
        lines.append(
            InvoiceItem(
                booking_id=booking.pk,
                item_type=item.item_type,
                related_id=item.related_id,
                name=item.name,
                quantity=item.quantity,
                unit_price=to_money(item.unit_price),
                total_price=to_money(item.total_price),
                individual_name=item.individual_name,
                created_at=item.created_at,
            )
        )

    total = to_money(sum((line.total_price for line in lines), ZERO))

    invoice = Invoice(
        branch_id=booking.branch_id,
        client_id=booking.client_id,
        booking_id=booking.pk,
        amount=total,
        tax_amount=ZERO,
        total_amount=total,
        status=Invoice.STATUS_PENDING,
        payment_status="pending",
        due_date=timezone.localdate(now),
        created_at=now,
    )
    return invoice, lines


class BillingService:
    def __init__(self, store):
        self.store = store

    def settle(self, booking_id, now, scope=None) -> Invoice:
        """
        Выставляет счёт по сессии ("завершить и оплатить" → окно оплаты).

        - cancelled / completed → AlreadySettled;
        - прежний неоплаченный счёт этой брони аннулируется (void),
          чтобы у брони был максимум один pending-счёт;
        - всё в одной транзакции: если что-то упало, не сохраняется ничего.
        """
        with self.store.atomic():
            booking = self.store.bookings.get(booking_id, for_update=True)
            check_scope(scope, booking)
            if booking.is_terminal:
                raise AlreadySettled(
                    f"Бронь #{booking.pk} уже в статусе '{booking.status}', счёт не выставляется.",
                    booking_id=booking.pk,
                )

            room = self.store.rooms.get(booking.room_id)
            session_items = self.store.items.list(booking_id=booking.pk, invoice_id=None)

            invoice, lines = build_invoice(booking, room, session_items, now)

            previous = self.store.invoices.list(booking_id=booking.pk, status=Invoice.STATUS_PENDING)
            for old in previous:
                old.status = Invoice.STATUS_VOID
                self.store.invoices.upsert(old)

            sequence = len(self.store.invoices.list(booking_id=booking.pk)) + 1
            invoice.invoice_number = f"INV-{booking.pk}-{sequence}"
            self.store.invoices.upsert(invoice)

            for line in lines:
                line.invoice_id = invoice.pk
                self.store.items.upsert(line)

        logger.info(
            "Invoice %s issued for booking %s: total=%s (%s lines, %s voided)",
            invoice.invoice_number, booking.pk, invoice.total_amount, len(lines), len(previous),
        )
        return invoice

    def lines(self, invoice_id):
        return self.store.items.list(invoice_id=invoice_id)
