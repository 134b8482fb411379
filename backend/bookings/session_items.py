# backend/bookings/session_items.py
"""
Позиции открытой сессии (товары, заказанные во время брони).

Каждая мутация:
  - выполняется внутри store.atomic() и перечитывает бронь с блокировкой,
    чтобы параллельные добавления не теряли обновления total_amount;
  - поддерживает инвариант: у открытой брони
    total_amount == сумма total_price её позиций;
  - аннулирует неоплаченный счёт брони: он выставлен по старому составу
    сессии, оплатить можно только счёт, выставленный заново.
"""
import logging

from django.utils import timezone

from billing.models import Invoice, InvoiceItem
from core.errors import AlreadySettled, BillingError, Inactive
from core.money import parse_price, to_money
from core.scope import check_scope
from inventory.ledger import require_positive_quantity

logger = logging.getLogger(__name__)


def ensure_open(booking):
    if booking.is_terminal:
        raise AlreadySettled(
            f"Бронь #{booking.pk} уже в статусе '{booking.status}', позиции менять нельзя.",
            booking_id=booking.pk,
            status=booking.status,
        )
    return booking


class BatchResult:
    """Итог пакетного добавления: по записи на каждую входную позицию."""

    def __init__(self):
        self.entries = []

    def add_success(self, index, item):
        self.entries.append({"index": index, "ok": True, "item": item})

    def add_failure(self, index, error: BillingError):
        self.entries.append(
            {
                "index": index,
                "ok": False,
                "code": error.kind,
                "detail": str(error.detail),
            }
        )

    @property
    def succeeded(self) -> int:
        return sum(1 for entry in self.entries if entry["ok"])

    @property
    def failed(self) -> int:
        return len(self.entries) - self.succeeded

    @property
    def items(self):
        return [entry["item"] for entry in self.entries if entry["ok"]]


class SessionItemStore:
    def __init__(self, store, ledger, restock_on_change=False):
        self.store = store
        self.ledger = ledger
        # False: правки/удаление позиций не возвращают товар на склад
        self.restock_on_change = restock_on_change

    def items_for(self, session_id):
        """Позиции открытой сессии в порядке добавления (без строк счетов)."""
        return self.store.items.list(booking_id=session_id, invoice_id=None)

    def _load_open_booking(self, session_id, scope):
        booking = self.store.bookings.get(session_id, for_update=True)
        check_scope(scope, booking)
        return ensure_open(booking)

    def _void_pending_invoices(self, booking):
        voided = self.store.invoices.list(booking_id=booking.pk, status=Invoice.STATUS_PENDING)
        for invoice in voided:
            invoice.status = Invoice.STATUS_VOID
            self.store.invoices.upsert(invoice)
        if voided:
            logger.info(
                "Session %s changed, pending invoice(s) voided: %s",
                booking.pk, ", ".join(invoice.invoice_number for invoice in voided),
            )

    def _load_session_item(self, item_id, scope):
        item = self.store.items.get(item_id, for_update=True)
        if item.invoice_id is not None or item.booking_id is None:
            raise AlreadySettled(
                f"Позиция #{item.pk} уже вошла в счёт и не редактируется.",
                item_id=item.pk,
            )
        booking = self._load_open_booking(item.booking_id, scope)
        return item, booking

    def add_item(
        self,
        session_id,
        product_id,
        quantity,
        individual_name=None,
        override_price=None,
        scope=None,
        now=None,
    ):
        require_positive_quantity(quantity)
        price_override = None
        if override_price is not None:
            price_override = parse_price(override_price)

        with self.store.atomic():
            booking = self._load_open_booking(session_id, scope)

            # товар ищем только в филиале брони
            product = self.store.products.get(product_id, branch_id=booking.branch_id)
            if not product.is_active:
                raise Inactive(
                    f"Товар '{product.name}' снят с продажи.", product_id=product.pk
                )

            self.ledger.apply_deduction(product.pk, quantity, branch_id=booking.branch_id)

            unit_price = price_override if price_override is not None else to_money(product.price)
            item = self.store.items.upsert(
                InvoiceItem(
                    booking_id=booking.pk,
                    item_type=InvoiceItem.TYPE_PRODUCT,
                    related_id=product.pk,
                    name=product.name,
                    quantity=quantity,
                    unit_price=unit_price,
                    total_price=to_money(unit_price * quantity),
                    individual_name=individual_name or None,
                    created_at=now or timezone.now(),
                )
            )

            booking.total_amount = to_money(booking.total_amount + item.total_price)
            self.store.bookings.upsert(booking)
            self._void_pending_invoices(booking)

        logger.info(
            "Session %s: +%s x %s (%s) total=%s",
            booking.pk, quantity, product.name, item.total_price, booking.total_amount,
        )
        return item

    def update_item(self, item_id, quantity=None, unit_price=None, individual_name=None, scope=None):
        """
        Правка количества/цены позиции. total_price пересчитывается,
        total_amount брони сдвигается на разницу (новое - старое).
        """
        if quantity is not None:
            require_positive_quantity(quantity)
        new_price = parse_price(unit_price) if unit_price is not None else None

        with self.store.atomic():
            item, booking = self._load_session_item(item_id, scope)

            new_quantity = quantity if quantity is not None else item.quantity
            if new_price is None:
                new_price = to_money(item.unit_price)

            if self.restock_on_change and item.item_type == InvoiceItem.TYPE_PRODUCT:
                self._adjust_stock(item, new_quantity - item.quantity, booking.branch_id)

            old_total = to_money(item.total_price)
            item.quantity = new_quantity
            item.unit_price = new_price
            item.total_price = to_money(new_price * new_quantity)
            if individual_name is not None:
                item.individual_name = individual_name or None
            self.store.items.upsert(item)

            booking.total_amount = to_money(booking.total_amount + item.total_price - old_total)
            self.store.bookings.upsert(booking)
            self._void_pending_invoices(booking)

        return item

    def remove_item(self, item_id, scope=None):
        with self.store.atomic():
            item, booking = self._load_session_item(item_id, scope)

            if self.restock_on_change and item.item_type == InvoiceItem.TYPE_PRODUCT:
                self._adjust_stock(item, -item.quantity, booking.branch_id)

            self.store.items.delete(item.pk)
            booking.total_amount = to_money(booking.total_amount - item.total_price)
            self.store.bookings.upsert(booking)
            self._void_pending_invoices(booking)

        logger.info("Session %s: item #%s removed, total=%s", booking.pk, item_id, booking.total_amount)
        return booking

    def batch_add(self, session_id, entries, scope=None, now=None) -> BatchResult:
        """
        Пакетное добавление. Каждая позиция пробуется отдельно:
        нехватка одного товара не отменяет остальные.

        Ошибки уровня брони (нет брони, чужой филиал, бронь закрыта)
        бросаются сразу: ни одна позиция всё равно не пройдёт.

        entries: [{"product_id": 1, "quantity": 2, "individual_name": "...", "custom_price": "15.00"}, ...]
        """
        with self.store.atomic():
            self._load_open_booking(session_id, scope)

        result = BatchResult()
        for index, entry in enumerate(entries):
            try:
                item = self.add_item(
                    session_id,
                    entry.get("product_id"),
                    entry.get("quantity"),
                    individual_name=entry.get("individual_name"),
                    override_price=entry.get("custom_price"),
                    scope=scope,
                    now=now,
                )
            except BillingError as exc:
                result.add_failure(index, exc)
            else:
                result.add_success(index, item)

        logger.info(
            "Session %s batch: %s ok, %s failed", session_id, result.succeeded, result.failed
        )
        return result

    def _adjust_stock(self, item, delta, branch_id):
        if delta > 0:
            self.ledger.apply_deduction(item.related_id, delta, branch_id=branch_id)
        elif delta < 0:
            self.ledger.reverse_deduction(item.related_id, -delta, branch_id=branch_id)
