from decimal import Decimal

import pytest

from billing.calculator import elapsed_seconds, time_cost
from billing.models import Invoice, InvoiceItem
from bookings.models import Booking
from core.errors import AccessDenied, AlreadySettled, NotFound

from .conftest import T0, minutes


class TestTimeCost:
    def test_ninety_minutes_at_fifty(self):
        assert time_cost(T0, T0 + minutes(90), Decimal("50.00")) == Decimal("75.00")

    def test_before_start_is_zero(self):
        assert elapsed_seconds(T0, T0 - minutes(5)) == 0
        assert time_cost(T0, T0 - minutes(5), Decimal("50.00")) == Decimal("0.00")

    def test_rounds_half_up_to_cents(self):
        # 1 минута по 0.30/ч = 0.005 → 0.01
        assert time_cost(T0, T0 + minutes(1), Decimal("0.30")) == Decimal("0.01")


class TestSettle:
    def test_ninety_minute_session_with_items(self, engine, store, booking, make_product):
        snack = make_product("Снек", price="10.00", stock=10)
        engine.add_item(booking.pk, snack.pk, 2, now=T0 + minutes(10))

        invoice = engine.settle(booking.pk, T0 + minutes(90))

        assert invoice.total_amount == Decimal("95.00")
        assert invoice.amount == Decimal("95.00")
        assert invoice.tax_amount == Decimal("0.00")
        assert invoice.status == Invoice.STATUS_PENDING
        assert invoice.invoice_number == f"INV-{booking.pk}-1"

        lines = engine.billing.lines(invoice.pk)
        assert [line.item_type for line in lines] == [InvoiceItem.TYPE_TIME_ENTRY, InvoiceItem.TYPE_PRODUCT]
        assert lines[0].total_price == Decimal("75.00")
        assert lines[0].related_id == booking.client_id
        assert lines[1].total_price == Decimal("20.00")

        # бронь остаётся открытой до оплаты
        assert store.bookings.get(booking.pk).status == Booking.STATUS_CONFIRMED

    def test_settle_uses_actual_time_not_planned_end(self, engine, make_booking):
        long_booking = make_booking(end=T0 + minutes(600))
        invoice = engine.settle(long_booking.pk, T0 + minutes(30))
        assert invoice.total_amount == Decimal("25.00")

    def test_settle_before_start_bills_items_only(self, engine, booking, make_product):
        tea = make_product(price="3.50")
        engine.add_item(booking.pk, tea.pk, 2)

        invoice = engine.settle(booking.pk, T0 - minutes(30))

        assert invoice.total_amount == Decimal("7.00")

    def test_resettle_voids_previous_pending(self, engine, store, booking):
        first = engine.settle(booking.pk, T0 + minutes(60))
        second = engine.settle(booking.pk, T0 + minutes(120))

        assert store.invoices.get(first.pk).status == Invoice.STATUS_VOID
        assert second.status == Invoice.STATUS_PENDING
        assert second.invoice_number == f"INV-{booking.pk}-2"
        assert second.total_amount == Decimal("100.00")

    def test_invoice_lines_are_a_snapshot(self, engine, store, booking, make_product):
        tea = make_product(price="10.00")
        item = engine.add_item(booking.pk, tea.pk, 1)
        invoice = engine.settle(booking.pk, T0 + minutes(60))

        engine.update_item(item.pk, quantity=4)

        assert [line.total_price for line in engine.billing.lines(invoice.pk)] == [
            Decimal("50.00"),
            Decimal("10.00"),
        ]
        assert store.invoices.get(invoice.pk).total_amount == Decimal("60.00")

    @pytest.mark.parametrize("status", [Booking.STATUS_CANCELLED, Booking.STATUS_COMPLETED])
    def test_closed_booking(self, engine, make_booking, status):
        closed = make_booking(status=status)
        with pytest.raises(AlreadySettled):
            engine.settle(closed.pk, T0 + minutes(60))

    def test_missing_booking(self, engine):
        with pytest.raises(NotFound):
            engine.settle(404, T0)

    def test_scope_of_other_branch_denied(self, engine, store, booking, other_scope):
        with pytest.raises(AccessDenied):
            engine.settle(booking.pk, T0 + minutes(60), scope=other_scope)
        assert store.invoices.list() == []


class TestConfirmPayment:
    def test_completes_booking(self, engine, store, booking):
        invoice = engine.settle(booking.pk, T0 + minutes(90))
        paid_at = T0 + minutes(95)

        invoice, closed = engine.confirm_payment(invoice.pk, paid_at, payment_method="card")

        assert invoice.status == Invoice.STATUS_PAID
        assert invoice.payment_status == "paid"
        assert invoice.payment_method == "card"
        assert invoice.paid_at == paid_at
        assert closed.status == Booking.STATUS_COMPLETED
        assert closed.check_out_time == paid_at
        assert closed.total_amount == Decimal("75.00")

    def test_is_idempotent(self, engine, store, booking, make_product):
        tea = make_product(stock=10)
        engine.add_item(booking.pk, tea.pk, 2)
        invoice = engine.settle(booking.pk, T0 + minutes(90))

        engine.confirm_payment(invoice.pk, T0 + minutes(95))
        engine.confirm_payment(invoice.pk, T0 + minutes(200), payment_method="card")

        again = store.invoices.get(invoice.pk)
        assert again.status == Invoice.STATUS_PAID
        assert again.paid_at == T0 + minutes(95)
        assert again.payment_method == "cash"
        assert again.total_amount == Decimal("95.00")
        assert store.products.get(tea.pk).stock_quantity == 8
        assert store.bookings.get(booking.pk).check_out_time == T0 + minutes(95)

    def test_void_invoice_cannot_be_paid(self, engine, booking):
        first = engine.settle(booking.pk, T0 + minutes(60))
        engine.settle(booking.pk, T0 + minutes(90))

        with pytest.raises(AlreadySettled):
            engine.confirm_payment(first.pk, T0 + minutes(95))

    def test_completed_booking_rejects_new_items(self, engine, booking, make_product):
        tea = make_product()
        invoice = engine.settle(booking.pk, T0 + minutes(60))
        engine.confirm_payment(invoice.pk, T0 + minutes(61))

        with pytest.raises(AlreadySettled):
            engine.add_item(booking.pk, tea.pk, 1)
        with pytest.raises(AlreadySettled):
            engine.settle(booking.pk, T0 + minutes(70))


class TestCancelAndCheckIn:
    def test_cancel_then_add_item(self, engine, store, booking, make_product):
        tea = make_product()

        engine.cancel_booking(booking.pk)

        assert store.bookings.get(booking.pk).status == Booking.STATUS_CANCELLED
        with pytest.raises(AlreadySettled):
            engine.add_item(booking.pk, tea.pk, 1)

    def test_cancel_voids_pending_invoice(self, engine, store, booking):
        invoice = engine.settle(booking.pk, T0 + minutes(60))
        engine.cancel_booking(booking.pk)

        assert store.invoices.get(invoice.pk).status == Invoice.STATUS_VOID
        with pytest.raises(AlreadySettled):
            engine.confirm_payment(invoice.pk, T0 + minutes(61))

    def test_cancel_twice(self, engine, booking):
        engine.cancel_booking(booking.pk)
        with pytest.raises(AlreadySettled):
            engine.cancel_booking(booking.pk)

    def test_check_in_keeps_first_time(self, engine, store, booking):
        engine.check_in(booking.pk, T0 + minutes(5))
        engine.check_in(booking.pk, T0 + minutes(15))

        assert store.bookings.get(booking.pk).check_in_time == T0 + minutes(5)

    def test_check_in_cancelled(self, engine, booking):
        engine.cancel_booking(booking.pk)
        with pytest.raises(AlreadySettled):
            engine.check_in(booking.pk, T0)


class TestItemsAfterSettle:
    def test_item_added_after_settle_voids_invoice(self, engine, store, booking, make_product):
        tea = make_product(price="10.00", stock=10)
        invoice = engine.settle(booking.pk, T0 + minutes(90))

        engine.add_item(booking.pk, tea.pk, 2)

        assert store.invoices.get(invoice.pk).status == Invoice.STATUS_VOID
        with pytest.raises(AlreadySettled):
            engine.confirm_payment(invoice.pk, T0 + minutes(95))
        assert store.bookings.get(booking.pk).status == Booking.STATUS_CONFIRMED

    def test_resettled_invoice_bills_late_items(self, engine, store, booking, make_product):
        tea = make_product(price="10.00", stock=10)
        engine.settle(booking.pk, T0 + minutes(90))
        engine.add_item(booking.pk, tea.pk, 2)

        invoice = engine.settle(booking.pk, T0 + minutes(90))
        _, closed = engine.confirm_payment(invoice.pk, T0 + minutes(95))

        assert invoice.total_amount == Decimal("95.00")
        assert closed.total_amount == Decimal("95.00")
        assert store.products.get(tea.pk).stock_quantity == 8

    @pytest.mark.parametrize("change", ["update", "remove"])
    def test_item_change_after_settle_voids_invoice(self, engine, store, booking, make_product, change):
        tea = make_product(price="10.00", stock=10)
        item = engine.add_item(booking.pk, tea.pk, 2)
        invoice = engine.settle(booking.pk, T0 + minutes(60))

        if change == "update":
            engine.update_item(item.pk, quantity=1)
        else:
            engine.remove_item(item.pk)

        assert store.invoices.get(invoice.pk).status == Invoice.STATUS_VOID


class TestLockOrder:
    @pytest.fixture
    def locks(self, store, monkeypatch):
        taken = []

        for name in ("bookings", "invoices"):
            repo = getattr(store, name)

            def recording_get(pk, branch_id=None, for_update=False, _name=name, _get=repo.get):
                if for_update:
                    taken.append(_name)
                return _get(pk, branch_id=branch_id, for_update=for_update)

            monkeypatch.setattr(repo, "get", recording_get)
        return taken

    def test_confirm_payment_locks_booking_before_invoice(self, engine, booking, locks):
        invoice = engine.settle(booking.pk, T0 + minutes(60))
        locks.clear()

        engine.confirm_payment(invoice.pk, T0 + minutes(61))

        assert locks == ["bookings", "invoices"]

    def test_settle_and_cancel_lock_booking_only(self, engine, booking, locks):
        engine.settle(booking.pk, T0 + minutes(60))
        engine.cancel_booking(booking.pk)

        assert locks == ["bookings", "bookings"]
