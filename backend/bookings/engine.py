# backend/bookings/engine.py
"""
Точка входа в движок сессий для API-слоя.

Собирает склад, позиции сессии, биллинг и оплату поверх одного Store.
Во вьюхах используется get_engine() (Django ORM), в тестах -
SessionEngine(InMemoryStore()).
"""
from django.conf import settings

from billing.calculator import BillingService
from billing import settlement
from core.store import DjangoStore
from inventory.ledger import StockLedger
from . import classifier
from .session_items import SessionItemStore


def _restock_on_change_default() -> bool:
    config = getattr(settings, "SESSION_BILLING", {}) or {}
    return bool(config.get("RESTOCK_ON_ITEM_CHANGE", False))


class SessionEngine:
    def __init__(self, store, restock_on_change=None):
        if restock_on_change is None:
            restock_on_change = _restock_on_change_default()

        self.store = store
        self.ledger = StockLedger(store)
        self.items = SessionItemStore(store, self.ledger, restock_on_change=restock_on_change)
        self.billing = BillingService(store)

    # --- классификация -------------------------------------------------------

    def classify(self, booking, now):
        return classifier.classify(booking, now)

    def board(self, branch_id, now):
        """Брони филиала по вкладкам active / future / completed."""
        return classifier.group_by_state(self.store.bookings.list(branch_id=branch_id), now)

    # --- позиции сессии ------------------------------------------------------

    def add_item(self, session_id, product_id, quantity, individual_name=None,
                 override_price=None, scope=None, now=None):
        return self.items.add_item(
            session_id,
            product_id,
            quantity,
            individual_name=individual_name,
            override_price=override_price,
            scope=scope,
            now=now,
        )

    def update_item(self, item_id, quantity=None, unit_price=None, individual_name=None, scope=None):
        return self.items.update_item(
            item_id,
            quantity=quantity,
            unit_price=unit_price,
            individual_name=individual_name,
            scope=scope,
        )

    def remove_item(self, item_id, scope=None):
        return self.items.remove_item(item_id, scope=scope)

    def batch_add(self, session_id, entries, scope=None, now=None):
        return self.items.batch_add(session_id, entries, scope=scope, now=now)

    # --- расчёт и закрытие ---------------------------------------------------

    def settle(self, booking_id, now, scope=None):
        return self.billing.settle(booking_id, now, scope=scope)

    def confirm_payment(self, invoice_id, now, scope=None, payment_method="cash"):
        return settlement.confirm_payment(
            self.store, invoice_id, now, scope=scope, payment_method=payment_method
        )

    def cancel_booking(self, booking_id, scope=None):
        return settlement.cancel_booking(self.store, booking_id, scope=scope)

    def check_in(self, booking_id, now, scope=None):
        return settlement.check_in(self.store, booking_id, now, scope=scope)


def get_engine() -> SessionEngine:
    return SessionEngine(DjangoStore())
