"""Pytest configuration and fixtures."""

import datetime as dt
from decimal import Decimal

import pytest

from bookings.engine import SessionEngine
from bookings.models import Booking
from branches.models import Branch, Client
from core.scope import BranchScope
from core.store import InMemoryStore
from inventory.models import Product, ProductRecipe
from rooms.models import Room

T0 = dt.datetime(2025, 11, 24, 10, 0, tzinfo=dt.timezone.utc)


def minutes(n):
    return dt.timedelta(minutes=n)


# -----------------------------------------------------------------------------
# Движок в памяти (без БД)
# -----------------------------------------------------------------------------


@pytest.fixture
def store() -> InMemoryStore:
    """Хранилище с двумя филиалами, клиентом и комнатой 50/ч в первом."""
    store = InMemoryStore()
    store.branches.upsert(Branch(name="Центр"))
    store.branches.upsert(Branch(name="Левый берег"))
    store.clients.upsert(Client(branch_id=1, name="Test Client", email="client@example.com"))
    store.rooms.upsert(Room(branch_id=1, name="Переговорная A", hourly_rate=Decimal("50.00")))
    return store


@pytest.fixture
def engine(store) -> SessionEngine:
    return SessionEngine(store, restock_on_change=False)


@pytest.fixture
def restocking_engine(store) -> SessionEngine:
    return SessionEngine(store, restock_on_change=True)


@pytest.fixture
def make_product(store):
    def _make(name="Чай", price="10.00", stock=10, branch_id=1, min_stock=0, is_active=True):
        return store.products.upsert(
            Product(
                branch_id=branch_id,
                name=name,
                price=Decimal(price),
                stock_quantity=stock,
                min_stock_level=min_stock,
                is_active=is_active,
            )
        )

    return _make


@pytest.fixture
def make_recipe(store):
    """Ребро рецептуры в обход ledger (для проверки защит при разложении)."""

    def _make(product, component, quantity_needed):
        return store.recipes.upsert(
            ProductRecipe(
                product_id=product.pk,
                component_product_id=component.pk,
                quantity_needed=quantity_needed,
            )
        )

    return _make


@pytest.fixture
def make_booking(store):
    def _make(start=T0, end=None, status=Booking.STATUS_CONFIRMED, branch_id=1, room_id=1, client_id=1):
        return store.bookings.upsert(
            Booking(
                branch_id=branch_id,
                room_id=room_id,
                client_id=client_id,
                start_time=start,
                end_time=end or start + minutes(120),
                status=status,
            )
        )

    return _make


@pytest.fixture
def booking(make_booking):
    return make_booking()


@pytest.fixture
def branch_scope() -> BranchScope:
    return BranchScope(branch_id=1)


@pytest.fixture
def other_scope() -> BranchScope:
    return BranchScope(branch_id=2)


# -----------------------------------------------------------------------------
# Django ORM / API
# -----------------------------------------------------------------------------


@pytest.fixture
def db_branch(db):
    return Branch.objects.create(name="Центр", telegram_chat_id=-100123)


@pytest.fixture
def db_other_branch(db):
    return Branch.objects.create(name="Левый берег")


@pytest.fixture
def db_client(db_branch):
    return Client.objects.create(branch=db_branch, name="Test Client", email="client@example.com")


@pytest.fixture
def db_room(db_branch):
    return Room.objects.create(branch=db_branch, name="Переговорная A", hourly_rate=Decimal("50.00"))


@pytest.fixture
def db_product(db_branch):
    return Product.objects.create(branch=db_branch, name="Чай", price=Decimal("10.00"), stock_quantity=10)


@pytest.fixture
def db_booking(db_branch, db_room, db_client):
    return Booking.objects.create(
        branch=db_branch,
        room=db_room,
        client=db_client,
        start_time=T0,
        end_time=T0 + minutes(120),
    )


def _make_user(django_user_model, username, branch, role):
    from users.models import UserProfile

    user = django_user_model.objects.create_user(username=username, password="pass12345")
    UserProfile.objects.create(user=user, branch=branch, role=role)
    return user


@pytest.fixture
def manager(django_user_model, db_branch):
    return _make_user(django_user_model, "manager", db_branch, "manager")


@pytest.fixture
def employee(django_user_model, db_branch):
    return _make_user(django_user_model, "employee", db_branch, "employee")


@pytest.fixture
def foreign_employee(django_user_model, db_other_branch):
    return _make_user(django_user_model, "foreign", db_other_branch, "employee")


@pytest.fixture
def api_client():
    from rest_framework.test import APIClient

    return APIClient()


@pytest.fixture
def manager_client(api_client, manager):
    api_client.force_authenticate(user=manager)
    return api_client


@pytest.fixture
def employee_client(api_client, employee):
    api_client.force_authenticate(user=employee)
    return api_client


@pytest.fixture(autouse=True)
def _no_telegram(settings):
    # Telegram в тестах не вызывается, если тест сам не задал токен
    settings.TELEGRAM_BOT_TOKEN = ""
    settings.EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"
