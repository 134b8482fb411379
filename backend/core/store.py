# backend/core/store.py
"""
Хранилище сущностей движка сессий.

Ядро (склад, позиции сессии, биллинг, оплата) работает не напрямую с ORM,
а через репозитории с одинаковым интерфейсом:

    get(pk, branch_id=None, for_update=False)
    list(**filters)      # всегда по возрастанию id
    upsert(obj)
    delete(pk)

Есть две реализации:
  - DjangoRepository  - обычная БД через ORM (прод);
  - InMemoryRepository - словарь {id: объект} в памяти процесса (тесты, демо).

Store собирает репозитории всех сущностей и даёт atomic() - границу
"всё или ничего" для мутаций.
"""
import copy
import threading
from contextlib import contextmanager

from django.db import transaction

from .errors import NotFound


def _model_registry():
    # импорт внутри функции: core не должен тянуть модели при загрузке приложений
    from branches.models import Branch, Client
    from rooms.models import Room
    from inventory.models import Product, ProductRecipe
    from bookings.models import Booking
    from billing.models import Invoice, InvoiceItem

    return {
        "branches": Branch,
        "clients": Client,
        "rooms": Room,
        "products": Product,
        "recipes": ProductRecipe,
        "bookings": Booking,
        "items": InvoiceItem,
        "invoices": Invoice,
    }


def _not_found(model, pk):
    return NotFound(
        f"{model._meta.verbose_name.capitalize()} #{pk} не найден(а).",
        model=model.__name__,
        pk=pk,
    )


def _check_branch(model, obj, branch_id):
    """Объект из чужого филиала для вызывающего просто "не существует"."""
    if branch_id is None:
        return obj
    if getattr(obj, "branch_id", branch_id) != branch_id:
        raise _not_found(model, obj.pk)
    return obj


class Repository:
    model = None

    def get(self, pk, branch_id=None, for_update=False):
        raise NotImplementedError

    def list(self, **filters):
        raise NotImplementedError

    def upsert(self, obj):
        raise NotImplementedError

    def delete(self, pk):
        raise NotImplementedError

    def exists(self, **filters) -> bool:
        return bool(self.list(**filters))


class DjangoRepository(Repository):
    def __init__(self, model):
        self.model = model

    def _queryset(self):
        return self.model._default_manager.all()

    def get(self, pk, branch_id=None, for_update=False):
        qs = self._queryset()
        if for_update:
            qs = qs.select_for_update()
        try:
            obj = qs.get(pk=pk)
        except (self.model.DoesNotExist, ValueError, TypeError):
            raise _not_found(self.model, pk)
        return _check_branch(self.model, obj, branch_id)

    def list(self, **filters):
        return list(self._queryset().filter(**filters).order_by("id"))

    def upsert(self, obj):
        obj.save()
        return obj

    def delete(self, pk):
        self._queryset().filter(pk=pk).delete()


class InMemoryRepository(Repository):
    """
    Строки в dict по id. Никаких индексов массива: конкурентные вставки
    и удаления не сдвигают чужие записи.
    """

    def __init__(self, model):
        self.model = model
        self._rows = {}
        self._next_id = 1

    @staticmethod
    def _matches(obj, filters):
        for key, expected in filters.items():
            if key.endswith("__in"):
                if getattr(obj, key[:-4]) not in expected:
                    return False
            elif getattr(obj, key) != expected:
                return False
        return True

    def get(self, pk, branch_id=None, for_update=False):
        obj = self._rows.get(pk)
        if obj is None:
            raise _not_found(self.model, pk)
        return _check_branch(self.model, obj, branch_id)

    def list(self, **filters):
        return [
            obj for pk, obj in sorted(self._rows.items())
            if self._matches(obj, filters)
        ]

    def upsert(self, obj):
        if obj.pk is None:
            obj.pk = self._next_id
        self._next_id = max(self._next_id, obj.pk + 1)
        self._rows[obj.pk] = obj
        return obj

    def delete(self, pk):
        self._rows.pop(pk, None)

    def snapshot(self):
        return copy.deepcopy(self._rows), self._next_id

    def restore(self, state):
        self._rows, self._next_id = state


class Store:
    repository_class = None

    def __init__(self):
        for name, model in _model_registry().items():
            setattr(self, name, self.repository_class(model))

    def repositories(self):
        return {name: getattr(self, name) for name in _model_registry()}

    def atomic(self):
        raise NotImplementedError


class DjangoStore(Store):
    """Репозитории поверх ORM; atomic() = транзакция БД."""

    repository_class = DjangoRepository

    def atomic(self):
        return transaction.atomic()


class InMemoryStore(Store):
    """
    Хранилище в памяти процесса.

    atomic() сериализует мутации через общий RLock и при исключении
    откатывает все строки к снимку, сделанному на входе во внешний блок.
    """

    repository_class = InMemoryRepository

    def __init__(self):
        super().__init__()
        self._lock = threading.RLock()
        self._depth = 0

    @contextmanager
    def atomic(self):
        with self._lock:
            outermost = self._depth == 0
            snapshot = None
            if outermost:
                snapshot = {
                    name: repo.snapshot()
                    for name, repo in self.repositories().items()
                }
            self._depth += 1
            try:
                yield
            except BaseException:
                if outermost:
                    for name, repo in self.repositories().items():
                        repo.restore(snapshot[name])
                raise
            finally:
                self._depth -= 1
