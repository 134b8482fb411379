# backend/inventory/ledger.py
"""
Складской учёт филиала: списание, пополнение и разложение
составных товаров по рецептуре до "листовых" компонентов.

Пример: "Латте" = 2 × "Эспрессо" + 1 × "Молоко 200 мл",
"Эспрессо" = 1 × "Зёрна 18 г". Продажа 3 латте списывает
6 порций зёрен и 3 порции молока; остаток самого "Латте" и
"Эспрессо" не трогается.
"""
import logging

from core.errors import InvalidQuantity, RecipeConflict, StockInsufficient
from core.scope import check_scope
from .models import ProductRecipe

logger = logging.getLogger(__name__)


def require_positive_quantity(quantity, label="Количество"):
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidQuantity(
            f"{label} должно быть целым числом больше нуля (получено: {quantity!r}).",
            quantity=quantity,
        )
    return quantity


class StockLedger:
    def __init__(self, store):
        self.store = store

    # -------------------------------------------------------------------------
    # РЕЦЕПТУРА
    # -------------------------------------------------------------------------

    def components(self, product_id):
        return self.store.recipes.list(product_id=product_id)

    def is_composite(self, product_id) -> bool:
        return self.store.recipes.exists(product_id=product_id)

    def resolve_deduction(self, product_id, quantity) -> dict:
        """
        Возвращает {product_id листового товара: сколько списать}.

        Один и тот же компонент, встреченный по разным путям рецептуры,
        суммируется, поэтому списывается ровно один раз за продажу.
        """
        require_positive_quantity(quantity)
        totals = {}
        self._resolve(product_id, quantity, totals, path=())
        return totals

    def _resolve(self, product_id, quantity, totals, path):
        if product_id in path:
            # add_component не даёт создать цикл; сюда попадают только рёбра, заведённые мимо ledger
            chain = " → ".join(str(pid) for pid in path + (product_id,))
            raise RecipeConflict(f"Циклическая рецептура: {chain}.", product_id=product_id)

        edges = self.components(product_id)
        if not edges:
            totals[product_id] = totals.get(product_id, 0) + quantity
            return

        for edge in edges:
            self._resolve(
                edge.component_product_id,
                quantity * edge.quantity_needed,
                totals,
                path + (product_id,),
            )

    def _reaches(self, start_id, target_id) -> bool:
        """Есть ли путь по рецептуре от start_id до target_id."""
        stack = [start_id]
        seen = set()
        while stack:
            current = stack.pop()
            if current == target_id:
                return True
            if current in seen:
                continue
            seen.add(current)
            stack.extend(edge.component_product_id for edge in self.components(current))
        return False

    def add_component(self, product_id, component_id, quantity_needed, scope=None):
        """
        Добавляет компонент в рецептуру.

        Отклоняется (RecipeConflict):
          - компонент уже есть в рецептуре этого товара (рёбра не суммируются);
          - компонент из другого филиала;
          - ребро замыкает цикл (в т.ч. товар сам себе компонент).
        """
        require_positive_quantity(quantity_needed, "Количество компонента")

        with self.store.atomic():
            product = check_scope(scope, self.store.products.get(product_id))
            component = self.store.products.get(component_id)

            if component.branch_id != product.branch_id:
                raise RecipeConflict(
                    "Компонент должен принадлежать тому же филиалу, что и товар."
                )

            if self.store.recipes.exists(
                product_id=product.pk, component_product_id=component.pk
            ):
                raise RecipeConflict(
                    f"Компонент '{component.name}' уже входит в рецептуру '{product.name}'."
                )

            if self._reaches(component.pk, product.pk):
                raise RecipeConflict(
                    f"Компонент '{component.name}' (прямо или косвенно) содержит '{product.name}'."
                )

            edge = self.store.recipes.upsert(
                ProductRecipe(
                    product_id=product.pk,
                    component_product_id=component.pk,
                    quantity_needed=quantity_needed,
                )
            )

        logger.info(
            "Recipe edge #%s: product=%s component=%s x%s",
            edge.pk, product.pk, component.pk, quantity_needed,
        )
        return edge

    def update_component(self, recipe_id, quantity_needed, scope=None):
        require_positive_quantity(quantity_needed, "Количество компонента")

        with self.store.atomic():
            edge = self.store.recipes.get(recipe_id, for_update=True)
            check_scope(scope, self.store.products.get(edge.product_id))
            edge.quantity_needed = quantity_needed
            self.store.recipes.upsert(edge)

        return edge

    def remove_component(self, recipe_id, scope=None):
        with self.store.atomic():
            edge = self.store.recipes.get(recipe_id)
            check_scope(scope, self.store.products.get(edge.product_id))
            self.store.recipes.delete(edge.pk)

        logger.info("Recipe edge #%s removed from product %s", recipe_id, edge.product_id)

    # -------------------------------------------------------------------------
    # ОСТАТКИ
    # -------------------------------------------------------------------------

    def deduct(self, product_id, quantity, branch_id=None):
        """Списание с одной записи товара, без разложения по рецептуре."""
        require_positive_quantity(quantity)

        with self.store.atomic():
            product = self.store.products.get(product_id, branch_id=branch_id, for_update=True)
            self._check_available(product, quantity)
            self._apply(product, -quantity)

        return product

    def restock(self, product_id, quantity, branch_id=None):
        require_positive_quantity(quantity)

        with self.store.atomic():
            product = self.store.products.get(product_id, branch_id=branch_id, for_update=True)
            self._apply(product, quantity)

        return product

    def apply_deduction(self, product_id, quantity, branch_id=None) -> dict:
        """
        Списывает все листовые компоненты продажи атомарно.

        Сначала проверяются ВСЕ остатки, и только потом что-то пишется:
        если хоть одного компонента не хватает - не списывается ничего.
        """
        plan = self.resolve_deduction(product_id, quantity)

        with self.store.atomic():
            # блокируем строки в порядке id, чтобы параллельные продажи не ловили deadlock
            products = [
                self.store.products.get(pid, branch_id=branch_id, for_update=True)
                for pid in sorted(plan)
            ]

            for product in products:
                self._check_available(product, plan[product.pk])

            for product in products:
                self._apply(product, -plan[product.pk])

        return plan

    def reverse_deduction(self, product_id, quantity, branch_id=None) -> dict:
        """Возврат на склад того, что списала apply_deduction(product_id, quantity)."""
        plan = self.resolve_deduction(product_id, quantity)

        with self.store.atomic():
            for pid in sorted(plan):
                product = self.store.products.get(pid, branch_id=branch_id, for_update=True)
                self._apply(product, plan[pid])

        return plan

    def low_stock(self, branch_id):
        """Активные листовые товары с остатком на уровне минимума или ниже."""
        return [
            product
            for product in self.store.products.list(branch_id=branch_id, is_active=True)
            if product.is_low_stock and not self.is_composite(product.pk)
        ]

    def _check_available(self, product, quantity):
        if product.stock_quantity < quantity:
            logger.warning(
                "Stock rejected: product=%s requested=%s available=%s",
                product.pk, quantity, product.stock_quantity,
            )
            raise StockInsufficient(
                f"Недостаточно '{product.name}' на складе. "
                f"Запрошено: {quantity}, доступно: {product.stock_quantity}.",
                product_id=product.pk,
                requested=quantity,
                available=product.stock_quantity,
            )

    def _apply(self, product, delta):
        product.stock_quantity += delta
        self.store.products.upsert(product)

        logger.info(
            "Stock %s: product=%s delta=%+d now=%s",
            "restock" if delta > 0 else "deduct", product.pk, delta, product.stock_quantity,
        )
        if delta < 0 and product.is_low_stock:
            logger.warning(
                "Low stock: product=%s '%s' %s <= min %s",
                product.pk, product.name, product.stock_quantity, product.min_stock_level,
            )

