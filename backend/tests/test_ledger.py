import pytest

from core.errors import AccessDenied, InvalidQuantity, NotFound, RecipeConflict, StockInsufficient
from core.scope import BranchScope


@pytest.fixture
def ledger(engine):
    return engine.ledger


class TestResolveDeduction:
    def test_leaf_product_deducts_itself(self, ledger, make_product):
        tea = make_product()
        assert ledger.resolve_deduction(tea.pk, 3) == {tea.pk: 3}

    def test_nested_recipe_multiplies_down_to_leaves(self, ledger, make_product):
        # 3 × X, X = 2 × A, A = 1 × B → 6 × B
        x = make_product("Латте", stock=0)
        a = make_product("Эспрессо", stock=0)
        b = make_product("Зёрна", stock=100)
        ledger.add_component(x.pk, a.pk, 2)
        ledger.add_component(a.pk, b.pk, 1)

        assert ledger.resolve_deduction(x.pk, 3) == {b.pk: 6}

    def test_shared_component_summed_across_paths(self, ledger, make_product):
        combo = make_product("Комбо", stock=0)
        latte = make_product("Латте", stock=0)
        milk = make_product("Молоко", stock=100)
        ledger.add_component(combo.pk, latte.pk, 1)
        ledger.add_component(combo.pk, milk.pk, 1)
        ledger.add_component(latte.pk, milk.pk, 2)

        assert ledger.resolve_deduction(combo.pk, 2) == {milk.pk: 6}

    def test_cycle_inserted_bypassing_ledger_is_rejected(self, ledger, make_product, make_recipe):
        a = make_product("A")
        b = make_product("B")
        make_recipe(a, b, 1)
        make_recipe(b, a, 1)

        with pytest.raises(RecipeConflict):
            ledger.resolve_deduction(a.pk, 1)

    @pytest.mark.parametrize("quantity", [0, -1, 1.5, "2", True])
    def test_invalid_quantity(self, ledger, make_product, quantity):
        tea = make_product()
        with pytest.raises(InvalidQuantity):
            ledger.resolve_deduction(tea.pk, quantity)


class TestRecipeEdges:
    def test_self_component_rejected(self, ledger, make_product):
        a = make_product("A")
        with pytest.raises(RecipeConflict):
            ledger.add_component(a.pk, a.pk, 1)

    def test_indirect_cycle_rejected(self, ledger, store, make_product):
        a = make_product("A")
        b = make_product("B")
        c = make_product("C")
        ledger.add_component(a.pk, b.pk, 1)
        ledger.add_component(b.pk, c.pk, 1)

        with pytest.raises(RecipeConflict):
            ledger.add_component(c.pk, a.pk, 1)
        assert len(store.recipes.list()) == 2

    def test_duplicate_edge_rejected(self, ledger, make_product):
        a = make_product("A")
        b = make_product("B")
        ledger.add_component(a.pk, b.pk, 1)

        with pytest.raises(RecipeConflict):
            ledger.add_component(a.pk, b.pk, 2)

    def test_cross_branch_component_rejected(self, ledger, make_product):
        a = make_product("A")
        foreign = make_product("Чужой", branch_id=2)

        with pytest.raises(RecipeConflict):
            ledger.add_component(a.pk, foreign.pk, 1)

    def test_scope_of_other_branch_denied(self, ledger, make_product, other_scope):
        a = make_product("A")
        b = make_product("B")

        with pytest.raises(AccessDenied):
            ledger.add_component(a.pk, b.pk, 1, scope=other_scope)

    def test_update_and_remove(self, ledger, store, make_product, branch_scope):
        a = make_product("A", stock=0)
        b = make_product("B", stock=50)
        edge = ledger.add_component(a.pk, b.pk, 1, scope=branch_scope)

        ledger.update_component(edge.pk, 4, scope=branch_scope)
        assert ledger.resolve_deduction(a.pk, 2) == {b.pk: 8}

        ledger.remove_component(edge.pk, scope=branch_scope)
        assert not ledger.is_composite(a.pk)
        assert ledger.resolve_deduction(a.pk, 2) == {a.pk: 2}


class TestStock:
    def test_apply_deduction_is_all_or_nothing(self, ledger, store, make_product):
        combo = make_product("Комбо", stock=0)
        cups = make_product("Стаканы", stock=100)
        beans = make_product("Зёрна", stock=1)
        ledger.add_component(combo.pk, cups.pk, 1)
        ledger.add_component(combo.pk, beans.pk, 2)

        with pytest.raises(StockInsufficient):
            ledger.apply_deduction(combo.pk, 1)

        assert store.products.get(cups.pk).stock_quantity == 100
        assert store.products.get(beans.pk).stock_quantity == 1

    def test_apply_deduction_leaves_composite_stock_untouched(self, ledger, store, make_product):
        latte = make_product("Латте", stock=7)
        milk = make_product("Молоко", stock=10)
        ledger.add_component(latte.pk, milk.pk, 2)

        plan = ledger.apply_deduction(latte.pk, 3)

        assert plan == {milk.pk: 6}
        assert store.products.get(milk.pk).stock_quantity == 4
        assert store.products.get(latte.pk).stock_quantity == 7

    def test_deduct_exact_stock_to_zero(self, ledger, store, make_product):
        tea = make_product(stock=3)
        ledger.deduct(tea.pk, 3)
        assert store.products.get(tea.pk).stock_quantity == 0

    def test_restock_and_reverse(self, ledger, store, make_product):
        tea = make_product(stock=3)
        ledger.restock(tea.pk, 5)
        assert store.products.get(tea.pk).stock_quantity == 8

        ledger.apply_deduction(tea.pk, 2)
        ledger.reverse_deduction(tea.pk, 2)
        assert store.products.get(tea.pk).stock_quantity == 8

    def test_product_of_other_branch_is_not_found(self, ledger, make_product):
        foreign = make_product(branch_id=2)
        with pytest.raises(NotFound):
            ledger.apply_deduction(foreign.pk, 1, branch_id=1)

    def test_low_stock_lists_active_leaves_only(self, ledger, make_product):
        latte = make_product("Латте", stock=0, min_stock=5)
        milk = make_product("Молоко", stock=2, min_stock=5)
        make_product("Чай", stock=50, min_stock=5)
        make_product("Снят", stock=0, min_stock=5, is_active=False)
        make_product("Чужой", stock=0, min_stock=5, branch_id=2)
        ledger.add_component(latte.pk, milk.pk, 1)

        assert [p.pk for p in ledger.low_stock(1)] == [milk.pk]

    def test_admin_scope_allows_any_branch(self, ledger, make_product):
        a = make_product("A", branch_id=2)
        b = make_product("B", branch_id=2)
        edge = ledger.add_component(a.pk, b.pk, 1, scope=BranchScope(is_admin=True))
        assert edge.product_id == a.pk
