from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.request_utils import parse_quantity
from core.store import DjangoStore
from users.permissions import IsBranchManager
from users.utils import scope_for_user
from .ledger import StockLedger
from .models import Product, ProductRecipe
from .serializers import ProductRecipeSerializer, ProductSerializer

READ_ACTIONS = ("list", "retrieve", "low_stock")


def get_ledger() -> StockLedger:
    return StockLedger(DjangoStore())


class ProductViewSet(viewsets.ModelViewSet):
    """
    Товары филиала.
    - Смотреть может любой сотрудник филиала.
    - Создание/редактирование, пополнение склада и рецептуры - менеджер/админ.
    Остаток напрямую не редактируется: только restock и продажи.
    """

    queryset = Product.objects.select_related("branch").all().order_by("name")
    serializer_class = ProductSerializer
    http_method_names = ["get", "post", "patch", "head", "options"]

    def get_permissions(self):
        if self.action in READ_ACTIONS or (
            self.action == "recipes" and self.request.method == "GET"
        ):
            return [IsAuthenticated()]
        return [IsBranchManager()]

    def get_queryset(self):
        qs = super().get_queryset()
        scope = scope_for_user(self.request.user)
        params = self.request.query_params

        if scope.is_admin:
            branch_id = params.get("branch_id")
            if branch_id:
                qs = qs.filter(branch_id=branch_id)
        else:
            qs = qs.filter(branch_id=scope.branch_id)

        category = params.get("category")
        if category:
            qs = qs.filter(category=category)

        if self.action == "list" and params.get("include_inactive") != "1":
            qs = qs.filter(is_active=True)

        return qs

    def perform_create(self, serializer):
        scope = scope_for_user(self.request.user)
        branch_id = scope.branch_id
        if scope.is_admin and self.request.data.get("branch_id"):
            branch_id = self.request.data.get("branch_id")

        if not branch_id:
            raise ValidationError({"detail": "Не указан филиал товара (branch_id)."})

        serializer.save(branch_id=branch_id)

    @action(detail=False, methods=["get"], url_path="low-stock")
    def low_stock(self, request):
        """Товары, у которых остаток на уровне минимума или ниже."""
        scope = scope_for_user(request.user)
        branch_id = scope.branch_id
        if scope.is_admin and request.query_params.get("branch_id"):
            branch_id = int(request.query_params["branch_id"])

        products = get_ledger().low_stock(branch_id)
        return Response(ProductSerializer(products, many=True).data)

    @action(detail=True, methods=["post"], url_path="restock")
    def restock(self, request, pk=None):
        """
        Ручное пополнение остатка.

        Ожидает: {"quantity": <int>}
        """
        product = self.get_object()
        quantity = parse_quantity(request.data.get("quantity"))

        scope = scope_for_user(request.user)
        scope.check(product)

        product = get_ledger().restock(product.pk, quantity)
        return Response(ProductSerializer(product).data)

    @action(detail=True, methods=["get", "post"], url_path="recipes")
    def recipes(self, request, pk=None):
        """
        GET  - компоненты рецептуры товара.
        POST - добавить компонент:
        {
          "component_product_id": <int>,
          "quantity_needed": <int>
        }
        """
        product = self.get_object()
        ledger = get_ledger()

        if request.method == "GET":
            edges = (
                ProductRecipe.objects
                .select_related("component_product")
                .filter(product=product)
                .order_by("component_product__name")
            )
            return Response(ProductRecipeSerializer(edges, many=True).data)

        component_id = request.data.get("component_product_id")
        if not component_id:
            return Response(
                {"detail": "Не указан component_product_id."},
                status=status.HTTP_400_BAD_REQUEST,
            )

        edge = ledger.add_component(
            product.pk,
            component_id,
            parse_quantity(request.data.get("quantity_needed"), "quantity_needed"),
            scope=scope_for_user(request.user),
        )
        edge = ProductRecipe.objects.select_related("component_product").get(pk=edge.pk)
        return Response(ProductRecipeSerializer(edge).data, status=status.HTTP_201_CREATED)


class ProductRecipeViewSet(
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """
    Отдельный компонент рецептуры: PATCH меняет quantity_needed, DELETE удаляет.
    """

    queryset = ProductRecipe.objects.select_related("product", "component_product").all()
    serializer_class = ProductRecipeSerializer
    permission_classes = [IsBranchManager]

    def partial_update(self, request, pk=None):
        edge = get_ledger().update_component(
            self.get_object().pk,
            parse_quantity(request.data.get("quantity_needed"), "quantity_needed"),
            scope=scope_for_user(request.user),
        )
        edge = ProductRecipe.objects.select_related("component_product").get(pk=edge.pk)
        return Response(ProductRecipeSerializer(edge).data)

    def destroy(self, request, pk=None):
        get_ledger().remove_component(self.get_object().pk, scope=scope_for_user(request.user))
        return Response(status=status.HTTP_204_NO_CONTENT)
