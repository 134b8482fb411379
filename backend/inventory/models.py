from decimal import Decimal

from django.db import models
from django.utils import timezone

from branches.models import Branch


class Product(models.Model):
    CATEGORY_CHOICES = [
        ("drinks", "Напитки"),
        ("food", "Еда"),
        ("snacks", "Снеки"),
        ("supplies", "Расходники"),
        ("ingredients", "Ингредиенты"),
        ("other", "Другое"),
    ]

    branch = models.ForeignKey(Branch, on_delete=models.CASCADE, related_name="products")
    name = models.CharField(max_length=255)
    category = models.CharField(max_length=30, choices=CATEGORY_CHOICES, default="other")
    description = models.TextField(blank=True, null=True)

    price = models.DecimalField(max_digits=10, decimal_places=2)
    staff_price = models.DecimalField(max_digits=10, decimal_places=2, blank=True, null=True)
    order_price = models.DecimalField(max_digits=10, decimal_places=2, blank=True, null=True)
    cost = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))

    # остаток ведётся только у "листовых" товаров (без рецептуры)
    stock_quantity = models.IntegerField(default=0)
    min_stock_level = models.IntegerField(default=0)
    max_stock_level = models.IntegerField(blank=True, null=True)
    unit = models.CharField(max_length=50, default="piece", help_text="Единица измерения: piece, cup, g, ml")
    barcode = models.CharField(max_length=64, blank=True, null=True)
    expiry_date = models.DateField(blank=True, null=True)

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        verbose_name = "товар"
        verbose_name_plural = "товары"
        constraints = [
            models.CheckConstraint(
                condition=models.Q(stock_quantity__gte=0),
                name="product_stock_quantity_non_negative",
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.stock_quantity} {self.unit})"

    @property
    def is_low_stock(self) -> bool:
        return self.stock_quantity <= self.min_stock_level


class ProductRecipe(models.Model):
    """
    Ребро рецептуры: составной товар → компонент × quantity_needed.
    Компонент сам может быть составным.
    """

    product = models.ForeignKey(
        Product, on_delete=models.CASCADE, related_name="recipe_items"
    )
    component_product = models.ForeignKey(
        Product, on_delete=models.CASCADE, related_name="used_in_recipes"
    )
    quantity_needed = models.PositiveIntegerField()

    class Meta:
        verbose_name = "компонент рецептуры"
        verbose_name_plural = "рецептуры"
        constraints = [
            models.UniqueConstraint(
                fields=["product", "component_product"],
                name="uq_product_recipe_component",
            ),
        ]

    def __str__(self):
        return f"{self.product_id} ← {self.component_product_id} × {self.quantity_needed}"
