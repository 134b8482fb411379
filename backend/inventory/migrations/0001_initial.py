import django.db.models.deletion
import django.utils.timezone
from decimal import Decimal
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("branches", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Product",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                (
                    "category",
                    models.CharField(
                        choices=[
                            ("drinks", "Напитки"),
                            ("food", "Еда"),
                            ("snacks", "Снеки"),
                            ("supplies", "Расходники"),
                            ("ingredients", "Ингредиенты"),
                            ("other", "Другое"),
                        ],
                        default="other",
                        max_length=30,
                    ),
                ),
                ("description", models.TextField(blank=True, null=True)),
                ("price", models.DecimalField(decimal_places=2, max_digits=10)),
                ("staff_price", models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ("order_price", models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ("cost", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=10)),
                ("stock_quantity", models.IntegerField(default=0)),
                ("min_stock_level", models.IntegerField(default=0)),
                ("max_stock_level", models.IntegerField(blank=True, null=True)),
                (
                    "unit",
                    models.CharField(default="piece", help_text="Единица измерения: piece, cup, g, ml", max_length=50),
                ),
                ("barcode", models.CharField(blank=True, max_length=64, null=True)),
                ("expiry_date", models.DateField(blank=True, null=True)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "branch",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="products",
                        to="branches.branch",
                    ),
                ),
            ],
            options={
                "verbose_name": "товар",
                "verbose_name_plural": "товары",
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(stock_quantity__gte=0),
                        name="product_stock_quantity_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ProductRecipe",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("quantity_needed", models.PositiveIntegerField()),
                (
                    "component_product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="used_in_recipes",
                        to="inventory.product",
                    ),
                ),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="recipe_items",
                        to="inventory.product",
                    ),
                ),
            ],
            options={
                "verbose_name": "компонент рецептуры",
                "verbose_name_plural": "рецептуры",
                "constraints": [
                    models.UniqueConstraint(
                        fields=("product", "component_product"),
                        name="uq_product_recipe_component",
                    ),
                ],
            },
        ),
    ]
