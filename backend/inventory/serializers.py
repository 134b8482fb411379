from rest_framework import serializers

from .models import Product, ProductRecipe


class ProductSerializer(serializers.ModelSerializer):
    is_low_stock = serializers.BooleanField(read_only=True)
    # начальный остаток задаётся только при создании, дальше - через restock и продажи
    initial_stock = serializers.IntegerField(write_only=True, required=False, min_value=0)

    class Meta:
        model = Product
        fields = [
            "id",
            "branch",
            "name",
            "category",
            "description",
            "price",
            "staff_price",
            "order_price",
            "cost",
            "stock_quantity",
            "min_stock_level",
            "max_stock_level",
            "unit",
            "barcode",
            "expiry_date",
            "is_active",
            "is_low_stock",
            "initial_stock",
            "created_at",
        ]
        read_only_fields = ["branch", "stock_quantity", "created_at"]

    def validate(self, attrs):
        for field in ("price", "staff_price", "order_price", "cost"):
            value = attrs.get(field)
            if value is not None and value < 0:
                raise serializers.ValidationError({field: "Цена не может быть отрицательной."})

        min_level = attrs.get("min_stock_level")
        max_level = attrs.get("max_stock_level")
        if min_level is not None and max_level is not None and max_level < min_level:
            raise serializers.ValidationError(
                "Максимальный остаток не может быть меньше минимального."
            )
        return attrs

    def create(self, validated_data):
        validated_data["stock_quantity"] = validated_data.pop("initial_stock", 0)
        return super().create(validated_data)

    def update(self, instance, validated_data):
        validated_data.pop("initial_stock", None)
        return super().update(instance, validated_data)


class ProductRecipeSerializer(serializers.ModelSerializer):
    component_name = serializers.CharField(source="component_product.name", read_only=True)
    component_unit = serializers.CharField(source="component_product.unit", read_only=True)

    class Meta:
        model = ProductRecipe
        fields = [
            "id",
            "product",
            "component_product",
            "component_name",
            "component_unit",
            "quantity_needed",
        ]
        read_only_fields = fields
