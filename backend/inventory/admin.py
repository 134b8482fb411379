from django.contrib import admin
from .models import Product, ProductRecipe


class ProductRecipeInline(admin.TabularInline):
    model = ProductRecipe
    fk_name = "product"
    extra = 0


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "branch", "category", "price", "stock_quantity", "min_stock_level", "is_active")
    list_filter = ("branch", "category", "is_active")
    search_fields = ("name", "barcode")
    inlines = [ProductRecipeInline]


@admin.register(ProductRecipe)
class ProductRecipeAdmin(admin.ModelAdmin):
    list_display = ("id", "product", "component_product", "quantity_needed")
    search_fields = ("product__name", "component_product__name")
