from django.contrib import admin
from .models import Invoice, InvoiceItem


class InvoiceItemInline(admin.TabularInline):
    model = InvoiceItem
    fk_name = "invoice"
    extra = 0
    can_delete = False
    readonly_fields = ("item_type", "related_id", "name", "quantity", "unit_price", "total_price", "individual_name")


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = ("id", "invoice_number", "branch", "client", "booking", "total_amount", "status", "created_at")
    list_filter = ("branch", "status", "payment_status")
    search_fields = ("invoice_number", "client__name")
    inlines = [InvoiceItemInline]
