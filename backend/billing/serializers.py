from rest_framework import serializers

from .models import Invoice, InvoiceItem


class InvoiceItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = InvoiceItem
        fields = [
            "id",
            "booking",
            "invoice",
            "item_type",
            "related_id",
            "name",
            "quantity",
            "unit_price",
            "total_price",
            "individual_name",
            "created_at",
        ]
        read_only_fields = fields


class InvoiceSerializer(serializers.ModelSerializer):
    items = InvoiceItemSerializer(many=True, read_only=True)
    client_name = serializers.CharField(source="client.name", read_only=True)

    class Meta:
        model = Invoice
        fields = [
            "id",
            "invoice_number",
            "branch",
            "client",
            "client_name",
            "booking",
            "amount",
            "tax_amount",
            "total_amount",
            "status",
            "payment_status",
            "payment_method",
            "due_date",
            "paid_at",
            "created_at",
            "items",
        ]
        read_only_fields = fields


class ConfirmPaymentSerializer(serializers.Serializer):
    payment_method = serializers.ChoiceField(
        choices=[code for code, _ in Invoice.PAYMENT_METHOD_CHOICES],
        default="cash",
    )
