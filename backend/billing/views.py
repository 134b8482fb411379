from django.db.models import Prefetch
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from bookings.engine import get_engine
from core.request_utils import parse_now
from notifications.utils import notify_invoice_paid
from users.utils import scope_for_user
from .models import Invoice, InvoiceItem
from .serializers import ConfirmPaymentSerializer, InvoiceSerializer


class InvoiceViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Счета филиала. Создаются только расчётом сессии
    (POST /api/bookings/{id}/settle/), здесь - просмотр и оплата.
    Фильтры: ?status=, ?booking_id=, ?client_id=
    """

    queryset = (
        Invoice.objects
        .select_related("client", "branch", "booking")
        .prefetch_related(Prefetch("items", queryset=InvoiceItem.objects.order_by("id")))
        .all()
        .order_by("-created_at")
    )
    serializer_class = InvoiceSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        qs = super().get_queryset()
        scope = scope_for_user(self.request.user)
        params = self.request.query_params

        if not scope.is_admin:
            qs = qs.filter(branch_id=scope.branch_id)

        for param, field in (("status", "status"), ("booking_id", "booking_id"), ("client_id", "client_id")):
            value = params.get(param)
            if value:
                qs = qs.filter(**{field: value})

        return qs

    @action(detail=True, methods=["post"], url_path="confirm-payment")
    def confirm_payment(self, request, pk=None):
        """
        Оплата счёта. Бронь по счёту переходит в completed.

        Ожидает (необязательно):
        {
          "payment_method": "cash" | "card" | "transfer" | "wallet",
          "at": "2025-11-24T12:30:00"
        }
        Повторный вызов по оплаченному счёту ничего не меняет.
        """
        invoice = self.get_object()
        payload = ConfirmPaymentSerializer(data=request.data)
        payload.is_valid(raise_exception=True)

        already_paid = invoice.status == Invoice.STATUS_PAID
        get_engine().confirm_payment(
            invoice.pk,
            parse_now(request.data.get("at")),
            scope=scope_for_user(request.user),
            payment_method=payload.validated_data["payment_method"],
        )

        invoice = self.get_queryset().get(pk=invoice.pk)
        if not already_paid:
            notify_invoice_paid(invoice)

        return Response(InvoiceSerializer(invoice).data)
