import logging

from django.db.models import Prefetch
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from billing.models import Invoice, InvoiceItem
from billing.serializers import InvoiceSerializer
from core.errors import AlreadySettled, InvalidQuantity
from core.request_utils import parse_now, parse_optional_quantity, parse_quantity
from notifications.utils import notify_booking_cancelled, notify_invoice_issued
from users.utils import scope_for_user
from .classifier import STATES, classify, group_by_state
from .engine import get_engine
from .models import Booking
from .serializers import BookingDetailSerializer, BookingSerializer, SessionItemSerializer

logger = logging.getLogger(__name__)


def _entry_quantity(value):
    """
    Количество позиции пакета. Нецелое значение не роняет весь пакет:
    оно уходит в движок как есть и даёт ошибку только этой позиции.
    """
    try:
        return parse_quantity(value)
    except InvalidQuantity:
        return value


class BookingViewSet(viewsets.ModelViewSet):
    """
    Брони комнат = сессии. Кроме CRUD:
      - board           : брони филиала по вкладкам active / future / completed;
      - items           : добавить товар в открытую сессию;
      - items/batch     : добавить несколько товаров за раз;
      - items/<id>      : поправить / удалить позицию;
      - check-in        : отметка прихода;
      - cancel          : отмена брони;
      - settle          : "завершить и оплатить" → счёт в статусе pending.
    """

    queryset = (
        Booking.objects
        .select_related("branch", "room", "client")
        .all()
        .order_by("-start_time")
    )
    serializer_class = BookingSerializer
    permission_classes = [IsAuthenticated]
    http_method_names = ["get", "post", "patch", "delete", "head", "options"]

    # -------------------------------------------------------------------------
    # ВСПОМОГАТЕЛЬНЫЕ МЕТОДЫ
    # -------------------------------------------------------------------------

    def get_queryset(self):
        """
        Админ видит все филиалы (?branch_id=), остальные только свой.
        Фильтры ?status=, ?room_id=, ?client_id=
        """
        qs = super().get_queryset()
        scope = scope_for_user(self.request.user)
        params = self.request.query_params

        if scope.is_admin:
            branch_id = params.get("branch_id")
            if branch_id:
                qs = qs.filter(branch_id=branch_id)
        else:
            qs = qs.filter(branch_id=scope.branch_id)

        for param, field in (("status", "status"), ("room_id", "room_id"), ("client_id", "client_id")):
            value = params.get(param)
            if value:
                qs = qs.filter(**{field: value})

        return qs

    def get_serializer_class(self):
        if self.action == "retrieve":
            return BookingDetailSerializer
        return BookingSerializer

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context["now"] = parse_now(self.request.query_params.get("at"))
        return context

    def _booking_response(self, booking_id, status_code=status.HTTP_200_OK):
        booking = self.get_queryset().get(pk=booking_id)
        serializer = BookingDetailSerializer(booking, context=self.get_serializer_context())
        return Response(serializer.data, status=status_code)

    # -------------------------------------------------------------------------
    # CRUD
    # -------------------------------------------------------------------------

    def list(self, request, *args, **kwargs):
        """?state=active|future|completed фильтрует по вычисляемой вкладке."""
        qs = self.filter_queryset(self.get_queryset())
        context = self.get_serializer_context()

        state = request.query_params.get("state")
        if state:
            if state not in STATES:
                raise ValidationError({"detail": f"Неизвестная вкладка '{state}'. Допустимо: {', '.join(STATES)}."})
            qs = [booking for booking in qs if classify(booking, context["now"]) == state]

        serializer = BookingSerializer(qs, many=True, context=context)
        return Response(serializer.data)

    def perform_create(self, serializer):
        room = serializer.validated_data["room"]
        scope = scope_for_user(self.request.user)
        scope.check(room)

        booking = serializer.save(branch=room.branch, status=Booking.STATUS_CONFIRMED)
        logger.info(
            "Booking %s created: room=%s client=%s %s..%s",
            booking.pk, room.pk, booking.client_id, booking.start_time, booking.end_time,
        )

    def update(self, request, *args, **kwargs):
        booking = self.get_object()
        if booking.is_terminal:
            raise AlreadySettled("Закрытую бронь изменить нельзя.", booking_id=booking.pk)
        return super().update(request, *args, **kwargs)

    def destroy(self, request, *args, **kwargs):
        # брони не удаляются, только отменяются
        return Response(
            {"detail": "Удаление брони недоступно, используйте отмену."},
            status=status.HTTP_405_METHOD_NOT_ALLOWED,
        )

    # -------------------------------------------------------------------------
    # ВКЛАДКИ
    # -------------------------------------------------------------------------

    @action(detail=False, methods=["get"], url_path="board")
    def board(self, request):
        """
        {"active": [...], "future": [...], "completed": [...]}
        ?at= - момент, на который считать вкладки (по умолчанию сейчас).
        """
        context = self.get_serializer_context()
        groups = group_by_state(self.get_queryset(), context["now"])

        return Response(
            {
                state: BookingSerializer(bookings, many=True, context=context).data
                for state, bookings in groups.items()
            }
        )

    # -------------------------------------------------------------------------
    # ПОЗИЦИИ СЕССИИ
    # -------------------------------------------------------------------------

    @action(detail=True, methods=["get", "post"], url_path="items")
    def items(self, request, pk=None):
        """
        GET  - позиции открытой сессии.
        POST - добавить товар:
        {
          "product_id": <int>,
          "quantity": <int>,
          "individual_name": "Иван",     (необязательно)
          "custom_price": "15.00"        (необязательно, вместо цены товара)
        }
        """
        booking = self.get_object()
        engine = get_engine()

        if request.method == "GET":
            items = engine.items.items_for(booking.pk)
            return Response(SessionItemSerializer(items, many=True).data)

        product_id = request.data.get("product_id")
        if not product_id:
            raise ValidationError({"detail": "Не указан product_id."})

        item = engine.add_item(
            booking.pk,
            product_id,
            parse_quantity(request.data.get("quantity")),
            individual_name=request.data.get("individual_name"),
            override_price=request.data.get("custom_price"),
            scope=scope_for_user(request.user),
            now=parse_now(request.data.get("at")),
        )
        return Response(SessionItemSerializer(item).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"], url_path="items/batch")
    def items_batch(self, request, pk=None):
        """
        Ожидает:
        {
          "items": [
            {"product_id": 1, "quantity": 2},
            {"product_id": 5, "quantity": 1, "custom_price": "0.00", "individual_name": "Анна"}
          ]
        }

        Ответ 200 даже при частичном успехе: по каждой позиции ok / code / detail.
        """
        booking = self.get_object()
        raw_entries = request.data.get("items")
        if not isinstance(raw_entries, list) or not raw_entries:
            raise ValidationError({"detail": "Ожидается непустой список items."})

        entries = []
        for raw in raw_entries:
            raw = raw if isinstance(raw, dict) else {}
            entries.append({**raw, "quantity": _entry_quantity(raw.get("quantity"))})

        result = get_engine().batch_add(
            booking.pk,
            entries,
            scope=scope_for_user(request.user),
            now=parse_now(request.data.get("at")),
        )

        results = []
        for entry in result.entries:
            if entry["ok"]:
                results.append(
                    {"index": entry["index"], "ok": True, "item": SessionItemSerializer(entry["item"]).data}
                )
            else:
                results.append(entry)

        return Response(
            {
                "succeeded": result.succeeded,
                "failed": result.failed,
                "results": results,
            }
        )

    @action(detail=True, methods=["patch", "delete"], url_path=r"items/(?P<item_id>\d+)")
    def item_detail(self, request, pk=None, item_id=None):
        """
        PATCH  - {"quantity": <int>, "unit_price": "12.00", "individual_name": "..."}
        DELETE - убрать позицию из сессии.
        """
        booking = self.get_object()
        engine = get_engine()
        scope = scope_for_user(request.user)

        item = engine.store.items.get(int(item_id))
        if item.booking_id != booking.pk:
            raise ValidationError({"detail": f"Позиция #{item_id} не относится к брони #{booking.pk}."})

        if request.method == "DELETE":
            engine.remove_item(item.pk, scope=scope)
            return Response(status=status.HTTP_204_NO_CONTENT)

        item = engine.update_item(
            item.pk,
            quantity=parse_optional_quantity(request.data.get("quantity")),
            unit_price=request.data.get("unit_price"),
            individual_name=request.data.get("individual_name"),
            scope=scope,
        )
        return Response(SessionItemSerializer(item).data)

    # -------------------------------------------------------------------------
    # ЖИЗНЕННЫЙ ЦИКЛ
    # -------------------------------------------------------------------------

    @action(detail=True, methods=["post"], url_path="check-in")
    def check_in(self, request, pk=None):
        booking = self.get_object()
        get_engine().check_in(
            booking.pk,
            parse_now(request.data.get("at")),
            scope=scope_for_user(request.user),
        )
        return self._booking_response(booking.pk)

    @action(detail=True, methods=["post"], url_path="cancel")
    def cancel(self, request, pk=None):
        booking = self.get_object()
        get_engine().cancel_booking(booking.pk, scope=scope_for_user(request.user))

        booking = self.get_queryset().get(pk=booking.pk)
        notify_booking_cancelled(booking)
        return self._booking_response(booking.pk)

    @action(detail=True, methods=["post"], url_path="settle")
    def settle(self, request, pk=None):
        """
        Выставить счёт: время (от начала брони до "at") × ставка комнаты
        плюс все позиции сессии. Бронь остаётся confirmed до оплаты.
        """
        booking = self.get_object()
        invoice = get_engine().settle(
            booking.pk,
            parse_now(request.data.get("at")),
            scope=scope_for_user(request.user),
        )

        invoice = (
            Invoice.objects
            .select_related("branch", "client", "booking")
            .prefetch_related(Prefetch("items", queryset=InvoiceItem.objects.order_by("id")))
            .get(pk=invoice.pk)
        )
        notify_invoice_issued(invoice)
        return Response(InvoiceSerializer(invoice).data, status=status.HTTP_201_CREATED)
