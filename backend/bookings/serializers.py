from django.db.models import Q
from django.utils import timezone
from rest_framework import serializers

from billing.models import InvoiceItem
from branches.models import Client
from rooms.models import Room
from .classifier import classify
from .models import Booking


class SessionItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = InvoiceItem
        fields = [
            "id",
            "booking",
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


class BookingSerializer(serializers.ModelSerializer):
    room_name = serializers.CharField(source="room.name", read_only=True)
    client_name = serializers.CharField(source="client.name", read_only=True)

    room_id = serializers.PrimaryKeyRelatedField(
        source="room",
        queryset=Room.objects.all(),
        write_only=True,
    )
    client_id = serializers.PrimaryKeyRelatedField(
        source="client",
        queryset=Client.objects.all(),
        write_only=True,
    )

    # вкладка списка (active / future / completed) на момент ответа
    state = serializers.SerializerMethodField()

    class Meta:
        model = Booking
        fields = [
            "id",
            "branch",
            "room",
            "room_id",
            "room_name",
            "client",
            "client_id",
            "client_name",
            "start_time",
            "end_time",
            "status",
            "state",
            "total_amount",
            "check_in_time",
            "check_out_time",
            "notes",
            "created_at",
        ]
        read_only_fields = [
            "branch",
            "room",
            "client",
            "status",
            "total_amount",
            "check_in_time",
            "check_out_time",
            "created_at",
        ]

    def get_state(self, obj):
        now = self.context.get("now") or timezone.now()
        return classify(obj, now)

    def validate(self, attrs):
        """
        - end > start;
        - комната активна, клиент из того же филиала;
        - пересечения с подтверждёнными бронями этой комнаты.
        """
        instance = getattr(self, "instance", None)

        start = attrs.get("start_time") or (instance.start_time if instance else None)
        end = attrs.get("end_time") or (instance.end_time if instance else None)
        room = attrs.get("room") or (instance.room if instance else None)
        client = attrs.get("client") or (instance.client if instance else None)

        if start and end and end <= start:
            raise serializers.ValidationError(
                "Время окончания должно быть позже времени начала."
            )

        if room is not None and not room.is_active:
            raise serializers.ValidationError(f"Комната '{room.name}' сейчас недоступна.")

        if room is not None and client is not None and client.branch_id != room.branch_id:
            raise serializers.ValidationError("Клиент и комната из разных филиалов.")

        if not room or not start or not end:
            return attrs

        qs = Booking.objects.filter(room=room, status=Booking.STATUS_CONFIRMED)
        if instance:
            qs = qs.exclude(id=instance.id)

        if qs.filter(Q(start_time__lt=end) & Q(end_time__gt=start)).exists():
            raise serializers.ValidationError(
                "На указанный интервал комната уже забронирована. "
                "Пожалуйста, выберите другое время."
            )

        return attrs


class BookingDetailSerializer(BookingSerializer):
    items = serializers.SerializerMethodField()

    class Meta(BookingSerializer.Meta):
        fields = BookingSerializer.Meta.fields + ["items"]

    def get_items(self, obj):
        # только позиции открытой сессии, строки счетов отдаются с самим счётом
        items = obj.items.filter(invoice__isnull=True).order_by("id")
        return SessionItemSerializer(items, many=True).data

