from rest_framework import serializers
from .models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Notification
        fields = [
            "id",
            "branch",
            "client",
            "event_type",
            "channel",
            "title",
            "message",
            "status",
            "booking",
            "invoice",
            "created_at",
            "sent_at",
        ]
        read_only_fields = fields
