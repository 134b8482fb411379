from rest_framework import serializers

from .models import Room


class RoomSerializer(serializers.ModelSerializer):
    class Meta:
        model = Room
        fields = [
            "id",
            "branch",
            "name",
            "zone",
            "capacity",
            "hourly_rate",
            "features",
            "description",
            "is_active",
        ]
        read_only_fields = ["branch"]

    def validate_features(self, value):
        allowed = {code for code, _ in Room.FEATURE_CHOICES}
        unknown = [tag for tag in value if tag not in allowed]
        if unknown:
            raise serializers.ValidationError(
                f"Неизвестные теги комнаты: {', '.join(unknown)}."
            )
        return value
