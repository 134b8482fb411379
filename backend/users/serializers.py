from rest_framework import serializers
from django.contrib.auth.models import User


class UserMeSerializer(serializers.ModelSerializer):
    role = serializers.SerializerMethodField()
    branch_id = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ["id", "username", "email", "is_staff", "role", "branch_id"]

    def get_role(self, obj):
        profile = getattr(obj, "profile", None)
        if profile:
            return profile.role
        return "admin" if obj.is_staff else None

    def get_branch_id(self, obj):
        profile = getattr(obj, "profile", None)
        return profile.branch_id if profile else None
