from django.contrib import admin
from .models import Room


@admin.register(Room)
class RoomAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "branch", "zone", "capacity", "hourly_rate", "is_active")
    list_filter = ("branch", "is_active", "zone")
    search_fields = ("name",)
