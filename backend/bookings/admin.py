from django.contrib import admin
from .models import Booking


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ("id", "branch", "room", "client", "start_time", "end_time", "status", "total_amount")
    list_filter = ("branch", "status")
    search_fields = ("client__name", "room__name")
    readonly_fields = ("total_amount", "check_in_time", "check_out_time", "created_at")
