from django.contrib import admin
from .models import Branch, Client


@admin.register(Branch)
class BranchAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "address", "phone", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name", "address")


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "branch", "phone", "email", "membership_type", "is_active")
    list_filter = ("branch", "membership_type", "is_active")
    search_fields = ("name", "phone", "email")
