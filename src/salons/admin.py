"""Django admin for salons."""
from django.contrib import admin

from salons.models import Salon


@admin.register(Salon)
class SalonAdmin(admin.ModelAdmin):
    list_display = ("name", "member_number", "org_number", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name", "member_number", "org_number")
