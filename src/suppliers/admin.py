"""Django admin for suppliers and brands."""
from django.contrib import admin

from suppliers.models import Brand, Supplier, SupplierIdentifier


class BrandInline(admin.TabularInline):
    model = Brand
    extra = 0
    fields = ("name",)


@admin.register(Supplier)
class SupplierAdmin(admin.ModelAdmin):
    list_display = ("name", "is_active", "cumulative_reporting", "feed_layout", "identifier_type")
    list_filter = ("is_active", "cumulative_reporting", "identifier_type")
    search_fields = ("name",)
    inlines = [BrandInline]


@admin.register(SupplierIdentifier)
class SupplierIdentifierAdmin(admin.ModelAdmin):
    list_display = ("supplier", "customer_number", "salon", "identifier_type", "created_at")
    list_filter = ("supplier", "identifier_type")
    search_fields = ("customer_number", "salon__name", "salon__member_number")
    raw_id_fields = ("salon",)
