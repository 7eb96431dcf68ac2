"""Django admin for bonus imports, rules and calculations."""
from django.contrib import admin

from bonus.models import (
    BonusCalculation,
    BonusRule,
    CumulativeBaseline,
    GrowthBaselineOverride,
    ImportBatch,
    ImportedSale,
)


class ImportedSaleInline(admin.TabularInline):
    model = ImportedSale
    extra = 0
    fields = ("raw_identifier", "raw_name", "brand", "product_group", "reported_value", "matched_salon", "match_status")
    readonly_fields = fields
    show_change_link = True
    can_delete = False


@admin.register(ImportBatch)
class ImportBatchAdmin(admin.ModelAdmin):
    list_display = ("supplier", "period", "file_name", "status", "row_count", "matched_count", "error_count", "created_at")
    list_filter = ("status", "supplier")
    search_fields = ("file_name", "supplier__name")
    inlines = [ImportedSaleInline]


@admin.register(ImportedSale)
class ImportedSaleAdmin(admin.ModelAdmin):
    list_display = ("raw_identifier", "raw_name", "supplier", "reported_period", "brand", "reported_value", "match_status")
    list_filter = ("match_status", "supplier", "reported_period")
    search_fields = ("raw_identifier", "raw_name", "brand")
    raw_id_fields = ("batch", "matched_salon")


@admin.register(CumulativeBaseline)
class CumulativeBaselineAdmin(admin.ModelAdmin):
    list_display = ("salon", "supplier", "period", "cumulative_value")
    list_filter = ("supplier", "period")
    search_fields = ("salon__name", "salon__member_number")
    raw_id_fields = ("salon",)


@admin.register(GrowthBaselineOverride)
class GrowthBaselineOverrideAdmin(admin.ModelAdmin):
    list_display = ("salon", "supplier", "year", "override_turnover")
    list_filter = ("supplier", "year")
    search_fields = ("salon__name", "salon__member_number")
    raw_id_fields = ("salon",)


@admin.register(BonusRule)
class BonusRuleAdmin(admin.ModelAdmin):
    list_display = ("supplier", "brand", "rule_type", "percentage", "is_active", "valid_from", "valid_until")
    list_filter = ("rule_type", "is_active", "supplier")
    search_fields = ("description", "supplier__name", "brand__name")


@admin.register(BonusCalculation)
class BonusCalculationAdmin(admin.ModelAdmin):
    list_display = ("salon", "supplier", "period", "total_turnover", "loyalty_bonus_amount", "return_commission_amount", "status")
    list_filter = ("status", "supplier", "period")
    search_fields = ("salon__name", "salon__member_number", "supplier__name")
    readonly_fields = ("calculation_details", "applied_rule_ids", "calculated_at", "calculated_by", "approved_at", "approved_by")
    raw_id_fields = ("salon",)
