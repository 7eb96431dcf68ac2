"""Serializers for the bonus API."""
from decimal import Decimal

from django.conf import settings
from rest_framework import serializers

from salons.models import Salon
from suppliers.models import Brand, Supplier, SupplierIdentifier

from .models import (
    BonusCalculation,
    BonusRule,
    CumulativeBaseline,
    GrowthBaselineOverride,
    ImportBatch,
    ImportedSale,
)
from .periods import QUARTER_MONTHS, validate_period


def _validate_period_field(value):
    try:
        return validate_period(value)
    except ValueError as exc:
        raise serializers.ValidationError(str(exc))


class SalonSerializer(serializers.ModelSerializer):
    class Meta:
        model = Salon
        fields = ["id", "name", "member_number", "org_number", "is_active"]


class BrandSerializer(serializers.ModelSerializer):
    class Meta:
        model = Brand
        fields = ["id", "name"]


class SupplierSerializer(serializers.ModelSerializer):
    brands = BrandSerializer(many=True, read_only=True)

    class Meta:
        model = Supplier
        fields = [
            "id", "name", "is_active", "cumulative_reporting", "feed_layout",
            "identifier_type", "brands",
        ]


class ImportBatchSerializer(serializers.ModelSerializer):
    supplier_name = serializers.CharField(source="supplier.name", read_only=True)

    class Meta:
        model = ImportBatch
        fields = [
            "id", "supplier", "supplier_name", "period", "file_name", "status",
            "row_count", "matched_count", "error_count", "notes", "processed_at",
            "imported_by", "created_at",
        ]
        read_only_fields = fields


class ImportUploadSerializer(serializers.Serializer):
    supplier = serializers.PrimaryKeyRelatedField(queryset=Supplier.objects.filter(is_active=True))
    file = serializers.FileField()
    period = serializers.CharField(required=False, allow_blank=True)
    quarter = serializers.ChoiceField(choices=sorted(QUARTER_MONTHS), required=False, allow_blank=True)
    year = serializers.IntegerField(required=False, min_value=2000, max_value=2100)

    def validate_file(self, value):
        max_mb = getattr(settings, "BONUS_MAX_UPLOAD_MB", 10)
        if value.size and value.size > max_mb * 1024 * 1024:
            raise serializers.ValidationError(f"Filen er storre enn {max_mb} MB.")
        return value

    def validate(self, attrs):
        period = (attrs.get("period") or "").strip()
        quarter = (attrs.get("quarter") or "").strip()
        if quarter:
            if not attrs.get("year"):
                raise serializers.ValidationError({"year": "Ar er pakrevd for kvartalsimport."})
            attrs["period"] = None
        elif period:
            try:
                attrs["period"] = validate_period(period)
            except ValueError as exc:
                raise serializers.ValidationError({"period": str(exc)})
            attrs["quarter"] = None
        else:
            raise serializers.ValidationError({"period": "Velg periode eller kvartal."})
        return attrs


class ImportedSaleSerializer(serializers.ModelSerializer):
    matched_salon_name = serializers.CharField(source="matched_salon.name", read_only=True, default=None)

    class Meta:
        model = ImportedSale
        fields = [
            "id", "batch", "supplier", "reported_period", "reported_value",
            "cumulative_value", "brand", "product_group", "raw_identifier",
            "raw_name", "matched_salon", "matched_salon_name", "match_status",
            "match_confidence", "match_method",
        ]
        read_only_fields = fields


class MatchSaleSerializer(serializers.Serializer):
    salon = serializers.PrimaryKeyRelatedField(queryset=Salon.objects.all())


class BonusRuleSerializer(serializers.ModelSerializer):
    supplier_name = serializers.CharField(source="supplier.name", read_only=True)
    brand_name = serializers.CharField(source="brand.name", read_only=True, default=None)

    class Meta:
        model = BonusRule
        fields = [
            "id", "supplier", "supplier_name", "brand", "brand_name", "rule_type",
            "percentage", "is_active", "valid_from", "valid_until", "description",
            "created_at",
        ]
        read_only_fields = ["id", "created_at"]

    def validate_percentage(self, value):
        if value < Decimal("0") or value > Decimal("100"):
            raise serializers.ValidationError("Prosentsatsen ma vaere mellom 0 og 100.")
        return value

    def validate(self, attrs):
        supplier = attrs.get("supplier", getattr(self.instance, "supplier", None))
        brand = attrs.get("brand", getattr(self.instance, "brand", None))
        if brand is not None and supplier is not None and brand.supplier_id != supplier.pk:
            raise serializers.ValidationError({"brand": "Merket tilhorer ikke leverandoren."})
        valid_from = attrs.get("valid_from", getattr(self.instance, "valid_from", None))
        valid_until = attrs.get("valid_until", getattr(self.instance, "valid_until", None))
        if valid_from and valid_until and valid_from > valid_until:
            raise serializers.ValidationError({"valid_until": "Sluttdato ma vaere etter startdato."})
        return attrs


class CumulativeBaselineSerializer(serializers.ModelSerializer):
    salon_name = serializers.CharField(source="salon.name", read_only=True)
    supplier_name = serializers.CharField(source="supplier.name", read_only=True)

    class Meta:
        model = CumulativeBaseline
        fields = [
            "id", "salon", "salon_name", "supplier", "supplier_name", "period",
            "cumulative_value", "note", "created_at",
        ]
        read_only_fields = ["id", "created_at"]

    def validate_period(self, value):
        return _validate_period_field(value)


class SupplierIdentifierSerializer(serializers.ModelSerializer):
    salon_name = serializers.CharField(source="salon.name", read_only=True)
    supplier_name = serializers.CharField(source="supplier.name", read_only=True)

    class Meta:
        model = SupplierIdentifier
        fields = [
            "id", "supplier", "supplier_name", "customer_number", "salon",
            "salon_name", "identifier_type", "created_by", "created_at",
        ]
        read_only_fields = fields


class BonusCalculationSerializer(serializers.ModelSerializer):
    salon_name = serializers.CharField(source="salon.name", read_only=True, default=None)
    supplier_name = serializers.CharField(source="supplier.name", read_only=True)
    total_bonus = serializers.DecimalField(max_digits=16, decimal_places=2, read_only=True)

    class Meta:
        model = BonusCalculation
        fields = [
            "id", "salon", "salon_name", "supplier", "supplier_name", "period",
            "total_turnover", "loyalty_bonus_amount", "return_commission_amount",
            "total_bonus", "applied_rule_ids", "calculation_details", "status",
            "calculated_at", "calculated_by", "approved_at", "approved_by",
        ]
        read_only_fields = fields


class PeriodRangeSerializer(serializers.Serializer):
    start = serializers.CharField()
    end = serializers.CharField(required=False, allow_blank=True)
    supplier = serializers.PrimaryKeyRelatedField(queryset=Supplier.objects.all(), required=False, allow_null=True)

    def validate_start(self, value):
        return _validate_period_field(value)

    def validate(self, attrs):
        end = (attrs.get("end") or "").strip()
        try:
            attrs["end"] = validate_period(end) if end else attrs["start"]
        except ValueError as exc:
            raise serializers.ValidationError({"end": str(exc)})
        if attrs["start"] > attrs["end"]:
            raise serializers.ValidationError({"end": "Sluttperioden ma vaere etter startperioden."})
        return attrs


class SupplierBreakdownSerializer(serializers.Serializer):
    supplier_id = serializers.CharField()
    supplier_name = serializers.CharField()
    turnover = serializers.DecimalField(max_digits=16, decimal_places=2)
    loyalty = serializers.DecimalField(max_digits=16, decimal_places=2)
    commission = serializers.DecimalField(max_digits=16, decimal_places=2)
    total_bonus = serializers.DecimalField(max_digits=16, decimal_places=2)
    periods = serializers.ListField(child=serializers.CharField())
    worst_status = serializers.CharField(allow_null=True)


class SalonAggregateSerializer(serializers.Serializer):
    key = serializers.CharField()
    salon_id = serializers.CharField(allow_null=True)
    salon_name = serializers.CharField()
    member_number = serializers.CharField(allow_blank=True)
    is_unmatched = serializers.BooleanField()
    turnover = serializers.DecimalField(max_digits=16, decimal_places=2)
    loyalty = serializers.DecimalField(max_digits=16, decimal_places=2)
    commission = serializers.DecimalField(max_digits=16, decimal_places=2)
    total_bonus = serializers.DecimalField(max_digits=16, decimal_places=2)
    periods = serializers.ListField(child=serializers.CharField())
    worst_status = serializers.CharField(allow_null=True)
    calculation_ids = serializers.ListField(child=serializers.CharField())
    suppliers = SupplierBreakdownSerializer(many=True)


class GrowthBaselineOverrideSerializer(serializers.ModelSerializer):
    salon_name = serializers.CharField(source="salon.name", read_only=True)
    supplier_name = serializers.CharField(source="supplier.name", read_only=True)

    class Meta:
        model = GrowthBaselineOverride
        fields = [
            "id", "salon", "salon_name", "supplier", "supplier_name", "year",
            "override_turnover", "note", "created_at",
        ]
        read_only_fields = ["id", "created_at"]

    def validate_override_turnover(self, value):
        if value < 0:
            raise serializers.ValidationError("Omsetningen kan ikke vaere negativ.")
        return value


class GrowthQuerySerializer(serializers.Serializer):
    year = serializers.IntegerField(min_value=2000, max_value=2100)
    supplier = serializers.PrimaryKeyRelatedField(
        queryset=Supplier.objects.filter(cumulative_reporting=True),
    )


class SalonGrowthSerializer(serializers.Serializer):
    salon_id = serializers.CharField()
    salon_name = serializers.CharField()
    latest_period = serializers.CharField()
    current_year_to_date = serializers.DecimalField(max_digits=16, decimal_places=2)
    previous_year_same_period = serializers.DecimalField(max_digits=16, decimal_places=2)
    previous_year_total = serializers.DecimalField(max_digits=16, decimal_places=2)
    used_override = serializers.BooleanField()
    is_new_customer = serializers.BooleanField()
    growth_percent = serializers.DecimalField(max_digits=12, decimal_places=2)
    progress_vs_full_year = serializers.DecimalField(max_digits=12, decimal_places=2)
    amount_to_reach_last_year = serializers.DecimalField(max_digits=16, decimal_places=2)
    tier = serializers.CharField(allow_blank=True)
    has_extra_tier = serializers.BooleanField()
    base_bonus = serializers.DecimalField(max_digits=16, decimal_places=2)
    extra_bonus = serializers.DecimalField(max_digits=16, decimal_places=2)
    growth_bonus = serializers.DecimalField(max_digits=16, decimal_places=2)
    loyalty_bonus = serializers.DecimalField(max_digits=16, decimal_places=2)
    total_bonus = serializers.DecimalField(max_digits=16, decimal_places=2)
