"""DRF views for bonus imports, rules and calculations."""
import logging

from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response

from api.permissions import IsBonusAdmin
from api.v1.pagination import StandardResultsSetPagination
from core.export import rows_to_csv_response
from salons.models import Salon
from salons.services import search_salons
from suppliers.models import Supplier, SupplierIdentifier

from . import aggregation, engine, imports
from .exceptions import BonusError
from .growth import compute_growth
from .models import (
    BonusCalculation,
    BonusRule,
    CumulativeBaseline,
    GrowthBaselineOverride,
    ImportBatch,
    ImportedSale,
)
from .serializers import (
    BonusCalculationSerializer,
    BonusRuleSerializer,
    CumulativeBaselineSerializer,
    GrowthBaselineOverrideSerializer,
    GrowthQuerySerializer,
    ImportBatchSerializer,
    ImportedSaleSerializer,
    ImportUploadSerializer,
    MatchSaleSerializer,
    PeriodRangeSerializer,
    SalonAggregateSerializer,
    SalonGrowthSerializer,
    SalonSerializer,
    SupplierIdentifierSerializer,
    SupplierSerializer,
)

logger = logging.getLogger("bonus")


def _error(exc):
    return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)


def _rematch_payload(result):
    return {
        "matched": result.matched,
        "failed": result.failed,
        "batches": result.batches,
        "errors": result.errors,
        "summary": f"{result.matched} matchet, {result.failed} fortsatt umatchet",
    }


class BonusViewMixin:
    permission_classes = [IsBonusAdmin]
    pagination_class = StandardResultsSetPagination


class SupplierViewSet(BonusViewMixin, viewsets.ReadOnlyModelViewSet):
    queryset = Supplier.objects.prefetch_related("brands")
    serializer_class = SupplierSerializer
    filterset_fields = ["is_active", "cumulative_reporting", "identifier_type"]
    search_fields = ["name"]
    ordering_fields = ["name"]


class SalonViewSet(BonusViewMixin, viewsets.ReadOnlyModelViewSet):
    """Salon picker for manual matching; ``?search=`` filters by name or number."""

    queryset = Salon.objects.all()
    serializer_class = SalonSerializer
    filterset_fields = ["is_active"]

    def get_queryset(self):
        return search_salons(self.request.query_params.get("search", ""))


class ImportBatchViewSet(BonusViewMixin, viewsets.ReadOnlyModelViewSet):
    """Import batches; uploads and rematching go through the actions."""

    queryset = ImportBatch.objects.select_related("supplier", "imported_by")
    serializer_class = ImportBatchSerializer
    filterset_fields = ["supplier", "period", "status"]
    search_fields = ["file_name", "supplier__name"]
    ordering_fields = ["period", "created_at", "row_count", "matched_count"]

    @action(detail=False, methods=["post"], url_path="upload")
    def upload(self, request):
        serializer = ImportUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        d = serializer.validated_data
        upload = d["file"]
        try:
            result = imports.import_file(
                d["supplier"],
                upload,
                upload.name,
                period=d.get("period"),
                quarter=d.get("quarter"),
                year=d.get("year"),
                actor=request.user,
            )
        except (BonusError, ValueError) as exc:
            return _error(exc)

        payload = {
            "layout": result.parse.layout,
            "row_count": result.row_count,
            "matched_count": result.matched_count,
            "failed_periods": result.failed_periods,
            "batches": ImportBatchSerializer(result.batches, many=True).data,
        }
        if result.warning:
            payload["warning"] = result.warning
            return Response(payload, status=status.HTTP_200_OK)
        return Response(payload, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"], url_path="rematch")
    def rematch(self, request, pk=None):
        batch = self.get_object()
        result = imports.rematch(batch)
        batch.refresh_from_db()
        payload = _rematch_payload(result)
        payload["batch"] = ImportBatchSerializer(batch).data
        return Response(payload)

    @action(detail=False, methods=["post"], url_path="sync-all")
    def sync_all(self, request):
        return Response(_rematch_payload(imports.sync_all_batches()))


class ImportedSaleViewSet(BonusViewMixin, viewsets.ReadOnlyModelViewSet):
    queryset = ImportedSale.objects.select_related("matched_salon", "supplier", "batch")
    serializer_class = ImportedSaleSerializer
    filterset_fields = ["batch", "supplier", "reported_period", "match_status", "product_group"]
    search_fields = ["raw_identifier", "raw_name", "brand"]
    ordering_fields = ["reported_value", "raw_identifier", "brand"]

    @action(detail=True, methods=["post"], url_path="match")
    def match(self, request, pk=None):
        sale = self.get_object()
        serializer = MatchSaleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        sale = imports.match_sale(sale, serializer.validated_data["salon"], actor=request.user)
        return Response(ImportedSaleSerializer(sale).data)

    @action(detail=True, methods=["post"], url_path="unmatch")
    def unmatch(self, request, pk=None):
        sale = imports.unmatch_sale(self.get_object(), actor=request.user)
        return Response(ImportedSaleSerializer(sale).data)


class BonusRuleViewSet(BonusViewMixin, viewsets.ModelViewSet):
    queryset = BonusRule.objects.select_related("supplier", "brand")
    serializer_class = BonusRuleSerializer
    filterset_fields = ["supplier", "brand", "rule_type", "is_active"]
    search_fields = ["description", "supplier__name", "brand__name"]
    ordering_fields = ["created_at", "percentage"]

    def perform_create(self, serializer):
        rule = serializer.save()
        logger.info("Bonus rule %s created by %s", rule.pk, self.request.user)

    def perform_update(self, serializer):
        rule = serializer.save()
        logger.info("Bonus rule %s updated by %s", rule.pk, self.request.user)


class CumulativeBaselineViewSet(BonusViewMixin, viewsets.ModelViewSet):
    queryset = CumulativeBaseline.objects.select_related("salon", "supplier")
    serializer_class = CumulativeBaselineSerializer
    filterset_fields = ["salon", "supplier", "period"]
    search_fields = ["salon__name", "salon__member_number", "note"]
    ordering_fields = ["period", "cumulative_value"]


class GrowthBaselineOverrideViewSet(BonusViewMixin, viewsets.ModelViewSet):
    queryset = GrowthBaselineOverride.objects.select_related("salon", "supplier")
    serializer_class = GrowthBaselineOverrideSerializer
    filterset_fields = ["salon", "supplier", "year"]
    search_fields = ["salon__name", "salon__member_number", "note"]
    ordering_fields = ["year", "override_turnover"]


class SupplierIdentifierViewSet(
    BonusViewMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    """Learned customer-number mappings. Deleting one forgets the mapping."""

    queryset = SupplierIdentifier.objects.select_related("salon", "supplier", "created_by")
    serializer_class = SupplierIdentifierSerializer
    filterset_fields = ["supplier", "salon", "identifier_type"]
    search_fields = ["customer_number", "salon__name"]
    ordering_fields = ["created_at", "customer_number"]


class BonusCalculationViewSet(BonusViewMixin, viewsets.ReadOnlyModelViewSet):
    queryset = BonusCalculation.objects.select_related("salon", "supplier", "approved_by")
    serializer_class = BonusCalculationSerializer
    filterset_fields = ["supplier", "salon", "period", "status"]
    search_fields = ["salon__name", "salon__member_number", "supplier__name"]
    ordering_fields = ["period", "total_turnover", "loyalty_bonus_amount"]

    def get_queryset(self):
        qs = super().get_queryset()
        unmatched = self.request.query_params.get("unmatched")
        if unmatched in ("1", "true"):
            qs = qs.filter(salon__isnull=True)
        elif unmatched in ("0", "false"):
            qs = qs.filter(salon__isnull=False)
        return qs

    def _range(self, data):
        serializer = PeriodRangeSerializer(data=data)
        serializer.is_valid(raise_exception=True)
        d = serializer.validated_data
        return d["start"], d["end"], d.get("supplier")

    @action(detail=False, methods=["post"], url_path="calculate")
    def calculate(self, request):
        start, end, supplier = self._range(request.data)
        try:
            report = engine.calculate_range(start, end, supplier=supplier, actor=request.user)
        except (BonusError, ValueError) as exc:
            return _error(exc)
        return Response(report.as_dict())

    @action(detail=True, methods=["post"], url_path="approve")
    def approve(self, request, pk=None):
        try:
            calc = engine.approve_calculation(self.get_object(), actor=request.user)
        except BonusError as exc:
            return _error(exc)
        return Response(BonusCalculationSerializer(calc).data)

    @action(detail=False, methods=["get"], url_path="aggregated")
    def aggregated(self, request):
        start, end, supplier = self._range(request.query_params)
        rows = [group.as_dict() for group in aggregation.aggregate_calculations(start, end, supplier)]
        return Response(SalonAggregateSerializer(rows, many=True).data)

    @action(detail=False, methods=["get"], url_path="summary")
    def summary(self, request):
        start, end, supplier = self._range(request.query_params)
        return Response(aggregation.calculation_summary(start, end, supplier))

    @action(detail=False, methods=["get"], url_path="by-brand")
    def by_brand(self, request):
        start, end, supplier = self._range(request.query_params)
        return Response(aggregation.brand_summary(start, end, supplier))

    @action(detail=False, methods=["get"], url_path="growth")
    def growth(self, request):
        serializer = GrowthQuerySerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        d = serializer.validated_data
        rows = [g.as_dict() for g in compute_growth(d["year"], d["supplier"])]
        return Response(SalonGrowthSerializer(rows, many=True).data)


    @action(detail=False, methods=["get"], url_path="export")
    def export(self, request):
        start, end, supplier = self._range(request.query_params)
        groups = aggregation.aggregate_calculations(start, end, supplier)
        if not groups:
            raise ValidationError({"detail": "Ingen beregninger i valgt periode."})
        columns = [
            ("salon_name", "Salong"),
            ("member_number", "Medlemsnummer"),
            (lambda g: ", ".join(s.supplier_name for s in g.suppliers.values()), "Leverandorer"),
            (lambda g: ", ".join(sorted(g.periods)), "Perioder"),
            ("turnover", "Omsetning"),
            ("loyalty", "Lojalitetsbonus"),
            ("commission", "Returprovisjon"),
            ("total_bonus", "Total bonus"),
            ("worst_status", "Status"),
        ]
        return rows_to_csv_response(groups, columns, f"bonus_{start}_{end}")
