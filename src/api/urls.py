"""Main API URL router for /api/v1/."""
from django.urls import path, include
from rest_framework.routers import DefaultRouter

from bonus import views as bonus_views

router = DefaultRouter()
router.register(r'bonus/suppliers', bonus_views.SupplierViewSet, basename='bonus-supplier')
router.register(r'bonus/salons', bonus_views.SalonViewSet, basename='bonus-salon')
router.register(r'bonus/import-batches', bonus_views.ImportBatchViewSet, basename='bonus-import-batch')
router.register(r'bonus/imported-sales', bonus_views.ImportedSaleViewSet, basename='bonus-imported-sale')
router.register(r'bonus/bonus-rules', bonus_views.BonusRuleViewSet, basename='bonus-rule')
router.register(r'bonus/cumulative-baselines', bonus_views.CumulativeBaselineViewSet, basename='bonus-cumulative-baseline')
router.register(r'bonus/growth-overrides', bonus_views.GrowthBaselineOverrideViewSet, basename='bonus-growth-override')
router.register(r'bonus/supplier-identifiers', bonus_views.SupplierIdentifierViewSet, basename='bonus-supplier-identifier')
router.register(r'bonus/calculations', bonus_views.BonusCalculationViewSet, basename='bonus-calculation')


app_name = 'api'
urlpatterns = [
    path('', include(router.urls)),
]
