from decimal import Decimal

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile

from bonus.imports import import_batch, import_file
from bonus.models import (
    BonusCalculation,
    BonusRule,
    CalculationStatus,
    GrowthBaselineOverride,
    ImportBatch,
    ImportedSale,
)
from bonus.parsers import NormalizedRow
from suppliers.models import SupplierIdentifier

HEADER = ["Salong", "Kundenr", "Omsetning"]


def upload(content, name="mars.xlsx"):
    return SimpleUploadedFile(
        name,
        content,
        content_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )


@pytest.mark.django_db
def test_bonus_endpoints_require_staff(client, plain_user):
    assert client.get("/api/v1/bonus/import-batches/").status_code == 403

    client.force_login(plain_user)
    assert client.get("/api/v1/bonus/calculations/").status_code == 403


@pytest.mark.django_db
def test_upload_creates_batch(client, admin_user, supplier, salon, xlsx_bytes):
    client.force_login(admin_user)
    content = xlsx_bytes([HEADER, ["Salong Nord", 1001, 2500], ["Ukjent", 9999, 100]])

    response = client.post(
        "/api/v1/bonus/import-batches/upload/",
        {"supplier": str(supplier.pk), "period": "2025-03", "file": upload(content)},
    )

    assert response.status_code == 201, response.content
    body = response.json()
    assert body["layout"] == "maria_nila"
    assert body["row_count"] == 2
    assert body["matched_count"] == 1
    assert body["batches"][0]["period"] == "2025-03"
    assert "warning" not in body


@pytest.mark.django_db
def test_upload_with_no_rows_returns_warning(client, admin_user, supplier, xlsx_bytes):
    client.force_login(admin_user)

    response = client.post(
        "/api/v1/bonus/import-batches/upload/",
        {"supplier": str(supplier.pk), "period": "2025-03", "file": upload(xlsx_bytes([HEADER]))},
    )

    assert response.status_code == 200
    assert "Maria Nila" in response.json()["warning"]
    assert not ImportBatch.objects.exists()


@pytest.mark.django_db
def test_upload_rejects_unreadable_file(client, admin_user, supplier):
    client.force_login(admin_user)

    response = client.post(
        "/api/v1/bonus/import-batches/upload/",
        {"supplier": str(supplier.pk), "period": "2025-03", "file": upload(b"garbage")},
    )

    assert response.status_code == 400
    assert "detail" in response.json()


@pytest.mark.django_db
def test_upload_validates_period_and_quarter(client, admin_user, supplier, xlsx_bytes):
    client.force_login(admin_user)
    content = xlsx_bytes([HEADER, ["Salong Nord", 1001, 300]])

    bad_period = client.post(
        "/api/v1/bonus/import-batches/upload/",
        {"supplier": str(supplier.pk), "period": "2025-13", "file": upload(content)},
    )
    missing_year = client.post(
        "/api/v1/bonus/import-batches/upload/",
        {"supplier": str(supplier.pk), "quarter": "Q2", "file": upload(content)},
    )
    quarter = client.post(
        "/api/v1/bonus/import-batches/upload/",
        {"supplier": str(supplier.pk), "quarter": "Q2", "year": 2025, "file": upload(content)},
    )

    assert bad_period.status_code == 400
    assert "period" in bad_period.json()
    assert missing_year.status_code == 400
    assert "year" in missing_year.json()
    assert quarter.status_code == 201, quarter.content
    assert [b["period"] for b in quarter.json()["batches"]] == ["2025-04", "2025-05", "2025-06"]


@pytest.mark.django_db
def test_imported_sales_filter_and_manual_match(client, admin_user, supplier, other_salon, xlsx_bytes):
    import_file(
        supplier,
        xlsx_bytes([HEADER, ["Salong Nord", 1001, 2500], ["Ukjent", 9999, 100]]),
        "mars.xlsx",
        period="2025-03",
    )
    client.force_login(admin_user)

    listing = client.get("/api/v1/bonus/imported-sales/", {"match_status": "unmatched"})
    assert listing.status_code == 200
    assert listing.json()["count"] == 2

    sale = ImportedSale.objects.get(raw_identifier="9999")
    response = client.post(
        f"/api/v1/bonus/imported-sales/{sale.pk}/match/",
        {"salon": str(other_salon.pk)},
        content_type="application/json",
    )

    assert response.status_code == 200, response.content
    assert response.json()["match_status"] == "manual_override"
    assert response.json()["matched_salon_name"] == other_salon.name
    assert SupplierIdentifier.objects.filter(customer_number="9999", salon=other_salon).exists()

    identifiers = client.get("/api/v1/bonus/supplier-identifiers/")
    assert identifiers.json()["count"] == 1
    mapping_id = identifiers.json()["results"][0]["id"]
    assert client.delete(f"/api/v1/bonus/supplier-identifiers/{mapping_id}/").status_code == 204
    assert not SupplierIdentifier.objects.exists()


@pytest.mark.django_db
def test_rematch_and_sync_all(client, admin_user, supplier, salon, xlsx_bytes):
    batch = import_file(
        supplier, xlsx_bytes([HEADER, ["Salong Nord", 1001, 2500]]), "mars.xlsx", period="2025-03",
    ).batches[0]
    client.force_login(admin_user)

    rematch = client.post(f"/api/v1/bonus/import-batches/{batch.pk}/rematch/")
    sync_all = client.post("/api/v1/bonus/import-batches/sync-all/")

    assert rematch.status_code == 200
    assert rematch.json()["batch"]["matched_count"] == 1
    assert sync_all.status_code == 200
    assert sync_all.json()["batches"] == 0


@pytest.mark.django_db
def test_rule_crud_validates_brand_and_percentage(client, admin_user, supplier, generic_supplier, brand):
    client.force_login(admin_user)

    created = client.post(
        "/api/v1/bonus/bonus-rules/",
        {"supplier": str(supplier.pk), "brand": str(brand.pk), "rule_type": "loyalty", "percentage": "5.00"},
        content_type="application/json",
    )
    wrong_brand = client.post(
        "/api/v1/bonus/bonus-rules/",
        {"supplier": str(generic_supplier.pk), "brand": str(brand.pk), "rule_type": "loyalty", "percentage": "5"},
        content_type="application/json",
    )
    too_high = client.post(
        "/api/v1/bonus/bonus-rules/",
        {"supplier": str(supplier.pk), "rule_type": "loyalty", "percentage": "150"},
        content_type="application/json",
    )

    assert created.status_code == 201, created.content
    assert created.json()["brand_name"] == "Maria Nila"
    assert wrong_brand.status_code == 400
    assert "brand" in wrong_brand.json()
    assert too_high.status_code == 400
    assert BonusRule.objects.count() == 1


@pytest.mark.django_db
def test_baseline_create_validates_period(client, admin_user, cumulative_supplier, salon):
    client.force_login(admin_user)

    ok = client.post(
        "/api/v1/bonus/cumulative-baselines/",
        {"salon": str(salon.pk), "supplier": str(cumulative_supplier.pk), "period": "2025-02", "cumulative_value": "700"},
        content_type="application/json",
    )
    bad = client.post(
        "/api/v1/bonus/cumulative-baselines/",
        {"salon": str(salon.pk), "supplier": str(cumulative_supplier.pk), "period": "feb", "cumulative_value": "700"},
        content_type="application/json",
    )

    assert ok.status_code == 201, ok.content
    assert bad.status_code == 400


@pytest.mark.django_db
def test_calculate_approve_and_reports(client, admin_user, supplier, salon, loyalty_rule):
    import_batch(
        supplier,
        "2025-03",
        [NormalizedRow("1001", "Salong Nord", "Maria Nila", "produkt", Decimal("10000"))],
        "mars.xlsx",
    )
    client.force_login(admin_user)

    run = client.post(
        "/api/v1/bonus/calculations/calculate/",
        {"start": "2025-03", "end": "2025-03"},
        content_type="application/json",
    )
    assert run.status_code == 200, run.content
    assert run.json()["summary"] == "1 oppdatert, 0 feilet"

    calc = BonusCalculation.objects.get()
    approve = client.post(f"/api/v1/bonus/calculations/{calc.pk}/approve/")
    again = client.post(f"/api/v1/bonus/calculations/{calc.pk}/approve/")
    assert approve.status_code == 200
    assert approve.json()["status"] == CalculationStatus.APPROVED
    assert again.status_code == 400

    aggregated = client.get("/api/v1/bonus/calculations/aggregated/", {"start": "2025-01", "end": "2025-03"})
    assert aggregated.status_code == 200
    assert aggregated.json()[0]["salon_name"] == "Salong Nord"
    assert aggregated.json()[0]["total_bonus"] == "500.00"

    summary = client.get("/api/v1/bonus/calculations/summary/", {"start": "2025-03"})
    assert summary.json()["calculation_count"] == 1

    by_brand = client.get("/api/v1/bonus/calculations/by-brand/", {"start": "2025-03"})
    assert by_brand.json()[0]["brand"] == "Maria Nila"

    export = client.get("/api/v1/bonus/calculations/export/", {"start": "2025-03", "end": "2025-03"})
    assert export.status_code == 200
    assert export["Content-Type"].startswith("text/csv")
    content = export.content.decode("utf-8-sig")
    assert content.splitlines()[0].startswith("Salong;Medlemsnummer")
    assert "Salong Nord;1001" in content


@pytest.mark.django_db
def test_calculate_without_rules_is_rejected(client, admin_user, supplier, salon):
    import_batch(
        supplier,
        "2025-03",
        [NormalizedRow("1001", "Salong Nord", "Maria Nila", "produkt", Decimal("100"))],
        "mars.xlsx",
    )
    client.force_login(admin_user)

    response = client.post(
        "/api/v1/bonus/calculations/calculate/",
        {"start": "2025-03"},
        content_type="application/json",
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Ingen aktive bonusregler funnet."
    assert not BonusCalculation.objects.exists()


@pytest.mark.django_db
def test_reversed_range_is_rejected(client, admin_user):
    client.force_login(admin_user)
    response = client.get("/api/v1/bonus/calculations/summary/", {"start": "2025-05", "end": "2025-01"})
    assert response.status_code == 400
    assert "end" in response.json()


@pytest.mark.django_db
def test_salon_search_for_manual_matching(client, admin_user, salon, other_salon):
    client.force_login(admin_user)

    response = client.get("/api/v1/bonus/salons/", {"search": "987654321"})

    assert response.status_code == 200
    assert [s["name"] for s in response.json()["results"]] == ["Salong Sor"]
    assert response.json()["count"] == 1


@pytest.mark.django_db
def test_growth_bonus_endpoint(client, admin_user, cumulative_supplier, supplier, salon):
    import_batch(
        cumulative_supplier,
        "2024-03",
        [NormalizedRow("1001", "Salong Nord", "Redken", "produkt", Decimal("1000"))],
        "mars-2024.xlsx",
    )
    import_batch(
        cumulative_supplier,
        "2025-03",
        [NormalizedRow("1001", "Salong Nord", "Redken", "produkt", Decimal("1100"))],
        "mars-2025.xlsx",
    )
    client.force_login(admin_user)

    response = client.get(
        "/api/v1/bonus/calculations/growth/",
        {"year": 2025, "supplier": str(cumulative_supplier.pk)},
    )

    assert response.status_code == 200, response.content
    (entry,) = response.json()
    assert entry["salon_name"] == "Salong Nord"
    assert entry["growth_percent"] == "10.00"
    assert entry["tier"] == "5%"
    assert entry["growth_bonus"] == "60.00"

    rejected = client.get("/api/v1/bonus/calculations/growth/", {"year": 2025, "supplier": str(supplier.pk)})
    assert rejected.status_code == 400
    assert "supplier" in rejected.json()


@pytest.mark.django_db
def test_growth_override_crud(client, admin_user, cumulative_supplier, salon):
    client.force_login(admin_user)
    url = "/api/v1/bonus/growth-overrides/"

    bad = client.post(
        url,
        {"salon": str(salon.pk), "supplier": str(cumulative_supplier.pk), "year": 2024, "override_turnover": "-1"},
        content_type="application/json",
    )
    assert bad.status_code == 400
    assert "override_turnover" in bad.json()

    created = client.post(
        url,
        {"salon": str(salon.pk), "supplier": str(cumulative_supplier.pk), "year": 2024, "override_turnover": "5000"},
        content_type="application/json",
    )
    assert created.status_code == 201, created.content
    assert created.json()["salon_name"] == "Salong Nord"
    assert GrowthBaselineOverride.objects.get().override_turnover == Decimal("5000.00")
