"""End-to-end tests for the monthly accounting API."""

from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from econova_api.accounting.bridge import OfficialLedgerBridge
from econova_api.models import DailyWasteEntry, MonthlySummary

ENTRY = {
    "date": "2025-01-15",
    "category": "recycling",
    "material": "PET",
    "kg": 10.0,
    "location": "Casa Club",
}


def _headers(key: str) -> dict:
    return {"x-api-key": key}


def _post_entry(client, key, **overrides):
    return client.post("/v1/entries", json={**ENTRY, **overrides}, headers=_headers(key))


def _close(client, key, year=2025, month=1):
    return client.post(
        f"/v1/monthly-summary/{year}/{month}/close",
        json={"closed_by": "Equipo de Seguridad"},
        headers=_headers(key),
    )


class TestAuthentication:
    """Test API key and scope enforcement."""

    def test_missing_key_is_rejected(self, client, api_keys):
        response = client.post("/v1/entries", json=ENTRY)
        assert response.status_code == 401

    def test_invalid_key_is_rejected(self, client, api_keys):
        response = _post_entry(client, "not-a-real-key-at-all")
        assert response.status_code == 401

    def test_staff_key_cannot_close(self, client, api_keys):
        assert _post_entry(client, api_keys["staff"]).status_code == 201

        response = _close(client, api_keys["staff"])

        assert response.status_code == 403
        assert "months:close" in response.json()["detail"]

    def test_staff_key_cannot_transfer(self, client, api_keys):
        response = client.post("/v1/monthly-summary/2025/1/transfer", headers=_headers(api_keys["staff"]))
        assert response.status_code == 403


class TestEntries:
    """Test daily entry recording."""

    def test_record_entry(self, client, api_keys):
        response = _post_entry(client, api_keys["staff"], notes="Bolsa 3")

        assert response.status_code == 201
        data = response.json()
        assert data["date"] == "2025-01-15"
        assert data["material"] == "PET"
        assert data["kg"] == 10.0
        assert data["notes"] == "Bolsa 3"

    def test_negative_weight_is_rejected(self, client, api_keys, db):
        response = _post_entry(client, api_keys["staff"], kg=-1)

        assert response.status_code == 422
        body = response.json()
        assert body["error_code"] == "VALIDATION_FAILED"
        assert body["context"]["field"] == "kg"
        assert db.query(DailyWasteEntry).count() == 0

    def test_unknown_material_is_rejected(self, client, api_keys):
        response = _post_entry(client, api_keys["staff"], material="Uranio")

        assert response.status_code == 422
        assert response.json()["context"]["field"] == "material"

    def test_malformed_date_is_rejected(self, client, api_keys):
        response = _post_entry(client, api_keys["staff"], date="15/01/2025")
        assert response.status_code == 422

    def test_daily_totals(self, client, api_keys):
        _post_entry(client, api_keys["staff"], kg=2.5)
        _post_entry(client, api_keys["staff"], category="compost", material="Jardinería", kg=1.5)
        _post_entry(client, api_keys["staff"], date="2025-01-16", kg=100.0)

        response = client.get("/v1/entries/daily-totals/2025-01-15", headers=_headers(api_keys["staff"]))

        assert response.status_code == 200
        data = response.json()
        assert data["recycling"] == 2.5
        assert data["compost"] == 1.5
        assert data["landfill"] == 0.0
        assert data["total"] == 4.0

    def test_materials_catalog(self, client, api_keys):
        response = client.get("/v1/materials", headers=_headers(api_keys["staff"]))

        assert response.status_code == 200
        data = response.json()
        assert set(data) == {"recycling", "compost", "reuse", "landfill"}
        assert "PET" in data["recycling"]
        assert data["landfill"] == ["Orgánico", "Inorgánico"]


class TestMonthlyLifecycle:
    """Test summary, close and transfer over HTTP."""

    def test_summary_of_open_month(self, client, api_keys):
        _post_entry(client, api_keys["staff"])
        _post_entry(client, api_keys["staff"], category="landfill", material="Orgánico", kg=5.0)

        response = client.get("/v1/monthly-summary/2025/1", headers=_headers(api_keys["staff"]))

        assert response.status_code == 200
        data = response.json()
        assert data["summary"]["status"] == "open"
        assert data["summary"]["total_waste"] == 15.0
        assert data["summary"]["recycling_breakdown"] == {"PET": 10.0}
        assert data["summary"]["transferred_to_official"] is False
        assert len(data["entries"]) == 2
        assert data["can_close"] is True

    def test_invalid_month_in_path(self, client, api_keys):
        response = client.get("/v1/monthly-summary/2025/13", headers=_headers(api_keys["staff"]))
        assert response.status_code == 422

    def test_close_empty_month_conflicts(self, client, api_keys, db):
        response = _close(client, api_keys["full"])

        assert response.status_code == 409
        assert response.json()["error_code"] == "PRECONDITION_FAILED"
        summary = db.query(MonthlySummary).one_or_none()
        assert summary is None or summary.status == "open"

    def test_close_then_transfer(self, client, api_keys):
        _post_entry(client, api_keys["staff"])
        _post_entry(client, api_keys["staff"], category="landfill", material="Orgánico", kg=5.0)

        closed = _close(client, api_keys["full"])
        assert closed.status_code == 200
        assert closed.json()["status"] == "closed"
        assert closed.json()["closed_by"] == "Equipo de Seguridad"

        first = client.post("/v1/monthly-summary/2025/1/transfer", headers=_headers(api_keys["full"]))
        second = client.post("/v1/monthly-summary/2025/1/transfer", headers=_headers(api_keys["full"]))

        assert first.status_code == 200
        assert second.status_code == 200
        assert first.json()["replayed"] is False
        assert second.json()["replayed"] is True
        assert second.json()["official_record"] == first.json()["official_record"]

        record = first.json()["official_record"]
        assert record["label"] == "Ene 2025"
        assert record["total_generated"] == 15.0
        assert record["deviation_percentage"] == pytest.approx(66.67)
        assert second.json()["summary"]["status"] == "transferred"
        assert second.json()["summary"]["transferred_to_official"] is True

    def test_transfer_open_month_conflicts(self, client, api_keys):
        _post_entry(client, api_keys["staff"])

        response = client.post("/v1/monthly-summary/2025/1/transfer", headers=_headers(api_keys["full"]))

        assert response.status_code == 409
        assert response.json()["error_code"] == "PRECONDITION_FAILED"

    def test_entry_after_transfer_conflicts(self, client, api_keys, db):
        _post_entry(client, api_keys["staff"])
        _close(client, api_keys["full"])
        client.post("/v1/monthly-summary/2025/1/transfer", headers=_headers(api_keys["full"]))

        response = _post_entry(client, api_keys["staff"], kg=3.0)

        assert response.status_code == 409
        assert response.json()["error_code"] == "MONTH_TRANSFERRED"
        assert db.query(DailyWasteEntry).count() == 1

    def test_entry_after_close_is_not_aggregated(self, client, api_keys):
        _post_entry(client, api_keys["staff"])
        _close(client, api_keys["full"])

        assert _post_entry(client, api_keys["staff"], kg=3.0).status_code == 201

        data = client.get("/v1/monthly-summary/2025/1", headers=_headers(api_keys["staff"])).json()
        assert data["summary"]["total_waste"] == 10.0
        assert data["unaggregated_entry_count"] == 1
        assert data["can_close"] is False

    def test_bridge_failure_is_retryable(self, client, api_keys, db):
        _post_entry(client, api_keys["staff"])
        _close(client, api_keys["full"])

        failure = OperationalError("INSERT INTO official_ledger_records", {}, Exception("connection lost"))
        with patch.object(OfficialLedgerBridge, "_upsert", side_effect=failure):
            response = client.post("/v1/monthly-summary/2025/1/transfer", headers=_headers(api_keys["full"]))

        assert response.status_code == 503
        assert response.json()["error_code"] == "OFFICIAL_LEDGER_UNAVAILABLE"
        assert db.query(MonthlySummary).one().status == "closed"

        retry = client.post("/v1/monthly-summary/2025/1/transfer", headers=_headers(api_keys["full"]))
        assert retry.status_code == 200
        assert retry.json()["replayed"] is False


class TestOfficialLedger:
    """Test the certification views."""

    def _transfer(self, client, api_keys, month, recycling_kg, landfill_kg):
        day = f"2025-{month:02d}-10"
        _post_entry(client, api_keys["staff"], date=day, kg=recycling_kg)
        _post_entry(client, api_keys["staff"], date=day, category="landfill", material="Inorgánico", kg=landfill_kg)
        _close(client, api_keys["full"], month=month)
        client.post(f"/v1/monthly-summary/2025/{month}/transfer", headers=_headers(api_keys["full"]))

    def test_official_year(self, client, api_keys):
        self._transfer(client, api_keys, 2, recycling_kg=30.0, landfill_kg=10.0)
        self._transfer(client, api_keys, 1, recycling_kg=10.0, landfill_kg=10.0)
        # Closed but never transferred months are not part of the official view.
        _post_entry(client, api_keys["staff"], date="2025-03-01")
        _close(client, api_keys["full"], month=3)

        response = client.get("/v1/official-ledger/2025", headers=_headers(api_keys["staff"]))

        assert response.status_code == 200
        data = response.json()
        assert [record["month"] for record in data["records"]] == [1, 2]
        assert data["annual"]["total_diverted"] == 40.0
        assert data["annual"]["total_generated"] == 60.0
        assert data["annual"]["deviation_percentage"] == pytest.approx(66.67)

    def test_official_year_empty(self, client, api_keys):
        data = client.get("/v1/official-ledger/2024", headers=_headers(api_keys["staff"])).json()

        assert data["records"] == []
        assert data["annual"]["deviation_percentage"] == 0.0

    def test_csv_export(self, client, api_keys):
        self._transfer(client, api_keys, 1, recycling_kg=10.0, landfill_kg=5.0)

        response = client.get("/v1/official-ledger/2025/export.csv", headers=_headers(api_keys["staff"]))

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert 'filename="trazabilidad_test-tenant_2025.csv"' in response.headers["content-disposition"]
        text = response.content.decode("utf-8")
        assert text.startswith("\ufeff")
        lines = text.lstrip("\ufeff").splitlines()
        assert lines[0].startswith("Mes,Reciclaje (kg)")
        assert lines[1].startswith("Ene 2025,10.0,0.0,0.0,5.0,10.0,15.0,66.67")
