# =============================================================================
# tests/test_api.py - API Endpoint Tests
# =============================================================================
# Exercises routes through FastAPI's TestClient. Services are replaced via
# dependency_overrides; the lifespan (which connects to Supabase) is not run.
# =============================================================================

from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from app.dependencies import (
    get_analytics_service,
    get_datastore,
    get_gemstone_service,
    get_import_service,
    get_manufacturing_service,
    get_storage_service,
)
from app.exceptions import GemstoneNotFoundError, ProjectNotForSaleError
from app.main import create_app
from core.services import GemstoneImportService, StorageService
from core.services.analytics_service import build_sales_overview
from lib.supabase_client import SupabaseClientError


@pytest.fixture
def app():
    application = create_app()
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
def client(app):
    return TestClient(app)


# =============================================================================
# Health
# =============================================================================

class TestHealth:
    def test_health(self, client):
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["environment"] == "development"

    def test_readiness_reports_each_check(self, app, client):
        db = MagicMock()
        db.storage.list_buckets.side_effect = RuntimeError("storage down")
        app.dependency_overrides[get_datastore] = lambda: db

        body = client.get("/api/v1/health/ready").json()

        assert body["status"] == "degraded"
        assert body["checks"]["database"] == "healthy"
        assert body["checks"]["storage"].startswith("unhealthy")

    def test_ready_when_table_and_buckets_exist(self, app, client):
        db = MagicMock()
        db.storage.list_buckets.return_value = [
            SimpleNamespace(name="customer-photos"),
            SimpleNamespace(name="manufacturing-photos"),
        ]
        app.dependency_overrides[get_datastore] = lambda: db

        body = client.get("/api/v1/health/ready").json()

        assert body == {"status": "ready", "checks": {"database": "healthy", "storage": "healthy"}}
        db.table.assert_called_once_with("gemstones")

    def test_missing_photo_bucket_is_reported(self, app, client):
        db = MagicMock()
        db.storage.list_buckets.return_value = [SimpleNamespace(name="customer-photos")]
        app.dependency_overrides[get_datastore] = lambda: db

        body = client.get("/api/v1/health/ready").json()

        assert body["status"] == "degraded"
        assert body["checks"]["storage"] == "missing buckets: manufacturing-photos"

    def test_unreachable_inventory_table(self, app, client):
        db = MagicMock()
        db.run.side_effect = SupabaseClientError("Failed to reach gemstones table", db_message="relation missing")
        db.storage.list_buckets.return_value = []
        app.dependency_overrides[get_datastore] = lambda: db

        body = client.get("/api/v1/health/ready").json()

        assert body["checks"]["database"] == "unhealthy: relation missing"
        assert body["status"] == "degraded"

    def test_live(self, client):
        assert client.get("/api/v1/health/live").json() == {"status": "alive"}

    def test_root(self, client):
        assert client.get("/").json()["name"] == "Gem Desk API"


# =============================================================================
# Stock Import
# =============================================================================

class TestImportEndpoints:
    """Test CSV import endpoints."""

    def test_import_from_url(self, app, client, fake_db, stock_csv, csv_client):
        app.dependency_overrides[get_import_service] = lambda: GemstoneImportService(
            fake_db, http_client=csv_client(stock_csv)
        )

        response = client.post("/api/v1/gemstones/import-csv", json={"csv_url": "https://example.com/stock.csv"})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["count"] == 2
        assert body["message"] == "Successfully imported 2 gemstones"
        assert body["skipped"] == [{"row": 3, "reason": "missing_code", "detail": None}]

    def test_fetch_failure(self, app, client, fake_db, csv_client):
        app.dependency_overrides[get_import_service] = lambda: GemstoneImportService(
            fake_db, http_client=csv_client("", status_code=404)
        )

        response = client.post("/api/v1/gemstones/import-csv", json={"csv_url": "https://example.com/missing.csv"})

        assert response.status_code == 502
        assert response.json()["error"] == "Failed to fetch CSV: Not Found"
        assert response.json()["code"] == "CSV_FETCH_FAILED"

    def test_no_valid_rows(self, app, client, fake_db, csv_client):
        csv_text = "Code,Type,Weight,Pieces,Shape,Price/CT\n,Ruby,1,1,Oval,100"
        app.dependency_overrides[get_import_service] = lambda: GemstoneImportService(
            fake_db, http_client=csv_client(csv_text)
        )

        response = client.post("/api/v1/gemstones/import-csv", json={"csv_url": "https://example.com/stock.csv"})

        assert response.status_code == 400
        assert response.json()["error"] == "No valid gemstone data found in CSV"

    def test_missing_url(self, app, client, fake_db):
        app.dependency_overrides[get_import_service] = lambda: GemstoneImportService(fake_db)

        response = client.post("/api/v1/gemstones/import-csv", json={})

        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_upload_csv_with_upsert(self, app, client, fake_db, stock_csv):
        app.dependency_overrides[get_import_service] = lambda: GemstoneImportService(fake_db)

        response = client.post(
            "/api/v1/gemstones/import-csv/upload",
            files={"file": ("stock.csv", stock_csv.encode("utf-8"), "text/csv")},
            data={"mode": "upsert"},
        )

        assert response.status_code == 200
        assert response.json()["mode"] == "upsert"
        assert fake_db.calls[0][0] == "upsert"

    def test_upload_rejects_non_csv(self, app, client, fake_db):
        app.dependency_overrides[get_import_service] = lambda: GemstoneImportService(fake_db)

        response = client.post(
            "/api/v1/gemstones/import-csv/upload",
            files={"file": ("stock.xlsx", b"PK\x03\x04", "application/octet-stream")},
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_FILE_TYPE"

    def test_template_download(self, client):
        response = client.get("/api/v1/gemstones/import-template")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "gemstone_import_template.csv" in response.headers["content-disposition"]
        assert response.text.startswith('"Code","Type"')


# =============================================================================
# Inventory
# =============================================================================

class TestGemstoneEndpoints:
    def test_create_without_price(self, app, client):
        service = MagicMock()
        app.dependency_overrides[get_gemstone_service] = lambda: service

        response = client.post("/api/v1/gemstones", json={"code": "RUB-001", "weight": 1, "pcs": 1})

        assert response.status_code == 422
        assert response.json()["error"] == "Either Price per Carat or Price per Piece is required"
        service.create_gemstone.assert_not_called()

    def test_create(self, app, client):
        service = MagicMock()
        service.create_gemstone.return_value = {"id": "g1", "code": "RUB-001"}
        app.dependency_overrides[get_gemstone_service] = lambda: service

        response = client.post(
            "/api/v1/gemstones",
            json={"code": "RUB-001", "weight": 1, "pcs": 1, "price_ct": 1200},
        )

        assert response.status_code == 201
        assert response.json()["id"] == "g1"

    def test_list_passes_filters(self, app, client):
        service = MagicMock()
        service.list_gemstones.return_value = []
        app.dependency_overrides[get_gemstone_service] = lambda: service

        response = client.get("/api/v1/gemstones", params={"search": "oval", "status": "low-stock"})

        assert response.status_code == 200
        kwargs = service.list_gemstones.call_args.kwargs
        assert kwargs["search"] == "oval"
        assert kwargs["status"].value == "low-stock"

    def test_not_found(self, app, client):
        service = MagicMock()
        service.get_gemstone.side_effect = GemstoneNotFoundError("g404")
        app.dependency_overrides[get_gemstone_service] = lambda: service

        response = client.get("/api/v1/gemstones/g404")

        assert response.status_code == 404
        assert response.json()["code"] == "GEMSTONE_NOT_FOUND"


# =============================================================================
# Manufacturing & Analytics
# =============================================================================

class TestManufacturingEndpoints:
    def test_sell_not_ready(self, app, client):
        service = MagicMock()
        service.mark_as_sold.side_effect = ProjectNotForSaleError("p1", "plating")
        app.dependency_overrides[get_manufacturing_service] = lambda: service

        response = client.post("/api/v1/manufacturing/p1/sell", json={"selling_price": 45000, "customer_id": "c1"})

        assert response.status_code == 409
        assert response.json()["code"] == "PROJECT_NOT_FOR_SALE"

    def test_list_in_production(self, app, client):
        service = MagicMock()
        service.list_projects.return_value = []
        app.dependency_overrides[get_manufacturing_service] = lambda: service

        response = client.get("/api/v1/manufacturing", params={"status": "in_production"})

        assert response.status_code == 200
        assert service.list_projects.call_args.kwargs["status_filter"].value == "in_production"

    def test_delete_usage(self, app, client):
        service = MagicMock()
        app.dependency_overrides[get_manufacturing_service] = lambda: service

        response = client.delete("/api/v1/manufacturing/gemstones/u1")

        assert response.json() == {"success": True}
        service.delete_usage.assert_called_once_with("u1")


class TestAnalyticsEndpoint:
    def test_overview(self, app, client):
        service = MagicMock()
        service.sales_overview.return_value = build_sales_overview(
            [], customer_count=2, now=datetime(2025, 3, 15, tzinfo=timezone.utc)
        )
        app.dependency_overrides[get_analytics_service] = lambda: service

        body = client.get("/api/v1/analytics").json()

        assert body["totals"]["customers"] == 2
        assert len(body["monthly_revenue"]) == 6


class TestPhotoUpload:
    def test_rejects_non_image(self, app, client):
        app.dependency_overrides[get_storage_service] = lambda: StorageService(MagicMock())

        response = client.post(
            "/api/v1/upload",
            files={"file": ("notes.pdf", b"%PDF-1.4", "application/pdf")},
            data={"type": "customer"},
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_FILE_TYPE"

    def test_stores_customer_photo(self, app, client):
        db = MagicMock()
        db.public_url.return_value = "https://cdn.example.com/customer-photos/customers/x.png"
        app.dependency_overrides[get_storage_service] = lambda: StorageService(db)

        response = client.post(
            "/api/v1/upload",
            files={"file": ("face.png", b"\x89PNG", "image/png")},
            data={"type": "customer"},
        )

        assert response.status_code == 200
        bucket, path = db.upload_blob.call_args.args[:2]
        assert bucket == "customer-photos"
        assert path.startswith("customers/") and path.endswith(".png")
        assert response.json()["url"].endswith("x.png")

    def test_photo_too_large(self, app, client):
        app.dependency_overrides[get_storage_service] = lambda: StorageService(MagicMock(), max_size_mb=1)

        response = client.post(
            "/api/v1/upload",
            files={"file": ("big.jpg", b"0" * (1024 * 1024 + 1), "image/jpeg")},
        )

        assert response.status_code == 413
