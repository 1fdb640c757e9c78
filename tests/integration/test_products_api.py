"""Integration tests for the products REST API."""

import pytest
from fastapi.testclient import TestClient

from src.pharmacat.stores import EmbeddedRecordStore

pytestmark = pytest.mark.integration

ZOVIRAX = {
    "Brand": "Zovirax",
    "Generic Name": "ACICLOVIR",
    "Dosage Form": "400 mg TABLET",
    "Price": 45.7,
}


def create(client: TestClient, **overrides) -> dict:
    response = client.post("/api/products", json={**ZOVIRAX, **overrides})
    assert response.status_code == 200, response.text
    return response.json()


class TestProductsCrud:
    def test_list_starts_empty(self, api_client: TestClient):
        response = api_client.get("/api/products")

        assert response.status_code == 200
        assert response.json() == []

    def test_create_uses_wire_names_and_two_decimal_price(self, api_client: TestClient):
        body = create(api_client)

        assert set(body) == {"code", "Brand", "Generic Name", "Dosage Form", "Price"}
        assert body["code"].startswith("PRD")
        assert body["Price"] == "45.70"
        assert api_client.get("/api/products").json() == [body]

    def test_brand_may_be_omitted(self, api_client: TestClient):
        payload = {key: value for key, value in ZOVIRAX.items() if key != "Brand"}

        response = api_client.post("/api/products", json=payload)

        assert response.status_code == 200
        assert response.json()["Brand"] == ""

    def test_list_is_newest_first(self, api_client: TestClient):
        first = create(api_client, Brand="first")
        second = create(api_client, Brand="second")

        codes = [item["code"] for item in api_client.get("/api/products").json()]

        assert codes == [second["code"], first["code"]]

    def test_get_one(self, api_client: TestClient):
        created = create(api_client)

        response = api_client.get(f"/api/products/{created['code']}")

        assert response.status_code == 200
        assert response.json() == created

    def test_update_keeps_code(self, api_client: TestClient):
        created = create(api_client)

        response = api_client.put(
            f"/api/products/{created['code']}",
            json={**ZOVIRAX, "Dosage Form": "800 mg TABLET", "Price": "12"},
        )

        assert response.status_code == 200
        assert response.json() == {**created, "Dosage Form": "800 mg TABLET", "Price": "12.00"}

    def test_delete(self, api_client: TestClient):
        created = create(api_client)

        response = api_client.delete(f"/api/products/{created['code']}")

        assert response.status_code == 200
        assert response.json() == {"message": "Product deleted successfully"}
        assert api_client.get("/api/products").json() == []


class TestProductsErrors:
    def test_update_unknown_code(self, api_client: TestClient):
        response = api_client.put("/api/products/PRD0", json=ZOVIRAX)

        assert response.status_code == 404
        assert "PRD0" in response.json()["error"]

    def test_delete_unknown_code(self, api_client: TestClient):
        create(api_client)

        response = api_client.delete("/api/products/PRD0")

        assert response.status_code == 404
        assert len(api_client.get("/api/products").json()) == 1

    def test_missing_fields(self, api_client: TestClient):
        response = api_client.post("/api/products", json={"Brand": "Only brand"})

        assert response.status_code == 422
        assert response.json()["fields"] == {
            "generic_name": "Generic Name is required",
            "dosage_form": "Dosage Form is required",
            "price": "Price is required",
        }

    def test_non_positive_price(self, api_client: TestClient):
        response = api_client.post("/api/products", json={**ZOVIRAX, "Price": -3})

        assert response.status_code == 422
        assert response.json()["fields"] == {"price": "Price must be a positive number"}

    def test_oversized_price(self, api_client: TestClient):
        response = api_client.post("/api/products", json={**ZOVIRAX, "Price": "1e30"})

        assert response.status_code == 422
        assert response.json()["fields"] == {"price": "Price must not exceed 999999999.99"}
        assert api_client.get("/api/products").json() == []

    def test_dosage_form_from_other_generic_name(self, api_client: TestClient):
        response = api_client.post(
            "/api/products", json={**ZOVIRAX, "Dosage Form": "10 mL AMPULE"}
        )

        assert response.status_code == 422
        assert "dosage_form" in response.json()["fields"]

    def test_malformed_json(self, api_client: TestClient):
        response = api_client.post(
            "/api/products",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 422
        assert response.json()["error"] == "Invalid request"


class TestSnapshots:
    def test_download_db(self, api_client: TestClient):
        create(api_client)

        response = api_client.get("/api/download-db")

        assert response.status_code == 200
        assert response.content.startswith(b"SQLite format 3\x00")
        assert "attachment" in response.headers["content-disposition"]

    def test_upload_db_replaces_products(self, api_client: TestClient, catalog):
        create(api_client, Brand="before upload")
        incoming = EmbeddedRecordStore(catalog)
        kept = incoming.create(
            {"brand": "Ventolin", "generic_name": "SALBUTAMOL", "dosage_form": "100 mcg/dose INHALER", "price": "5"}
        )

        response = api_client.post(
            "/api/upload-db",
            files={"database": ("pharmacy.sqlite", incoming.export_snapshot(), "application/octet-stream")},
        )

        assert response.status_code == 200
        assert response.json() == {"message": "Database updated successfully"}
        assert [item["code"] for item in api_client.get("/api/products").json()] == [kept.code]

    def test_upload_without_file(self, api_client: TestClient):
        response = api_client.post(
            "/api/upload-db", files={"other": ("x.txt", b"hello", "text/plain")}
        )

        assert response.status_code == 400
        assert response.json() == {"error": "No file uploaded"}

    def test_upload_empty_file(self, api_client: TestClient):
        response = api_client.post(
            "/api/upload-db", files={"database": ("empty.sqlite", b"", "application/octet-stream")}
        )

        assert response.status_code == 400

    def test_upload_invalid_file_keeps_products(self, api_client: TestClient):
        created = create(api_client)

        response = api_client.post(
            "/api/upload-db", files={"database": ("notes.txt", b"just some text", "text/plain")}
        )

        assert response.status_code == 400
        assert "database" in response.json()["fields"]
        assert api_client.get("/api/products").json() == [created]

    def test_export_csv(self, api_client: TestClient):
        created = create(api_client)

        response = api_client.get("/api/export-csv")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        lines = response.text.splitlines()
        assert lines == [
            "code,Brand,Generic Name,Dosage Form,Price",
            f"{created['code']},Zovirax,ACICLOVIR,400 mg TABLET,45.70",
        ]

    def test_import_csv(self, api_client: TestClient):
        blob = (
            "Brand,Generic Name,Dosage Form,Price\n"
            "Biogesic,PARACETAMOL,500 mg TABLET,4.5\n"
            "Broken,PARACETAMOL,,4.5\n"
        ).encode("utf-8")

        response = api_client.post("/api/import-csv", files={"file": ("p.csv", blob, "text/csv")})

        assert response.status_code == 200
        body = response.json()
        assert body["created"] == 1
        assert list(body["skipped"]) == ["3"]


class TestCatalogAndHealth:
    def test_generic_names(self, api_client: TestClient):
        names = api_client.get("/api/catalog/generic-names").json()

        assert "ACICLOVIR" in names
        assert names == sorted(set(names))

    def test_dosage_forms(self, api_client: TestClient):
        response = api_client.get(
            "/api/catalog/dosage-forms", params={"generic_name": "0.9% SODIUM CHLORIDE"}
        )

        assert response.json() == [
            "1 L SOLUTION FOR INFUSION",
            "10 mL AMPULE",
            "250 mL SOLUTION FOR INFUSION",
            "500 mL SOLUTION FOR INFUSION",
        ]

    def test_dosage_forms_unknown_generic_name(self, api_client: TestClient):
        response = api_client.get("/api/catalog/dosage-forms", params={"generic_name": "NOPE"})

        assert response.json() == []

    def test_health(self, api_client: TestClient):
        assert api_client.get("/health").json()["status"] == "healthy"

    def test_readiness(self, api_client: TestClient):
        create(api_client)

        response = api_client.get("/health/ready")

        assert response.status_code == 200
        checks = response.json()["checks"]
        assert checks["record_store"] == {"status": "healthy", "backend": "sqlite", "products": 1}
        assert checks["catalog"]["status"] == "healthy"

    def test_request_id_header(self, api_client: TestClient):
        response = api_client.get("/health", headers={"X-Request-ID": "abc-123"})

        assert response.headers["X-Request-ID"] == "abc-123"
        assert response.headers["X-Content-Type-Options"] == "nosniff"
