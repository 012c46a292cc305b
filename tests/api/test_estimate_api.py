"""API tests for the estimate endpoints."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from estimate_export.api.endpoints.estimate import get_export_service
from estimate_export.core.exceptions import StorageError
from estimate_export.core.rate_limit import RateLimitResult
from estimate_export.main import app

EXPORT_URL = "/api/estimate/export"
PRICED_URL = "/api/estimate/priced"
EXPORTS_URL = "/api/estimate/exports"


@pytest.fixture
def use_export_service(export_service):
    app.dependency_overrides[get_export_service] = lambda: export_service
    return export_service


class TestExportEndpoint:
    def test_export_success(self, test_client, auth_headers, mock_verify_token, use_export_service):
        response = test_client.post(EXPORT_URL, json={"leadId": "lead-1"}, headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["id"] == "export-1"
        assert data["summary"] == {"lineItemCount": 1, "totalCost": 3600.0, "byCategory": {}}
        assert "CLM-2024-0042" in data["xml"]
        assert "Shingles" in data["xml"]
        item = data["symbility"]["lineItems"][0]
        assert item["quantity"] == 30
        assert item["unitOfMeasure"] == "SQ"
        assert item["unitCost"] == 120
        assert data["downloadZipUrl"].startswith("https://")
        use_export_service.export_repo.create_export.assert_awaited_once()

    def test_no_scope(self, test_client, auth_headers, mock_verify_token, use_export_service):
        use_export_service.draft_repo.get_latest_for_lead.return_value = None

        response = test_client.post(EXPORT_URL, json={"leadId": "lead-1"}, headers=auth_headers)

        assert response.status_code == 400
        assert response.json() == {"error": "No scope found. Generate claim draft first."}
        use_export_service.export_repo.create_export.assert_not_awaited()

    def test_missing_token(self, test_client, use_export_service):
        response = test_client.post(EXPORT_URL, json={"leadId": "lead-1"})

        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}
        use_export_service.user_repo.get_org_id_for_user.assert_not_awaited()

    def test_invalid_token(self, test_client, auth_headers, use_export_service):
        response = test_client.post(EXPORT_URL, json={"leadId": "lead-1"}, headers=auth_headers)

        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}
        use_export_service.user_repo.get_org_id_for_user.assert_not_awaited()

    @pytest.mark.parametrize("body", [{"leadId": ""}, {"leadId": "   "}, {}, {"leadId": 42}])
    def test_invalid_lead_id(self, test_client, auth_headers, mock_verify_token, use_export_service, body):
        response = test_client.post(EXPORT_URL, json=body, headers=auth_headers)

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "Invalid input"
        assert [d["field"] for d in data["details"]] == ["leadId"]
        use_export_service.user_repo.get_org_id_for_user.assert_not_awaited()

    def test_invalid_json(self, test_client, auth_headers, mock_verify_token, use_export_service):
        response = test_client.post(
            EXPORT_URL,
            content=b"{not json",
            headers={**auth_headers, "Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json() == {
            "error": "Invalid input",
            "details": [{"field": "body", "message": "Request body must be valid JSON"}],
        }

    def test_lead_not_found(self, test_client, auth_headers, mock_verify_token, use_export_service):
        response = test_client.post(EXPORT_URL, json={"leadId": "lead-404"}, headers=auth_headers)

        assert response.status_code == 404
        assert response.json() == {"error": "Lead not found"}

    def test_other_org_lead_looks_missing(self, test_client, auth_headers, mock_verify_token, use_export_service):
        use_export_service.user_repo.get_org_id_for_user.return_value = "org-2"

        response = test_client.post(EXPORT_URL, json={"leadId": "lead-1"}, headers=auth_headers)

        assert response.status_code == 404
        assert response.json() == {"error": "Lead not found"}

    def test_user_without_org(self, test_client, auth_headers, mock_verify_token, use_export_service):
        use_export_service.user_repo.get_org_id_for_user.return_value = None

        response = test_client.post(EXPORT_URL, json={"leadId": "lead-1"}, headers=auth_headers)

        assert response.status_code == 404
        assert response.json() == {"error": "User organization not found"}

    def test_rate_limited(self, test_client, auth_headers, mock_verify_token, use_export_service):
        with patch(
            "estimate_export.api.endpoints.estimate.check_rate_limit", new_callable=AsyncMock
        ) as mock_check:
            mock_check.return_value = RateLimitResult(
                success=False, limit=60, remaining=0, reset=1700000060
            )

            response = test_client.post(EXPORT_URL, json={"leadId": "lead-1"}, headers=auth_headers)

        assert response.status_code == 429
        data = response.json()
        assert data["error"] == "Rate limit exceeded"
        assert data["message"]
        assert (data["limit"], data["remaining"], data["reset"]) == (60, 0, 1700000060)
        mock_check.assert_awaited_once_with("user-123", "API")
        use_export_service.user_repo.get_org_id_for_user.assert_not_awaited()

    def test_rate_limit_applies_before_body_validation(
        self, test_client, auth_headers, mock_verify_token, use_export_service
    ):
        with patch(
            "estimate_export.api.endpoints.estimate.check_rate_limit", new_callable=AsyncMock
        ) as mock_check:
            mock_check.return_value = RateLimitResult(success=False, limit=60, remaining=0, reset=1)

            response = test_client.post(EXPORT_URL, json={"leadId": ""}, headers=auth_headers)

        assert response.status_code == 429

    def test_invalid_scope_format(self, test_client, auth_headers, mock_verify_token, use_export_service):
        use_export_service.draft_repo.get_latest_for_lead.return_value = MagicMock(
            scope=[{"desc": "Shingles", "qty": "thirty", "unitPrice": 120}]
        )

        response = test_client.post(EXPORT_URL, json={"leadId": "lead-1"}, headers=auth_headers)

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "Invalid scope format"
        assert any("quantity" in detail for detail in data["details"])
        use_export_service.export_repo.create_export.assert_not_awaited()

    def test_storage_failure(self, test_client, auth_headers, mock_verify_token, use_export_service):
        use_export_service.archive_service.build_archive.side_effect = StorageError(
            "Upload failed: bucket missing"
        )

        response = test_client.post(EXPORT_URL, json={"leadId": "lead-1"}, headers=auth_headers)

        assert response.status_code == 500
        assert response.json() == {
            "error": "Failed to export estimate",
            "details": "Upload failed: bucket missing",
        }
        use_export_service.export_repo.create_export.assert_not_awaited()


class TestPricedEndpoint:
    def test_priced_with_city(self, test_client, auth_headers, mock_verify_token, use_export_service):
        response = test_client.post(
            PRICED_URL, json={"leadId": "lead-1", "city": "phoenix"}, headers=auth_headers
        )

        assert response.status_code == 200
        pricing = response.json()["pricing"]
        assert pricing["subtotal"] == 3600
        assert pricing["tax"] == 0.089
        assert pricing["pricedItems"][0]["description"] == "Shingles"

    def test_tax_rate_out_of_range(self, test_client, auth_headers, mock_verify_token, use_export_service):
        response = test_client.post(
            PRICED_URL, json={"leadId": "lead-1", "taxRate": 1.5}, headers=auth_headers
        )

        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "taxRate"

    def test_priced_requires_auth(self, test_client, use_export_service):
        response = test_client.post(PRICED_URL, json={"leadId": "lead-1"})

        assert response.status_code == 401


class TestExportsEndpoint:
    def test_list_exports(self, test_client, auth_headers, mock_verify_token, use_export_service):
        use_export_service.export_repo.list_for_lead.return_value = [
            MagicMock(
                id="export-1",
                lead_id="lead-1",
                claim_id="claim-1",
                summary={"lineItemCount": 1, "totalCost": 3600.0, "byCategory": {}},
                created_at=datetime(2024, 8, 1, tzinfo=timezone.utc),
            )
        ]

        response = test_client.get(EXPORTS_URL, params={"leadId": "lead-1"}, headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert [e["id"] for e in data["exports"]] == ["export-1"]
        assert data["exports"][0]["createdAt"] == "2024-08-01T00:00:00+00:00"

    def test_list_exports_requires_lead_id(self, test_client, auth_headers, mock_verify_token, use_export_service):
        response = test_client.get(EXPORTS_URL, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "leadId"

    def test_list_exports_other_org(self, test_client, auth_headers, mock_verify_token, use_export_service):
        response = test_client.get(EXPORTS_URL, params={"leadId": "lead-404"}, headers=auth_headers)

        assert response.status_code == 404
        assert response.json() == {"error": "Lead not found"}


class TestServiceEndpoints:
    def test_root(self, test_client):
        response = test_client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Server is running"
        assert data["health"] == "/health"

    def test_health(self, test_client):
        with patch(
            "estimate_export.api.endpoints.health.db_client.health_check", new_callable=AsyncMock
        ) as mock_health:
            mock_health.return_value = {"status": "healthy"}

            response = test_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["database"] == "healthy"

    def test_health_degraded(self, test_client):
        with patch(
            "estimate_export.api.endpoints.health.db_client.health_check", new_callable=AsyncMock
        ) as mock_health:
            mock_health.return_value = {"status": "unhealthy", "error": "connection refused"}

            response = test_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "degraded"
