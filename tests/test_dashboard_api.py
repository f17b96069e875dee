"""
tests/test_dashboard_api.py

HTTP-level tests for the dashboard router using FastAPI's TestClient.

The dashboard service is replaced through ``app.dependency_overrides``
with one built on the mock AI adapter, so no network call is made.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.services.dashboard_service import DashboardService, get_dashboard_service
from llm_synthesis.adapter import MockLLMAdapter
from llm_synthesis.client import MISSING_KEY_CHAT_RESPONSE, InsightClient

CSV_BODY = b"date,region,sales\n2023-01-01,North,100\n2023-01-02,South,250\n"


def _client_for(service: DashboardService) -> TestClient:
    app.dependency_overrides[get_dashboard_service] = lambda: service
    return TestClient(app)


@pytest.fixture()
def service(sleep) -> DashboardService:
    return DashboardService(InsightClient(MockLLMAdapter(), sleep=sleep))


@pytest.fixture()
def api(service: DashboardService):
    client = _client_for(service)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture()
def degraded_api(sleep):
    client = _client_for(DashboardService(InsightClient(None, sleep=sleep)))
    yield client
    app.dependency_overrides.clear()


def _upload(api: TestClient, filename: str = "orders.csv", body: bytes = CSV_BODY, **params):
    return api.post(
        "/dashboards",
        files={"file": (filename, body, "text/csv")},
        params=params,
    )


class TestLoadEndpoints:
    def test_health(self, api: TestClient) -> None:
        assert api.get("/health").json() == {"status": "ok"}

    def test_upload_returns_complete_dashboard(self, api: TestClient) -> None:
        response = _upload(api)

        assert response.status_code == 200
        body = response.json()
        assert body["dataset"]["name"] == "orders"
        assert body["dataset"]["rowCount"] == 2
        assert "rows" not in body["dataset"]
        assert body["dataset"]["kpis"][0] == {
            "id": "total_records",
            "label": "Total Records",
            "value": 2,
            "type": "number",
        }
        assert body["charts"][0]["xAxisKey"] == "date"
        assert body["charts"][0]["dataKeys"] == ["sales"]
        assert body["insights"] == []
        assert body["enriched"] is False
        assert body["forecast"]["status"] == "idle"

    def test_upload_can_include_rows(self, api: TestClient) -> None:
        body = _upload(api, include_rows=True).json()
        assert body["dataset"]["rows"][1] == {"date": "2023-01-02", "region": "South", "sales": 250}

    def test_unsupported_file_type(self, api: TestClient) -> None:
        response = api.post("/dashboards", files={"file": ("notes.txt", b"hello", "text/plain")})
        assert response.status_code == 400
        assert response.json()["detail"] == "Only CSV or JSON files are allowed."

    def test_malformed_file_gets_generic_message(self, api: TestClient) -> None:
        response = _upload(api, filename="broken.json", body=b"{oops")
        assert response.status_code == 400
        assert response.json()["detail"] == "Error parsing file. Please check format."

    def test_oversized_upload(self, sleep) -> None:
        small = DashboardService(InsightClient(None, sleep=sleep), max_upload_bytes=8)
        api = _client_for(small)
        try:
            assert _upload(api).status_code == 413
        finally:
            app.dependency_overrides.clear()

    def test_demo(self, api: TestClient) -> None:
        body = api.post("/dashboards/demo").json()
        assert body["dataset"]["name"] == "SaaS Sales Q3-Q4"
        assert [kpi["value"] for kpi in body["dataset"]["kpis"]] == [92400, 237, 6160.0]

    def test_get_and_close(self, api: TestClient) -> None:
        session_id = api.post("/dashboards/demo").json()["session_id"]
        assert api.get(f"/dashboards/{session_id}").status_code == 200
        assert api.delete(f"/dashboards/{session_id}").status_code == 204
        assert api.get(f"/dashboards/{session_id}").status_code == 404

    def test_replace_dataset_in_session(self, api: TestClient) -> None:
        session_id = api.post("/dashboards/demo").json()["session_id"]
        body = _upload(api, session_id=session_id).json()
        assert body["session_id"] == session_id
        assert body["dataset"]["name"] == "orders"


class TestAIEndpoints:
    def test_enrich_with_mock_adapter(self, api: TestClient) -> None:
        session_id = api.post("/dashboards/demo").json()["session_id"]
        body = api.post(f"/dashboards/{session_id}/enrich").json()
        assert body["enriched"] is True
        assert body["insights"]
        assert set(body["insights"][0]) == {"type", "title", "description", "confidence"}
        assert body["story"]["segments"]

    def test_enrich_unknown_session(self, api: TestClient) -> None:
        assert api.post("/dashboards/missing/enrich").status_code == 404

    def test_chat_without_credentials(self, degraded_api: TestClient) -> None:
        session_id = degraded_api.post("/dashboards/demo").json()["session_id"]
        response = degraded_api.post(f"/dashboards/{session_id}/chat", json={"query": "Top region?"})
        assert response.status_code == 200
        assert response.json() == {
            "session_id": session_id,
            "query": "Top region?",
            "answer": MISSING_KEY_CHAT_RESPONSE,
        }

    @pytest.mark.parametrize("query", ["", "   "])
    def test_blank_chat_query_rejected(self, api: TestClient, query: str) -> None:
        session_id = api.post("/dashboards/demo").json()["session_id"]
        response = api.post(f"/dashboards/{session_id}/chat", json={"query": query})
        assert response.status_code == 422

    def test_forecast_lifecycle(self, api: TestClient) -> None:
        session_id = api.post("/dashboards/demo").json()["session_id"]

        forecast = api.post(f"/dashboards/{session_id}/forecast").json()["forecast"]
        assert forecast["status"] == "success"
        assert {"date", "value", "lowerBound", "upperBound"} <= set(forecast["forecast"][0])

        cleared = api.delete(f"/dashboards/{session_id}/forecast").json()["forecast"]
        assert cleared["status"] == "idle"
        assert cleared["forecast"] is None

    def test_forecast_without_credentials_reports_error(self, degraded_api: TestClient) -> None:
        session_id = degraded_api.post("/dashboards/demo").json()["session_id"]

        response = degraded_api.post(f"/dashboards/{session_id}/forecast")
        assert response.status_code == 200
        assert response.json()["forecast"]["status"] == "error"

        dismissed = degraded_api.delete(f"/dashboards/{session_id}/forecast/error").json()
        assert dismissed["forecast"]["error"] is None

    def test_reset(self, api: TestClient, service: DashboardService) -> None:
        session_id = api.post("/dashboards/demo").json()["session_id"]
        api.post(f"/dashboards/{session_id}/enrich")
        assert len(service.client.cache) > 0

        assert api.post("/dashboards/reset").status_code == 204

        assert len(service.client.cache) == 0
        assert api.get(f"/dashboards/{session_id}").status_code == 404


class TestNonFiniteUploads:
    def test_infinity_cell_returns_dashboard_with_nulls(self, api: TestClient) -> None:
        response = _upload(api, body=b"name,amount\na,Infinity\nb,5\n", include_rows=True)

        assert response.status_code == 200
        dataset = response.json()["dataset"]
        kpis = {kpi["id"]: kpi["value"] for kpi in dataset["kpis"]}
        assert kpis["sum_amount"] is None
        assert kpis["avg_amount"] is None
        assert dataset["rows"][0]["amount"] is None

    def test_overflowing_sum_returns_dashboard(self, api: TestClient) -> None:
        response = _upload(api, body=b"name,amount\na,1e308\nb,1e308\n")

        assert response.status_code == 200
        amount = next(c for c in response.json()["dataset"]["columns"] if c["name"] == "amount")
        assert amount["sum"] is None
        assert amount["max"] == 1e308
