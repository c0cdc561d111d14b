"""
Tests for the analytics HTTP endpoints.

Run with: cd backend && pytest tests/test_api.py -v
"""
import httpx
import pytest

from insights.main import app

NOW = "2024-06-14T12:00:00Z"


@pytest.fixture
async def client():
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


def application(i, status="applied", created="2024-06-10T09:00:00Z", **fields):
    return {"id": i, "created_at": created, "status": status, "company_name": "Acme", **fields}


class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    @pytest.mark.asyncio
    async def test_metrics_exposed(self, client):
        await client.post("/analytics/funnel", json={"now": NOW})
        response = await client.get("/metrics")

        assert response.status_code == 200
        assert "http_requests_total" in response.text


class TestReportEndpoint:

    @pytest.mark.asyncio
    async def test_empty_payload(self, client):
        response = await client.post("/analytics/report", json={"now": NOW})

        assert response.status_code == 200
        data = response.json()
        assert data["funnel"]["total"] == 0
        assert len(data["recommendations"]) == 1
        assert [s["estimated_days"] for s in data["forecast"]["stages"]] == [9, 18, 39]

    @pytest.mark.asyncio
    async def test_bad_rows_are_skipped_not_rejected(self, client):
        payload = {
            "now": NOW,
            "applications": [
                application("1", status="offered"),
                {"id": "2", "created_at": "yesterday-ish"},
                "not even an object",
            ],
        }
        response = await client.post("/analytics/report", json=payload)

        assert response.status_code == 200
        data = response.json()
        assert data["funnel"]["total"] == 1
        assert data["skipped_records"] == 2

    @pytest.mark.asyncio
    async def test_negative_limit_rejected(self, client):
        response = await client.post("/analytics/report?recommendation_limit=-1", json={})
        assert response.status_code == 400


class TestFunnelEndpoint:

    @pytest.mark.asyncio
    async def test_funnel(self, client):
        payload = {
            "now": NOW,
            "applications": [
                application("1", status="interviewing"),
                application("2"),
            ],
            "interviews": [
                {"id": "i1", "job_id": 1, "interview_date": "2024-06-20T10:00:00Z", "status": "scheduled"},
            ],
        }
        response = await client.post("/analytics/funnel", json=payload)

        assert response.status_code == 200
        data = response.json()
        assert data["funnel"]["response_rate"] == 50.0
        assert data["funnel"]["upcoming_interviews"] == 1
        assert data["status_breakdown"] == {"interviewing": 1, "applied": 1}


class TestForecastEndpoint:

    @pytest.mark.asyncio
    async def test_explicit_inputs(self, client):
        payload = {
            "now": NOW,
            "applications_per_week": 7,
            "conversion_rates": {"response": 35, "interview": 22, "offer": 31},
            "historical_averages": {"to_response": 5, "to_interview": 12, "to_offer": 25},
        }
        response = await client.post("/analytics/forecast", json=payload)

        assert response.status_code == 200
        data = response.json()
        assert [s["estimated_days"] for s in data["stages"]] == [5, 12, 25]
        assert data["overall_confidence"] == 80

    @pytest.mark.asyncio
    async def test_invalid_window(self, client):
        response = await client.post("/analytics/forecast?pace_window_days=0", json={})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_negative_pace(self, client):
        payload = {"applications_per_week": -1, "conversion_rates": {}}
        response = await client.post("/analytics/forecast", json=payload)
        assert response.status_code == 400


class TestScenarioEndpoint:

    @pytest.mark.asyncio
    async def test_default_strategies(self, client):
        payload = {
            "applications_per_week": 5,
            "base_rates": {"response": 20, "interview": 15, "offer": 25},
        }
        response = await client.post("/analytics/scenarios", json=payload)

        assert response.status_code == 200
        scenarios = response.json()["scenarios"]
        assert len(scenarios) == 5
        assert scenarios[0]["name"] == "Current Pace"
        assert scenarios[0]["estimated_days"] == 187
        assert scenarios[0]["estimated_offers"] == 0

    @pytest.mark.asyncio
    async def test_custom_strategy(self, client):
        payload = {
            "applications_per_week": 5,
            "base_rates": {"response": 20, "interview": 15, "offer": 25},
            "strategies": [{"name": "Double", "volume_multiplier": 2}],
        }
        response = await client.post("/analytics/scenarios", json=payload)

        scenarios = response.json()["scenarios"]
        assert [s["name"] for s in scenarios] == ["Double"]
        assert scenarios[0]["estimated_days"] == 93

    @pytest.mark.asyncio
    async def test_from_records(self, client):
        response = await client.post("/analytics/scenarios", json={"now": NOW})

        assert response.status_code == 200
        # No history: default rates, zero pace
        assert response.json()["scenarios"][0]["estimated_days"] == 365
