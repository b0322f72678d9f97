"""Integration tests for health and stateless schedule endpoints.

All tests use httpx.AsyncClient with ASGITransport for async API testing.
"""

from __future__ import annotations

import pytest
from httpx import AsyncClient

from studioplan.scheduling.models import DEFAULT_STAGE_TEMPLATES

TEMPLATES = [
    {"id": 1, "name": "Briefing", "duration_work_days": 1, "sequence": 1},
    {"id": 2, "name": "Layout", "duration_work_days": 10, "sequence": 2},
]


@pytest.mark.integration
class TestHealth:
    """Tests for the health endpoints."""

    @pytest.mark.asyncio
    async def test_liveness(self, client: AsyncClient) -> None:
        """Test that /health/ answers ok."""
        response = await client.get("/health/")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    @pytest.mark.asyncio
    async def test_readiness_with_missing_document(self, client: AsyncClient) -> None:
        """Test that a not-yet-written document counts as available."""
        response = await client.get("/health/ready")

        assert response.json() == {"status": "ok", "storage": "available"}

    @pytest.mark.asyncio
    async def test_readiness_with_corrupt_document(self, client: AsyncClient, data_file) -> None:
        """Test that an unreadable document makes the service unhealthy."""
        data_file.write_text("{broken")

        response = await client.get("/health/ready")

        assert response.status_code == 200
        assert response.json() == {"status": "unhealthy", "storage": "unreadable"}

    @pytest.mark.asyncio
    async def test_correlation_id_echoed(self, client: AsyncClient) -> None:
        """Test that the request correlation ID comes back in the response."""
        response = await client.get("/health/", headers={"X-Correlation-ID": "abc-123"})
        assert response.headers["X-Correlation-ID"] == "abc-123"

    @pytest.mark.asyncio
    async def test_correlation_id_generated(self, client: AsyncClient) -> None:
        """Test that a correlation ID is generated when none is sent."""
        response = await client.get("/health/")
        assert response.headers["X-Correlation-ID"]


@pytest.mark.integration
class TestGenerate:
    """Tests for POST /schedules/generate."""

    @pytest.mark.asyncio
    async def test_weekend_start(self, client: AsyncClient) -> None:
        """Test generation from a Saturday start date."""
        response = await client.post(
            "/schedules/generate",
            json={"project_start_date": "2024-01-06", "templates": TEMPLATES},
        )

        assert response.status_code == 200
        stages = response.json()["stages"]
        assert [(s["start_date"], s["deadline"]) for s in stages] == [
            ("2024-01-08", "2024-01-08"),
            ("2024-01-09", "2024-01-22"),
        ]
        assert all(s["completion_date"] is None for s in stages)

    @pytest.mark.asyncio
    async def test_uses_studio_templates_by_default(self, client: AsyncClient) -> None:
        """Test that omitted templates fall back to the studio templates."""
        response = await client.post(
            "/schedules/generate", json={"project_start_date": "2024-01-08"}
        )

        names = [s["name"] for s in response.json()["stages"]]
        assert names == [t.name for t in DEFAULT_STAGE_TEMPLATES]

    @pytest.mark.asyncio
    async def test_completed_stages(self, client: AsyncClient) -> None:
        """Test marking leading stages completed at generation."""
        response = await client.post(
            "/schedules/generate",
            json={"project_start_date": "2024-01-08", "templates": TEMPLATES, "completed_stages": 1},
        )

        first, second = response.json()["stages"]
        assert first["completion_date"] == first["deadline"]
        assert second["completion_date"] is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("start", [None, ""])
    async def test_missing_start(self, client: AsyncClient, start: str | None) -> None:
        """Test that a missing start date yields no stages."""
        response = await client.post(
            "/schedules/generate", json={"project_start_date": start, "templates": TEMPLATES}
        )

        assert response.status_code == 200
        assert response.json() == {"stages": []}

    @pytest.mark.asyncio
    async def test_malformed_start(self, client: AsyncClient) -> None:
        """Test that a malformed start date is a 422."""
        response = await client.post(
            "/schedules/generate", json={"project_start_date": "06/01/2024"}
        )

        assert response.status_code == 422
        assert "project_start_date" in response.json()["detail"]

    @pytest.mark.asyncio
    async def test_negative_template_duration(self, client: AsyncClient) -> None:
        """Test that invalid templates fail request validation."""
        response = await client.post(
            "/schedules/generate",
            json={
                "project_start_date": "2024-01-08",
                "templates": [{"id": 1, "name": "x", "duration_work_days": -2, "sequence": 1}],
            },
        )
        assert response.status_code == 422


@pytest.mark.integration
class TestRecalculate:
    """Tests for POST /schedules/recalculate."""

    async def _generated(self, client: AsyncClient) -> list[dict]:
        response = await client.post(
            "/schedules/generate",
            json={"project_start_date": "2024-01-06", "templates": TEMPLATES},
        )
        return response.json()["stages"]

    @pytest.mark.asyncio
    async def test_completion_shifts_successor(self, client: AsyncClient) -> None:
        """Test that a late completion moves the next stage."""
        stages = await self._generated(client)
        stages[0]["completion_date"] = "2024-01-10"

        response = await client.post(
            "/schedules/recalculate",
            json={"project_start_date": "2024-01-06", "stages": stages},
        )

        assert response.status_code == 200
        result = response.json()["stages"]
        assert result[0]["completion_date"] == "2024-01-10"
        assert result[1]["start_date"] == "2024-01-11"

    @pytest.mark.asyncio
    async def test_missing_start_returns_input(self, client: AsyncClient) -> None:
        """Test that an empty start date returns the stages unchanged."""
        stages = await self._generated(client)
        stages[1]["duration_work_days"] = 30

        response = await client.post(
            "/schedules/recalculate", json={"project_start_date": "", "stages": stages}
        )

        assert response.json()["stages"] == stages

    @pytest.mark.asyncio
    async def test_malformed_stage_date(self, client: AsyncClient) -> None:
        """Test that malformed stage dates fail request validation."""
        stages = await self._generated(client)
        stages[0]["completion_date"] = "10/01/2024"

        response = await client.post(
            "/schedules/recalculate",
            json={"project_start_date": "2024-01-06", "stages": stages},
        )
        assert response.status_code == 422
