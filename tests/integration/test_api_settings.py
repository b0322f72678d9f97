"""Integration tests for studio settings endpoints."""

from __future__ import annotations

import pytest
from httpx import AsyncClient

from studioplan.scheduling.models import DEFAULT_STAGE_TEMPLATES

TEMPLATES = [
    {"id": 2, "name": "Projeto", "duration_work_days": 30, "sequence": 2},
    {"id": 1, "name": "Briefing", "duration_work_days": 1, "sequence": 1},
]


@pytest.mark.integration
class TestStageTemplates:
    """Tests for /settings/stage-templates."""

    @pytest.mark.asyncio
    async def test_defaults(self, client: AsyncClient) -> None:
        """Test that a new studio starts from the default templates."""
        templates = (await client.get("/settings/stage-templates")).json()
        assert [t["name"] for t in templates] == [t.name for t in DEFAULT_STAGE_TEMPLATES]

    @pytest.mark.asyncio
    async def test_replace_orders_by_sequence(self, client: AsyncClient) -> None:
        """Test replacing the templates returns them in sequence order."""
        response = await client.put("/settings/stage-templates", json=TEMPLATES)

        assert response.status_code == 200
        assert [t["name"] for t in response.json()] == ["Briefing", "Projeto"]
        stored = (await client.get("/settings/stage-templates")).json()
        assert stored == response.json()

    @pytest.mark.asyncio
    async def test_new_contracts_and_resets_use_new_templates(self, client: AsyncClient) -> None:
        """Test that new templates reach new schedules and reset ones only."""
        old = (
            await client.post(
                "/contracts/",
                json={"client_name": "Ana", "project_name": "Loft", "signing_date": "2024-01-08"},
            )
        ).json()
        await client.put("/settings/stage-templates", json=TEMPLATES)
        new = (
            await client.post(
                "/contracts/",
                json={"client_name": "Bruno", "project_name": "Casa", "signing_date": "2024-01-08"},
            )
        ).json()

        old_schedule = (await client.get(f"/contracts/{old['id']}/schedule")).json()
        new_schedule = (await client.get(f"/contracts/{new['id']}/schedule")).json()
        assert len(old_schedule["stages"]) == len(DEFAULT_STAGE_TEMPLATES)
        assert [s["name"] for s in new_schedule["stages"]] == ["Briefing", "Projeto"]

        reset = (await client.post(f"/contracts/{old['id']}/schedule/reset")).json()
        assert [s["name"] for s in reset["stages"]] == ["Briefing", "Projeto"]
        assert reset["stages"][1]["deadline"] == "2024-02-19"

    @pytest.mark.asyncio
    async def test_duplicate_ids_rejected(self, client: AsyncClient) -> None:
        """Test that duplicate template ids are a 422 and change nothing."""
        duplicate = [TEMPLATES[1], {**TEMPLATES[1], "name": "Outro"}]

        response = await client.put("/settings/stage-templates", json=duplicate)

        assert response.status_code == 422
        templates = (await client.get("/settings/stage-templates")).json()
        assert len(templates) == len(DEFAULT_STAGE_TEMPLATES)

    @pytest.mark.asyncio
    async def test_negative_duration_rejected(self, client: AsyncClient) -> None:
        """Test that template durations are validated."""
        bad = [{"id": 1, "name": "x", "duration_work_days": -1, "sequence": 1}]
        response = await client.put("/settings/stage-templates", json=bad)
        assert response.status_code == 422
