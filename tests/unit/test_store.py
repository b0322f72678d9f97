"""Unit tests for the JSON document store."""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path

import pytest

from studioplan.scheduling.models import DEFAULT_STAGE_TEMPLATES
from studioplan.studio.models import Contract, StudioState
from studioplan.studio.service import StudioService
from studioplan.studio.store import StudioStore, StudioStoreError


@pytest.fixture
def store(tmp_path: Path) -> StudioStore:
    """Store writing to a temporary directory."""
    return StudioStore(tmp_path / "data" / "studio.json")


class TestLoad:
    """Test reading stored documents."""

    def test_missing_file_gives_defaults(self, store: StudioStore) -> None:
        """Test that a first run starts from the default state."""
        state = store.load()
        assert state == StudioState()

    @pytest.mark.parametrize("content", ["", "  \n", "null", "undefined"])
    def test_empty_document_gives_defaults(self, store: StudioStore, content: str) -> None:
        """Test that empty placeholders are treated as no data."""
        store.path.parent.mkdir(parents=True)
        store.path.write_text(content)

        assert store.load() == StudioState()

    def test_corrupt_json(self, store: StudioStore) -> None:
        """Test that unreadable JSON raises StudioStoreError."""
        store.path.parent.mkdir(parents=True)
        store.path.write_text("{not json")

        with pytest.raises(StudioStoreError, match="invalid JSON"):
            store.load()

    def test_non_object_document(self, store: StudioStore) -> None:
        """Test that a top-level list is rejected."""
        store.path.parent.mkdir(parents=True)
        store.path.write_text("[]")

        with pytest.raises(StudioStoreError, match="not an object"):
            store.load()

    def test_invalid_records(self, store: StudioStore) -> None:
        """Test that documents failing validation raise StudioStoreError."""
        store.path.parent.mkdir(parents=True)
        store.path.write_text(json.dumps({"contracts": [{"id": 1}]}))

        with pytest.raises(StudioStoreError):
            store.load()

    def test_older_document_picks_up_defaults(self, store: StudioStore) -> None:
        """Test that missing keys are filled from the default state."""
        store.path.parent.mkdir(parents=True)
        store.path.write_text(
            json.dumps(
                {
                    "contracts": [
                        {
                            "id": 1,
                            "client_name": "Ana",
                            "project_name": "Loft",
                            "signing_date": "2024-01-08",
                        }
                    ]
                }
            )
        )

        state = store.load()

        assert state.contracts[0].signing_date == date(2024, 1, 8)
        assert state.schedules == []
        assert state.stage_templates == list(DEFAULT_STAGE_TEMPLATES)


class TestSave:
    """Test writing documents."""

    def test_round_trip(self, store: StudioStore) -> None:
        """Test that a saved state loads back equal."""
        service = StudioService(store=store)
        service.create_contract("Ana", "Loft", "2024-01-06", total_value=1500)

        assert store.load() == service.state

    def test_document_uses_iso_dates(self, store: StudioStore) -> None:
        """Test that dates are written as YYYY-MM-DD strings."""
        state = StudioState(
            contracts=[
                Contract(id=1, client_name="Ana", project_name="Loft", signing_date=date(2024, 1, 8))
            ]
        )
        store.save(state)

        document = json.loads(store.path.read_text(encoding="utf-8"))
        assert document["contracts"][0]["signing_date"] == "2024-01-08"

    def test_keeps_non_ascii_text(self, store: StudioStore) -> None:
        """Test that stage names are stored unescaped."""
        store.save(StudioState())
        assert "Reunião de Briefing" in store.path.read_text(encoding="utf-8")

    def test_no_temporary_files_left(self, store: StudioStore) -> None:
        """Test that the atomic write cleans up after itself."""
        store.save(StudioState())
        store.save(StudioState())

        assert [p.name for p in store.path.parent.iterdir()] == ["studio.json"]
