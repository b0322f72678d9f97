"""Integration tests for CLI commands.

Every invocation goes through the real callback, which loads the TOML
configuration written by the ``cli_config`` fixture and points the store
at a temporary JSON document.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Any

import pytest
import structlog
from typer.testing import CliRunner

from studioplan import main as studioplan_main
from studioplan.main import app, get_app_context
from studioplan.scheduling.workdays import business_days_between
from studioplan.studio.store import StudioStore


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create a Typer CLI runner."""
    return CliRunner()


@pytest.fixture
def cli_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Write a config file storing data under ``tmp_path``.

    The CLI's own logging setup caches loggers across tests, so it is
    replaced by an uncached WARNING-level configuration writing to the
    session's stderr, outside the runner's captured output.
    """
    monkeypatch.setattr(studioplan_main, "setup_logging", lambda *args, **kwargs: None)
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(logging.WARNING),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )
    monkeypatch.chdir(tmp_path)

    config_file = tmp_path / "studioplan.toml"
    config_file.write_text(f'[storage]\ndata_file = "{tmp_path / "studio.json"}"\n')
    return config_file


@pytest.fixture
def invoke(cli_runner: CliRunner, cli_config: Path):
    """Invoke the CLI with the test configuration."""

    def _invoke(*args: str, input: str | None = None):
        return cli_runner.invoke(app, ["--config", str(cli_config), *args], input=input)

    return _invoke


def load_json(output: str) -> Any:
    """Parse JSON command output."""
    return json.loads(output)


@pytest.mark.integration
class TestSchedulePreview:
    """Tests for `schedule preview`."""

    def test_weekend_start_json(self, invoke) -> None:
        """Test previewing a Saturday start as JSON."""
        result = invoke("schedule", "preview", "2024-01-06", "--format", "json")

        assert result.exit_code == 0, result.output
        stages = load_json(result.stdout)
        assert len(stages) == 12
        assert stages[0]["start_date"] == "2024-01-08"
        assert stages[0]["deadline"] == "2024-01-08"
        assert stages[1]["start_date"] == "2024-01-09"

    def test_completed_stages(self, invoke) -> None:
        """Test marking leading stages completed."""
        result = invoke("schedule", "preview", "2024-01-08", "--completed", "2", "--format", "json")

        stages = load_json(result.stdout)
        assert [s["completion_date"] is not None for s in stages[:3]] == [True, True, False]

    def test_table_output(self, invoke) -> None:
        """Test the default table rendering."""
        result = invoke("schedule", "preview", "2024-01-06")

        assert result.exit_code == 0
        assert "2024-01-08" in result.output

    def test_malformed_start(self, invoke) -> None:
        """Test that a malformed start date exits with an error."""
        result = invoke("schedule", "preview", "06/01/2024")

        assert result.exit_code == 1
        assert "Invalid start date" in result.output

    def test_empty_start(self, invoke) -> None:
        """Test that an empty start date produces no stages."""
        result = invoke("schedule", "preview", "", "--format", "json")

        assert result.exit_code == 0
        assert load_json(result.stdout) == []


@pytest.mark.integration
class TestContractCLI:
    """Tests for `contract` commands."""

    def test_create_and_list(self, invoke, tmp_path: Path) -> None:
        """Test creating a contract persists it."""
        result = invoke(
            "contract", "create", "Ana Souza", "Loft", "--date", "2024-01-06", "--value", "12000"
        )

        assert result.exit_code == 0, result.output
        assert "Contract created successfully" in result.output

        listed = load_json(invoke("contract", "list", "--format", "json").stdout)
        assert [c["client_name"] for c in listed] == ["Ana Souza"]

        state = StudioStore(tmp_path / "studio.json").load()
        assert len(state.schedules[0].stages) == 12

    def test_list_status_filter(self, invoke) -> None:
        """Test filtering by status, and rejecting unknown statuses."""
        invoke("contract", "create", "Ana", "Loft", "--date", "2024-01-06")

        assert load_json(invoke("contract", "list", "-s", "completed", "-f", "json").stdout) == []
        bad = invoke("contract", "list", "--status", "Ativo")
        assert bad.exit_code == 1
        assert "Invalid status" in bad.output

    def test_list_empty_table(self, invoke) -> None:
        """Test the empty-list message."""
        assert "No contracts found" in invoke("contract", "list").output

    def test_create_malformed_date(self, invoke) -> None:
        """Test that a malformed signing date exits with an error."""
        result = invoke("contract", "create", "Ana", "Loft", "--date", "amanhã")

        assert result.exit_code == 1
        assert "Error creating contract" in result.output

    def test_delete(self, invoke) -> None:
        """Test deleting with and without confirmation."""
        invoke("contract", "create", "Ana", "Loft", "--date", "2024-01-06")

        aborted = invoke("contract", "delete", "1", input="n\n")
        assert aborted.exit_code == 1

        result = invoke("contract", "delete", "1", "--force")
        assert result.exit_code == 0
        assert load_json(invoke("contract", "list", "-f", "json").stdout) == []

        missing = invoke("contract", "delete", "1", "--force")
        assert missing.exit_code == 1
        assert "not found" in missing.output

    def test_payments(self, invoke) -> None:
        """Test adding, paying and listing installments."""
        invoke("contract", "create", "Ana", "Loft", "--date", "2024-01-06")

        added = invoke("contract", "add-installment", "1", "Entrada", "2024-01-10", "4000")
        assert added.exit_code == 0, added.output

        late = load_json(invoke("contract", "late", "--format", "json").stdout)
        assert [item["installment"]["label"] for item in late] == ["Entrada"]

        paid = invoke("contract", "pay", "1", "2024-01-10")
        assert paid.exit_code == 0
        assert "paid_on_time" in paid.output
        assert load_json(invoke("contract", "late", "--format", "json").stdout) == []


@pytest.mark.integration
class TestScheduleEditing:
    """Tests for schedule editing commands on a stored contract."""

    @pytest.fixture(autouse=True)
    def contract(self, invoke) -> None:
        """Create contract 1 signed on Saturday 2024-01-06."""
        result = invoke("contract", "create", "Ana", "Loft", "--date", "2024-01-06")
        assert result.exit_code == 0, result.output

    def test_show(self, invoke) -> None:
        """Test showing a stored schedule."""
        stages = load_json(invoke("schedule", "show", "1", "--format", "json").stdout)
        assert stages[0]["start_date"] == "2024-01-08"

    def test_show_unknown(self, invoke) -> None:
        """Test that an unknown contract exits with an error."""
        result = invoke("schedule", "show", "7")

        assert result.exit_code == 1
        assert "Schedule 7 not found" in result.output

    def test_complete_then_undo(self, invoke) -> None:
        """Test completing a stage late and undoing it."""
        assert invoke("schedule", "complete", "1", "1", "--date", "2024-01-10").exit_code == 0
        stages = load_json(invoke("schedule", "show", "1", "-f", "json").stdout)
        assert stages[1]["start_date"] == "2024-01-11"

        assert invoke("schedule", "complete", "1", "1", "--undo").exit_code == 0
        stages = load_json(invoke("schedule", "show", "1", "-f", "json").stdout)
        assert stages[0]["completion_date"] is None
        assert stages[1]["start_date"] == "2024-01-09"

    def test_set_duration_and_reset(self, invoke) -> None:
        """Test a duration edit and a reset back to the templates."""
        assert invoke("schedule", "set-duration", "1", "1", "3").exit_code == 0
        stages = load_json(invoke("schedule", "show", "1", "-f", "json").stdout)
        assert stages[0]["deadline"] == "2024-01-10"

        assert invoke("schedule", "reset", "1").exit_code == 0
        stages = load_json(invoke("schedule", "show", "1", "-f", "json").stdout)
        assert stages[0]["deadline"] == "2024-01-08"

    def test_set_start(self, invoke) -> None:
        """Test moving the project start date."""
        assert invoke("schedule", "set-start", "1", "2024-02-03").exit_code == 0
        stages = load_json(invoke("schedule", "show", "1", "-f", "json").stdout)
        assert stages[0]["start_date"] == "2024-02-05"

    def test_unknown_stage(self, invoke) -> None:
        """Test that an unknown stage exits with an error."""
        result = invoke("schedule", "set-duration", "1", "99", "3")

        assert result.exit_code == 1
        assert "Stage 99 not found" in result.output

    def test_progress(self, invoke) -> None:
        """Test the progress summary."""
        invoke("schedule", "complete", "1", "1", "--date", "2024-01-08")
        invoke("schedule", "complete", "1", "2", "--date", "2024-01-09")

        progress = load_json(invoke("schedule", "progress", "1", "--format", "json").stdout)

        assert progress["completion_percentage"] == 17
        assert progress["phases"][0]["status"] == "completed"

        table = invoke("schedule", "progress", "1")
        assert table.exit_code == 0
        assert "Briefing" in table.output

    def test_progress_work_days_to_delivery(self, invoke) -> None:
        """Test the work-day countdown to the final stage's deadline."""
        stages = load_json(invoke("schedule", "show", "1", "-f", "json").stdout)
        delivery = date.fromisoformat(stages[-1]["deadline"])

        progress = load_json(invoke("schedule", "progress", "1", "-f", "json").stdout)

        assert progress["work_days_to_delivery"] == business_days_between(date.today(), delivery)

    def test_templates_load_and_reset(self, invoke, tmp_path: Path) -> None:
        """Test replacing the templates and rebuilding a schedule from them."""
        template_file = tmp_path / "templates.json"
        template_file.write_text(
            json.dumps(
                [
                    {"id": 2, "name": "Projeto", "duration_work_days": 30, "sequence": 2},
                    {"id": 1, "name": "Briefing", "duration_work_days": 1, "sequence": 1},
                ]
            )
        )

        loaded = invoke("schedule", "templates", "--load", str(template_file), "-f", "json")

        assert loaded.exit_code == 0, loaded.output
        assert [t["name"] for t in load_json(loaded.stdout)] == ["Briefing", "Projeto"]
        assert len(load_json(invoke("schedule", "show", "1", "-f", "json").stdout)) == 12

        invoke("schedule", "reset", "1")
        stages = load_json(invoke("schedule", "show", "1", "-f", "json").stdout)
        assert [s["name"] for s in stages] == ["Briefing", "Projeto"]
        assert stages[1]["start_date"] == "2024-01-09"

    def test_templates_rejects_invalid_file(self, invoke, tmp_path: Path) -> None:
        """Test that invalid template files leave the templates unchanged."""
        template_file = tmp_path / "templates.json"
        template_file.write_text('[{"id": 1, "name": "x", "duration_work_days": -3, "sequence": 1}]')

        result = invoke("schedule", "templates", "--load", str(template_file))

        assert result.exit_code == 1
        assert "Error loading templates" in result.output
        assert len(load_json(invoke("schedule", "templates", "-f", "json").stdout)) == 12


@pytest.mark.integration
class TestMainCallback:
    """Tests for global options and context setup."""

    def test_corrupt_data_file(self, cli_runner: CliRunner, cli_config: Path, tmp_path: Path) -> None:
        """Test that unreadable studio data exits with an error."""
        (tmp_path / "studio.json").write_text("{broken")

        result = cli_runner.invoke(app, ["--config", str(cli_config), "contract", "list"])

        assert result.exit_code == 1
        assert "Error loading studio data" in result.output

    def test_context_initialized(self, invoke, tmp_path: Path) -> None:
        """Test that the callback builds the shared context from the config."""
        invoke("contract", "list")

        ctx = get_app_context()
        assert ctx.config.storage.data_file == tmp_path / "studio.json"
        assert ctx.service.store is ctx.store

    def test_serve_uses_config(self, invoke, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that serve hands the app and bind address to uvicorn."""
        calls: list[dict[str, Any]] = []
        monkeypatch.setattr("uvicorn.run", lambda app, **kwargs: calls.append(kwargs))

        result = invoke("serve", "--port", "9100")

        assert result.exit_code == 0, result.output
        assert calls == [{"host": "127.0.0.1", "port": 9100, "log_level": "info"}]
