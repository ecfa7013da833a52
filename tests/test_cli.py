"""
Tests for the CLI interface.
"""
import json
from unittest.mock import patch

import pytest
from rich.console import Console
from typer.testing import CliRunner

from image_studio.cli.main import app, EXIT_CODE_PASS, EXIT_CODE_FAIL
from image_studio.storage.repository import SqliteUsageLedger

runner = CliRunner()


@pytest.fixture(autouse=True)
def wide_console():
    """Keep rich from wrapping table cells."""
    with patch('image_studio.cli.main.console', Console(width=200)):
        yield


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "usage.db")


class TestCLI:
    """Test CLI commands."""

    def test_no_command_prints_hint(self):
        result = runner.invoke(app, [])
        assert result.exit_code == EXIT_CODE_PASS
        assert "Use --help" in result.output

    def test_init_creates_database(self, db_path):
        result = runner.invoke(app, ["init", "--db", db_path])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Database initialized successfully" in result.output
        assert len(SqliteUsageLedger(db_path)) == 0

    def test_seed_inserts_demo_records(self, db_path):
        result = runner.invoke(app, ["seed", "--db", db_path])
        assert result.exit_code == EXIT_CODE_PASS
        assert "Inserted 3 demo usage records" in result.output

        # Seeding twice leaves the ledger unchanged
        result = runner.invoke(app, ["seed", "--db", db_path])
        assert "Inserted 0 demo usage records" in result.output
        assert len(SqliteUsageLedger(db_path)) == 3

    def test_record_usage(self, db_path):
        result = runner.invoke(app, ["record", "-m", "gemini-1.5-flash", "-t", "1000", "--db", db_path])

        assert result.exit_code == EXIT_CODE_PASS
        assert "costing $0.001100" in result.output
        assert "1 requests, 1,000 tokens" in result.output

        ledger = SqliteUsageLedger(db_path)
        assert ledger.events()[0].model == "gemini-1.5-flash"

    def test_record_accumulates(self, db_path):
        runner.invoke(app, ["record", "-m", "gemini-1.5-flash", "-t", "500", "--db", db_path])
        result = runner.invoke(app, ["record", "-m", "gemini-1.5-flash", "-t", "500", "--db", db_path])

        assert "2 requests, 1,000 tokens, $0.001400" in result.output

    def test_usage_dashboard(self, db_path):
        runner.invoke(app, ["seed", "--db", db_path])

        result = runner.invoke(app, ["usage", "--db", db_path])

        assert result.exit_code == EXIT_CODE_PASS
        assert "API Usage Dashboard" in result.output
        assert "Recent Usage" in result.output
        assert "2024-01-02" in result.output
        assert "You are within your free tier limits." in result.output
        assert "Payment method: Credit Card on file" in result.output

    def test_usage_json(self, db_path):
        runner.invoke(app, ["seed", "--db", db_path])

        result = runner.invoke(app, ["usage", "--json", "--db", db_path])

        assert result.exit_code == EXIT_CODE_PASS
        data = json.loads(result.output)
        assert data["totalUsage"]["requests"] == 56
        assert len(data["recentUsage"]) == 3

    def test_pricing_table(self):
        result = runner.invoke(app, ["pricing"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Model Pricing" in result.output
        assert "gemini-2.5-flash-image-preview (default)" in result.output
        assert "gemini-1.5-pro" in result.output

    def test_pricing_from_yaml(self, tmp_path):
        config = tmp_path / "pricing.yaml"
        config.write_text(
            "default_model: house-model\n"
            "models:\n"
            "  house-model:\n"
            "    free_tier: {requests_per_day: 5, tokens_per_day: 500}\n"
            "    paid: {cost_per_request: 0.01, cost_per_token: 0.0001}\n",
            encoding="utf-8",
        )

        result = runner.invoke(app, ["pricing", "-p", str(config)])

        assert result.exit_code == EXIT_CODE_PASS
        assert "house-model (default)" in result.output
        assert "gemini-1.5-pro" not in result.output

    def test_invalid_pricing_file_fails(self, tmp_path):
        result = runner.invoke(app, ["pricing", "-p", str(tmp_path / "missing.yaml")])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "Pricing config file not found" in result.output

    def test_serve_runs_uvicorn_factory(self):
        with patch('uvicorn.run') as mock_run:
            result = runner.invoke(app, ["serve", "--port", "9000"])

        assert result.exit_code == EXIT_CODE_PASS
        args, kwargs = mock_run.call_args
        assert args == ("image_studio.api.app:create_app",)
        assert kwargs["factory"] is True
        assert kwargs["port"] == 9000
