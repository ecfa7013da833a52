"""
Unit tests for configuration loading and validation.

Tests strict validation of YAML pricing tables and environment settings.
"""

import os
import tempfile
from decimal import Decimal

import pytest
import yaml

from image_studio.config.loader import load_pricing_config
from image_studio.config.settings import Settings
from image_studio.core.pricing import PricingTable
from image_studio.sdk.gemini_client import GEMINI_OPENAI_BASE_URL


def _valid_config():
    return {
        "default_model": "gemini-1.5-flash",
        "models": {
            "gemini-1.5-flash": {
                "free_tier": {"requests_per_day": 150, "tokens_per_day": 15000},
                "paid": {"cost_per_request": 0.0003, "cost_per_token": 0.0000008},
            },
            "gemini-1.5-pro": {
                "free_tier": {"requests_per_day": 50, "tokens_per_day": 5000},
                "paid": {"cost_per_request": "0.001", "cost_per_token": "0.000002"},
            },
        },
    }


class TestPricingConfigLoading:
    """Test pricing configuration loading and validation."""

    def setup_method(self):
        """Set up test environment."""
        self.temp_dir = tempfile.mkdtemp()

    def teardown_method(self):
        """Clean up test environment."""
        import shutil
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _write_config(self, config_data, filename: str = "pricing.yaml") -> str:
        """Write configuration data to temporary file."""
        config_path = os.path.join(self.temp_dir, filename)
        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.dump(config_data, f)
        return config_path

    def test_valid_config_loads_correctly(self):
        table = load_pricing_config(self._write_config(_valid_config()))

        assert isinstance(table, PricingTable)
        assert table.default_model == "gemini-1.5-flash"
        assert table.models == ["gemini-1.5-flash", "gemini-1.5-pro"]
        flash = table.get_pricing("gemini-1.5-flash")
        assert flash.free_tier_requests_per_day == 150
        assert flash.cost_per_request == Decimal("0.0003")
        assert flash.cost_per_token == Decimal("8E-7")

    def test_string_costs_are_exact(self):
        table = load_pricing_config(self._write_config(_valid_config()))
        assert table.get_pricing("gemini-1.5-pro").cost_per_token == Decimal("0.000002")

    def test_default_model_optional_when_builtin_default_listed(self):
        config = _valid_config()
        del config["default_model"]
        config["models"]["gemini-2.5-flash-image-preview"] = config["models"]["gemini-1.5-flash"]
        table = load_pricing_config(self._write_config(config))
        assert table.default_model == "gemini-2.5-flash-image-preview"

    def test_missing_file(self):
        with pytest.raises(FileNotFoundError, match="Pricing config file not found"):
            load_pricing_config(os.path.join(self.temp_dir, "missing.yaml"))

    def test_invalid_yaml(self):
        path = os.path.join(self.temp_dir, "bad.yaml")
        with open(path, 'w', encoding='utf-8') as f:
            f.write("models: [unclosed\n")
        with pytest.raises(yaml.YAMLError, match="Invalid YAML"):
            load_pricing_config(path)

    def test_empty_file(self):
        path = os.path.join(self.temp_dir, "empty.yaml")
        open(path, 'w').close()
        with pytest.raises(ValueError, match="Configuration file is empty"):
            load_pricing_config(path)

    def test_unknown_top_level_key(self):
        config = _valid_config()
        config["currency"] = "USD"
        with pytest.raises(ValueError, match="Unknown configuration keys"):
            load_pricing_config(self._write_config(config))

    def test_missing_models(self):
        with pytest.raises(ValueError, match="Missing required 'models' section"):
            load_pricing_config(self._write_config({"default_model": "x"}))

    def test_empty_models(self):
        with pytest.raises(ValueError, match="'models' must be a non-empty dictionary"):
            load_pricing_config(self._write_config({"models": {}}))

    def test_unknown_default_model(self):
        config = _valid_config()
        config["default_model"] = "gemini-9"
        with pytest.raises(ValueError, match="is not listed under 'models'"):
            load_pricing_config(self._write_config(config))

    def test_missing_paid_section(self):
        config = _valid_config()
        del config["models"]["gemini-1.5-pro"]["paid"]
        with pytest.raises(ValueError, match="Missing required 'paid' in models.gemini-1.5-pro"):
            load_pricing_config(self._write_config(config))

    def test_unknown_free_tier_key(self):
        config = _valid_config()
        config["models"]["gemini-1.5-pro"]["free_tier"]["images_per_day"] = 3
        with pytest.raises(ValueError, match="Unknown keys in models.gemini-1.5-pro.free_tier"):
            load_pricing_config(self._write_config(config))

    @pytest.mark.parametrize("value", [0, -1, 1.5, "100", True])
    def test_invalid_quota(self, value):
        config = _valid_config()
        config["models"]["gemini-1.5-flash"]["free_tier"]["requests_per_day"] = value
        with pytest.raises(ValueError, match="'requests_per_day' in models.gemini-1.5-flash.free_tier must be a positive integer"):
            load_pricing_config(self._write_config(config))

    def test_negative_cost(self):
        config = _valid_config()
        config["models"]["gemini-1.5-flash"]["paid"]["cost_per_token"] = -0.1
        with pytest.raises(ValueError, match="'cost_per_token' in models.gemini-1.5-flash.paid must be >= 0"):
            load_pricing_config(self._write_config(config))

    def test_non_numeric_cost(self):
        config = _valid_config()
        config["models"]["gemini-1.5-flash"]["paid"]["cost_per_request"] = "free"
        with pytest.raises(ValueError, match="must be a number"):
            load_pricing_config(self._write_config(config))

    def test_zero_cost_allowed(self):
        config = _valid_config()
        config["models"]["gemini-1.5-flash"]["paid"]["cost_per_request"] = 0
        table = load_pricing_config(self._write_config(config))
        assert table.get_pricing("gemini-1.5-flash").cost_per_request == Decimal("0")


class TestSettings:
    """Test environment settings."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("GOOGLE_GENERATIVE_AI_API_KEY", raising=False)
        settings = Settings(_env_file=None)
        assert settings.google_generative_ai_api_key == ""
        assert settings.default_model == "gemini-2.5-flash-image-preview"
        assert settings.gemini_base_url == GEMINI_OPENAI_BASE_URL
        assert settings.ledger_db_path is None
        assert settings.max_upload_size_bytes == 10 * 1024 * 1024

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("GOOGLE_GENERATIVE_AI_API_KEY", "secret")
        monkeypatch.setenv("LEDGER_DB_PATH", "/tmp/usage.db")
        monkeypatch.setenv("SEED_DEMO_DATA", "true")
        settings = Settings(_env_file=None)
        assert settings.google_generative_ai_api_key == "secret"
        assert settings.ledger_db_path == "/tmp/usage.db"
        assert settings.seed_demo_data is True

    def test_allowed_origins_list(self):
        settings = Settings(_env_file=None, allowed_origins="http://a.test, http://b.test,")
        assert settings.allowed_origins_list == ["http://a.test", "http://b.test"]
