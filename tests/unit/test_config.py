# tests/unit/test_config.py
"""Tests for configuration loading and defaults."""

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from riskwise.config import RiskwiseConfig, get_db_path, load_config


class TestLoadConfig:
    def test_creates_defaults_when_missing(self, tmp_path):
        config_path = tmp_path / "nested" / "config.yaml"

        config = load_config(config_path)

        assert config == RiskwiseConfig()
        assert config_path.exists()
        written = yaml.safe_load(config_path.read_text())
        assert written["provider"] == "ollama"
        assert written["storage"]["backend"] == "sqlite"
        assert written["suggestions"]["control_measures"] == 3

    def test_written_defaults_load_back(self, tmp_path):
        config_path = tmp_path / "config.yaml"
        load_config(config_path)
        assert load_config(config_path) == RiskwiseConfig()

    def test_empty_file(self, tmp_path):
        config_path = tmp_path / "config.yaml"
        config_path.write_text("")
        assert load_config(config_path) == RiskwiseConfig()

    def test_partial_file_and_unknown_keys(self, tmp_path):
        config_path = tmp_path / "config.yaml"
        config_path.write_text(
            yaml.safe_dump(
                {
                    "provider": "lm_studio",
                    "tenant": {"upr_id": "upr-7", "period": "2025", "region": "x"},
                    "cascade": {"prefer_batch": False},
                    "legacy_section": {"enabled": True},
                }
            )
        )

        config = load_config(config_path)

        assert config.provider == "lm_studio"
        assert config.tenant.upr_id == "upr-7"
        assert config.tenant.period == "2025"
        assert config.cascade.prefer_batch is False
        assert config.identifiers.max_retries == 3

    def test_invalid_value_rejected(self, tmp_path):
        config_path = tmp_path / "config.yaml"
        config_path.write_text(yaml.safe_dump({"suggestions": {"control_measures": 5}}))

        with pytest.raises(ValidationError):
            load_config(config_path)

    def test_unknown_backend_rejected(self):
        with pytest.raises(ValidationError):
            RiskwiseConfig(storage={"backend": "postgres"})

    def test_monitoring_frequency(self):
        assert RiskwiseConfig().monitoring.default_frequency == "Bulanan"
        config = RiskwiseConfig(monitoring={"default_frequency": "Triwulanan"})
        assert config.monitoring.default_frequency == "Triwulanan"
        with pytest.raises(ValidationError):
            RiskwiseConfig(monitoring={"default_frequency": "Mingguan"})


class TestDbPath:
    def test_configured_path(self, tmp_path):
        config = RiskwiseConfig(storage={"db_path": str(tmp_path / "risks.db")})
        assert get_db_path(config) == tmp_path / "risks.db"

    def test_user_home_expanded(self):
        config = RiskwiseConfig(storage={"db_path": "~/risks.db"})
        assert get_db_path(config) == Path("~/risks.db").expanduser()

    def test_default_in_user_data_dir(self, tmp_path, monkeypatch):
        monkeypatch.setattr(
            "riskwise.config.loader.user_data_path", lambda *args, **kwargs: tmp_path
        )
        assert get_db_path(RiskwiseConfig()) == tmp_path / "riskwise.db"
