"""Tests for configuration loading."""

from risk_dashboard.config import Settings, get_settings, load_config, reset_settings


class TestConfig:
    """Test settings defaults and YAML loading."""

    def test_defaults(self):
        settings = Settings()

        assert settings.register.id_prefix == "risk"
        assert settings.register.load_sample_data is True
        assert settings.import_.reject_out_of_range is True
        assert settings.ui.residual_precision == 1
        assert settings.logging.level == "INFO"

    def test_load_yaml(self, tmp_path):
        config_path = tmp_path / "config.yaml"
        config_path.write_text(
            "register:\n"
            "  id_prefix: rsk\n"
            "  load_sample_data: false\n"
            "import:\n"
            "  max_rows: 10\n"
            "ui:\n"
            "  residual_precision: 2\n"
        )

        settings = load_config(config_path)

        assert settings.register.id_prefix == "rsk"
        assert settings.register.load_sample_data is False
        assert settings.import_.max_rows == 10
        assert settings.ui.residual_precision == 2
        assert get_settings() is settings

    def test_env_interpolation(self, tmp_path, monkeypatch):
        """${VAR:-default} references resolve from the environment."""
        config_path = tmp_path / "config.yaml"
        config_path.write_text(
            "logging:\n"
            "  level: ${RISK_TEST_LEVEL:-WARNING}\n"
            "register:\n"
            "  id_prefix: ${RISK_TEST_PREFIX:-risk}\n"
        )
        monkeypatch.setenv("RISK_TEST_PREFIX", "ops")

        settings = load_config(config_path)

        assert settings.logging.level == "WARNING"
        assert settings.register.id_prefix == "ops"

    def test_env_log_level_override(self, tmp_path, monkeypatch):
        config_path = tmp_path / "config.yaml"
        config_path.write_text("logging:\n  level: INFO\n")
        monkeypatch.setenv("RISK_DASHBOARD_LOG_LEVEL", "DEBUG")

        settings = load_config(config_path)

        assert settings.logging.level == "DEBUG"

    def test_reset(self, tmp_path):
        config_path = tmp_path / "config.yaml"
        config_path.write_text("ui:\n  page_title: Ops Risks\n")
        load_config(config_path)

        reset_settings()

        assert get_settings().ui.page_title != "Ops Risks"
