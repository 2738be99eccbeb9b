"""Tests for engine settings loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from calcform.config.settings import (
    DEFAULT_MAIN_OUTPUT_PRIORITY,
    PACKAGE_DEFINITIONS_DIR,
    EngineSettings,
    get_engine_settings,
    load_engine_settings,
    reset_engine_settings_cache,
)


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    """Run from an empty directory so no stray calcform.yaml or .env is read."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


class TestEngineSettings:
    """Model defaults and field validation."""

    def test_defaults(self):
        settings = EngineSettings()
        assert settings.computation_base_url == "http://localhost:3000"
        assert settings.default_locale == "en"
        assert settings.definitions_dir == PACKAGE_DEFINITIONS_DIR
        assert settings.clearing_controllers == ["shape", "inputMode"]
        assert settings.main_output_priority == DEFAULT_MAIN_OUTPUT_PRIORITY
        assert settings.currency_code == "USD"

    def test_priority_list_is_not_shared(self):
        settings = EngineSettings()
        settings.main_output_priority.append("extra")
        assert "extra" not in DEFAULT_MAIN_OUTPUT_PRIORITY

    def test_trailing_slash_is_stripped(self):
        assert EngineSettings(computation_base_url="https://calc.example/").computation_base_url == "https://calc.example"

    def test_non_http_url_rejected(self):
        with pytest.raises(ValidationError, match="http"):
            EngineSettings(computation_base_url="ftp://calc.example")

    def test_currency_is_uppercased(self):
        assert EngineSettings(currency_code="eur").currency_code == "EUR"

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            EngineSettings(request_timeout_seconds=0)


class TestLoadEngineSettings:
    """YAML file plus environment overrides."""

    def test_missing_file_gives_defaults(self, workdir):
        assert load_engine_settings() == EngineSettings()

    def test_yaml_file(self, workdir):
        (workdir / "calcform.yaml").write_text(
            "computation_base_url: https://calc.example\n"
            "currency_code: gbp\n"
            "clearing_controllers: [shape]\n",
            encoding="utf-8",
        )
        settings = load_engine_settings()
        assert settings.computation_base_url == "https://calc.example"
        assert settings.currency_code == "GBP"
        assert settings.clearing_controllers == ["shape"]

    def test_explicit_path(self, workdir):
        path = workdir / "other.yaml"
        path.write_text("default_locale: ru\n", encoding="utf-8")
        assert load_engine_settings(path).default_locale == "ru"

    def test_config_env_var(self, workdir, monkeypatch):
        path = workdir / "elsewhere.yaml"
        path.write_text("request_timeout_seconds: 2.5\n", encoding="utf-8")
        monkeypatch.setenv("CALCFORM_CONFIG", str(path))
        assert load_engine_settings().request_timeout_seconds == 2.5

    def test_empty_file_gives_defaults(self, workdir):
        (workdir / "calcform.yaml").write_text("", encoding="utf-8")
        assert load_engine_settings() == EngineSettings()

    def test_env_overrides_file(self, workdir, monkeypatch):
        (workdir / "calcform.yaml").write_text("computation_base_url: https://file.example\n", encoding="utf-8")
        monkeypatch.setenv("CALCFORM_COMPUTATION_URL", "https://env.example")
        monkeypatch.setenv("CALCFORM_DEFINITIONS_DIR", str(workdir / "defs"))

        settings = load_engine_settings()

        assert settings.computation_base_url == "https://env.example"
        assert settings.definitions_dir == Path(workdir / "defs")

    def test_invalid_yaml(self, workdir):
        (workdir / "calcform.yaml").write_text("computation_base_url: [unclosed\n", encoding="utf-8")
        with pytest.raises(ValueError, match="Invalid YAML"):
            load_engine_settings()

    def test_non_mapping(self, workdir):
        (workdir / "calcform.yaml").write_text("- a\n", encoding="utf-8")
        with pytest.raises(ValueError, match="mapping"):
            load_engine_settings()

    def test_invalid_values(self, workdir):
        (workdir / "calcform.yaml").write_text("request_timeout_seconds: -1\n", encoding="utf-8")
        with pytest.raises(ValueError, match="Invalid engine settings"):
            load_engine_settings()


class TestSettingsCache:
    """get_engine_settings caches until reset."""

    def test_cached_until_reset(self, workdir):
        first = get_engine_settings()
        (workdir / "calcform.yaml").write_text("default_locale: ru\n", encoding="utf-8")

        assert get_engine_settings() is first
        assert get_engine_settings(force_reload=True).default_locale == "ru"

        reset_engine_settings_cache()
        assert get_engine_settings() is not first
