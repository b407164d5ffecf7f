"""
Tests for configuration loading.
"""

from pathlib import Path

import pytest

from barberslots.config import AppConfig, StoreConfig, load_config


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


class TestAppConfig:
    """Tests for AppConfig."""

    def test_defaults(self):
        config = AppConfig()

        assert config.timezone == "America/Sao_Paulo"
        assert config.closed_weekdays == [6]
        assert config.slot_step_minutes == 30
        assert config.store.backend == "memory"

    def test_load_from_yaml(self, tmp_path):
        path = _write(tmp_path, """
timezone: Europe/Lisbon
closed_weekdays: [6, 0, 6]
slot_step_minutes: 15
log_level: debug
store:
  backend: rest
  url: https://db.example.com/rest/v1
  api_key: secret
""")

        config = AppConfig.load_from_yaml(path)

        assert config.timezone == "Europe/Lisbon"
        assert config.closed_weekdays == [6, 0]
        assert config.slot_step_minutes == 15
        assert config.log_level == "DEBUG"
        assert config.store.url == "https://db.example.com/rest/v1"

    def test_closure_policy(self):
        policy = AppConfig(closed_weekdays=[0, 6], timezone="UTC").closure_policy()

        assert policy.closed_weekdays == frozenset({0, 6})
        assert policy.timezone == "UTC"

    def test_empty_file_uses_defaults(self, tmp_path):
        assert AppConfig.load_from_yaml(_write(tmp_path, "")) == AppConfig()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            AppConfig.load_from_yaml(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path):
        with pytest.raises(ValueError, match="Invalid YAML"):
            AppConfig.load_from_yaml(_write(tmp_path, "timezone: [unclosed"))

    def test_non_mapping_root(self, tmp_path):
        with pytest.raises(ValueError, match="mapping"):
            AppConfig.load_from_yaml(_write(tmp_path, "- 1\n- 2\n"))

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"closed_weekdays": [7]},
            {"slot_step_minutes": 0},
            {"timezone": "Mars/Olympus_Mons"},
            {"log_level": "LOUD"},
        ],
    )
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            AppConfig(**kwargs)

    def test_rest_store_requires_url(self):
        with pytest.raises(ValueError, match="store.url"):
            StoreConfig(backend="rest")


def test_load_config_without_file_uses_defaults(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("barberslots.config.get_default_config_path", lambda: tmp_path / "config.yaml")

    assert load_config() == AppConfig()


def test_load_config_explicit_path(tmp_path):
    path = _write(tmp_path, "slot_step_minutes: 20\n")
    assert load_config(path).slot_step_minutes == 20
