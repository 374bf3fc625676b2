from __future__ import annotations

import pytest

from settings import DEFAULT_MAX_READINGS, DEFAULT_TRIGGER_LEVEL, get_settings

_ENV_NAMES = (
    "UTILISATION_INPUT_PATH",
    "UTILISATION_OUTPUT_PATH",
    "UTILISATION_TRIGGER_LEVEL",
    "UTILISATION_MAX_READINGS",
    "UTILISATION_MAX_ISSUES",
    "UTILISATION_ERROR_POLICY",
    "UTILISATION_DUMP_READINGS",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    for name in _ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults_without_environment() -> None:
    settings = get_settings()

    assert settings.input_path == "data.txt"
    assert settings.output_path == "results.txt"
    assert settings.trigger_level == DEFAULT_TRIGGER_LEVEL == 10.0
    assert settings.max_readings == DEFAULT_MAX_READINGS == 255
    assert settings.max_issues == 100
    assert settings.error_policy == "abort"
    assert settings.dump_readings is False
    assert settings.log_level == "INFO"


def test_environment_overrides_apply(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("UTILISATION_INPUT_PATH", str(tmp_path / "in.txt"))
    monkeypatch.setenv("UTILISATION_OUTPUT_PATH", str(tmp_path / "out.txt"))
    monkeypatch.setenv("UTILISATION_TRIGGER_LEVEL", " 2.5 ")
    monkeypatch.setenv("UTILISATION_MAX_READINGS", "16")
    monkeypatch.setenv("UTILISATION_MAX_ISSUES", "7")
    monkeypatch.setenv("UTILISATION_ERROR_POLICY", "SKIP")
    monkeypatch.setenv("UTILISATION_DUMP_READINGS", "yes")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = get_settings()

    assert settings.input_path == str(tmp_path / "in.txt")
    assert settings.output_path == str(tmp_path / "out.txt")
    assert settings.trigger_level == 2.5
    assert settings.max_readings == 16
    assert settings.max_issues == 7
    assert settings.error_policy == "skip"
    assert settings.dump_readings is True
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("UTILISATION_TRIGGER_LEVEL", "high"),
        ("UTILISATION_TRIGGER_LEVEL", "nan"),
        ("UTILISATION_TRIGGER_LEVEL", "-inf"),
        ("UTILISATION_MAX_ISSUES", "-2"),
        ("UTILISATION_MAX_READINGS", "0"),
        ("UTILISATION_MAX_READINGS", "many"),
        ("UTILISATION_ERROR_POLICY", "retry"),
        ("UTILISATION_DUMP_READINGS", "maybe"),
        ("UTILISATION_INPUT_PATH", "   "),
    ],
)
def test_invalid_values_fall_back_to_defaults(monkeypatch, name: str, value: str) -> None:
    monkeypatch.setenv(name, value)

    settings = get_settings()

    assert settings.trigger_level == 10.0
    assert settings.max_readings == 255
    assert settings.max_issues == 100
    assert settings.error_policy == "abort"
    assert settings.dump_readings is False
    assert settings.input_path == "data.txt"
