import json

import pytest

from shellassist.config import AppConfig
from shellassist.errors import ConfigError

ENV_VARS = (
    "OPENAI_API_KEY",
    "SHELLASSIST_API_KEY",
    "SHELLASSIST_CONFIG_FILE",
    "SHELLASSIST_MODEL",
    "SHELLASSIST_API_URL",
    "SHELLASSIST_TIMEOUT",
    "SHELLASSIST_CONVENTION",
    "SHELLASSIST_REPORT_ALL_MISSING",
    "SHELLASSIST_MAX_FAILURES",
    "SHELLASSIST_REQUEST_DEADLINE",
    "SHELLASSIST_COLOR",
    "SHELLASSIST_LOG_LEVEL",
    "NO_COLOR",
)


@pytest.fixture(autouse=True)
def clean_env(tmp_path, monkeypatch) -> None:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


def test_defaults_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
    monkeypatch.setenv("SHELL", "/usr/bin/zsh")

    config = AppConfig.from_env()

    assert config.api_key == "sk-env"
    assert config.shell_name == "zsh"
    assert config.os_name
    assert config.model == "gpt-3.5-turbo"
    assert config.api_url == "https://api.openai.com/v1/chat/completions"
    assert config.convention == "json"
    assert config.report_all_missing is False
    assert config.max_failures == 0
    assert config.request_deadline is None
    assert config.color is True
    assert config.log_level == "WARNING"
    config.validate()


def test_missing_api_key_is_config_error(monkeypatch) -> None:
    monkeypatch.setenv("SHELL", "/bin/bash")

    config = AppConfig.from_env()

    with pytest.raises(ConfigError, match="OPENAI_API_KEY"):
        config.validate()


def test_missing_shell_is_config_error(monkeypatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
    monkeypatch.delenv("SHELL", raising=False)

    config = AppConfig.from_env()

    assert config.shell_name is None
    with pytest.raises(ConfigError, match="shell"):
        config.validate()


def test_missing_os_is_config_error(monkeypatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
    monkeypatch.setenv("SHELL", "/bin/bash")
    monkeypatch.setattr("shellassist.config.platform.system", lambda: "")

    config = AppConfig.from_env()

    with pytest.raises(ConfigError, match="OS"):
        config.validate()


def test_environment_overrides(monkeypatch) -> None:
    monkeypatch.setenv("SHELLASSIST_API_KEY", "sk-alt")
    monkeypatch.setenv("SHELL", "bash")
    monkeypatch.setenv("SHELLASSIST_CONVENTION", "Markers")
    monkeypatch.setenv("SHELLASSIST_REPORT_ALL_MISSING", "yes")
    monkeypatch.setenv("SHELLASSIST_MAX_FAILURES", "5")
    monkeypatch.setenv("SHELLASSIST_TIMEOUT", "12.5")
    monkeypatch.setenv("SHELLASSIST_LOG_LEVEL", "debug")
    monkeypatch.setenv("NO_COLOR", "1")

    config = AppConfig.from_env()

    assert config.api_key == "sk-alt"
    assert config.shell_name == "bash"
    assert config.convention == "markers"
    assert config.report_all_missing is True
    assert config.max_failures == 5
    assert config.timeout == 12.5
    assert config.log_level == "DEBUG"
    assert config.color is False


def test_invalid_numbers_fall_back_to_defaults(monkeypatch) -> None:
    monkeypatch.setenv("SHELLASSIST_MAX_FAILURES", "-1")
    monkeypatch.setenv("SHELLASSIST_TIMEOUT", "soon")

    config = AppConfig.from_env()

    assert config.max_failures == 0
    assert config.timeout == 60.0


def test_unknown_convention_is_config_error(monkeypatch) -> None:
    monkeypatch.setenv("SHELLASSIST_CONVENTION", "yaml")

    with pytest.raises(ConfigError, match="Unsupported reply convention"):
        AppConfig.from_env()


def test_file_config_and_local_override(tmp_path, monkeypatch) -> None:
    (tmp_path / "shellassist.config.json").write_text(
        json.dumps(
            {
                "openai": {"api_key": "sk-file", "model": "gpt-4o-mini"},
                "convention": "markers",
                "max_failures": 3,
            }
        ),
        encoding="utf-8",
    )
    (tmp_path / "shellassist.config.local.json").write_text(
        json.dumps({"openai": {"model": "gpt-4o"}, "color": False}),
        encoding="utf-8",
    )

    config = AppConfig.from_env()

    assert config.api_key == "sk-file"
    assert config.model == "gpt-4o"
    assert config.convention == "markers"
    assert config.max_failures == 3
    assert config.color is False


def test_explicit_config_file(tmp_path, monkeypatch) -> None:
    config_path = tmp_path / "custom.json"
    config_path.write_text(json.dumps({"openai": {"api_url": "http://localhost:8080/v1"}}))
    monkeypatch.setenv("SHELLASSIST_CONFIG_FILE", str(config_path))
    monkeypatch.setenv("SHELLASSIST_API_URL", "")

    config = AppConfig.from_env()

    assert config.api_url == "http://localhost:8080/v1"


def test_environment_wins_over_file(tmp_path, monkeypatch) -> None:
    (tmp_path / "shellassist.config.json").write_text(
        json.dumps({"openai": {"api_key": "sk-file"}}), encoding="utf-8"
    )
    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")

    assert AppConfig.from_env().api_key == "sk-env"


def test_request_deadline_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("SHELLASSIST_REQUEST_DEADLINE", "45")

    assert AppConfig.from_env().request_deadline == 45.0


def test_invalid_request_deadline_is_unset(monkeypatch) -> None:
    monkeypatch.setenv("SHELLASSIST_REQUEST_DEADLINE", "0")

    assert AppConfig.from_env().request_deadline is None
