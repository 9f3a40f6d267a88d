"""Environment-backed application configuration."""

from __future__ import annotations

import json
import os
import platform
from dataclasses import dataclass
from pathlib import Path
from typing import cast

from shellassist.agent.models import VALID_CONVENTIONS, Convention
from shellassist.errors import ConfigError
from shellassist.llm.client import DEFAULT_API_URL, DEFAULT_MODEL


def _to_bool(value: str | None, default: bool = False) -> bool:
    """Convert common env var truthy/falsy values into booleans."""
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


@dataclass(slots=True)
class AppConfig:
    """Runtime settings loaded from environment variables."""

    api_key: str | None
    shell_name: str | None
    os_name: str | None
    model: str
    api_url: str
    timeout: float
    convention: Convention
    report_all_missing: bool
    max_failures: int
    request_deadline: float | None
    color: bool
    log_level: str

    @classmethod
    def from_env(cls) -> AppConfig:
        file_config = _load_preferred_file_config()
        openai_from_file = file_config.get("openai")
        openai_config = openai_from_file if isinstance(openai_from_file, dict) else {}

        return cls(
            api_key=(
                os.getenv("OPENAI_API_KEY")
                or os.getenv("SHELLASSIST_API_KEY")
                or _to_optional_string(openai_config.get("api_key"))
            ),
            shell_name=_shell_name(os.getenv("SHELL")),
            os_name=_to_optional_string(platform.system().lower()),
            model=(
                os.getenv("SHELLASSIST_MODEL")
                or _to_optional_string(openai_config.get("model"))
                or DEFAULT_MODEL
            ),
            api_url=(
                os.getenv("SHELLASSIST_API_URL")
                or _to_optional_string(openai_config.get("api_url"))
                or DEFAULT_API_URL
            ),
            timeout=_to_positive_float(
                os.getenv("SHELLASSIST_TIMEOUT") or file_config.get("timeout"),
                default=60.0,
            ),
            convention=_convention_value(
                os.getenv("SHELLASSIST_CONVENTION")
                or _to_optional_string(file_config.get("convention"))
            ),
            report_all_missing=_to_bool(
                os.getenv("SHELLASSIST_REPORT_ALL_MISSING"),
                default=bool(file_config.get("report_all_missing", False)),
            ),
            max_failures=_to_non_negative_int(
                os.getenv("SHELLASSIST_MAX_FAILURES") or file_config.get("max_failures"),
                default=0,
            ),
            request_deadline=_to_optional_positive_float(
                os.getenv("SHELLASSIST_REQUEST_DEADLINE") or file_config.get("request_deadline")
            ),
            color=_to_bool(
                os.getenv("SHELLASSIST_COLOR"),
                default=bool(file_config.get("color", True)) and "NO_COLOR" not in os.environ,
            ),
            log_level=(
                os.getenv("SHELLASSIST_LOG_LEVEL")
                or _to_optional_string(file_config.get("log_level"))
                or "WARNING"
            ).upper(),
        )

    def validate(self) -> None:
        """Raise :class:`ConfigError` when a required setting is missing."""
        if not self.api_key:
            raise ConfigError(
                "OPENAI_API_KEY is not set. Please set the OPENAI_API_KEY "
                "environment variable to your OpenAI API key"
            )
        if not self.os_name:
            raise ConfigError("unable to determine OS")
        if not self.shell_name:
            raise ConfigError("unable to determine shell")


def _to_optional_string(value: object) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _shell_name(value: str | None) -> str | None:
    """Reduce ``$SHELL`` (usually an absolute path) to the shell's name."""
    shell = _to_optional_string(value)
    if shell is None:
        return None
    return Path(shell).name or None


def _convention_value(value: str | None) -> Convention:
    if value is None:
        return "json"
    normalized = value.strip().lower()
    if normalized not in VALID_CONVENTIONS:
        raise ConfigError(
            f"Unsupported reply convention: {value} "
            f"(expected one of {', '.join(sorted(VALID_CONVENTIONS))})"
        )
    return cast(Convention, normalized)


def _load_file_config(path_value: str) -> dict[str, object]:
    path = Path(path_value)
    if not path.exists() or not path.is_file():
        return {}
    try:
        with path.open("r", encoding="utf-8") as fh:
            parsed = json.load(fh)
    except (OSError, json.JSONDecodeError):
        return {}
    if isinstance(parsed, dict):
        return parsed
    return {}


def _load_preferred_file_config() -> dict[str, object]:
    explicit_path = os.getenv("SHELLASSIST_CONFIG_FILE")
    if explicit_path:
        return _load_file_config(explicit_path)

    shared_config = _load_file_config("shellassist.config.json")
    local_override = _load_file_config("shellassist.config.local.json")
    return _merge_dicts(shared_config, local_override)


def _merge_dicts(base: dict[str, object], override: dict[str, object]) -> dict[str, object]:
    merged: dict[str, object] = dict(base)
    for key, value in override.items():
        base_value = merged.get(key)
        if isinstance(base_value, dict) and isinstance(value, dict):
            merged[key] = _merge_dicts(base_value, value)
        else:
            merged[key] = value
    return merged


def _to_non_negative_int(value: object, *, default: int) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value if value >= 0 else default
    if isinstance(value, str):
        try:
            parsed = int(value.strip())
        except ValueError:
            return default
        return parsed if parsed >= 0 else default
    return default


def _to_positive_float(value: object, *, default: float) -> float:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value) if value > 0 else default
    if isinstance(value, str):
        try:
            parsed = float(value.strip())
        except ValueError:
            return default
        return parsed if parsed > 0 else default
    return default


def _to_optional_positive_float(value: object) -> float | None:
    parsed = _to_positive_float(value, default=0.0)
    return parsed or None
