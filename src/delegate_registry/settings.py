"""delegate_registry.settings

Application settings for the import console, loaded from a YAML file.

Secrets are never stored in the file: the admin password is read from the
environment variable named by ``admin_password_env``.

Example (config/settings.yml):

    db_dsn: "postgresql://localhost/delegates"
    sheet_url: "https://docs.google.com/spreadsheets/d/<id>/edit#gid=0"
    rejects_path: "./artifacts/rejects/participant_rejects.csv"
    request_timeout_seconds: 30
    admin_password_env: DELEGATE_ADMIN_PASSWORD
"""

from __future__ import annotations

import hmac
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

DEFAULT_REJECTS_PATH = "./artifacts/rejects/participant_rejects.csv"
DEFAULT_ADMIN_PASSWORD_ENV = "DELEGATE_ADMIN_PASSWORD"

KNOWN_KEYS = frozenset({
    "db_dsn",
    "sheet_url",
    "rejects_path",
    "request_timeout_seconds",
    "admin_password_env",
})


class SettingsValidationError(ValueError):
    """Raised when a settings file fails validation."""


@dataclass(frozen=True)
class Settings:
    db_dsn: str | None = None
    sheet_url: str | None = None
    rejects_path: str = DEFAULT_REJECTS_PATH
    request_timeout_seconds: int = 30
    admin_password_env: str = DEFAULT_ADMIN_PASSWORD_ENV

    def admin_password(self) -> str | None:
        return os.environ.get(self.admin_password_env) or None


def validate_settings(data: Any) -> None:
    """Raise SettingsValidationError if data does not match the settings schema."""
    if not isinstance(data, dict):
        raise SettingsValidationError("YAML root must be a mapping.")

    unknown = set(data.keys()) - KNOWN_KEYS
    if unknown:
        raise SettingsValidationError(f"Unknown settings keys: {sorted(unknown)}")

    for key in ("db_dsn", "sheet_url", "rejects_path", "admin_password_env"):
        val = data.get(key)
        if val is not None and not isinstance(val, str):
            raise SettingsValidationError(f"'{key}' must be a string, got {type(val).__name__}.")

    timeout = data.get("request_timeout_seconds")
    if timeout is not None:
        if isinstance(timeout, bool) or not isinstance(timeout, int):
            raise SettingsValidationError(
                f"'request_timeout_seconds' value '{timeout}' is not an integer."
            )
        if timeout <= 0:
            raise SettingsValidationError(
                f"'request_timeout_seconds' value {timeout} must be > 0."
            )


def load_settings(yaml_path: Path | None) -> Settings:
    """Load and validate settings; a missing path yields the defaults.

    Raises:
        SettingsValidationError: If the file content is invalid.
        FileNotFoundError: If yaml_path is given but does not exist.
    """
    if yaml_path is None:
        return Settings()
    raw = yaml_path.read_text(encoding="utf-8")
    data = yaml.safe_load(raw)
    if data is None:
        return Settings()
    validate_settings(data)
    return Settings(**{k: v for k, v in data.items() if v is not None})


def check_admin_password(settings: Settings, candidate: str | None) -> bool:
    """Constant-time comparison against the configured admin password.

    Returns False when no password is configured.
    """
    expected = settings.admin_password()
    if not expected or candidate is None:
        return False
    return hmac.compare_digest(expected.encode("utf-8"), candidate.encode("utf-8"))
