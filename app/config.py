"""Configuration management for the careers submission service."""
from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple

import yaml

DEFAULT_PORT = 3001
DEFAULT_FRONTEND_URL = "http://localhost:3000"

_ENV_VARIABLES: Dict[str, str] = {
    "mongo_uri": "MONGO_URI",
    "database_name": "MONGO_DB_NAME",
    "server_selection_timeout_ms": "MONGO_SERVER_SELECTION_TIMEOUT_MS",
    "admin_email": "ADMIN_EMAIL",
    "admin_email_password": "ADMIN_EMAIL_PASSWORD",
    "smtp_host": "SMTP_HOST",
    "smtp_port": "SMTP_PORT",
    "smtp_use_tls": "SMTP_USE_TLS",
    "smtp_timeout": "SMTP_TIMEOUT",
    "sender_name": "MAIL_SENDER_NAME",
    "frontend_url": "FRONTEND_URL",
    "extra_origins": "ALLOWED_ORIGINS",
    "port": "PORT",
}

_INT_SETTINGS = {"server_selection_timeout_ms", "smtp_port", "smtp_timeout", "port"}


def _env_flag(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _split_origins(value: object) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        items = value.split(",")
    else:
        items = [str(item) for item in value]  # type: ignore[union-attr]
    return tuple(item.strip().rstrip("/") for item in items if item and item.strip())


@dataclass(frozen=True)
class Settings:
    """Runtime settings resolved from the environment and an optional YAML file."""

    mongo_uri: Optional[str] = None
    database_name: Optional[str] = None
    server_selection_timeout_ms: int = 10_000
    admin_email: Optional[str] = None
    admin_email_password: Optional[str] = None
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_use_tls: bool = True
    smtp_timeout: int = 30
    sender_name: str = "PLC Careers"
    frontend_url: Optional[str] = None
    extra_origins: Tuple[str, ...] = field(default_factory=tuple)
    port: int = DEFAULT_PORT

    @property
    def landing_frontend_url(self) -> str:
        return self.frontend_url or DEFAULT_FRONTEND_URL

    @property
    def allowed_origins(self) -> List[str]:
        """Origins permitted to call the API with credentials."""

        candidates = [self.frontend_url, DEFAULT_FRONTEND_URL, *self.extra_origins]
        origins: List[str] = []
        for origin in candidates:
            if not origin:
                continue
            cleaned = origin.strip().rstrip("/")
            if cleaned and cleaned not in origins:
                origins.append(cleaned)
        return origins

    @staticmethod
    def from_dict(data: Mapping[str, object]) -> "Settings":
        """Create :class:`Settings` from raw key/value data."""

        known = {item.name for item in fields(Settings)}
        unknown = set(data.keys()) - known
        if unknown:
            raise ValueError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

        values: Dict[str, object] = {}
        for key, raw in data.items():
            if raw is None or (isinstance(raw, str) and not raw.strip()):
                continue
            if key in _INT_SETTINGS:
                try:
                    values[key] = int(raw)  # type: ignore[arg-type]
                except (TypeError, ValueError) as exc:
                    raise ValueError(f"{_ENV_VARIABLES[key]} must be an integer, got {raw!r}") from exc
            elif key == "smtp_use_tls":
                values[key] = raw if isinstance(raw, bool) else _env_flag(str(raw), True)
            elif key == "extra_origins":
                values[key] = _split_origins(raw)
            else:
                values[key] = str(raw).strip()
        return Settings(**values)  # type: ignore[arg-type]


def load_yaml_settings(config_path: Path) -> Dict[str, object]:
    """Load raw setting values from a YAML file."""

    with config_path.open("r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}
    if not isinstance(raw, dict):
        raise ValueError("Configuration file must contain a mapping of settings")
    return raw


def load_settings(
    config_path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Resolve settings; environment variables take precedence over the YAML file."""

    env = os.environ if environ is None else environ
    if config_path is None and env.get("APPLICATIONS_CONFIG"):
        config_path = Path(env["APPLICATIONS_CONFIG"]).expanduser().resolve(strict=False)

    data: Dict[str, object] = {}
    if config_path is not None:
        data.update(load_yaml_settings(config_path))

    for name, variable in _ENV_VARIABLES.items():
        value = env.get(variable)
        if value is not None and value.strip():
            data[name] = value
    return Settings.from_dict(data)


__all__ = ["DEFAULT_FRONTEND_URL", "DEFAULT_PORT", "Settings", "load_settings", "load_yaml_settings"]
