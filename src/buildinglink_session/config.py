from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Optional, Union
from urllib.parse import urlparse

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator

from .portal.client import DEFAULT_BASE_URL, DEFAULT_EXTRA_SCOPES


# ${VAR} or ${VAR:-fallback}
_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Z0-9_]+)(?::-([^}]*))?\}")


def _expand_env_vars(value: object) -> object:
    if isinstance(value, dict):
        return {k: _expand_env_vars(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_expand_env_vars(v) for v in value]
    if not isinstance(value, str):
        return value
    return _ENV_VAR_PATTERN.sub(lambda m: os.getenv(m.group(1)) or (m.group(2) or ""), value)


def _deep_merge(base: object, override: object) -> object:
    # A key left empty in YAML (`portal:` with nothing under it) keeps the env default.
    if override is None:
        return base
    if not (isinstance(base, dict) and isinstance(override, dict)):
        return override
    merged = dict(base)
    for key, value in override.items():
        merged[key] = _deep_merge(merged.get(key), value)
    return merged


def _split_scopes(value: str) -> list[str]:
    # Comma and/or whitespace separated
    return [s for s in re.split(r"[,\s]+", (value or "").strip()) if s]


def _default_config_from_env() -> dict:
    """
    Env-only config so most users only need `.env`; a YAML file is an optional override.
    """
    extra_scopes = os.getenv("BUILDINGLINK_EXTRA_SCOPES")
    return {
        "portal": {
            "username": os.getenv("BUILDINGLINK_USERNAME", ""),
            "password": os.getenv("BUILDINGLINK_PASSWORD", ""),
            "base_url": os.getenv("BUILDINGLINK_BASE_URL", ""),
            "subscription_key": os.getenv("BUILDINGLINK_SUBSCRIPTION_KEY", ""),
            "api_key": os.getenv("BUILDINGLINK_API_KEY", ""),
            "extra_scopes": _split_scopes(extra_scopes) if extra_scopes is not None else list(DEFAULT_EXTRA_SCOPES),
        },
        "logging": {
            "level": os.getenv("LOG_LEVEL", "INFO"),
            "file_path": os.getenv("LOG_FILE", ""),
        },
    }


class PortalConfig(BaseModel):
    """
    BuildingLink portal credentials and endpoints.

    `subscription_key` and `api_key` are only needed for the resident API helpers.
    """

    username: str
    password: str = Field(repr=False)
    base_url: str = DEFAULT_BASE_URL
    subscription_key: str = Field(default="", repr=False)
    api_key: str = Field(default="", repr=False)
    extra_scopes: list[str] = Field(default_factory=lambda: list(DEFAULT_EXTRA_SCOPES))

    @field_validator("extra_scopes", mode="before")
    @classmethod
    def _accept_scope_string(cls, value: object) -> object:
        if isinstance(value, str):
            return _split_scopes(value)
        return value

    @model_validator(mode="after")
    def _validate(self) -> "PortalConfig":
        if not (self.username or "").strip() or not self.password:
            raise ValueError("portal.username and portal.password are required")

        base_url = (self.base_url or "").strip() or DEFAULT_BASE_URL
        # Normalize base_url so other components can depend on it.
        base_url = base_url.rstrip("/")
        parsed = urlparse(base_url)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError(f"portal.base_url must be a full URL like '{DEFAULT_BASE_URL}'")

        self.username = self.username.strip()
        self.base_url = base_url
        return self


class LoggingConfig(BaseModel):
    level: str = "INFO"
    file_path: str = ""


class AppConfig(BaseModel):
    portal: PortalConfig
    logging: LoggingConfig = LoggingConfig()


def load_config(path: Union[str, Path, None] = None, *, env_file: Optional[Union[str, Path]] = None) -> AppConfig:
    """
    Build the config from environment defaults, optionally overridden by a YAML file.

    `env_file` is loaded first (without overriding variables that are already set).
    YAML values support `${ENV_VAR}` expansion.
    """
    if env_file:
        load_dotenv(env_file, override=False)

    raw: dict = {}
    if path:
        p = Path(path)
        if p.exists():
            raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
            raw = _expand_env_vars(raw)  # supports ${ENV_VAR} in YAML

    merged = _deep_merge(_default_config_from_env(), raw)
    return AppConfig.model_validate(merged)
