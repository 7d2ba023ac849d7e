"""Application configuration handling."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import BaseModel, Field, field_validator

ENV_PREFIX = "DOCREG_"
DEFAULT_CONFIG_PATH = Path("~/.config/doc-registry/config.yaml")

_YAML_KEY_MAP: Mapping[tuple[str, ...], str] = {
    ("remote", "url"): "remote_url",
    ("remote", "timeout"): "request_timeout",
    ("remote", "max_retries"): "max_retries",
    ("remote", "retry_base_delay"): "retry_base_delay",
    ("cache", "path"): "cache_path",
    ("cache", "slot"): "cache_slot",
    ("search", "recent_limit"): "recent_limit",
    ("tagging", "enabled"): "tagging_enabled",
    ("tagging", "required"): "tagging_required",
    ("tagging", "model"): "tagging_model",
    ("tagging", "base_url"): "tagging_base_url",
    ("tagging", "api_key"): "tagging_api_key",
    ("attachments", "max_bytes"): "max_attachment_bytes",
    ("attachments", "allowed_types"): "allowed_attachment_types",
}

MAX_ATTACHMENT_BYTES = 50 * 1024 * 1024
ALLOWED_ATTACHMENT_TYPES = ("image/jpeg", "image/png", "image/gif", "application/pdf")


class Settings(BaseModel):
    """Runtime configuration loaded from YAML file and environment variables."""

    remote_url: str = ""
    request_timeout: float = 60.0
    max_retries: int = Field(default=2, ge=0)
    retry_base_delay: float = Field(default=1.0, ge=0)
    cache_path: Path = Field(default=Path.home() / ".doc-registry" / "cache.db")
    cache_slot: str = "documents"
    recent_limit: int = Field(default=10, ge=1)
    tagging_enabled: bool = True
    tagging_required: bool = False
    tagging_model: str = "gemini-2.5-flash"
    tagging_base_url: str | None = "https://generativelanguage.googleapis.com/v1beta/openai/"
    tagging_api_key: str | None = None
    max_attachment_bytes: int = MAX_ATTACHMENT_BYTES
    allowed_attachment_types: tuple[str, ...] = ALLOWED_ATTACHMENT_TYPES
    initial_sync: bool = True

    model_config = {
        "validate_assignment": True,
        "extra": "ignore",
    }

    @field_validator("cache_path", mode="before")
    @classmethod
    def _expand_cache_path(cls, value: Any) -> Path:
        if isinstance(value, Path):
            return value.expanduser()
        if isinstance(value, str):
            return Path(value).expanduser()
        raise TypeError("cache_path must be a path or string")

    @field_validator("allowed_attachment_types", mode="before")
    @classmethod
    def _split_types(cls, value: Any) -> Any:
        if isinstance(value, str):
            return tuple(part.strip() for part in value.split(",") if part.strip())
        return value

    @classmethod
    def from_yaml(cls, path: Path | None = None) -> "Settings":
        """Load YAML config and overlay env vars; fall back to defaults."""
        config_path = cls._resolve_config_path(path)
        data: dict[str, Any] = {}
        if config_path and config_path.exists():
            with config_path.open("r", encoding="utf-8") as fh:
                raw = yaml.safe_load(fh) or {}
            data.update(_flatten_yaml(raw))
        data.update(_load_env_overrides())
        return cls(**data)

    @staticmethod
    def _resolve_config_path(path: Path | None) -> Path | None:
        if path is not None:
            return path.expanduser()
        env_path = os.environ.get(f"{ENV_PREFIX}CONFIG")
        if env_path:
            return Path(env_path).expanduser()
        resolved_default = DEFAULT_CONFIG_PATH.expanduser()
        return resolved_default if resolved_default.exists() else None


def _flatten_yaml(raw: Mapping[str, Any], prefix: tuple[str, ...] = ()) -> dict[str, Any]:
    """Flatten nested YAML configuration to Settings field names."""
    flat: dict[str, Any] = {}
    for key, value in raw.items():
        next_prefix = prefix + (key,)
        if isinstance(value, Mapping):
            flat.update(_flatten_yaml(value, prefix=next_prefix))
        else:
            mapped_key = _YAML_KEY_MAP.get(next_prefix)
            if mapped_key:
                flat[mapped_key] = value
            elif key in Settings.model_fields:
                flat[key] = value
    return flat


def _load_env_overrides() -> dict[str, Any]:
    """Map environment variables with DOCREG_ prefix into Settings fields."""
    overrides: dict[str, Any] = {}
    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        field_name = key[len(ENV_PREFIX) :].lower()
        if field_name in Settings.model_fields:
            overrides[field_name] = value
    return overrides


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached settings accessor for dependency injection."""
    return Settings.from_yaml()


__all__ = ["Settings", "get_settings", "MAX_ATTACHMENT_BYTES", "ALLOWED_ATTACHMENT_TYPES"]
