"""Configuration loading utilities for the mbr command line tools."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Mapping, MutableMapping

import yaml

from . import paths
from .exceptions import ConfigurationError

DEFAULT_URL = "http://localhost:3000"
DEFAULT_API_KEY_ENV = "MBR_API_KEY"


@dataclass(frozen=True, slots=True)
class ServerSettings:
    """Remote service connection configuration."""

    url: str
    api_key_env: str
    timeout_seconds: float
    query_timeout_seconds: float


@dataclass(frozen=True, slots=True)
class TUISettings:
    """Interactive browser configuration, fixed for the lifetime of a session."""

    tick_ms: int
    page_size: int
    list_limit: int
    preview_limit: int
    color: bool
    fullscreen: bool


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Top-level application configuration."""

    source_path: Path
    server: ServerSettings
    tui: TUISettings
    api_key_override: str | None = None

    def api_key(self, env: Mapping[str, str] | None = None) -> str | None:
        """Return the API key from the override or the configured environment variable."""
        if self.api_key_override:
            return self.api_key_override
        env = env if env is not None else os.environ
        value = env.get(self.server.api_key_env, "").strip()
        return value or None

    def with_url(self, url: str) -> AppConfig:
        """Return a copy pointing at a different server."""
        return replace(self, server=replace(self.server, url=_normalise_url(url)))

    def with_api_key(self, api_key: str) -> AppConfig:
        """Return a copy using an explicit API key instead of the environment."""
        return replace(self, api_key_override=api_key)

    def with_tui(self, **changes: Any) -> AppConfig:
        """Return a copy with selected TUI settings replaced."""
        updated = replace(self.tui, **changes)
        _validate_tui(updated)
        return replace(self, tui=updated)


def _default_config(env: Mapping[str, str]) -> dict[str, Any]:
    return {
        "server": {
            "url": DEFAULT_URL,
            "api_key_env": DEFAULT_API_KEY_ENV,
            "timeout_seconds": 30,
            "query_timeout_seconds": 60,
        },
        "tui": {
            "tick_ms": 250,
            "page_size": 100,
            "list_limit": 50,
            "preview_limit": 100,
            "color": True,
            "fullscreen": True,
        },
    }


ENV_OVERRIDE_SPEC: dict[str, tuple[str, type]] = {
    "server.url": ("MBR_URL", str),
    "server.api_key_env": ("MBR_API_KEY_ENV", str),
    "server.timeout_seconds": ("MBR_TIMEOUT", float),
    "server.query_timeout_seconds": ("MBR_QUERY_TIMEOUT", float),
    "tui.tick_ms": ("MBR_TUI_TICK_MS", int),
    "tui.page_size": ("MBR_TUI_PAGE_SIZE", int),
    "tui.list_limit": ("MBR_TUI_LIST_LIMIT", int),
    "tui.preview_limit": ("MBR_TUI_PREVIEW_LIMIT", int),
    "tui.color": ("MBR_TUI_COLOR", bool),
    "tui.fullscreen": ("MBR_TUI_FULLSCREEN", bool),
}


def load_config(
    config_path: str | Path | None = None,
    env: Mapping[str, str] | None = None,
) -> AppConfig:
    """Load configuration from defaults, YAML file, and env overrides."""
    env = dict(env if env is not None else os.environ)
    resolved_config_path = _resolve_config_path(config_path, env)
    file_data = _load_yaml(resolved_config_path)
    defaults = _default_config(env)
    merged: dict[str, Any] = _deep_merge(defaults, file_data)
    merged = _apply_env_overrides(merged, env)
    return _build_config(merged, resolved_config_path)


def _resolve_config_path(config_path: str | Path | None, env: Mapping[str, str]) -> Path:
    if config_path:
        return paths.resolve_path(config_path)
    return paths.default_config_path(env=env)


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as handle:
        try:
            data = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Config file at {path} is not valid YAML: {exc}") from exc
        if not isinstance(data, MutableMapping):
            raise ConfigurationError(f"Config file at {path} must define a mapping root object.")
        return dict(data)


def _deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], Mapping) and isinstance(value, Mapping):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _apply_env_overrides(config: dict[str, Any], env: Mapping[str, str]) -> dict[str, Any]:
    config_copy = _deep_merge(config, {})  # shallow copy via merge
    for dotted_key, (env_key, expected_type) in ENV_OVERRIDE_SPEC.items():
        if env_key not in env:
            continue
        raw_value = env[env_key]
        try:
            value = _coerce_env_value(raw_value, expected_type)
        except ValueError as exc:
            raise ConfigurationError(
                f"Environment override {env_key} has invalid value '{raw_value}': {exc}"
            ) from exc
        _assign_nested(config_copy, dotted_key.split("."), value)
    return config_copy


def _coerce_env_value(raw: str, expected_type: type) -> Any:
    cleaned = raw.strip()
    if expected_type is bool:
        lowered = cleaned.lower()
        if lowered in {"1", "true", "yes", "on"}:
            return True
        if lowered in {"0", "false", "no", "off"}:
            return False
        raise ValueError("expected boolean (true/false)")
    if expected_type is int:
        return int(cleaned)
    if expected_type is float:
        return float(cleaned)
    return cleaned


def _assign_nested(target: MutableMapping[str, Any], keys: list[str], value: Any) -> None:
    current = target
    for key in keys[:-1]:
        if key not in current or not isinstance(current[key], MutableMapping):
            current[key] = {}
        current = current[key]  # type: ignore[assignment]
    current[keys[-1]] = value


def _normalise_url(url: str) -> str:
    cleaned = str(url).strip().rstrip("/")
    if not cleaned.startswith(("http://", "https://")):
        raise ConfigurationError(f"Server URL must start with http:// or https:// (got '{url}').")
    return cleaned


def _validate_tui(settings: TUISettings) -> None:
    if settings.tick_ms <= 0:
        raise ConfigurationError("tui.tick_ms must be a positive number of milliseconds.")
    if settings.page_size <= 0:
        raise ConfigurationError("tui.page_size must be at least 1.")
    if settings.list_limit <= 0 or settings.preview_limit <= 0:
        raise ConfigurationError("tui.list_limit and tui.preview_limit must be at least 1.")


def _build_config(data: Mapping[str, Any], source_path: Path) -> AppConfig:
    try:
        server_cfg = data["server"]
        server = ServerSettings(
            url=_normalise_url(server_cfg["url"]),
            api_key_env=str(server_cfg["api_key_env"]),
            timeout_seconds=float(server_cfg["timeout_seconds"]),
            query_timeout_seconds=float(server_cfg["query_timeout_seconds"]),
        )
        tui_cfg = data["tui"]
        tui = TUISettings(
            tick_ms=int(tui_cfg["tick_ms"]),
            page_size=int(tui_cfg["page_size"]),
            list_limit=int(tui_cfg["list_limit"]),
            preview_limit=int(tui_cfg["preview_limit"]),
            color=bool(tui_cfg["color"]),
            fullscreen=bool(tui_cfg["fullscreen"]),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid configuration structure: {exc}") from exc

    _validate_tui(tui)
    return AppConfig(source_path=source_path, server=server, tui=tui)
