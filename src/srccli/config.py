from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, cast

import yaml
from dotenv import dotenv_values

from .errors import ConfigError

DEFAULT_API_URL = "https://api.sourcecraft.tech"
DEFAULT_TIMEOUT = 30.0
DEFAULT_PAGE_SIZE = 30
CONFIG_ENV_VAR = "SRCCLI_CONFIG"


def default_config_path(env: Mapping[str, str] | None = None) -> Path:
    env = os.environ if env is None else env
    base = env.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base) / "srccli" / "config.yaml"


@dataclass
class ClientConfig:
    api_url: str = DEFAULT_API_URL
    token: str | None = None
    timeout: float = DEFAULT_TIMEOUT
    page_size: int = DEFAULT_PAGE_SIZE
    json_logging: bool = False
    log_level: str = "WARNING"
    source_file: Path | None = None

    def with_overrides(self, **overrides: Any) -> ClientConfig:
        """Return a copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def _resolve_env_var(value: Any, env: Mapping[str, str]) -> Any:
    """Resolve ``$NAME`` values from the environment."""
    if isinstance(value, str) and value.startswith('$'):
        return env.get(value[1:], None)
    return value


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {'1', 'true', 'yes', 'on'}
    return bool(value)


def _as_int(value: Any, name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f'{name} must be an integer, got {value!r}') from exc


def _as_float(value: Any, name: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f'{name} must be a number, got {value!r}') from exc


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        raw = yaml.safe_load(path.read_text(encoding='utf-8'))
    except yaml.YAMLError as exc:
        raise ConfigError(f'Invalid YAML in {path}: {exc}') from exc
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f'Configuration root must be a mapping: {path}')
    return cast(dict[str, Any], raw)


def _apply_file(cfg: ClientConfig, raw: dict[str, Any], env: Mapping[str, str]) -> ClientConfig:
    api = cast(dict[str, Any], raw.get('api', {}) or {})
    auth = cast(dict[str, Any], raw.get('auth', {}) or {})
    defaults = cast(dict[str, Any], raw.get('defaults', {}) or {})
    logging_config = cast(dict[str, Any], raw.get('logging', {}) or {})

    return cfg.with_overrides(
        api_url=api.get('url'),
        timeout=_as_float(api['timeout'], 'api.timeout') if 'timeout' in api else None,
        token=_resolve_env_var(auth.get('token'), env),
        page_size=(
            _as_int(defaults['page_size'], 'defaults.page_size')
            if 'page_size' in defaults
            else None
        ),
        json_logging=(
            _as_bool(logging_config['json_enabled'])
            if 'json_enabled' in logging_config
            else None
        ),
        log_level=logging_config.get('level'),
    )


def _apply_env(cfg: ClientConfig, env: Mapping[str, str]) -> ClientConfig:
    return cfg.with_overrides(
        api_url=env.get('SRC_API_URL') or None,
        token=env.get('SRC_TOKEN') or None,
        timeout=_as_float(env['SRC_TIMEOUT'], 'SRC_TIMEOUT') if env.get('SRC_TIMEOUT') else None,
        page_size=(
            _as_int(env['SRC_PAGE_SIZE'], 'SRC_PAGE_SIZE') if env.get('SRC_PAGE_SIZE') else None
        ),
        json_logging=_as_bool(env['SRC_JSON_LOGS']) if env.get('SRC_JSON_LOGS') else None,
        log_level=env.get('SRC_LOG_LEVEL') or None,
    )


def load_config(
    path: str | Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    dotenv_path: str | Path | None = '.env',
) -> ClientConfig:
    """Build a ClientConfig from file, ``.env`` and environment.

    Later sources win: defaults, YAML file, ``.env`` values, real environment.
    An explicitly requested file (argument or ``$SRCCLI_CONFIG``) must exist;
    the default location is optional.
    """
    env: dict[str, str] = {}
    if dotenv_path is not None and Path(dotenv_path).is_file():
        env.update({k: v for k, v in dotenv_values(dotenv_path).items() if v is not None})
    env.update(os.environ if environ is None else environ)

    explicit = path if path is not None else env.get(CONFIG_ENV_VAR)
    cfg = ClientConfig()
    if explicit:
        p = Path(explicit).expanduser()
        if not p.exists():
            raise ConfigError(f'Configuration file not found: {p}')
    else:
        p = default_config_path(env)
    if p.is_file():
        cfg = _apply_file(cfg, _read_yaml(p), env)
        cfg.source_file = p

    cfg = _apply_env(cfg, env)
    if cfg.timeout <= 0:
        raise ConfigError(f'timeout must be positive, got {cfg.timeout}')
    if cfg.page_size <= 0:
        raise ConfigError(f'page_size must be positive, got {cfg.page_size}')
    cfg.api_url = cfg.api_url.rstrip('/')
    return cfg


__all__ = ['ClientConfig', 'ConfigError', 'DEFAULT_API_URL', 'load_config', 'default_config_path']
