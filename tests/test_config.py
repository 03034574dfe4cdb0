from __future__ import annotations

from pathlib import Path

import pytest

from srccli.config import DEFAULT_API_URL, ClientConfig, default_config_path, load_config
from srccli.errors import ConfigError

CONFIG = """
api:
  url: https://forge.example.com/
  timeout: 12.5
auth:
  token: file-token
defaults:
  page_size: 50
logging:
  json_enabled: true
  level: INFO
"""


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding='utf-8')
    return path


def test_defaults_when_nothing_configured(isolated_env: dict[str, str]):
    cfg = load_config(environ=isolated_env)
    assert cfg.api_url == DEFAULT_API_URL
    assert cfg.token is None
    assert cfg.timeout == 30.0
    assert cfg.page_size == 30
    assert cfg.json_logging is False
    assert cfg.log_level == 'WARNING'
    assert cfg.source_file is None


def test_yaml_file_values(tmp_path: Path, isolated_env: dict[str, str]):
    path = _write(tmp_path / 'cfg.yaml', CONFIG)
    cfg = load_config(path, environ=isolated_env)
    assert cfg.api_url == 'https://forge.example.com'
    assert cfg.timeout == 12.5
    assert cfg.token == 'file-token'
    assert cfg.page_size == 50
    assert cfg.json_logging is True
    assert cfg.log_level == 'INFO'
    assert cfg.source_file == path


def test_default_location_under_xdg_config_home(isolated_env: dict[str, str]):
    path = default_config_path(isolated_env)
    assert path == Path(isolated_env['XDG_CONFIG_HOME']) / 'srccli' / 'config.yaml'
    _write(path, 'defaults:\n  page_size: 7\n')
    cfg = load_config(environ=isolated_env)
    assert cfg.page_size == 7
    assert cfg.source_file == path


def test_config_path_from_environment(tmp_path: Path, isolated_env: dict[str, str]):
    path = _write(tmp_path / 'other.yaml', 'api:\n  url: https://env.example.com\n')
    cfg = load_config(environ={**isolated_env, 'SRCCLI_CONFIG': str(path)})
    assert cfg.api_url == 'https://env.example.com'


def test_environment_overrides_file(tmp_path: Path, isolated_env: dict[str, str]):
    path = _write(tmp_path / 'cfg.yaml', CONFIG)
    env = {
        **isolated_env,
        'SRC_API_URL': 'https://override.example.com',
        'SRC_TOKEN': 'env-token',
        'SRC_TIMEOUT': '5',
        'SRC_PAGE_SIZE': '10',
        'SRC_JSON_LOGS': 'no',
        'SRC_LOG_LEVEL': 'DEBUG',
    }
    cfg = load_config(path, environ=env)
    assert cfg.api_url == 'https://override.example.com'
    assert cfg.token == 'env-token'
    assert cfg.timeout == 5.0
    assert cfg.page_size == 10
    assert cfg.json_logging is False
    assert cfg.log_level == 'DEBUG'


def test_dotenv_file_is_read(tmp_path: Path, isolated_env: dict[str, str]):
    _write(tmp_path / '.env', 'SRC_TOKEN=dotenv-token\nSRC_PAGE_SIZE=3\n')
    cfg = load_config(environ=isolated_env)
    assert cfg.token == 'dotenv-token'
    assert cfg.page_size == 3


def test_real_environment_beats_dotenv(tmp_path: Path, isolated_env: dict[str, str]):
    _write(tmp_path / '.env', 'SRC_TOKEN=dotenv-token\n')
    cfg = load_config(environ={**isolated_env, 'SRC_TOKEN': 'env-token'})
    assert cfg.token == 'env-token'


def test_dotenv_disabled(tmp_path: Path, isolated_env: dict[str, str]):
    _write(tmp_path / '.env', 'SRC_TOKEN=dotenv-token\n')
    cfg = load_config(environ=isolated_env, dotenv_path=None)
    assert cfg.token is None


def test_token_reference_resolved_from_environment(tmp_path: Path, isolated_env: dict[str, str]):
    path = _write(tmp_path / 'cfg.yaml', 'auth:\n  token: $FORGE_TOKEN\n')
    cfg = load_config(path, environ={**isolated_env, 'FORGE_TOKEN': 'resolved'})
    assert cfg.token == 'resolved'


def test_unresolved_token_reference_is_none(tmp_path: Path, isolated_env: dict[str, str]):
    path = _write(tmp_path / 'cfg.yaml', 'auth:\n  token: $FORGE_TOKEN\n')
    cfg = load_config(path, environ=isolated_env)
    assert cfg.token is None


def test_missing_explicit_file(tmp_path: Path, isolated_env: dict[str, str]):
    with pytest.raises(ConfigError, match='not found'):
        load_config(tmp_path / 'absent.yaml', environ=isolated_env)


def test_invalid_yaml(tmp_path: Path, isolated_env: dict[str, str]):
    path = _write(tmp_path / 'cfg.yaml', 'api: [unclosed\n')
    with pytest.raises(ConfigError, match='Invalid YAML'):
        load_config(path, environ=isolated_env)


def test_non_mapping_root(tmp_path: Path, isolated_env: dict[str, str]):
    path = _write(tmp_path / 'cfg.yaml', '- just\n- a list\n')
    with pytest.raises(ConfigError, match='mapping'):
        load_config(path, environ=isolated_env)


def test_empty_file_uses_defaults(tmp_path: Path, isolated_env: dict[str, str]):
    path = _write(tmp_path / 'cfg.yaml', '')
    cfg = load_config(path, environ=isolated_env)
    assert cfg.api_url == DEFAULT_API_URL


def test_bad_number_in_environment(isolated_env: dict[str, str]):
    with pytest.raises(ConfigError, match='SRC_PAGE_SIZE'):
        load_config(environ={**isolated_env, 'SRC_PAGE_SIZE': 'lots'})


def test_non_positive_timeout(isolated_env: dict[str, str]):
    with pytest.raises(ConfigError, match='timeout'):
        load_config(environ={**isolated_env, 'SRC_TIMEOUT': '0'})


def test_non_positive_page_size(tmp_path: Path, isolated_env: dict[str, str]):
    path = _write(tmp_path / 'cfg.yaml', 'defaults:\n  page_size: -1\n')
    with pytest.raises(ConfigError, match='page_size'):
        load_config(path, environ=isolated_env)


def test_with_overrides_skips_none():
    cfg = ClientConfig(token='keep')
    updated = cfg.with_overrides(token=None, api_url='https://x.example.com')
    assert updated.token == 'keep'
    assert updated.api_url == 'https://x.example.com'
    assert cfg.api_url == DEFAULT_API_URL
