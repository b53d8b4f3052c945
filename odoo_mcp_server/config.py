# -*- coding: utf-8 -*-
"""Configuration models, YAML loading and environment overrides."""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

import yaml
from pydantic import BaseModel, Field

from .services.credentials import DEFAULT_TRANSPORT, Credentials

_logger = logging.getLogger(__name__)

_config: Optional["AppConfig"] = None


class ServerConfig(BaseModel):
    """Process-level server settings."""

    name: str = 'odoo-mcp-http-server'
    version: str = '1.0.0'
    protocol_version: str = '2024-11-05'
    host: str = '0.0.0.0'
    port: int = Field(default=3001, ge=0, le=65535)
    transport: Literal['http', 'stdio'] = 'http'
    auth_token: Optional[str] = Field(default=None, repr=False)
    log_level: str = 'info'
    request_timeout: int = Field(default=25, ge=1)
    sse_heartbeat_interval: float = Field(default=30.0, gt=0)
    max_response_kb: float = Field(default=1024.0, gt=0)
    # None keeps sessions until they are terminated explicitly
    session_ttl_seconds: Optional[int] = Field(default=None, ge=1)
    serialize_tool_calls: bool = True


class ShapingConfig(BaseModel):
    """Response-shaping switches for tools/list."""

    minimal_mode: bool = False
    minimal_mode_auto: bool = False
    simplify_schema: bool = False
    simplify_schema_auto: bool = False
    minimal_tools: List[str] = Field(default_factory=lambda: ['echo', 'odoo_version'])
    auto_detect_markers: List[str] = Field(default_factory=lambda: ['openai-mcp'])


class OdooConfig(BaseModel):
    """Backend credentials used for the global auto-login."""

    url: Optional[str] = None
    database: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = Field(default=None, repr=False)
    transport: str = DEFAULT_TRANSPORT

    @property
    def is_complete(self) -> bool:
        return all([self.url, self.database, self.username, self.password])

    def as_credentials(self) -> Optional[Credentials]:
        if not self.is_complete:
            return None
        return Credentials(
            url=self.url,
            database=self.database,
            username=self.username,
            password=self.password,
            transport=self.transport or DEFAULT_TRANSPORT,
        )


class AppConfig(BaseModel):
    server: ServerConfig = Field(default_factory=ServerConfig)
    shaping: ShapingConfig = Field(default_factory=ShapingConfig)
    odoo: OdooConfig = Field(default_factory=OdooConfig)


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _env_optional_int(value: str) -> Optional[int]:
    value = value.strip()
    return int(value) if value else None


# (environment variable, section, field, converter)
_ENV_OVERRIDES = [
    ('MCP_HTTP_HOST', 'server', 'host', str),
    ('MCP_HTTP_PORT', 'server', 'port', int),
    ('MCP_TRANSPORT', 'server', 'transport', str),
    ('MCP_AUTH_TOKEN', 'server', 'auth_token', str),
    ('MCP_LOG_LEVEL', 'server', 'log_level', str),
    ('MCP_MAX_RESPONSE_KB', 'server', 'max_response_kb', float),
    ('MCP_SESSION_TTL', 'server', 'session_ttl_seconds', _env_optional_int),
    ('MCP_SERIALIZE_TOOL_CALLS', 'server', 'serialize_tool_calls', _env_bool),
    ('MCP_MINIMAL_MODE', 'shaping', 'minimal_mode', _env_bool),
    ('MCP_MINIMAL_MODE_AUTO', 'shaping', 'minimal_mode_auto', _env_bool),
    ('MCP_SIMPLIFY_SCHEMA', 'shaping', 'simplify_schema', _env_bool),
    ('MCP_SIMPLIFY_SCHEMA_AUTO', 'shaping', 'simplify_schema_auto', _env_bool),
    ('ODOO_URL', 'odoo', 'url', str),
    ('ODOO_DATABASE', 'odoo', 'database', str),
    # ODOO_DB wins over ODOO_DATABASE when both are set
    ('ODOO_DB', 'odoo', 'database', str),
    ('ODOO_USERNAME', 'odoo', 'username', str),
    ('ODOO_PASSWORD', 'odoo', 'password', str),
    ('ODOO_TRANSPORT', 'odoo', 'transport', str),
]


def _apply_env_overrides(data: Dict[str, Any], environ) -> Dict[str, Any]:
    for env_name, section, field, convert in _ENV_OVERRIDES:
        value = environ.get(env_name)
        if value is None or value == '':
            continue
        data.setdefault(section, {})[field] = convert(value)
    return data


def load_config(path: Optional[str] = None, environ=None) -> AppConfig:
    """Load configuration from an optional YAML file plus environment variables.

    Args:
        path: YAML file path. Falls back to ``MCP_CONFIG``; a missing file
            means defaults.
        environ: Mapping used for overrides (defaults to ``os.environ``)

    Returns:
        AppConfig: Validated configuration
    """
    if environ is None:
        environ = os.environ

    path = path or environ.get('MCP_CONFIG')
    data: Dict[str, Any] = {}

    if path:
        config_path = Path(path)
        if config_path.exists():
            with open(config_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
            _logger.info(f"MCP: Loaded configuration from {config_path}")
        else:
            _logger.warning(f"MCP: Config file {config_path} not found, using defaults")

    data = _apply_env_overrides(data, environ)
    return AppConfig.model_validate(data)


def get_config() -> AppConfig:
    """Return the process-wide configuration, loading it on first use."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: AppConfig) -> None:
    global _config
    _config = config


def reset_config() -> None:
    global _config
    _config = None
