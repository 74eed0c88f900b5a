# gmoryx/app/config.py
import os
from typing import Mapping, Optional

from pydantic import BaseModel, field_validator

from .api import SERVER_IDENTITY
from .httpd import parse_bind_address

DEFAULT_BIND_ADDRESS = ':8080'
LOG_LEVELS = ('critical', 'error', 'warning', 'info', 'debug', 'trace')

ENV_PREFIX = 'GMORYX_'


class ServerConfig(BaseModel):
    bind_address: str = DEFAULT_BIND_ADDRESS
    server_identity: Optional[str] = SERVER_IDENTITY
    log_level: str = 'info'
    shutdown_timeout: float = 5.0

    @field_validator('bind_address')
    @classmethod
    def _check_bind_address(cls, v: str) -> str:
        parse_bind_address(v)
        return v

    @field_validator('log_level')
    @classmethod
    def _check_log_level(cls, v: str) -> str:
        v = v.lower()
        if v not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return v

    @field_validator('shutdown_timeout')
    @classmethod
    def _check_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("shutdown_timeout must be positive")
        return v

    @property
    def host(self) -> str:
        return parse_bind_address(self.bind_address)[0]

    @property
    def port(self) -> int:
        return parse_bind_address(self.bind_address)[1]


def load_config(environ: Optional[Mapping[str, str]] = None) -> ServerConfig:
    """Defaults overridden by GMORYX_* environment variables."""
    if environ is None:
        environ = os.environ
    values = {}
    for field in ServerConfig.model_fields:
        key = ENV_PREFIX + field.upper()
        if key in environ:
            values[field] = environ[key]
    # an empty identity turns the Server header off
    if values.get('server_identity') == '':
        values['server_identity'] = None
    return ServerConfig(**values)
