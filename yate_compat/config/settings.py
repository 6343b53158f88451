"""
Configuration settings for the Yate compatibility layer.

Load from environment variables or .env file. Options passed to
get_engine() override these values.
"""

import logging
from typing import Any, Dict, Optional

from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class YateSettings(BaseSettings):
    """Yate connection and runtime settings."""

    # ============================================
    # CONNECTION (no host = stdio, script started by Yate)
    # ============================================
    YATE_HOST: Optional[str] = None
    YATE_PORT: int = 5040
    YATE_CHANNEL: bool = False
    YATE_ROLE: Optional[str] = None  # default: "channel" or "global"
    YATE_TRACKNAME: str = ""

    # ============================================
    # RECONNECT / TIMEOUTS
    # ============================================
    YATE_RECONNECT: bool = True
    YATE_RECONNECT_DELAY: float = 2.0
    YATE_MAX_RECONNECT_ATTEMPTS: int = 5
    YATE_CONNECT_TIMEOUT: float = 5.0
    YATE_DISPATCH_TIMEOUT: float = 10.0  # 0 disables
    YATE_SETLOCAL_TIMEOUT: float = 5.0

    # ============================================
    # PROCESS INTEGRATION
    # ============================================
    YATE_REDIRECT_STDOUT: bool = True  # stdio mode only
    YATE_CONFIGURE_LOGGING: bool = True
    DEBUG: bool = False

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"


# Legacy option name -> settings field
OPTION_FIELDS: Dict[str, str] = {
    "host": "YATE_HOST",
    "port": "YATE_PORT",
    "channel": "YATE_CHANNEL",
    "role": "YATE_ROLE",
    "trackname": "YATE_TRACKNAME",
    "reconnect": "YATE_RECONNECT",
    "reconnect_delay": "YATE_RECONNECT_DELAY",
    "max_reconnect_attempts": "YATE_MAX_RECONNECT_ATTEMPTS",
    "connect_timeout": "YATE_CONNECT_TIMEOUT",
    "dispatch_timeout": "YATE_DISPATCH_TIMEOUT",
    "setlocal_timeout": "YATE_SETLOCAL_TIMEOUT",
    "redirect_stdout": "YATE_REDIRECT_STDOUT",
    "configure_logging": "YATE_CONFIGURE_LOGGING",
    "debug": "DEBUG",
}


def settings_from_options(options: Optional[Dict[str, Any]] = None) -> YateSettings:
    """
    Builds settings from get_engine() options (e.g. {"host": "127.0.0.1"}).

    Unknown keys are ignored with a warning.
    """
    overrides: Dict[str, Any] = {}
    for key, value in (options or {}).items():
        field_name = OPTION_FIELDS.get(key)
        if field_name is None:
            logger.warning(f"Ignoring unknown Yate option: {key}")
            continue
        overrides[field_name] = value
    return YateSettings(**overrides)


# Singleton
_settings: Optional[YateSettings] = None


def get_yate_settings() -> YateSettings:
    global _settings
    if _settings is None:
        _settings = YateSettings()
    return _settings
