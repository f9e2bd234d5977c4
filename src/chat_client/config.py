"""
Client Configuration

Loads the server URL, bearer token and client tunables. Values from a local
``.env`` file act as defaults and the process environment overrides them.

Keys:
    CHAT_CLIENT_SERVER_HOST       WebSocket URL of the chat server (required)
    CHAT_CLIENT_AUTH_TOKEN        Token sent verbatim in Authorization (required)
    CHAT_CLIENT_READ_TIMEOUT      Read deadline in seconds (default 30)
    CHAT_CLIENT_DIAL_RETRIES      Extra dial attempts (default 0)
    CHAT_CLIENT_DIAL_RETRY_DELAY  Seconds between dial attempts (default 5)
    CHAT_CLIENT_LOG_LEVEL         Logging level name (default WARNING)
    CHAT_CLIENT_LOG_FILE          Log file path (default chat_client.log)
"""

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import dotenv_values

from .errors import ConfigError, ConfigMissingError

logger = logging.getLogger(__name__)

ENV_PREFIX = "CHAT_CLIENT_"

DEFAULT_ENV_FILE = ".env"
DEFAULT_READ_TIMEOUT = 30.0
DEFAULT_DIAL_RETRIES = 0
DEFAULT_DIAL_RETRY_DELAY = 5.0
DEFAULT_LOG_LEVEL = "WARNING"
DEFAULT_LOG_FILE = "chat_client.log"


@dataclass(frozen=True)
class ClientConfig:
    """
    Settings needed to start a chat session.

    Attributes:
        server_url: WebSocket URL of the chat server
        auth_token: Bearer token placed in the Authorization header
        read_timeout: Seconds a read may wait without a server ping
        dial_retries: Additional dial attempts after the first failure
        dial_retry_delay: Seconds to wait between dial attempts
        log_level: Name of the logging level
        log_file: Path of the log file
    """

    server_url: str
    auth_token: str
    read_timeout: float = DEFAULT_READ_TIMEOUT
    dial_retries: int = DEFAULT_DIAL_RETRIES
    dial_retry_delay: float = DEFAULT_DIAL_RETRY_DELAY
    log_level: str = DEFAULT_LOG_LEVEL
    log_file: str = DEFAULT_LOG_FILE


def _merged_settings(
    env_file: Optional[str], environ: Optional[Mapping[str, str]]
) -> dict:
    settings = {}
    if env_file and os.path.isfile(env_file):
        logger.debug("Reading settings from %s", env_file)
        for key, value in dotenv_values(env_file).items():
            if value is not None:
                settings[key] = value
    if environ is None:
        environ = os.environ
    for key, value in environ.items():
        if key.startswith(ENV_PREFIX):
            settings[key] = value
    return settings


def _required(settings: dict, name: str) -> str:
    key = ENV_PREFIX + name
    value = settings.get(key, "").strip()
    if not value:
        raise ConfigMissingError(key)
    return value


def _number(settings: dict, name: str, default, cast):
    key = ENV_PREFIX + name
    raw = settings.get(key, "").strip()
    if not raw:
        return default
    try:
        value = cast(raw)
    except ValueError:
        raise ConfigError(f"{key} must be a number, got {raw!r}")
    if value < 0:
        raise ConfigError(f"{key} must not be negative, got {raw!r}")
    return value


def load_config(
    env_file: Optional[str] = DEFAULT_ENV_FILE,
    environ: Optional[Mapping[str, str]] = None,
) -> ClientConfig:
    """
    Resolve the client configuration.

    Args:
        env_file: Path of the dotenv file; skipped when it does not exist
        environ: Environment mapping, defaults to ``os.environ``

    Returns:
        ClientConfig with every setting resolved

    Raises:
        ConfigMissingError: If the server host or auth token is absent
        ConfigError: If a numeric setting cannot be parsed
    """
    settings = _merged_settings(env_file, environ)

    config = ClientConfig(
        server_url=_required(settings, "SERVER_HOST"),
        auth_token=_required(settings, "AUTH_TOKEN"),
        read_timeout=_number(
            settings, "READ_TIMEOUT", DEFAULT_READ_TIMEOUT, float
        ),
        dial_retries=_number(
            settings, "DIAL_RETRIES", DEFAULT_DIAL_RETRIES, int
        ),
        dial_retry_delay=_number(
            settings, "DIAL_RETRY_DELAY", DEFAULT_DIAL_RETRY_DELAY, float
        ),
        log_level=settings.get(ENV_PREFIX + "LOG_LEVEL")
        or DEFAULT_LOG_LEVEL,
        log_file=settings.get(ENV_PREFIX + "LOG_FILE") or DEFAULT_LOG_FILE,
    )
    logger.info("Configuration loaded for server %s", config.server_url)
    return config
