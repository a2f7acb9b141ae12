"""
=============================================================================
APPLICATION CONFIGURATION
=============================================================================

All runtime settings live in one AppConfig value. It is built once at
startup (usually from the environment), validated, and then passed
explicitly to everything that needs it; nothing reads os.environ later.

=============================================================================
ENVIRONMENT VARIABLES
=============================================================================

    ┌────────────────┬───────────────┬──────────────────────────────────────┐
    │ Variable       │ Default       │ Meaning                              │
    ├────────────────┼───────────────┼──────────────────────────────────────┤
    │ JWT_SECRET     │ (required)    │ HMAC secret for session tokens       │
    │ HOST           │ 127.0.0.1     │ bind address (0.0.0.0 in containers) │
    │ PORT           │ 8080          │ listen port                          │
    │ WORKERS        │ 16            │ worker threads                       │
    │ LOG_LEVEL      │ INFO          │ DEBUG / INFO / WARNING / ERROR       │
    │ LOG_FORMAT     │ text          │ access log format: text or json      │
    │ COOKIE_SECURE  │ false         │ mark the session cookie Secure       │
    └────────────────┴───────────────┴──────────────────────────────────────┘

    JWT_SECRET=$(openssl rand -hex 32) PORT=8080 python -m grocerme

=============================================================================
FAIL-FAST
=============================================================================

validate() runs before the socket is opened. A missing secret is a
ConfigError at startup, never a 500 on the first /signin.

=============================================================================
"""

from dataclasses import dataclass
from typing import Mapping, Optional
import logging
import os

from .errors import ConfigError


logger = logging.getLogger(__name__)


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
MIN_SECRET_BYTES = 32
_TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass
class AppConfig:
    """
    Application configuration.

    Groups:
        network    host, port, backlog, buffer_size, timeout
        http       keep_alive, keep_alive_timeout, max_request_size
        workers    max_workers
        logging    log_level, log_format
        auth       jwt_secret, token_cookie_name, token_ttl, cookie_secure
    """

    # network
    host: str = "127.0.0.1"
    port: int = 8080
    backlog: int = 128
    buffer_size: int = 8192
    timeout: Optional[float] = 30.0

    # http
    keep_alive: bool = True
    keep_alive_timeout: float = 5.0
    max_request_size: int = 1024 * 1024

    # workers
    max_workers: int = 16

    # logging
    log_level: str = "INFO"
    log_format: str = "text"

    server_name: str = "grocerme/1.0"

    # auth
    jwt_secret: str = ""
    token_cookie_name: str = "jwt_token"
    token_ttl: int = 24 * 60 * 60
    cookie_secure: bool = False

    def __repr__(self) -> str:
        # keep the secret out of logs and tracebacks
        secret = "***" if self.jwt_secret else "''"
        return (
            f"AppConfig(host={self.host!r}, port={self.port}, "
            f"max_workers={self.max_workers}, log_level={self.log_level!r}, "
            f"jwt_secret={secret})"
        )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AppConfig":
        """
        Build a config from environment variables (see module docstring).

        Args:
            environ: Mapping to read instead of os.environ (tests).

        Raises:
            ConfigError: A numeric variable does not parse.
        """
        env = os.environ if environ is None else environ
        defaults = cls()

        try:
            port = int(env.get("PORT", defaults.port))
            workers = int(env.get("WORKERS", defaults.max_workers))
        except ValueError as e:
            raise ConfigError(f"Invalid numeric setting: {e}") from e

        return cls(
            host=env.get("HOST", defaults.host),
            port=port,
            max_workers=workers,
            log_level=env.get("LOG_LEVEL", defaults.log_level).upper(),
            log_format=env.get("LOG_FORMAT", defaults.log_format).lower(),
            jwt_secret=env.get("JWT_SECRET", ""),
            cookie_secure=env.get("COOKIE_SECURE", "").strip().lower() in _TRUE_VALUES,
        )

    def validate(self) -> None:
        """
        Check every setting; raise on the first bad one.

        Raises:
            ConfigError: Describing the invalid setting.
        """
        if not self.jwt_secret:
            raise ConfigError(
                "JWT_SECRET environment variable is not set. "
                "Set it to a long random string before starting the server."
            )
        if len(self.jwt_secret.encode("utf-8")) < MIN_SECRET_BYTES:
            logger.warning(
                f"JWT_SECRET is shorter than {MIN_SECRET_BYTES} bytes; "
                f"use a longer random secret in production"
            )

        if not 0 <= self.port < 65536:
            raise ConfigError(f"Invalid port: {self.port}. Must be 0-65535.")
        if self.max_workers < 1:
            raise ConfigError("max_workers must be >= 1")
        if self.buffer_size < 1024:
            raise ConfigError("buffer_size must be >= 1024")
        if self.timeout is not None and self.timeout <= 0:
            raise ConfigError("timeout must be > 0")
        if self.max_request_size < self.buffer_size:
            raise ConfigError("max_request_size must be >= buffer_size")
        if self.token_ttl <= 0:
            raise ConfigError("token_ttl must be > 0")
        if self.log_level not in LOG_LEVELS:
            raise ConfigError(f"Invalid log level: {self.log_level}")
        if self.log_format not in ("text", "json"):
            raise ConfigError(f"Invalid log format: {self.log_format}")
