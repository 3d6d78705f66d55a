"""Configuration module with environment variable validation.

This module loads the session settings from environment variables and
validates required values. The signing key is the only required value;
everything else has a default.
"""

import os
from dataclasses import dataclass
from functools import lru_cache

from stateless_session.errors import ConfigurationError


DEFAULT_COOKIE_NAME = "SESSION"

VALID_SAMESITE_VALUES = ("lax", "strict", "none")

TRUTHY_VALUES = ("true", "1", "yes")


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in TRUTHY_VALUES


@dataclass(frozen=True)
class SessionConfig:
    """Session configuration loaded from environment variables.

    Attributes:
        signing_key: Secret used to sign session cookies
        cookie_name: Name of the session cookie
        cookie_path: Path attribute of the session cookie
        cookie_secure: Whether to set the Secure flag on the cookie
        cookie_httponly: Whether to set the HttpOnly flag on the cookie
        cookie_samesite: SameSite policy for the cookie
        renew_after_invalidate: Whether get_or_create() after invalidate()
            starts a new session instead of returning the invalidated one
        log_level: Log level name for the application logger
    """

    signing_key: str
    cookie_name: str = DEFAULT_COOKIE_NAME
    cookie_path: str = "/"
    cookie_secure: bool = False
    cookie_httponly: bool = True
    cookie_samesite: str = "lax"
    renew_after_invalidate: bool = False
    log_level: str = "INFO"

    def __repr__(self) -> str:
        # Keep the signing key out of logs and tracebacks
        return (
            f"SessionConfig(cookie_name={self.cookie_name!r}, "
            f"cookie_path={self.cookie_path!r}, cookie_secure={self.cookie_secure}, "
            f"cookie_httponly={self.cookie_httponly}, "
            f"cookie_samesite={self.cookie_samesite!r}, "
            f"renew_after_invalidate={self.renew_after_invalidate}, "
            f"log_level={self.log_level!r})"
        )

    @classmethod
    def from_env(cls) -> "SessionConfig":
        """Load configuration from environment variables.

        Returns:
            SessionConfig instance with values from environment

        Raises:
            ConfigurationError: If a required environment variable is missing or
                a value is invalid
        """
        signing_key = os.environ.get("SESSION_SIGNING_KEY", "").strip()
        if not signing_key:
            raise ConfigurationError("SESSION_SIGNING_KEY")

        cookie_name = os.environ.get("SESSION_COOKIE_NAME", DEFAULT_COOKIE_NAME).strip()
        if not cookie_name:
            raise ConfigurationError("SESSION_COOKIE_NAME")

        cookie_samesite = os.environ.get("SESSION_COOKIE_SAMESITE", "lax").strip().lower()
        if cookie_samesite not in VALID_SAMESITE_VALUES:
            raise ConfigurationError(
                "SESSION_COOKIE_SAMESITE",
                f"must be one of {', '.join(VALID_SAMESITE_VALUES)}",
            )

        return cls(
            signing_key=signing_key,
            cookie_name=cookie_name,
            cookie_path=os.environ.get("SESSION_COOKIE_PATH", "/").strip() or "/",
            cookie_secure=_env_flag("SESSION_COOKIE_SECURE", "false"),
            cookie_httponly=_env_flag("SESSION_COOKIE_HTTPONLY", "true"),
            cookie_samesite=cookie_samesite,
            renew_after_invalidate=_env_flag("SESSION_RENEW_AFTER_INVALIDATE", "false"),
            log_level=os.environ.get("LOG_LEVEL", "INFO").strip() or "INFO",
        )


@lru_cache(maxsize=1)
def get_config() -> SessionConfig:
    """Get the session configuration (cached).

    Returns:
        SessionConfig instance

    Raises:
        ConfigurationError: If configuration is invalid
    """
    return SessionConfig.from_env()


def validate_config() -> bool:
    """Validate that all required configuration is present.

    Returns:
        True if configuration is valid

    Raises:
        ConfigurationError: If configuration is invalid
    """
    get_config()
    return True
