"""Application settings, read once at startup.

Environment first (a local .env is loaded by the caller), then Vault for the
two secrets when VAULT_ADDR is set. Vault reads the same mapping as the
rest of the settings. A missing database URL or signing secret is fatal.
"""

import logging
import os
from typing import Mapping

from pydantic import BaseModel, Field, ValidationError

from auth.config import AuthConfig
from auth.exceptions import ConfigurationError
from clients import vault_client

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_NAME = "adventure"


class AppSettings(BaseModel):
    """Process-wide configuration."""

    database_url: str = Field(..., min_length=1, repr=False)
    database_name: str = Field(default=DEFAULT_DATABASE_NAME, min_length=1)
    jwt_secret: str = Field(..., min_length=1, repr=False)
    service_name: str = Field(default="api")
    auth: AuthConfig = Field(default_factory=AuthConfig)


def _required_secret(env: Mapping[str, str], env_name: str, vault_getter, description: str) -> str:
    value = env.get(env_name)
    if value:
        return value

    if vault_client.vault_configured(env):
        try:
            return vault_getter(env)
        except (ValueError, KeyError, PermissionError) as e:
            raise ConfigurationError(f"{description} not available from Vault: {e}") from e

    raise ConfigurationError(f"{env_name} environment variable is not set")


def load_settings(env: Mapping[str, str] | None = None) -> AppSettings:
    """Build AppSettings from environment variables.

    Raises:
        ConfigurationError: Required value missing or a value fails validation.
    """
    if env is None:
        env = os.environ

    database_url = _required_secret(
        env, "DATABASE_URL", vault_client.get_database_url, "Database URL"
    )
    jwt_secret = _required_secret(
        env, "JWT_SECRET", vault_client.get_jwt_secret, "Token signing secret"
    )

    auth_values = {}
    if env.get("JWT_EXPIRES_IN"):
        auth_values["token_expiry"] = env["JWT_EXPIRES_IN"]
    if env.get("RATE_LIMIT_WINDOW_MS"):
        auth_values["rate_limit_window_ms"] = env["RATE_LIMIT_WINDOW_MS"]
    if env.get("RATE_LIMIT_MAX"):
        auth_values["rate_limit_max_requests"] = env["RATE_LIMIT_MAX"]
    if env.get("PASSWORD_MIN_LENGTH"):
        auth_values["password_min_length"] = env["PASSWORD_MIN_LENGTH"]

    try:
        settings = AppSettings(
            database_url=database_url,
            database_name=env.get("DATABASE_NAME") or DEFAULT_DATABASE_NAME,
            jwt_secret=jwt_secret,
            auth=AuthConfig(**auth_values),
        )
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e

    logger.info(
        f"Settings loaded: database={settings.database_name}, "
        f"rate_limit={settings.auth.rate_limit_max_requests}/{settings.auth.rate_limit_window_ms}ms"
    )
    return settings
