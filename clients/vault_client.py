"""
HashiCorp Vault as a fallback source for startup secrets.

Settings consult Vault only for a secret missing from the environment, and
only when VAULT_ADDR is set. Login is AppRole. Every path is read under the
secret prefix (VAULT_SECRET_PREFIX, default 'adventure').

Each function takes an optional `env` mapping; without one the process
environment is used.
"""

import os
import logging
from typing import Dict, Mapping, Tuple

import hvac
from hvac.exceptions import InvalidPath, Unauthorized, Forbidden

logger = logging.getLogger(__name__)

DEFAULT_SECRET_PREFIX = "adventure"

# One authenticated client per (address, prefix), plus fetched values
_vault_clients: Dict[Tuple[str, str], "VaultClient"] = {}
_secret_cache: Dict[Tuple[str, str, str], str] = {}


def _env_or_process(env: Mapping[str, str] | None) -> Mapping[str, str]:
    return os.environ if env is None else env


def vault_configured(env: Mapping[str, str] | None = None) -> bool:
    """True if VAULT_ADDR is set, i.e. Vault should be consulted."""
    return bool(_env_or_process(env).get("VAULT_ADDR"))


class VaultClient:
    """AppRole-authenticated KV v2 reader scoped to one secret prefix.

    Construction logs in and raises if the address or AppRole credentials
    are missing, or if Vault refuses them.
    """

    def __init__(self, env: Mapping[str, str] | None = None):
        env = _env_or_process(env)
        self.vault_addr = env.get("VAULT_ADDR")
        self.secret_prefix = env.get("VAULT_SECRET_PREFIX") or DEFAULT_SECRET_PREFIX
        role_id = env.get("VAULT_ROLE_ID")
        secret_id = env.get("VAULT_SECRET_ID")

        if not self.vault_addr:
            raise ValueError("VAULT_ADDR environment variable is required")
        if not role_id or not secret_id:
            raise ValueError(
                "VAULT_ROLE_ID and VAULT_SECRET_ID environment variables are required"
            )

        client_kwargs = {"url": self.vault_addr}
        if env.get("VAULT_NAMESPACE"):
            client_kwargs["namespace"] = env["VAULT_NAMESPACE"]
        self.client = hvac.Client(**client_kwargs)

        self._login(role_id, secret_id)
        logger.info(f"Vault client ready: {self.vault_addr} prefix={self.secret_prefix}")

    def _login(self, role_id: str, secret_id: str) -> None:
        try:
            response = self.client.auth.approle.login(role_id=role_id, secret_id=secret_id)
            self.client.token = response["auth"]["client_token"]
        except Exception as e:
            logger.error(f"AppRole authentication failed: {e}")
            raise PermissionError(f"AppRole authentication failed: {e}")

        if not self.client.is_authenticated():
            raise PermissionError("Vault authentication failed")

    def get_secret(self, path: str, field: str) -> str:
        """
        Read one field of the KV v2 secret at '<prefix>/<path>'.

        Raises:
            PermissionError: Path missing or access denied.
            KeyError: Secret has no such field.
        """
        full_path = f"{self.secret_prefix}/{path}"

        try:
            response = self.client.secrets.kv.v2.read_secret_version(
                path=full_path, raise_on_deleted_version=True
            )
        except InvalidPath:
            logger.error(f"Secret path not found: {full_path}")
            raise PermissionError(f"Secret path '{full_path}' not found in Vault")
        except (Unauthorized, Forbidden) as e:
            logger.error(f"Access denied to secret {full_path}: {e}")
            raise PermissionError(f"Access denied to secret '{full_path}': {e}")

        secret_data = response["data"]["data"]
        if field not in secret_data:
            raise KeyError(
                f"Field '{field}' not found in secret '{full_path}'. "
                f"Available: {', '.join(secret_data)}"
            )
        return secret_data[field]


def _client_for(env: Mapping[str, str]) -> VaultClient:
    key = (env.get("VAULT_ADDR") or "", env.get("VAULT_SECRET_PREFIX") or DEFAULT_SECRET_PREFIX)
    client = _vault_clients.get(key)
    if client is None:
        client = VaultClient(env)
        _vault_clients[key] = client
    return client


def _cached_secret(path: str, field: str, env: Mapping[str, str] | None) -> str:
    env = _env_or_process(env)
    client = _client_for(env)
    cache_key = (client.vault_addr, f"{client.secret_prefix}/{path}", field)

    if cache_key not in _secret_cache:
        _secret_cache[cache_key] = client.get_secret(path, field)
    return _secret_cache[cache_key]


def get_database_url(env: Mapping[str, str] | None = None) -> str:
    """Get PostgreSQL connection URL from Vault."""
    return _cached_secret("database", "url", env)


def get_jwt_secret(env: Mapping[str, str] | None = None) -> str:
    """Get the token signing secret from Vault."""
    return _cached_secret("auth", "jwt_secret", env)
