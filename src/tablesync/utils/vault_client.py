"""
HashiCorp Vault client for fetching MySQL credentials.

Reads secrets from the KV v2 secrets engine over the HTTP API.
"""

import logging
import os
import re
from typing import Any

import requests

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("host", "user", "password")


class VaultClient:
    """Minimal KV v2 client authenticated with a token."""

    def __init__(
        self,
        vault_addr: str | None = None,
        vault_token: str | None = None,
        namespace: str | None = None,
        timeout: float = 10.0,
    ):
        """
        Initialize Vault client

        Args:
            vault_addr: Vault server address (default: VAULT_ADDR env var)
            vault_token: Vault token (default: VAULT_TOKEN env var)
            namespace: Vault Enterprise namespace (optional)
            timeout: HTTP timeout in seconds

        Raises:
            ValueError: If the address or token is missing
        """
        self.vault_addr = vault_addr or os.getenv("VAULT_ADDR")
        self.vault_token = vault_token or os.getenv("VAULT_TOKEN")
        self.namespace = namespace
        self.timeout = timeout

        if not self.vault_addr:
            raise ValueError(
                "Vault address not provided. Set VAULT_ADDR environment variable "
                "or pass vault_addr parameter."
            )

        if not self.vault_token:
            raise ValueError(
                "Vault token not provided. Set VAULT_TOKEN environment variable "
                "or pass vault_token parameter."
            )

        self.vault_addr = self.vault_addr.rstrip("/")
        self.headers = {
            "X-Vault-Token": self.vault_token,
            "Content-Type": "application/json",
        }
        if self.namespace:
            self.headers["X-Vault-Namespace"] = self.namespace

    def get_secret(self, secret_path: str) -> dict[str, Any]:
        """
        Fetch a secret from the KV v2 engine.

        Args:
            secret_path: Path such as "secret/mysql/replica"; "/data/" is
                inserted after the mount point when absent

        Raises:
            ValueError: If the path is invalid or the secret is missing/empty
            requests.RequestException: If the request fails
        """
        if not secret_path or ".." in secret_path or secret_path.startswith("/"):
            raise ValueError(f"Invalid secret_path: {secret_path!r}")

        if not re.match(r"^[a-zA-Z0-9/_-]+$", secret_path):
            raise ValueError(
                f"Invalid secret_path: {secret_path}. "
                "Only alphanumeric characters, slashes, underscores, and hyphens are allowed."
            )

        if "/data/" not in secret_path:
            mount, _, rest = secret_path.partition("/")
            secret_path = f"{mount}/data/{rest}" if rest else f"{mount}/data"

        url = f"{self.vault_addr}/v1/{secret_path}"
        logger.debug(f"Fetching secret from: {url}")

        response = requests.get(url, headers=self.headers, timeout=self.timeout)
        if response.status_code == 404:
            raise ValueError(f"Secret not found at path: {secret_path}")
        response.raise_for_status()

        secret_data = response.json().get("data", {}).get("data", {})
        if not secret_data:
            raise ValueError(f"No data found in secret at path: {secret_path}")

        return secret_data

    def get_database_credentials(self, secret_path: str) -> dict[str, Any]:
        """
        Fetch MySQL credentials stored at ``secret_path``.

        Returns:
            Secret data with at least host, user and password; database and
            port are passed through when present

        Raises:
            ValueError: If required fields are missing
        """
        secret_data = self.get_secret(secret_path)

        missing_fields = [f for f in REQUIRED_FIELDS if f not in secret_data]
        if missing_fields:
            raise ValueError(
                f"Missing required fields in secret {secret_path}: {', '.join(missing_fields)}"
            )

        logger.info(f"Fetched database credentials from Vault path {secret_path}")
        return secret_data
