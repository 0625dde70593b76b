"""
Connection settings from MySQL-style option files or HashiCorp Vault.

Option files use ``key = value`` lines. Section headers, blank lines and
lines starting with ``#`` or ``;`` are ignored, so ``[client]`` and
``[mysql]`` groups are read as one flat namespace.
"""

import logging

import requests

from tablesync.db import DatabaseConfig
from tablesync.errors import ConfigError
from tablesync.utils.vault_client import VaultClient

logger = logging.getLogger(__name__)

ESCAPES = {
    "b": "\b",
    "t": "\t",
    "n": "\n",
    "r": "\r",
    "\\": "\\",
    "s": " ",
}


def unescape_value(text: str, terminator: str) -> str:
    """
    Decode backslash escapes in ``text`` up to the first bare ``terminator``.

    ``\\<terminator>`` yields the terminator itself; unknown escapes are
    kept as written, and so is a trailing backslash.
    """
    result = []
    escape = False

    for c in text:
        if escape:
            if c in ESCAPES:
                result.append(ESCAPES[c])
            else:
                if c != terminator:
                    result.append("\\")
                result.append(c)
            escape = False
        elif c == "\\":
            escape = True
        elif c == terminator:
            break
        else:
            result.append(c)

    if escape:
        result.append("\\")

    return "".join(result)


def parse_option_lines(lines) -> dict[str, str]:
    """Parse option-file lines into a flat key/value mapping; later keys win."""
    entries = {}

    for raw in lines:
        line = raw.strip()
        if not line or line[0] in "#;[":
            continue

        key, sep, value = line.partition("=")
        if not sep or "#" in key:
            continue

        key = key.strip()
        value = value.strip()

        if value[:1] in ("'", '"'):
            entries[key] = unescape_value(value[1:], value[0])
        else:
            entries[key] = unescape_value(value, "#").rstrip()

    return entries


def parse_option_file(path: str) -> dict[str, str]:
    """
    Read a MySQL-style option file.

    Raises:
        ConfigError: If the file cannot be read
    """
    try:
        with open(path, encoding="utf-8") as f:
            return parse_option_lines(f)
    except OSError as e:
        raise ConfigError(f"cannot open config file {path}", operation="load_config") from e


def config_from_entries(entries: dict, source: str) -> DatabaseConfig:
    """
    Build a :class:`DatabaseConfig` from parsed entries.

    ``host``, ``user`` and ``password`` are required; ``database`` and
    ``port`` are optional.

    Raises:
        ConfigError: If a required entry is missing or the port is not a number
    """
    for key in ("host", "user", "password"):
        if key not in entries:
            raise ConfigError(f"missing {key} in config file {source}", operation="load_config")

    port = entries.get("port")
    if port not in (None, ""):
        try:
            port = int(port)
        except (TypeError, ValueError) as e:
            raise ConfigError(
                f"invalid port {port!r} in config file {source}", operation="load_config"
            ) from e
    else:
        port = None

    return DatabaseConfig(
        host=str(entries["host"]),
        user=str(entries["user"]),
        password=str(entries["password"]),
        database=str(entries.get("database") or ""),
        port=port,
    )


def load_config(path: str) -> DatabaseConfig:
    """Load connection settings from the option file at ``path``."""
    config = config_from_entries(parse_option_file(path), path)
    logger.debug(f"Loaded {config.describe()} from {path}")
    return config


def load_config_from_vault(secret_path: str, client: VaultClient | None = None) -> DatabaseConfig:
    """
    Load connection settings from a Vault KV v2 secret.

    Raises:
        ConfigError: If Vault is not configured, unreachable, or the secret
            lacks required fields
    """
    try:
        client = client or VaultClient()
        secret = client.get_database_credentials(secret_path)
    except (ValueError, requests.RequestException) as e:
        raise ConfigError(
            f"cannot fetch credentials from Vault path {secret_path}: {e}",
            operation="load_config",
        ) from e

    return config_from_entries(secret, f"vault:{secret_path}")


def resolve_config(location: str, use_vault: bool = False) -> DatabaseConfig:
    """Load settings from an option file, or from Vault when ``use_vault`` is set."""
    if use_vault:
        return load_config_from_vault(location)
    return load_config(location)
