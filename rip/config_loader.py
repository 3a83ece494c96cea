"""Config Loader - Builds preconfigured Clients from YAML profile files.

Handles loading YAML config files with ${ENV_VAR} substitution and turning
a profile into a ready-to-use Client.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml

from rip.client import Client, new
from rip.errors import RipError
from rip.models import ClientConfig, ClientProfiles

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


class ConfigError(RipError):
    """Raised when configuration loading fails."""


def load_client_config(config_path: Path) -> ClientProfiles:
    """Load client profiles from YAML with ${ENV_VAR} substitution."""
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            raw_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file: {e}") from e

    if not isinstance(raw_config, dict):
        raise ConfigError("Config file must be a YAML mapping")

    raw_config = _substitute_env_vars(raw_config)

    try:
        return ClientProfiles.model_validate(raw_config)
    except Exception as e:
        raise ConfigError(f"Invalid config structure: {e}") from e


def client_from_config(config: ClientConfig) -> Client:
    """Build a Client from a single profile.

    Raises:
        ConfigError: If the base URL cannot be parsed.
    """
    client = new(config.base_url).with_append_slash(config.append_slash)
    if client.base_error is not None:
        raise ConfigError(str(client.base_error)) from client.base_error

    if config.headers:
        client = client.with_headers(config.headers)
    if config.query:
        client = client.with_query_values(config.query)
    if config.user_agent is not None:
        client = client.with_user_agent(config.user_agent)
    if config.timeout is not None:
        client = client.with_timeout(config.timeout)
    return client


def load_client(config_path: Path, profile: str) -> Client:
    """Load config_path and build the Client for the named profile."""
    profiles = load_client_config(config_path).profiles
    if profile not in profiles:
        available = ", ".join(sorted(profiles)) or "(none)"
        raise ConfigError(f"Profile '{profile}' not found. Available: {available}")
    return client_from_config(profiles[profile])


def _substitute_env_vars(data: Any) -> Any:
    """Recursively substitute ${ENV_VAR} patterns in strings within data."""
    if isinstance(data, str):
        return _substitute_string(data)
    elif isinstance(data, dict):
        return {k: _substitute_env_vars(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [_substitute_env_vars(item) for item in data]
    return data


def _substitute_string(s: str) -> str:
    """Substitute ${ENV_VAR} patterns. Raises ConfigError if env var is not set."""

    def replacer(match: re.Match) -> str:
        var_name = match.group(1)
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(f"Environment variable '{var_name}' is not set")
        return value

    return _ENV_VAR_PATTERN.sub(replacer, s)
