# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Configuration loading for pipekit.

Config file lookup order:
1. Explicit path (--config)
2. $PIPEKIT_CONFIG
3. ~/.pipekit/config.yml

Recognised keys:
    workspace: Workspace root (pipes live in <workspace>/pipes)
    runtime: Path to the deno executable
    github_token: Token for the GitHub contents API
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

DEFAULT_WORKSPACE = "~/.pipekit"
DEFAULT_CONFIG_PATH = "~/.pipekit/config.yml"
KNOWN_KEYS = ("workspace", "runtime", "github_token")


class ConfigError(Exception):
    """Raised when the config file cannot be understood."""

    pass


def get_config_path(config_path: Optional[str] = None) -> Path:
    """Resolve which config file to read."""
    if config_path:
        return Path(config_path).expanduser()
    env_path = os.environ.get("PIPEKIT_CONFIG")
    if env_path:
        return Path(env_path).expanduser()
    return Path(DEFAULT_CONFIG_PATH).expanduser()


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load the YAML config.

    Args:
        config_path: Explicit config file. Must exist when given.

    Returns:
        Config mapping; empty when the default file does not exist.

    Raises:
        FileNotFoundError: If an explicit config file is missing.
        ConfigError: If the file is not valid YAML or not a mapping.
    """
    path = get_config_path(config_path)

    if not path.exists():
        if config_path or os.environ.get("PIPEKIT_CONFIG"):
            raise FileNotFoundError(f"Config file not found: {path}")
        return {}

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"config file {path} must contain a YAML mapping")
    return data


def get_workspace_root(config: Optional[Dict[str, Any]] = None) -> Path:
    """Workspace root: $PIPEKIT_DIR, then config 'workspace', then ~/.pipekit."""
    env_dir = os.environ.get("PIPEKIT_DIR")
    if env_dir:
        return Path(env_dir).expanduser()
    workspace = (config or {}).get("workspace")
    if workspace:
        return Path(str(workspace)).expanduser()
    return Path(DEFAULT_WORKSPACE).expanduser()


def get_runtime_path(config: Optional[Dict[str, Any]] = None) -> Optional[Path]:
    """Explicit deno path from config, if any."""
    runtime = (config or {}).get("runtime")
    return Path(str(runtime)).expanduser() if runtime else None


def get_github_token(config: Optional[Dict[str, Any]] = None) -> Optional[str]:
    """GitHub token from config (env vars are consulted by the fetcher)."""
    token = (config or {}).get("github_token")
    return str(token) if token else None
