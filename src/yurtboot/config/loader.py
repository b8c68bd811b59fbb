# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/yurtboot/config/loader.py

import logging
import os
import socket
import yaml
from pathlib import Path
from typing import Callable, Optional

from pydantic import ValidationError

from .models import YurtConfig
from ..errors import ConfigError
from ..node.hostname import resolve_hostname

log = logging.getLogger("yurtboot")


def _deep_merge(base: dict, override: dict) -> dict:
    """
    Recursively merge *override* into *base* (mutates base).
    Only overwrites when the override value is non-empty.
    """
    for key, value in override.items():
        if (
            key in base
            and isinstance(base[key], dict)
            and isinstance(value, dict)
        ):
            _deep_merge(base[key], value)
        else:
            if value not in (None, ""):
                base[key] = value
    return base


def _find_secrets_file(config_path: Optional[Path]) -> Path | None:
    """
    Locate secrets.yaml using this priority:

    1. YURTBOOT_SECRETS_FILE environment variable (explicit override)
    2. secrets.yaml in the same directory as the config file
    """
    env = os.environ.get("YURTBOOT_SECRETS_FILE")
    if env:
        p = Path(env)
        if p.is_file():
            return p
        log.warning("YURTBOOT_SECRETS_FILE=%s does not exist, skipping", env)
        return None

    if config_path is not None:
        p = config_path.parent / "secrets.yaml"
        if p.is_file():
            return p

    return None


def _load_yaml(path: Path) -> dict:
    """Load a YAML file, expanding ${ENV_VAR} references."""
    try:
        raw = path.read_text()
    except OSError as e:
        raise ConfigError(f"cannot read {path}: {e}") from e
    expanded = os.path.expandvars(raw)
    try:
        data = yaml.safe_load(expanded) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping at the top level")
    return data


def _resolve_node_identity(data: dict, lookup: Callable[[], str]) -> None:
    """Normalize node names once, before validation freezes the config."""
    join = data.get("worker_join")
    if isinstance(join, dict):
        join["node_name"] = resolve_hostname(join.get("node_name") or "", lookup)

    expand = data.get("master_expand")
    if isinstance(expand, dict) and expand.get("worker_node_name"):
        expand["worker_node_name"] = resolve_hostname(expand["worker_node_name"], lookup)


def load_config(
    path: str | Path | None = None,
    overrides: Optional[dict] = None,
    *,
    hostname_lookup: Callable[[], str] = socket.gethostname,
) -> YurtConfig:
    """
    Build the run configuration.

    Sources, later ones winning for non-empty values:
      1. the YAML config file (``${ENV_VAR}`` placeholders expanded)
      2. ``secrets.yaml`` (``YURTBOOT_SECRETS_FILE`` or next to the config),
         useful for keeping join tokens out of the main file
      3. *overrides*, typically the CLI flags

    A missing worker node name is taken from *hostname_lookup*, which must
    ask the node the procedure runs on. Hostname errors propagate unchanged.
    """
    config_path = Path(path) if path else None
    data = _load_yaml(config_path) if config_path else {}

    secrets_path = _find_secrets_file(config_path)
    if secrets_path:
        log.debug("Merging secrets from %s", secrets_path)
        _deep_merge(data, _load_yaml(secrets_path))
    else:
        log.debug("No secrets.yaml found, proceeding without secrets merge")

    if overrides:
        _deep_merge(data, overrides)

    _resolve_node_identity(data, hostname_lookup)

    try:
        return YurtConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"invalid configuration:\n{e}") from e
