# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/labstrap/config/loader.py

import logging
import os
import re
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml
from pydantic import ValidationError

from labstrap.errors import ConfigurationError
from .models import BootstrapConfig

log = logging.getLogger("labstrap")

# environment variable -> config field
ENV_OVERRIDES = {
    "HOMELAB_DIR": "homelab_dir",
    "TAILSCALE_AUTH_KEY": "auth_key",
}


_ENV_REF = re.compile(r"\$\{([^}^{]+)\}")


def expand_env_vars(value: str, env: Mapping[str, str]) -> str:
    """Replace ${NAME} with env[NAME]; unknown names are left as-is."""
    return _ENV_REF.sub(lambda m: env.get(m.group(1), m.group(0)), value)


def _load_yaml(path: Path, env: Mapping[str, str]) -> dict:
    """Load a YAML file, expanding ${ENV_VAR} references from ``env``."""
    if not path.is_file():
        raise ConfigurationError(f"Config file not found: {path}")
    raw = path.read_text()
    try:
        data = yaml.safe_load(expand_env_vars(raw, env)) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")
    return data


def load_config(
    path: str | Path | None = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> BootstrapConfig:
    """
    Build the run configuration.

    Precedence (lowest to highest):
      1. model defaults
      2. YAML file (``path`` or ``LABSTRAP_CONFIG``)
      3. ``HOMELAB_DIR`` / ``TAILSCALE_AUTH_KEY`` environment variables
      4. ``overrides`` (CLI flags); ``None`` values are ignored
    """
    env = os.environ if environ is None else environ

    data: dict = {}
    if path is None and env.get("LABSTRAP_CONFIG"):
        path = env["LABSTRAP_CONFIG"]
    if path is not None:
        log.debug("Loading config from %s", path)
        data.update(_load_yaml(Path(path), env))

    for var, field in ENV_OVERRIDES.items():
        value = env.get(var)
        if value:
            data[field] = value

    if "homelab_dir" not in data and env.get("HOME"):
        data["homelab_dir"] = Path(env["HOME"]) / "homelab"

    for key, value in (overrides or {}).items():
        if value not in (None, ""):
            data[key] = value

    try:
        return BootstrapConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc
