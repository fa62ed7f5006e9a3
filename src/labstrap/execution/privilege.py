# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/labstrap/execution/privilege.py

from __future__ import annotations

import logging
import os

from labstrap.errors import ConfigurationError
from labstrap.execution.runner import Executor, command_exists

log = logging.getLogger("labstrap")


def resolve(*, helper: str = "sudo", dry_run: bool = False) -> Executor:
    """
    Decide once per run how privileged actions are executed.

    Rules:
    - running as root -> commands run directly
    - otherwise the elevation helper must exist, and is prefixed to
      every privileged command
    """
    if os.geteuid() == 0:
        log.debug("Running as root; no elevation helper needed")
        return Executor(privileged=True, dry_run=dry_run)

    if not command_exists(helper):
        raise ConfigurationError(
            f"This tool needs root privileges. Install {helper} or run as root."
        )

    log.debug(f"Privileged commands will use {helper}")
    return Executor(prefix=(helper,), dry_run=dry_run)
