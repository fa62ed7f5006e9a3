# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/labstrap/host/packages.py

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from labstrap.errors import ConfigurationError
from labstrap.execution.runner import Executor, command_exists
from labstrap.observers.dispatcher import EventBus

log = logging.getLogger("labstrap")


class PackageManager:
    """
    apt/dpkg package convergence.

    The package index is refreshed at most once per instance; the
    pipeline holds exactly one instance per run.
    """

    def __init__(self, executor: Executor, bus: Optional[EventBus] = None):
        self.executor = executor
        self.bus = bus or EventBus()
        self.index_refreshed = False

    def is_installed(self, name: str) -> bool:
        return self.executor.succeeds(["dpkg", "-s", name])

    def missing(self, names: Iterable[str]) -> List[str]:
        return [n for n in sorted(set(names)) if not self.is_installed(n)]

    def refresh_index_once(self) -> None:
        if self.index_refreshed:
            return
        log.info("==> Updating apt package index")
        self.executor.run(["apt-get", "update", "-y"])
        self.index_refreshed = True
        self.bus.changed("package-index", "apt", "update")

    def ensure_installed(self, names: Iterable[str]) -> List[str]:
        """
        Install whichever of ``names`` are missing, in one batch.
        Returns the packages that were installed (empty when converged).
        """
        if not command_exists("apt-get"):
            raise ConfigurationError(
                "apt-get not found. Only Debian/Ubuntu/Raspberry Pi OS hosts are supported."
            )

        wanted = sorted(set(names))
        missing = self.missing(wanted)

        for name in wanted:
            if name not in missing:
                self.bus.converged("package", name)

        if not missing:
            log.debug(f"Packages already installed: {' '.join(wanted)}")
            return []

        log.info(f"==> Installing packages: {' '.join(missing)}")
        self.refresh_index_once()
        self.executor.run(["apt-get", "install", "-y", *missing])
        for name in missing:
            self.bus.changed("package", name, "install")
        return missing
