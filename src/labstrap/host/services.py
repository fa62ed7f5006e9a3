# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/labstrap/host/services.py

from __future__ import annotations

import logging
from typing import Optional

from labstrap.execution.runner import Executor, command_exists
from labstrap.observers.dispatcher import EventBus
from .models import ManagedService

log = logging.getLogger("labstrap")


class ServiceManager:
    """systemd service convergence: enabled at boot and currently running."""

    def __init__(self, executor: Executor, bus: Optional[EventBus] = None):
        self.executor = executor
        self.bus = bus or EventBus()

    def available(self) -> bool:
        return command_exists("systemctl")

    def is_enabled(self, name: str) -> bool:
        return self.executor.succeeds(["systemctl", "is-enabled", "--quiet", name], elevated=True)

    def is_active(self, name: str) -> bool:
        return self.executor.succeeds(["systemctl", "is-active", "--quiet", name], elevated=True)

    def status(self, name: str) -> ManagedService:
        return ManagedService(name=name, enabled=self.is_enabled(name), active=self.is_active(name))

    def ensure_running(self, name: str) -> Optional[ManagedService]:
        """
        Enable and start ``name`` if needed.
        Returns None when the host has no service manager (advisory only).
        """
        if not self.available():
            self.bus.advisory(f"systemctl not found; cannot auto-manage service: {name}")
            return None

        if self.is_enabled(name):
            self.bus.converged("service-enabled", name)
        else:
            log.info(f"==> Enabling service: {name}")
            self.executor.run(["systemctl", "enable", name])
            self.bus.changed("service-enabled", name, "enable")

        if self.is_active(name):
            self.bus.converged("service-active", name)
        else:
            log.info(f"==> Starting service: {name}")
            self.executor.run(["systemctl", "start", name])
            self.bus.changed("service-active", name, "start")

        return self.status(name)
