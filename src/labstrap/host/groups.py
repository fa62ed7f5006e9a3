# src/labstrap/host/groups.py

from __future__ import annotations

import logging
from typing import List, Optional

from labstrap.execution.runner import Executor
from labstrap.observers.dispatcher import EventBus

log = logging.getLogger("labstrap")

SESSION_WARNING = "Group membership changes require a logout/login (or reboot) to take effect."


class GroupManager:
    def __init__(self, executor: Executor, bus: Optional[EventBus] = None):
        self.executor = executor
        self.bus = bus or EventBus()

    def exists(self, group: str) -> bool:
        return self.executor.succeeds(["getent", "group", group])

    def groups_of(self, user: str) -> List[str]:
        cp = self.executor.probe(["id", "-nG", user])
        if cp.returncode != 0:
            return []
        return (cp.stdout or "").split()

    def ensure_group(self, group: str) -> bool:
        """Create ``group`` if missing. Returns True when it was created."""
        if self.exists(group):
            self.bus.converged("group", group)
            return False
        log.info(f"==> Creating '{group}' group")
        self.executor.run(["groupadd", group])
        self.bus.changed("group", group, "create")
        return True

    def ensure_member(self, user: str, group: str) -> bool:
        """
        Add ``user`` to ``group`` if needed. The change only applies to new
        login sessions, which is always reported as an advisory.
        """
        if group in self.groups_of(user):
            log.info(f"==> User '{user}' is already in the {group} group")
            self.bus.converged("group-membership", f"{user}:{group}")
            return False
        log.info(f"==> Adding user '{user}' to the {group} group")
        self.executor.run(["usermod", "-aG", group, user])
        self.bus.changed("group-membership", f"{user}:{group}", "add")
        self.bus.advisory(SESSION_WARNING)
        return True
