# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/labstrap/docker/runtime.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from labstrap.errors import RuntimeAccessError
from labstrap.execution.installer import run_installer
from labstrap.execution.runner import Executor, command_exists
from labstrap.host.groups import GroupManager
from labstrap.host.packages import PackageManager
from labstrap.host.services import ServiceManager
from labstrap.observers.dispatcher import EventBus

log = logging.getLogger("labstrap")


@dataclass(frozen=True)
class ContainerCli:
    """
    Resolved way to run docker in this session: bare, or wrapped with the
    elevation helper when group membership is not active yet.
    """
    base: tuple[str, ...] = ("docker",)

    @property
    def elevated(self) -> bool:
        return len(self.base) > 1

    def command(self, *args: str) -> list[str]:
        return [*self.base, *args]

    def compose(self, *args: str) -> list[str]:
        return self.command("compose", *args)


class DockerConvergence:
    """
    Guarantees a working container command path:
      - docker installed (vendor convenience script)
      - docker daemon enabled + running
      - docker group exists, invoking user is a member
      - daemon reachable (falls back to elevation for this run)
      - compose plugin installed and working
    """

    def __init__(
        self,
        executor: Executor,
        *,
        packages: PackageManager,
        services: ServiceManager,
        groups: GroupManager,
        user: str,
        bus: Optional[EventBus] = None,
        service: str = "docker",
        group: str = "docker",
        install_url: str = "https://get.docker.com",
        compose_package: str = "docker-compose-plugin",
    ):
        self.executor = executor
        self.packages = packages
        self.services = services
        self.groups = groups
        self.user = user
        self.bus = bus or EventBus()
        self.service = service
        self.group = group
        self.install_url = install_url
        self.compose_package = compose_package

    # ------------------------- steps -------------------------

    def ensure_installed(self) -> None:
        if command_exists("docker"):
            version = (self.executor.probe(["docker", "--version"]).stdout or "").strip()
            log.info(f"==> Docker already installed: {version}")
            self.bus.converged("binary", "docker")
            return
        log.info("==> Docker not found. Installing Docker via official convenience script")
        run_installer(self.executor, self.install_url)
        self.bus.changed("binary", "docker", "install")

    def ensure_group_access(self) -> None:
        self.groups.ensure_group(self.group)
        # root never needs the group
        if not self.executor.privileged:
            self.groups.ensure_member(self.user, self.group)

    def resolve_cli(self) -> ContainerCli:
        """
        Prefer unprivileged docker; fall back to the elevation helper when
        the daemon refuses us (group membership not active in this session).
        """
        if self.executor.succeeds(["docker", "info"]):
            return ContainerCli()

        if not self.executor.can_elevate:
            raise RuntimeAccessError(
                "Docker is installed but cannot access the daemon (and no elevation helper is available)."
            )

        self.bus.advisory(
            "Docker requires elevation in this session "
            "(likely because docker group membership isn't active yet)."
        )
        return ContainerCli(base=(*self.executor.prefix, "docker"))

    def ensure_compose(self, cli: ContainerCli) -> None:
        if not self.executor.succeeds(["docker", "compose", "version"]):
            log.info(f"==> Docker Compose plugin not detected. Installing {self.compose_package}")
            self.packages.ensure_installed([self.compose_package])

        if not self.executor.succeeds(cli.compose("version")):
            raise RuntimeAccessError("Docker Compose is still unavailable. Check Docker installation.")

    # ------------------------- public API -------------------------

    def converge(self) -> ContainerCli:
        self.ensure_installed()
        self.services.ensure_running(self.service)
        self.ensure_group_access()
        cli = self.resolve_cli()
        self.ensure_compose(cli)
        return cli
