# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/labstrap/pipeline.py

from __future__ import annotations

import getpass
import logging
from dataclasses import dataclass
from typing import Optional

from labstrap.compose.launcher import StackLauncher
from labstrap.config.models import BootstrapConfig
from labstrap.docker.runtime import ContainerCli, DockerConvergence
from labstrap.errors import BootstrapError, ConfigurationError
from labstrap.execution import privilege
from labstrap.execution.runner import Executor
from labstrap.host.groups import GroupManager
from labstrap.host.packages import PackageManager
from labstrap.host.services import ServiceManager
from labstrap.materialize.certs import CertPair, check_certs
from labstrap.materialize.envfile import WriteResult, render_env, write_if_changed
from labstrap.mesh.models import MeshIdentity
from labstrap.mesh.tailscale import TailscaleClient
from labstrap.observers.dispatcher import EventBus
from labstrap.observers.events import RunFinished

log = logging.getLogger("labstrap")


@dataclass(frozen=True)
class BootstrapResult:
    identity: MeshIdentity
    env_result: WriteResult
    certs: CertPair
    cli: ContainerCli
    changes: int


class Bootstrapper:
    """
    Runs the whole convergence pipeline once:

      packages -> docker -> mesh identity -> .env -> certs check -> compose stack

    Every step re-probes the host before acting, so re-running after a
    failure is the recovery path. Nothing is rolled back.
    """

    def __init__(
        self,
        cfg: BootstrapConfig,
        executor: Executor,
        *,
        bus: Optional[EventBus] = None,
        user: Optional[str] = None,
    ):
        self.cfg = cfg
        self.executor = executor
        self.bus = bus or EventBus()
        self.user = user or getpass.getuser()

        # one instance each per run; PackageManager carries the
        # "index already refreshed" flag for the run
        self.packages = PackageManager(executor, bus=self.bus)
        self.services = ServiceManager(executor, bus=self.bus)
        self.groups = GroupManager(executor, bus=self.bus)
        self.docker = DockerConvergence(
            executor,
            packages=self.packages,
            services=self.services,
            groups=self.groups,
            user=self.user,
            bus=self.bus,
            service=cfg.docker_service,
            group=cfg.docker_group,
            install_url=cfg.docker_install_url,
            compose_package=cfg.compose_plugin_package,
        )
        self.mesh = TailscaleClient(
            executor,
            services=self.services,
            bus=self.bus,
            service=cfg.mesh_service,
            install_url=cfg.mesh_install_url,
        )

    def check_homelab_dir(self) -> None:
        log.info(f"==> Checking homelab directory exists: {self.cfg.homelab_dir}")
        if not self.cfg.homelab_dir.is_dir():
            raise ConfigurationError(
                f"Missing {self.cfg.homelab_dir}. (Clone/copy your homelab repo there first.)"
            )

    def run(self) -> BootstrapResult:
        try:
            self.check_homelab_dir()
            self.packages.ensure_installed(self.cfg.base_packages)

            cli = self.docker.converge()
            identity = self.mesh.acquire(self.cfg.auth_key)

            env_result = write_if_changed(
                self.cfg.env_file, render_env(identity), dry_run=self.executor.dry_run
            )
            if env_result is WriteResult.CHANGED:
                self.bus.changed("file", str(self.cfg.env_file), "write")
            else:
                self.bus.converged("file", str(self.cfg.env_file))

            certs = check_certs(
                self.cfg.certs_dir, identity.fqdn, bus=self.bus, dry_run=self.executor.dry_run
            )

            StackLauncher(
                self.executor, cli, candidates=self.cfg.compose_files
            ).launch(self.cfg.homelab_dir)
        except BootstrapError:
            self.bus.emit(RunFinished(**self.bus.ctx(), ok=False, changed=self.bus.changes))
            raise

        self.bus.emit(RunFinished(**self.bus.ctx(), ok=True, changed=self.bus.changes))
        return BootstrapResult(
            identity=identity,
            env_result=env_result,
            certs=certs,
            cli=cli,
            changes=self.bus.changes,
        )


def bootstrap(
    cfg: BootstrapConfig,
    *,
    dry_run: bool = False,
    bus: Optional[EventBus] = None,
) -> BootstrapResult:
    executor = privilege.resolve(helper=cfg.elevation_helper, dry_run=dry_run)
    return Bootstrapper(cfg, executor, bus=bus).run()
