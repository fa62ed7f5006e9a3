# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/labstrap/mesh/tailscale.py

from __future__ import annotations

import ipaddress
import logging
from typing import Optional

from pydantic import ValidationError

from labstrap.errors import IdentityUnavailableError
from labstrap.execution.installer import run_installer
from labstrap.execution.runner import Executor, command_exists
from labstrap.host.services import ServiceManager
from labstrap.observers.dispatcher import EventBus
from .models import DaemonStatus, MeshIdentity, MeshState

log = logging.getLogger("labstrap")

LOGIN_URL_WARNING = "If you were shown a login URL, open it to authenticate this device."


class TailscaleClient:
    """
    Drives the mesh client from NotInstalled to IdentityReady:

        NotInstalled -> Installed -> DaemonUp -> (Disconnected ->) Connected -> IdentityReady

    After an interactive login the connection is assumed, not re-verified;
    the identity query right after it is what surfaces a pending login.
    """

    def __init__(
        self,
        executor: Executor,
        *,
        services: ServiceManager,
        bus: Optional[EventBus] = None,
        service: str = "tailscaled",
        install_url: str = "https://tailscale.com/install.sh",
    ):
        self.executor = executor
        self.services = services
        self.bus = bus or EventBus()
        self.service = service
        self.install_url = install_url
        self.state = MeshState.NOT_INSTALLED

    def _transition(self, state: MeshState) -> None:
        log.debug(f"[mesh] {self.state.value} -> {state.value}")
        self.state = state

    # ------------------------- queries -------------------------

    def installed(self) -> bool:
        return command_exists("tailscale")

    def status(self) -> DaemonStatus:
        """
        Parse ``tailscale status --json``. The command exits non-zero while
        logged out but still prints JSON, so stdout is parsed whenever there
        is any. No output or unparsable output degrades to an empty status.
        """
        cp = self.executor.probe(["tailscale", "status", "--json"])
        if not (cp.stdout or "").strip():
            log.debug(f"tailscale status printed nothing (exit {cp.returncode})")
            return DaemonStatus()
        try:
            return DaemonStatus.model_validate_json(cp.stdout)
        except ValidationError as exc:
            log.debug(f"Unparsable tailscale status: {exc}")
            return DaemonStatus()

    def read_address(self) -> Optional[str]:
        """First line of ``tailscale ip -4``; None when the command fails."""
        cp = self.executor.probe(["tailscale", "ip", "-4"])
        if cp.returncode != 0:
            return None
        lines = (cp.stdout or "").splitlines()
        return lines[0].strip() if lines else ""

    def identity(self) -> MeshIdentity:
        log.info("==> Reading Tailscale identity (IP + DNS name)")
        address = self.read_address()
        dns_name = self.status().dns_name

        if not address:
            raise IdentityUnavailableError(
                "Could not determine Tailscale IPv4 address. Is Tailscale connected?"
            )
        try:
            ipaddress.IPv4Address(address)
        except ipaddress.AddressValueError as exc:
            raise IdentityUnavailableError(
                f"Tailscale reported an invalid IPv4 address: {address!r}"
            ) from exc

        fqdn = (dns_name or "").rstrip(".")
        if not fqdn:
            raise IdentityUnavailableError(
                "Could not determine Tailscale DNS name. Ensure MagicDNS is enabled in Tailscale."
            )

        log.info(f"==> Tailscale IP:  {address}")
        log.info(f"==> Tailscale DNS: {fqdn}")
        return MeshIdentity(address=address, fqdn=fqdn)

    # ------------------------- convergence -------------------------

    def ensure_installed(self) -> None:
        if self.installed():
            cp = self.executor.probe(["tailscale", "version"])
            first = ((cp.stdout or "").splitlines() or [""])[0]
            log.info(f"==> Tailscale already installed: {first}")
            self.bus.converged("binary", "tailscale")
        else:
            log.info("==> Tailscale not found. Installing Tailscale")
            run_installer(self.executor, self.install_url)
            self.bus.changed("binary", "tailscale", "install")
        self._transition(MeshState.INSTALLED)

    def connect(self, auth_key: Optional[str] = None) -> None:
        if auth_key:
            log.info("==> Connecting Tailscale using TAILSCALE_AUTH_KEY (non-interactive)")
            self.executor.run(["tailscale", "up", f"--auth-key={auth_key}"], redact=[auth_key])
        else:
            log.info("==> Connecting Tailscale interactively (you may get a login URL)")
            self.executor.run(["tailscale", "up"])
            self.bus.advisory(LOGIN_URL_WARNING)
        self.bus.changed("mesh-connection", "tailscale", "up")

    def acquire(self, auth_key: Optional[str] = None) -> MeshIdentity:
        self.state = MeshState.NOT_INSTALLED
        self.ensure_installed()

        self.services.ensure_running(self.service)
        self._transition(MeshState.DAEMON_UP)

        status = self.status()
        if status.running:
            log.info("==> Tailscale already connected")
            self.bus.converged("mesh-connection", "tailscale")
        else:
            log.info(f"==> Tailscale is not connected (BackendState: {status.backend_state or 'unknown'})")
            self._transition(MeshState.DISCONNECTED)
            self.connect(auth_key)
        self._transition(MeshState.CONNECTED)

        identity = self.identity()
        self._transition(MeshState.IDENTITY_READY)
        return identity
