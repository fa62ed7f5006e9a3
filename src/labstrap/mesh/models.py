# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/labstrap/mesh/models.py

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class MeshState(str, Enum):
    NOT_INSTALLED = "NotInstalled"
    INSTALLED = "Installed"
    DAEMON_UP = "DaemonUp"
    DISCONNECTED = "Disconnected"
    CONNECTED = "Connected"
    IDENTITY_READY = "IdentityReady"


# ---------------------------------------------------------------------
# `tailscale status --json` (only the fields we consume)
# ---------------------------------------------------------------------
class SelfStatus(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    dns_name: Optional[str] = Field(default=None, alias="DNSName")


class DaemonStatus(BaseModel):
    """
    Absent fields stay None; an empty string is kept as-is so "not reported"
    and "reported empty" remain distinguishable until validation.
    """
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    backend_state: Optional[str] = Field(default=None, alias="BackendState")
    self_status: Optional[SelfStatus] = Field(default=None, alias="Self")

    @property
    def running(self) -> bool:
        return self.backend_state == "Running"

    @property
    def dns_name(self) -> Optional[str]:
        if self.self_status is None:
            return None
        return self.self_status.dns_name


@dataclass(frozen=True)
class MeshIdentity:
    address: str   # IPv4
    fqdn: str      # MagicDNS name, no trailing dot

    def as_env(self) -> Dict[str, str]:
        return {"TS_IP": self.address, "TS_FQDN": self.fqdn}
