# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/labstrap/config/models.py

from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


def _default_homelab_dir() -> Path:
    return Path.home() / "homelab"


class BootstrapConfig(BaseModel):
    # Target directory holding the compose stack
    homelab_dir: Path = Field(default_factory=_default_homelab_dir)
    # Non-interactive mesh credential (TAILSCALE_AUTH_KEY)
    auth_key: Optional[str] = None

    elevation_helper: str = "sudo"

    # Packages
    base_packages: List[str] = ["curl", "ca-certificates", "jq"]
    compose_plugin_package: str = "docker-compose-plugin"

    # Container runtime
    docker_service: str = "docker"
    docker_group: str = "docker"
    docker_install_url: str = "https://get.docker.com"

    # Mesh client
    mesh_service: str = "tailscaled"
    mesh_install_url: str = "https://tailscale.com/install.sh"

    # Files
    compose_files: List[str] = [
        "docker-compose.yml",
        "docker-compose.yaml",
        "compose.yml",
        "compose.yaml",
    ]
    env_file_name: str = ".env"
    certs_subdir: str = "config/certs"

    @field_validator("homelab_dir", mode="before")
    @classmethod
    def _expand_home(cls, v):
        if isinstance(v, str):
            v = Path(v)
        return v.expanduser() if isinstance(v, Path) else v

    @field_validator("auth_key", mode="before")
    @classmethod
    def _blank_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("compose_files")
    @classmethod
    def _non_empty(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("compose_files must name at least one descriptor")
        return v

    @property
    def env_file(self) -> Path:
        return self.homelab_dir / self.env_file_name

    @property
    def certs_dir(self) -> Path:
        return self.homelab_dir / self.certs_subdir
