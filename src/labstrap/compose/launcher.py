# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/labstrap/compose/launcher.py

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Sequence

from labstrap.docker.runtime import ContainerCli
from labstrap.errors import ConfigurationError
from labstrap.execution.runner import Executor

log = logging.getLogger("labstrap")

COMPOSE_FILES = (
    "docker-compose.yml",
    "docker-compose.yaml",
    "compose.yml",
    "compose.yaml",
)


def find_descriptor(directory: Path, candidates: Sequence[str] = COMPOSE_FILES) -> Optional[Path]:
    """First candidate that exists as a file in ``directory``."""
    for name in candidates:
        p = Path(directory) / name
        if p.is_file():
            return p
    return None


class StackLauncher:
    """
    Pull and (re)start the compose stack with the container command path
    resolved by DockerConvergence. Compose discovers the descriptor in the
    working directory itself; we only verify one is present.
    """

    def __init__(
        self,
        executor: Executor,
        cli: ContainerCli,
        *,
        candidates: Sequence[str] = COMPOSE_FILES,
    ):
        self.executor = executor
        self.cli = cli
        self.candidates = tuple(candidates)

    def launch(self, directory: Path) -> Path:
        directory = Path(directory)
        descriptor = find_descriptor(directory, self.candidates)
        if descriptor is None:
            raise ConfigurationError(
                f"No Compose file found in {directory} "
                f"(expected one of: {', '.join(self.candidates)})."
            )

        log.info(f"==> Starting (or updating) services via Docker Compose ({descriptor.name})")

        # pull first so fresh installs get images without a second run
        self.executor.run(self.cli.compose("pull"), elevated=False, cwd=directory)

        # up is idempotent: creates what's missing, updates what changed, drops orphans
        self.executor.run(
            self.cli.compose("up", "-d", "--remove-orphans"),
            elevated=False,
            cwd=directory,
        )
        return descriptor
