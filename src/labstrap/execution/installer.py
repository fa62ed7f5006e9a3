# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/labstrap/execution/installer.py

from __future__ import annotations

import logging

import requests

from labstrap.errors import CommandError
from labstrap.execution.runner import Executor

log = logging.getLogger("labstrap")


def run_installer(executor: Executor, url: str, *, timeout: int = 60) -> None:
    """
    Fetch a vendor install script and pipe it into ``sh`` (elevated),
    the Python equivalent of ``curl -fsSL <url> | sudo sh``.
    The script is treated as opaque; any failure is fatal.
    """
    if executor.dry_run:
        log.info(f"dry-run: would download and run {url}")
        return

    log.debug(f"Downloading installer {url}")
    try:
        resp = requests.get(url, timeout=timeout)
        resp.raise_for_status()
    except requests.RequestException as exc:
        raise CommandError(f"Failed to download installer {url}: {exc}") from exc

    executor.run(["sh"], input=resp.text)
