# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/labstrap/errors.py
from __future__ import annotations

from typing import Optional, Sequence


class BootstrapError(RuntimeError):
    """Base class for every condition that aborts a bootstrap run."""


class ConfigurationError(BootstrapError):
    """A required host capability or input is missing."""


class IdentityUnavailableError(BootstrapError):
    """The mesh daemon did not report a usable address and DNS name."""


class RuntimeAccessError(BootstrapError):
    """The container daemon cannot be reached, even with elevation."""


class CommandError(BootstrapError):
    """An external command (or installer download) failed."""

    def __init__(
        self,
        message: str,
        *,
        argv: Optional[Sequence[str]] = None,
        returncode: Optional[int] = None,
        stderr: str = "",
    ):
        super().__init__(message)
        self.argv = list(argv) if argv else []
        self.returncode = returncode
        self.stderr = stderr
