# src/labstrap/host/models.py

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ManagedService:
    """
    Snapshot of a system service as reported by the service manager.
    Never cached: convergence re-queries before acting.
    """
    name: str
    enabled: bool
    active: bool
