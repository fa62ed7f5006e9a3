# src/labstrap/observers/events.py

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Dict, Any
from datetime import datetime, timezone
import uuid


# ---------------------------------------------------------------------
# Base context and helper
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class BaseEvent:
    ts: str           # ISO timestamp
    run_id: str       # correlates all events in a single bootstrap invocation

    def dict(self) -> Dict[str, Any]:
        return asdict(self)


def new_ctx(run_id: str | None = None) -> Dict[str, Any]:
    return {
        "ts": datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z"),
        "run_id": run_id or str(uuid.uuid4()),
    }


# ---------------------------------------------------------------------
# Convergence
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class ResourceConverged(BaseEvent):
    resource: str     # package/service/group/membership/file/...
    name: str

@dataclass(frozen=True)
class ResourceChanged(BaseEvent):
    resource: str
    name: str
    action: str       # install/enable/start/create/add/write/...


# ---------------------------------------------------------------------
# Advisories & Summary
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class AdvisoryRaised(BaseEvent):
    message: str

@dataclass(frozen=True)
class RunFinished(BaseEvent):
    ok: bool
    changed: int
