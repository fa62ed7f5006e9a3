# src/labstrap/observers/dispatcher.py
from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional
from .events import (
    AdvisoryRaised,
    BaseEvent,
    ResourceChanged,
    ResourceConverged,
    new_ctx,
)
from .interface import Observer

log = logging.getLogger("labstrap")


class EventBus:
    def __init__(self, observers: Optional[List[Observer]] = None, run_id: str | None = None):
        self._observers = observers or []
        self.run_id = new_ctx(run_id)["run_id"]
        self.changes = 0

    def ctx(self) -> Dict[str, Any]:
        return new_ctx(self.run_id)

    def emit(self, event: BaseEvent) -> None:
        if isinstance(event, ResourceChanged):
            self.changes += 1
        for ob in self._observers:
            try:
                ob.notify(event)
            except Exception as exc:
                # observers must not break a run
                log.debug(f"observer {ob!r} failed: {exc}")

    # shorthands used by the convergence components

    def converged(self, resource: str, name: str) -> None:
        self.emit(ResourceConverged(**self.ctx(), resource=resource, name=name))

    def changed(self, resource: str, name: str, action: str) -> None:
        self.emit(ResourceChanged(**self.ctx(), resource=resource, name=name, action=action))

    def advisory(self, message: str) -> None:
        log.warning(message)
        self.emit(AdvisoryRaised(**self.ctx(), message=message))
