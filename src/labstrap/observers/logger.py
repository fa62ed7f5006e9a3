from __future__ import annotations
import logging
from .events import BaseEvent, RunFinished
from .interface import Observer


class LoggerObserver(Observer):
    """Mirrors lifecycle events into the run log (DEBUG, summary at INFO)."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def notify(self, event: BaseEvent) -> None:
        fields = " ".join(
            f"{k}={v}" for k, v in event.dict().items() if k not in ("ts", "run_id")
        )
        level = logging.INFO if isinstance(event, RunFinished) else logging.DEBUG
        self.logger.log(level, f"[event] {event.__class__.__name__} {fields}")
