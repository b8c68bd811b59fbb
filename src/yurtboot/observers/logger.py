from __future__ import annotations
import logging
from .events import BaseEvent, StepFailedEvent, StepWarned


class LoggerObserver:
    """Mirrors lifecycle events into the run log; failures keep their severity."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def notify(self, event: BaseEvent) -> None:
        d = event.dict()
        etype = event.__class__.__name__
        msg = ", ".join(f"{k}={v}" for k, v in d.items() if k not in ("ts", "run_id"))

        if isinstance(event, StepFailedEvent):
            level = logging.ERROR
        elif isinstance(event, StepWarned):
            level = logging.WARNING
        else:
            level = logging.INFO
        self.logger.log(level, "[EVENT] %s: %s", etype, msg)
