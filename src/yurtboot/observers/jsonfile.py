from __future__ import annotations
import json
from pathlib import Path
from typing import Optional
from .interface import Observer
from .events import BaseEvent
from ..logging.log import default_log_dir


def events_path(run_id: str, base_dir: Optional[Path] = None) -> Path:
    base = base_dir or default_log_dir()
    return base / f"{run_id}.jsonl"


class JsonFileObserver(Observer):
    """Appends one JSON object per event, keyed by event type."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def notify(self, event: BaseEvent) -> None:
        record = {"type": event.__class__.__name__, **event.dict()}
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(record, default=str) + "\n")
