# src/yurtboot/observers/events.py

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import List, Dict, Any, Optional
from datetime import datetime, timezone
import uuid


# ---------------------------------------------------------------------
# Base context and helper
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class BaseEvent:
    ts: str           # ISO timestamp
    run_id: str       # correlates all events in a single procedure invocation
    env: str          # master-init / master-expand / worker-join
    context: Optional[str]  # node the procedure targets

    def dict(self) -> Dict[str, Any]:
        return asdict(self)


def new_ctx(env: str, context: Optional[str], run_id: Optional[str] = None) -> Dict[str, Any]:
    return {
        "ts": datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z"),
        "run_id": run_id or str(uuid.uuid4()),
        "env": env,
        "context": context,
    }


# ---------------------------------------------------------------------
# Procedure lifecycle
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class ProcedureStarted(BaseEvent):
    procedure: str
    steps: List[str]

@dataclass(frozen=True)
class ProcedureSummary(BaseEvent):
    procedure: str
    status: str          # "OK" | "FAILED"
    ok: int
    skipped: int
    warned: int
    error: Optional[str] = None


# ---------------------------------------------------------------------
# Step lifecycle
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class StepStarted(BaseEvent):
    name: str
    description: str

@dataclass(frozen=True)
class StepSkipped(BaseEvent):
    name: str

@dataclass(frozen=True)
class StepSucceeded(BaseEvent):
    name: str
    duration_ms: int

@dataclass(frozen=True)
class StepWarned(BaseEvent):
    name: str
    error: str

@dataclass(frozen=True)
class StepFailedEvent(BaseEvent):
    name: str
    error: str


# ---------------------------------------------------------------------
# Convergence waits
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class WaitAttempt(BaseEvent):
    name: str
    attempt: int

@dataclass(frozen=True)
class WaitConverged(BaseEvent):
    name: str
    value: str
