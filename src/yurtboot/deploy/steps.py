# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/yurtboot/deploy/steps.py

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional


class FailurePolicy(str, Enum):
    FATAL = "fatal"
    BEST_EFFORT = "best-effort"


class Procedure(str, Enum):
    MASTER_INIT = "master-init"
    MASTER_EXPAND = "master-expand"
    WORKER_JOIN = "worker-join"


@dataclass(frozen=True)
class Step:
    """
    One ordered unit of work.

    ``when`` is evaluated once, right before the step would run; a falsy
    result skips the step.
    """

    name: str
    description: str
    action: Callable[[], None]
    when: Optional[Callable[[], bool]] = None
    policy: FailurePolicy = FailurePolicy.FATAL


@dataclass
class StepOutcome:
    name: str
    status: str                 # "OK" | "SKIPPED" | "WARNED" | "FAILED"
    duration_ms: int = 0
    error: Optional[str] = None


@dataclass
class ProcedureReport:
    procedure: str
    outcomes: List[StepOutcome] = field(default_factory=list)

    def add(self, outcome: StepOutcome) -> None:
        self.outcomes.append(outcome)

    def count(self, status: str) -> int:
        return sum(1 for o in self.outcomes if o.status == status)

    def names(self, status: str) -> List[str]:
        return [o.name for o in self.outcomes if o.status == status]

    def summary(self) -> str:
        return (
            f"OK={self.count('OK')} SKIPPED={self.count('SKIPPED')} "
            f"WARNED={self.count('WARNED')} FAILED={self.count('FAILED')}"
        )
