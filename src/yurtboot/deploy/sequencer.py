# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional, Sequence

from .steps import FailurePolicy, ProcedureReport, Step, StepOutcome
from ..convergence.poller import Probe, poll_until, with_deadline
from ..errors import StepFailed
from ..notify.notifier import Notifier

# Observer bits
from ..observers.dispatcher import EventBus
from ..observers.events import (
    new_ctx,
    ProcedureStarted,
    ProcedureSummary,
    StepStarted,
    StepSkipped,
    StepSucceeded,
    StepWarned,
    StepFailedEvent,
    WaitAttempt,
    WaitConverged,
)

log = logging.getLogger("yurtboot")


class Sequencer:
    """
    Fail-fast driver for an ordered list of Steps.

    Steps run strictly in order. A failing FATAL step raises StepFailed and
    nothing after it runs; a failing BEST_EFFORT step is reported as a warning.
    """

    def __init__(
        self,
        *,
        notifier: Optional[Notifier] = None,
        bus: Optional[EventBus] = None,
        run_ctx: Optional[Dict[str, Any]] = None,
    ):
        self.notifier = notifier or Notifier()
        self.bus = bus or EventBus([])
        self.run_ctx = run_ctx or new_ctx(env="yurtboot", context=None)
        self._report: Optional[ProcedureReport] = None

    def run(self, procedure: str, steps: Sequence[Step]) -> ProcedureReport:
        report = ProcedureReport(procedure=procedure)
        self._report = report
        self.bus.emit(ProcedureStarted(procedure=procedure, steps=[s.name for s in steps], **self.run_ctx))
        log.debug("[%s] running %d steps", procedure, len(steps))

        try:
            self._run_steps(steps)
        except StepFailed as e:
            e.report = report
            self.bus.emit(
                ProcedureSummary(
                    procedure=procedure,
                    status="FAILED",
                    ok=report.count("OK"),
                    skipped=report.count("SKIPPED"),
                    warned=report.count("WARNED"),
                    error=str(e),
                    **self.run_ctx,
                )
            )
            raise
        finally:
            self._report = None

        log.debug("[%s] %s", procedure, report.summary())
        self.bus.emit(
            ProcedureSummary(
                procedure=procedure,
                status="OK",
                ok=report.count("OK"),
                skipped=report.count("SKIPPED"),
                warned=report.count("WARNED"),
                **self.run_ctx,
            )
        )
        return report

    def run_nested(self, steps: Sequence[Step]) -> None:
        """Run steps built while a procedure is already running, with the same policy."""
        if self._report is None:
            raise RuntimeError("run_nested() called outside of a running procedure")
        self._run_steps(steps)

    def wait_for(
        self,
        name: str,
        probe: Probe,
        *,
        what: str,
        interval: float,
        timeout: Optional[float] = None,
    ) -> Any:
        """Poll *probe* until it converges, reporting each waiting attempt."""
        if timeout:
            probe = with_deadline(probe, timeout)

        def on_waiting(attempt: int) -> None:
            self.notifier.waiting(f"Waiting for {what} to be ready [{attempt}]")
            self.bus.emit(WaitAttempt(name=name, attempt=attempt, **self.run_ctx))

        value = poll_until(probe, on_waiting, interval)
        self.bus.emit(WaitConverged(name=name, value=str(value), **self.run_ctx))
        return value

    # ------------------------- internal helpers -------------------------

    def _run_steps(self, steps: Sequence[Step]) -> None:
        for step in steps:
            self._run_step(step)

    def _record(self, outcome: StepOutcome) -> None:
        if self._report is not None:
            self._report.add(outcome)

    def _run_step(self, step: Step) -> None:
        t0 = time.time()
        try:
            if step.when is not None and not step.when():
                self.notifier.info(f"Skipped: {step.description}")
                self._record(StepOutcome(name=step.name, status="SKIPPED"))
                self.bus.emit(StepSkipped(name=step.name, **self.run_ctx))
                return

            self.notifier.waiting(step.description)
            self.bus.emit(StepStarted(name=step.name, description=step.description, **self.run_ctx))
            step.action()
        except Exception as e:
            duration_ms = int((time.time() - t0) * 1000)
            if step.policy is FailurePolicy.BEST_EFFORT:
                self.notifier.warn(f"{step.description} failed, continuing: {e}")
                self._record(StepOutcome(name=step.name, status="WARNED", duration_ms=duration_ms, error=str(e)))
                self.bus.emit(StepWarned(name=step.name, error=str(e), **self.run_ctx))
                return

            self._record(StepOutcome(name=step.name, status="FAILED", duration_ms=duration_ms, error=str(e)))
            self.bus.emit(StepFailedEvent(name=step.name, error=str(e), **self.run_ctx))
            if isinstance(e, StepFailed):
                # nested procedure already named the failing step
                raise
            raise StepFailed(step.name, e, step.description) from e

        duration_ms = int((time.time() - t0) * 1000)
        self._record(StepOutcome(name=step.name, status="OK", duration_ms=duration_ms))
        self.bus.emit(StepSucceeded(name=step.name, duration_ms=duration_ms, **self.run_ctx))
        self.notifier.success(step.description)
