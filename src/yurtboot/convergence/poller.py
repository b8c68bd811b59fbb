# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/yurtboot/convergence/poller.py

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Union

from yurtboot.errors import CommandError, PollTimeout, ProbeError
from yurtboot.utils.shell import CommandExecutor

log = logging.getLogger("yurtboot")


@dataclass(frozen=True)
class Converged:
    value: Any


@dataclass(frozen=True)
class NotYetConverged:
    pass


@dataclass(frozen=True)
class PollError:
    cause: BaseException


PollResult = Union[Converged, NotYetConverged, PollError]
Probe = Callable[[], PollResult]


def poll_until(
    probe: Probe,
    on_waiting: Callable[[int], None],
    interval: float,
    *,
    sleep: Callable[[float], None] = time.sleep,
) -> Any:
    """
    Evaluate *probe* until it converges.

    - Converged(value): return value, no further attempt and no extra sleep
    - PollError(cause): raise cause, probe errors are never retried
    - NotYetConverged: on_waiting(attempt), sleep, retry

    There is no attempt limit; wrap the probe with ``with_deadline`` to bound it.
    """
    attempt = 1
    while True:
        result = probe()
        if isinstance(result, Converged):
            return result.value
        if isinstance(result, PollError):
            raise result.cause
        if not isinstance(result, NotYetConverged):
            raise TypeError(f"probe returned {result!r}, expected a PollResult")

        on_waiting(attempt)
        sleep(interval)
        attempt += 1


def with_deadline(
    probe: Probe,
    timeout: float,
    *,
    clock: Callable[[], float] = time.monotonic,
) -> Probe:
    """Turn NotYetConverged into PollError(PollTimeout) once *timeout* seconds pass."""
    deadline = clock() + timeout

    def bounded() -> PollResult:
        result = probe()
        if isinstance(result, NotYetConverged) and clock() >= deadline:
            return PollError(PollTimeout(f"not converged after {timeout:g}s"))
        return result

    return bounded


def status_probe(
    executor: CommandExecutor,
    command: str,
    *args: str,
    expected: str,
) -> Probe:
    """
    Probe that runs a status query and compares its output to *expected*.

    The comparison is a literal string match on the executor's trimmed output.
    """

    def probe() -> PollResult:
        try:
            out = executor.execute(command, *args)
        except CommandError as e:
            return PollError(ProbeError(f"status query failed: {e}"))
        if out == expected:
            return Converged(out)
        log.debug("[poll] status %r, waiting for %r", out, expected)
        return NotYetConverged()

    return probe
