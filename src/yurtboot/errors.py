# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/yurtboot/errors.py

from __future__ import annotations

from typing import Optional


class YurtbootError(RuntimeError):
    """Base class for yurtboot failures."""


class ConfigError(YurtbootError):
    """Raised when the configuration file cannot be read or validated."""


class InvalidHostname(YurtbootError, ValueError):
    """Raised when a hostname override is empty after trimming."""


class HostnameLookupFailed(YurtbootError):
    """Raised when the system hostname cannot be obtained."""


class CommandError(YurtbootError):
    def __init__(
        self,
        command: str,
        returncode: Optional[int],
        stdout: str = "",
        stderr: str = "",
    ):
        self.command = command
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        detail = (stderr or stdout).strip()
        msg = f"command failed (rc={returncode}): {command}"
        if detail:
            msg += f"\n{detail}"
        super().__init__(msg)


class ProbeError(YurtbootError):
    """A readiness query could not be executed."""


class PollTimeout(YurtbootError):
    """Raised by a deadline-bounded probe once its deadline has passed."""


class StepFailed(YurtbootError):
    def __init__(self, step_name: str, cause: BaseException, description: Optional[str] = None):
        self.step_name = step_name
        self.cause = cause
        self.description = description or step_name
        self.report = None
        super().__init__(f"{self.description} failed: {cause}")
