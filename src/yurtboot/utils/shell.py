# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/yurtboot/utils/shell.py

from __future__ import annotations

import logging
import shlex
import subprocess
import time
from typing import Optional, Protocol

from yurtboot.errors import CommandError
from yurtboot.utils.execution import ExecutionContext

log = logging.getLogger("yurtboot")


class CommandExecutor(Protocol):
    def execute(self, template: str, *args: str) -> str: ...


def format_command(template: str, *args: str) -> str:
    """
    Substitute each ``%s`` in *template* with the matching argument, shell-quoted.

    Without arguments the template is returned verbatim, so literal ``%``
    characters only need escaping (``%%``) in templates that take arguments.
    """
    if not args:
        return template
    return template % tuple(shlex.quote(str(a)) for a in args)


class ShellExecutor:
    """
    Runs commands locally under ``bash -c``.

    - Returns stdout with trailing newlines removed
    - Raises CommandError on non-zero exit, launch failure or timeout
    - Testable by mocking subprocess.run
    """

    def __init__(self, ctx: Optional[ExecutionContext] = None, label: str = "cmd"):
        self.ctx = ctx or ExecutionContext()
        self.label = label

    def execute(self, template: str, *args: str) -> str:
        cmd = format_command(template, *args)
        log.debug("[%s] $ %s", self.label, cmd)

        if self.ctx.dry_run:
            log.debug("[%s] dry-run: skipped execution", self.label)
            return ""

        start = time.time()
        try:
            cp = subprocess.run(
                ["bash", "-c", cmd],
                capture_output=True,
                text=True,
                check=False,
                timeout=self.ctx.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise CommandError(cmd, None, stderr=f"timed out after {e.timeout}s") from e
        except OSError as e:
            raise CommandError(cmd, None, stderr=str(e)) from e

        duration = time.time() - start
        if cp.stdout:
            log.debug("[%s][stdout]\n%s", self.label, cp.stdout.rstrip())
        if cp.stderr:
            log.debug("[%s][stderr]\n%s", self.label, cp.stderr.rstrip())
        log.debug("[%s][exit %d] (%.2fs)", self.label, cp.returncode, duration)

        if cp.returncode != 0:
            raise CommandError(cmd, cp.returncode, cp.stdout or "", cp.stderr or "")
        return (cp.stdout or "").rstrip("\n")
