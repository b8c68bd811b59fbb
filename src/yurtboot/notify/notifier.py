# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/yurtboot/notify/notifier.py

from __future__ import annotations

import logging
from typing import NoReturn

import typer

log = logging.getLogger("yurtboot")


class Notifier:
    """
    Operator-facing progress output.

    Every message is echoed to the terminal and mirrored into the run log.
    ``fatal`` reports and then ends the run with exit code 1.
    """

    def __init__(self, color: bool = True):
        self.color = color

    def _echo(self, msg: str, fg: str, *, err: bool = False) -> None:
        typer.secho(msg, fg=fg if self.color else None, err=err)

    def info(self, msg: str) -> None:
        log.info(msg)
        self._echo(f"[info] {msg}", typer.colors.BLUE)

    def warn(self, msg: str) -> None:
        log.warning(msg)
        self._echo(f"[warn] {msg}", typer.colors.YELLOW)

    def success(self, msg: str) -> None:
        log.info(msg)
        self._echo(f"[ok] {msg}", typer.colors.GREEN)

    def waiting(self, msg: str) -> None:
        log.info(msg)
        self._echo(f"[..] {msg}", typer.colors.CYAN)

    def fatal(self, msg: str) -> NoReturn:
        log.error(msg)
        self._echo(f"[fatal] {msg}", typer.colors.RED, err=True)
        raise typer.Exit(code=1)
