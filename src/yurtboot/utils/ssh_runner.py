# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/yurtboot/utils/ssh_runner.py

from __future__ import annotations

import logging
import shlex
from pathlib import Path
from typing import Optional

import paramiko

from yurtboot.errors import CommandError
from yurtboot.utils.execution import ExecutionContext
from yurtboot.utils.shell import format_command

log = logging.getLogger("yurtboot")


def connect_ssh(
    host: str,
    *,
    username: str,
    key_path: Optional[Path] = None,
    password: Optional[str] = None,
    port: int = 22,
    timeout: float = 20.0,
) -> paramiko.SSHClient:
    client = paramiko.SSHClient()
    client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
    client.connect(
        hostname=host,
        port=port,
        username=username,
        key_filename=str(key_path) if key_path else None,
        password=password,
        timeout=timeout,
    )
    return client


class SSHExecutor:
    """
    Command executor that runs every command on a remote node over SSH.
    """

    def __init__(
        self,
        client: paramiko.SSHClient,
        *,
        sudo: bool = False,
        ctx: Optional[ExecutionContext] = None,
    ):
        self.client = client
        self.sudo = sudo
        self.ctx = ctx or ExecutionContext()

    def execute(self, template: str, *args: str) -> str:
        cmd = format_command(template, *args)
        remote = f"bash -c {shlex.quote(cmd)}"
        if self.sudo:
            remote = f"sudo -H -E {remote}"
        log.debug("[ssh] $ %s", remote)

        if self.ctx.dry_run:
            log.debug("[ssh] dry-run: skipped execution")
            return ""

        _, stdout, stderr = self.client.exec_command(remote, timeout=self.ctx.timeout)
        out = stdout.read().decode("utf-8", "replace")
        err = stderr.read().decode("utf-8", "replace")
        rc = stdout.channel.recv_exit_status()
        log.debug("[ssh][exit %d]", rc)

        if rc != 0:
            raise CommandError(cmd, rc, out, err)
        return out.rstrip("\n")

    def close(self) -> None:
        self.client.close()
