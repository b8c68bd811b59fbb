# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/yurtboot/helm/cli_runner.py

from __future__ import annotations

from ..utils.shell import CommandExecutor


class HelmCli:
    """
    A pragmatic wrapper around the `helm` CLI.
    - Releases are installed with 'upgrade --install' so re-runs are safe.
    - Testable with a recording CommandExecutor.
    """

    def __init__(self, executor: CommandExecutor):
        self.executor = executor

    def upgrade_install(self, release: str, chart: str, namespace: str) -> None:
        self.executor.execute("helm upgrade --install %s %s -n %s", release, chart, namespace)
