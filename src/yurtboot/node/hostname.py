# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/yurtboot/node/hostname.py

from __future__ import annotations

import socket
from typing import Callable

from yurtboot.errors import HostnameLookupFailed, InvalidHostname
from yurtboot.utils.shell import CommandExecutor

POD_MANIFEST_PATH = "/etc/kubernetes/manifests"


def get_pod_manifest_path() -> str:
    """Directory the kubelet watches for static pod manifests."""
    return POD_MANIFEST_PATH


def resolve_hostname(
    override: str,
    lookup: Callable[[], str] = socket.gethostname,
) -> str:
    """
    Resolve the node identity used by a procedure.

    A non-empty *override* is trimmed and lower-cased; one that trims to
    nothing is rejected rather than falling back to the system hostname.
    An empty *override* takes the system hostname through the same transform.
    """
    if override:
        name = override.strip().lower()
        if not name:
            raise InvalidHostname(f"invalid hostname override: {override!r}")
        return name

    try:
        name = lookup()
    except Exception as e:
        raise HostnameLookupFailed(f"unable to get system hostname: {e}") from e
    return name.strip().lower()


def executor_hostname(executor: CommandExecutor) -> Callable[[], str]:
    """Hostname lookup that asks the node *executor* runs commands on."""
    return lambda: executor.execute("hostname")
