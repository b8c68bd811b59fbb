# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/yurtboot/observers/interface.py

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .events import BaseEvent


@runtime_checkable
class Observer(Protocol):
    """Receives every lifecycle event emitted during a procedure run."""

    def notify(self, event: BaseEvent) -> None: ...
