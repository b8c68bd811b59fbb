# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

#src/yurtboot/logging/log.py

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path

LOG_FORMAT = "%(asctime)s | %(levelname)-7s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def default_log_dir() -> Path:
    return Path.home() / ".yurtboot" / "logs"


def _attach(logger: logging.Logger, handler: logging.Handler, level: int) -> None:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)


def init_logging(
    *,
    base_dir: Path | None = None,
    name: str = "yurtboot",
    verbose: bool = False,
) -> tuple[logging.Logger, str, Path]:
    """
    Set up logging for one procedure run.

    Every executed command with its output goes to a per-run file under
    ``~/.yurtboot/logs``. The console only shows warnings unless *verbose*;
    operator progress is printed by the Notifier instead.

    Returns ``(logger, run_id, log_path)``; the run_id is shared with the
    lifecycle events of the same run.
    """
    run_id = str(uuid.uuid4())
    log_dir = base_dir or default_log_dir()
    log_dir.mkdir(parents=True, exist_ok=True)

    stamp = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    log_path = log_dir / f"{name}-{stamp}-{run_id}.log"

    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    # re-initialising in the same process (tests, repeated CLI invocations)
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()
    logger.propagate = False

    _attach(logger, logging.FileHandler(log_path), logging.DEBUG)
    _attach(logger, logging.StreamHandler(), logging.DEBUG if verbose else logging.WARNING)

    logger.info("=== yurtboot run started ===")
    logger.info("run_id=%s", run_id)
    logger.info("log_file=%s", log_path)

    return logger, run_id, log_path
