# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/yurtboot/bootstrap/procedures.py

from __future__ import annotations

import logging
from typing import Optional

from yurtboot.config.models import MasterExpandConfig, MasterInitConfig, WorkerJoinConfig
from yurtboot.deploy.sequencer import Sequencer
from yurtboot.deploy.steps import Procedure, ProcedureReport
from yurtboot.errors import CommandError, StepFailed, YurtbootError
from yurtboot.notify.notifier import Notifier
from yurtboot.observers.dispatcher import EventBus
from yurtboot.observers.events import new_ctx
from yurtboot.utils.execution import ExecutionContext
from yurtboot.utils.shell import CommandExecutor, ShellExecutor

from .master import MasterManager
from .worker import WorkerManager

log = logging.getLogger("yurtboot")

DRY_RUN_WORK_DIR = "/tmp/yurtboot-dry-run"


def _sequencer(
    procedure: Procedure,
    node: Optional[str],
    notifier: Optional[Notifier],
    bus: Optional[EventBus],
    run_id: Optional[str],
) -> Sequencer:
    return Sequencer(
        notifier=notifier,
        bus=bus,
        run_ctx=new_ctx(env=procedure.value, context=node, run_id=run_id),
    )


def run_master_init(
    cfg: MasterInitConfig,
    *,
    executor: Optional[CommandExecutor] = None,
    ctx: Optional[ExecutionContext] = None,
    notifier: Optional[Notifier] = None,
    bus: Optional[EventBus] = None,
    run_id: Optional[str] = None,
) -> ProcedureReport:
    """
    Initialize OpenYurt on the master node.

    A temporary work directory is created on the target before the first step
    and removed once the procedure ends, successfully or not.
    """
    ctx = ctx or ExecutionContext()
    executor = executor or ShellExecutor(ctx)
    seq = _sequencer(Procedure.MASTER_INIT, None, notifier, bus, run_id)
    manager = MasterManager(executor, seq, dry_run=ctx.dry_run)

    try:
        work_dir = executor.execute("mktemp -d -t yurtboot-XXXXXX").strip()
    except CommandError as e:
        raise StepFailed("create-workdir", e, "Creating temporary work directory") from e
    if not work_dir:
        if not ctx.dry_run:
            raise StepFailed(
                "create-workdir",
                YurtbootError("mktemp printed no directory"),
                "Creating temporary work directory",
            )
        work_dir = DRY_RUN_WORK_DIR

    try:
        return seq.run(Procedure.MASTER_INIT.value, manager.init_steps(cfg, work_dir))
    finally:
        try:
            executor.execute("rm -rf %s", work_dir)
        except CommandError as e:
            log.warning("failed to remove work directory %s: %s", work_dir, e)


def run_master_expand(
    cfg: MasterExpandConfig,
    *,
    executor: Optional[CommandExecutor] = None,
    ctx: Optional[ExecutionContext] = None,
    notifier: Optional[Notifier] = None,
    bus: Optional[EventBus] = None,
    run_id: Optional[str] = None,
) -> ProcedureReport:
    """Expand OpenYurt to an already-joined worker node."""
    ctx = ctx or ExecutionContext()
    executor = executor or ShellExecutor(ctx)
    seq = _sequencer(Procedure.MASTER_EXPAND, cfg.worker_node_name, notifier, bus, run_id)
    manager = MasterManager(executor, seq, dry_run=ctx.dry_run)
    return seq.run(Procedure.MASTER_EXPAND.value, manager.expand_steps(cfg))


def run_worker_join(
    cfg: WorkerJoinConfig,
    *,
    executor: Optional[CommandExecutor] = None,
    ctx: Optional[ExecutionContext] = None,
    notifier: Optional[Notifier] = None,
    bus: Optional[EventBus] = None,
    run_id: Optional[str] = None,
) -> ProcedureReport:
    ctx = ctx or ExecutionContext()
    executor = executor or ShellExecutor(ctx)
    seq = _sequencer(Procedure.WORKER_JOIN, cfg.node_name, notifier, bus, run_id)
    return seq.run(Procedure.WORKER_JOIN.value, WorkerManager(executor).join_steps(cfg))
