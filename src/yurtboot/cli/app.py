# src/yurtboot/cli/app.py
from __future__ import annotations

import socket
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator, Optional

import paramiko
import typer

from yurtboot.bootstrap.procedures import run_master_expand, run_master_init, run_worker_join
from yurtboot.config.loader import load_config
from yurtboot.config.models import YurtConfig
from yurtboot.deploy.steps import Procedure, ProcedureReport
from yurtboot.errors import ConfigError, HostnameLookupFailed, InvalidHostname, StepFailed
from yurtboot.logging.log import init_logging
from yurtboot.node.hostname import executor_hostname
from yurtboot.notify.notifier import Notifier
from yurtboot.observers.console import ConsoleObserver
from yurtboot.observers.dispatcher import EventBus
from yurtboot.observers.jsonfile import JsonFileObserver, events_path
from yurtboot.observers.logger import LoggerObserver
from yurtboot.utils.execution import ExecutionContext
from yurtboot.utils.shell import CommandExecutor, ShellExecutor
from yurtboot.utils.ssh_runner import SSHExecutor, connect_ssh


# ------------------------------------------------------------------------------
# CLI setup
# ------------------------------------------------------------------------------

app = typer.Typer(help="OpenYurt cluster bootstrap CLI")
master_cli = typer.Typer(help="Master node procedures (init, expand)")
worker_cli = typer.Typer(help="Worker node procedures (join)")
app.add_typer(master_cli, name="master")
app.add_typer(worker_cli, name="worker")

notifier = Notifier()


# ------------------------------------------------------------------------------
# Shared options
# ------------------------------------------------------------------------------

ConfigOpt = typer.Option(None, "--config", "-f", help="YAML config file (secrets.yaml next to it is merged in)")
DryRunOpt = typer.Option(False, "--dry-run", help="Log commands without running them")
DebugOpt = typer.Option(False, "--debug", "-d", help="Verbose console logging and lifecycle events")
SshHostOpt = typer.Option(None, "--ssh-host", help="Run the procedure on this host over SSH")
SshUserOpt = typer.Option("root", "--ssh-user", help="SSH username")
SshKeyOpt = typer.Option(None, "--ssh-key", help="Path to SSH private key")
SshPasswordOpt = typer.Option(None, "--ssh-password", help="SSH password (if not using key)")


@dataclass
class Session:
    executor: CommandExecutor
    ctx: ExecutionContext
    bus: EventBus
    run_id: str
    # asks the node the procedure runs on, also during a dry run
    hostname_lookup: Callable[[], str]


def _compact(d: dict) -> dict:
    """Drop unset CLI values so they never override the config file."""
    out = {}
    for k, v in d.items():
        if isinstance(v, dict):
            v = _compact(v)
        if v in (None, "", False, {}):
            continue
        out[k] = v
    return out


def _load(config: Optional[Path], overrides: dict, s: Session) -> YurtConfig:
    try:
        return load_config(config, _compact(overrides), hostname_lookup=s.hostname_lookup)
    except (ConfigError, InvalidHostname, HostnameLookupFailed) as e:
        notifier.fatal(str(e))


@contextmanager
def _session(
    procedure: Procedure,
    *,
    dry_run: bool,
    debug: bool,
    ssh_host: Optional[str],
    ssh_user: str,
    ssh_key: Optional[Path],
    ssh_password: Optional[str],
) -> Iterator[Session]:
    logger, run_id, log_path = init_logging(verbose=debug)
    ctx = ExecutionContext(dry_run=dry_run)

    observers = [LoggerObserver(logger), JsonFileObserver(events_path(run_id))]
    if debug:
        observers.append(ConsoleObserver())
    bus = EventBus(observers=observers)

    notifier.info(f"{procedure.value}: run log {log_path}")
    if dry_run:
        notifier.warn("Dry run: commands are logged, not executed")

    if not ssh_host:
        yield Session(
            executor=ShellExecutor(ctx),
            ctx=ctx,
            bus=bus,
            run_id=run_id,
            hostname_lookup=socket.gethostname,
        )
        return

    try:
        client = connect_ssh(ssh_host, username=ssh_user, key_path=ssh_key, password=ssh_password)
    except (paramiko.SSHException, OSError) as e:
        notifier.fatal(f"Failed to connect to {ssh_user}@{ssh_host}: {e}")
    executor = SSHExecutor(client, ctx=ctx)
    try:
        yield Session(
            executor=executor,
            ctx=ctx,
            bus=bus,
            run_id=run_id,
            hostname_lookup=executor_hostname(SSHExecutor(client)),
        )
    finally:
        executor.close()


def _run(fn: Callable[[], ProcedureReport]) -> ProcedureReport:
    try:
        report = fn()
    except StepFailed as e:
        notifier.fatal(str(e))
    for name in report.names("WARNED"):
        notifier.warn(f"Step {name} finished with warnings")
    return report


# ------------------------------------------------------------------------------
# Commands
# ------------------------------------------------------------------------------

@master_cli.command("init")
def master_init(
    master_as_cloud: bool = typer.Option(False, "--master-as-cloud", help="Treat master as cloud node"),
    config: Optional[Path] = ConfigOpt,
    dry_run: bool = DryRunOpt,
    debug: bool = DebugOpt,
    ssh_host: Optional[str] = SshHostOpt,
    ssh_user: str = SshUserOpt,
    ssh_key: Optional[Path] = SshKeyOpt,
    ssh_password: Optional[str] = SshPasswordOpt,
):
    """
    Initialize OpenYurt on the master node: tooling, yurt-app-manager,
    yurt-controller-manager and raven.
    """
    with _session(
        Procedure.MASTER_INIT,
        dry_run=dry_run,
        debug=debug,
        ssh_host=ssh_host,
        ssh_user=ssh_user,
        ssh_key=ssh_key,
        ssh_password=ssh_password,
    ) as s:
        cfg = _load(config, {"master_init": {"master_as_cloud": master_as_cloud}}, s)
        _run(lambda: run_master_init(
            cfg.master_init, executor=s.executor, ctx=s.ctx, notifier=notifier, bus=s.bus, run_id=s.run_id,
        ))

    notifier.success("Successfully init OpenYurt cluster master node!")


@master_cli.command("expand")
def master_expand(
    worker_node_name: Optional[str] = typer.Option(None, "--worker-node-name", help="Worker node name (**REQUIRED**)"),
    worker_as_edge: bool = typer.Option(False, "--worker-as-edge", help="Treat worker as edge node"),
    config: Optional[Path] = ConfigOpt,
    dry_run: bool = DryRunOpt,
    debug: bool = DebugOpt,
    ssh_host: Optional[str] = SshHostOpt,
    ssh_user: str = SshUserOpt,
    ssh_key: Optional[Path] = SshKeyOpt,
    ssh_password: Optional[str] = SshPasswordOpt,
):
    """
    Expand OpenYurt to a worker node: label, enable autonomy, wait for Ready
    and restart the node's pods.
    """
    if not worker_node_name and config is None:
        notifier.fatal("Parameter --worker-node-name needed!")

    with _session(
        Procedure.MASTER_EXPAND,
        dry_run=dry_run,
        debug=debug,
        ssh_host=ssh_host,
        ssh_user=ssh_user,
        ssh_key=ssh_key,
        ssh_password=ssh_password,
    ) as s:
        cfg = _load(
            config,
            {"master_expand": {"worker_node_name": worker_node_name, "worker_as_edge": worker_as_edge}},
            s,
        )
        if cfg.master_expand is None:
            notifier.fatal("Parameter --worker-node-name needed!")
        _run(lambda: run_master_expand(
            cfg.master_expand, executor=s.executor, ctx=s.ctx, notifier=notifier, bus=s.bus, run_id=s.run_id,
        ))

    notifier.success(f"Successfully expand OpenYurt to node [{cfg.master_expand.worker_node_name}]!")


@worker_cli.command("join")
def worker_join(
    apiserver_advertise_address: Optional[str] = typer.Option(
        None, "--apiserver-advertise-address", help="Kubernetes API server advertise address (**REQUIRED**)"
    ),
    apiserver_port: Optional[str] = typer.Option(None, "--apiserver-port", help="Kubernetes API server port [6443]"),
    apiserver_token: Optional[str] = typer.Option(
        None, "--apiserver-token", help="Kubernetes API server token (**REQUIRED**)"
    ),
    node_name: Optional[str] = typer.Option(
        None, "--node-name", help="Node name override (defaults to the target node's hostname)"
    ),
    config: Optional[Path] = ConfigOpt,
    dry_run: bool = DryRunOpt,
    debug: bool = DebugOpt,
    ssh_host: Optional[str] = SshHostOpt,
    ssh_user: str = SshUserOpt,
    ssh_key: Optional[Path] = SshKeyOpt,
    ssh_password: Optional[str] = SshPasswordOpt,
):
    """
    Join an existing Kubernetes worker node to the OpenYurt cluster.
    """
    if config is None:
        if not apiserver_advertise_address:
            notifier.fatal("Parameter --apiserver-advertise-address needed!")
        if not apiserver_token:
            notifier.fatal("Parameter --apiserver-token needed!")

    with _session(
        Procedure.WORKER_JOIN,
        dry_run=dry_run,
        debug=debug,
        ssh_host=ssh_host,
        ssh_user=ssh_user,
        ssh_key=ssh_key,
        ssh_password=ssh_password,
    ) as s:
        cfg = _load(
            config,
            {
                "worker_join": {
                    "apiserver_advertise_address": apiserver_advertise_address,
                    "apiserver_port": apiserver_port,
                    "apiserver_token": apiserver_token,
                    "node_name": node_name,
                }
            },
            s,
        )
        if cfg.worker_join is None:
            notifier.fatal("Parameters --apiserver-advertise-address and --apiserver-token needed!")
        _run(lambda: run_worker_join(
            cfg.worker_join, executor=s.executor, ctx=s.ctx, notifier=notifier, bus=s.bus, run_id=s.run_id,
        ))

    notifier.success("Successfully joined OpenYurt cluster!")


def main() -> None:
    app()
