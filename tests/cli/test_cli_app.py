import types
from pathlib import Path

import pytest
from typer.testing import CliRunner

import yurtboot.cli.app as cli
from yurtboot.deploy.steps import ProcedureReport
from yurtboot.errors import CommandError, StepFailed

runner = CliRunner()


@pytest.fixture(autouse=True)
def _isolated_home(monkeypatch, tmp_path: Path):
    # run logs and event files land under ~/.yurtboot
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.delenv("YURTBOOT_SECRETS_FILE", raising=False)


def _recorder(calls, procedure):
    def fake(cfg, **kw):
        calls.append((cfg, kw))
        return ProcedureReport(procedure=procedure)
    return fake


def test_expand_requires_worker_node_name():
    result = runner.invoke(cli.app, ["master", "expand"])
    assert result.exit_code == 1
    assert "Parameter --worker-node-name needed!" in result.output


def test_expand_passes_normalized_node_name(monkeypatch):
    calls = []
    monkeypatch.setattr(cli, "run_master_expand", _recorder(calls, "master-expand"))

    result = runner.invoke(cli.app, ["master", "expand", "--worker-node-name", "Edge-1", "--worker-as-edge"])

    assert result.exit_code == 0, result.output
    cfg, kw = calls[0]
    assert cfg.worker_node_name == "edge-1"
    assert cfg.worker_as_edge is True
    assert kw["ctx"].dry_run is False
    assert "Successfully expand OpenYurt to node [edge-1]!" in result.output


def test_join_requires_address_and_token():
    result = runner.invoke(cli.app, ["worker", "join", "--apiserver-token", "t"])
    assert result.exit_code == 1
    assert "Parameter --apiserver-advertise-address needed!" in result.output

    result = runner.invoke(cli.app, ["worker", "join", "--apiserver-advertise-address", "10.0.0.5"])
    assert result.exit_code == 1
    assert "Parameter --apiserver-token needed!" in result.output


def test_join_success(monkeypatch):
    calls = []
    monkeypatch.setattr(cli, "run_worker_join", _recorder(calls, "worker-join"))

    result = runner.invoke(
        cli.app,
        [
            "worker", "join",
            "--apiserver-advertise-address", "10.0.0.5",
            "--apiserver-token", "abcdef.0123456789abcdef",
            "--node-name", "EDGE-2",
            "--dry-run",
        ],
    )

    assert result.exit_code == 0, result.output
    cfg, kw = calls[0]
    assert cfg.node_name == "edge-2"
    assert cfg.apiserver_port == "6443"
    assert kw["ctx"].dry_run is True
    assert "Successfully joined OpenYurt cluster!" in result.output


def test_init_step_failure_is_fatal(monkeypatch):
    def failing(cfg, **kw):
        raise StepFailed("deploy-raven-agent", CommandError("make deploy", 2), "Deploying raven-agent")

    monkeypatch.setattr(cli, "run_master_init", failing)

    result = runner.invoke(cli.app, ["master", "init", "--master-as-cloud"])

    assert result.exit_code == 1
    assert "[fatal] Deploying raven-agent failed" in result.output
    assert "Successfully init" not in result.output


def test_init_success_with_config_file(monkeypatch, tmp_path: Path):
    calls = []
    monkeypatch.setattr(cli, "run_master_init", _recorder(calls, "master-init"))
    f = tmp_path / "yurt.yaml"
    f.write_text("master_init:\n  master_as_cloud: true\n  yurt_version: 1.3.0\n")

    result = runner.invoke(cli.app, ["master", "init", "--config", str(f)])

    assert result.exit_code == 0, result.output
    cfg, _ = calls[0]
    assert cfg.master_as_cloud is True
    assert cfg.yurt_version == "1.3.0"
    assert "Successfully init OpenYurt cluster master node!" in result.output


def test_bad_config_is_fatal(tmp_path: Path):
    f = tmp_path / "yurt.yaml"
    f.write_text("master_init:\n  bogus: 1\n")
    result = runner.invoke(cli.app, ["master", "init", "--config", str(f)])
    assert result.exit_code == 1
    assert "[fatal]" in result.output


class _RemoteOut:
    def __init__(self, s="", rc=0):
        self._s = s
        self.channel = types.SimpleNamespace(recv_exit_status=lambda: rc)
    def read(self): return self._s.encode()


class FakeSSHClient:
    def __init__(self, responses):
        self.commands = []
        self.closed = False
        self._responses = responses
    def exec_command(self, cmd, timeout=None):
        self.commands.append(cmd)
        return None, _RemoteOut(self._responses.get(cmd, "")), _RemoteOut()
    def close(self):
        self.closed = True


def test_join_over_ssh_takes_the_remote_hostname(monkeypatch):
    client = FakeSSHClient({"bash -c hostname": "Edge-Remote\n"})
    monkeypatch.setattr(cli, "connect_ssh", lambda host, **kw: client)

    result = runner.invoke(
        cli.app,
        [
            "worker", "join",
            "--apiserver-advertise-address", "10.0.0.5",
            "--apiserver-token", "t",
            "--ssh-host", "edge-remote",
        ],
    )

    assert result.exit_code == 0, result.output
    assert client.commands[0] == "bash -c hostname"
    manifest = next(c for c in client.commands if "yurthub-ack.yaml" in c)
    assert "--node-name=edge-remote" in manifest
    assert client.closed
    assert "Successfully joined OpenYurt cluster!" in result.output


def test_dry_run_over_ssh_still_asks_the_remote_hostname(monkeypatch):
    calls = []
    client = FakeSSHClient({"bash -c hostname": "edge-remote\n"})
    monkeypatch.setattr(cli, "connect_ssh", lambda host, **kw: client)
    monkeypatch.setattr(cli, "run_worker_join", _recorder(calls, "worker-join"))

    result = runner.invoke(
        cli.app,
        [
            "worker", "join",
            "--apiserver-advertise-address", "10.0.0.5",
            "--apiserver-token", "t",
            "--ssh-host", "edge-remote",
            "--dry-run",
        ],
    )

    assert result.exit_code == 0, result.output
    cfg, kw = calls[0]
    assert cfg.node_name == "edge-remote"
    assert kw["ctx"].dry_run is True
    assert client.commands == ["bash -c hostname"]
