import subprocess

import pytest

from yurtboot.errors import CommandError
from yurtboot.utils.execution import ExecutionContext
from yurtboot.utils.shell import ShellExecutor, format_command


class DummyCP:
    def __init__(self, rc=0, out="", err=""):
        self.returncode = rc
        self.stdout = out
        self.stderr = err


def test_format_command_quotes_arguments():
    assert format_command("kubectl label node %s %s", "edge 1", "a=b") == "kubectl label node 'edge 1' a=b"
    assert format_command("echo %s", "$(reboot)") == "echo '$(reboot)'"


def test_format_command_without_args_is_verbatim():
    assert format_command("printf '%s' x") == "printf '%s' x"


def test_execute_runs_under_bash_and_trims_stdout(monkeypatch):
    calls = []

    def fake_run(argv, **kw):
        calls.append((argv, kw))
        return DummyCP(0, out="Ready\n")

    monkeypatch.setattr(subprocess, "run", fake_run)

    out = ShellExecutor(ExecutionContext(timeout=30)).execute("kubectl get node %s", "edge-1")

    assert out == "Ready"
    argv, kw = calls[0]
    assert argv == ["bash", "-c", "kubectl get node edge-1"]
    assert kw["timeout"] == 30
    assert kw["check"] is False


def test_nonzero_exit_raises_command_error(monkeypatch):
    monkeypatch.setattr(subprocess, "run", lambda argv, **kw: DummyCP(2, out="", err="not found"))

    with pytest.raises(CommandError) as ei:
        ShellExecutor().execute("helm status x")

    assert ei.value.returncode == 2
    assert ei.value.stderr == "not found"
    assert "helm status x" in str(ei.value)


def test_timeout_raises_command_error(monkeypatch):
    def fake_run(argv, **kw):
        raise subprocess.TimeoutExpired(argv, 5)

    monkeypatch.setattr(subprocess, "run", fake_run)

    with pytest.raises(CommandError) as ei:
        ShellExecutor(ExecutionContext(timeout=5)).execute("sleep 60")
    assert ei.value.returncode is None
    assert "timed out" in str(ei.value)


def test_dry_run_never_spawns(monkeypatch):
    def fake_run(argv, **kw):
        raise AssertionError("subprocess.run should not be called in dry-run")

    monkeypatch.setattr(subprocess, "run", fake_run)
    assert ShellExecutor(ExecutionContext(dry_run=True)).execute("rm -rf %s", "/") == ""
