import shlex

import pytest
import yaml

from yurtboot.bootstrap.procedures import run_worker_join
from yurtboot.bootstrap.templates import TemplateRenderError, render
from yurtboot.config.models import WorkerJoinConfig
from yurtboot.errors import CommandError, StepFailed
from yurtboot.notify.notifier import Notifier
from yurtboot.utils.shell import format_command


class RecordingExecutor:
    def __init__(self, fail_on=None):
        self.commands = []
        self.fail_on = fail_on

    def execute(self, template, *args):
        cmd = format_command(template, *args)
        self.commands.append(cmd)
        if self.fail_on and self.fail_on in cmd:
            raise CommandError(cmd, 1, stderr="permission denied")
        return ""


def _cfg(**kw):
    base = dict(
        apiserver_advertise_address="192.168.1.10",
        apiserver_token="abcdef.0123456789abcdef",
        node_name="edge-1",
    )
    base.update(kw)
    return WorkerJoinConfig(**base)


def _written(cmd):
    """Return (path, content) from a write_file command."""
    argv = shlex.split(cmd)
    return argv[11], argv[7]


def test_join_writes_yurthub_manifest_then_kubelet_config():
    ex = RecordingExecutor()
    report = run_worker_join(_cfg(), executor=ex, notifier=Notifier(color=False))

    assert report.names("OK") == ["setup-yurthub", "configure-kubelet", "rewrite-kubelet-args", "restart-kubelet"]

    path, content = _written(ex.commands[0])
    assert path == "/etc/kubernetes/manifests/yurthub-ack.yaml"
    pod = yaml.safe_load(content)
    assert pod["kind"] == "Pod"
    container = pod["spec"]["containers"][0]
    assert container["image"] == "openyurt/yurthub:v1.2.1"
    assert "--server-addr=https://192.168.1.10:6443" in container["command"]
    assert "--node-name=edge-1" in container["command"]
    assert "--join-token=abcdef.0123456789abcdef" in container["command"]
    assert "--working-mode=edge" in container["command"]

    path, content = _written(ex.commands[1])
    assert path == "/var/lib/openyurt/kubelet.conf"
    kubeconfig = yaml.safe_load(content)
    assert kubeconfig["clusters"][0]["cluster"]["server"] == "http://127.0.0.1:10261"


def test_kubelet_is_pointed_at_openyurt_config_and_restarted():
    ex = RecordingExecutor()
    run_worker_join(_cfg(apiserver_port="16443"), executor=ex, notifier=Notifier(color=False))

    sed = ex.commands[2]
    assert sed.startswith("sudo sed -i ")
    assert "KUBELET_KUBECONFIG_ARGS=--kubeconfig=/var/lib/openyurt/kubelet.conf" in sed
    assert sed.endswith("/etc/systemd/system/kubelet.service.d/10-kubeadm.conf")
    assert ex.commands[3] == "sudo systemctl daemon-reload && sudo systemctl restart kubelet"


def test_failure_stops_before_kubelet_restart():
    ex = RecordingExecutor(fail_on="kubelet.conf")
    with pytest.raises(StepFailed) as ei:
        run_worker_join(_cfg(), executor=ex, notifier=Notifier(color=False))
    assert ei.value.step_name == "configure-kubelet"
    assert not any("systemctl" in c for c in ex.commands)


def test_join_parameters_are_validated():
    with pytest.raises(ValueError):
        _cfg(apiserver_token="   ")
    with pytest.raises(ValueError):
        _cfg(working_mode="fog")


def test_missing_template_variable_is_an_error():
    with pytest.raises(TemplateRenderError):
        render("server: {{ apiserver_address }}")
