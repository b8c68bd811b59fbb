# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/yurtboot/bootstrap/worker.py

from __future__ import annotations

import posixpath
from functools import partial
from typing import List

from yurtboot.config.models import WorkerJoinConfig
from yurtboot.deploy.steps import Step
from yurtboot.utils.shell import CommandExecutor

from .templates import render

YURTHUB_MANIFEST_NAME = "yurthub-ack.yaml"
KUBELET_CONF_NAME = "kubelet.conf"


class WorkerManager:
    """
    Joins an existing Kubernetes worker to the OpenYurt cluster:
    yurthub static pod, kubelet pointed at yurthub, kubelet restart.
    """

    def __init__(self, executor: CommandExecutor):
        self.executor = executor

    def write_file(self, path: str, content: str) -> None:
        self.executor.execute(
            "sudo mkdir -p %s && printf '%%s' %s | sudo tee %s > /dev/null",
            posixpath.dirname(path),
            content,
            path,
        )

    def setup_yurthub(self, cfg: WorkerJoinConfig) -> None:
        manifest = render(
            cfg.yurthub_template,
            apiserver_address=cfg.apiserver_advertise_address,
            apiserver_port=cfg.apiserver_port,
            join_token=cfg.apiserver_token,
            node_name=cfg.node_name,
            working_mode=cfg.working_mode,
            yurthub_image=cfg.yurthub_image,
        )
        self.write_file(posixpath.join(cfg.pod_manifest_dir, YURTHUB_MANIFEST_NAME), manifest)

    def configure_kubelet(self, cfg: WorkerJoinConfig) -> None:
        kubeconfig = render(cfg.kubelet_template, yurthub_proxy_address=cfg.yurthub_proxy_address)
        self.write_file(posixpath.join(cfg.openyurt_dir, KUBELET_CONF_NAME), kubeconfig)

    def rewrite_kubelet_args(self, cfg: WorkerJoinConfig) -> None:
        # replaces the bootstrap/kubeconfig pair; a second run rewrites to the same value
        kubelet_conf = posixpath.join(cfg.openyurt_dir, KUBELET_CONF_NAME)
        expr = f's|KUBELET_KUBECONFIG_ARGS=[^"]*|KUBELET_KUBECONFIG_ARGS=--kubeconfig={kubelet_conf}|'
        self.executor.execute("sudo sed -i %s %s", expr, cfg.kubelet_dropin)

    def restart_kubelet(self) -> None:
        self.executor.execute("sudo systemctl daemon-reload && sudo systemctl restart kubelet")

    def join_steps(self, cfg: WorkerJoinConfig) -> List[Step]:
        return [
            Step("setup-yurthub", "Setting up Yurthub", partial(self.setup_yurthub, cfg)),
            Step("configure-kubelet", "Configuring kubelet", partial(self.configure_kubelet, cfg)),
            Step(
                "rewrite-kubelet-args",
                "Pointing kubelet at the OpenYurt kubeconfig",
                partial(self.rewrite_kubelet_args, cfg),
            ),
            Step("restart-kubelet", "Restarting kubelet", self.restart_kubelet),
        ]
