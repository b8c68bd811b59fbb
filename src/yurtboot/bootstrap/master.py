# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/yurtboot/bootstrap/master.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import partial
from typing import List, Optional, Sequence

from yurtboot.config.models import MasterExpandConfig, MasterInitConfig
from yurtboot.convergence.poller import status_probe
from yurtboot.deploy.sequencer import Sequencer
from yurtboot.deploy.steps import FailurePolicy, Step
from yurtboot.errors import CommandError
from yurtboot.helm.cli_runner import HelmCli
from yurtboot.kube.kubectl import Kubectl, parse_pod_pairs
from yurtboot.utils.shell import CommandExecutor

log = logging.getLogger("yurtboot")

EDGE_WORKER_LABEL = "openyurt.io/is-edge-worker"
AUTONOMY_ANNOTATION = "node.beta.openyurt.io/autonomy"
MASTER_TAINTS = (
    "node-role.kubernetes.io/master:NoSchedule",
    "node-role.kubernetes.io/control-plane",
)
HELM_KEYRING = "/usr/share/keyrings/helm.gpg"
HELM_APT_LIST = "/etc/apt/sources.list.d/helm-stable-debian.list"


@dataclass
class ToolCheck:
    """Optional tools found on the master, recorded by the first init step."""

    helm_installed: bool = False
    kustomize_installed: bool = False


class MasterManager:
    """
    Builds the master-side procedures:
    - init: tooling, OpenYurt charts, yurt-app-manager, controller-manager, raven
    - expand: label/annotate a worker, wait for it, restart its pods
    """

    def __init__(
        self,
        executor: CommandExecutor,
        sequencer: Sequencer,
        *,
        dry_run: bool = False,
    ):
        self.executor = executor
        self.sequencer = sequencer
        self.notifier = sequencer.notifier
        self.kubectl = Kubectl(executor)
        self.helm = HelmCli(executor)
        self.dry_run = dry_run

    # ---------- shared helpers ----------

    def install_packages(self, cfg: MasterInitConfig, packages: Sequence[str]) -> None:
        template = cfg.package_install_command.replace("%", "%%") + " " + " ".join(["%s"] * len(packages))
        self.executor.execute(template, *packages)

    def has_tool(self, name: str) -> bool:
        """Look *name* up on the PATH of the node the executor runs on."""
        try:
            return bool(self.executor.execute("command -v %s", name))
        except CommandError:
            return False

    def _not_dry_run(self) -> bool:
        return not self.dry_run

    # ---------- init ----------

    def check_environment(self, tools: ToolCheck) -> None:
        tools.helm_installed = self.has_tool("helm")
        if tools.helm_installed:
            self.notifier.success("Helm found!")
        else:
            self.notifier.warn("Helm not found! Helm will be automatically installed!")

        tools.kustomize_installed = self.has_tool("kustomize")
        if tools.kustomize_installed:
            self.notifier.success("Kustomize found!")
        else:
            self.notifier.warn("Kustomize not found! Kustomize will be automatically installed!")

    def remove_master_taint(self, taint: str) -> None:
        self.kubectl.remove_taint_all(taint)

    def add_helm_apt_repo(self, cfg: MasterInitConfig, work_dir: str) -> None:
        key_file = f"{work_dir}/helm-signing.asc"
        self.executor.execute("curl -fsSL -o %s %s", key_file, cfg.helm_signing_key_url)
        self.executor.execute(
            "sudo mkdir -p /usr/share/keyrings && gpg --dearmor < %s | sudo tee %s > /dev/null",
            key_file,
            HELM_KEYRING,
        )
        arch = self.executor.execute("dpkg --print-architecture")
        source = cfg.helm_apt_source.format(arch=arch, keyring=HELM_KEYRING)
        self.executor.execute("echo %s | sudo tee %s > /dev/null", source, HELM_APT_LIST)

    def download_kustomize(self, cfg: MasterInitConfig, work_dir: str) -> None:
        script = f"{work_dir}/install_kustomize.sh"
        self.executor.execute("curl -fsSL -o %s %s", script, cfg.kustomize_script_url)
        self.executor.execute("chmod u+x %s && %s %s", script, script, work_dir)

    def clone(self, repo: str, dest: str, ref: Optional[str] = None) -> None:
        self.executor.execute("git clone --quiet %s %s", repo, dest)
        if ref:
            self.executor.execute("git -C %s checkout --quiet %s", dest, ref)

    def wait_for_app_manager(self, cfg: MasterInitConfig) -> None:
        template, args = self.kubectl.pod_status_query(cfg.namespace, "yurt-app-manager")
        self.sequencer.wait_for(
            "yurt-app-manager",
            status_probe(self.executor, template, *args, expected=cfg.app_manager_ready_status),
            what="yurt-app-manager",
            interval=cfg.wait.interval_seconds,
            timeout=cfg.wait.timeout_seconds,
        )

    def deploy_raven_controller_manager(self, cfg: MasterInitConfig, src: str) -> None:
        self.executor.execute("cd %s && git checkout --quiet %s && make generate-deploy-yaml", src, cfg.raven_version)
        self.kubectl.apply_file(f"{src}/_output/yamls/raven-controller-manager.yaml")

    def deploy_raven_agent(self, cfg: MasterInitConfig, src: str) -> None:
        self.executor.execute("cd %s && git checkout --quiet %s && FORWARD_NODE_IP=true make deploy", src, cfg.raven_version)

    def init_steps(self, cfg: MasterInitConfig, work_dir: str) -> List[Step]:
        tools = ToolCheck()
        charts = f"{work_dir}/openyurt-helm/charts"
        raven_cm = f"{work_dir}/raven-controller-manager"
        raven_agent = f"{work_dir}/raven-agent"

        def master_as_cloud() -> bool:
            return cfg.master_as_cloud

        def helm_missing() -> bool:
            return not tools.helm_installed

        def kustomize_missing() -> bool:
            return not tools.kustomize_installed

        return [
            Step("check-environment", "Checking system environment", partial(self.check_environment, tools)),
            Step(
                "install-dependencies",
                "Installing dependencies",
                partial(self.install_packages, cfg, cfg.base_packages),
                when=lambda: bool(cfg.base_packages),
            ),
            Step(
                "untaint-master",
                "Removing master taint (master treated as a cloud node)",
                partial(self.remove_master_taint, MASTER_TAINTS[0]),
                when=master_as_cloud,
                policy=FailurePolicy.BEST_EFFORT,
            ),
            Step(
                "untaint-control-plane",
                "Removing control-plane taint (master treated as a cloud node)",
                partial(self.remove_master_taint, MASTER_TAINTS[1]),
                when=master_as_cloud,
                policy=FailurePolicy.BEST_EFFORT,
            ),
            Step(
                "add-helm-apt-repo",
                "Downloading public signing key && adding the Helm apt repository",
                partial(self.add_helm_apt_repo, cfg, work_dir),
                when=helm_missing,
            ),
            Step("install-helm", "Installing Helm", partial(self.install_packages, cfg, ("helm",)), when=helm_missing),
            Step(
                "download-kustomize",
                "Downloading kustomize",
                partial(self.download_kustomize, cfg, work_dir),
                when=kustomize_missing,
            ),
            Step(
                "install-kustomize",
                "Installing kustomize",
                partial(self.executor.execute, "sudo cp %s /usr/local/bin", f"{work_dir}/kustomize"),
                when=kustomize_missing,
            ),
            Step(
                "add-openyurt-repo",
                f"Adding OpenYurt repo (version {cfg.yurt_version}) with helm",
                partial(self.clone, cfg.openyurt_helm_repo, f"{work_dir}/openyurt-helm", f"openyurt-{cfg.yurt_version}"),
            ),
            Step(
                "deploy-yurt-app-manager",
                "Deploying yurt-app-manager",
                partial(self.helm.upgrade_install, "yurt-app-manager", f"{charts}/yurt-app-manager", cfg.namespace),
            ),
            Step(
                "wait-yurt-app-manager",
                "Waiting for yurt-app-manager to be ready",
                partial(self.wait_for_app_manager, cfg),
                when=self._not_dry_run,
            ),
            Step(
                "deploy-yurt-controller-manager",
                "Deploying yurt-controller-manager",
                partial(self.helm.upgrade_install, "openyurt", f"{charts}/openyurt", cfg.namespace),
            ),
            Step(
                "clone-raven-controller-manager",
                "Cloning repo: raven-controller-manager",
                partial(self.clone, cfg.raven_controller_manager_repo, raven_cm),
            ),
            Step(
                "deploy-raven-controller-manager",
                "Deploying raven-controller-manager",
                partial(self.deploy_raven_controller_manager, cfg, raven_cm),
            ),
            Step(
                "clone-raven-agent",
                "Cloning repo: raven-agent",
                partial(self.clone, cfg.raven_agent_repo, raven_agent),
            ),
            Step(
                "deploy-raven-agent",
                "Deploying raven-agent",
                partial(self.deploy_raven_agent, cfg, raven_agent),
            ),
        ]

    # ---------- expand ----------

    def wait_for_node(self, cfg: MasterExpandConfig) -> None:
        template, args = self.kubectl.node_status_query(cfg.worker_node_name)
        self.sequencer.wait_for(
            cfg.worker_node_name,
            status_probe(self.executor, template, *args, expected=cfg.node_ready_status),
            what=f"worker node {cfg.worker_node_name}",
            interval=cfg.wait.interval_seconds,
            timeout=cfg.wait.timeout_seconds,
        )

    def restart_pods(self, cfg: MasterExpandConfig) -> None:
        out = self.executor.execute(cfg.restart_pods_query, cfg.worker_node_name)
        pairs = parse_pod_pairs(out)
        if not pairs:
            self.notifier.info(f"No pods to restart on node [{cfg.worker_node_name}]")
            return

        self.sequencer.run_nested(
            [
                Step(
                    f"restart-pod:{namespace}/{pod}",
                    f"Restarting pod: {namespace} => {pod}",
                    partial(self.kubectl.delete_pod, namespace, pod),
                )
                for namespace, pod in pairs
            ]
        )

    def expand_steps(self, cfg: MasterExpandConfig) -> List[Step]:
        node = cfg.worker_node_name
        return [
            Step(
                "label-node",
                f"Labeling worker node: {node}",
                partial(self.kubectl.label_node, node, EDGE_WORKER_LABEL, "true" if cfg.worker_as_edge else "false"),
            ),
            Step(
                "activate-autonomy",
                "Activating the node autonomous mode",
                partial(self.kubectl.annotate_node, node, AUTONOMY_ANNOTATION, "true"),
            ),
            Step(
                "wait-node-ready",
                "Waiting for worker node to be ready",
                partial(self.wait_for_node, cfg),
                when=self._not_dry_run,
            ),
            Step(
                "restart-pods",
                "Restarting pods in the worker node",
                partial(self.restart_pods, cfg),
            ),
        ]
