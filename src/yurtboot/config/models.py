# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/yurtboot/config/models.py

from typing import Literal, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field, field_validator

from yurtboot.bootstrap.templates import KUBELET_KUBECONFIG, YURTHUB_MANIFEST
from yurtboot.node.hostname import get_pod_manifest_path

YURT_VERSION = "1.2.1"
RAVEN_VERSION = "v0.3.0"


class _Frozen(BaseModel):
    # YAML turns `port: 6443` or `yurt_version: 1.3` into numbers
    model_config = ConfigDict(frozen=True, extra="forbid", coerce_numbers_to_str=True)


class WaitSettings(_Frozen):
    """Convergence polling; timeout None polls until the condition holds."""

    interval_seconds: float = Field(1.0, gt=0)
    timeout_seconds: Optional[float] = Field(None, gt=0)


class MasterInitConfig(_Frozen):
    master_as_cloud: bool = False

    # Base packages (resolved for the host distribution before the run)
    base_packages: Tuple[str, ...] = (
        "curl",
        "apt-transport-https",
        "ca-certificates",
        "build-essential",
        "git",
    )
    package_install_command: str = "sudo apt-get -qq update && sudo apt-get -qq install -y"

    # Optional tooling
    helm_signing_key_url: str = "https://baltocdn.com/helm/signing.asc"
    # {arch} and {keyring} are filled in on the target host
    helm_apt_source: str = "deb [arch={arch} signed-by={keyring}] https://baltocdn.com/helm/stable/debian/ all main"
    kustomize_script_url: str = (
        "https://raw.githubusercontent.com/kubernetes-sigs/kustomize/master/hack/install_kustomize.sh"
    )

    # OpenYurt components
    yurt_version: str = YURT_VERSION
    raven_version: str = RAVEN_VERSION
    openyurt_helm_repo: str = "https://github.com/openyurtio/openyurt-helm.git"
    raven_controller_manager_repo: str = "https://github.com/openyurtio/raven-controller-manager.git"
    raven_agent_repo: str = "https://github.com/openyurtio/raven.git"
    namespace: str = "kube-system"

    # Literal status text reported by the readiness query
    app_manager_ready_status: str = "1/1 Running"
    wait: WaitSettings = WaitSettings()


class MasterExpandConfig(_Frozen):
    worker_node_name: str
    worker_as_edge: bool = False

    # %s receives the node name; prints one "<namespace> <pod>" pair per line
    restart_pods_query: str = (
        "kubectl get pods --all-namespaces --field-selector spec.nodeName=%s --no-headers"
        " | awk '$2 !~ /^yurt-hub/ {print $1\" \"$2}'"
    )
    node_ready_status: str = "Ready"
    wait: WaitSettings = WaitSettings()

    @field_validator("worker_node_name")
    @classmethod
    def _require_node_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("worker_node_name must not be empty")
        return v


class WorkerJoinConfig(_Frozen):
    apiserver_advertise_address: str
    apiserver_port: str = "6443"
    apiserver_token: str
    node_name: str
    working_mode: Literal["edge", "cloud"] = "edge"

    yurthub_image: str = f"openyurt/yurthub:v{YURT_VERSION}"
    yurthub_proxy_address: str = "127.0.0.1:10261"
    yurthub_template: str = YURTHUB_MANIFEST
    kubelet_template: str = KUBELET_KUBECONFIG

    pod_manifest_dir: str = get_pod_manifest_path()
    openyurt_dir: str = "/var/lib/openyurt"
    kubelet_dropin: str = "/etc/systemd/system/kubelet.service.d/10-kubeadm.conf"

    @field_validator("apiserver_advertise_address", "apiserver_token")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v.strip()


class YurtConfig(_Frozen):
    master_init: MasterInitConfig = MasterInitConfig()
    master_expand: Optional[MasterExpandConfig] = None
    worker_join: Optional[WorkerJoinConfig] = None
