# src/yurtboot/kube/kubectl.py

from __future__ import annotations

import logging
from typing import List, Tuple

from yurtboot.utils.shell import CommandExecutor

log = logging.getLogger("yurtboot")

Query = Tuple[str, Tuple[str, ...]]

KUBECTL = "kubectl"


class PodListError(ValueError):
    pass


def parse_pod_pairs(output: str) -> List[Tuple[str, str]]:
    """
    Parse "<namespace> <pod>" lines into pairs.

    Blank lines are ignored; a line without two fields is an error.
    """
    pairs: List[Tuple[str, str]] = []
    for raw in output.split("\n"):
        line = raw.strip()
        if not line:
            continue
        fields = line.split()
        if len(fields) < 2:
            raise PodListError(f"cannot parse pod entry {raw!r}, expected '<namespace> <pod>'")
        pairs.append((fields[0], fields[1]))
    return pairs


class Kubectl:
    """
    kubectl wrapper executed through a CommandExecutor (local shell or SSH).
    """

    def __init__(self, executor: CommandExecutor):
        self.executor = executor

    def _run(self, sub: str, *args: str) -> str:
        return self.executor.execute(f"{KUBECTL} {sub}", *args)

    # ------------------------- node -------------------------

    def label_node(self, node: str, key: str, value: str) -> None:
        self._run("label node %s %s --overwrite", node, f"{key}={value}")

    def annotate_node(self, node: str, key: str, value: str) -> None:
        self._run("annotate node %s %s --overwrite", node, f"{key}={value}")

    def remove_taint_all(self, taint: str) -> None:
        """Remove *taint* (``key[:effect]``) from every node."""
        self._run("taint nodes --all %s", f"{taint}-")

    def node_status_query(self, node: str) -> Query:
        """Prints the STATUS column of *node*; nothing while it is not registered."""
        return (
            KUBECTL + " get nodes --no-headers | awk -v node=%s '$1 == node {print $2}'",
            (node,),
        )

    # ------------------------- pods -------------------------

    def pod_status_query(self, namespace: str, name_prefix: str) -> Query:
        """Prints "<READY> <STATUS>" for pods whose name starts with *name_prefix*."""
        return (
            KUBECTL
            + " get pods -n %s --no-headers | awk -v name=%s 'index($1, name) == 1 {print $2\" \"$3}'",
            (namespace, name_prefix),
        )

    def delete_pod(self, namespace: str, name: str) -> None:
        self._run("-n %s delete pod %s", namespace, name)

    # ------------------------- manifests -------------------------

    def apply_file(self, path: str) -> None:
        self._run("apply -f %s", path)
