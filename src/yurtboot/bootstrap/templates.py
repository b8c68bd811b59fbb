# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from typing import Any

from jinja2 import Environment, StrictUndefined, TemplateError

from yurtboot.errors import YurtbootError


class TemplateRenderError(YurtbootError):
    pass


YURTHUB_MANIFEST = """\
apiVersion: v1
kind: Pod
metadata:
  labels:
    k8s-app: yurt-hub
  name: yurt-hub
  namespace: kube-system
spec:
  volumes:
  - name: hub-dir
    hostPath:
      path: /var/lib/yurthub
      type: DirectoryOrCreate
  - name: kubernetes
    hostPath:
      path: /etc/kubernetes
      type: Directory
  containers:
  - name: yurt-hub
    image: {{ yurthub_image }}
    imagePullPolicy: IfNotPresent
    volumeMounts:
    - name: hub-dir
      mountPath: /var/lib/yurthub
    - name: kubernetes
      mountPath: /etc/kubernetes
    command:
    - yurthub
    - --v=2
    - --server-addr=https://{{ apiserver_address }}:{{ apiserver_port }}
    - --node-name={{ node_name }}
    - --join-token={{ join_token }}
    - --working-mode={{ working_mode }}
    livenessProbe:
      httpGet:
        host: 127.0.0.1
        path: /v1/healthz
        port: 10267
      initialDelaySeconds: 300
      periodSeconds: 5
      failureThreshold: 3
    resources:
      requests:
        cpu: 150m
        memory: 150Mi
      limits:
        memory: 300Mi
    securityContext:
      capabilities:
        add: ["NET_ADMIN", "NET_RAW"]
  hostNetwork: true
  priorityClassName: system-node-critical
  priority: 2000001000
"""

KUBELET_KUBECONFIG = """\
apiVersion: v1
clusters:
- cluster:
    server: http://{{ yurthub_proxy_address }}
  name: default-cluster
contexts:
- context:
    cluster: default-cluster
    namespace: default
    user: default-auth
  name: default-context
current-context: default-context
kind: Config
preferences: {}
"""


_env = Environment(undefined=StrictUndefined, autoescape=False, keep_trailing_newline=True)


def render(text: str, **context: Any) -> str:
    try:
        return _env.from_string(text).render(**context)
    except TemplateError as e:
        raise TemplateRenderError(f"failed to render template: {e}") from e
