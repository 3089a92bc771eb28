#!/usr/bin/env python3
"""
KUBECONFSET CLUSTER CLIENT
--------------------------
The component-config layer reads exactly one kind of object from a
cluster: ConfigMaps. This module defines that seam and two
implementations of it:

* InMemoryClusterClient: dictionary backed, for tests and offline runs.
* KubernetesClusterClient: a thin wrapper around kubernetes.client that
  converts API objects into our own ConfigMap model, so nothing above
  this layer depends on the kubernetes library's data structures.

Reads are single blocking round trips. There is no retry here; callers
that want one wrap the client.

Author: KubeConfSet Team
Date: 2026-10-19
"""

import logging
from typing import Dict, Iterable, Optional, Protocol, Tuple

from kubernetes import client as k8s_client
from kubernetes import config as k8s_config
from kubernetes.client.rest import ApiException

from kubeconfset.core.errors import ClusterReadError
from kubeconfset.core.models import ConfigMap

logger = logging.getLogger("kubeconfset.cluster")


class ClusterClient(Protocol):
    def get_config_map(self, namespace: str, name: str) -> Optional[ConfigMap]:
        """Returns the ConfigMap, or None when it does not exist."""


class InMemoryClusterClient:
    """ConfigMaps held in a dict keyed by (namespace, name)."""

    def __init__(self, config_maps: Iterable[ConfigMap] = (), error: Optional[Exception] = None):
        self._objects: Dict[Tuple[str, str], ConfigMap] = {}
        self.error = error
        self.reads = 0
        for cm in config_maps:
            self.add(cm)

    def add(self, config_map: ConfigMap):
        self._objects[(config_map.namespace, config_map.name)] = config_map

    def get_config_map(self, namespace: str, name: str) -> Optional[ConfigMap]:
        self.reads += 1
        if self.error is not None:
            raise self.error
        return self._objects.get((namespace, name))


class KubernetesClusterClient:
    """Reads ConfigMaps through the official kubernetes client."""

    def __init__(self, core_api=None):
        self.core_api = core_api or k8s_client.CoreV1Api()

    @classmethod
    def from_kubeconfig(cls, path: Optional[str] = None, context: Optional[str] = None) -> "KubernetesClusterClient":
        try:
            k8s_config.load_kube_config(config_file=path, context=context)
        except (k8s_config.ConfigException, OSError) as e:
            raise ClusterReadError(f"Unable to load kubeconfig: {e}") from e
        return cls()

    def get_config_map(self, namespace: str, name: str) -> Optional[ConfigMap]:
        try:
            obj = self.core_api.read_namespaced_config_map(name=name, namespace=namespace)
        except ApiException as e:
            if e.status == 404:
                logger.debug(f"ConfigMap {namespace}/{name} not found")
                return None
            raise ClusterReadError(
                f"Failed to read ConfigMap {namespace}/{name}: {e.status} {e.reason}"
            ) from e

        metadata = obj.metadata
        return ConfigMap(
            namespace=metadata.namespace or namespace,
            name=metadata.name or name,
            data=dict(obj.data or {}),
            annotations=dict(metadata.annotations or {}),
        )
