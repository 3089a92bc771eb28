#!/usr/bin/env python3
"""
KUBECONFSET KUBE-PROXY HANDLER
------------------------------
Handler for the network proxy's KubeProxyConfiguration.

Author: KubeConfSet Team
Date: 2026-10-19
"""

import ipaddress
from dataclasses import dataclass
from typing import Any, Dict, Optional

from kubeconfset.componentconfigs.handler import ComponentHandler, yaml_field
from kubeconfset.core import constants
from kubeconfset.core.errors import MalformedDocumentError
from kubeconfset.core.models import ComponentConfig, StorageKey
from kubeconfset.core.version import KubeVersion

KUBE_PROXY_GROUP = "kubeproxy.config.k8s.io"


@dataclass
class KubeProxyConfiguration:
    bind_address: str = yaml_field("bindAddress")
    cluster_cidr: str = yaml_field("clusterCIDR")
    hostname_override: str = yaml_field("hostnameOverride")
    mode: str = yaml_field("mode")
    kubeconfig: str = yaml_field("clientConnection.kubeconfig")
    feature_gates: Dict[str, Any] = yaml_field("featureGates", dict, default_factory=dict)


def parse_feature_gates(value: str, version: str) -> Dict[str, bool]:
    """Parses the old 'Name=true,Other=false' flag syntax."""
    gates = {}
    for item in value.split(","):
        item = item.strip()
        if not item:
            continue
        name, sep, flag = item.partition("=")
        flag = flag.strip().lower()
        if not sep or not name.strip() or flag not in ("true", "false"):
            raise MalformedDocumentError(
                f"Invalid feature gate '{item}', expected Name=true|false",
                group=KUBE_PROXY_GROUP, version=version,
            )
        gates[name.strip()] = flag == "true"
    return gates


class KubeProxyHandler(ComponentHandler):
    group = KUBE_PROXY_GROUP
    kind = "KubeProxyConfiguration"
    schema = KubeProxyConfiguration
    supported_versions = ("v1alpha1", "v1alpha0")

    def default(self, cluster_cfg, api_endpoint, node_registration) -> ComponentConfig:
        config = KubeProxyConfiguration(
            bind_address=self._bind_address(api_endpoint.advertise_address),
            cluster_cidr=cluster_cfg.networking.pod_subnet,
            kubeconfig=constants.KUBE_PROXY_KUBECONFIG_PATH,
        )
        return self.new(config)

    def storage_key(self, cluster_version: KubeVersion) -> StorageKey:
        return StorageKey(
            namespace=constants.NAMESPACE_SYSTEM,
            name=constants.KUBE_PROXY_CONFIG_MAP,
            data_key=constants.KUBE_PROXY_CONFIG_MAP_KEY,
        )

    def convert(self, version, doc):
        # v1alpha0 carried feature gates as a flag string
        gates = doc.get("featureGates")
        if version == "v1alpha0" and isinstance(gates, str):
            doc = dict(doc, featureGates=parse_feature_gates(gates, version))
        return doc

    @staticmethod
    def _bind_address(advertise_address: Optional[str]) -> str:
        try:
            if advertise_address and ipaddress.ip_address(advertise_address).version == 6:
                return "::"
        except ValueError:
            pass
        return "0.0.0.0"
