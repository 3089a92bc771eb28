#!/usr/bin/env python3
"""
KUBECONFSET KUBELET HANDLER
---------------------------
Handler for the node agent's KubeletConfiguration. The ConfigMap holding
it was named after the minor release until unversioned names took over.

Author: KubeConfSet Team
Date: 2026-10-19
"""

import ipaddress
from dataclasses import dataclass
from typing import List, Optional

from kubeconfset.componentconfigs.handler import ComponentHandler, yaml_field
from kubeconfset.core import constants
from kubeconfset.core.errors import MalformedDocumentError
from kubeconfset.core.models import ComponentConfig, StorageKey
from kubeconfset.core.version import KubeVersion

KUBELET_GROUP = "kubelet.config.k8s.io"


@dataclass
class KubeletConfiguration:
    cluster_dns: List[str] = yaml_field("clusterDNS", list, default_factory=list)
    cluster_domain: str = yaml_field("clusterDomain")
    static_pod_path: str = yaml_field("staticPodPath")
    cgroup_driver: str = yaml_field("cgroupDriver")
    rotate_certificates: Optional[bool] = yaml_field("rotateCertificates", bool)
    resolv_conf: str = yaml_field("resolvConf")
    client_ca_file: str = yaml_field("authentication.x509.clientCAFile")


def kubelet_config_map_name(cluster_version: KubeVersion) -> str:
    if cluster_version.at_least(*constants.UNVERSIONED_KUBELET_CONFIG_MAP_SINCE):
        return constants.KUBELET_BASE_CONFIG_MAP_PREFIX
    return f"{constants.KUBELET_BASE_CONFIG_MAP_PREFIX}-{cluster_version.major}.{cluster_version.minor}"


def cluster_dns_ip(service_subnet: str) -> str:
    """
    The DNS service takes the tenth address of the first service subnet.
    Raises ValueError for a malformed subnet or one too small to hold it.
    """
    first = service_subnet.split(",")[0].strip()
    network = ipaddress.ip_network(first, strict=False)
    if network.num_addresses <= 10:
        raise ValueError(f"service subnet {first} is too small to hold the DNS service address")
    return str(network[10])


class KubeletHandler(ComponentHandler):
    group = KUBELET_GROUP
    kind = "KubeletConfiguration"
    schema = KubeletConfiguration
    supported_versions = ("v1beta1", "v1alpha1")

    def default(self, cluster_cfg, api_endpoint, node_registration) -> ComponentConfig:
        networking = cluster_cfg.networking
        try:
            dns_ip = cluster_dns_ip(networking.service_subnet)
        except ValueError as e:
            raise MalformedDocumentError(
                f"Cannot derive clusterDNS: {e}", group=self.group, version=self.preferred_version
            ) from e
        config = KubeletConfiguration(
            cluster_dns=[dns_ip],
            cluster_domain=networking.dns_domain,
            static_pod_path=constants.KUBELET_STATIC_POD_PATH,
            cgroup_driver=node_registration.kubelet_extra_args.get("cgroup-driver", "systemd"),
            rotate_certificates=True,
            client_ca_file=constants.KUBELET_CLIENT_CA_FILE,
        )
        return self.new(config)

    def storage_key(self, cluster_version: KubeVersion) -> StorageKey:
        return StorageKey(
            namespace=constants.NAMESPACE_SYSTEM,
            name=kubelet_config_map_name(cluster_version),
            data_key=constants.KUBELET_BASE_CONFIGURATION_CONFIG_MAP_KEY,
        )
