#!/usr/bin/env python3
"""
KUBECONFSET CONFIG LOADER
-------------------------
Reads the tool's input file: a multi-document YAML stream holding a
ClusterConfiguration, optionally an InitConfiguration, and any number of
component configuration documents. The bootstrap documents fill the
typed models; everything else is handed back as a DocumentMap for the
component-config layer to interpret.

Author: KubeConfSet Team
Date: 2026-10-19
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

from kubeconfset.componentconfigs.kubelet import cluster_dns_ip
from kubeconfset.core import constants
from kubeconfset.core.errors import MalformedDocumentError
from kubeconfset.core.models import (
    APIEndpoint,
    ClusterConfiguration,
    DocumentMap,
    Networking,
    NodeRegistrationOptions,
)
from kubeconfset.core.version import KubeVersion
from kubeconfset.io.documents import load_document, split_yaml_documents

logger = logging.getLogger("kubeconfset.config")


class ConfigFileError(Exception):
    """The configuration file is missing or cannot be read."""


@dataclass
class LoadedConfig:
    cluster: ClusterConfiguration = field(default_factory=ClusterConfiguration)
    api_endpoint: APIEndpoint = field(default_factory=APIEndpoint)
    node_registration: NodeRegistrationOptions = field(default_factory=NodeRegistrationOptions)
    # Component documents, by identity
    documents: DocumentMap = field(default_factory=dict)


def _extra_args(value: Any) -> Dict[str, str]:
    # v1beta3 uses a map, v1beta4 a list of {name, value}
    if isinstance(value, dict):
        return {str(k): str(v) for k, v in value.items()}
    if isinstance(value, list):
        return {str(arg.get("name")): str(arg.get("value", "")) for arg in value if isinstance(arg, dict)}
    return {}


def _apply_cluster_configuration(loaded: LoadedConfig, doc: Dict[str, Any]):
    cluster = loaded.cluster
    cluster.kubernetes_version = str(doc.get("kubernetesVersion") or cluster.kubernetes_version)
    cluster.cluster_name = str(doc.get("clusterName") or cluster.cluster_name)

    networking = doc.get("networking") or {}
    defaults = Networking()
    cluster.networking = Networking(
        service_subnet=str(networking.get("serviceSubnet") or defaults.service_subnet),
        pod_subnet=str(networking.get("podSubnet") or defaults.pod_subnet),
        dns_domain=str(networking.get("dnsDomain") or defaults.dns_domain),
    )
    # Both feed storage keys and kubelet defaults
    if cluster.kubernetes_version:
        KubeVersion.parse(cluster.kubernetes_version)
    cluster_dns_ip(cluster.networking.service_subnet)


def _apply_init_configuration(loaded: LoadedConfig, doc: Dict[str, Any]):
    endpoint = doc.get("localAPIEndpoint") or {}
    loaded.api_endpoint = APIEndpoint(
        advertise_address=str(endpoint.get("advertiseAddress") or ""),
        bind_port=int(endpoint.get("bindPort") or APIEndpoint().bind_port),
    )

    registration = doc.get("nodeRegistration") or {}
    loaded.node_registration = NodeRegistrationOptions(
        name=str(registration.get("name") or ""),
        cri_socket=str(registration.get("criSocket") or ""),
        kubelet_extra_args=_extra_args(registration.get("kubeletExtraArgs")),
    )


def parse_config(data: Union[bytes, str]) -> LoadedConfig:
    """Splits a configuration stream into bootstrap models and component documents."""
    loaded = LoadedConfig()
    for gvk, raw in split_yaml_documents(data).items():
        if gvk.group != constants.BOOTSTRAP_API_GROUP:
            loaded.documents[gvk] = raw
            continue

        doc = load_document(raw, gvk.group, gvk.version)
        try:
            if gvk.kind == constants.CLUSTER_CONFIGURATION_KIND:
                _apply_cluster_configuration(loaded, doc)
            elif gvk.kind == constants.INIT_CONFIGURATION_KIND:
                _apply_init_configuration(loaded, doc)
            else:
                logger.warning(f"Ignoring unsupported bootstrap document kind '{gvk.kind}'")
        except (AttributeError, TypeError, ValueError) as e:
            raise MalformedDocumentError(f"Invalid {gvk.kind}: {e}", group=gvk.group, version=gvk.version) from e

    return loaded


def load_config_file(path: Optional[Union[str, Path]]) -> LoadedConfig:
    """Reads the configuration file, or returns pure defaults when no path is given."""
    if path is None:
        return LoadedConfig()

    config_path = Path(path)
    try:
        raw = config_path.read_bytes()
    except OSError as e:
        raise ConfigFileError(f"Unable to read configuration file {config_path}: {e}") from e

    logger.debug(f"Loaded configuration file {config_path}")
    return parse_config(raw)
