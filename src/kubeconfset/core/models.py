#!/usr/bin/env python3
"""
KUBECONFSET CORE MODELS
-----------------------
Defines the data structures shared by the component-config registry,
the fetch pipeline and the version reporter.

Author: KubeConfSet Team
Date: 2026-10-19
"""

from dataclasses import dataclass, field
from typing import Any, Dict, NamedTuple


class GroupVersionKind(NamedTuple):
    """Identity of a single YAML document, taken from its apiVersion/kind."""
    group: str
    version: str
    kind: str

    @classmethod
    def from_api_version(cls, api_version: str, kind: str) -> "GroupVersionKind":
        # Core API documents ("v1") have no group
        if "/" in api_version:
            group, version = api_version.rsplit("/", 1)
        else:
            group, version = "", api_version
        return cls(group, version, kind)

    @property
    def api_version(self) -> str:
        return f"{self.group}/{self.version}" if self.group else self.version


# Insertion ordered: group+version+kind -> raw document bytes
DocumentMap = Dict[GroupVersionKind, bytes]


class StorageKey(NamedTuple):
    """Where a component persists its configuration inside the cluster."""
    namespace: str
    name: str
    data_key: str


@dataclass
class ConfigMap:
    """The only cluster object the registry ever reads."""
    namespace: str
    name: str
    data: Dict[str, str] = field(default_factory=dict)
    annotations: Dict[str, str] = field(default_factory=dict)


@dataclass
class APIEndpoint:
    advertise_address: str = ""
    bind_port: int = 6443


@dataclass
class NodeRegistrationOptions:
    name: str = ""
    cri_socket: str = ""
    kubelet_extra_args: Dict[str, str] = field(default_factory=dict)


@dataclass
class Networking:
    service_subnet: str = "10.96.0.0/12"
    pod_subnet: str = ""
    dns_domain: str = "cluster.local"


@dataclass
class ComponentConfig:
    """
    A configured handler instance held by the Aggregate.

    The value is replaced wholesale on every fetch; `version` is the tag
    the value was parsed from and is empty when it could not be determined.
    """
    group: str
    version: str
    config: Any
    legacy: bool = False


@dataclass
class ClusterConfiguration:
    """Top-level bootstrap configuration carrying the component Aggregate."""
    kubernetes_version: str = ""
    cluster_name: str = "kubernetes"
    networking: Networking = field(default_factory=Networking)
    component_configs: Dict[str, ComponentConfig] = field(default_factory=dict)


@dataclass(frozen=True)
class VersionState:
    """One line of the upgrade report. Output only, never persisted."""
    group: str
    current_version: str
    preferred_version: str
    manual_upgrade_required: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "group": self.group,
            "currentVersion": self.current_version,
            "preferredVersion": self.preferred_version,
            "manualUpgradeRequired": self.manual_upgrade_required,
        }
