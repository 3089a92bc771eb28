#!/usr/bin/env python3
"""
KUBECONFSET CONFIG FILE SUITE
-----------------------------
Author: KubeConfSet Team
Date: 2026-10-19
"""

from textwrap import dedent

import pytest

from kubeconfset.core.errors import MalformedDocumentError
from kubeconfset.core.models import GroupVersionKind
from kubeconfset.io.config import ConfigFileError, load_config_file, parse_config

FULL_CONFIG = dedent("""
    apiVersion: kubeadm.k8s.io/v1beta3
    kind: InitConfiguration
    localAPIEndpoint:
      advertiseAddress: 192.168.1.10
      bindPort: 8443
    nodeRegistration:
      name: cp-1
      criSocket: unix:///run/containerd/containerd.sock
      kubeletExtraArgs:
        cgroup-driver: cgroupfs
    ---
    apiVersion: kubeadm.k8s.io/v1beta3
    kind: ClusterConfiguration
    kubernetesVersion: v1.23.4
    clusterName: lab
    networking:
      podSubnet: 10.244.0.0/16
    ---
    apiVersion: kubeproxy.config.k8s.io/v1alpha1
    kind: KubeProxyConfiguration
    mode: ipvs
""")


def test_parse_config():
    loaded = parse_config(FULL_CONFIG)

    assert loaded.cluster.kubernetes_version == "v1.23.4"
    assert loaded.cluster.cluster_name == "lab"
    assert loaded.cluster.networking.pod_subnet == "10.244.0.0/16"
    assert loaded.cluster.networking.service_subnet == "10.96.0.0/12"
    assert loaded.api_endpoint.advertise_address == "192.168.1.10"
    assert loaded.api_endpoint.bind_port == 8443
    assert loaded.node_registration.kubelet_extra_args == {"cgroup-driver": "cgroupfs"}
    assert list(loaded.documents) == [
        GroupVersionKind("kubeproxy.config.k8s.io", "v1alpha1", "KubeProxyConfiguration"),
    ]


def test_parse_config_kubelet_extra_args_list_form():
    loaded = parse_config(dedent("""
        apiVersion: kubeadm.k8s.io/v1beta4
        kind: InitConfiguration
        nodeRegistration:
          kubeletExtraArgs:
            - name: cgroup-driver
              value: systemd
    """))

    assert loaded.node_registration.kubelet_extra_args == {"cgroup-driver": "systemd"}


def test_parse_config_rejects_bad_bootstrap_values():
    with pytest.raises(MalformedDocumentError):
        parse_config(dedent("""
            apiVersion: kubeadm.k8s.io/v1beta3
            kind: InitConfiguration
            localAPIEndpoint:
              bindPort: not-a-port
        """))


@pytest.mark.parametrize("field, value", [
    ("serviceSubnet", "fd00::/126"),
    ("serviceSubnet", "not-a-cidr"),
    ("kubernetesVersion", "latest"),
])
def test_parse_config_rejects_bad_cluster_values(field, value):
    networking = f"  {field}: {value}" if field == "serviceSubnet" else ""
    version = f"kubernetesVersion: {value}" if field == "kubernetesVersion" else ""

    with pytest.raises(MalformedDocumentError) as excinfo:
        parse_config(
            "apiVersion: kubeadm.k8s.io/v1beta3\n"
            "kind: ClusterConfiguration\n"
            f"{version}\n"
            "networking:\n"
            f"{networking}\n"
        )

    assert excinfo.value.group == "kubeadm.k8s.io"
    assert excinfo.value.version == "v1beta3"
    assert value in str(excinfo.value)


def test_load_config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(FULL_CONFIG)

    assert load_config_file(path).cluster.cluster_name == "lab"


def test_load_config_file_without_path_uses_defaults():
    loaded = load_config_file(None)

    assert loaded.cluster.component_configs == {}
    assert loaded.documents == {}


def test_load_config_file_missing(tmp_path):
    with pytest.raises(ConfigFileError):
        load_config_file(tmp_path / "missing.yaml")
