#!/usr/bin/env python3
"""
KUBECONFSET HANDLER SUITE
-------------------------
Per-handler contract checks: versions, decoding, encoding, defaults and
storage keys, plus the registry and version ordering they rely on.

Author: KubeConfSet Team
Date: 2026-10-19
"""

import logging
from dataclasses import dataclass
from textwrap import dedent

import pytest

from kubeconfset.componentconfigs.handler import ComponentHandler, yaml_field
from kubeconfset.componentconfigs.kubelet import KubeletHandler, KubeletConfiguration
from kubeconfset.componentconfigs.kubeproxy import KubeProxyHandler, KubeProxyConfiguration
from kubeconfset.componentconfigs.registry import HandlerRegistry, known
from kubeconfset.core.errors import MalformedDocumentError, UnsupportedVersionError
from kubeconfset.core.models import (
    APIEndpoint,
    ClusterConfiguration,
    NodeRegistrationOptions,
    StorageKey,
)
from kubeconfset.core.version import KubeVersion, compare_version_tags, sort_version_tags


@pytest.fixture
def proxy():
    return KubeProxyHandler()


@pytest.fixture
def kubelet():
    return KubeletHandler()


def test_version_tag_ordering():
    tags = ["v1alpha1", "v1", "foo10", "v1beta1", "v2beta1", "v1alpha0", "foo1", "v2"]

    assert sort_version_tags(tags) == [
        "v2", "v1", "v2beta1", "v1beta1", "v1alpha1", "v1alpha0", "foo1", "foo10",
    ]
    assert compare_version_tags("v1beta1", "v1alpha3") > 0
    assert compare_version_tags("v1alpha0", "v1alpha1") < 0
    assert compare_version_tags("v1beta1", "v1beta1") == 0


@pytest.mark.parametrize("raw, expected", [
    ("v1.31.0", KubeVersion(1, 31, 0)),
    ("1.23", KubeVersion(1, 23, 0)),
    ("v1.24.3-rc.1", KubeVersion(1, 24, 3)),
])
def test_kube_version_parse(raw, expected):
    assert KubeVersion.parse(raw) == expected


def test_kube_version_parse_rejects_garbage():
    with pytest.raises(ValueError):
        KubeVersion.parse("latest")


def test_preferred_version_is_first_supported(proxy, kubelet):
    assert proxy.preferred_version == "v1alpha1"
    assert proxy.oldest_version == "v1alpha0"
    assert kubelet.preferred_version == "v1beta1"


def test_unmarshal_unsupported_version(kubelet):
    with pytest.raises(UnsupportedVersionError) as excinfo:
        kubelet.unmarshal("v1alpha0", b"kind: KubeletConfiguration\n")

    err = excinfo.value
    assert err.group == "kubelet.config.k8s.io"
    assert err.version == "v1alpha0"
    assert err.supported_versions == ("v1beta1", "v1alpha1")
    assert "kubelet.config.k8s.io" in str(err) and "v1alpha0" in str(err)


@pytest.mark.parametrize("payload", [
    "clusterDomain: [unterminated\n",
    "- just\n- a list\n",
    "rotateCertificates: 'yes'\n",
    "clusterDNS: 10.96.0.10\n",
    "authentication: {x509: {clientCAFile: {nested: true}}}\n",
])
def test_unmarshal_malformed(kubelet, payload):
    with pytest.raises(MalformedDocumentError) as excinfo:
        kubelet.unmarshal("v1beta1", payload.encode())

    assert excinfo.value.group == "kubelet.config.k8s.io"
    assert excinfo.value.version == "v1beta1"


def test_unmarshal_reads_nested_fields(kubelet):
    cfg = kubelet.unmarshal("v1beta1", dedent("""
        apiVersion: kubelet.config.k8s.io/v1beta1
        kind: KubeletConfiguration
        clusterDNS:
          - 10.96.0.10
        rotateCertificates: false
        authentication:
          x509:
            clientCAFile: /etc/ca.crt
    """).encode())

    assert cfg.group == "kubelet.config.k8s.io"
    assert cfg.version == "v1beta1"
    assert cfg.legacy is False
    assert cfg.config == KubeletConfiguration(
        cluster_dns=["10.96.0.10"], rotate_certificates=False, client_ca_file="/etc/ca.crt",
    )


def test_unmarshal_ignores_unknown_fields(proxy, caplog):
    with caplog.at_level(logging.WARNING, logger="kubeconfset.handler"):
        cfg = proxy.unmarshal("v1alpha1", b"hostnameOverride: foo\nconntrack: {min: 1}\n")

    assert cfg.config.hostname_override == "foo"
    assert "conntrack" in caplog.text


def test_kubeproxy_v1alpha0_feature_gate_string(proxy):
    cfg = proxy.unmarshal("v1alpha0", b"featureGates: 'SupportIPVSProxyMode=true, Foo=false'\n")

    assert cfg.config.feature_gates == {"SupportIPVSProxyMode": True, "Foo": False}


def test_kubeproxy_v1alpha0_bad_feature_gate(proxy):
    with pytest.raises(MalformedDocumentError):
        proxy.unmarshal("v1alpha0", b"featureGates: 'SupportIPVSProxyMode'\n")


def test_marshal_writes_preferred_version(proxy):
    cfg = proxy.new(KubeProxyConfiguration(hostname_override="foo", kubeconfig="/k.conf"), version="v1alpha0")

    out = proxy.marshal(cfg).decode()

    assert out.startswith("apiVersion: kubeproxy.config.k8s.io/v1alpha1\nkind: KubeProxyConfiguration\n")
    assert "clientConnection:\n  kubeconfig: /k.conf\n" in out
    assert "bindAddress" not in out
    assert proxy.unmarshal("v1alpha1", out.encode()).config == cfg.config


def test_unmarshal_legacy_falls_back_to_empty_value(proxy):
    cfg = proxy.unmarshal_legacy(b"bindAddress: [broken\n")

    assert cfg.legacy is True
    assert cfg.version == ""
    assert cfg.config == KubeProxyConfiguration()


def test_kubeproxy_defaults(proxy):
    cluster_cfg = ClusterConfiguration()
    cluster_cfg.networking.pod_subnet = "10.244.0.0/16"

    v4 = proxy.default(cluster_cfg, APIEndpoint(advertise_address="192.168.1.10"), NodeRegistrationOptions())
    v6 = proxy.default(cluster_cfg, APIEndpoint(advertise_address="fd00::10"), NodeRegistrationOptions())

    assert v4.config.bind_address == "0.0.0.0"
    assert v4.config.cluster_cidr == "10.244.0.0/16"
    assert v6.config.bind_address == "::"


def test_kubelet_defaults(kubelet):
    cluster_cfg = ClusterConfiguration()
    cluster_cfg.networking.dns_domain = "example.org"
    node = NodeRegistrationOptions(kubelet_extra_args={"cgroup-driver": "cgroupfs"})

    cfg = kubelet.default(cluster_cfg, APIEndpoint(), node)

    assert cfg.version == "v1beta1"
    assert cfg.config.cluster_dns == ["10.96.0.10"]
    assert cfg.config.cluster_domain == "example.org"
    assert cfg.config.cgroup_driver == "cgroupfs"


@pytest.mark.parametrize("release, expected_name", [
    ("v1.23.9", "kubelet-config-1.23"),
    ("v1.24.0", "kubelet-config"),
    ("v1.31.0", "kubelet-config"),
])
def test_kubelet_storage_key(kubelet, release, expected_name):
    assert kubelet.storage_key(KubeVersion.parse(release)) == StorageKey("kube-system", expected_name, "kubelet")


def test_kubeproxy_storage_key_is_release_independent(proxy):
    assert proxy.storage_key(KubeVersion(1, 20)) == proxy.storage_key(KubeVersion(1, 31))


def test_handler_requires_descending_versions():
    @dataclass
    class Schema:
        name: str = yaml_field("name")

    class Unordered(KubeProxyHandler):
        group = "example.config.k8s.io"
        schema = Schema
        supported_versions = ("v1alpha1", "v1beta1")

    with pytest.raises(ValueError):
        Unordered()


def test_registry_order_and_lookup():
    assert known.groups == ("kubeproxy.config.k8s.io", "kubelet.config.k8s.io")
    assert len(known) == 2
    assert "kubelet.config.k8s.io" in known
    assert isinstance(known["kubelet.config.k8s.io"], KubeletHandler)
    assert known.get("apps") is None
    assert all(isinstance(h, ComponentHandler) for h in known)


def test_registry_rejects_duplicate_groups():
    with pytest.raises(ValueError):
        HandlerRegistry([KubeletHandler(), KubeletHandler()])


@pytest.mark.parametrize("subnet", ["fd00::/126", "10.96.0.0/33"])
def test_kubelet_defaults_reject_unusable_service_subnet(kubelet, subnet):
    cluster_cfg = ClusterConfiguration()
    cluster_cfg.networking.service_subnet = subnet

    with pytest.raises(MalformedDocumentError) as excinfo:
        kubelet.default(cluster_cfg, APIEndpoint(), NodeRegistrationOptions())

    assert excinfo.value.group == "kubelet.config.k8s.io"
    assert excinfo.value.version == "v1beta1"
