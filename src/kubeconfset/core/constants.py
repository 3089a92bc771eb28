#!/usr/bin/env python3
"""
KUBECONFSET CONSTANTS
---------------------
Cluster object names and keys the component configurations live under.

Author: KubeConfSet Team
Date: 2026-10-19
"""

NAMESPACE_SYSTEM = "kube-system"

# Kubernetes release this build was cut for
CURRENT_KUBERNETES_VERSION = "v1.31.0"

# Stamped by older bootstrap releases on the ConfigMaps they generated
COMPONENT_CONFIG_HASH_ANNOTATION_KEY = "kubeadm.kubernetes.io/component-config.hash"

KUBE_PROXY_CONFIG_MAP = "kube-proxy"
KUBE_PROXY_CONFIG_MAP_KEY = "config.conf"
KUBE_PROXY_KUBECONFIG_PATH = "/var/lib/kube-proxy/kubeconfig.conf"

KUBELET_BASE_CONFIG_MAP_PREFIX = "kubelet-config"
KUBELET_BASE_CONFIGURATION_CONFIG_MAP_KEY = "kubelet"
KUBELET_STATIC_POD_PATH = "/etc/kubernetes/manifests"
KUBELET_CLIENT_CA_FILE = "/etc/kubernetes/pki/ca.crt"

# First release storing the kubelet ConfigMap under an unversioned name
UNVERSIONED_KUBELET_CONFIG_MAP_SINCE = (1, 24)

BOOTSTRAP_API_GROUP = "kubeadm.k8s.io"
CLUSTER_CONFIGURATION_KIND = "ClusterConfiguration"
INIT_CONFIGURATION_KIND = "InitConfiguration"
