#!/usr/bin/env python3
"""
KUBECONFSET LEGACY MARKERS
--------------------------
Bootstrap releases that predate explicit API versioning stamped the
ConfigMaps they generated with a content hash annotation. The hashes
below are the ones those releases are known to have produced; a match
means the stored configuration has no trustworthy version and has to be
migrated by hand.

This is closed historical data. Do not compute or extend it at runtime.

Author: KubeConfSet Team
Date: 2026-10-19
"""

from types import MappingProxyType
from typing import Optional

from kubeconfset.componentconfigs.kubelet import KUBELET_GROUP
from kubeconfset.componentconfigs.kubeproxy import KUBE_PROXY_GROUP
from kubeconfset.core.constants import COMPONENT_CONFIG_HASH_ANNOTATION_KEY
from kubeconfset.core.models import ConfigMap

LEGACY_HASH_MARKERS = MappingProxyType({
    KUBE_PROXY_GROUP: frozenset({
        "sha256:8d3dfd7abcac205f6744d8e9db44505cce0c15b0a5395501e272fc18bd54c13c",
    }),
    KUBELET_GROUP: frozenset(),
})


def legacy_marker(config_map: ConfigMap, group: str) -> Optional[str]:
    """Returns the matching marker for `group`, or None."""
    stamped = config_map.annotations.get(COMPONENT_CONFIG_HASH_ANNOTATION_KEY)
    if stamped and stamped in LEGACY_HASH_MARKERS.get(group, frozenset()):
        return stamped
    return None
