#!/usr/bin/env python3
"""
KUBECONFSET CONFIG SET - The Negotiator
---------------------------------------
Operations over the component-config Aggregate held by a
ClusterConfiguration:

1. default: one defaulted instance per registered group.
2. fetch_from_cluster / fetch_from_document_map: replace entries with
   what the cluster (or a local document set) actually holds.
3. fetch_from_cluster_with_local_overwrites: cluster state first, local
   documents on top, then refuse to carry forward anything that is not
   at the preferred version unless the operator supplied a replacement.
4. get_version_states: a read-only report of observed vs. preferred
   versions per group.

Failures abort the call on the first error. Entries written before the
failure stay in the Aggregate; every group is stored independently and
a re-fetch simply overwrites it.

Callers must not run these operations concurrently on the same
ClusterConfiguration.

Author: KubeConfSet Team
Date: 2026-10-19
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from kubeconfset.cluster.client import ClusterClient
from kubeconfset.componentconfigs.handler import ComponentHandler
from kubeconfset.componentconfigs.legacy import legacy_marker
from kubeconfset.componentconfigs.registry import HandlerRegistry, known
from kubeconfset.core.constants import CURRENT_KUBERNETES_VERSION
from kubeconfset.core.errors import (
    IncompatibleVersionError,
    MalformedDocumentError,
    UnsupportedVersionError,
)
from kubeconfset.core.models import (
    APIEndpoint,
    ClusterConfiguration,
    ComponentConfig,
    ConfigMap,
    DocumentMap,
    GroupVersionKind,
    NodeRegistrationOptions,
    VersionState,
)
from kubeconfset.core.version import KubeVersion
from kubeconfset.io.documents import documents_for, iter_documents

logger = logging.getLogger("kubeconfset.configset")

RawDocument = Tuple[Optional[GroupVersionKind], bytes]


@dataclass
class _StoredPayload:
    config_map: ConfigMap
    documents: List[RawDocument]


@dataclass
class _Observation:
    present: bool = False
    version: str = ""
    legacy: bool = False


def _cluster_version(cluster_cfg: ClusterConfiguration) -> KubeVersion:
    if not cluster_cfg.kubernetes_version:
        logger.debug(f"No Kubernetes version set, resolving storage keys for {CURRENT_KUBERNETES_VERSION}")
    return KubeVersion.parse(cluster_cfg.kubernetes_version or CURRENT_KUBERNETES_VERSION)


def _read_stored(handler: ComponentHandler, client: ClusterClient,
                 cluster_version: KubeVersion) -> Optional[_StoredPayload]:
    """Reads and splits the payload stored under a handler's storage key."""
    key = handler.storage_key(cluster_version)
    config_map = client.get_config_map(key.namespace, key.name)
    if config_map is None:
        logger.debug(f"{handler.group}: no ConfigMap {key.namespace}/{key.name}")
        return None

    payload = config_map.data.get(key.data_key)
    if payload is None:
        logger.debug(f"{handler.group}: ConfigMap {key.namespace}/{key.name} has no '{key.data_key}' key")
        return None

    try:
        documents = list(iter_documents(payload))
    except MalformedDocumentError as e:
        raise MalformedDocumentError(
            f"ConfigMap {key.namespace}/{key.name} key '{key.data_key}': {e.reason}", group=handler.group
        ) from e
    return _StoredPayload(config_map=config_map, documents=documents)


def _owner(registry: HandlerRegistry, gvk: Optional[GroupVersionKind]) -> Optional[ComponentHandler]:
    if gvk is None:
        return None
    handler = registry.get(gvk.group)
    if handler is None or handler.kind != gvk.kind:
        logger.debug(f"Skipping unrecognized document {gvk.api_version}, Kind={gvk.kind}")
        return None
    return handler


def _is_legacy(handler: ComponentHandler, stored: _StoredPayload, gvk: Optional[GroupVersionKind]) -> bool:
    """
    A document is legacy when its ConfigMap carries a known marker for the
    handler's group and the document is not at the preferred version. A
    marker next to a preferred-version document is stale and ignored.
    """
    if legacy_marker(stored.config_map, handler.group) is None:
        return False
    if gvk is None:
        return True
    return gvk.group == handler.group and gvk.version != handler.preferred_version


def _apply_documents(cluster_cfg: ClusterConfiguration, documents: Iterable[RawDocument],
                     registry: HandlerRegistry) -> List[str]:
    """
    Unmarshals every recognized document into the Aggregate.
    Returns the groups written, in document order.
    """
    written = []
    for gvk, raw in documents:
        handler = _owner(registry, gvk)
        if handler is None:
            continue
        cluster_cfg.component_configs[handler.group] = handler.unmarshal(gvk.version, raw)
        written.append(handler.group)
    return written


def _fetch_stored(cluster_cfg: ClusterConfiguration, handler: ComponentHandler, client: ClusterClient,
                  cluster_version: KubeVersion, registry: HandlerRegistry) -> List[str]:
    stored = _read_stored(handler, client, cluster_version)
    if stored is None:
        return []

    written = []
    regular = []
    for gvk, raw in stored.documents:
        if _is_legacy(handler, stored, gvk):
            logger.warning(
                f"{handler.group}: ConfigMap {stored.config_map.namespace}/{stored.config_map.name} "
                f"holds a legacy generated configuration"
            )
            cluster_cfg.component_configs[handler.group] = handler.unmarshal_legacy(raw)
            written.append(handler.group)
        else:
            regular.append((gvk, raw))
    written.extend(_apply_documents(cluster_cfg, regular, registry))
    return written


def default(cluster_cfg: ClusterConfiguration, api_endpoint: APIEndpoint,
            node_registration: NodeRegistrationOptions, registry: HandlerRegistry = known):
    """Populates the Aggregate with one defaulted instance per registered group."""
    for handler in registry:
        cluster_cfg.component_configs[handler.group] = handler.default(cluster_cfg, api_endpoint, node_registration)


def fetch_from_cluster(cluster_cfg: ClusterConfiguration, client: ClusterClient,
                       registry: HandlerRegistry = known):
    """
    Replaces Aggregate entries with the configurations stored in the
    cluster. Groups with nothing stored are left untouched.
    """
    cluster_version = _cluster_version(cluster_cfg)
    loaded = []
    for handler in registry:
        loaded.extend(_fetch_stored(cluster_cfg, handler, client, cluster_version, registry))
    logger.info(f"Loaded {len(set(loaded))} component configuration(s) from the cluster")


def fetch_from_document_map(cluster_cfg: ClusterConfiguration, docmap: DocumentMap,
                            registry: HandlerRegistry = known):
    """Same as fetch_from_cluster, sourced from local documents."""
    loaded = _apply_documents(cluster_cfg, docmap.items(), registry)
    logger.info(f"Loaded {len(set(loaded))} component configuration(s) from local documents")


def fetch_from_cluster_with_local_overwrites(cluster_cfg: ClusterConfiguration, client: ClusterClient,
                                             docmap: DocumentMap, registry: HandlerRegistry = known):
    """
    Loads cluster state, replaces it with every local document supplied,
    then rejects any remaining group the operator has to upgrade by hand.

    A local document always wins over the cluster, whatever the relation
    between the two versions, as long as it unmarshals.
    """
    cluster_version = _cluster_version(cluster_cfg)

    held_back: Dict[str, UnsupportedVersionError] = {}
    for handler in registry:
        try:
            _fetch_stored(cluster_cfg, handler, client, cluster_version, registry)
        except UnsupportedVersionError as e:
            # Acceptable only if the operator overrides this group below
            logger.debug(f"Holding back cluster configuration: {e}")
            held_back[e.group] = e

    overridden = set(_apply_documents(cluster_cfg, docmap.items(), registry))
    for group in sorted(overridden):
        logger.info(f"{group}: using the locally supplied configuration")

    for handler in registry:
        group = handler.group
        if group in overridden:
            continue
        if group in held_back:
            err = held_back[group]
            raise IncompatibleVersionError(
                group, err.version, handler.preferred_version, detail="version is no longer supported"
            ) from err

        current = cluster_cfg.component_configs.get(group)
        if current is None:
            continue
        if current.legacy:
            raise IncompatibleVersionError(
                group, "", handler.preferred_version, detail="legacy unversioned configuration"
            )
        if current.version != handler.preferred_version:
            raise IncompatibleVersionError(group, current.version, handler.preferred_version)


def _observe(handler: ComponentHandler, client: ClusterClient, cluster_version: KubeVersion) -> _Observation:
    """Reads only the version tag of a group's stored configuration."""
    stored = _read_stored(handler, client, cluster_version)
    if stored is None:
        return _Observation()

    observed = _Observation(present=True)
    for gvk, _ in stored.documents:
        if _is_legacy(handler, stored, gvk):
            observed.version, observed.legacy = "", True
        elif gvk is not None and gvk.group == handler.group and gvk.kind == handler.kind:
            observed.version, observed.legacy = gvk.version, False

    if not observed.version and not observed.legacy:
        logger.warning(f"{handler.group}: stored configuration has no recognizable apiVersion")
    elif observed.version and handler.compare_versions(observed.version, handler.preferred_version) > 0:
        logger.warning(
            f"{handler.group}: cluster holds {observed.version}, newer than {handler.preferred_version} "
            f"supported by this build"
        )
    return observed


def get_version_states(cluster_cfg: ClusterConfiguration, client: ClusterClient,
                       substitutes: DocumentMap, registry: HandlerRegistry = known) -> List[VersionState]:
    """
    Reports, per registered group and in registry order, the observed and
    preferred versions and whether an operator has to migrate by hand.

    A substitute document replaces the cluster observation for its group
    if the handler can unmarshal it; otherwise the report is aborted.
    The Aggregate is never touched.
    """
    cluster_version = _cluster_version(cluster_cfg)
    states = []
    for handler in registry:
        observed = _observe(handler, client, cluster_version)

        candidates = documents_for(substitutes, handler.group, handler.kind)
        if candidates:
            gvk, raw = candidates[-1]
            substitute: ComponentConfig = handler.unmarshal(gvk.version, raw)
            observed = _Observation(present=True, version=substitute.version)

        preferred = handler.preferred_version
        states.append(VersionState(
            group=handler.group,
            current_version=observed.version,
            preferred_version=preferred,
            manual_upgrade_required=observed.present and (observed.legacy or observed.version != preferred),
        ))
    return states


def marshal_all(cluster_cfg: ClusterConfiguration, registry: HandlerRegistry = known) -> str:
    """The Aggregate as a YAML stream, in registry order."""
    chunks = []
    for handler in registry:
        current = cluster_cfg.component_configs.get(handler.group)
        if current is not None:
            chunks.append(handler.marshal(current).decode('utf-8'))
    return "---\n".join(chunks)
