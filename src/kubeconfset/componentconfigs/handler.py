#!/usr/bin/env python3
"""
KUBECONFSET HANDLER CONTRACT
----------------------------
A ComponentHandler owns everything that is specific to one component
configuration group: which API versions it can read, how its defaults
are computed, how a document turns into a typed value and back, and
where the value is stored in the cluster.

Schemas are plain dataclasses. Each field carries its YAML path in the
`yaml` metadata entry (dotted for nested keys) and its wire type in
`type`, which is all the generic decoder below needs.

Author: KubeConfSet Team
Date: 2026-10-19
"""

import dataclasses
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple, Union

from kubeconfset.core.errors import MalformedDocumentError, UnsupportedVersionError
from kubeconfset.core.models import (
    APIEndpoint,
    ClusterConfiguration,
    ComponentConfig,
    NodeRegistrationOptions,
    StorageKey,
)
from kubeconfset.core.version import KubeVersion, compare_version_tags, sort_version_tags
from kubeconfset.io.documents import load_document
from kubeconfset.io.exporter import ConfigExporter

logger = logging.getLogger("kubeconfset.handler")

ENVELOPE_KEYS = ("apiVersion", "kind")

_MISSING = object()


def yaml_field(path: str, kind: type = str, default: Any = None, default_factory: Any = None):
    """Declares a schema field bound to a YAML path."""
    metadata = {"yaml": path, "type": kind}
    if default is None and kind is str:
        default = ""
    if default_factory is not None:
        return dataclasses.field(default_factory=default_factory, metadata=metadata)
    return dataclasses.field(default=default, metadata=metadata)


def _dig(doc: Dict[str, Any], path: Tuple[str, ...]) -> Any:
    node: Any = doc
    for key in path:
        if not isinstance(node, dict) or key not in node:
            return _MISSING
        node = node[key]
    return node


def _coerce(value: Any, kind: type, path: str, group: str, version: str) -> Any:
    if value is None:
        return None

    def wrong(expected: str):
        return MalformedDocumentError(
            f"Field '{path}' must be {expected}, got {type(value).__name__}",
            group=group, version=version,
        )

    if kind is bool:
        if not isinstance(value, bool):
            raise wrong("a boolean")
        return value
    if kind is str:
        # YAML happily turns ports and addresses into numbers
        if isinstance(value, (dict, list, bool)):
            raise wrong("a string")
        return str(value)
    if kind is list:
        if not isinstance(value, list) or any(isinstance(v, (dict, list)) for v in value):
            raise wrong("a list of scalars")
        return [str(v) for v in value]
    if kind is dict:
        if not isinstance(value, dict):
            raise wrong("a mapping")
        return dict(value)
    raise TypeError(f"Unsupported schema type {kind!r} for field '{path}'")


def decode_fields(schema: type, doc: Dict[str, Any], group: str = "", version: str = "") -> Any:
    """
    Builds a schema instance from a decoded document. Unknown top-level
    keys are reported and dropped; shape errors on known keys are fatal.
    """
    values = {}
    known_roots = set(ENVELOPE_KEYS)
    for f in dataclasses.fields(schema):
        path = f.metadata["yaml"]
        known_roots.add(path.split(".")[0])
        raw = _dig(doc, tuple(path.split(".")))
        if raw is _MISSING:
            continue
        coerced = _coerce(raw, f.metadata["type"], path, group, version)
        if coerced is not None:
            values[f.name] = coerced

    unknown = [key for key in doc if key not in known_roots]
    if unknown:
        logger.warning(f"{group}/{version}: ignoring unknown field(s): {', '.join(map(str, unknown))}")
    return schema(**values)


def encode_fields(value: Any) -> Dict[str, Any]:
    """Inverse of decode_fields. Empty values are left out."""
    doc: Dict[str, Any] = {}
    for f in dataclasses.fields(value):
        item = getattr(value, f.name)
        if item is None or item == "" or item == [] or item == {}:
            continue
        *parents, leaf = f.metadata["yaml"].split(".")
        node = doc
        for key in parents:
            node = node.setdefault(key, {})
        node[leaf] = list(item) if isinstance(item, list) else dict(item) if isinstance(item, dict) else item
    return doc


class ComponentHandler(ABC):
    """
    Contract implemented once per component configuration group.

    Subclasses set `group`, `kind`, `schema` and `supported_versions`
    (most preferred first) and implement `default` and `storage_key`.
    Per-version differences are handled in `convert`.
    """

    group: str = ""
    kind: str = ""
    schema: Optional[type] = None
    supported_versions: Tuple[str, ...] = ()

    def __init__(self):
        if not self.group or not self.kind or self.schema is None or not self.supported_versions:
            raise ValueError(f"{type(self).__name__} must declare group, kind, schema and supported_versions")
        if tuple(sort_version_tags(self.supported_versions)) != tuple(self.supported_versions):
            raise ValueError(f"{self.group}: supported_versions must be listed most preferred first")
        self.exporter = ConfigExporter()

    @property
    def preferred_version(self) -> str:
        return self.supported_versions[0]

    @property
    def oldest_version(self) -> str:
        return self.supported_versions[-1]

    def supports(self, version: str) -> bool:
        return version in self.supported_versions

    def compare_versions(self, a: str, b: str) -> int:
        return compare_version_tags(a, b)

    @abstractmethod
    def default(self, cluster_cfg: ClusterConfiguration, api_endpoint: APIEndpoint,
                node_registration: NodeRegistrationOptions) -> ComponentConfig:
        """Returns a fresh instance populated with defaults."""

    @abstractmethod
    def storage_key(self, cluster_version: KubeVersion) -> StorageKey:
        """Where the configuration lives for a cluster of the given release."""

    def convert(self, version: str, doc: Dict[str, Any]) -> Dict[str, Any]:
        """Rewrites a document of an older version into the current field layout."""
        return doc

    def new(self, config: Any, version: Optional[str] = None) -> ComponentConfig:
        return ComponentConfig(group=self.group, version=version or self.preferred_version, config=config)

    def unmarshal(self, version: str, data: Union[bytes, str]) -> ComponentConfig:
        if not self.supports(version):
            raise UnsupportedVersionError(self.group, version, self.supported_versions)
        doc = self.convert(version, load_document(data, self.group, version))
        return self.new(decode_fields(self.schema, doc, self.group, version), version)

    def unmarshal_legacy(self, data: Union[bytes, str]) -> ComponentConfig:
        """
        Decodes a pre-versioning document with the oldest known schema.
        Its version stays unknown; a body that does not decode yields the
        empty schema value.
        """
        try:
            config = self.unmarshal(self.oldest_version, data).config
        except MalformedDocumentError as e:
            logger.warning(f"{self.group}: legacy configuration could not be decoded, using empty value: {e.reason}")
            config = self.schema()
        return ComponentConfig(group=self.group, version="", config=config, legacy=True)

    def marshal(self, component_config: ComponentConfig) -> bytes:
        """Serializes a value under the preferred version."""
        doc = {"apiVersion": f"{self.group}/{self.preferred_version}", "kind": self.kind}
        doc.update(encode_fields(component_config.config))
        return self.exporter.export(doc).encode('utf-8')
