#!/usr/bin/env python3
"""
KUBECONFSET DOCUMENTS - Envelope Reader
---------------------------------------
Splits multi-document YAML streams and reads the apiVersion/kind envelope
of each document without decoding the rest of it. Typed decoding is left
to the component handlers.

Author: KubeConfSet Team
Date: 2026-10-19
"""

import logging
import re
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from ruamel.yaml import YAML, YAMLError

from kubeconfset.core.errors import MalformedDocumentError
from kubeconfset.core.models import DocumentMap, GroupVersionKind

logger = logging.getLogger("kubeconfset.documents")

# A document separator is a line holding only '---' (optionally followed by a comment)
SEPARATOR_PATTERN = re.compile(r'^---[ \t]*(?:#.*)?$', re.MULTILINE)

_yaml = YAML(typ='safe', pure=True)


def _as_text(data: Union[bytes, str]) -> str:
    if isinstance(data, bytes):
        try:
            data = data.decode('utf-8-sig')
        except UnicodeDecodeError as e:
            raise MalformedDocumentError(f"Document is not valid UTF-8: {e}") from e
    # Standardize CRLF to LF
    return data.lstrip('\ufeff').replace('\r\n', '\n')


def load_document(data: Union[bytes, str], group: str = "", version: str = "") -> Dict[str, Any]:
    """
    Parses a single YAML document into a plain mapping.
    An empty document is an empty mapping; anything else that is not a
    mapping is malformed.
    """
    try:
        loaded = _yaml.load(_as_text(data))
    except YAMLError as e:
        raise MalformedDocumentError(f"Invalid YAML: {e}", group=group, version=version) from e
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise MalformedDocumentError(
            f"Expected a mapping at the document root, got {type(loaded).__name__}",
            group=group, version=version,
        )
    return loaded


def read_envelope(data: Union[bytes, str]) -> Optional[GroupVersionKind]:
    """
    Extracts the (group, version, kind) identity of a document.
    Returns None when either apiVersion or kind is absent.
    """
    doc = load_document(data)
    api_version = doc.get("apiVersion")
    kind = doc.get("kind")
    if not api_version or not kind:
        return None
    return GroupVersionKind.from_api_version(str(api_version).strip(), str(kind).strip())


def iter_documents(data: Union[bytes, str]) -> Iterator[Tuple[Optional[GroupVersionKind], bytes]]:
    """
    Yields (envelope, raw bytes) for every non-empty document in a stream.
    The envelope is None for documents without apiVersion/kind.
    """
    text = _as_text(data)
    index = 0
    for chunk in SEPARATOR_PATTERN.split(text):
        if not _has_content(chunk):
            continue
        index += 1
        raw = chunk.encode('utf-8')
        try:
            gvk = read_envelope(raw)
        except MalformedDocumentError as e:
            raise MalformedDocumentError(f"Document #{index}: {e.reason}") from e
        yield gvk, raw


def _has_content(chunk: str) -> bool:
    for line in chunk.splitlines():
        stripped = line.strip()
        if stripped and not stripped.startswith('#'):
            return True
    return False


def split_yaml_documents(data: Union[bytes, str]) -> DocumentMap:
    """
    Splits a YAML stream into a DocumentMap keyed by GroupVersionKind.

    Every document must declare apiVersion and kind, and no identity may
    appear twice in the same stream.
    """
    docmap: DocumentMap = {}
    for index, (gvk, raw) in enumerate(iter_documents(data)):
        if gvk is None:
            raise MalformedDocumentError(
                f"Document #{index + 1} is missing 'apiVersion' or 'kind'; both are mandatory"
            )
        if gvk in docmap:
            raise MalformedDocumentError(
                f"Document #{index + 1}: {gvk.api_version}, Kind={gvk.kind} is specified twice in the same stream",
                group=gvk.group, version=gvk.version,
            )
        docmap[gvk] = raw
    logger.debug(f"Split stream into {len(docmap)} document(s)")
    return docmap


def documents_for(docmap: DocumentMap, group: str, kind: str) -> List[Tuple[GroupVersionKind, bytes]]:
    """All documents of a DocumentMap that belong to one (group, kind) pair, in stream order."""
    return [(gvk, raw) for gvk, raw in docmap.items() if gvk.group == group and gvk.kind == kind]
