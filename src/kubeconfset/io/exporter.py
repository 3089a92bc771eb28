#!/usr/bin/env python3
"""
KUBECONFSET EXPORTER - Canonical YAML
-------------------------------------
Turns component configuration mappings back into YAML with the
envelope keys first and a stable layout for the remaining fields.

Author: KubeConfSet Team
Date: 2026-10-19
"""

import io
from typing import Any, Dict, List, Union

from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap


class ConfigExporter:
    """
    The Reconstructor: converts configuration mappings to YAML text.
    """

    def __init__(self):
        self.yaml = YAML(typ='rt')
        # Standard K8s: 2 spaces, sequences indented 4 (offset 2)
        self.yaml.indent(mapping=2, sequence=4, offset=2)
        self.yaml.width = 4096
        self.preferred_order = ["apiVersion", "kind", "metadata"]

    def _get_sorted_map(self, data: Any) -> Any:
        """
        Recursively rebuilds mappings with the envelope keys on top.
        Other keys keep their relative position.
        """
        if isinstance(data, list):
            return [self._get_sorted_map(item) for item in data]
        if not isinstance(data, dict):
            return data

        keys = list(data.keys())

        def sort_logic(key):
            if key in self.preferred_order:
                return self.preferred_order.index(key)
            return len(self.preferred_order) + keys.index(key)

        sorted_map = CommentedMap()
        for key in sorted(keys, key=sort_logic):
            sorted_map[key] = self._get_sorted_map(data[key])
        return sorted_map

    def export(self, docs: Union[Dict[str, Any], List[Dict[str, Any]]]) -> str:
        """
        Exports one or more documents into a single string, with explicit
        separators between documents.
        """
        stream = io.StringIO()
        docs = docs if isinstance(docs, list) else [docs]

        written = 0
        for doc in docs:
            if not doc:
                continue
            if written:
                stream.write("---\n")
            written += 1
            self.yaml.dump(self._get_sorted_map(doc), stream)

        return stream.getvalue()
