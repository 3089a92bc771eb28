#!/usr/bin/env python3
"""
KUBECONFSET HANDLER REGISTRY
----------------------------
The fixed, ordered table of component configuration handlers. It is
built once when the module is imported and handed to every operation
by reference; nothing mutates it afterwards.

Author: KubeConfSet Team
Date: 2026-10-19
"""

from types import MappingProxyType
from typing import Iterable, Iterator, Optional, Tuple

from kubeconfset.componentconfigs.handler import ComponentHandler
from kubeconfset.componentconfigs.kubelet import KubeletHandler
from kubeconfset.componentconfigs.kubeproxy import KubeProxyHandler


class HandlerRegistry:
    """Read-only group -> handler table that iterates in registration order."""

    def __init__(self, handlers: Iterable[ComponentHandler]):
        table = {}
        for handler in handlers:
            if handler.group in table:
                raise ValueError(f"Duplicate handler registered for group '{handler.group}'")
            table[handler.group] = handler
        self._handlers: Tuple[ComponentHandler, ...] = tuple(table.values())
        self._by_group = MappingProxyType(table)

    def __iter__(self) -> Iterator[ComponentHandler]:
        return iter(self._handlers)

    def __len__(self) -> int:
        return len(self._handlers)

    def __contains__(self, group: object) -> bool:
        return group in self._by_group

    def __getitem__(self, group: str) -> ComponentHandler:
        return self._by_group[group]

    def get(self, group: str) -> Optional[ComponentHandler]:
        return self._by_group.get(group)

    @property
    def groups(self) -> Tuple[str, ...]:
        return tuple(self._by_group)

    def __repr__(self) -> str:
        return f"HandlerRegistry({', '.join(self.groups)})"


known = HandlerRegistry([
    KubeProxyHandler(),
    KubeletHandler(),
])
