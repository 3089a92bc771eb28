#!/usr/bin/env python3
"""
KUBECONFSET VERSIONS
--------------------
Two unrelated notions of "version" meet in this tool:

* Kubernetes releases (v1.31.0), used to resolve versioned storage keys.
* API version tags (v1alpha1, v1beta1, v1), used to pick a schema.

API tags are ordered the Kubernetes way, not lexicographically: every GA
tag beats every beta tag, every beta beats every alpha, higher major and
higher suffix numbers win inside a level, and anything that does not look
like a tag sorts last.

Author: KubeConfSet Team
Date: 2026-10-19
"""

import re
from functools import cmp_to_key
from typing import Iterable, List, NamedTuple, Tuple

RELEASE_PATTERN = re.compile(r'^v?(\d+)\.(\d+)(?:\.(\d+))?(?:[-+].*)?$')
API_TAG_PATTERN = re.compile(r'^v(\d+)(?:(alpha|beta)(\d+))?$')

_LEVELS = {None: 3, "beta": 2, "alpha": 1}


class KubeVersion(NamedTuple):
    major: int
    minor: int
    patch: int = 0

    @classmethod
    def parse(cls, value: str) -> "KubeVersion":
        match = RELEASE_PATTERN.match(value.strip())
        if not match:
            raise ValueError(f"Invalid Kubernetes version '{value}'")
        major, minor, patch = match.groups()
        return cls(int(major), int(minor), int(patch or 0))

    def at_least(self, major: int, minor: int) -> bool:
        return (self.major, self.minor) >= (major, minor)

    def __str__(self) -> str:
        return f"v{self.major}.{self.minor}.{self.patch}"


def _tag_key(tag: str) -> Tuple[int, int, int]:
    match = API_TAG_PATTERN.match(tag)
    if not match:
        return (0, 0, 0)
    major, level, suffix = match.groups()
    return (_LEVELS[level], int(major), int(suffix or 0))


def compare_version_tags(a: str, b: str) -> int:
    """
    Returns a positive number when `a` is preferred over `b`, a negative
    number when `b` is preferred, and 0 when they are the same tag.
    """
    if a == b:
        return 0
    key_a, key_b = _tag_key(a), _tag_key(b)
    if key_a[0] == 0 and key_b[0] == 0:
        # Malformed tags: the lexicographically smaller one wins
        return -1 if a > b else 1
    if key_a == key_b:
        return 0
    return 1 if key_a > key_b else -1


def sort_version_tags(tags: Iterable[str]) -> List[str]:
    """Most preferred first."""
    return sorted(tags, key=cmp_to_key(compare_version_tags), reverse=True)
