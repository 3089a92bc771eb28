#!/usr/bin/env python3
"""
KUBECONFSET ERRORS
------------------
Every failure raised by the component-config layer names the offending
group and the version tag it was working with, so that the operator can
act on the message alone.

Author: KubeConfSet Team
Date: 2026-10-19
"""

from typing import Optional, Sequence


class ComponentConfigError(Exception):
    """Base class for all component-config failures."""

    def __init__(self, message: str, group: str = "", version: str = ""):
        self.group = group
        self.version = version
        self.reason = message
        super().__init__(self._render(message))

    def _render(self, message: str) -> str:
        if not self.group:
            return message
        version = self.version or "<unknown>"
        return f"{self.group} (version {version}): {message}"


class MalformedDocumentError(ComponentConfigError):
    """The document bytes do not parse as the expected schema."""


class UnsupportedVersionError(ComponentConfigError):
    """The version tag is not one the handler can decode."""

    def __init__(self, group: str, version: str, supported_versions: Sequence[str] = ()):
        self.supported_versions = tuple(supported_versions)
        supported = ", ".join(self.supported_versions) or "none"
        super().__init__(
            f"unsupported API version, supported versions are: {supported}",
            group=group, version=version,
        )


class IncompatibleVersionError(ComponentConfigError):
    """
    The cluster holds a configuration that cannot be carried forward
    without an explicit local override from the operator.
    """

    def __init__(self, group: str, version: str, preferred_version: str, detail: Optional[str] = None):
        self.preferred_version = preferred_version
        message = (
            f"configuration requires a manual upgrade to {preferred_version}; "
            f"supply a local {group} document to proceed"
        )
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message, group=group, version=version)


class ClusterReadError(ComponentConfigError):
    """A cluster read failed for a reason other than 'not found'."""
