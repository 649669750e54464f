"""
adtree Exceptions
=================

Error kinds raised by the expander, the directory sources and the renderer.

Every error derives from AdTreeError so the CLI can surface any of them as a
single human-readable message.
"""

from typing import Optional


class AdTreeError(Exception):
    """Base class for all adtree errors."""


class DomainResolutionError(AdTreeError):
    """The domain name does not resolve to a queryable directory."""

    def __init__(self, domain: str, reason: Optional[str] = None):
        self.domain = domain
        self.reason = reason
        message = f"Could not resolve domain '{domain}'"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class DirectoryUnavailable(AdTreeError):
    """The directory query capability could not be established."""


class ObjectNotFound(AdTreeError):
    """The initial lookup returned no record."""

    def __init__(self, name: str, domain: str):
        self.name = name
        self.domain = domain
        super().__init__(f"Object '{name}' was not found in domain '{domain}'")


class QueryError(AdTreeError):
    """A directory lookup failed during expansion."""


class TraversalLimitError(AdTreeError):
    """The expansion grew past the configured node limit."""

    def __init__(self, max_nodes: int):
        self.max_nodes = max_nodes
        super().__init__(
            f"Membership tree exceeded {max_nodes} nodes; "
            f"raise --max-nodes or use --full-cycle-check"
        )


class SnapshotError(AdTreeError):
    """A directory snapshot file could not be read or is malformed."""


class RenderError(AdTreeError):
    """The node set does not form a single rooted tree."""
