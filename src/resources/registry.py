"""
Kind Registry - Registration and lookup of resource kinds.

This module provides the central registry mapping kind names to their
ResourceKind implementations. Kinds are instantiated once at registration,
which compiles and checks their descriptors before any reconciler runs.
"""

import logging
from typing import Dict, List, Optional, Type

from resources.base import ResourceKind
from schema import ResourceDescriptor

logger = logging.getLogger(__name__)


class KindRegistry:
    """Central registry for resource kinds."""

    def __init__(self):
        self._kinds: Dict[str, ResourceKind] = {}

    def register_kind(self, kind_class: Type[ResourceKind]) -> ResourceKind:
        """
        Register a resource kind class.

        Args:
            kind_class: The ResourceKind subclass to register

        Returns:
            The registered kind instance

        Raises:
            ValueError: If the kind's descriptor fails its startup checks
        """
        kind = kind_class()
        name = kind.name

        if name in self._kinds:
            logger.warning(f"Overwriting existing resource kind: {name}")

        self._kinds[name] = kind
        logger.info(
            f"Registered resource kind: {name} "
            f"({len(kind.descriptor.attributes)} attributes)"
        )
        return kind

    def get_kind(self, name: str) -> ResourceKind:
        """
        Get a registered resource kind.

        Raises:
            ValueError: If the kind name is not registered
        """
        if name not in self._kinds:
            available = ", ".join(self._kinds.keys()) or "none"
            raise ValueError(
                f"Unknown resource kind: {name}. Available kinds: {available}"
            )
        return self._kinds[name]

    def descriptor_for(self, name: str) -> ResourceDescriptor:
        """Get the descriptor of a registered resource kind."""
        return self.get_kind(name).descriptor

    def list_kinds(self) -> List[str]:
        """List all registered kind names."""
        return list(self._kinds.keys())

    def has_kind(self, name: str) -> bool:
        """Check if a kind is registered."""
        return name in self._kinds


# Global registry instance
_registry: Optional[KindRegistry] = None


def get_registry() -> KindRegistry:
    """Get the global kind registry singleton."""
    global _registry
    if _registry is None:
        _registry = KindRegistry()
    return _registry


def reset_registry() -> None:
    """Reset the global registry (mainly for testing)."""
    global _registry
    _registry = None


def register_builtin_kinds() -> KindRegistry:
    """Register the organization, project and cluster kinds."""
    from resources.cluster import ClusterKind
    from resources.organization import OrganizationKind
    from resources.project import ProjectKind

    registry = get_registry()
    for kind_class in (OrganizationKind, ProjectKind, ClusterKind):
        if not registry.has_kind(kind_class().name):
            registry.register_kind(kind_class)
    return registry


def descriptor_for(kind: str) -> ResourceDescriptor:
    """Get the descriptor for a kind name from the global registry."""
    return register_builtin_kinds().descriptor_for(kind)
