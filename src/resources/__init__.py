"""
Resource kinds managed by the reconciliation engine.

Each kind pairs a static attribute descriptor with the gateway calls behind
its lifecycle. Kinds are looked up by name through the KindRegistry.
"""

from resources.base import ResourceKind
from resources.registry import (
    KindRegistry,
    descriptor_for,
    get_registry,
    register_builtin_kinds,
    reset_registry,
)

__all__ = [
    "ResourceKind",
    "KindRegistry",
    "descriptor_for",
    "get_registry",
    "register_builtin_kinds",
    "reset_registry",
]
