"""
Plan Resolver - Effective attribute values for one apply cycle.

Merges desired configuration with prior state to decide, per attribute,
whether the value comes from the user, is carried over from state, falls
back to a static default, or stays unknown until the remote responds.
"""

import copy
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from errors import ReplacementRequired
from schema import UNKNOWN, Mutability, ResourceDescriptor, is_unknown

logger = logging.getLogger(__name__)


class PlanSource(Enum):
    """Where a planned attribute value comes from."""

    DESIRED = "desired"
    PRIOR = "prior"
    DEFAULT = "default"
    UNKNOWN = "unknown"


@dataclass
class PlanDelta:
    """Planned attribute values for one resource instance."""

    kind: str
    values: Dict[str, Any] = field(default_factory=dict)
    sources: Dict[str, PlanSource] = field(default_factory=dict)

    def unknown_attributes(self) -> List[str]:
        """Attributes pending the remote response."""
        return [name for name, value in self.values.items() if is_unknown(value)]

    def changed_attributes(
        self, descriptor: ResourceDescriptor, prior: Optional[Dict[str, Any]]
    ) -> List[str]:
        """
        Writable attributes whose planned value differs from prior state.

        Args:
            descriptor: Descriptor of the resource kind
            prior: Prior state, or None before create

        Returns:
            Attribute names in descriptor order.
        """
        prior = prior or {}
        return [
            spec.name
            for spec in descriptor
            if spec.writable
            and not is_unknown(self.values.get(spec.name))
            and self.values.get(spec.name) != prior.get(spec.name)
        ]


def replacement_attributes(
    descriptor: ResourceDescriptor,
    desired: Dict[str, Any],
    prior: Optional[Dict[str, Any]],
) -> List[str]:
    """
    Replacement attributes whose desired value conflicts with prior state.

    Args:
        descriptor: Descriptor of the resource kind
        desired: Desired configuration
        prior: Prior state, or None before create

    Returns:
        Attribute names forcing destroy-then-create; empty when the change
        can be applied in place.
    """
    if prior is None:
        return []

    conflicts = []
    for spec in descriptor:
        if not spec.replace or desired.get(spec.name) is None:
            continue
        previous = prior.get(spec.name, UNKNOWN)
        if is_unknown(previous):
            continue
        if desired[spec.name] != previous:
            conflicts.append(spec.name)
    return conflicts


def resolve(
    descriptor: ResourceDescriptor,
    desired: Dict[str, Any],
    prior: Optional[Dict[str, Any]] = None,
) -> PlanDelta:
    """
    Resolve the effective attribute values for an apply cycle.

    Desired configuration wins over defaults; prior state wins over defaults
    for attributes absent from desired; computed attributes carry prior
    state forward or stay unknown until the remote produces them.

    Args:
        descriptor: Descriptor of the resource kind
        desired: Desired configuration (already validated)
        prior: Prior state, or None before create

    Returns:
        The PlanDelta for this cycle.

    Raises:
        ReplacementRequired: If a replacement attribute changed.
    """
    conflicts = replacement_attributes(descriptor, desired, prior)
    if conflicts:
        logger.info(
            f"Planned replacement of {descriptor.kind}: "
            f"{', '.join(conflicts)} changed"
        )
        raise ReplacementRequired(conflicts)

    delta = PlanDelta(kind=descriptor.kind)

    for spec in descriptor:
        prior_value = UNKNOWN if prior is None else prior.get(spec.name, UNKNOWN)

        if spec.writable and desired.get(spec.name) is not None:
            value, source = desired[spec.name], PlanSource.DESIRED
        elif spec.mutability == Mutability.COMPUTED_ONCE:
            if prior_value is None or is_unknown(prior_value):
                value, source = UNKNOWN, PlanSource.UNKNOWN
            else:
                value, source = prior_value, PlanSource.PRIOR
        elif prior is not None and not is_unknown(prior_value):
            value, source = prior_value, PlanSource.PRIOR
        elif spec.writable and spec.default is not None:
            value, source = spec.default, PlanSource.DEFAULT
        else:
            value, source = UNKNOWN, PlanSource.UNKNOWN

        delta.values[spec.name] = copy.deepcopy(value)
        delta.sources[spec.name] = source

    return delta
