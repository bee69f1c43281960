"""
Resource Kind Base - Abstract interface for managed resource kinds.

Each resource kind (organization, project, cluster) implements the same
capability set: a static descriptor, decode/encode of remote payloads, plan
resolution, and the remote actions behind create, read, update and delete.
The reconciler is written against this interface only.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple

import mapper
import planner
from gateway import ControlPlaneGateway, GatewayResponse
from planner import PlanDelta
from schema import ResourceDescriptor
from validation import DesiredValidator


class ResourceKind(ABC):
    """
    Abstract base class for resource kinds.

    Subclasses declare the descriptor and map the four lifecycle actions to
    gateway calls. Payload shaping defaults to the State Mapper and can be
    overridden where the remote API wraps or restricts bodies.
    """

    # Attributes the remote update endpoint accepts
    update_attributes: Tuple[str, ...] = ()

    def __init__(self):
        self.validator = DesiredValidator(self.descriptor)

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique kind name (e.g. 'cluster')."""
        pass

    @property
    @abstractmethod
    def descriptor(self) -> ResourceDescriptor:
        """Static attribute table for this kind."""
        pass

    # Remote actions

    @abstractmethod
    async def create(
        self, gateway: ControlPlaneGateway, values: Dict[str, Any]
    ) -> GatewayResponse:
        """
        Issue the remote create call.

        Args:
            gateway: The configured gateway
            values: Resolved plan values

        Returns:
            The raw gateway response.
        """
        pass

    @abstractmethod
    async def fetch(
        self, gateway: ControlPlaneGateway, identifier: str
    ) -> GatewayResponse:
        """Issue the remote fetch-by-id call."""
        pass

    @abstractmethod
    async def patch(
        self, gateway: ControlPlaneGateway, identifier: str, body: Dict[str, Any]
    ) -> GatewayResponse:
        """Issue the remote update call with an already encoded body."""
        pass

    @abstractmethod
    async def remove(
        self, gateway: ControlPlaneGateway, identifier: str
    ) -> GatewayResponse:
        """Issue the remote delete call."""
        pass

    # Payload shaping

    def decode(self, raw: Any) -> Dict[str, Any]:
        """Decode a remote object into a record."""
        return mapper.decode(self.descriptor, raw)

    def encode(self, values: Dict[str, Any]) -> Dict[str, Any]:
        """Encode plan values into a create request body."""
        return mapper.encode(self.descriptor, values)

    def encode_update(self, values: Dict[str, Any]) -> Dict[str, Any]:
        """Encode plan values into an update request body."""
        return mapper.encode(self.descriptor, values, only=self.update_attributes)

    def resolve(
        self, desired: Dict[str, Any], prior: Optional[Dict[str, Any]] = None
    ) -> PlanDelta:
        """Resolve the plan for desired configuration against prior state."""
        return planner.resolve(self.descriptor, desired, prior)

    def identifier(self, record: Dict[str, Any]) -> Any:
        """Identity attribute value of a record."""
        return record.get(self.descriptor.identity.name)
