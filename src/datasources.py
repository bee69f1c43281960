"""
Data Sources - Read-only lookups of remote objects.

A data source fetches an existing organization, project or cluster by id, or
lists every organization, and decodes it with the same descriptor as the
managed resource. A data source owns no state, so a missing object is an
error rather than a signal to drop state.
"""

import logging
from typing import Any, Dict, List

from errors import MappingError, RemoteError, ValidationError
from gateway import ControlPlaneGateway, GatewayResponse
from resources.base import ResourceKind
from resources.organization import OrganizationKind

logger = logging.getLogger(__name__)


class DataSource:
    """Lookup of one resource kind by identifier."""

    def __init__(self, kind: ResourceKind, gateway: ControlPlaneGateway):
        self.kind = kind
        self.gateway = gateway

    async def lookup(self, identifier: str) -> Dict[str, Any]:
        """
        Fetch and decode a remote object.

        Args:
            identifier: Identity attribute value of the object

        Returns:
            The decoded record.

        Raises:
            ValidationError: If no identifier is given
            RemoteError: On any non-success status, including 404
            MappingError: If the response does not match the descriptor
        """
        if not identifier:
            raise ValidationError(
                self.kind.descriptor.identity.name, ["attribute is required"]
            )

        logger.debug(f"Looking up {self.kind.name} {identifier}")
        response = await self.kind.fetch(self.gateway, identifier)
        _require_success(response, f"Error getting {self.kind.name}")
        return self.kind.decode(response.body)


async def list_organizations(gateway: ControlPlaneGateway) -> List[Dict[str, Any]]:
    """
    List every organization visible to the configured API key.

    Raises:
        RemoteError: On any non-success status
        MappingError: If the response is not a list of organizations
    """
    kind = OrganizationKind()
    response = await kind.list(gateway)
    _require_success(response, "Error getting organizations")

    if not isinstance(response.body, list):
        raise MappingError(
            f"Expected a JSON array of organizations, "
            f"got {type(response.body).__name__}"
        )

    organizations = [kind.decode(item) for item in response.body]
    logger.debug(f"Listed {len(organizations)} organizations")
    return organizations


def _require_success(response: GatewayResponse, title: str) -> None:
    if not response.ok:
        raise RemoteError(
            response.status,
            response.reason,
            body=response.body if response.body is not None else response.text,
            title=title,
        )
