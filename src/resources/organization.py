"""
Organization resource kind.

Organizations are the top-level CrateDB Cloud tenant. Only the name is user
settable; everything else is reported by the control plane.
"""

from typing import Any, Dict

from gateway import ControlPlaneGateway, GatewayResponse
from resources.base import ResourceKind
from schema import (
    Mutability,
    ResourceDescriptor,
    boolean,
    dublin_core,
    int32,
    string,
)

ORGANIZATION = ResourceDescriptor(
    kind="organization",
    description="Creates and manages an organization.",
    attributes=(
        string(
            "id",
            Mutability.COMPUTED_ONCE,
            identity=True,
            remote_key="id",
            remote_required=True,
            description="The id of the organization.",
        ),
        string(
            "name",
            Mutability.REQUIRED,
            remote_key="name",
            remote_required=True,
            min_length=1,
            description="The name of the organization.",
        ),
        string(
            "email",
            Mutability.COMPUTED,
            remote_key="email",
            description="The notification email used in the organization.",
        ),
        boolean(
            "notifications_enabled",
            Mutability.COMPUTED,
            remote_key="notificationsEnabled",
            description="Whether notifications enabled for the organization.",
        ),
        int32(
            "plan_type",
            Mutability.COMPUTED,
            remote_key="planType",
            description="The support plan type used in the organization.",
        ),
        int32(
            "project_count",
            Mutability.COMPUTED,
            remote_key="projectCount",
            description="The project count in the organization.",
        ),
        string(
            "role_fqn",
            Mutability.COMPUTED,
            remote_key="roleFqn",
            description="The role FQN.",
        ),
        dublin_core("The DublinCore of the organization."),
    ),
)


class OrganizationKind(ResourceKind):
    """Organization lifecycle against the /organizations endpoints."""

    update_attributes = ("name",)

    @property
    def name(self) -> str:
        return "organization"

    @property
    def descriptor(self) -> ResourceDescriptor:
        return ORGANIZATION

    def encode_update(self, values: Dict[str, Any]) -> Dict[str, Any]:
        # The edit payload repeats the identifier alongside the new name
        body = super().encode_update(values)
        body["id"] = values["id"]
        return body

    async def create(
        self, gateway: ControlPlaneGateway, values: Dict[str, Any]
    ) -> GatewayResponse:
        return await gateway.create_organization(self.encode(values))

    async def fetch(
        self, gateway: ControlPlaneGateway, identifier: str
    ) -> GatewayResponse:
        return await gateway.get_organization(identifier)

    async def patch(
        self, gateway: ControlPlaneGateway, identifier: str, body: Dict[str, Any]
    ) -> GatewayResponse:
        return await gateway.update_organization(identifier, body)

    async def remove(
        self, gateway: ControlPlaneGateway, identifier: str
    ) -> GatewayResponse:
        return await gateway.delete_organization(identifier)

    async def list(self, gateway: ControlPlaneGateway) -> GatewayResponse:
        """List every organization visible to the API key."""
        return await gateway.list_organizations()
