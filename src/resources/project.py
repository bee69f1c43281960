"""
Project resource kind.

A project lives in one organization and one region. The region cannot be
changed in place; changing it replaces the project.
"""

from typing import Any, Dict

from gateway import ControlPlaneGateway, GatewayResponse
from resources.base import ResourceKind
from schema import Mutability, ResourceDescriptor, dublin_core, string

PROJECT = ResourceDescriptor(
    kind="project",
    description="Creates and manages a project.",
    attributes=(
        dublin_core("The DublinCore of the project."),
        string(
            "id",
            Mutability.COMPUTED_ONCE,
            identity=True,
            remote_key="id",
            remote_required=True,
            description="The id of the project.",
        ),
        string(
            "name",
            Mutability.REQUIRED,
            remote_key="name",
            remote_required=True,
            min_length=1,
            description="The name of the project.",
        ),
        string(
            "organization_id",
            Mutability.REQUIRED,
            remote_key="organizationId",
            remote_required=True,
            min_length=1,
            description="The organization id of the project.",
        ),
        string(
            "region",
            Mutability.REQUIRED,
            replace=True,
            remote_key="region",
            min_length=1,
            description="The region of the project.",
        ),
    ),
)


class ProjectKind(ResourceKind):
    """Project lifecycle against the /projects endpoints."""

    update_attributes = ("name",)

    @property
    def name(self) -> str:
        return "project"

    @property
    def descriptor(self) -> ResourceDescriptor:
        return PROJECT

    async def create(
        self, gateway: ControlPlaneGateway, values: Dict[str, Any]
    ) -> GatewayResponse:
        return await gateway.create_project(self.encode(values))

    async def fetch(
        self, gateway: ControlPlaneGateway, identifier: str
    ) -> GatewayResponse:
        return await gateway.get_project(identifier)

    async def patch(
        self, gateway: ControlPlaneGateway, identifier: str, body: Dict[str, Any]
    ) -> GatewayResponse:
        return await gateway.update_project(identifier, body)

    async def remove(
        self, gateway: ControlPlaneGateway, identifier: str
    ) -> GatewayResponse:
        return await gateway.delete_project(identifier)
