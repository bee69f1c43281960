"""Unit tests for datasources.py - Read-only lookups."""

import pytest

from datasources import DataSource, list_organizations
from errors import MappingError, RemoteError, ValidationError
from resources.cluster import ClusterKind
from resources.organization import OrganizationKind
from resources.project import ProjectKind


@pytest.mark.asyncio
class TestDataSource:
    """Tests for DataSource.lookup."""

    async def test_lookup_project(self, mock_gateway, respond, project_payload):
        mock_gateway.get_project.return_value = respond(200, project_payload)

        record = await DataSource(ProjectKind(), mock_gateway).lookup(
            project_payload["id"]
        )

        mock_gateway.get_project.assert_awaited_once_with(project_payload["id"])
        assert record["name"] == "analytics"
        assert record["organization_id"] == "org-1"
        assert record["region"] == "aks1.westeurope.azure"

    async def test_lookup_cluster_has_no_secret(
        self, mock_gateway, respond, cluster_payload
    ):
        mock_gateway.get_cluster.return_value = respond(200, cluster_payload)

        record = await DataSource(ClusterKind(), mock_gateway).lookup("cluster-1")

        assert record["id"] == "cluster-1"
        assert record["password"] is None
        assert record["hardware_specs"]["cpus_per_node"] == 2

    async def test_missing_object_is_an_error(self, mock_gateway, respond):
        """A data source owns no state, so 404 is reported, not swallowed."""
        mock_gateway.get_organization.return_value = respond(
            404, {"message": "Not found"}, reason="Not Found"
        )

        with pytest.raises(RemoteError) as exc_info:
            await DataSource(OrganizationKind(), mock_gateway).lookup("missing")

        assert exc_info.value.status == 404
        assert exc_info.value.title == "Error getting organization"

    async def test_empty_identifier(self, mock_gateway):
        with pytest.raises(ValidationError) as exc_info:
            await DataSource(ClusterKind(), mock_gateway).lookup("")

        assert exc_info.value.attribute == "id"
        assert exc_info.value.violations == ["attribute is required"]
        mock_gateway.get_cluster.assert_not_called()

    async def test_malformed_response(self, mock_gateway, respond, project_payload):
        del project_payload["organizationId"]
        mock_gateway.get_project.return_value = respond(200, project_payload)

        with pytest.raises(MappingError):
            await DataSource(ProjectKind(), mock_gateway).lookup("p-1")


@pytest.mark.asyncio
class TestListOrganizations:
    """Tests for list_organizations."""

    async def test_list(self, mock_gateway, respond, organization_payload):
        second = dict(organization_payload, id="org-2", name="globex", planType=3)
        mock_gateway.list_organizations.return_value = respond(
            200, [organization_payload, second]
        )

        organizations = await list_organizations(mock_gateway)

        assert [org["id"] for org in organizations] == ["org-1", "org-2"]
        assert organizations[1]["plan_type"] == 3

    async def test_empty_list(self, mock_gateway, respond):
        mock_gateway.list_organizations.return_value = respond(200, [])
        assert await list_organizations(mock_gateway) == []

    async def test_not_a_list(self, mock_gateway, respond, organization_payload):
        mock_gateway.list_organizations.return_value = respond(
            200, organization_payload
        )

        with pytest.raises(MappingError, match="Expected a JSON array"):
            await list_organizations(mock_gateway)

    async def test_remote_error(self, mock_gateway, respond):
        mock_gateway.list_organizations.return_value = respond(
            401, {"message": "Unauthorized"}, reason="Unauthorized"
        )

        with pytest.raises(RemoteError) as exc_info:
            await list_organizations(mock_gateway)

        assert exc_info.value.status == 401
        assert exc_info.value.title == "Error getting organizations"
