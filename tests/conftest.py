"""Pytest configuration and fixtures."""

import copy

import pytest
from unittest.mock import AsyncMock

from gateway import ControlPlaneGateway, GatewayResponse
from resources.cluster import ClusterKind

ORGANIZATION_ID = "org-1"
PROJECT_ID = "0f5b2f0e-6d4a-4a47-8b3e-1d2c3b4a5f60"
CLUSTER_ID = "cluster-1"
PASSWORD = "correct-horse-battery-staple"


@pytest.fixture
def respond():
    """Factory for gateway responses."""

    def _respond(status, body=None, reason=""):
        return GatewayResponse(status=status, reason=reason, body=body)

    return _respond


@pytest.fixture
def mock_gateway():
    """Create a mock control plane gateway."""
    return AsyncMock(spec=ControlPlaneGateway)


@pytest.fixture
def organization_payload():
    """Remote organization as returned by the API."""
    return {
        "id": ORGANIZATION_ID,
        "name": "acme",
        "planType": 2,
        "projectCount": 0,
        "notificationsEnabled": True,
        "dc": {"created": "t0", "modified": "t0"},
    }


@pytest.fixture
def project_payload():
    """Remote project as returned by the API."""
    return {
        "id": PROJECT_ID,
        "name": "analytics",
        "organizationId": ORGANIZATION_ID,
        "region": "aks1.westeurope.azure",
        "dc": {
            "created": "2024-01-01T00:00:00Z",
            "modified": "2024-01-01T00:00:00Z",
        },
    }


@pytest.fixture
def cluster_payload():
    """Remote cluster as returned by the API (the password is never echoed)."""
    return {
        "allowCustomStorage": False,
        "allowSuspend": True,
        "backupSchedule": "0 */6 * * *",
        "channel": "stable",
        "crateVersion": "5.6.4",
        "dc": {
            "created": "2024-01-01T00:00:00Z",
            "modified": "2024-01-02T00:00:00Z",
        },
        "deletionProtected": False,
        "externalIp": "20.1.2.3",
        "fqdn": "analytics.aks1.westeurope.azure.cratedb.net.",
        "gcAvailable": True,
        "hardwareSpecs": {
            "cpusPerNode": 2,
            "diskSizePerNodeBytes": 34359738368,
            "diskType": "premium",
            "disksPerNode": 1,
            "heapSizeBytes": 2147483648,
            "memoryPerNodeBytes": 4294967296,
        },
        "health": {
            "lastSeen": "2024-01-02T00:00:00Z",
            "runningOperation": "",
            "status": "GREEN",
        },
        "id": CLUSTER_ID,
        "ipWhitelist": [{"cidr": "10.0.0.0/8", "description": "office"}],
        "lastAsyncOperation": {
            "dc": {
                "created": "2024-01-01T00:00:00Z",
                "modified": "2024-01-01T00:05:00Z",
            },
            "id": "op-1",
            "status": "SUCCEEDED",
            "type": "CREATE",
        },
        "name": "analytics",
        "numNodes": 1,
        "origin": "cloud",
        "productName": "cr1",
        "productTier": "default",
        "productUnit": 0,
        "projectId": PROJECT_ID,
        "subscriptionId": "sub-1",
        "suspended": False,
        "url": "https://analytics.aks1.westeurope.azure.cratedb.net:4200",
        "username": "admin",
    }


@pytest.fixture
def project_desired():
    """Desired configuration of a project."""
    return {
        "name": "analytics",
        "organization_id": ORGANIZATION_ID,
        "region": "aks1.westeurope.azure",
    }


@pytest.fixture
def cluster_desired():
    """Desired configuration of a cluster."""
    return {
        "organization_id": ORGANIZATION_ID,
        "crate_version": "5.6.4",
        "name": "analytics",
        "product_name": "cr1",
        "product_tier": "default",
        "project_id": PROJECT_ID,
        "subscription_id": "sub-1",
        "username": "admin",
        "password": PASSWORD,
    }


@pytest.fixture
def cluster_state(cluster_payload, cluster_desired):
    """Prior state of a reconciled cluster."""
    record = ClusterKind().decode(copy.deepcopy(cluster_payload))
    record["organization_id"] = cluster_desired["organization_id"]
    record["password"] = cluster_desired["password"]
    return record
