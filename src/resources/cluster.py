"""
Cluster resource kind.

Clusters are provisioned inside an organization and project. The control
plane reports hardware, health, network and audit details; the only field
its edit endpoint accepts is the password, which it never echoes back.
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
    int64,
    nested_list,
    nested_object,
    string,
)

NAME_PATTERN = r"^[A-Za-z0-9_][A-Za-z0-9_\-. ]*\Z"
NAME_PATTERN_MESSAGE = (
    "must start with a letter and contain only letters, numbers, hyphens, "
    "underscores, periods and spaces"
)
UUID_PATTERN = r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}\Z"

COMPUTED = Mutability.COMPUTED

HARDWARE_SPECS = nested_object(
    "hardware_specs",
    COMPUTED,
    [
        int32(
            "cpus_per_node",
            COMPUTED,
            remote_key="cpusPerNode",
            description="The cpus per node.",
        ),
        int64(
            "disk_size_per_node_bytes",
            COMPUTED,
            remote_key="diskSizePerNodeBytes",
            description="The disk size per node in bytes.",
        ),
        string(
            "disk_type",
            COMPUTED,
            remote_key="diskType",
            description="The disk type.",
        ),
        int32(
            "disks_per_node",
            COMPUTED,
            remote_key="disksPerNode",
            description="The disks per node.",
        ),
        int64(
            "heap_size_bytes",
            COMPUTED,
            remote_key="heapSizeBytes",
            description="The heap size in bytes.",
        ),
        int64(
            "memory_per_node_bytes",
            COMPUTED,
            remote_key="memoryPerNodeBytes",
            description="The memory per node in bytes.",
        ),
    ],
    remote_key="hardwareSpecs",
    description="The hardware specs of the cluster.",
)

HEALTH = nested_object(
    "health",
    COMPUTED,
    [
        string(
            "last_seen",
            COMPUTED,
            remote_key="lastSeen",
            description="The last seen time.",
        ),
        string(
            "running_operation",
            COMPUTED,
            remote_key="runningOperation",
            description="The type of the currently running operation.",
        ),
        string(
            "status",
            COMPUTED,
            remote_key="status",
            description="The health status of the cluster.",
        ),
    ],
    remote_key="health",
    description="The health of the cluster.",
)

IP_WHITELIST = nested_list(
    "ip_whitelist",
    COMPUTED,
    [
        string(
            "cidr",
            COMPUTED,
            remote_key="cidr",
            remote_required=True,
            description="The CIDR.",
        ),
        string(
            "description",
            COMPUTED,
            remote_key="description",
            description="The description.",
        ),
    ],
    remote_key="ipWhitelist",
    description="The IP whitelist of the cluster.",
)

LAST_ASYNC_OPERATION = nested_object(
    "last_async_operation",
    COMPUTED,
    [
        dublin_core("The DublinCore of the last async operation."),
        string(
            "id",
            COMPUTED,
            remote_key="id",
            description="The id of the last async operation.",
        ),
        string(
            "status",
            COMPUTED,
            remote_key="status",
            description="The status of the last async operation.",
        ),
        string(
            "type",
            COMPUTED,
            remote_key="type",
            description="The type of the last async operation.",
        ),
    ],
    remote_key="lastAsyncOperation",
    description="The last async operation of the cluster.",
)


def _computed_flag(name: str, remote_key: str, description: str):
    return boolean(name, COMPUTED, remote_key=remote_key, description=description)


def _computed_string(name: str, remote_key: str, description: str):
    return string(name, COMPUTED, remote_key=remote_key, description=description)


CLUSTER = ResourceDescriptor(
    kind="cluster",
    description="Creates and manages a cluster.",
    attributes=(
        string(
            "organization_id",
            Mutability.REQUIRED,
            min_length=1,
            description="The organization id of the cluster.",
        ),
        _computed_flag(
            "allow_custom_storage",
            "allowCustomStorage",
            "The allow custom storage flag.",
        ),
        _computed_flag("allow_suspend", "allowSuspend", "The allow suspend flag."),
        _computed_string("backup_schedule", "backupSchedule", "The backup schedule."),
        string(
            "channel",
            Mutability.OPTIONAL,
            default="stable",
            remote_key="channel",
            description="The channel of the cluster. Default is 'stable'.",
        ),
        string(
            "crate_version",
            Mutability.REQUIRED,
            remote_key="crateVersion",
            remote_required=True,
            min_length=1,
            description="The CrateDB version of the cluster.",
        ),
        dublin_core("The DublinCore of the cluster."),
        _computed_flag(
            "deletion_protected",
            "deletionProtected",
            "The deletion protected flag.",
        ),
        _computed_string("external_ip", "externalIp", "The external IP address."),
        _computed_string("fqdn", "fqdn", "The Fully Qualified Domain Name."),
        _computed_flag(
            "gc_available",
            "gcAvailable",
            "The garbage collection available flag.",
        ),
        HARDWARE_SPECS,
        HEALTH,
        string(
            "id",
            Mutability.COMPUTED_ONCE,
            identity=True,
            remote_key="id",
            remote_required=True,
            description="The id of the cluster.",
        ),
        IP_WHITELIST,
        LAST_ASYNC_OPERATION,
        string(
            "name",
            Mutability.REQUIRED,
            remote_key="name",
            remote_required=True,
            min_length=1,
            description="The name of the cluster.",
        ),
        int32(
            "num_nodes",
            COMPUTED,
            remote_key="numNodes",
            description="The number of nodes in the cluster.",
        ),
        _computed_string("origin", "origin", "The origin of the cluster."),
        string(
            "product_name",
            Mutability.REQUIRED,
            remote_key="productName",
            remote_required=True,
            min_length=1,
            max_length=512,
            pattern=NAME_PATTERN,
            pattern_message=f"Product name {NAME_PATTERN_MESSAGE}.",
            description="The product name of the cluster.",
        ),
        string(
            "product_tier",
            Mutability.REQUIRED,
            remote_key="productTier",
            remote_required=True,
            min_length=1,
            max_length=512,
            pattern=NAME_PATTERN,
            pattern_message=f"Product tier {NAME_PATTERN_MESSAGE}.",
            description="The product tier of the cluster.",
        ),
        int32(
            "product_unit",
            Mutability.OPTIONAL,
            default=0,
            remote_key="productUnit",
            description="The product unit of the cluster. Default is `0`.",
        ),
        string(
            "project_id",
            Mutability.REQUIRED,
            remote_key="projectId",
            remote_required=True,
            min_length=36,
            max_length=36,
            pattern=UUID_PATTERN,
            pattern_message="Project ID must be a valid UUID.",
            description="The project id of the cluster.",
        ),
        string(
            "subscription_id",
            Mutability.REQUIRED,
            remote_key="subscriptionId",
            min_length=1,
            max_length=512,
            description="The subscription id of the cluster.",
        ),
        _computed_flag("suspended", "suspended", "The suspended flag."),
        _computed_string("url", "url", "The URL of the cluster."),
        string(
            "username",
            Mutability.REQUIRED,
            remote_key="username",
            remote_required=True,
            min_length=1,
            description="The username of the cluster.",
        ),
        string(
            "password",
            Mutability.REQUIRED,
            sensitive=True,
            remote_key="password",
            min_length=24,
            description="The password of the cluster.",
        ),
    ),
)

# Provisioning fields sent beside, not inside, the cluster object
_PROVISION_KEYS = ("projectId", "subscriptionId")


class ClusterKind(ResourceKind):
    """Cluster lifecycle against the /clusters endpoints."""

    update_attributes = ("password",)

    @property
    def name(self) -> str:
        return "cluster"

    @property
    def descriptor(self) -> ResourceDescriptor:
        return CLUSTER

    def encode(self, values: Dict[str, Any]) -> Dict[str, Any]:
        """Wrap the cluster fields in a provisioning request."""
        cluster = super().encode(values)
        body = {key: cluster.pop(key) for key in _PROVISION_KEYS if key in cluster}
        body["cluster"] = cluster
        return body

    async def create(
        self, gateway: ControlPlaneGateway, values: Dict[str, Any]
    ) -> GatewayResponse:
        return await gateway.create_cluster(
            values["organization_id"], self.encode(values)
        )

    async def fetch(
        self, gateway: ControlPlaneGateway, identifier: str
    ) -> GatewayResponse:
        return await gateway.get_cluster(identifier)

    async def patch(
        self, gateway: ControlPlaneGateway, identifier: str, body: Dict[str, Any]
    ) -> GatewayResponse:
        return await gateway.update_cluster(identifier, body)

    async def remove(
        self, gateway: ControlPlaneGateway, identifier: str
    ) -> GatewayResponse:
        return await gateway.delete_cluster(identifier)
