"""
Reconciler - CRUD state machine for one resource kind.

A Reconciler is bound to a ResourceKind and the shared gateway. Each
operation validates and plans locally, issues exactly one remote call,
decodes the response and merges back the attributes the remote system is
not authoritative for. An operation either returns a complete new record or
raises; inputs are never mutated and no partial record is produced.
"""

import copy
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from errors import (
    Diagnostic,
    EngineError,
    ErrorKind,
    MappingError,
    RemoteError,
    ReplacementRequired,
    ResourceGone,
    ValidationError,
)
from gateway import ControlPlaneGateway, GatewayResponse
from planner import PlanDelta
from resources.base import ResourceKind
from schema import AttributeSpec, AttributeType, Mutability, is_unknown

logger = logging.getLogger(__name__)


class InstanceState(Enum):
    """Lifecycle states of one resource instance."""

    ABSENT = "absent"
    CREATING = "creating"
    PRESENT = "present"
    UPDATING = "updating"
    DELETING = "deleting"


class Operation(Enum):
    """Operations a host can run against a resource instance."""

    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    IMPORT = "import"


# State an instance is in while the operation runs, after it succeeds, and
# after it fails
_TRANSITIONS = {
    Operation.CREATE: (
        InstanceState.CREATING,
        InstanceState.PRESENT,
        InstanceState.ABSENT,
    ),
    Operation.READ: (
        InstanceState.PRESENT,
        InstanceState.PRESENT,
        InstanceState.PRESENT,
    ),
    Operation.UPDATE: (
        InstanceState.UPDATING,
        InstanceState.PRESENT,
        InstanceState.PRESENT,
    ),
    Operation.DELETE: (
        InstanceState.DELETING,
        InstanceState.ABSENT,
        InstanceState.PRESENT,
    ),
    Operation.IMPORT: (
        InstanceState.ABSENT,
        InstanceState.PRESENT,
        InstanceState.ABSENT,
    ),
}


@dataclass
class OperationResult:
    """Outcome of one reconciler operation."""

    success: bool = False
    state: InstanceState = InstanceState.ABSENT
    record: Optional[Dict[str, Any]] = None
    error_kind: Optional[ErrorKind] = None
    message: str = ""
    diagnostic: Optional[Diagnostic] = None

    @property
    def fatal(self) -> bool:
        return self.diagnostic is not None and self.diagnostic.severity == "error"


class Reconciler:
    """
    Drives create, read, update, delete and import for one resource kind.

    The gateway is injected once and shared; a Reconciler holds no
    per-instance state, so one Reconciler serves any number of instances.
    """

    def __init__(self, kind: ResourceKind, gateway: ControlPlaneGateway):
        self.kind = kind
        self.gateway = gateway

    @property
    def descriptor(self):
        return self.kind.descriptor

    # Planning

    def plan(
        self, desired: Dict[str, Any], prior: Optional[Dict[str, Any]] = None
    ) -> PlanDelta:
        """
        Validate desired configuration and resolve the plan for this cycle.

        Raises:
            ValidationError: If desired configuration violates a rule
            ReplacementRequired: If a replacement attribute changed
        """
        # resolve applies static defaults only where prior state has no value
        self.kind.validator.validate(desired)
        return self.kind.resolve(desired, prior)

    def has_changes(self, desired: Dict[str, Any], prior: Dict[str, Any]) -> bool:
        """Return True if applying desired over prior would change anything."""
        try:
            delta = self.plan(desired, prior)
        except ReplacementRequired:
            return True
        return bool(delta.changed_attributes(self.descriptor, prior))

    # Operations

    async def create(self, desired: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a new remote instance.

        Args:
            desired: Desired configuration

        Returns:
            The new resource record.

        Raises:
            ValidationError: Before any remote call, if desired is invalid
            RemoteError: If the remote answers with a non-success status
            MappingError: If the response does not match the descriptor
        """
        delta = self.plan(desired)
        logger.info(f"Creating {self.kind.name}")

        response = await self.kind.create(self.gateway, delta.values)
        self._require_success(response, "create")

        record = self._merge(self.kind.decode(response.body), delta.values, None)
        logger.info(f"Created {self.kind.name} {self.kind.identifier(record)}")
        return record

    async def read(self, prior: Dict[str, Any]) -> Dict[str, Any]:
        """
        Refresh a record from the remote system.

        Args:
            prior: Prior state of the instance

        Returns:
            The refreshed resource record.

        Raises:
            ResourceGone: If the remote object no longer exists
            RemoteError: On any other non-success status
        """
        identifier = self._identifier(prior)
        logger.debug(f"Reading {self.kind.name} {identifier}")

        response = await self.kind.fetch(self.gateway, identifier)
        if response.status == 404:
            logger.warning(
                f"{self.kind.name} {identifier} not found remotely, "
                "removing from state"
            )
            raise ResourceGone(self.kind.name, identifier)
        self._require_success(response, "read")

        return self._merge(self.kind.decode(response.body), None, prior)

    async def update(
        self, desired: Dict[str, Any], prior: Dict[str, Any]
    ) -> Dict[str, Any]:
        """
        Apply desired configuration to an existing instance.

        Only the attributes the remote edit endpoint accepts are sent.

        Raises:
            ReplacementRequired: If a replacement attribute changed; the
                caller must delete and create instead
            RemoteError: If the remote answers with a non-success status
        """
        identifier = self._identifier(prior)
        delta = self.plan(desired, prior)

        ignored = [
            name
            for name in delta.changed_attributes(self.descriptor, prior)
            if name not in self.kind.update_attributes
            and not self.descriptor.get(name).local
        ]
        if ignored:
            logger.warning(
                f"Changes to {', '.join(ignored)} of {self.kind.name} "
                f"{identifier} cannot be applied in place and are not sent"
            )

        body = self.kind.encode_update(delta.values)
        logger.info(f"Updating {self.kind.name} {identifier}")

        response = await self.kind.patch(self.gateway, identifier, body)
        self._require_success(response, "update")

        return self._merge(self.kind.decode(response.body), delta.values, prior)

    async def delete(self, prior: Dict[str, Any]) -> None:
        """
        Delete a remote instance.

        A 404 means the instance is already gone and counts as success.

        Raises:
            RemoteError: On any other non-success status
        """
        identifier = self._identifier(prior)
        logger.info(f"Deleting {self.kind.name} {identifier}")

        response = await self.kind.remove(self.gateway, identifier)
        if response.status == 404:
            logger.info(f"{self.kind.name} {identifier} was already deleted")
            return None
        self._require_success(response, "delete")

        logger.info(f"Deleted {self.kind.name} {identifier}")
        return None

    async def import_resource(self, identifier: str) -> Dict[str, Any]:
        """
        Adopt an existing remote instance by its identifier.

        Equivalent to a read whose prior state carries only the identity.
        Sensitive and locally scoped attributes are left empty.
        """
        prior = {self.descriptor.identity.name: identifier}
        logger.info(f"Importing {self.kind.name} {identifier}")
        try:
            return await self.read(prior)
        except ResourceGone:
            raise RemoteError(
                404,
                "Not Found",
                title=f"Cannot import non-existent {self.kind.name}",
            )

    async def replace(
        self, desired: Dict[str, Any], prior: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Delete the prior instance, then create a new one from desired."""
        # Invalid configuration must not destroy the prior instance
        self.kind.validator.validate(desired)
        logger.info(f"Replacing {self.kind.name} {self.kind.identifier(prior)}")
        await self.delete(prior)
        return await self.create(desired)

    async def run(self, operation: Operation, **kwargs) -> OperationResult:
        """
        Run an operation and report its outcome.

        Engine errors are captured in the result. ResourceGone is reported as
        a successful transition to ABSENT with no record.

        Args:
            operation: The operation to run
            **kwargs: Arguments of the matching operation method

        Returns:
            The OperationResult.
        """
        handlers = {
            Operation.CREATE: self.create,
            Operation.READ: self.read,
            Operation.UPDATE: self.update,
            Operation.DELETE: self.delete,
            Operation.IMPORT: self.import_resource,
        }
        active, done, failed = _TRANSITIONS[operation]
        logger.debug(f"{self.kind.name} {operation.value}: {active.value}")

        try:
            record = await handlers[operation](**kwargs)
        except ResourceGone as e:
            return OperationResult(
                success=True,
                state=InstanceState.ABSENT,
                error_kind=e.kind,
                message=e.message,
                diagnostic=e.diagnostic(),
            )
        except EngineError as e:
            if e.fatal:
                logger.error(f"{self.kind.name} {operation.value} failed: {e}")
            return OperationResult(
                success=False,
                state=failed,
                error_kind=e.kind,
                message=e.message,
                diagnostic=e.diagnostic(),
            )

        return OperationResult(
            success=True,
            state=done,
            record=record,
            message=f"{self.kind.name} {operation.value} succeeded",
        )

    # Helpers

    def _identifier(self, prior: Dict[str, Any]) -> str:
        identifier = self.kind.identifier(prior)
        if not identifier or is_unknown(identifier):
            raise ValidationError(
                self.descriptor.identity.name, ["attribute is required"]
            )
        return identifier

    def _require_success(self, response: GatewayResponse, action: str) -> None:
        if response.ok:
            return
        raise RemoteError(
            response.status,
            response.reason,
            body=response.body if response.body is not None else response.text,
            title=f"Failed to {action} {self.kind.name}",
        )

    def _merge(
        self,
        record: Dict[str, Any],
        desired: Optional[Dict[str, Any]],
        prior: Optional[Dict[str, Any]],
    ) -> Dict[str, Any]:
        """
        Merge caller-owned values back into a decoded record.

        Sensitive and locally scoped attributes come from desired, then
        prior; computed-once attributes come from prior when it has them.
        """
        desired = desired or {}
        prior = prior or {}

        for spec in self.descriptor.sensitive + self.descriptor.local:
            for source in (desired, prior):
                value = source.get(spec.name)
                if _present(value):
                    record[spec.name] = copy.deepcopy(value)
                    break

        for spec in self.descriptor:
            if spec.mutability == Mutability.COMPUTED_ONCE and _present(
                prior.get(spec.name)
            ):
                record[spec.name] = copy.deepcopy(prior[spec.name])

        _carry_computed_once(self.descriptor.attributes, record, prior)

        if not record.get(self.descriptor.identity.name):
            raise MappingError(
                f"Remote {self.kind.name} carries an empty identifier",
                attribute=self.descriptor.identity.name,
            )
        return record


def _present(value: Any) -> bool:
    return value is not None and value != "" and not is_unknown(value)


def _carry_computed_once(
    attributes: Tuple[AttributeSpec, ...],
    record: Dict[str, Any],
    prior: Dict[str, Any],
) -> None:
    """Carry computed-once members of nested objects forward from prior."""
    for spec in attributes:
        if spec.type != AttributeType.OBJECT:
            continue
        current, previous = record.get(spec.name), prior.get(spec.name)
        if not isinstance(current, dict) or not isinstance(previous, dict):
            continue
        # A nested object with a new id is a different object
        if current.get("id") != previous.get("id"):
            continue
        for member in spec.attributes:
            if member.mutability == Mutability.COMPUTED_ONCE and _present(
                previous.get(member.name)
            ):
                current[member.name] = copy.deepcopy(previous[member.name])
        _carry_computed_once(spec.attributes, current, previous)
