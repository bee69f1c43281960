"""
Attribute Schema - Descriptor types for managed resource kinds.

A ResourceDescriptor is the static, ordered attribute table for one resource
kind. Descriptors are built once at startup and checked for name uniqueness
and identity-attribute presence before any reconciler uses them.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple


class Unknown(Enum):
    """Marker for a value that is not known until the remote responds."""

    UNKNOWN = "unknown"

    def __repr__(self) -> str:
        return "UNKNOWN"


UNKNOWN = Unknown.UNKNOWN


def is_unknown(value: Any) -> bool:
    """Return True if the value is the UNKNOWN marker."""
    return value is UNKNOWN


class AttributeType(Enum):
    """Semantic attribute types."""

    STRING = "string"
    BOOL = "bool"
    INT32 = "int32"
    INT64 = "int64"
    OBJECT = "object"
    LIST = "list"


class Mutability(Enum):
    """Who may set an attribute, and when."""

    REQUIRED = "required"
    OPTIONAL = "optional"
    COMPUTED = "computed"
    COMPUTED_ONCE = "computed_once"


INT_BOUNDS = {
    AttributeType.INT32: (-(2**31), 2**31 - 1),
    AttributeType.INT64: (-(2**63), 2**63 - 1),
}


@dataclass(frozen=True)
class AttributeSpec:
    """Declaration of one attribute of a resource kind."""

    name: str
    type: AttributeType
    mutability: Mutability
    description: str = ""
    default: Any = None
    sensitive: bool = False
    replace: bool = False
    identity: bool = False
    # Key in the remote representation; None when the remote never carries it
    remote_key: Optional[str] = None
    remote_required: bool = False
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[str] = None
    pattern_message: str = ""
    attributes: Tuple["AttributeSpec", ...] = ()

    @property
    def writable(self) -> bool:
        return self.mutability in (Mutability.REQUIRED, Mutability.OPTIONAL)

    @property
    def computed(self) -> bool:
        return self.mutability in (Mutability.COMPUTED, Mutability.COMPUTED_ONCE)

    @property
    def local(self) -> bool:
        """True for attributes the remote system is not authoritative for."""
        return self.remote_key is None

    @property
    def nested(self) -> bool:
        return self.type in (AttributeType.OBJECT, AttributeType.LIST)

    def empty_value(self) -> Any:
        """Value representing 'absent' for this attribute."""
        return [] if self.type == AttributeType.LIST else None


@dataclass(frozen=True)
class ResourceDescriptor:
    """Ordered attribute table for one resource kind."""

    kind: str
    attributes: Tuple[AttributeSpec, ...]
    description: str = ""
    _index: Dict[str, AttributeSpec] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def __post_init__(self):
        check_descriptor(self)
        object.__setattr__(
            self, "_index", {spec.name: spec for spec in self.attributes}
        )

    def __iter__(self) -> Iterator[AttributeSpec]:
        return iter(self.attributes)

    def __contains__(self, name: str) -> bool:
        return name in self._index

    def get(self, name: str) -> AttributeSpec:
        """Get an attribute spec by name."""
        if name not in self._index:
            raise KeyError(f"{self.kind} has no attribute '{name}'")
        return self._index[name]

    @property
    def names(self) -> List[str]:
        return [spec.name for spec in self.attributes]

    @property
    def identity(self) -> AttributeSpec:
        return next(spec for spec in self.attributes if spec.identity)

    @property
    def sensitive(self) -> List[AttributeSpec]:
        return [spec for spec in self.attributes if spec.sensitive]

    @property
    def local(self) -> List[AttributeSpec]:
        return [spec for spec in self.attributes if spec.local]


def check_descriptor(descriptor: ResourceDescriptor) -> None:
    """
    Check the startup invariants of a descriptor.

    Raises:
        ValueError: If attribute names repeat, the identity attribute is
            missing or duplicated, or a nested attribute has no members.
    """
    _check_names(descriptor.kind, descriptor.attributes)

    identities = [spec.name for spec in descriptor.attributes if spec.identity]
    if len(identities) != 1:
        raise ValueError(
            f"Descriptor '{descriptor.kind}' must declare exactly one identity "
            f"attribute, found {len(identities)}"
        )

    identity = next(spec for spec in descriptor.attributes if spec.identity)
    if identity.type != AttributeType.STRING or identity.writable:
        raise ValueError(
            f"Identity attribute '{identity.name}' of '{descriptor.kind}' "
            "must be a computed string"
        )


def _check_names(path: str, attributes: Tuple[AttributeSpec, ...]) -> None:
    seen = set()
    for spec in attributes:
        if spec.name in seen:
            raise ValueError(f"Duplicate attribute '{spec.name}' in '{path}'")
        seen.add(spec.name)

        if spec.nested:
            if not spec.attributes:
                raise ValueError(
                    f"Nested attribute '{path}.{spec.name}' declares no attributes"
                )
            _check_names(f"{path}.{spec.name}", spec.attributes)
        elif spec.attributes:
            raise ValueError(
                f"Scalar attribute '{path}.{spec.name}' cannot declare attributes"
            )


# Declaration helpers


def string(name: str, mutability: Mutability, **kwargs) -> AttributeSpec:
    return AttributeSpec(name, AttributeType.STRING, mutability, **kwargs)


def boolean(name: str, mutability: Mutability, **kwargs) -> AttributeSpec:
    return AttributeSpec(name, AttributeType.BOOL, mutability, **kwargs)


def int32(name: str, mutability: Mutability, **kwargs) -> AttributeSpec:
    return AttributeSpec(name, AttributeType.INT32, mutability, **kwargs)


def int64(name: str, mutability: Mutability, **kwargs) -> AttributeSpec:
    return AttributeSpec(name, AttributeType.INT64, mutability, **kwargs)


def nested_object(
    name: str, mutability: Mutability, attributes: List[AttributeSpec], **kwargs
) -> AttributeSpec:
    return AttributeSpec(
        name, AttributeType.OBJECT, mutability, attributes=tuple(attributes), **kwargs
    )


def nested_list(
    name: str, mutability: Mutability, attributes: List[AttributeSpec], **kwargs
) -> AttributeSpec:
    return AttributeSpec(
        name, AttributeType.LIST, mutability, attributes=tuple(attributes), **kwargs
    )


def dublin_core(description: str) -> AttributeSpec:
    """The audit timestamp object every remote resource carries."""
    return nested_object(
        "dc",
        Mutability.COMPUTED,
        [
            string(
                "created",
                Mutability.COMPUTED_ONCE,
                remote_key="created",
                description="The created time.",
            ),
            string(
                "modified",
                Mutability.COMPUTED,
                remote_key="modified",
                description="The modified time.",
            ),
        ],
        remote_key="dc",
        description=description,
    )
