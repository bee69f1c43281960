"""
State Mapper - Conversion between remote representations and records.

decode() turns a parsed remote object into a resource record keyed by
attribute name; encode() turns record values into a remote request body
keyed by the remote wire names. Both are driven entirely by the descriptor.
"""

from typing import Any, Collection, Dict, Optional, Tuple

from errors import MappingError
from schema import (
    INT_BOUNDS,
    AttributeSpec,
    AttributeType,
    ResourceDescriptor,
    is_unknown,
)


def decode(descriptor: ResourceDescriptor, raw: Any) -> Dict[str, Any]:
    """
    Decode a remote object into a resource record.

    Locally scoped attributes are decoded as absent; the reconciler fills
    them from desired configuration or prior state.

    Args:
        descriptor: Descriptor of the resource kind
        raw: Parsed JSON object returned by the remote API

    Returns:
        A record containing every attribute of the descriptor.

    Raises:
        MappingError: If a remote-required field is missing, a value has the
            wrong type, or an integer overflows its declared width.
    """
    if not isinstance(raw, dict):
        raise MappingError(
            f"Expected a JSON object for {descriptor.kind}, "
            f"got {type(raw).__name__}"
        )
    return _decode_attributes(descriptor.attributes, raw, prefix="")


def _decode_attributes(
    attributes: Tuple[AttributeSpec, ...], raw: Dict[str, Any], prefix: str
) -> Dict[str, Any]:
    record: Dict[str, Any] = {}

    for spec in attributes:
        path = f"{prefix}{spec.name}"

        if spec.local:
            record[spec.name] = spec.empty_value()
            continue

        value = raw.get(spec.remote_key)
        if value is None:
            if spec.remote_required:
                raise MappingError(
                    f"Remote response is missing required field "
                    f"'{spec.remote_key}'",
                    attribute=path,
                )
            record[spec.name] = spec.empty_value()
            continue

        record[spec.name] = _decode_value(spec, value, path)

    return record


def _decode_value(spec: AttributeSpec, value: Any, path: str) -> Any:
    if spec.type == AttributeType.STRING:
        if not isinstance(value, str):
            raise _type_mismatch(spec, value, path)
        return value

    if spec.type == AttributeType.BOOL:
        if not isinstance(value, bool):
            raise _type_mismatch(spec, value, path)
        return value

    if spec.type in INT_BOUNDS:
        return _decode_int(spec, value, path)

    if spec.type == AttributeType.OBJECT:
        if not isinstance(value, dict):
            raise _type_mismatch(spec, value, path)
        return _decode_attributes(spec.attributes, value, prefix=f"{path}.")

    if spec.type == AttributeType.LIST:
        if not isinstance(value, list):
            raise _type_mismatch(spec, value, path)
        items = []
        for i, item in enumerate(value):
            if not isinstance(item, dict):
                raise _type_mismatch(spec, item, f"{path}[{i}]")
            items.append(_decode_attributes(spec.attributes, item, f"{path}[{i}]."))
        return items

    raise MappingError(f"Unsupported attribute type {spec.type}", attribute=path)


def _decode_int(spec: AttributeSpec, value: Any, path: str) -> int:
    # bool is an int subclass in Python but never a valid remote integer
    if isinstance(value, bool):
        raise _type_mismatch(spec, value, path)
    if isinstance(value, float):
        if not value.is_integer():
            raise _type_mismatch(spec, value, path)
        value = int(value)
    if not isinstance(value, int):
        raise _type_mismatch(spec, value, path)

    low, high = INT_BOUNDS[spec.type]
    if not low <= value <= high:
        raise MappingError(
            f"Remote value {value} overflows {spec.type.value}", attribute=path
        )
    return value


def _type_mismatch(spec: AttributeSpec, value: Any, path: str) -> MappingError:
    return MappingError(
        f"Expected {spec.type.value}, got {type(value).__name__} ({value!r})",
        attribute=path,
    )


def encode(
    descriptor: ResourceDescriptor,
    values: Dict[str, Any],
    only: Optional[Collection[str]] = None,
    include_computed: bool = False,
) -> Dict[str, Any]:
    """
    Encode record values into a remote request body.

    Only writable attributes with a remote key and a resolved value are
    serialized. Absent (None) values are omitted.

    Args:
        descriptor: Descriptor of the resource kind
        values: Record or plan values keyed by attribute name
        only: Restrict the body to these attribute names
        include_computed: Also serialize computed attributes, producing the
            full remote representation of a record

    Returns:
        Request body keyed by remote wire names.
    """
    attributes = descriptor.attributes
    if only is not None:
        attributes = tuple(spec for spec in attributes if spec.name in only)
    return _encode_attributes(attributes, values, include_computed)


def _encode_attributes(
    attributes: Tuple[AttributeSpec, ...],
    values: Dict[str, Any],
    include_computed: bool,
) -> Dict[str, Any]:
    body: Dict[str, Any] = {}

    for spec in attributes:
        if spec.local or not (spec.writable or include_computed):
            continue

        value = values.get(spec.name)
        if value is None or is_unknown(value):
            continue

        if spec.type == AttributeType.OBJECT:
            value = _encode_attributes(spec.attributes, value, include_computed)
        elif spec.type == AttributeType.LIST:
            value = [
                _encode_attributes(spec.attributes, item, include_computed)
                for item in value
            ]

        body[spec.remote_key] = value

    return body
