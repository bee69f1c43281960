"""
Attribute Validation - Rule checking for desired configuration.

Attribute rules (length bounds, regex, integer width, nullability) are
compiled into a Draft 7 JSON Schema once per descriptor. Desired
configuration is checked against it before any remote call is made.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from jsonschema import Draft7Validator, validators

from errors import ValidationError
from schema import (
    INT_BOUNDS,
    AttributeSpec,
    AttributeType,
    Mutability,
    ResourceDescriptor,
    is_unknown,
)

logger = logging.getLogger(__name__)


def _is_strict_integer(checker, instance) -> bool:
    return isinstance(instance, int) and not isinstance(instance, bool)


# Draft 7 counts 1.0 as an integer; the remote API does not
AttributeValidator = validators.extend(
    Draft7Validator,
    type_checker=Draft7Validator.TYPE_CHECKER.redefine("integer", _is_strict_integer),
)

_JSON_TYPES = {
    AttributeType.STRING: "string",
    AttributeType.BOOL: "boolean",
    AttributeType.INT32: "integer",
    AttributeType.INT64: "integer",
    AttributeType.OBJECT: "object",
    AttributeType.LIST: "array",
}


def attribute_schema(spec: AttributeSpec) -> Dict[str, Any]:
    """
    Compile the rules of one attribute into a JSON Schema fragment.

    Args:
        spec: The attribute to compile

    Returns:
        JSON Schema dict for the attribute value.
    """
    json_type = _JSON_TYPES[spec.type]
    if spec.mutability != Mutability.REQUIRED:
        json_type = [json_type, "null"]
    fragment: Dict[str, Any] = {"type": json_type}

    if spec.min_length is not None:
        fragment["minLength"] = spec.min_length
    if spec.max_length is not None:
        fragment["maxLength"] = spec.max_length
    if spec.pattern is not None:
        fragment["pattern"] = spec.pattern
    if spec.type in INT_BOUNDS:
        fragment["minimum"], fragment["maximum"] = INT_BOUNDS[spec.type]

    if spec.type == AttributeType.OBJECT:
        fragment.update(_object_schema(spec.attributes))
    elif spec.type == AttributeType.LIST:
        fragment["items"] = {"type": "object", **_object_schema(spec.attributes)}

    return fragment


def _object_schema(attributes) -> Dict[str, Any]:
    return {
        "properties": {spec.name: attribute_schema(spec) for spec in attributes},
        "required": [
            spec.name for spec in attributes if spec.mutability == Mutability.REQUIRED
        ],
        "additionalProperties": False,
    }


def descriptor_schema(descriptor: ResourceDescriptor) -> Dict[str, Any]:
    """
    Build the JSON Schema for the writable attributes of a descriptor.

    Args:
        descriptor: The resource descriptor

    Returns:
        JSON Schema dict for a desired configuration document.
    """
    return {
        "type": "object",
        "properties": {
            spec.name: attribute_schema(spec) for spec in descriptor if spec.writable
        },
    }


def validate_schema(schema: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate that a compiled schema is itself a valid JSON Schema.

    Args:
        schema: The schema to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        Draft7Validator.check_schema(schema)
        return True, None
    except Exception as e:
        return False, f"Invalid schema: {str(e)}"


def compile_attribute(spec: AttributeSpec) -> AttributeValidator:
    """Compile the rules of one attribute into a validator."""
    return AttributeValidator(
        attribute_schema(spec), format_checker=Draft7Validator.FORMAT_CHECKER
    )


def check_attribute(
    spec: AttributeSpec,
    value: Any,
    validator: Optional[AttributeValidator] = None,
) -> List[str]:
    """
    Evaluate the rules of one attribute against a value.

    Args:
        spec: The attribute spec
        value: The candidate value
        validator: Validator from compile_attribute(spec); compiled on the
            fly when omitted

    Returns:
        List of violation messages; empty when the value is valid.
    """
    if is_unknown(value):
        return ["value must be known before it can be applied"]
    if value is None and spec.mutability == Mutability.REQUIRED:
        return ["attribute is required"]

    if validator is None:
        validator = compile_attribute(spec)
    return [_message(spec, error) for error in validator.iter_errors(value)]


def _message(spec: AttributeSpec, error) -> str:
    path = ".".join(str(p) for p in error.absolute_path)
    message = error.message
    if error.validator == "pattern" and spec.pattern_message and not path:
        message = spec.pattern_message
    return f"{path}: {message}" if path else message


class DesiredValidator:
    """
    Validates desired configuration for one resource kind.

    The rules of every writable attribute are compiled once when the
    validator is constructed; validate() may then be called for any number
    of documents.
    """

    def __init__(self, descriptor: ResourceDescriptor):
        self.descriptor = descriptor
        self.schema = descriptor_schema(descriptor)

        is_valid, error = validate_schema(self.schema)
        if not is_valid:
            raise ValueError(f"Descriptor '{descriptor.kind}' compiles to {error}")

        self._validators = {
            spec.name: compile_attribute(spec) for spec in descriptor if spec.writable
        }

    def apply_defaults(self, desired: Dict[str, Any]) -> Dict[str, Any]:
        """Substitute static defaults for absent optional attributes."""
        result = dict(desired)
        for spec in self.descriptor:
            if (
                spec.mutability == Mutability.OPTIONAL
                and result.get(spec.name) is None
                and spec.default is not None
            ):
                result[spec.name] = spec.default
        return result

    def violations(self, desired: Dict[str, Any]) -> Dict[str, List[str]]:
        """
        Collect violations per attribute, after defaulting.

        Args:
            desired: The desired configuration

        Returns:
            Mapping of attribute name to its violations. Valid attributes
            are omitted.
        """
        found: Dict[str, List[str]] = {}
        document = self.apply_defaults(desired)

        for name in document:
            if name not in self.descriptor:
                found[name] = [f"unknown attribute for {self.descriptor.kind}"]
            elif self.descriptor.get(name).computed and document[name] is not None:
                found[name] = [
                    "attribute is computed by the remote system and cannot be set"
                ]

        for spec in self.descriptor:
            if not spec.writable:
                continue
            problems = check_attribute(
                spec, document.get(spec.name), self._validators[spec.name]
            )
            if problems:
                found[spec.name] = problems

        return found

    def validate(self, desired: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate desired configuration.

        Args:
            desired: The desired configuration

        Returns:
            The desired configuration with defaults applied.

        Raises:
            ValidationError: For the first attribute, in descriptor order,
                that violates a rule.
        """
        found = self.violations(desired)
        if found:
            order = {name: i for i, name in enumerate(self.descriptor.names)}
            attribute = min(found, key=lambda name: order.get(name, len(order)))
            logger.debug(
                f"Rejected {self.descriptor.kind} configuration: "
                f"{len(found)} invalid attribute(s)"
            )
            raise ValidationError(attribute, found[attribute])
        return self.apply_defaults(desired)


def validate_desired(
    descriptor: ResourceDescriptor, desired: Dict[str, Any]
) -> Dict[str, Any]:
    """Validate desired configuration for a descriptor, returning it defaulted."""
    return DesiredValidator(descriptor).validate(desired)
