"""
Engine Errors - Failure taxonomy for the reconciliation engine.

Every failure surfaced by the engine is an EngineError subclass tagged with
an ErrorKind. Each error renders to a Diagnostic (short title plus detail)
that the host reports to the user.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional


class ErrorKind(Enum):
    """Classification of engine failures."""

    VALIDATION = "validation"
    TRANSPORT = "transport"
    REMOTE = "remote"
    MAPPING = "mapping"
    RESOURCE_GONE = "resource_gone"
    REPLACEMENT_REQUIRED = "replacement_required"
    CONFIGURATION = "configuration"


@dataclass
class Diagnostic:
    """Structured diagnostic handed back to the host."""

    severity: str
    title: str
    detail: str
    attribute: Optional[str] = None


class EngineError(Exception):
    """Base class for all engine failures."""

    kind: ErrorKind
    title: str = "Engine error"
    fatal: bool = True

    def __init__(self, message: str, attribute: Optional[str] = None):
        self.message = message
        self.attribute = attribute
        super().__init__(message)

    @property
    def detail(self) -> str:
        return self.message

    def diagnostic(self) -> Diagnostic:
        """Render this error as a diagnostic."""
        return Diagnostic(
            severity="error" if self.fatal else "warning",
            title=self.title,
            detail=self.detail,
            attribute=self.attribute,
        )


class ValidationError(EngineError):
    """Desired configuration violates an attribute rule."""

    kind = ErrorKind.VALIDATION
    title = "Invalid attribute value"

    def __init__(self, attribute: str, violations: List[str]):
        self.violations = list(violations)
        super().__init__(
            f"{attribute}: {'; '.join(self.violations)}", attribute=attribute
        )


class ConfigurationError(EngineError):
    """Provider configuration is missing or empty."""

    kind = ErrorKind.CONFIGURATION

    def __init__(self, attribute: str, title: str, message: str):
        self.title = title
        super().__init__(message, attribute=attribute)


class TransportError(EngineError):
    """The gateway could not reach the remote control plane."""

    kind = ErrorKind.TRANSPORT
    title = "Unable to reach the CrateDB Cloud API"

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)


class RemoteError(EngineError):
    """The remote control plane answered with a non-success status."""

    kind = ErrorKind.REMOTE

    def __init__(
        self,
        status: int,
        reason: str = "",
        body: Any = None,
        title: str = "Remote request failed",
    ):
        self.status = status
        self.reason = reason
        self.body = body
        self.title = title
        super().__init__(f"{title}: HTTP {status} {reason}".rstrip())

    @property
    def detail(self) -> str:
        detail = f"HTTP Status Code: {self.status}\nStatus: {self.status} {self.reason}"
        if self.body:
            detail += f"\nBody: {self.body}"
        return detail.rstrip()


class MappingError(EngineError):
    """A remote response does not match the attribute descriptor."""

    kind = ErrorKind.MAPPING
    title = "Unexpected remote response shape"


class ResourceGone(EngineError):
    """The remote object no longer exists; the host should drop its state."""

    kind = ErrorKind.RESOURCE_GONE
    title = "Resource no longer exists"
    fatal = False

    def __init__(self, kind_name: str, identifier: str):
        self.kind_name = kind_name
        self.identifier = identifier
        super().__init__(
            f"{kind_name} '{identifier}' was not found remotely and will be "
            "removed from state"
        )


class ReplacementRequired(EngineError):
    """A replacement attribute changed; destroy then create is required."""

    kind = ErrorKind.REPLACEMENT_REQUIRED
    title = "Resource must be replaced"
    fatal = False

    def __init__(self, attributes: List[str]):
        self.attributes = list(attributes)
        super().__init__(
            f"Changing {', '.join(self.attributes)} requires destroying and "
            "recreating the resource",
            attribute=self.attributes[0] if self.attributes else None,
        )
