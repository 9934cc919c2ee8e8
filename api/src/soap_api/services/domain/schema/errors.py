#!/usr/bin/env python3
"""Error type shared by schema extraction, envelope synthesis and WSDL reading."""

from enum import Enum
from typing import Optional

from ....models.models import Violation


class ErrorClass(str, Enum):
    """Tag identifying the category of a ParserError."""
    MULTIPLE_SCHEMAS_UNSUPPORTED = "multiple-schemas-unsupported"
    USE_ENCODED_UNSUPPORTED = "use-encoded-unsupported"
    MISSING_TYPE = "missing-type"
    MISSING_REF_TARGET = "missing-ref-target"
    MISSING_GROUP = "missing-group"
    CIRCULAR_REFERENCE = "circular-reference"
    UNSUPPORTED_PARTICLE_KIND = "unsupported-particle-kind"
    UNSUPPORTED_EXTENSION_BASE = "unsupported-extension-base"
    NODE_CONSTRUCTION_FAILURE = "node-construction-failure"
    NAMESPACE_TARGET_NOT_FOUND = "namespace-target-not-found"
    INVALID_WSDL = "invalid-wsdl"


class ParserError(Exception):
    """
    Raised when a WSDL or schema cannot be turned into a payload schema.

    Carries a human readable message, an optional offending property name and
    an error class tag, and converts to a user-facing Violation.
    """

    def __init__(
        self,
        message: str,
        property: Optional[str] = None,
        error_class: ErrorClass = ErrorClass.NODE_CONSTRUCTION_FAILURE,
    ):
        super().__init__(message)
        self.message = message
        self.property = property
        self.error_class = error_class

    def to_violation(self) -> Violation:
        return Violation(
            message=self.message,
            error=self.error_class.value,
            property=self.property,
        )
