"""Domain-specific exceptions.

All exceptions in the auditguard system inherit from AuditGuardError,
making it easy to catch all guardrail errors while still being able
to handle specific error types.

Rules themselves never raise: a rejected query is expressed as an
invalid ValidationResult. Exceptions are reserved for the boundaries
(configuration loading and the optional raising admission check).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .result import ValidationResult


class AuditGuardError(Exception):
    """Base exception for all auditguard errors.

    All custom exceptions in the system should inherit from this class
    to enable catching all auditguard-specific errors with a single except clause.
    """

    pass


class ConfigurationError(AuditGuardError):
    """Validation configuration could not be loaded.

    Raised when:
    - The configuration file cannot be read
    - The file is not valid YAML
    - A section contains unknown keys or out-of-range values
    - A configured regular expression does not compile

    Configuration is validated once, when the rule set is built, so this
    error surfaces at startup rather than in the middle of a validation.
    """

    pass


class QueryValidationError(AuditGuardError):
    """Candidate query was rejected by the guardrail.

    Raised by SafetyValidator.check when the aggregate result is invalid.
    The full aggregate result is attached so callers can report every
    error, warning and recommendation to the operator.

    Attributes:
        result: The aggregate validation result that caused the rejection.
    """

    def __init__(self, message: str, result: ValidationResult | None = None) -> None:
        """Initialize QueryValidationError.

        Args:
            message: Error description.
            result: Aggregate validation result, if available.
        """
        super().__init__(message)
        self.result = result
