"""Protocol definitions for validation rules.

Every rule is a standalone class that satisfies ValidationRule. Rules
are composed in a list by the SafetyValidator; there is no rule base
class and no inheritance between rules.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .domain_types import CandidateQuery
    from .result import Severity, ValidationResult


@runtime_checkable
class ValidationRule(Protocol):
    """Interface for a single validation check.

    Implementations must be:
    - Pure: no I/O, no mutation of the query or of their configuration
    - Total: never raise on a well-formed CandidateQuery

    A query with every optional field unset must produce a valid result.
    """

    @property
    def name(self) -> str:
        """Stable identifier used in results and priority tables."""
        ...

    @property
    def description(self) -> str:
        """Human readable summary of what the rule checks."""
        ...

    @property
    def severity(self) -> Severity:
        """Nominal severity of the rule's violations."""
        ...

    @property
    def enabled(self) -> bool:
        """Whether the validator should run this rule."""
        ...

    def validate(self, query: CandidateQuery) -> ValidationResult:
        """Validate a candidate query.

        Args:
            query: The query to check.

        Returns:
            A fresh ValidationResult for this invocation.
        """
        ...
