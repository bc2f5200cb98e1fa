"""Required field presence check."""

from __future__ import annotations

from auditguard.core.config import RequiredFieldsConfig
from auditguard.core.domain_types import CandidateQuery, StringOrList
from auditguard.core.result import ResultBuilder, Severity, ValidationResult


def is_field_present(query: CandidateQuery, field: str) -> bool:
    """Return True if a query field holds a meaningful value.

    Strings must be non-blank, string-or-list fields non-empty, numbers
    positive and nested blocks set. Unknown field names are never present.
    """
    if field not in CandidateQuery.model_fields:
        return False

    value = getattr(query, field)
    if isinstance(value, StringOrList):
        return not value.is_empty()
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value > 0
    if isinstance(value, list):
        return bool(value)
    return value is not None


class RequiredFieldsRule:
    """Reject queries that omit a configured required field."""

    name = "required_fields_validation"
    description = "Validates that all required fields are present and non-empty"
    severity = Severity.CRITICAL

    def __init__(self, config: RequiredFieldsConfig | None = None) -> None:
        self.config = config or RequiredFieldsConfig()

    @property
    def enabled(self) -> bool:
        """Whether this rule runs, taken from its config section."""
        return self.config.enabled

    def validate(self, query: CandidateQuery) -> ValidationResult:
        """Check that every configured field is present and non-empty."""
        builder = ResultBuilder(self.name, query)

        for field in self.config.field_names:
            if not is_field_present(query, field):
                builder.error(f"Required field '{field}' is missing or empty")

        return builder.build(
            "Required fields",
            [
                "Provide all required fields for the query",
                "Check the configuration for the list of required fields",
            ],
        )
