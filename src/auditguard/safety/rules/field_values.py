"""Allowed values for enumerated fields."""

from __future__ import annotations

from auditguard.core.config import FieldValuesConfig
from auditguard.core.domain_types import CandidateQuery
from auditguard.core.result import ResultBuilder, Severity, ValidationResult
from auditguard.safety.matcher import is_allowed


class FieldValuesRule:
    """Check auth decisions and response status codes against allow-lists."""

    name = "field_values_validation"
    description = "Validates specific field values against allowed lists from configuration"
    severity = Severity.CRITICAL

    def __init__(self, config: FieldValuesConfig | None = None) -> None:
        self.config = config or FieldValuesConfig()

    @property
    def enabled(self) -> bool:
        """Whether this rule runs, taken from its config section."""
        return self.config.enabled

    def validate(self, query: CandidateQuery) -> ValidationResult:
        """Check auth_decision and each response status against their allow-lists."""
        builder = ResultBuilder(self.name, query)

        decisions = self.config.allowed_auth_decisions
        if query.auth_decision and not is_allowed(query.auth_decision, decisions):
            builder.error(
                f"Invalid auth_decision '{query.auth_decision}'. "
                f"Allowed decisions: {', '.join(decisions)}"
            )

        codes = self.config.allowed_response_status
        in_array = " in array" if query.response_status.is_list() else ""
        for status in query.response_status.values():
            if not is_allowed(status, codes):
                builder.error(
                    f"Invalid response_status '{status}'{in_array}. "
                    f"Allowed status codes: {', '.join(codes)}"
                )

        return builder.build(
            "Field values",
            [
                "Use only allowed values for enum fields",
                "Check auth_decision values against allowed list",
                "Ensure response status codes are valid",
            ],
        )
