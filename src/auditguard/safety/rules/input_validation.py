"""Consolidated single-pass input validation."""

from __future__ import annotations

import re

from auditguard.core.config import InputValidationConfig
from auditguard.core.domain_types import SCALAR_STRING_FIELDS, STRING_OR_LIST_FIELDS, CandidateQuery
from auditguard.core.result import ResultBuilder, Severity, ValidationResult
from auditguard.safety.matcher import is_allowed, matches

from .required import is_field_present
from .sanitization import query_text_length
from .timeframe import days_back


def _field_values(query: CandidateQuery) -> list[tuple[str, str]]:
    """Every non-empty text value in the query as (field, value) pairs."""
    pairs = [(field, getattr(query, field)) for field in SCALAR_STRING_FIELDS]
    for field in STRING_OR_LIST_FIELDS:
        pairs.extend((field, value) for value in getattr(query, field).values())
    pairs.extend(("exclude_users", user) for user in query.exclude_users)
    pairs.extend(("exclude_resources", resource) for resource in query.exclude_resources)
    return [(field, value) for field, value in pairs if value]


class ComprehensiveInputRule:
    """Run the basic input checks in one pass with one configuration.

    Covers required fields, character safety, security patterns,
    allowed field values and result/array limits. Format mismatches
    (pattern shape, IP address shape) are warnings; everything else
    is an error.
    """

    name = "comprehensive_input_validation"
    description = (
        "Comprehensive input validation covering required fields, character safety, "
        "security patterns, field values, and performance limits"
    )
    severity = Severity.CRITICAL

    def __init__(self, config: InputValidationConfig | None = None) -> None:
        self.config = config or InputValidationConfig()
        characters = self.config.character_validation
        self._pattern_format = (
            re.compile(characters.valid_regex_pattern) if characters.valid_regex_pattern else None
        )
        self._ip_format = (
            re.compile(characters.valid_ip_pattern) if characters.valid_ip_pattern else None
        )

    @property
    def enabled(self) -> bool:
        """Whether this rule runs, taken from its config section."""
        return self.config.enabled

    def validate(self, query: CandidateQuery) -> ValidationResult:
        """Run the consolidated input checks in a single pass.

        Returns:
            Result where malformed values and exceeded limits are errors
            and format mismatches are warnings.
        """
        builder = ResultBuilder(self.name, query)

        self._validate_required_fields(query, builder)
        self._validate_characters(query, builder)
        self._validate_security_patterns(query, builder)
        self._validate_field_values(query, builder)
        self._validate_performance_limits(query, builder)

        builder.detail(
            "validation_sections",
            {
                "required_fields_checked": len(self.config.required_fields.mandatory),
                "character_validation_applied": True,
                "security_patterns_checked": len(
                    self.config.security_patterns.forbidden_patterns
                ),
                "field_values_validated": True,
                "performance_limits_applied": True,
            },
        )

        return builder.build(
            "Input",
            [
                "Fix all validation errors before proceeding",
                "Review query parameters for compliance with security policies",
            ],
        )

    def _validate_required_fields(self, query: CandidateQuery, builder: ResultBuilder) -> None:
        for field in self.config.required_fields.mandatory:
            if not is_field_present(query, field):
                builder.error(f"Required field '{field}' is missing or empty")

    def _validate_characters(self, query: CandidateQuery, builder: ResultBuilder) -> None:
        characters = self.config.character_validation

        for field in SCALAR_STRING_FIELDS:
            value: str = getattr(query, field)
            if not value:
                continue

            if len(value) > characters.max_pattern_length:
                builder.error(
                    f"Field '{field}' exceeds maximum length of "
                    f"{characters.max_pattern_length} characters"
                )

            for char in characters.forbidden_chars:
                if char in value:
                    builder.error(f"Field '{field}' contains forbidden character '{char}'")

            if (
                field.endswith("_pattern")
                and self._pattern_format is not None
                and not self._pattern_format.search(value)
            ):
                builder.warn(f"Field '{field}' does not match recommended pattern format")

        if self._ip_format is not None:
            for ip in query.source_ip.values():
                if not self._ip_format.search(ip):
                    builder.warn("Field 'source_ip' does not appear to be a valid IP address")

        total = query_text_length(query)
        if total > characters.max_query_length:
            builder.error(
                f"Query text length {total} exceeds maximum of "
                f"{characters.max_query_length} characters"
            )

    def _validate_security_patterns(self, query: CandidateQuery, builder: ResultBuilder) -> None:
        patterns = self.config.security_patterns.forbidden_patterns
        for field, value in _field_values(query):
            for pattern in patterns:
                if matches(value, pattern):
                    builder.error(f"Field '{field}' contains forbidden security pattern: {pattern}")

    def _validate_field_values(self, query: CandidateQuery, builder: ResultBuilder) -> None:
        allowed = self.config.field_values

        if query.log_source and not is_allowed(query.log_source, allowed.allowed_log_sources):
            builder.error(f"Log source '{query.log_source}' is not in allowed list")

        for field, values in (
            ("verb", allowed.allowed_verbs),
            ("resource", allowed.allowed_resources),
        ):
            for value in getattr(query, field).values():
                if not is_allowed(value, values):
                    builder.error(f"Value '{value}' in field '{field}' is not in allowed list")

        if query.auth_decision and not is_allowed(
            query.auth_decision, allowed.allowed_auth_decisions
        ):
            builder.error(f"Auth decision '{query.auth_decision}' is not in allowed list")

        for value in query.response_status.values():
            if not is_allowed(value, allowed.allowed_response_status):
                builder.error(f"Value '{value}' in field 'response_status' is not in allowed list")

    def _validate_performance_limits(self, query: CandidateQuery, builder: ResultBuilder) -> None:
        limits = self.config.performance_limits

        if query.limit > limits.max_result_limit:
            builder.error(
                f"Result limit {query.limit} exceeds maximum allowed limit of "
                f"{limits.max_result_limit}"
            )

        sizes = [(field, len(getattr(query, field).values())) for field in STRING_OR_LIST_FIELDS]
        sizes.append(("exclude_users", len(query.exclude_users)))
        sizes.append(("exclude_resources", len(query.exclude_resources)))
        for field, size in sizes:
            if size > limits.max_array_elements:
                builder.error(
                    f"Array field '{field}' has {size} elements, exceeds maximum of "
                    f"{limits.max_array_elements}"
                )

        if query.timeframe:
            if not is_allowed(query.timeframe, limits.allowed_timeframes):
                builder.error(f"Timeframe '{query.timeframe}' is not in allowed list")
            if days_back(query.timeframe) > limits.max_days_back:
                builder.error(
                    f"Timeframe '{query.timeframe}' exceeds maximum allowed days back "
                    f"({limits.max_days_back})"
                )
