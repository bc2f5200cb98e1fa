"""Input sanitization: forbidden characters, lengths and value formats."""

from __future__ import annotations

import re

from auditguard.core.config import SanitizationConfig
from auditguard.core.domain_types import (
    PATTERN_FIELDS,
    SCALAR_STRING_FIELDS,
    STRING_OR_LIST_FIELDS,
    CandidateQuery,
)
from auditguard.core.result import ResultBuilder, Severity, ValidationResult

# Fields screened for forbidden characters
CHARACTER_CHECKED_FIELDS: tuple[str, ...] = (
    "resource_name_pattern",
    "user_pattern",
    "namespace_pattern",
    "request_uri_pattern",
    "authorization_reason_pattern",
    "response_message_pattern",
    "missing_annotation",
    "request_object_filter",
)

LENGTH_CHECKED_FIELDS: tuple[str, ...] = (
    "resource_name_pattern",
    "user_pattern",
    "namespace_pattern",
    "request_uri_pattern",
)


def _compile(pattern: str) -> re.Pattern[str] | None:
    return re.compile(pattern) if pattern else None


def query_text_length(query: CandidateQuery) -> int:
    """Total length of every free-text value in the query."""
    total = sum(len(getattr(query, field)) for field in SCALAR_STRING_FIELDS)
    for field in STRING_OR_LIST_FIELDS:
        total += sum(len(value) for value in getattr(query, field).values())
    total += sum(len(user) for user in query.exclude_users)
    total += sum(len(resource) for resource in query.exclude_resources)
    return total


class SanitizationRule:
    """Guard the backend against injection through free-text fields.

    Checks, in order:
    - forbidden characters in pattern fields and exclusion lists
    - maximum length of the four main pattern fields
    - maximum total text length of the query
    - pattern, IP address, namespace and resource name formats

    A pattern of exactly the maximum length is accepted.
    """

    name = "sanitization_validation"
    description = "Validates input sanitization to prevent injection attacks"
    severity = Severity.CRITICAL

    def __init__(self, config: SanitizationConfig | None = None) -> None:
        self.config = config or SanitizationConfig()
        self._regex_format = _compile(self.config.valid_regex_pattern)
        self._ip_format = _compile(self.config.valid_ip_pattern)
        self._namespace_format = _compile(self.config.valid_namespace_pattern)
        self._resource_format = _compile(self.config.valid_resource_pattern)

    @property
    def enabled(self) -> bool:
        """Whether this rule runs, taken from its config section."""
        return self.config.enabled

    def validate(self, query: CandidateQuery) -> ValidationResult:
        """Check free-text fields for unsafe characters, lengths and formats.

        Returns:
            Result with one error per violating field or element.
        """
        builder = ResultBuilder(self.name, query)

        self._check_forbidden_chars(query, builder)
        self._check_lengths(query, builder)
        self._check_formats(query, builder)

        return builder.build(
            "Input sanitization",
            [
                "Remove forbidden characters from patterns",
                "Use only alphanumeric characters, hyphens, and underscores",
                "Keep patterns within length limits",
                "Use valid regex patterns only",
            ],
        )

    def _check_forbidden_chars(self, query: CandidateQuery, builder: ResultBuilder) -> None:
        chars = self.config.forbidden_chars

        for field in CHARACTER_CHECKED_FIELDS:
            pattern: str = getattr(query, field)
            if not pattern:
                continue
            for char in chars:
                if char in pattern:
                    builder.error(f"Pattern contains forbidden character '{char}': {pattern}")

        for user in query.exclude_users:
            for char in chars:
                if char in user:
                    builder.error(f"Exclude user contains forbidden character '{char}': {user}")

        for resource in query.exclude_resources:
            for char in chars:
                if char in resource:
                    builder.error(
                        f"Exclude resource contains forbidden character '{char}': {resource}"
                    )

    def _check_lengths(self, query: CandidateQuery, builder: ResultBuilder) -> None:
        max_length = self.config.max_pattern_length
        for field in LENGTH_CHECKED_FIELDS:
            if len(getattr(query, field)) > max_length:
                builder.error(
                    f"Pattern '{field}' exceeds maximum length of {max_length} characters"
                )

        total = query_text_length(query)
        if total > self.config.max_query_length:
            builder.error(
                f"Query text length {total} exceeds maximum of "
                f"{self.config.max_query_length} characters"
            )

    def _check_formats(self, query: CandidateQuery, builder: ResultBuilder) -> None:
        if self._regex_format is not None:
            for field in PATTERN_FIELDS:
                pattern = getattr(query, field)
                if pattern and not self._regex_format.search(pattern):
                    builder.error(f"Invalid regex pattern: {pattern}")

        if self._ip_format is not None:
            for ip in query.source_ip.values():
                if not self._ip_format.search(ip):
                    builder.error(f"Invalid IP address: {ip}")

        if (
            self._namespace_format is not None
            and query.namespace_pattern
            and not self._namespace_format.search(query.namespace_pattern)
        ):
            builder.error(f"Invalid namespace pattern: {query.namespace_pattern}")

        if (
            self._resource_format is not None
            and query.resource_name_pattern
            and not self._resource_format.search(query.resource_name_pattern)
        ):
            builder.error(f"Invalid resource pattern: {query.resource_name_pattern}")
