"""Forbidden and dangerous pattern screening."""

from __future__ import annotations

from auditguard.core.config import PatternsConfig
from auditguard.core.domain_types import (
    SCALAR_STRING_FIELDS,
    STRING_OR_LIST_FIELDS,
    CandidateQuery,
    StringOrList,
)
from auditguard.core.result import ResultBuilder, Severity, ValidationResult
from auditguard.safety.matcher import matches

DANGEROUS_URI_PATTERNS: tuple[str, ...] = (
    "/api/v1/namespaces/.*/finalize",
    "/api/v1/namespaces/.*/status",
    "/api/v1/nodes/.*/proxy",
    "/api/v1/nodes/.*/status",
    "/api/v1/pods/.*/exec",
    "/api/v1/pods/.*/attach",
    "/api/v1/pods/.*/portforward",
    "/api/v1/pods/.*/log",
    "/api/v1/pods/.*/proxy",
    "/api/v1/services/.*/proxy",
)

DANGEROUS_NAMESPACE_PATTERNS: tuple[str, ...] = (
    "kube-system",
    "openshift-.*",
    "default",
    "kube-public",
    "kube-node-lease",
    "security",
    "prod.*",
    "production",
)

DANGEROUS_USER_PATTERNS: tuple[str, ...] = (
    "system:admin",
    "system:masters",
    "cluster-admin",
    "admin",
)

DANGEROUS_RESOURCE_PATTERNS: tuple[str, ...] = (
    "kube-system",
    "openshift-.*",
    "default",
    "kube-public",
    "kube-node-lease",
)

# (query field, label used in messages, dangerous patterns)
_TARGETED_CHECKS: tuple[tuple[str, str, tuple[str, ...]], ...] = (
    ("request_uri_pattern", "Request URI pattern", DANGEROUS_URI_PATTERNS),
    ("namespace_pattern", "Namespace pattern", DANGEROUS_NAMESPACE_PATTERNS),
    ("user_pattern", "User pattern", DANGEROUS_USER_PATTERNS),
    ("resource_name_pattern", "Resource name pattern", DANGEROUS_RESOURCE_PATTERNS),
)


class PatternsRule:
    """Reject queries containing forbidden or dangerous patterns.

    Every free-text field and every list element is matched against the
    configured deny-list. The four pattern fields are then matched
    against fixed tables of privileged namespaces, users, resources and
    API paths. A single value can trip both checks and is then reported
    by each of them.
    """

    name = "forbidden_patterns_validation"
    description = "Validates that query does not contain forbidden patterns or dangerous commands"
    severity = Severity.CRITICAL

    def __init__(self, config: PatternsConfig | None = None) -> None:
        self.config = config or PatternsConfig()

    @property
    def enabled(self) -> bool:
        """Whether this rule runs, taken from its config section."""
        return self.config.enabled

    def validate(self, query: CandidateQuery) -> ValidationResult:
        """Screen free-text and list fields for forbidden and dangerous patterns."""
        builder = ResultBuilder(self.name, query)
        forbidden = self.config.forbidden_patterns

        for field in SCALAR_STRING_FIELDS:
            value: str = getattr(query, field)
            if value:
                self._screen(builder, value, f"Field '{field}' contains", forbidden)

        for field in STRING_OR_LIST_FIELDS:
            values: StringOrList = getattr(query, field)
            for item in values.values():
                self._screen(builder, item, f"Field '{field}' contains", forbidden)

        for user in query.exclude_users:
            self._screen(builder, user, "Exclude user contains", forbidden)
        for resource in query.exclude_resources:
            self._screen(builder, resource, "Exclude resource contains", forbidden)

        for field, label, dangerous in _TARGETED_CHECKS:
            value = getattr(query, field)
            if not value:
                continue
            for pattern in dangerous:
                if matches(value, pattern):
                    builder.error(f"{label} contains dangerous pattern '{pattern}': {value}")

        return builder.build(
            "Forbidden patterns",
            [
                "Remove forbidden patterns from query parameters",
                "Avoid dangerous command patterns and system access",
                "Use safe, non-privileged patterns only",
                "Review query for potential security risks",
            ],
        )

    @staticmethod
    def _screen(
        builder: ResultBuilder,
        value: str,
        prefix: str,
        forbidden: tuple[str, ...],
    ) -> None:
        for pattern in forbidden:
            if matches(value, pattern):
                builder.error(f"{prefix} forbidden pattern '{pattern}': {value}")
