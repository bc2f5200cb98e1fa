"""Allow-list check for log sources, verbs and resources."""

from __future__ import annotations

from auditguard.core.config import WhitelistConfig
from auditguard.core.domain_types import CandidateQuery
from auditguard.core.result import ResultBuilder, Severity, ValidationResult
from auditguard.safety.matcher import is_allowed


class WhitelistRule:
    """Reject log sources, verbs and resources that are not allow-listed.

    Matching is case-insensitive. Every disallowed list element is
    reported separately.
    """

    name = "whitelist_validation"
    description = "Validates that log sources, verbs, and resources are in the allowed whitelist"
    severity = Severity.CRITICAL

    def __init__(self, config: WhitelistConfig | None = None) -> None:
        self.config = config or WhitelistConfig()

    @property
    def enabled(self) -> bool:
        """Whether this rule runs, taken from its config section."""
        return self.config.enabled

    def validate(self, query: CandidateQuery) -> ValidationResult:
        """Check log source, verbs and resources against the allow-lists."""
        builder = ResultBuilder(self.name, query)

        if query.log_source and not is_allowed(query.log_source, self.config.allowed_log_sources):
            builder.error(f"Log source '{query.log_source}' is not in allowed whitelist")

        for verb in query.verb.values():
            if not is_allowed(verb, self.config.allowed_verbs):
                builder.error(f"Verb '{verb}' is not in allowed whitelist")

        for resource in query.resource.values():
            if not is_allowed(resource, self.config.allowed_resources):
                builder.error(f"Resource '{resource}' is not in allowed whitelist")

        return builder.build(
            "Whitelist",
            [
                "Use only allowed log sources, verbs, and resources from the whitelist",
                "Check the configuration for the complete list of allowed values",
            ],
        )
