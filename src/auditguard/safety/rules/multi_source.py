"""Multi-source correlation checks."""

from __future__ import annotations

from auditguard.core.config import MultiSourceConfig
from auditguard.core.domain_types import CandidateQuery, MultiSource
from auditguard.core.result import ResultBuilder, Severity, ValidationResult
from auditguard.safety.cost_model import Admission, admit, correlation_complexity
from auditguard.safety.matcher import is_allowed, lookup

# Source sets known to produce very large joins
EXPENSIVE_SOURCE_COMBINATIONS: tuple[tuple[str, ...], ...] = (
    ("node-auditd", "kube-apiserver", "oauth-server"),
    ("kube-apiserver", "openshift-apiserver", "oauth-apiserver"),
)

LARGE_CORRELATION_WINDOWS: tuple[str, ...] = ("12_hours", "24_hours")

JOIN_TYPES: tuple[str, ...] = ("inner", "left", "right", "full")
EXPENSIVE_JOIN_TYPES: tuple[str, ...] = ("full", "right")

# Correlation fields each log source actually records
SOURCE_FIELDS: dict[str, tuple[str, ...]] = {
    "kube-apiserver": (
        "user", "source_ip", "user_agent", "timestamp", "namespace",
        "resource", "verb", "response_status", "request_id",
    ),
    "openshift-apiserver": (
        "user", "source_ip", "user_agent", "timestamp", "namespace",
        "resource", "verb", "response_status", "request_id",
    ),
    "oauth-server": (
        "user", "source_ip", "user_agent", "timestamp", "session_id", "response_status",
    ),
    "oauth-apiserver": (
        "user", "source_ip", "user_agent", "timestamp", "namespace",
        "resource", "verb", "response_status", "session_id",
    ),
    "node-auditd": ("user", "source_ip", "timestamp"),
}


class MultiSourceRule:
    """Validate a multi-source correlation block.

    Invalid identifiers, duplicates and count limits are errors. Field
    availability per source, expensive combinations and missing
    optional settings are warnings.
    """

    name = "multi_source_validation"
    description = (
        "Validates multi-source correlation configuration including source "
        "compatibility, correlation fields, and complexity limits"
    )
    severity = Severity.CRITICAL

    def __init__(self, config: MultiSourceConfig | None = None) -> None:
        self.config = config or MultiSourceConfig()

    @property
    def enabled(self) -> bool:
        """Whether this rule runs, taken from its config section."""
        return self.config.enabled

    def validate(self, query: CandidateQuery) -> ValidationResult:
        """Check sources, correlation fields, window and join type.

        Args:
            query: Candidate query; a query without a multi-source block passes.

        Returns:
            Result where invalid or duplicate identifiers are errors and
            per-source field incompatibilities are warnings.
        """
        builder = ResultBuilder(self.name, query)
        multi_source = query.multi_source

        if multi_source is not None:
            self._validate_primary_source(multi_source, builder)
            self._validate_secondary_sources(multi_source, builder)
            self._validate_source_combinations(multi_source, builder)
            self._validate_correlation_window(multi_source, builder)
            self._validate_correlation_fields(multi_source, builder)
            self._validate_join_type(multi_source, builder)
            self._validate_complexity(multi_source, builder)

        return builder.build(
            "Multi-source",
            [
                "Review multi-source correlation configuration",
                "Ensure all log sources are valid and compatible",
                "Verify correlation fields are supported across all sources",
                "Check correlation window is within allowed limits",
                "Consider reducing query complexity for better performance",
            ],
        )

    def _validate_primary_source(self, multi_source: MultiSource, builder: ResultBuilder) -> None:
        primary = multi_source.primary_source
        if not primary:
            builder.error("Primary source is required for multi-source correlation")
            return

        valid = self.config.valid_log_sources
        if not is_allowed(primary, valid):
            builder.error(f"Invalid primary source '{primary}'. Valid sources: {', '.join(valid)}")

    def _validate_secondary_sources(
        self, multi_source: MultiSource, builder: ResultBuilder
    ) -> None:
        secondaries = multi_source.secondary_sources
        if not secondaries:
            builder.error("At least one secondary source is required for multi-source correlation")
            return

        total = 1 + len(secondaries)
        if total > self.config.max_sources:
            builder.error(
                "Too many sources for correlation. Maximum allowed: "
                f"{self.config.max_sources}, got: {total}"
            )

        valid = self.config.valid_log_sources
        seen = {multi_source.primary_source.casefold()}
        for index, source in enumerate(secondaries):
            if not is_allowed(source, valid):
                builder.error(
                    f"Invalid secondary source '{source}' at index {index}. "
                    f"Valid sources: {', '.join(valid)}"
                )
                continue
            key = source.casefold()
            if key in seen:
                builder.error(
                    f"Duplicate source '{source}' at index {index}. "
                    "Each source can only be used once"
                )
                continue
            seen.add(key)

    def _validate_source_combinations(
        self, multi_source: MultiSource, builder: ResultBuilder
    ) -> None:
        present = {source.casefold() for source in multi_source.all_sources()}
        for combination in EXPENSIVE_SOURCE_COMBINATIONS:
            if all(source in present for source in combination):
                builder.warn(
                    f"Source combination {', '.join(combination)} may impact query performance"
                )

    def _validate_correlation_window(
        self, multi_source: MultiSource, builder: ResultBuilder
    ) -> None:
        window = multi_source.correlation_window
        if not window:
            builder.warn("No correlation window specified, using default")
            return

        allowed = self.config.allowed_correlation_windows
        if not is_allowed(window, allowed):
            builder.error(
                f"Invalid correlation window '{window}'. Allowed windows: {', '.join(allowed)}"
            )

        if is_allowed(window, LARGE_CORRELATION_WINDOWS):
            builder.warn(f"Large correlation window '{window}' may impact query performance")

    def _validate_correlation_fields(
        self, multi_source: MultiSource, builder: ResultBuilder
    ) -> None:
        fields = multi_source.correlation_fields
        if not fields:
            builder.warn("No correlation fields specified, using default correlation")
            return

        if len(fields) > self.config.max_correlation_fields:
            builder.error(
                "Too many correlation fields. Maximum allowed: "
                f"{self.config.max_correlation_fields}, got: {len(fields)}"
            )

        allowed = self.config.allowed_correlation_fields
        seen: set[str] = set()
        for index, field in enumerate(fields):
            if not is_allowed(field, allowed):
                builder.error(
                    f"Invalid correlation field '{field}' at index {index}. "
                    f"Valid fields: {', '.join(allowed)}"
                )
                continue
            key = field.casefold()
            if key in seen:
                builder.error(f"Duplicate correlation field '{field}' at index {index}")
                continue
            seen.add(key)

        self._validate_field_availability(multi_source, builder)

    def _validate_field_availability(
        self, multi_source: MultiSource, builder: ResultBuilder
    ) -> None:
        sources = multi_source.all_sources()
        for field in multi_source.correlation_fields:
            missing_in = []
            for source in sources:
                available = lookup(SOURCE_FIELDS, source, None)
                if available is not None and not is_allowed(field, available):
                    missing_in.append(source)
            if missing_in:
                builder.warn(
                    f"Correlation field '{field}' may not be available in sources: "
                    f"{', '.join(missing_in)}"
                )

    def _validate_join_type(self, multi_source: MultiSource, builder: ResultBuilder) -> None:
        join_type = multi_source.join_type
        if not join_type:
            return

        if not is_allowed(join_type, JOIN_TYPES):
            builder.error(
                f"Invalid join type '{join_type}'. Allowed types: {', '.join(JOIN_TYPES)}"
            )
        if is_allowed(join_type, EXPENSIVE_JOIN_TYPES):
            builder.warn(f"Join type '{join_type}' may impact query performance")

    def _validate_complexity(self, multi_source: MultiSource, builder: ResultBuilder) -> None:
        complexity = correlation_complexity(multi_source)
        limit = self.config.max_correlation_complexity

        admission = admit(complexity, limit)
        if admission is Admission.ERROR:
            builder.error(
                f"Correlation complexity score {complexity} exceeds maximum allowed {limit}"
            )
        elif admission is Admission.WARNING:
            builder.warn(f"High correlation complexity score {complexity} may impact performance")

        builder.detail("correlation_complexity_score", complexity)
        builder.detail("max_complexity_allowed", limit)
