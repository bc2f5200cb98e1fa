"""Compliance framework checks (SOX, PCI-DSS, GDPR, HIPAA, ...)."""

from __future__ import annotations

from typing import NamedTuple

from auditguard.core.config import ComplianceConfig
from auditguard.core.domain_types import CandidateQuery, ComplianceFramework
from auditguard.core.result import ResultBuilder, Severity, ValidationResult
from auditguard.safety.matcher import is_allowed, lookup

from .timeframe import days_back


class StandardProfile(NamedTuple):
    """What a compliance standard expects from an audit query."""

    label: str
    retention_days: int
    required_controls: tuple[str, ...]
    max_query_days: int | None = None
    retention_note: str = ""
    comprehensive_logging: bool = False


STANDARD_PROFILES: dict[str, StandardProfile] = {
    "SOX": StandardProfile(
        label="SOX",
        retention_days=2555,
        required_controls=("access_logging", "change_management", "audit_trail"),
        max_query_days=2555,
        retention_note="SOX 7-year",
        comprehensive_logging=True,
    ),
    "PCI-DSS": StandardProfile(
        label="PCI-DSS",
        retention_days=365,
        required_controls=("access_logging", "authentication_monitoring", "data_protection"),
        max_query_days=365,
        retention_note="PCI-DSS 1-year",
    ),
    "GDPR": StandardProfile(
        label="GDPR",
        retention_days=1095,
        required_controls=("data_protection", "access_logging", "audit_trail"),
    ),
    "HIPAA": StandardProfile(
        label="HIPAA",
        retention_days=2190,
        required_controls=(
            "access_logging", "audit_trail", "data_protection", "authentication_monitoring",
        ),
        max_query_days=2190,
        retention_note="HIPAA 6-year",
        comprehensive_logging=True,
    ),
    "ISO27001": StandardProfile(
        label="ISO 27001",
        retention_days=365,
        required_controls=(
            "access_logging", "incident_response",
            "vulnerability_management", "configuration_management",
        ),
        comprehensive_logging=True,
    ),
    "NIST": StandardProfile(
        label="NIST",
        retention_days=1095,
        required_controls=(
            "access_logging", "incident_response", "vulnerability_management", "audit_trail",
        ),
    ),
    "CIS": StandardProfile(
        label="CIS",
        retention_days=365,
        required_controls=(
            "access_logging", "configuration_management", "vulnerability_management",
        ),
    ),
    "FedRAMP": StandardProfile(
        label="FedRAMP",
        retention_days=1095,
        required_controls=(
            "access_logging", "audit_trail", "incident_response",
            "configuration_management", "vulnerability_management",
        ),
        comprehensive_logging=True,
    ),
}
DEFAULT_RETENTION_DAYS = 365

# Guidance attached to specific standards
STANDARD_GUIDANCE: dict[str, str] = {
    "GDPR": "GDPR requires data minimization - ensure query scope is necessary and proportionate",
    "FedRAMP": (
        "FedRAMP requires continuous monitoring - ensure audit queries support ongoing compliance"
    ),
}

CONTROL_STANDARDS: dict[str, tuple[str, ...]] = {
    "access_logging": ("SOX", "PCI-DSS", "GDPR", "HIPAA", "ISO27001", "NIST", "CIS", "FedRAMP"),
    "data_protection": ("PCI-DSS", "GDPR", "HIPAA", "ISO27001", "NIST"),
    "authentication_monitoring": ("PCI-DSS", "HIPAA", "ISO27001", "NIST", "FedRAMP"),
    "privilege_management": ("SOX", "PCI-DSS", "ISO27001", "NIST", "CIS", "FedRAMP"),
    "audit_trail": ("SOX", "GDPR", "HIPAA", "ISO27001", "NIST", "FedRAMP"),
    "change_management": ("SOX", "ISO27001", "NIST", "CIS", "FedRAMP"),
    "incident_response": ("ISO27001", "NIST", "CIS", "FedRAMP"),
    "vulnerability_management": ("PCI-DSS", "ISO27001", "NIST", "CIS", "FedRAMP"),
    "configuration_management": ("ISO27001", "NIST", "CIS", "FedRAMP"),
    "business_continuity": ("ISO27001", "NIST", "FedRAMP"),
}

REPORTING_FORMATS: tuple[str, ...] = ("detailed", "summary", "executive", "technical")

REQUIRED_AUDIT_FIELDS: tuple[str, ...] = (
    "timestamp", "user", "source_ip", "action", "resource", "outcome", "request_id",
)

QUERY_TIMEFRAME_DAYS: dict[str, int] = {
    "today": 1,
    "yesterday": 2,
    "7_days_ago": 7,
    "14_days_ago": 14,
    "30_days_ago": 30,
    "60_days_ago": 60,
    "90_days_ago": 90,
    "last_week": 7,
    "last_month": 30,
}
DEFAULT_QUERY_DAYS = 30


def query_timeframe_days(query: CandidateQuery) -> int:
    """How many days of history the query covers, for retention checks."""
    days = lookup(QUERY_TIMEFRAME_DAYS, query.timeframe, 0)
    if days:
        return days
    return days_back(query.timeframe) or DEFAULT_QUERY_DAYS


class ComplianceRule:
    """Validate a compliance framework block.

    Unknown, duplicate or too many standards and controls are errors,
    as is an unknown reporting format. Gaps against what each standard
    usually expects (controls, retention, evidence, reporting detail)
    are warnings.
    """

    name = "compliance_validation"
    description = (
        "Validates compliance framework requirements including standards, "
        "controls, retention, and evidence collection"
    )
    severity = Severity.CRITICAL

    def __init__(self, config: ComplianceConfig | None = None) -> None:
        self.config = config or ComplianceConfig()

    @property
    def enabled(self) -> bool:
        """Whether this rule runs, taken from its config section."""
        return self.config.enabled

    def validate(self, query: CandidateQuery) -> ValidationResult:
        """Check the compliance framework against the known standards.

        Args:
            query: Candidate query; a query without a framework passes.

        Returns:
            Result where unknown or duplicated identifiers are errors and
            missing per-standard controls or evidence are warnings.
        """
        builder = ResultBuilder(self.name, query)
        framework = query.compliance_framework

        if framework is not None:
            self._validate_standards(framework, builder)
            self._validate_controls(framework, builder)
            self._validate_retention(query, framework, builder)
            self._validate_evidence(framework, builder)
            self._validate_audit_trail(framework, builder)
            self._validate_reporting(framework, builder)
            self._validate_standard_requirements(query, framework, builder)

        return builder.build(
            "Compliance",
            [
                "Review compliance framework configuration",
                "Ensure all required standards are supported",
                "Verify evidence fields meet compliance requirements",
                "Check retention periods comply with regulations",
                "Validate audit trail completeness",
            ],
        )

    def _validate_standards(self, framework: ComplianceFramework, builder: ResultBuilder) -> None:
        standards = framework.standards
        if not standards:
            builder.error("At least one compliance standard must be specified")
            return

        if len(standards) > self.config.max_standards:
            builder.error(
                "Too many compliance standards. Maximum allowed: "
                f"{self.config.max_standards}, got: {len(standards)}"
            )

        allowed = self.config.allowed_standards
        seen: set[str] = set()
        for index, standard in enumerate(standards):
            if not is_allowed(standard, allowed):
                builder.error(
                    f"Invalid compliance standard '{standard}' at index {index}. "
                    f"Allowed standards: {', '.join(allowed)}"
                )
                continue
            key = standard.casefold()
            if key in seen:
                builder.error(f"Duplicate compliance standard '{standard}' at index {index}")
                continue
            seen.add(key)

    def _validate_controls(self, framework: ComplianceFramework, builder: ResultBuilder) -> None:
        controls = framework.controls
        if not controls:
            builder.warn("No compliance controls specified")
            return

        if len(controls) > self.config.max_controls:
            builder.error(
                "Too many compliance controls. Maximum allowed: "
                f"{self.config.max_controls}, got: {len(controls)}"
            )

        allowed = self.config.allowed_controls
        seen: set[str] = set()
        for index, control in enumerate(controls):
            if not is_allowed(control, allowed):
                builder.error(
                    f"Invalid compliance control '{control}' at index {index}. "
                    f"Allowed controls: {', '.join(allowed)}"
                )
                continue
            key = control.casefold()
            if key in seen:
                builder.error(f"Duplicate compliance control '{control}' at index {index}")
                continue
            seen.add(key)

        for control in controls:
            standards = lookup(CONTROL_STANDARDS, control, None)
            if standards is None:
                continue
            if not any(is_allowed(standard, standards) for standard in framework.standards):
                builder.warn(
                    f"Control '{control}' may not be directly applicable to standards: "
                    f"{', '.join(framework.standards)}"
                )

    def _validate_retention(
        self, query: CandidateQuery, framework: ComplianceFramework, builder: ResultBuilder
    ) -> None:
        days = query_timeframe_days(query)
        minimum = self.config.min_retention_days
        if days > minimum:
            builder.warn(
                f"Query timeframe {days} days exceeds minimum retention requirement "
                f"{minimum} days"
            )

        for standard in framework.standards:
            profile = lookup(STANDARD_PROFILES, standard, None)
            retention = profile.retention_days if profile else DEFAULT_RETENTION_DAYS
            if days > retention:
                builder.warn(
                    f"Query timeframe {days} days may not meet {standard} retention "
                    f"requirement {retention} days"
                )

    def _validate_evidence(self, framework: ComplianceFramework, builder: ResultBuilder) -> None:
        reporting = framework.reporting
        if reporting is None:
            builder.warn(
                "No reporting configuration specified. "
                "Evidence collection recommended for compliance"
            )
        elif not reporting.include_evidence:
            builder.warn("Evidence collection is disabled but may be required for compliance")

        builder.detail("required_evidence_fields", list(self.config.required_evidence_fields))

    def _validate_audit_trail(self, framework: ComplianceFramework, builder: ResultBuilder) -> None:
        max_gap = self.config.max_audit_gap_hours
        if max_gap > 0:
            builder.detail("max_audit_gap_hours", max_gap)
            builder.warn(f"Ensure audit trail has no gaps exceeding {max_gap} hours")

        builder.detail("required_audit_fields", list(REQUIRED_AUDIT_FIELDS))

        for standard in framework.standards:
            profile = lookup(STANDARD_PROFILES, standard, None)
            if profile is not None and profile.comprehensive_logging:
                builder.recommend(f"Standard {standard} requires comprehensive audit logging")

    def _validate_reporting(self, framework: ComplianceFramework, builder: ResultBuilder) -> None:
        reporting = framework.reporting
        if reporting is None:
            builder.warn("No reporting configuration specified")
            return

        if reporting.format and not is_allowed(reporting.format, REPORTING_FORMATS):
            builder.error(
                f"Invalid reporting format '{reporting.format}'. "
                f"Allowed formats: {', '.join(REPORTING_FORMATS)}"
            )

        if reporting.include_evidence:
            builder.recommend("Evidence collection enabled - ensure adequate storage and retention")

        for standard in framework.standards:
            key = standard.casefold()
            if key == "sox" and reporting.format.casefold() != "detailed":
                builder.warn("SOX compliance typically requires detailed reporting format")
            elif key == "pci-dss" and not reporting.include_evidence:
                builder.warn("PCI-DSS compliance typically requires evidence collection")
            elif key == "gdpr":
                builder.recommend(
                    "GDPR requires data subject rights - "
                    "ensure reports support data subject requests"
                )
            elif key == "hipaa" and not reporting.include_evidence:
                builder.warn(
                    "HIPAA compliance typically requires comprehensive evidence collection"
                )

    def _validate_standard_requirements(
        self, query: CandidateQuery, framework: ComplianceFramework, builder: ResultBuilder
    ) -> None:
        days = query_timeframe_days(query)
        for standard in framework.standards:
            profile = lookup(STANDARD_PROFILES, standard, None)
            if profile is None:
                continue

            for control in profile.required_controls:
                if not is_allowed(control, framework.controls):
                    builder.warn(
                        f"{profile.label} compliance typically requires '{control}' control"
                    )

            if profile.max_query_days is not None and days > profile.max_query_days:
                builder.warn(
                    f"Query timeframe may exceed {profile.retention_note} retention requirement"
                )

            guidance = lookup(STANDARD_GUIDANCE, standard, None)
            if guidance:
                builder.recommend(guidance)
