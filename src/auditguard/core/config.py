"""Typed validation configuration.

Each rule reads one section of GuardConfig. Sections are frozen
Pydantic models validated once, when the configuration is built, so a
rule never has to guess at the type of a configuration value. Every
key has a built-in default; GuardConfig() is a complete, conservative
configuration on its own.

Configuration can also be loaded from YAML:

    whitelist:
      allowed_verbs: [get, list, watch]
    performance:
      max_raw_results: 5000
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .exceptions import ConfigurationError

logger = structlog.get_logger()

KNOWN_LOG_SOURCES: tuple[str, ...] = (
    "kube-apiserver",
    "openshift-apiserver",
    "oauth-server",
    "oauth-apiserver",
    "node-auditd",
)

RESPONSE_STATUS_CODES: tuple[str, ...] = (
    "200", "201", "204", "400", "401", "403", "404",
    "409", "422", "500", "502", "503", "504",
)

AUTH_DECISIONS: tuple[str, ...] = ("allow", "error", "forbid")

VALID_REGEX_PATTERN = r"^[a-zA-Z0-9\-_\*\.\?\+\[\]\{\}\(\)\|\\/\s]+$"
VALID_IP_PATTERN = (
    r"^((25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)\.){3}"
    r"(25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)$"
)
VALID_NAMESPACE_PATTERN = r"^[a-z0-9]([a-z0-9\-]*[a-z0-9])?$"
VALID_RESOURCE_PATTERN = r"^[a-z]([a-z0-9\-]*[a-z0-9])?$"

DEFAULT_RULE_PRIORITIES: dict[str, int] = {
    "required_fields_validation": 100,
    "whitelist_validation": 95,
    "comprehensive_input_validation": 90,
    "forbidden_patterns_validation": 85,
    "sanitization_validation": 80,
    "field_values_validation": 75,
    "timeframe_validation": 70,
    "advanced_analysis_validation": 50,
    "multi_source_validation": 40,
    "behavioral_analytics_validation": 30,
    "compliance_validation": 20,
    "performance_validation": 10,
}


def _check_regex(value: str) -> str:
    try:
        re.compile(value)
    except re.error as e:
        raise ValueError(f"invalid regular expression {value!r}: {e}") from e
    return value


def _check_patterns(values: tuple[str, ...]) -> tuple[str, ...]:
    # An empty pattern is a substring of every value
    if any(not value for value in values):
        raise ValueError("forbidden patterns must not be empty strings")
    return values


class SectionConfig(BaseModel):
    """Common base for configuration sections.

    Attributes:
        enabled: Whether the rule reading this section runs at all.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    enabled: bool = True


class WhitelistConfig(SectionConfig):
    """Allow-lists for log sources, verbs and resources."""

    allowed_log_sources: tuple[str, ...] = KNOWN_LOG_SOURCES
    allowed_verbs: tuple[str, ...] = (
        "get", "list", "create", "update", "patch", "delete", "watch",
    )
    allowed_resources: tuple[str, ...] = (
        "pods", "services", "deployments", "configmaps", "secrets", "namespaces",
    )


class RequiredFieldsConfig(SectionConfig):
    """Fields that must be present on every query."""

    field_names: tuple[str, ...] = ("log_source",)


class PatternsConfig(SectionConfig):
    """Deny-list screened across every free-text field."""

    forbidden_patterns: tuple[str, ...] = (
        "rm -rf",
        "delete --all",
        "system:admin",
        "cluster-admin",
    )

    @field_validator("forbidden_patterns")
    @classmethod
    def validate_patterns(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Reject empty patterns."""
        return _check_patterns(v)


class SanitizationConfig(SectionConfig):
    """Character, length and format limits for free-text fields."""

    max_pattern_length: int = Field(default=500, ge=1)
    max_query_length: int = Field(default=10000, ge=1)
    forbidden_chars: tuple[str, ...] = (
        "<", ">", "&", '"', "'", "`", "|", ";", "$", "(", ")", "{", "}",
        "[", "]", "\\", "/", "!", "@", "#", "%", "^", "*", "+", "=", "~",
    )
    valid_regex_pattern: str = VALID_REGEX_PATTERN
    valid_ip_pattern: str = VALID_IP_PATTERN
    valid_namespace_pattern: str = VALID_NAMESPACE_PATTERN
    valid_resource_pattern: str = VALID_RESOURCE_PATTERN

    @field_validator(
        "valid_regex_pattern",
        "valid_ip_pattern",
        "valid_namespace_pattern",
        "valid_resource_pattern",
    )
    @classmethod
    def validate_regex(cls, v: str) -> str:
        """Reject format patterns that do not compile. Empty disables the check."""
        return _check_regex(v) if v else v


class TimeframeConfig(SectionConfig):
    """Timeframe, time range and limit bounds."""

    max_days_back: int = Field(default=90, ge=1)
    default_limit: int = Field(default=20, ge=1)
    max_limit: int = Field(default=1000, ge=1)
    min_limit: int = Field(default=1, ge=0)
    allowed_timeframes: tuple[str, ...] = (
        "today", "yesterday", "1_hour_ago", "2_hours_ago", "3_hours_ago",
        "6_hours_ago", "12_hours_ago", "1_day_ago", "2_days_ago", "3_days_ago",
        "7_days_ago", "14_days_ago", "30_days_ago", "60_days_ago", "90_days_ago",
    )

    @model_validator(mode="after")
    def validate_limit_bounds(self) -> TimeframeConfig:
        """Ensure min_limit does not exceed max_limit."""
        if self.min_limit > self.max_limit:
            msg = f"min_limit ({self.min_limit}) cannot exceed max_limit ({self.max_limit})"
            raise ValueError(msg)
        return self


class FieldValuesConfig(SectionConfig):
    """Allowed values for enumerated query fields."""

    allowed_auth_decisions: tuple[str, ...] = AUTH_DECISIONS
    allowed_response_status: tuple[str, ...] = RESPONSE_STATUS_CODES


class MandatoryFieldsConfig(BaseModel):
    """Required fields of the input check."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    mandatory: tuple[str, ...] = ("log_source",)


class CharacterValidationConfig(BaseModel):
    """Character safety and format settings of the input check."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_query_length: int = Field(default=10000, ge=1)
    max_pattern_length: int = Field(default=500, ge=1)
    forbidden_chars: tuple[str, ...] = ("<", ">", "&", '"', "'", "`", "|", ";", "$")
    valid_regex_pattern: str = VALID_REGEX_PATTERN
    valid_ip_pattern: str = VALID_IP_PATTERN

    @field_validator("valid_regex_pattern", "valid_ip_pattern")
    @classmethod
    def validate_regex(cls, v: str) -> str:
        """Reject format patterns that do not compile. Empty disables the check."""
        return _check_regex(v) if v else v


class SecurityPatternsConfig(BaseModel):
    """Security deny-list of the input check."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    forbidden_patterns: tuple[str, ...] = (
        "system:admin",
        "system:masters",
        "cluster-admin",
        "delete --all",
        "delete --force",
        "privileged: true",
        "hostNetwork: true",
        "runAsUser: 0",
    )

    @field_validator("forbidden_patterns")
    @classmethod
    def validate_patterns(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Reject empty patterns."""
        return _check_patterns(v)


class AllowedValuesConfig(BaseModel):
    """Allowed field values of the input check."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    allowed_log_sources: tuple[str, ...] = KNOWN_LOG_SOURCES
    allowed_verbs: tuple[str, ...] = (
        "get", "list", "create", "update", "patch", "delete", "watch", "impersonate",
    )
    allowed_resources: tuple[str, ...] = (
        "pods", "services", "deployments", "configmaps", "secrets", "namespaces",
        "serviceaccounts", "roles", "rolebindings", "clusterroles", "clusterrolebindings",
        "customresourcedefinitions", "persistentvolumeclaims", "networkpolicies",
        "events", "nodes", "routes", "builds", "imagestreams", "projects",
        "users", "groups", "oauthclients", "securitycontextconstraints",
    )
    allowed_auth_decisions: tuple[str, ...] = AUTH_DECISIONS
    allowed_response_status: tuple[str, ...] = RESPONSE_STATUS_CODES


class PerformanceLimitsConfig(BaseModel):
    """Result and array limits of the input check."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_result_limit: int = Field(default=50, ge=1)
    max_array_elements: int = Field(default=15, ge=1)
    max_days_back: int = Field(default=90, ge=1)
    allowed_timeframes: tuple[str, ...] = (
        "today", "yesterday", "1_hour_ago", "6_hours_ago", "12_hours_ago",
        "1_day_ago", "3_days_ago", "7_days_ago", "30_days_ago", "90_days_ago",
    )


class InputValidationConfig(SectionConfig):
    """Consolidated single-pass input validation settings."""

    required_fields: MandatoryFieldsConfig = Field(default_factory=MandatoryFieldsConfig)
    character_validation: CharacterValidationConfig = Field(
        default_factory=CharacterValidationConfig
    )
    security_patterns: SecurityPatternsConfig = Field(default_factory=SecurityPatternsConfig)
    field_values: AllowedValuesConfig = Field(default_factory=AllowedValuesConfig)
    performance_limits: PerformanceLimitsConfig = Field(default_factory=PerformanceLimitsConfig)


class AdvancedAnalysisConfig(SectionConfig):
    """Advanced analysis limits.

    The allow-lists default to empty: no analysis type, time window or
    sort field is accepted until it is configured explicitly.
    """

    allowed_analysis_types: tuple[str, ...] = ()
    min_threshold_value: int = Field(default=1, ge=0)
    max_threshold_value: int = Field(default=10, ge=1)
    max_group_by_fields: int = Field(default=5, ge=1)
    allowed_time_windows: tuple[str, ...] = ()
    allowed_sort_fields: tuple[str, ...] = ()
    allowed_sort_orders: tuple[str, ...] = ()


class MultiSourceConfig(SectionConfig):
    """Multi-source correlation limits."""

    valid_log_sources: tuple[str, ...] = KNOWN_LOG_SOURCES
    max_sources: int = Field(default=5, ge=2)
    allowed_correlation_windows: tuple[str, ...] = (
        "1_minute", "5_minutes", "10_minutes", "15_minutes", "30_minutes",
        "1_hour", "2_hours", "4_hours", "6_hours", "12_hours", "24_hours",
    )
    max_correlation_fields: int = Field(default=10, ge=1)
    allowed_correlation_fields: tuple[str, ...] = (
        "user", "source_ip", "user_agent", "session_id", "request_id",
        "timestamp", "namespace", "resource", "verb", "response_status",
    )
    max_correlation_complexity: int = Field(default=100, ge=1)


class BehavioralAnalyticsConfig(SectionConfig):
    """Behavioral analytics limits."""

    allowed_risk_factors: tuple[str, ...] = (
        "privilege_level", "resource_sensitivity", "timing_anomaly", "access_pattern",
        "frequency_deviation", "location_anomaly", "user_agent_change",
        "authentication_method", "session_duration", "data_volume",
        "network_pattern", "command_pattern",
    )
    max_risk_factors: int = Field(default=10, ge=1)
    min_baseline_days: int = Field(default=7, ge=1)
    max_baseline_days: int = Field(default=90, ge=1)
    min_anomaly_threshold: float = Field(default=0.1, ge=0.0)
    max_anomaly_threshold: float = Field(default=10.0, gt=0.0)
    max_performance_score: int = Field(default=100, ge=1)

    @model_validator(mode="after")
    def validate_ranges(self) -> BehavioralAnalyticsConfig:
        """Ensure every min/max pair is ordered."""
        if self.min_baseline_days > self.max_baseline_days:
            raise ValueError("min_baseline_days cannot exceed max_baseline_days")
        if self.min_anomaly_threshold > self.max_anomaly_threshold:
            raise ValueError("min_anomaly_threshold cannot exceed max_anomaly_threshold")
        return self


class ComplianceConfig(SectionConfig):
    """Compliance framework limits."""

    allowed_standards: tuple[str, ...] = (
        "SOX", "PCI-DSS", "GDPR", "HIPAA", "ISO27001", "NIST", "CIS", "FedRAMP",
    )
    allowed_controls: tuple[str, ...] = (
        "access_logging", "data_protection", "authentication_monitoring",
        "privilege_management", "audit_trail", "change_management",
        "incident_response", "vulnerability_management", "configuration_management",
        "business_continuity",
    )
    max_standards: int = Field(default=5, ge=1)
    max_controls: int = Field(default=10, ge=1)
    min_retention_days: int = Field(default=365, ge=1)
    max_audit_gap_hours: int = Field(default=24, ge=0)
    required_evidence_fields: tuple[str, ...] = (
        "timestamp", "user", "action", "resource", "outcome",
    )


class PerformanceConfig(SectionConfig):
    """Cost admission limits."""

    max_query_complexity_score: int = Field(default=100, ge=1)
    max_memory_usage_mb: int = Field(default=1024, ge=1)
    max_cpu_usage_percent: int = Field(default=50, ge=1, le=100)
    max_execution_time_seconds: int = Field(default=300, ge=1)
    max_raw_results: int = Field(default=10000, ge=1)
    max_aggregated_results: int = Field(default=1000, ge=1)
    max_concurrent_sources: int = Field(default=5, ge=1)
    default_limit: int = Field(default=20, ge=1)


class RuleEngineConfig(BaseModel):
    """Rule ordering.

    Attributes:
        rule_priorities: Rule name to priority. Higher runs first; rules
            without an entry run last in registration order.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    rule_priorities: dict[str, int] = Field(
        default_factory=lambda: dict(DEFAULT_RULE_PRIORITIES)
    )


class GuardConfig(BaseModel):
    """Complete configuration for the default rule set.

    Attributes:
        whitelist: Log source, verb and resource allow-lists.
        required_fields: Fields that must be present.
        patterns: Forbidden pattern deny-list.
        sanitization: Character, length and format limits.
        timeframe: Timeframe and limit bounds.
        field_values: Enumerated field values.
        input_validation: Consolidated input check.
        advanced_analysis: Advanced analysis limits.
        multi_source: Multi-source correlation limits.
        behavioral_analytics: Behavioral analytics limits.
        compliance: Compliance framework limits.
        performance: Cost admission limits.
        rule_engine: Rule ordering.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    whitelist: WhitelistConfig = Field(default_factory=WhitelistConfig)
    required_fields: RequiredFieldsConfig = Field(default_factory=RequiredFieldsConfig)
    patterns: PatternsConfig = Field(default_factory=PatternsConfig)
    sanitization: SanitizationConfig = Field(default_factory=SanitizationConfig)
    timeframe: TimeframeConfig = Field(default_factory=TimeframeConfig)
    field_values: FieldValuesConfig = Field(default_factory=FieldValuesConfig)
    input_validation: InputValidationConfig = Field(default_factory=InputValidationConfig)
    advanced_analysis: AdvancedAnalysisConfig = Field(default_factory=AdvancedAnalysisConfig)
    multi_source: MultiSourceConfig = Field(default_factory=MultiSourceConfig)
    behavioral_analytics: BehavioralAnalyticsConfig = Field(
        default_factory=BehavioralAnalyticsConfig
    )
    compliance: ComplianceConfig = Field(default_factory=ComplianceConfig)
    performance: PerformanceConfig = Field(default_factory=PerformanceConfig)
    rule_engine: RuleEngineConfig = Field(default_factory=RuleEngineConfig)

    @classmethod
    def from_mapping(cls, data: dict[str, Any] | None) -> GuardConfig:
        """Build a configuration from a plain mapping.

        Missing sections and keys fall back to their defaults.

        Args:
            data: Parsed configuration, e.g. from YAML. None means defaults.

        Returns:
            Validated configuration.

        Raises:
            ConfigurationError: If the mapping has unknown keys or bad values.
        """
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Configuration must be a mapping, got {type(data).__name__}"
            )
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid validation configuration: {e}") from e


def load_config(path: str | Path) -> GuardConfig:
    """Load validation configuration from a YAML file.

    An empty file yields the default configuration.

    Args:
        path: Path to the YAML file.

    Returns:
        Validated configuration.

    Raises:
        ConfigurationError: If the file cannot be read, parsed or validated.
    """
    path = Path(path)
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(f"Failed to read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Failed to parse config file {path}: {e}") from e

    config = GuardConfig.from_mapping(data)
    logger.info("validation_config_loaded", path=str(path), sections=sorted(data or {}))
    return config
