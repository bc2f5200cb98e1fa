"""Domain types - Immutable Pydantic models describing a candidate query.

A candidate query is the structured form of an audit-log question,
produced upstream by a natural-language translator. It is validated
here before it is ever allowed near the audit backend.

The models are deliberately permissive: they coerce shapes (a single
string or a list for string-or-list fields, ISO strings for
timestamps) but never enforce business ranges. Ranges, allow-lists and
cross-field constraints are the job of the validation rules, which must
be able to see and report an out-of-range value rather than have the
parser reject it first.

All models are frozen so a query cannot change while rules inspect it.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, RootModel


class StringOrList(RootModel[str | list[str] | None]):
    """A field that holds one string or an ordered list of strings.

    Consumers should never branch on the shape; use values() to get a
    normalized list.

    Examples:
        >>> StringOrList("get").values()
        ['get']
        >>> StringOrList(["get", "list"]).values()
        ['get', 'list']
        >>> StringOrList().is_empty()
        True
    """

    model_config = ConfigDict(frozen=True)

    root: str | list[str] | None = None

    def values(self) -> list[str]:
        """Return the field as a list of strings."""
        if self.root is None:
            return []
        if isinstance(self.root, str):
            return [self.root]
        return list(self.root)

    def is_list(self) -> bool:
        """Return True when the field was given as a list."""
        return isinstance(self.root, list)

    def is_empty(self) -> bool:
        """Return True when unset, blank, or made only of blank elements."""
        return all(not value.strip() for value in self.values())


class TimeRange(BaseModel):
    """Explicit time window for the query.

    Attributes:
        start: Beginning of the window.
        end: End of the window.
    """

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime


class BusinessHours(BaseModel):
    """Business hours filter.

    Attributes:
        outside_only: Only match events outside business hours.
        start_hour: First business hour (0-23).
        end_hour: Last business hour (0-23).
        timezone: Timezone name for the hours.
    """

    model_config = ConfigDict(frozen=True)

    outside_only: bool = False
    start_hour: int = 0
    end_hour: int = 0
    timezone: str = ""


class StatisticalAnalysis(BaseModel):
    """Statistical parameters for an advanced analysis.

    Zero values mean "not specified".
    """

    model_config = ConfigDict(frozen=True)

    pattern_deviation_threshold: float = 0.0
    confidence_interval: float = 0.0
    sample_size_minimum: int = 0
    baseline_window: str = ""


class AdvancedAnalysis(BaseModel):
    """Advanced analysis block (threat hunting, anomaly detection, ...).

    Attributes:
        type: Analysis type, e.g. "apt_reconnaissance_detection".
        kill_chain_phase: Kill chain phase, required for APT analysis types.
        multi_stage_correlation: Correlate multi-stage attacks.
        statistical_analysis: Optional statistical parameters.
        threshold: Event-count threshold (0 means not specified).
        time_window: Analysis time window.
        group_by: Fields to aggregate on.
        sort_by: Field to sort the aggregation on.
        sort_order: Sort direction.
    """

    model_config = ConfigDict(frozen=True)

    type: str = ""
    kill_chain_phase: str = ""
    multi_stage_correlation: bool = False
    statistical_analysis: StatisticalAnalysis | None = None
    threshold: int = 0
    time_window: str = ""
    group_by: StringOrList = Field(default_factory=StringOrList)
    sort_by: str = ""
    sort_order: str = ""


class MultiSource(BaseModel):
    """Correlation of events across several audit log sources.

    Attributes:
        primary_source: Main log source.
        secondary_sources: Additional sources correlated with the primary.
        correlation_window: Time window for correlating events.
        correlation_fields: Fields the sources are joined on.
        join_type: How correlated records are joined.
    """

    model_config = ConfigDict(frozen=True)

    primary_source: str = ""
    secondary_sources: list[str] = Field(default_factory=list)
    correlation_window: str = ""
    correlation_fields: list[str] = Field(default_factory=list)
    join_type: str = ""

    def all_sources(self) -> list[str]:
        """Return the primary source followed by the secondary sources."""
        return [self.primary_source, *self.secondary_sources]


class RiskScoring(BaseModel):
    """Risk scoring configuration of a behavioral analysis."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    algorithm: str = ""
    risk_factors: list[str] = Field(default_factory=list)
    weighting_scheme: dict[str, float] | None = None


class AnomalyDetection(BaseModel):
    """Anomaly detection configuration of a behavioral analysis.

    Zero values for the tunables mean "not specified".
    """

    model_config = ConfigDict(frozen=True)

    algorithm: str = ""
    contamination: float = 0.0
    sensitivity: float = 0.0
    threshold: float = 0.0


class BehavioralAnalysis(BaseModel):
    """User and system behavior analytics block.

    Attributes:
        user_profiling: Build per-user behavior profiles.
        baseline_comparison: Compare against an established baseline.
        risk_scoring: Optional risk scoring configuration.
        anomaly_detection: Optional anomaly detection configuration.
        baseline_window: Window used to establish the baseline.
        learning_period: Period used to learn normal behavior.
    """

    model_config = ConfigDict(frozen=True)

    user_profiling: bool = False
    baseline_comparison: bool = False
    risk_scoring: RiskScoring | None = None
    anomaly_detection: AnomalyDetection | None = None
    baseline_window: str = ""
    learning_period: str = ""


class ComplianceReporting(BaseModel):
    """Reporting options of a compliance framework block."""

    model_config = ConfigDict(frozen=True)

    format: str = ""
    include_evidence: bool = False
    retention_period: str = ""
    digital_signature: bool = False


class ComplianceFramework(BaseModel):
    """Compliance monitoring block (SOX, PCI-DSS, GDPR, ...).

    Attributes:
        standards: Compliance standards to report against.
        controls: Controls monitored within those standards.
        reporting: Optional reporting configuration.
        audit_trail: Generate a comprehensive audit trail.
        violation_threshold: Threshold for compliance violations.
        evidence_collection: Collect evidence automatically.
    """

    model_config = ConfigDict(frozen=True)

    standards: list[str] = Field(default_factory=list)
    controls: list[str] = Field(default_factory=list)
    reporting: ComplianceReporting | None = None
    audit_trail: bool = False
    violation_threshold: int = 0
    evidence_collection: bool = False


class CandidateQuery(BaseModel):
    """Input: a machine-generated structured audit-log query.

    Empty strings, zero numbers, empty string-or-list fields and None
    blocks all mean "not specified" and are always valid inputs.

    Attributes:
        log_source: Audit log source, e.g. "kube-apiserver".
        verb: API verb(s), e.g. "delete".
        resource: Resource kind(s), e.g. "pods".
        namespace: Namespace(s) to search.
        user: User(s) to match.
        timeframe: Named timeframe bucket, e.g. "7_days_ago".
        limit: Maximum number of results (0 means the default).
        response_status: HTTP response status code(s).
        source_ip: Client IP address(es).
        group_by: Fields to aggregate on.
        exclude_users: Users to exclude.
        exclude_resources: Resources to exclude.
        include_changes: Include object diffs in the results.
        time_range: Explicit time window.
        business_hours: Business hours filter.
        analysis: Advanced analysis block.
        multi_source: Multi-source correlation block.
        behavioral_analysis: Behavioral analytics block.
        compliance_framework: Compliance framework block.
    """

    model_config = ConfigDict(frozen=True)

    log_source: str = ""
    verb: StringOrList = Field(default_factory=StringOrList)
    resource: StringOrList = Field(default_factory=StringOrList)
    namespace: StringOrList = Field(default_factory=StringOrList)
    user: StringOrList = Field(default_factory=StringOrList)
    timeframe: str = ""
    limit: int = 0
    response_status: StringOrList = Field(default_factory=StringOrList)
    source_ip: StringOrList = Field(default_factory=StringOrList)
    group_by: StringOrList = Field(default_factory=StringOrList)
    exclude_users: list[str] = Field(default_factory=list)
    exclude_resources: list[str] = Field(default_factory=list)

    resource_name_pattern: str = ""
    user_pattern: str = ""
    namespace_pattern: str = ""
    request_uri_pattern: str = ""
    authorization_reason_pattern: str = ""
    response_message_pattern: str = ""
    missing_annotation: str = ""
    request_object_filter: str = ""

    auth_decision: str = ""
    sort_by: str = ""
    sort_order: str = ""
    subresource: str = ""
    include_changes: bool = False

    time_range: TimeRange | None = None
    business_hours: BusinessHours | None = None
    analysis: AdvancedAnalysis | None = None
    multi_source: MultiSource | None = None
    behavioral_analysis: BehavioralAnalysis | None = None
    compliance_framework: ComplianceFramework | None = None


# Scalar free-text fields, in the order rules report on them
SCALAR_STRING_FIELDS: tuple[str, ...] = (
    "log_source",
    "timeframe",
    "resource_name_pattern",
    "user_pattern",
    "namespace_pattern",
    "request_uri_pattern",
    "auth_decision",
    "sort_by",
    "sort_order",
    "subresource",
    "request_object_filter",
    "authorization_reason_pattern",
    "response_message_pattern",
    "missing_annotation",
)

STRING_OR_LIST_FIELDS: tuple[str, ...] = (
    "verb",
    "resource",
    "namespace",
    "user",
    "response_status",
    "source_ip",
    "group_by",
)

# Free-text pattern fields that are evaluated as expressions by the backend
PATTERN_FIELDS: tuple[str, ...] = (
    "user_pattern",
    "namespace_pattern",
    "resource_name_pattern",
    "request_uri_pattern",
    "authorization_reason_pattern",
    "response_message_pattern",
)
