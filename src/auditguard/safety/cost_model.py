"""Query cost model.

Converts the shape of a candidate query into an integer complexity
score, derives memory, CPU and execution-time estimates from it, and
applies the admission policy that turns each estimate into an error,
a warning, or nothing.

Score contributions:
    base         10
    source       per-source table, 10 if unlisted
    fields       2 per list element or 3 per scalar filter,
                 2 per exclusion, 8 per free-text pattern, 5 for sorting
    time_range   per-bucket table, 20 for an explicit range,
                 5 for an unlisted bucket, 0 if unset
    patterns     25 for object diffs, 15 for an object filter
    analysis     20 + type table + 25 statistical + 20 multi-stage
                 + 5 per group-by field
    multi_source 30 + round(sources ** 1.5 * 10) + 8 per correlation
                 field + window table + join table
    behavioral   20 + 15 profiling + 25 baseline + risk (35 + 5 per
                 factor + 40 ml_based) + anomaly (45 + 25 isolation_forest)
    compliance   10 + 8 per standard + 5 per control + 20 evidence
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, computed_field

from auditguard.core.domain_types import (
    AdvancedAnalysis,
    BehavioralAnalysis,
    CandidateQuery,
    ComplianceFramework,
    MultiSource,
)

from .matcher import lookup

BASE_COST = 10

SOURCE_COSTS: dict[str, int] = {
    "kube-apiserver": 15,
    "openshift-apiserver": 12,
    "oauth-server": 8,
    "oauth-apiserver": 10,
    "node-auditd": 20,
}
DEFAULT_SOURCE_COST = 10

TIMEFRAME_COSTS: dict[str, int] = {
    "1_hour_ago": 1,
    "today": 2,
    "6_hours_ago": 3,
    "yesterday": 4,
    "12_hours_ago": 5,
    "24_hours_ago": 8,
    "7_days_ago": 15,
    "last_week": 15,
    "14_days_ago": 25,
    "30_days_ago": 40,
    "last_month": 40,
    "60_days_ago": 60,
    "90_days_ago": 80,
}
EXPLICIT_RANGE_COST = 20
UNLISTED_TIMEFRAME_COST = 5

ANALYSIS_TYPE_COSTS: dict[str, int] = {
    "anomaly_detection": 30,
    "correlation": 25,
    "apt_reconnaissance_detection": 40,
    "lateral_movement_detection": 35,
    "behavioral_analysis": 45,
    "user_behavior_anomaly_detection": 50,
    "cross_source_correlation": 60,
    "timeline_reconstruction": 40,
    "rbac_violation_privilege_escalation_analysis": 35,
    "oauth_token_manipulation_investigation": 30,
}
DEFAULT_ANALYSIS_TYPE_COST = 20

CORRELATION_WINDOW_COSTS: dict[str, int] = {
    "1_minute": 2,
    "5_minutes": 5,
    "15_minutes": 10,
    "30_minutes": 15,
    "1_hour": 20,
    "6_hours": 40,
    "24_hours": 80,
}
DEFAULT_CORRELATION_WINDOW_COST = 15

JOIN_TYPE_COSTS: dict[str, int] = {"inner": 5, "left": 10, "right": 15, "full": 25}

# Correlation complexity has its own, flatter tables
CORRELATION_WINDOW_COMPLEXITY: dict[str, int] = {
    "1_minute": 1,
    "5_minutes": 2,
    "15_minutes": 3,
    "30_minutes": 4,
    "1_hour": 5,
    "2_hours": 7,
    "4_hours": 10,
    "6_hours": 12,
    "12_hours": 15,
    "24_hours": 20,
}
DEFAULT_CORRELATION_WINDOW_COMPLEXITY = 5

JOIN_TYPE_COMPLEXITY: dict[str, int] = {"inner": 1, "left": 2, "right": 3, "full": 5}
DEFAULT_JOIN_TYPE_COMPLEXITY = 2


class Admission(str, Enum):
    """Outcome of comparing one metric against its limit."""

    CLEAN = "clean"
    WARNING = "warning"
    ERROR = "error"


class PerformanceTier(str, Enum):
    """Coarse cost bucket, used only to pick recommendation text."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ComplexityBreakdown(BaseModel):
    """Named contributions to a query's complexity score."""

    model_config = ConfigDict(frozen=True)

    base: int = BASE_COST
    source: int = 0
    fields: int = 0
    time_range: int = 0
    patterns: int = 0
    analysis: int = 0
    multi_source: int = 0
    behavioral: int = 0
    compliance: int = 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total(self) -> int:
        """The complexity score."""
        return (
            self.base
            + self.source
            + self.fields
            + self.time_range
            + self.patterns
            + self.analysis
            + self.multi_source
            + self.behavioral
            + self.compliance
        )


class ResourceEstimate(BaseModel):
    """Estimated resources a query will consume.

    Attributes:
        memory_mb: Estimated peak memory in megabytes.
        cpu_percent: Estimated CPU share, capped at 100.
        execution_seconds: Estimated wall-clock time.
    """

    model_config = ConfigDict(frozen=True)

    memory_mb: int
    cpu_percent: int
    execution_seconds: int


def source_cost(log_source: str) -> int:
    return lookup(SOURCE_COSTS, log_source, DEFAULT_SOURCE_COST)


def field_cost(query: CandidateQuery) -> int:
    """Cost of filters, exclusions, free-text patterns and sorting."""
    cost = 0
    for filter_field in (
        query.verb,
        query.resource,
        query.namespace,
        query.user,
        query.response_status,
        query.source_ip,
        query.group_by,
    ):
        if filter_field.is_empty():
            continue
        cost += len(filter_field.values()) * 2 if filter_field.is_list() else 3

    cost += len(query.exclude_users) * 2
    cost += len(query.exclude_resources) * 2

    # Regex processing is expensive
    for pattern in (
        query.user_pattern,
        query.namespace_pattern,
        query.resource_name_pattern,
        query.request_uri_pattern,
        query.authorization_reason_pattern,
        query.response_message_pattern,
    ):
        if pattern:
            cost += 8

    if query.sort_by:
        cost += 5
    return cost


def time_range_cost(query: CandidateQuery) -> int:
    if query.timeframe:
        return lookup(TIMEFRAME_COSTS, query.timeframe, UNLISTED_TIMEFRAME_COST)
    if query.time_range is not None:
        return EXPLICIT_RANGE_COST
    return 0


def pattern_cost(query: CandidateQuery) -> int:
    cost = 0
    if query.include_changes:
        cost += 25
    if query.request_object_filter:
        cost += 15
    return cost


def analysis_cost(analysis: AdvancedAnalysis) -> int:
    cost = 20 + lookup(ANALYSIS_TYPE_COSTS, analysis.type, DEFAULT_ANALYSIS_TYPE_COST)
    if analysis.statistical_analysis is not None:
        cost += 25
    if analysis.multi_stage_correlation:
        cost += 20
    if not analysis.group_by.is_empty():
        cost += len(analysis.group_by.values()) * 5
    return cost


def multi_source_cost(multi_source: MultiSource) -> int:
    source_count = 1 + len(multi_source.secondary_sources)
    cost = 30 + round(source_count**1.5 * 10)
    cost += len(multi_source.correlation_fields) * 8
    cost += lookup(
        CORRELATION_WINDOW_COSTS,
        multi_source.correlation_window,
        DEFAULT_CORRELATION_WINDOW_COST,
    )
    cost += lookup(JOIN_TYPE_COSTS, multi_source.join_type, 0)
    return cost


def behavioral_cost(behavioral: BehavioralAnalysis) -> int:
    cost = 20
    if behavioral.user_profiling:
        cost += 15
    if behavioral.baseline_comparison:
        cost += 25

    risk = behavioral.risk_scoring
    if risk is not None and risk.enabled:
        cost += 35 + len(risk.risk_factors) * 5
        if risk.algorithm.casefold() == "ml_based":
            cost += 40

    anomaly = behavioral.anomaly_detection
    if anomaly is not None:
        cost += 45
        if anomaly.algorithm.casefold() == "isolation_forest":
            cost += 25
    return cost


def compliance_cost(compliance: ComplianceFramework) -> int:
    cost = 10 + len(compliance.standards) * 8 + len(compliance.controls) * 5
    reporting = compliance.reporting
    if compliance.evidence_collection or (reporting is not None and reporting.include_evidence):
        cost += 20
    return cost


def complexity_breakdown(query: CandidateQuery) -> ComplexityBreakdown:
    """Compute every named contribution to the complexity score.

    Args:
        query: The query to score.

    Returns:
        Breakdown whose total is the complexity score.
    """
    return ComplexityBreakdown(
        source=source_cost(query.log_source),
        fields=field_cost(query),
        time_range=time_range_cost(query),
        patterns=pattern_cost(query),
        analysis=analysis_cost(query.analysis) if query.analysis is not None else 0,
        multi_source=(
            multi_source_cost(query.multi_source) if query.multi_source is not None else 0
        ),
        behavioral=(
            behavioral_cost(query.behavioral_analysis)
            if query.behavioral_analysis is not None
            else 0
        ),
        compliance=(
            compliance_cost(query.compliance_framework)
            if query.compliance_framework is not None
            else 0
        ),
    )


def complexity_score(query: CandidateQuery) -> int:
    """Return the integer complexity score of a query."""
    return complexity_breakdown(query).total


def estimate_resources(query: CandidateQuery, score: int) -> ResourceEstimate:
    """Derive resource estimates from the complexity score.

    Heavy features add fixed amounts on top of the score-proportional
    part: analysis and behavioral blocks cost memory, every secondary
    source costs memory and time, and statistical analysis costs time.

    Args:
        query: The scored query.
        score: Its complexity score.

    Returns:
        Memory, CPU and execution time estimates.
    """
    secondaries = len(query.multi_source.secondary_sources) if query.multi_source else 0

    memory = 50 + score * 2
    if query.analysis is not None:
        memory += 100
    if query.multi_source is not None:
        memory += secondaries * 50
    if query.behavioral_analysis is not None:
        memory += 150

    cpu = 10 + score // 3
    if query.analysis is not None:
        cpu += 25
    if query.multi_source is not None:
        cpu += 20

    seconds = 5 + score // 10
    if query.analysis is not None and query.analysis.statistical_analysis is not None:
        seconds += 60
    if query.multi_source is not None:
        seconds += secondaries * 15

    return ResourceEstimate(
        memory_mb=memory,
        cpu_percent=min(100, cpu),
        execution_seconds=seconds,
    )


def admit(value: int | float, limit: int | float) -> Admission:
    """Apply the admission policy to one metric.

    Above the limit is an error; above three quarters of it is a warning.

    Examples:
        >>> admit(101, 100)
        <Admission.ERROR: 'error'>
        >>> admit(76, 100)
        <Admission.WARNING: 'warning'>
        >>> admit(75, 100)
        <Admission.CLEAN: 'clean'>
    """
    if value > limit:
        return Admission.ERROR
    if value * 4 > limit * 3:
        return Admission.WARNING
    return Admission.CLEAN


def performance_tier(score: int, max_score: int) -> PerformanceTier:
    """Bucket a score: low up to a third of the maximum, high above two thirds."""
    if score * 3 > max_score * 2:
        return PerformanceTier.HIGH
    if score * 3 > max_score:
        return PerformanceTier.MEDIUM
    return PerformanceTier.LOW


def uses_aggregation(query: CandidateQuery) -> bool:
    """True if results are grouped, which selects the aggregated result cap."""
    return not query.group_by.is_empty() or query.analysis is not None


def correlation_complexity(multi_source: MultiSource) -> int:
    """Complexity of a multi-source correlation, used by its own admission check.

    Adding a secondary source always increases this score.
    """
    complexity = len(multi_source.secondary_sources) * 10
    complexity += len(multi_source.correlation_fields) * 5
    complexity += lookup(
        CORRELATION_WINDOW_COMPLEXITY,
        multi_source.correlation_window,
        DEFAULT_CORRELATION_WINDOW_COMPLEXITY,
    )
    complexity += lookup(
        JOIN_TYPE_COMPLEXITY, multi_source.join_type, DEFAULT_JOIN_TYPE_COMPLEXITY
    )
    return complexity


def behavioral_performance_score(behavioral: BehavioralAnalysis) -> int:
    """Performance impact of a behavioral analysis block."""
    score = 10
    if behavioral.user_profiling:
        score += 15
    if behavioral.baseline_comparison:
        score += 10

    risk = behavioral.risk_scoring
    if risk is not None and risk.enabled:
        score += 20
        if risk.algorithm.casefold() == "ml_based":
            score += 15
        score += len(risk.risk_factors) * 2

    anomaly = behavioral.anomaly_detection
    if anomaly is not None:
        score += 25
        algorithm = anomaly.algorithm.casefold()
        if algorithm == "isolation_forest":
            score += 10
        elif algorithm == "ml_based":
            score += 20
    return score
