"""Cost admission rule."""

from __future__ import annotations

from auditguard.core.config import PerformanceConfig
from auditguard.core.domain_types import CandidateQuery
from auditguard.core.result import ResultBuilder, Severity, ValidationResult
from auditguard.safety.cost_model import (
    Admission,
    PerformanceTier,
    admit,
    complexity_breakdown,
    estimate_resources,
    performance_tier,
    uses_aggregation,
)

TIER_RECOMMENDATIONS: dict[PerformanceTier, tuple[str, ...]] = {
    PerformanceTier.HIGH: (
        "Consider breaking down complex queries into simpler parts",
        "Use more specific time ranges to reduce data volume",
        "Limit result set size for initial analysis",
        "Consider running during off-peak hours",
    ),
    PerformanceTier.MEDIUM: (
        "Monitor query execution time",
        "Consider caching results for repeated queries",
    ),
    PerformanceTier.LOW: ("Query should execute efficiently",),
}


class PerformanceRule:
    """Admit or reject a query based on its estimated cost.

    Each metric (complexity score, memory, CPU, execution time, result
    set size and concurrent sources) is checked on its own against its
    configured maximum: above the maximum is an error, above three
    quarters of it is a warning. Every breach is reported.
    """

    name = "performance_validation"
    description = (
        "Validates query performance characteristics including complexity, "
        "resource usage, and execution time"
    )
    severity = Severity.WARNING

    def __init__(self, config: PerformanceConfig | None = None) -> None:
        self.config = config or PerformanceConfig()

    @property
    def enabled(self) -> bool:
        """Whether this rule runs, taken from its config section."""
        return self.config.enabled

    def validate(self, query: CandidateQuery) -> ValidationResult:
        """Score the query and admit it against every configured budget.

        Args:
            query: Candidate query to cost.

        Returns:
            Result with an error per budget exceeded, a warning per budget
            above three quarters of its maximum, and the score, estimates
            and tier in details.
        """
        builder = ResultBuilder(self.name, query)
        config = self.config

        breakdown = complexity_breakdown(query)
        score = breakdown.total
        tier = performance_tier(score, config.max_query_complexity_score)

        self._check_complexity(score, builder)
        self._check_resources(query, score, builder)
        self._check_result_set(query, builder)
        self._check_concurrency(query, builder)
        self._recommend(query, tier, builder)

        builder.detail("query_complexity_score", score)
        builder.detail("max_complexity_allowed", config.max_query_complexity_score)
        builder.detail("performance_tier", tier.value)
        builder.detail("complexity_breakdown", breakdown.model_dump())

        return builder.build(
            "Performance",
            [
                "Reduce query complexity to improve performance",
                "Consider limiting result set size",
                "Optimize time range and filtering criteria",
                "Use more specific log sources and patterns",
            ],
        )

    def _check_complexity(self, score: int, builder: ResultBuilder) -> None:
        limit = self.config.max_query_complexity_score
        outcome = admit(score, limit)
        if outcome is Admission.ERROR:
            builder.error(f"Query complexity score {score} exceeds maximum allowed {limit}")
        elif outcome is Admission.WARNING:
            builder.warn(f"High query complexity score {score} may impact performance")

    def _check_resources(self, query: CandidateQuery, score: int, builder: ResultBuilder) -> None:
        config = self.config
        estimate = estimate_resources(query, score)

        memory = estimate.memory_mb
        outcome = admit(memory, config.max_memory_usage_mb)
        if outcome is Admission.ERROR:
            builder.error(
                f"Estimated memory usage {memory} MB exceeds limit {config.max_memory_usage_mb} MB"
            )
        elif outcome is Admission.WARNING:
            builder.warn(f"High estimated memory usage {memory} MB")

        cpu = estimate.cpu_percent
        outcome = admit(cpu, config.max_cpu_usage_percent)
        if outcome is Admission.ERROR:
            builder.error(
                f"Estimated CPU usage {cpu}% exceeds limit {config.max_cpu_usage_percent}%"
            )
        elif outcome is Admission.WARNING:
            builder.warn(f"High estimated CPU usage {cpu}%")

        seconds = estimate.execution_seconds
        outcome = admit(seconds, config.max_execution_time_seconds)
        if outcome is Admission.ERROR:
            builder.error(
                f"Estimated execution time {seconds} seconds exceeds limit "
                f"{config.max_execution_time_seconds} seconds"
            )
        elif outcome is Admission.WARNING:
            builder.warn(f"Long estimated execution time {seconds} seconds")

        builder.detail("estimated_memory_mb", memory)
        builder.detail("estimated_cpu_percent", cpu)
        builder.detail("estimated_execution_seconds", seconds)

    def _check_result_set(self, query: CandidateQuery, builder: ResultBuilder) -> None:
        config = self.config
        # Zero means "use the default"; the query itself is left untouched
        limit = query.limit or config.default_limit
        aggregated = uses_aggregation(query)

        if aggregated:
            kind, cap = "Aggregated", config.max_aggregated_results
        else:
            kind, cap = "Raw", config.max_raw_results

        outcome = admit(limit, cap)
        if outcome is Admission.ERROR:
            builder.error(f"{kind} result limit {limit} exceeds maximum {cap}")
        elif outcome is Admission.WARNING:
            builder.warn(f"{kind} result limit {limit} is close to maximum {cap}")

        builder.detail("uses_aggregation", aggregated)
        builder.detail("effective_limit", limit)

    def _check_concurrency(self, query: CandidateQuery, builder: ResultBuilder) -> None:
        concurrent = 1
        if query.multi_source is not None:
            concurrent += len(query.multi_source.secondary_sources)

        limit = self.config.max_concurrent_sources
        outcome = admit(concurrent, limit)
        if outcome is Admission.ERROR:
            builder.error(f"Concurrent sources {concurrent} exceeds limit {limit}")
        elif outcome is Admission.WARNING:
            builder.warn(f"Concurrent sources {concurrent} is close to limit {limit}")

        builder.detail("concurrent_sources", concurrent)

    @staticmethod
    def _recommend(query: CandidateQuery, tier: PerformanceTier, builder: ResultBuilder) -> None:
        for text in TIER_RECOMMENDATIONS[tier]:
            builder.recommend(text)

        if query.multi_source is not None and len(query.multi_source.secondary_sources) > 2:
            builder.recommend(
                "Consider reducing number of correlated sources for better performance"
            )
        if query.analysis is not None and query.analysis.statistical_analysis is not None:
            builder.recommend("Statistical analysis may benefit from larger baseline periods")

        behavioral = query.behavioral_analysis
        if (
            behavioral is not None
            and behavioral.user_profiling
            and behavioral.anomaly_detection is not None
        ):
            builder.recommend("Combined behavioral analysis features may impact performance")
