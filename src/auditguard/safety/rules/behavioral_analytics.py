"""Behavioral analytics checks."""

from __future__ import annotations

from auditguard.core.config import BehavioralAnalyticsConfig
from auditguard.core.domain_types import BehavioralAnalysis, CandidateQuery
from auditguard.core.result import ResultBuilder, Severity, ValidationResult
from auditguard.safety.constraints import (
    ALGORITHM_CONSTRAINTS,
    BEHAVIORAL_CONSTRAINTS,
    ConstraintReport,
    check_constraints,
)
from auditguard.safety.cost_model import behavioral_performance_score
from auditguard.safety.matcher import is_allowed, lookup

BASELINE_WINDOW_DAYS: dict[str, int] = {
    "7_days": 7,
    "14_days": 14,
    "30_days": 30,
    "60_days": 60,
    "90_days": 90,
}

LEARNING_PERIODS: tuple[str, ...] = ("1_day", "3_days", "7_days", "14_days", "30_days")

RISK_ALGORITHMS: tuple[str, ...] = ("weighted_sum", "composite", "ml_based")

ANOMALY_ALGORITHMS: tuple[str, ...] = (
    "isolation_forest",
    "z_score",
    "statistical",
    "threshold_based",
)


def _apply(report: ConstraintReport, builder: ResultBuilder) -> None:
    for error in report.errors:
        builder.error(error)
    for warning in report.warnings:
        builder.warn(warning)


class BehavioralAnalyticsRule:
    """Validate a behavioral analysis block.

    Checks each sub-feature's parameters, then the dependencies between
    features (for example risk scoring needs user profiling), then the
    estimated performance impact.
    """

    name = "behavioral_analytics_validation"
    description = (
        "Validates behavioral analytics configuration including user profiling, "
        "risk scoring, and anomaly detection parameters"
    )
    severity = Severity.CRITICAL

    def __init__(self, config: BehavioralAnalyticsConfig | None = None) -> None:
        self.config = config or BehavioralAnalyticsConfig()

    @property
    def enabled(self) -> bool:
        """Whether this rule runs, taken from its config section."""
        return self.config.enabled

    def validate(self, query: CandidateQuery) -> ValidationResult:
        """Check behavioral settings and the implications between them.

        Args:
            query: Candidate query; a query without a behavioral block passes.

        Returns:
            Result combining the per-feature checks, the constraint
            checker's findings and the behavioral performance score.
        """
        builder = ResultBuilder(self.name, query)
        behavioral = query.behavioral_analysis

        if behavioral is not None:
            self._validate_user_profiling(behavioral, builder)
            self._validate_baseline(behavioral, builder)
            self._validate_risk_scoring(behavioral, builder)
            self._validate_anomaly_detection(behavioral, builder)
            _apply(check_constraints(behavioral, BEHAVIORAL_CONSTRAINTS), builder)
            self._validate_performance_impact(behavioral, builder)

        return builder.build(
            "Behavioral analytics",
            [
                "Review behavioral analytics configuration",
                "Ensure user profiling is enabled when using risk scoring",
                "Verify baseline window is specified for anomaly detection",
                "Check risk scoring parameters are within valid ranges",
                "Validate anomaly detection algorithm parameters",
            ],
        )

    def _validate_user_profiling(
        self, behavioral: BehavioralAnalysis, builder: ResultBuilder
    ) -> None:
        if not behavioral.user_profiling:
            builder.warn(
                "User profiling is disabled. Consider enabling for better behavioral insights"
            )
            return

        if not behavioral.baseline_window:
            builder.warn("Baseline window not specified. Default baseline period will be used")
        if not behavioral.learning_period:
            builder.warn("Learning period not specified. Default learning period will be used")

    def _validate_baseline(self, behavioral: BehavioralAnalysis, builder: ResultBuilder) -> None:
        window = behavioral.baseline_window
        if window:
            if not is_allowed(window, BASELINE_WINDOW_DAYS):
                builder.error(
                    f"Invalid baseline window '{window}'. "
                    f"Allowed windows: {', '.join(BASELINE_WINDOW_DAYS)}"
                )

            days = lookup(BASELINE_WINDOW_DAYS, window, None)
            if days is not None:
                if days < self.config.min_baseline_days:
                    builder.error(
                        "baseline window too short. Minimum: "
                        f"{self.config.min_baseline_days} days"
                    )
                elif days > self.config.max_baseline_days:
                    builder.error(
                        "baseline window too long. Maximum: "
                        f"{self.config.max_baseline_days} days"
                    )

        period = behavioral.learning_period
        if period and not is_allowed(period, LEARNING_PERIODS):
            builder.error(
                f"Invalid learning period '{period}'. "
                f"Allowed periods: {', '.join(LEARNING_PERIODS)}"
            )

    def _validate_risk_scoring(
        self, behavioral: BehavioralAnalysis, builder: ResultBuilder
    ) -> None:
        risk = behavioral.risk_scoring
        if risk is None:
            return

        if risk.algorithm and not is_allowed(risk.algorithm, RISK_ALGORITHMS):
            builder.error(
                f"Invalid risk scoring algorithm '{risk.algorithm}'. "
                f"Allowed algorithms: {', '.join(RISK_ALGORITHMS)}"
            )

        factors = risk.risk_factors
        if len(factors) > self.config.max_risk_factors:
            builder.error(
                "Too many risk factors. Maximum allowed: "
                f"{self.config.max_risk_factors}, got: {len(factors)}"
            )

        allowed = self.config.allowed_risk_factors
        for index, factor in enumerate(factors):
            if not is_allowed(factor, allowed):
                builder.error(
                    f"Invalid risk factor '{factor}' at index {index}. "
                    f"Allowed factors: {', '.join(allowed)}"
                )

        if risk.weighting_scheme is not None:
            problem = self._weighting_problem(risk.weighting_scheme)
            if problem:
                builder.error(problem)

    @staticmethod
    def _weighting_problem(scheme: dict[str, float]) -> str | None:
        if not scheme:
            return "weighting scheme cannot be empty"

        for factor, weight in scheme.items():
            if not 0.0 <= weight <= 1.0:
                return f"weight for factor '{factor}' must be between 0.0 and 1.0, got {weight:.3f}"

        total = sum(scheme.values())
        if not 0.95 <= total <= 1.05:
            return f"total weight must sum to approximately 1.0, got {total:.3f}"
        return None

    def _validate_anomaly_detection(
        self, behavioral: BehavioralAnalysis, builder: ResultBuilder
    ) -> None:
        anomaly = behavioral.anomaly_detection
        if anomaly is None:
            return

        if anomaly.algorithm and not is_allowed(anomaly.algorithm, ANOMALY_ALGORITHMS):
            builder.error(
                f"Invalid anomaly detection algorithm '{anomaly.algorithm}'. "
                f"Allowed algorithms: {', '.join(ANOMALY_ALGORITHMS)}"
            )

        # Zero means unset for every tunable
        if anomaly.contamination != 0.0 and not 0.0 <= anomaly.contamination <= 1.0:
            builder.error(
                f"Contamination must be between 0.0 and 1.0, got {anomaly.contamination:.3f}"
            )
        if anomaly.sensitivity != 0.0 and not 0.0 <= anomaly.sensitivity <= 1.0:
            builder.error(
                f"Sensitivity must be between 0.0 and 1.0, got {anomaly.sensitivity:.3f}"
            )

        low = self.config.min_anomaly_threshold
        high = self.config.max_anomaly_threshold
        if anomaly.threshold != 0.0 and not low <= anomaly.threshold <= high:
            builder.error(
                f"Anomaly threshold must be between {low:.1f} and {high:.1f}, "
                f"got {anomaly.threshold:.3f}"
            )

        _apply(check_constraints(behavioral, ALGORITHM_CONSTRAINTS), builder)

    def _validate_performance_impact(
        self, behavioral: BehavioralAnalysis, builder: ResultBuilder
    ) -> None:
        score = behavioral_performance_score(behavioral)
        limit = self.config.max_performance_score

        if score > limit:
            builder.warn(
                f"High performance impact score {score}. "
                "Consider simplifying behavioral analysis configuration"
            )

        builder.detail("behavioral_performance_score", score)
        builder.detail("max_performance_score", limit)

        if (
            behavioral.user_profiling
            and behavioral.baseline_comparison
            and behavioral.risk_scoring is not None
            and behavioral.anomaly_detection is not None
        ):
            builder.warn("All behavioral analysis features enabled may impact query performance")
