"""Unit tests for the behavioral analytics rule."""

from __future__ import annotations

from auditguard.core.config import BehavioralAnalyticsConfig
from auditguard.core.domain_types import (
    AnomalyDetection,
    BehavioralAnalysis,
    CandidateQuery,
    RiskScoring,
)
from auditguard.safety.rules.behavioral_analytics import BehavioralAnalyticsRule


def _validate(behavioral: BehavioralAnalysis, config: BehavioralAnalyticsConfig | None = None):
    return BehavioralAnalyticsRule(config).validate(
        CandidateQuery(log_source="kube-apiserver", behavioral_analysis=behavioral)
    )


class TestProfilingAndBaseline:
    """Tests for user profiling and baseline settings."""

    def test_no_block(self, basic_query: CandidateQuery) -> None:
        """Test that queries without behavioral analysis pass cleanly."""
        result = BehavioralAnalyticsRule().validate(basic_query)

        assert result.is_valid
        assert result.message == "Behavioral analytics validation passed"

    def test_consistent_block(self, profiled_behavior: BehavioralAnalysis) -> None:
        """Test a consistent profiling, baseline and risk configuration."""
        result = _validate(profiled_behavior)

        assert result.is_valid
        assert result.warnings == []
        assert result.details["behavioral_performance_score"] == 10 + 15 + 10 + 20 + 4

    def test_profiling_disabled_warns(self) -> None:
        """Test the advisory for disabled profiling."""
        result = _validate(BehavioralAnalysis())

        assert result.is_valid
        assert result.warnings == [
            "User profiling is disabled. Consider enabling for better behavioral insights"
        ]

    def test_profiling_defaults_warn(self) -> None:
        """Test the advisories for unset baseline window and learning period."""
        result = _validate(BehavioralAnalysis(user_profiling=True))

        assert result.warnings == [
            "Baseline window not specified. Default baseline period will be used",
            "Learning period not specified. Default learning period will be used",
        ]

    def test_invalid_baseline_window(self) -> None:
        """Test an unknown baseline window."""
        result = _validate(BehavioralAnalysis(user_profiling=True, baseline_window="3_days"))

        assert result.errors == [
            "Invalid baseline window '3_days'. "
            "Allowed windows: 7_days, 14_days, 30_days, 60_days, 90_days"
        ]

    def test_baseline_window_below_configured_minimum(self) -> None:
        """Test the configured baseline day bounds."""
        config = BehavioralAnalyticsConfig(min_baseline_days=30)

        result = _validate(
            BehavioralAnalysis(user_profiling=True, baseline_window="14_days"), config
        )

        assert result.errors == ["baseline window too short. Minimum: 30 days"]

    def test_invalid_learning_period(self) -> None:
        """Test an unknown learning period."""
        result = _validate(BehavioralAnalysis(user_profiling=True, learning_period="1_year"))

        assert result.errors[0].startswith("Invalid learning period '1_year'.")


class TestRiskScoring:
    """Tests for risk scoring settings."""

    def test_requires_profiling(self) -> None:
        """Test that risk scoring needs user profiling."""
        result = _validate(BehavioralAnalysis(risk_scoring=RiskScoring(enabled=True)))

        assert result.errors == ["Risk scoring requires user profiling to be enabled"]

    def test_invalid_algorithm_and_factor(self) -> None:
        """Test algorithm and risk factor allow-lists."""
        risk = RiskScoring(enabled=True, algorithm="coin_flip", risk_factors=["shoe_size"])

        result = _validate(BehavioralAnalysis(user_profiling=True, risk_scoring=risk))

        assert len(result.errors) == 2
        assert result.errors[0].startswith("Invalid risk scoring algorithm 'coin_flip'.")
        assert result.errors[1].startswith("Invalid risk factor 'shoe_size' at index 0.")

    def test_too_many_factors(self) -> None:
        """Test the risk factor count limit."""
        config = BehavioralAnalyticsConfig(max_risk_factors=1)
        risk = RiskScoring(enabled=True, risk_factors=["privilege_level", "timing_anomaly"])

        result = _validate(BehavioralAnalysis(user_profiling=True, risk_scoring=risk), config)

        assert result.errors == ["Too many risk factors. Maximum allowed: 1, got: 2"]

    def test_weighting_scheme_sum(self) -> None:
        """Test that weights must sum to about one."""
        risk = RiskScoring(enabled=True, weighting_scheme={"privilege_level": 0.5})

        result = _validate(BehavioralAnalysis(user_profiling=True, risk_scoring=risk))

        assert result.errors == ["total weight must sum to approximately 1.0, got 0.500"]

    def test_weighting_scheme_range(self) -> None:
        """Test that each weight must lie in 0.0-1.0."""
        risk = RiskScoring(enabled=True, weighting_scheme={"privilege_level": 1.5})

        result = _validate(BehavioralAnalysis(user_profiling=True, risk_scoring=risk))

        assert result.errors == [
            "weight for factor 'privilege_level' must be between 0.0 and 1.0, got 1.500"
        ]

    def test_empty_weighting_scheme(self) -> None:
        """Test that an explicit empty scheme is rejected."""
        risk = RiskScoring(enabled=True, weighting_scheme={})

        result = _validate(BehavioralAnalysis(user_profiling=True, risk_scoring=risk))

        assert result.errors == ["weighting scheme cannot be empty"]


class TestAnomalyDetection:
    """Tests for anomaly detection settings."""

    def test_well_tuned_detector(self, anomaly_detection: AnomalyDetection) -> None:
        """Test a detector within every range."""
        result = _validate(
            BehavioralAnalysis(
                user_profiling=True,
                baseline_window="30_days",
                learning_period="7_days",
                anomaly_detection=anomaly_detection,
            )
        )

        assert result.is_valid
        assert result.warnings == []

    def test_out_of_range_values(self) -> None:
        """Test contamination, sensitivity and threshold ranges."""
        anomaly = AnomalyDetection(
            algorithm="threshold_based", contamination=1.5, sensitivity=-0.2, threshold=20.0
        )

        result = _validate(BehavioralAnalysis(user_profiling=True, anomaly_detection=anomaly))

        assert result.errors == [
            "Contamination must be between 0.0 and 1.0, got 1.500",
            "Sensitivity must be between 0.0 and 1.0, got -0.200",
            "Anomaly threshold must be between 0.1 and 10.0, got 20.000",
        ]

    def test_invalid_algorithm(self) -> None:
        """Test an unknown detection algorithm."""
        anomaly = AnomalyDetection(algorithm="crystal_ball")

        result = _validate(BehavioralAnalysis(user_profiling=True, anomaly_detection=anomaly))

        assert result.errors[0].startswith("Invalid anomaly detection algorithm 'crystal_ball'.")

    def test_algorithm_advice(self) -> None:
        """Test that algorithm-specific advice is a warning."""
        anomaly = AnomalyDetection(algorithm="isolation_forest", contamination=0.5)

        result = _validate(BehavioralAnalysis(user_profiling=True, anomaly_detection=anomaly))

        assert result.is_valid
        assert (
            "High contamination value for isolation forest may reduce detection accuracy"
            in result.warnings
        )


class TestPerformanceImpact:
    """Tests for the behavioral performance estimate."""

    def test_all_features_warn(
        self, profiled_behavior: BehavioralAnalysis, anomaly_detection: AnomalyDetection
    ) -> None:
        """Test the advisory when every feature is enabled."""
        behavioral = profiled_behavior.model_copy(update={"anomaly_detection": anomaly_detection})

        result = _validate(behavioral)

        assert "All behavioral analysis features enabled may impact query performance" in (
            result.warnings
        )

    def test_score_over_limit_warns(self, profiled_behavior: BehavioralAnalysis) -> None:
        """Test that a high performance score is advisory only."""
        config = BehavioralAnalyticsConfig(max_performance_score=20)

        result = _validate(profiled_behavior, config)

        assert result.is_valid
        assert result.warnings == [
            "High performance impact score 59. "
            "Consider simplifying behavioral analysis configuration"
        ]
        assert result.details["max_performance_score"] == 20
