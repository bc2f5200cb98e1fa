"""Unit tests for behavioral analysis constraints."""

from __future__ import annotations

from auditguard.core.domain_types import AnomalyDetection, BehavioralAnalysis, RiskScoring
from auditguard.safety.constraints import (
    BEHAVIORAL_CONSTRAINTS,
    check_behavioral_constraints,
    check_constraints,
)


class TestDependencyConstraints:
    """Tests for dependencies between behavioral features."""

    def test_consistent_block(self, profiled_behavior: BehavioralAnalysis) -> None:
        """Test that a consistent block has no violations."""
        report = check_behavioral_constraints(profiled_behavior)

        assert report.errors == []
        assert report.warnings == []

    def test_risk_scoring_requires_profiling(self) -> None:
        """Test that risk scoring without profiling is fatal."""
        report = check_behavioral_constraints(
            BehavioralAnalysis(risk_scoring=RiskScoring(enabled=True))
        )

        assert report.errors == ["Risk scoring requires user profiling to be enabled"]

    def test_disabled_risk_scoring_ignored(self) -> None:
        """Test that a disabled risk scoring block has no dependency."""
        report = check_behavioral_constraints(
            BehavioralAnalysis(risk_scoring=RiskScoring(enabled=False))
        )

        assert report.errors == []

    def test_baseline_requires_window(self) -> None:
        """Test that baseline comparison without a window is fatal."""
        report = check_behavioral_constraints(
            BehavioralAnalysis(user_profiling=True, baseline_comparison=True)
        )

        assert report.errors == ["Baseline comparison requires baseline_window to be specified"]

    def test_anomaly_without_context_warns(self) -> None:
        """Test that bare anomaly detection is advisory only."""
        report = check_behavioral_constraints(
            BehavioralAnalysis(anomaly_detection=AnomalyDetection(algorithm="threshold_based"))
        )

        assert report.errors == []
        assert len(report.warnings) == 1
        assert "baseline comparison or user profiling" in report.warnings[0]

    def test_ml_risk_with_isolation_forest_warns(self) -> None:
        """Test the expensive algorithm pairing."""
        report = check_behavioral_constraints(
            BehavioralAnalysis(
                user_profiling=True,
                risk_scoring=RiskScoring(enabled=True, algorithm="ML_BASED"),
                anomaly_detection=AnomalyDetection(algorithm="isolation_forest"),
            )
        )

        assert report.warnings == [
            "ML-based risk scoring with isolation forest may be computationally intensive"
        ]

    def test_violations_reported_independently(self) -> None:
        """Test that every violated constraint is reported."""
        report = check_constraints(
            BehavioralAnalysis(baseline_comparison=True, risk_scoring=RiskScoring(enabled=True)),
            BEHAVIORAL_CONSTRAINTS,
        )

        assert len(report.errors) == 2


class TestAlgorithmConstraints:
    """Tests for algorithm-specific advice."""

    def _warnings(self, anomaly: AnomalyDetection) -> list[str]:
        return check_behavioral_constraints(
            BehavioralAnalysis(user_profiling=True, anomaly_detection=anomaly)
        ).warnings

    def test_isolation_forest_contamination(self) -> None:
        """Test the contamination advice for isolation forest."""
        assert self._warnings(AnomalyDetection(algorithm="isolation_forest", contamination=0.5))
        assert not self._warnings(AnomalyDetection(algorithm="isolation_forest", contamination=0.3))

    def test_z_score_threshold(self) -> None:
        """Test the z-score threshold advice; zero means unset."""
        assert self._warnings(AnomalyDetection(algorithm="z_score", threshold=5.0))
        assert not self._warnings(AnomalyDetection(algorithm="z_score", threshold=3.0))
        assert not self._warnings(AnomalyDetection(algorithm="z_score"))

    def test_statistical_sensitivity(self) -> None:
        """Test the sensitivity advice for statistical detection."""
        assert self._warnings(AnomalyDetection(algorithm="statistical"))
        assert not self._warnings(AnomalyDetection(algorithm="statistical", sensitivity=0.8))

    def test_algorithm_constraints_never_fatal(self) -> None:
        """Test that algorithm advice never produces errors."""
        report = check_behavioral_constraints(
            BehavioralAnalysis(
                user_profiling=True,
                anomaly_detection=AnomalyDetection(algorithm="isolation_forest", contamination=0.9),
            )
        )

        assert report.errors == []
