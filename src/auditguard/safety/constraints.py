"""Cross-field constraints over behavioral analysis blocks.

Each constraint is an implication of the form "if feature X is set up
this way then Y must hold". Structural implications are fatal; the
algorithm-specific ones are advisory and only produce warnings.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import NamedTuple

from pydantic import BaseModel, ConfigDict, Field

from auditguard.core.domain_types import BehavioralAnalysis


class Constraint(NamedTuple):
    """An implication checked against a behavioral analysis block."""

    description: str
    violated: Callable[[BehavioralAnalysis], bool]
    message: str
    fatal: bool


def _algorithm(value: str) -> str:
    return value.casefold()


def _risk_without_profiling(b: BehavioralAnalysis) -> bool:
    return b.risk_scoring is not None and b.risk_scoring.enabled and not b.user_profiling


def _baseline_without_window(b: BehavioralAnalysis) -> bool:
    return b.baseline_comparison and not b.baseline_window


def _anomaly_without_context(b: BehavioralAnalysis) -> bool:
    return b.anomaly_detection is not None and not b.baseline_comparison and not b.user_profiling


def _ml_risk_with_isolation_forest(b: BehavioralAnalysis) -> bool:
    return (
        b.risk_scoring is not None
        and b.anomaly_detection is not None
        and _algorithm(b.risk_scoring.algorithm) == "ml_based"
        and _algorithm(b.anomaly_detection.algorithm) == "isolation_forest"
    )


def _isolation_forest_high_contamination(b: BehavioralAnalysis) -> bool:
    anomaly = b.anomaly_detection
    return (
        anomaly is not None
        and _algorithm(anomaly.algorithm) == "isolation_forest"
        and anomaly.contamination > 0.3
    )


def _z_score_threshold_out_of_range(b: BehavioralAnalysis) -> bool:
    anomaly = b.anomaly_detection
    return (
        anomaly is not None
        and _algorithm(anomaly.algorithm) == "z_score"
        and anomaly.threshold != 0.0
        and not 2.0 <= anomaly.threshold <= 4.0
    )


def _statistical_without_sensitivity(b: BehavioralAnalysis) -> bool:
    anomaly = b.anomaly_detection
    return (
        anomaly is not None
        and _algorithm(anomaly.algorithm) == "statistical"
        and anomaly.sensitivity == 0.0
    )


BEHAVIORAL_CONSTRAINTS: tuple[Constraint, ...] = (
    Constraint(
        description="risk scoring requires user profiling",
        violated=_risk_without_profiling,
        message="Risk scoring requires user profiling to be enabled",
        fatal=True,
    ),
    Constraint(
        description="anomaly detection benefits from baseline or profiling",
        violated=_anomaly_without_context,
        message="Anomaly detection works best with baseline comparison or user profiling enabled",
        fatal=False,
    ),
    Constraint(
        description="baseline comparison requires a baseline window",
        violated=_baseline_without_window,
        message="Baseline comparison requires baseline_window to be specified",
        fatal=True,
    ),
    Constraint(
        description="ml_based risk scoring with isolation_forest is expensive",
        violated=_ml_risk_with_isolation_forest,
        message="ML-based risk scoring with isolation forest may be computationally intensive",
        fatal=False,
    ),
)

ALGORITHM_CONSTRAINTS: tuple[Constraint, ...] = (
    Constraint(
        description="isolation_forest contamination above 0.3",
        violated=_isolation_forest_high_contamination,
        message="High contamination value for isolation forest may reduce detection accuracy",
        fatal=False,
    ),
    Constraint(
        description="z_score threshold outside 2.0-4.0",
        violated=_z_score_threshold_out_of_range,
        message="Z-score threshold typically works best between 2.0 and 4.0",
        fatal=False,
    ),
    Constraint(
        description="statistical detection without sensitivity",
        violated=_statistical_without_sensitivity,
        message="Statistical anomaly detection typically requires sensitivity to be specified",
        fatal=False,
    ),
)


class ConstraintReport(BaseModel):
    """Violations found by the constraint checker."""

    model_config = ConfigDict(frozen=True)

    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


def check_constraints(
    behavioral: BehavioralAnalysis,
    constraints: tuple[Constraint, ...],
) -> ConstraintReport:
    """Evaluate constraints independently against one block.

    Args:
        behavioral: The block to check.
        constraints: Constraints to evaluate, in reporting order.

    Returns:
        Fatal violations as errors, advisory ones as warnings.
    """
    errors: list[str] = []
    warnings: list[str] = []
    for constraint in constraints:
        if not constraint.violated(behavioral):
            continue
        if constraint.fatal:
            errors.append(constraint.message)
        else:
            warnings.append(constraint.message)
    return ConstraintReport(errors=errors, warnings=warnings)


def check_behavioral_constraints(behavioral: BehavioralAnalysis) -> ConstraintReport:
    """Evaluate every behavioral dependency and algorithm constraint."""
    return check_constraints(behavioral, BEHAVIORAL_CONSTRAINTS + ALGORITHM_CONSTRAINTS)
