"""Safety layer - guardrails applied before a query reaches a log backend.

This module contains:
- Pattern matching shared by every allow- and deny-list
- The twelve validation rules
- The cost model and its admission policy
- Constraint checks between behavioral analysis features
- The validator that runs and aggregates every rule
"""

from .constraints import ConstraintReport, check_behavioral_constraints
from .cost_model import (
    Admission,
    ComplexityBreakdown,
    PerformanceTier,
    ResourceEstimate,
    admit,
    complexity_breakdown,
    complexity_score,
    estimate_resources,
)
from .matcher import is_allowed, matches
from .rules import build_default_rules
from .validator import SafetyValidator

__all__ = [
    "SafetyValidator",
    "build_default_rules",
    # Matching
    "is_allowed",
    "matches",
    # Cost model
    "Admission",
    "ComplexityBreakdown",
    "PerformanceTier",
    "ResourceEstimate",
    "admit",
    "complexity_breakdown",
    "complexity_score",
    "estimate_resources",
    # Constraints
    "ConstraintReport",
    "check_behavioral_constraints",
]
