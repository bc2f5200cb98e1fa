"""Core domain - query model, results, configuration and rule contract."""

from .config import GuardConfig, load_config
from .domain_types import (
    AdvancedAnalysis,
    AnomalyDetection,
    BehavioralAnalysis,
    BusinessHours,
    CandidateQuery,
    ComplianceFramework,
    ComplianceReporting,
    MultiSource,
    RiskScoring,
    StatisticalAnalysis,
    StringOrList,
    TimeRange,
)
from .exceptions import AuditGuardError, ConfigurationError, QueryValidationError
from .interfaces import ValidationRule
from .result import ResultBuilder, Severity, ValidationResult

__all__ = [
    # Domain types
    "AdvancedAnalysis",
    "AnomalyDetection",
    "BehavioralAnalysis",
    "BusinessHours",
    "CandidateQuery",
    "ComplianceFramework",
    "ComplianceReporting",
    "MultiSource",
    "RiskScoring",
    "StatisticalAnalysis",
    "StringOrList",
    "TimeRange",
    # Results
    "ResultBuilder",
    "Severity",
    "ValidationResult",
    # Configuration
    "GuardConfig",
    "load_config",
    # Exceptions
    "AuditGuardError",
    "ConfigurationError",
    "QueryValidationError",
    # Interfaces
    "ValidationRule",
]
