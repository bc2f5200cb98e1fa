"""auditguard - pre-execution guardrails for LLM-generated audit-log queries.

Typical use:

    from auditguard import CandidateQuery, SafetyValidator, load_config

    validator = SafetyValidator(load_config("rules.yaml"))
    result = validator.validate(CandidateQuery(log_source="kube-apiserver", verb="delete"))
    if not result.is_valid:
        ...
"""

from .core import (
    AuditGuardError,
    CandidateQuery,
    ConfigurationError,
    GuardConfig,
    QueryValidationError,
    Severity,
    ValidationResult,
    ValidationRule,
    load_config,
)
from .safety import SafetyValidator, build_default_rules

__version__ = "0.1.0"

__all__ = [
    "SafetyValidator",
    "build_default_rules",
    "CandidateQuery",
    "Severity",
    "ValidationResult",
    "ValidationRule",
    "GuardConfig",
    "load_config",
    "AuditGuardError",
    "ConfigurationError",
    "QueryValidationError",
]
