"""The twelve guardrail rules.

Every rule follows the same contract: it carries a name, description
and severity, reads one section of ``GuardConfig``, and returns a fresh
``ValidationResult`` for each query without raising.
"""

from __future__ import annotations

from auditguard.core.config import GuardConfig
from auditguard.core.interfaces import ValidationRule

from .advanced_analysis import AdvancedAnalysisRule
from .behavioral_analytics import BehavioralAnalyticsRule
from .compliance import ComplianceRule
from .field_values import FieldValuesRule
from .input_validation import ComprehensiveInputRule
from .multi_source import MultiSourceRule
from .patterns import PatternsRule
from .performance import PerformanceRule
from .required import RequiredFieldsRule
from .sanitization import SanitizationRule
from .timeframe import TimeframeRule
from .whitelist import WhitelistRule


def build_default_rules(config: GuardConfig | None = None) -> list[ValidationRule]:
    """Build the default rule set from one configuration.

    Args:
        config: Guard configuration. Defaults are used when omitted.

    Returns:
        All twelve rules, in registration order. Disabled rules are
        included; the validator skips them.
    """
    config = config or GuardConfig()
    return [
        RequiredFieldsRule(config.required_fields),
        WhitelistRule(config.whitelist),
        ComprehensiveInputRule(config.input_validation),
        PatternsRule(config.patterns),
        SanitizationRule(config.sanitization),
        FieldValuesRule(config.field_values),
        TimeframeRule(config.timeframe),
        AdvancedAnalysisRule(config.advanced_analysis),
        MultiSourceRule(config.multi_source),
        BehavioralAnalyticsRule(config.behavioral_analytics),
        ComplianceRule(config.compliance),
        PerformanceRule(config.performance),
    ]


__all__ = [
    "build_default_rules",
    # Input rules
    "ComprehensiveInputRule",
    "FieldValuesRule",
    "PatternsRule",
    "RequiredFieldsRule",
    "SanitizationRule",
    "TimeframeRule",
    "WhitelistRule",
    # Analysis rules
    "AdvancedAnalysisRule",
    "BehavioralAnalyticsRule",
    "ComplianceRule",
    "MultiSourceRule",
    # Cost
    "PerformanceRule",
]
