"""Validation result types shared by every rule and the aggregate."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field

from .domain_types import CandidateQuery


class Severity(str, Enum):
    """How serious a validation outcome is."""

    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ValidationResult(BaseModel):
    """Outcome of one rule, or of the whole rule set after aggregation.

    Validity and severity are derived from the error and warning lists,
    so a result can never claim to be valid while carrying errors.

    Attributes:
        rule_name: Name of the rule (or "safety_validation" for the aggregate).
        message: One-line human readable summary.
        errors: Structural violations; any entry makes the result invalid.
        warnings: Advisory findings that never affect validity.
        recommendations: Operator guidance, only present when invalid.
        details: Diagnostic values (scores, estimates, per-rule results).
        timestamp: When the result was produced.
        query_snapshot: The query that was validated.
    """

    model_config = ConfigDict(frozen=True)

    rule_name: str
    message: str = ""
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    details: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=_utcnow)
    query_snapshot: CandidateQuery | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_valid(self) -> bool:
        """True when no errors were reported."""
        return not self.errors

    @computed_field  # type: ignore[prop-decorator]
    @property
    def severity(self) -> Severity:
        """Critical on any error, warning on warnings only, else info."""
        if self.errors:
            return Severity.CRITICAL
        if self.warnings:
            return Severity.WARNING
        return Severity.INFO


@dataclass
class ResultBuilder:
    """Collects findings during a single rule invocation.

    A builder is created per call and discarded once build() returns,
    which keeps rules free of shared mutable state.

    Example:
        >>> builder = ResultBuilder("whitelist_validation", query)
        >>> builder.error("Verb 'destroy' is not in allowed whitelist")
        >>> result = builder.build("Whitelist", ["Use only allowed verbs"])
        >>> result.is_valid
        False
    """

    rule_name: str
    query: CandidateQuery | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    details: dict[str, Any] = field(default_factory=dict)

    def error(self, message: str) -> None:
        """Record a structural violation."""
        self.errors.append(message)

    def warn(self, message: str) -> None:
        """Record an advisory finding."""
        self.warnings.append(message)

    def recommend(self, message: str) -> None:
        """Record operator guidance (kept only if the result is invalid)."""
        self.recommendations.append(message)

    def detail(self, key: str, value: Any) -> None:
        """Record a diagnostic value."""
        self.details[key] = value

    @property
    def failed(self) -> bool:
        """True once any error has been recorded."""
        return bool(self.errors)

    def build(
        self,
        label: str,
        failure_recommendations: list[str] | tuple[str, ...] = (),
    ) -> ValidationResult:
        """Freeze the collected findings into a ValidationResult.

        Args:
            label: Human name used in the summary message, e.g. "Whitelist".
            failure_recommendations: Generic guidance appended after any
                rule-specific recommendations when the result is invalid.

        Returns:
            The immutable result for this invocation.
        """
        if self.failed:
            message = f"{label} validation failed"
            recommendations = [*self.recommendations, *failure_recommendations]
        else:
            if self.warnings:
                message = f"{label} validation passed with warnings"
            else:
                message = f"{label} validation passed"
            recommendations = []

        return ValidationResult(
            rule_name=self.rule_name,
            message=message,
            errors=list(self.errors),
            warnings=list(self.warnings),
            recommendations=recommendations,
            details=dict(self.details),
            query_snapshot=self.query,
        )
