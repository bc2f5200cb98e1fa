"""Unit tests for the compliance rule."""

from __future__ import annotations

import pytest

from auditguard.core.config import ComplianceConfig
from auditguard.core.domain_types import CandidateQuery, ComplianceFramework, ComplianceReporting
from auditguard.safety.rules.compliance import ComplianceRule, query_timeframe_days


def _validate(
    framework: ComplianceFramework,
    config: ComplianceConfig | None = None,
    timeframe: str = "",
):
    query = CandidateQuery(
        log_source="kube-apiserver", timeframe=timeframe, compliance_framework=framework
    )
    return ComplianceRule(config).validate(query)


class TestQueryTimeframeDays:
    """Tests for query_timeframe_days."""

    @pytest.mark.parametrize(
        ("timeframe", "expected"),
        [
            ("today", 1),
            ("yesterday", 2),
            ("last_week", 7),
            ("Last_Month", 30),
            ("90_days_ago", 90),
            ("2_weeks_ago", 14),
            ("", 30),
            ("whenever", 30),
        ],
    )
    def test_days(self, timeframe: str, expected: int) -> None:
        """Test the table, then the parsed timeframe, then the default."""
        assert query_timeframe_days(CandidateQuery(timeframe=timeframe)) == expected


class TestStandardsAndControls:
    """Tests for standards and controls."""

    def test_no_block(self, basic_query: CandidateQuery) -> None:
        """Test that queries without a framework pass."""
        assert ComplianceRule().validate(basic_query).is_valid

    def test_complete_sox_framework(self, sox_framework: ComplianceFramework) -> None:
        """Test a complete SOX configuration."""
        result = _validate(sox_framework)

        assert result.is_valid
        assert result.warnings == ["Ensure audit trail has no gaps exceeding 24 hours"]
        assert result.recommendations == []
        assert result.details["max_audit_gap_hours"] == 24
        assert "request_id" in result.details["required_audit_fields"]

    def test_standard_required(self) -> None:
        """Test that at least one standard is required."""
        result = _validate(ComplianceFramework(controls=["access_logging"]))

        assert result.errors == ["At least one compliance standard must be specified"]
        assert "Review compliance framework configuration" in result.recommendations

    def test_invalid_and_duplicate_standards(self) -> None:
        """Test per-element standard errors, ignoring case."""
        framework = ComplianceFramework(
            standards=["sox", "SOC2", "SOX"], controls=["access_logging"]
        )

        errors = _validate(framework).errors

        assert errors[0].startswith("Invalid compliance standard 'SOC2' at index 1.")
        assert errors[1] == "Duplicate compliance standard 'SOX' at index 2"

    def test_too_many_standards(self) -> None:
        """Test the standard count limit."""
        framework = ComplianceFramework(
            standards=["SOX", "GDPR"], controls=["access_logging", "audit_trail"]
        )

        result = _validate(framework, ComplianceConfig(max_standards=1))

        assert "Too many compliance standards. Maximum allowed: 1, got: 2" in result.errors

    def test_no_controls_warns(self) -> None:
        """Test that missing controls are advisory."""
        result = _validate(ComplianceFramework(standards=["CIS"]))

        assert result.is_valid
        assert "No compliance controls specified" in result.warnings

    def test_invalid_and_duplicate_controls(self) -> None:
        """Test per-element control errors."""
        framework = ComplianceFramework(
            standards=["NIST"], controls=["audit_trail", "vibes", "Audit_Trail"]
        )

        errors = _validate(framework).errors

        assert len(errors) == 2
        assert errors[0].startswith("Invalid compliance control 'vibes' at index 1.")
        assert errors[1] == "Duplicate compliance control 'Audit_Trail' at index 2"

    def test_control_not_applicable_to_standards(self) -> None:
        """Test the control-to-standard compatibility advisory."""
        framework = ComplianceFramework(standards=["GDPR"], controls=["change_management"])

        warnings = _validate(framework).warnings

        assert "Control 'change_management' may not be directly applicable to standards: GDPR" in (
            warnings
        )

    def test_missing_expected_control(self) -> None:
        """Test the advisory for controls a standard usually requires."""
        framework = ComplianceFramework(standards=["ISO27001"], controls=["access_logging"])

        warnings = _validate(framework).warnings

        assert "ISO 27001 compliance typically requires 'incident_response' control" in warnings


class TestRetentionEvidenceAndReporting:
    """Tests for retention, evidence and reporting checks."""

    def test_retention_minimum(self, sox_framework: ComplianceFramework) -> None:
        """Test the configured minimum retention advisory."""
        result = _validate(
            sox_framework, ComplianceConfig(min_retention_days=30), timeframe="90_days_ago"
        )

        assert result.is_valid
        assert "Query timeframe 90 days exceeds minimum retention requirement 30 days" in (
            result.warnings
        )

    def test_no_reporting(self) -> None:
        """Test the advisories for a missing reporting block."""
        framework = ComplianceFramework(standards=["NIST"], controls=["access_logging"])

        warnings = _validate(framework).warnings

        assert (
            "No reporting configuration specified. Evidence collection recommended for compliance"
            in warnings
        )
        assert "No reporting configuration specified" in warnings

    def test_evidence_disabled(self) -> None:
        """Test the advisories for standards that expect evidence."""
        framework = ComplianceFramework(
            standards=["PCI-DSS"],
            controls=["access_logging", "authentication_monitoring", "data_protection"],
            reporting=ComplianceReporting(format="summary"),
        )

        warnings = _validate(framework).warnings

        assert "Evidence collection is disabled but may be required for compliance" in warnings
        assert "PCI-DSS compliance typically requires evidence collection" in warnings

    def test_sox_reporting_format(self, sox_framework: ComplianceFramework) -> None:
        """Test the SOX reporting format advisory."""
        framework = sox_framework.model_copy(
            update={"reporting": ComplianceReporting(format="executive", include_evidence=True)}
        )

        warnings = _validate(framework).warnings

        assert "SOX compliance typically requires detailed reporting format" in warnings

    def test_invalid_reporting_format(self, sox_framework: ComplianceFramework) -> None:
        """Test an unknown reporting format."""
        framework = sox_framework.model_copy(
            update={"reporting": ComplianceReporting(format="pdf", include_evidence=True)}
        )

        result = _validate(framework)

        assert result.errors == [
            "Invalid reporting format 'pdf'. "
            "Allowed formats: detailed, summary, executive, technical"
        ]
        assert "Standard SOX requires comprehensive audit logging" in result.recommendations
        assert (
            "Evidence collection enabled - ensure adequate storage and retention"
            in result.recommendations
        )
