"""Unit tests for the forbidden patterns rule."""

from __future__ import annotations

from auditguard.core.config import PatternsConfig
from auditguard.core.domain_types import CandidateQuery
from auditguard.safety.rules.patterns import PatternsRule


class TestForbiddenPatterns:
    """Tests for the configured deny-list."""

    def test_clean_query_passes(self, basic_query: CandidateQuery) -> None:
        """Test that an ordinary query passes."""
        result = PatternsRule().validate(basic_query)

        assert result.is_valid
        assert result.message == "Forbidden patterns validation passed"

    def test_privileged_user(self) -> None:
        """Test that a privileged user is reported once."""
        query = CandidateQuery(log_source="kube-apiserver", user="system:admin")

        result = PatternsRule().validate(query)

        assert result.errors == [
            "Field 'user' contains forbidden pattern 'system:admin': system:admin"
        ]

    def test_case_insensitive(self) -> None:
        """Test that deny-list matching ignores case."""
        query = CandidateQuery(log_source="kube-apiserver", user="SYSTEM:ADMIN")

        assert not PatternsRule().validate(query).is_valid

    def test_each_list_element_screened(self) -> None:
        """Test that every list element is screened."""
        query = CandidateQuery(user=["alice", "system:admin", "cluster-admin-sa"])

        result = PatternsRule().validate(query)

        assert len(result.errors) == 2

    def test_exclusions_screened(self) -> None:
        """Test that exclusion lists are screened too."""
        query = CandidateQuery(exclude_users=["system:admin"], exclude_resources=["rm -rf"])

        result = PatternsRule().validate(query)

        assert result.errors == [
            "Exclude user contains forbidden pattern 'system:admin': system:admin",
            "Exclude resource contains forbidden pattern 'rm -rf': rm -rf",
        ]

    def test_custom_regex_pattern(self) -> None:
        """Test a regex deny-list entry."""
        rule = PatternsRule(PatternsConfig(forbidden_patterns=(r"secret-\d+",)))

        result = rule.validate(CandidateQuery(resource_name_pattern="db-SECRET-42"))

        assert not result.is_valid


class TestDangerousPatterns:
    """Tests for the fixed dangerous pattern tables."""

    def test_exec_uri(self) -> None:
        """Test that exec endpoints are dangerous."""
        query = CandidateQuery(request_uri_pattern="/api/v1/pods/web-1/exec")

        result = PatternsRule().validate(query)

        assert result.errors == [
            "Request URI pattern contains dangerous pattern "
            "'/api/v1/pods/.*/exec': /api/v1/pods/web-1/exec"
        ]

    def test_system_namespace(self) -> None:
        """Test that system namespaces are dangerous."""
        result = PatternsRule().validate(CandidateQuery(namespace_pattern="kube-system"))

        assert "Namespace pattern contains dangerous pattern 'kube-system': kube-system" in (
            result.errors
        )

    def test_value_reported_by_both_checks(self) -> None:
        """Test that one value can trip the deny-list and the dangerous tables."""
        result = PatternsRule().validate(CandidateQuery(user_pattern="cluster-admin"))

        assert "Field 'user_pattern' contains forbidden pattern 'cluster-admin': cluster-admin" in (
            result.errors
        )
        assert "User pattern contains dangerous pattern 'cluster-admin': cluster-admin" in (
            result.errors
        )
        assert "User pattern contains dangerous pattern 'admin': cluster-admin" in result.errors

    def test_ordinary_pattern_passes(self) -> None:
        """Test that ordinary application names pass."""
        query = CandidateQuery(namespace_pattern="payments", user_pattern="alice")

        assert PatternsRule().validate(query).is_valid
