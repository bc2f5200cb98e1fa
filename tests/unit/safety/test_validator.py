"""Unit tests for the safety validator."""

from __future__ import annotations

import pytest

from auditguard.core.config import DEFAULT_RULE_PRIORITIES, GuardConfig
from auditguard.core.domain_types import BehavioralAnalysis, CandidateQuery
from auditguard.core.exceptions import QueryValidationError
from auditguard.core.interfaces import ValidationRule
from auditguard.core.result import ResultBuilder, Severity, ValidationResult
from auditguard.safety.rules import build_default_rules
from auditguard.safety.validator import SafetyValidator


class RecordingRule:
    """Minimal rule used to observe evaluation."""

    description = "Records every query it sees"
    severity = Severity.INFO

    def __init__(self, name: str, error: str | None = None, enabled: bool = True) -> None:
        self.name = name
        self.error = error
        self.enabled = enabled
        self.seen: list[CandidateQuery] = []

    def validate(self, query: CandidateQuery) -> ValidationResult:
        self.seen.append(query)
        builder = ResultBuilder(self.name, query)
        if self.error:
            builder.error(self.error)
            builder.recommend(f"Fix {self.name}")
        return builder.build("Recording")


@pytest.fixture
def validator() -> SafetyValidator:
    """Return a validator with the default rule set."""
    return SafetyValidator()


class TestBuildDefaultRules:
    """Tests for build_default_rules."""

    def test_twelve_rules(self) -> None:
        """Test that the default set has every rule once."""
        rules = build_default_rules()

        assert len(rules) == 12
        assert {rule.name for rule in rules} == set(DEFAULT_RULE_PRIORITIES)

    def test_rules_satisfy_protocol(self) -> None:
        """Test that every rule satisfies the rule interface."""
        for rule in build_default_rules():
            assert isinstance(rule, ValidationRule)

    def test_rule_interface_documented(self) -> None:
        """Test that every rule documents validate and enabled."""
        for rule in build_default_rules():
            rule_type = type(rule)
            assert rule_type.validate.__doc__
            assert rule_type.enabled.__doc__

    def test_every_rule_accepts_empty_query(self, empty_query: CandidateQuery) -> None:
        """Test that only rules requiring log_source reject an empty query."""
        requires_log_source = {"required_fields_validation", "comprehensive_input_validation"}

        for rule in build_default_rules():
            result = rule.validate(empty_query)

            assert result.rule_name == rule.name
            if rule.name in requires_log_source:
                assert not result.is_valid
            else:
                assert result.errors == []
                assert result.is_valid


class TestValidate:
    """Tests for SafetyValidator.validate."""

    def test_basic_query_admitted(
        self, validator: SafetyValidator, basic_query: CandidateQuery
    ) -> None:
        """Test that the canonical query passes every rule."""
        result = validator.validate(basic_query)

        assert result.is_valid
        assert result.errors == []
        assert result.rule_name == "safety_validation"
        assert result.message == "Query validation passed"
        assert result.details["total_rules_applied"] == 12
        assert result.details["failed_rules"] == []

    def test_evaluation_order_follows_priorities(
        self, validator: SafetyValidator, basic_query: CandidateQuery
    ) -> None:
        """Test that rules run from highest to lowest priority."""
        order = validator.validate(basic_query).details["evaluation_order"]

        assert order == sorted(
            DEFAULT_RULE_PRIORITIES, key=lambda name: -DEFAULT_RULE_PRIORITIES[name]
        )

    def test_missing_query(self, validator: SafetyValidator) -> None:
        """Test that a missing query is reported, not raised."""
        result = validator.validate(None)

        assert not result.is_valid
        assert result.errors == ["Query is required"]

    def test_privileged_user_rejected(self, validator: SafetyValidator) -> None:
        """Test that a privileged user fails both pattern screens."""
        query = CandidateQuery(log_source="kube-apiserver", verb="get", user="system:admin")

        result = validator.validate(query)

        assert not result.is_valid
        assert result.details["failed_rules"] == [
            "comprehensive_input_validation",
            "forbidden_patterns_validation",
        ]
        assert result.severity == Severity.CRITICAL
        assert result.recommendations

    def test_rule_results_summarized(
        self, validator: SafetyValidator, basic_query: CandidateQuery
    ) -> None:
        """Test the per-rule summary in details."""
        summary = validator.validate(basic_query).details["rule_results"]["performance_validation"]

        assert summary["is_valid"] is True
        assert summary["error_count"] == 0

    def test_warnings_do_not_fail(self, validator: SafetyValidator) -> None:
        """Test that warnings alone keep the query admissible, without recommendations."""
        query = CandidateQuery(
            log_source="kube-apiserver", behavioral_analysis=BehavioralAnalysis()
        )

        result = validator.validate(query)

        assert result.is_valid
        assert result.severity == Severity.WARNING
        assert result.warnings
        assert result.recommendations == []

    def test_results_are_reproducible(
        self, validator: SafetyValidator, basic_query: CandidateQuery
    ) -> None:
        """Test that validating twice gives the same result apart from the timestamp."""
        first = validator.validate(basic_query).model_dump(exclude={"timestamp"})
        second = validator.validate(basic_query).model_dump(exclude={"timestamp"})

        assert first == second

    def test_disabled_rule_skipped(self) -> None:
        """Test that disabled rules do not run."""
        config = GuardConfig.from_mapping({"whitelist": {"enabled": False}})
        validator = SafetyValidator(config)

        result = validator.validate(CandidateQuery(log_source="kube-apiserver"))

        assert result.details["total_rules_applied"] == 11
        assert "whitelist_validation" not in result.details["evaluation_order"]


class TestCustomRules:
    """Tests for validators built from explicit rules."""

    def test_failures_do_not_short_circuit(self) -> None:
        """Test that every rule runs even after a failure."""
        first = RecordingRule("first_rule", error="first failed")
        second = RecordingRule("second_rule", error="second failed")
        validator = SafetyValidator(rules=[first, second])

        result = validator.validate(CandidateQuery())

        assert result.errors == ["first failed", "second failed"]
        assert result.recommendations == ["Fix first_rule", "Fix second_rule"]
        assert len(first.seen) == len(second.seen) == 1

    def test_unprioritized_rules_run_last_in_order(self) -> None:
        """Test that rules without a priority keep registration order after prioritized ones."""
        config = GuardConfig.from_mapping({"rule_engine": {"rule_priorities": {"late": 1}}})
        rules = [RecordingRule("b_rule"), RecordingRule("late"), RecordingRule("a_rule")]

        validator = SafetyValidator(config, rules=rules)

        assert [rule.name for rule in validator.rules] == ["late", "b_rule", "a_rule"]

    def test_get_applicable_rules(self) -> None:
        """Test that disabled rules are not applicable."""
        validator = SafetyValidator(
            rules=[RecordingRule("on_rule"), RecordingRule("off_rule", enabled=False)]
        )

        assert [rule.name for rule in validator.get_applicable_rules()] == ["on_rule"]

    def test_get_validation_stats(self) -> None:
        """Test the rule set description."""
        validator = SafetyValidator(
            rules=[
                RecordingRule("performance_validation"),
                RecordingRule("off_rule", enabled=False),
            ]
        )

        stats = validator.get_validation_stats()

        assert stats["total_rules"] == 2
        assert stats["enabled_rules"] == 1
        assert stats["disabled_rules"] == 1
        assert stats["rule_priorities"] == {"performance_validation": 10, "off_rule": None}


class TestPayloadAndCheck:
    """Tests for validate_payload and check."""

    def test_payload_parsed_and_validated(self, validator: SafetyValidator) -> None:
        """Test that a well-formed payload is validated."""
        result = validator.validate_payload(
            {"log_source": "kube-apiserver", "verb": "delete", "resource": "pods"}
        )

        assert result.is_valid
        assert result.rule_name == "safety_validation"

    def test_malformed_payload(self, validator: SafetyValidator) -> None:
        """Test that parse failures become a schema result."""
        result = validator.validate_payload({"log_source": "kube-apiserver", "limit": "lots"})

        assert not result.is_valid
        assert result.rule_name == "schema_validation"
        assert result.errors[0].startswith("limit:")

    def test_check_returns_valid_result(
        self, validator: SafetyValidator, basic_query: CandidateQuery
    ) -> None:
        """Test that check returns the result of an admissible query."""
        assert validator.check(basic_query).is_valid

    def test_check_raises_with_result(self, validator: SafetyValidator) -> None:
        """Test that check raises and carries the aggregate result."""
        with pytest.raises(QueryValidationError) as exc_info:
            validator.check(CandidateQuery(log_source="kube-apiserver", verb="destroy"))

        assert exc_info.value.result is not None
        assert "whitelist_validation" in exc_info.value.result.details["failed_rules"]
        assert "Verb 'destroy' is not in allowed whitelist" in str(exc_info.value)
