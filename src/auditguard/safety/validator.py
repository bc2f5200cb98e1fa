"""Safety validator - runs every rule against a candidate query.

The validator is the single entry point for admitting LLM-generated
audit-log queries. Every enabled rule runs on every query: a failing
rule never prevents later rules from running, so the operator sees
every problem at once.

Aggregation:
- valid only if every rule is valid
- errors, warnings and recommendations concatenated in evaluation order
- recommendations kept only when the aggregate is invalid
- no de-duplication across rules
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import structlog
from pydantic import ValidationError

from auditguard.core.config import GuardConfig
from auditguard.core.domain_types import CandidateQuery
from auditguard.core.exceptions import QueryValidationError
from auditguard.core.interfaces import ValidationRule
from auditguard.core.result import ResultBuilder, ValidationResult

from .rules import build_default_rules

logger = structlog.get_logger()

AGGREGATE_RULE_NAME = "safety_validation"
SCHEMA_RULE_NAME = "schema_validation"


def _summarize(result: ValidationResult) -> dict[str, Any]:
    return {
        "is_valid": result.is_valid,
        "severity": result.severity.value,
        "message": result.message,
        "error_count": len(result.errors),
        "warning_count": len(result.warnings),
    }


class SafetyValidator:
    """Run the rule set against candidate queries.

    Rules are evaluated in priority order (higher first). Rules without
    a configured priority run after prioritized ones, in the order they
    were given. Ordering only makes output deterministic; it never
    changes which rules run.

    Attributes:
        config: Configuration the default rules were built from.
        rules: All registered rules, in evaluation order.

    Example:
        >>> validator = SafetyValidator()
        >>> result = validator.validate(CandidateQuery(log_source="kube-apiserver"))
        >>> result.is_valid
        True
    """

    def __init__(
        self,
        config: GuardConfig | None = None,
        rules: list[ValidationRule] | None = None,
    ) -> None:
        """Initialize the validator.

        Args:
            config: Guard configuration. Defaults are used when omitted.
            rules: Explicit rule list. When omitted the twelve default
                rules are built from ``config``.
        """
        self.config = config or GuardConfig()
        registered = rules if rules is not None else build_default_rules(self.config)
        self._priorities = dict(self.config.rule_engine.rule_priorities)
        self.rules = self._order(registered)

    def _order(self, rules: list[ValidationRule]) -> list[ValidationRule]:
        priorities = self._priorities

        def sort_key(rule: ValidationRule) -> tuple[int, int]:
            if rule.name in priorities:
                return (0, -priorities[rule.name])
            return (1, 0)

        return sorted(rules, key=sort_key)

    def get_applicable_rules(self) -> list[ValidationRule]:
        """Return the enabled rules in evaluation order."""
        return [rule for rule in self.rules if rule.enabled]

    def get_validation_stats(self) -> dict[str, Any]:
        """Describe the registered rule set.

        Returns:
            Rule counts, rule names in evaluation order, and the priority
            of each rule (None for rules without one).
        """
        applicable = self.get_applicable_rules()
        return {
            "total_rules": len(self.rules),
            "enabled_rules": len(applicable),
            "disabled_rules": len(self.rules) - len(applicable),
            "rule_names": [rule.name for rule in self.rules],
            "enabled_rule_names": [rule.name for rule in applicable],
            "rule_priorities": {
                rule.name: self._priorities.get(rule.name) for rule in self.rules
            },
        }

    def validate(self, query: CandidateQuery | None) -> ValidationResult:
        """Validate a query against every enabled rule.

        Args:
            query: The candidate query. None is reported as an error
                rather than raised.

        Returns:
            The aggregate result. ``details["rule_results"]`` summarizes
            each rule's outcome by name.
        """
        builder = ResultBuilder(AGGREGATE_RULE_NAME, query)

        if query is None:
            builder.error("Query is required")
            result = builder.build("Query")
            logger.warning("query_rejected", reason="missing_query")
            return result

        applicable = self.get_applicable_rules()
        log = logger.bind(log_source=query.log_source)
        log.debug("query_validation_started", rules=len(applicable))

        rule_results: dict[str, dict[str, Any]] = {}
        failed_rules: list[str] = []
        for rule in applicable:
            result = rule.validate(query)
            for error in result.errors:
                builder.error(error)
            for warning in result.warnings:
                builder.warn(warning)
            for recommendation in result.recommendations:
                builder.recommend(recommendation)

            rule_results[rule.name] = _summarize(result)
            if not result.is_valid:
                failed_rules.append(rule.name)

        builder.detail("rule_results", rule_results)
        builder.detail("evaluation_order", [rule.name for rule in applicable])
        builder.detail("total_rules_applied", len(applicable))
        builder.detail("failed_rules", failed_rules)

        aggregate = builder.build("Query")
        if aggregate.is_valid:
            log.info("query_validated", warnings=len(aggregate.warnings))
        else:
            log.warning(
                "query_rejected",
                failed_rules=failed_rules,
                errors=len(aggregate.errors),
            )
        return aggregate

    def validate_payload(self, payload: Mapping[str, Any]) -> ValidationResult:
        """Parse a raw mapping into a query and validate it.

        Args:
            payload: Decoded JSON or YAML object describing the query.

        Returns:
            A ``schema_validation`` failure when the payload does not
            parse, otherwise the aggregate result of ``validate``.
        """
        try:
            query = CandidateQuery.model_validate(payload)
        except ValidationError as e:
            builder = ResultBuilder(SCHEMA_RULE_NAME)
            for error in e.errors():
                location = ".".join(str(part) for part in error["loc"]) or "query"
                builder.error(f"{location}: {error['msg']}")
            logger.warning("query_rejected", reason="schema", errors=e.error_count())
            return builder.build("Schema", ["Check the query against the query schema"])
        return self.validate(query)

    def check(self, query: CandidateQuery | None) -> ValidationResult:
        """Validate a query and raise if it is not admissible.

        Args:
            query: The candidate query.

        Returns:
            The aggregate result when the query is admissible.

        Raises:
            QueryValidationError: If any rule reported an error.
        """
        result = self.validate(query)
        if not result.is_valid:
            raise QueryValidationError(
                f"Query rejected: {'; '.join(result.errors)}", result=result
            )
        return result
