"""Advanced analysis block checks (threat hunting and statistics)."""

from __future__ import annotations

from auditguard.core.config import AdvancedAnalysisConfig
from auditguard.core.domain_types import AdvancedAnalysis, CandidateQuery
from auditguard.core.result import ResultBuilder, Severity, ValidationResult
from auditguard.safety.matcher import is_allowed

APT_ANALYSIS_TYPES: tuple[str, ...] = (
    "apt_reconnaissance_detection",
    "apt_lateral_movement_detection",
    "apt_data_exfiltration_detection",
    "privilege_escalation_detection",
    "persistence_mechanism_detection",
    "defense_evasion_detection",
    "credential_harvesting_detection",
    "supply_chain_attack_detection",
    "living_off_the_land_detection",
    "c2_communication_detection",
)

STATISTICAL_ANALYSIS_TYPES: tuple[str, ...] = (
    "statistical_analysis",
    "anomaly_detection",
    "behavioral_analysis",
    "correlation_analysis",
    "temporal_pattern_analysis",
)

KILL_CHAIN_PHASES: tuple[str, ...] = (
    "reconnaissance",
    "weaponization",
    "delivery",
    "exploitation",
    "installation",
    "command_control",
    "actions_objectives",
    "initial_access",
    "execution",
    "persistence",
    "privilege_escalation",
    "defense_evasion",
    "credential_access",
    "discovery",
    "lateral_movement",
    "collection",
    "command_and_control",
    "exfiltration",
    "impact",
)

STATISTICAL_BASELINE_WINDOWS: tuple[str, ...] = (
    "7_days",
    "14_days",
    "30_days",
    "60_days",
    "90_days",
)


class AdvancedAnalysisRule:
    """Validate the analysis block of a query.

    The analysis type must be configured explicitly; with the default
    empty allow-list every analysis type is rejected. APT types need a
    kill chain phase, and statistical parameters must stay within their
    usual ranges.
    """

    name = "advanced_analysis_validation"
    description = (
        "Validates advanced analysis configuration including APT detection, "
        "kill chain phases, and statistical analysis parameters"
    )
    severity = Severity.CRITICAL

    def __init__(self, config: AdvancedAnalysisConfig | None = None) -> None:
        self.config = config or AdvancedAnalysisConfig()

    @property
    def enabled(self) -> bool:
        """Whether this rule runs, taken from its config section."""
        return self.config.enabled

    def validate(self, query: CandidateQuery) -> ValidationResult:
        """Check the analysis block against its allow-lists and ranges.

        Args:
            query: Candidate query; a query without an analysis block passes.

        Returns:
            Result with one error per invalid setting and warnings for
            statistical types that carry no parameters.
        """
        builder = ResultBuilder(self.name, query)
        analysis = query.analysis

        if analysis is not None:
            self._validate_type(analysis, builder)
            self._validate_kill_chain_phase(analysis, builder)
            self._validate_statistics(analysis, builder)
            self._validate_threshold(analysis, builder)
            self._validate_time_window(analysis, builder)
            self._validate_grouping_and_sorting(analysis, builder)

        return builder.build(
            "Advanced analysis",
            [
                "Review advanced analysis configuration",
                "Ensure all required fields are present for the analysis type",
                "Verify statistical analysis parameters are within valid ranges",
                "Check kill chain phase requirements for APT analysis types",
            ],
        )

    def _validate_type(self, analysis: AdvancedAnalysis, builder: ResultBuilder) -> None:
        if not analysis.type:
            builder.error("Analysis type is required")
            return

        allowed = self.config.allowed_analysis_types
        if not is_allowed(analysis.type, allowed):
            builder.error(
                f"Invalid analysis type '{analysis.type}'. Allowed types: {', '.join(allowed)}"
            )
            return

        if is_allowed(analysis.type, APT_ANALYSIS_TYPES) and not analysis.kill_chain_phase:
            builder.error(f"Kill chain phase is required for APT analysis type '{analysis.type}'")

        if (
            is_allowed(analysis.type, STATISTICAL_ANALYSIS_TYPES)
            and analysis.statistical_analysis is None
        ):
            builder.warn(
                "Statistical analysis parameters recommended for analysis type "
                f"'{analysis.type}'"
            )

    def _validate_kill_chain_phase(
        self, analysis: AdvancedAnalysis, builder: ResultBuilder
    ) -> None:
        phase = analysis.kill_chain_phase
        if phase and not is_allowed(phase, KILL_CHAIN_PHASES):
            builder.error(
                f"Invalid kill chain phase '{phase}'. "
                f"Allowed phases: {', '.join(KILL_CHAIN_PHASES)}"
            )

    def _validate_statistics(self, analysis: AdvancedAnalysis, builder: ResultBuilder) -> None:
        stats = analysis.statistical_analysis
        if stats is None:
            return

        deviation = stats.pattern_deviation_threshold
        if deviation != 0 and not 0.1 <= deviation <= 10.0:
            builder.error(
                f"Pattern deviation threshold must be between 0.1 and 10.0, got {deviation:.2f}"
            )

        confidence = stats.confidence_interval
        if confidence != 0 and not 0.5 <= confidence <= 0.99:
            builder.error(
                f"Confidence interval must be between 0.5 and 0.99, got {confidence:.2f}"
            )

        if stats.sample_size_minimum != 0 and stats.sample_size_minimum < 10:
            builder.error(
                f"Sample size minimum must be at least 10, got {stats.sample_size_minimum}"
            )

        window = stats.baseline_window
        if window and not is_allowed(window, STATISTICAL_BASELINE_WINDOWS):
            builder.error(
                f"Invalid baseline window '{window}'. "
                f"Allowed windows: {', '.join(STATISTICAL_BASELINE_WINDOWS)}"
            )

    def _validate_threshold(self, analysis: AdvancedAnalysis, builder: ResultBuilder) -> None:
        if analysis.threshold == 0:
            return
        low = self.config.min_threshold_value
        high = self.config.max_threshold_value
        if not low <= analysis.threshold <= high:
            builder.error(
                f"Threshold must be between {low} and {high}, got {analysis.threshold}"
            )

    def _validate_time_window(self, analysis: AdvancedAnalysis, builder: ResultBuilder) -> None:
        allowed = self.config.allowed_time_windows
        if analysis.time_window and not is_allowed(analysis.time_window, allowed):
            builder.error(
                f"Invalid time window '{analysis.time_window}'. "
                f"Allowed windows: {', '.join(allowed)}"
            )

    def _validate_grouping_and_sorting(
        self, analysis: AdvancedAnalysis, builder: ResultBuilder
    ) -> None:
        fields = self.config.allowed_sort_fields
        if analysis.sort_by and not is_allowed(analysis.sort_by, fields):
            builder.error(
                f"Invalid sort field '{analysis.sort_by}'. Allowed fields: {', '.join(fields)}"
            )

        orders = self.config.allowed_sort_orders
        if analysis.sort_order and not is_allowed(analysis.sort_order, orders):
            builder.error(
                f"Invalid sort order '{analysis.sort_order}'. "
                f"Allowed orders: {', '.join(orders)}"
            )

        group_by = analysis.group_by.values()
        if len(group_by) > self.config.max_group_by_fields:
            builder.error(
                "Too many group by fields. Maximum allowed: "
                f"{self.config.max_group_by_fields}, got: {len(group_by)}"
            )
