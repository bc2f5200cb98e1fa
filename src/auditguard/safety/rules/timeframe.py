"""Timeframe, time range, result limit and business hours bounds."""

from __future__ import annotations

import re
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from auditguard.core.config import TimeframeConfig
from auditguard.core.domain_types import BusinessHours, CandidateQuery, TimeRange
from auditguard.core.result import ResultBuilder, Severity, ValidationResult
from auditguard.safety.matcher import is_allowed

_UNIT_PATTERNS: tuple[tuple[re.Pattern[str], int], ...] = (
    (re.compile(r"(\d+)_days?_ago", re.IGNORECASE), 1),
    (re.compile(r"(\d+)_weeks?_ago", re.IGNORECASE), 7),
    (re.compile(r"(\d+)_months?_ago", re.IGNORECASE), 30),
)

_SUB_DAY_TIMEFRAMES = frozenset(
    {
        "today", "yesterday", "1_hour_ago", "2_hours_ago",
        "3_hours_ago", "6_hours_ago", "12_hours_ago",
    }
)


def days_back(timeframe: str) -> int:
    """Estimate how many days a named timeframe reaches back.

    Months count as 30 days. Timeframes of a day or less count as 1;
    unknown timeframes, or counts too long to convert, count as 0.

    Examples:
        >>> days_back("30_days_ago")
        30
        >>> days_back("2_weeks_ago")
        14
        >>> days_back("6_hours_ago")
        1
    """
    for pattern, multiplier in _UNIT_PATTERNS:
        match = pattern.search(timeframe)
        if match:
            try:
                return int(match.group(1)) * multiplier
            except ValueError:
                # Digit run too long to convert
                continue

    if timeframe.casefold() in _SUB_DAY_TIMEFRAMES:
        return 1
    return 0


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # Naive timestamps are taken to be UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class TimeframeRule:
    """Keep the query's time window and result limit within bounds.

    Attributes:
        config: Timeframe bounds.
        clock: Returns the current time; injectable for tests.
    """

    name = "timeframe_validation"
    description = "Validates timeframe limits and constraints for audit queries"
    severity = Severity.WARNING

    def __init__(
        self,
        config: TimeframeConfig | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.config = config or TimeframeConfig()
        self.clock = clock

    @property
    def enabled(self) -> bool:
        """Whether this rule runs, taken from its config section."""
        return self.config.enabled

    def validate(self, query: CandidateQuery) -> ValidationResult:
        """Check the named timeframe, explicit range, limit and business hours.

        Args:
            query: Candidate query; unset fields are skipped.

        Returns:
            Result with an error per out-of-bounds value.
        """
        builder = ResultBuilder(self.name, query)
        config = self.config

        if query.timeframe:
            if not is_allowed(query.timeframe, config.allowed_timeframes):
                builder.error(f"Timeframe '{query.timeframe}' is not in allowed list")
            if days_back(query.timeframe) > config.max_days_back:
                builder.error(
                    f"Timeframe '{query.timeframe}' exceeds maximum allowed days back "
                    f"({config.max_days_back})"
                )

        if query.time_range is not None:
            problem = self._time_range_problem(query.time_range)
            if problem:
                builder.error(problem)

        if query.limit != 0:
            if query.limit > config.max_limit:
                builder.error(
                    f"Limit {query.limit} exceeds maximum allowed limit of {config.max_limit}"
                )
            elif query.limit < config.min_limit:
                builder.error(
                    f"Limit {query.limit} is below minimum allowed limit of {config.min_limit}"
                )

        if query.business_hours is not None:
            problem = self._business_hours_problem(query.business_hours)
            if problem:
                builder.error(problem)

        return builder.build(
            "Timeframe",
            [
                "Use allowed timeframe values from the configuration",
                f"Keep timeframes within {config.max_days_back} days back",
                f"Use limits between {config.min_limit} and {config.max_limit}",
                "Ensure time ranges are valid and within allowed bounds",
            ],
        )

    def _time_range_problem(self, time_range: TimeRange) -> str | None:
        """Return the first problem with an explicit time range, if any."""
        start = _as_utc(time_range.start)
        end = _as_utc(time_range.end)
        max_days = self.config.max_days_back

        if start > end:
            return f"time range start ({start.isoformat()}) is after end ({end.isoformat()})"

        now = _as_utc(self.clock())
        if start < now - timedelta(days=max_days):
            return (
                f"time range start ({start.isoformat()}) is more than {max_days} days in the past"
            )

        if start > now or end > now:
            return "time range cannot be in the future"

        max_duration = timedelta(days=max_days)
        if end - start > max_duration:
            return (
                f"time range duration ({end - start}) exceeds maximum allowed "
                f"duration ({max_duration})"
            )
        return None

    @staticmethod
    def _business_hours_problem(hours: BusinessHours) -> str | None:
        if not 0 <= hours.start_hour <= 23:
            return f"business hours start hour ({hours.start_hour}) must be between 0 and 23"
        if not 0 <= hours.end_hour <= 23:
            return f"business hours end hour ({hours.end_hour}) must be between 0 and 23"
        if hours.start_hour == hours.end_hour:
            return "business hours start and end hours cannot be the same"
        return None
