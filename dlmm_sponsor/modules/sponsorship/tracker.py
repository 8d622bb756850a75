from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import replace
from datetime import datetime
from typing import Protocol

from dlmm_sponsor.core.utils.time import utcnow
from dlmm_sponsor.modules.sponsorship.types import (
    DAILY_LIMIT_REASON,
    MONTHLY_LIMIT_REASON,
    EligibilityResult,
    SponsorshipLimits,
    SponsorshipLimitsConfig,
    SponsorshipStats,
    UsageRecord,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class UsageRepositoryPort(Protocol):
    def get(self, user_id: str) -> UsageRecord | None: ...

    def update(
        self,
        user_id: str,
        mutate: Callable[[UsageRecord | None], UsageRecord],
    ) -> UsageRecord: ...

    def list_records(self) -> Sequence[UsageRecord]: ...

    def count(self) -> int: ...


class EligibilityTracker:
    """Per-user sponsorship counters with calendar day and month windows.

    Windows roll over when the calendar date of ``last_reset`` differs from the
    current date, not after a fixed duration. Reads apply the rollover to a copy;
    only ``record_usage`` writes it back.
    """

    def __init__(
        self,
        repository: UsageRepositoryPort,
        config: SponsorshipLimitsConfig | None = None,
        *,
        clock: Clock = utcnow,
    ) -> None:
        self._repository = repository
        self._config = config or SponsorshipLimitsConfig()
        self._clock = clock

    @property
    def config(self) -> SponsorshipLimitsConfig:
        return self._config

    def configured_limits(self) -> SponsorshipLimits:
        return SponsorshipLimits(
            daily_positions=self._config.daily_limit,
            monthly_positions=self._config.monthly_limit,
            total_sponsorship_value_usd=self._config.total_value_limit,
        )

    def check_eligibility(self, user_id: str, declared_value: float) -> EligibilityResult:
        record = self._repository.get(user_id)
        if record is None:
            return EligibilityResult(eligible=True)

        record = roll_usage_windows(record, self._clock())

        if record.daily_count >= self._config.daily_limit:
            return EligibilityResult(eligible=False, reason=DAILY_LIMIT_REASON, limits=self.configured_limits())

        if record.monthly_count >= self._config.monthly_limit:
            return EligibilityResult(eligible=False, reason=MONTHLY_LIMIT_REASON, limits=self.configured_limits())

        # Same outcome as the fallthrough; high-value positions have no separate allowance yet.
        if declared_value > self._config.high_value_threshold:
            logger.debug("High value position user=%s position_value_usd=%s", user_id, declared_value)
            return EligibilityResult(eligible=True)

        return EligibilityResult(eligible=True)

    def record_usage(self, user_id: str, declared_value: float, operation: str) -> None:
        now = self._clock()
        cost = self._config.cost_per_operation

        def _apply(current: UsageRecord | None) -> UsageRecord:
            record = UsageRecord(last_reset=now) if current is None else roll_usage_windows(current, now)
            record.daily_count += 1
            record.monthly_count += 1
            record.lifetime_count += 1
            record.total_value_sponsored += cost
            return record

        record = self._repository.update(user_id, _apply)
        logger.info(
            "Sponsorship tracked user=%s operation=%s position_value_usd=%s gas_cost_usd=%s "
            "daily_count=%s monthly_count=%s",
            user_id,
            operation,
            declared_value,
            cost,
            record.daily_count,
            record.monthly_count,
        )

    def remaining_limits(self, user_id: str) -> SponsorshipLimits:
        record = self._repository.get(user_id)
        if record is None:
            return self.configured_limits()

        record = roll_usage_windows(record, self._clock())
        return SponsorshipLimits(
            daily_positions=max(0, self._config.daily_limit - record.daily_count),
            monthly_positions=max(0, self._config.monthly_limit - record.monthly_count),
            total_sponsorship_value_usd=max(0.0, self._config.total_value_limit - record.total_value_sponsored),
        )

    def aggregate_stats(self) -> SponsorshipStats:
        records = self._repository.list_records()
        total_users = len(records)
        total_value = 0.0
        total_positions = 0
        lifetime_positions = 0
        for record in records:
            total_value += record.total_value_sponsored
            # Stored monthly counts, so positions from earlier months drop out after a rollover.
            total_positions += record.monthly_count
            lifetime_positions += record.lifetime_count

        return SponsorshipStats(
            total_users=total_users,
            total_positions_sponsored=total_positions,
            total_value_sponsored=total_value,
            average_per_user=total_value / total_users if total_users > 0 else 0.0,
            lifetime_positions_sponsored=lifetime_positions,
        )


def roll_usage_windows(record: UsageRecord, now: datetime) -> UsageRecord:
    last = record.last_reset
    if (now.year, now.month, now.day) == (last.year, last.month, last.day):
        return record
    monthly_count = record.monthly_count if (now.year, now.month) == (last.year, last.month) else 0
    return replace(record, last_reset=now, daily_count=0, monthly_count=monthly_count)
