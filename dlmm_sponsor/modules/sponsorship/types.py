from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

DAILY_LIMIT_REASON = "Daily sponsorship limit reached"
MONTHLY_LIMIT_REASON = "Monthly sponsorship limit reached"


@dataclass(slots=True)
class UsageRecord:
    last_reset: datetime
    daily_count: int = 0
    monthly_count: int = 0
    total_value_sponsored: float = 0.0
    lifetime_count: int = 0


@dataclass(frozen=True, slots=True)
class SponsorshipLimitsConfig:
    daily_limit: int = 3
    monthly_limit: int = 10
    total_value_limit: float = 50.0
    cost_per_operation: float = 0.08
    high_value_threshold: float = 100.0


@dataclass(frozen=True, slots=True)
class SponsorshipLimits:
    daily_positions: int
    monthly_positions: int
    total_sponsorship_value_usd: float


@dataclass(frozen=True, slots=True)
class EligibilityResult:
    eligible: bool
    reason: str | None = None
    limits: SponsorshipLimits | None = None


@dataclass(frozen=True, slots=True)
class SponsorshipStats:
    total_users: int
    total_positions_sponsored: int
    total_value_sponsored: float
    average_per_user: float
    lifetime_positions_sponsored: int
