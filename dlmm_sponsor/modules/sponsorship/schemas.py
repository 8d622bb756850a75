from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from dlmm_sponsor.core.config.settings import SuiNetwork
from dlmm_sponsor.modules.sponsorship.types import SponsorshipLimits, SponsorshipStats


class SponsorModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, serialize_by_alias=True)


class SponsorPositionRequest(SponsorModel):
    transaction_kind_bytes: str | None = None
    sender: str | None = None
    pool_id: str | None = None
    token_a: str | None = None
    token_b: str | None = None
    position_value_usd: float = Field(default=0.0, ge=0, alias="positionValueUSD")
    user_email: str | None = None
    network: SuiNetwork | None = None

    def missing_fields(self) -> list[str]:
        required = {
            "transactionKindBytes": self.transaction_kind_bytes,
            "sender": self.sender,
            "poolId": self.pool_id,
            "tokenA": self.token_a,
            "tokenB": self.token_b,
        }
        return [name for name, value in required.items() if not value]


class ExecutePositionRequest(SponsorModel):
    digest: str | None = None
    signature: str | None = None


class LimitsPayload(SponsorModel):
    daily_positions: int
    monthly_positions: int
    total_sponsorship_value_usd: float = Field(alias="totalSponsorshipValueUSD")

    @classmethod
    def from_data(cls, limits: SponsorshipLimits) -> LimitsPayload:
        return cls(
            daily_positions=limits.daily_positions,
            monthly_positions=limits.monthly_positions,
            total_sponsorship_value_usd=limits.total_sponsorship_value_usd,
        )


class SponsorshipInfo(SponsorModel):
    gas_fee_covered: bool = True
    estimated_savings: str = "$0.05-0.10"
    remaining_limits: LimitsPayload


class SponsorPositionResponse(SponsorModel):
    success: bool = True
    bytes: str
    digest: str
    message: str = "Position creation sponsored successfully"
    sponsorship_info: SponsorshipInfo


class ExecutedTransactionPayload(SponsorModel):
    digest: str


class ExecutePositionResponse(SponsorModel):
    success: bool = True
    result: ExecutedTransactionPayload
    message: str = "Position created successfully with sponsored gas"


class RemainingLimitsResponse(SponsorModel):
    sender: str
    remaining_limits: LimitsPayload


class AnalyticsPayload(SponsorModel):
    total_users: int
    total_positions_sponsored: int
    total_value_sponsored: float
    average_per_user: float
    lifetime_positions_sponsored: int

    @classmethod
    def from_data(cls, stats: SponsorshipStats) -> AnalyticsPayload:
        return cls(
            total_users=stats.total_users,
            total_positions_sponsored=stats.total_positions_sponsored,
            total_value_sponsored=stats.total_value_sponsored,
            average_per_user=stats.average_per_user,
            lifetime_positions_sponsored=stats.lifetime_positions_sponsored,
        )


class DlmmContractsPayload(SponsorModel):
    package_id: str
    factory_id: str


class DlmmConfigPayload(DlmmContractsPayload):
    allowed_modules: list[str] = Field(default_factory=list)
    allowed_functions: list[str] = Field(default_factory=list)


class SponsorshipStatsResponse(SponsorModel):
    analytics: AnalyticsPayload
    config: DlmmConfigPayload


class HealthResponse(SponsorModel):
    status: str = "ok"
    message: str = "DLMM Enoki sponsor service is running"
    dlmm_config: DlmmContractsPayload
