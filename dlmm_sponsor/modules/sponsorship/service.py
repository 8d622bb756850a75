from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from dlmm_sponsor.core.clients.enoki import ExecutedTransaction, SponsoredTransaction
from dlmm_sponsor.modules.sponsorship.tracker import EligibilityTracker
from dlmm_sponsor.modules.sponsorship.types import SponsorshipLimits, SponsorshipStats
from dlmm_sponsor.modules.sponsorship.validation import (
    allowed_move_call_targets,
    validate_position_transaction,
)

logger = logging.getLogger(__name__)

POSITION_CREATION_OPERATION = "position_creation"


class SponsorClientPort(Protocol):
    async def create_sponsored_transaction(
        self,
        *,
        network: str,
        transaction_kind_bytes: str,
        sender: str,
        allowed_move_call_targets: list[str],
        allowed_addresses: list[str],
    ) -> SponsoredTransaction: ...

    async def execute_sponsored_transaction(self, *, digest: str, signature: str) -> ExecutedTransaction: ...


class SponsorshipNotEligibleError(Exception):
    def __init__(self, reason: str | None, limits: SponsorshipLimits | None) -> None:
        super().__init__(reason or "Not eligible for sponsorship")
        self.reason = reason
        self.limits = limits


class InvalidPositionTransactionError(ValueError):
    def __init__(self, reason: str | None) -> None:
        super().__init__(reason or "Invalid DLMM transaction")
        self.reason = reason


@dataclass(frozen=True, slots=True)
class PositionSponsorshipRequest:
    transaction_kind_bytes: str
    sender: str
    pool_id: str
    token_a: str
    token_b: str
    position_value_usd: float = 0.0
    user_email: str | None = None
    network: str = "testnet"


@dataclass(frozen=True, slots=True)
class PositionSponsorshipData:
    bytes: str
    digest: str
    remaining_limits: SponsorshipLimits


class SponsorshipService:
    def __init__(
        self,
        tracker: EligibilityTracker,
        sponsor_client: SponsorClientPort,
        *,
        package_id: str,
    ) -> None:
        self._tracker = tracker
        self._sponsor_client = sponsor_client
        self._package_id = package_id

    async def sponsor_position(self, request: PositionSponsorshipRequest) -> PositionSponsorshipData:
        logger.info(
            "Position sponsorship requested sender=%s pool=%s token_a=%s token_b=%s position_value_usd=%s",
            request.sender,
            request.pool_id,
            request.token_a,
            request.token_b,
            request.position_value_usd,
        )

        eligibility = self._tracker.check_eligibility(request.sender, request.position_value_usd)
        if not eligibility.eligible:
            logger.info("Sponsorship denied sender=%s reason=%s", request.sender, eligibility.reason)
            raise SponsorshipNotEligibleError(eligibility.reason, eligibility.limits)

        validation = validate_position_transaction(
            request.transaction_kind_bytes,
            request.pool_id,
            request.token_a,
            request.token_b,
        )
        if not validation.valid:
            raise InvalidPositionTransactionError(validation.reason)

        sponsored = await self._sponsor_client.create_sponsored_transaction(
            network=request.network,
            transaction_kind_bytes=request.transaction_kind_bytes,
            sender=request.sender,
            allowed_move_call_targets=allowed_move_call_targets(self._package_id),
            allowed_addresses=[request.sender],
        )

        self._tracker.record_usage(request.sender, request.position_value_usd, POSITION_CREATION_OPERATION)
        logger.info("Position sponsored sender=%s digest=%s", request.sender, sponsored.digest)

        return PositionSponsorshipData(
            bytes=sponsored.bytes,
            digest=sponsored.digest,
            remaining_limits=self._tracker.remaining_limits(request.sender),
        )

    async def execute_position(self, digest: str, signature: str) -> ExecutedTransaction:
        logger.info("Executing sponsored position digest=%s", digest)
        result = await self._sponsor_client.execute_sponsored_transaction(digest=digest, signature=signature)
        logger.info("Sponsored position executed digest=%s", result.digest)
        return result

    def remaining_limits(self, sender: str) -> SponsorshipLimits:
        return self._tracker.remaining_limits(sender)

    def stats(self) -> SponsorshipStats:
        return self._tracker.aggregate_stats()
