from __future__ import annotations

from collections.abc import AsyncIterator
from datetime import datetime

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI

from dlmm_sponsor.core.clients.enoki import EnokiError, ExecutedTransaction, SponsoredTransaction
from dlmm_sponsor.core.config.settings import Settings
from dlmm_sponsor.main import create_app
from dlmm_sponsor.modules.sponsorship.repository import InMemoryUsageRepository
from dlmm_sponsor.modules.sponsorship.tracker import EligibilityTracker


class FakeClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class FakeSponsorClient:
    def __init__(self) -> None:
        self.sponsor_calls: list[dict[str, object]] = []
        self.execute_calls: list[dict[str, str]] = []
        self.error: EnokiError | None = None

    async def create_sponsored_transaction(
        self,
        *,
        network: str,
        transaction_kind_bytes: str,
        sender: str,
        allowed_move_call_targets: list[str],
        allowed_addresses: list[str],
    ) -> SponsoredTransaction:
        self.sponsor_calls.append(
            {
                "network": network,
                "transaction_kind_bytes": transaction_kind_bytes,
                "sender": sender,
                "allowed_move_call_targets": allowed_move_call_targets,
                "allowed_addresses": allowed_addresses,
            }
        )
        if self.error is not None:
            raise self.error
        return SponsoredTransaction(bytes="c3BvbnNvcmVk", digest=f"digest_{len(self.sponsor_calls)}")

    async def execute_sponsored_transaction(self, *, digest: str, signature: str) -> ExecutedTransaction:
        self.execute_calls.append({"digest": digest, "signature": signature})
        if self.error is not None:
            raise self.error
        return ExecutedTransaction(digest=digest)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 5, 14, 9, 30))


@pytest.fixture
def tracker(clock: FakeClock) -> EligibilityTracker:
    return EligibilityTracker(InMemoryUsageRepository(), clock=clock)


@pytest.fixture
def fake_sponsor_client() -> FakeSponsorClient:
    return FakeSponsorClient()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(_env_file=None, enoki_private_key="enoki_private_test")


@pytest.fixture
def app_instance(
    test_settings: Settings,
    tracker: EligibilityTracker,
    fake_sponsor_client: FakeSponsorClient,
) -> FastAPI:
    return create_app(test_settings, tracker=tracker, sponsor_client=fake_sponsor_client)


@pytest_asyncio.fixture
async def async_client(app_instance: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app_instance)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
