from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from dlmm_sponsor.core.clients.enoki import EnokiClient
from dlmm_sponsor.core.clients.http import close_http_client, init_http_client
from dlmm_sponsor.core.config.settings import Settings, get_settings
from dlmm_sponsor.core.handlers.exceptions import add_exception_handlers
from dlmm_sponsor.core.middleware.request_id import add_request_id_middleware
from dlmm_sponsor.modules.sponsorship import api as sponsorship_api
from dlmm_sponsor.modules.sponsorship.repository import InMemoryUsageRepository
from dlmm_sponsor.modules.sponsorship.schemas import DlmmContractsPayload, HealthResponse
from dlmm_sponsor.modules.sponsorship.service import SponsorClientPort
from dlmm_sponsor.modules.sponsorship.tracker import EligibilityTracker
from dlmm_sponsor.modules.sponsorship.types import SponsorshipLimitsConfig

logger = logging.getLogger(__name__)


def build_eligibility_tracker(settings: Settings) -> EligibilityTracker:
    config = SponsorshipLimitsConfig(
        daily_limit=settings.daily_limit,
        monthly_limit=settings.monthly_limit,
        total_value_limit=settings.total_value_limit,
        cost_per_operation=settings.cost_per_operation,
        high_value_threshold=settings.high_value_threshold,
    )
    return EligibilityTracker(InMemoryUsageRepository(), config)


def create_app(
    settings: Settings | None = None,
    *,
    tracker: EligibilityTracker | None = None,
    sponsor_client: SponsorClientPort | None = None,
) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        await init_http_client()
        if not settings.enoki_private_key:
            logger.warning("DLMM_SPONSOR_ENOKI_PRIVATE_KEY is not set; sponsorship requests will fail")
        logger.info(
            "DLMM sponsor service started port=%s package_id=%s network=%s",
            settings.port,
            settings.package_id,
            settings.default_network,
        )
        try:
            yield
        finally:
            await close_http_client()
            logger.info("DLMM sponsor service stopped")

    app = FastAPI(title="dlmm-sponsor", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.eligibility_tracker = tracker or build_eligibility_tracker(settings)
    app.state.sponsor_client = sponsor_client or EnokiClient.from_settings(settings)

    add_request_id_middleware(app)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    add_exception_handlers(app)

    app.include_router(sponsorship_api.router)

    @app.get("/health", response_model=HealthResponse)
    async def health(request: Request) -> HealthResponse:
        current: Settings = request.app.state.settings
        return HealthResponse(
            dlmm_config=DlmmContractsPayload(package_id=current.package_id, factory_id=current.factory_id),
        )

    return app


app = create_app()
