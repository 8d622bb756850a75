from __future__ import annotations

import logging

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from dlmm_sponsor.core.clients.enoki import EnokiError
from dlmm_sponsor.core.errors import api_error
from dlmm_sponsor.dependencies import SponsorshipContext, get_sponsorship_context
from dlmm_sponsor.modules.sponsorship.schemas import (
    AnalyticsPayload,
    DlmmConfigPayload,
    ExecutedTransactionPayload,
    ExecutePositionRequest,
    ExecutePositionResponse,
    LimitsPayload,
    RemainingLimitsResponse,
    SponsorPositionRequest,
    SponsorPositionResponse,
    SponsorshipInfo,
    SponsorshipStatsResponse,
)
from dlmm_sponsor.modules.sponsorship.service import (
    InvalidPositionTransactionError,
    PositionSponsorshipRequest,
    SponsorshipNotEligibleError,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["sponsorship"])


@router.post("/sponsor-position", response_model=SponsorPositionResponse)
async def sponsor_position(
    payload: SponsorPositionRequest = Body(...),
    context: SponsorshipContext = Depends(get_sponsorship_context),
) -> SponsorPositionResponse | JSONResponse:
    missing = payload.missing_fields()
    if missing:
        return JSONResponse(
            status_code=400,
            content=api_error(f"Missing required fields: {', '.join(missing)}"),
        )

    request = PositionSponsorshipRequest(
        transaction_kind_bytes=payload.transaction_kind_bytes or "",
        sender=payload.sender or "",
        pool_id=payload.pool_id or "",
        token_a=payload.token_a or "",
        token_b=payload.token_b or "",
        position_value_usd=payload.position_value_usd,
        user_email=payload.user_email,
        network=payload.network or context.settings.default_network,
    )
    try:
        result = await context.service.sponsor_position(request)
    except SponsorshipNotEligibleError as exc:
        limits = LimitsPayload.from_data(exc.limits).model_dump() if exc.limits else None
        return JSONResponse(
            status_code=403,
            content=api_error("Not eligible for sponsorship", reason=exc.reason, limits=limits),
        )
    except InvalidPositionTransactionError as exc:
        return JSONResponse(
            status_code=400,
            content=api_error("Invalid DLMM transaction", reason=exc.reason),
        )
    except EnokiError as exc:
        logger.error("Position sponsorship failed sender=%s code=%s", request.sender, exc.code)
        return JSONResponse(
            status_code=500,
            content=api_error("Failed to sponsor position creation", details=exc.message),
        )

    return SponsorPositionResponse(
        bytes=result.bytes,
        digest=result.digest,
        sponsorship_info=SponsorshipInfo(remaining_limits=LimitsPayload.from_data(result.remaining_limits)),
    )


@router.post("/execute-position", response_model=ExecutePositionResponse)
async def execute_position(
    payload: ExecutePositionRequest = Body(...),
    context: SponsorshipContext = Depends(get_sponsorship_context),
) -> ExecutePositionResponse | JSONResponse:
    if not payload.digest or not payload.signature:
        return JSONResponse(
            status_code=400,
            content=api_error("Missing required fields: digest, signature"),
        )
    try:
        result = await context.service.execute_position(payload.digest, payload.signature)
    except EnokiError as exc:
        logger.error("Sponsored position execution failed digest=%s code=%s", payload.digest, exc.code)
        return JSONResponse(
            status_code=500,
            content=api_error("Failed to execute sponsored position creation", details=exc.message),
        )
    return ExecutePositionResponse(result=ExecutedTransactionPayload(digest=result.digest))


@router.get("/sponsorship-limits/{sender}", response_model=RemainingLimitsResponse)
async def sponsorship_limits(
    sender: str,
    context: SponsorshipContext = Depends(get_sponsorship_context),
) -> RemainingLimitsResponse:
    limits = context.service.remaining_limits(sender)
    return RemainingLimitsResponse(sender=sender, remaining_limits=LimitsPayload.from_data(limits))


@router.get("/sponsorship-stats", response_model=SponsorshipStatsResponse)
async def sponsorship_stats(
    context: SponsorshipContext = Depends(get_sponsorship_context),
) -> SponsorshipStatsResponse:
    settings = context.settings
    return SponsorshipStatsResponse(
        analytics=AnalyticsPayload.from_data(context.service.stats()),
        config=DlmmConfigPayload(
            package_id=settings.package_id,
            factory_id=settings.factory_id,
            allowed_modules=settings.allowed_modules,
            allowed_functions=settings.allowed_functions,
        ),
    )
