from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends, Request

from dlmm_sponsor.core.config.settings import Settings
from dlmm_sponsor.modules.sponsorship.service import SponsorClientPort, SponsorshipService
from dlmm_sponsor.modules.sponsorship.tracker import EligibilityTracker


@dataclass(slots=True)
class SponsorshipContext:
    service: SponsorshipService
    settings: Settings


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_eligibility_tracker(request: Request) -> EligibilityTracker:
    return request.app.state.eligibility_tracker


def get_sponsor_client(request: Request) -> SponsorClientPort:
    return request.app.state.sponsor_client


def get_sponsorship_context(
    settings: Settings = Depends(get_app_settings),
    tracker: EligibilityTracker = Depends(get_eligibility_tracker),
    sponsor_client: SponsorClientPort = Depends(get_sponsor_client),
) -> SponsorshipContext:
    service = SponsorshipService(tracker, sponsor_client, package_id=settings.package_id)
    return SponsorshipContext(service=service, settings=settings)
