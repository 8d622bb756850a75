from __future__ import annotations

import logging
from dataclasses import dataclass
from urllib.parse import quote

import aiohttp
from pydantic import BaseModel, ConfigDict, Field, StrictStr, ValidationError

from dlmm_sponsor.core.clients.http import get_http_client
from dlmm_sponsor.core.config.settings import Settings
from dlmm_sponsor.core.types import JsonObject
from dlmm_sponsor.core.utils.request_id import get_request_id

logger = logging.getLogger(__name__)

_SPONSOR_PATH = "/v1/transaction-blocks/sponsor"


class EnokiError(Exception):
    def __init__(self, code: str, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code


@dataclass(frozen=True, slots=True)
class SponsoredTransaction:
    bytes: str
    digest: str


@dataclass(frozen=True, slots=True)
class ExecutedTransaction:
    digest: str


class _SponsorData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    bytes: StrictStr
    digest: StrictStr


class _ExecuteData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    digest: StrictStr


class _EnokiErrorItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    code: StrictStr | None = None
    message: StrictStr | None = None


class _EnokiEnvelope(BaseModel):
    model_config = ConfigDict(extra="ignore")

    data: JsonObject | None = None
    errors: list[_EnokiErrorItem] = Field(default_factory=list)


class EnokiClient:
    """Async client for the Enoki gas sponsorship REST API."""

    def __init__(
        self,
        api_key: str | None,
        *,
        base_url: str,
        timeout_seconds: float,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._session = session

    @classmethod
    def from_settings(cls, settings: Settings, *, session: aiohttp.ClientSession | None = None) -> EnokiClient:
        return cls(
            settings.enoki_private_key,
            base_url=settings.enoki_base_url,
            timeout_seconds=settings.enoki_timeout_seconds,
            session=session,
        )

    async def create_sponsored_transaction(
        self,
        *,
        network: str,
        transaction_kind_bytes: str,
        sender: str,
        allowed_move_call_targets: list[str],
        allowed_addresses: list[str],
    ) -> SponsoredTransaction:
        payload: JsonObject = {
            "network": network,
            "transactionBlockKindBytes": transaction_kind_bytes,
            "sender": sender,
            "allowedMoveCallTargets": list(allowed_move_call_targets),
            "allowedAddresses": list(allowed_addresses),
        }
        data = await self._post(_SPONSOR_PATH, payload)
        try:
            parsed = _SponsorData.model_validate(data)
        except ValidationError as exc:
            raise EnokiError("invalid_response", "Sponsor response missing bytes or digest") from exc
        return SponsoredTransaction(bytes=parsed.bytes, digest=parsed.digest)

    async def execute_sponsored_transaction(self, *, digest: str, signature: str) -> ExecutedTransaction:
        data = await self._post(f"{_SPONSOR_PATH}/{quote(digest, safe='')}", {"signature": signature})
        try:
            parsed = _ExecuteData.model_validate(data)
        except ValidationError as exc:
            raise EnokiError("invalid_response", "Execute response missing digest") from exc
        return ExecutedTransaction(digest=parsed.digest)

    async def _post(self, path: str, payload: JsonObject) -> JsonObject:
        if not self._api_key:
            raise EnokiError("enoki_not_configured", "Enoki private key is not configured")

        headers = {"Authorization": f"Bearer {self._api_key}"}
        request_id = get_request_id()
        if request_id:
            headers["x-request-id"] = request_id

        session = self._session or get_http_client().session
        url = f"{self._base_url}{path}"
        try:
            async with session.post(url, json=payload, headers=headers, timeout=self._timeout) as resp:
                body = await _safe_json(resp)
                status = resp.status
        except aiohttp.ClientError as exc:
            logger.warning("Enoki request failed request_id=%s path=%s error=%s", request_id, path, exc)
            raise EnokiError("upstream_unavailable", f"Enoki request failed: {exc}") from exc

        try:
            envelope = _EnokiEnvelope.model_validate(body)
        except ValidationError as exc:
            raise EnokiError("invalid_response", "Enoki response invalid", status) from exc

        if status >= 400 or envelope.errors:
            logger.warning("Enoki request rejected request_id=%s path=%s status=%s", request_id, path, status)
            raise _error_from_envelope(envelope, status)

        if envelope.data is None:
            raise EnokiError("invalid_response", "Enoki response missing data", status)
        return envelope.data


async def _safe_json(resp: aiohttp.ClientResponse) -> JsonObject:
    try:
        data = await resp.json(content_type=None)
    except Exception:
        text = await resp.text()
        return {"errors": [{"message": text.strip() or f"HTTP {resp.status}"}]}
    return data if isinstance(data, dict) else {"errors": [{"message": str(data)}]}


def _error_from_envelope(envelope: _EnokiEnvelope, status_code: int) -> EnokiError:
    first = envelope.errors[0] if envelope.errors else _EnokiErrorItem()
    code = first.code or f"http_{status_code}"
    message = first.message or f"Enoki request failed ({status_code})"
    return EnokiError(code, message, status_code)
