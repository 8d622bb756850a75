from __future__ import annotations

import pytest

from dlmm_sponsor.core.clients.enoki import EnokiError

pytestmark = pytest.mark.integration

_SENDER = "0xa11ce"


def _position_payload(**overrides: object) -> dict[str, object]:
    payload: dict[str, object] = {
        "transactionKindBytes": "AAEC",
        "sender": _SENDER,
        "poolId": "0xpool",
        "tokenA": "0x2::sui::SUI",
        "tokenB": "0xdba3::usdc::USDC",
        "positionValueUSD": 150,
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_sponsor_position_success(async_client, fake_sponsor_client):
    response = await async_client.post("/api/sponsor-position", json=_position_payload())

    assert response.status_code == 200
    payload = response.json()
    assert payload["success"] is True
    assert payload["bytes"] == "c3BvbnNvcmVk"
    assert payload["digest"] == "digest_1"
    assert payload["message"] == "Position creation sponsored successfully"
    info = payload["sponsorshipInfo"]
    assert info["gasFeeCovered"] is True
    assert info["estimatedSavings"] == "$0.05-0.10"
    assert info["remainingLimits"]["dailyPositions"] == 2
    assert info["remainingLimits"]["monthlyPositions"] == 9
    assert info["remainingLimits"]["totalSponsorshipValueUSD"] == pytest.approx(49.92)
    assert fake_sponsor_client.sponsor_calls[0]["network"] == "testnet"


@pytest.mark.asyncio
async def test_sponsor_position_uses_requested_network(async_client, fake_sponsor_client):
    response = await async_client.post("/api/sponsor-position", json=_position_payload(network="mainnet"))

    assert response.status_code == 200
    assert fake_sponsor_client.sponsor_calls[0]["network"] == "mainnet"


@pytest.mark.asyncio
async def test_sponsor_position_missing_fields(async_client, fake_sponsor_client):
    response = await async_client.post("/api/sponsor-position", json={"sender": _SENDER, "tokenA": ""})

    assert response.status_code == 400
    assert response.json() == {"error": "Missing required fields: transactionKindBytes, poolId, tokenA, tokenB"}
    assert fake_sponsor_client.sponsor_calls == []


@pytest.mark.asyncio
async def test_sponsor_position_daily_limit(async_client):
    for _ in range(3):
        ok = await async_client.post("/api/sponsor-position", json=_position_payload())
        assert ok.status_code == 200

    response = await async_client.post("/api/sponsor-position", json=_position_payload(positionValueUSD=10))

    assert response.status_code == 403
    assert response.json() == {
        "error": "Not eligible for sponsorship",
        "reason": "Daily sponsorship limit reached",
        "limits": {"dailyPositions": 3, "monthlyPositions": 10, "totalSponsorshipValueUSD": 50.0},
    }


@pytest.mark.asyncio
async def test_sponsor_position_invalid_transaction(async_client, fake_sponsor_client):
    response = await async_client.post(
        "/api/sponsor-position",
        json=_position_payload(tokenB="0x2::sui::SUI"),
    )

    assert response.status_code == 400
    assert response.json() == {
        "error": "Invalid DLMM transaction",
        "reason": "Token A and Token B cannot be the same",
    }
    assert fake_sponsor_client.sponsor_calls == []


@pytest.mark.asyncio
async def test_sponsor_position_provider_failure_is_not_tracked(async_client, fake_sponsor_client):
    fake_sponsor_client.error = EnokiError("http_500", "Sponsor unavailable", 500)

    response = await async_client.post("/api/sponsor-position", json=_position_payload())

    assert response.status_code == 500
    assert response.json() == {
        "error": "Failed to sponsor position creation",
        "details": "Sponsor unavailable",
    }
    limits = await async_client.get(f"/api/sponsorship-limits/{_SENDER}")
    assert limits.json()["remainingLimits"]["dailyPositions"] == 3


@pytest.mark.asyncio
async def test_execute_position(async_client, fake_sponsor_client):
    response = await async_client.post("/api/execute-position", json={"digest": "D1", "signature": "sig"})

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "result": {"digest": "D1"},
        "message": "Position created successfully with sponsored gas",
    }
    assert fake_sponsor_client.execute_calls == [{"digest": "D1", "signature": "sig"}]


@pytest.mark.asyncio
async def test_execute_position_requires_digest_and_signature(async_client):
    response = await async_client.post("/api/execute-position", json={"digest": "D1"})

    assert response.status_code == 400
    assert response.json() == {"error": "Missing required fields: digest, signature"}


@pytest.mark.asyncio
async def test_execute_position_provider_failure(async_client, fake_sponsor_client):
    fake_sponsor_client.error = EnokiError("invalid_signature", "Signature rejected", 400)

    response = await async_client.post("/api/execute-position", json={"digest": "D1", "signature": "bad"})

    assert response.status_code == 500
    assert response.json() == {
        "error": "Failed to execute sponsored position creation",
        "details": "Signature rejected",
    }


@pytest.mark.asyncio
async def test_sponsorship_limits_for_new_sender(async_client):
    response = await async_client.get("/api/sponsorship-limits/0xnew")

    assert response.status_code == 200
    assert response.json() == {
        "sender": "0xnew",
        "remainingLimits": {"dailyPositions": 3, "monthlyPositions": 10, "totalSponsorshipValueUSD": 50.0},
    }


@pytest.mark.asyncio
async def test_sponsorship_stats(async_client, test_settings):
    empty = await async_client.get("/api/sponsorship-stats")
    assert empty.status_code == 200
    assert empty.json()["analytics"] == {
        "totalUsers": 0,
        "totalPositionsSponsored": 0,
        "totalValueSponsored": 0.0,
        "averagePerUser": 0.0,
        "lifetimePositionsSponsored": 0,
    }

    await async_client.post("/api/sponsor-position", json=_position_payload())
    await async_client.post("/api/sponsor-position", json=_position_payload(sender="0xb0b"))

    response = await async_client.get("/api/sponsorship-stats")
    payload = response.json()
    analytics = payload["analytics"]
    assert analytics["totalUsers"] == 2
    assert analytics["totalPositionsSponsored"] == 2
    assert analytics["totalValueSponsored"] == pytest.approx(0.16)
    assert analytics["averagePerUser"] == pytest.approx(0.08)
    assert payload["config"] == {
        "packageId": test_settings.package_id,
        "factoryId": test_settings.factory_id,
        "allowedModules": ["position", "position_manager"],
        "allowedFunctions": ["create_position", "create_position_simple", "add_liquidity_to_position"],
    }
