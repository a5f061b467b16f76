"""Wallet analytics endpoint tests."""

import pytest
from httpx import AsyncClient

BASE = "/api/v1/wallets"


@pytest.mark.asyncio
async def test_create_snapshot(client: AsyncClient):
    response = await client.post(f"{BASE}/0xABC/snapshots")
    assert response.status_code == 201
    data = response.json()
    assert data["wallet_id"] == "0xabc"
    assert data["total_value"] == pytest.approx(1000.0)
    assert sum(a["weight"] for a in data["assets"]) == pytest.approx(100.0, abs=0.01)
    assert data["risk_metrics"]["concentration_risk"] == pytest.approx(1.0)
    assert data["chains"][0]["total_value"] == pytest.approx(1000.0)


@pytest.mark.asyncio
async def test_create_snapshot_unknown_wallet(client: AsyncClient):
    response = await client.post(f"{BASE}/0xmissing/snapshots")
    assert response.status_code == 503


@pytest.mark.asyncio
async def test_invalid_wallet_id(client: AsyncClient):
    response = await client.post(f"{BASE}/%20/snapshots")
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_list_snapshots(client: AsyncClient):
    await client.post(f"{BASE}/0xabc/snapshots")
    await client.post(f"{BASE}/0xabc/snapshots")

    response = await client.get(f"{BASE}/0xabc/snapshots")
    assert response.status_code == 200
    data = response.json()
    assert data["count"] == 2
    assert data["snapshots"][0]["timestamp"] >= data["snapshots"][1]["timestamp"]

    response = await client.get(f"{BASE}/0xabc/snapshots", params={"limit": 1})
    assert response.json()["count"] == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("limit", [0, 1001])
async def test_list_snapshots_limit_bounds(client: AsyncClient, limit):
    response = await client.get(f"{BASE}/0xabc/snapshots", params={"limit": limit})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_history(client: AsyncClient):
    response = await client.get(f"{BASE}/0xabc/history")
    assert response.status_code == 404

    await client.post(f"{BASE}/0xabc/snapshots")
    response = await client.get(f"{BASE}/0xabc/history")
    assert response.status_code == 200
    data = response.json()
    assert data["portfolio_values"] == [pytest.approx(1000.0)]
    assert data["asset_prices"]["ETH"] == [pytest.approx(2000.0)]


@pytest.mark.asyncio
async def test_attribution(client: AsyncClient):
    response = await client.get(f"{BASE}/0xabc/attribution")
    assert response.status_code == 404

    await client.post(f"{BASE}/0xabc/snapshots")
    response = await client.get(f"{BASE}/0xabc/attribution")
    assert response.status_code == 200
    data = response.json()
    assert data["unexplained_return"] == 0.0
    assert data["asset_contributions"][0]["contribution"] == pytest.approx(2.0)
    assert data["sector_contributions"][0]["sector_name"] == "Smart Contract Platforms"
    assert data["breakdown"]["currency_effect"] == pytest.approx(0.1)
    assert data["breakdown"]["timing_effect"] == 0.0


@pytest.mark.asyncio
async def test_recommendations(client: AsyncClient):
    response = await client.get(f"{BASE}/0xabc/recommendations")
    assert response.status_code == 200
    assert response.json() == []

    await client.post(f"{BASE}/0xabc/snapshots")
    response = await client.get(f"{BASE}/0xabc/recommendations")
    data = response.json()
    assert data[0]["type"] == "risk_reduction"
    assert data[0]["priority"] == "high"
    assert data[0]["actions"][0]["action_type"] == "sell"
    assert data[0]["actions"][0]["to_asset"] == "USDC"


@pytest.mark.asyncio
async def test_summary(client: AsyncClient):
    response = await client.get(f"{BASE}/0xabc/summary")
    assert response.status_code == 200
    data = response.json()
    assert set(data) == {"current_snapshot", "performance_attribution", "recommendations"}
    assert data["current_snapshot"]["wallet_id"] == "0xabc"
    assert data["recommendations"]
