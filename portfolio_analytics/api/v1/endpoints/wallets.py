"""Wallet analytics endpoints."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from portfolio_analytics.api.deps import get_analytics_service
from portfolio_analytics.core.rate_limit import RATE_LIMITS, limiter
from portfolio_analytics.schemas import (
    AttributionResponse,
    HistoricalDataResponse,
    PortfolioSummaryResponse,
    RecommendationResponse,
    SnapshotListResponse,
    SnapshotResponse,
)
from portfolio_analytics.services.analytics_service import PortfolioAnalyticsService
from portfolio_analytics.services.snapshot_store import normalize_wallet_id

router = APIRouter()


@router.post(
    "/{wallet_id}/snapshots",
    response_model=SnapshotResponse,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(RATE_LIMITS["snapshot_create"])
async def create_snapshot(
    request: Request,
    wallet_id: str,
    service: PortfolioAnalyticsService = Depends(get_analytics_service),
):
    """Fetch current holdings and record a new snapshot."""
    snapshot = await service.create_snapshot(wallet_id)
    return SnapshotResponse.model_validate(snapshot)


@router.get("/{wallet_id}/snapshots", response_model=SnapshotListResponse)
@limiter.limit(RATE_LIMITS["api_read"])
async def list_snapshots(
    request: Request,
    wallet_id: str,
    limit: int = Query(100, ge=1, le=1000),
    service: PortfolioAnalyticsService = Depends(get_analytics_service),
):
    snapshots = service.get_snapshots(wallet_id, limit=limit)
    return SnapshotListResponse(
        wallet_id=normalize_wallet_id(wallet_id),
        count=len(snapshots),
        snapshots=[SnapshotResponse.model_validate(s) for s in snapshots],
    )


@router.get("/{wallet_id}/history", response_model=HistoricalDataResponse)
@limiter.limit(RATE_LIMITS["api_read"])
async def get_history(
    request: Request,
    wallet_id: str,
    service: PortfolioAnalyticsService = Depends(get_analytics_service),
):
    data = service.get_historical_data(wallet_id)
    if data is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No snapshot history for this wallet",
        )
    return HistoricalDataResponse.model_validate(data)


@router.get("/{wallet_id}/attribution", response_model=AttributionResponse)
@limiter.limit(RATE_LIMITS["api_read"])
async def get_attribution(
    request: Request,
    wallet_id: str,
    service: PortfolioAnalyticsService = Depends(get_analytics_service),
):
    return AttributionResponse.model_validate(service.compute_attribution(wallet_id))


@router.get("/{wallet_id}/recommendations", response_model=List[RecommendationResponse])
@limiter.limit(RATE_LIMITS["api_read"])
async def get_recommendations(
    request: Request,
    wallet_id: str,
    service: PortfolioAnalyticsService = Depends(get_analytics_service),
):
    return [
        RecommendationResponse.model_validate(r)
        for r in service.generate_recommendations(wallet_id)
    ]


@router.get("/{wallet_id}/summary", response_model=PortfolioSummaryResponse)
@limiter.limit(RATE_LIMITS["snapshot_create"])
async def get_summary(
    request: Request,
    wallet_id: str,
    service: PortfolioAnalyticsService = Depends(get_analytics_service),
):
    """Create a snapshot and return it with attribution and recommendations."""
    summary = await service.get_portfolio_summary(wallet_id)
    return PortfolioSummaryResponse.model_validate(summary)
