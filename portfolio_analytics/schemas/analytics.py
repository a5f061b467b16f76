"""Attribution, recommendation and summary schemas."""

from typing import List, Optional

from pydantic import BaseModel

from portfolio_analytics.models.recommendation import (
    ActionType,
    Priority,
    RecommendationType,
    Urgency,
)
from portfolio_analytics.schemas.snapshot import SnapshotResponse


class AssetContributionResponse(BaseModel):
    symbol: str
    chain_id: int
    weight: float
    return_pct: float
    contribution: float
    contribution_percent: float

    class Config:
        from_attributes = True


class ChainContributionResponse(BaseModel):
    chain_id: int
    chain_name: str
    weight: float
    return_pct: float
    contribution: float
    contribution_percent: float

    class Config:
        from_attributes = True


class SectorContributionResponse(BaseModel):
    sector_name: str
    weight: float
    return_pct: float
    contribution: float
    contribution_percent: float
    risk_contribution: float

    class Config:
        from_attributes = True


class AttributionBreakdownResponse(BaseModel):
    allocation_effect: float
    selection_effect: float
    interaction_effect: float
    currency_effect: float
    timing_effect: float

    class Config:
        from_attributes = True


class AttributionResponse(BaseModel):
    """Schema for a performance attribution."""

    asset_contributions: List[AssetContributionResponse]
    chain_contributions: List[ChainContributionResponse]
    sector_contributions: List[SectorContributionResponse]
    total_return: float
    total_attribution: float
    unexplained_return: float
    breakdown: AttributionBreakdownResponse

    class Config:
        from_attributes = True


class RebalancingActionResponse(BaseModel):
    action_type: ActionType
    from_asset: Optional[str] = None
    to_asset: str
    amount: float
    amount_usd: float
    reason: str
    urgency: Urgency

    class Config:
        from_attributes = True


class ExpectedImpactResponse(BaseModel):
    risk_reduction: float
    return_improvement: float
    cost_estimate: float
    tax_savings: Optional[float] = None

    class Config:
        from_attributes = True


class RecommendationResponse(BaseModel):
    """Schema for a rebalancing recommendation."""

    id: str
    type: RecommendationType
    priority: Priority
    title: str
    description: str
    actions: List[RebalancingActionResponse]
    expected_impact: ExpectedImpactResponse
    confidence: float

    class Config:
        from_attributes = True


class PortfolioSummaryResponse(BaseModel):
    current_snapshot: SnapshotResponse
    performance_attribution: AttributionResponse
    recommendations: List[RecommendationResponse]

    class Config:
        from_attributes = True
