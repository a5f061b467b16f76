"""Rebalancing recommendation model."""

import enum
from dataclasses import dataclass
from typing import Optional, Tuple


class RecommendationType(str, enum.Enum):
    REBALANCE = "rebalance"
    TAX_LOSS_HARVEST = "tax_loss_harvest"
    RISK_REDUCTION = "risk_reduction"
    OPPORTUNITY = "opportunity"


class Priority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {
    Priority.LOW: 1,
    Priority.MEDIUM: 2,
    Priority.HIGH: 3,
    Priority.CRITICAL: 4,
}


class ActionType(str, enum.Enum):
    BUY = "buy"
    SELL = "sell"
    SWAP = "swap"


class Urgency(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class RebalancingAction:
    action_type: ActionType
    to_asset: str
    amount: float
    amount_usd: float
    reason: str
    urgency: Urgency
    from_asset: Optional[str] = None


@dataclass(frozen=True)
class ExpectedImpact:
    """Heuristic impact estimate, in % except cost (USD)."""

    risk_reduction: float
    return_improvement: float
    cost_estimate: float
    tax_savings: Optional[float] = None


@dataclass(frozen=True)
class RebalancingRecommendation:
    id: str
    type: RecommendationType
    priority: Priority
    title: str
    description: str
    actions: Tuple[RebalancingAction, ...]
    expected_impact: ExpectedImpact
    confidence: float  # 0-1
