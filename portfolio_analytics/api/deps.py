"""API dependencies."""

from fastapi import HTTPException, Request, status

from portfolio_analytics.services.analytics_service import PortfolioAnalyticsService


def get_analytics_service(request: Request) -> PortfolioAnalyticsService:
    """Return the analytics service built at startup."""
    service = getattr(request.app.state, "analytics_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Analytics service is not initialized",
        )
    return service
