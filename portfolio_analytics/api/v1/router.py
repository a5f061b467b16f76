"""API v1 router."""

from fastapi import APIRouter

from portfolio_analytics.api.v1.endpoints import wallets

api_router = APIRouter()

api_router.include_router(wallets.router, prefix="/wallets", tags=["Wallets"])
