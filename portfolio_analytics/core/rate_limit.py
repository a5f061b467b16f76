"""Rate limiting configuration using slowapi."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from portfolio_analytics.core.config import settings

# Create limiter instance
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[f"{settings.RATE_LIMIT_PER_MINUTE}/minute"],
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    strategy="fixed-window",
)

# Specific rate limits for different endpoint types
RATE_LIMITS = {
    # Reads over the in-memory history
    "api_read": f"{settings.READ_RATE_LIMIT_PER_MINUTE}/minute",

    # Snapshot creation calls the holdings API
    "snapshot_create": f"{settings.RATE_LIMIT_PER_MINUTE}/minute",
}
