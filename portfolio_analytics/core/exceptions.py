"""Errors raised by the analytics engine."""


class PortfolioAnalyticsError(Exception):
    """Base class for analytics errors scoped to a single wallet."""

    def __init__(self, message: str, wallet_id: str = ""):
        super().__init__(message)
        self.message = message
        self.wallet_id = wallet_id


class DataUnavailable(PortfolioAnalyticsError):
    """The holdings collaborator failed, timed out or returned nothing."""


class NoSnapshotAvailable(PortfolioAnalyticsError):
    """An operation needs a snapshot but the wallet has no history yet."""


class InvalidWalletId(PortfolioAnalyticsError):
    """The wallet identifier is empty or malformed."""
