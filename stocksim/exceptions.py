"""
Exception types raised by the stocksim services.
"""


class StockSimError(Exception):
    """Base class for all stocksim errors."""


class FetchError(StockSimError):
    """A single request to a market-data or news provider failed."""

    def __init__(self, message: str, symbol: str = None):
        super().__init__(message)
        self.symbol = symbol


class PoolExhaustedError(FetchError):
    """Every credential in a key pool failed for the same request."""


class AuthError(StockSimError):
    """
    Sign-in or sign-up failed.

    The message is meant to be shown to the user as is.
    """
