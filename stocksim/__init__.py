"""
Market-data client library for a simulated stock-trading app.

This module provides tools for:
- Fetching quotes, key statistics and time series with API-key rotation
- Fetching market and company news
- Keeping a user's favorites in sync with their profile
- Aggregating the favorites' time series into a portfolio value curve
"""

from .alpha_vantage import AlphaStockService
from .auth import AuthService, InMemoryAuthBackend
from .exceptions import AuthError, FetchError, PoolExhaustedError, StockSimError
from .favorites import FavoritesStore, InMemoryProfileStore
from .key_pool import KeyPool
from .marketstack_service import MarketstackService
from .news_service import NewsService
from .portfolio_aggregator import PortfolioLoader, aggregate_by_date, aggregate_series
from .stock_service import StockService

__all__ = [
    'AlphaStockService',
    'AuthError',
    'AuthService',
    'FavoritesStore',
    'FetchError',
    'InMemoryAuthBackend',
    'InMemoryProfileStore',
    'KeyPool',
    'MarketstackService',
    'NewsService',
    'PoolExhaustedError',
    'PortfolioLoader',
    'StockService',
    'StockSimError',
    'aggregate_by_date',
    'aggregate_series',
]
