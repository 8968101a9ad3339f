"""
Marketstack end-of-day prices for a single ticker (e.g. 'BTCEUR').

Marketstack's free tier only offers daily EOD data.
"""

import logging
from typing import List, Optional

from config.settings import MARKETSTACK_API_KEYS, MARKETSTACK_BASE_URL
from .http_client import ApiClient
from .key_pool import KeyPool

logger = logging.getLogger(__name__)


def _close_or_zero(row) -> float:
    close = row.get('close') if isinstance(row, dict) else None
    return float(close) if close is not None else 0.0


class MarketstackService:
    """
    Latest close and recent closing prices for one ticker.
    """

    def __init__(self, keys: Optional[List[str]] = None, client: Optional[ApiClient] = None):
        self.keys = KeyPool(keys or MARKETSTACK_API_KEYS, name='Marketstack')
        self.client = client or ApiClient(MARKETSTACK_BASE_URL)

    def _fetch_rows(self, symbol: str, limit: int) -> list:
        def request(access_key: str) -> list:
            data = self.client.get_json(
                f'/tickers/{symbol}/eod',
                {'access_key': access_key, 'limit': limit}
            )
            rows = data.get('data') if isinstance(data, dict) else None
            return rows if isinstance(rows, list) else []

        return self.keys.call(request, f"eod({symbol})")

    def fetch_latest_price(self, symbol: str) -> float:
        """
        Fetch the most recent closing price.

        Returns:
            Latest close, or 0.0 if there is no data
        """
        rows = self._fetch_rows(symbol, 1)
        if not rows:
            logger.warning(f"No EOD data for {symbol}")
            return 0.0
        return _close_or_zero(rows[0])

    def fetch_history(self, symbol: str, limit: int = 30) -> List[float]:
        """
        Fetch the last `limit` closing prices, oldest first.

        Entries without a close are reported as 0.0.
        """
        if limit < 1:
            raise ValueError(f"limit must be >= 1, got {limit}")
        rows = self._fetch_rows(symbol, limit)
        # API returns newest first
        return [_close_or_zero(row) for row in reversed(rows)]
