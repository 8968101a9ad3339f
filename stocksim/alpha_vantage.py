"""
Alpha Vantage client for quotes and USD exchange rates.

The free tier allows only a handful of calls per minute, so batch quotes
are fetched one at a time behind a token-bucket rate limiter.
"""

import logging
from typing import Any, Dict, Iterable, Optional

from config.settings import (
    ALPHA_VANTAGE_API_KEY,
    ALPHA_VANTAGE_BASE_URL,
    ALPHA_VANTAGE_CALLS_PER_MINUTE,
)
from .exceptions import FetchError
from .http_client import ApiClient
from .models import FetchResult, Quote
from .rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


def _parse_float(raw: Any, default: float) -> float:
    try:
        return float(str(raw).replace('%', '').strip())
    except (TypeError, ValueError):
        return default


class AlphaStockService:
    """
    Talks to Alpha Vantage for quotes and FX rates.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        client: Optional[ApiClient] = None,
        rate_limiter: Optional[RateLimiter] = None
    ):
        self.api_key = api_key or ALPHA_VANTAGE_API_KEY
        if not self.api_key:
            raise ValueError("No Alpha Vantage API key configured")
        self.client = client or ApiClient(ALPHA_VANTAGE_BASE_URL)
        self.rate_limiter = rate_limiter or RateLimiter.per_minute(ALPHA_VANTAGE_CALLS_PER_MINUTE)

    def fetch_quote(self, symbol: str) -> Quote:
        """
        Fetch a single quote via GLOBAL_QUOTE.

        Unparsable price or change fields are reported as 0.0.

        Raises:
            FetchError: If the response holds no quote for the symbol
        """
        data = self.client.get_json('/query', {
            'function': 'GLOBAL_QUOTE',
            'symbol': symbol,
            'apikey': self.api_key,
        })
        quote = data.get('Global Quote') if isinstance(data, dict) else None
        if not isinstance(quote, dict) or not quote:
            raise FetchError(f"No quote for {symbol}", symbol)

        return Quote(
            symbol=symbol,
            price=_parse_float(quote.get('05. price'), 0.0),
            change_percent=_parse_float(quote.get('10. change percent'), 0.0),
        )

    def fetch_quotes(self, symbols: Iterable[str]) -> Dict[str, FetchResult]:
        """
        Fetch quotes one symbol at a time, honouring the rate limit.

        Returns:
            Dictionary mapping each distinct symbol to its FetchResult
        """
        results = {}
        for symbol in dict.fromkeys(symbols):
            self.rate_limiter.acquire()
            try:
                results[symbol] = FetchResult(symbol=symbol, value=self.fetch_quote(symbol))
            except FetchError as e:
                logger.warning(f"Skipping {symbol}: {e}")
                results[symbol] = FetchResult(symbol=symbol, error=e)
        return results

    def fetch_fx_rate(self, to_currency: str) -> float:
        """
        Fetch the USD to `to_currency` exchange rate.

        Returns:
            Exchange rate, or 1.0 if it could not be fetched
        """
        try:
            data = self.client.get_json('/query', {
                'function': 'CURRENCY_EXCHANGE_RATE',
                'from_currency': 'USD',
                'to_currency': to_currency,
                'apikey': self.api_key,
            })
        except FetchError as e:
            logger.warning(f"FX rate USD->{to_currency} unavailable: {e}")
            return 1.0

        rate = (data.get('Realtime Currency Exchange Rate') or {}) if isinstance(data, dict) else {}
        return _parse_float(rate.get('5. Exchange Rate'), 1.0)
