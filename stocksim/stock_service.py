"""
Unified client for real-time and historical stock data with concurrent
batch fetching.

Combines Finnhub (quotes, key metrics, company profile) with Marketstack
(end-of-day time series). Each provider has its own key pool; a failing
key is rotated away and the request retried with the next one.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional

import pytz
from dateutil import parser as date_parser

from config.settings import (
    DATA_TIMEZONE,
    FETCH_MAX_WORKERS,
    FINNHUB_API_KEYS,
    FINNHUB_BASE_URL,
    MARKETSTACK_API_KEYS,
    MARKETSTACK_BASE_URL,
)
from .exceptions import FetchError
from .http_client import ApiClient
from .intervals import compute_date_range
from .key_pool import KeyPool
from .models import CompanyProfile, FetchResult, Quote, StockStats, TimeSeriesPoint

logger = logging.getLogger(__name__)

# Marketstack returns at most this many end-of-day rows per request
EOD_LIMIT = 100


def _round2(value: float) -> float:
    return round(value, 2)


class StockService:
    """
    Fetches quotes, key statistics and time series for ticker symbols.
    """

    def __init__(
        self,
        finnhub_keys: Optional[List[str]] = None,
        marketstack_keys: Optional[List[str]] = None,
        finnhub: Optional[ApiClient] = None,
        marketstack: Optional[ApiClient] = None,
        timezone: Optional[str] = DATA_TIMEZONE,
        max_workers: int = FETCH_MAX_WORKERS
    ):
        """
        Initialize stock service.

        Args:
            finnhub_keys: Finnhub tokens (defaults to FINNHUB_API_KEYS)
            marketstack_keys: Marketstack access keys (defaults to MARKETSTACK_API_KEYS)
            finnhub: Optional Finnhub API client
            marketstack: Optional Marketstack API client
            timezone: Optional timezone string (e.g., 'UTC', 'America/New_York').
                     If None, time-series timestamps keep the timezone returned by the API.
            max_workers: Maximum number of concurrent requests for batch calls
        """
        self.finnhub_keys = KeyPool(finnhub_keys or FINNHUB_API_KEYS, name='Finnhub')
        self.marketstack_keys = KeyPool(marketstack_keys or MARKETSTACK_API_KEYS, name='Marketstack')
        self.finnhub = finnhub or ApiClient(FINNHUB_BASE_URL)
        self.marketstack = marketstack or ApiClient(MARKETSTACK_BASE_URL)
        self.max_workers = max_workers

        self.timezone = None
        if timezone:
            try:
                self.timezone = pytz.timezone(timezone)
                logger.info(f"Using timezone: {timezone}")
            except pytz.UnknownTimeZoneError as e:
                logger.warning(f"Invalid timezone '{timezone}': {e}. Using original timezone from data.")
                self.timezone = None

    # Single-symbol requests

    def fetch_quote(self, symbol: str) -> Quote:
        """
        Fetch the latest quote for a symbol from Finnhub.

        Args:
            symbol: Stock symbol (e.g., 'AAPL')

        Returns:
            Quote with current price and percent change since previous close

        Raises:
            PoolExhaustedError: If every Finnhub token failed
        """
        def request(token: str) -> Quote:
            data = self.finnhub.get_json('/quote', {'symbol': symbol, 'token': token})
            if not isinstance(data, dict) or data.get('c') is None:
                raise FetchError(f"Bad quote response for {symbol}", symbol)

            close = float(data['c'])
            prev = float(data['pc']) if data.get('pc') is not None else close
            change_pct = (close - prev) / prev * 100 if prev != 0 else 0.0
            return Quote(symbol=symbol, price=close, change_percent=change_pct)

        return self.finnhub_keys.call(request, f"quote({symbol})")

    def fetch_key_stats(self, symbol: str) -> StockStats:
        """
        Fetch key fundamental metrics for a symbol from Finnhub.

        Missing metrics are reported as 0.0. Dividend yield is converted to percent.
        """
        def request(token: str) -> StockStats:
            data = self.finnhub.get_json(
                '/stock/metric',
                {'symbol': symbol, 'metric': 'all', 'token': token}
            )
            if not isinstance(data, dict):
                raise FetchError(f"Bad metric response for {symbol}", symbol)
            metric = data.get('metric') or {}

            def to_float(key: str) -> float:
                value = metric.get(key)
                return float(value) if value is not None else 0.0

            return StockStats(
                market_cap=_round2(to_float('marketCapitalization')),
                pe_ratio=_round2(to_float('peNormalizedAnnual')),
                beta=_round2(to_float('beta')),
                dividend_yield=_round2(to_float('dividendYield') * 100),
                avg_volume=_round2(to_float('10DayAverageTradingVolume')),
                week52_low=_round2(to_float('52WeekLow')),
                week52_high=_round2(to_float('52WeekHigh')),
            )

        return self.finnhub_keys.call(request, f"keyStats({symbol})")

    def fetch_company_profile(self, symbol: str) -> CompanyProfile:
        """Fetch company name, industry and logo from Finnhub."""
        def request(token: str) -> CompanyProfile:
            data = self.finnhub.get_json('/stock/profile2', {'symbol': symbol, 'token': token})
            if not isinstance(data, dict):
                raise FetchError(f"Bad profile response for {symbol}", symbol)
            return CompanyProfile.from_json(data)

        return self.finnhub_keys.call(request, f"profile({symbol})")

    def fetch_time_series(
        self,
        symbol: str,
        interval: str = '1M',
        now: Optional[datetime] = None
    ) -> List[TimeSeriesPoint]:
        """
        Fetch end-of-day closing prices for a symbol from Marketstack.

        Args:
            symbol: Stock symbol (e.g., 'AAPL')
            interval: Interval label. Must be one of: '1D', '1W', '1M', '3M', '1Y'
            now: Reference time for the date range (defaults to now)

        Returns:
            List of TimeSeriesPoint in ascending date order

        Raises:
            PoolExhaustedError: If every Marketstack key failed
        """
        date_from, date_to = compute_date_range(interval, now)

        def request(access_key: str) -> List[TimeSeriesPoint]:
            data = self.marketstack.get_json('/eod', {
                'access_key': access_key,
                'symbols': symbol,
                'date_from': date_from,
                'date_to': date_to,
                'limit': EOD_LIMIT,
                'sort': 'ASC',
            })
            if not isinstance(data, dict):
                raise FetchError(f"Bad time series response for {symbol}", symbol)
            return self._extract_points(data.get('data') or [], symbol)

        return self.marketstack_keys.call(request, f"timeSeries({symbol})")

    def _extract_points(self, rows: List[Dict[str, Any]], symbol: str) -> List[TimeSeriesPoint]:
        """
        Convert Marketstack EOD rows to time-series points.

        Raises:
            FetchError: If a row lacks a date or closing price
        """
        points = []
        for row in rows:
            try:
                timestamp = date_parser.isoparse(row['date'])
                price = float(row['close'])
            except (KeyError, TypeError, ValueError) as e:
                raise FetchError(f"Malformed EOD row for {symbol}: {row!r}", symbol) from e

            # Convert to user's timezone if specified
            if self.timezone:
                if timestamp.tzinfo is not None:
                    timestamp = timestamp.astimezone(self.timezone)
                else:
                    # Assume UTC if naive
                    timestamp = pytz.UTC.localize(timestamp).astimezone(self.timezone)

            points.append(TimeSeriesPoint(timestamp=timestamp, price=price))

        logger.debug(f"Parsed {len(points)} data points for {symbol}")
        return points

    # Batch requests

    def fetch_quotes(
        self,
        symbols: Iterable[str],
        max_workers: Optional[int] = None
    ) -> Dict[str, FetchResult]:
        """
        Fetch quotes for multiple symbols concurrently.

        Returns:
            Dictionary mapping each distinct symbol to its FetchResult.
            A failed symbol carries the error instead of a quote.
        """
        return self._fetch_batch(self.fetch_quote, symbols, 'quote', max_workers)

    def fetch_time_series_batch(
        self,
        symbols: Iterable[str],
        interval: str = '1M',
        max_workers: Optional[int] = None
    ) -> Dict[str, FetchResult]:
        """
        Fetch time series for multiple symbols concurrently.

        Returns:
            Dictionary mapping each distinct symbol to its FetchResult
        """
        return self._fetch_batch(
            lambda symbol: self.fetch_time_series(symbol, interval),
            symbols,
            'time series',
            max_workers
        )

    def _fetch_batch(
        self,
        fetch: Callable[[str], Any],
        symbols: Iterable[str],
        label: str,
        max_workers: Optional[int] = None
    ) -> Dict[str, FetchResult]:
        unique_symbols = list(dict.fromkeys(symbols))
        if not unique_symbols:
            return {}

        logger.info(f"Fetching {label} for {len(unique_symbols)} symbols")
        results = {}

        with ThreadPoolExecutor(max_workers=max_workers or self.max_workers) as executor:
            future_to_symbol = {
                executor.submit(fetch, symbol): symbol
                for symbol in unique_symbols
            }

            # Collect results as they complete
            for future in as_completed(future_to_symbol):
                symbol = future_to_symbol[future]
                try:
                    results[symbol] = FetchResult(symbol=symbol, value=future.result())
                    logger.debug(f"✓ Fetched {label} for {symbol}")
                except Exception as e:
                    logger.error(f"✗ Error fetching {label} for {symbol}: {e}")
                    results[symbol] = FetchResult(symbol=symbol, error=e)

        succeeded = sum(1 for result in results.values() if result.ok)
        logger.info(f"Successfully fetched {label} for {succeeded}/{len(unique_symbols)} symbols")
        return {symbol: results[symbol] for symbol in unique_symbols}
