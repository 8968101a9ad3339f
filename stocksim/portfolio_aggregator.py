"""
Portfolio value aggregation.

Combines the price series of the symbols a user follows into a single
value curve and derives total, profit and min/max from it.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional, Sequence

import pandas as pd

from .favorites import FavoritesStore
from .models import PortfolioSummary, PortfolioView, TimeSeriesPoint
from .stock_service import StockService

logger = logging.getLogger(__name__)


@dataclass
class DatedPortfolioValue:
    """Combined value on a calendar date, with the symbols that had no price."""
    date: date
    value: float
    missing: List[str]


def summarize(values: Sequence[float]) -> PortfolioSummary:
    """
    Build a summary from a combined value curve.

    Args:
        values: Combined portfolio value per index

    Returns:
        PortfolioSummary; all zeros for an empty curve
    """
    if not values:
        return PortfolioSummary()

    return PortfolioSummary(
        points=[(i, value) for i, value in enumerate(values)],
        total=values[-1],
        profit=values[-1] - values[0],
        min_value=min(values),
        max_value=max(values),
    )


def aggregate_series(series_list: Sequence[Sequence[TimeSeriesPoint]]) -> PortfolioSummary:
    """
    Sum several price series point by point.

    Empty series are ignored. The remaining series are aligned by position
    and truncated to the shortest one, dropping trailing points of the
    longer series.

    Args:
        series_list: Price series, each in ascending time order

    Returns:
        PortfolioSummary of the combined series
    """
    valid_series = [series for series in series_list if series]
    if not valid_series:
        return PortfolioSummary()

    length = min(len(series) for series in valid_series)
    if any(len(series) > length for series in valid_series):
        logger.debug(f"Truncating {len(valid_series)} series to {length} points")

    combined = [
        sum(series[i].price for series in valid_series)
        for i in range(length)
    ]
    return summarize(combined)


def aggregate_by_date(series_by_symbol: Dict[str, Sequence[TimeSeriesPoint]]) -> List[DatedPortfolioValue]:
    """
    Sum several price series by calendar date instead of by position.

    Every date present in any series appears once in the result. Symbols
    without a price on a date are listed in `missing` and contribute nothing
    to that date's value.

    Args:
        series_by_symbol: Dictionary mapping symbol to its price series

    Returns:
        List of DatedPortfolioValue sorted by date
    """
    columns = {}
    for symbol, series in series_by_symbol.items():
        if not series:
            continue
        prices = pd.Series(
            [point.price for point in series],
            index=[point.timestamp.date() for point in series],
            dtype='float64',
        )
        # Keep the last price of a day if the series has several
        columns[symbol] = prices[~prices.index.duplicated(keep='last')]

    if not columns:
        return []

    frame = pd.concat(columns, axis=1).sort_index()

    results = []
    for day, row in frame.iterrows():
        missing = [symbol for symbol in frame.columns if pd.isna(row[symbol])]
        results.append(DatedPortfolioValue(
            date=day,
            value=float(row.sum(skipna=True)),
            missing=missing,
        ))
    return results


class PortfolioLoader:
    """
    Loads the favorites portfolio of the signed-in user.
    """

    def __init__(
        self,
        stock_service: StockService,
        favorites: FavoritesStore,
        max_workers: Optional[int] = None
    ):
        """
        Initialize portfolio loader.

        Args:
            stock_service: Service used for time series and quotes
            favorites: Favorites store of the current session
            max_workers: Maximum concurrent requests per batch
        """
        self.stock_service = stock_service
        self.favorites = favorites
        self.max_workers = max_workers

    def load(self, interval: str = '1M') -> PortfolioView:
        """
        Fetch time series and quotes for all favorites and aggregate them.

        Failures are isolated per symbol: a symbol whose series fails is left
        out of the value curve, a symbol whose quote fails is left out of the
        quote list. Both are reported in `failed`.

        Args:
            interval: Interval label for the time series

        Returns:
            PortfolioView; empty with a zeroed summary if there are no favorites
        """
        symbols = list(self.favorites.symbols)
        if not symbols:
            logger.info("No favorites, returning empty portfolio")
            return PortfolioView(symbols=[], quotes=[], summary=PortfolioSummary())

        logger.info(f"Loading portfolio of {len(symbols)} symbols ({interval})")

        # Series and quotes are fetched side by side
        with ThreadPoolExecutor(max_workers=2) as executor:
            series_future = executor.submit(
                self.stock_service.fetch_time_series_batch, symbols, interval, self.max_workers
            )
            quotes_future = executor.submit(
                self.stock_service.fetch_quotes, symbols, self.max_workers
            )
            series_results = series_future.result()
            quote_results = quotes_future.result()

        failed = {}
        series_list = []
        quotes = []
        for symbol in symbols:
            series_result = series_results[symbol]
            if series_result.ok:
                if series_result.value:
                    series_list.append(series_result.value)
                else:
                    logger.warning(f"Empty time series for {symbol}")
            else:
                failed[symbol] = f"time series: {series_result.error}"

            quote_result = quote_results[symbol]
            if quote_result.ok:
                quotes.append(quote_result.value)
            elif symbol in failed:
                failed[symbol] += f"; quote: {quote_result.error}"
            else:
                failed[symbol] = f"quote: {quote_result.error}"

        summary = aggregate_series(series_list)
        logger.info(
            f"Portfolio total {summary.total:.2f}, profit {summary.profit:+.2f} "
            f"from {len(series_list)}/{len(symbols)} series"
        )
        return PortfolioView(symbols=symbols, quotes=quotes, summary=summary, failed=failed)
