"""
Unit tests for portfolio_aggregator module using unittest framework.
"""

import unittest
from datetime import date, datetime, timedelta
from unittest.mock import MagicMock

from .exceptions import PoolExhaustedError
from .favorites import FavoritesStore, InMemoryProfileStore
from .models import FetchResult, PortfolioSummary, Quote, TimeSeriesPoint, UserProfile
from .portfolio_aggregator import PortfolioLoader, aggregate_by_date, aggregate_series, summarize


def make_series(prices, start=datetime(2024, 6, 3)):
    """Create a daily series starting at `start`."""
    return [
        TimeSeriesPoint(timestamp=start + timedelta(days=i), price=price)
        for i, price in enumerate(prices)
    ]


class TestAggregateSeries(unittest.TestCase):
    """Test cases for aggregate_series."""

    def test_truncates_to_shortest_series(self):
        """Test A=[10,12,14] and B=[5,4] combine to [15,16]."""
        summary = aggregate_series([make_series([10, 12, 14]), make_series([5, 4])])

        self.assertEqual(summary.points, [(0, 15), (1, 16)])
        self.assertEqual(summary.total, 16)
        self.assertEqual(summary.profit, 1)
        self.assertEqual(summary.min_value, 15)
        self.assertEqual(summary.max_value, 16)

    def test_no_series(self):
        """Test that no series gives a zeroed summary."""
        summary = aggregate_series([])

        self.assertEqual(summary, PortfolioSummary())
        self.assertEqual(summary.points, [])
        self.assertEqual(summary.total, 0)
        self.assertEqual(summary.profit, 0)
        self.assertEqual(summary.min_value, 0)
        self.assertEqual(summary.max_value, 0)

    def test_empty_series_are_ignored(self):
        """Test that empty series do not shrink the combined length to zero."""
        summary = aggregate_series([make_series([1, 2, 3]), []])

        self.assertEqual(summary.values, [1, 2, 3])

    def test_only_empty_series(self):
        """Test that only empty series gives a zeroed summary."""
        self.assertEqual(aggregate_series([[], []]), PortfolioSummary())

    def test_length_is_minimum_length(self):
        """Test that the output length equals the shortest input length."""
        lengths = [7, 3, 5]
        series_list = [make_series([1.0] * n) for n in lengths]

        summary = aggregate_series(series_list)

        self.assertEqual(len(summary.points), min(lengths))

    def test_point_is_sum_of_prices(self):
        """Test that each combined value is the sum of the prices at that index."""
        series_list = [make_series([1.5, 2.5, 3.5]), make_series([10, 20, 30]), make_series([100, 200, 300])]

        summary = aggregate_series(series_list)

        for i, value in summary.points:
            self.assertAlmostEqual(value, sum(series[i].price for series in series_list))

    def test_profit_can_be_negative(self):
        """Test a falling portfolio."""
        summary = aggregate_series([make_series([50, 70, 40])])

        self.assertEqual(summary.profit, -10)
        self.assertEqual(summary.min_value, 40)
        self.assertEqual(summary.max_value, 70)
        self.assertEqual(summary.total, 40)


class TestSummarize(unittest.TestCase):
    """Test cases for summarize."""

    def test_single_value(self):
        """Test a curve with a single point."""
        summary = summarize([42.0])

        self.assertEqual(summary.points, [(0, 42.0)])
        self.assertEqual(summary.profit, 0.0)
        self.assertEqual(summary.min_value, summary.max_value)


class TestAggregateByDate(unittest.TestCase):
    """Test cases for aggregate_by_date."""

    def test_aligns_on_dates_and_marks_missing(self):
        """Test that series starting on different days are aligned by date."""
        result = aggregate_by_date({
            'AAPL': make_series([10, 12, 14], start=datetime(2024, 6, 3)),
            'MSFT': make_series([5, 4], start=datetime(2024, 6, 4)),
        })

        self.assertEqual([r.date for r in result], [date(2024, 6, 3), date(2024, 6, 4), date(2024, 6, 5)])
        self.assertEqual([r.value for r in result], [10.0, 17.0, 18.0])
        self.assertEqual(result[0].missing, ['MSFT'])
        self.assertEqual(result[1].missing, [])

    def test_keeps_last_price_of_day(self):
        """Test that duplicate dates within a series keep the last price."""
        points = [
            TimeSeriesPoint(timestamp=datetime(2024, 6, 3, 10), price=1.0),
            TimeSeriesPoint(timestamp=datetime(2024, 6, 3, 16), price=2.0),
        ]

        result = aggregate_by_date({'AAPL': points})

        self.assertEqual(len(result), 1)
        self.assertEqual(result[0].value, 2.0)

    def test_empty_input(self):
        """Test that no usable series gives an empty result."""
        self.assertEqual(aggregate_by_date({}), [])
        self.assertEqual(aggregate_by_date({'AAPL': []}), [])


class TestPortfolioLoader(unittest.TestCase):
    """Test cases for PortfolioLoader."""

    def setUp(self):
        """Create a favorites store for a user following three symbols."""
        profiles = InMemoryProfileStore()
        profiles.upsert_profile(UserProfile(uid='u1', favorites=['AAPL', 'MSFT', 'BAD']), keep_favorites=False)
        self.favorites = FavoritesStore(profiles)
        self.favorites.load('u1')
        self.stock_service = MagicMock()

    def test_no_favorites(self):
        """Test that zero favorites returns an empty, zeroed view without fetching."""
        empty = FavoritesStore(InMemoryProfileStore())
        loader = PortfolioLoader(self.stock_service, empty)

        view = loader.load()

        self.assertEqual(view.symbols, [])
        self.assertEqual(view.quotes, [])
        self.assertEqual(view.summary, PortfolioSummary())
        self.stock_service.fetch_quotes.assert_not_called()
        self.stock_service.fetch_time_series_batch.assert_not_called()

    def test_failures_are_isolated(self):
        """Test that a failing symbol is left out while the rest aggregate."""
        error = PoolExhaustedError('All Finnhub keys failed')
        self.stock_service.fetch_time_series_batch.return_value = {
            'AAPL': FetchResult('AAPL', value=make_series([10, 12, 14])),
            'BAD': FetchResult('BAD', error=error),
            'MSFT': FetchResult('MSFT', value=make_series([5, 4])),
        }
        self.stock_service.fetch_quotes.return_value = {
            'AAPL': FetchResult('AAPL', value=Quote('AAPL', 14.0, 1.0)),
            'BAD': FetchResult('BAD', error=error),
            'MSFT': FetchResult('MSFT', value=Quote('MSFT', 4.0, -2.0)),
        }
        loader = PortfolioLoader(self.stock_service, self.favorites)

        view = loader.load('1M')

        self.assertEqual(view.symbols, ['AAPL', 'BAD', 'MSFT'])
        self.assertEqual([q.symbol for q in view.quotes], ['AAPL', 'MSFT'])
        self.assertEqual(view.summary.values, [15, 16])
        self.assertEqual(view.summary.total, 16)
        self.assertEqual(view.summary.profit, 1)
        self.assertIn('BAD', view.failed)
        self.assertIn('time series', view.failed['BAD'])
        self.assertIn('quote', view.failed['BAD'])
        self.stock_service.fetch_time_series_batch.assert_called_once_with(['AAPL', 'BAD', 'MSFT'], '1M', None)

    def test_all_series_failed(self):
        """Test that a portfolio without any series has a zeroed summary but keeps quotes."""
        error = PoolExhaustedError('All Marketstack keys failed')
        self.stock_service.fetch_time_series_batch.return_value = {
            symbol: FetchResult(symbol, error=error) for symbol in ('AAPL', 'BAD', 'MSFT')
        }
        self.stock_service.fetch_quotes.return_value = {
            symbol: FetchResult(symbol, value=Quote(symbol, 1.0, 0.0)) for symbol in ('AAPL', 'BAD', 'MSFT')
        }
        loader = PortfolioLoader(self.stock_service, self.favorites)

        view = loader.load()

        self.assertEqual(view.summary, PortfolioSummary())
        self.assertEqual(len(view.quotes), 3)
        self.assertEqual(sorted(view.failed), ['AAPL', 'BAD', 'MSFT'])


if __name__ == '__main__':
    unittest.main()
