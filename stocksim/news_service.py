"""
Market and company news from Finnhub, plus NewsAPI-style top headlines.
"""

import logging
from datetime import date, timedelta
from typing import List, Optional

from config.settings import (
    FINNHUB_API_KEYS,
    FINNHUB_BASE_URL,
    NEWS_API_BASE_URL,
    NEWS_API_KEY,
    NEWS_LOOKBACK_DAYS,
)
from .http_client import ApiClient
from .key_pool import KeyPool
from .models import NewsItem

logger = logging.getLogger(__name__)

GENERAL_CATEGORY = 'general'


class NewsService:
    """
    Fetches either general market news or company-specific articles.
    """

    def __init__(
        self,
        finnhub_keys: Optional[List[str]] = None,
        news_api_key: Optional[str] = None,
        finnhub: Optional[ApiClient] = None,
        news_api: Optional[ApiClient] = None,
        lookback_days: int = NEWS_LOOKBACK_DAYS
    ):
        self.finnhub_keys = KeyPool(finnhub_keys or FINNHUB_API_KEYS, name='Finnhub')
        self.news_api_key = news_api_key or NEWS_API_KEY
        self.finnhub = finnhub or ApiClient(FINNHUB_BASE_URL)
        self.news_api = news_api or ApiClient(NEWS_API_BASE_URL)
        self.lookback_days = lookback_days

    def fetch_latest_news(self, symbol_or_category: str, today: Optional[date] = None) -> List[NewsItem]:
        """
        Fetch news for a category or a ticker symbol.

        Args:
            symbol_or_category: 'general' for market news, otherwise a ticker symbol
            today: Reference date for the company-news window (defaults to today)

        Returns:
            List of NewsItem; empty if the response is not a list
        """
        if symbol_or_category.lower() == GENERAL_CATEGORY:
            path = '/news'
            params = {'category': GENERAL_CATEGORY}
        else:
            end = today or date.today()
            start = end - timedelta(days=self.lookback_days)
            path = '/company-news'
            params = {
                'symbol': symbol_or_category,
                'from': start.isoformat(),
                'to': end.isoformat(),
            }

        def request(token: str):
            return self.finnhub.get_json(path, dict(params, token=token))

        data = self.finnhub_keys.call(request, f"news({symbol_or_category})")
        if not isinstance(data, list):
            logger.warning(f"Unexpected news payload for {symbol_or_category}: {type(data).__name__}")
            return []

        return [NewsItem.from_finnhub(raw) for raw in data if isinstance(raw, dict)]

    def fetch_headlines(self, category: str = 'business', country: str = 'us') -> List[NewsItem]:
        """
        Fetch top headlines from a NewsAPI-compatible endpoint.

        Returns:
            List of NewsItem; empty if the response holds no articles
        """
        if not self.news_api_key:
            raise ValueError("No News API key configured")

        data = self.news_api.get_json('/top-headlines', {
            'category': category,
            'country': country,
            'apiKey': self.news_api_key,
        })
        articles = data.get('articles') if isinstance(data, dict) else None
        if not isinstance(articles, list):
            return []
        return [NewsItem.from_newsapi(raw) for raw in articles if isinstance(raw, dict)]
