"""
Data model shared by the market-data, news and portfolio services.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Generic, List, Optional, Tuple, TypeVar

T = TypeVar('T')


@dataclass(frozen=True)
class Quote:
    """Latest price and percent change for a ticker symbol."""
    symbol: str
    price: float
    change_percent: float


@dataclass(frozen=True)
class TimeSeriesPoint:
    """Closing price at a point in time."""
    timestamp: datetime
    price: float


@dataclass(frozen=True)
class StockStats:
    """Key fundamental metrics, rounded to two decimals."""
    market_cap: float
    pe_ratio: float
    beta: float
    dividend_yield: float  # percent
    avg_volume: float
    week52_low: float
    week52_high: float


@dataclass(frozen=True)
class CompanyProfile:
    """Public company metadata."""
    name: str
    ticker: str
    description: str
    industry: str
    logo_url: str

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> 'CompanyProfile':
        industry = data.get('finnhubIndustry') or ''
        return cls(
            name=data.get('name') or '',
            ticker=data.get('ticker') or '',
            description=industry,
            industry=industry,
            logo_url=data.get('logo') or '',
        )


@dataclass(frozen=True)
class NewsItem:
    """A news article as shown in a feed."""
    headline: str
    source: str
    url_to_image: str
    url: str

    @classmethod
    def from_finnhub(cls, data: Dict[str, Any]) -> 'NewsItem':
        """Build from a Finnhub news/company-news entry."""
        return cls(
            headline=data.get('headline') or '',
            source=data.get('source') or '',
            url_to_image=data.get('image') or '',
            url=data.get('url') or '',
        )

    @classmethod
    def from_newsapi(cls, data: Dict[str, Any]) -> 'NewsItem':
        """Build from a NewsAPI article, where the source is a nested object."""
        source = data.get('source')
        source_name = source.get('name') if isinstance(source, dict) else None
        return cls(
            headline=data.get('title') or '',
            source=source_name or '',
            url_to_image=data.get('urlToImage') or '',
            url=data.get('url') or '',
        )


@dataclass
class UserProfile:
    """Per-user profile document."""
    uid: str
    name: str = ''
    country: str = ''
    phone: Optional[str] = None
    favorites: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class FetchResult(Generic[T]):
    """
    Outcome of fetching one symbol: either a value or the error that
    prevented it. Batch fetchers return one per symbol so callers decide
    whether failed symbols are dropped or zero-filled.
    """
    symbol: str
    value: Optional[T] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value, re-raising the stored error on failure."""
        if self.error is not None:
            raise self.error
        return self.value


@dataclass
class PortfolioSummary:
    """Combined value curve of several series and the figures derived from it."""
    points: List[Tuple[int, float]] = field(default_factory=list)
    total: float = 0.0
    profit: float = 0.0
    min_value: float = 0.0
    max_value: float = 0.0

    @property
    def values(self) -> List[float]:
        return [value for _, value in self.points]


@dataclass
class PortfolioView:
    """Everything needed to render the portfolio of a user."""
    symbols: List[str]
    quotes: List[Quote]
    summary: PortfolioSummary
    failed: Dict[str, str] = field(default_factory=dict)  # {symbol: error message}
