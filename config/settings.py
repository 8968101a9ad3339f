# config/settings.py
import os
from dotenv import load_dotenv

load_dotenv() # Load environment variables from .env file


def _split_keys(raw):
    """Split a comma-separated key list, dropping blanks."""
    return [key.strip() for key in (raw or "").split(",") if key.strip()]


# Finnhub (quotes, key metrics, company profile, news)
FINNHUB_BASE_URL = os.getenv("FINNHUB_BASE_URL", "https://finnhub.io/api/v1")
# Several free-tier tokens can be given; they are rotated on failure
FINNHUB_API_KEYS = _split_keys(os.getenv("FINNHUB_API_KEYS", os.getenv("FINNHUB_API_KEY", "")))

# Marketstack (end-of-day time series)
MARKETSTACK_BASE_URL = os.getenv("MARKETSTACK_BASE_URL", "https://api.marketstack.com/v1")
MARKETSTACK_API_KEYS = _split_keys(os.getenv("MARKETSTACK_API_KEYS", os.getenv("MARKETSTACK_API_KEY", "")))

# Alpha Vantage (global quote, FX rates)
ALPHA_VANTAGE_BASE_URL = os.getenv("ALPHA_VANTAGE_BASE_URL", "https://www.alphavantage.co")
ALPHA_VANTAGE_API_KEY = os.getenv("ALPHA_VANTAGE_API_KEY", "")
# Free tier allows 5 calls per minute
ALPHA_VANTAGE_CALLS_PER_MINUTE = int(os.getenv("ALPHA_VANTAGE_CALLS_PER_MINUTE", 5))

# NewsAPI-style headline endpoint
NEWS_API_BASE_URL = os.getenv("NEWS_API_BASE_URL", "https://newsapi.org/v2")
NEWS_API_KEY = os.getenv("NEWS_API_KEY", "")

# News Retrieval Configuration
NEWS_LOOKBACK_DAYS = int(os.getenv("NEWS_LOOKBACK_DAYS", 30)) # How many days back to fetch company news

# HTTP Configuration
HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", 5)) # Connect and receive timeout
FETCH_MAX_WORKERS = int(os.getenv("FETCH_MAX_WORKERS", 8)) # Concurrent requests per batch

# Optional timezone for parsed time-series timestamps (e.g. 'Europe/Berlin')
DATA_TIMEZONE = os.getenv("DATA_TIMEZONE", None)
