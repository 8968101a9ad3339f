"""
Thin JSON-over-HTTPS client shared by the provider services.
"""

import logging
from typing import Any, Dict, Optional

import requests

from config.settings import HTTP_TIMEOUT_SECONDS
from .exceptions import FetchError

logger = logging.getLogger(__name__)


class ApiClient:
    """
    GETs JSON documents from a single REST API base URL.
    """

    def __init__(
        self,
        base_url: str,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize API client.

        Args:
            base_url: Base URL of the API, e.g. 'https://finnhub.io/api/v1'
            timeout: Connect and read timeout in seconds (defaults to HTTP_TIMEOUT_SECONDS)
            session: Optional requests session, mainly for tests
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout if timeout is not None else HTTP_TIMEOUT_SECONDS
        self.session = session or requests.Session()

    def get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        Issue a GET request and decode the JSON body.

        Args:
            path: Path relative to the base URL, or an absolute URL
            params: Query-string parameters (API keys included)

        Returns:
            Decoded JSON body

        Raises:
            FetchError: On transport errors, non-200 status or invalid JSON
        """
        url = path if path.startswith('http') else f"{self.base_url}/{path.lstrip('/')}"

        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise FetchError(f"GET {url} failed: {e}") from e

        if response.status_code != 200:
            raise FetchError(f"GET {url} returned HTTP {response.status_code}")

        try:
            return response.json()
        except ValueError as e:
            raise FetchError(f"GET {url} returned invalid JSON") from e
