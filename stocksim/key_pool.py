"""
API credential rotation.

Free-tier keys are pooled per provider. A request is attempted with the
active key; on failure the pool advances to the next key and retries,
until every key has been tried once.
"""

import logging
import threading
from typing import Callable, List, TypeVar

from .exceptions import PoolExhaustedError

logger = logging.getLogger(__name__)

T = TypeVar('T')


class KeyPool:
    """
    Round-robin pool of API keys for a single provider.
    """

    def __init__(self, keys: List[str], name: str = 'api'):
        """
        Initialize key pool.

        Args:
            keys: API keys, the first one is used first
            name: Provider name used in log and error messages
        """
        if not keys:
            raise ValueError(f"No API keys configured for {name}")
        self.keys = list(keys)
        self.name = name
        self._index = 0
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self.keys)

    @property
    def current(self) -> str:
        return self.keys[self._index]

    def rotate(self) -> str:
        """Advance to the next key and return it."""
        with self._lock:
            self._index = (self._index + 1) % len(self.keys)
            return self.keys[self._index]

    def call(self, fn: Callable[[str], T], description: str = 'request') -> T:
        """
        Run fn with the active key, rotating through the pool on failure.

        Each call walks the pool once from the key that was active when it
        started, so concurrent callers never skip a key.

        Args:
            fn: Callable taking the API key and returning the result
            description: Short label for the request, e.g. 'quote(AAPL)'

        Returns:
            Result of the first successful call

        Raises:
            PoolExhaustedError: If the call failed with every key
        """
        with self._lock:
            start = self._index

        last_error = None
        for attempt in range(len(self.keys)):
            index = (start + attempt) % len(self.keys)
            try:
                return fn(self.keys[index])
            except Exception as e:
                last_error = e
                logger.warning(
                    f"{self.name} {description} failed with key #{index + 1}/{len(self.keys)}: {e}"
                )
                self._advance_from(index)

        raise PoolExhaustedError(
            f"All {self.name} keys failed for {description}"
        ) from last_error

    def _advance_from(self, index: int):
        # Only move past the failed key if another caller has not already
        with self._lock:
            if self._index == index:
                self._index = (index + 1) % len(self.keys)
