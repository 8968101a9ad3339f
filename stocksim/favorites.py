"""
Session-scoped favorites (watchlist) store mirrored to the user's
remote profile document.

One FavoritesStore is created per session and passed to whoever needs
it. `load(uid)` is called after sign-in, `clear()` at sign-out.
"""

import logging
import threading
from typing import Dict, Iterable, Optional, Protocol, Tuple

from .models import UserProfile

logger = logging.getLogger(__name__)

FAVORITES_FIELD = 'favorites'


class ProfileStore(Protocol):
    """Remote per-user profile documents."""

    def get_profile(self, uid: str) -> Optional[UserProfile]:
        ...

    def upsert_profile(self, profile: UserProfile, keep_favorites: bool = True) -> UserProfile:
        ...

    def array_union(self, uid: str, field: str, values: Iterable[str]) -> None:
        ...

    def array_remove(self, uid: str, field: str, values: Iterable[str]) -> None:
        ...


class InMemoryProfileStore:
    """
    ProfileStore kept in a dict, for tests and offline use.
    """

    def __init__(self):
        self._profiles: Dict[str, UserProfile] = {}
        self._lock = threading.Lock()

    def get_profile(self, uid: str) -> Optional[UserProfile]:
        with self._lock:
            profile = self._profiles.get(uid)
            if profile is None:
                return None
            return UserProfile(
                uid=profile.uid,
                name=profile.name,
                country=profile.country,
                phone=profile.phone,
                favorites=list(profile.favorites),
            )

    def upsert_profile(self, profile: UserProfile, keep_favorites: bool = True) -> UserProfile:
        """
        Create or merge a profile document.

        Args:
            profile: New profile values
            keep_favorites: Keep the stored favorites of an existing document
                            instead of overwriting them
        """
        with self._lock:
            existing = self._profiles.get(profile.uid)
            favorites = list(profile.favorites)
            if existing is not None and keep_favorites:
                favorites = list(existing.favorites)
            merged = UserProfile(
                uid=profile.uid,
                name=profile.name,
                country=profile.country,
                phone=profile.phone if profile.phone else (existing.phone if existing else None),
                favorites=favorites,
            )
            self._profiles[profile.uid] = merged
            return merged

    def _require(self, uid: str, field: str) -> UserProfile:
        if field != FAVORITES_FIELD:
            raise ValueError(f"Unsupported array field: {field}")
        profile = self._profiles.get(uid)
        if profile is None:
            raise KeyError(f"No profile document for {uid}")
        return profile

    def array_union(self, uid: str, field: str, values: Iterable[str]) -> None:
        with self._lock:
            profile = self._require(uid, field)
            for value in values:
                if value not in profile.favorites:
                    profile.favorites.append(value)

    def array_remove(self, uid: str, field: str, values: Iterable[str]) -> None:
        with self._lock:
            profile = self._require(uid, field)
            remove = set(values)
            profile.favorites = [value for value in profile.favorites if value not in remove]


class FavoritesStore:
    """
    In-memory set of favorite symbols for the signed-in user.
    """

    def __init__(self, profiles: ProfileStore):
        self.profiles = profiles
        self.uid: Optional[str] = None
        self._favorites = set()

    def load(self, uid: str) -> Tuple[str, ...]:
        """
        Load the favorites of a user from their profile document.

        Returns:
            The loaded symbols
        """
        profile = self.profiles.get_profile(uid)
        self.uid = uid
        self._favorites = set(profile.favorites) if profile else set()
        logger.info(f"Loaded {len(self._favorites)} favorites for user {uid}")
        return self.symbols

    @property
    def symbols(self) -> Tuple[str, ...]:
        return tuple(sorted(self._favorites))

    def __len__(self) -> int:
        return len(self._favorites)

    def is_favorite(self, symbol: str) -> bool:
        return symbol in self._favorites

    def add(self, symbol: str) -> bool:
        """
        Add a symbol remotely, then locally.

        Returns:
            False if no user is loaded, True otherwise
        """
        if self.uid is None:
            logger.warning(f"Cannot add {symbol}: no user loaded")
            return False
        self.profiles.array_union(self.uid, FAVORITES_FIELD, [symbol])
        self._favorites.add(symbol)
        return True

    def remove(self, symbol: str) -> bool:
        """
        Remove a symbol remotely, then locally.

        Returns:
            False if no user is loaded, True otherwise
        """
        if self.uid is None:
            logger.warning(f"Cannot remove {symbol}: no user loaded")
            return False
        self.profiles.array_remove(self.uid, FAVORITES_FIELD, [symbol])
        self._favorites.discard(symbol)
        return True

    def toggle(self, symbol: str) -> bool:
        """
        Flip membership of a symbol.

        Returns:
            True if the symbol is a favorite afterwards
        """
        if self.is_favorite(symbol):
            self.remove(symbol)
        else:
            self.add(symbol)
        return self.is_favorite(symbol)

    def clear(self):
        """Forget the user and the cached favorites."""
        self.uid = None
        self._favorites = set()
