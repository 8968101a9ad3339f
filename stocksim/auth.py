"""
Email/password authentication and user profiles over a pluggable backend.
"""

import logging
import threading
import uuid
from typing import Dict, Optional, Protocol, Tuple

from werkzeug.security import check_password_hash, generate_password_hash

from .exceptions import AuthError
from .favorites import FavoritesStore, ProfileStore
from .models import UserProfile

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


class AuthBackend(Protocol):
    """Account store able to verify credentials."""

    def sign_in(self, email: str, password: str) -> str:
        ...

    def create_user(self, email: str, password: str) -> str:
        ...

    def sign_out(self) -> None:
        ...


class InMemoryAuthBackend:
    """
    AuthBackend holding accounts in memory with werkzeug password hashes.

    Raises AuthError with the messages a user would see.
    """

    def __init__(self):
        self._accounts: Dict[str, Tuple[str, str]] = {}  # {email: (uid, password_hash)}
        self._lock = threading.Lock()
        self.current_uid: Optional[str] = None

    def create_user(self, email: str, password: str) -> str:
        if '@' not in email:
            raise AuthError("The email address is badly formatted.")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise AuthError(f"Password should be at least {MIN_PASSWORD_LENGTH} characters.")

        key = email.lower()
        with self._lock:
            if key in self._accounts:
                raise AuthError("The email address is already in use by another account.")
            uid = uuid.uuid4().hex
            self._accounts[key] = (uid, generate_password_hash(password))
            self.current_uid = uid
        return uid

    def sign_in(self, email: str, password: str) -> str:
        with self._lock:
            account = self._accounts.get(email.lower())
        if account is None:
            raise AuthError("No account found for this email.")

        uid, password_hash = account
        if not check_password_hash(password_hash, password):
            raise AuthError("Wrong password provided.")
        self.current_uid = uid
        return uid

    def sign_out(self) -> None:
        self.current_uid = None


class AuthService:
    """
    Signs users in and out and keeps their profile and favorites in sync.
    """

    def __init__(self, backend: AuthBackend, profiles: ProfileStore, favorites: FavoritesStore):
        self.backend = backend
        self.profiles = profiles
        self.favorites = favorites

    def sign_in(self, email: str, password: str) -> str:
        """
        Sign in with email and password and load the user's favorites.

        Returns:
            uid of the signed-in user

        Raises:
            AuthError: If the credentials are rejected
        """
        uid = self._call_backend(self.backend.sign_in, email.strip(), password.strip())
        self.favorites.load(uid)
        logger.info(f"User {uid} signed in")
        return uid

    def sign_up(
        self,
        name: str,
        country: str,
        email: str,
        password: str,
        phone: Optional[str] = None
    ) -> str:
        """
        Create an account and its profile document with an empty favorites list.

        Returns:
            uid of the new user
        """
        uid = self._call_backend(self.backend.create_user, email.strip(), password.strip())
        self.upsert_profile(uid, name, country, phone)
        self.favorites.load(uid)
        logger.info(f"User {uid} signed up")
        return uid

    def upsert_profile(
        self,
        uid: str,
        name: str,
        country: str,
        phone: Optional[str] = None
    ) -> UserProfile:
        """Create or update the profile document, keeping existing favorites."""
        profile = UserProfile(
            uid=uid,
            name=name.strip(),
            country=country.strip(),
            phone=phone.strip() if phone and phone.strip() else None,
        )
        return self.profiles.upsert_profile(profile, keep_favorites=True)

    def get_profile(self, uid: str) -> Optional[UserProfile]:
        return self.profiles.get_profile(uid)

    def sign_out(self):
        """Sign out and drop the session's favorites cache."""
        self.backend.sign_out()
        self.favorites.clear()

    def _call_backend(self, method, email: str, password: str) -> str:
        if not email or not password:
            raise AuthError("Please enter your email and password.")
        try:
            return method(email, password)
        except AuthError:
            raise
        except Exception as e:
            logger.error(f"Authentication backend error: {e}")
            raise AuthError("Authentication failed. Please try again later.") from e
