"""
Session state: the signed-in user profile.

The profile is persisted wholesale to local storage on every mutation and
cleared at logout. There is no account server; "login" restores the stored profile.
"""
import logging
import re
from dataclasses import replace
from typing import Callable, List, Optional
from urllib.parse import quote

from .data_models import User, VerificationStatus
from .errors import ValidationError
from .local_storage import USER_PROFILE_KEY, LocalStorage

logger = logging.getLogger("gomarket.session")

DEFAULT_LOCATION = "Johannesburg, GP"
AVATAR_URL = "https://i.pravatar.cc/150?u={seed}"


def demo_user() -> User:
    return User(
        name="Demo User",
        username="demouser",
        avatar_url=AVATAR_URL.format(seed="demouser"),
        status=VerificationStatus.UNVERIFIED,
        location=DEFAULT_LOCATION,
        accepted_terms=True,
    )


def migrate_user(user: User) -> User:
    """Fill fields missing from profiles stored by older versions."""
    if not user.username:
        user.username = re.sub(r"\s+", "_", user.name.lower())
    if not user.location:
        user.location = DEFAULT_LOCATION
    if user.accepted_terms is None:
        user.accepted_terms = True
    return user


class SessionManager:
    """Owns the current user and its persistence."""

    def __init__(self, storage: LocalStorage):
        self.storage = storage
        self.user: Optional[User] = None
        self._listeners: List[Callable[[Optional[User]], None]] = []

    # --- persistence helpers ---
    def _read_stored_user(self) -> Optional[User]:
        """Return the stored profile; corrupt data is removed and ignored."""
        raw = self.storage.get_json(USER_PROFILE_KEY)
        if raw is None:
            if self.storage.get_item(USER_PROFILE_KEY) is not None:
                logger.error("Failed to parse stored user profile, clearing it")
                self.storage.remove_item(USER_PROFILE_KEY)
            return None
        try:
            return User.from_dict(raw)
        except (AttributeError, TypeError, ValueError):
            logger.exception("Stored user profile is malformed, clearing it")
            self.storage.remove_item(USER_PROFILE_KEY)
            return None

    def _persist(self, user: User) -> None:
        self.user = user
        self.storage.set_json(USER_PROFILE_KEY, user.to_dict())
        self._notify()

    # --- lifecycle ---
    def restore(self) -> Optional[User]:
        """Resume a stored session at startup."""
        stored = self._read_stored_user()
        if stored is None:
            return None
        self.user = migrate_user(stored)
        logger.debug("restored session for %s", self.user.username)
        self._notify()
        return self.user

    def login(self) -> User:
        """Sign in with the profile stored on this machine."""
        stored = self._read_stored_user()
        if stored is None:
            raise ValidationError("No account found. Please register first.")
        user = migrate_user(stored)
        self._persist(user)
        return user

    def login_with_google(self) -> User:
        """Sign in with Google (demo): the stored profile or the demo user."""
        stored = self._read_stored_user()
        user = migrate_user(stored) if stored else demo_user()
        self._persist(user)
        return user

    def register(self, name: str, email: str, password: str, terms_accepted: bool) -> User:
        if not name.strip() or not email.strip() or not password:
            raise ValidationError("Please fill in all fields.")
        if not terms_accepted:
            raise ValidationError("You must agree to the Terms and Privacy Policy to create an account.")
        local_part = email.strip().split("@")[0]
        username = re.sub(r"[^a-zA-Z0-9]", "", local_part)
        if not username:
            raise ValidationError("Please enter a valid email address.")
        user = User(
            name=name.strip(),
            username=username,
            avatar_url=AVATAR_URL.format(seed=quote(email.strip(), safe="")),
            status=VerificationStatus.UNVERIFIED,
            location=DEFAULT_LOCATION,
            accepted_terms=True,
        )
        self._persist(user)
        return user

    def logout(self) -> None:
        self.user = None
        self.storage.remove_item(USER_PROFILE_KEY)
        self._notify()

    # --- profile edits ---
    def _require_user(self) -> User:
        if self.user is None:
            raise ValidationError("You are not signed in.")
        return self.user

    def update_user(self, user: User) -> User:
        self._persist(user)
        return user

    def save_profile(self, name: str, location: str, avatar_url: Optional[str] = None) -> User:
        user = self._require_user()
        if not name.strip():
            raise ValidationError("Name cannot be empty.")
        updated = replace(
            user,
            name=name.strip(),
            location=location.strip(),
            avatar_url=avatar_url if avatar_url is not None else user.avatar_url,
        )
        return self.update_user(updated)

    def set_ai_auto_reply(self, enabled: bool) -> User:
        user = self._require_user()
        return self.update_user(replace(user, ai_auto_reply_enabled=bool(enabled)))

    def submit_verification(
        self,
        id_document: Optional[str],
        proof_document: Optional[str],
        id_number: Optional[str] = None,
    ) -> User:
        """Submit identity documents; the account becomes pending review."""
        user = self._require_user()
        if not id_document or not proof_document:
            raise ValidationError("Please upload both documents to proceed.")
        updated = replace(
            user,
            status=VerificationStatus.PENDING,
            id_document_url=id_document,
            id_number=(id_number or "").strip() or user.id_number,
        )
        return self.update_user(updated)

    def check_verification_status(self) -> User:
        """Ask for the review result. The demo always approves."""
        user = self._require_user()
        if user.status == VerificationStatus.VERIFIED:
            return user
        return self.update_user(replace(user, status=VerificationStatus.VERIFIED))

    # --- observers ---
    def subscribe(self, listener: Callable[[Optional[User]], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self.user)
