"""
Screen routing: the named screens and the guards that decide where a request lands.

The router holds no widgets. The UI asks it where to go and renders the answer.
"""
import logging
from enum import Enum
from typing import Optional

from .data_models import SubscriptionPlan, User, VerificationStatus

logger = logging.getLogger("gomarket.router")

VERIFIED_NOTICE = "Your account has been verified!"


class Screen(str, Enum):
    SPLASH = "splash"
    LOGIN = "login"
    REGISTER = "register"
    MODE_SELECT = "mode_select"
    HOME = "home"
    SETTINGS = "settings"
    PROFILE = "profile"
    SUBSCRIPTION = "subscription"
    PAYMENT = "payment"
    SAVED_LISTINGS = "saved_listings"
    INBOX = "inbox"
    PENDING_VERIFICATION = "pending_verification"


class AppMode(str, Enum):
    BROWSE = "browse"
    SELL = "sell"


# Screens that log the user out when nobody is signed in
_NEEDS_USER = {
    Screen.HOME,
    Screen.SETTINGS,
    Screen.SAVED_LISTINGS,
    Screen.INBOX,
    Screen.PENDING_VERIFICATION,
}


def destination_for(user: Optional[User]) -> Screen:
    """Where a signed-in (or not) user lands after splash or login."""
    if user is None:
        return Screen.LOGIN
    if user.status == VerificationStatus.PENDING:
        return Screen.PENDING_VERIFICATION
    return Screen.MODE_SELECT


def sell_allowed(user: Optional[User]) -> bool:
    return user is not None and user.is_verified


class Router:
    """Current screen plus the context some screens need."""

    def __init__(self):
        self.current: Screen = Screen.SPLASH
        self.mode: AppMode = AppMode.BROWSE
        self.viewing_profile: Optional[User] = None
        self.selected_plan: Optional[SubscriptionPlan] = None

    def initial_destination(self, user: Optional[User]) -> Screen:
        return destination_for(user)

    def resolve(self, target: Screen, user: Optional[User]) -> Screen:
        """Apply the guards to a requested screen and return the one to show."""
        target = Screen(target)
        if target in _NEEDS_USER and user is None:
            logger.debug("no user for %s, going to login", target.value)
            return Screen.LOGIN
        if target == Screen.PROFILE and self.viewing_profile is None:
            return Screen.HOME
        if target == Screen.PAYMENT and (self.selected_plan is None or user is None):
            return Screen.SUBSCRIPTION
        return target

    def go(self, target: Screen, user: Optional[User]) -> Screen:
        resolved = self.resolve(target, user)
        if resolved == Screen.HOME:
            self.viewing_profile = None
        self.current = resolved
        return resolved

    def view_profile(self, profile: User) -> None:
        self.viewing_profile = profile

    def select_plan(self, plan: SubscriptionPlan) -> None:
        self.selected_plan = SubscriptionPlan(plan)

    def select_mode(self, mode: AppMode) -> None:
        self.mode = AppMode(mode)

    def on_user_changed(self, user: Optional[User]) -> Optional[Screen]:
        """Screen to move to after a user update, if any."""
        if user is not None and user.is_verified and self.current == Screen.PENDING_VERIFICATION:
            self.current = Screen.MODE_SELECT
            return Screen.MODE_SELECT
        return None
