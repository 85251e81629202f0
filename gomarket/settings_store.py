"""
User preference state (theme, currency, notifications) persisted to local storage.
"""
import logging
from typing import Callable, List

from .local_storage import CURRENCY_KEY, NOTIFICATIONS_KEY, THEME_KEY, LocalStorage

logger = logging.getLogger("gomarket.settings_store")

THEMES = ("light", "dark")
CURRENCIES = ("Auto", "USD", "EUR", "GBP", "ZAR", "NGN")
DEFAULT_THEME = "dark"
DEFAULT_CURRENCY = "Auto"
# 'Auto' has no locale detection in a terminal, so it means the home market
AUTO_CURRENCY = "ZAR"

# symbol, thousands separator, decimal separator, symbol after amount
_CURRENCY_FORMATS = {
    "USD": ("$", ",", ".", False),
    "EUR": ("€", ".", ",", True),
    "GBP": ("£", ",", ".", False),
    "ZAR": ("R ", " ", ",", False),
    "NGN": ("₦", ",", ".", False),
}


def format_currency(price: float, currency_code: str) -> str:
    """Format a price the way the currency's home locale writes it."""
    code = AUTO_CURRENCY if currency_code == "Auto" else currency_code
    if code not in _CURRENCY_FORMATS:
        logger.error("Currency formatting failed for %r, using USD", currency_code)
        code = "USD"
    symbol, thousands, decimal, suffix = _CURRENCY_FORMATS[code]
    sign = "-" if price < 0 else ""
    whole, _, cents = f"{abs(price):,.2f}".partition(".")
    amount = whole.replace(",", thousands) + decimal + cents
    if suffix:
        return f"{sign}{amount} {symbol}"
    return f"{sign}{symbol}{amount}"


class SettingsStore:
    """Process-wide preferences; every setter persists and notifies listeners."""

    def __init__(self, storage: LocalStorage):
        self.storage = storage
        self._listeners: List[Callable[["SettingsStore"], None]] = []

        stored_theme = storage.get_item(THEME_KEY)
        self._theme = stored_theme if stored_theme in THEMES else DEFAULT_THEME

        stored_currency = storage.get_item(CURRENCY_KEY)
        self._currency = stored_currency if stored_currency in CURRENCIES else DEFAULT_CURRENCY

        self._notifications = storage.get_item(NOTIFICATIONS_KEY) == "true"

    @property
    def theme(self) -> str:
        return self._theme

    @property
    def currency(self) -> str:
        return self._currency

    @property
    def notifications(self) -> bool:
        return self._notifications

    def set_theme(self, theme: str) -> None:
        if theme not in THEMES:
            raise ValueError(f"Unknown theme: {theme}")
        self._theme = theme
        self.storage.set_item(THEME_KEY, theme)
        self._notify()

    def toggle_theme(self) -> str:
        self.set_theme("light" if self._theme == "dark" else "dark")
        return self._theme

    def set_currency(self, currency: str) -> None:
        if currency not in CURRENCIES:
            raise ValueError(f"Unknown currency: {currency}")
        self._currency = currency
        self.storage.set_item(CURRENCY_KEY, currency)
        self._notify()

    def set_notifications(self, enabled: bool) -> None:
        self._notifications = bool(enabled)
        self.storage.set_item(NOTIFICATIONS_KEY, "true" if enabled else "false")
        self._notify()

    def format_price(self, price: float) -> str:
        return format_currency(price, self._currency)

    def subscribe(self, listener: Callable[["SettingsStore"], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)
