import unittest

from gomarket.local_storage import CURRENCY_KEY, NOTIFICATIONS_KEY, THEME_KEY, MemoryStorage
from gomarket.settings_store import SettingsStore, format_currency


class TestSettingsStore(unittest.TestCase):
    def test_defaults(self):
        settings = SettingsStore(MemoryStorage())
        self.assertEqual(settings.theme, "dark")
        self.assertEqual(settings.currency, "Auto")
        self.assertFalse(settings.notifications)

    def test_invalid_stored_values_fall_back(self):
        storage = MemoryStorage({THEME_KEY: "neon", CURRENCY_KEY: "BTC", NOTIFICATIONS_KEY: "yes"})
        settings = SettingsStore(storage)
        self.assertEqual(settings.theme, "dark")
        self.assertEqual(settings.currency, "Auto")
        self.assertFalse(settings.notifications)

    def test_setters_persist_and_notify(self):
        storage = MemoryStorage()
        settings = SettingsStore(storage)
        seen = []
        settings.subscribe(lambda s: seen.append((s.theme, s.currency, s.notifications)))

        settings.toggle_theme()
        settings.set_currency("EUR")
        settings.set_notifications(True)

        self.assertEqual(storage.get_item(THEME_KEY), "light")
        self.assertEqual(storage.get_item(CURRENCY_KEY), "EUR")
        self.assertEqual(storage.get_item(NOTIFICATIONS_KEY), "true")
        self.assertEqual(seen[-1], ("light", "EUR", True))
        self.assertEqual(len(seen), 3)

        reloaded = SettingsStore(storage)
        self.assertEqual((reloaded.theme, reloaded.currency, reloaded.notifications), ("light", "EUR", True))

    def test_unknown_values_are_rejected(self):
        settings = SettingsStore(MemoryStorage())
        with self.assertRaises(ValueError):
            settings.set_theme("neon")
        with self.assertRaises(ValueError):
            settings.set_currency("BTC")


class TestFormatCurrency(unittest.TestCase):
    def test_formats(self):
        self.assertEqual(format_currency(1234.5, "USD"), "$1,234.50")
        self.assertEqual(format_currency(1234.5, "EUR"), "1.234,50 €")
        self.assertEqual(format_currency(1234.5, "GBP"), "£1,234.50")
        self.assertEqual(format_currency(1234.5, "ZAR"), "R 1 234,50")
        self.assertEqual(format_currency(1234.5, "NGN"), "₦1,234.50")

    def test_auto_means_rand(self):
        self.assertEqual(format_currency(99, "Auto"), format_currency(99, "ZAR"))

    def test_unknown_code_uses_dollars(self):
        with self.assertLogs("gomarket.settings_store", level="ERROR"):
            self.assertEqual(format_currency(5, "XYZ"), "$5.00")


if __name__ == "__main__":
    unittest.main()
