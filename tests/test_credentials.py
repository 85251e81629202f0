import unittest
from unittest.mock import patch

from keyring.errors import KeyringError, PasswordDeleteError

from gomarket import credentials


class TestCredentials(unittest.TestCase):
    @patch("gomarket.credentials.keyring")
    def test_save_strips_and_stores(self, mock_keyring):
        credentials.save_api_key("  abc123 ")
        mock_keyring.set_password.assert_called_once_with("gomarket", "gemini_api_key", "abc123")

    @patch("gomarket.credentials.keyring")
    def test_save_rejects_blank(self, mock_keyring):
        with self.assertRaises(ValueError):
            credentials.save_api_key("   ")
        mock_keyring.set_password.assert_not_called()

    @patch("gomarket.credentials.keyring")
    def test_save_reports_missing_backend(self, mock_keyring):
        mock_keyring.set_password.side_effect = KeyringError("no backend")
        with self.assertRaises(RuntimeError):
            credentials.save_api_key("abc")

    @patch("gomarket.credentials.keyring")
    def test_load(self, mock_keyring):
        mock_keyring.get_password.return_value = "abc"
        self.assertEqual(credentials.load_api_key(), "abc")
        mock_keyring.get_password.side_effect = KeyringError("locked")
        self.assertIsNone(credentials.load_api_key())

    @patch("gomarket.credentials.keyring")
    def test_clear_without_stored_key(self, mock_keyring):
        mock_keyring.delete_password.side_effect = PasswordDeleteError("missing")
        credentials.clear_api_key()
        mock_keyring.delete_password.assert_called_once_with("gomarket", "gemini_api_key")


if __name__ == "__main__":
    unittest.main()
