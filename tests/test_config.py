import os
import unittest
from pathlib import Path
from unittest.mock import patch

from gomarket.config import Config, ConfigurationError, Latency

KEY_VARS = ("GEMINI_API_KEY", "API_KEY")


class ConfigTestCase(unittest.TestCase):
    def make_config(self, **env):
        with patch.dict(os.environ, env):
            for name in KEY_VARS:
                if name not in env:
                    os.environ.pop(name, None)
            return Config()


class TestConfig(ConfigTestCase):
    def test_env_key_wins(self):
        config = self.make_config(GEMINI_API_KEY="env-key", API_KEY="other")
        self.assertEqual(config.api_key(), "env-key")
        self.assertEqual(self.make_config(API_KEY="legacy").api_key(), "legacy")

    def test_keyring_fallback(self):
        config = self.make_config()
        with patch("gomarket.credentials.load_api_key", return_value="kr-key"):
            self.assertEqual(config.api_key(), "kr-key")

    def test_validate_requires_key(self):
        config = self.make_config()
        with patch("gomarket.credentials.load_api_key", return_value=None):
            with self.assertRaises(ConfigurationError):
                config.validate()

    def test_home_dir(self):
        config = self.make_config(GOMARKET_HOME="/tmp/gm-test")
        self.assertEqual(config.storage_file, Path("/tmp/gm-test") / "local_storage.json")
        self.assertEqual(config.media_dir, Path("/tmp/gm-test") / "media")

    def test_model_overrides(self):
        config = self.make_config(GEMINI_TEXT_MODEL="gemini-test", GEMINI_API_URL="https://example.com/v1/")
        self.assertEqual(config.text_model, "gemini-test")
        self.assertEqual(config.api_url, "https://example.com/v1")


class TestLatency(ConfigTestCase):
    def test_scale_zero_makes_everything_immediate(self):
        latency = self.make_config(GOMARKET_LATENCY_SCALE="0").latency
        self.assertEqual(latency, Latency().scaled(0))
        self.assertEqual(latency.delivery, 0)
        self.assertEqual(latency.ai_reply, 0)

    def test_bad_scale_is_ignored(self):
        with self.assertLogs("gomarket.config", level="WARNING"):
            latency = self.make_config(GOMARKET_LATENCY_SCALE="fast").latency
        self.assertEqual(latency, Latency())
        with self.assertLogs("gomarket.config", level="WARNING"):
            latency = self.make_config(GOMARKET_LATENCY_SCALE="-2").latency
        self.assertEqual(latency, Latency())

    def test_defaults(self):
        latency = Latency()
        self.assertEqual((latency.delivery, latency.read_receipt, latency.ai_reply), (0.5, 1.0, 1.5))


if __name__ == "__main__":
    unittest.main()
