"""
Configuration settings for GoMarket
"""
import os
import sys
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

logger = logging.getLogger("gomarket.config")

DEBUG_LOG_FILE = Path.home() / ".gomarket_debug.log"

DEFAULT_API_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_TEXT_MODEL = "gemini-2.5-flash"
DEFAULT_IMAGE_MODEL = "gemini-2.5-flash-image-preview"
DEFAULT_VIDEO_MODEL = "veo-2.0-generate-001"


class ConfigurationError(Exception):
    """Raised when configuration is invalid or incomplete"""
    pass


@dataclass
class Latency:
    """Simulated delays in seconds.

    There is no real transport behind chat, login or verification, so these
    stand in for network round trips.
    """
    splash: float = 2.5
    login: float = 1.0
    delivery: float = 0.5
    read_receipt: float = 1.0
    ai_reply: float = 1.5
    verification: float = 1.5
    search_debounce: float = 0.7
    video_poll: float = 10.0

    def scaled(self, factor: float) -> "Latency":
        return Latency(
            splash=self.splash * factor,
            login=self.login * factor,
            delivery=self.delivery * factor,
            read_receipt=self.read_receipt * factor,
            ai_reply=self.ai_reply * factor,
            verification=self.verification * factor,
            search_debounce=self.search_debounce * factor,
            video_poll=self.video_poll * factor,
        )


class Config:
    """GoMarket configuration"""

    def __init__(self):
        # Gemini credentials; the keyring is consulted lazily by api_key()
        self._env_api_key = os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY") or ""

        # API endpoints and models
        self.api_url = os.getenv("GEMINI_API_URL", DEFAULT_API_URL).rstrip("/")
        self.text_model = os.getenv("GEMINI_TEXT_MODEL", DEFAULT_TEXT_MODEL)
        self.image_model = os.getenv("GEMINI_IMAGE_MODEL", DEFAULT_IMAGE_MODEL)
        self.video_model = os.getenv("GEMINI_VIDEO_MODEL", DEFAULT_VIDEO_MODEL)
        self.timeout = _float_env("GEMINI_TIMEOUT", 30.0)

        # Local storage
        self.home_dir = Path(os.getenv("GOMARKET_HOME") or Path.home() / ".gomarket")
        self.storage_file = self.home_dir / "local_storage.json"
        self.media_dir = self.home_dir / "media"

        scale = _float_env("GOMARKET_LATENCY_SCALE", 1.0)
        if scale < 0:
            logger.warning("GOMARKET_LATENCY_SCALE=%s is negative, using 1.0", scale)
            scale = 1.0
        self.latency = Latency().scaled(scale)

        self.debug = bool(os.getenv("GOMARKET_DEBUG"))

    def api_key(self) -> str:
        """Return the Gemini API key from the environment or the keyring."""
        if self._env_api_key:
            return self._env_api_key
        from .credentials import load_api_key

        return load_api_key() or ""

    def validate(self):
        """Validate required configuration"""
        if not self.api_key():
            raise ConfigurationError(
                "GEMINI_API_KEY not set (use the environment, a .env file or `gomarket --set-api-key`)"
            )
        if self.timeout <= 0:
            raise ConfigurationError("GEMINI_TIMEOUT must be positive")


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r", name, raw)
        return default


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance"""
    global _config
    if _config is None:
        _config = Config()
    return _config


def reset_config() -> None:
    """Drop the cached configuration so the environment is read again."""
    global _config
    _config = None


def configure_logging(debug: Optional[bool] = None) -> logging.Logger:
    """Configure the package logger.

    Textual owns stdout/stderr while the app runs, so debug output goes to
    ~/.gomarket_debug.log instead (enable with GOMARKET_DEBUG=1).
    """
    if debug is None:
        debug = bool(os.getenv("GOMARKET_DEBUG"))
    root = logging.getLogger("gomarket")
    level = logging.DEBUG if debug else logging.WARNING
    root.setLevel(level)

    if debug:
        if not any(
            isinstance(h, logging.FileHandler) and getattr(h, "baseFilename", "") == str(DEBUG_LOG_FILE)
            for h in root.handlers
        ):
            try:
                fh = logging.FileHandler(str(DEBUG_LOG_FILE), encoding="utf-8")
                fh.setLevel(logging.DEBUG)
                fh.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
                root.addHandler(fh)
            except OSError:
                # never fail startup for logging issues
                print(f"Warning: could not open {DEBUG_LOG_FILE} for debug logging", file=sys.stderr)
    elif not root.handlers:
        root.addHandler(logging.NullHandler())
    return root
