"""Credential persistence helpers for gomarket.

The Gemini API key can be kept out of .env files by storing it in the
system keyring under the service name ``gomarket``.

Functions:
  - save_api_key(key: str) -> None
  - load_api_key() -> Optional[str]
  - clear_api_key() -> None
"""

from __future__ import annotations

import logging
from typing import Optional

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

SERVICE_NAME = "gomarket"
API_KEY_ENTRY = "gemini_api_key"

logger = logging.getLogger("gomarket.credentials")


def save_api_key(key: str) -> None:
    """Persist the API key in the system keyring.

    Raises RuntimeError when no usable keyring backend is available so the
    command line can report it.
    """
    key = (key or "").strip()
    if not key:
        raise ValueError("API key must not be empty")
    try:
        keyring.set_password(SERVICE_NAME, API_KEY_ENTRY, key)
    except KeyringError as e:
        logger.exception("credentials: failed to write API key to keyring")
        raise RuntimeError("keyring backend is not available") from e
    logger.debug("credentials: stored API key in keyring")


def load_api_key() -> Optional[str]:
    """Return the stored API key, or None when absent or unreadable."""
    try:
        return keyring.get_password(SERVICE_NAME, API_KEY_ENTRY)
    except KeyringError:
        # a missing backend just means no stored key
        logger.debug("credentials: keyring read failed", exc_info=True)
        return None


def clear_api_key() -> None:
    """Remove the stored API key (best-effort)."""
    try:
        keyring.delete_password(SERVICE_NAME, API_KEY_ENTRY)
    except PasswordDeleteError:
        logger.debug("credentials: no API key stored")
    except KeyringError:
        logger.exception("credentials: failed to clear API key")
        raise
