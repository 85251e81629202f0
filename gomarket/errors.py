"""Exceptions shared across the gomarket package."""


class GoMarketError(Exception):
    """Base class for gomarket errors"""
    pass


class ValidationError(GoMarketError):
    """Raised when form input is incomplete or invalid.

    The message is shown inline next to the offending form, so it must be
    readable by end users.
    """
    pass


class AIGatewayError(GoMarketError):
    """Raised when a generative AI request fails (network, quota, bad reply)."""
    pass
