"""GoMarket: a terminal marketplace client."""

__version__ = "0.1.0"
