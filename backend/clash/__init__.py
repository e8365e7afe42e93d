"""Clash: two trading agents battle over token calls and daily price predictions."""

__version__ = "0.1.0"
__author__ = "Clash Team"

__all__ = ["__version__", "__author__"]
