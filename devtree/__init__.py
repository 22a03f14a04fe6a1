"""Source positions, include search, blob I/O and formatting helpers for device trees."""

__version__ = "1.4.4"
__all__ = ["srcpos", "util"]