"""Nigeria renewable-energy suitability store."""

__version__ = "0.1.0"
