"""Build tool for WordPress plugins and themes built from ACF blocks."""
from __future__ import annotations

__version__ = "2.0.0"

__all__ = ["__version__"]
