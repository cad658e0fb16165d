"""
Utility modules for the lead valuation engine.
"""

from .formatting import format_currency, format_percent, format_signed_percent
from .config import Config

__all__ = ["format_currency", "format_percent", "format_signed_percent", "Config"]
