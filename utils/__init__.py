"""
Utility modules for the matching service.
"""

from .formatting import format_currency, format_pence
from .config import Config
from .logging import setup_logging

__all__ = ["format_currency", "format_pence", "Config", "setup_logging"]
