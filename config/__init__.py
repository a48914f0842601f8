"""Question Bank configuration."""

from config.settings import Settings, get_settings
from config.logging_config import setup_logging

__all__ = ["Settings", "get_settings", "setup_logging"]
