"""Configuration module for Ziege.

Provides loading and validation of the optional ``settings.yaml`` file.
"""

from ziege.config.settings import Settings, load_settings
from ziege.core.exceptions import ConfigError

__all__ = ["Settings", "ConfigError", "load_settings"]
