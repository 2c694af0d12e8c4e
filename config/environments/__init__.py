"""
Per-environment overrides for the review chat client
"""

import os
from config.app_config import AppConfig


def get_environment_config() -> AppConfig:
    """
    Configuration for the environment named by APP_ENV

    "development" (the default) turns on debug logging and the debug
    sidebar; "production" logs JSON and caps the backend timeout. Any other
    value uses the base settings.
    """
    env = os.getenv("APP_ENV", "development").strip().lower()

    if env == "development":
        from .development import get_development_config
        return get_development_config()
    if env == "production":
        from .production import get_production_config
        return get_production_config()
    return AppConfig.load()
