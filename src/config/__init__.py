"""
Configuration Management.

- settings: Settings class with environment variable loading
- platforms: static table of collection platforms

Configuration sources (in order of precedence):
1. Environment variables
2. .env file
3. Default values

Example:
    from src.config import get_settings, get_active_platforms

    settings = get_settings()
    for platform in get_active_platforms():
        ...
"""

from src.config.settings import Settings, get_settings
from src.config.platforms import (
    PLATFORM_CONFIGS,
    CollectionMethod,
    PlatformConfig,
    PlatformType,
    get_active_platforms,
    get_platform,
    get_platforms_by_method,
    get_platforms_by_type,
)

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    # Platforms
    "PLATFORM_CONFIGS",
    "CollectionMethod",
    "PlatformConfig",
    "PlatformType",
    "get_active_platforms",
    "get_platform",
    "get_platforms_by_method",
    "get_platforms_by_type",
]
