"""Configuration module for the Nestify API."""

from .settings import (
    APP_CONFIG,
    AppSettings,
    PostgresConfig,
    MongoConfig,
    CacheConfig,
    AuthConfig,
    SearchConfig,
    get_settings,
)

__all__ = [
    'APP_CONFIG',
    'AppSettings',
    'PostgresConfig',
    'MongoConfig',
    'CacheConfig',
    'AuthConfig',
    'SearchConfig',
    'get_settings',
]
