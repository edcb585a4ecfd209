"""Utilities module for browse-plugin."""

from .config import AppConfig, ConfigLoader, RefFallbackPolicy
from .exceptions import (
    BrowsePluginError,
    BrowserbaseSessionError,
    CDPConnectionError,
    ChromeLaunchError,
    ConfigurationError,
    ElementNotFound,
    NavigationError,
    PermanentError,
    RefNotFound,
    ServiceError,
    TransientError,
)

__all__ = [
    "AppConfig",
    "BrowsePluginError",
    "BrowserbaseSessionError",
    "CDPConnectionError",
    "ChromeLaunchError",
    "ConfigLoader",
    "ConfigurationError",
    "ElementNotFound",
    "NavigationError",
    "PermanentError",
    "RefFallbackPolicy",
    "RefNotFound",
    "ServiceError",
    "TransientError",
]
