"""
Discern - Core Module

Foundational pieces shared by every other package:
- Unified error handling
- Bounded LRU/TTL caching
- Async helpers for the I/O edges

Modules here import nothing else from the project except each other.

Usage:
    from core import DiscernError, LRUCache, gather_with_concurrency
"""

from core.errors import (
    DiscernError,
    DiscernConfigError,
    DiscernValidationError,
    DiscernIntegrationError,
    DiscernTimeoutError,
    ErrorContext,
    ErrorSeverity,
    classify_error,
)
from core.cache import CacheEntry, CacheStats, LRUCache
from core.async_utils import gather_with_concurrency, with_timeout

__all__ = [
    # Errors
    "DiscernError",
    "DiscernConfigError",
    "DiscernValidationError",
    "DiscernIntegrationError",
    "DiscernTimeoutError",
    "ErrorContext",
    "ErrorSeverity",
    "classify_error",
    # Caching
    "CacheEntry",
    "CacheStats",
    "LRUCache",
    # Async
    "gather_with_concurrency",
    "with_timeout",
]
