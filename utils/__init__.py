"""Shared utilities for the budget transparency dashboard."""

# Pattern definitions
from utils.patterns import CURRENCY_SYMBOLS, THOUSANDS_SEP, WHITESPACE

# String utilities
from utils.strings import clean_label, normalize_whitespace, safe_amount, safe_float

# HTTP utilities
from utils.http import RetryStrategy, SessionManager, post_form, post_json

# Output formatting
from utils.formatting import format_amount, format_number, format_percent

# Snapshot memoization
from utils.cache import SnapshotMemo

# Configuration
from utils.config import (
    AppConfig,
    Config,
    FirebaseConfig,
    detect_config_sources,
    resolve_app_id,
    resolve_firebase_config,
    resolve_initial_auth_token,
)

__all__ = [
    # Patterns
    "CURRENCY_SYMBOLS",
    "THOUSANDS_SEP",
    "WHITESPACE",
    # Strings
    "clean_label",
    "normalize_whitespace",
    "safe_amount",
    "safe_float",
    # HTTP
    "RetryStrategy",
    "SessionManager",
    "post_form",
    "post_json",
    # Formatting
    "format_amount",
    "format_number",
    "format_percent",
    # Cache
    "SnapshotMemo",
    # Config
    "AppConfig",
    "Config",
    "FirebaseConfig",
    "detect_config_sources",
    "resolve_app_id",
    "resolve_firebase_config",
    "resolve_initial_auth_token",
]
