"""Configuration management utilities for the budget dashboard.

Provides reusable functions for:
- Resolving the hosted backend credentials from several injected sources
- Managing environment-specific settings
- Configuration validation

Backend credential sources, highest priority first:

    1. A value injected by the caller, or the ``__firebase_config`` variable
       set by the hosting editor
    2. ``VITE_FIREBASE_CONFIG`` (build-time environment)
    3. ``FIREBASE_CONFIG`` / ``FIREBASE_CONFIG_FILE`` (process-wide global)
"""

from typing import Dict, Optional, Any, Mapping
import json
import logging
import os as _os

logger = logging.getLogger("budget_dashboard.config")

DEFAULT_APP_ID = "budget-analytics-2025"
DEFAULT_COLLECTION_NAME = "presupuesto_2025"
COLLECTION_LAYOUTS = ("artifacts", "flat")

INJECTED_CONFIG_VAR = "__firebase_config"
BUILD_CONFIG_VAR = "VITE_FIREBASE_CONFIG"
GLOBAL_CONFIG_VAR = "FIREBASE_CONFIG"
GLOBAL_CONFIG_FILE_VAR = "FIREBASE_CONFIG_FILE"


class Config:
    """Base configuration class for organizing application settings."""

    def __init__(self):
        """Initialize configuration with default values."""
        pass

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary.

        Returns:
            Dictionary of all config attributes
        """
        return {k: v for k, v in self.__dict__.items() if not k.startswith("_")}


class FirebaseConfig(Config):
    """Web-app credentials for the hosted auth + document database services."""

    # camelCase key in the injected blob -> attribute name
    FIELDS = {
        "apiKey": "api_key",
        "authDomain": "auth_domain",
        "projectId": "project_id",
        "storageBucket": "storage_bucket",
        "messagingSenderId": "messaging_sender_id",
        "appId": "app_id",
    }

    def __init__(self) -> None:
        super().__init__()
        self.api_key: str = ""
        self.auth_domain: Optional[str] = None
        self.project_id: Optional[str] = None
        self.storage_bucket: Optional[str] = None
        self.messaging_sender_id: Optional[str] = None
        self.app_id: Optional[str] = None

    @classmethod
    def from_blob(cls, blob: Mapping[str, Any]) -> Optional["FirebaseConfig"]:
        """Build a config from the camelCase JSON blob.

        Returns ``None`` when the blob has no ``apiKey``; without one the
        auth service cannot be initialised.
        """
        if not isinstance(blob, Mapping) or not blob.get("apiKey"):
            return None
        config = cls()
        for key, attr in cls.FIELDS.items():
            if blob.get(key) is not None:
                setattr(config, attr, str(blob[key]))
        # Project id is recoverable from the auth domain ("<project>.firebaseapp.com")
        if not config.project_id and config.auth_domain:
            config.project_id = config.auth_domain.split(".", 1)[0]
        return config


def _parse_blob(value: Any) -> Any:
    if isinstance(value, (str, bytes)):
        return json.loads(value)
    return value


def resolve_firebase_config(
    injected: Any = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Optional[FirebaseConfig]:
    """Resolve backend credentials from the first available source.

    Args:
        injected: A dict or JSON string supplied directly by the caller.
            Takes precedence over every environment source.
        environ: Environment mapping (default: ``os.environ``).

    Returns:
        A validated FirebaseConfig, or ``None`` if no source yields a blob
        with an ``apiKey``. Malformed JSON is logged and yields ``None``.
    """
    env = _os.environ if environ is None else environ
    try:
        if injected:
            return FirebaseConfig.from_blob(_parse_blob(injected))
        if env.get(INJECTED_CONFIG_VAR):
            return FirebaseConfig.from_blob(_parse_blob(env[INJECTED_CONFIG_VAR]))
        if env.get(BUILD_CONFIG_VAR):
            return FirebaseConfig.from_blob(_parse_blob(env[BUILD_CONFIG_VAR]))
        if env.get(GLOBAL_CONFIG_VAR):
            return FirebaseConfig.from_blob(_parse_blob(env[GLOBAL_CONFIG_VAR]))
        if env.get(GLOBAL_CONFIG_FILE_VAR):
            with open(env[GLOBAL_CONFIG_FILE_VAR], "r", encoding="utf-8") as f:
                return FirebaseConfig.from_blob(json.load(f))
    except (ValueError, OSError) as exc:
        logger.error("Error interpretando JSON de configuración: %s", exc)
    return None


def detect_config_sources(environ: Optional[Mapping[str, str]] = None) -> Dict[str, bool]:
    """Report which credential sources are set, for the diagnostics panel."""
    env = _os.environ if environ is None else environ
    return {
        INJECTED_CONFIG_VAR: bool(env.get(INJECTED_CONFIG_VAR)),
        BUILD_CONFIG_VAR: bool(env.get(BUILD_CONFIG_VAR)),
        GLOBAL_CONFIG_VAR: bool(
            env.get(GLOBAL_CONFIG_VAR) or env.get(GLOBAL_CONFIG_FILE_VAR)
        ),
    }


def resolve_app_id(environ: Optional[Mapping[str, str]] = None) -> str:
    env = _os.environ if environ is None else environ
    return env.get("__app_id") or env.get("APP_ID") or DEFAULT_APP_ID


def resolve_initial_auth_token(environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    env = _os.environ if environ is None else environ
    return env.get("__initial_auth_token") or env.get("INITIAL_AUTH_TOKEN") or None


class AppConfig(Config):
    """Application-level configuration loaded from environment variables.

    All env vars have sensible defaults so the application works out of the
    box; only the backend credentials must be supplied to see data.

    Environment variables:
        APP_PORT: API server port (default: 8000)
        APP_HOST: API server bind address (default: 127.0.0.1)
        APP_LOG_FORMAT: Logging format, "text" or "json" (default: text)
        APP_LOG_LEVEL: Root log level (default: INFO)
        APP_CORS_ORIGINS: Comma-separated allowed origins (default: *)
        APP_COLLECTION_LAYOUT: "artifacts" or "flat" (default: artifacts)
        APP_COLLECTION_NAME: Budget collection name (default: presupuesto_2025)
        APP_TOP_N: Categories shown in the charts (default: 7)
        APP_CONFIG_GRACE_SECONDS: Delay before reporting missing credentials (default: 1.5)
        APP_REFRESH_SECONDS: Browser poll interval for live partials (default: 5)
        APP_AUTH_TIMEOUT: Auth request timeout in seconds (default: 20)
    """

    def __init__(self) -> None:
        super().__init__()
        self.api_port = int(_os.getenv("APP_PORT", "8000"))
        self.api_host = _os.getenv("APP_HOST", "127.0.0.1")
        self.log_format = _os.getenv("APP_LOG_FORMAT", "text")
        self.log_level = _os.getenv("APP_LOG_LEVEL", "INFO").upper()
        raw_origins = _os.getenv("APP_CORS_ORIGINS", "*")
        self.cors_origins: list[str] = (
            ["*"] if raw_origins == "*"
            else [o.strip() for o in raw_origins.split(",") if o.strip()]
        )
        self.collection_layout = _os.getenv("APP_COLLECTION_LAYOUT", "artifacts")
        self.collection_name = _os.getenv("APP_COLLECTION_NAME", DEFAULT_COLLECTION_NAME)
        self.top_n = int(_os.getenv("APP_TOP_N", "7"))
        self.config_grace_seconds = float(_os.getenv("APP_CONFIG_GRACE_SECONDS", "1.5"))
        self.refresh_seconds = int(_os.getenv("APP_REFRESH_SECONDS", "5"))
        self.auth_timeout = float(_os.getenv("APP_AUTH_TIMEOUT", "20"))
        self.validate()

    def validate(self) -> None:
        """Raise ValueError for settings the dashboard cannot run with."""
        if self.collection_layout not in COLLECTION_LAYOUTS:
            raise ValueError(
                f"APP_COLLECTION_LAYOUT must be one of {COLLECTION_LAYOUTS}, "
                f"got {self.collection_layout!r}"
            )
        if not 1 <= self.top_n <= 50:
            raise ValueError(f"APP_TOP_N must be between 1 and 50, got {self.top_n}")
        if self.config_grace_seconds < 0:
            raise ValueError("APP_CONFIG_GRACE_SECONDS must be >= 0")
        if self.log_format not in ("text", "json"):
            raise ValueError(f"APP_LOG_FORMAT must be 'text' or 'json', got {self.log_format!r}")

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create an AppConfig instance populated from environment variables."""
        return cls()
