"""HTTP utilities for talking to the hosted auth service.

Provides reusable functions for:
- HTTP requests with retry logic
- Connection pooling and session management
- JSON POST helpers that never raise on HTTP error status
"""

from typing import Optional, Dict, List, Any, Tuple
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry as URLRetry


class RetryStrategy:
    """Defines retry behavior for HTTP requests."""

    def __init__(self, max_retries: int = 3, backoff_factor: float = 0.5,
                 status_forcelist: Optional[List[int]] = None,
                 allowed_methods: Optional[List[str]] = None):
        """Initialize retry strategy.

        Args:
            max_retries: Maximum number of retry attempts (default: 3)
            backoff_factor: Exponential backoff multiplier (default: 0.5)
            status_forcelist: HTTP status codes to retry on
                            (default: [429, 502, 503, 504])
            allowed_methods: Methods eligible for retry. POST is included
                            by default because sign-in calls are POSTs; the
                            status list excludes 500 so a request the server
                            may have applied is not replayed.
        """
        self.max_retries = max_retries
        self.backoff_factor = backoff_factor
        self.status_forcelist = status_forcelist or [429, 502, 503, 504]
        self.allowed_methods = allowed_methods or ["GET", "HEAD", "POST"]

    def get_retry_object(self) -> URLRetry:
        """Get urllib3 Retry object configured with this strategy."""
        return URLRetry(
            total=self.max_retries,
            backoff_factor=self.backoff_factor,
            status_forcelist=self.status_forcelist,
            allowed_methods=self.allowed_methods,
            raise_on_status=False,
        )


class SessionManager:
    """Manages HTTP sessions with connection pooling and retries."""

    def __init__(self, retry_strategy: Optional[RetryStrategy] = None,
                 pool_connections: int = 4, pool_maxsize: int = 8):
        self.retry_strategy = retry_strategy or RetryStrategy()
        self.pool_connections = pool_connections
        self.pool_maxsize = pool_maxsize
        self._session: Optional[requests.Session] = None

    @property
    def session(self) -> requests.Session:
        """Get or create HTTP session with retries and pooling."""
        if self._session is None:
            self._session = requests.Session()

            retry = self.retry_strategy.get_retry_object()
            adapter = HTTPAdapter(
                max_retries=retry,
                pool_connections=self.pool_connections,
                pool_maxsize=self.pool_maxsize
            )
            self._session.mount("http://", adapter)
            self._session.mount("https://", adapter)

        return self._session

    def close(self) -> None:
        """Close the session and release resources."""
        if self._session:
            self._session.close()
            self._session = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def post_json(session: requests.Session, url: str, payload: Dict[str, Any],
              params: Optional[Dict[str, str]] = None,
              timeout: float = 20) -> Tuple[int, Dict[str, Any]]:
    """POST *payload* as JSON and return ``(status_code, body)``.

    A body that is not a JSON object is returned as an empty dict so callers
    can always use ``body.get(...)``. Transport errors propagate as
    ``requests.RequestException``.
    """
    resp = session.post(url, json=payload, params=params, timeout=timeout)
    try:
        body = resp.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}
    return resp.status_code, body


def post_form(session: requests.Session, url: str, data: Dict[str, str],
              params: Optional[Dict[str, str]] = None,
              timeout: float = 20) -> Tuple[int, Dict[str, Any]]:
    """Form-encoded variant of post_json() (token refresh endpoint)."""
    resp = session.post(url, data=data, params=params, timeout=timeout)
    try:
        body = resp.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}
    return resp.status_code, body
